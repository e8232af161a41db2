"""
Briefer — asks Gemini for a structured creative brief.

Two modes:
  STANDARD: category + difficulty + market + industry (or a random niche)
  REMIX:    analyse an attached reference image and transplant its exact
            visual style onto an unrelated product/industry

The response is constrained by the BriefContent schema and validated
strictly; anything that does not parse becomes a GenerationError. The id,
market and reference image are stamped client-side afterwards.

Temperature is deliberately high, so identical inputs yield different briefs.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from typing import List, Optional, Union

from google import genai
from google.genai import types
from pydantic import ValidationError
from rich.console import Console

from .catalog import is_random_industry
from .errors import GenerationError, GraphicoError, UserInputError
from .images import load_image_bytes, prepare_image, to_base64
from .models import Brief, BriefContent, ClientType, DesignCategory, Difficulty
from .settings import (
    BRIEF_TEMPERATURE, GEMINI_API_KEY, GEMINI_MODEL,
    MAX_RETRIES, RETRY_DELAY_SECONDS,
)

console = Console()

_TRANSIENT_MARKERS = ("503", "unavailable", "overloaded", "quota")


def get_client(api_key: Optional[str] = None) -> genai.Client:
    return genai.Client(api_key=api_key or GEMINI_API_KEY)


# ── Prompt pieces ─────────────────────────────────────────────────────────────

LANGUAGE_DIRECTIVES = {
    ClientType.FOREIGN: (
        "CRITICAL: OUTPUT EVERYTHING IN ENGLISH. The client is International (US/UK/Europe). "
        "Use Western design trends, English copy, and English formatting."
    ),
    ClientType.LOCAL: (
        "CRITICAL: OUTPUT EVERYTHING IN ARABIC (except hex codes and provided_asset_description). "
        "The client is Arab. Use culturally relevant terms."
    ),
}

CATEGORY_HINTS = {
    DesignCategory.FOOTBALL: (
        "Focus on Football/Soccer aesthetics, high energy, dynamic player poses, grit, "
        "textures, and bold typography."
    ),
    DesignCategory.COLLAGE: (
        "Focus on Collage Art aesthetics. Mixed media, torn paper edges, vintage elements "
        "mixed with modern, surrealism, visual metaphors."
    ),
}

STANDARD_PROMPT = """\
Act as a Senior Art Director. Create a highly detailed design brief.

Parameters:
- Category: {category}
- Difficulty: {difficulty}
- Client Market: {market}
- Specific Industry/Niche: {industry}

{language}
{category_hint}

Requirements for fields:
1. 'content_summary': Create a specific scenario or story. If YouTube, describe the video plot. If Football, describe the match stakes.
2. 'provided_asset_description': MUST be in English.
   - If Category is YouTube, Education, or Product: End with "isolated on white background, studio lighting, 8k resolution".
   - If Football: "Dynamic football player action shot, stadium lights, professional sports photography".
   - If Collage: "Vintage paper texture, old statues, flowers, halftone pattern".
3. 'copywriting': Provide actual text to be placed on the design.

Make it professional and inspiring.
"""

REMIX_PROMPT = """\
Act as a Senior Art Director.
TASK: Analyze the visual style, composition, typography, and vibe of the attached image.
THEN: Create a design brief for a COMPLETELY DIFFERENT product/industry but using this EXACT style (Style Remix).

Example: If image is a neon cyberpunk burger ad, create a brief for a Sneaker Brand using that same neon cyberpunk style.

Parameters:
- Difficulty: {difficulty}
- Client Market: {market}

{language}

Requirements:
1. 'style_preferences': Describe the style of the uploaded image in detail so the designer can replicate it.
2. 'project_goal': Create a campaign that matches this visual identity.
3. 'copywriting': Write catchy headlines that fit this visual mood.
"""


# ── Request ───────────────────────────────────────────────────────────────────

@dataclass
class BriefRequest:
    """Everything that determines one generation call."""
    category: DesignCategory
    difficulty: Difficulty
    client_type: ClientType
    industry: Optional[str] = None
    reference_image: Optional[bytes] = None

    @property
    def is_remix(self) -> bool:
        return self.category.is_remix and bool(self.reference_image)

    @property
    def niche(self) -> Optional[str]:
        """The concrete industry, or None when the generator should choose."""
        return None if is_random_industry(self.industry) else self.industry.strip()

    def prompt(self) -> str:
        language = LANGUAGE_DIRECTIVES[self.client_type]
        foreign = self.client_type is ClientType.FOREIGN

        if self.is_remix:
            return REMIX_PROMPT.format(
                difficulty=self.difficulty.value,
                market="International" if foreign else "Arab",
                language=language,
            )

        return STANDARD_PROMPT.format(
            category=self.category.value,
            difficulty=self.difficulty.value,
            market="International (Global)" if foreign else "Middle East (Arab)",
            industry=self.niche or "Random Creative Niche",
            language=language,
            category_hint=CATEGORY_HINTS.get(self.category, ""),
        )

    def contents(self) -> List[types.Part]:
        parts: List[types.Part] = []
        if self.reference_image:
            data, mime = prepare_image(self.reference_image)
            parts.append(types.Part.from_bytes(data=data, mime_type=mime))
        parts.append(types.Part.from_text(text=self.prompt()))
        return parts

    def config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=BriefContent,
            temperature=BRIEF_TEMPERATURE,
        )


# ── Parsing ───────────────────────────────────────────────────────────────────

def parse_brief_payload(text: Optional[str]) -> BriefContent:
    """Validate Gemini's JSON against BriefContent; every field must be present."""
    if not text or not text.strip():
        raise GenerationError("Gemini returned no content")

    payload = text.strip()
    if payload.startswith("```"):
        payload = payload.split("\n", 1)[1] if "\n" in payload else ""
        if "```" in payload:
            payload = payload[:payload.rfind("```")]

    try:
        return BriefContent.model_validate_json(payload)
    except ValidationError as e:
        missing = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        raise GenerationError(f"Brief payload failed validation: {', '.join(missing) or e}") from e


def _is_transient(error: Exception) -> bool:
    err_str = str(error).lower()
    return any(marker in err_str for marker in _TRANSIENT_MARKERS)


def _call_gemini(client, contents, config) -> Optional[str]:
    for attempt in range(MAX_RETRIES):
        try:
            response = client.models.generate_content(
                model=GEMINI_MODEL,
                contents=contents,
                config=config,
            )
            return response.text
        except Exception as e:
            if _is_transient(e) and attempt < MAX_RETRIES - 1:
                console.print(
                    f"  [yellow]⚠ Gemini busy ({e}). Retrying in {RETRY_DELAY_SECONDS}s... "
                    f"({attempt + 1}/{MAX_RETRIES})[/yellow]"
                )
                time.sleep(RETRY_DELAY_SECONDS)
                continue
            raise GenerationError(f"Gemini request failed: {e}") from e
    return None


# ── Public API ────────────────────────────────────────────────────────────────

def generate_brief(
    category: DesignCategory,
    difficulty: Difficulty,
    client_type: ClientType,
    industry: Optional[str] = None,
    reference_image: Optional[Union[bytes, str]] = None,
    client=None,
) -> Brief:
    """
    Generate one brief.

    Args:
        category:        Design category; REMIX requires `reference_image`
        difficulty:      beginner | professional
        client_type:     local (Arabic copy) | foreign (English copy)
        industry:        Concrete niche, or None / "random" to let Gemini pick
        reference_image: Raw bytes, base64 or data URL of the style reference
        client:          A genai.Client (or compatible fake); created on demand

    Raises:
        GenerationError on transport errors or payloads that fail the schema.
    """
    image_bytes = load_image_bytes(reference_image) if reference_image else None
    if category.is_remix and not image_bytes:
        raise UserInputError("Style remix needs a reference image")

    request = BriefRequest(
        category=category,
        difficulty=difficulty,
        client_type=client_type,
        industry=industry,
        reference_image=image_bytes,
    )

    mode = "remix" if request.is_remix else (request.niche or "random niche")
    console.print(f"\n[bold cyan]→ Gemini is writing a {category.value} brief ({mode})...[/bold cyan]")

    try:
        client = client or get_client()
        contents = request.contents()
        config = request.config()
    except GraphicoError:
        raise
    except Exception as e:
        raise GenerationError(f"Could not prepare the Gemini request: {e}") from e

    content = parse_brief_payload(_call_gemini(client, contents, config))

    return Brief(
        **content.model_dump(),
        id=str(uuid.uuid4()),
        client_type=client_type,
        reference_image=to_base64(image_bytes) if image_bytes else None,
    )
