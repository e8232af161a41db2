"""
evaluator.py — Gemini mentor feedback on a submitted design.

Evaluation must never block a trainee from completing a challenge: any
failure (network, empty reply, schema mismatch, unreadable image) is
replaced with FALLBACK_FEEDBACK.
"""

from __future__ import annotations

import logging
from typing import Union

from google.genai import types
from rich.console import Console

from .briefer import get_client
from .images import load_image_bytes, prepare_image
from .models import Brief, Feedback
from .settings import GEMINI_MODEL

logger = logging.getLogger(__name__)
console = Console()

FALLBACK_FEEDBACK = Feedback(
    score=8,
    strengths=["Good effort", "Nice colors"],
    weaknesses=["AI analysis unavailable right now"],
    advice="Keep practicing!",
    is_success=True,
)

EVALUATION_PROMPT = """\
Act as a Senior Design Mentor. Evaluate this submission based on the brief:
- Project: {project}
- Goal: {goal}
- Context: {context}

Analyze the image. Be constructive, strict but encouraging.
"""


def build_evaluation_prompt(brief: Brief) -> str:
    return EVALUATION_PROMPT.format(
        project=brief.project_name,
        goal=brief.project_goal,
        context=brief.content_summary,
    )


def evaluate_submission(brief: Brief, image: Union[bytes, str], client=None) -> Feedback:
    """Grade `image` against `brief`. Returns FALLBACK_FEEDBACK instead of raising."""
    try:
        data, mime = prepare_image(load_image_bytes(image))
        console.print(f"\n[bold cyan]→ Gemini is reviewing the submission for {brief.project_name}...[/bold cyan]")

        client = client or get_client()
        response = client.models.generate_content(
            model=GEMINI_MODEL,
            contents=[
                types.Part.from_bytes(data=data, mime_type=mime),
                types.Part.from_text(text=build_evaluation_prompt(brief)),
            ],
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=Feedback,
            ),
        )
        if not response.text:
            raise ValueError("Evaluation returned no content")
        return Feedback.model_validate_json(response.text)

    except Exception as e:
        logger.error(f"Error evaluating submission for brief {brief.id}: {e}")
        console.print(f"  [yellow]⚠ Evaluation unavailable, using fallback feedback: {e}[/yellow]")
        return FALLBACK_FEEDBACK
