"""
assets.py — Reference image and stock-search links for a brief.

The reference image is not stored anywhere: it is a deterministic
Pollinations URL derived from the brief's asset description, seeded with
the brief id so the same brief always maps to the same picture.
"""

from __future__ import annotations

import logging
import urllib.error
import urllib.parse
import urllib.request
from pathlib import Path
from typing import Optional, Tuple

from .models import Brief, DesignCategory
from .settings import (
    DOWNLOAD_TIMEOUT, IMAGE_BASE_URL, IMAGE_MODEL,
    LANDSCAPE_FRAME, SQUARE_FRAME, STOCK_SEARCH_URL,
)

logger = logging.getLogger(__name__)

LANDSCAPE_CATEGORIES = {
    DesignCategory.YOUTUBE,
    DesignCategory.FOOTBALL,
    DesignCategory.ADVERTISING,
    DesignCategory.EDUCATION,
}

# No 4k/8k qualifiers: they make the generator return huge, compressed files
QUALITY_PREFIX = "raw photo"
QUALITY_SUFFIX = "best quality, highly detailed, sharp focus, professional photography, uncompressed"


def asset_prompt(brief: Brief) -> str:
    return f"{QUALITY_PREFIX}, {brief.provided_asset_description}, {QUALITY_SUFFIX}"


def is_landscape(category: Optional[DesignCategory], brief: Brief) -> bool:
    industry = brief.industry.lower()
    return category in LANDSCAPE_CATEGORIES or "youtube" in industry or "video" in industry


def asset_frame(category: Optional[DesignCategory], brief: Brief) -> Tuple[int, int]:
    """(width, height): 1280×720 for video/sport/ad/education work, 1024×1024 otherwise."""
    return LANDSCAPE_FRAME if is_landscape(category, brief) else SQUARE_FRAME


def asset_url(brief: Brief, category: Optional[DesignCategory] = None) -> str:
    width, height = asset_frame(category, brief)
    prompt = urllib.parse.quote(asset_prompt(brief), safe="")
    return (
        f"{IMAGE_BASE_URL}{prompt}"
        f"?model={IMAGE_MODEL}&width={width}&height={height}&nologo=true&seed={brief.id}"
    )


def stock_search_url(brief: Brief) -> str:
    terms = brief.visual_references[0] if brief.visual_references else brief.industry
    return f"{STOCK_SEARCH_URL}{urllib.parse.quote(terms, safe='')}"


def asset_filename(brief: Brief) -> str:
    return f"Graphico-Asset-{brief.id[:8]}.jpg"


def download_asset(
    brief: Brief,
    category: Optional[DesignCategory],
    dest_dir: Path,
) -> Optional[Path]:
    """
    Fetch the reference image and save it under dest_dir.

    Returns the saved path, or None when the fetch fails; callers then
    open asset_url() directly instead.
    """
    url = asset_url(brief, category)
    dest = Path(dest_dir) / asset_filename(brief)
    try:
        req = urllib.request.Request(url, headers={"User-Agent": "GraphicoBrief/1.0"})
        with urllib.request.urlopen(req, timeout=DOWNLOAD_TIMEOUT) as resp:
            data = resp.read()
        if not data:
            raise ValueError("empty response")
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(data)
    except (urllib.error.URLError, OSError, ValueError) as e:
        logger.warning(f"Asset download failed, falling back to the direct link: {e}")
        return None
    logger.info(f"Asset saved: {dest} ({len(data) // 1024} KB)")
    return dest


def brief_summary_text(brief: Brief, category: Optional[DesignCategory] = None) -> str:
    """Plain-text digest for copying into notes or chat."""
    return "\n".join([
        f"Project: {brief.project_name}",
        f"Client: {brief.company_name}",
        f"Industry: {brief.industry}",
        "----------------",
        f"Story: {brief.content_summary}",
        "----------------",
        f"Deliverables: {', '.join(brief.required_deliverables)}",
        f"Copy: {' | '.join(brief.copywriting)}",
        "----------------",
        f"Asset URL: {asset_url(brief, category)}",
        f"Deadline: {brief.deadline_hours}h",
    ])
