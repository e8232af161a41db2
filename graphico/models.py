"""
models.py — Domain model shared by every Graphico module.

Pydantic models double as:
  - the structured-output schemas handed to Gemini (BriefContent, Feedback)
  - the JSON representation written to the local store (User, Project)

Brief and User are frozen: a Brief is stamped once when generated and
only replaced wholesale (same id) by cosmetic edits before acceptance.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ── Enumerations ──────────────────────────────────────────────────────────────

class ClientType(str, Enum):
    LOCAL = "local"
    FOREIGN = "foreign"

    @property
    def label(self) -> str:
        return {"local": "محلي (العرب)", "foreign": "دولي (Global)"}[self.value]


class Difficulty(str, Enum):
    BEGINNER = "beginner"
    PROFESSIONAL = "professional"

    @property
    def label(self) -> str:
        return {"beginner": "مبتدئ", "professional": "محترف"}[self.value]


class DesignCategory(str, Enum):
    LOGO = "Logo Design"
    BRAND_IDENTITY = "Brand Identity"
    UI_UX = "UI/UX Design"
    SOCIAL_MEDIA = "Social Media"
    PACKAGING = "Packaging"
    ILLUSTRATION = "Digital Illustration"
    ADVERTISING = "Advertising Campaign"
    YOUTUBE = "YouTube Thumbnail"
    EDUCATION = "Education / Tutor Promo"
    FOOTBALL = "Football Design"
    COLLAGE = "Collage Art"
    REMIX = "Style Remix"

    @property
    def label(self) -> str:
        return _CATEGORY_LABELS[self]

    @property
    def is_remix(self) -> bool:
        return self is DesignCategory.REMIX


_CATEGORY_LABELS = {
    DesignCategory.LOGO: "تصميم شعار",
    DesignCategory.BRAND_IDENTITY: "هوية بصرية",
    DesignCategory.UI_UX: "واجهة وتجربة مستخدم",
    DesignCategory.SOCIAL_MEDIA: "سوشيال ميديا",
    DesignCategory.PACKAGING: "عبوات وتغليف",
    DesignCategory.ILLUSTRATION: "رسم رقمي",
    DesignCategory.ADVERTISING: "حملة إعلانية",
    DesignCategory.YOUTUBE: "صورة مصغرة يوتيوب",
    DesignCategory.EDUCATION: "دعاية تعليمية/مدرسين",
    DesignCategory.FOOTBALL: "تصاميم كرة قدم",
    DesignCategory.COLLAGE: "فن الكولاج",
    DesignCategory.REMIX: "محاكاة ستايل (Remix)",
}


class ProjectStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    EXPIRED = "expired"


# ── Brief ─────────────────────────────────────────────────────────────────────

class BriefContent(BaseModel):
    """Fields Gemini must fill. Every field is required by the response schema."""

    project_name: str = Field(description="Project name")
    company_name: str = Field(description="Company or channel name")
    industry: str = Field(description="Specific industry")
    about_company: str = Field(description="About the company")
    target_audience: str = Field(description="Target audience description")
    project_goal: str = Field(description="Main goal of the design")
    content_summary: str = Field(
        description="Detailed story/scenario of the content. For YouTube the video plot, for football the match stakes."
    )
    required_deliverables: List[str] = Field(description="List of deliverables")
    style_preferences: str = Field(description="Visual style description based on analysis")
    suggested_colors: List[str] = Field(description="Color palette hex codes, e.g. '#1A2B3C'")
    deadline_hours: int = Field(description="Deadline in hours")
    copywriting: List[str] = Field(description="Headlines or copy text to be placed on the design")
    contact_details: List[str] = Field(description="Mock contact info")
    visual_references: List[str] = Field(description="Keywords for visual research")
    provided_asset_description: str = Field(
        description=(
            "Detailed English description for a high-quality stock photo to be used. "
            "If YouTube/Education/Product, specify 'isolated on white background'."
        )
    )


class Brief(BriefContent):
    """A generated brief, stamped client-side with id, market and remix reference."""

    model_config = ConfigDict(frozen=True)

    id: str
    client_type: ClientType
    reference_image: Optional[str] = None    # base64, remix mode only


# ── Feedback ──────────────────────────────────────────────────────────────────

class Feedback(BaseModel):
    """Mentor evaluation of a submitted design. Also the evaluation response schema."""

    model_config = ConfigDict(frozen=True)

    score: int = Field(description="Score 1-10")
    strengths: List[str] = Field(description="Strengths")
    weaknesses: List[str] = Field(description="Weaknesses")
    advice: str = Field(description="Advice")
    is_success: bool = Field(description="Pass/Fail")


# ── Users & projects ──────────────────────────────────────────────────────────

DEFAULT_USER_NAME = "مصمم جرافيكو"
DEFAULT_LEVEL = "مستوى 1"


class User(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    email: str
    avatar: str = ""
    level: str = DEFAULT_LEVEL
    xp: int = 0


class Project(BaseModel):
    """An accepted challenge. The embedded brief never changes after acceptance."""

    id: str
    brief: Brief
    start_time: float                        # epoch seconds
    status: ProjectStatus = ProjectStatus.ACTIVE
    feedback: Optional[Feedback] = None
    user_image: Optional[str] = None         # base64 of the submitted design

    @property
    def deadline_at(self) -> float:
        return self.start_time + self.brief.deadline_hours * 3600

    def remaining(self, now: Optional[float] = None) -> float:
        """Seconds left before the deadline (never negative)."""
        now = time.time() if now is None else now
        return max(0.0, self.deadline_at - now)

    def is_overdue(self, now: Optional[float] = None) -> bool:
        now = time.time() if now is None else now
        return now >= self.deadline_at

    def effective_status(self, now: Optional[float] = None) -> ProjectStatus:
        """Status as seen at `now`: an active project past its deadline reads as expired."""
        if self.status is ProjectStatus.ACTIVE and self.is_overdue(now):
            return ProjectStatus.EXPIRED
        return self.status
