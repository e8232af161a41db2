"""
catalog.py — Industry/niche lists offered for each design category.

The controller receives an IndustryCatalog at construction instead of
reading module-level lists, so tests and front-ends can inject their own.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from .models import DesignCategory

# Picking this option lets Gemini choose the niche itself
RANDOM_INDUSTRY = "random"
RANDOM_ALIASES = {RANDOM_INDUSTRY, "عشوائي", "random niche"}

INDUSTRIES = [
    "مطاعم وكافيهات",
    "تكنولوجيا وبرمجة",
    "عقارات وهندسة",
    "أزياء وموضة",
    "صحة ورياضة",
    "مستحضرات تجميل",
    "سياحة وسفر",
    "خدمات مالية",
    "متجر إلكتروني (E-commerce)",
]

EDUCATION_INDUSTRIES = [
    "دروس تقوية (رياضيات/علوم)",
    "تعليم لغات (إنجليزي/ألماني)",
    "تحفيظ قرآن كريم",
    "تأسيس أطفال (Kindergarten)",
    "دورات برمجة وجرافيك",
    "مدرب لياقة بدنية (Personal Trainer)",
    "تعليم موسيقى ورسم",
    "منصات تعليمية أونلاين",
]

YOUTUBE_INDUSTRIES = [
    "Gaming (ألعاب فيديو)",
    "Vlog (يوميات وسفر)",
    "مراجعات تقنية (Tech Review)",
    "قصص ووثائقيات",
    "طبخ ووصفات",
    "بودكاست ومقابلات",
    "تحليل رياضي وكروي",
    "محتوى تعليمي وتثقيفي",
]

FOOTBALL_INDUSTRIES = [
    "يوم المباراة (Match Day)",
    "بوستر لاعب (Player Poster)",
    "تشكيل الفريق (Lineup)",
    "أخبار الانتقالات (Transfer Market)",
    "إحصائيات وتحليل",
    "خلفيات موبايل (Wallpapers)",
    "بطولة/دوري (Tournament Branding)",
]

COLLAGE_INDUSTRIES = [
    "اقتباسات تحفيزية (Motivational)",
    "أحاديث نبوية وآيات",
    "شعر وأدب",
    "تاريخ وحروب",
    "سريالي (Surreal Art)",
    "مجلة قديمة (Vintage Style)",
    "بوسترات أفلام فنية",
]


def is_random_industry(industry: Optional[str]) -> bool:
    """True when no concrete niche was picked."""
    return not industry or industry.strip().lower() in RANDOM_ALIASES


class IndustryCatalog:
    """Lookup of industry choices keyed by category, with a general fallback list."""

    def __init__(
        self,
        by_category: Optional[Dict[DesignCategory, List[str]]] = None,
        default: Optional[List[str]] = None,
    ) -> None:
        self._by_category = dict(by_category or {})
        self._default = list(default if default is not None else INDUSTRIES)

    def industries_for(self, category: Optional[DesignCategory]) -> List[str]:
        if category is None:
            return []
        return list(self._by_category.get(category, self._default))


DEFAULT_CATALOG = IndustryCatalog(
    by_category={
        DesignCategory.EDUCATION: EDUCATION_INDUSTRIES,
        DesignCategory.YOUTUBE: YOUTUBE_INDUSTRIES,
        DesignCategory.FOOTBALL: FOOTBALL_INDUSTRIES,
        DesignCategory.COLLAGE: COLLAGE_INDUSTRIES,
    },
)
