"""
Graphico — Domain Model Tests
"""

import pytest
from pydantic import ValidationError

from graphico.catalog import DEFAULT_CATALOG, INDUSTRIES, YOUTUBE_INDUSTRIES, IndustryCatalog, is_random_industry
from graphico.models import DesignCategory, Feedback, Project, ProjectStatus


def test_deadline_derivation(make_brief):
    p = Project(id="p1", brief=make_brief(deadline_hours=2), start_time=1000.0)

    assert p.deadline_at == 1000.0 + 7200
    assert p.remaining(1000.0 + 3600) == 3600
    assert p.remaining(1000.0 + 9000) == 0.0
    assert not p.is_overdue(1000.0 + 7199)
    assert p.is_overdue(1000.0 + 7200)


def test_effective_status_reads_overdue_active_as_expired(make_brief):
    p = Project(id="p1", brief=make_brief(deadline_hours=1), start_time=0.0)

    assert p.effective_status(10.0) is ProjectStatus.ACTIVE
    assert p.effective_status(3600.0) is ProjectStatus.EXPIRED
    assert p.status is ProjectStatus.ACTIVE


def test_completed_project_never_expires(make_brief):
    p = Project(id="p1", brief=make_brief(deadline_hours=1), start_time=0.0, status=ProjectStatus.COMPLETED)
    assert p.effective_status(10 ** 9) is ProjectStatus.COMPLETED


def test_brief_is_frozen(make_brief):
    brief = make_brief()
    with pytest.raises(ValidationError):
        brief.project_name = "changed"


def test_feedback_requires_every_field():
    with pytest.raises(ValidationError):
        Feedback.model_validate({"score": 5, "strengths": [], "weaknesses": [], "advice": "x"})


def test_every_category_has_a_label():
    assert all(c.label for c in DesignCategory)
    assert [c for c in DesignCategory if c.is_remix] == [DesignCategory.REMIX]


def test_industry_catalog_lookup():
    assert DEFAULT_CATALOG.industries_for(DesignCategory.YOUTUBE) == YOUTUBE_INDUSTRIES
    assert DEFAULT_CATALOG.industries_for(DesignCategory.LOGO) == INDUSTRIES
    assert DEFAULT_CATALOG.industries_for(None) == []

    custom = IndustryCatalog({DesignCategory.LOGO: ["Bakery"]}, default=["Other"])
    assert custom.industries_for(DesignCategory.LOGO) == ["Bakery"]
    assert custom.industries_for(DesignCategory.PACKAGING) == ["Other"]


@pytest.mark.parametrize("value", [None, "", "random", "Random", " عشوائي "])
def test_random_industry_sentinels(value):
    assert is_random_industry(value)


def test_concrete_industry_is_not_random():
    assert not is_random_industry("Gaming")
