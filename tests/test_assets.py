"""
Graphico — Asset Link Tests
"""

import urllib.error
from urllib.parse import unquote

from graphico import assets
from graphico.assets import (
    asset_filename, asset_frame, asset_prompt, asset_url,
    brief_summary_text, download_asset, stock_search_url,
)
from graphico.models import DesignCategory


def test_asset_url_is_deterministic_per_brief(make_brief):
    brief = make_brief("abc-123")
    assert asset_url(brief, DesignCategory.LOGO) == asset_url(brief, DesignCategory.LOGO)
    assert asset_url(make_brief("other"), DesignCategory.LOGO) != asset_url(brief, DesignCategory.LOGO)


def test_asset_url_shape(make_brief):
    url = asset_url(make_brief("abc-123"), DesignCategory.YOUTUBE)

    assert url.startswith("https://image.pollinations.ai/prompt/raw%20photo%2C%20")
    assert url.endswith("?model=flux&width=1280&height=720&nologo=true&seed=abc-123")
    assert " " not in url
    assert "professional photography, uncompressed" in unquote(url)


def test_landscape_frames(make_brief):
    brief = make_brief(industry="Bakery")
    for category in (DesignCategory.YOUTUBE, DesignCategory.FOOTBALL, DesignCategory.ADVERTISING, DesignCategory.EDUCATION):
        assert asset_frame(category, brief) == (1280, 720)
    assert asset_frame(DesignCategory.LOGO, brief) == (1024, 1024)
    assert asset_frame(None, brief) == (1024, 1024)


def test_video_industry_forces_landscape(make_brief):
    assert asset_frame(DesignCategory.LOGO, make_brief(industry="YouTube cooking")) == (1280, 720)
    assert asset_frame(None, make_brief(industry="Video production")) == (1280, 720)


def test_asset_prompt_wraps_description(make_brief):
    prompt = asset_prompt(make_brief(provided_asset_description="a red sneaker"))
    assert prompt.startswith("raw photo, a red sneaker, best quality")


def test_stock_search_uses_first_visual_reference(make_brief):
    assert stock_search_url(make_brief()) == "https://unsplash.com/s/photos/neon%20gaming%20thumbnail"
    assert stock_search_url(make_brief(visual_references=[], industry="Tea")) == "https://unsplash.com/s/photos/Tea"


def test_summary_text_lists_key_fields(make_brief):
    text = brief_summary_text(make_brief(), DesignCategory.YOUTUBE)
    assert "Project: Level Up Thumbnail" in text
    assert "Deliverables: YouTube thumbnail 1280x720, Channel banner" in text
    assert "Deadline: 48h" in text


def test_download_failure_returns_none(make_brief, tmp_path, monkeypatch):
    def refuse(*args, **kwargs):
        raise urllib.error.URLError("offline")

    monkeypatch.setattr(assets.urllib.request, "urlopen", refuse)
    assert download_asset(make_brief(), DesignCategory.LOGO, tmp_path) is None
    assert list(tmp_path.iterdir()) == []


def test_download_saves_bytes(make_brief, tmp_path, monkeypatch):
    class Resp:
        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

        def read(self):
            return b"\xff\xd8jpeg"

    monkeypatch.setattr(assets.urllib.request, "urlopen", lambda req, timeout: Resp())
    brief = make_brief("0123456789")
    path = download_asset(brief, DesignCategory.LOGO, tmp_path)

    assert path == tmp_path / asset_filename(brief)
    assert path.name == "Graphico-Asset-01234567.jpg"
    assert path.read_bytes() == b"\xff\xd8jpeg"
