"""
Graphico — shared test fixtures
===============================
Gemini is replaced by FakeClient: it records every generate_content call
and answers from a queue of canned replies (text, or an exception to raise).

Run: python -m pytest tests -v
"""

import io
import json

import pytest
from PIL import Image

from graphico.models import Brief, ClientType
from graphico.storage import MemoryStore, StorageGateway


BRIEF_PAYLOAD = {
    "project_name": "Level Up Thumbnail",
    "company_name": "PixelCast",
    "industry": "Gaming",
    "about_company": "An Arabic gaming channel with weekly reviews.",
    "target_audience": "Gamers aged 16-30",
    "project_goal": "Raise click-through on the new series",
    "content_summary": "The host beats the final boss in a single run.",
    "required_deliverables": ["YouTube thumbnail 1280x720", "Channel banner"],
    "style_preferences": "High contrast neon with bold outlines",
    "suggested_colors": ["#0F0F1A", "#39FF14", "#FF2E63"],
    "deadline_hours": 48,
    "copywriting": ["FINAL BOSS DOWN", "One run. No deaths."],
    "contact_details": ["pixelcast.example", "@pixelcast"],
    "visual_references": ["neon gaming thumbnail", "boss fight"],
    "provided_asset_description": "Excited gamer holding a controller, isolated on white background, studio lighting, 8k resolution",
}

FEEDBACK_PAYLOAD = {
    "score": 7,
    "strengths": ["Readable headline"],
    "weaknesses": ["Busy background"],
    "advice": "Simplify the backdrop.",
    "is_success": True,
}


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeModels:
    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    def generate_content(self, model, contents, config):
        self.calls.append({"model": model, "contents": contents, "config": config})
        # The last reply repeats once the queue is drained
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return FakeResponse(reply)


class FakeClient:
    def __init__(self, *replies):
        self.models = FakeModels(replies)


@pytest.fixture(autouse=True)
def no_retry_sleep(monkeypatch):
    monkeypatch.setattr("graphico.briefer.time.sleep", lambda seconds: None)


@pytest.fixture
def fake_client():
    """Factory: fake_client(reply, ...) -> FakeClient."""
    return FakeClient


@pytest.fixture
def brief_payload():
    return dict(BRIEF_PAYLOAD)


@pytest.fixture
def brief_json():
    return json.dumps(BRIEF_PAYLOAD)


@pytest.fixture
def feedback_json():
    return json.dumps(FEEDBACK_PAYLOAD)


@pytest.fixture
def make_brief():
    def _make(brief_id="brief-1", client_type=ClientType.LOCAL, **overrides):
        return Brief(**{**BRIEF_PAYLOAD, **overrides}, id=brief_id, client_type=client_type)
    return _make


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def gateway(store):
    return StorageGateway(store)


@pytest.fixture
def png_bytes():
    buf = io.BytesIO()
    Image.new("RGB", (32, 24), (200, 40, 90)).save(buf, format="PNG")
    return buf.getvalue()
