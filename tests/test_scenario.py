"""
Graphico — End-to-end Scenario
==============================
Login, generate a YouTube brief through the real briefer (fake Gemini
client), accept it, submit a design and read the dashboard back from disk.
"""

import functools
import json
import time

from graphico.briefer import generate_brief
from graphico.controller import ChallengeController, View
from graphico.evaluator import evaluate_submission
from graphico.models import ClientType, DesignCategory, ProjectStatus
from graphico.storage import JsonFileStore, StorageGateway, projects_key


def test_youtube_challenge_from_login_to_feedback(tmp_path, fake_client, brief_json, feedback_json, png_bytes):
    brief_client = fake_client(brief_json)
    review_client = fake_client(feedback_json)
    store_path = tmp_path / "local_storage.json"
    gateway = StorageGateway(JsonFileStore(store_path))

    controller = ChallengeController(
        gateway,
        generator=functools.partial(generate_brief, client=brief_client),
        evaluator=functools.partial(evaluate_submission, client=review_client),
    )

    user = controller.login("Sara", "a@x.com")
    assert user.name == "Sara"
    assert user.xp == 0

    controller.set_client_type(ClientType.LOCAL)
    controller.select_category(DesignCategory.YOUTUBE)
    before = time.time()
    brief = controller.generate("Gaming")

    prompt = brief_client.models.calls[0]["contents"][-1].text
    assert "Category: YouTube Thumbnail" in prompt
    assert "Specific Industry/Niche: Gaming" in prompt
    assert "Client Market: Middle East (Arab)" in prompt
    assert brief.client_type is ClientType.LOCAL
    assert brief.id

    project = controller.accept()
    assert project.status is ProjectStatus.ACTIVE
    assert project.brief.id == brief.id
    assert project.id != brief.id
    assert project.start_time >= before
    assert controller.view is View.DASHBOARD

    stored = json.loads(json.loads(store_path.read_text(encoding="utf-8"))[projects_key("a@x.com")])
    assert stored[0]["brief"]["id"] == brief.id
    assert stored[0]["status"] == "active"

    done = controller.submit(project.id, png_bytes)
    assert done.feedback.score == 7

    reopened = ChallengeController(StorageGateway(JsonFileStore(store_path)))
    assert reopened.user.email == "a@x.com"
    assert [p.status for p in reopened.dashboard()] == [ProjectStatus.COMPLETED]
