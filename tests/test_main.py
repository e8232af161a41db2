"""
Graphico — Terminal Wizard Tests
================================
Prompts are answered from a script and console output is recorded.
"""

import pytest
from rich.console import Console

from graphico import main
from graphico.controller import ChallengeController, WizardStep
from graphico.models import DesignCategory


class Answers:
    """Stands in for rich's Prompt: returns scripted answers in order."""

    def __init__(self, *answers):
        self.answers = list(answers)

    def ask(self, *args, **kwargs):
        return self.answers.pop(0)


@pytest.fixture
def console(monkeypatch):
    recorder = Console(record=True, width=2000)
    monkeypatch.setattr(main, "console", recorder)
    return recorder


@pytest.fixture
def controller(gateway, make_brief):
    def generator(**kwargs):
        return make_brief("0123456789", client_type=kwargs["client_type"])

    controller = ChallengeController(gateway, generator=generator)
    controller.select_category(DesignCategory.YOUTUBE)
    controller.generate("Gaming")
    return controller


def _answer(monkeypatch, *answers):
    monkeypatch.setattr(main, "Prompt", Answers(*answers))


def test_failed_download_prints_link_for_the_category_frame(controller, console, monkeypatch):
    monkeypatch.setattr(main, "download_asset", lambda brief, category, dest: None)
    _answer(monkeypatch, "d")

    main.step_result(controller)

    out = console.export_text()
    assert "width=1280&height=720" in out
    assert "width=1024" not in out


def test_copy_summary_prints_plain_text(controller, console, monkeypatch):
    _answer(monkeypatch, "c")

    main.step_result(controller)

    out = console.export_text()
    assert "Project: Level Up Thumbnail" in out
    assert "Deadline: 48h" in out


def test_edit_changes_the_displayed_brief(controller, console, monkeypatch):
    brief_id = controller.current_brief.id
    _answer(monkeypatch, "e", "1", "Boss Rush Thumbnail")

    main.step_result(controller)

    assert controller.current_brief.project_name == "Boss Rush Thumbnail"
    assert controller.current_brief.id == brief_id
    assert controller.step is WizardStep.RESULT


def test_invalid_edit_is_reported(controller, console, monkeypatch):
    deadline_choice = str(list(main.EDITABLE_FIELDS).index("deadline_hours") + 1)
    _answer(monkeypatch, "e", deadline_choice, "soon")

    main.step_result(controller)

    assert controller.current_brief.deadline_hours == 48
    assert "deadline_hours" in console.export_text()


def test_unreadable_remix_path_drops_the_old_image(gateway, console, monkeypatch, png_bytes, tmp_path):
    controller = ChallengeController(gateway)
    controller.select_category(DesignCategory.REMIX)
    controller.attach_remix_image(png_bytes)
    _answer(monkeypatch, str(tmp_path / "missing.png"))

    main.step_upload_style(controller)

    assert controller.remix_image is None
    assert controller.step is WizardStep.UPLOAD_STYLE
