"""
controller.py — The challenge wizard and project lifecycle.

Wizard steps:

    category ──select──▶ industry ──generate──▶ (in flight) ──▶ result
        │                   ▲                         │fail
        │                   └─────────────────────────┘
        └──select remix──▶ upload-style ──start_remix──▶ (in flight) ──▶ result

    result ──regenerate──▶ (in flight, same parameters) ──▶ result
    result ──back_to_start──▶ category
    result ──accept──▶ category + dashboard view   (or the auth overlay when logged out)

Projects: active ──submit──▶ completed
          active ──deadline passes──▶ expired

Only one generation is in flight at a time. Every request carries the
epoch it was issued under; navigating away bumps the epoch, so a late
response for an abandoned request is discarded instead of applied.

Front-ends drive generation either with the blocking generate()/regenerate()
helpers or with begin_*() followed by `await arun_generation(ticket)`.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import re
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Union

from pydantic import ValidationError

from . import accounts
from .briefer import generate_brief
from .catalog import DEFAULT_CATALOG, IndustryCatalog, is_random_industry
from .errors import GraphicoError, UserInputError
from .evaluator import evaluate_submission
from .images import load_image_bytes, to_base64
from .models import (
    Brief, ClientType, DesignCategory, Difficulty, Feedback,
    Project, ProjectStatus, User,
)
from .storage import StorageGateway

logger = logging.getLogger(__name__)


class WizardStep(str, Enum):
    CATEGORY = "category"
    INDUSTRY = "industry"
    UPLOAD_STYLE = "upload-style"
    RESULT = "result"


class View(str, Enum):
    HOME = "home"
    DASHBOARD = "dashboard"


GENERATION_ERROR_MESSAGES = {
    ClientType.LOCAL: "حدث خطأ أثناء توليد البرييف. يرجى المحاولة مرة أخرى.",
    ClientType.FOREIGN: "Something went wrong while generating the brief. Please try again.",
}

# Fields fixed when the brief was generated
_STAMPED_FIELDS = {"id", "client_type", "reference_image"}

_FINAL_STATUSES = {ProjectStatus.COMPLETED, ProjectStatus.EXPIRED}

# Brief fields open to retouching before acceptance, with their labels
EDITABLE_FIELDS = {
    "project_name": "Project name",
    "company_name": "Client",
    "target_audience": "Audience",
    "project_goal": "Goal",
    "content_summary": "Story",
    "required_deliverables": "Deliverables",
    "copywriting": "Copy",
    "style_preferences": "Style",
    "suggested_colors": "Colors",
    "deadline_hours": "Deadline (hours)",
}
_LIST_FIELDS = {"required_deliverables", "copywriting", "suggested_colors"}

BriefGenerator = Callable[..., Brief]
SubmissionEvaluator = Callable[[Brief, Union[bytes, str]], Feedback]


@dataclass(frozen=True)
class GenerationTicket:
    """One issued generation request."""
    epoch: int
    category: DesignCategory
    difficulty: Difficulty
    client_type: ClientType
    industry: Optional[str]
    reference_image: Optional[bytes]
    return_step: WizardStep

    def generator_kwargs(self) -> dict:
        return {
            "category": self.category,
            "difficulty": self.difficulty,
            "client_type": self.client_type,
            "industry": self.industry,
            "reference_image": self.reference_image,
        }


class ChallengeController:
    """
    Usage:
        controller = ChallengeController(StorageGateway(JsonFileStore(STORE_FILE)))
        controller.login("Sara", "a@x.com")
        controller.set_client_type(ClientType.LOCAL)
        controller.select_category(DesignCategory.YOUTUBE)
        brief = controller.generate("Gaming (ألعاب فيديو)")
        project = controller.accept()
    """

    def __init__(
        self,
        gateway: StorageGateway,
        catalog: IndustryCatalog = DEFAULT_CATALOG,
        generator: Optional[BriefGenerator] = None,
        evaluator: Optional[SubmissionEvaluator] = None,
        clock: Callable[[], float] = time.time,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ) -> None:
        self.gateway = gateway
        self.catalog = catalog
        self._generator = generator or generate_brief
        self._evaluator = evaluator or evaluate_submission
        self._clock = clock
        self._new_id = id_factory

        # Session
        self.user: Optional[User] = gateway.get_session()
        self.projects: List[Project] = gateway.get_projects_for(self.user.email) if self.user else []
        self.view = View.HOME
        self.auth_required = False

        # Wizard
        self.step = WizardStep.CATEGORY
        self.difficulty = Difficulty.BEGINNER
        self.client_type = ClientType.LOCAL
        self.selected_category: Optional[DesignCategory] = None
        self.selected_industry = ""
        self.remix_image: Optional[bytes] = None
        self.current_brief: Optional[Brief] = None
        self.view_only = False
        self.is_loading = False
        self.error: Optional[str] = None
        self._epoch = 0

    # ── Wizard settings ───────────────────────────────────────────────────────

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def can_accept(self) -> bool:
        return self.current_brief is not None and not self.is_loading and not self.view_only

    def set_difficulty(self, difficulty: Difficulty) -> None:
        self.difficulty = difficulty

    def set_client_type(self, client_type: ClientType) -> None:
        self.client_type = client_type

    def industries(self) -> List[str]:
        return self.catalog.industries_for(self.selected_category)

    def _abandon_in_flight(self) -> None:
        if self.is_loading:
            logger.debug(f"Abandoning in-flight generation (epoch {self._epoch})")
        self._epoch += 1
        self.is_loading = False

    def _reset_wizard(self) -> None:
        self._abandon_in_flight()
        self.current_brief = None
        self.selected_category = None
        self.selected_industry = ""
        self.remix_image = None
        self.view_only = False
        self.error = None
        self.step = WizardStep.CATEGORY

    # ── Wizard transitions ────────────────────────────────────────────────────

    def select_category(self, category: DesignCategory) -> WizardStep:
        self._abandon_in_flight()
        self.selected_category = category
        self.step = WizardStep.UPLOAD_STYLE if category.is_remix else WizardStep.INDUSTRY
        return self.step

    def back_to_category(self) -> None:
        """The back arrow on the industry / upload-style steps."""
        self._abandon_in_flight()
        self.step = WizardStep.CATEGORY

    def back_to_start(self) -> None:
        self._reset_wizard()

    def attach_remix_image(self, image: Union[bytes, str]) -> None:
        data = load_image_bytes(image)
        self.remix_image = data or None

    def clear_remix_image(self) -> None:
        self.remix_image = None

    def begin_generation(self, industry: Optional[str] = None) -> Optional[GenerationTicket]:
        """
        Issue a generation request for the selected category.

        Returns None (and changes nothing) when no category is selected, a
        request is already in flight, or a remix has no image attached.
        """
        category = self.selected_category
        if category is None or self.is_loading:
            return None
        if category.is_remix and not self.remix_image:
            return None

        if industry:
            self.selected_industry = industry
        self.error = None
        self.is_loading = True
        self._epoch += 1

        if category.is_remix:
            return GenerationTicket(
                epoch=self._epoch,
                category=category,
                difficulty=self.difficulty,
                client_type=self.client_type,
                industry=None,
                reference_image=self.remix_image,
                return_step=WizardStep.UPLOAD_STYLE,
            )
        return GenerationTicket(
            epoch=self._epoch,
            category=category,
            difficulty=self.difficulty,
            client_type=self.client_type,
            industry=None if is_random_industry(industry) else industry,
            reference_image=None,
            return_step=WizardStep.INDUSTRY,
        )

    def begin_remix(self) -> Optional[GenerationTicket]:
        """No-op without an attached reference image."""
        if self.selected_category is None or not self.selected_category.is_remix or not self.remix_image:
            return None
        return self.begin_generation()

    def begin_regenerate(self) -> Optional[GenerationTicket]:
        if self.step is not WizardStep.RESULT or self.selected_category is None:
            return None
        return self.begin_generation(self.selected_industry or None)

    def complete_generation(self, ticket: GenerationTicket, brief: Brief) -> bool:
        """Apply a finished generation. Returns False if the ticket is stale."""
        if ticket.epoch != self._epoch:
            logger.info(f"Discarding stale brief {brief.id} (epoch {ticket.epoch} != {self._epoch})")
            return False
        self.current_brief = brief
        self.view_only = False
        self.is_loading = False
        self.step = WizardStep.RESULT
        return True

    def fail_generation(self, ticket: GenerationTicket, error: Exception) -> bool:
        """Revert one step with a localized message. Returns False if the ticket is stale."""
        if ticket.epoch != self._epoch:
            logger.info(f"Ignoring failure of stale generation (epoch {ticket.epoch}): {error}")
            return False
        logger.error(f"Error generating brief: {error}")
        self.error = GENERATION_ERROR_MESSAGES[ticket.client_type]
        self.is_loading = False
        self.step = ticket.return_step
        return True

    def run_generation(self, ticket: GenerationTicket) -> Optional[Brief]:
        """Blocking: call the generator and apply the outcome."""
        try:
            brief = self._generator(**ticket.generator_kwargs())
        except GraphicoError as e:
            self.fail_generation(ticket, e)
            return None
        except Exception as e:
            logger.exception("Unexpected error from the brief generator")
            self.fail_generation(ticket, e)
            return None
        return brief if self.complete_generation(ticket, brief) else None

    async def arun_generation(self, ticket: GenerationTicket) -> Optional[Brief]:
        """Run the blocking generator in the default executor and apply the outcome."""
        loop = asyncio.get_running_loop()
        try:
            brief = await loop.run_in_executor(
                None, functools.partial(self._generator, **ticket.generator_kwargs())
            )
        except GraphicoError as e:
            self.fail_generation(ticket, e)
            return None
        except Exception as e:
            logger.exception("Unexpected error from the brief generator")
            self.fail_generation(ticket, e)
            return None
        return brief if self.complete_generation(ticket, brief) else None

    def generate(self, industry: Optional[str] = None) -> Optional[Brief]:
        ticket = self.begin_generation(industry)
        return self.run_generation(ticket) if ticket else None

    def start_remix(self) -> Optional[Brief]:
        ticket = self.begin_remix()
        return self.run_generation(ticket) if ticket else None

    def regenerate(self) -> Optional[Brief]:
        ticket = self.begin_regenerate()
        return self.run_generation(ticket) if ticket else None

    async def agenerate(self, industry: Optional[str] = None) -> Optional[Brief]:
        ticket = self.begin_generation(industry)
        return await self.arun_generation(ticket) if ticket else None

    def edit_brief(self, **changes) -> Brief:
        """Cosmetic edits to the displayed brief before it is accepted. Keeps the same id."""
        if self.current_brief is None or self.step is not WizardStep.RESULT:
            raise UserInputError("There is no brief to edit")
        if self.is_loading or self.view_only:
            raise UserInputError("This brief cannot be edited right now")
        locked = _STAMPED_FIELDS & set(changes)
        if locked:
            raise UserInputError(f"Fields cannot be edited: {', '.join(sorted(locked))}")
        try:
            self.current_brief = Brief.model_validate({**self.current_brief.model_dump(), **changes})
        except ValidationError as e:
            bad = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
            raise UserInputError(f"Invalid value for {', '.join(bad)}") from e
        return self.current_brief

    def edit_brief_text(self, field: str, text: str) -> Brief:
        """
        Edit one field from typed text, as the front-ends collect it.

        List fields take one item per line, or items separated by `|`.
        """
        if field not in EDITABLE_FIELDS:
            raise UserInputError(f"Field cannot be edited: {field}")
        text = text.strip()
        if not text:
            raise UserInputError("The new value is empty")
        if field in _LIST_FIELDS:
            value = [item.strip() for item in re.split(r"[|\n]", text) if item.strip()]
        else:
            value = text
        return self.edit_brief(**{field: value})

    def accept(self, brief: Optional[Brief] = None) -> Optional[Project]:
        """
        Turn the brief into an active project for the logged-in user.

        Logged out: opens the auth overlay and returns None.
        """
        brief = brief or self.current_brief
        if brief is None or self.is_loading or self.view_only:
            return None
        if self.user is None:
            self.auth_required = True
            return None
        if any(p.brief.id == brief.id for p in self.projects):
            logger.warning(f"Brief {brief.id} is already a project; ignoring accept")
            return None

        project = Project(
            id=self._new_id(),
            brief=brief,
            start_time=self._clock(),
            status=ProjectStatus.ACTIVE,
        )
        self.projects = [project, *self.projects]
        self._persist()

        self.view = View.DASHBOARD
        self._reset_wizard()
        logger.info(f"Project {project.id} accepted by {self.user.email}")
        return project

    # ── Session ───────────────────────────────────────────────────────────────

    def login(self, name: Optional[str], email: str) -> User:
        self.user = accounts.login_or_register(self.gateway, name, email)
        self.projects = self.gateway.get_projects_for(self.user.email)
        self.auth_required = False
        return self.user

    def logout(self) -> None:
        accounts.logout(self.gateway)
        self.user = None
        self.projects = []
        self.auth_required = False
        self.view = View.HOME
        self._reset_wizard()

    def dismiss_auth(self) -> None:
        self.auth_required = False

    def show_home(self) -> None:
        self.view = View.HOME

    def show_dashboard(self) -> bool:
        if self.user is None:
            self.auth_required = True
            return False
        self.view = View.DASHBOARD
        return True

    # ── Projects ──────────────────────────────────────────────────────────────

    def _persist(self) -> None:
        if self.user is not None:
            self.gateway.save_projects_for(self.user.email, self.projects)

    def find_project(self, project_id: str) -> Project:
        for project in self.projects:
            if project.id == project_id:
                return project
        raise UserInputError(f"Unknown project: {project_id}")

    def update_project(self, project_id: str, **updates) -> Project:
        """Replace fields on one project, then persist the full list."""
        current = self.find_project(project_id)
        new_status = updates.get("status", current.status)
        if current.status in _FINAL_STATUSES and new_status != current.status:
            raise UserInputError(
                f"Project {project_id} is {current.status.value}; its status can no longer change"
            )
        updated = Project.model_validate({**current.model_dump(), **updates})
        self.projects = [updated if p.id == project_id else p for p in self.projects]
        self._persist()
        return updated

    def expire_overdue(self, now: Optional[float] = None) -> List[Project]:
        """Stamp overdue active projects as expired. Returns the ones that changed."""
        now = self._clock() if now is None else now
        expired: List[Project] = []
        refreshed: List[Project] = []
        for project in self.projects:
            if project.status is ProjectStatus.ACTIVE and project.is_overdue(now):
                project = project.model_copy(update={"status": ProjectStatus.EXPIRED})
                expired.append(project)
            refreshed.append(project)
        if expired:
            self.projects = refreshed
            self._persist()
        return expired

    def dashboard(self, now: Optional[float] = None) -> List[Project]:
        self.expire_overdue(now)
        return list(self.projects)

    def view_brief(self, project_id: str) -> Brief:
        """Reopen an accepted project's brief on the result step (read-only)."""
        project = self.find_project(project_id)
        self._abandon_in_flight()
        self.current_brief = project.brief
        self.selected_category = None
        self.view_only = True
        self.error = None
        self.view = View.HOME
        self.step = WizardStep.RESULT
        return project.brief

    def _check_submittable(self, project_id: str) -> Project:
        project = self.find_project(project_id)
        status = project.effective_status(self._clock())
        if status is not ProjectStatus.ACTIVE:
            if status is ProjectStatus.EXPIRED and project.status is ProjectStatus.ACTIVE:
                self.expire_overdue()
            raise UserInputError(f"Project {project_id} is {status.value}; submissions are closed")
        return project

    def _complete(self, project_id: str, image: bytes, feedback: Feedback) -> Project:
        return self.update_project(
            project_id,
            status=ProjectStatus.COMPLETED,
            feedback=feedback,
            user_image=to_base64(image),
        )

    def submit(self, project_id: str, image: Union[bytes, str]) -> Project:
        """Evaluate a submission and complete the project. Evaluation itself never fails."""
        project = self._check_submittable(project_id)
        data = load_image_bytes(image)
        feedback = self._evaluator(project.brief, data)
        return self._complete(project_id, data, feedback)

    async def asubmit(self, project_id: str, image: Union[bytes, str]) -> Project:
        project = self._check_submittable(project_id)
        data = load_image_bytes(image)
        loop = asyncio.get_running_loop()
        feedback = await loop.run_in_executor(None, self._evaluator, project.brief, data)
        return self._complete(project_id, data, feedback)
