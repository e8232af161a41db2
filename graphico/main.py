"""
Graphico Brief — terminal wizard

Usage:
  python -m graphico.main
  python -m graphico.main --market foreign --difficulty professional
  python -m graphico.main --store data/alice.json --email alice@example.com
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.rule import Rule
from rich.table import Table

from .assets import asset_url, brief_summary_text, download_asset, stock_search_url
from .catalog import RANDOM_INDUSTRY
from .controller import EDITABLE_FIELDS, ChallengeController, View, WizardStep
from .errors import UserInputError
from .models import Brief, ClientType, DesignCategory, Difficulty, Project, ProjectStatus
from .settings import ASSET_DIR, GEMINI_API_KEY, STORE_FILE
from .storage import JsonFileStore, StorageGateway

console = Console()

STATUS_STYLES = {
    ProjectStatus.ACTIVE: "yellow",
    ProjectStatus.COMPLETED: "green",
    ProjectStatus.EXPIRED: "red",
}


# ── CLI ───────────────────────────────────────────────────────────────────────

def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Graphico Brief — design challenges written by an AI art director"
    )
    parser.add_argument(
        "--store",
        default=str(STORE_FILE),
        help="JSON file holding users, session and projects",
    )
    parser.add_argument(
        "--market",
        choices=[c.value for c in ClientType],
        default=ClientType.LOCAL.value,
        help="local = Arabic brief for an Arab client; foreign = English brief",
    )
    parser.add_argument(
        "--difficulty",
        choices=[d.value for d in Difficulty],
        default=Difficulty.BEGINNER.value,
    )
    parser.add_argument("--email", default=None, help="Log in as this email on start")
    parser.add_argument("--name", default=None, help="Display name used when registering")
    return parser.parse_args()


# ── Display helpers ───────────────────────────────────────────────────────────

def _bullets(items: List[str]) -> str:
    return "\n".join(f"  • {item}" for item in items) or "  —"


def display_brief(brief: Brief, category: Optional[DesignCategory] = None) -> None:
    colors = "  ".join(brief.suggested_colors)
    body = (
        f"[bold]Client:[/bold] {brief.company_name}  [dim]({brief.industry})[/dim]\n"
        f"[bold]About:[/bold] {brief.about_company}\n"
        f"[bold]Audience:[/bold] {brief.target_audience}\n"
        f"[bold]Goal:[/bold] {brief.project_goal}\n\n"
        f"[bold]Story:[/bold] {brief.content_summary}\n\n"
        f"[bold]Deliverables:[/bold]\n{_bullets(brief.required_deliverables)}\n"
        f"[bold]Copy:[/bold]\n{_bullets(brief.copywriting)}\n"
        f"[bold]Style:[/bold] {brief.style_preferences}\n"
        f"[bold]Colors:[/bold] {colors}\n"
        f"[bold]Contact:[/bold] {' | '.join(brief.contact_details)}\n"
        f"[bold]Deadline:[/bold] {brief.deadline_hours}h\n\n"
        f"[bold]Asset:[/bold] {asset_url(brief, category)}\n"
        f"[bold]Stock search:[/bold] {stock_search_url(brief)}"
    )
    console.print(
        Panel(
            body,
            title=f"[bold]{brief.project_name}[/bold]",
            subtitle=brief.client_type.label,
            border_style="magenta",
        )
    )


def _format_remaining(seconds: float) -> str:
    hours, rem = divmod(int(seconds), 3600)
    return f"{hours}h {rem // 60:02d}m"


def display_dashboard(controller: ChallengeController) -> List[Project]:
    projects = controller.dashboard()
    user = controller.user
    console.print(Rule(f"[bold]{user.name}[/bold]  [dim]{user.email} · {user.level} · {user.xp} XP[/dim]"))

    if not projects:
        console.print("  [dim]No projects yet. Generate a brief and accept it.[/dim]")
        return projects

    table = Table(show_lines=False)
    table.add_column("#", justify="right")
    table.add_column("Project")
    table.add_column("Client")
    table.add_column("Status")
    table.add_column("Time left / score", justify="right")

    for i, project in enumerate(projects, 1):
        status = project.effective_status()
        style = STATUS_STYLES[status]
        if status is ProjectStatus.ACTIVE:
            detail = _format_remaining(project.remaining())
        elif project.feedback:
            detail = f"{project.feedback.score}/10"
        else:
            detail = "—"
        table.add_row(
            str(i),
            project.brief.project_name,
            project.brief.company_name,
            f"[{style}]{status.value}[/{style}]",
            detail,
        )
    console.print(table)
    return projects


def display_feedback(project: Project) -> None:
    fb = project.feedback
    if fb is None:
        return
    color = "green" if fb.is_success else "red"
    console.print(
        Panel(
            f"[bold]Score:[/bold] [{color}]{fb.score}/10[/{color}]\n\n"
            f"[bold]Strengths:[/bold]\n{_bullets(fb.strengths)}\n"
            f"[bold]Weaknesses:[/bold]\n{_bullets(fb.weaknesses)}\n\n"
            f"[bold]Advice:[/bold] {fb.advice}",
            title=f"[bold]Mentor feedback — {project.brief.project_name}[/bold]",
            border_style=color,
        )
    )


# ── Wizard steps ──────────────────────────────────────────────────────────────

def _pick(title: str, options: List[str]) -> Optional[int]:
    """Numbered menu. Returns the 0-based choice, or None for back."""
    console.print(f"\n[bold]{title}[/bold]")
    for i, option in enumerate(options, 1):
        console.print(f"  [cyan]{i}[/cyan]. {option}")
    console.print("  [cyan]b[/cyan]. back")
    answer = Prompt.ask("→", choices=[str(i) for i in range(1, len(options) + 1)] + ["b"])
    return None if answer == "b" else int(answer) - 1


def step_category(controller: ChallengeController) -> bool:
    categories = list(DesignCategory)
    idx = _pick(
        "Choose a design category",
        [f"{c.label}  [dim]({c.value})[/dim]" for c in categories],
    )
    if idx is None:
        return False
    controller.select_category(categories[idx])
    return True


def step_industry(controller: ChallengeController) -> None:
    industries = controller.industries()
    idx = _pick(
        f"Pick a niche for {controller.selected_category.value}",
        industries + ["Random niche — let the art director choose"],
    )
    if idx is None:
        controller.back_to_category()
        return
    industry = industries[idx] if idx < len(industries) else RANDOM_INDUSTRY
    controller.generate(industry)


def step_upload_style(controller: ChallengeController) -> None:
    path = Prompt.ask("\nPath of the style reference image (empty = back)", default="").strip()
    if not path:
        controller.back_to_category()
        return
    try:
        controller.attach_remix_image(Path(path).expanduser())
    except (OSError, UserInputError) as e:
        controller.clear_remix_image()
        console.print(f"  [red]✗ {e}[/red]")
        return
    controller.start_remix()


def step_result(controller: ChallengeController) -> None:
    brief = controller.current_brief
    display_brief(brief, controller.selected_category)

    if controller.view_only:
        Prompt.ask("[dim]Enter to go back[/dim]", default="")
        controller.back_to_start()
        return

    action = Prompt.ask(
        "[a]ccept · [r]egenerate · [e]dit · [c]opy summary · [d]ownload asset · [b]ack to start",
        choices=["a", "r", "e", "c", "d", "b"],
        default="a",
    )
    category = controller.selected_category
    if action == "r":
        controller.regenerate()
    elif action == "b":
        controller.back_to_start()
    elif action == "e":
        edit_prompt(controller)
    elif action == "c":
        console.print(Rule("[dim]summary[/dim]"))
        console.print(brief_summary_text(brief, category), markup=False, highlight=False)
        console.print(Rule())
    elif action == "d":
        saved = download_asset(brief, category, ASSET_DIR)
        if saved:
            console.print(f"  [green]✓ Saved {saved}[/green]")
        else:
            console.print(f"  [yellow]Open:[/yellow] {asset_url(brief, category)}", highlight=False)
    elif controller.accept() is None and controller.auth_required:
        console.print("  [yellow]Log in to accept this challenge.[/yellow]")
        if login_prompt(controller):
            controller.accept()
        else:
            controller.dismiss_auth()


def edit_prompt(controller: ChallengeController) -> None:
    fields = list(EDITABLE_FIELDS)
    idx = _pick("Edit which field?", [EDITABLE_FIELDS[f] for f in fields])
    if idx is None:
        return
    field = fields[idx]
    hint = "  [dim](separate items with |)[/dim]" if isinstance(getattr(controller.current_brief, field), list) else ""
    text = Prompt.ask(f"New {EDITABLE_FIELDS[field].lower()}{hint}").strip()
    if not text:
        return
    try:
        controller.edit_brief_text(field, text)
    except UserInputError as e:
        console.print(f"  [red]✗ {e}[/red]")


def login_prompt(controller: ChallengeController) -> bool:
    email = Prompt.ask("Email").strip()
    if not email:
        return False
    name = Prompt.ask("Name", default="").strip() or None
    user = controller.login(name, email)
    console.print(f"  [green]✓ Welcome, {user.name}[/green]")
    return True


def dashboard_loop(controller: ChallengeController) -> None:
    while controller.view is View.DASHBOARD:
        projects = display_dashboard(controller)
        action = Prompt.ask(
            "\n[s]ubmit · [v]iew brief · [f]eedback · [h]ome · [l]ogout",
            choices=["s", "v", "f", "h", "l"],
            default="h",
        )
        if action == "h":
            controller.show_home()
        elif action == "l":
            controller.logout()
            console.print("  [dim]Logged out.[/dim]")
        elif projects:
            num = Prompt.ask("Project #", choices=[str(i) for i in range(1, len(projects) + 1)])
            project = projects[int(num) - 1]
            if action == "v":
                controller.view_brief(project.id)
                step_result(controller)
            elif action == "f":
                display_feedback(project)
            else:
                path = Prompt.ask("Path of your design").strip()
                try:
                    display_feedback(controller.submit(project.id, Path(path).expanduser()))
                except (OSError, UserInputError) as e:
                    console.print(f"  [red]✗ {e}[/red]")


def run(controller: ChallengeController) -> None:
    while True:
        if controller.view is View.DASHBOARD:
            dashboard_loop(controller)
            continue

        if controller.error:
            console.print(f"  [red]✗ {controller.error}[/red]")
            controller.error = None

        step = controller.step
        if step is WizardStep.CATEGORY:
            if controller.user and Confirm.ask("\nOpen your dashboard?", default=False):
                controller.show_dashboard()
                continue
            if not step_category(controller):
                break
        elif step is WizardStep.INDUSTRY:
            step_industry(controller)
        elif step is WizardStep.UPLOAD_STYLE:
            step_upload_style(controller)
        else:
            step_result(controller)


def _check_env() -> None:
    if not GEMINI_API_KEY:
        console.print("[bold red]Error:[/bold red] GEMINI_API_KEY not set.")
        console.print("Create a .env file from .env.example and add your key.")
        sys.exit(1)


def main() -> None:
    _check_env()
    args = parse_args()

    controller = ChallengeController(StorageGateway(JsonFileStore(Path(args.store))))
    controller.set_client_type(ClientType(args.market))
    controller.set_difficulty(Difficulty(args.difficulty))
    if args.email:
        controller.login(args.name, args.email)

    console.print(Rule("[bold magenta]Graphico Brief[/bold magenta]"))
    who = controller.user.email if controller.user else "guest"
    console.print(
        f"  Market: [bold]{controller.client_type.label}[/bold]  |  "
        f"Level: [bold]{controller.difficulty.label}[/bold]  |  "
        f"User: [bold]{who}[/bold]"
    )

    try:
        run(controller)
    except (KeyboardInterrupt, EOFError):
        console.print()
    console.print("[dim]Bye.[/dim]")


if __name__ == "__main__":
    main()
