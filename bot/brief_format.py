"""
brief_format.py — Telegram MarkdownV2 text for briefs, feedback and the dashboard.

Every user- or model-supplied string goes through escape_md; only the
bold/italic markers added here stay unescaped.
"""

from __future__ import annotations

import time
from typing import List, Optional

from graphico.assets import asset_url, stock_search_url
from graphico.models import Brief, DesignCategory, Project, ProjectStatus

# Telegram rejects messages longer than this
MAX_MESSAGE_LEN = 4096
MAX_BULLETS = 12
MAX_ITEM_LEN = 200

STATUS_ICONS = {
    ProjectStatus.ACTIVE: "⏳",
    ProjectStatus.COMPLETED: "✅",
    ProjectStatus.EXPIRED: "⌛",
}


def escape_md(text: str) -> str:
    """Escape special chars for Telegram MarkdownV2."""
    special = r"\_*[]()~`>#+-=|{}.!"
    return "".join(f"\\{c}" if c in special else c for c in str(text))


def _clip(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    # Never end on a dangling escape
    return text[:limit - 1].rstrip("\\") + "…"


def _bullets(items: List[str], max_items: int = MAX_BULLETS) -> str:
    shown = [f"• {escape_md(_clip(item, MAX_ITEM_LEN))}" for item in items[:max_items]]
    if len(items) > max_items:
        shown.append(f"_\\+{len(items) - max_items} more_")
    return "\n".join(shown) or "—"


def _fit_lines(body: str, budget: int) -> str:
    """Cut at a line break so no bold/italic/link entity is split."""
    if len(body) <= budget:
        return body
    cut = body.rfind("\n", 0, budget - 2)
    return body[:max(cut, 0)].rstrip() + "\n…"


def format_brief(brief: Brief, category: Optional[DesignCategory] = None) -> str:
    """Brief card shown on the result step. The link line is always kept."""
    lines = [
        f"🎨 *{escape_md(_clip(brief.project_name, 200))}*",
        f"🏢 *{escape_md(_clip(brief.company_name, 200))}* \\| {escape_md(_clip(brief.industry, 200))}",
        f"🌍 {escape_md(brief.client_type.label)}",
        "",
        f"*About:* {escape_md(_clip(brief.about_company, 400))}",
        f"*Audience:* {escape_md(_clip(brief.target_audience, 300))}",
        f"*Goal:* {escape_md(_clip(brief.project_goal, 300))}",
        "",
        f"📖 *Story:*\n{escape_md(_clip(brief.content_summary, 800))}",
        "",
        f"📦 *Deliverables:*\n{_bullets(brief.required_deliverables)}",
        "",
        f"✍️ *Copy:*\n{_bullets(brief.copywriting)}",
        "",
        f"🖌 *Style:* {escape_md(_clip(brief.style_preferences, 400))}",
        f"🎨 *Colors:* {escape_md(_clip('  '.join(brief.suggested_colors), 200))}",
        f"📞 *Contact:* {escape_md(_clip(' | '.join(brief.contact_details), 300))}",
        f"⏱ *Deadline:* {brief.deadline_hours}h",
    ]
    links = (
        f"🖼 [Reference asset]({_link(asset_url(brief, category))}) · "
        f"[Stock search]({_link(stock_search_url(brief))})"
    )
    body = _fit_lines("\n".join(lines), MAX_MESSAGE_LEN - len(links) - 2)
    return f"{body}\n\n{links}"


def _link(url: str) -> str:
    # Inside (...) only ) and \ need escaping
    return url.replace("\\", "\\\\").replace(")", "\\)")


def format_feedback(project: Project) -> str:
    fb = project.feedback
    if fb is None:
        return "_No feedback yet\\._"
    verdict = "✅ Passed" if fb.is_success else "❌ Not yet"
    return "\n".join([
        f"🧑‍🏫 *Mentor feedback — {escape_md(project.brief.project_name)}*",
        f"*Score:* {fb.score}/10  {escape_md(verdict)}",
        "",
        f"💪 *Strengths:*\n{_bullets(fb.strengths)}",
        "",
        f"🔧 *Weaknesses:*\n{_bullets(fb.weaknesses)}",
        "",
        f"💡 *Advice:* {escape_md(_clip(fb.advice, 1500))}",
    ])


def _remaining(project: Project, now: float) -> str:
    hours, rem = divmod(int(project.remaining(now)), 3600)
    return f"{hours}h {rem // 60:02d}m left"


def format_dashboard(projects: List[Project], user_name: str, now: Optional[float] = None) -> str:
    """One line per project, newest first."""
    now = time.time() if now is None else now
    lines = [f"📋 *{escape_md(user_name)}* — {len(projects)} project\\(s\\)", ""]
    if not projects:
        lines.append("_No projects yet\\. Send /start to generate a brief\\._")
    for i, project in enumerate(projects, 1):
        status = project.effective_status(now)
        if status is ProjectStatus.ACTIVE:
            detail = _remaining(project, now)
        elif project.feedback is not None:
            detail = f"{project.feedback.score}/10"
        else:
            detail = status.value
        lines.append(
            f"{i}\\. {STATUS_ICONS[status]} *{escape_md(project.brief.project_name)}* "
            f"· {escape_md(detail)}"
        )
    return "\n".join(lines)
