"""
telegram_bot.py — Graphico Brief Telegram Bot

Every chat behaves like one browser: it owns a JSON store under
DATA_DIR/chats/<chat_id>.json holding its users, session and projects.

Conversation flow:
  /start or /new
    → CATEGORY      (inline keyboard + market / difficulty toggles)
    → INDUSTRY      (inline keyboard, random niche, back)
      or UPLOAD_STYLE (style remix: send a reference photo)
    → RESULT        (Accept / Regenerate / Asset / Edit / Summary / New brief)
        Edit → EDIT_FIELD → EDIT_VALUE → RESULT
        Accept while logged out → LOGIN_EMAIL → LOGIN_NAME → DASHBOARD
    → DASHBOARD     (per-project: brief, submit, feedback)
    → SUBMIT        (send the finished design as a photo)

Commands:
  /start     — new brief
  /new       — alias for /start
  /login     — log in or register by email
  /logout    — end the session for this chat
  /dashboard — your projects
  /cancel    — leave the conversation
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, LinkPreviewOptions, Update
from telegram.constants import ChatAction, ParseMode
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ConversationHandler,
    MessageHandler,
    filters,
    ContextTypes,
)

from graphico.assets import asset_url, brief_summary_text, download_asset
from graphico.controller import EDITABLE_FIELDS, ChallengeController, GenerationTicket, WizardStep
from graphico.errors import UserInputError
from graphico.models import ClientType, DesignCategory, Difficulty, ProjectStatus
from graphico.settings import ASSET_DIR, CHAT_STORE_DIR, TELEGRAM_ALLOWED_CHAT_IDS
from graphico.storage import JsonFileStore, StorageGateway

from .brief_format import escape_md, format_brief, format_dashboard, format_feedback

logger = logging.getLogger(__name__)

# ── Conversation states ───────────────────────────────────────────────────────

(
    CATEGORY,
    INDUSTRY,
    UPLOAD_STYLE,
    RESULT,
    LOGIN_EMAIL,
    LOGIN_NAME,
    DASHBOARD,
    SUBMIT,
    EDIT_FIELD,
    EDIT_VALUE,
) = range(10)

STEP_STATES = {
    WizardStep.CATEGORY: CATEGORY,
    WizardStep.INDUSTRY: INDUSTRY,
    WizardStep.UPLOAD_STYLE: UPLOAD_STYLE,
    WizardStep.RESULT: RESULT,
}

# ── Context keys ──────────────────────────────────────────────────────────────

CONTROLLER_KEY = "controller"
PENDING_EMAIL_KEY = "pending_email"
ACCEPT_AFTER_LOGIN_KEY = "accept_after_login"
SUBMIT_PROJECT_KEY = "submit_project"
EDIT_FIELD_KEY = "edit_field"

BACK_BUTTON = InlineKeyboardButton("↩️ رجوع", callback_data="back")


# ── Keyboards ─────────────────────────────────────────────────────────────────

def category_keyboard(controller: ChallengeController) -> InlineKeyboardMarkup:
    categories = list(DesignCategory)
    rows = [
        [
            InlineKeyboardButton(c.label, callback_data=f"cat_{i}")
            for i, c in enumerate(categories[start:start + 2], start)
        ]
        for start in range(0, len(categories), 2)
    ]
    rows.append([
        InlineKeyboardButton(f"🌍 {controller.client_type.label}", callback_data="set_market"),
        InlineKeyboardButton(f"📶 {controller.difficulty.label}", callback_data="set_level"),
    ])
    return InlineKeyboardMarkup(rows)


def industry_keyboard(controller: ChallengeController) -> InlineKeyboardMarkup:
    rows = [
        [InlineKeyboardButton(name, callback_data=f"ind_{i}")]
        for i, name in enumerate(controller.industries())
    ]
    rows.append([InlineKeyboardButton("🎲 عشوائي", callback_data="ind_random")])
    rows.append([BACK_BUTTON])
    return InlineKeyboardMarkup(rows)


RESULT_KEYBOARD = InlineKeyboardMarkup([
    [InlineKeyboardButton("✅ قبول التحدي", callback_data="res_accept")],
    [
        InlineKeyboardButton("🔄 توليد آخر", callback_data="res_regen"),
        InlineKeyboardButton("🖼 الصورة", callback_data="res_asset"),
    ],
    [
        InlineKeyboardButton("✏️ تعديل", callback_data="res_edit"),
        InlineKeyboardButton("📋 ملخص للنسخ", callback_data="res_summary"),
    ],
    [InlineKeyboardButton("🏠 برييف جديد", callback_data="res_restart")],
])


def edit_keyboard() -> InlineKeyboardMarkup:
    fields = list(EDITABLE_FIELDS.items())
    rows = [
        [InlineKeyboardButton(label, callback_data=f"edit_{name}") for name, label in fields[start:start + 2]]
        for start in range(0, len(fields), 2)
    ]
    rows.append([InlineKeyboardButton("↩️ رجوع", callback_data="edit_cancel")])
    return InlineKeyboardMarkup(rows)


VIEW_ONLY_KEYBOARD = InlineKeyboardMarkup([
    [InlineKeyboardButton("📋 لوحة التحكم", callback_data="home_dashboard")],
    [InlineKeyboardButton("🏠 برييف جديد", callback_data="res_restart")],
])


def dashboard_keyboard(controller: ChallengeController) -> InlineKeyboardMarkup:
    rows = []
    for i, project in enumerate(controller.projects, 1):
        row = [InlineKeyboardButton(f"{i}. 📄", callback_data=f"prj_view_{project.id}")]
        if project.feedback is not None:
            row.append(InlineKeyboardButton("🧑‍🏫", callback_data=f"prj_feedback_{project.id}"))
        elif project.effective_status() is ProjectStatus.ACTIVE:
            row.append(InlineKeyboardButton("📤 تسليم", callback_data=f"prj_submit_{project.id}"))
        rows.append(row)
    rows.append([InlineKeyboardButton("🏠 برييف جديد", callback_data="home_new")])
    return InlineKeyboardMarkup(rows)


# ── Helpers ───────────────────────────────────────────────────────────────────

def get_controller(update: Update, context: ContextTypes.DEFAULT_TYPE) -> ChallengeController:
    """One controller per chat, backed by that chat's store file."""
    controller = context.chat_data.get(CONTROLLER_KEY)
    if controller is None:
        store = JsonFileStore(Path(CHAT_STORE_DIR) / f"{update.effective_chat.id}.json")
        controller = ChallengeController(StorageGateway(store))
        context.chat_data[CONTROLLER_KEY] = controller
    return controller


def is_allowed(update: Update) -> bool:
    if not TELEGRAM_ALLOWED_CHAT_IDS:
        return True
    return update.effective_chat is not None and update.effective_chat.id in TELEGRAM_ALLOWED_CHAT_IDS


async def send_typing(update: Update) -> None:
    await update.effective_chat.send_action(ChatAction.TYPING)


async def reply(update: Update, text: str, keyboard: Optional[InlineKeyboardMarkup] = None) -> None:
    """Reply to a message or to the message carrying a pressed button."""
    await update.effective_message.reply_text(
        text,
        parse_mode=ParseMode.MARKDOWN_V2,
        reply_markup=keyboard,
        link_preview_options=LinkPreviewOptions(is_disabled=True),
    )


async def _download_image(update: Update, context: ContextTypes.DEFAULT_TYPE) -> Optional[bytes]:
    """Bytes of the photo or image document in the current message."""
    message = update.message
    if message.photo:
        file = await context.bot.get_file(message.photo[-1].file_id)
    elif message.document:
        file = await context.bot.get_file(message.document.file_id)
    else:
        return None
    return bytes(await file.download_as_bytearray())


async def show_category(update: Update, controller: ChallengeController) -> int:
    await reply(update, "*اختر نوع التصميم* 👇", category_keyboard(controller))
    return CATEGORY


async def show_result(update: Update, controller: ChallengeController) -> int:
    keyboard = VIEW_ONLY_KEYBOARD if controller.view_only else RESULT_KEYBOARD
    await reply(update, format_brief(controller.current_brief, controller.selected_category), keyboard)
    return RESULT


async def show_dashboard(update: Update, controller: ChallengeController) -> int:
    projects = controller.dashboard()
    await reply(update, format_dashboard(projects, controller.user.name), dashboard_keyboard(controller))
    return DASHBOARD


async def ask_email(update: Update) -> int:
    await reply(update, "📧 *سجّل الدخول لقبول التحدي*\nأرسل بريدك الإلكتروني:")
    return LOGIN_EMAIL


async def run_ticket(
    update: Update,
    controller: ChallengeController,
    ticket: Optional[GenerationTicket],
) -> int:
    """Await one generation and show either the brief or the error."""
    if ticket is None:
        await reply(update, "⏳ _جاري التوليد بالفعل\\.\\.\\._")
        return STEP_STATES[controller.step]

    await reply(update, "⏳ *جاري كتابة البرييف\\.\\.\\.*")
    await send_typing(update)
    await controller.arun_generation(ticket)

    if controller.step is WizardStep.RESULT and controller.current_brief is not None:
        return await show_result(update, controller)

    await reply(update, f"❌ {escape_md(controller.error or '')}")
    if controller.step is WizardStep.INDUSTRY:
        await reply(update, "*اختر المجال:*", industry_keyboard(controller))
    elif controller.step is WizardStep.UPLOAD_STYLE:
        controller.clear_remix_image()
        await reply(update, "📸 أرسل صورة التصميم المرجعي مرة أخرى\\.", InlineKeyboardMarkup([[BACK_BUTTON]]))
    return STEP_STATES[controller.step]


# ── Commands ──────────────────────────────────────────────────────────────────

async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    if not is_allowed(update):
        logger.warning(f"Rejected chat {update.effective_chat.id}")
        return ConversationHandler.END
    controller = get_controller(update, context)
    controller.back_to_start()
    controller.show_home()
    greeting = f"👋 أهلاً *{escape_md(controller.user.name)}*\\!" if controller.user else "👋 أهلاً بك في *Graphico Brief*\\!"
    await reply(update, f"{greeting}\n\nمدير فني بالذكاء الاصطناعي يكتب لك تحديات تصميم حقيقية\\.")
    return await show_category(update, controller)


async def cmd_login(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    if not is_allowed(update):
        return ConversationHandler.END
    context.user_data[ACCEPT_AFTER_LOGIN_KEY] = False
    await reply(update, "📧 أرسل بريدك الإلكتروني:")
    return LOGIN_EMAIL


async def cmd_logout(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    controller = get_controller(update, context)
    controller.logout()
    await reply(update, "👋 تم تسجيل الخروج\\. أرسل /start للبدء من جديد\\.")
    return ConversationHandler.END


async def cmd_dashboard(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    if not is_allowed(update):
        return ConversationHandler.END
    controller = get_controller(update, context)
    if not controller.show_dashboard():
        controller.dismiss_auth()
        context.user_data[ACCEPT_AFTER_LOGIN_KEY] = False
        await reply(update, "🔒 سجّل الدخول أولاً\\. أرسل بريدك الإلكتروني:")
        return LOGIN_EMAIL
    return await show_dashboard(update, controller)


async def cmd_cancel(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    get_controller(update, context).back_to_start()
    context.user_data.clear()
    await reply(update, "❌ تم الإلغاء\\. أرسل /start للبدء من جديد\\.")
    return ConversationHandler.END


# ── Wizard steps ──────────────────────────────────────────────────────────────

async def step_category_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    query = update.callback_query
    await query.answer()
    controller = get_controller(update, context)
    data = query.data

    if data == "set_market":
        controller.set_client_type(
            ClientType.FOREIGN if controller.client_type is ClientType.LOCAL else ClientType.LOCAL
        )
        await query.edit_message_reply_markup(reply_markup=category_keyboard(controller))
        return CATEGORY
    if data == "set_level":
        controller.set_difficulty(
            Difficulty.PROFESSIONAL if controller.difficulty is Difficulty.BEGINNER else Difficulty.BEGINNER
        )
        await query.edit_message_reply_markup(reply_markup=category_keyboard(controller))
        return CATEGORY

    category = list(DesignCategory)[int(data.removeprefix("cat_"))]
    step = controller.select_category(category)
    await query.edit_message_text(f"✅ *{escape_md(category.label)}*", parse_mode=ParseMode.MARKDOWN_V2)

    if step is WizardStep.UPLOAD_STYLE:
        await reply(
            update,
            "📸 *Style Remix*\nأرسل صورة تصميم يعجبك، وسنكتب برييف لمنتج مختلف تماماً بنفس الستايل\\.",
            InlineKeyboardMarkup([[BACK_BUTTON]]),
        )
        return UPLOAD_STYLE
    await reply(update, "*اختر المجال:*", industry_keyboard(controller))
    return INDUSTRY


async def step_back(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    query = update.callback_query
    await query.answer()
    controller = get_controller(update, context)
    controller.back_to_category()
    await query.edit_message_reply_markup(reply_markup=None)
    return await show_category(update, controller)


async def step_industry_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    query = update.callback_query
    await query.answer()
    controller = get_controller(update, context)

    key = query.data.removeprefix("ind_")
    industries = controller.industries()
    industry = "random" if key == "random" else industries[int(key)]
    await query.edit_message_text(
        f"✅ {escape_md(industry if key != 'random' else 'عشوائي')}", parse_mode=ParseMode.MARKDOWN_V2
    )
    return await run_ticket(update, controller, controller.begin_generation(industry))


async def step_remix_image(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    controller = get_controller(update, context)
    data = await _download_image(update, context)
    if not data:
        await reply(update, "⚠️ أرسل صورة من فضلك\\.")
        return UPLOAD_STYLE
    try:
        controller.attach_remix_image(data)
    except UserInputError as e:
        controller.clear_remix_image()
        await reply(update, f"⚠️ {escape_md(str(e))}")
        return UPLOAD_STYLE
    return await run_ticket(update, controller, controller.begin_remix())


async def step_result_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    query = update.callback_query
    await query.answer()
    controller = get_controller(update, context)
    action = query.data

    if action == "res_restart":
        controller.back_to_start()
        await query.edit_message_reply_markup(reply_markup=None)
        return await show_category(update, controller)

    if action == "res_regen":
        await query.edit_message_reply_markup(reply_markup=None)
        return await run_ticket(update, controller, controller.begin_regenerate())

    if action == "res_asset":
        brief = controller.current_brief
        await send_typing(update)
        loop = asyncio.get_running_loop()
        path = await loop.run_in_executor(
            None, download_asset, brief, controller.selected_category, ASSET_DIR
        )
        if path is not None:
            with open(path, "rb") as f:
                await update.effective_message.reply_document(document=f, filename=path.name)
        else:
            await reply(update, f"🖼 [افتح الصورة]({asset_url(brief, controller.selected_category)})")
        return RESULT

    if action == "res_summary":
        # Plain text so it copies cleanly
        await update.effective_message.reply_text(
            brief_summary_text(controller.current_brief, controller.selected_category),
            link_preview_options=LinkPreviewOptions(is_disabled=True),
        )
        return RESULT

    if action == "res_edit":
        if not controller.can_accept:
            return RESULT
        await reply(update, "✏️ *أي حقل تريد تعديله؟*", edit_keyboard())
        return EDIT_FIELD

    # res_accept
    project = controller.accept()
    if project is None and controller.auth_required:
        context.user_data[ACCEPT_AFTER_LOGIN_KEY] = True
        return await ask_email(update)
    if project is None:
        return RESULT
    await query.edit_message_reply_markup(reply_markup=None)
    await reply(update, f"🚀 *بدأ التحدي\\!* أمامك {project.brief.deadline_hours} ساعة\\.")
    return await show_dashboard(update, controller)


async def step_home_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    query = update.callback_query
    await query.answer()
    controller = get_controller(update, context)
    await query.edit_message_reply_markup(reply_markup=None)
    if query.data == "home_dashboard" and controller.show_dashboard():
        return await show_dashboard(update, controller)
    controller.back_to_start()
    controller.show_home()
    return await show_category(update, controller)


# ── Editing ───────────────────────────────────────────────────────────────────

async def step_edit_field(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    query = update.callback_query
    await query.answer()
    controller = get_controller(update, context)
    await query.edit_message_reply_markup(reply_markup=None)

    field = query.data.removeprefix("edit_")
    if field not in EDITABLE_FIELDS:
        return await show_result(update, controller)

    context.user_data[EDIT_FIELD_KEY] = field
    hint = "\n_عنصر في كل سطر_" if isinstance(getattr(controller.current_brief, field), list) else ""
    await reply(update, f"✏️ أرسل القيمة الجديدة لـ *{escape_md(EDITABLE_FIELDS[field])}*{hint}")
    return EDIT_VALUE


async def step_edit_value(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    controller = get_controller(update, context)
    field = context.user_data.get(EDIT_FIELD_KEY)
    try:
        controller.edit_brief_text(field, update.message.text)
    except UserInputError as e:
        await reply(update, f"⚠️ {escape_md(str(e))}")
        return EDIT_VALUE if controller.can_accept else STEP_STATES[controller.step]
    context.user_data.pop(EDIT_FIELD_KEY, None)
    return await show_result(update, controller)


# ── Login ─────────────────────────────────────────────────────────────────────

async def step_login_email(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    email = update.message.text.strip()
    if "@" not in email:
        await reply(update, "⚠️ البريد غير صحيح\\. حاول مرة أخرى:")
        return LOGIN_EMAIL
    controller = get_controller(update, context)
    if controller.gateway.find_user_by_email(email) is not None:
        return await _finish_login(update, context, None, email)
    context.user_data[PENDING_EMAIL_KEY] = email
    await reply(update, "👤 ما اسمك؟ \\(أو /skip\\)")
    return LOGIN_NAME


async def step_login_name(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    name = None if update.message.text.startswith("/") else update.message.text.strip()
    return await _finish_login(update, context, name, context.user_data.pop(PENDING_EMAIL_KEY, ""))


async def _finish_login(update: Update, context: ContextTypes.DEFAULT_TYPE, name: Optional[str], email: str) -> int:
    controller = get_controller(update, context)
    try:
        user = controller.login(name, email)
    except UserInputError as e:
        await reply(update, f"⚠️ {escape_md(str(e))}")
        return LOGIN_EMAIL
    await reply(update, f"✅ أهلاً *{escape_md(user.name)}*\\!")

    if context.user_data.pop(ACCEPT_AFTER_LOGIN_KEY, False) and controller.accept() is not None:
        await reply(update, "🚀 *بدأ التحدي\\!*")
    controller.show_dashboard()
    return await show_dashboard(update, controller)


# ── Dashboard ─────────────────────────────────────────────────────────────────

async def step_project_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    query = update.callback_query
    await query.answer()
    controller = get_controller(update, context)
    _, action, project_id = query.data.split("_", 2)

    try:
        project = controller.find_project(project_id)
    except UserInputError:
        await reply(update, "⚠️ هذا المشروع غير موجود\\.")
        return await show_dashboard(update, controller)

    if action == "view":
        controller.view_brief(project.id)
        return await show_result(update, controller)
    if action == "feedback":
        await reply(update, format_feedback(project))
        return DASHBOARD

    context.user_data[SUBMIT_PROJECT_KEY] = project.id
    await reply(
        update,
        f"📤 أرسل تصميمك النهائي لـ *{escape_md(project.brief.project_name)}* كصورة\\.",
    )
    return SUBMIT


async def step_submission(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    controller = get_controller(update, context)
    project_id = context.user_data.get(SUBMIT_PROJECT_KEY)
    data = await _download_image(update, context)
    if not data:
        await reply(update, "⚠️ أرسل صورة من فضلك\\.")
        return SUBMIT

    await reply(update, "🧑‍🏫 *المرشد يراجع تصميمك\\.\\.\\.*")
    await send_typing(update)
    try:
        project = await controller.asubmit(project_id, data)
    except UserInputError as e:
        await reply(update, f"⚠️ {escape_md(str(e))}")
        return await show_dashboard(update, controller)

    context.user_data.pop(SUBMIT_PROJECT_KEY, None)
    await reply(update, format_feedback(project))
    return await show_dashboard(update, controller)


# ── Error handler ─────────────────────────────────────────────────────────────

async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    logger.error("Exception while handling update:", exc_info=context.error)
    if isinstance(update, Update) and update.effective_message:
        await update.effective_message.reply_text(
            "⚠️ حدث خطأ\\. أرسل /cancel ثم /start للمحاولة مرة أخرى\\.",
            parse_mode=ParseMode.MARKDOWN_V2,
        )


# ── App builder ───────────────────────────────────────────────────────────────

def build_app(token: str) -> Application:
    app = Application.builder().token(token).build()

    image = filters.PHOTO | filters.Document.IMAGE
    conv = ConversationHandler(
        entry_points=[
            CommandHandler("start", cmd_start),
            CommandHandler("new", cmd_start),
            CommandHandler("login", cmd_login),
            CommandHandler("dashboard", cmd_dashboard),
        ],
        states={
            CATEGORY: [CallbackQueryHandler(step_category_callback, pattern="^(cat_|set_)")],
            INDUSTRY: [
                CallbackQueryHandler(step_industry_callback, pattern="^ind_"),
                CallbackQueryHandler(step_back, pattern="^back$"),
            ],
            UPLOAD_STYLE: [
                MessageHandler(image, step_remix_image),
                CallbackQueryHandler(step_back, pattern="^back$"),
            ],
            RESULT: [
                CallbackQueryHandler(step_result_callback, pattern="^res_"),
                CallbackQueryHandler(step_home_callback, pattern="^home_"),
            ],
            LOGIN_EMAIL: [MessageHandler(filters.TEXT & ~filters.COMMAND, step_login_email)],
            LOGIN_NAME: [
                MessageHandler(filters.TEXT & ~filters.COMMAND, step_login_name),
                CommandHandler("skip", step_login_name),
            ],
            DASHBOARD: [
                CallbackQueryHandler(step_project_callback, pattern="^prj_"),
                CallbackQueryHandler(step_home_callback, pattern="^home_"),
            ],
            SUBMIT: [MessageHandler(image, step_submission)],
            EDIT_FIELD: [CallbackQueryHandler(step_edit_field, pattern="^edit_")],
            EDIT_VALUE: [MessageHandler(filters.TEXT & ~filters.COMMAND, step_edit_value)],
        },
        fallbacks=[
            CommandHandler("cancel", cmd_cancel),
            CommandHandler("start", cmd_start),
            CommandHandler("dashboard", cmd_dashboard),
            CommandHandler("logout", cmd_logout),
        ],
        allow_reentry=True,
        conversation_timeout=1800,  # 30 min timeout
    )

    app.add_handler(conv)
    app.add_handler(CommandHandler("logout", cmd_logout))
    app.add_error_handler(error_handler)
    return app
