"""
Voice Assistant — Telegram Bot.

Telegram is the user interface: voice notes come in, the orchestrator turns
each one into a calendar event, a saved note or a reply, and the outcome is
rendered back into the chat.

Security-first: unauthorized users are silently ignored.
"""

from __future__ import annotations

import logging
import tempfile
from functools import wraps
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Coroutine

from telegram import Update
from telegram.constants import MessageLimit
from telegram.ext import (
    Application,
    ApplicationBuilder,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from src.core.intent import NOTE_CATEGORIES
from src.core.orchestrator import ActionKind, WorkflowOutcome
from src.ports.errors import StorageError

if TYPE_CHECKING:
    from src.config import Settings
    from src.core.orchestrator import Orchestrator
    from src.data.models import Note
    from src.ports.note_port import NotePort

logger = logging.getLogger(__name__)

_STAGE_MESSAGES = {
    "transcription": "Sorry, I couldn't make out that recording. Please try again.",
    "classification": "Sorry, I heard you but couldn't work out what you wanted.",
    "calendar": "I understood, but I couldn't save the event to your calendar.",
    "storage": "I understood, but I couldn't save your note.",
}
_GENERIC_ERROR = "Sorry, something went wrong. Please try again."


# ---------------------------------------------------------------------------
# Security: silent-ignore decorator
# ---------------------------------------------------------------------------


def authorized_only(
    func: Callable[..., Coroutine[Any, Any, None]],
) -> Callable[..., Coroutine[Any, Any, None]]:
    """Decorator that silently ignores messages from unauthorized users.

    Does NOT send any response to strangers — the bot must not reveal
    its existence to unauthorized users.
    """

    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        settings: Settings = context.bot_data["settings"]
        user = update.effective_user
        if user is None or user.id not in settings.ALLOWED_USER_IDS:
            uid = user.id if user else "unknown"
            logger.warning("Unauthorized access attempt from user_id=%s", uid)
            return  # Silent ignore
        return await func(update, context)

    return wrapper


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def render_outcome(outcome: WorkflowOutcome) -> str:
    """Turn a workflow outcome into the chat reply."""
    if not outcome.ok:
        return _STAGE_MESSAGES.get(outcome.stage or "", _GENERIC_ERROR)

    result = outcome.result
    lines = [f"🎤 I heard: {result.transcript}", "", result.reply]
    if result.action == ActionKind.EVENT and result.link:
        lines.append(f"🔗 {result.link}")
    elif result.action == ActionKind.NOTE and result.note and result.note.body:
        lines.append(f"📝 {result.note.body}")
    return "\n".join(lines)


def format_notes(notes: list[Note]) -> str:
    if not notes:
        return "No notes yet."
    lines = []
    for i, note in enumerate(notes, 1):
        lines.append(f"{i}. [{note.category}] {note.title} ({note.date[:10]})")
        if note.body:
            lines.append(f"   {note.body}")
    return "\n".join(lines)


def split_message(text: str, limit: int = MessageLimit.MAX_TEXT_LENGTH) -> list[str]:
    """Split `text` on line boundaries into chunks Telegram will accept."""
    chunks: list[str] = []
    current = ""
    for line in text.splitlines():
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit:
            chunks.append(current)
            candidate = line
        current = candidate
    if current:
        chunks.append(current)
    return chunks or [text]


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


@authorized_only
async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start — welcome message."""
    await update.message.reply_text(
        "Welcome to *Voice Assistant*!\n\n"
        "Send me a voice message and I will:\n"
        "• schedule it if it has a date and time\n"
        "• save it as a problem, idea, decision or to-do note\n"
        "• or just answer you\n\n"
        "Type /help for the full command list.",
        parse_mode="Markdown",
    )


@authorized_only
async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help — list available commands."""
    await update.message.reply_text(
        "*Available commands:*\n"
        "/notes — List all saved notes\n"
        "/notes <category> — List notes of one category "
        "(problem, idea, decision, todo)\n"
        "/help — Show this message",
        parse_mode="Markdown",
    )


@authorized_only
async def cmd_notes(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /notes [category] — list saved notes."""
    notes_store: NotePort = context.bot_data["notes"]
    category = context.args[0].lower() if context.args else None

    valid = sorted(c.value for c in NOTE_CATEGORIES)
    if category is not None and category not in valid:
        await update.message.reply_text(f"Unknown category. Use one of: {', '.join(valid)}")
        return

    try:
        if category is None:
            notes = await notes_store.list_all()
        else:
            notes = await notes_store.list_by_category(category)
    except StorageError as exc:
        logger.error("Failed to list notes: %s", exc)
        await update.message.reply_text("Sorry, I couldn't read your notes.")
        return

    for chunk in split_message(format_notes(notes)):
        await update.message.reply_text(chunk)


# ---------------------------------------------------------------------------
# Voice capture
# ---------------------------------------------------------------------------


@authorized_only
async def handle_voice(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle voice/audio messages — download, then hand off to the orchestrator.

    The orchestrator owns the downloaded file from here on and deletes it.
    """
    orchestrator: Orchestrator = context.bot_data["orchestrator"]
    media = update.message.voice or update.message.audio
    suffix = ".ogg" if update.message.voice else Path(update.message.audio.file_name or "audio.m4a").suffix

    with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as tmp:
        tmp_path = tmp.name

    try:
        tg_file = await context.bot.get_file(media.file_id)
        await tg_file.download_to_drive(tmp_path)
    except Exception as exc:
        logger.error("Voice download error: %s", exc)
        Path(tmp_path).unlink(missing_ok=True)
        await update.message.reply_text(_GENERIC_ERROR)
        return

    outcome = await orchestrator.handle(tmp_path)
    for chunk in split_message(render_outcome(outcome)):
        await update.message.reply_text(chunk)


# ---------------------------------------------------------------------------
# App builder
# ---------------------------------------------------------------------------


def build_app(
    settings: Settings,
    orchestrator: Orchestrator | None = None,
    notes: NotePort | None = None,
) -> Application:
    """Build and configure the Telegram Application with all handlers.

    Args:
        settings: Loaded application settings.
        orchestrator: Workflow to run per voice message. Defaults to the one
            built by create_orchestrator().
        notes: Note store for /notes. Defaults to the JSON store, shared
            with the orchestrator.
    """
    app = ApplicationBuilder().token(settings.TELEGRAM_BOT_TOKEN).build()

    if notes is None:
        from src.adapters.json_notes import JsonNoteStore
        notes = JsonNoteStore(settings.notes_path)

    if orchestrator is None:
        from src.adapters.service_factory import create_orchestrator
        orchestrator = create_orchestrator(settings, notes=notes)

    app.bot_data["settings"] = settings
    app.bot_data["orchestrator"] = orchestrator
    app.bot_data["notes"] = notes

    app.add_handler(CommandHandler("start", cmd_start))
    app.add_handler(CommandHandler("help", cmd_help))
    app.add_handler(CommandHandler("notes", cmd_notes))
    app.add_handler(MessageHandler(filters.VOICE | filters.AUDIO, handle_voice))

    logger.info("Telegram bot application built with %d handlers", len(app.handlers[0]))
    return app


def main() -> None:
    """Entry point: load settings, build the app and start polling."""
    from src.config import load_settings

    settings = load_settings()
    logger.info("Starting Voice Assistant bot...")
    app = build_app(settings)
    app.run_polling()


if __name__ == "__main__":
    main()
