"""Tests for src.bot.telegram_bot — Telegram handlers and rendering.

Tests authorization, outcome rendering and the voice hand-off.
The orchestrator and note store are mocked.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from src.bot.telegram_bot import (
    cmd_notes,
    format_notes,
    handle_voice,
    render_outcome,
    split_message,
)
from src.core.orchestrator import ActionKind, WorkflowOutcome, WorkflowResult
from src.data.models import Note
from src.ports.errors import ClassificationError, StorageError, TranscriptionError


def _make_update(user_id=12345, voice=True):
    update = MagicMock()
    update.effective_user.id = user_id
    update.message.reply_text = AsyncMock()
    if voice:
        update.message.voice.file_id = "voice-file-id"
    else:
        update.message.voice = None
        update.message.audio.file_id = "audio-file-id"
        update.message.audio.file_name = "memo.m4a"
    return update


def _make_context(settings, orchestrator=None, notes=None, args=None):
    context = MagicMock()
    context.bot_data = {"settings": settings, "orchestrator": orchestrator, "notes": notes}
    context.args = args or []
    tg_file = MagicMock()
    tg_file.download_to_drive = AsyncMock()
    context.bot.get_file = AsyncMock(return_value=tg_file)
    return context


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class TestRenderOutcome:
    def test_event_includes_link(self):
        outcome = WorkflowOutcome(result=WorkflowResult(
            transcript="Meeting with Sam tomorrow at 3pm",
            reply='I\'ve scheduled "Meeting with Sam" for Thu Jan 02, 2025 at 15:00.',
            action=ActionKind.EVENT, category="event", link="https://cal/1",
        ))
        text = render_outcome(outcome)
        assert "Meeting with Sam tomorrow at 3pm" in text
        assert "https://cal/1" in text

    def test_note_includes_body(self):
        note = Note(category="idea", title="Diary", date="2025-01-01", body="Daily voice diary")
        outcome = WorkflowOutcome(result=WorkflowResult(
            transcript="t", reply="saved", action=ActionKind.NOTE, category="idea", note=note,
        ))
        assert "Daily voice diary" in render_outcome(outcome)

    def test_stage_specific_errors(self):
        heard = render_outcome(WorkflowOutcome(error=ClassificationError("bad json")))
        not_heard = render_outcome(WorkflowOutcome(error=TranscriptionError("bad audio")))
        acted = render_outcome(WorkflowOutcome(error=StorageError("disk")))
        assert len({heard, not_heard, acted}) == 3
        assert "note" in acted


class TestFormatNotes:
    def test_empty(self):
        assert format_notes([]) == "No notes yet."

    def test_lists_in_order(self):
        text = format_notes([
            Note(category="idea", title="A", date="2025-01-01T00:00:00Z"),
            Note(category="todo", title="B", date="2025-01-02T00:00:00Z", body="details"),
        ])
        lines = text.splitlines()
        assert lines[0] == "1. [idea] A (2025-01-01)"
        assert lines[1] == "2. [todo] B (2025-01-02)"
        assert "details" in lines[2]


class TestSplitMessage:
    def test_short_text_single_chunk(self):
        assert split_message("hello\nworld") == ["hello\nworld"]

    def test_splits_on_line_boundaries(self):
        text = "\n".join(["x" * 30] * 5)
        chunks = split_message(text, limit=70)
        assert chunks == ["\n".join(["x" * 30] * 2)] * 2 + ["x" * 30]

    def test_overlong_line_is_cut(self):
        chunks = split_message("a" * 25, limit=10)
        assert chunks == ["a" * 10, "a" * 10, "a" * 5]

    def test_long_note_list_fits_telegram_limit(self):
        notes = [
            Note(category="todo", title=f"Task {i}", date="2025-01-01", body="b" * 100)
            for i in range(200)
        ]
        chunks = split_message(format_notes(notes))
        assert len(chunks) > 1
        assert all(len(c) <= 4096 for c in chunks)
        assert "\n".join(chunks) == format_notes(notes)


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


class TestAuthorization:
    @pytest.mark.asyncio
    async def test_unauthorized_user_ignored(self, settings):
        orchestrator = MagicMock()
        orchestrator.handle = AsyncMock()
        update = _make_update(user_id=999)
        await handle_voice(update, _make_context(settings, orchestrator=orchestrator))
        orchestrator.handle.assert_not_called()
        update.message.reply_text.assert_not_called()


class TestHandleVoice:
    @pytest.mark.asyncio
    async def test_hands_downloaded_file_to_orchestrator(self, settings):
        orchestrator = MagicMock()
        orchestrator.handle = AsyncMock(return_value=WorkflowOutcome(result=WorkflowResult(
            transcript="Hello there", reply="Hi!", action=ActionKind.CHAT, category="chat",
        )))
        update = _make_update()
        context = _make_context(settings, orchestrator=orchestrator)

        await handle_voice(update, context)

        context.bot.get_file.assert_awaited_once_with("voice-file-id")
        tmp_path = orchestrator.handle.await_args.args[0]
        assert tmp_path.endswith(".ogg")
        context.bot.get_file.return_value.download_to_drive.assert_awaited_once_with(tmp_path)
        assert "Hi!" in update.message.reply_text.await_args.args[0]

    @pytest.mark.asyncio
    async def test_audio_keeps_extension(self, settings):
        orchestrator = MagicMock()
        orchestrator.handle = AsyncMock(return_value=WorkflowOutcome(error=TranscriptionError("x")))
        update = _make_update(voice=False)

        await handle_voice(update, _make_context(settings, orchestrator=orchestrator))

        assert orchestrator.handle.await_args.args[0].endswith(".m4a")

    @pytest.mark.asyncio
    async def test_download_failure_cleans_up(self, settings):
        from pathlib import Path

        orchestrator = MagicMock()
        orchestrator.handle = AsyncMock()
        update = _make_update()
        context = _make_context(settings, orchestrator=orchestrator)
        downloaded = []

        async def _fail(path):
            downloaded.append(path)
            raise ConnectionError("telegram down")

        context.bot.get_file.return_value.download_to_drive = AsyncMock(side_effect=_fail)

        await handle_voice(update, context)

        orchestrator.handle.assert_not_called()
        assert not Path(downloaded[0]).exists()
        update.message.reply_text.assert_awaited_once()


class TestCmdNotes:
    @pytest.mark.asyncio
    async def test_lists_all(self, settings, note_store):
        from src.core.intent import Intent

        await note_store.save(Intent(category="idea", title="A"))
        update = _make_update()
        await cmd_notes(update, _make_context(settings, notes=note_store))
        assert "[idea] A" in update.message.reply_text.await_args.args[0]

    @pytest.mark.asyncio
    async def test_filters_by_category(self, settings):
        notes = MagicMock()
        notes.list_by_category = AsyncMock(return_value=[])
        update = _make_update()
        await cmd_notes(update, _make_context(settings, notes=notes, args=["Todo"]))
        notes.list_by_category.assert_awaited_once_with("todo")

    @pytest.mark.asyncio
    async def test_rejects_unknown_category(self, settings):
        notes = MagicMock()
        notes.list_by_category = AsyncMock()
        update = _make_update()
        await cmd_notes(update, _make_context(settings, notes=notes, args=["chat"]))
        notes.list_by_category.assert_not_called()
        assert "Unknown category" in update.message.reply_text.await_args.args[0]

    @pytest.mark.asyncio
    async def test_long_list_sent_in_chunks(self, settings):
        notes = MagicMock()
        notes.list_all = AsyncMock(return_value=[
            Note(category="idea", title=f"Idea {i}", date="2025-01-01", body="b" * 100)
            for i in range(200)
        ])
        update = _make_update()
        await cmd_notes(update, _make_context(settings, notes=notes))
        sent = [c.args[0] for c in update.message.reply_text.await_args_list]
        assert len(sent) > 1
        assert all(len(text) <= 4096 for text in sent)

    @pytest.mark.asyncio
    async def test_storage_error(self, settings):
        notes = MagicMock()
        notes.list_all = AsyncMock(side_effect=StorageError("corrupt"))
        update = _make_update()
        await cmd_notes(update, _make_context(settings, notes=notes))
        assert "couldn't read" in update.message.reply_text.await_args.args[0]
