"""Transcript export: format registry, filenames and saving to disk."""

import logging
import os
import tempfile
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from ..core import Message
from .pdf import render_pdf
from .plain import session_to_json, session_to_markdown, session_to_text
from .word import render_word

logger = logging.getLogger(__name__)

FILENAME_PREFIX = "college-advisor-session"

MEDIA_TYPES = {
    "txt": "text/plain",
    "json": "application/json",
    "md": "text/markdown",
    "pdf": "application/pdf",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}

EXPORT_FORMATS = tuple(MEDIA_TYPES)


class ExportError(Exception):
    """Raised when a transcript cannot be rendered or saved."""


@dataclass
class ExportedFile:
    content: bytes
    filename: str
    media_type: str


def export_filename(ext: str, now_ms: int | None = None) -> str:
    """Return ``college-advisor-session-{unix millis}.{ext}``."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{FILENAME_PREFIX}-{now_ms}.{ext}"


def _exported(content: bytes, ext: str) -> ExportedFile:
    return ExportedFile(content=content, filename=export_filename(ext), media_type=MEDIA_TYPES[ext])


def _now(generated_at: datetime | None) -> datetime:
    return generated_at or datetime.now(timezone.utc)


def export_as_text(messages: list[Message], generated_at: datetime | None = None) -> ExportedFile:
    return _exported(session_to_text(messages, _now(generated_at)).encode("utf-8"), "txt")


def export_as_json(messages: list[Message], generated_at: datetime | None = None) -> ExportedFile:
    return _exported(session_to_json(messages, _now(generated_at)).encode("utf-8"), "json")


def export_as_markdown(messages: list[Message], generated_at: datetime | None = None) -> ExportedFile:
    return _exported(session_to_markdown(messages, _now(generated_at)).encode("utf-8"), "md")


def export_as_pdf(messages: list[Message], generated_at: datetime | None = None) -> ExportedFile:
    try:
        content = render_pdf(messages, _now(generated_at))
    except Exception as e:
        logger.exception("PDF export failed")
        raise ExportError("Failed to generate PDF") from e
    return _exported(content, "pdf")


async def export_as_word(messages: list[Message], generated_at: datetime | None = None) -> ExportedFile:
    try:
        content = await render_word(messages, _now(generated_at))
    except Exception as e:
        logger.exception("Word export failed")
        raise ExportError("Failed to generate Word document") from e
    return _exported(content, "docx")


_SYNC_EXPORTERS = {
    "txt": export_as_text,
    "json": export_as_json,
    "md": export_as_markdown,
    "pdf": export_as_pdf,
}


async def export_messages(
    messages: list[Message], fmt: str, generated_at: datetime | None = None
) -> ExportedFile:
    """Render ``messages`` in the requested format (txt, json, md, pdf, docx)."""
    if fmt == "docx":
        return await export_as_word(messages, generated_at)
    exporter = _SYNC_EXPORTERS.get(fmt)
    if exporter is None:
        raise ValueError(f"Unsupported export format: {fmt}")
    return exporter(messages, generated_at)


def save_export(exported: ExportedFile, directory: Path) -> Path:
    """Write an export into ``directory`` and return the final path.

    Content goes to a temporary file first, which is renamed into place
    once fully written and removed on every other exit path.
    """
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / exported.filename
    fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=".export-", suffix=".part")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(exported.content)
        os.replace(tmp_name, target)
    except OSError as e:
        raise ExportError(f"Failed to save {exported.filename}") from e
    finally:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
    logger.info("Saved export to %s", target)
    return target
