"""FastAPI web server for college-advisor."""

import logging
import sqlite3
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .advisor import AdvisorError, PerplexityClient, build_chat_messages
from .config import get_database_path
from .core import message_to_dict
from .export import EXPORT_FORMATS, ExportError, export_messages
from .storage import MessageStore

logger = logging.getLogger(__name__)

app = FastAPI(title="college-advisor", version="0.1.0")

# Store and advisor client (created on first request)
_store: MessageStore | None = None
_advisor: PerplexityClient | None = None


def _get_store() -> MessageStore:
    """Lazily open and cache the message store."""
    global _store
    if _store is None:
        _store = MessageStore(get_database_path())
    return _store


def _get_advisor() -> PerplexityClient:
    global _advisor
    if _advisor is None:
        _advisor = PerplexityClient()
    return _advisor


class MessageCreate(BaseModel):
    """Body of POST /api/messages."""

    model_config = ConfigDict(populate_by_name=True)

    role: str
    content: str
    session_id: str = Field(alias="sessionId", min_length=1)

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("content must not be empty")
        return v


# ── Routes ───────────────────────────────────────────────────────


@app.get("/api/health")
async def health():
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.get("/api/messages/{session_id}")
async def get_messages(session_id: str):
    """Return a session's messages, oldest first."""
    try:
        messages = _get_store().get_messages_by_session(session_id)
    except sqlite3.Error as e:
        logger.error("Failed to get messages for %s: %s", session_id, e)
        raise HTTPException(status_code=500, detail="Failed to fetch messages")
    return [message_to_dict(m) for m in messages]


@app.post("/api/messages")
async def send_message(body: MessageCreate):
    """Store a student message and the advisor's reply; return the student message."""
    if body.role != "user":
        raise HTTPException(status_code=400, detail="Only user messages can be sent through this endpoint")

    store = _get_store()
    try:
        if store.get_session(body.session_id) is None:
            store.create_session(body.session_id)
        history = store.get_messages_by_session(body.session_id)
        user_message = store.create_message(role="user", content=body.content, session_id=body.session_id)
    except sqlite3.Error as e:
        logger.error("Failed to store message for %s: %s", body.session_id, e)
        raise HTTPException(status_code=500, detail="Failed to save message")

    try:
        reply = await _get_advisor().complete(build_chat_messages(history, body.content))
    except AdvisorError as e:
        logger.error("Advisor request failed for %s: %s", body.session_id, e)
        raise HTTPException(status_code=502, detail="The advisor is unavailable, please try again")

    try:
        store.create_message(
            role="assistant",
            content=reply.content,
            session_id=body.session_id,
            citations=reply.citations,
        )
    except sqlite3.Error as e:
        logger.error("Failed to store advisor reply for %s: %s", body.session_id, e)
        raise HTTPException(status_code=500, detail="Failed to save message")

    return message_to_dict(user_message)


@app.get("/api/export/{session_id}")
async def export_session(
    session_id: str,
    format: str = Query("txt", description="Export format: txt, json, md, pdf or docx"),
):
    """Export a session's transcript as a downloadable file."""
    if format not in EXPORT_FORMATS:
        raise HTTPException(status_code=400, detail=f"Unsupported format: {format}")

    store = _get_store()
    try:
        session = store.get_session(session_id)
        messages = store.get_messages_by_session(session_id)
    except sqlite3.Error as e:
        logger.error("Failed to get messages for export %s: %s", session_id, e)
        raise HTTPException(status_code=500, detail="Failed to load messages")

    if session is None and not messages:
        raise HTTPException(status_code=404, detail="Session not found")

    try:
        exported = await export_messages(messages, format)
    except ExportError:
        raise HTTPException(status_code=500, detail="Failed to generate export")

    return Response(
        content=exported.content,
        media_type=exported.media_type,
        headers={"Content-Disposition": f'attachment; filename="{exported.filename}"'},
    )
