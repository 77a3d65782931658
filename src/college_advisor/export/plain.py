"""Export advising sessions to plain text, Markdown and JSON."""

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core import Message, format_timestamp, role_label

TRANSCRIPT_TITLE = "Personal College Advisor - Session Transcript"
TEXT_RULE = "=" * 80
MESSAGE_SEPARATOR = "\n---\n\n"


@dataclass
class SessionSummary:
    generated_at: datetime
    total_messages: int
    session_start: Optional[datetime] = None
    session_end: Optional[datetime] = None


def summarize_session(messages: list[Message], generated_at: datetime) -> SessionSummary:
    return SessionSummary(
        generated_at=generated_at,
        total_messages=len(messages),
        session_start=messages[0].timestamp if messages else None,
        session_end=messages[-1].timestamp if messages else None,
    )


def session_to_text(messages: list[Message], generated_at: datetime) -> str:
    """Export messages as a human-readable transcript with timestamps."""
    header = (
        f"{TRANSCRIPT_TITLE}\n"
        f"Generated: {format_timestamp(generated_at)}\n"
        f"Total Messages: {len(messages)}\n"
        f"\n{TEXT_RULE}\n\n"
    )
    body = MESSAGE_SEPARATOR.join(
        f"[{format_timestamp(msg.timestamp)}] {role_label(msg.role)}:\n{msg.content}\n"
        for msg in messages
    )
    return header + body


def session_to_markdown(messages: list[Message], generated_at: datetime) -> str:
    """Export messages as Markdown, leaving message content untouched."""
    header = (
        f"# {TRANSCRIPT_TITLE}\n\n"
        f"**Generated:** {format_timestamp(generated_at)}\n"
        f"**Total Messages:** {len(messages)}\n"
        f"{MESSAGE_SEPARATOR}"
    )
    body = MESSAGE_SEPARATOR.join(
        f"### {role_label(msg.role)} - {format_timestamp(msg.timestamp)}\n\n{msg.content}\n"
        for msg in messages
    )
    return header + body


def session_to_json(messages: list[Message], generated_at: datetime) -> str:
    """Export messages as structured JSON."""
    summary = summarize_session(messages, generated_at)
    data = {
        "sessionInfo": {
            "generatedAt": summary.generated_at.isoformat(),
            "totalMessages": summary.total_messages,
            "sessionStart": summary.session_start.isoformat() if summary.session_start else None,
            "sessionEnd": summary.session_end.isoformat() if summary.session_end else None,
        },
        "messages": [
            {
                "role": msg.role,
                "content": msg.content,
                "timestamp": msg.timestamp.isoformat(),
            }
            for msg in messages
        ],
    }
    return json.dumps(data, indent=2, ensure_ascii=False)
