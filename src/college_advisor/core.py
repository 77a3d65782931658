"""Core data models for college-advisor."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

TIMESTAMP_FORMAT = "%m/%d/%Y, %I:%M:%S %p"


@dataclass
class Session:
    """A single advising conversation."""

    id: str
    created_at: datetime
    updated_at: datetime


@dataclass
class Message:
    """A single message within an advising session."""

    id: str
    role: str  # "user" | "assistant" | "system"
    content: str
    timestamp: datetime
    session_id: str
    citations: Optional[list[str]] = None  # source URLs returned with assistant replies


def role_label(role: str) -> str:
    """Return the display name for a message role."""
    return "Student" if role == "user" else "Advisor"


def format_timestamp(ts: datetime) -> str:
    """Format a timestamp the way transcripts display it."""
    return ts.strftime(TIMESTAMP_FORMAT)


def message_to_dict(msg: Message) -> dict:
    """Convert a Message dataclass to a JSON-serializable dict."""
    return {
        "id": msg.id,
        "role": msg.role,
        "content": msg.content,
        "citations": msg.citations,
        "timestamp": msg.timestamp.isoformat(),
        "sessionId": msg.session_id,
    }
