"""Shared test fixtures for college-advisor."""

from datetime import datetime, timezone

import pytest

from college_advisor.advisor import AdvisorError, AdvisorReply
from college_advisor.core import Message
from college_advisor.storage import MessageStore


@pytest.fixture
def generated_at():
    return datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_messages():
    return [
        Message(
            id="m1",
            role="user",
            content="Hi",
            timestamp=datetime(2025, 1, 15, 10, 0, 0, tzinfo=timezone.utc),
            session_id="ses-1",
        ),
        Message(
            id="m2",
            role="assistant",
            content="Hello **there**",
            timestamp=datetime(2025, 1, 15, 10, 0, 30, tzinfo=timezone.utc),
            session_id="ses-1",
        ),
    ]


@pytest.fixture
def rich_messages():
    """A conversation exercising paragraphs, lists, links and citations."""
    return [
        Message(
            id="r1",
            role="user",
            content="Which *engineering* programs have the best ROI?",
            timestamp=datetime(2025, 3, 2, 9, 15, 0, tzinfo=timezone.utc),
            session_id="ses-2",
        ),
        Message(
            id="r2",
            role="assistant",
            content=(
                "Here are a few options:\n\n"
                "- **Georgia Tech** for *in-state* students\n"
                "- [Purdue **University**](https://www.purdue.edu)\n\n"
                "Check the [College Scorecard](https://collegescorecard.ed.gov) for salary data."
            ),
            timestamp=datetime(2025, 3, 2, 9, 15, 40, tzinfo=timezone.utc),
            session_id="ses-2",
            citations=["https://www.bls.gov/ooh/", "https://studentaid.gov"],
        ),
    ]


@pytest.fixture
def store(tmp_path):
    """A MessageStore backed by a temporary SQLite file."""
    s = MessageStore(tmp_path / "advisor.db")
    yield s
    s.close()


class FakeAdvisor:
    """Stands in for PerplexityClient; records every payload it receives."""

    def __init__(self, reply=None, error=None):
        self.reply = reply or AdvisorReply(
            content="Consider **in-state** public universities.",
            citations=["https://collegescorecard.ed.gov"],
        )
        self.error = error
        self.calls = []

    async def complete(self, messages):
        self.calls.append(messages)
        if self.error:
            raise AdvisorError(self.error)
        return self.reply


@pytest.fixture
def fake_advisor():
    return FakeAdvisor()


@pytest.fixture
def failing_advisor():
    return FakeAdvisor(error="Perplexity API error: 503 - unavailable")
