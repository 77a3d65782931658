"""Tests for the SQLite message store."""

from datetime import datetime, timedelta, timezone

from college_advisor.storage import MessageStore


class TestSessions:
    def test_missing_session(self, store):
        assert store.get_session("nope") is None

    def test_create_session(self, store):
        session = store.create_session("ses-1")
        assert session.id == "ses-1"
        assert session.created_at == session.updated_at

    def test_create_session_twice_keeps_original(self, store):
        first = store.create_session("ses-1")
        second = store.create_session("ses-1")
        assert first.created_at == second.created_at

    def test_message_bumps_updated_at(self, store):
        store.create_session("ses-1")
        later = datetime.now(timezone.utc) + timedelta(hours=1)
        store.create_message("user", "Hi", "ses-1", timestamp=later)
        assert store.get_session("ses-1").updated_at == later


class TestMessages:
    def test_round_trip(self, store):
        created = store.create_message(
            "assistant",
            "See the Scorecard.",
            "ses-1",
            citations=["https://collegescorecard.ed.gov"],
        )
        [loaded] = store.get_messages_by_session("ses-1")
        assert loaded == created
        assert loaded.citations == ["https://collegescorecard.ed.gov"]

    def test_empty_citations_stored_as_none(self, store):
        msg = store.create_message("assistant", "No sources.", "ses-1", citations=[])
        assert msg.citations is None
        assert store.get_messages_by_session("ses-1")[0].citations is None

    def test_ordered_by_timestamp(self, store):
        base = datetime(2025, 1, 15, 10, 0, 0, tzinfo=timezone.utc)
        store.create_message("assistant", "second", "ses-1", timestamp=base + timedelta(seconds=5))
        store.create_message("user", "first", "ses-1", timestamp=base)
        assert [m.content for m in store.get_messages_by_session("ses-1")] == ["first", "second"]

    def test_same_timestamp_keeps_insert_order(self, store):
        ts = datetime(2025, 1, 15, 10, 0, 0, tzinfo=timezone.utc)
        for content in ("a", "b", "c"):
            store.create_message("user", content, "ses-1", timestamp=ts)
        assert [m.content for m in store.get_messages_by_session("ses-1")] == ["a", "b", "c"]

    def test_sessions_are_isolated(self, store):
        store.create_message("user", "mine", "ses-1")
        store.create_message("user", "theirs", "ses-2")
        assert [m.content for m in store.get_messages_by_session("ses-1")] == ["mine"]

    def test_persists_across_connections(self, tmp_path):
        path = tmp_path / "nested" / "advisor.db"
        first = MessageStore(path)
        first.create_message("user", "Hi", "ses-1")
        first.close()

        second = MessageStore(path)
        assert [m.content for m in second.get_messages_by_session("ses-1")] == ["Hi"]
        second.close()
