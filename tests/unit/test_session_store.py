"""
Unit tests for SessionStore.

Covers the bounded per-session history and LRU eviction of whole sessions.
"""

import pytest

from portfolio_api.models.chat import ChatTurn, Role
from portfolio_api.services.session_store import MAX_TURNS, SessionStore


@pytest.mark.unit
class TestSessionStore:
    """Test class for SessionStore functionality."""

    @pytest.fixture
    def store(self):
        return SessionStore(max_sessions=10)

    def test_get_or_create_starts_empty(self, store):
        """An unseen session is created lazily with no turns."""
        assert "abc" not in store
        assert store.get_or_create("abc") == []
        assert "abc" in store
        assert len(store) == 1

    def test_get_unknown_session_returns_none(self, store):
        assert store.get("missing") is None

    def test_append_exchange_records_user_then_assistant(self, store):
        history = store.append_exchange("abc", "hello", "hi there")

        assert history == [
            ChatTurn(role=Role.USER, content="hello"),
            ChatTurn(role=Role.ASSISTANT, content="hi there"),
        ]

    @pytest.mark.parametrize("exchanges", [1, 2, 4, 5, 6, 9])
    def test_history_length_is_capped(self, store, exchanges):
        """After N exchanges the history holds min(2N, 10) turns, newest last."""
        for i in range(exchanges):
            store.append_exchange("abc", f"question {i}", f"answer {i}")

        history = store.get("abc")
        assert len(history) == min(2 * exchanges, MAX_TURNS)
        assert len(history) % 2 == 0
        assert history[-2].content == f"question {exchanges - 1}"
        assert history[-1].content == f"answer {exchanges - 1}"

        oldest_kept = max(0, exchanges - MAX_TURNS // 2)
        assert history[0].content == f"question {oldest_kept}"
        assert history[0].role == Role.USER

    def test_returned_history_is_a_copy(self, store):
        store.append_exchange("abc", "hello", "hi")
        snapshot = store.get("abc")
        snapshot.clear()

        assert len(store.get("abc")) == 2

    def test_clear_existing_session(self, store):
        store.append_exchange("abc", "hello", "hi")

        assert store.clear("abc") is True
        assert "abc" not in store

    def test_clear_unknown_session_is_noop(self, store):
        assert store.clear("never-seen") is False
        assert len(store) == 0

    def test_least_recently_used_session_is_evicted(self):
        store = SessionStore(max_sessions=2)
        store.get_or_create("a")
        store.get_or_create("b")
        # Touch "a" so that "b" becomes the least recently used
        store.get_or_create("a")
        store.append_exchange("c", "hello", "hi")

        assert "a" in store
        assert "b" not in store
        assert "c" in store
        assert len(store) == 2

    def test_sessions_are_isolated(self, store):
        store.append_exchange("a", "question for a", "answer for a")
        store.append_exchange("b", "question for b", "answer for b")

        assert store.get("a")[0].content == "question for a"
        assert store.get("b")[0].content == "question for b"

    @pytest.mark.parametrize("max_turns", [0, 3, 7])
    def test_rejects_odd_or_tiny_turn_cap(self, max_turns):
        with pytest.raises(ValueError):
            SessionStore(max_turns=max_turns)

    def test_rejects_zero_sessions(self):
        with pytest.raises(ValueError):
            SessionStore(max_sessions=0)
