"""
Session Store

In-memory conversation memory keyed by session identifier. Each session keeps
a bounded list of chat turns; the number of sessions is capped with LRU
eviction so a long-running process cannot grow without bound.
"""

import logging
from collections import OrderedDict
from typing import List, Optional

from ..models.chat import ChatTurn, Role

logger = logging.getLogger(__name__)

MAX_TURNS = 10


class SessionStore:
    """Maps session ids to their bounded turn history"""

    def __init__(self, max_sessions: int = 1000, max_turns: int = MAX_TURNS):
        if max_turns < 2 or max_turns % 2:
            raise ValueError("max_turns must be an even number of at least 2")
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self.max_sessions = max_sessions
        self.max_turns = max_turns
        self._sessions: "OrderedDict[str, List[ChatTurn]]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def get(self, session_id: str) -> Optional[List[ChatTurn]]:
        """Return a copy of the session's turns, or None for an unknown session"""
        history = self._sessions.get(session_id)
        return list(history) if history is not None else None

    def get_or_create(self, session_id: str) -> List[ChatTurn]:
        """
        Return a snapshot of the session's history, creating an empty one if needed

        Args:
            session_id: Caller-supplied session identifier

        Returns:
            Copy of the stored turns, oldest first
        """
        if session_id in self._sessions:
            self._sessions.move_to_end(session_id)
        else:
            self._sessions[session_id] = []
            self._evict_stale_sessions()
        return list(self._sessions[session_id])

    def append_exchange(self, session_id: str, user_message: str, assistant_message: str) -> List[ChatTurn]:
        """
        Append a user/assistant pair, dropping the oldest pairs beyond the cap

        Returns:
            Copy of the session's history after the append
        """
        if session_id not in self._sessions:
            self._sessions[session_id] = []
            self._evict_stale_sessions()
        self._sessions.move_to_end(session_id)

        history = self._sessions[session_id]
        history.append(ChatTurn(role=Role.USER, content=user_message))
        history.append(ChatTurn(role=Role.ASSISTANT, content=assistant_message))

        while len(history) > self.max_turns:
            del history[:2]

        return list(history)

    def clear(self, session_id: str) -> bool:
        """Remove a session. Returns False when there was nothing to remove."""
        return self._sessions.pop(session_id, None) is not None

    def _evict_stale_sessions(self) -> None:
        while len(self._sessions) > self.max_sessions:
            evicted, _ = self._sessions.popitem(last=False)
            logger.info("Evicted least recently used chat session %s", evicted)
