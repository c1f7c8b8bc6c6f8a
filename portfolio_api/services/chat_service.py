"""
Chat Service

This service orchestrates the chat flow: it combines the session's history,
the knowledge context and the new message into a request to the AI backend,
then records the exchange in the bounded session history.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from ..config import Settings
from ..errors import ConfigurationError, UpstreamError
from ..models.chat import DEFAULT_SESSION_ID, ChatResult, ChatTurn
from ..utils.debug_logger import debug_logger
from .ai_service import ChatBackend, GeminiBackend, to_backend_history
from .knowledge import KnowledgeBase
from .session_store import SessionStore

logger = logging.getLogger(__name__)

TEMPERATURE = 0.7
MAX_OUTPUT_TOKENS = 500


class ChatService:
    """Service for orchestrating chat interactions"""

    def __init__(
        self,
        settings: Settings,
        knowledge: KnowledgeBase,
        session_store: Optional[SessionStore] = None,
        backend: Optional[ChatBackend] = None,
    ):
        """
        Initialize the chat service with dependencies

        Without an injected backend a Gemini backend is created from settings.
        A missing API key leaves the service disabled: every chat call then
        fails with ConfigurationError.
        """
        self.settings = settings
        self.knowledge = knowledge
        self.sessions = session_store if session_store is not None else SessionStore(max_sessions=settings.chat_max_sessions)

        if backend is None and settings.chat_enabled:
            backend = GeminiBackend(settings.gemini_api_key, settings.gemini_model)
        if backend is None:
            logger.warning("GEMINI_API_KEY not set - chatbot will be disabled")
        self.backend = backend

        # session id -> [lock, number of holders and waiters]
        self._locks: Dict[str, List[Any]] = {}

    @property
    def enabled(self) -> bool:
        return self.backend is not None

    @staticmethod
    def build_outgoing_message(message: str, context: str, history: List[ChatTurn]) -> str:
        """Prefix the first message of a session with the knowledge context"""
        if not history:
            return f"{context}\n\nUser question: {message}"
        return message

    async def chat(
        self,
        message: str,
        session_id: str = DEFAULT_SESSION_ID,
        request_id: Optional[str] = None,
        request: Optional[Any] = None,
    ) -> ChatResult:
        """
        Process a chat message end-to-end

        Args:
            message: User input text
            session_id: Conversation scope, "default" when the caller has none
            request_id: Optional request identifier for tracing
            request: Optional FastAPI request object for timing

        Returns:
            The assistant's reply and token usage

        Raises:
            ConfigurationError: chat is disabled (no API key) or the knowledge
                corpus cannot be loaded
            UpstreamError: the AI backend call failed; history is left unchanged
        """
        if self.backend is None:
            raise ConfigurationError("Gemini API key not configured")

        self.knowledge.load()

        async with self._session_lock(session_id):
            history = self.sessions.get_or_create(session_id)
            debug_logger.log_chat(
                request_id,
                f"Processing chat for session {session_id} ({len(history)} stored turns): "
                f"'{message[:50]}{'...' if len(message) > 50 else ''}'",
                request,
            )

            context = self.knowledge.build_context(message)
            outgoing = self.build_outgoing_message(message, context, history)

            try:
                reply = await self.backend.send(
                    to_backend_history(history),
                    outgoing,
                    temperature=TEMPERATURE,
                    max_output_tokens=MAX_OUTPUT_TOKENS,
                )
            except UpstreamError:
                logger.error("Chat failed for session %s", session_id)
                raise
            except Exception as e:
                logger.exception("Chat backend raised an unexpected error for session %s", session_id)
                raise UpstreamError(f"AI backend request failed: {e}") from e

            updated = self.sessions.append_exchange(session_id, message, reply.text)

        debug_logger.log_chat(
            request_id,
            f"Chat completed for session {session_id}, history now {len(updated)} turns",
            request,
        )
        return ChatResult(message=reply.text, usage=reply.usage)

    def clear_history(self, session_id: str = DEFAULT_SESSION_ID) -> None:
        """Forget a session's history; unknown sessions are ignored"""
        if self.sessions.clear(session_id):
            logger.info("Cleared chat history for session %s", session_id)

    @asynccontextmanager
    async def _session_lock(self, session_id: str) -> AsyncIterator[None]:
        entry = self._locks.get(session_id)
        if entry is None:
            entry = self._locks[session_id] = [asyncio.Lock(), 0]
        entry[1] += 1
        try:
            async with entry[0]:
                yield
        finally:
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[session_id]
