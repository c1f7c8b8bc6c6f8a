"""
Unit tests for ChatService.

Covers context injection on the first turn, bounded history, error
propagation and per-session serialization. The AI backend is a fake.
"""

import asyncio

import pytest

from conftest import FakeBackend
from portfolio_api.errors import ConfigurationError, UpstreamError
from portfolio_api.models.chat import ChatTurn, Role, TokenUsage
from portfolio_api.services.chat_service import MAX_OUTPUT_TOKENS, TEMPERATURE, ChatService
from portfolio_api.services.session_store import SessionStore


@pytest.mark.unit
class TestChatService:
    """Test class for ChatService functionality."""

    @pytest.fixture
    def chat_service(self, test_settings, knowledge, fake_backend):
        return ChatService(test_settings, knowledge, backend=fake_backend)

    @pytest.mark.asyncio
    async def test_first_turn_is_prefixed_with_context(self, chat_service, fake_backend, knowledge):
        message = "What are your skills?"

        await chat_service.chat(message, "s1")

        expected_context = knowledge.build_context(message)
        assert fake_backend.calls[0]["message"] == f"{expected_context}\n\nUser question: {message}"
        assert fake_backend.calls[0]["history"] == []

    @pytest.mark.asyncio
    async def test_follow_up_sends_raw_message_with_history(self, chat_service, fake_backend):
        fake_backend.replies = ["I know Python.", "Yes, FastAPI too."]

        await chat_service.chat("What are your skills?", "s1")
        await chat_service.chat("Any web frameworks?", "s1")

        second = fake_backend.calls[1]
        assert second["message"] == "Any web frameworks?"
        assert second["history"] == [
            {"role": "user", "parts": ["What are your skills?"]},
            {"role": "model", "parts": ["I know Python."]},
        ]

    @pytest.mark.asyncio
    async def test_stored_history_keeps_raw_user_message(self, chat_service, fake_backend):
        fake_backend.replies = ["Hello!"]

        await chat_service.chat("Hi", "s1")

        assert chat_service.sessions.get("s1") == [
            ChatTurn(role=Role.USER, content="Hi"),
            ChatTurn(role=Role.ASSISTANT, content="Hello!"),
        ]

    @pytest.mark.asyncio
    async def test_generation_parameters(self, chat_service, fake_backend):
        await chat_service.chat("Hi", "s1")

        assert fake_backend.calls[0]["temperature"] == TEMPERATURE == 0.7
        assert fake_backend.calls[0]["max_output_tokens"] == MAX_OUTPUT_TOKENS == 500

    @pytest.mark.asyncio
    async def test_returns_message_and_usage(self, chat_service, fake_backend):
        fake_backend.replies = ["Happy to help."]

        result = await chat_service.chat("Hi", "s1")

        assert result.message == "Happy to help."
        assert result.usage == TokenUsage(prompt_tokens=12, completion_tokens=8, total_tokens=20)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("exchanges", [1, 3, 5, 7])
    async def test_history_is_bounded(self, chat_service, exchanges):
        for i in range(exchanges):
            await chat_service.chat(f"question {i}", "s1")

        history = chat_service.sessions.get("s1")
        assert len(history) == min(2 * exchanges, 10)
        assert history[-2].content == f"question {exchanges - 1}"

    @pytest.mark.asyncio
    async def test_default_session_id(self, chat_service):
        await chat_service.chat("Hi")

        assert "default" in chat_service.sessions

    @pytest.mark.asyncio
    async def test_knowledge_is_loaded_on_first_chat(self, chat_service, knowledge):
        assert not knowledge.is_loaded

        await chat_service.chat("Hi", "s1")

        assert knowledge.is_loaded

    @pytest.mark.asyncio
    async def test_missing_credential_raises_configuration_error(self, test_settings, knowledge):
        service = ChatService(test_settings, knowledge)

        assert not service.enabled
        with pytest.raises(ConfigurationError):
            await service.chat("Hi", "s1")
        assert len(service.sessions) == 0
        assert "s1" not in service.sessions

    @pytest.mark.asyncio
    async def test_upstream_error_propagates_and_history_is_unchanged(self, test_settings, knowledge):
        backend = FakeBackend(error=UpstreamError("Gemini request failed: 500"))
        service = ChatService(test_settings, knowledge, backend=backend)

        with pytest.raises(UpstreamError):
            await service.chat("Hi", "s1")

        assert service.sessions.get("s1") == []
        assert len(backend.calls) == 1

    @pytest.mark.asyncio
    async def test_unexpected_backend_error_becomes_upstream_error(self, test_settings, knowledge):
        backend = FakeBackend(error=RuntimeError("connection reset"))
        service = ChatService(test_settings, knowledge, backend=backend)

        with pytest.raises(UpstreamError) as exc_info:
            await service.chat("Hi", "s1")
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_clear_history_restarts_context_injection(self, chat_service, fake_backend):
        await chat_service.chat("Hi", "s1")
        chat_service.clear_history("s1")
        await chat_service.chat("Hi again", "s1")

        assert "s1" in chat_service.sessions
        assert fake_backend.calls[1]["message"].endswith("\n\nUser question: Hi again")
        assert fake_backend.calls[1]["history"] == []

    def test_clear_unknown_session_is_noop(self, chat_service):
        chat_service.clear_history("never-seen")

        assert len(chat_service.sessions) == 0

    @pytest.mark.asyncio
    async def test_concurrent_requests_for_one_session_are_serialized(self, test_settings, knowledge):
        backend = FakeBackend(replies=["first", "second"], yield_control=True)
        service = ChatService(test_settings, knowledge, backend=backend)

        await asyncio.gather(service.chat("one", "s1"), service.chat("two", "s1"))

        assert [len(call["history"]) for call in backend.calls] == [0, 2]
        assert len(service.sessions.get("s1")) == 4
        assert service._locks == {}

    @pytest.mark.asyncio
    async def test_uses_injected_session_store(self, test_settings, knowledge, fake_backend):
        store = SessionStore(max_sessions=1)
        service = ChatService(test_settings, knowledge, session_store=store, backend=fake_backend)
        assert service.sessions is store

        await service.chat("Hi", "a")
        await service.chat("Hi", "b")

        assert "a" not in store
        assert "b" in store
