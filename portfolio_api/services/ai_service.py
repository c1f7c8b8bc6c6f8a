"""
AI Service

Adapter for the Google Gemini API. The chat orchestrator only depends on the
ChatBackend interface defined here, so tests can substitute a fake backend.
"""

import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

import google.generativeai as genai
from pydantic import BaseModel, Field

from ..errors import ConfigurationError, UpstreamError
from ..models.chat import ChatTurn, Role, TokenUsage
from ..utils.debug_logger import debug_logger

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"

# Internal role -> Gemini role
_BACKEND_ROLES = {Role.USER: "user", Role.ASSISTANT: "model"}
_INTERNAL_ROLES = {value: key for key, value in _BACKEND_ROLES.items()}


class BackendReply(BaseModel):
    text: str
    usage: TokenUsage = Field(default_factory=TokenUsage)


class ChatBackend(Protocol):
    async def send(
        self,
        history: List[Dict[str, Any]],
        message: str,
        temperature: float,
        max_output_tokens: int,
    ) -> BackendReply:
        ...


def to_backend_history(turns: Sequence[ChatTurn]) -> List[Dict[str, Any]]:
    """Convert stored turns to Gemini's content format"""
    return [{"role": _BACKEND_ROLES[turn.role], "parts": [turn.content]} for turn in turns]


def from_backend_history(contents: Sequence[Dict[str, Any]]) -> List[ChatTurn]:
    """Convert Gemini contents back to chat turns"""
    turns = []
    for content in contents:
        parts = content.get("parts") or []
        text = "".join(part if isinstance(part, str) else part.get("text", "") for part in parts)
        turns.append(ChatTurn(role=_INTERNAL_ROLES[content["role"]], content=text))
    return turns


def usage_from_metadata(metadata: Optional[Any]) -> TokenUsage:
    """Read Gemini usage metadata, treating anything missing as zero"""
    if metadata is None:
        return TokenUsage()
    return TokenUsage(
        prompt_tokens=getattr(metadata, "prompt_token_count", 0) or 0,
        completion_tokens=getattr(metadata, "candidates_token_count", 0) or 0,
        total_tokens=getattr(metadata, "total_token_count", 0) or 0,
    )


class GeminiBackend:
    """ChatBackend implementation backed by google-generativeai"""

    def __init__(self, api_key: Optional[str], model_name: str = DEFAULT_MODEL):
        if not api_key:
            raise ConfigurationError("Gemini API key not configured")
        self.model_name = model_name
        genai.configure(api_key=api_key)
        self.model = genai.GenerativeModel(model_name)

    async def send(
        self,
        history: List[Dict[str, Any]],
        message: str,
        temperature: float,
        max_output_tokens: int,
    ) -> BackendReply:
        """
        Start a chat with the given history and send one message

        Args:
            history: Prior turns in Gemini content format
            message: Outgoing message text
            temperature: Sampling temperature
            max_output_tokens: Cap on generated tokens

        Returns:
            The reply text and token usage

        Raises:
            UpstreamError: if the Gemini call fails for any reason
        """
        debug_logger.log_ai(
            None,
            f"Calling Gemini model {self.model_name} with {len(history)} history turns",
        )
        try:
            chat = self.model.start_chat(history=history)
            response = await chat.send_message_async(
                message,
                generation_config=genai.types.GenerationConfig(
                    temperature=temperature,
                    max_output_tokens=max_output_tokens,
                ),
            )
            text = response.text
        except Exception as e:
            logger.error("Gemini error: %s", e)
            raise UpstreamError(f"Gemini request failed: {e}") from e

        usage = usage_from_metadata(getattr(response, "usage_metadata", None))
        debug_logger.log_ai(
            None,
            f"Token usage - Prompt: {usage.prompt_tokens}, Completion: {usage.completion_tokens}, "
            f"Total: {usage.total_tokens}",
        )
        return BackendReply(text=text, usage=usage)
