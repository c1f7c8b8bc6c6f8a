"""
Chat-related data models

These models define chat turns, API requests and orchestrator results.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_SESSION_ID = "default"


class Role(str, Enum):
    """Speaker of a chat turn"""
    USER = "user"
    ASSISTANT = "assistant"


class ChatTurn(BaseModel):
    """One message in a conversation"""
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str


class TokenUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatResult(BaseModel):
    """Normalized response from the chat orchestrator"""
    message: str
    usage: TokenUsage = Field(default_factory=TokenUsage)


class ChatRequest(BaseModel):
    """Request model for POST /api/chat"""
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(min_length=1, max_length=1000)
    session_id: Optional[str] = Field(default=None, alias="sessionId")


class ClearHistoryRequest(BaseModel):
    """Request model for POST /api/chat/clear"""
    model_config = ConfigDict(populate_by_name=True)

    session_id: Optional[str] = Field(default=None, alias="sessionId")
