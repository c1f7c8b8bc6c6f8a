"""
Data models for the portfolio API

This module contains all Pydantic models for data validation and serialization.
"""

from .chat import (
    DEFAULT_SESSION_ID,
    ChatRequest,
    ChatResult,
    ChatTurn,
    ClearHistoryRequest,
    Role,
    TokenUsage,
)
from .contact import (
    ContactPage,
    ContactReceipt,
    ContactRecord,
    ContactStatus,
    ContactSubmission,
    RequestMetadata,
    StatusUpdateRequest,
)

__all__ = [
    "DEFAULT_SESSION_ID",
    "ChatRequest",
    "ChatResult",
    "ChatTurn",
    "ClearHistoryRequest",
    "Role",
    "TokenUsage",
    "ContactPage",
    "ContactReceipt",
    "ContactRecord",
    "ContactStatus",
    "ContactSubmission",
    "RequestMetadata",
    "StatusUpdateRequest",
]
