"""
Services layer for the portfolio API

This module contains the business logic services: chat orchestration with
its session memory and knowledge context, and contact form intake.
"""

from .ai_service import ChatBackend, GeminiBackend
from .chat_service import ChatService
from .contact_service import ContactService
from .email_service import EmailService
from .knowledge import KnowledgeBase
from .session_store import SessionStore

__all__ = [
    "ChatBackend",
    "GeminiBackend",
    "ChatService",
    "ContactService",
    "EmailService",
    "KnowledgeBase",
    "SessionStore",
]
