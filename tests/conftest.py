"""
Pytest configuration and shared fixtures for portfolio API tests.
"""

import asyncio
import json
import os
from unittest.mock import AsyncMock, Mock, patch

import pytest

from portfolio_api.config import Settings
from portfolio_api.models.chat import TokenUsage
from portfolio_api.models.contact import ContactSubmission, RequestMetadata
from portfolio_api.services.ai_service import BackendReply
from portfolio_api.services.email_service import EmailService
from portfolio_api.services.knowledge import KnowledgeBase


class FakeBackend:
    """Records every call and answers with canned replies"""

    def __init__(self, replies=None, error=None, yield_control=False):
        self.calls = []
        self.replies = list(replies or [])
        self.error = error
        self.yield_control = yield_control

    async def send(self, history, message, temperature, max_output_tokens):
        self.calls.append({
            "history": [dict(item) for item in history],
            "message": message,
            "temperature": temperature,
            "max_output_tokens": max_output_tokens,
        })
        if self.yield_control:
            await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        text = self.replies.pop(0) if self.replies else f"Reply {len(self.calls)}"
        return BackendReply(text=text, usage=TokenUsage(prompt_tokens=12, completion_tokens=8, total_tokens=20))


@pytest.fixture
def test_settings():
    """Create test settings with environment variables for testing."""
    test_env = {
        "ENVIRONMENT": "development",
        "GEMINI_API_KEY": "",
        "OWNER_NAME": "Jane Developer",
        "DATABASE_URL": "",
        "DB_HOST": "",
        "CONTACT_SENDER_EMAIL": "noreply@example.com",
        "CONTACT_OWNER_EMAIL": "owner@example.com",
        "FRONTEND_URL": "https://janedeveloper.dev",
        "DEBUG_LOGGING_DEV": "false",
        "DEBUG_LOGGING_PROD": "false",
    }

    with patch.dict(os.environ, test_env):
        yield Settings()


@pytest.fixture
def knowledge_file(tmp_path):
    """Write a small knowledge corpus and return its path."""
    corpus = {
        "sections": [
            {
                "id": "about",
                "title": "About",
                "keywords": ["about", "who"],
                "content": "A backend engineer who enjoys building APIs.",
            },
            {
                "id": "skills",
                "title": "Skills",
                "keywords": ["skills", "python", "stack"],
                "content": "Python, FastAPI, PostgreSQL and AWS.",
            },
            {
                "id": "projects",
                "title": "Projects",
                "keywords": ["projects", "built", "side project"],
                "content": "A task board and an OpenAPI client generator.",
            },
            {
                "id": "contact",
                "title": "Contact",
                "keywords": ["contact", "hire", "available"],
                "content": "Use the contact form to get in touch.",
            },
        ]
    }
    path = tmp_path / "knowledge.json"
    path.write_text(json.dumps(corpus), encoding="utf-8")
    return path


@pytest.fixture
def knowledge(knowledge_file):
    return KnowledgeBase(str(knowledge_file), owner="Jane Developer")


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def sample_submission():
    return ContactSubmission(
        name="Jane Doe",
        email="jane@example.com",
        message="Hello, I'd like to get in touch regarding a project.",
    )


@pytest.fixture
def sample_metadata():
    return RequestMetadata(ip="203.0.113.7", user_agent="pytest-agent/1.0")


@pytest.fixture
def mock_email_service():
    """EmailService double whose sends succeed."""
    service = Mock(spec=EmailService)
    service.send_to_visitor = AsyncMock(return_value="msg-visitor")
    service.send_to_owner = AsyncMock(return_value="msg-owner")
    return service


@pytest.fixture
def mock_repository():
    """ContactRepository double with async methods."""
    repository = Mock()
    repository.insert = AsyncMock()
    repository.list_recent = AsyncMock(return_value=[])
    repository.count = AsyncMock(return_value=0)
    repository.update_status = AsyncMock(return_value=True)
    repository.init_schema = AsyncMock()
    repository.dispose = AsyncMock()
    return repository
