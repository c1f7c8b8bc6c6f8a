import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load environment variables from .env file
load_dotenv()

DEFAULT_KNOWLEDGE_FILE = str(Path(__file__).parent / "data" / "knowledge.json")


class Settings(BaseModel):
    environment: str = Field(default_factory=lambda: os.getenv("ENVIRONMENT", "development"))
    port: int = Field(default_factory=lambda: int(os.getenv("PORT", "8080")))

    # Chat
    gemini_api_key: Optional[str] = Field(default_factory=lambda: os.getenv("GEMINI_API_KEY") or None)
    gemini_model: str = Field(default_factory=lambda: os.getenv("GEMINI_MODEL", "gemini-2.5-flash"))
    chat_max_sessions: int = Field(default_factory=lambda: int(os.getenv("CHAT_MAX_SESSIONS", "1000")))
    owner_name: str = Field(default_factory=lambda: os.getenv("OWNER_NAME", "the portfolio owner"))
    knowledge_file: str = Field(default_factory=lambda: os.getenv("KNOWLEDGE_FILE", DEFAULT_KNOWLEDGE_FILE))
    knowledge_max_chars: int = Field(default_factory=lambda: int(os.getenv("KNOWLEDGE_MAX_CHARS", "3000")))
    system_prompt_template: Optional[str] = Field(default_factory=lambda: os.getenv("SYSTEM_PROMPT_TEMPLATE") or None)

    # Database
    database_url: Optional[str] = Field(default_factory=lambda: os.getenv("DATABASE_URL") or None)
    db_host: Optional[str] = Field(default_factory=lambda: os.getenv("DB_HOST") or None)
    db_port: int = Field(default_factory=lambda: int(os.getenv("DB_PORT", "5432")))
    db_user: Optional[str] = Field(default_factory=lambda: os.getenv("DB_USER") or None)
    db_password: Optional[str] = Field(default_factory=lambda: os.getenv("DB_PASSWORD") or None)
    db_name: Optional[str] = Field(default_factory=lambda: os.getenv("DB_NAME") or None)

    # Email (Amazon SES)
    aws_region: str = Field(default_factory=lambda: os.getenv("AWS_REGION", "us-east-1"))
    contact_sender_email: Optional[str] = Field(default_factory=lambda: os.getenv("CONTACT_SENDER_EMAIL") or None)
    contact_owner_email: Optional[str] = Field(default_factory=lambda: os.getenv("CONTACT_OWNER_EMAIL") or None)

    # CORS
    frontend_url: Optional[str] = Field(default_factory=lambda: os.getenv("FRONTEND_URL") or None)

    @property
    def chat_enabled(self) -> bool:
        return bool(self.gemini_api_key)

    @property
    def sqlalchemy_url(self) -> Optional[str]:
        """Async SQLAlchemy URL, or None when no database is configured."""
        if self.database_url:
            url = self.database_url
            if url.startswith("postgres://"):
                url = "postgresql://" + url[len("postgres://"):]
            if url.startswith("postgresql://"):
                url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
            return url
        if self.db_host and self.db_name:
            credentials = self.db_user or ""
            if self.db_password:
                credentials += f":{self.db_password}"
            if credentials:
                credentials += "@"
            return f"postgresql+asyncpg://{credentials}{self.db_host}:{self.db_port}/{self.db_name}"
        return None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
