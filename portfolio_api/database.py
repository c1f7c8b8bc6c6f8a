"""
Contact request persistence

Async PostgreSQL access through SQLAlchemy Core over asyncpg. Every
SQLAlchemy failure is re-raised as PersistenceError.
"""

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    func,
    insert,
    select,
    update,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from .config import Settings
from .errors import PersistenceError
from .models.contact import ContactRecord, ContactStatus, ContactSubmission, RequestMetadata

logger = logging.getLogger(__name__)

# Connection failures from asyncpg can surface as OSError rather than being wrapped
DATABASE_ERRORS = (SQLAlchemyError, OSError)

metadata = MetaData()

contact_requests = Table(
    "contact_requests",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(100), nullable=False),
    Column("email", String(255), nullable=False),
    Column("message", Text, nullable=False),
    Column("ip_address", String(64)),
    Column("user_agent", Text),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("status", String(20), nullable=False, server_default=ContactStatus.UNREAD.value),
)


class ContactRepository:
    """Reads and writes the contact_requests table"""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["ContactRepository"]:
        """Build a repository, or return None when no database is configured"""
        url = settings.sqlalchemy_url
        if not url:
            logger.warning("Database not configured - contact requests will not be stored")
            return None
        return cls(create_async_engine(url, pool_pre_ping=True))

    async def init_schema(self) -> None:
        """Create the contact_requests table if it does not exist"""
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(metadata.create_all)
        except DATABASE_ERRORS as e:
            raise PersistenceError(f"Database initialization failed: {e}") from e
        logger.info("Database schema ready")

    async def insert(self, submission: ContactSubmission, request_metadata: RequestMetadata) -> Tuple[int, datetime]:
        stmt = (
            insert(contact_requests)
            .values(
                name=submission.name,
                email=str(submission.email),
                message=submission.message,
                ip_address=request_metadata.ip,
                user_agent=request_metadata.user_agent,
            )
            .returning(contact_requests.c.id, contact_requests.c.created_at)
        )
        try:
            async with self.engine.begin() as conn:
                row = (await conn.execute(stmt)).one()
        except DATABASE_ERRORS as e:
            raise PersistenceError(f"Failed to save contact request: {e}") from e
        return row.id, row.created_at

    async def list_recent(self, limit: int, offset: int) -> List[ContactRecord]:
        stmt = (
            select(
                contact_requests.c.id,
                contact_requests.c.name,
                contact_requests.c.email,
                contact_requests.c.message,
                contact_requests.c.created_at,
                contact_requests.c.status,
            )
            .order_by(contact_requests.c.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        try:
            async with self.engine.connect() as conn:
                rows = (await conn.execute(stmt)).mappings().all()
        except DATABASE_ERRORS as e:
            raise PersistenceError(f"Failed to list contact requests: {e}") from e
        return [ContactRecord.model_validate(dict(row)) for row in rows]

    async def count(self) -> int:
        try:
            async with self.engine.connect() as conn:
                return (await conn.execute(select(func.count()).select_from(contact_requests))).scalar_one()
        except DATABASE_ERRORS as e:
            raise PersistenceError(f"Failed to count contact requests: {e}") from e

    async def update_status(self, contact_id: int, status: ContactStatus) -> bool:
        """Set a request's status. Returns False when no row has that id."""
        stmt = (
            update(contact_requests)
            .where(contact_requests.c.id == contact_id)
            .values(status=status.value)
        )
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(stmt)
        except DATABASE_ERRORS as e:
            raise PersistenceError(f"Failed to update contact request {contact_id}: {e}") from e
        return result.rowcount > 0

    async def dispose(self) -> None:
        await self.engine.dispose()
