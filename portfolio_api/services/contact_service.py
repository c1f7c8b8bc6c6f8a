"""
Contact Service

Handles contact form submissions. Notification emails go out first, as one
concurrent pair; storing the submission comes second and is best-effort.
Neither stage can fail the submission once input validation has passed.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from ..database import ContactRepository
from ..errors import ConfigurationError, PersistenceError
from ..models.contact import (
    ContactPage,
    ContactReceipt,
    ContactStatus,
    ContactSubmission,
    RequestMetadata,
)
from ..utils.debug_logger import debug_logger
from .email_service import EmailService

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50


class ContactService:
    """Service for contact form intake and admin queries"""

    def __init__(self, email_service: EmailService, repository: Optional[ContactRepository] = None):
        self.email_service = email_service
        self.repository = repository

    async def submit(
        self,
        submission: ContactSubmission,
        metadata: RequestMetadata,
        request_id: Optional[str] = None,
        request: Optional[Any] = None,
    ) -> ContactReceipt:
        """
        Notify by email, then try to store the submission

        Args:
            submission: Validated form input
            metadata: Client IP and user agent
            request_id: Optional request identifier for tracing
            request: Optional FastAPI request object for timing

        Returns:
            Receipt with the database id, or id None and the request time when
            the submission could not be stored
        """
        received_at = datetime.now(timezone.utc)

        debug_logger.log_contact(request_id, "Sending notification emails", request)
        emails_sent = await self._send_notifications(submission, metadata)
        debug_logger.log_contact(request_id, f"Notification emails sent: {emails_sent}", request)

        contact_id = None
        created_at = received_at
        try:
            contact_id, created_at = await self._store(submission, metadata)
            logger.info("Contact request saved (ID: %s)", contact_id)
        except (PersistenceError, ConfigurationError) as e:
            logger.warning("Database save failed (non-critical): %s", e.message)

        return ContactReceipt(id=contact_id, created_at=created_at)

    async def _send_notifications(self, submission: ContactSubmission, metadata: RequestMetadata) -> bool:
        results = await asyncio.gather(
            self.email_service.send_to_visitor(submission.name, str(submission.email)),
            self.email_service.send_to_owner(
                submission.name, str(submission.email), submission.message, metadata
            ),
            return_exceptions=True,
        )
        failed = False
        for label, result in zip(("visitor", "owner"), results):
            if isinstance(result, Exception):
                failed = True
                logger.error("Email to %s failed: %s", label, result)
        return not failed

    async def _store(self, submission: ContactSubmission, metadata: RequestMetadata):
        repository = self._require_repository()
        return await repository.insert(submission, metadata)

    async def list_requests(self, limit: int = DEFAULT_PAGE_SIZE, offset: int = 0) -> ContactPage:
        """Newest contact requests first, with the overall total"""
        repository = self._require_repository()
        items = await repository.list_recent(limit, offset)
        total = await repository.count()
        return ContactPage(items=items, total=total, limit=limit, offset=offset)

    async def update_status(self, contact_id: int, status: ContactStatus) -> bool:
        """Change a request's status. Returns False for an unknown id."""
        repository = self._require_repository()
        updated = await repository.update_status(contact_id, status)
        if updated:
            logger.info("Contact request %s marked %s", contact_id, status.value)
        return updated

    def _require_repository(self) -> ContactRepository:
        if self.repository is None:
            raise ConfigurationError("Database not configured")
        return self.repository
