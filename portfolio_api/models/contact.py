"""
Contact-related data models

These models define contact form submissions, stored contact requests
and the admin request/response shapes.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class ContactStatus(str, Enum):
    UNREAD = "unread"
    READ = "read"
    RESPONDED = "responded"
    ARCHIVED = "archived"


class ContactSubmission(BaseModel):
    """Validated contact form input"""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    message: str = Field(min_length=10, max_length=1000)


class RequestMetadata(BaseModel):
    """Where a submission came from"""
    ip: str = "unknown"
    user_agent: str = "unknown"


class ContactReceipt(BaseModel):
    """Outcome of a submission: id is None when the database write failed"""
    id: Optional[int] = None
    created_at: datetime


class ContactRecord(BaseModel):
    """A stored contact request as returned to the admin listing"""
    id: int
    name: str
    email: str
    message: str
    created_at: datetime
    status: ContactStatus = ContactStatus.UNREAD


class ContactPage(BaseModel):
    items: List[ContactRecord]
    total: int
    limit: int
    offset: int


class StatusUpdateRequest(BaseModel):
    """Request model for PATCH /api/contact/{id}"""
    status: ContactStatus
