"""
API routes for the portfolio backend

Thin translation between HTTP and the chat and contact services. Services are
created by the application factory and read from app.state.
"""

from datetime import datetime, timezone
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from ..analytics import capture_event
from ..config import Settings
from ..models.chat import DEFAULT_SESSION_ID, ChatRequest, ClearHistoryRequest
from ..models.contact import ContactSubmission, RequestMetadata, StatusUpdateRequest
from ..services import ChatService, ContactService, KnowledgeBase
from ..services.knowledge import KnowledgeSection
from ..utils.debug_logger import debug_logger

logger = logging.getLogger(__name__)

router = APIRouter()


def get_settings_state(request: Request) -> Settings:
    return request.app.state.settings


def get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service


def get_contact_service(request: Request) -> ContactService:
    return request.app.state.contact_service


def get_knowledge(request: Request) -> KnowledgeBase:
    return request.app.state.knowledge


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _request_id(request: Request):
    return getattr(request.state, "request_id", None)


def _request_metadata(request: Request) -> RequestMetadata:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip = forwarded.split(",")[0].strip()
    elif request.client:
        ip = request.client.host
    else:
        ip = "unknown"
    return RequestMetadata(ip=ip or "unknown", user_agent=request.headers.get("user-agent") or "unknown")


@router.get("/health")
def health_check(settings: Settings = Depends(get_settings_state)):
    """Health check endpoint for monitoring"""
    return {"status": "ok", "timestamp": _now_iso(), "environment": settings.environment}


@router.get("/healthz")
def healthz():
    return {"status": "healthy", "timestamp": _now_iso()}


@router.post("/api/chat")
async def send_message(
    body: ChatRequest,
    request: Request,
    chat_service: ChatService = Depends(get_chat_service),
):
    """Send a chat message and return the assistant's reply"""
    request_id = _request_id(request)
    session_id = body.session_id or DEFAULT_SESSION_ID
    debug_logger.log_route(request_id, f"Chat request for session {session_id}", request)

    result = await chat_service.chat(body.message, session_id, request_id=request_id, request=request)

    capture_event("chat_message", {
        "text_length": len(body.message),
        "total_tokens": result.usage.total_tokens,
    }, distinct_id=session_id)

    return {
        "success": True,
        "data": {
            "message": result.message,
            "timestamp": _now_iso(),
        },
    }


@router.post("/api/chat/clear")
async def clear_history(
    body: Optional[ClearHistoryRequest] = None,
    chat_service: ChatService = Depends(get_chat_service),
):
    """Forget a chat session's history"""
    session_id = body.session_id if body and body.session_id else DEFAULT_SESSION_ID
    chat_service.clear_history(session_id)
    return {"success": True, "message": "Conversation history cleared"}


@router.post("/api/contact")
async def submit_contact(
    body: ContactSubmission,
    request: Request,
    contact_service: ContactService = Depends(get_contact_service),
):
    """Accept a contact form submission"""
    request_id = _request_id(request)
    metadata = _request_metadata(request)
    logger.info("Contact form submission received from %s", body.email)

    receipt = await contact_service.submit(body, metadata, request_id=request_id, request=request)

    capture_event("contact_submitted", {
        "stored": receipt.id is not None,
        "message_length": len(body.message),
    }, distinct_id=metadata.ip)

    return {
        "success": True,
        "message": "Message received successfully! Check your email for confirmation.",
        "data": {
            "id": receipt.id,
            "timestamp": receipt.created_at.isoformat(),
        },
    }


@router.get("/api/contact")
async def list_contacts(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    contact_service: ContactService = Depends(get_contact_service),
):
    """List contact requests, newest first (admin)"""
    page = await contact_service.list_requests(limit=limit, offset=offset)
    return {
        "success": True,
        "data": [item.model_dump(mode="json") for item in page.items],
        "total": page.total,
        "limit": page.limit,
        "offset": page.offset,
    }


@router.patch("/api/contact/{contact_id}")
async def update_contact_status(
    contact_id: int,
    body: StatusUpdateRequest,
    contact_service: ContactService = Depends(get_contact_service),
):
    """Mark a contact request as read, responded or archived (admin)"""
    if not await contact_service.update_status(contact_id, body.status):
        raise HTTPException(status_code=404, detail="Contact request not found")
    return {"success": True, "message": "Contact status updated"}


def _public_section(section: KnowledgeSection) -> dict:
    return section.model_dump(include={"id", "title", "content"})


@router.get("/api/portfolio")
def list_portfolio_sections(knowledge: KnowledgeBase = Depends(get_knowledge)):
    """Portfolio content as loaded from the knowledge corpus"""
    knowledge.load()
    return {"success": True, "data": [_public_section(s) for s in knowledge.sections]}


@router.get("/api/portfolio/{section_id}")
def get_portfolio_section(section_id: str, knowledge: KnowledgeBase = Depends(get_knowledge)):
    knowledge.load()
    section = knowledge.get_section(section_id)
    if section is None:
        raise HTTPException(status_code=404, detail="Portfolio section not found")
    return {"success": True, "data": _public_section(section)}
