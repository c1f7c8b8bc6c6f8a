"""
Portfolio API FastAPI Application

This is the main FastAPI application entry point.
It wires the services, middleware, error handlers and routes together.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, get_settings
from .database import ContactRepository
from .errors import ConfigurationError, PersistenceError, PortfolioError
from .middleware.cors import CORSPolicyMiddleware
from .middleware.security import SecurityHeadersMiddleware
from .middleware.timing import TimingMiddleware
from .services import ChatService, ContactService, EmailService, KnowledgeBase
from .web.routes import router

logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s %(name)s - %(message)s")
logger = logging.getLogger(__name__)


def format_validation_error(exc: RequestValidationError) -> str:
    """First validation problem as a single readable message"""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = next((str(part) for part in reversed(first.get("loc", ())) if isinstance(part, str) and part != "body"), None)
    message = first.get("msg", "Invalid value")
    return f"{field}: {message}" if field else message


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize services on startup and release them on shutdown"""
    logger.info("Initializing services...")
    try:
        app.state.knowledge.load()
    except ConfigurationError as e:
        logger.error("Knowledge corpus unavailable: %s", e.message)

    app.state.email_service.initialize()

    repository: Optional[ContactRepository] = app.state.contact_service.repository
    if repository is not None:
        try:
            await repository.init_schema()
        except PersistenceError as e:
            logger.error("Service initialization error: %s", e.message)

    logger.info("Environment: %s", app.state.settings.environment)
    logger.info("Allowing CORS from: All Vercel URLs + %s", app.state.settings.frontend_url or "localhost")
    yield

    if repository is not None:
        await repository.dispose()


def create_app(
    settings: Optional[Settings] = None,
    chat_service: Optional[ChatService] = None,
    contact_service: Optional[ContactService] = None,
) -> FastAPI:
    """
    Build the FastAPI application

    Args:
        settings: Configuration, read from the environment when omitted
        chat_service: Pre-built chat service (tests inject fakes here)
        contact_service: Pre-built contact service

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()

    if chat_service is None:
        knowledge = KnowledgeBase(
            settings.knowledge_file,
            owner=settings.owner_name,
            max_chars=settings.knowledge_max_chars,
            prompt_template=settings.system_prompt_template,
        )
        chat_service = ChatService(settings, knowledge)

    if contact_service is None:
        contact_service = ContactService(EmailService(settings), ContactRepository.from_settings(settings))

    app = FastAPI(
        title="Portfolio API",
        version="1.0.0",
        description="Contact form intake and AI chat assistant for a portfolio site",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.chat_service = chat_service
    app.state.knowledge = chat_service.knowledge
    app.state.contact_service = contact_service
    app.state.email_service = contact_service.email_service

    app.add_middleware(TimingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    # Added last so it runs first and rejects foreign origins before any other work
    app.add_middleware(CORSPolicyMiddleware, frontend_url=settings.frontend_url)

    register_exception_handlers(app)
    app.include_router(router)
    return app


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        error = format_validation_error(exc)
        logger.warning("Validation error on %s: %s", request.url.path, error)
        return JSONResponse(status_code=400, content={"success": False, "error": error})

    @app.exception_handler(PortfolioError)
    async def portfolio_error_handler(request: Request, exc: PortfolioError):
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found":
            return JSONResponse(status_code=404, content={"error": "Route not found", "path": request.url.path})
        return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.detail})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})


app = create_app()
