"""
Debug logging utility with timing support

Provides centralized debug logging with request timing and consistent formatting.
"""

import time
import os
from typing import Optional, Any
from fastapi import Request


class DebugLogger:
    """Centralized debug logging with timing support"""

    def __init__(self):
        # Check if we're running in Lambda (production) or locally (development)
        is_lambda = os.getenv("AWS_LAMBDA_FUNCTION_NAME") is not None

        if is_lambda:
            self.debug_enabled = os.getenv("DEBUG_LOGGING_PROD", "false").lower() == "true"
        else:
            self.debug_enabled = os.getenv("DEBUG_LOGGING_DEV", "false").lower() == "true"

    def log(self,
            request_id: Optional[str],
            service: str,
            message: str,
            request: Optional[Request] = None,
            **kwargs: Any) -> None:
        """
        Log a debug message with optional timing information

        Args:
            request_id: Unique request identifier (or session id outside a request)
            service: Component name (e.g., 'ROUTE', 'CHAT', 'CONTACT')
            message: Debug message
            request: FastAPI request object for timing
            **kwargs: Additional context to include in log
        """
        if not self.debug_enabled:
            return

        elapsed_seconds = None
        if request is not None and hasattr(request.state, 'start_time'):
            elapsed_seconds = f"{time.perf_counter() - request.state.start_time:.3f}s"

        timing_part = f" [{elapsed_seconds}]" if elapsed_seconds else ""
        context_part = f" [{request_id}]" if request_id else ""

        context_str = ""
        if kwargs:
            context_str = " " + " ".join(f"{k}={v}" for k, v in kwargs.items())

        # Format: [DEBUG] [service] [timing] [request_id] message [context]
        print(f"[DEBUG] [{service}]{timing_part}{context_part} {message}{context_str}")

    def log_route(self, request_id: Optional[str], message: str, request: Optional[Request] = None, **kwargs):
        """Log a route-related debug message"""
        self.log(request_id, "ROUTE", message, request, **kwargs)

    def log_chat(self, request_id: Optional[str], message: str, request: Optional[Request] = None, **kwargs):
        """Log a chat orchestrator debug message"""
        self.log(request_id, "CHAT", message, request, **kwargs)

    def log_ai(self, request_id: Optional[str], message: str, request: Optional[Request] = None, **kwargs):
        """Log an AI backend debug message"""
        self.log(request_id, "AI", message, request, **kwargs)

    def log_knowledge(self, request_id: Optional[str], message: str, request: Optional[Request] = None, **kwargs):
        """Log a knowledge provider debug message"""
        self.log(request_id, "KB", message, request, **kwargs)

    def log_contact(self, request_id: Optional[str], message: str, request: Optional[Request] = None, **kwargs):
        """Log a contact intake debug message"""
        self.log(request_id, "CONTACT", message, request, **kwargs)

    def log_timing(self, request_id: Optional[str], operation: str, duration_ms: float, **kwargs):
        """Log a specific timing measurement"""
        self.log(request_id, "TIMING", f"{operation} completed in {duration_ms:.3f}ms", **kwargs)


# Global debug logger instance
debug_logger = DebugLogger()
