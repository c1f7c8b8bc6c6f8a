"""
PostHog Analytics Client for the portfolio API

This module provides PostHog integration with lazy initialization.
Only initializes when running in the AWS Lambda production environment.
"""

import os
import logging
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)

# Global PostHog client instance (lazy initialized)
_posthog_client: Optional[Any] = None
_initialized = False


def _is_lambda_environment() -> bool:
    return bool(os.getenv("AWS_EXECUTION_ENV"))


def _is_test_environment() -> bool:
    return os.getenv("PYTEST_CURRENT_TEST") is not None


def _initialize_posthog() -> Optional[Any]:
    """
    Initialize PostHog client if running in Lambda environment.

    Returns:
        PostHog module configured for sending, or None if disabled
    """
    if not _is_lambda_environment():
        logger.info("PostHog disabled: Not running in AWS Lambda environment")
        return None

    api_key = os.getenv("POSTHOG_API_KEY")
    if not api_key:
        logger.warning("PostHog disabled: POSTHOG_API_KEY environment variable not set")
        return None

    try:
        import posthog

        posthog.api_key = api_key
        posthog.host = os.getenv("POSTHOG_HOST", "https://app.posthog.com")
        posthog.sync_mode = True  # Lambda may freeze before a background flush
        posthog.debug = os.getenv("DEBUG_LOGGING", "false").lower() == "true"

        logger.info("PostHog client initialized: host=%s", posthog.host)
        return posthog
    except Exception as e:
        logger.error(f"PostHog initialization failed: {e}")
        return None


def get_posthog_client() -> Optional[Any]:
    """Get PostHog client instance with lazy initialization."""
    global _posthog_client, _initialized

    if not _initialized:
        _posthog_client = _initialize_posthog()
        _initialized = True

    return _posthog_client


def capture_event(event_name: str, properties: Optional[Dict[str, Any]] = None, distinct_id: Optional[str] = None) -> bool:
    """
    Safely capture an event with PostHog.

    Args:
        event_name: Name of the event to capture
        properties: Optional event properties dictionary
        distinct_id: Optional distinct user ID (defaults to 'anonymous')

    Returns:
        bool: True if event was captured successfully, False otherwise
    """
    if _is_test_environment():
        return False

    client = get_posthog_client()
    if not client:
        logger.debug(f"PostHog disabled: Event '{event_name}' not captured")
        return False

    try:
        event_properties = dict(properties or {})
        event_properties.update({
            "lambda_function": os.getenv("AWS_LAMBDA_FUNCTION_NAME", "unknown"),
            "aws_region": os.getenv("AWS_REGION", "unknown"),
        })
        client.capture(
            distinct_id=distinct_id or "anonymous",
            event=event_name,
            properties=event_properties
        )
        return True
    except Exception as e:
        logger.error(f"Failed to capture PostHog event '{event_name}': {e}")
        return False

