"""
Analytics module for the portfolio API

Thin interface over PostHog; events are only sent from the Lambda environment.
"""

from .posthog_client import capture_event, get_posthog_client

__all__ = ["capture_event", "get_posthog_client"]
