"""Portfolio backend: contact form intake and AI chat assistant."""

__version__ = "1.0.0"
