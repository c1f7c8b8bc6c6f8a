"""
Error taxonomy for the portfolio API

Each error carries the HTTP status the web layer maps it to.
"""


class PortfolioError(Exception):
    """Base class for application errors"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PortfolioError):
    """User input is malformed"""

    status_code = 400


class ConfigurationError(PortfolioError):
    """A required credential or setting is missing, so the feature is disabled"""

    status_code = 503


class UpstreamError(PortfolioError):
    """The generative AI backend call failed"""

    status_code = 502


class PersistenceError(PortfolioError):
    """A database operation failed"""

    status_code = 500
