"""
Error types shared by the resolution core and its collaborators.
"""
from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    """Error kinds surfaced by the public lookup operations."""
    NOT_FOUND = "NOT_FOUND"
    MULTIPLE_RESULTS = "MULTIPLE_RESULTS"
    API_ERROR = "API_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class EatsafeError(Exception):
    """Base exception for all eatsafe errors."""


class ApiError(EatsafeError):
    """
    A named collaborator (registry, violation source, map provider) failed.

    Args:
        message (str): Error description from the collaborator.
        code (str): Machine-readable code, e.g. "TIMEOUT", "HTTP_ERROR", "INFO-300".
        source (str): Collaborator name, e.g. "food_safety", "kakao".
        status (Optional[int]): HTTP status if the failure came from a response.
    """

    def __init__(self, message: str, code: str, source: str, status: Optional[int] = None):
        self.message = message
        self.code = code
        self.source = source
        self.status = status
        super().__init__(message)

    def __str__(self) -> str:
        return f"[{self.source}] {self.message} ({self.code})"


class InvalidQueryError(EatsafeError, ValueError):
    """Name or region is empty after normalization."""


class InvalidRequestError(EatsafeError, ValueError):
    """Compare/recommend arguments are outside their allowed ranges."""


# Registry result codes
INFO_OK = "INFO-000"
INFO_NO_DATA = "INFO-200"

# Transport codes
HTTP_ERROR = "HTTP_ERROR"
TIMEOUT = "TIMEOUT"
NETWORK_ERROR = "NETWORK_ERROR"
NO_API_KEY = "NO_API_KEY"
