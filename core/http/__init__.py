"""
HTTP Client Module

Session-backed HTTP client used for JSON-RPC chain access.
"""

from .client import HttpClient, HttpError, HttpResponse

__all__ = [
    "HttpClient",
    "HttpError",
    "HttpResponse",
]
