"""
Error taxonomy shared by repositories, gateways and routes

Every error carries the HTTP status it maps to; the application's exception
handlers render them as ErrorResponse payloads.
"""
from typing import Optional


class SupportLabError(Exception):
    """Base class for all service errors"""

    status_code: int = 500
    error: str = "Internal Server Error"

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        # Internal detail (raw driver/SDK text); only exposed in development
        self.detail = detail


class InvalidInput(SupportLabError):
    """Caller-fixable validation failure"""

    status_code = 400
    error = "Bad Request"


class NotFound(SupportLabError):
    status_code = 404
    error = "Not Found"


class StoreFailure(SupportLabError):
    """Statement or connection failure in the relational store"""

    status_code = 500
    error = "Internal Server Error"

    def __init__(self, message: str, statement: str = "", detail: Optional[str] = None):
        super().__init__(message, detail)
        self.statement = statement


class Unavailable(SupportLabError):
    """Optional dependency is not configured"""

    status_code = 503
    error = "Service Unavailable"


class ProbeTimeout(SupportLabError):
    """Outbound call exceeded its bounded wait"""

    status_code = 504
    error = "Gateway Timeout"


class NetworkFailure(SupportLabError):
    """Outbound call failed for a reason other than timeout"""

    status_code = 502
    error = "Bad Gateway"
