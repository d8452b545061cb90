"""
Error taxonomy for the ClickUp bridge.

Each error carries the status code the caller receives, a machine-readable
error code and a details dict. Tool handlers turn them into standardized
error responses (see responses.error_response_from_exception).
"""

from typing import Optional


class BridgeError(Exception):
    """Base class for all errors surfaced to callers"""

    status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str, suggestion: str = "", details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}


class ValidationError(BridgeError):
    """Missing or malformed caller input, raised before any remote call"""

    status_code = 400
    error_code = "VALIDATION_FAILED"


class ResolutionError(BridgeError):
    """A required entity could not be found after exhausting its cascade"""

    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, target: str, message: str, attempts: list, suggestion: str = ""):
        super().__init__(
            message,
            suggestion,
            {"target": target, "attempts": [a.model_dump(mode="json") for a in attempts]},
        )
        self.target = target
        self.attempts = attempts


class UpstreamError(BridgeError):
    """The ClickUp API rejected or failed a call; status and body are kept"""

    error_code = "API_ERROR"

    def __init__(self, status_code: int, body, message: str = "", suggestion: str = ""):
        super().__init__(
            message or f"ClickUp API error: HTTP {status_code}",
            suggestion,
            {"http_status": status_code, "response": body},
        )
        self.status_code = status_code
        self.body = body


class ResultTooLargeError(UpstreamError):
    """The ClickUp API refused to return a result set because it is too large"""

    error_code = "RESULT_TOO_LARGE"

    def __init__(self, body, suggestions: list):
        super().__init__(
            413,
            body,
            "Result set too large to return",
            "Narrow the request with more specific filter terms",
        )
        self.suggestions = suggestions
        self.details["suggestions"] = suggestions


class InternalError(BridgeError):
    """Unexpected failure inside the bridge"""
