"""Standardized response dicts returned by the MCP tools."""

import json

from .config import CHARACTER_LIMIT
from .errors import BridgeError


def truncate_response(text: str, limit: int = CHARACTER_LIMIT) -> str:
    """Truncate response if it exceeds character limit"""
    if len(text) <= limit:
        return text

    truncated = text[:limit - 100]  # Leave room for truncation message
    return f"{truncated}\n\n... [Response truncated. Original length: {len(text)} characters, showing first {limit - 100} characters]"


def format_response(data: dict) -> str:
    """Serialize a tool result as JSON, truncated to the character limit"""
    return truncate_response(json.dumps(data, indent=2, default=str))


def create_success_response(message: str = "", **payload) -> dict:
    """Create a standardized success response."""
    response = {"success": True, "status": 200}
    if message:
        response["message"] = message
    response.update(payload)
    return response


def create_error_response(
    error_message: str,
    suggestion: str = "",
    error_code: str = "",
    details: dict = None,
    status: int = 500
) -> dict:
    """
    Create a standardized, actionable error response.

    Args:
        error_message: Clear description of what went wrong
        suggestion: Actionable suggestion for how to fix it
        error_code: Machine-readable error code (e.g., "NOT_FOUND", "VALIDATION_FAILED")
        details: Additional context/details
        status: HTTP-style status code for the failure

    Returns:
        Standardized error response dict
    """
    response = {
        "success": False,
        "status": status,
        "error": error_message
    }

    if suggestion:
        response["error"] = f"{error_message}. {suggestion}"

    if error_code:
        response["error_code"] = error_code

    if details:
        response["details"] = details

    return response


def error_response_from_exception(exc: BridgeError) -> dict:
    """Convert a bridge error into its standardized response."""
    return create_error_response(
        error_message=exc.message,
        suggestion=exc.suggestion,
        error_code=exc.error_code,
        details=exc.details,
        status=exc.status_code
    )


# Common error templates
ERROR_TEMPLATES = {
    "no_auth": {
        "message": "No ClickUp credential available",
        "suggestion": "Set CLICKUP_API_TOKEN, or complete the OAuth flow so an access token is stored",
        "code": "AUTH_MISSING",
        "status": 401
    },
    "team_required": {
        "message": "Team ID is required",
        "suggestion": "Pass team_id, or set CLICKUP_TEAM_ID. Use list_teams() to see available teams",
        "code": "MISSING_TEAM_ID",
        "status": 400
    },
    "space_required": {
        "message": "Space ID is required",
        "suggestion": "Use list_spaces(team_id='...') to find a space ID",
        "code": "MISSING_SPACE_ID",
        "status": 400
    },
    "scope_required": {
        "message": "Exactly one of folder_id or space_id is required",
        "suggestion": "Use list_folders(space_id='...') to find a folder ID",
        "code": "MISSING_SCOPE",
        "status": 400
    },
    "text_required": {
        "message": "Instruction text is required",
        "suggestion": "Describe the task, e.g. 'crea una tarea en clientes, revisar propuesta, urgente'",
        "code": "MISSING_TEXT",
        "status": 400
    },
    "query_required": {
        "message": "Search query is required and must be at least 1 character",
        "suggestion": "Provide part of a username or email, e.g. find_users(query='juan')",
        "code": "INVALID_QUERY",
        "status": 400
    }
}


def get_error_response(template_key: str, **kwargs) -> dict:
    """Get a standardized error response from a template."""
    template = ERROR_TEMPLATES.get(template_key, {})
    return create_error_response(
        error_message=template.get("message", "An error occurred"),
        suggestion=template.get("suggestion", ""),
        error_code=template.get("code", ""),
        details=kwargs,
        status=template.get("status", 500)
    )
