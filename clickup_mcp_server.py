#!/usr/bin/env python3
"""
ClickUp MCP Server
Creates ClickUp tasks from structured or free-text requests, resolving
space, folder, list and assignee names to ClickUp IDs before submission.
"""

import asyncio
import json
import logging
import os
import time
from datetime import datetime
from pathlib import Path

from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from clickup_bridge import __version__, config, synthesizer
from clickup_bridge.aliases import normalize
from clickup_bridge.client import ClickUpClient
from clickup_bridge.credentials import current_credential
from clickup_bridge.errors import BridgeError, InternalError, ValidationError
from clickup_bridge.extractor import extract
from clickup_bridge.models import TaskRequest
from clickup_bridge.resolver import ListingSource, find, match_users, summarize
from clickup_bridge.responses import (
    create_error_response,
    create_success_response,
    error_response_from_exception,
    format_response,
    get_error_response,
)

logger = logging.getLogger(__name__)

# Swapped out in tests to point the client at a fake transport
client_factory = ClickUpClient


def cleanup_old_logs(log_dir, days_old=30):
    """Remove log files older than specified days. If days_old=0, delete all logs."""
    try:
        log_path = Path(log_dir)
        if not log_path.exists():
            return

        cutoff_time = time.time() - (days_old * 24 * 60 * 60)
        deleted_count = 0
        for log_file in log_path.glob("*.log"):
            if days_old == 0 or log_file.stat().st_mtime < cutoff_time:
                log_file.unlink()
                deleted_count += 1

        if deleted_count > 0:
            print(f"🧹 Removed {deleted_count} log files from {log_dir}")
    except OSError as e:
        print(f"⚠️ Log cleanup failed: {e}")


def setup_logging(log_dir: str = config.LOG_DIR, retention_days: int = config.LOG_RETENTION_DAYS) -> str:
    """Log to a timestamped file under log_dir and to the console."""
    os.makedirs(log_dir, exist_ok=True)
    cleanup_old_logs(log_dir, days_old=retention_days)

    log_file = os.path.join(log_dir, f"mcp_server_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log")
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(name)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )
    return log_file


def _failure(exc: Exception, action: str) -> dict:
    """Standardized error response for an exception raised by a tool."""
    if isinstance(exc, BridgeError):
        logger.warning(f"{action} failed: HTTP {exc.status_code} {exc.error_code} - {exc.message}")
        return error_response_from_exception(exc)
    logger.exception(f"Unexpected failure during {action}")
    return error_response_from_exception(
        InternalError(f"Failed to {action}: {str(exc)}", "Check the server log for details")
    )


async def create_task(**arguments) -> dict:
    """Create a task from explicit fields and/or a free-text instruction"""
    logger.info(f"create_task called - {arguments}")

    if not current_credential():
        return get_error_response("no_auth")

    try:
        async with client_factory() as client:
            result = await synthesizer.create_task(arguments, client)
        task = result["task"]
        return create_success_response(
            f"Task '{task.get('name')}' created in list '{result['resolution']['list']['entity']['name']}'",
            task_id=task.get("id"),
            task=task,
            resolution=result["resolution"]
        )
    except Exception as e:
        return _failure(e, "create task")


async def create_task_from_text(text: str = "", **overrides) -> dict:
    """Create a task from a free-text instruction; explicit fields override what is extracted"""
    if not text or not text.strip():
        return get_error_response("text_required")
    return await create_task(text=text, **overrides)


async def extract_task_command(text: str = "", **overrides) -> dict:
    """Show what a free-text instruction resolves to without calling ClickUp"""
    logger.info(f"extract_task_command called - text='{text}'")

    if not text or not text.strip():
        return get_error_response("text_required")

    try:
        extracted = extract(text)
        command = synthesizer.merge({**overrides, "text": text}, extracted)
        missing = []
        try:
            synthesizer.validate(command)
        except ValidationError as e:
            missing = e.details.get("missing", [])
        return create_success_response(
            extracted=extracted.model_dump(mode="json"),
            command=command.model_dump(mode="json"),
            canonical_space=normalize(command.space_name),
            missing_fields=missing
        )
    except Exception as e:
        return _failure(e, "extract task command")


async def normalize_space_name(name: str = "") -> dict:
    """Canonical space name for an alias"""
    return create_success_response(name=name, canonical=normalize(name))


async def list_teams() -> dict:
    """Teams (workspaces) visible to the current credential"""
    logger.info("list_teams called")

    if not current_credential():
        return get_error_response("no_auth")

    try:
        async with client_factory() as client:
            teams = await client.get_teams()
        teams = [summarize(t) for t in teams]
        return create_success_response(f"Found {len(teams)} teams", teams=teams)
    except Exception as e:
        return _failure(e, "list teams")


async def _list_scoped(kind: str, scope_id: str, fetch_name: str, query: str) -> dict:
    if not current_credential():
        return get_error_response("no_auth")

    try:
        async with client_factory() as client:
            source = ListingSource(kind, scope_id, getattr(client, fetch_name))
            entities = await find(source, query, allow_empty=True)
        entities = [summarize(e) for e in entities]
        return create_success_response(f"Found {len(entities)} {kind}", **{kind: entities})
    except Exception as e:
        return _failure(e, f"list {kind}")


async def list_spaces(team_id: str = "", query: str = "") -> dict:
    """Spaces of a team, optionally filtered by name"""
    logger.info(f"list_spaces called - team_id='{team_id}', query='{query}'")

    team_id = team_id or config.CLICKUP_TEAM_ID
    if not team_id:
        return get_error_response("team_required")
    return await _list_scoped("spaces", team_id, "get_spaces", query)


async def list_folders(space_id: str = "", query: str = "") -> dict:
    """Folders of a space, optionally filtered by name"""
    logger.info(f"list_folders called - space_id='{space_id}', query='{query}'")

    if not space_id:
        return get_error_response("space_required")
    return await _list_scoped("folders", space_id, "get_folders", query)


async def list_lists(folder_id: str = "", space_id: str = "", query: str = "") -> dict:
    """Lists of one folder, or every list of a space (folderless and in folders)"""
    logger.info(f"list_lists called - folder_id='{folder_id}', space_id='{space_id}', query='{query}'")

    if bool(folder_id) == bool(space_id):
        return get_error_response("scope_required")
    if folder_id:
        return await _list_scoped("lists", folder_id, "get_lists", query)
    return await _list_scoped("lists", space_id, "get_space_lists", query)


async def find_users(query: str = "", team_id: str = "") -> dict:
    """Team members whose username or email contains the query"""
    logger.info(f"find_users called - query='{query}', team_id='{team_id}'")

    if not query or not query.strip():
        return get_error_response("query_required")
    team_id = team_id or config.CLICKUP_TEAM_ID
    if not team_id:
        return get_error_response("team_required")
    if not current_credential():
        return get_error_response("no_auth")

    try:
        async with client_factory() as client:
            members = await client.get_team_members(team_id)
        users = [summarize(u) for u in match_users(members, query)]
        return create_success_response(f"Found {len(users)} users", users=users)
    except Exception as e:
        return _failure(e, "find users")


server = Server("clickup-mcp")

# Tool handlers mapping
TOOL_HANDLERS = {
    "create_task": create_task,
    "create_task_from_text": create_task_from_text,
    "extract_task_command": extract_task_command,
    "normalize_space_name": normalize_space_name,
    "list_teams": list_teams,
    "list_spaces": list_spaces,
    "list_folders": list_folders,
    "list_lists": list_lists,
    "find_users": find_users,
}

_TASK_SCHEMA = TaskRequest.model_json_schema()
_TEXT_SCHEMA = {
    **_TASK_SCHEMA,
    "required": ["text"],
}


@server.list_tools()
async def handle_list_tools():
    """List available ClickUp tools."""
    return [
        Tool(
            name="create_task",
            description=(
                "Create a ClickUp task. Space, folder, list and assignees are given by name and resolved "
                "to IDs; optional free text in 'text' fills any field not passed explicitly. "
                "The response includes the resolution trace."
            ),
            inputSchema=_TASK_SCHEMA
        ),
        Tool(
            name="create_task_from_text",
            description=(
                "Create a ClickUp task from a free-text instruction, e.g. "
                "'crea una tarea en clientes, somos puertas, revisar propuesta, asignar a juan, urgente'"
            ),
            inputSchema=_TEXT_SCHEMA
        ),
        Tool(
            name="extract_task_command",
            description="Dry run: show the fields extracted from a free-text instruction, with confidence scores",
            inputSchema=_TEXT_SCHEMA
        ),
        Tool(
            name="normalize_space_name",
            description="Map a colloquial space name to its canonical ClickUp space name",
            inputSchema={
                "type": "object",
                "properties": {
                    "name": {"type": "string", "description": "Space name or alias (required)"}
                },
                "required": ["name"]
            }
        ),
        Tool(
            name="list_teams",
            description="List the teams (workspaces) visible to the current credential",
            inputSchema={"type": "object", "properties": {}}
        ),
        Tool(
            name="list_spaces",
            description="List spaces of a team, optionally filtered by name",
            inputSchema={
                "type": "object",
                "properties": {
                    "team_id": {"type": "string", "description": "Team ID (default: CLICKUP_TEAM_ID)"},
                    "query": {"type": "string", "description": "Part of the space name (optional)"}
                }
            }
        ),
        Tool(
            name="list_folders",
            description="List folders of a space, optionally filtered by name",
            inputSchema={
                "type": "object",
                "properties": {
                    "space_id": {"type": "string", "description": "Space ID (required)"},
                    "query": {"type": "string", "description": "Part of the folder name (optional)"}
                },
                "required": ["space_id"]
            }
        ),
        Tool(
            name="list_lists",
            description="List the lists of a folder, or every list of a space. Pass exactly one of folder_id or space_id",
            inputSchema={
                "type": "object",
                "properties": {
                    "folder_id": {"type": "string", "description": "Folder ID"},
                    "space_id": {"type": "string", "description": "Space ID"},
                    "query": {"type": "string", "description": "Part of the list name (optional)"}
                }
            }
        ),
        Tool(
            name="find_users",
            description="Find team members whose username or email contains the query",
            inputSchema={
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "Part of a username or email (required)"},
                    "team_id": {"type": "string", "description": "Team ID (default: CLICKUP_TEAM_ID)"}
                },
                "required": ["query"]
            }
        ),
    ]


@server.call_tool()
async def handle_call_tool(name: str, arguments: dict | None = None):
    """Handle tool execution."""

    if not arguments:
        arguments = {}

    handler = TOOL_HANDLERS.get(name)
    if handler:
        try:
            result = await handler(**arguments)
            return [TextContent(type="text", text=format_response(result))]
        except TypeError as e:
            error_info = create_error_response(
                f"Invalid arguments for {name}: {str(e)}",
                "Check the tool's input schema",
                "VALIDATION_FAILED",
                status=400
            )
            return [TextContent(type="text", text=json.dumps(error_info, indent=2))]
    else:
        raise ValueError(f"Unknown tool: {name}")


async def main():
    """Run the ClickUp MCP server."""
    log_file = setup_logging()
    logger.info(f"=== ClickUp MCP Server Starting - Log file: {log_file} ===")
    if not current_credential():
        logger.warning("⚠️ No ClickUp credential configured - set CLICKUP_API_TOKEN")

    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            InitializationOptions(
                server_name="clickup-mcp",
                server_version=__version__,
                capabilities=server.get_capabilities(
                    notification_options=NotificationOptions(),
                    experimental_capabilities={}
                ),
            ),
        )


def run():
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
