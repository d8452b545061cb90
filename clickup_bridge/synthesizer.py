"""
Command synthesis: merge explicit input over extracted fields over defaults,
validate, resolve every identifier and submit the task.

The result always carries the resolution metadata (which strategy resolved
the space, folder, list and each assignee, plus the full attempt trace), so
callers can audit the heuristic path that produced the task.
"""

import logging
from datetime import date, datetime, timezone
from typing import Optional, Union

from pydantic import ValidationError as PydanticValidationError

from . import config
from .cascade import resolve_folder, resolve_list, resolve_space
from .client import ClickUpClient
from .errors import ValidationError
from .extractor import build_description, extract
from .models import PRIORITY_ORDINALS, ExtractedCommand, Priority, ResolutionAttempt, TaskCommand, TaskRequest
from .resolver import match_users, summarize

logger = logging.getLogger(__name__)

USER_DIRECTORY = "user_directory"
DUE_DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y")


def coerce_request(request: Union[TaskRequest, dict, None]) -> TaskRequest:
    if isinstance(request, TaskRequest):
        return request
    try:
        return TaskRequest.model_validate(request or {})
    except PydanticValidationError as e:
        raise ValidationError(
            "Invalid task request",
            "Check field names and values",
            {"errors": e.errors(include_url=False, include_context=False)}
        )


def parse_due_date(value) -> Optional[date]:
    """Date from an explicit due date value; raises ValidationError when unparsable."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    for fmt in DUE_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        raise ValidationError(
            f"Invalid due date '{value}'",
            "Use YYYY-MM-DD or DD/MM/YYYY"
        )


def _first(*values):
    """First value that is neither None, blank nor an empty list."""
    for value in values:
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        if isinstance(value, list) and not value:
            continue
        return value
    return None


def merge(explicit: Union[TaskRequest, dict, None], extracted: Optional[ExtractedCommand]) -> TaskCommand:
    """Explicit values win over extracted ones, which win over defaults."""
    explicit = coerce_request(explicit)
    found = extracted if extracted is not None else ExtractedCommand(description="")

    task_name = _first(explicit.task_name, found.task_name, config.DEFAULT_TASK_NAME)
    return TaskCommand(
        team_id=_first(explicit.team_id, config.CLICKUP_TEAM_ID),
        space_name=_first(explicit.space_name, found.space_name, config.CLICKUP_DEFAULT_SPACE),
        folder_filter=_first(explicit.folder_filter),
        list_filter=_first(explicit.list_filter),
        folder_terms=list(found.folder_terms),
        task_name=task_name,
        description=_first(explicit.description, found.description, build_description(task_name, [])),
        priority=_first(explicit.priority, found.priority, Priority.NORMAL),
        assignee_names=list(_first(explicit.assignees, found.assignee_names) or []),
        due_date=_first(parse_due_date(explicit.due_date), found.due_date),
        nlp_used=extracted is not None,
    )


def validate(command: TaskCommand) -> None:
    missing = [
        name for name in ("team_id", "space_name", "task_name", "description")
        if not (getattr(command, name) or "").strip()
    ]
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}",
            "Pass them explicitly, or set CLICKUP_TEAM_ID / CLICKUP_DEFAULT_SPACE",
            {"missing": missing}
        )


def build_payload(command: TaskCommand, assignee_ids: list) -> dict:
    payload = {
        "name": command.task_name.strip(),
        "description": command.description,
        "priority": PRIORITY_ORDINALS[command.priority],
        "assignees": assignee_ids,
    }
    if command.due_date:
        midnight = datetime(command.due_date.year, command.due_date.month, command.due_date.day, tzinfo=timezone.utc)
        payload["due_date"] = int(midnight.timestamp() * 1000)
        payload["due_date_time"] = False
    return payload


async def resolve_assignees(client: ClickUpClient, team_id: str, names: list) -> tuple:
    """Match each distinct name against the team's user directory.

    Returns (per-name results, de-duplicated user ids, attempts). Names that
    match nobody are reported, not fatal.
    """
    results, ids, attempts = [], [], []
    distinct = list(dict.fromkeys(n.strip() for n in names if n and n.strip()))
    if not distinct:
        return results, ids, attempts

    users = await client.get_team_members(team_id)
    for name in distinct:
        matches = match_users(users, name)
        user = matches[0] if matches else None
        attempts.append(ResolutionAttempt(
            target="assignee",
            strategy=USER_DIRECTORY,
            terms=[name],
            outcome="found" if user else "not_found",
            entity=summarize(user),
            explanation=f"{len(matches)} users match '{name}'",
        ))
        results.append({"name": name, "strategy": USER_DIRECTORY if user else None, "user": summarize(user)})
        if user and user.get("id") not in ids:
            ids.append(user.get("id"))
        elif not user:
            logger.warning(f"⚠️ No user matches assignee '{name}', leaving unassigned")
    return results, ids, attempts


async def create_task(
    request: Union[TaskRequest, dict, None],
    client: ClickUpClient,
    today: Optional[date] = None
) -> dict:
    """Resolve a task request against ClickUp and create the task.

    Raises ValidationError before any remote call when required input is
    missing, ResolutionError when the space or list cannot be found and
    UpstreamError when ClickUp rejects a call.
    """
    explicit = coerce_request(request)
    text = (explicit.text or "").strip()
    extracted = extract(text, today=today) if text else None

    command = merge(explicit, extracted)
    validate(command)
    logger.info(
        f"Resolving task '{command.task_name}' - space='{command.space_name}', "
        f"folder_filter={command.folder_filter!r}, list_filter={command.list_filter!r}, nlp={command.nlp_used}"
    )

    space = await resolve_space(client, command.team_id, command.space_name)
    folder = await resolve_folder(client, space.entity["id"], command.folder_filter, command.folder_terms)
    folder_id = folder.entity["id"] if folder.entity else None
    task_list = await resolve_list(client, space.entity["id"], folder_id, command.list_filter, command.folder_terms)
    assignees, assignee_ids, assignee_attempts = await resolve_assignees(
        client, command.team_id, command.assignee_names
    )

    payload = build_payload(command, assignee_ids)
    task = await client.create_task(task_list.entity["id"], payload)
    logger.info(f"Created task {task.get('id')} in list '{task_list.entity.get('name')}' via {task_list.strategy}")

    attempts = space.attempts + folder.attempts + task_list.attempts + assignee_attempts
    return {
        "task": task,
        "resolution": {
            "nlp_used": command.nlp_used,
            "extracted": extracted.model_dump(mode="json") if extracted else None,
            "extracted_terms": command.folder_terms,
            "space": {"strategy": space.strategy, "entity": summarize(space.entity)},
            "folder": {"strategy": folder.strategy, "entity": summarize(folder.entity)},
            "list": {"strategy": task_list.strategy, "entity": summarize(task_list.entity)},
            "assignees": assignees,
            "due_date": command.due_date.isoformat() if command.due_date else None,
            "attempts": [a.model_dump(mode="json") for a in attempts],
        },
    }
