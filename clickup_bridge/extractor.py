"""
Heuristic extraction of a task command from a free-text instruction.

Each field is parsed by its own pure function over a cleaned copy of the
text and scored with a confidence in [0, 1]. A field that does not match
falls back to its default with a low score; nothing here raises.

Most fields take the first pattern that matches. Assignees are the
exception: every match of every pattern is collected.

Vocabularies cover the Spanish and English phrasing the bridge receives, e.g.
"crea una tarea en clientes, somos puertas, revisar propuesta, asignar a
juan, urgente".
"""

import logging
import re
from datetime import date, timedelta
from typing import Optional

from .models import ExtractedCommand, Priority

logger = logging.getLogger(__name__)

# Characters kept by the cleaner: commas bound task names, quotes delimit
# labels, the rest appear in emails and dates.
_STRIP = re.compile(r"[^\w\s,\"'@.\-/+]")
_QUOTES = str.maketrans({"“": '"', "”": '"', "«": '"', "»": '"', "‘": "'", "’": "'"})
_TOKEN_EDGES = ",.\"'-/+"

SPACE_PATTERNS = (
    re.compile(r"\b(?:en|in|at)\s+(?:(?:el|la|los|las|un|una|the)\s+)?(?:(?:espacio|space)\s+)?([\w.\-]+)"),
)
SPACE_KEYWORDS = (
    "clientes", "cliente", "marketing", "ventas", "desarrollo", "interno",
    "clients", "client", "sales", "development", "internal",
)

LOCATIVE_MARKERS = frozenset({
    "somos", "carpeta", "cliente", "proyecto", "folder", "client", "project",
})
STOP_WORDS = frozenset({
    "crea", "crear", "creame", "create", "nueva", "nuevo", "new", "tarea", "task",
    "una", "uno", "los", "las", "del", "por", "para", "con", "que", "the", "and",
    "for", "with", "asignar", "asigna", "asignado", "asignada", "assign", "assigned",
    "urgente", "urgent", "prioridad", "priority", "alta", "baja", "high", "low",
    "hoy", "today", "mañana", "tomorrow", "semana", "week", "next", "proxima", "próxima",
}) | LOCATIVE_MARKERS
MAX_FOLDER_TERMS = 3

ACTION_VERBS = (
    "revisar", "preparar", "enviar", "llamar", "hacer", "actualizar", "redactar",
    "diseñar", "contactar", "organizar", "programar", "terminar", "corregir",
    "review", "prepare", "send", "call", "write", "update", "draft", "design",
    "contact", "organize", "schedule", "finish", "fix",
)
TASK_NAME_STOPPERS = (
    "asignar", "asigna", "asignado", "asignada", "para", "urgente", "prioridad",
    "mañana", "assign", "assigned", "for", "urgent", "priority", "tomorrow",
)
TASK_NAME_PATTERNS = (
    re.compile(r"\b(?:tarea|task)\b[^\"']{0,20}?[\"']([^\"']+)[\"']"),
    re.compile(
        r"\b((?:" + "|".join(ACTION_VERBS) + r")\b[^,]*?)"
        r"(?=\s*,|\s+(?:" + "|".join(TASK_NAME_STOPPERS) + r")\b|\s*$)"
    ),
)

DESCRIPTION_TEMPLATE = 'Task created from instruction: "{text}"'
DESCRIPTION_FOLDER_LINE = "\nFolder/client: {terms}"

URGENT_TERMS = (
    "urgente", "urgent", "asap", "cuanto antes", "lo antes posible", "inmediato",
    "prioridad alta", "alta prioridad", "high priority", "critical", "critico", "crítico",
)
LOW_TERMS = (
    "no urgente", "prioridad baja", "baja prioridad", "low priority", "sin prisa",
    "cuando puedas", "whenever",
)
# "no urgente" must not count as urgent
URGENT_PATTERN = re.compile(r"(?<!no )\b(?:" + "|".join(map(re.escape, URGENT_TERMS)) + r")\b")
LOW_PATTERN = re.compile(r"\b(?:" + "|".join(map(re.escape, LOW_TERMS)) + r")\b")

ASSIGNEE_PATTERNS = (
    re.compile(
        r"\b(?:asignar|asigna|asignado|asignada|asignarlo|asignarla|assign|assigned)\s+(?:a|to)\s+"
        r"([\w.+\-]+@[\w\-]+(?:\.[\w\-]+)+|\w+)"
    ),
    re.compile(r"[\w.+\-]+@[\w\-]+(?:\.[\w\-]+)+"),
    re.compile(r"(?<![\w.])@(\w+)"),
)

ISO_DATE = re.compile(r"\b(\d{4})-(\d{1,2})-(\d{1,2})\b")
DMY_DATE = re.compile(r"\b(\d{1,2})/(\d{1,2})/(\d{4})\b")
TOMORROW = re.compile(r"\b(?:mañana|tomorrow)\b")
NEXT_WEEK = re.compile(r"\b(?:next week|próxima semana|proxima semana|semana que viene)\b")


def clean(text: str) -> str:
    """Lowercased copy with unneeded punctuation blanked out.

    Characters are replaced rather than removed, so offsets into the cleaned
    copy line up with the original whenever lowercasing keeps the length.
    """
    return _STRIP.sub(" ", text.translate(_QUOTES).lower())


def _original_span(text: str, cleaned: str, span: tuple) -> str:
    source = text if len(text) == len(cleaned) else cleaned
    return " ".join(source[span[0]:span[1]].split())


def _tokens(cleaned: str) -> list:
    return [t.strip(_TOKEN_EDGES) for t in cleaned.split()]


def extract_space_name(cleaned: str) -> tuple:
    for pattern in SPACE_PATTERNS:
        match = pattern.search(cleaned)
        name = match.group(1).strip(_TOKEN_EDGES) if match else ""
        if name:
            return name, 0.8
    for keyword in SPACE_KEYWORDS:
        if re.search(rf"\b{re.escape(keyword)}\b", cleaned):
            return keyword, 0.8
    return None, 0.2


def extract_folder_terms(cleaned: str) -> tuple:
    tokens = _tokens(cleaned)

    def keep(token):
        return len(token) > 2 and token not in STOP_WORDS and "@" not in token

    start = 0
    for index, token in enumerate(tokens):
        if token in LOCATIVE_MARKERS:
            start = index + 1
            break
    terms = [t for t in tokens[start:] if keep(t)][:MAX_FOLDER_TERMS]
    return terms, 0.9 if terms else 0.1


def extract_task_name(text: str, cleaned: str) -> tuple:
    for pattern in TASK_NAME_PATTERNS:
        match = pattern.search(cleaned)
        if match:
            name = _original_span(text, cleaned, match.span(1)).strip(" ,.")
            if name:
                return name, 0.9
    return None, 0.3


def build_description(text: str, folder_terms: list) -> str:
    description = DESCRIPTION_TEMPLATE.format(text=" ".join(text.split()))
    if folder_terms:
        description += DESCRIPTION_FOLDER_LINE.format(terms=" ".join(folder_terms))
    return description


def extract_priority(cleaned: str) -> tuple:
    if URGENT_PATTERN.search(cleaned):
        return Priority.URGENT, 0.7
    if LOW_PATTERN.search(cleaned):
        return Priority.LOW, 0.7
    return Priority.NORMAL, 0.3


def extract_assignee_names(cleaned: str) -> tuple:
    names = []
    for pattern in ASSIGNEE_PATTERNS:
        for match in pattern.finditer(cleaned):
            names.append(match.group(1) if pattern.groups else match.group(0))
    return names, 0.8 if names else 0.0


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def extract_due_date(cleaned: str, today: date) -> tuple:
    match = ISO_DATE.search(cleaned)
    if match:
        parsed = _safe_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        if parsed:
            return parsed, 0.9
    match = DMY_DATE.search(cleaned)
    if match:
        parsed = _safe_date(int(match.group(3)), int(match.group(2)), int(match.group(1)))
        if parsed:
            return parsed, 0.9
    if TOMORROW.search(cleaned):
        return today + timedelta(days=1), 0.9
    if NEXT_WEEK.search(cleaned):
        return today + timedelta(days=7), 0.9
    return None, 0.0


def extract(text, today: Optional[date] = None) -> ExtractedCommand:
    """Parse a free-text instruction into a confidence-scored command."""
    if not isinstance(text, str):
        text = "" if text is None else str(text)
    today = today or date.today()
    cleaned = clean(text)

    space_name, space_conf = extract_space_name(cleaned)
    folder_terms, folder_conf = extract_folder_terms(cleaned)
    task_name, task_conf = extract_task_name(text, cleaned)
    priority, priority_conf = extract_priority(cleaned)
    assignees, assignee_conf = extract_assignee_names(cleaned)
    due_date, due_conf = extract_due_date(cleaned, today)

    command = ExtractedCommand(
        space_name=space_name,
        folder_terms=folder_terms,
        task_name=task_name,
        description=build_description(text, folder_terms),
        priority=priority,
        assignee_names=assignees,
        due_date=due_date,
        confidence={
            "space_name": space_conf,
            "folder_terms": folder_conf,
            "task_name": task_conf,
            "description": 1.0,
            "priority": priority_conf,
            "assignee_names": assignee_conf,
            "due_date": due_conf,
        },
    )
    logger.debug(f"Extracted from '{text}': {command.model_dump(exclude={'description'})}")
    return command
