"""
Resolution cascade for spaces, folders and lists.

A cascade is an ordered list of strategies. The runner tries them in order,
stops at the first one that yields an entity and returns every attempt it
made, so callers can audit which heuristic produced the match.
"""

import logging
from typing import Awaitable, Callable, NamedTuple, Optional

from .aliases import normalize
from .client import ClickUpClient
from .errors import ResolutionError, UpstreamError
from .models import ResolutionAttempt
from .resolver import ListingSource, find, fold, summarize

logger = logging.getLogger(__name__)

# Strategy identifiers, as they appear in the resolution trace
ALIAS_LOOKUP = "alias_lookup"
EXPLICIT_FILTER = "explicit_filter"
EXTRACTED_TERMS = "extracted_terms"
EXTRACTED_TERMS_ANY = "extracted_terms_any"
AUTO_SELECT_FIRST = "auto_select_first"
SPACE_ROOT = "space_root"
FETCH_FAILED = "fetch_failed"


class StrategyResult(NamedTuple):
    success: bool
    entity: Optional[dict]
    explanation: str
    terms: list


class Strategy(NamedTuple):
    name: str
    # Returns None when the strategy does not apply to this request
    run: Callable[[], Awaitable[Optional[StrategyResult]]]


class CascadeResult(NamedTuple):
    entity: Optional[dict]
    strategy: Optional[str]
    attempts: list


async def run_cascade(target: str, strategies: list) -> CascadeResult:
    attempts = []
    for strategy in strategies:
        result = await strategy.run()
        if result is None:
            continue
        attempt = ResolutionAttempt(
            target=target,
            strategy=strategy.name,
            terms=result.terms,
            outcome="found" if result.success else "not_found",
            entity=summarize(result.entity),
            explanation=result.explanation,
        )
        attempts.append(attempt)
        logger.debug(f"[{target}] {strategy.name} {result.terms} -> {attempt.outcome}: {result.explanation}")
        if result.success:
            return CascadeResult(result.entity, strategy.name, attempts)
    return CascadeResult(None, None, attempts)


# Strategy factories

def explicit_filter(source: ListingSource, term: Optional[str]) -> Strategy:
    async def run():
        if not term or not term.strip():
            return None
        candidates = await find(source, term)
        if candidates:
            return StrategyResult(True, candidates[0], f"{len(candidates)} {source.kind} match '{term}'", [term])
        return StrategyResult(False, None, f"no {source.kind} matches '{term}'", [term])
    return Strategy(EXPLICIT_FILTER, run)


def extracted_terms(source: ListingSource, terms: list) -> Strategy:
    async def run():
        if not terms:
            return None
        tried = []
        for term in terms:
            tried.append(term)
            candidates = await find(source, term)
            if candidates:
                return StrategyResult(True, candidates[0], f"extracted term '{term}' matched", tried)
        return StrategyResult(False, None, "no extracted term matched on its own", tried)
    return Strategy(EXTRACTED_TERMS, run)


def extracted_terms_any(source: ListingSource, terms: list) -> Strategy:
    """Looser pass over the same terms, comparing accent and punctuation
    folded forms ("pigmea sl" matches "PIGMEA S.L.")."""
    async def run():
        pairs = [(t, fold(t)) for t in terms if fold(t)]
        if not pairs:
            return None
        for entity in await source.items():
            name = fold(entity.get("name") or "")
            for term, key in pairs:
                if key in name:
                    return StrategyResult(True, entity, f"'{entity.get('name')}' contains '{term}'", list(terms))
        return StrategyResult(False, None, f"no {source.kind} contains any extracted term", list(terms))
    return Strategy(EXTRACTED_TERMS_ANY, run)


def auto_select_first(source: ListingSource) -> Strategy:
    async def run():
        entities = await source.items()
        if entities:
            return StrategyResult(True, entities[0], f"first of {len(entities)} {source.kind} in scope", [])
        return StrategyResult(False, None, f"no {source.kind} in scope", [])
    return Strategy(AUTO_SELECT_FIRST, run)


# Per-target resolution

async def resolve_space(client: ClickUpClient, team_id: str, space_name: str) -> CascadeResult:
    """Space matching the alias-normalized name within the team."""
    canonical = normalize(space_name)
    source = ListingSource("spaces", team_id, client.get_spaces)

    async def run():
        candidates = await find(source, canonical)
        terms = [space_name] if canonical == space_name else [space_name, canonical]
        if candidates:
            return StrategyResult(True, candidates[0], f"{len(candidates)} spaces match '{canonical}'", terms)
        return StrategyResult(False, None, f"no space matches '{canonical}'", terms)

    result = await run_cascade("space", [Strategy(ALIAS_LOOKUP, run)])
    if result.entity is None:
        logger.warning(f"Space '{space_name}' not found in team {team_id}")
        raise ResolutionError(
            "space",
            f"No space found matching '{canonical}'",
            result.attempts,
            f"Use list_spaces(team_id='{team_id}') to see available spaces"
        )
    return result


async def resolve_folder(
    client: ClickUpClient,
    space_id: str,
    folder_filter: Optional[str],
    terms: list
) -> CascadeResult:
    """Folder within the space. Never fatal: without a match the task goes to
    the space's folderless lists."""
    source = ListingSource("folders", space_id, client.get_folders)
    strategies = [
        explicit_filter(source, folder_filter),
        extracted_terms(source, terms),
        extracted_terms_any(source, terms),
    ]
    try:
        result = await run_cascade("folder", strategies)
    except UpstreamError as e:
        logger.warning(f"Folder lookup in space {space_id} failed, using space root: {e.message}")
        attempt = ResolutionAttempt(
            target="folder",
            strategy=FETCH_FAILED,
            outcome="not_found",
            explanation=f"HTTP {e.status_code}: {e.message}",
        )
        return CascadeResult(None, SPACE_ROOT, [attempt])

    if result.entity is None:
        return CascadeResult(None, SPACE_ROOT, result.attempts)
    return result


async def resolve_list(
    client: ClickUpClient,
    space_id: str,
    folder_id: Optional[str],
    list_filter: Optional[str],
    terms: list
) -> CascadeResult:
    """List within the folder when one was resolved, otherwise among the
    space's folderless lists. Raises ResolutionError when nothing is found."""
    if folder_id:
        source = ListingSource("lists", folder_id, client.get_lists)
    else:
        source = ListingSource("lists", space_id, client.get_folderless_lists)

    strategies = [
        explicit_filter(source, list_filter),
        extracted_terms(source, terms),
        extracted_terms_any(source, terms),
        auto_select_first(source),
    ]
    result = await run_cascade("list", strategies)
    if result.entity is None:
        scope = f"folder {folder_id}" if folder_id else f"space {space_id}"
        logger.warning(f"No list found in {scope}")
        raise ResolutionError(
            "list",
            f"No list found in {scope}",
            result.attempts,
            "Create a list there, or pass folder_filter/list_filter pointing at an existing one"
        )
    return result
