"""
Entity resolution by name within one scope of the ClickUp hierarchy.

Matching is case-insensitive substring containment and keeps the order of
the remote listing: when several entities match, the first listed wins.
"""

import logging
import re
import unicodedata
from typing import Awaitable, Callable, Optional

from .errors import ValidationError

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^0-9a-z]+")


def fold(text: str) -> str:
    """Lowercase, strip accents and drop everything but letters and digits."""
    decomposed = unicodedata.normalize("NFKD", text or "")
    ascii_text = decomposed.encode("ascii", "ignore").decode("ascii")
    return _NON_ALNUM.sub("", ascii_text.lower())


def summarize(entity: Optional[dict]) -> Optional[dict]:
    """Compact {id, name} view of an entity for traces and responses."""
    if entity is None:
        return None
    summary = {"id": entity.get("id"), "name": entity.get("name")}
    for key in ("username", "email"):
        if key in entity:
            summary[key] = entity[key]
    return summary


class ListingSource:
    """
    The full listing of one entity kind within one scope.

    The listing is fetched on first use and reused for the rest of the
    request. Fetch failures propagate unchanged.
    """

    def __init__(self, kind: str, scope_id: str, fetch: Callable[[str], Awaitable[list]]):
        self.kind = kind
        self.scope_id = scope_id
        self._fetch = fetch
        self._items: Optional[list] = None

    async def items(self) -> list:
        if self._items is None:
            self._items = await self._fetch(self.scope_id)
            logger.debug(f"Fetched {len(self._items)} {self.kind} in scope {self.scope_id}")
        return self._items


def match_name(entities: list, term: str) -> list:
    needle = term.lower().strip()
    return [e for e in entities if needle in (e.get("name") or "").lower()]


def match_users(users: list, term: str) -> list:
    """Users whose username or email contains `term`, in directory order."""
    needle = term.lower().strip()
    if not needle:
        return []
    return [
        u for u in users
        if needle in (u.get("username") or "").lower() or needle in (u.get("email") or "").lower()
    ]


async def find(source: ListingSource, query_term: str, allow_empty: bool = False) -> list:
    """Entities in `source` whose name contains `query_term`.

    An empty term is rejected unless `allow_empty` is set, in which case the
    unfiltered listing is returned.
    """
    term = (query_term or "").strip()
    if not term and not allow_empty:
        raise ValidationError(
            f"Search term for {source.kind} must not be empty",
            "Provide part of the name to search for"
        )
    entities = await source.items()
    if not term:
        return list(entities)
    return match_name(entities, term)
