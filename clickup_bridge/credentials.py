"""
Access credential handling.

The bridge keeps a single most-recently-obtained OAuth access token shared
by every request. Writes are last-write-wins with no locking; the version
counter and timestamp make an overwrite detectable by a caller that
remembers the version it started with.
"""

import logging
import time
from typing import Literal, NamedTuple, Optional

from . import config

logger = logging.getLogger(__name__)

CredentialKind = Literal["oauth", "personal"]


class Credential(NamedTuple):
    value: str
    kind: CredentialKind
    version: int
    obtained_at: float

    @property
    def authorization_header(self) -> str:
        # OAuth tokens use the Bearer scheme, personal tokens are sent raw
        if self.kind == "oauth":
            return f"Bearer {self.value}"
        return self.value


class CredentialStore:
    """Versioned single-slot credential store"""

    def __init__(self):
        self._credential: Optional[Credential] = None
        self._version = 0

    def set(self, value: str, kind: CredentialKind = "oauth") -> Credential:
        self._version += 1
        self._credential = Credential(value, kind, self._version, time.time())
        logger.info(f"🔐 Stored {kind} credential (version {self._version})")
        return self._credential

    def current(self) -> Optional[Credential]:
        return self._credential

    def clear(self) -> None:
        self._version += 1
        self._credential = None

    def is_stale(self, seen_version: int) -> bool:
        """True when the stored credential was replaced after `seen_version`."""
        return self._version != seen_version


# Process-wide store
_store = CredentialStore()


def get_credential_store() -> CredentialStore:
    return _store


def current_credential() -> Optional[Credential]:
    """Current credential or None. The stored OAuth token is preferred over the
    personal token from the environment."""
    stored = _store.current()
    if stored:
        return stored
    if config.CLICKUP_API_TOKEN:
        return Credential(config.CLICKUP_API_TOKEN, "personal", 0, 0.0)
    return None
