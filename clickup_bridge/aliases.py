"""
Space alias normalization.

Maps colloquial space names to the canonical names used in ClickUp. The
table is built once at import and is read-only afterwards.
"""

import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from . import config

logger = logging.getLogger(__name__)

DEFAULT_ALIASES = {
    "pigmea": "PIGMEA S.L.",
    "pigmea sl": "PIGMEA S.L.",
    "pigmea s.l": "PIGMEA S.L.",
    "clientes": "Clientes",
    "cliente": "Clientes",
    "clients": "Clientes",
    "client": "Clientes",
    "marketing": "Marketing",
    "mkt": "Marketing",
    "ventas": "Ventas",
    "sales": "Ventas",
    "desarrollo": "Desarrollo",
    "dev": "Desarrollo",
    "development": "Desarrollo",
    "interno": "Interno",
    "internal": "Interno",
}


def _key(name: str) -> str:
    return " ".join(name.lower().split())


def _settle(table: Mapping[str, str], canonical: str):
    """End of the alias chain starting at `canonical`, or None on a cycle."""
    seen = set()
    while True:
        key = _key(canonical)
        target = table.get(key)
        if target is None or target == canonical:
            return canonical
        if key in seen:
            return None
        seen.add(key)
        canonical = target


def load_alias_table(path: str = "", defaults: Mapping[str, str] = DEFAULT_ALIASES) -> Mapping[str, str]:
    """Build the read-only alias table from defaults plus an optional JSON file.

    Every canonical name is also registered under its own key unless that
    key is already an alias. Chained aliases (a -> B, b -> C) are collapsed
    to the end of the chain, so normalizing a result returns it unchanged.
    """
    entries = dict(defaults)
    if path:
        file_path = Path(path)
        if file_path.exists():
            with open(file_path, encoding="utf-8") as f:
                loaded = json.load(f)
            entries.update({str(k): str(v) for k, v in loaded.items()})
            logger.info(f"Loaded {len(loaded)} space aliases from {file_path}")
        else:
            logger.warning(f"⚠️ Alias file {file_path} not found, using built-in aliases")

    table = {_key(alias): canonical for alias, canonical in entries.items()}
    resolved = {}
    for key, canonical in table.items():
        target = _settle(table, canonical)
        if target is None:
            logger.warning(f"⚠️ Alias '{key}' -> '{canonical}' forms a cycle, ignoring it")
            continue
        if target != canonical:
            logger.warning(f"⚠️ Alias '{key}' -> '{canonical}' is itself an alias, mapping to '{target}'")
        resolved[key] = target

    for canonical in sorted(set(resolved.values())):
        kept = resolved.setdefault(_key(canonical), canonical)
        if kept != canonical:
            logger.warning(f"⚠️ Canonical names '{kept}' and '{canonical}' differ only in case, keeping '{kept}'")
    # Case-colliding canonical names collapse onto the one that was kept
    table = {key: resolved[_key(canonical)] for key, canonical in resolved.items()}
    return MappingProxyType(table)


ALIASES = load_alias_table(config.CLICKUP_ALIASES_FILE)


def normalize(name, table: Mapping[str, str] = ALIASES) -> str:
    """Canonical space name for `name`, or `name` itself when it has no alias."""
    if name is None:
        return ""
    if not isinstance(name, str):
        name = str(name)
    return table.get(_key(name), name)
