"""Load the JSON stream catalog into StreamDescriptor objects."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from ..exceptions import CatalogError
from ..tasks import StreamDescriptor


def _agents(raw: Any, name: str) -> frozenset[str]:
    if raw is None:
        return frozenset()
    if isinstance(raw, str):
        return frozenset({raw})
    if isinstance(raw, (list, tuple)):
        return frozenset(str(agent) for agent in raw)
    raise CatalogError(
        f"Stream '{name}': blacklist_ua must be a string or list; got {type(raw).__name__}"
    )


def parse_stream(name: str, entry: Any) -> StreamDescriptor:
    """Build one descriptor from its catalog entry.

    Accepts both the catalog spelling (``startSeek``, ``blacklist_ua``) and
    the snake_case one (``start_seek``, ``blacklisted_agents``).

    Raises:
        CatalogError: If the entry is malformed
    """
    if not isinstance(entry, dict):
        raise CatalogError(f"Stream '{name}' must be an object; got {type(entry).__name__}")

    config = entry.get("config") or {}
    if not isinstance(config, dict):
        raise CatalogError(f"Stream '{name}': config must be an object")

    if "blacklist_ua" in entry:
        blacklisted = _agents(entry["blacklist_ua"], name)
    else:
        blacklisted = _agents(entry.get("blacklisted_agents"), name)

    try:
        return StreamDescriptor(
            name=name,
            description=entry.get("description") or name,
            url=entry.get("url", ""),
            config=config,
            live=bool(entry.get("live", False)),
            abr=bool(entry.get("abr", False)),
            start_seek=bool(entry.get("startSeek", entry.get("start_seek", False))),
            blacklisted_agents=blacklisted,
        )
    except ValueError as exc:
        raise CatalogError(str(exc)) from exc


def load_stream_catalog(path: Path) -> list[StreamDescriptor]:
    """Load an ordered stream catalog from a JSON file.

    The file holds an object mapping stream name to descriptor, optionally
    nested under a ``streams`` key. Order follows the file.

    Args:
        path: Path to the catalog JSON file

    Returns:
        Stream descriptors in catalog order

    Raises:
        CatalogError: If the file is missing, unreadable or malformed
    """
    if not path.is_file():
        raise CatalogError(f"Stream catalog does not exist: {path}")

    try:
        with path.open("r", encoding="utf-8") as f:
            payload = json.load(f)
    except json.JSONDecodeError as exc:
        raise CatalogError(f"Invalid JSON in {path.name}: {exc}") from exc

    if isinstance(payload, dict) and isinstance(payload.get("streams"), dict):
        payload = payload["streams"]
    if not isinstance(payload, dict):
        raise CatalogError(f"{path.name} must contain an object of streams")
    if not payload:
        raise CatalogError(f"No streams found in {path.name}")

    return [parse_stream(name, entry) for name, entry in payload.items()]
