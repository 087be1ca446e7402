"""Probe result records returned by the remote runtime."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Iterator


class ProbeResult(Mapping[str, Any]):
    """Read-only record produced by one probe invocation.

    Always carries ``logs``, the text trace of the harness page, next to the
    scenario's outcome field (``code``, ``currentTimeDelta``, ``playing``...).
    """

    def __init__(self, fields: Mapping[str, Any]):
        data = dict(fields)
        logs = data.get("logs")
        data["logs"] = "" if logs is None else str(logs)
        self._fields = data

    def __getitem__(self, key: str) -> Any:
        return self._fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"ProbeResult({self.without_logs()!r})"

    @property
    def logs(self) -> str:
        return self._fields["logs"]

    def without_logs(self) -> dict[str, Any]:
        return {key: value for key, value in self._fields.items() if key != "logs"}

    def describe(self) -> str:
        """Render the record without its logs, for assertion messages."""
        return json.dumps(self.without_logs(), indent=2, default=str)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._fields)
