"""Stream descriptors loaded from the stream catalog."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping


@dataclass(frozen=True)
class StreamDescriptor:
    """One media asset and the conditions it is tested under.

    Attributes:
        name (str): Catalog key of the stream.
        description (str): Human-readable identifier used in test titles.
        url (str): Location of the media manifest.
        config (Mapping[str, Any]): Player configuration merged into the
            player instantiation. Opaque to the harness apart from
            ``avBufferOffset``.
        live (bool): Whether the stream is live rather than on-demand.
        abr (bool): Whether the stream has several quality levels.
        start_seek (bool): Whether seeking back to the start is tested.
        blacklisted_agents (frozenset[str]): Browser names this stream must
            not run under.
    """

    name: str
    description: str
    url: str
    config: Mapping[str, Any] = field(default_factory=dict)
    live: bool = False
    abr: bool = False
    start_seek: bool = False
    blacklisted_agents: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        """Validate descriptor after initialization.

        Raises:
            ValueError: If name or url is empty.
        """
        if not self.name or not self.name.strip():
            raise ValueError("StreamDescriptor.name cannot be empty.")
        if not self.url or not self.url.strip():
            raise ValueError(f"Stream '{self.name}' has no url.")

    def is_blacklisted_for(self, browser_name: str) -> bool:
        return browser_name in self.blacklisted_agents

    def player_config(self) -> dict[str, Any]:
        """Return a fresh copy of the player configuration for injection."""
        return dict(self.config)
