"""Browser capability and grid descriptors built from process configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from ..constants import (
    COMMAND_TIMEOUT_SECONDS,
    DEFAULT_BROWSER_NAME,
    DEFAULT_BROWSER_VERSION,
    SAUCE_HUB_TEMPLATE,
)
from ..exceptions import ConfigurationError

CHROME_ARGS = (
    "--autoplay-policy=no-user-gesture-required",
    "--disable-web-security",
)


@dataclass(frozen=True)
class BrowserCapabilities:
    """Identifies the target browser runtime.

    Attributes:
        name (str): Browser name as understood by the grid (chrome, firefox, ...).
            Also matched against stream blacklists.
        version (Optional[str]): Browser version, "latest" by default.
        platform (Optional[str]): Operating system requested from the grid.
        args (tuple[str, ...]): Extra command-line switches for the browser.
        command_timeout (int): Grid-side idle command timeout in seconds.
    """

    name: str = DEFAULT_BROWSER_NAME
    version: Optional[str] = DEFAULT_BROWSER_VERSION
    platform: Optional[str] = None
    args: tuple[str, ...] = field(default=())
    command_timeout: int = COMMAND_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ConfigurationError("BrowserCapabilities.name cannot be empty.")

    @classmethod
    def for_browser(
        cls,
        name: str,
        version: Optional[str] = DEFAULT_BROWSER_VERSION,
        platform: Optional[str] = None,
        command_timeout: int = COMMAND_TIMEOUT_SECONDS,
    ) -> "BrowserCapabilities":
        """Build capabilities with the browser switches media tests need."""
        args = CHROME_ARGS if name == "chrome" else ()
        return cls(
            name=name,
            version=version,
            platform=platform,
            args=args,
            command_timeout=command_timeout,
        )

    @property
    def description(self) -> str:
        """Human-readable browser label, e.g. ``chrome (latest), Windows 10``."""
        text = self.name
        if self.version:
            text += f" ({self.version})"
        if self.platform:
            text += f", {self.platform}"
        return text


@dataclass(frozen=True)
class GridSettings:
    """Where and how to request remote sessions.

    Attributes:
        url (Optional[str]): WebDriver hub URL. None runs a local browser.
        username (Optional[str]): Sauce Labs user name.
        access_key (Optional[str]): Sauce Labs access key.
        tunnel_identifier (Optional[str]): Sauce Connect tunnel to route through.
        build (Optional[str]): Build label shown on the grid dashboard.
    """

    url: Optional[str] = None
    username: Optional[str] = None
    access_key: Optional[str] = None
    tunnel_identifier: Optional[str] = None
    build: Optional[str] = None

    @property
    def is_remote(self) -> bool:
        return self.url is not None

    @property
    def is_sauce(self) -> bool:
        return bool(self.username and self.access_key)

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        url: Optional[str] = None,
    ) -> "GridSettings":
        """Read grid settings from the environment.

        An explicit ``url`` wins. Otherwise Sauce Labs credentials, when both
        present, select the Sauce Labs hub.
        """
        env = os.environ if environ is None else environ
        username = env.get("SAUCE_USERNAME") or None
        access_key = env.get("SAUCE_ACCESS_KEY") or None
        build_number = env.get("BUILD_NUMBER")

        if url is None and username and access_key:
            url = SAUCE_HUB_TEMPLATE.format(username=username, access_key=access_key)

        return cls(
            url=url,
            username=username,
            access_key=access_key,
            tunnel_identifier=env.get("TUNNEL_IDENTIFIER") or None,
            build=f"HLSJS-{build_number}" if build_number else None,
        )

    def redacted_url(self) -> Optional[str]:
        """Hub URL with the access key masked, safe for console output."""
        if self.url and self.access_key:
            return self.url.replace(self.access_key, "***")
        return self.url


def load_browser_capabilities(
    environ: Optional[Mapping[str, str]] = None,
    remote: bool = False,
    name: Optional[str] = None,
    version: Optional[str] = None,
    platform: Optional[str] = None,
) -> BrowserCapabilities:
    """Build the browser descriptor from explicit values or ``UA``/``UA_VERSION``/``OS``.

    Against a remote grid the browser name and platform are required and
    their absence fails before any session is attempted.

    Raises:
        ConfigurationError: If a required identification field is missing
    """
    env = os.environ if environ is None else environ
    name = name or env.get("UA") or None
    platform = platform or env.get("OS") or None
    version = version or env.get("UA_VERSION") or DEFAULT_BROWSER_VERSION

    if remote:
        if not name:
            raise ConfigurationError("No test browser name.")
        if not platform:
            raise ConfigurationError("No test browser platform.")

    return BrowserCapabilities.for_browser(
        name=name or DEFAULT_BROWSER_NAME,
        version=version,
        platform=platform,
    )


def build_capability_map(
    browser: BrowserCapabilities,
    grid: GridSettings,
    session_name: str,
) -> dict[str, Any]:
    """Assemble the W3C capability map requested from the grid.

    Browser switches are not part of the map; the driver factory applies them
    through the browser's options class.
    """
    capabilities: dict[str, Any] = {"browserName": browser.name}
    if not grid.is_remote:
        return capabilities

    if browser.version:
        capabilities["browserVersion"] = browser.version
    if browser.platform:
        capabilities["platformName"] = browser.platform

    if grid.is_sauce:
        sauce_options: dict[str, Any] = {
            "name": session_name,
            "username": grid.username,
            "accessKey": grid.access_key,
            "commandTimeout": browser.command_timeout,
        }
        if grid.tunnel_identifier:
            sauce_options["tunnelIdentifier"] = grid.tunnel_identifier
        if grid.build:
            sauce_options["build"] = grid.build
        capabilities["sauce:options"] = sauce_options

    return capabilities
