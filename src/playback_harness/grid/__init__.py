"""Remote browser sessions on an automation grid."""

from .capabilities import (
    BrowserCapabilities,
    GridSettings,
    build_capability_map,
    load_browser_capabilities,
)
from .driver import DriverFactory, build_options, create_driver
from .session import RemoteSession, RemoteSessionManager, run_blocking

__all__ = [
    "BrowserCapabilities",
    "GridSettings",
    "build_capability_map",
    "load_browser_capabilities",
    "DriverFactory",
    "build_options",
    "create_driver",
    "RemoteSession",
    "RemoteSessionManager",
    "run_blocking",
]
