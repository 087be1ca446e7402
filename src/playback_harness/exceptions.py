"""Exception hierarchy for the playback harness."""

from __future__ import annotations

from typing import Optional


class PlaybackHarnessError(Exception):
    """Base class for all harness errors."""


class ConfigurationError(PlaybackHarnessError):
    """Process configuration is missing or invalid."""


class CatalogError(PlaybackHarnessError):
    """Stream catalog could not be loaded."""


class SessionAcquisitionError(PlaybackHarnessError):
    """No remote session could be obtained after all attempts. Fatal to the suite."""


class NavigationError(PlaybackHarnessError):
    """The remote browser failed to open the harness page."""


class PageNotReadyError(PlaybackHarnessError):
    """The harness page loaded but never signalled readiness."""

    def __init__(self, message: str, page_source: Optional[str] = None):
        super().__init__(message)
        self.page_source = page_source


class ProbeError(PlaybackHarnessError):
    """Base class for failures of a single injected probe."""


class ProbeTimeoutError(ProbeError):
    """The probe never invoked its completion callback within the script timeout."""


class SessionStalledError(ProbeTimeoutError):
    """The probe timed out and its remote command was still running afterwards.

    The session cannot take further commands, so the suite stops using it.
    """


class ProbeExecutionError(ProbeError):
    """The injected script raised inside the remote runtime."""

    def __init__(self, message: str, remote_message: Optional[str] = None):
        super().__init__(message)
        self.remote_message = remote_message


class ExpectationFailure(PlaybackHarnessError):
    """A probe record did not satisfy its scenario expectation."""
