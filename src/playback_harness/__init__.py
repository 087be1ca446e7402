"""Playback Harness - Run adaptive streaming playback scenarios in remote browsers."""

__version__ = "0.1.0"

# Suite driver and catalog
from .harness import (
    ResultBundle,
    RunResult,
    TestCase,
    TestHarness,
    TestHarnessConfig,
    harness_page_url,
    load_stream_catalog,
)

# Remote sessions
from .grid import (
    BrowserCapabilities,
    GridSettings,
    RemoteSession,
    RemoteSessionManager,
    load_browser_capabilities,
)

# Probes and scenarios
from .probes import SCENARIOS, ProbeRunner, ScenarioDefinition, scenarios_for

# Stream/result types
from .tasks import ProbeResult, StreamDescriptor

# Verifiers
from .verifiers import RecordVerifier, Verifier, VerifierResult

# Runtime context and events
from .runtime import RunContext, RunObserver

from .exceptions import (
    CatalogError,
    ConfigurationError,
    ExpectationFailure,
    NavigationError,
    PageNotReadyError,
    PlaybackHarnessError,
    ProbeError,
    ProbeExecutionError,
    ProbeTimeoutError,
    SessionAcquisitionError,
    SessionStalledError,
)
from .utils import retry

__all__ = [
    "__version__",
    "ResultBundle",
    "RunResult",
    "TestCase",
    "TestHarness",
    "TestHarnessConfig",
    "harness_page_url",
    "load_stream_catalog",
    "BrowserCapabilities",
    "GridSettings",
    "RemoteSession",
    "RemoteSessionManager",
    "load_browser_capabilities",
    "SCENARIOS",
    "ProbeRunner",
    "ScenarioDefinition",
    "scenarios_for",
    "ProbeResult",
    "StreamDescriptor",
    "RecordVerifier",
    "Verifier",
    "VerifierResult",
    "RunContext",
    "RunObserver",
    "CatalogError",
    "ConfigurationError",
    "ExpectationFailure",
    "NavigationError",
    "PageNotReadyError",
    "PlaybackHarnessError",
    "ProbeError",
    "ProbeExecutionError",
    "ProbeTimeoutError",
    "SessionAcquisitionError",
    "SessionStalledError",
    "retry",
]
