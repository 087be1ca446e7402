"""Suite driver and stream catalog loading."""

from .loader import load_stream_catalog, parse_stream
from .orchestrator import (
    ResultBundle,
    RunResult,
    TestCase,
    TestHarness,
    TestHarnessConfig,
    harness_page_url,
)

__all__ = [
    "load_stream_catalog",
    "parse_stream",
    "ResultBundle",
    "RunResult",
    "TestCase",
    "TestHarness",
    "TestHarnessConfig",
    "harness_page_url",
]
