"""Probe injection and the scenario library."""

from .protocol import PROBE_PRELUDE, ProbeCompletion, ProbeRunner, build_probe_script
from .scenarios import SCENARIOS, ScenarioDefinition, get_scenario, scenarios_for

__all__ = [
    "PROBE_PRELUDE",
    "ProbeCompletion",
    "ProbeRunner",
    "build_probe_script",
    "SCENARIOS",
    "ScenarioDefinition",
    "get_scenario",
    "scenarios_for",
]
