"""Runtime context and observer interfaces."""

from .context import RunContext
from .events import RunObserver

__all__ = ["RunContext", "RunObserver"]
