"""Stream and result data structures."""

from .result import ProbeResult
from .stream import StreamDescriptor

__all__ = ["ProbeResult", "StreamDescriptor"]
