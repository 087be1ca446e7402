"""Result persistence."""

from .manager import ReportManager

__all__ = ["ReportManager"]
