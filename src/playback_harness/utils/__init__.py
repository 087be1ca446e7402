"""Utility functions and helpers."""

from .retry import retry

__all__ = ["retry"]
