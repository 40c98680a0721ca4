"""Command-line interface for Violin Tutor."""

from .main import main

__all__ = ["main"]
