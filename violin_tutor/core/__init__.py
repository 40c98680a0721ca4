"""Core components for the Violin Tutor application."""

# Import interfaces for easier access
from .interfaces import (
    IPitchOracle,
    IPoseSource,
    IKeyValueStore,
)

__all__ = ["IPitchOracle", "IPoseSource", "IKeyValueStore"]
