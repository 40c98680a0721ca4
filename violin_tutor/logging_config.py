"""Centralized logging configuration for Violin Tutor.

This module provides a consistent way to configure logging across the package.
"""

import logging
import sys
from typing import Optional

# Log levels for different modules
MODULE_LOG_LEVELS = {
    # Core modules
    "violin_tutor": logging.INFO,
    "violin_tutor.violin": logging.INFO,
    "violin_tutor.modes": logging.INFO,
    # Music theory
    "violin_tutor.note_utils": logging.WARNING,
    "violin_tutor.note_matcher": logging.INFO,  # Set to DEBUG for detailed matching info
    "violin_tutor.fingering": logging.INFO,
    "violin_tutor.intonation": logging.INFO,
    "violin_tutor.song": logging.INFO,
    # Pose tracking is chatty at DEBUG, every tick logs
    "violin_tutor.tracking": logging.INFO,
    "violin_tutor.core": logging.INFO,
    "violin_tutor.audio": logging.INFO,
    "violin_tutor.cli": logging.INFO,
    "violin_tutor.logger": logging.WARNING,  # Logger module itself should be quiet
    # Libraries/third-party
    "aubio": logging.ERROR,
    # Root logger
    "": logging.ERROR,
}

# Shared console handler
_console_handler: Optional[logging.Handler] = None


def setup_logging(level: Optional[str] = None) -> None:
    """Set up logging configuration for the application.

    Args:
        level: If provided, override all 'violin_tutor' log levels with this level (e.g., "DEBUG").
    """
    global _console_handler

    # Create a single, shared console handler if it doesn't exist
    if _console_handler is None:
        _console_handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        _console_handler.setFormatter(formatter)

    # Determine log levels
    log_levels = MODULE_LOG_LEVELS.copy()
    if level:
        numeric_level = logging.getLevelName(level.upper())
        if isinstance(numeric_level, int):
            for module_name in log_levels:
                if module_name.startswith("violin_tutor"):
                    log_levels[module_name] = numeric_level
        else:
            logging.getLogger(__name__).error(f"Invalid log level: {level}")

    # Apply module-specific levels
    for module_name, module_level in log_levels.items():
        logger = logging.getLogger(module_name if module_name else "")
        logger.setLevel(module_level)

        # Clear existing handlers and add the shared one
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        logger.addHandler(_console_handler)
        logger.propagate = False

    logging.getLogger("violin_tutor").info("Logging configuration complete")
