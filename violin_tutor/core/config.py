"""Configuration management for Violin Tutor components."""

from typing import Dict, Any, Optional
import copy
import json
import os
from pathlib import Path

from ..logger import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIGS: Dict[str, Dict[str, Any]] = {
    "intonation": {
        "reference_frequency": 440.0,
        "offset_tolerance": 0.1,
        "min_clarity": 0.9,
        "min_pitch_hz": 150.0,
        "tuning": [196.0, 293.66, 440.0, 659.26],
        "frets_per_string": 7,
        "prefer_higher_fret": False,
    },
    "tracking": {
        "track_hand_frame": False,
        "storage_key_position": "violin-position",
        "storage_key_orientation": "violin-orientation",
    },
    "runtime": {
        "tick_rate_hz": 20.0,
        "side": "left",
    },
}


class ConfigManager:
    """Configuration manager for Violin Tutor components."""

    def __init__(self, config_dir: Optional[str] = None, persist: bool = True):
        """Initialize the configuration manager.

        Args:
            config_dir: Directory to store configuration files, or None to use default
            persist: When False, never touch the filesystem and use defaults only
        """
        if config_dir is None:
            # Use ~/.config/violin_tutor by default
            home = os.path.expanduser("~")
            config_dir = os.path.join(home, ".config", "violin_tutor")

        self.config_dir = Path(config_dir)
        self.persist = persist
        if self.persist:
            self.config_dir.mkdir(parents=True, exist_ok=True)

        self.default_configs = {
            name: copy.deepcopy(values) for name, values in DEFAULT_CONFIGS.items()
        }

        # Load existing configurations or create default ones
        self.configs = {}
        for config_name, default_config in self.default_configs.items():
            self.configs[config_name] = self.load_config(config_name, default_config)

    def load_config(self, name: str, default_config: Dict[str, Any]) -> Dict[str, Any]:
        """Load configuration from file or create default.

        Args:
            name: Configuration name
            default_config: Default configuration to use if file doesn't exist

        Returns:
            Configuration dictionary
        """
        if not self.persist:
            return copy.deepcopy(default_config)

        config_file = self.config_dir / f"{name}.json"

        if config_file.exists():
            try:
                with open(config_file, "r") as f:
                    config = json.load(f)
                logger.info(f"Loaded configuration from {config_file}")

                # Ensure all default keys are present
                for key, value in default_config.items():
                    if key not in config:
                        config[key] = copy.deepcopy(value)

                return config
            except (OSError, ValueError) as e:
                logger.error(f"Error loading configuration from {config_file}: {e}")
                return copy.deepcopy(default_config)
        else:
            # Create default configuration
            config = copy.deepcopy(default_config)
            self.save_config(name, config)
            return config

    def save_config(self, name: str, config: Dict[str, Any]) -> bool:
        """Save configuration to file.

        Args:
            name: Configuration name
            config: Configuration dictionary

        Returns:
            True if saved successfully, False otherwise
        """
        if not self.persist:
            return True

        config_file = self.config_dir / f"{name}.json"

        try:
            with open(config_file, "w") as f:
                json.dump(config, f, indent=2)
            logger.info(f"Saved configuration to {config_file}")
            return True
        except OSError as e:
            logger.error(f"Error saving configuration to {config_file}: {e}")
            return False

    def get_config(self, name: str) -> Dict[str, Any]:
        """Get a copy of the configuration by name."""
        return copy.deepcopy(self.configs.get(name, {}))

    def update_config(self, name: str, updates: Dict[str, Any]) -> bool:
        """Update configuration and save to file.

        Args:
            name: Configuration name
            updates: Dictionary of updates to apply

        Returns:
            True if updated and saved successfully, False otherwise
        """
        if name not in self.configs:
            logger.error(f"Unknown configuration: {name}")
            return False

        self.configs[name].update(updates)
        return self.save_config(name, self.configs[name])

    def reset_config(self, name: str) -> bool:
        """Reset configuration to default.

        Returns:
            True if reset successfully, False otherwise
        """
        if name not in self.default_configs:
            logger.error(f"Unknown configuration: {name}")
            return False

        self.configs[name] = copy.deepcopy(self.default_configs[name])
        return self.save_config(name, self.configs[name])
