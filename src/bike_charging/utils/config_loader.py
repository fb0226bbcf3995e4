"""
Centralized YAML Configuration Loader
=====================================

All tunable charging parameters live in a single YAML file
(config/Config.yml) and are accessed through the ConfigLoader class.

Usage:
    from bike_charging.utils.config_loader import ConfigLoader

    charging = ConfigLoader.get_charging_config()
    startup = ConfigLoader.get_startup_config()

    # Or load entire config
    full_config = ConfigLoader.load_config()
"""

import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)


class ConfigLoader:
    """
    Centralized configuration loader with caching.

    The config is cached after first load. Use clear_cache() to force a
    reload, or set_config_path() to point at another file.
    """

    _config_cache: Optional[Dict[str, Any]] = None
    _config_path: Optional[Path] = None

    @classmethod
    def _get_config_path(cls) -> Path:
        """Get the path to the config file."""
        if cls._config_path is None:
            # src/bike_charging/utils/config_loader.py -> src/bike_charging/config/Config.yml
            cls._config_path = Path(__file__).resolve().parent.parent / 'config' / 'Config.yml'
        return cls._config_path

    @classmethod
    def load_config(cls) -> Dict[str, Any]:
        """
        Load the unified YAML configuration with caching.

        Returns:
            Dict containing all configuration sections.

        Raises:
            FileNotFoundError: If config file doesn't exist.
            ValueError: If config file is invalid YAML.
        """
        if cls._config_cache is None:
            config_path = cls._get_config_path()

            if not config_path.exists():
                raise FileNotFoundError(
                    f"Configuration file not found: {config_path}\n"
                    "Expected location: config/Config.yml"
                )

            try:
                with open(config_path, 'r', encoding='utf-8') as f:
                    cls._config_cache = yaml.safe_load(f) or {}
                logger.info(f"Loaded configuration from: {config_path}")
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in config file: {e}") from e

        return cls._config_cache

    @classmethod
    def get_charging_config(cls) -> Dict[str, Any]:
        """
        Get charging loop configuration section.

        Returns:
            Dict with keys: tick_interval_seconds, full_mark, floor, clamp_to_full
        """
        return cls.load_config().get('charging_config') or {}

    @classmethod
    def get_startup_config(cls) -> Dict[str, Any]:
        """
        Get startup configuration section.

        Returns:
            Dict with keys: recovery
        """
        return cls.load_config().get('startup_config') or {}

    @classmethod
    def clear_cache(cls) -> None:
        """Clear the cached configuration."""
        cls._config_cache = None
        logger.debug("Configuration cache cleared")

    @classmethod
    def set_config_path(cls, path: Path) -> None:
        """
        Override the default config path.

        Useful for testing with alternative config files.

        Args:
            path: Path to alternative config file.
        """
        cls._config_path = Path(path)
        cls.clear_cache()
        logger.info(f"Config path set to: {path}")

    @classmethod
    def reset_config_path(cls) -> None:
        """Go back to the packaged config/Config.yml."""
        cls._config_path = None
        cls.clear_cache()
