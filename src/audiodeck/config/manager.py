"""Configuration loading and saving."""

import logging
import shutil
from typing import Any

import yaml
from pydantic import ValidationError

from audiodeck.config.models import AudioDeckConfig
from audiodeck.system.path_resolver import PathResolver

logger = logging.getLogger(__name__)


class ConfigManager:
    """Manages configuration loading and saving."""

    def __init__(self, path_resolver: PathResolver | None = None):
        """Initialize ConfigManager.

        Args:
            path_resolver: Optional PathResolver instance. If None, creates a new one.
        """
        self.path_resolver = path_resolver or PathResolver()
        self.config_path = self.path_resolver.get_config_path()

    def load(self) -> AudioDeckConfig:
        """Load and validate configuration, creating a default file if none exists.

        Returns:
            AudioDeckConfig: Loaded and validated configuration

        Raises:
            ValueError: If the file does not describe a valid configuration
        """
        self._ensure_config_exists()
        raw_config = self._read_yaml()
        return self._create_config_object(raw_config)

    def save(self, config: AudioDeckConfig) -> None:
        """Save configuration to file with backup.

        Args:
            config: Configuration to save

        Raises:
            PermissionError: If config file cannot be written
        """
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        if self.config_path.exists():
            backup_path = self.config_path.with_suffix(".yaml.backup")
            try:
                shutil.copy2(self.config_path, backup_path)
            except PermissionError:
                logger.warning("Could not create backup at %s", backup_path)

        config_yaml = yaml.dump(config.model_dump(), default_flow_style=False, sort_keys=False)
        self.config_path.write_text(config_yaml)
        logger.info("Configuration saved successfully to %s", self.config_path)

    def reload(self) -> AudioDeckConfig:
        """Reload configuration from disk."""
        return self.load()

    def _ensure_config_exists(self) -> None:
        if not self.config_path.exists():
            logger.info("No configuration at %s, writing defaults", self.config_path)
            self.save(AudioDeckConfig())

    def _read_yaml(self) -> dict[str, Any]:
        config_text = self.config_path.read_text()
        raw_config = yaml.safe_load(config_text) or {}
        if not isinstance(raw_config, dict):
            raise ValueError(f"Configuration at {self.config_path} must be a mapping")
        return raw_config

    def _create_config_object(self, raw_config: dict[str, Any]) -> AudioDeckConfig:
        expected_fields = set(AudioDeckConfig.model_fields.keys())
        unexpected_fields = set(raw_config.keys()) - expected_fields
        if unexpected_fields:
            logger.warning("Ignoring unknown config fields: %s", sorted(unexpected_fields))

        filtered_config = {k: v for k, v in raw_config.items() if k in expected_fields}
        try:
            return AudioDeckConfig(**filtered_config)
        except ValidationError as e:
            raise ValueError(f"Configuration validation failed: {e}") from e
