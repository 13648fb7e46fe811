import os
from pathlib import Path


class PathResolver:
    """Central authority for file path resolution in audiodeck.

    Uses environment variables for configuration with sensible defaults.
    """

    def __init__(self) -> None:
        """Initialize PathResolver with environment-based configuration."""
        default_config_dir = Path.home() / ".config" / "audiodeck"
        self.config_dir = Path(os.getenv("AUDIODECK_CONFIG_DIR", str(default_config_dir)))

    def get_config_path(self) -> Path:
        """Get the path to the main configuration file.

        Checks AUDIODECK_CONFIG_PATH environment variable first, then falls back to default.
        """
        config_path = os.getenv("AUDIODECK_CONFIG_PATH")
        if config_path:
            return Path(config_path)
        return self.config_dir / "audiodeck.yaml"
