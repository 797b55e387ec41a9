"""
Configuration management for the content manager helper.
Loads settings from YAML files and applies environment overrides.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from helper_plugin.common.logger import set_log_level
from helper_plugin.content_manager.redactor import DEFAULT_EXCLUDED_FIELDS, DEFAULT_MAX_DEPTH
from helper_plugin.exceptions import ConfigError

# Shipped inside the package (see package_data in setup.py)
DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "default_config.yaml"


class Config:
    """Manages helper configuration from YAML files."""

    DEFAULT_REQUEST_TIMEOUT = 10

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_path: Path to config file. If None, uses the packaged default_config.yaml
        """
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH

        self.config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self.load()

    def load(self) -> None:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            raise ConfigError(f"Config file not found: {self.config_path}")

        with open(self.config_path, 'r') as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {self.config_path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config root must be a mapping: {self.config_path}")

        self._config = data
        self._apply_env_overrides()
        set_log_level(self.log_level)

    def _apply_env_overrides(self) -> None:
        """Override config values from environment variables."""
        if 'HELPER_EXCLUDED_FIELDS' in os.environ:
            fields = [
                name.strip()
                for name in os.environ['HELPER_EXCLUDED_FIELDS'].split(',')
                if name.strip()
            ]
            self.set('redaction.excluded_fields', fields)

        if 'HELPER_ADMIN_URL' in os.environ:
            self.set('admin.base_url', os.environ['HELPER_ADMIN_URL'])

        if 'HELPER_API_TOKEN' in os.environ:
            self.set('admin.api_token', os.environ['HELPER_API_TOKEN'])

        if 'HELPER_LOG_LEVEL' in os.environ:
            self.set('logging.level', os.environ['HELPER_LOG_LEVEL'])

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key: Configuration key (e.g., 'redaction.max_depth')
            default: Default value if key not found

        Returns:
            Configuration value or default

        Example:
            >>> config = Config()
            >>> config.get('admin.base_url')
            'http://localhost:1337'
        """
        value = self._config

        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value using dot notation.

        Args:
            key: Configuration key (e.g., 'admin.api_token')
            value: Value to set
        """
        keys = key.split('.')
        config = self._config

        for k in keys[:-1]:
            if not isinstance(config.get(k), dict):
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    def save(self, path: Optional[str] = None) -> None:
        """
        Save configuration to YAML file.

        Args:
            path: Path to save to. If None, uses original config_path
        """
        save_path = Path(path) if path else self.config_path

        with open(save_path, 'w') as f:
            yaml.dump(self._config, f, default_flow_style=False, indent=2)

    @property
    def excluded_fields(self) -> Tuple[str, ...]:
        """Field names stripped from every record level."""
        fields = self.get('redaction.excluded_fields')
        if not isinstance(fields, (list, tuple)):
            return DEFAULT_EXCLUDED_FIELDS
        return tuple(str(name) for name in fields)

    @property
    def retain_unstructured(self) -> bool:
        """Whether scalars and undeclared fields pass through redaction."""
        return bool(self.get('redaction.retain_unstructured', False))

    @property
    def max_depth(self) -> int:
        """Maximum content nesting depth accepted by the redactor."""
        value = self.get('redaction.max_depth', DEFAULT_MAX_DEPTH)
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"redaction.max_depth must be an integer, got {value!r}") from e

    @property
    def admin_url(self) -> str:
        """Get the admin API base URL."""
        return self.get('admin.base_url', '')

    @property
    def api_token(self) -> Optional[str]:
        """Get the admin API token."""
        return self.get('admin.api_token')

    @property
    def request_timeout(self) -> float:
        """Timeout in seconds for admin API requests."""
        return float(self.get('admin.request_timeout', self.DEFAULT_REQUEST_TIMEOUT))

    @property
    def log_level(self) -> str:
        """Get the configured log level name."""
        return str(self.get('logging.level', 'INFO')).upper()

    def __repr__(self) -> str:
        """String representation."""
        return f"Config(path={self.config_path})"


# Global config instance (can be imported by other modules)
_global_config: Optional[Config] = None


def get_config(config_path: Optional[str] = None) -> Config:
    """
    Get the global configuration instance.

    Args:
        config_path: Path to config file (only used on first call)

    Returns:
        Config instance
    """
    global _global_config

    if _global_config is None:
        _global_config = Config(config_path)

    return _global_config
