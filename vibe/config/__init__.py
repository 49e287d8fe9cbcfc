"""Simple YAML configuration loader for Vibe."""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "vibe.yaml"

DEFAULTS: Dict[str, Any] = {
    "engine": {
        "type": "cli",
        "command": "whisper-cli",
        "extra_args": "",
        "url": "http://127.0.0.1:8080/inference",
        "timeout_seconds": 3600,
    },
    "storage": {
        "data_directory": "data",
        "store_file": "store.json",
    },
    "models": {
        "extension": ".bin",
        "download_url": "https://huggingface.co/ggerganov/whisper.cpp/tree/main",
    },
    "preferences": {
        "display_language": "en-US",
    },
    "logging": {
        "level": "INFO",
        "file_name": "vibe.log",
        "console_output": True,
    },
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


class VibeConfig:
    """Vibe configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, uses vibe.yaml in the
                        current directory when present, otherwise built-in defaults.
        """
        if config_path is None:
            candidate = Path.cwd() / DEFAULT_CONFIG_FILENAME
            self.config_file = candidate if candidate.exists() else None
        else:
            self.config_file = Path(config_path)
            if not self.config_file.exists():
                raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        if self.config_file is None:
            logger.info("No configuration file found, using defaults")
            self.config = copy.deepcopy(DEFAULTS)
            self._resolve_paths(self.config, Path.cwd())
        else:
            logger.info(f"Loading configuration from: {self.config_file}")
            self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")
        except OSError as e:
            raise ValueError(f"Failed to load configuration: {e}")

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ValueError("Configuration file must contain a mapping")

        config = _merge(copy.deepcopy(DEFAULTS), loaded)

        # Resolve relative paths
        self._resolve_paths(config, self.config_file.parent)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any], base_dir: Path) -> None:
        """Resolve relative paths in configuration relative to base_dir."""
        storage = config.get('storage', {})
        for key in ('data_directory', 'models_directory'):
            value = storage.get(key)
            if value and not os.path.isabs(value):
                storage[key] = str(base_dir / value)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'engine.type').

        Args:
            key_path: Dot-separated key path (e.g., 'storage.data_directory')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'engine.url')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        # Navigate to the parent dictionary
        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_data_directory(self) -> str:
        """Get data directory path."""
        data_dir = self.get('storage.data_directory', 'data')
        return str(Path(data_dir).absolute())

    def get_store_path(self) -> str:
        """Get path of the persisted preference store."""
        store_file = self.get('storage.store_file', 'store.json')
        if os.path.isabs(store_file):
            return store_file
        return str(Path(self.get_data_directory()) / store_file)

    def get_default_models_directory(self) -> str:
        """Get models folder used when the user never picked one."""
        models_dir = self.get('storage.models_directory')
        if models_dir:
            return str(Path(models_dir).absolute())
        return str(Path(self.get_data_directory()) / "models")

    def get_logs_directory(self) -> str:
        return str(Path(self.get_data_directory()) / "logs")

    def get_log_file_path(self) -> str:
        return str(Path(self.get_logs_directory()) / self.get('logging.file_name', 'vibe.log'))

    def get_model_extension(self) -> str:
        return self.get('models.extension', '.bin')
