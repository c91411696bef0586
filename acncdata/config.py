"""
Configuration management for acncdata.

Loads configuration from config.yaml, .env file, and environment variables.
Priority: Environment variables > .env file > config.yaml
"""

import os
from pathlib import Path
from typing import Any

import yaml

# Load .env file if it exists (before reading os.environ)
def _load_dotenv():
    """Load .env file from project root."""
    current = Path.cwd()
    for path in [current] + list(current.parents):
        env_path = path / ".env"
        if env_path.exists():
            with open(env_path) as f:
                for line in f:
                    line = line.strip()
                    if line and not line.startswith("#") and "=" in line:
                        key, _, value = line.partition("=")
                        key = key.strip()
                        value = value.strip().strip('"').strip("'")
                        # Only set if not already in environment
                        if key not in os.environ:
                            os.environ[key] = value
            break

_load_dotenv()


# Operator-supplied file -> reporting year map. Only 2017+ exports carry
# the comprehensive financial columns.
DEFAULT_IMPORT_FILES = {
    "datadotgov_ais17.xlsx": 2017,
    "datadotgov_ais18.xlsx": 2018,
    "datadotgov_ais19.csv": 2019,
    "datadotgov_ais20.csv": 2020,
    "datadotgov_ais21.csv": 2021,
    "datadotgov_ais22.csv": 2022,
    "datadotgov_ais23.csv": 2023,
}


class Config:
    """Application configuration singleton."""

    _instance = None
    _config: dict = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._load_config()
        return cls._instance

    def _find_config_file(self) -> Path | None:
        """Find config.yaml in current directory or parent directories."""
        current = Path.cwd()
        for path in [current] + list(current.parents):
            config_path = path / "config.yaml"
            if config_path.exists():
                return config_path
        return None

    def _load_config(self) -> None:
        """Load configuration from file and environment."""
        config_path = self._find_config_file()

        if config_path:
            with open(config_path) as f:
                self._config = yaml.safe_load(f) or {}
        else:
            self._config = {}

        self._apply_env_overrides()

    def _apply_env_overrides(self) -> None:
        """Override config values with environment variables."""
        env_mappings = {
            "ACNC_DB_PATH": ("database", "path"),
            "ACNC_DATA_DIR": ("imports", "data_dir"),
            "ACNC_WEB_HOST": ("web", "host"),
            "ACNC_WEB_PORT": ("web", "port"),
            "ACNC_LOG_LEVEL": ("logging", "level"),
            "ACNC_SERVE_FALLBACK": ("serve", "fallback"),
        }

        for env_var, path in env_mappings.items():
            value = os.environ.get(env_var)
            if value is not None:
                self._set_nested(path, value)

    def _set_nested(self, path: tuple, value: Any) -> None:
        """Set a nested config value."""
        current = self._config
        for key in path[:-1]:
            if key not in current:
                current[key] = {}
            current = current[key]

        # Type conversion for known integer fields
        if path[-1] == "port":
            value = int(value)

        current[path[-1]] = value

    def _get_nested(self, path: tuple, default: Any = None) -> Any:
        """Get a nested config value."""
        current = self._config
        for key in path:
            if not isinstance(current, dict) or key not in current:
                return default
            current = current[key]
        return current

    @property
    def database_path(self) -> Path:
        """Get the SQLite database file path."""
        return Path(self._get_nested(("database", "path"), "./data/acnc_data.db"))

    @property
    def data_dir(self) -> Path:
        """Get the directory holding the historical export files."""
        return Path(self._get_nested(("imports", "data_dir"), "./Historical Data Files"))

    @property
    def import_files(self) -> dict[str, int]:
        """Get the file name -> reporting year map."""
        files = self._get_nested(("imports", "files"))
        if not files:
            return dict(DEFAULT_IMPORT_FILES)
        return {str(name): int(year) for name, year in files.items()}

    @property
    def web_host(self) -> str:
        """Get web server host."""
        return self._get_nested(("web", "host"), "127.0.0.1")

    @property
    def web_port(self) -> int:
        """Get web server port."""
        return self._get_nested(("web", "port"), 3000)

    @property
    def log_level(self) -> str:
        return str(self._get_nested(("logging", "level"), "INFO")).upper()

    @property
    def serve_fallback(self) -> str:
        """Store strategy when the database cannot be opened: 'none' or 'sample'."""
        return str(self._get_nested(("serve", "fallback"), "none")).lower()

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()

    def get(self, *path: str, default: Any = None) -> Any:
        """Get a config value by path."""
        return self._get_nested(path, default)


# Global config instance
config = Config()
