"""Configuration management for pymobilecoder.

Settings are read from environment variables first, then from the JSON
config file in ``~/.config/pymobilecoder/config.json``.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from .exceptions import MobileCoderConfigError
from .utils import DEFAULT_SYNC_INTERVAL

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://backend-production-a87d.up.railway.app/api"

# Config file key -> environment variable
ENV_VARS: dict[str, str] = {
    "api_url": "MOBILECODER_API_URL",
    "sync_directory": "MOBILECODER_SYNC_DIRECTORY",
    "auto_sync": "MOBILECODER_AUTO_SYNC",
    "sync_interval": "MOBILECODER_SYNC_INTERVAL",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    logger.warning(f"Invalid boolean value {value!r}, using {default}")
    return default


def _parse_float(value: Any, default: float) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid number {value!r}, using {default}")
        return default


class Config:
    """Manages configuration for pymobilecoder."""

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_dir: Directory holding config.json and credentials.json.
                Defaults to ~/.config/pymobilecoder
        """
        if config_dir is None:
            config_dir = Path.home() / ".config" / "pymobilecoder"
        self.config_dir = config_dir
        self.config_file = config_dir / "config.json"

    def get_config_path(self) -> Path:
        """Get the path to the config file."""
        return self.config_file

    def get_credentials_path(self) -> Path:
        """Get the path to the file storing the access token."""
        return self.config_dir / "credentials.json"

    def _load_file(self) -> dict[str, Any]:
        if not self.config_file.exists():
            return {}
        try:
            with open(self.config_file, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to read config file {self.config_file}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed config file {self.config_file}")
            return {}
        return data

    def get(self, key: str, default: Any = None) -> Any:
        """Get a raw setting value.

        Args:
            key: Setting name (api_url, sync_directory, auto_sync, sync_interval)
            default: Value returned when the setting is not configured

        Returns:
            The environment variable value if set, else the config file
            value, else default
        """
        env_name = ENV_VARS.get(key)
        if env_name and os.environ.get(env_name) is not None:
            return os.environ[env_name]
        return self._load_file().get(key, default)

    def save(self, key: str, value: Any) -> None:
        """Persist a setting to the config file.

        Args:
            key: Setting name
            value: JSON serializable value
        """
        data = self._load_file()
        data[key] = value
        self.config_dir.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    @property
    def api_url(self) -> str:
        return str(self.get("api_url") or DEFAULT_API_URL).rstrip("/")

    @property
    def sync_directory(self) -> str:
        return str(self.get("sync_directory") or "")

    @property
    def auto_sync(self) -> bool:
        return _parse_bool(self.get("auto_sync"), True)

    @property
    def sync_interval(self) -> float:
        return _parse_float(self.get("sync_interval"), DEFAULT_SYNC_INTERVAL)


@dataclass
class SyncSettings:
    """Settings consumed by the sync engine and the file watcher."""

    workspace_root: Optional[Path]
    """Workspace directory; relative sync directories resolve against it"""

    sync_directory: str = ""
    """Configured sync directory, empty for the workspace root"""

    auto_sync: bool = True
    """Whether the file watcher starts at all"""

    sync_interval: float = DEFAULT_SYNC_INTERVAL
    """Debounce interval in seconds; <= 0 detects changes but never syncs"""

    @classmethod
    def from_config(
        cls, config: Config, workspace_root: Optional[Path] = None
    ) -> "SyncSettings":
        """Build settings from a Config.

        Args:
            config: Configuration source
            workspace_root: Workspace directory, defaults to the current
                working directory
        """
        if workspace_root is None:
            workspace_root = Path.cwd()
        return cls(
            workspace_root=workspace_root,
            sync_directory=config.sync_directory,
            auto_sync=config.auto_sync,
            sync_interval=config.sync_interval,
        )

    def resolve_root(self) -> Optional[Path]:
        """Resolve the directory to sync.

        Returns:
            Absolute sync root, or None when neither a workspace nor an
            absolute sync directory is available
        """
        if self.sync_directory:
            sync_dir = Path(self.sync_directory).expanduser()
            if sync_dir.is_absolute():
                return sync_dir
            if self.workspace_root is None:
                return None
            return self.workspace_root / sync_dir
        return self.workspace_root

    def require_root(self) -> Path:
        """Resolve the sync root or raise MobileCoderConfigError."""
        root = self.resolve_root()
        if root is None:
            raise MobileCoderConfigError("No sync directory configured")
        return root


config = Config()
