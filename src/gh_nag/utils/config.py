"""Configuration management for gh-nag."""

import copy
import logging
from pathlib import Path
from typing import Any, Optional

try:
    import tomllib
except ImportError:
    import tomli as tomllib

import pytz
import tomli_w

from .rich_logger import get_logger, setup_logging

logger = get_logger(__name__)

ALLOWED_CONFIG_DIRS = [
    Path.cwd(),
    Path.home() / ".config" / "gh-nag",
    Path.home(),
]

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "gh-nag" / "config.toml"

DEFAULT_COMMENT = """This issue currently has no milestone, so we'd like to check in and see if there are any plans for it in the upcoming release.

If so, please make sure this issue is up to date with:
- A one-line description (can be used as a release note)
- A primary contact (assignee)
- The responsible SIGs
- A target milestone

P.S. This was sent via automation
"""


def _validate_config_path(config_path: Path) -> bool:
    """
    Validate that config path is within allowed directories.

    Args:
        config_path: Path to validate

    Returns:
        True if path is safe, False otherwise
    """
    try:
        resolved_path = config_path.expanduser().resolve()
        for allowed_dir in ALLOWED_CONFIG_DIRS:
            try:
                resolved_path.relative_to(allowed_dir.resolve())
                return True
            except ValueError:
                continue

        logger.warning("Config path not in allowed directories", path=str(resolved_path))
        return False

    except (OSError, RuntimeError) as e:
        logger.warning("Failed to validate config path", path=str(config_path), error=str(e))
        return False


class ConfigManager:
    """Manage configuration for gh-nag."""

    DEFAULT_CONFIG = {
        "github": {
            "token": None,
            "per_page": 100,
            "timeout": 30,
        },
        "nag": {
            "repository": None,
            "state": "open",
            "milestone": "none",
            "labels": [],
            "exclude_labels": ["tracked/no"],
            "comment": DEFAULT_COMMENT,
            "comment_file": None,
        },
        "notify": {
            "rate_limit": 1.0,
            "max_concurrent": 1,
        },
        "logging": {
            "level": "INFO",
            "console_output": True,
            "file_output": False,
            "log_file": None,
            "timezone": "UTC",
        },
    }

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize ConfigManager.

        Args:
            config_path: Path to config file
        """
        self.config = copy.deepcopy(self.DEFAULT_CONFIG)
        self.config_path = self._find_config_file(config_path)

        if self.config_path and self.config_path.exists():
            self._load_config()

    def _find_config_file(self, config_path: Optional[str] = None) -> Optional[Path]:
        """
        Find configuration file.

        Args:
            config_path: Explicit config path

        Returns:
            Path object or None
        """
        if config_path:
            path = Path(config_path).expanduser()
            if _validate_config_path(path):
                return path
            return None

        locations = [
            Path(".gh-nag.toml"),
            DEFAULT_CONFIG_PATH,
            Path.home() / ".gh-nag.toml",
        ]

        for location in locations:
            if location.exists() and _validate_config_path(location):
                return location

        return None

    def _load_config(self) -> None:
        """Load configuration from file, keeping defaults on failure."""
        try:
            with open(self.config_path, "rb") as f:
                loaded_config = tomllib.load(f)
            self._merge_config(self.config, loaded_config)
            logger.debug("Loaded config", path=str(self.config_path))
        except (FileNotFoundError, PermissionError, tomllib.TOMLDecodeError) as e:
            logger.warning("Failed to load config, using defaults", path=str(self.config_path), error=str(e))

    def _merge_config(self, base: dict[str, Any], update: dict[str, Any]) -> None:
        """
        Recursively merge update into base, in place.

        Nested dictionaries are merged key by key; any other value replaces
        the one in base.
        """
        for key, value in update.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._merge_config(base[key], value)
            else:
                base[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-separated key.

        Args:
            key: Configuration key, e.g. "nag.milestone"
            default: Value returned when the key is missing

        Returns:
            Configuration value
        """
        value = self.config
        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def merge(self, additional_config: dict[str, Any]) -> None:
        """
        Deep-merge additional configuration, e.g. CLI overrides.

        Args:
            additional_config: Configuration dictionary to merge in

        Raises:
            TypeError: If additional_config is not a dictionary
        """
        if not isinstance(additional_config, dict):
            raise TypeError("additional_config must be a dictionary")
        self._merge_config(self.config, additional_config)

    def save(self, path: Optional[str] = None) -> Optional[Path]:
        """
        Save configuration to file. The token is never written.

        Args:
            path: Path to save to (default: loaded file or ~/.config/gh-nag/config.toml)

        Returns:
            Path written, or None on failure
        """
        save_path = (Path(path).expanduser() if path else self.config_path) or DEFAULT_CONFIG_PATH

        if not _validate_config_path(save_path):
            logger.error("Invalid save path", path=str(save_path))
            return None

        data = copy.deepcopy(self.config)
        data.get("github", {}).pop("token", None)

        try:
            save_path.parent.mkdir(parents=True, exist_ok=True)
            with open(save_path, "wb") as f:
                # TOML has no null; drop unset values
                tomli_w.dump(_drop_none(data), f)
            return save_path
        except (OSError, TypeError) as e:
            logger.error("Failed to save config", path=str(save_path), error=str(e))
            return None

    def read_comment(self) -> str:
        """
        Resolve the comment body: a comment file wins over inline text.

        Returns:
            Comment body

        Raises:
            OSError: If the configured comment file cannot be read
        """
        comment_file = self.get("nag.comment_file")
        if comment_file:
            return Path(comment_file).expanduser().read_text(encoding="utf-8")
        return self.get("nag.comment") or ""

    def setup_logging(self, debug: bool = False) -> None:
        """
        Configure application logging from the [logging] section.

        Args:
            debug: Force DEBUG level regardless of configuration
        """
        log_config = self.get("logging", self.DEFAULT_CONFIG["logging"])

        level_name = "DEBUG" if debug else str(log_config.get("level", "INFO")).upper()
        level = getattr(logging, level_name, logging.INFO)

        try:
            tz = pytz.timezone(log_config.get("timezone") or "UTC")
        except pytz.exceptions.UnknownTimeZoneError:
            tz = pytz.utc

        setup_logging(
            level=level,
            log_file=log_config.get("log_file"),
            console_output=log_config.get("console_output", True),
            file_output=log_config.get("file_output", False),
            timezone=tz,
        )


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {
        key: _drop_none(value) if isinstance(value, dict) else value
        for key, value in data.items()
        if value is not None
    }
