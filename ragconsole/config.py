"""Console configuration.

Supports a YAML config file with environment variable overrides.

Priority (highest to lowest):
1. Environment variables (RAGCONSOLE_*)
2. Config file (YAML, from RAGCONSOLE_CONFIG_PATH or an explicit path)
3. Defaults
"""

from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

DEFAULT_HOME = "~/.ragconsole"
STORAGE_FILE = "storage.json"


class ConfigError(Exception):
    """Configuration error with helpful message."""
    pass


@dataclass
class ConsoleConfig:
    api_base: str = "http://127.0.0.1:8000"
    timeout: float = 60.0
    home: str = DEFAULT_HOME
    log_format: str = "text"

    @property
    def storage_path(self) -> Path:
        """Durable storage file holding the credential."""
        return Path(self.home).expanduser() / STORAGE_FILE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConsoleConfig":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        unknown = sorted(set(data) - set(known))
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")
        for key in ("api_base", "home", "log_format"):
            if key in known and not isinstance(known[key], str):
                raise ConfigError(f"{key} must be a string, got {type(known[key]).__name__}")
        if "timeout" in known:
            timeout = known["timeout"]
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
                raise ConfigError(f"timeout must be a number, got {timeout!r}")
            known["timeout"] = float(timeout)
        return cls(**known)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def validate(self) -> list[str]:
        """Return list of validation errors."""
        errors = []
        if not self.api_base.startswith(("http://", "https://")):
            errors.append(f"api_base must be an http(s) URL, got {self.api_base!r}")
        if self.timeout <= 0:
            errors.append(f"timeout must be > 0, got {self.timeout}")
        if self.log_format not in ("text", "json"):
            errors.append(f"log_format must be 'text' or 'json', got {self.log_format}")
        return errors


def load_yaml_config(path: Path) -> Dict[str, Any]:
    """Load YAML config file."""
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}")
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a YAML object, got {type(data).__name__}")
    return data


def apply_env_overrides(config: ConsoleConfig) -> ConsoleConfig:
    """Env vars take precedence over file config."""
    if api_base := os.environ.get("RAGCONSOLE_API_BASE"):
        config.api_base = api_base
    if timeout := os.environ.get("RAGCONSOLE_TIMEOUT"):
        try:
            config.timeout = float(timeout)
        except ValueError:
            raise ConfigError(f"RAGCONSOLE_TIMEOUT must be a number, got {timeout!r}")
    if home := os.environ.get("RAGCONSOLE_HOME"):
        config.home = home
    if log_format := os.environ.get("RAGCONSOLE_LOG_FORMAT"):
        config.log_format = log_format
    return config


def load_console_config(config_path: Optional[Union[str, Path]] = None) -> ConsoleConfig:
    """Load configuration.

    Raises:
        ConfigError: If the file is missing, malformed, or values are invalid
    """
    if config_path is None:
        config_path = os.environ.get("RAGCONSOLE_CONFIG_PATH")

    if config_path:
        config = ConsoleConfig.from_dict(load_yaml_config(Path(config_path)))
    else:
        config = ConsoleConfig()

    config = apply_env_overrides(config)
    errors = config.validate()
    if errors:
        raise ConfigError("Invalid configuration:\n  " + "\n  ".join(errors))
    return config


# ── Logging ──────────────────────────────────────────────────────

class JsonLineFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def setup_logging(verbose: bool = False, log_format: str = "text") -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    if log_format == "json":
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(JsonLineFormatter())
        logging.basicConfig(level=level, handlers=[handler], force=True)
    else:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=level,
            stream=sys.stderr,
            force=True,
        )
    # httpx logs every request line at INFO, including full URLs.
    logging.getLogger("httpx").setLevel(logging.WARNING)
