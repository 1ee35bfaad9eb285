"""Gate policy configuration.

Settings are resolved with the following precedence (highest first):
1. Explicitly passed overrides (CLI flags, API request body)
2. Environment variables
3. Configuration file (``profiles.<name>`` section)
4. Profile defaults
"""
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .errors import ConfigError

logger = logging.getLogger("gate.settings")

# Default configuration paths
DEFAULT_CONFIG_PATHS = [
    Path("~/.config/k3sgate/config.yaml").expanduser(),
    Path("k3sgate.yaml").absolute(),
]


class GateSettings(BaseModel):
    """Retry, backoff and timeout policy for one gate."""
    max_attempts: int = Field(default=20, description="Rounds before giving up")
    base_delay: float = Field(default=3.0, description="Delay after round 1, in seconds")
    max_delay: float = Field(default=30.0, description="Cap on the inter-round delay, in seconds")
    timeout: float = Field(default=300.0, description="Global deadline, in seconds")
    probe_timeout: float = Field(default=10.0, description="Per-attempt probe timeout, in seconds")
    grace: float = Field(default=10.0, description="Extra wait for a probe past its timeout")
    max_workers: Optional[int] = Field(default=None, description="Cap on concurrent probes per round")

    model_config = {"extra": "ignore"}

    @field_validator('max_attempts')
    @classmethod
    def positive_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_attempts must be >= 1")
        return v

    @field_validator('base_delay', 'max_delay', 'grace')
    @classmethod
    def non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("must be >= 0")
        return v

    @field_validator('timeout', 'probe_timeout')
    @classmethod
    def positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @field_validator('max_workers')
    @classmethod
    def positive_workers(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError("max_workers must be >= 1")
        return v

    @model_validator(mode='after')
    def delay_cap_covers_base(self) -> 'GateSettings':
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")
        return self

    @classmethod
    def build(cls, **values: Any) -> 'GateSettings':
        """Construct settings, reporting validation problems as ConfigError."""
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigError(f"Invalid gate settings: {e}") from e

    def with_overrides(self, **overrides: Any) -> 'GateSettings':
        """Return a copy with every non-None override applied."""
        values = self.model_dump()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return self.build(**values)

    @classmethod
    def load(
        cls,
        profile: str = "ssh",
        config_path: Optional[Union[str, Path]] = None,
        environ: Optional[Dict[str, str]] = None,
    ) -> 'GateSettings':
        """Resolve settings for a probe profile from defaults, file and environment."""
        values: Dict[str, Any] = dict(PROFILE_DEFAULTS.get(profile, {}))
        values.update(_file_section(profile, config_path))
        values.update(_env_values(profile, os.environ if environ is None else environ))
        return cls.build(**values)


# Default gate policy, per probe.
PROFILE_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "ssh": {
        "max_attempts": 20, "base_delay": 3, "max_delay": 30,
        "timeout": 300, "probe_timeout": 10,
    },
    "cloud-init": {
        "max_attempts": 30, "base_delay": 5, "max_delay": 60,
        "timeout": 600, "probe_timeout": 30,
    },
    "k3s-api": {
        "max_attempts": 40, "base_delay": 5, "max_delay": 30,
        "timeout": 600, "probe_timeout": 10,
    },
}

# Name of the per-attempt timeout variable, per probe.
PROBE_TIMEOUT_VARS: Dict[str, str] = {
    "ssh": "SSH_TIMEOUT",
    "cloud-init": "CLOUD_INIT_TIMEOUT",
    "k3s-api": "API_TIMEOUT",
}

_ENV_FIELDS = {
    "MAX_ATTEMPTS": ("max_attempts", int),
    "BASE_DELAY": ("base_delay", float),
    "MAX_DELAY": ("max_delay", float),
    "TIMEOUT": ("timeout", float),
    "GRACE": ("grace", float),
    "MAX_WORKERS": ("max_workers", int),
}


def profiles() -> List[str]:
    return list(PROFILE_DEFAULTS)


def _env_values(profile: str, environ: Dict[str, str]) -> Dict[str, Any]:
    fields = dict(_ENV_FIELDS)
    fields[PROBE_TIMEOUT_VARS.get(profile, "PROBE_TIMEOUT")] = ("probe_timeout", float)
    values: Dict[str, Any] = {}
    for var, (name, kind) in fields.items():
        raw = environ.get(var)
        if raw is None or raw == "":
            continue
        try:
            values[name] = kind(raw)
        except ValueError:
            raise ConfigError(f"{var} must be a number, got {raw!r}") from None
    return values


def _file_section(profile: str, config_path: Optional[Union[str, Path]]) -> Dict[str, Any]:
    path = find_config_file(config_path)
    if path is None:
        return {}
    data = load_config_file(path)
    profiles_section = _mapping(data.get("profiles"), "profiles", path)
    section = _mapping(profiles_section.get(profile), f"profiles.{profile}", path)
    defaults = _mapping(data.get("defaults"), "defaults", path)
    merged = dict(defaults)
    merged.update(section)
    logger.debug(f"Loaded {profile} settings from {path}: {merged}")
    return merged


def _mapping(value: Any, key: str, path: Path) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' in {path} must be a mapping, got {type(value).__name__}")
    return value


def find_config_file(config_path: Optional[Union[str, Path]] = None) -> Optional[Path]:
    """Return the config file to use, or None."""
    if config_path:
        path = Path(config_path).expanduser().absolute()
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        return path
    for path in DEFAULT_CONFIG_PATHS:
        path = path.expanduser().absolute()
        if path.exists():
            return path
    return None


def load_config_file(path: Path) -> Dict[str, Any]:
    """Load configuration from a YAML file."""
    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load config from {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return data
