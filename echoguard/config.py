"""Deployment settings for echoguard.

Settings come from a YAML file and are overridden by environment variables.
Lookup order for the file: explicit ``path`` argument, ``$ECHOGUARD_CONFIG``,
then ``~/.echoguard/config.yaml``.  A missing file is not an error; every
field has a default.

Example ``config.yaml``::

    data_dir: /var/lib/echoguard
    toxicity_threshold: 0.5
    fail_policy: open
    max_unverified_attempts: 3
    providers:
      perspective_api_key: "..."
      textrazor_api_key: "..."
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from echoguard.errors import ConfigurationError

# Scores strictly above this value reject content.  Observed calibration puts
# toxic samples around 0.8 and clean ones around 0.1.
TOXICITY_THRESHOLD = 0.5

MAX_UNVERIFIED_ATTEMPTS = 3

DEFAULT_MONITORED_ATTRIBUTES = (
    "TOXICITY",
    "SEVERE_TOXICITY",
    "INSULT",
    "PROFANITY",
    "THREAT",
)

FAIL_POLICIES = ("open", "closed")

_ENV_OVERRIDES = {
    "ECHOGUARD_DATA_DIR": "data_dir",
    "ECHOGUARD_ADMIN_TOKEN": "admin_token",
    "ECHOGUARD_LOG_LEVEL": "log_level",
    "ECHOGUARD_FAIL_POLICY": "fail_policy",
    "PERSPECTIVE_API_KEY": "perspective_api_key",
    "TEXTRAZOR_API_KEY": "textrazor_api_key",
    "INTERFACE_API_KEY": "interface_api_key",
    "CLASSIFIER_API_KEY": "classifier_api_key",
}


def _default_data_dir() -> str:
    return str(Path.home() / ".echoguard" / "data")


@dataclass
class Settings:
    """Static, per-deployment settings.

    The mutable moderation toggle lives in the ModerationConfig record, not
    here; these values only change on restart.
    """

    data_dir: str = field(default_factory=_default_data_dir)
    toxicity_threshold: float = TOXICITY_THRESHOLD
    monitored_attributes: tuple[str, ...] = DEFAULT_MONITORED_ATTRIBUTES
    fail_policy: str = "open"
    max_unverified_attempts: int = MAX_UNVERIFIED_ATTEMPTS
    config_cache_ttl: float = 5.0
    perspective_api_key: str = ""
    textrazor_api_key: str = ""
    interface_api_key: str = ""
    classifier_api_key: str = ""
    admin_token: str = ""
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.fail_policy not in FAIL_POLICIES:
            raise ConfigurationError(
                f"fail_policy must be one of {FAIL_POLICIES}, got {self.fail_policy!r}",
                details={"config_key": "fail_policy"},
            )
        if not 0.0 <= float(self.toxicity_threshold) <= 1.0:
            raise ConfigurationError(
                "toxicity_threshold must lie in [0.0, 1.0]",
                details={"config_key": "toxicity_threshold"},
            )
        if int(self.max_unverified_attempts) < 1:
            raise ConfigurationError(
                "max_unverified_attempts must be at least 1",
                details={"config_key": "max_unverified_attempts"},
            )
        attributes = self.monitored_attributes
        if not isinstance(attributes, (list, tuple)) or not all(isinstance(a, str) and a for a in attributes):
            raise ConfigurationError(
                "monitored_attributes must be a list of attribute names",
                details={"config_key": "monitored_attributes"},
            )
        self.toxicity_threshold = float(self.toxicity_threshold)
        self.max_unverified_attempts = int(self.max_unverified_attempts)
        self.config_cache_ttl = float(self.config_cache_ttl)
        self.monitored_attributes = tuple(a.upper() for a in self.monitored_attributes)

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir)


def _config_file(path: Optional[str | Path]) -> Optional[Path]:
    if path is not None:
        return Path(path)
    env_path = os.environ.get("ECHOGUARD_CONFIG")
    if env_path:
        return Path(env_path)
    default = Path.home() / ".echoguard" / "config.yaml"
    return default if default.exists() else None


def _flatten(data: dict[str, Any]) -> dict[str, Any]:
    """Lift the optional ``providers:`` section to top-level keys."""
    flat = {k: v for k, v in data.items() if k != "providers"}
    providers = data.get("providers") or {}
    if not isinstance(providers, dict):
        raise ConfigurationError("'providers' must be a mapping", details={"config_key": "providers"})
    flat.update(providers)
    return flat


def load_settings(path: Optional[str | Path] = None) -> Settings:
    """Build Settings from the YAML file (if any) and the environment."""
    values: dict[str, Any] = {}

    config_path = _config_file(path)
    if config_path is not None:
        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        except OSError as e:
            raise ConfigurationError(f"Cannot read settings file {config_path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Settings file {config_path} must contain a mapping")
        values.update(_flatten(data))

    for env_name, key in _ENV_OVERRIDES.items():
        env_value = os.environ.get(env_name)
        if env_value:
            values[key] = env_value

    known = Settings.__dataclass_fields__.keys()
    kwargs = {k: v for k, v in values.items() if k in known}
    if "monitored_attributes" in kwargs:
        attributes = kwargs["monitored_attributes"]
        if not isinstance(attributes, list):
            raise ConfigurationError(
                "monitored_attributes must be a list of attribute names",
                details={"config_key": "monitored_attributes"},
            )
        kwargs["monitored_attributes"] = tuple(attributes)

    try:
        return Settings(**kwargs)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid settings: {e}") from e
