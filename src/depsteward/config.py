"""Runtime settings.

Precedence, lowest to highest: ``Constants`` defaults, YAML settings file,
environment variables, command-line arguments.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

import yaml

from depsteward.constants import Constants
from depsteward.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

POLICY_SETTINGS = ("migrations", "ignores", "pins", "retractions", "scalafix_migrations")


@dataclass
class Settings:
    """Tunables for one resolution run.

    Policy URL lists default to the upstream Scala Steward documents; setting a
    list replaces them, an empty list disables that policy kind.
    """
    repositories: List[str] = field(default_factory=lambda: [Constants.MAVEN_CENTRAL_URL])
    plugin_repository: Optional[str] = Constants.SBT_PLUGIN_IVY_URL
    scala_binary_version: str = Constants.DEFAULT_SCALA_BINARY_VERSION
    timeout: float = Constants.REQUEST_TIMEOUT
    parallelism: Optional[int] = None
    migrations: List[str] = field(default_factory=lambda: [Constants.DEFAULT_MIGRATIONS_URL])
    ignores: List[str] = field(default_factory=lambda: [Constants.DEFAULT_POLICY_URL])
    pins: List[str] = field(default_factory=lambda: [Constants.DEFAULT_POLICY_URL])
    retractions: List[str] = field(default_factory=lambda: [Constants.DEFAULT_POLICY_URL])
    scalafix_migrations: List[str] = field(default_factory=lambda: [Constants.DEFAULT_SCALAFIX_MIGRATIONS_URL])

    def update(self, values: Dict[str, Any]) -> None:
        """Apply known keys from ``values``; None values are ignored."""
        known = {f.name for f in fields(self)}
        for key, value in values.items():
            if key not in known:
                logger.warning("Ignoring unknown setting '%s'", key)
                continue
            if value is not None:
                setattr(self, key, value)
        self.validate()

    def drop_default_policies(self) -> None:
        """Remove the upstream policy URLs, keeping any others."""
        defaults = {
            Constants.DEFAULT_POLICY_URL,
            Constants.DEFAULT_MIGRATIONS_URL,
            Constants.DEFAULT_SCALAFIX_MIGRATIONS_URL,
        }
        for name in POLICY_SETTINGS:
            setattr(self, name, [url for url in getattr(self, name) if url not in defaults])

    def validate(self) -> None:
        """Raise ConfigurationError for values the engine cannot use."""
        for name in ("repositories",) + POLICY_SETTINGS:
            value = getattr(self, name)
            if isinstance(value, str):
                setattr(self, name, [value])
            elif not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ConfigurationError(f"'{name}' must be a list of strings")
        if not self.repositories:
            raise ConfigurationError("at least one repository is required")
        try:
            self.timeout = float(self.timeout)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"'timeout' must be a number: {self.timeout!r}") from exc
        if self.timeout <= 0:
            raise ConfigurationError("'timeout' must be positive")
        if self.parallelism is not None:
            try:
                self.parallelism = int(self.parallelism)
            except (TypeError, ValueError) as exc:
                raise ConfigurationError(f"'parallelism' must be an integer: {self.parallelism!r}") from exc
            if self.parallelism < 1:
                raise ConfigurationError("'parallelism' must be at least 1")


def load_settings_file(path: str) -> Dict[str, Any]:
    """Read the settings mapping from a YAML file.

    The ``depsteward`` section is used when present, otherwise the top level.

    Raises:
        ConfigurationError: The file cannot be read or is not a mapping.
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except OSError as exc:
        raise ConfigurationError(f"cannot read settings file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"cannot parse settings file {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"settings file {path} must contain a mapping")
    section = data.get(Constants.SETTINGS_SECTION, data)
    if not isinstance(section, dict):
        raise ConfigurationError(f"'{Constants.SETTINGS_SECTION}' in {path} must be a mapping")
    return section


def environment_overrides(environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Settings taken from ``DEPSTEWARD_*`` environment variables."""
    env = os.environ if environ is None else environ
    overrides: Dict[str, Any] = {}
    if env.get(Constants.ENV_TIMEOUT):
        overrides["timeout"] = env[Constants.ENV_TIMEOUT]
    if env.get(Constants.ENV_PARALLELISM):
        overrides["parallelism"] = env[Constants.ENV_PARALLELISM]
    if env.get(Constants.ENV_REPOSITORIES):
        overrides["repositories"] = [
            r.strip() for r in env[Constants.ENV_REPOSITORIES].split(",") if r.strip()
        ]
    return overrides


def load_settings(
    path: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
    environ: Optional[Dict[str, str]] = None,
) -> Settings:
    """Build settings from file, environment and explicit overrides.

    Without an explicit ``path``, ``settings.yaml`` in the working directory is
    used if it exists.
    """
    settings = Settings()
    if path is None and os.path.isfile(Constants.SETTINGS_FILE):
        path = Constants.SETTINGS_FILE
    if path is not None:
        settings.update(load_settings_file(path))
    settings.update(environment_overrides(environ))
    if overrides:
        settings.update(overrides)
    return settings
