"""Version string and coordinate token parsing."""

from __future__ import annotations

import re
from typing import Optional, Tuple

from depsteward.constants import Constants
from depsteward.exceptions import ConfigurationError
from .models import Coordinates, Dependency, Marker, NumericVersion, VariableVersion, Version

_NUMERIC = re.compile(r"^(\d+(?:\.\d+)*)(.*)$", re.DOTALL)
_VARIABLE = re.compile(r"^\{\{(\w+)\}\}$")
_TOKEN = re.compile(
    r"^\s*([^\s:]+)\s*(::?)\s*([^\s:]+)\s*(?::\s*([^\s:]+)\s*(?::\s*([^\s:]+)\s*)?)?$"
)


def parse_numeric(text: str, marker: Marker = Marker.NO_MARKER) -> Optional[NumericVersion]:
    """Parse ``text`` (without marker prefix) into a NumericVersion.

    Returns None when the string does not start with a digit run.
    """
    match = _NUMERIC.match(text)
    if match is None:
        return None
    numeric_part, rest = match.groups()
    parts = tuple(int(p) for p in numeric_part.split("."))
    return NumericVersion(parts, rest or None, marker)


def parse_version(text: str) -> Optional[NumericVersion]:
    """Parse a declared version, honouring a leading ``=``, ``^`` or ``~`` marker."""
    if not text:
        return None
    marker = Marker.from_prefix(text[0])
    if marker is not None:
        return parse_numeric(text[1:], marker)
    return parse_numeric(text, Marker.NO_MARKER)


def parse_variable(text: str) -> Optional[str]:
    """Return the variable name for ``{{name}}`` strings, else None."""
    match = _VARIABLE.match(text.strip())
    return match.group(1) if match else None


def tokenize_coordinates(token: str) -> Tuple[str, bool, str, Optional[str], Optional[str]]:
    """Split ``org:name[:version[:configuration]]`` (``::`` for cross artifacts).

    Returns:
        Tuple of (organization, is_cross, name, version or None, configuration or None).

    Raises:
        ConfigurationError: The token is not a coordinate.
    """
    match = _TOKEN.match(token)
    if match is None:
        raise ConfigurationError(f"{token} is not a valid dependency")
    org, separator, name, version, configuration = match.groups()
    return org, separator == "::", name, version, configuration


def parse_dependency_token(token: str) -> Tuple[Coordinates, Optional[Version]]:
    """Parse a single coordinate token as given on the command line.

    The version part may be a numeric version (with marker) or ``{{variable}}``.
    Variables come back unresolved; a missing version comes back as None.
    """
    org, is_cross, name, raw_version, configuration = tokenize_coordinates(token)
    coordinates = Coordinates(
        org, name, is_cross, configuration or Constants.DEFAULT_CONFIGURATION
    )
    if raw_version is None:
        return coordinates, None

    variable = parse_variable(raw_version)
    if variable is not None:
        return coordinates, VariableVersion(variable)

    version = parse_version(raw_version)
    if version is None:
        raise ConfigurationError(f"{token} is not a valid dependency: bad version {raw_version!r}")
    return coordinates, version


def parse_dependency(token: str, group: str = "") -> Dependency:
    """Parse a token that must carry a version into a Dependency."""
    coordinates, version = parse_dependency_token(token)
    if version is None:
        raise ConfigurationError(f"{token} has no version")
    return Dependency(coordinates, version, group)
