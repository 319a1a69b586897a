"""Data models for versions, coordinates and dependencies."""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple, Union

from depsteward.constants import Constants

_SUFFIX_NUMBER = re.compile(r"(\d+)")
_LEADING_SEPARATOR = re.compile(r"^[.-]")


class Marker(Enum):
    """Pin strength of a declared version; the value is its textual prefix."""
    NO_MARKER = ""
    EXACT = "="
    MAJOR = "^"
    MINOR = "~"

    @property
    def prefix(self) -> str:
        """Prefix written in front of the version."""
        return self.value

    @property
    def is_exact(self) -> bool:
        """True for the marker that never allows an update."""
        return self is Marker.EXACT

    @classmethod
    def from_prefix(cls, char: str) -> Optional["Marker"]:
        """Return the marker for a leading character, or None."""
        for marker in cls:
            if marker.value and marker.value == char:
                return marker
        return None


@dataclass(frozen=True)
class NumericVersion:
    """A version made of dotted integer parts and an optional trailing suffix.

    Supports shapes like ``1.2.3``, ``1.0``, ``3.2.14.0``, ``4.2.7.Final`` and
    ``1.0.0-rc1``. The suffix keeps its leading separator.

    Equality is structural (parts, suffix and marker) and instances define no
    ordering operators. Order them through ``compare_versions`` or
    ``version_key``, under which ``1.0`` and ``1.0.0`` are equal.
    """
    parts: Tuple[int, ...]
    suffix: Optional[str] = None
    marker: Marker = Marker.NO_MARKER

    def __post_init__(self) -> None:
        if not self.parts:
            raise ValueError("a numeric version needs at least one part")
        if any(p < 0 for p in self.parts):
            raise ValueError(f"version parts must be non-negative: {self.parts}")
        # Accept lists for convenience, store tuples so instances stay hashable
        object.__setattr__(self, "parts", tuple(self.parts))
        if self.suffix == "":
            object.__setattr__(self, "suffix", None)

    @property
    def major(self) -> int:
        return self.parts[0]

    @property
    def minor(self) -> int:
        return self.parts[1] if len(self.parts) > 1 else 0

    @property
    def is_stable(self) -> bool:
        """Three parts and no suffix."""
        return self.suffix is None and len(self.parts) == 3

    @property
    def suffix_type(self) -> Optional[str]:
        """Suffix lower-cased, leading separator stripped and digits replaced by ``*``."""
        if self.suffix is None:
            return None
        normalized = _LEADING_SEPARATOR.sub("", self.suffix.lower())
        return re.sub(r"\d", "*", normalized)

    @property
    def suffix_number(self) -> Optional[int]:
        """First run of digits anywhere in the suffix (``-rc2`` -> 2, ``-jre`` -> None)."""
        if self.suffix is None:
            return None
        match = _SUFFIX_NUMBER.search(self.suffix)
        return int(match.group(1)) if match else None

    @property
    def version_string(self) -> str:
        """Version without marker prefix."""
        return ".".join(str(p) for p in self.parts) + (self.suffix or "")

    def show(self) -> str:
        """Version with its marker prefix."""
        return f"{self.marker.prefix}{self.version_string}"

    def with_marker(self, marker: Marker) -> "NumericVersion":
        return replace(self, marker=marker)

    def is_same_version(self, other: "NumericVersion") -> bool:
        """Same parts and suffix, ignoring the marker."""
        return self.parts == other.parts and self.suffix == other.suffix

    def __str__(self) -> str:
        return self.show()


@dataclass(frozen=True)
class VariableVersion:
    """Placeholder (``{{name}}``) whose concrete value is looked up elsewhere.

    ``resolved`` is the value that lookup produced, if any.
    """
    name: str
    resolved: Optional[NumericVersion] = None

    @property
    def version_string(self) -> str:
        if self.resolved is None:
            return self.show()
        return self.resolved.version_string

    def show(self) -> str:
        return "{{" + self.name + "}}"

    def __str__(self) -> str:
        return self.show()


Version = Union[NumericVersion, VariableVersion]


def compare_versions(a: NumericVersion, b: NumericVersion) -> int:
    """Total ordering over numeric versions.

    Parts are compared left to right with the shorter list padded with zeros,
    ties fall through to the suffix number (absent counts as 0). Returns -1, 0
    or 1. Markers do not take part in the comparison.
    """
    width = max(len(a.parts), len(b.parts))
    padded_a = a.parts + (0,) * (width - len(a.parts))
    padded_b = b.parts + (0,) * (width - len(b.parts))
    for left, right in zip(padded_a, padded_b):
        if left != right:
            return -1 if left < right else 1

    left_suffix = a.suffix_number or 0
    right_suffix = b.suffix_number or 0
    if left_suffix != right_suffix:
        return -1 if left_suffix < right_suffix else 1
    return 0


version_key = functools.cmp_to_key(compare_versions)


def marker_allows(marker: Marker, reference: NumericVersion, candidate: NumericVersion) -> bool:
    """Compatibility predicate attached to each marker."""
    if marker is Marker.NO_MARKER:
        return True
    if marker is Marker.EXACT:
        return False
    if marker is Marker.MAJOR:
        return reference.major == candidate.major
    if marker is Marker.MINOR:
        return reference.major == candidate.major and reference.minor == candidate.minor
    raise TypeError(f"unknown marker: {marker!r}")


def is_valid_candidate(reference: NumericVersion, candidate: NumericVersion) -> bool:
    """Whether ``candidate`` is an acceptable update target for ``reference``.

    Requires the same shape (number of parts), the same suffix type, and the
    reference marker's approval, in that order.
    """
    if len(reference.parts) != len(candidate.parts):
        return False
    if reference.suffix_type != candidate.suffix_type:
        return False
    return marker_allows(reference.marker, reference, candidate)


@dataclass(frozen=True)
class Coordinates:
    """Identity of a dependency, excluding its version."""
    organization: str
    name: str
    is_cross: bool = False
    configuration: str = Constants.DEFAULT_CONFIGURATION

    @property
    def is_plugin(self) -> bool:
        return self.configuration == Constants.PLUGIN_CONFIGURATION

    def same_artifact(self, other: "Coordinates") -> bool:
        """True when organization, name, cross flag and configuration all match."""
        return (
            self.organization == other.organization
            and self.name == other.name
            and self.is_cross == other.is_cross
            and self.configuration == other.configuration
        )

    def show(self) -> str:
        separator = "::" if self.is_cross else ":"
        return f"{self.organization}{separator}{self.name}"

    def __str__(self) -> str:
        return self.show()


@dataclass(frozen=True)
class Dependency:
    """A declared dependency: coordinates plus version.

    Instances are immutable; updates produce a new value via ``with_version``.
    """
    coordinates: Coordinates
    version: Version
    group: str = field(default="", compare=False)

    @property
    def organization(self) -> str:
        return self.coordinates.organization

    @property
    def name(self) -> str:
        return self.coordinates.name

    def with_version(self, version: Version) -> "Dependency":
        return replace(self, version=version)

    def to_line(self) -> str:
        """Render as ``org:name:version[:configuration]``."""
        line = f"{self.coordinates.show()}:{self.version.show()}"
        if self.coordinates.configuration != Constants.DEFAULT_CONFIGURATION:
            line += f":{self.coordinates.configuration}"
        return line

    def __str__(self) -> str:
        return self.to_line()
