"""Version patterns used by ignore, pin and retraction entries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from depsteward.exceptions import ConfigurationError


@dataclass(frozen=True)
class VersionPattern:
    """Match rule over a version string.

    A version matches when any of the present sub-patterns matches. A pattern
    with no sub-pattern at all matches every version.
    """
    prefix: Optional[str] = None
    suffix: Optional[str] = None
    exact: Optional[str] = None
    contains: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return all(v is None for v in (self.prefix, self.suffix, self.exact, self.contains))

    def matches(self, version: str) -> bool:
        if self.is_empty:
            return True
        return (
            (self.prefix is not None and version.startswith(self.prefix))
            or (self.suffix is not None and version.endswith(self.suffix))
            or (self.exact is not None and version == self.exact)
            or (self.contains is not None and self.contains in version)
        )


def decode_version_pattern(value: Any) -> Optional[VersionPattern]:
    """Decode the ``version`` field of a policy entry.

    ``None`` means no pattern, a plain string is shorthand for a prefix and a
    mapping may carry ``prefix``, ``suffix``, ``exact`` and ``contains``.
    Numbers are rejected: an unquoted ``2.10`` would reach us as ``2.1``.

    Raises:
        ConfigurationError: Unsupported value type.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return VersionPattern(prefix=value)
    if isinstance(value, dict):
        fields = {}
        for key in ("prefix", "suffix", "exact", "contains"):
            raw = value.get(key)
            if raw is not None and not isinstance(raw, str):
                raise ConfigurationError(f"version.{key} must be a string, got {type(raw).__name__}")
            fields[key] = raw
        return VersionPattern(**fields)
    raise ConfigurationError(f"has unsupported version type: {type(value).__name__}")
