"""Policy entries loaded from remote documents and their decoders.

Every decoder takes one raw entry (a mapping from the YAML, JSON or
HOCON document) and either returns the typed entry or raises
``ConfigurationError``. The loader turns those errors into per-entry warnings.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from depsteward.exceptions import ConfigurationError
from depsteward.versioning.models import Coordinates, Dependency, NumericVersion, compare_versions
from depsteward.versioning.parser import parse_version
from .version_pattern import VersionPattern, decode_version_pattern

if TYPE_CHECKING:
    from depsteward.report.diff import UpdatedDep


def _require_mapping(raw: Any) -> Dict[str, Any]:
    if not isinstance(raw, dict):
        raise ConfigurationError(f"must be an object, got {type(raw).__name__}")
    return raw


def _required_string(raw: Dict[str, Any], key: str) -> str:
    value = raw.get(key)
    if value is None:
        raise ConfigurationError(f"must have a '{key}'")
    if not isinstance(value, str):
        raise ConfigurationError(f"'{key}' must be a string")
    return value


def _optional_string(raw: Dict[str, Any], key: str) -> Optional[str]:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"'{key}' must be a string")
    return value


@dataclass(frozen=True)
class UpdateIgnore:
    """Versions that must never be offered as update candidates."""
    group_id: str
    artifact_id: Optional[str] = None
    version: Optional[VersionPattern] = None

    def matches(self, organization: str, name: str, version: str) -> bool:
        return (
            self.group_id == organization
            and (self.artifact_id is None or self.artifact_id == name)
            and (self.version is None or self.version.matches(version))
        )


@dataclass(frozen=True)
class UpdatePin:
    """Restricts the versions an artifact may be updated to."""
    group_id: str
    artifact_id: Optional[str] = None
    version: Optional[VersionPattern] = None

    def matches_artifact(self, organization: str, name: str) -> bool:
        return self.group_id == organization and (self.artifact_id is None or self.artifact_id == name)

    def matches_version(self, version: str) -> bool:
        """True when the version fits the pin, or the pin has no version pattern."""
        return self.version is None or self.version.matches(version)


@dataclass(frozen=True)
class RetractedArtifact:
    """A retracted version range, flattened from its retraction group.

    Carries the parent group's ``reason`` and ``doc``.
    """
    reason: str
    doc: str
    group_id: str
    artifact_id: Optional[str] = None
    version: Optional[VersionPattern] = None

    def matches(self, organization: str, name: str, version: str) -> bool:
        return (
            self.group_id == organization
            and (self.artifact_id is None or self.artifact_id == name)
            and (self.version is None or self.version.matches(version))
        )


@dataclass(frozen=True)
class ArtifactMigration:
    """An artifact that moved from old coordinates to new ones.

    Three shapes exist: group-only change, artifact-only change and both.
    At least one of ``group_id_before`` or ``artifact_id_before`` is set.
    """
    group_id_before: Optional[str]
    group_id_after: str
    artifact_id_before: Optional[str]
    artifact_id_after: str

    def matches_source(self, organization: str, name: str) -> bool:
        """Match against the old coordinates, falling back to the new value for absent fields."""
        group = self.group_id_before if self.group_id_before is not None else self.group_id_after
        artifact = self.artifact_id_before if self.artifact_id_before is not None else self.artifact_id_after
        return group == organization and artifact == name

    def matches_destination(self, organization: str, name: str) -> bool:
        return self.group_id_after == organization and self.artifact_id_after == name

    def matches(self, dependency: Dependency) -> bool:
        """True when the dependency sits at either end of this migration."""
        return self.matches_source(dependency.organization, dependency.name) or self.matches_destination(
            dependency.organization, dependency.name
        )

    def migrate(self, coordinates: Coordinates) -> Coordinates:
        """Coordinates after the migration, keeping cross flag and configuration."""
        return Coordinates(
            self.group_id_after,
            self.artifact_id_after,
            coordinates.is_cross,
            coordinates.configuration,
        )


def decode_update_ignore(raw: Any) -> UpdateIgnore:
    entry = _require_mapping(raw)
    return UpdateIgnore(
        group_id=_required_string(entry, "groupId"),
        artifact_id=_optional_string(entry, "artifactId"),
        version=decode_version_pattern(entry.get("version")),
    )


def decode_update_pin(raw: Any) -> UpdatePin:
    entry = _require_mapping(raw)
    return UpdatePin(
        group_id=_required_string(entry, "groupId"),
        artifact_id=_optional_string(entry, "artifactId"),
        version=decode_version_pattern(entry.get("version")),
    )


def decode_artifact_migration(raw: Any) -> ArtifactMigration:
    entry = _require_mapping(raw)
    if entry.get("groupIdBefore") is None and entry.get("artifactIdBefore") is None:
        raise ConfigurationError("must have at least one of 'groupIdBefore' or 'artifactIdBefore'")
    return ArtifactMigration(
        group_id_before=_optional_string(entry, "groupIdBefore"),
        group_id_after=_required_string(entry, "groupIdAfter"),
        artifact_id_before=_optional_string(entry, "artifactIdBefore"),
        artifact_id_after=_required_string(entry, "artifactIdAfter"),
    )


def decode_retraction_group(raw: Any) -> List[Any]:
    """Validate a retraction group and return its raw ``artifacts`` list.

    The reason and doc are read again by ``decode_retracted_artifact`` for
    each artifact so artifacts can be skipped one by one.
    """
    group = _require_mapping(raw)
    _required_string(group, "reason")
    _required_string(group, "doc")
    artifacts = group.get("artifacts")
    if not isinstance(artifacts, list):
        raise ConfigurationError("must have a 'artifacts' array")
    return artifacts


def decode_retracted_artifact(group: Dict[str, Any], raw: Any) -> RetractedArtifact:
    entry = _require_mapping(raw)
    return RetractedArtifact(
        reason=group["reason"],
        doc=group["doc"],
        group_id=_required_string(entry, "groupId"),
        artifact_id=_optional_string(entry, "artifactId"),
        version=decode_version_pattern(entry.get("version")),
    )


@dataclass(frozen=True)
class ScalafixMigration:
    """Code rewrites to run when an artifact crosses ``new_version``.

    ``artifact_ids`` are regular expressions matched against the whole
    artifact name.
    """
    group_id: str
    artifact_ids: Tuple[str, ...]
    new_version: str
    rewrite_rules: Tuple[str, ...]
    doc: Optional[str] = None
    scalac_options: Tuple[str, ...] = ()

    def matches(self, updated: "UpdatedDep") -> bool:
        """True when ``from < new_version <= to`` for a matching artifact.

        Versions that do not parse as numeric never match.
        """
        if self.group_id != updated.organization:
            return False
        if not any(re.fullmatch(pattern, updated.name) for pattern in self.artifact_ids):
            return False
        before = parse_version(updated.from_version)
        after = parse_version(updated.to_version)
        threshold = parse_version(self.new_version)
        if not all(isinstance(v, NumericVersion) for v in (before, after, threshold)):
            return False
        return compare_versions(before, threshold) < 0 <= compare_versions(after, threshold)

    def to_document(self) -> Dict[str, Any]:
        """Plain-data form used in diff reports."""
        return {
            "groupId": self.group_id,
            "artifactIds": list(self.artifact_ids),
            "newVersion": self.new_version,
            "rewriteRules": list(self.rewrite_rules),
            "doc": self.doc,
            "scalacOptions": list(self.scalac_options),
        }


def _string_list(raw: Dict[str, Any], key: str, required: bool) -> Tuple[str, ...]:
    value = raw.get(key)
    if value is None:
        if required:
            raise ConfigurationError(f"must have a '{key}'")
        return ()
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigurationError(f"'{key}' must be an array of strings")
    if required and not value:
        raise ConfigurationError(f"'{key}' must not be empty")
    return tuple(value)


def decode_scalafix_migration(raw: Any) -> ScalafixMigration:
    entry = _require_mapping(raw)
    artifact_ids = _string_list(entry, "artifactIds", required=True)
    for pattern in artifact_ids:
        try:
            re.compile(pattern)
        except re.error as exc:
            raise ConfigurationError(f"invalid artifactIds pattern '{pattern}': {exc}") from exc
    return ScalafixMigration(
        group_id=_required_string(entry, "groupId"),
        artifact_ids=artifact_ids,
        new_version=_required_string(entry, "newVersion"),
        rewrite_rules=_string_list(entry, "rewriteRules", required=True),
        doc=_optional_string(entry, "doc"),
        scalac_options=_string_list(entry, "scalacOptions", required=False),
    )
