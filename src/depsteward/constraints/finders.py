"""Query objects over loaded policy entries.

Each finder is built from already-decoded entries; ``from_urls`` loads them
through a ``PolicyDocumentCache`` first.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence

from depsteward.constants import PolicyKind
from depsteward.versioning.models import Dependency, NumericVersion, VariableVersion
from .entries import ArtifactMigration, RetractedArtifact, ScalafixMigration, UpdateIgnore, UpdatePin
from .loader import PolicyDocumentCache

if TYPE_CHECKING:
    from depsteward.report.diff import UpdatedDep

logger = logging.getLogger(__name__)


class IgnoreFinder:
    """Checks whether a version is excluded by an ignore entry."""

    def __init__(self, ignores: Sequence[UpdateIgnore] = ()):
        self.ignores: List[UpdateIgnore] = list(ignores)

    @classmethod
    def from_urls(cls, urls: Iterable[str], cache: PolicyDocumentCache) -> "IgnoreFinder":
        return cls(cache.load(PolicyKind.IGNORES, urls))

    def is_ignored(self, organization: str, name: str, version: str) -> bool:
        return any(i.matches(organization, name, version) for i in self.ignores)


class PinFinder:
    """Checks whether a version is allowed by pin entries.

    A version is allowed when no pin matches the artifact, or when it fits the
    version pattern of every pin that does.
    """

    def __init__(self, pins: Sequence[UpdatePin] = ()):
        self.pins: List[UpdatePin] = list(pins)

    @classmethod
    def from_urls(cls, urls: Iterable[str], cache: PolicyDocumentCache) -> "PinFinder":
        return cls(cache.load(PolicyKind.PINS, urls))

    def is_allowed(self, organization: str, name: str, version: str) -> bool:
        return not any(
            p.matches_artifact(organization, name) and not p.matches_version(version)
            for p in self.pins
        )


class RetractionFinder:
    """Checks retracted versions and warns about retracted current versions."""

    def __init__(self, retractions: Sequence[RetractedArtifact] = ()):
        self.retractions: List[RetractedArtifact] = list(retractions)

    @classmethod
    def from_urls(cls, urls: Iterable[str], cache: PolicyDocumentCache) -> "RetractionFinder":
        return cls(cache.load(PolicyKind.RETRACTIONS, urls))

    def find(self, organization: str, name: str, version: str) -> Optional[RetractedArtifact]:
        for retraction in self.retractions:
            if retraction.matches(organization, name, version):
                return retraction
        return None

    def is_retracted(self, organization: str, name: str, version: str) -> bool:
        return self.find(organization, name, version) is not None

    def warn_if_retracted(self, dependency: Dependency) -> Optional[RetractedArtifact]:
        """Log a warning when the dependency's current version is retracted.

        Only meaningful for versions that stay in place (already latest, exact
        marker, variable). Returns the matching retraction, if any.
        """
        version = dependency.version
        if isinstance(version, NumericVersion):
            version_string = version.version_string
        elif isinstance(version, VariableVersion):
            if version.resolved is None:
                return None
            version_string = version.resolved.version_string
        else:
            raise TypeError(f"unsupported version type: {type(version).__name__}")

        retraction = self.find(dependency.organization, dependency.name, version_string)
        if retraction is not None:
            logger.warning(
                "%s:%s %s is retracted. Reason: %s. Documentation: %s. "
                "You should consider using a different version.",
                dependency.organization,
                dependency.name,
                version_string,
                retraction.reason,
                retraction.doc,
            )
        return retraction


class MigrationFinder:
    """Finds the artifact migration that applies to a dependency."""

    def __init__(self, migrations: Sequence[ArtifactMigration] = ()):
        self.migrations: List[ArtifactMigration] = list(migrations)

    @classmethod
    def from_urls(cls, urls: Iterable[str], cache: PolicyDocumentCache) -> "MigrationFinder":
        return cls(cache.load(PolicyKind.MIGRATIONS, urls))

    def find(self, dependency: Dependency) -> Optional[ArtifactMigration]:
        """First migration matching the dependency, in load order."""
        for migration in self.migrations:
            if migration.matches(dependency):
                return migration
        return None


class ScalafixMigrationFinder:
    """Finds the code rewrites that apply to updated dependencies."""

    def __init__(self, migrations: Sequence[ScalafixMigration] = ()):
        self.migrations: List[ScalafixMigration] = list(migrations)

    @classmethod
    def from_urls(cls, urls: Iterable[str], cache: PolicyDocumentCache) -> "ScalafixMigrationFinder":
        return cls(cache.load(PolicyKind.SCALAFIX_MIGRATIONS, urls))

    def find(self, updated: Iterable["UpdatedDep"]) -> List[ScalafixMigration]:
        """Migrations matching any of ``updated``, each once, in load order."""
        updated = list(updated)
        return [m for m in self.migrations if any(m.matches(u) for u in updated)]
