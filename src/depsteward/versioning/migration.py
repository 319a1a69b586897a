"""Detection of artifacts whose coordinates moved.

A migration is reported, not applied, unless the caller opts in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

from depsteward.exceptions import NoValidVersionError
from .models import Dependency, NumericVersion, VariableVersion, compare_versions
from .resolver import UpdateResolver

if TYPE_CHECKING:
    from depsteward.constraints.entries import ArtifactMigration
    from depsteward.constraints.finders import MigrationFinder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MigrationCandidate:
    """A dependency that can move to new coordinates with a newer version."""
    dependency: Dependency
    migration: "ArtifactMigration"
    migrated: Dependency

    def describe(self) -> str:
        return f"{self.dependency.to_line()} -> {self.migrated.to_line()}"


def _numeric(dependency: Dependency) -> Optional[NumericVersion]:
    version = dependency.version
    if isinstance(version, NumericVersion):
        return version
    if isinstance(version, VariableVersion):
        return version.resolved
    raise TypeError(f"unsupported version type: {type(version).__name__}")


class MigrationMatcher:
    """Combines a migration finder with a resolver for the new coordinates."""

    def __init__(self, finder: "MigrationFinder", resolver: UpdateResolver):
        self.finder = finder
        self.resolver = resolver

    def check(self, dependency: Dependency) -> Optional[MigrationCandidate]:
        """Return a candidate when the moved artifact has a strictly newer version.

        Dependencies already at the destination coordinates and exact-pinned
        dependencies never produce a candidate, neither do new coordinates
        without a valid version. Transport errors propagate.
        """
        migration = self.finder.find(dependency)
        if migration is None:
            return None
        target = migration.migrate(dependency.coordinates)
        if target.same_artifact(dependency.coordinates):
            return None

        current = _numeric(dependency)
        if current is None or current.marker.is_exact:
            return None

        try:
            latest = self.resolver.find_latest(target, current)
        except NoValidVersionError:
            logger.debug("No valid version of %s for migration from %s", target, dependency.to_line())
            return None
        if compare_versions(latest, current) <= 0:
            return None

        migrated = Dependency(target, latest, dependency.group)
        return MigrationCandidate(dependency, migration, migrated)

    def apply(self, dependency: Dependency, opt_in: bool = False) -> Dependency:
        """Move ``dependency`` when a migration is available and the caller opts in.

        Without opt-in the available migration is only logged.
        """
        migrated, _ = self._apply_one(dependency, opt_in)
        return migrated

    def apply_all(
        self, dependencies: Sequence[Dependency], opt_in: bool = False
    ) -> Tuple[List[Dependency], int]:
        """``apply`` over a batch, in order.

        Returns the resulting dependencies and the number of migrations that
        were found but left unapplied.
        """
        results = []
        pending = 0
        for dependency in dependencies:
            migrated, left_pending = self._apply_one(dependency, opt_in)
            results.append(migrated)
            pending += left_pending
        return results, pending

    def _apply_one(self, dependency: Dependency, opt_in: bool) -> Tuple[Dependency, bool]:
        candidate = self.check(dependency)
        if candidate is None:
            return dependency, False
        if not opt_in:
            logger.warning("Migration available: %s", candidate.describe())
            return dependency, True
        logger.info("Migrating %s", candidate.describe())
        return candidate.migrated, False
