"""Wiring of one resolution run from settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from depsteward.config import Settings
from depsteward.constraints import (
    IgnoreFinder,
    MigrationFinder,
    PinFinder,
    PolicyDocumentCache,
    RetractionFinder,
)
from depsteward.registry.maven import MavenRepositorySource
from depsteward.versioning.migration import MigrationMatcher
from depsteward.versioning.models import Dependency
from depsteward.versioning.resolver import UpdateResolver
from depsteward.versioning.sources import VersionSource, build_pipeline

logger = logging.getLogger(__name__)


@dataclass
class Engine:
    """Everything a run needs; discard it when the run ends."""
    settings: Settings
    policies: PolicyDocumentCache
    resolver: UpdateResolver
    migrations: MigrationMatcher

    def resolve_all(self, dependencies: Sequence[Dependency]) -> List[Dependency]:
        return self.resolver.resolve_all(dependencies, parallelism=self.settings.parallelism)


def create_engine(settings: Settings, source: Optional[VersionSource] = None) -> Engine:
    """Load policies and build the resolution pipeline for one run.

    Args:
        settings: Run settings.
        source: Raw version source; defaults to the configured Maven repositories.
    """
    policies = PolicyDocumentCache(timeout=settings.timeout)
    ignores = IgnoreFinder.from_urls(settings.ignores, policies)
    retractions = RetractionFinder.from_urls(settings.retractions, policies)
    pins = PinFinder.from_urls(settings.pins, policies)
    migrations = MigrationFinder.from_urls(settings.migrations, policies)

    logger.debug(
        "Loaded %d ignores, %d retractions, %d pins, %d migrations",
        len(ignores.ignores),
        len(retractions.retractions),
        len(pins.pins),
        len(migrations.migrations),
    )

    if source is None:
        source = MavenRepositorySource(
            settings.repositories,
            scala_binary_version=settings.scala_binary_version,
            timeout=settings.timeout,
            plugin_repository=settings.plugin_repository,
        )

    pipeline = build_pipeline(source, ignores=ignores, retractions=retractions, pins=pins)
    resolver = UpdateResolver(pipeline, retractions=retractions)
    return Engine(settings, policies, resolver, MigrationMatcher(migrations, resolver))
