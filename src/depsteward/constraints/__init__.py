"""Update policies: ignores, pins, retractions, artifact and scalafix migrations."""

from .entries import ArtifactMigration, RetractedArtifact, ScalafixMigration, UpdateIgnore, UpdatePin
from .finders import IgnoreFinder, MigrationFinder, PinFinder, RetractionFinder, ScalafixMigrationFinder
from .loader import PolicyDocumentCache
from .version_pattern import VersionPattern

__all__ = [
    "ArtifactMigration",
    "RetractedArtifact",
    "ScalafixMigration",
    "UpdateIgnore",
    "UpdatePin",
    "IgnoreFinder",
    "MigrationFinder",
    "PinFinder",
    "RetractionFinder",
    "ScalafixMigrationFinder",
    "PolicyDocumentCache",
    "VersionPattern",
]
