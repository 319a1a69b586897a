"""Maven-layout repository access."""

from .client import MavenRepositorySource

__all__ = ["MavenRepositorySource"]
