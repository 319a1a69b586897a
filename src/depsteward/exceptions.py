"""Exception hierarchy for the resolution engine.

Configuration problems are recoverable and are normally caught by the policy
loader. Everything deriving from ``ResolutionError`` is fatal for a run and
must reach the caller.
"""

from __future__ import annotations


class DepstewardError(Exception):
    """Base class for every error raised by the engine."""


class ConfigurationError(DepstewardError, ValueError):
    """A policy entry or settings value is malformed."""


class ResolutionError(DepstewardError):
    """A dependency could not be resolved."""


class NoValidVersionError(ResolutionError):
    """No published version satisfies the dependency's constraints."""

    def __init__(self, coordinates: str, reference: str):
        super().__init__(f"Could not resolve {coordinates}: no valid version found for {reference}")
        self.coordinates = coordinates
        self.reference = reference


class UnresolvedVariableError(ResolutionError):
    """A variable version has no concrete value to compare against."""


class TransportError(ResolutionError):
    """The version index could not be reached."""


class VersionLookupTimeout(TransportError):
    """A version lookup exceeded the configured timeout."""


class ResolutionCancelledError(ResolutionError):
    """The run was cancelled before this dependency was resolved."""
