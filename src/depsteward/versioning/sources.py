"""Version sources and the decorators forming the resolution pipeline.

A ``VersionSource`` answers one question: which numeric versions are
published for some coordinates. Policy layers wrap a source and narrow its
answer; they never mutate the list they receive and always keep its order.
``build_pipeline`` composes them in the fixed order cache -> ignore ->
retraction -> pin, the cache sitting directly on the network-bound source.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Tuple

from depsteward.common.logging_utils import extra_context, is_debug_enabled
from .models import NumericVersion

if TYPE_CHECKING:
    from depsteward.constraints.finders import IgnoreFinder, PinFinder, RetractionFinder

logger = logging.getLogger(__name__)

SourceKey = Tuple[str, str, bool, bool]


class VersionSource(ABC):
    """Finds the published versions of an artifact."""

    @abstractmethod
    def find(self, organization: str, name: str, is_cross: bool, is_plugin: bool) -> List[NumericVersion]:
        """Return every published numeric version, possibly empty.

        Args:
            organization: The organization/groupId.
            name: The artifact name, without any binary-version suffix.
            is_cross: Whether the artifact is cross-built for a language binary version.
            is_plugin: Whether the artifact is a build-tool plugin.
        """


class FunctionSource(VersionSource):
    """Adapts a plain callable with the ``find`` signature."""

    def __init__(self, func: Callable[[str, str, bool, bool], List[NumericVersion]]):
        self._func = func

    def find(self, organization: str, name: str, is_cross: bool, is_plugin: bool) -> List[NumericVersion]:
        return list(self._func(organization, name, is_cross, is_plugin))


def _log_filtered(step: str, organization: str, name: str, versions: List[NumericVersion]) -> None:
    if is_debug_enabled(logger):
        logger.debug(
            "Filtered %d versions for `%s:%s` after %s: %s",
            len(versions),
            organization,
            name,
            step,
            ", ".join(f"`{v.show()}`" for v in versions),
            extra=extra_context(event="filter", component="pipeline", action=step, count=len(versions)),
        )


class CachedSource(VersionSource):
    """Resolves each coordinate tuple at most once.

    Concurrent callers asking for the same tuple wait for the first lookup
    instead of issuing their own. Failures are not cached.
    """

    def __init__(self, underlying: VersionSource):
        self._underlying = underlying
        self._cache: Dict[SourceKey, List[NumericVersion]] = {}
        self._in_flight: Dict[SourceKey, threading.Event] = {}
        self._lock = threading.Lock()

    def find(self, organization: str, name: str, is_cross: bool, is_plugin: bool) -> List[NumericVersion]:
        key = (organization, name, is_cross, is_plugin)
        while True:
            with self._lock:
                if key in self._cache:
                    return list(self._cache[key])
                waiter = self._in_flight.get(key)
                if waiter is None:
                    waiter = threading.Event()
                    self._in_flight[key] = waiter
                    owner = True
                else:
                    owner = False
            if owner:
                break
            # Another thread is looking this key up; retry once it finishes
            waiter.wait()

        try:
            versions = list(self._underlying.find(organization, name, is_cross, is_plugin))
            with self._lock:
                self._cache[key] = versions
            return list(versions)
        finally:
            with self._lock:
                self._in_flight.pop(key, None)
            waiter.set()

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()


class IgnoringSource(VersionSource):
    """Drops versions matched by an ignore entry."""

    def __init__(self, underlying: VersionSource, ignores: "IgnoreFinder"):
        self._underlying = underlying
        self._ignores = ignores

    def find(self, organization: str, name: str, is_cross: bool, is_plugin: bool) -> List[NumericVersion]:
        versions = self._underlying.find(organization, name, is_cross, is_plugin)
        filtered = [
            v for v in versions if not self._ignores.is_ignored(organization, name, v.version_string)
        ]
        _log_filtered("ignoring", organization, name, filtered)
        return filtered


class RetractionFilteringSource(VersionSource):
    """Drops retracted versions."""

    def __init__(self, underlying: VersionSource, retractions: "RetractionFinder"):
        self._underlying = underlying
        self._retractions = retractions

    def find(self, organization: str, name: str, is_cross: bool, is_plugin: bool) -> List[NumericVersion]:
        versions = self._underlying.find(organization, name, is_cross, is_plugin)
        filtered = [
            v
            for v in versions
            if not self._retractions.is_retracted(organization, name, v.version_string)
        ]
        _log_filtered("excluding retracted", organization, name, filtered)
        return filtered


class PinningSource(VersionSource):
    """Keeps only versions allowed by matching pins; unpinned artifacts pass through."""

    def __init__(self, underlying: VersionSource, pins: "PinFinder"):
        self._underlying = underlying
        self._pins = pins

    def find(self, organization: str, name: str, is_cross: bool, is_plugin: bool) -> List[NumericVersion]:
        versions = self._underlying.find(organization, name, is_cross, is_plugin)
        filtered = [v for v in versions if self._pins.is_allowed(organization, name, v.version_string)]
        _log_filtered("pinning", organization, name, filtered)
        return filtered


def build_pipeline(
    source: VersionSource,
    ignores: Optional["IgnoreFinder"] = None,
    retractions: Optional["RetractionFinder"] = None,
    pins: Optional["PinFinder"] = None,
    cache: bool = True,
) -> VersionSource:
    """Wrap ``source`` with the policy layers in their fixed order.

    Layers whose finder is None are left out.
    """
    pipeline = CachedSource(source) if cache else source
    if ignores is not None:
        pipeline = IgnoringSource(pipeline, ignores)
    if retractions is not None:
        pipeline = RetractionFilteringSource(pipeline, retractions)
    if pins is not None:
        pipeline = PinningSource(pipeline, pins)
    return pipeline
