"""Update resolution: pick the best allowed version for each dependency.

Resolution of one dependency is synchronous and either succeeds completely or
raises a ``ResolutionError``; there is no partially resolved state. Several
dependencies are resolved independently on a bounded thread pool, and the
batch is all-or-nothing as well.
"""

from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import TYPE_CHECKING, List, Optional, Sequence

from depsteward.common.logging_utils import extra_context, is_debug_enabled
from depsteward.constants import Constants
from depsteward.exceptions import (
    NoValidVersionError,
    ResolutionCancelledError,
    ResolutionError,
    UnresolvedVariableError,
)
from .models import (
    Coordinates,
    Dependency,
    Marker,
    NumericVersion,
    VariableVersion,
    is_valid_candidate,
    version_key,
)
from .sources import VersionSource

if TYPE_CHECKING:
    from depsteward.constraints.finders import RetractionFinder

logger = logging.getLogger(__name__)


class UpdateResolver:
    """Resolves dependencies against a (usually pipelined) version source."""

    def __init__(self, source: VersionSource, retractions: Optional["RetractionFinder"] = None):
        """Initialize the resolver.

        Args:
            source: Version source, normally the output of ``build_pipeline``.
            retractions: Used to warn when a dependency stays on a retracted version.
        """
        self.source = source
        self.retractions = retractions
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        """Ask in-flight batches to stop; pending resolutions will raise."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def _check_cancelled(self, coordinates: Coordinates) -> None:
        if self._cancelled.is_set():
            raise ResolutionCancelledError(f"Resolution of {coordinates} cancelled")

    def find_latest(self, coordinates: Coordinates, reference: NumericVersion) -> NumericVersion:
        """Highest published version that is a valid candidate for ``reference``.

        ``EXACT`` references return themselves without touching the source.
        The result carries the reference's marker.

        Raises:
            NoValidVersionError: No candidate survives the filters.
        """
        if reference.marker.is_exact:
            return reference

        self._check_cancelled(coordinates)
        versions = self.source.find(
            coordinates.organization, coordinates.name, coordinates.is_cross, coordinates.is_plugin
        )
        candidates = [v for v in versions if is_valid_candidate(reference, v)]

        if is_debug_enabled(logger):
            logger.debug(
                "Found %d valid candidates for %s from %s",
                len(candidates),
                coordinates,
                reference.show(),
                extra=extra_context(
                    event="resolve", component="resolver", coordinates=str(coordinates), count=len(candidates)
                ),
            )

        if not candidates:
            raise NoValidVersionError(str(coordinates), reference.show())

        return max(candidates, key=version_key).with_marker(reference.marker)

    def latest_version(self, dependency: Dependency):
        """New version value for ``dependency``, same kind as the current one."""
        version = dependency.version
        if isinstance(version, NumericVersion):
            return self.find_latest(dependency.coordinates, version)
        if isinstance(version, VariableVersion):
            if version.resolved is None:
                raise UnresolvedVariableError(
                    f"Variable '{{{{{version.name}}}}}' of {dependency.coordinates} has no resolved value"
                )
            reference = version.resolved.with_marker(Marker.NO_MARKER)
            return VariableVersion(version.name, self.find_latest(dependency.coordinates, reference))
        raise TypeError(f"unsupported version type: {type(version).__name__}")

    def resolve(self, dependency: Dependency) -> Dependency:
        """Return ``dependency`` with its best allowed version.

        Warns when the dependency keeps a version that has been retracted.
        """
        try:
            updated = dependency.with_version(self.latest_version(dependency))
        except ResolutionError as exc:
            logger.error("%s", exc)
            raise
        if self.retractions is not None and _same_version(dependency, updated):
            self.retractions.warn_if_retracted(updated)
        return updated

    def latest_stable(self, organization: str, name: str, is_cross: bool, group: str = "") -> Dependency:
        """Dependency for an artifact declared without version, at its latest stable release.

        Looks the artifact up as a regular artifact first and as a plugin when
        that finds nothing.
        """
        coordinates = Coordinates(organization, name, is_cross)
        try:
            version = self._latest_stable(coordinates)
        except NoValidVersionError:
            coordinates = Coordinates(organization, name, is_cross, Constants.PLUGIN_CONFIGURATION)
            version = self._latest_stable(coordinates)
        return Dependency(coordinates, version, group)

    def _latest_stable(self, coordinates: Coordinates) -> NumericVersion:
        self._check_cancelled(coordinates)
        versions = self.source.find(
            coordinates.organization, coordinates.name, coordinates.is_cross, coordinates.is_plugin
        )
        stable = [v for v in versions if v.is_stable]
        if not stable:
            raise NoValidVersionError(str(coordinates), "latest stable version")
        return max(stable, key=version_key).with_marker(Marker.NO_MARKER)

    def resolve_all(
        self,
        dependencies: Sequence[Dependency],
        parallelism: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> List[Dependency]:
        """Resolve every dependency concurrently, preserving input order.

        Args:
            dependencies: Dependencies to resolve.
            parallelism: Worker count; defaults to the number of CPUs.
            timeout: Overall seconds allowed for the batch.

        Returns:
            Resolved dependencies, one per input.

        Raises:
            ResolutionError: The first failure; remaining work is cancelled and
                no partial result is returned.
        """
        if not dependencies:
            return []
        workers = max(1, parallelism or os.cpu_count() or 1)

        aborted = threading.Event()

        def run(dependency: Dependency) -> Dependency:
            if aborted.is_set():
                raise ResolutionCancelledError(f"Resolution of {dependency.coordinates} cancelled")
            return self.resolve(dependency)

        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="depsteward-resolve")
        try:
            futures: List[Future] = [executor.submit(run, dep) for dep in dependencies]
            done, not_done = wait(futures, timeout=timeout, return_when=FIRST_EXCEPTION)

            failed = next((f for f in futures if f in done and f.exception() is not None), None)
            if failed is not None or not_done:
                aborted.set()
                for future in not_done:
                    future.cancel()
                if failed is not None:
                    raise failed.exception()  # type: ignore[misc]
                raise ResolutionError(f"Resolution did not finish within {timeout} seconds")

            return [f.result() for f in futures]
        finally:
            executor.shutdown(wait=False, cancel_futures=True)


def _same_version(before: Dependency, after: Dependency) -> bool:
    a, b = before.version, after.version
    if isinstance(a, VariableVersion) and isinstance(b, VariableVersion):
        if a.resolved is None or b.resolved is None:
            return a.resolved is b.resolved
        return a.resolved.is_same_version(b.resolved)
    if isinstance(a, NumericVersion) and isinstance(b, NumericVersion):
        return a.is_same_version(b)
    return False
