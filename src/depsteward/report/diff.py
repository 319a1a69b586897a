"""Snapshots of resolved dependencies and the diff between two of them.

A snapshot maps a logical group (usually a project) to the set of resolved
dependencies in it. Snapshots are stored as JSON Lines, one dependency per
line, so a run can append to an existing file without rewriting it.
"""

from __future__ import annotations

import json
import logging
import os
from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple

import yaml

from depsteward.versioning.models import Dependency, NumericVersion, VariableVersion

if TYPE_CHECKING:
    from depsteward.constraints.finders import ScalafixMigrationFinder

logger = logging.getLogger(__name__)

Snapshot = Dict[str, Set["ResolvedDep"]]


@dataclass(frozen=True, order=True)
class ResolvedDep:
    """A resolved dependency, flattened for comparison."""
    organization: str
    name: str
    revision: str

    @property
    def key(self) -> Tuple[str, str]:
        return self.organization, self.name

    @classmethod
    def from_dependency(cls, dependency: Dependency) -> "ResolvedDep":
        version = dependency.version
        if isinstance(version, (NumericVersion, VariableVersion)):
            return cls(dependency.organization, dependency.name, version.version_string)
        raise TypeError(f"unsupported version type: {type(version).__name__}")


@dataclass(frozen=True, order=True)
class UpdatedDep:
    """A dependency whose revision changed between snapshots."""
    organization: str
    name: str
    from_version: str
    to_version: str


@dataclass
class ProjectDiff:
    """Per-group diff of resolved dependencies."""
    updated: List[UpdatedDep] = field(default_factory=list)
    added: List[ResolvedDep] = field(default_factory=list)
    removed: List[ResolvedDep] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.updated or self.added or self.removed)


def snapshot_from_dependencies(dependencies: Mapping[str, Iterable[Dependency]]) -> Snapshot:
    """Build a snapshot from resolved dependencies grouped by name."""
    return {
        group: {ResolvedDep.from_dependency(dep) for dep in deps}
        for group, deps in dependencies.items()
    }


def compute_diff(before: Mapping[str, Set[ResolvedDep]], after: Mapping[str, Set[ResolvedDep]]) -> Dict[str, ProjectDiff]:
    """Compute the diff between two snapshots.

    Entries are keyed on ``(organization, name)``. Groups with no change are
    left out, so identical snapshots give an empty result.
    """
    diffs: Dict[str, ProjectDiff] = {}
    for group in sorted(set(before) | set(after)):
        before_deps = {dep.key: dep for dep in before.get(group, set())}
        after_deps = {dep.key: dep for dep in after.get(group, set())}

        diff = ProjectDiff()
        for key in sorted(set(before_deps) | set(after_deps)):
            old = before_deps.get(key)
            new = after_deps.get(key)
            if old is not None and new is not None:
                if old.revision != new.revision:
                    diff.updated.append(UpdatedDep(key[0], key[1], old.revision, new.revision))
            elif new is not None:
                diff.added.append(new)
            elif old is not None:
                diff.removed.append(old)

        if not diff.is_empty():
            diffs[group] = diff
    return diffs


def _snapshot_lines(snapshot: Mapping[str, Iterable[ResolvedDep]]) -> Iterable[str]:
    for group in sorted(snapshot):
        for dep in sorted(snapshot[group]):
            yield json.dumps(
                {"group": group, "organization": dep.organization, "name": dep.name, "revision": dep.revision},
                sort_keys=True,
            )


def write_snapshot(path: str, snapshot: Mapping[str, Iterable[ResolvedDep]]) -> None:
    """Write ``snapshot`` to ``path``, replacing any previous content."""
    with open(path, "w", encoding="utf-8") as fh:
        for line in _snapshot_lines(snapshot):
            fh.write(line + "\n")


def append_snapshot(path: str, snapshot: Mapping[str, Iterable[ResolvedDep]]) -> None:
    """Append ``snapshot`` entries to ``path`` without touching existing lines."""
    with open(path, "a", encoding="utf-8") as fh:
        for line in _snapshot_lines(snapshot):
            fh.write(line + "\n")


def read_snapshot(path: str) -> Snapshot:
    """Read a snapshot written by ``write_snapshot``/``append_snapshot``.

    When the same ``(group, organization, name)`` appears more than once, the
    last line wins, so appending a newer run replaces the older revisions.
    Blank lines are ignored; malformed lines, including undecodable bytes, are
    skipped with a warning.
    """
    latest: Dict[Tuple[str, str, str], ResolvedDep] = {}
    with open(path, "r", encoding="utf-8", errors="replace") as fh:
        for line_number, line in enumerate(fh, start=1):
            if not line.strip():
                continue
            if "\ufffd" in line:
                logger.warning("Skipping malformed snapshot line %s:%d: invalid UTF-8", path, line_number)
                continue
            try:
                record = json.loads(line)
                dep = ResolvedDep(
                    str(record["organization"]), str(record["name"]), str(record["revision"])
                )
                group = str(record["group"])
            except (ValueError, KeyError, TypeError) as exc:
                logger.warning("Skipping malformed snapshot line %s:%d: %s", path, line_number, exc)
                continue
            latest[(group, dep.organization, dep.name)] = dep

    snapshot: Dict[str, Set[ResolvedDep]] = defaultdict(set)
    for (group, _, _), dep in latest.items():
        snapshot[group].add(dep)
    return dict(snapshot)


def diff_to_document(
    diffs: Mapping[str, ProjectDiff], scalafix: Optional["ScalafixMigrationFinder"] = None
) -> Dict[str, Any]:
    """Plain-data form of a diff report, suitable for JSON or YAML.

    With a ``scalafix`` finder, each group also lists the code migrations its
    updates call for.
    """
    return {
        group: {
            "updated": [
                {"organization": u.organization, "name": u.name, "from": u.from_version, "to": u.to_version}
                for u in diff.updated
            ],
            "added": [
                {"organization": a.organization, "name": a.name, "version": a.revision} for a in diff.added
            ],
            "removed": [
                {"organization": r.organization, "name": r.name, "version": r.revision} for r in diff.removed
            ],
            "migrations": [] if scalafix is None else [m.to_document() for m in scalafix.find(diff.updated)],
        }
        for group, diff in sorted(diffs.items())
    }


def render_diff(
    diffs: Mapping[str, ProjectDiff],
    fmt: str = "json",
    scalafix: Optional["ScalafixMigrationFinder"] = None,
) -> str:
    """Serialize a diff report as ``json`` or ``yaml``."""
    document = diff_to_document(diffs, scalafix)
    if fmt == "json":
        return json.dumps(document, indent=2) + "\n"
    if fmt == "yaml":
        return yaml.safe_dump(document, sort_keys=False, default_flow_style=False)
    raise ValueError(f"unsupported report format: {fmt}")


def write_diff_report(
    path: str,
    diffs: Mapping[str, ProjectDiff],
    fmt: str = "",
    scalafix: Optional["ScalafixMigrationFinder"] = None,
) -> None:
    """Write a diff report; the format defaults to the file extension."""
    if not fmt:
        ext = os.path.splitext(path)[1].lower()
        fmt = "yaml" if ext in (".yaml", ".yml") else "json"
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(render_diff(diffs, fmt, scalafix))
