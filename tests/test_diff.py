"""Tests for snapshots and snapshot diffs."""

import json
import logging

import pytest
import yaml

from depsteward.constraints import ScalafixMigration, ScalafixMigrationFinder
from depsteward.report.diff import (
    ProjectDiff,
    ResolvedDep,
    UpdatedDep,
    append_snapshot,
    compute_diff,
    read_snapshot,
    render_diff,
    snapshot_from_dependencies,
    write_diff_report,
    write_snapshot,
)
from depsteward.versioning.models import Coordinates, Dependency, VariableVersion
from depsteward.versioning.parser import parse_dependency, parse_version

BEFORE = {"core": {ResolvedDep("org", "a", "1.0")}}
AFTER = {"core": {ResolvedDep("org", "a", "1.1"), ResolvedDep("org", "b", "2.0")}}


class TestComputeDiff:
    """Diff semantics."""

    def test_self_diff_is_empty(self):
        snapshot = {
            "core": {ResolvedDep("org", "a", "1.0"), ResolvedDep("org", "b", "2.0")},
            "web": {ResolvedDep("org", "c", "3.0")},
        }
        assert compute_diff(snapshot, snapshot) == {}

    def test_updated_and_added(self):
        assert compute_diff(BEFORE, AFTER) == {
            "core": ProjectDiff(
                updated=[UpdatedDep("org", "a", "1.0", "1.1")],
                added=[ResolvedDep("org", "b", "2.0")],
                removed=[],
            )
        }

    def test_removed_and_new_group(self):
        diffs = compute_diff(AFTER, {"web": {ResolvedDep("org", "c", "1.0")}})
        assert diffs["core"].removed == [ResolvedDep("org", "a", "1.1"), ResolvedDep("org", "b", "2.0")]
        assert diffs["web"].added == [ResolvedDep("org", "c", "1.0")]

    def test_unchanged_group_omitted(self):
        before = dict(BEFORE, web={ResolvedDep("org", "c", "1.0")})
        after = dict(AFTER, web={ResolvedDep("org", "c", "1.0")})
        assert list(compute_diff(before, after)) == ["core"]


class TestSnapshots:
    """Snapshot building and persistence."""

    def test_from_dependencies(self):
        variable = Dependency(Coordinates("org", "v"), VariableVersion("v", parse_version("3.1.0")))
        snapshot = snapshot_from_dependencies(
            {"core": [parse_dependency("org.typelevel::cats-core:^2.9.0"), variable]}
        )
        assert snapshot == {
            "core": {ResolvedDep("org.typelevel", "cats-core", "2.9.0"), ResolvedDep("org", "v", "3.1.0")}
        }

    def test_write_then_read(self, tmp_path):
        path = str(tmp_path / "snapshot.jsonl")
        write_snapshot(path, AFTER)
        assert read_snapshot(path) == AFTER

    def test_append_keeps_existing_lines(self, tmp_path):
        path = str(tmp_path / "snapshot.jsonl")
        write_snapshot(path, BEFORE)
        append_snapshot(path, {"web": {ResolvedDep("org", "c", "1.0")}})
        assert read_snapshot(path) == {"core": BEFORE["core"], "web": {ResolvedDep("org", "c", "1.0")}}

    def test_appended_run_replaces_earlier_revision(self, tmp_path):
        """A later line for the same group and artifact wins, whatever the hash seed."""
        path = str(tmp_path / "after.jsonl")
        append_snapshot(path, {"core": {ResolvedDep("org", "a", "1.0"), ResolvedDep("org", "b", "2.0")}})
        append_snapshot(path, {"core": {ResolvedDep("org", "a", "1.1")}, "web": {ResolvedDep("org", "a", "0.9")}})

        after = read_snapshot(path)
        assert after == {
            "core": {ResolvedDep("org", "a", "1.1"), ResolvedDep("org", "b", "2.0")},
            "web": {ResolvedDep("org", "a", "0.9")},
        }
        diffs = compute_diff(BEFORE, after)
        assert diffs["core"].updated == [UpdatedDep("org", "a", "1.0", "1.1")]

    def test_invalid_utf8_line_skipped(self, tmp_path, caplog):
        path = tmp_path / "snapshot.jsonl"
        path.write_bytes(
            b'{"group": "core", "organization": "org", "name": "a", "revision": "1.0"}\n'
            b'{"group": "core", "organization": "org", "name": "\xff\xfe", "revision": "1.0"}\n'
        )
        with caplog.at_level(logging.WARNING):
            assert read_snapshot(str(path)) == BEFORE
        assert any("invalid UTF-8" in r.getMessage() for r in caplog.records)

    def test_malformed_lines_skipped(self, tmp_path, caplog):

        path = tmp_path / "snapshot.jsonl"
        path.write_text(
            '{"group": "core", "organization": "org", "name": "a", "revision": "1.0"}\n'
            "\n"
            "not json\n"
            '{"group": "core", "name": "b"}\n',
            encoding="utf-8",
        )
        with caplog.at_level(logging.WARNING):
            assert read_snapshot(str(path)) == BEFORE
        assert len([r for r in caplog.records if r.levelno == logging.WARNING]) == 2


class TestReports:
    """Rendering diff reports."""

    def test_json(self):
        document = json.loads(render_diff(compute_diff(BEFORE, AFTER), "json"))
        assert document == {
            "core": {
                "updated": [{"organization": "org", "name": "a", "from": "1.0", "to": "1.1"}],
                "added": [{"organization": "org", "name": "b", "version": "2.0"}],
                "removed": [],
                "migrations": [],
            }
        }

    def test_yaml_matches_json(self):
        diffs = compute_diff(BEFORE, AFTER)
        assert yaml.safe_load(render_diff(diffs, "yaml")) == json.loads(render_diff(diffs, "json"))

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            render_diff({}, "xml")

    def test_write_infers_format(self, tmp_path):
        diffs = compute_diff(BEFORE, AFTER)
        yaml_path = tmp_path / "report.yml"
        write_diff_report(str(yaml_path), diffs)
        assert yaml.safe_load(yaml_path.read_text(encoding="utf-8"))["core"]["added"][0]["name"] == "b"

        json_path = tmp_path / "report.json"
        write_diff_report(str(json_path), diffs)
        assert json.loads(json_path.read_text(encoding="utf-8"))["core"]["updated"][0]["to"] == "1.1"

    def test_scalafix_migrations_listed_per_group(self):
        migration = ScalafixMigration(
            group_id="org",
            artifact_ids=("a",),
            new_version="1.1",
            rewrite_rules=("dependency:Rewrite@org:rules:1.1",),
            doc="https://example.org/migrate",
        )
        unrelated = ScalafixMigration("org", ("b",), "9.0", ("Other",))
        document = json.loads(
            render_diff(compute_diff(BEFORE, AFTER), "json", ScalafixMigrationFinder([migration, unrelated]))
        )
        assert document["core"]["migrations"] == [
            {
                "groupId": "org",
                "artifactIds": ["a"],
                "newVersion": "1.1",
                "rewriteRules": ["dependency:Rewrite@org:rules:1.1"],
                "doc": "https://example.org/migrate",
                "scalacOptions": [],
            }
        ]
