"""Tests for version and coordinate token parsing."""

import pytest

from depsteward.exceptions import ConfigurationError
from depsteward.versioning.models import Coordinates, Marker, NumericVersion, VariableVersion
from depsteward.versioning.parser import (
    parse_dependency,
    parse_dependency_token,
    parse_numeric,
    parse_variable,
    parse_version,
    tokenize_coordinates,
)


class TestParseVersion:
    """parse_numeric / parse_version."""

    @pytest.mark.parametrize(
        "text,parts,suffix",
        [
            ("1.2.3", (1, 2, 3), None),
            ("1.0", (1, 0), None),
            ("3.2.14.0", (3, 2, 14, 0), None),
            ("4.2.7.Final", (4, 2, 7), ".Final"),
            ("1.0.0-rc1", (1, 0, 0), "-rc1"),
            ("31.1-jre", (31, 1), "-jre"),
        ],
    )
    def test_shapes(self, text, parts, suffix):
        version = parse_numeric(text)
        assert version == NumericVersion(parts, suffix)

    def test_non_numeric(self):
        assert parse_numeric("latest") is None
        assert parse_numeric("") is None
        assert parse_version("") is None
        assert parse_version("^") is None

    def test_markers(self):
        assert parse_version("=1.2.3").marker is Marker.EXACT
        assert parse_version("^1.2.3").marker is Marker.MAJOR
        assert parse_version("~1.2.3").marker is Marker.MINOR
        assert parse_version("1.2.3").marker is Marker.NO_MARKER

    def test_variable(self):
        assert parse_variable("{{catsVersion}}") == "catsVersion"
        assert parse_variable("catsVersion") is None


class TestCoordinateTokens:
    """Command-line coordinate tokens."""

    def test_plain(self):
        assert tokenize_coordinates("org.typelevel:cats-core:2.9.0") == (
            "org.typelevel",
            False,
            "cats-core",
            "2.9.0",
            None,
        )

    def test_cross_with_configuration(self):
        assert tokenize_coordinates("org.scalameta::munit:^0.7.29:test") == (
            "org.scalameta",
            True,
            "munit",
            "^0.7.29",
            "test",
        )

    def test_without_version(self):
        coordinates, version = parse_dependency_token("org.typelevel::cats-core")
        assert coordinates == Coordinates("org.typelevel", "cats-core", True)
        assert version is None

    def test_variable_comes_back_unresolved(self):
        _, version = parse_dependency_token("org.typelevel:cats-core:{{cats}}")
        assert version == VariableVersion("cats")

    def test_plugin_configuration(self):
        coordinates, _ = parse_dependency_token("org.scalameta:sbt-scalafmt:2.5.0:sbt-plugin")
        assert coordinates.is_plugin

    @pytest.mark.parametrize("token", ["nonsense", "a:b:c:d:e", ":b:1.0", "a:b:latest"])
    def test_invalid_tokens(self, token):
        with pytest.raises(ConfigurationError):
            parse_dependency_token(token)

    def test_parse_dependency_requires_version(self):
        with pytest.raises(ConfigurationError):
            parse_dependency("org.typelevel:cats-core")
        dependency = parse_dependency("org.typelevel:cats-core:2.9.0", group="core")
        assert dependency.group == "core"
        assert dependency.version == NumericVersion((2, 9, 0))
