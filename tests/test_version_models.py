"""Tests for numeric versions, markers and candidate selection."""

import pytest

from depsteward.versioning.models import (
    Coordinates,
    Dependency,
    Marker,
    NumericVersion,
    VariableVersion,
    compare_versions,
    is_valid_candidate,
    marker_allows,
    version_key,
)
from depsteward.versioning.parser import parse_version


def v(text):
    """Parse a version string, failing loudly on bad input."""
    version = parse_version(text)
    assert version is not None, text
    return version


class TestNumericVersion:
    """Structure and derived properties of NumericVersion."""

    def test_parts_and_suffix(self):
        """Suffix keeps its leading separator."""
        version = v("4.2.7.Final")
        assert version.parts == (4, 2, 7)
        assert version.suffix == ".Final"
        assert version.marker is Marker.NO_MARKER

    def test_empty_suffix_normalized(self):
        """An empty suffix is stored as None."""
        assert NumericVersion([1, 0], "").suffix is None
        assert NumericVersion([1, 0], "") == NumericVersion((1, 0))

    def test_invalid_parts_rejected(self):
        """Empty or negative parts are not versions."""
        with pytest.raises(ValueError):
            NumericVersion(())
        with pytest.raises(ValueError):
            NumericVersion((1, -1))

    def test_major_minor(self):
        assert v("2.13.1").major == 2
        assert v("2.13.1").minor == 13
        assert v("3").minor == 0

    def test_is_stable(self):
        """Stable means exactly three parts and no suffix."""
        assert v("1.2.3").is_stable
        assert not v("1.2").is_stable
        assert not v("1.2.3-RC1").is_stable
        assert not v("3.2.14.0").is_stable

    def test_suffix_type(self):
        """Suffix type ignores case, the separator and digit values."""
        assert v("1.0.0-rc1").suffix_type == "rc*"
        assert v("1.0.0-RC12").suffix_type == "rc**"
        assert v("4.2.7.Final").suffix_type == "final"
        assert v("1.0.0").suffix_type is None

    def test_suffix_number_first_digit_run(self):
        assert v("1.0.0-rc2").suffix_number == 2
        assert v("31.1-jre").suffix_number is None
        assert v("1.0.0-M5-beta3").suffix_number == 5

    def test_show_includes_marker(self):
        assert v("^1.2.3").show() == "^1.2.3"
        assert v("^1.2.3").version_string == "1.2.3"
        assert v("~2.13.1").marker is Marker.MINOR
        assert v("=1.0").marker is Marker.EXACT

    def test_with_marker_returns_new_value(self):
        original = v("1.2.3")
        changed = original.with_marker(Marker.MAJOR)
        assert changed.marker is Marker.MAJOR
        assert original.marker is Marker.NO_MARKER

    def test_is_same_version_ignores_marker(self):
        assert v("^1.2.3").is_same_version(v("1.2.3"))
        assert not v("1.2.3").is_same_version(v("1.2.4"))

    def test_hashable(self):
        assert len({v("1.2.3"), v("1.2.3"), v("1.2.4")}) == 2


class TestOrdering:
    """Total ordering over numeric versions."""

    def test_padding_makes_shorter_equal(self):
        """1.0 and 1.0.0 compare equal but stay structurally different."""
        assert compare_versions(v("1.0"), v("1.0.0")) == 0
        assert version_key(v("1.0")) == version_key(v("1.0.0"))
        assert v("1.0") != v("1.0.0")

    def test_numeric_not_lexicographic(self):
        assert version_key(v("1.10.0")) > version_key(v("1.9.0"))
        assert version_key(v("2.0")) > version_key(v("1.99.99"))

    def test_exactly_one_relation_holds(self):
        """For any pair, exactly one of <, == and > holds on the ordering key."""
        versions = [v(s) for s in ("1.0", "1.0.0", "1.0.1", "1.0.0-rc1", "31.1-jre", "31.1", "2")]
        for a in versions:
            for b in versions:
                ka, kb = version_key(a), version_key(b)
                assert [ka < kb, ka == kb, ka > kb].count(True) == 1

    def test_versions_define_no_ordering_operators(self):
        """Ordering a version directly is an error, so it cannot disagree with ==."""
        with pytest.raises(TypeError):
            v("1.0") < v("1.0.0")  # pylint: disable=expression-not-assigned
        with pytest.raises(TypeError):
            sorted([v("1.1"), v("1.0")])

    def test_suffix_numbers(self):
        """rc1 < rc2 < rc10 by the first digit run of the suffix."""
        ordered = sorted([v("1.0.0-rc10"), v("1.0.0-rc1"), v("1.0.0-rc2")], key=version_key)
        assert [x.version_string for x in ordered] == ["1.0.0-rc1", "1.0.0-rc2", "1.0.0-rc10"]

    def test_absent_suffix_number_counts_as_zero(self):
        assert compare_versions(v("31.1-jre"), v("31.1")) == 0
        assert compare_versions(v("1.0.0"), v("1.0.0-M1")) == -1

    def test_marker_does_not_affect_order(self):
        assert compare_versions(v("^1.2.3"), v("1.2.3")) == 0

    def test_totality_and_antisymmetry(self):
        """Every pair compares, and swapping the arguments negates the result."""
        versions = [v(s) for s in ("1.0", "1.0.0", "1.0.1", "1.0.0-rc1", "0.9", "2", "1.0.0.1", "4.2.7.Final")]
        for a in versions:
            for b in versions:
                result = compare_versions(a, b)
                assert result in (-1, 0, 1)
                assert compare_versions(b, a) == -result

    def test_transitivity(self):
        versions = sorted([v(s) for s in ("1.2", "1.10", "1.2.1", "0.1", "1.2.0-rc3")], key=version_key)
        for i, a in enumerate(versions):
            for b in versions[i:]:
                assert compare_versions(a, b) <= 0


class TestCandidates:
    """Candidate gating by shape, suffix type and marker."""

    def test_shape_must_match(self):
        assert not is_valid_candidate(v("1.2.3"), v("1.3"))
        assert not is_valid_candidate(v("1.2.3"), v("1.2.3.1"))
        assert is_valid_candidate(v("1.2.3"), v("1.2.4"))

    def test_suffix_type_must_match(self):
        assert is_valid_candidate(v("1.0.0-rc1"), v("1.0.0-rc2"))
        assert is_valid_candidate(v("31.1-jre"), v("32.0-jre"))
        assert not is_valid_candidate(v("31.1-jre"), v("32.0-android"))
        assert not is_valid_candidate(v("1.2.3"), v("1.2.4-rc1"))
        assert not is_valid_candidate(v("1.2.3-rc1"), v("1.2.4"))

    def test_minor_marker(self):
        reference = v("~2.13.1")
        assert is_valid_candidate(reference, v("2.13.9"))
        assert not is_valid_candidate(reference, v("2.14.0"))

    def test_major_marker(self):
        reference = v("^2.13.1")
        assert is_valid_candidate(reference, v("2.99.0"))
        assert not is_valid_candidate(reference, v("3.0.0"))

    def test_exact_marker_allows_nothing(self):
        reference = v("=1.2.3")
        assert not is_valid_candidate(reference, v("1.2.3"))
        assert not is_valid_candidate(reference, v("1.2.4"))

    def test_no_marker_allows_any_same_shape(self):
        assert is_valid_candidate(v("1.2.3"), v("9.0.0"))

    def test_marker_allows_table(self):
        reference = v("2.13.1")
        assert marker_allows(Marker.NO_MARKER, reference, v("3.0.0"))
        assert marker_allows(Marker.MAJOR, reference, v("2.0.0"))
        assert not marker_allows(Marker.MINOR, reference, v("2.12.0"))
        assert not marker_allows(Marker.EXACT, reference, reference)


class TestDependency:
    """Coordinates and dependency rendering."""

    def test_to_line_plain_and_cross(self):
        assert Dependency(Coordinates("org.typelevel", "cats-core"), v("2.9.0")).to_line() == (
            "org.typelevel:cats-core:2.9.0"
        )
        assert Dependency(Coordinates("org.typelevel", "cats-core", True), v("^2.9.0")).to_line() == (
            "org.typelevel::cats-core:^2.9.0"
        )

    def test_to_line_configuration(self):
        coordinates = Coordinates("org.scalameta", "sbt-scalafmt", False, "sbt-plugin")
        assert coordinates.is_plugin
        assert Dependency(coordinates, v("2.5.0")).to_line() == "org.scalameta:sbt-scalafmt:2.5.0:sbt-plugin"

    def test_same_artifact(self):
        """All four coordinate fields must match."""
        base = Coordinates("org.typelevel", "cats-core")
        assert base.same_artifact(Coordinates("org.typelevel", "cats-core"))
        assert not base.same_artifact(Coordinates("org.typelevel", "cats-effect"))
        assert not base.same_artifact(Coordinates("org.scalameta", "cats-core"))
        assert not base.same_artifact(Coordinates("org.typelevel", "cats-core", True))
        assert not base.same_artifact(Coordinates("org.typelevel", "cats-core", False, "test"))

    def test_variable_version(self):
        version = VariableVersion("catsVersion", v("2.9.0"))
        dependency = Dependency(Coordinates("org.typelevel", "cats-core"), version)
        assert dependency.to_line() == "org.typelevel:cats-core:{{catsVersion}}"
        assert version.version_string == "2.9.0"
        assert VariableVersion("x").version_string == "{{x}}"

    def test_with_version_keeps_original(self):
        original = Dependency(Coordinates("a", "b"), v("1.0.0"), "core")
        updated = original.with_version(v("1.1.0"))
        assert original.version == v("1.0.0")
        assert updated.version == v("1.1.0")
        assert updated.group == "core"

    def test_group_not_part_of_equality(self):
        assert Dependency(Coordinates("a", "b"), v("1.0.0"), "x") == Dependency(Coordinates("a", "b"), v("1.0.0"), "y")
