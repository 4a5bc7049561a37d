"""Unit tests for the idempotency marker codec."""

import pytest
import semver

from shrink_ray import PRODUCT_NAME, __version__
from shrink_ray.domain.exceptions import NotMarkerException, NotVersionException
from shrink_ray.domain.marker import Marker, current_marker, format_marker, parse_marker


def test_format_then_parse_gives_same_marker():
    version = semver.Version(1, 2, 0)
    assert parse_marker(format_marker("shrink-ray", version)) == Marker("shrink-ray", version)


def test_parse_accepts_prerelease_and_build():
    marker = parse_marker("shrink-ray/2.0.0-rc.1+build.7")
    assert marker.version == semver.Version(2, 0, 0, "rc.1", "build.7")
    assert str(marker) == "shrink-ray/2.0.0-rc.1+build.7"


def test_prefix_is_case_insensitive_and_spelling_is_kept():
    marker = parse_marker("Shrink-Ray/1.0.0")
    assert marker.product == "Shrink-Ray"
    assert marker.version == semver.Version(1, 0, 0)


@pytest.mark.parametrize("text", ["", "shrink-ray", "shrink-rays/1.0.0", "other/1.0.0", "Created with GIMP"])
def test_wrong_prefix_is_not_a_marker(text):
    with pytest.raises(NotMarkerException):
        parse_marker(text)


@pytest.mark.parametrize("text", ["shrink-ray/", "shrink-ray/1.2", "shrink-ray/v1.2.0", "shrink-ray/1.2.0 extra"])
def test_bad_version_is_not_a_version(text):
    with pytest.raises(NotVersionException):
        parse_marker(text)


def test_custom_product_name():
    assert parse_marker("other/0.1.0", product="other").product == "other"


def test_current_marker_matches_package_version():
    assert str(current_marker()) == f"{PRODUCT_NAME}/{__version__}"
