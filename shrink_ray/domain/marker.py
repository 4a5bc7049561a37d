"""
The idempotency marker embedded in every converted file.

A marker is the text `<product>/<semver>` written into the image comment or
the container's `comment` tag. Only text whose prefix matches the product
name (case-insensitively) and whose remainder is a valid semantic version is
accepted as a marker.
"""
from dataclasses import dataclass

import semver

from .. import PRODUCT_NAME, __version__
from .exceptions import NotMarkerException, NotVersionException


@dataclass(frozen=True)
class Marker:
    product: str
    version: semver.Version

    def __str__(self) -> str:
        return format_marker(self.product, self.version)


def format_marker(product: str, version) -> str:
    return f"{product}/{version}"


def parse_marker(text: str, product: str = PRODUCT_NAME) -> Marker:
    """
    Parses marker text.

    Args:
        text: The raw comment, already stripped of surrounding whitespace.
        product: The product name expected before the slash.

    Returns:
        The parsed `Marker`. Its product keeps the spelling found in `text`.

    Raises:
        NotMarkerException: The text does not start with `<product>/`.
        NotVersionException: The prefix matches but the version is not SemVer.
    """
    prefix = f"{product}/"
    if len(text) < len(prefix) or text[: len(prefix)].lower() != prefix.lower():
        raise NotMarkerException(f"not a {product} marker: {text!r}")

    version_text = text[len(prefix):]
    try:
        version = semver.Version.parse(version_text)
    except ValueError as e:
        raise NotVersionException(f"not a valid version string: {version_text!r}") from e

    return Marker(text[: len(product)], version)


def current_marker() -> Marker:
    """Returns the marker stamped by this build."""
    return Marker(PRODUCT_NAME, semver.Version.parse(__version__))
