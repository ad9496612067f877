"""Helper functions for pointing a release at a container image."""

import logging
from typing import Any

from .exceptions import InputException
from .manifest import ReleaseDescriptor

__all__ = [
    "apply_artifact_reference",
    "image_reference",
]

_LOGGER = logging.getLogger(__name__)


IMAGE_KEY = "image"
TAG_KEY = "tag"
DIGEST_KEY = "digest"
REPOSITORY_KEY = "repository"


def _strip_reference(image: str) -> str:
    """Return the image name without any tag or digest."""
    name = image.split("@", 1)[0]
    last_slash = name.rfind("/")
    if (colon := name.rfind(":")) > last_slash:
        name = name[:colon]
    return name


def image_reference(image: str, version: str, digest: str | None = None) -> str:
    """Return the image name qualified by a digest, or the version tag."""
    name = _strip_reference(image)
    if digest:
        return f"{name}@{digest}"
    return f"{name}:{version}"


def apply_artifact_reference(
    descriptor: ReleaseDescriptor, version: str, digest: str | None = None
) -> None:
    """Update `values.image` of the release to the version or digest.

    A string image is rewritten as a full reference. A mapping image gets its
    `tag` set to the version, and its `digest` set when one is supplied or
    removed otherwise so a stale digest never shadows the tag.
    """
    image: Any = descriptor.values.get(IMAGE_KEY)
    if isinstance(image, str):
        reference = image_reference(image, version, digest)
        descriptor.values[IMAGE_KEY] = reference
        _LOGGER.debug("Release %s image %s", descriptor.release_name, reference)
        return
    if image is None:
        image = {}
    elif not isinstance(image, dict):
        raise InputException(
            f"Expected release {descriptor.release_name} '{IMAGE_KEY}' to be a "
            f"string or mapping, found {type(image).__name__}"
        )
    image = dict(image)
    image[TAG_KEY] = version
    if digest:
        image[DIGEST_KEY] = digest
    else:
        image.pop(DIGEST_KEY, None)
    descriptor.values[IMAGE_KEY] = image
    _LOGGER.debug(
        "Release %s image %s %s",
        descriptor.release_name,
        image.get(REPOSITORY_KEY, ""),
        digest or version,
    )
