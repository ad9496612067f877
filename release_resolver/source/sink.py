"""Destinations for the files produced by a run."""

from abc import ABC, abstractmethod
import logging
from pathlib import Path

import aiofiles
from aiofiles.os import makedirs

__all__ = [
    "ArtifactSink",
    "DirectoryArtifactSink",
]

_LOGGER = logging.getLogger(__name__)


class ArtifactSink(ABC):
    """Receives the complete set of files produced by a run."""

    @abstractmethod
    async def upload(self, name: str, paths: list[Path], root: Path) -> None:
        """Upload the files, keeping their location relative to the root."""


class DirectoryArtifactSink(ArtifactSink):
    """Copies artifacts into a local directory, one sub directory per name."""

    def __init__(self, directory: Path) -> None:
        """Initialize DirectoryArtifactSink."""
        self._directory = directory

    async def upload(self, name: str, paths: list[Path], root: Path) -> None:
        """Copy the files into `<directory>/<name>/`."""
        target_root = self._directory / name
        for path in paths:
            target = target_root / path.relative_to(root)
            await makedirs(target.parent, exist_ok=True)
            async with aiofiles.open(path, "rb") as src:
                content = await src.read()
            async with aiofiles.open(target, "wb") as dst:
                await dst.write(content)
            _LOGGER.debug("Uploaded %s to %s", path, target)
        _LOGGER.info("Uploaded %d files to artifact %s", len(paths), name)
