"""Library for resolving the release of a single repository.

The chart descriptor is read from the repository, split into values and
parameters, and optionally layered with staging overrides. The version manifest
of the same ref determines which version of the artifact gets deployed.

Example usage:
```python
resolver = ManifestResolver(config, source, store)
resolved = await resolver.resolve("example", "app")
print(resolved.descriptor.release_name, resolved.version)
```
"""

import asyncio
from collections.abc import Iterable
import logging
from typing import Any

from .config import ResolverConfig
from .exceptions import (
    ContentNotFoundError,
    InputException,
    ManifestException,
    VersionManifestError,
)
from .manifest import ReleaseDescriptor, ResolvedRelease, VersionRecord, parse_document
from .source import ContentSource, VariableStore
from .values import fetch_override_layers, fold_layers

__all__ = [
    "ManifestResolver",
    "join_tasks",
]

_LOGGER = logging.getLogger(__name__)


async def join_tasks(tasks: Iterable[asyncio.Task[Any]]) -> list[Any]:
    """Wait for all tasks, results in task order.

    When any task fails the others are cancelled and awaited before the error
    is raised.
    """
    tasks = list(tasks)
    try:
        return list(await asyncio.gather(*tasks))
    except Exception:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


def _location(owner: str, repo: str, path: str, ref: str | None) -> str:
    return f"{owner}/{repo}/{path}@{ref or 'default branch'}"


class ManifestResolver:
    """Resolves the chart descriptor and version of a repository."""

    def __init__(
        self,
        config: ResolverConfig,
        source: ContentSource,
        store: VariableStore | None = None,
    ) -> None:
        """Initialize ManifestResolver."""
        self._config = config
        self._source = source
        self._store = store

    async def _read_descriptor(
        self, owner: str, repo: str, ref: str | None
    ) -> ReleaseDescriptor:
        location = _location(owner, repo, self._config.manifest_file, ref)
        _LOGGER.debug("Fetching chart descriptor %s", location)
        try:
            content = await self._source.get_file_content(
                owner, repo, self._config.manifest_file, ref
            )
        except ContentNotFoundError as err:
            raise ManifestException(f"Chart descriptor {location} not found") from err
        try:
            doc = parse_document(content, location)
        except InputException as err:
            raise ManifestException(str(err)) from err
        try:
            return ReleaseDescriptor.parse_doc(doc)
        except ManifestException as err:
            raise ManifestException(f"Error reading {location}: {err}") from err

    async def _read_version(self, owner: str, repo: str, ref: str | None) -> str:
        location = _location(owner, repo, self._config.version_file, ref)
        _LOGGER.debug("Fetching version manifest %s", location)
        try:
            content = await self._source.get_file_content(
                owner, repo, self._config.version_file, ref
            )
        except ContentNotFoundError as err:
            raise VersionManifestError(f"Version manifest {location} not found") from err
        try:
            doc = parse_document(content, location)
        except InputException as err:
            raise VersionManifestError(str(err)) from err
        return VersionRecord.parse_doc(doc, location).version

    async def resolve(
        self,
        owner: str,
        repo: str,
        ref: str | None = None,
        *,
        overrides: bool = False,
    ) -> ResolvedRelease:
        """Resolve the release for the repository at the ref.

        When `overrides` is set the configured override layers are applied to
        the values, repository scoped layers first.
        """
        descriptor, version = await join_tasks(
            [
                asyncio.create_task(self._read_descriptor(owner, repo, ref)),
                asyncio.create_task(self._read_version(owner, repo, ref)),
            ]
        )
        if overrides and self._store is not None:
            layers = await fetch_override_layers(
                self._store,
                owner,
                repo,
                self._config.override_variables,
                self._config.environment or None,
            )
            descriptor.values = fold_layers(descriptor.values, layers)
        _LOGGER.debug(
            "Resolved %s/%s release %s version %s",
            owner,
            repo,
            descriptor.release_name,
            version,
        )
        return ResolvedRelease(repository=repo, descriptor=descriptor, version=version)
