"""Library for expanding a staging deploy to a group of repositories.

A repository may declare sibling repositories that need to be deployed with it
into the same ephemeral namespace. The declaration is a repository variable
holding a list of repository names, for example:

```yaml
- billing-api
- billing-worker
```

The origin repository is resolved at the ref under review with the digest of
the image built for it. Every sibling is resolved at its default branch using
its latest released version. Siblings are resolved concurrently and the results
are returned in declared order, origin first.
"""

import asyncio
import logging
from typing import Any

from slugify import slugify

from .config import ResolverConfig
from .exceptions import (
    InputException,
    ReleaseException,
    SourceException,
    StagingGroupError,
)
from .image import apply_artifact_reference
from .manifest import ResolvedRelease, parse_document
from .resolver import ManifestResolver, join_tasks
from .source import VariableStore

__all__ = [
    "StagingGroupExpander",
    "parse_staging_group",
    "staging_namespace",
]

_LOGGER = logging.getLogger(__name__)


# Kubernetes namespaces are DNS labels
MAX_NAMESPACE_LENGTH = 63


def staging_namespace(repository: str, pull_number: int) -> str:
    """Return the ephemeral namespace for a pull request."""
    return slugify(
        f"{repository}-{pull_number}",
        max_length=MAX_NAMESPACE_LENGTH,
        lowercase=True,
        separator="-",
    )


def parse_staging_group(content: str) -> list[str]:
    """Parse a staging group declaration into a list of repository names.

    The declaration is either a YAML list of names or a comma or whitespace
    separated string of names.
    """
    obj: Any = parse_document(content, "staging group")
    if obj is None:
        return []
    if isinstance(obj, str):
        return [name for name in obj.replace(",", " ").split() if name]
    if not isinstance(obj, list) or not all(isinstance(name, str) for name in obj):
        raise InputException(f"Expected staging group to be a list of names: {obj}")
    return [name.strip() for name in obj if name.strip()]


class StagingGroupExpander:
    """Resolves the origin repository and its staging group siblings."""

    def __init__(
        self,
        config: ResolverConfig,
        resolver: ManifestResolver,
        store: VariableStore,
    ) -> None:
        """Initialize StagingGroupExpander."""
        self._config = config
        self._resolver = resolver
        self._store = store

    async def read_group(self, owner: str, origin: str) -> list[str]:
        """Return the siblings declared by the origin repository.

        Names are returned in declared order with the origin and duplicates
        removed. A missing or malformed declaration is an empty group.
        """
        variable = self._config.staging_group_variable
        try:
            content = await self._store.get_repository_variable(owner, origin, variable)
            declared = parse_staging_group(content)
        except (SourceException, InputException) as err:
            _LOGGER.warning(
                "No staging group for %s/%s, deploying it alone: %s", owner, origin, err
            )
            return []

        siblings: list[str] = []
        for name in declared:
            if name == origin:
                _LOGGER.warning(
                    "Staging group of %s/%s lists itself, ignoring", owner, origin
                )
                continue
            if name in siblings:
                _LOGGER.debug("Ignoring duplicate staging group member %s", name)
                continue
            siblings.append(name)
        return siblings

    async def _resolve_sibling(
        self, sem: asyncio.Semaphore, owner: str, repo: str
    ) -> ResolvedRelease:
        async with sem:
            try:
                resolved = await self._resolver.resolve(owner, repo, overrides=True)
            except ReleaseException as err:
                raise StagingGroupError(repo, err) from err
        apply_artifact_reference(resolved.descriptor, resolved.version)
        return resolved

    async def expand(
        self,
        owner: str,
        origin: str,
        ref: str | None = None,
        digest: str | None = None,
    ) -> list[ResolvedRelease]:
        """Resolve the origin and every sibling, origin first.

        Any member failing to resolve aborts the whole expansion.
        """
        siblings = await self.read_group(owner, origin)
        _LOGGER.info(
            "Staging group for %s/%s: %s", owner, origin, [origin] + siblings
        )

        async def resolve_origin() -> ResolvedRelease:
            resolved = await self._resolver.resolve(owner, origin, ref, overrides=True)
            apply_artifact_reference(resolved.descriptor, resolved.version, digest)
            return resolved

        sem = asyncio.Semaphore(self._config.fetch_concurrency)
        tasks = [asyncio.create_task(resolve_origin(), name=origin)]
        tasks.extend(
            asyncio.create_task(self._resolve_sibling(sem, owner, name), name=name)
            for name in siblings
        )
        return await join_tasks(tasks)
