"""Tests for resolving the release of a repository."""

import asyncio
import dataclasses

import pytest

from release_resolver.config import ResolverConfig
from release_resolver.exceptions import (
    ManifestException,
    UnauthorizedError,
    VersionManifestError,
)
from release_resolver.resolver import ManifestResolver, join_tasks
from release_resolver.source import InMemorySource
from release_resolver.writer import format_parameters, format_values

from .conftest import OWNER, HEAD_REF, MANIFEST_FILE, VERSION_FILE, add_repository


@pytest.fixture(name="resolver")
def resolver_fixture(config: ResolverConfig, source: InMemorySource) -> ManifestResolver:
    """Fixture for a resolver reading from the in-memory source."""
    return ManifestResolver(
        dataclasses.replace(config, override_variables=("STAGING_VALUES",)),
        source,
        source,
    )


async def test_resolve(resolver: ManifestResolver, source: InMemorySource) -> None:
    """Test resolving the descriptor and version of a repository."""
    add_repository(source, "app", values={"replicas": 1}, version="2.3.4")
    resolved = await resolver.resolve(OWNER, "app")
    assert resolved.repository == "app"
    assert resolved.version == "2.3.4"
    assert resolved.descriptor.values == {"replicas": 1}
    assert resolved.descriptor.parameters == {
        "release_name": "app",
        "chart": "service",
        "chart_version": "^1.0.0",
        "repository": "https://charts.example.com",
    }


async def test_resolve_at_ref(
    resolver: ManifestResolver, source: InMemorySource
) -> None:
    """Test that both manifests are read at the requested ref."""
    add_repository(source, "app", values={"replicas": 1}, version="1.0.0")
    add_repository(
        source, "app", values={"replicas": 3}, version="1.1.0", ref=HEAD_REF
    )
    resolved = await resolver.resolve(OWNER, "app", HEAD_REF)
    assert resolved.version == "1.1.0"
    assert resolved.descriptor.values == {"replicas": 3}
    assert f"file:example/app/{MANIFEST_FILE}@{HEAD_REF}" in source.requests
    assert f"file:example/app/{VERSION_FILE}@{HEAD_REF}" in source.requests


async def test_overrides_only_when_requested(
    resolver: ManifestResolver, source: InMemorySource
) -> None:
    """Test override layers are applied only for staging resolution."""
    add_repository(source, "app", values={"a": 1, "b": 1})
    source.add_repository_variable(OWNER, "app", "STAGING_VALUES", "b: 2\nc: 2")
    source.add_environment_variable(OWNER, "app", "staging", "STAGING_VALUES", "c: 3")

    resolved = await resolver.resolve(OWNER, "app")
    assert resolved.descriptor.values == {"a": 1, "b": 1}

    resolved = await resolver.resolve(OWNER, "app", overrides=True)
    assert resolved.descriptor.values == {"a": 1, "b": 2, "c": 3}


async def test_missing_override_layer(
    resolver: ManifestResolver, source: InMemorySource
) -> None:
    """Test a missing override layer resolves to the unlayered values."""
    add_repository(source, "app", values={"a": 1})
    resolved = await resolver.resolve(OWNER, "app", overrides=True)
    assert resolved.descriptor.values == {"a": 1}


async def test_resolve_is_deterministic(
    resolver: ManifestResolver, source: InMemorySource
) -> None:
    """Test resolving the same repository twice produces identical output."""
    add_repository(
        source,
        "app",
        values={"image": {"repository": "app"}, "env": [{"name": "A", "value": "1"}]},
    )
    source.add_repository_variable(OWNER, "app", "STAGING_VALUES", "replicas: 2")
    first = await resolver.resolve(OWNER, "app", overrides=True)
    second = await resolver.resolve(OWNER, "app", overrides=True)
    assert format_values(first.descriptor.values) == format_values(
        second.descriptor.values
    )
    assert format_parameters(first.descriptor) == format_parameters(
        second.descriptor
    )


async def test_missing_version_manifest(
    resolver: ManifestResolver, source: InMemorySource
) -> None:
    """Test a repository without a version manifest can't be resolved."""
    add_repository(source, "app", version=None)
    with pytest.raises(VersionManifestError, match="not found"):
        await resolver.resolve(OWNER, "app")


async def test_invalid_version_manifest(
    resolver: ManifestResolver, source: InMemorySource
) -> None:
    """Test a version manifest that can't be parsed."""
    add_repository(source, "app", version=None)
    source.add_file(OWNER, "app", VERSION_FILE, "{not json")
    with pytest.raises(VersionManifestError):
        await resolver.resolve(OWNER, "app")


async def test_missing_chart_descriptor(
    resolver: ManifestResolver, source: InMemorySource
) -> None:
    """Test a repository without a chart descriptor can't be resolved."""
    source.add_file(OWNER, "app", VERSION_FILE, '{".": "1.0.0"}')
    with pytest.raises(ManifestException, match="Chart descriptor .* not found"):
        await resolver.resolve(OWNER, "app")


async def test_invalid_chart_descriptor(
    resolver: ManifestResolver, source: InMemorySource
) -> None:
    """Test a chart descriptor that can't be parsed."""
    add_repository(source, "app")
    source.add_file(OWNER, "app", MANIFEST_FILE, "helm: [")
    with pytest.raises(ManifestException):
        await resolver.resolve(OWNER, "app")


class UnauthorizedSource(InMemorySource):
    """Source that rejects every file request."""

    async def get_file_content(
        self, owner: str, repo: str, path: str, ref: str | None = None
    ) -> bytes:
        raise UnauthorizedError("Bad credentials")


async def test_unauthorized(config: ResolverConfig) -> None:
    """Test that credential failures are not treated as missing files."""
    source = UnauthorizedSource()
    resolver = ManifestResolver(config, source, source)
    with pytest.raises(UnauthorizedError):
        await resolver.resolve(OWNER, "app")


class BlockingSource(InMemorySource):
    """Source where reads of one path never complete until cancelled."""

    def __init__(self, blocked_path: str) -> None:
        super().__init__()
        self._blocked_path = blocked_path
        self.cancelled: list[str] = []

    async def get_file_content(
        self, owner: str, repo: str, path: str, ref: str | None = None
    ) -> bytes:
        if path == self._blocked_path:
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                self.cancelled.append(f"{repo}/{path}")
                raise
        return await super().get_file_content(owner, repo, path, ref)


async def test_failure_cancels_pending_read(config: ResolverConfig) -> None:
    """Test a failed read cancels the other read before the error is raised."""
    source = BlockingSource(VERSION_FILE)
    resolver = ManifestResolver(config, source, source)
    with pytest.raises(ManifestException):
        await resolver.resolve(OWNER, "app")
    assert source.cancelled == [f"app/{VERSION_FILE}"]


async def test_join_tasks_order() -> None:
    """Test results are returned in task order regardless of completion."""

    async def value(result: str, delay: float) -> str:
        await asyncio.sleep(delay)
        return result

    tasks = [
        asyncio.create_task(value("first", 0.02)),
        asyncio.create_task(value("second", 0)),
    ]
    assert await join_tasks(tasks) == ["first", "second"]
