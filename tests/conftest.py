"""Test fixtures for release-resolver."""

from pathlib import Path
from typing import Any

import pytest
import yaml

from release_resolver.config import DeployMode, ResolverConfig
from release_resolver.source import InMemorySource

OWNER = "example"
ORIGIN = "app"
HEAD_REF = "feature/login"
DIGEST = "sha256:0123abcd"
MANIFEST_FILE = "manifest.yaml"
VERSION_FILE = ".release-please-manifest.json"


def chart_descriptor(release_name: str, values: dict[str, Any] | None = None) -> str:
    """Return a chart descriptor nested under the legacy `helm` key."""
    return yaml.safe_dump(
        {
            "helm": {
                "release_name": release_name,
                "chart": "service",
                "chart_version": "^1.0.0",
                "repository": "https://charts.example.com",
                "values": values if values is not None else {},
            }
        }
    )


def add_repository(
    source: InMemorySource,
    repo: str,
    values: dict[str, Any] | None = None,
    version: str | None = "1.2.3",
    ref: str | None = None,
    release_name: str | None = None,
) -> None:
    """Add a chart descriptor and version manifest for the repository."""
    if values is None:
        values = {"image": {"repository": f"ghcr.io/{OWNER}/{repo}", "tag": "latest"}}
    source.add_file(
        OWNER, repo, MANIFEST_FILE, chart_descriptor(release_name or repo, values), ref
    )
    if version is not None:
        source.add_file(OWNER, repo, VERSION_FILE, f'{{".": "{version}"}}', ref)


def routed_values(repo: str, path: str = "/") -> dict[str, Any]:
    """Return values for a release that opts in to an ingress route."""
    return {
        "image": {"repository": f"ghcr.io/{OWNER}/{repo}"},
        "service": {
            "labels": {"release-resolver/ingress": "true"},
            "annotations": {"release-resolver/ingress-path": path},
        },
    }


@pytest.fixture(name="source")
def source_fixture() -> InMemorySource:
    """Fixture for an empty in-memory source."""
    return InMemorySource()


@pytest.fixture(name="output_dir")
def output_dir_fixture(tmp_path: Path) -> Path:
    """Fixture for the directory releases are written to."""
    return tmp_path / "releases"


@pytest.fixture(name="config")
def config_fixture(output_dir: Path) -> ResolverConfig:
    """Fixture for a staging configuration of the origin repository."""
    return ResolverConfig(
        owner=OWNER,
        repository=ORIGIN,
        mode=DeployMode.STAGING,
        environment="staging",
        head_ref=HEAD_REF,
        pull_number=42,
        digest=DIGEST,
        manifest_file=MANIFEST_FILE,
        version_file=VERSION_FILE,
        org_domain="example.com",
        output_dir=output_dir,
    )
