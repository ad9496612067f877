"""Tests for writing releases to disk."""

from pathlib import Path
from typing import Any

import pytest
import yaml

from release_resolver.exceptions import ContractViolation
from release_resolver.manifest import ReleaseDescriptor
from release_resolver.writer import ReleaseArtifactWriter, format_parameters

VALUES = {
    "image": {"repository": "ghcr.io/example/app", "tag": "1.2.3"},
    "replicas": 2,
    "enabled": True,
    "ratio": 0.5,
    "nothing": None,
    "ports": [80, 443],
    "env": [{"name": "HOST", "value": "app.%ENVIRONMENT%.example.com"}],
    "empty": {},
}


def _descriptor(
    parameters: dict[str, Any] | None = None, values: dict[str, Any] | None = None
) -> ReleaseDescriptor:
    return ReleaseDescriptor(
        values=values if values is not None else dict(VALUES),
        parameters=(
            parameters
            if parameters is not None
            else {
                "release_name": "app",
                "chart": "service",
                "chart_version": "^1.0.0",
                "namespace": "app-42",
                "create_namespace": True,
            }
        ),
    )


def _read_parameters(path: Path) -> dict[str, str]:
    result = {}
    for line in path.read_text().splitlines():
        key, _, value = line.partition("=")
        result[key] = value
    return result


async def test_write(tmp_path: Path) -> None:
    """Test the release directory and files are written."""
    writer = ReleaseArtifactWriter(tmp_path)
    artifact = await writer.write(_descriptor())
    assert artifact.directory == tmp_path / "app"
    assert artifact.values_path == tmp_path / "app" / "values"
    assert artifact.parameters_path == tmp_path / "app" / "parameters"
    assert writer.paths == [artifact.values_path, artifact.parameters_path]
    assert writer.directories == [tmp_path / "app"]


async def test_values_roundtrip(tmp_path: Path) -> None:
    """Test the values file reads back to the same document."""
    writer = ReleaseArtifactWriter(tmp_path)
    artifact = await writer.write(_descriptor())
    assert yaml.safe_load(artifact.values_path.read_text()) == VALUES


async def test_parameters_roundtrip(tmp_path: Path) -> None:
    """Test the parameters file reads back with upper-cased keys."""
    writer = ReleaseArtifactWriter(tmp_path)
    artifact = await writer.write(_descriptor())
    assert artifact.parameters_path.read_text() == (
        "RELEASE_NAME=app\n"
        "CHART=service\n"
        "CHART_VERSION=^1.0.0\n"
        "NAMESPACE=app-42\n"
        "CREATE_NAMESPACE=true\n"
    )
    assert _read_parameters(artifact.parameters_path) == {
        "RELEASE_NAME": "app",
        "CHART": "service",
        "CHART_VERSION": "^1.0.0",
        "NAMESPACE": "app-42",
        "CREATE_NAMESPACE": "true",
    }


async def test_environment_placeholder(tmp_path: Path) -> None:
    """Test the environment placeholder is replaced in written values."""
    writer = ReleaseArtifactWriter(tmp_path, environment="staging")
    descriptor = _descriptor()
    artifact = await writer.write(descriptor)
    values = yaml.safe_load(artifact.values_path.read_text())
    assert values["env"] == [{"name": "HOST", "value": "app.staging.example.com"}]
    # The in memory values are not modified
    assert descriptor.values == VALUES


async def test_idempotent(tmp_path: Path) -> None:
    """Test writing identical inputs again produces identical bytes."""
    first = await ReleaseArtifactWriter(tmp_path).write(_descriptor())
    values = first.values_path.read_bytes()
    parameters = first.parameters_path.read_bytes()
    second = await ReleaseArtifactWriter(tmp_path).write(_descriptor())
    assert second.values_path.read_bytes() == values
    assert second.parameters_path.read_bytes() == parameters


async def test_duplicate_release(tmp_path: Path) -> None:
    """Test two releases with the same name in one run are rejected."""
    writer = ReleaseArtifactWriter(tmp_path)
    await writer.write(_descriptor())
    with pytest.raises(ContractViolation, match="more than once"):
        await writer.write(_descriptor())


@pytest.mark.parametrize(
    ("parameters", "match"),
    [
        ({"release_name": "app", "extra": {"a": 1}}, "'extra' must be a scalar"),
        ({"release_name": "app", "extra": [1, 2]}, "'extra' must be a scalar"),
        ({"release_name": "app", "extra": "a\nb"}, "must be a single line"),
        ({"chart": "service"}, "release_name"),
    ],
    ids=["mapping", "list", "multi-line", "missing-release-name"],
)
async def test_contract_violation(
    tmp_path: Path, parameters: dict[str, Any], match: str
) -> None:
    """Test invalid parameters fail without writing files."""
    writer = ReleaseArtifactWriter(tmp_path)
    with pytest.raises(ContractViolation, match=match):
        await writer.write(_descriptor(parameters))
    assert list(tmp_path.iterdir()) == []
    assert writer.paths == []


def test_format_parameters_scalars() -> None:
    """Test rendering of the scalar parameter types."""
    descriptor = _descriptor(
        {"release_name": "app", "replicas": 3, "debug": False, "note": None}
    )
    assert format_parameters(descriptor) == (
        "RELEASE_NAME=app\nREPLICAS=3\nDEBUG=false\nNOTE=\n"
    )
