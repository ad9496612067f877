"""Library for writing resolved releases to disk.

Every release is written into a directory named after its release name:

```
podinfo/values        # chart input values (YAML)
podinfo/parameters    # KEY=value deployment coordinates
```
"""

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Any

import aiofiles
from aiofiles.os import makedirs
import yaml

from .exceptions import ContractViolation
from .manifest import ReleaseDescriptor, is_scalar
from .values import substitute_environment

__all__ = [
    "ReleaseArtifact",
    "ReleaseArtifactWriter",
    "format_parameters",
    "format_values",
]

_LOGGER = logging.getLogger(__name__)


VALUES_FILE = "values"
PARAMETERS_FILE = "parameters"


@dataclass(frozen=True, kw_only=True)
class ReleaseArtifact:
    """The files written for a release."""

    directory: Path
    values_path: Path
    parameters_path: Path


def _format_parameter(release_name: str, key: str, value: Any) -> str:
    if not is_scalar(value):
        raise ContractViolation(
            f"Release {release_name} parameter '{key}' must be a scalar, "
            f"found {type(value).__name__}: {value}"
        )
    if value is None:
        text = ""
    elif isinstance(value, bool):
        text = "true" if value else "false"
    else:
        text = str(value)
    if "\n" in text or "\r" in text:
        raise ContractViolation(
            f"Release {release_name} parameter '{key}' must be a single line"
        )
    return f"{key.upper()}={text}\n"


def format_parameters(descriptor: ReleaseDescriptor) -> str:
    """Render the parameters as upper-cased `KEY=value` lines."""
    release_name = descriptor.release_name
    return "".join(
        _format_parameter(release_name, str(key), value)
        for key, value in descriptor.parameters.items()
    )


def format_values(values: dict[str, Any], environment: str | None = None) -> str:
    """Render the values as a YAML document."""
    if environment:
        values = substitute_environment(values, environment)
    return yaml.safe_dump(
        values, sort_keys=False, default_flow_style=False, allow_unicode=True
    )


class ReleaseArtifactWriter:
    """Writes releases below an output directory and records the paths."""

    def __init__(self, output_dir: Path, environment: str | None = None) -> None:
        """Initialize ReleaseArtifactWriter."""
        self._output_dir = output_dir
        self._environment = environment
        self.artifacts: list[ReleaseArtifact] = []

    @property
    def paths(self) -> list[Path]:
        """Every file written so far."""
        return [
            path
            for artifact in self.artifacts
            for path in (artifact.values_path, artifact.parameters_path)
        ]

    @property
    def directories(self) -> list[Path]:
        """The release directories in the order they were written."""
        return [artifact.directory for artifact in self.artifacts]

    async def write(self, descriptor: ReleaseDescriptor) -> ReleaseArtifact:
        """Write the values and parameters files of the release."""
        release_name = descriptor.release_name
        directory = self._output_dir / release_name
        if directory in self.directories:
            raise ContractViolation(
                f"Release {release_name} was produced more than once"
            )
        # Render both files before touching the filesystem
        parameters = format_parameters(descriptor)
        values = format_values(descriptor.values, self._environment)

        await makedirs(directory, exist_ok=True)
        artifact = ReleaseArtifact(
            directory=directory,
            values_path=directory / VALUES_FILE,
            parameters_path=directory / PARAMETERS_FILE,
        )
        async with aiofiles.open(artifact.values_path, mode="w") as values_file:
            await values_file.write(values)
        async with aiofiles.open(artifact.parameters_path, mode="w") as params_file:
            await params_file.write(parameters)
        _LOGGER.info("Wrote release %s to %s", release_name, directory)
        self.artifacts.append(artifact)
        return artifact
