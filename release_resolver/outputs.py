"""Outputs reported back to the pipeline that invoked the resolver."""

from dataclasses import dataclass, field
import logging
from pathlib import Path
import uuid

import aiofiles

__all__ = [
    "RunOutputs",
    "format_outputs",
    "write_outputs",
]

_LOGGER = logging.getLogger(__name__)


@dataclass
class RunOutputs:
    """Summary of a pipeline run."""

    releases: list[str] = field(default_factory=list)
    """Release directories in the order they were written."""

    message: str = ""
    """One `release: https://hostname/path` line per routed release."""

    hostname: str = ""
    """The hostname of the first routed release of a staging deploy."""

    def as_dict(self) -> dict[str, str]:
        return {
            "releases": " ".join(self.releases),
            "message": self.message,
            "hostname": self.hostname,
        }


def format_outputs(outputs: RunOutputs, delimiter: str | None = None) -> str:
    """Render outputs in the GitHub Actions output file format.

    Multi-line values use the `name<<DELIMITER` form.
    """
    lines = []
    for name, value in outputs.as_dict().items():
        if "\n" in value:
            marker = delimiter or f"ghadelimiter_{uuid.uuid4()}"
            lines.extend([f"{name}<<{marker}", value, marker])
        else:
            lines.append(f"{name}={value}")
    return "\n".join(lines) + "\n"


async def write_outputs(path: Path, outputs: RunOutputs) -> None:
    """Append the outputs to the pipeline output file."""
    async with aiofiles.open(path, mode="a") as output_file:
        await output_file.write(format_outputs(outputs))
    _LOGGER.debug("Wrote outputs to %s", path)
