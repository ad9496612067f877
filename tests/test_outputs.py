"""Tests for reporting outputs to the pipeline."""

from pathlib import Path

from release_resolver.outputs import RunOutputs, format_outputs, write_outputs


def test_format_outputs() -> None:
    """Test single and multi-line outputs."""
    outputs = RunOutputs(
        releases=["out/app", "out/billing"],
        message="app: https://a/\nbilling: https://b/",
        hostname="a",
    )
    assert format_outputs(outputs, delimiter="EOF") == (
        "releases=out/app out/billing\n"
        "message<<EOF\n"
        "app: https://a/\n"
        "billing: https://b/\n"
        "EOF\n"
        "hostname=a\n"
    )


async def test_write_outputs_appends(tmp_path: Path) -> None:
    """Test outputs are appended to an existing output file."""
    path = tmp_path / "output"
    path.write_text("previous=1\n")
    await write_outputs(path, RunOutputs(releases=["app"]))
    assert path.read_text() == "previous=1\nreleases=app\nmessage=\nhostname=\n"
