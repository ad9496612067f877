"""Release-resolver run action."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import dataclasses
import logging
import os
import pathlib
from typing import cast

from release_resolver import orchestrator
from release_resolver.config import ResolverConfig
from release_resolver.source import DirectoryArtifactSink
from release_resolver.source import github

_LOGGER = logging.getLogger(__name__)


class RunAction:
    """Resolve and write the releases for the current pipeline event."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "run",
                help="Resolve the releases for the current pipeline event",
                description="""Reads the deployment context from the pipeline
                    environment, resolves the production release or the staging
                    group of the triggering repository, and writes a values and
                    parameters file for every release.""",
            ),
        )
        args.add_argument(
            "--output-dir",
            type=pathlib.Path,
            default=None,
            help="Directory for the release directories (env: OUTPUT_DIR)",
        )
        args.add_argument(
            "--artifact-dir",
            type=pathlib.Path,
            default=None,
            help="Directory that receives a copy of all files (env: ARTIFACT_DIR)",
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        output_dir: pathlib.Path | None,
        artifact_dir: pathlib.Path | None,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        config = ResolverConfig.from_env(os.environ)
        if output_dir is not None:
            config = dataclasses.replace(config, output_dir=output_dir)
        if artifact_dir is not None:
            config = dataclasses.replace(config, artifact_dir=artifact_dir)

        sink = None
        if config.artifact_dir is not None:
            sink = DirectoryArtifactSink(config.artifact_dir)
        async with github.github_source(config) as source:
            outputs = await orchestrator.run(
                config, source, source, labeler=source, sink=sink
            )
        for release in outputs.releases:
            print(release)
