"""Release-resolver show action."""

from argparse import (
    ArgumentParser,
    BooleanOptionalAction,
    _SubParsersAction as SubParsersAction,
)
import logging
import os
from typing import cast

from release_resolver import config as config_lib
from release_resolver.config import ResolverConfig
from release_resolver.exceptions import InputException
from release_resolver.image import apply_artifact_reference
from release_resolver.resolver import ManifestResolver
from release_resolver.source import github

_LOGGER = logging.getLogger(__name__)


class ShowAction:
    """Print the resolved release of a single repository."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "show",
                help="Print the resolved release of a repository",
                description="""Resolves the chart descriptor and version of a
                    repository and prints the release without writing any
                    files.""",
            ),
        )
        args.add_argument("repository", help="Repository as owner/name")
        args.add_argument("--ref", default=None, help="Ref to resolve at")
        args.add_argument(
            "--overrides",
            type=bool,
            action=BooleanOptionalAction,
            default=False,
            help="Apply the staging value override layers",
        )
        args.add_argument(
            "--environment",
            default=os.environ.get("ENVIRONMENT", ""),
            help="Environment for environment scoped override layers",
        )
        args.add_argument(
            "--manifest-file",
            default=os.environ.get("MANIFEST_FILE") or config_lib.DEFAULT_MANIFEST_FILE,
            help="Path of the chart descriptor in the repository",
        )
        args.add_argument(
            "--version-file",
            default=(
                os.environ.get("RP_MANIFEST_FILE") or config_lib.DEFAULT_VERSION_FILE
            ),
            help="Path of the version manifest in the repository",
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        repository: str,
        ref: str | None,
        overrides: bool,
        environment: str,
        manifest_file: str,
        version_file: str,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        owner, _, repo = repository.partition("/")
        if not owner or not repo:
            raise InputException(f"Expected repository as owner/name: {repository}")
        config = ResolverConfig(
            owner=owner,
            repository=repo,
            token=os.environ.get("INPUT_GITHUB_TOKEN") or os.environ.get("GITHUB_TOKEN"),
            api_url=os.environ.get("GITHUB_API_URL") or config_lib.DEFAULT_API_URL,
            environment=environment,
            manifest_file=manifest_file,
            version_file=version_file,
        )
        async with github.github_source(config) as source:
            resolver = ManifestResolver(config, source, source)
            resolved = await resolver.resolve(owner, repo, ref, overrides=overrides)
        apply_artifact_reference(resolved.descriptor, resolved.version)
        print(f"# version: {resolved.version}")
        print(resolved.descriptor.yaml(), end="")
