"""Drives a complete pipeline run.

A production run resolves the triggering repository at its default branch and
writes a single release pointing at the latest version tag.

A staging run resolves the triggering repository at the ref under review
together with its staging group, places every release into one namespace for
the pull request, synthesizes ingress routes and adds any supporting releases.
"""

import logging

from .config import DeployMode, ResolverConfig
from .exceptions import InputException, SourceException
from .image import apply_artifact_reference
from .ingress import RouteMessages, synthesize
from .manifest import CREATE_NAMESPACE, NAMESPACE, ReleaseDescriptor
from .outputs import RunOutputs, write_outputs
from .resolver import ManifestResolver
from .source import ArtifactSink, ContentSource, IssueLabeler, VariableStore
from .staging import StagingGroupExpander, staging_namespace
from .support import support_releases
from .writer import ReleaseArtifactWriter

__all__ = [
    "run",
]

_LOGGER = logging.getLogger(__name__)


async def _label_pull_request(
    config: ResolverConfig, labeler: IssueLabeler | None, pull_number: int
) -> None:
    """Label the pull request, failures are only logged."""
    if labeler is None or not config.staging_label:
        return
    try:
        await labeler.add_label(
            config.owner, config.repository, pull_number, config.staging_label
        )
    except SourceException as err:
        _LOGGER.warning(
            "Unable to label %s/%s#%s: %s",
            config.owner,
            config.repository,
            pull_number,
            err,
        )


async def _production(
    config: ResolverConfig,
    resolver: ManifestResolver,
    writer: ReleaseArtifactWriter,
) -> RunOutputs:
    resolved = await resolver.resolve(config.owner, config.repository)
    apply_artifact_reference(resolved.descriptor, resolved.version)
    await writer.write(resolved.descriptor)
    return RunOutputs()


async def _staging(
    config: ResolverConfig,
    resolver: ManifestResolver,
    store: VariableStore,
    labeler: IssueLabeler | None,
    writer: ReleaseArtifactWriter,
) -> RunOutputs:
    if (pull_number := config.pull_number) is None:
        raise InputException("Staging deploys require a pull request event")
    if not config.org_domain:
        raise InputException("Staging deploys require STAGING_DOMAIN")
    if not config.environment:
        raise InputException("Staging deploys require ENVIRONMENT")

    await _label_pull_request(config, labeler, pull_number)
    namespace = config.staging_namespace or staging_namespace(
        config.repository, pull_number
    )
    _LOGGER.info("Staging namespace %s", namespace)

    expander = StagingGroupExpander(config, resolver, store)
    resolved = await expander.expand(
        config.owner, config.repository, config.head_ref, config.digest
    )
    descriptors = [release.descriptor for release in resolved]

    messages = RouteMessages()
    hostname = ""
    for descriptor in descriptors:
        route = synthesize(
            namespace,
            descriptor.release_name,
            pull_number,
            config.environment,
            config.org_domain,
            descriptor,
            messages,
        )
        if route.hostname and not hostname:
            hostname = route.hostname

    releases: list[ReleaseDescriptor] = descriptors + support_releases(
        config, descriptors
    )
    for descriptor in releases:
        descriptor.parameters[NAMESPACE] = namespace
        descriptor.parameters[CREATE_NAMESPACE] = True
        await writer.write(descriptor)
    return RunOutputs(message=messages.text, hostname=hostname)


async def run(
    config: ResolverConfig,
    source: ContentSource,
    store: VariableStore,
    labeler: IssueLabeler | None = None,
    sink: ArtifactSink | None = None,
) -> RunOutputs:
    """Resolve and write the releases for the configured deployment mode."""
    if config.mode is None:
        _LOGGER.info("No deployment requested for %s", config.repository)
        return RunOutputs()

    _LOGGER.info(
        "Resolving %s release for %s/%s",
        config.mode.value,
        config.owner,
        config.repository,
    )
    resolver = ManifestResolver(config, source, store)
    writer = ReleaseArtifactWriter(config.output_dir, config.environment or None)
    if config.mode == DeployMode.PRODUCTION:
        outputs = await _production(config, resolver, writer)
    else:
        outputs = await _staging(config, resolver, store, labeler, writer)
    outputs.releases = [str(directory) for directory in writer.directories]

    if sink is not None and writer.paths:
        await sink.upload(config.artifact_name, writer.paths, config.output_dir)
    if config.output_file is not None:
        await write_outputs(config.output_file, outputs)
    for name, value in outputs.as_dict().items():
        _LOGGER.info("Output %s: %s", name, value)
    return outputs
