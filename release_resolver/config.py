"""Configuration objects for release-resolver.

The configuration is read once from the pipeline environment at startup and
passed explicitly into each component.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
import enum
import logging
from pathlib import Path
from typing import Any

import yaml

from .exceptions import InputException

__all__ = [
    "DeployMode",
    "ResolverConfig",
]

_LOGGER = logging.getLogger(__name__)


DEFAULT_API_URL = "https://api.github.com"
DEFAULT_MANIFEST_FILE = "manifest.yaml"
DEFAULT_VERSION_FILE = ".release-please-manifest.json"
DEFAULT_OVERRIDES = ("STAGING_VALUES",)
DEFAULT_STAGING_GROUP_VARIABLE = "STAGING_GROUP"
DEFAULT_STAGING_LABEL = "staging"
DEFAULT_INGRESS_CLASS = "public"
DEFAULT_ARTIFACT_NAME = "releases"
DEFAULT_FETCH_TIMEOUT = 30.0
DEFAULT_FETCH_CONCURRENCY = 8
CONFIGURE_WORKFLOW = "configure"


class DeployMode(str, enum.Enum):
    """The kind of deployment the pipeline is preparing."""

    PRODUCTION = "production"
    STAGING = "staging"


def _is_true(value: str | None) -> bool:
    return (value or "").strip().lower() == "true"


def _split_names(value: str | None) -> tuple[str, ...]:
    """Split a comma or whitespace separated list of names."""
    if not value:
        return ()
    return tuple(name for name in value.replace(",", " ").split() if name)


def _number(env: Mapping[str, str], key: str, default: float) -> float:
    if not (value := env.get(key)):
        return default
    try:
        number = float(value)
    except ValueError as err:
        raise InputException(f"Invalid {key} '{value}': {err}") from err
    if number <= 0:
        raise InputException(f"Invalid {key} '{value}': must be positive")
    return number


def _count(env: Mapping[str, str], key: str, default: int) -> int:
    if not (value := env.get(key)):
        return default
    try:
        number = int(value)
    except ValueError as err:
        raise InputException(f"Invalid {key} '{value}': {err}") from err
    if number < 1:
        raise InputException(f"Invalid {key} '{value}': must be at least 1")
    return number


def _pull_number(value: Any) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as err:
        raise InputException(f"Invalid pull request number '{value}': {err}") from err
    if number < 1:
        raise InputException(f"Invalid pull request number '{value}'")
    return number


def _read_event(event_path: str | None) -> dict[str, Any]:
    """Read the webhook event payload that triggered the workflow."""
    if not event_path:
        return {}
    try:
        event = yaml.load(Path(event_path).read_text(), Loader=yaml.SafeLoader)
    except (OSError, yaml.YAMLError) as err:
        raise InputException(f"Unable to read event file {event_path}: {err}") from err
    if not isinstance(event, dict):
        raise InputException(f"Expected event file {event_path} to be a mapping")
    return event


@dataclass(frozen=True, kw_only=True)
class ResolverConfig:
    """Settings for a single pipeline run."""

    owner: str
    """The organization or user owning the repositories."""

    repository: str
    """Name of the repository that triggered the run."""

    mode: DeployMode | None = None
    """The deployment mode, or None when the run has nothing to do."""

    token: str | None = field(default=None, repr=False)
    """Token used to authenticate against the source control host."""

    api_url: str = DEFAULT_API_URL
    """Base url of the source control host REST API."""

    environment: str = ""
    """The target environment name e.g. `staging`."""

    head_ref: str | None = None
    """The ref of the change under review, used for the origin repository."""

    pull_number: int | None = None
    """The pull request number for staging deploys."""

    digest: str | None = None
    """Content digest of the image built for the change under review."""

    manifest_file: str = DEFAULT_MANIFEST_FILE
    """Path of the chart descriptor within each repository."""

    version_file: str = DEFAULT_VERSION_FILE
    """Path of the version tracking manifest within each repository."""

    org_domain: str = ""
    """Domain that staging hostnames are created under."""

    staging_namespace: str | None = None
    """Explicit namespace for staging deploys, derived when unset."""

    override_variables: tuple[str, ...] = DEFAULT_OVERRIDES
    """Names of the variables holding staging value override layers."""

    staging_group_variable: str = DEFAULT_STAGING_GROUP_VARIABLE
    """Name of the repository variable declaring the staging group."""

    staging_label: str | None = DEFAULT_STAGING_LABEL
    """Label added to the pull request on staging deploys."""

    registry_credentials: str | None = field(default=None, repr=False)
    """Docker config json for a registry credentials release."""

    support_chart_repository: str | None = None
    """Chart repository providing the `configmap` and `secret` charts."""

    ingress_class: str = DEFAULT_INGRESS_CLASS
    """Ingress class for shared ingress releases."""

    output_dir: Path = Path(".")
    """Directory where release directories are written."""

    output_file: Path | None = None
    """File receiving the pipeline outputs e.g. `$GITHUB_OUTPUT`."""

    artifact_dir: Path | None = None
    """Directory receiving uploaded artifacts, no upload when unset."""

    artifact_name: str = DEFAULT_ARTIFACT_NAME
    """Name of the uploaded artifact."""

    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    """Seconds allowed for each remote fetch."""

    fetch_concurrency: int = DEFAULT_FETCH_CONCURRENCY
    """Maximum number of staging group members resolved at once."""

    @classmethod
    def from_env(cls, env: Mapping[str, str]) -> "ResolverConfig":
        """Build the configuration from pipeline environment variables."""
        event = _read_event(env.get("GITHUB_EVENT_PATH"))
        owner = env.get("GITHUB_REPOSITORY_OWNER", "")
        repository = (event.get("repository") or {}).get("name")
        if not repository and (full_name := env.get("GITHUB_REPOSITORY")):
            owner_part, _, repository = full_name.partition("/")
            owner = owner or owner_part
        if not owner or not repository:
            raise InputException(
                "Unable to determine repository, set GITHUB_REPOSITORY or GITHUB_EVENT_PATH"
            )

        pull_number: int | None = None
        if (pull_request := event.get("pull_request")) and "number" in pull_request:
            pull_number = _pull_number(pull_request["number"])
        elif "number" in event:
            pull_number = _pull_number(event["number"])

        workflow = env.get("GITHUB_WORKFLOW", "")
        mode: DeployMode | None = None
        if _is_true(env.get("PROMOTE_CANDIDATE")) or workflow == CONFIGURE_WORKFLOW:
            mode = DeployMode.PRODUCTION
        elif _is_true(env.get("CREATE_STAGING")):
            mode = DeployMode.STAGING

        overrides = DEFAULT_OVERRIDES
        if "VALUES_OVERRIDES" in env:
            overrides = _split_names(env["VALUES_OVERRIDES"])

        output_file = env.get("GITHUB_OUTPUT")
        artifact_dir = env.get("ARTIFACT_DIR")
        config = cls(
            owner=owner,
            repository=repository,
            mode=mode,
            token=env.get("INPUT_GITHUB_TOKEN") or env.get("GITHUB_TOKEN"),
            api_url=env.get("GITHUB_API_URL") or DEFAULT_API_URL,
            environment=env.get("ENVIRONMENT", ""),
            head_ref=env.get("GITHUB_HEAD_REF") or None,
            pull_number=pull_number,
            digest=env.get("INPUT_CHECKSUM") or env.get("CHECKSUM") or None,
            manifest_file=env.get("MANIFEST_FILE") or DEFAULT_MANIFEST_FILE,
            version_file=env.get("RP_MANIFEST_FILE") or DEFAULT_VERSION_FILE,
            org_domain=env.get("STAGING_DOMAIN", ""),
            staging_namespace=env.get("STAGING_NAMESPACE") or None,
            override_variables=overrides,
            staging_group_variable=(
                env.get("STAGING_GROUP_VARIABLE") or DEFAULT_STAGING_GROUP_VARIABLE
            ),
            staging_label=env.get("STAGING_LABEL", DEFAULT_STAGING_LABEL) or None,
            registry_credentials=env.get("REGISTRY_CREDENTIALS") or None,
            support_chart_repository=env.get("SUPPORT_CHART_REPOSITORY") or None,
            ingress_class=env.get("INGRESS_CLASS") or DEFAULT_INGRESS_CLASS,
            output_dir=Path(env.get("OUTPUT_DIR") or "."),
            output_file=Path(output_file) if output_file else None,
            artifact_dir=Path(artifact_dir) if artifact_dir else None,
            artifact_name=env.get("ARTIFACT_NAME") or DEFAULT_ARTIFACT_NAME,
            fetch_timeout=_number(env, "FETCH_TIMEOUT", DEFAULT_FETCH_TIMEOUT),
            fetch_concurrency=_count(
                env, "FETCH_CONCURRENCY", DEFAULT_FETCH_CONCURRENCY
            ),
        )
        _LOGGER.debug("Loaded configuration %s", config)
        return config
