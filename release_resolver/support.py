"""Supporting releases added to a staging environment.

Besides the releases of the staging group itself, a staging environment may
need shared ingresses requested by the releases and a secret holding registry
credentials so that private images can be pulled.
"""

from collections.abc import Iterable
import logging

from .config import ResolverConfig
from .ingress import ANNOTATIONS_KEY, SERVICE_KEY
from .manifest import (
    CHART,
    CHART_VERSION,
    RELEASE_NAME,
    REPOSITORY,
    ReleaseDescriptor,
)

__all__ = [
    "shared_ingresses",
    "support_releases",
]

_LOGGER = logging.getLogger(__name__)


SERVICE_INGRESSES_ANNOTATION = "release-resolver/service-ingresses"
MANAGED_INGRESS_ANNOTATION = "release-resolver/managed-ingress"
CONFIGMAP_CHART = "configmap"
SECRET_CHART = "secret"
SUPPORT_CHART_VERSION = "^2.0.0"
REGISTRY_CREDENTIALS_RELEASE = "registry-credentials"
DOCKER_CONFIG_TYPE = "kubernetes.io/dockerconfigjson"


def shared_ingresses(descriptors: Iterable[ReleaseDescriptor]) -> list[str]:
    """Return the shared ingress names requested by the releases in order."""
    names: list[str] = []
    for descriptor in descriptors:
        service = descriptor.values.get(SERVICE_KEY)
        if not isinstance(service, dict):
            continue
        annotations = service.get(ANNOTATIONS_KEY)
        if not isinstance(annotations, dict):
            continue
        if not (value := annotations.get(SERVICE_INGRESSES_ANNOTATION)):
            continue
        for name in str(value).split(","):
            if (name := name.strip()) and name not in names:
                names.append(name)
    return names


def _support_parameters(
    release_name: str, chart: str, repository: str
) -> dict[str, str]:
    return {
        RELEASE_NAME: release_name,
        CHART: chart,
        CHART_VERSION: SUPPORT_CHART_VERSION,
        REPOSITORY: repository,
    }


def shared_ingress_release(
    name: str, config: ResolverConfig, repository: str
) -> ReleaseDescriptor:
    """Return the release that declares a shared ingress."""
    return ReleaseDescriptor(
        values={
            "annotations": {MANAGED_INGRESS_ANNOTATION: "true"},
            "data": {
                "ingress": name,
                "domain": f"{name}.{config.org_domain}",
                "ingress_class": config.ingress_class,
            },
        },
        parameters=_support_parameters(name, CONFIGMAP_CHART, repository),
    )


def registry_credentials_release(
    credentials: str, repository: str
) -> ReleaseDescriptor:
    """Return the release holding the image registry credentials."""
    return ReleaseDescriptor(
        values={
            "type": DOCKER_CONFIG_TYPE,
            "plain_text": {".dockerconfigjson": credentials},
        },
        parameters=_support_parameters(
            REGISTRY_CREDENTIALS_RELEASE, SECRET_CHART, repository
        ),
    )


def support_releases(
    config: ResolverConfig, descriptors: list[ReleaseDescriptor]
) -> list[ReleaseDescriptor]:
    """Return the supporting releases needed by the staging releases."""
    ingresses = shared_ingresses(descriptors)
    if not ingresses and not config.registry_credentials:
        return []
    if not (repository := config.support_chart_repository):
        _LOGGER.warning(
            "Skipping supporting releases, SUPPORT_CHART_REPOSITORY is not set"
        )
        return []
    releases = [shared_ingress_release(name, config, repository) for name in ingresses]
    if config.registry_credentials:
        releases.append(
            registry_credentials_release(config.registry_credentials, repository)
        )
    return releases
