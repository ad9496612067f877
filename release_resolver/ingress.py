"""Library for synthesizing ingress routes of staging releases.

A release opts in to a route by labeling its service values:

```yaml
service:
  labels:
    release-resolver/ingress: "true"
  annotations:
    release-resolver/ingress-path: /api
```

The hostname is derived from the release, pull request, namespace and
environment so that re-running a pipeline for the same pull request always
produces the same hostname. It is written back into the service annotations for
the chart to render.
"""

from dataclasses import dataclass, field
import logging
from typing import Any

from .manifest import ReleaseDescriptor

__all__ = [
    "IngressRoute",
    "RouteMessages",
    "route_hostname",
    "synthesize",
]

_LOGGER = logging.getLogger(__name__)


SERVICE_KEY = "service"
LABELS_KEY = "labels"
ANNOTATIONS_KEY = "annotations"
INGRESS_LABEL = "release-resolver/ingress"
HOSTNAME_ANNOTATION = "release-resolver/ingress-hostname"
PATH_ANNOTATION = "release-resolver/ingress-path"


@dataclass(frozen=True)
class IngressRoute:
    """Result of synthesizing the route of a release."""

    applied: bool
    """True if the release opted in and its values were updated."""

    hostname: str | None = None
    """The hostname of the route when applied."""


@dataclass
class RouteMessages:
    """Accumulates a human readable line for every route in a run."""

    lines: list[str] = field(default_factory=list)

    def add(self, release_name: str, hostname: str, path: str) -> None:
        self.lines.append(f"{release_name}: https://{hostname}/{path.lstrip('/')}")

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


def route_hostname(
    namespace: str,
    release_name: str,
    pull_number: int,
    environment: str,
    org_domain: str,
) -> str:
    """Return the hostname for the release in the pull request namespace."""
    return f"{release_name}.{pull_number}.{namespace}.{environment}.{org_domain}"


def _service(values: dict[str, Any]) -> dict[str, Any] | None:
    service = values.get(SERVICE_KEY)
    return service if isinstance(service, dict) else None


def _opted_in(service: dict[str, Any]) -> bool:
    labels = service.get(LABELS_KEY)
    if not isinstance(labels, dict):
        return False
    marker = labels.get(INGRESS_LABEL)
    if isinstance(marker, bool):
        return marker
    return str(marker).strip().lower() == "true"


def synthesize(
    namespace: str,
    release_name: str,
    pull_number: int,
    environment: str,
    org_domain: str,
    descriptor: ReleaseDescriptor,
    messages: RouteMessages | None = None,
) -> IngressRoute:
    """Compute the route of the release and write it into its annotations.

    Releases without the ingress label are left untouched.
    """
    if (service := _service(descriptor.values)) is None or not _opted_in(service):
        _LOGGER.debug("Release %s has no ingress route", release_name)
        return IngressRoute(applied=False)

    hostname = route_hostname(
        namespace, release_name, pull_number, environment, org_domain
    )
    annotations = service.get(ANNOTATIONS_KEY)
    if not isinstance(annotations, dict):
        annotations = {}
        service[ANNOTATIONS_KEY] = annotations
    annotations[HOSTNAME_ANNOTATION] = hostname
    path = annotations.get(PATH_ANNOTATION) or ""
    if messages is not None:
        messages.add(release_name, hostname, str(path))
    _LOGGER.info("Release %s is routed at %s", release_name, hostname)
    return IngressRoute(applied=True, hostname=hostname)
