"""Representation of a resolved release.

A chart descriptor is read from a repository and split into the chart `values`
and the flat deployment `parameters`. The resulting `ReleaseDescriptor` is the
unit of work that is later written out for the deployment tool.

Example chart descriptor:
```yaml
helm:
  release_name: podinfo
  chart: podinfo
  chart_version: ^6.0.0
  repository: https://stefanprodan.github.io/podinfo
  namespace: podinfo
  values:
    image:
      repository: ghcr.io/stefanprodan/podinfo
```
"""

from dataclasses import dataclass, field
import logging
from typing import Any

import yaml
from mashumaro import DataClassDictMixin
from mashumaro.codecs.yaml import yaml_decode, yaml_encode
from mashumaro.config import BaseConfig

from .exceptions import (
    ContractViolation,
    InputException,
    ManifestException,
    VersionManifestError,
)

__all__ = [
    "parse_document",
    "is_scalar",
    "ReleaseDescriptor",
    "VersionRecord",
    "ResolvedRelease",
]

_LOGGER = logging.getLogger(__name__)


VALUES_KEY = "values"
RELEASE_NAME = "release_name"
CHART = "chart"
CHART_VERSION = "chart_version"
REPOSITORY = "repository"
NAMESPACE = "namespace"
CREATE_NAMESPACE = "create_namespace"
PARAMETER_KEYS = (RELEASE_NAME, CHART, CHART_VERSION, REPOSITORY, NAMESPACE)

# Keys that may hold the version in a version tracking manifest. The first is
# the root package entry written by release-please.
VERSION_KEYS = (".", "version")


def parse_document(content: bytes | str, name: str) -> Any:
    """Parse a YAML (or JSON) document from raw file content."""
    try:
        if isinstance(content, bytes):
            content = content.decode("utf-8")
        return yaml.load(content, Loader=yaml.SafeLoader)
    except (UnicodeDecodeError, yaml.YAMLError) as err:
        raise InputException(f"Unable to parse {name}: {err}") from err


def is_scalar(value: Any) -> bool:
    """Return True if the value can be written as a single parameter line."""
    return value is None or isinstance(value, (str, int, float, bool))


def _unwrap(doc: dict[str, Any]) -> dict[str, Any]:
    """Remove a single top level namespacing key e.g. `helm:`."""
    if len(doc) != 1:
        return doc
    key, inner = next(iter(doc.items()))
    if key == VALUES_KEY or key in PARAMETER_KEYS or not isinstance(inner, dict):
        return doc
    _LOGGER.debug("Unwrapping chart descriptor nested under '%s'", key)
    return inner


@dataclass
class BaseManifest(DataClassDictMixin):
    """Base class for all manifest objects."""

    @classmethod
    def parse_yaml(cls, content: str) -> "BaseManifest":
        """Parse a serialized manifest."""
        return yaml_decode(content, cls)

    def yaml(self) -> str:
        """Return a YAML string representation of the object."""
        return yaml_encode(self, self.__class__)  # type: ignore[return-value]

    class Config(BaseConfig):
        omit_none = True


@dataclass
class ReleaseDescriptor(BaseManifest):
    """The resolved unit of work for a single chart release."""

    values: dict[str, Any] = field(default_factory=dict)
    """The chart input values."""

    parameters: dict[str, Any] = field(default_factory=dict)
    """Flat deployment coordinates e.g. release name, chart and namespace."""

    @classmethod
    def parse_doc(cls, doc: Any) -> "ReleaseDescriptor":
        """Parse a ReleaseDescriptor from a chart descriptor document."""
        if not isinstance(doc, dict):
            raise ManifestException(f"Invalid chart descriptor, expected a mapping: {doc}")
        doc = dict(_unwrap(doc))
        values = doc.pop(VALUES_KEY, None)
        if values is None:
            values = {}
        if not isinstance(values, dict):
            raise ManifestException(
                f"Invalid chart descriptor, expected 'values' to be a mapping: {values}"
            )
        descriptor = cls(values=values, parameters=doc)
        descriptor.validate_release_name()
        return descriptor

    @property
    def release_name(self) -> str:
        """Identifier of the release, also used as its directory name."""
        return self.validate_release_name()

    @property
    def namespace(self) -> str | None:
        """The namespace the release is installed to."""
        return self.parameters.get(NAMESPACE)

    def validate_release_name(self) -> str:
        """Return the release name, raising if it is missing or invalid."""
        name = self.parameters.get(RELEASE_NAME)
        if not isinstance(name, str) or not name.strip():
            raise ContractViolation(
                f"Release is missing a non-empty '{RELEASE_NAME}': {self.parameters}"
            )
        if "/" in name or "\\" in name or name in (".", ".."):
            raise ContractViolation(f"Invalid release name '{name}'")
        return name


@dataclass(frozen=True)
class VersionRecord:
    """The version extracted from a version tracking manifest."""

    version: str

    @classmethod
    def parse_doc(cls, doc: Any, name: str = "version manifest") -> "VersionRecord":
        """Parse a VersionRecord from a release-please style manifest."""
        value: Any = doc
        if isinstance(doc, dict):
            if found := [key for key in VERSION_KEYS if key in doc]:
                value = doc[found[0]]
            elif len(doc) == 1:
                value = next(iter(doc.values()))
            else:
                raise VersionManifestError(
                    f"Unable to find a version in {name}, expected one of {VERSION_KEYS}"
                )
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            raise VersionManifestError(
                f"Expected {name} version to be a scalar, found {type(value).__name__}"
            )
        if not (version := str(value).strip()):
            raise VersionManifestError(f"Empty version in {name}")
        return cls(version=version)


@dataclass(kw_only=True)
class ResolvedRelease:
    """A release descriptor together with the repository version."""

    repository: str
    """The repository the release was resolved from."""

    descriptor: ReleaseDescriptor
    """The resolved descriptor."""

    version: str
    """The latest released version of the repository."""
