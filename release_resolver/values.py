"""Module for layering overrides onto chart values."""

from collections.abc import Iterable
from dataclasses import dataclass
import logging
from typing import Any

from .exceptions import InputException, SourceException
from .manifest import parse_document
from .source import VariableStore

__all__ = [
    "OverrideLayer",
    "apply_layer",
    "fold_layers",
    "fetch_override_layers",
    "substitute_environment",
]

_LOGGER = logging.getLogger(__name__)


ENVIRONMENT_PLACEHOLDER = "%ENVIRONMENT%"


@dataclass(frozen=True)
class OverrideLayer:
    """A named document of values merged on top of the chart values."""

    name: str
    """Where the layer came from, for logging."""

    values: dict[str, Any]
    """The override values."""


def apply_layer(values: dict[str, Any], layer: dict[str, Any]) -> dict[str, Any]:
    """Apply an override layer to the values, returning a new dict.

    Only top level keys are replaced. A nested mapping in the layer replaces
    the whole mapping in the values rather than being merged into it.
    """
    result = dict(values)
    for key, value in layer.items():
        result[key] = value
    return result


def fold_layers(
    values: dict[str, Any], layers: Iterable[OverrideLayer]
) -> dict[str, Any]:
    """Apply each layer in order, later layers win."""
    for layer in layers:
        _LOGGER.debug("Applying override layer %s", layer.name)
        values = apply_layer(values, layer.values)
    return values


def _parse_layer(name: str, content: str) -> dict[str, Any] | None:
    """Parse the layer, returning None when it is empty."""
    obj = parse_document(content, name)
    if obj is None:
        return None
    if not isinstance(obj, dict):
        raise InputException(
            f"Expected override layer {name} to be a mapping, found {type(obj).__name__}"
        )
    return obj


async def _fetch_layer(
    store: VariableStore,
    owner: str,
    repo: str,
    variable: str,
    environment: str | None,
) -> OverrideLayer | None:
    """Fetch a single override layer, returning None if it is not usable."""
    if environment:
        name = f"{owner}/{repo} environment {environment} variable {variable}"
    else:
        name = f"{owner}/{repo} variable {variable}"
    try:
        if environment:
            content = await store.get_environment_variable(
                owner, repo, environment, variable
            )
        else:
            content = await store.get_repository_variable(owner, repo, variable)
        values = _parse_layer(name, content)
    except (SourceException, InputException) as err:
        _LOGGER.warning("Skipping override layer %s: %s", name, err)
        return None
    if values is None:
        _LOGGER.debug("Skipping empty override layer %s", name)
        return None
    return OverrideLayer(name=name, values=values)


async def fetch_override_layers(
    store: VariableStore,
    owner: str,
    repo: str,
    variables: Iterable[str],
    environment: str | None = None,
) -> list[OverrideLayer]:
    """Fetch repository scoped layers, then environment scoped layers.

    Layers that are unset or cannot be parsed are skipped.
    """
    variables = list(variables)
    layers: list[OverrideLayer] = []
    scopes: list[str | None] = [None]
    if environment:
        scopes.append(environment)
    for scope in scopes:
        for variable in variables:
            if layer := await _fetch_layer(store, owner, repo, variable, scope):
                layers.append(layer)
    return layers


def substitute_environment(value: Any, environment: str) -> Any:
    """Replace the environment placeholder in every string of the document."""
    if isinstance(value, str):
        return value.replace(ENVIRONMENT_PLACEHOLDER, environment)
    if isinstance(value, dict):
        return {
            substitute_environment(k, environment): substitute_environment(
                v, environment
            )
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [substitute_environment(item, environment) for item in value]
    return value
