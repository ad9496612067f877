"""
Resolves the chart releases of a delivery pipeline run.

A release is resolved from a chart descriptor in a repository, layered with
optional overrides, pointed at an image version and written out as a `values`
and `parameters` file pair for the deployment tool.
"""

__all__ = [
    "config",
    "manifest",
    "values",
    "resolver",
    "image",
    "staging",
    "ingress",
    "support",
    "writer",
    "outputs",
    "orchestrator",
    "source",
    "exceptions",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]
