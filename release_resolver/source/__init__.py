"""Remote collaborators used while resolving releases."""

from .source import ContentSource, VariableStore, IssueLabeler
from .in_memory import InMemorySource
from .sink import ArtifactSink, DirectoryArtifactSink

__all__ = [
    "ContentSource",
    "VariableStore",
    "IssueLabeler",
    "InMemorySource",
    "ArtifactSink",
    "DirectoryArtifactSink",
]
