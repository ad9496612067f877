"""Interfaces for the remote collaborators of the resolver.

These are thin wrappers around the source control host. The resolver only
depends on these interfaces so that tests and local runs can swap in the
in-memory implementation.
"""

from abc import ABC, abstractmethod

__all__ = [
    "ContentSource",
    "VariableStore",
    "IssueLabeler",
]


class ContentSource(ABC):
    """Provides raw file content from a repository."""

    @abstractmethod
    async def get_file_content(
        self, owner: str, repo: str, path: str, ref: str | None = None
    ) -> bytes:
        """Return the raw bytes of the file at the path.

        The default branch is used when no ref is given. Raises
        `ContentNotFoundError` when the path or ref does not exist and
        `UnauthorizedError` when the credentials are rejected.
        """


class VariableStore(ABC):
    """Provides repository and environment scoped pipeline variables."""

    @abstractmethod
    async def get_repository_variable(self, owner: str, repo: str, name: str) -> str:
        """Return a repository variable, raising `ContentNotFoundError` if unset."""

    @abstractmethod
    async def get_environment_variable(
        self, owner: str, repo: str, environment: str, name: str
    ) -> str:
        """Return an environment variable, raising `ContentNotFoundError` if unset."""


class IssueLabeler(ABC):
    """Adds labels to issues and pull requests."""

    @abstractmethod
    async def add_label(
        self, owner: str, repo: str, issue_number: int, label: str
    ) -> None:
        """Add the label to the issue."""
