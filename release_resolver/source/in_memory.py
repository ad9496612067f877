"""Module for an in memory source of repository content and variables."""

import logging

from release_resolver.exceptions import ContentNotFoundError, SourceException

from .source import ContentSource, IssueLabeler, VariableStore

_LOGGER = logging.getLogger(__name__)


class InMemorySource(ContentSource, VariableStore, IssueLabeler):
    """In-memory implementation of the remote collaborators.

    Files are keyed by owner, repository, path and ref where a ref of `None`
    represents the default branch. Every request is recorded in `requests` so
    callers can inspect what was fetched.
    """

    def __init__(self, *, fail_labels: bool = False) -> None:
        """Initialize the InMemorySource."""
        self._files: dict[tuple[str, str, str, str | None], bytes] = {}
        self._repo_vars: dict[tuple[str, str, str], str] = {}
        self._env_vars: dict[tuple[str, str, str, str], str] = {}
        self._fail_labels = fail_labels
        self.labels: list[tuple[str, str, int, str]] = []
        self.requests: list[str] = []

    def add_file(
        self,
        owner: str,
        repo: str,
        path: str,
        content: bytes | str,
        ref: str | None = None,
    ) -> None:
        """Add a file to the repository at the ref."""
        if isinstance(content, str):
            content = content.encode("utf-8")
        self._files[(owner, repo, path, ref)] = content

    def add_repository_variable(
        self, owner: str, repo: str, name: str, value: str
    ) -> None:
        """Set a repository scoped variable."""
        self._repo_vars[(owner, repo, name)] = value

    def add_environment_variable(
        self, owner: str, repo: str, environment: str, name: str, value: str
    ) -> None:
        """Set an environment scoped variable."""
        self._env_vars[(owner, repo, environment, name)] = value

    async def get_file_content(
        self, owner: str, repo: str, path: str, ref: str | None = None
    ) -> bytes:
        """Return the raw bytes of the file at the path."""
        self.requests.append(f"file:{owner}/{repo}/{path}@{ref or ''}")
        if (content := self._files.get((owner, repo, path, ref))) is None:
            raise ContentNotFoundError(
                f"File {path} not found in {owner}/{repo} at {ref or 'default branch'}"
            )
        return content

    async def get_repository_variable(self, owner: str, repo: str, name: str) -> str:
        """Return a repository variable."""
        self.requests.append(f"repo-var:{owner}/{repo}/{name}")
        if (value := self._repo_vars.get((owner, repo, name))) is None:
            raise ContentNotFoundError(f"Variable {name} not set on {owner}/{repo}")
        return value

    async def get_environment_variable(
        self, owner: str, repo: str, environment: str, name: str
    ) -> str:
        """Return an environment variable."""
        self.requests.append(f"env-var:{owner}/{repo}/{environment}/{name}")
        if (value := self._env_vars.get((owner, repo, environment, name))) is None:
            raise ContentNotFoundError(
                f"Variable {name} not set on {owner}/{repo} environment {environment}"
            )
        return value

    async def add_label(
        self, owner: str, repo: str, issue_number: int, label: str
    ) -> None:
        """Record the label."""
        if self._fail_labels:
            raise SourceException(f"Unable to label {owner}/{repo}#{issue_number}")
        _LOGGER.debug("Labeling %s/%s#%s with %s", owner, repo, issue_number, label)
        self.labels.append((owner, repo, issue_number, label))
