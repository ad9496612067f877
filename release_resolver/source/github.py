"""GitHub REST API implementation of the remote collaborators.

Example usage:
```python
async with GitHubSource(token=token) as github:
    content = await github.get_file_content("example", "app", "manifest.yaml")
```
"""

import asyncio
from collections.abc import Awaitable, Callable
import logging
from typing import Any, TypeVar
from urllib.parse import quote

import aiohttp

from release_resolver.config import (
    DEFAULT_API_URL,
    DEFAULT_FETCH_TIMEOUT,
    ResolverConfig,
)
from release_resolver.exceptions import (
    ContentNotFoundError,
    SourceException,
    SourceTimeoutError,
    UnauthorizedError,
)

from .source import ContentSource, IssueLabeler, VariableStore

__all__ = [
    "GitHubSource",
    "github_source",
]

_LOGGER = logging.getLogger(__name__)

_T = TypeVar("_T")

RAW_MEDIA_TYPE = "application/vnd.github.raw+json"
JSON_MEDIA_TYPE = "application/vnd.github+json"
API_VERSION = "2022-11-28"


def _check_status(resp: aiohttp.ClientResponse, body: str, what: str) -> None:
    """Translate an error response into the matching exception."""
    if resp.status < 400:
        return
    if resp.status == 404:
        raise ContentNotFoundError(f"{what} not found")
    if resp.status in (401, 403):
        raise UnauthorizedError(f"Access to {what} denied ({resp.status}): {body}")
    raise SourceException(f"Request for {what} failed ({resp.status}): {body}")


class GitHubSource(ContentSource, VariableStore, IssueLabeler):
    """Client for the GitHub REST API."""

    def __init__(
        self,
        token: str | None = None,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize GitHubSource."""
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._headers = {"X-GitHub-Api-Version": API_VERSION}
        if token:
            self._headers["Authorization"] = f"Bearer {token}"
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "GitHubSource":
        if self._session is None:
            self._session = aiohttp.ClientSession(headers=self._headers)
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying http session if it was created here."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise SourceException("GitHubSource used outside of `async with`")
        return self._session

    async def _with_timeout(self, what: str, coro: Awaitable[_T]) -> _T:
        try:
            return await asyncio.wait_for(coro, self._timeout)
        except asyncio.TimeoutError as err:
            raise SourceTimeoutError(f"Request for {what} timed out") from err
        except aiohttp.ClientError as err:
            raise SourceException(f"Request for {what} failed: {err}") from err

    async def _request(
        self,
        method: str,
        url_path: str,
        what: str,
        read: Callable[[aiohttp.ClientResponse], Awaitable[_T]],
        **kwargs: Any,
    ) -> _T:
        headers = kwargs.pop("headers", self._headers)

        async def call() -> _T:
            _LOGGER.debug("%s %s", method, url_path)
            async with self.session.request(
                method, f"{self._api_url}{url_path}", headers=headers, **kwargs
            ) as resp:
                if resp.status >= 400:
                    _check_status(resp, await resp.text(), what)
                return await read(resp)

        return await self._with_timeout(what, call())

    async def get_file_content(
        self, owner: str, repo: str, path: str, ref: str | None = None
    ) -> bytes:
        """Return the raw bytes of the file at the path."""
        params = {"ref": ref} if ref else {}
        return await self._request(
            "GET",
            f"/repos/{owner}/{repo}/contents/{quote(path.lstrip('/'))}",
            f"{owner}/{repo}/{path}@{ref or 'HEAD'}",
            lambda resp: resp.read(),
            params=params,
            headers={**self._headers, "Accept": RAW_MEDIA_TYPE},
        )

    async def _variable(self, url_path: str, what: str) -> str:
        data = await self._request(
            "GET",
            url_path,
            what,
            lambda resp: resp.json(),
            headers={**self._headers, "Accept": JSON_MEDIA_TYPE},
        )
        if not isinstance(data, dict) or not isinstance(data.get("value"), str):
            raise SourceException(f"Unexpected response for {what}: {data}")
        return data["value"]

    async def get_repository_variable(self, owner: str, repo: str, name: str) -> str:
        """Return a repository variable."""
        return await self._variable(
            f"/repos/{owner}/{repo}/actions/variables/{quote(name)}",
            f"variable {name} of {owner}/{repo}",
        )

    async def get_environment_variable(
        self, owner: str, repo: str, environment: str, name: str
    ) -> str:
        """Return an environment variable."""
        return await self._variable(
            f"/repos/{owner}/{repo}/environments/{quote(environment)}/variables/{quote(name)}",
            f"variable {name} of {owner}/{repo} environment {environment}",
        )

    async def add_label(
        self, owner: str, repo: str, issue_number: int, label: str
    ) -> None:
        """Add the label to the issue or pull request."""

        async def done(resp: aiohttp.ClientResponse) -> None:
            return None

        await self._request(
            "POST",
            f"/repos/{owner}/{repo}/issues/{issue_number}/labels",
            f"labels of {owner}/{repo}#{issue_number}",
            done,
            json={"labels": [label]},
            headers={**self._headers, "Accept": JSON_MEDIA_TYPE},
        )


def github_source(config: ResolverConfig) -> GitHubSource:
    """Return a client for the API and credentials in the configuration."""
    return GitHubSource(
        token=config.token, api_url=config.api_url, timeout=config.fetch_timeout
    )
