"""GitHub REST API client built on the request pipeline."""
from __future__ import annotations

import logging
from typing import Any, Iterator, Optional

from .api_connection import ApiConnection
from .api_info import ApiInfo
from .config import ClientConfig, Credentials
from .connection import Connection
from .models import Commit, GitTag, Repository
from .pagination import LazySequence, PageOptions

# GitHub max per_page is 100
MAX_PAGE_SIZE = 100


class GitHubClient:
    """GitHub API client with high-level methods.

    Example:
        ```python
        from ghrest import ClientConfig, Credentials, GitHubClient

        with GitHubClient(ClientConfig(credentials=Credentials.token("..."))) as client:
            repo = client.get_repository("owner", "repo")
        ```

    Args:
        config: Client configuration; read from the environment when omitted
        connection: Connection to use instead of one built from ``config``
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        connection: Optional[Connection] = None,
    ) -> None:
        if connection is None:
            connection = Connection(config or ClientConfig.from_env())
        self.connection = connection
        self.config = connection.config
        self.api = ApiConnection(connection)
        self.logger = logging.getLogger(self.__class__.__name__)

    @classmethod
    def with_token(cls, token: str, **config: Any) -> 'GitHubClient':
        """Create a client authenticated with a personal access token."""
        return cls(ClientConfig(credentials=Credentials.token(token), **config))

    def get_repository(self, owner: str, repo: str) -> Repository:
        """Get a single repository."""
        return self.api.get(f"repos/{owner}/{repo}", Repository)

    def list_organization_repositories(
        self,
        org: str,
        repo_type: str = "all",
        sort: str = "full_name",
        direction: str = "asc",
        options: Optional[PageOptions] = None,
    ) -> LazySequence[Repository]:
        """List organization repositories, fetching pages as they are read."""
        params = {
            'type': repo_type,
            'sort': sort,
            'direction': direction,
        }
        return self.api.get_all(f"orgs/{org}/repos", Repository, parameters=params, options=options)

    def list_all_organization_repositories(
        self,
        org: str,
        include_forks: bool = True,
        include_archived: bool = True,
    ) -> Iterator[Repository]:
        """Iterate all repositories in an organization with optional filtering."""
        repos = self.list_organization_repositories(org, options=PageOptions(page_size=MAX_PAGE_SIZE))
        count = 0
        for repo in repos:
            if not include_forks and repo.is_fork:
                continue
            if not include_archived and repo.is_archived:
                continue
            count += 1
            yield repo
        self.logger.debug(f"Listed {count} of {repos.fetched_count} repositories for {org}")

    def get_commit(self, owner: str, repo: str, sha: str) -> Commit:
        """Get a git commit from the git data API."""
        return self.api.get(f"repos/{owner}/{repo}/git/commits/{sha}", Commit)

    def create_commit(self, owner: str, repo: str, commit: Commit) -> Commit:
        """Create a git commit.

        ``commit`` carries the message, the tree and the parents; GitHub
        expects the tree and parents as SHAs.
        """
        body = {
            'message': commit.message,
            'tree': commit.tree.sha if commit.tree else None,
            'parents': [parent.sha for parent in commit.parents],
        }
        if commit.author is not None:
            body['author'] = commit.author
        if commit.committer is not None:
            body['committer'] = commit.committer
        return self.api.post(
            f"repos/{owner}/{repo}/git/commits",
            {key: value for key, value in body.items() if value is not None},
            Commit,
            content_type="application/json",
        )

    def get_tag(self, owner: str, repo: str, sha: str) -> GitTag:
        """Get an annotated tag from the git data API."""
        return self.api.get(f"repos/{owner}/{repo}/git/tags/{sha}", GitTag)

    def get_last_api_info(self) -> Optional[ApiInfo]:
        """ApiInfo (rate limit, scopes, ETag) of the last response, if any."""
        return self.connection.get_last_api_info()

    def close(self) -> None:
        """Close the underlying connection."""
        self.connection.close()

    def __enter__(self) -> 'GitHubClient':
        """Use the client in a ``with`` block."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Release the pooled HTTP connections on leaving the block."""
        self.close()
