"""Pull request lookup through the GitHub GraphQL API."""

from __future__ import annotations

from typing import Any, Optional, Protocol

import requests

from .errors import IssueResolutionError
from .utils import log_debug

GITHUB_GRAPHQL_URL = "https://api.github.com/graphql"

ASSOCIATED_PULL_REQUEST_QUERY = """\
query($owner: String!, $name: String!, $sha: String!) {
  repository(owner: $owner, name: $name) {
    object(expression: $sha) {
      ... on Commit {
        associatedPullRequests(first: 1) {
          edges {
            node {
              number
            }
          }
        }
      }
    }
  }
}
"""


class IssueResolver(Protocol):
    """Maps a commit to the pull request that introduced it."""

    def find_associated_pull_request(
        self, commit_hash: str, repo_owner: str, repo_name: str
    ) -> int: ...


class GitHubIssueResolver:
    """Token-authenticated client for associated pull request queries."""

    def __init__(
        self,
        token: str,
        *,
        session: Optional[requests.Session] = None,
        endpoint: str = GITHUB_GRAPHQL_URL,
        timeout: Optional[float] = None,
    ) -> None:
        if not token:
            raise ValueError("a GitHub token is required to query pull requests")
        self.endpoint = endpoint
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"bearer {token}",
                "Accept": "application/vnd.github+json",
                "User-Agent": "changelog-build",
            }
        )

    def _query(self, commit_hash: str, variables: dict[str, str]) -> dict[str, Any]:
        try:
            response = self.session.post(
                self.endpoint,
                json={"query": ASSOCIATED_PULL_REQUEST_QUERY, "variables": variables},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise IssueResolutionError(commit_hash, exc) from exc
        if response.status_code >= 400:
            raise IssueResolutionError(
                commit_hash, f"GitHub API error {response.status_code}: {response.text}"
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise IssueResolutionError(commit_hash, "GitHub returned invalid JSON") from exc
        if not isinstance(payload, dict):
            raise IssueResolutionError(commit_hash, "unexpected GitHub response")
        errors = payload.get("errors")
        if errors:
            messages = "; ".join(
                str(error.get("message", error)) if isinstance(error, dict) else str(error)
                for error in errors
            )
            raise IssueResolutionError(commit_hash, messages)
        return payload.get("data") or {}

    def find_associated_pull_request(
        self, commit_hash: str, repo_owner: str, repo_name: str
    ) -> int:
        variables = {"owner": repo_owner, "name": repo_name, "sha": commit_hash}
        log_debug(f"querying pull request for {repo_owner}/{repo_name}@{commit_hash}")
        data = self._query(commit_hash, variables)
        repository = data.get("repository") or {}
        commit = repository.get("object") or {}
        edges = (commit.get("associatedPullRequests") or {}).get("edges") or []
        if not edges:
            raise IssueResolutionError(commit_hash)
        number = (edges[0].get("node") or {}).get("number")
        if not isinstance(number, int):
            raise IssueResolutionError(commit_hash, "pull request number missing from response")
        return number
