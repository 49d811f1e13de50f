"""GitHub API client for listing and archiving an account's repositories."""

import logging
import os
from datetime import datetime
from typing import List, Optional, Dict, Any

import requests

from repo_archiver.domain.errors import ArchiveError, ListError, SetupError
from repo_archiver.domain.repository import RepositoryRecord

logger = logging.getLogger(__name__)


class GitHubClient:
    """Client for the GitHub GraphQL (read) and REST (archive) APIs.

    Nothing is retried: a failed read aborts the run, and an archive call is
    an irreversible mutation that must only repeat after the operator
    confirms again.
    """

    GRAPHQL_ENDPOINT = "https://api.github.com/graphql"
    REST_ENDPOINT = "https://api.github.com"
    PAGE_SIZE = 100
    TIMEOUT_SECONDS = 30

    VIEWER_QUERY = """
    query {
        viewer {
            login
        }
    }
    """

    REPOSITORIES_QUERY = """
    query($login: String!, $first: Int!, $cursor: String) {
        repositoryOwner(login: $login) {
            repositories(
                first: $first,
                after: $cursor,
                ownerAffiliations: OWNER,
                orderBy: {field: PUSHED_AT, direction: DESC}
            ) {
                pageInfo {
                    hasNextPage
                    endCursor
                }
                nodes {
                    name
                    owner {
                        login
                    }
                    pushedAt
                    isArchived
                    isFork
                    visibility
                    url
                }
            }
        }
    }
    """

    def __init__(self, token: Optional[str] = None, session: Optional[requests.Session] = None):
        """
        Initialize GitHub client.

        Args:
            token: GitHub personal access token. If None, uses GITHUB_TOKEN or GH_TOKEN env var.
            session: HTTP session to use; a new one is created if omitted.

        Raises:
            SetupError: If no token is available
        """
        if token is None:
            token = os.getenv("GITHUB_TOKEN") or os.getenv("GH_TOKEN")

        if not token:
            raise SetupError("GITHUB_TOKEN (or GH_TOKEN) is required to list and archive repositories.")

        self.token = token
        self.session = session or requests.Session()
        self.headers = {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def _execute_query(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Execute a GraphQL query.

        Args:
            query: GraphQL query string
            variables: Query variables

        Returns:
            GraphQL response data

        Raises:
            ListError: On transport failure, HTTP error or GraphQL errors
        """
        payload: Dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        try:
            response = self.session.post(
                self.GRAPHQL_ENDPOINT,
                json=payload,
                headers=self.headers,
                timeout=self.TIMEOUT_SECONDS
            )
        except requests.exceptions.RequestException as e:
            raise ListError(f"GitHub request failed: {e}") from e

        if response.status_code == 401:
            raise ListError("Authentication failed. Check your GitHub token.")
        if response.status_code == 403:
            if response.headers.get("X-RateLimit-Remaining") == "0":
                raise ListError(f"Rate limit exceeded: {response.text}")
            raise ListError(f"Forbidden: {response.text}")
        if response.status_code != 200:
            raise ListError(f"GitHub API returned {response.status_code}: {response.text}")

        try:
            data = response.json()
        except ValueError as e:
            raise ListError(f"Malformed response from GitHub: {e}") from e

        if not isinstance(data, dict):
            raise ListError(f"Malformed response from GitHub: expected an object, got {data!r}")

        errors = data.get("errors")
        if errors:
            if not isinstance(errors, list):
                errors = [errors]
            error_messages = [
                err.get("message", "") if isinstance(err, dict) else str(err)
                for err in errors
            ]
            raise ListError(f"GraphQL errors: {'; '.join(error_messages)}")

        result = data.get("data") or {}
        if not isinstance(result, dict):
            raise ListError(f"Malformed response from GitHub: unexpected data {result!r}")
        return result

    def get_authenticated_login(self) -> str:
        """Return the login of the account the token belongs to."""
        data = self._execute_query(self.VIEWER_QUERY)
        viewer = data.get("viewer")
        login = viewer.get("login") if isinstance(viewer, dict) else None
        if not login:
            raise ListError("Could not determine the authenticated GitHub account.")

        logger.info(f"Resolved owner from token: {login}")
        return login

    def list_repositories(self, owner: str, limit: int = 1000) -> List[RepositoryRecord]:
        """
        Fetch up to ``limit`` repositories owned by a user or organization.

        Args:
            owner: User or organization login
            limit: Maximum number of repositories to fetch

        Returns:
            Normalized repository records

        Raises:
            ListError: If the owner is unknown or the response is malformed
        """
        repositories: List[RepositoryRecord] = []
        cursor = None

        while len(repositories) < limit:
            variables = {
                "login": owner,
                "first": min(self.PAGE_SIZE, limit - len(repositories)),
                "cursor": cursor,
            }
            data = self._execute_query(self.REPOSITORIES_QUERY, variables)

            repository_owner = data.get("repositoryOwner")
            if repository_owner is None:
                raise ListError(f"Could not resolve to a user or organization with the login of '{owner}'.")
            if not isinstance(repository_owner, dict):
                raise ListError(f"Malformed repository owner for '{owner}': {repository_owner!r}")

            connection = repository_owner.get("repositories") or {}
            if not isinstance(connection, dict):
                raise ListError(f"Malformed repository list for '{owner}': {connection!r}")

            nodes = connection.get("nodes") or []
            page_info = connection.get("pageInfo") or {}
            if not isinstance(nodes, list) or not isinstance(page_info, dict):
                raise ListError(f"Malformed repository page for '{owner}': {connection!r}")

            for node in nodes:
                repositories.append(self._parse_repository(node))

            logger.debug(f"Fetched {len(repositories)} repositories for {owner}")

            if not page_info.get("hasNextPage") or not nodes:
                break
            cursor = page_info.get("endCursor")

        logger.info(f"Fetched {len(repositories)} repositories for {owner}")
        return repositories[:limit]

    @staticmethod
    def _parse_repository(node: Dict[str, Any]) -> RepositoryRecord:
        """Normalize a GraphQL repository node."""
        try:
            full_name = f"{node['owner']['login']}/{node['name']}"

            pushed_at = None
            if node.get("pushedAt"):
                pushed_at = datetime.fromisoformat(node["pushedAt"].replace("Z", "+00:00"))

            return RepositoryRecord(
                full_name=full_name,
                pushed_at=pushed_at,
                is_archived=bool(node["isArchived"]),
                is_fork=bool(node["isFork"]),
                visibility=node.get("visibility") or "",
                url=node.get("url") or "",
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise ListError(f"Malformed repository record {node!r}: {e}") from e

    def archive_repository(self, full_name: str) -> None:
        """
        Set a repository's archived flag.

        Args:
            full_name: Repository in ``owner/name`` form

        Raises:
            ArchiveError: If the request fails or GitHub rejects it
        """
        url = f"{self.REST_ENDPOINT}/repos/{full_name}"
        try:
            response = self.session.patch(
                url,
                json={"archived": True},
                headers=self.headers,
                timeout=self.TIMEOUT_SECONDS
            )
        except requests.exceptions.RequestException as e:
            raise ArchiveError(full_name, str(e)) from e

        if response.status_code != 200:
            try:
                body = response.json()
            except ValueError:
                body = None
            reason = body.get("message") if isinstance(body, dict) else None
            raise ArchiveError(full_name, f"HTTP {response.status_code}: {reason or response.text}")

        logger.info(f"Archived {full_name}")
