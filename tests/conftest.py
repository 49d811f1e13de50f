"""Pytest configuration and fixtures for repo_archiver tests"""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Ensure project root and scripts are importable before any imports
project_root = Path(__file__).resolve().parent.parent
for path in (project_root, project_root / "scripts"):
    path_str = str(path)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from repo_archiver.domain.errors import ArchiveError
from repo_archiver.domain.repository import RepositoryRecord

NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


def make_record(name, pushed_at=NOW, owner="octo", archived=False, fork=False, visibility="PUBLIC"):
    return RepositoryRecord(
        full_name=f"{owner}/{name}",
        pushed_at=pushed_at,
        is_archived=archived,
        is_fork=fork,
        visibility=visibility,
        url=f"https://github.com/{owner}/{name}",
    )


class FakeGitHubClient:
    """In-memory stand-in for GitHubClient that records archive calls."""

    def __init__(self, records=(), login="octo", fail_on=()):
        self.records = list(records)
        self.login = login
        self.fail_on = set(fail_on)
        self.archive_calls = []
        self.list_calls = []
        self.login_calls = 0

    def get_authenticated_login(self):
        self.login_calls += 1
        return self.login

    def list_repositories(self, owner, limit=1000):
        self.list_calls.append((owner, limit))
        return self.records[:limit]

    def archive_repository(self, full_name):
        self.archive_calls.append(full_name)
        if full_name in self.fail_on:
            raise ArchiveError(full_name, "HTTP 403: Must have admin rights to Repository.")


class FakeSelector:
    """Selector that returns a fixed choice, or the stale defaults."""

    name = "fake"

    def __init__(self, choice=None):
        self.choice = choice
        self.seen = None

    def select(self, candidates, months_old):
        self.seen = tuple(candidates)
        if self.choice is None:
            return tuple(c.full_name for c in candidates if c.is_stale)
        return tuple(self.choice)


@pytest.fixture
def now():
    return NOW
