"""Application service for selecting and archiving stale repositories."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Sequence, Tuple

from repo_archiver.application.config import ArchiveConfig
from repo_archiver.domain.errors import ArchiveError
from repo_archiver.domain.repository import compute_cutoff, filter_repositories, format_timestamp
from repo_archiver.infrastructure.github_client import GitHubClient
from repo_archiver.infrastructure.selector import Selector

logger = logging.getLogger(__name__)

AFFIRMATIVE_ANSWERS = {"y", "yes"}


@dataclass
class ArchiveReport:
    """Outcome of the archive loop."""

    owner: str
    dry_run: bool
    archived: List[str] = field(default_factory=list)
    would_archive: List[str] = field(default_factory=list)


class ArchiveService:
    """Runs the list, filter, select, confirm and archive pipeline once.

    Archiving stops at the first failed call. Repositories archived before
    the failure stay archived; there is no rollback.
    """

    def __init__(
        self,
        github_client: GitHubClient,
        selector: Selector,
        config: ArchiveConfig,
        input_func: Callable[[str], str] = input,
        now: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize archive service.

        Args:
            github_client: GitHub API client
            selector: Interactive selection backend
            config: Resolved run configuration
            input_func: Reads the confirmation answer
            now: Clock used for the cutoff; defaults to current UTC time
        """
        self.github_client = github_client
        self.selector = selector
        self.config = config
        self.input_func = input_func
        self.now = now

    def resolve_owner(self) -> str:
        if self.config.owner:
            return self.config.owner
        return self.github_client.get_authenticated_login()

    def run(self) -> Optional[ArchiveReport]:
        """
        Execute a full run.

        Returns:
            The archive report, or None when there was nothing to do or the
            operator aborted
        """
        owner = self.resolve_owner()
        cutoff = compute_cutoff(self.config.months_old, self.now() if self.now else None)
        logger.info(f"Listing repositories for {owner} (cutoff {format_timestamp(cutoff)})")

        records = self.github_client.list_repositories(owner, limit=self.config.limit)
        candidates = filter_repositories(records, self.config.include_forks, cutoff)

        if not candidates:
            print(f"No unarchived repositories found for {owner} (after filters).")
            return None

        stale_count = sum(1 for candidate in candidates if candidate.is_stale)
        logger.info(f"{len(candidates)} candidates, {stale_count} pre-selected as stale")

        selected = self.selector.select(candidates, self.config.months_old)
        if not selected:
            print("No repositories selected. Nothing to do.")
            return None

        if not self.confirm(selected):
            print("Aborted.")
            return None

        report = self.archive(owner, selected)
        self._print_done(owner)
        return report

    def confirm(self, full_names: Sequence[str]) -> bool:
        """Show the chosen repositories and ask for an explicit yes."""
        print()
        print(f"You selected {len(full_names)} repositories to ARCHIVE:")
        for full_name in full_names:
            print(f"  - {full_name}")
        print()

        try:
            answer = self.input_func("Proceed to ARCHIVE these repos? [y/N] ")
        except EOFError:
            return False
        return answer.strip().lower() in AFFIRMATIVE_ANSWERS

    def archive(self, owner: str, full_names: Sequence[str]) -> ArchiveReport:
        """
        Archive each repository in order, or only report it under dry-run.

        Raises:
            ArchiveError: On the first failed call, listing what was already archived
        """
        report = ArchiveReport(owner=owner, dry_run=self.config.dry_run)
        to_archive: Tuple[str, ...] = tuple(full_names)

        for full_name in to_archive:
            print(f"Archiving {full_name} ...")
            if self.config.dry_run:
                print(f'DRY_RUN: gh repo edit "{full_name}" --archived')
                report.would_archive.append(full_name)
                continue

            try:
                self.github_client.archive_repository(full_name)
            except ArchiveError as e:
                logger.error(f"Stopping after failure on {full_name}; {len(report.archived)} already archived")
                raise ArchiveError(full_name, e.reason, report.archived) from e
            report.archived.append(full_name)

        return report

    @staticmethod
    def _print_done(owner: str) -> None:
        print("Done.")
        print(f'List non-archived: gh repo list "{owner}" --limit 200')
        print(f'List archived:     gh repo list "{owner}" --limit 200 --archived')
