#!/usr/bin/env python3
"""Script to interactively archive an account's stale GitHub repositories."""

import logging
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from repo_archiver.application.archive_service import ArchiveService
from repo_archiver.application.config import resolve_config
from repo_archiver.domain.errors import ArchiverError
from repo_archiver.infrastructure.github_client import GitHubClient
from repo_archiver.infrastructure.selector import choose_selector

logger = logging.getLogger(__name__)


def configure_logging():
    """Configure root logging from LOG_LEVEL."""
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def main():
    """Archive the repositories the operator selects and confirms."""
    configure_logging()
    try:
        config = resolve_config()

        # Collaborators are checked before any network call
        github_client = GitHubClient()
        selector = choose_selector()
        logger.info(f"Using {selector.name} for selection")

        if config.dry_run:
            logger.info("DRY_RUN enabled: no repository will be modified")

        service = ArchiveService(github_client, selector, config)
        report = service.run()

        if report is not None:
            count = len(report.would_archive) if report.dry_run else len(report.archived)
            logger.info(f"Run completed. Repositories {'to archive' if report.dry_run else 'archived'}: {count}")
        return 0

    except ArchiverError as e:
        logger.error(str(e))
        return 1
    except KeyboardInterrupt:
        logger.error("Interrupted. Repositories archived before the interrupt stay archived.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
