"""Error taxonomy for the archive run."""

from typing import Sequence


class ArchiverError(Exception):
    """Base class for fatal archive-run errors."""
    pass


class SetupError(ArchiverError):
    """Raised when configuration is invalid or a required collaborator is missing."""
    pass


class ListError(ArchiverError):
    """Raised when the repository list or the authenticated identity cannot be fetched."""
    pass


class ArchiveError(ArchiverError):
    """Raised when archiving a repository fails; earlier archives in the run stay applied."""

    def __init__(self, full_name: str, reason: str, archived: Sequence[str] = ()):
        self.full_name = full_name
        self.reason = reason
        self.archived = tuple(archived)

        message = f"Failed to archive {full_name}: {reason}"
        if self.archived:
            message += f" (already archived in this run: {', '.join(self.archived)})"
        else:
            message += " (no repositories were archived in this run)"
        super().__init__(message)
