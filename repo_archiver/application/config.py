"""Run configuration resolved from environment variables."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from repo_archiver.domain.errors import SetupError

TRUE_VALUES = {"true", "1", "yes", "on"}


@dataclass(frozen=True)
class ArchiveConfig:
    """Parameters of a single archive run."""

    months_old: int = 24
    owner: Optional[str] = None
    include_forks: bool = False
    limit: int = 1000
    dry_run: bool = False


def _positive_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise SetupError(f"{name} must be a positive integer, got {raw!r}") from None
    if value <= 0:
        raise SetupError(f"{name} must be a positive integer, got {raw!r}")
    return value


def _flag(environ: Mapping[str, str], name: str) -> bool:
    return environ.get(name, "").strip().lower() in TRUE_VALUES


def resolve_config(environ: Optional[Mapping[str, str]] = None) -> ArchiveConfig:
    """
    Build the run configuration.

    Args:
        environ: Variables to read. If None, uses os.environ.

    Returns:
        Resolved configuration; ``owner`` is None when it must be auto-detected

    Raises:
        SetupError: If MONTHS_OLD or LIMIT is not a positive integer
    """
    if environ is None:
        environ = os.environ

    owner = environ.get("OWNER", "").strip() or None

    return ArchiveConfig(
        months_old=_positive_int(environ, "MONTHS_OLD", 24),
        owner=owner,
        include_forks=_flag(environ, "INCLUDE_FORKS"),
        limit=_positive_int(environ, "LIMIT", 1000),
        dry_run=_flag(environ, "DRY_RUN"),
    )
