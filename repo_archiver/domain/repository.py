"""Domain entities for repository archive candidates."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Optional, Tuple, Union

from dateutil.relativedelta import relativedelta


class DefaultFlag(Enum):
    """Default selection state of a candidate, with its searchable label."""

    STALE = "DEFAULT"
    FRESH = "KEEP"

    @property
    def label(self) -> str:
        return self.value


@dataclass(frozen=True)
class RepositoryRecord:
    """Immutable repository record as reported by the hosting platform."""

    full_name: str
    pushed_at: Optional[datetime]
    is_archived: bool
    is_fork: bool
    visibility: str
    url: str


@dataclass(frozen=True)
class Candidate:
    """Repository eligible for the archive decision."""

    record: RepositoryRecord
    default_flag: DefaultFlag

    @property
    def full_name(self) -> str:
        return self.record.full_name

    @property
    def is_stale(self) -> bool:
        return self.default_flag is DefaultFlag.STALE

    @property
    def last_push_display(self) -> str:
        if self.record.pushed_at is None:
            return "never"
        return format_timestamp(self.record.pushed_at)


def format_timestamp(value: datetime) -> str:
    """Render an aware datetime as ISO-8601 UTC with second precision."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def compute_cutoff(months_old: int, now: Optional[datetime] = None) -> datetime:
    """
    Compute the staleness cutoff.

    Args:
        months_old: Age threshold in calendar months
        now: Reference time; defaults to the current UTC time

    Returns:
        Aware UTC datetime ``now - months_old`` months, truncated to seconds
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    cutoff = now.astimezone(timezone.utc) - relativedelta(months=months_old)
    return cutoff.replace(microsecond=0)


def classify(pushed_at: Optional[datetime], cutoff: datetime) -> DefaultFlag:
    """Never-pushed or pushed strictly before the cutoff is stale."""
    if pushed_at is None or pushed_at < cutoff:
        return DefaultFlag.STALE
    return DefaultFlag.FRESH


def filter_repositories(
    records: Iterable[Union[RepositoryRecord, Candidate]],
    include_forks: bool,
    cutoff: datetime,
) -> Tuple[Candidate, ...]:
    """
    Build the candidate set from raw records.

    Forks are dropped unless ``include_forks`` is set, archived repositories
    are always dropped, and each survivor gets its default flag. Candidates
    may be passed back in; they are unwrapped and re-classified, so filtering
    is idempotent.

    Args:
        records: Repository records (or previously built candidates)
        include_forks: Keep forked repositories as candidates
        cutoff: Staleness cutoff from ``compute_cutoff``

    Returns:
        Candidates in input order
    """
    candidates = []
    for item in records:
        record = item.record if isinstance(item, Candidate) else item

        if record.is_fork and not include_forks:
            continue
        if record.is_archived:
            continue

        candidates.append(Candidate(record=record, default_flag=classify(record.pushed_at, cutoff)))

    return tuple(candidates)
