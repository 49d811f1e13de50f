"""Interactive multi-select backends driving whiptail or fzf."""

import logging
import shutil
import subprocess
from typing import Callable, List, Optional, Sequence, Tuple

from repo_archiver.domain.errors import SetupError
from repo_archiver.domain.repository import Candidate, DefaultFlag

logger = logging.getLogger(__name__)

Runner = Callable[..., subprocess.CompletedProcess]


def candidate_row(candidate: Candidate) -> Tuple[str, str, str, str, str]:
    """Display fields shared by both backends: name, last push, flag label, visibility, url."""
    return (
        candidate.full_name,
        candidate.last_push_display,
        candidate.default_flag.label,
        candidate.record.visibility,
        candidate.record.url,
    )


class Selector:
    """Base class for selection backends."""

    name = "selector"

    def __init__(self, runner: Optional[Runner] = None):
        self.runner = runner or subprocess.run

    def select(self, candidates: Sequence[Candidate], months_old: int) -> Tuple[str, ...]:
        """
        Let the operator choose which candidates to archive.

        Returns:
            Chosen full names in display order, or an empty tuple on cancel
        """
        raise NotImplementedError


class WhiptailSelector(Selector):
    """Checklist with stale candidates pre-toggled."""

    name = "whiptail"
    TITLE = "Archive Repositories"
    HEIGHT, WIDTH, LIST_HEIGHT = 25, 100, 18

    def build_command(self, candidates: Sequence[Candidate], months_old: int) -> List[str]:
        message = (
            "Select repositories to ARCHIVE (space to toggle, enter to confirm).\n"
            f"Pre-checked = no updates in the last {months_old} months.\n"
            f"Total candidates: {len(candidates)}"
        )
        command = [
            "whiptail", "--title", self.TITLE, "--separate-output",
            "--checklist", message,
            str(self.HEIGHT), str(self.WIDTH), str(self.LIST_HEIGHT),
        ]
        for candidate in candidates:
            full_name, pushed, _, visibility, url = candidate_row(candidate)
            status = "on" if candidate.default_flag is DefaultFlag.STALE else "off"
            command.extend([full_name, f"{pushed} • {visibility} • {url}", status])
        return command

    def select(self, candidates: Sequence[Candidate], months_old: int) -> Tuple[str, ...]:
        # whiptail draws on stdout and reports the checked tags on stderr
        result = self.runner(
            self.build_command(candidates, months_old),
            stderr=subprocess.PIPE,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            logger.info("Selection cancelled in whiptail")
            return ()

        known = {candidate.full_name for candidate in candidates}
        chosen = [line.strip().strip('"') for line in (result.stderr or "").splitlines()]
        return tuple(name for name in chosen if name in known)


class FzfSelector(Selector):
    """Fuzzy-filterable list; cannot pre-toggle, so the flag label is a searchable column."""

    name = "fzf"
    NO_MATCH_EXIT = 1
    INTERRUPTED_EXIT = 130

    def build_command(self, months_old: int) -> List[str]:
        return [
            "fzf", "--multi",
            "--with-nth=1,2,3,4",
            "--delimiter=\t",
            f"--header=Select repos to ARCHIVE. '{DefaultFlag.STALE.label}' = older than {months_old} months. "
            f"TAB to mark, Enter to confirm. Tip: search '{DefaultFlag.STALE.label}' then Alt-a.",
            '--preview=printf "Repo: %s\\nLast Push: %s\\nFlag: %s\\nVisibility: %s\\nURL: %s\\n" {1} {2} {3} {4} {5}',
            "--preview-window=down,wrap",
        ]

    def build_input(self, candidates: Sequence[Candidate]) -> str:
        return "".join("\t".join(candidate_row(candidate)) + "\n" for candidate in candidates)

    def select(self, candidates: Sequence[Candidate], months_old: int) -> Tuple[str, ...]:
        print("whiptail not found; using fzf.")
        print(
            f"TIP: Type '{DefaultFlag.STALE.label}' then press Alt-a (toggle all matches) "
            "and Enter to quickly select all old repos."
        )
        print()

        result = self.runner(
            self.build_command(months_old),
            input=self.build_input(candidates),
            stdout=subprocess.PIPE,
            text=True,
            check=False,
        )
        if result.returncode in (self.NO_MATCH_EXIT, self.INTERRUPTED_EXIT):
            logger.info("Selection cancelled in fzf")
            return ()
        if result.returncode != 0:
            raise SetupError(f"fzf exited with status {result.returncode}")

        known = {candidate.full_name for candidate in candidates}
        chosen = [line.split("\t", 1)[0] for line in (result.stdout or "").splitlines() if line.strip()]
        return tuple(name for name in chosen if name in known)


def choose_selector(which: Callable[[str], Optional[str]] = shutil.which,
                    runner: Optional[Runner] = None) -> Selector:
    """
    Pick the primary backend when installed, the fallback otherwise.

    Raises:
        SetupError: If neither whiptail nor fzf is on PATH
    """
    if which("whiptail"):
        return WhiptailSelector(runner)
    if which("fzf"):
        return FzfSelector(runner)
    raise SetupError("Install 'newt' (whiptail) or 'fzf' for interactive picker.")
