"""Tests for the whiptail and fzf selection backends."""

import subprocess
from unittest.mock import MagicMock

import pytest
from dateutil.relativedelta import relativedelta

from conftest import NOW, make_record
from repo_archiver.domain.errors import SetupError
from repo_archiver.domain.repository import compute_cutoff, filter_repositories
from repo_archiver.infrastructure.selector import (FzfSelector, WhiptailSelector, candidate_row,
                                                   choose_selector)


@pytest.fixture
def candidates():
    records = [
        make_record("old", pushed_at=NOW - relativedelta(months=30)),
        make_record("never", pushed_at=None, visibility="PRIVATE"),
        make_record("recent", pushed_at=NOW - relativedelta(months=1)),
    ]
    return filter_repositories(records, False, compute_cutoff(24, NOW))


def completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestChooseSelector:

    def test_prefers_whiptail(self):
        selector = choose_selector(which=lambda name: f"/usr/bin/{name}")
        assert isinstance(selector, WhiptailSelector)

    def test_falls_back_to_fzf(self):
        selector = choose_selector(which=lambda name: "/usr/bin/fzf" if name == "fzf" else None)
        assert isinstance(selector, FzfSelector)

    def test_neither_installed(self):
        with pytest.raises(SetupError, match="whiptail"):
            choose_selector(which=lambda name: None)


class TestWhiptailSelector:

    def test_stale_items_pre_toggled(self, candidates):
        command = WhiptailSelector().build_command(candidates, 24)

        items = command[command.index("18") + 1:]
        triples = [tuple(items[i:i + 3]) for i in range(0, len(items), 3)]
        statuses = {tag: status for tag, _, status in triples}
        assert statuses == {"octo/old": "on", "octo/never": "on", "octo/recent": "off"}
        assert "never • PRIVATE • https://github.com/octo/never" in items

    def test_message_mentions_threshold_and_count(self, candidates):
        command = WhiptailSelector().build_command(candidates, 18)
        message = command[command.index("--checklist") + 1]
        assert "last 18 months" in message
        assert "Total candidates: 3" in message

    def test_returns_checked_tags(self, candidates):
        runner = MagicMock(return_value=completed(stderr="octo/old\nocto/recent\n"))

        chosen = WhiptailSelector(runner).select(candidates, 24)

        assert chosen == ("octo/old", "octo/recent")
        assert runner.call_args.kwargs["stderr"] == subprocess.PIPE

    def test_quoted_output(self, candidates):
        runner = MagicMock(return_value=completed(stderr='"octo/old"\n'))
        assert WhiptailSelector(runner).select(candidates, 24) == ("octo/old",)

    @pytest.mark.parametrize("code", [1, 255])
    def test_cancel_returns_empty(self, candidates, code):
        runner = MagicMock(return_value=completed(returncode=code, stderr=""))
        assert WhiptailSelector(runner).select(candidates, 24) == ()

    def test_nothing_checked(self, candidates):
        runner = MagicMock(return_value=completed(stderr=""))
        assert WhiptailSelector(runner).select(candidates, 24) == ()


class TestFzfSelector:

    def test_flag_label_is_a_visible_column(self, candidates):
        lines = FzfSelector().build_input(candidates).splitlines()
        assert lines[0].split("\t")[2] == "DEFAULT"
        assert lines[1].split("\t")[1:3] == ["never", "DEFAULT"]
        assert lines[2].split("\t")[2] == "KEEP"
        assert "--with-nth=1,2,3,4" in FzfSelector().build_command(24)

    def test_rows_match_whiptail_flags(self, candidates):
        rows = [candidate_row(c) for c in candidates]
        assert [row[2] for row in rows] == [c.default_flag.label for c in candidates]

    def test_returns_first_column(self, candidates, capsys):
        runner = MagicMock(return_value=completed(
            stdout="octo/never\tnever\tDEFAULT\tPRIVATE\thttps://github.com/octo/never\n"
        ))

        chosen = FzfSelector(runner).select(candidates, 24)

        assert chosen == ("octo/never",)
        assert "using fzf" in capsys.readouterr().out

    @pytest.mark.parametrize("code", [1, 130])
    def test_cancel_returns_empty(self, candidates, code):
        runner = MagicMock(return_value=completed(returncode=code))
        assert FzfSelector(runner).select(candidates, 24) == ()

    def test_unexpected_failure(self, candidates):
        runner = MagicMock(return_value=completed(returncode=2))
        with pytest.raises(SetupError, match="fzf"):
            FzfSelector(runner).select(candidates, 24)
