"""
Unit tests for the Git Repository service and its output parsers.
"""

import pytest

from conftest import FakeRunner, git, requires_git
from git_monitor.services.command_runner import CommandResult, CommandRunner
from git_monitor.services.git_repository import (
    GitRepository,
    parse_branches,
    parse_log,
    parse_porcelain_status,
    parse_tracking_info,
)


class TestParsePorcelainStatus:
    """Test classification of porcelain status lines."""

    def test_untracked_only_in_untracked(self):
        staged, unstaged, untracked = parse_porcelain_status("?? notes.md\n")

        assert untracked == ["notes.md"]
        assert staged == []
        assert unstaged == []

    @pytest.mark.parametrize("code", ["M ", "A ", "D ", "R ", "C "])
    def test_index_change_is_staged_with_full_code(self, code):
        staged, unstaged, untracked = parse_porcelain_status(f"{code} src/app.py\n")

        assert [(c.status, c.file) for c in staged] == [(code, "src/app.py")]
        assert unstaged == []
        assert untracked == []

    @pytest.mark.parametrize("code", [" M", " D", " T"])
    def test_worktree_change_is_unstaged_with_full_code(self, code):
        staged, unstaged, untracked = parse_porcelain_status(f"{code} README.md\n")

        assert [(c.status, c.file) for c in unstaged] == [(code, "README.md")]
        assert staged == []

    def test_change_on_both_sides_is_staged_once(self):
        staged, unstaged, _ = parse_porcelain_status("MM both.txt\nAM added.txt\n")

        assert [(c.status, c.file) for c in staged] == [("MM", "both.txt"), ("AM", "added.txt")]
        assert unstaged == []

    def test_entry_never_in_both_lists(self):
        output = "MM a.txt\n M b.txt\nM  c.txt\nRM d.txt\n?? e.txt\n"
        staged, unstaged, _ = parse_porcelain_status(output)

        assert not {c.file for c in staged} & {c.file for c in unstaged}
        assert [c.file for c in unstaged] == ["b.txt"]

    def test_branch_header_and_blank_lines_are_skipped(self):
        output = "## main...origin/main [ahead 1]\n\nM  a.txt\n"

        staged, unstaged, untracked = parse_porcelain_status(output)

        assert [c.file for c in staged] == ["a.txt"]
        assert unstaged == []
        assert untracked == []

    def test_order_is_preserved(self):
        output = "M  b.txt\nM  a.txt\n?? z.txt\n?? y.txt\n"

        staged, _, untracked = parse_porcelain_status(output)

        assert [c.file for c in staged] == ["b.txt", "a.txt"]
        assert untracked == ["z.txt", "y.txt"]

    def test_rename_keeps_arrow_in_path(self):
        staged, _, _ = parse_porcelain_status("R  old.txt -> new.txt\n")

        assert staged[0].file == "old.txt -> new.txt"


class TestParseTrackingInfo:
    """Test ahead/behind extraction."""

    def test_ahead_and_behind(self):
        assert parse_tracking_info("## main...origin/main [ahead 2, behind 1]\n") == (2, 1)

    def test_ahead_only(self):
        assert parse_tracking_info("## main...origin/main [ahead 5]") == (5, 0)

    def test_behind_only(self):
        assert parse_tracking_info("## main...origin/main [behind 3]") == (0, 3)

    def test_no_upstream_defaults_to_zero(self):
        assert parse_tracking_info("## feature\n?? x\n") == (0, 0)

    def test_empty_output(self):
        assert parse_tracking_info("") == (0, 0)

    def test_only_first_line_is_considered(self):
        assert parse_tracking_info("## main\nahead 4\n") == (0, 0)


class TestParseLog:
    """Test commit log parsing."""

    def test_well_formed_lines(self):
        output = (
            "a1b2c3|Ada Lovelace|2024-05-01|Add engine\n"
            "d4e5f6|Charles Babbage|2024-04-30|Initial commit\n"
        )

        commits = parse_log(output)

        assert len(commits) == 2
        assert commits[0].hash == "a1b2c3"
        assert commits[0].author == "Ada Lovelace"
        assert commits[0].date == "2024-05-01"
        assert commits[0].message == "Add engine"

    def test_malformed_line_is_preserved(self):
        commits = parse_log("garbage without separators\nabc|x|2024-01-01|ok\n")

        assert len(commits) == 2
        assert commits[0].hash == ""
        assert commits[0].author == ""
        assert commits[0].date == ""
        assert commits[0].message == "garbage without separators"

    def test_pipe_in_message_is_kept(self):
        commits = parse_log("abc|Dev|2024-01-01|Support a|b syntax\n")

        assert commits[0].message == "Support a|b syntax"

    def test_empty_lines_are_skipped(self):
        assert parse_log("\n\n") == []


def test_parse_branches_trims_and_skips_empty_lines():
    output = "* main\n  feature/x\n  remotes/origin/main\n\n"

    assert parse_branches(output) == ["* main", "feature/x", "remotes/origin/main"]


class TestGitRepository:
    """Test repository operations against a recording runner."""

    @pytest.mark.asyncio
    async def test_get_status(self, fake_runner):
        repository = GitRepository(fake_runner)

        status = await repository.get_status()

        assert status.branch == "main"
        assert [c.file for c in status.staged] == ["staged.txt", "both.txt"]
        assert [c.file for c in status.unstaged] == ["unstaged.txt"]
        assert status.untracked == ["new.txt"]
        assert status.ahead == 2
        assert status.behind == 1

    @pytest.mark.asyncio
    async def test_get_log_passes_limit(self, fake_runner):
        repository = GitRepository(fake_runner)

        await repository.get_log(7)

        assert fake_runner.calls[-1] == [
            "log", "--oneline", "--pretty=format:%H|%an|%ad|%s", "--date=short", "-7",
        ]

    @pytest.mark.asyncio
    async def test_get_diff(self, fake_runner):
        fake_runner.responses[("diff",)] = "diff --git a/x b/x\n"
        fake_runner.responses[("diff", "--staged")] = "diff --git a/y b/y\n"
        repository = GitRepository(fake_runner)

        assert await repository.get_diff() == "diff --git a/x b/x\n"
        assert await repository.get_diff(staged=True) == "diff --git a/y b/y\n"

    @pytest.mark.asyncio
    async def test_stage_runs_add_per_file_in_order(self, fake_runner):
        repository = GitRepository(fake_runner)

        results = await repository.stage(["a.txt", "b.txt"])

        assert fake_runner.calls == [["add", "a.txt"], ["add", "b.txt"]]
        assert len(results) == 2

    @pytest.mark.asyncio
    async def test_unstage_runs_reset_per_file(self, fake_runner):
        repository = GitRepository(fake_runner)

        await repository.unstage(["a.txt", "b.txt"])

        assert fake_runner.calls == [["reset", "HEAD", "a.txt"], ["reset", "HEAD", "b.txt"]]

    @pytest.mark.asyncio
    async def test_commit_returns_command_result(self):
        runner = FakeRunner({
            ("commit", "-m", "msg"): CommandResult(
                args=["commit", "-m", "msg"], stdout="nothing to commit\n", exit_code=1
            ),
        })
        repository = GitRepository(runner)

        result = await repository.commit("msg")

        assert result.succeeded is False
        assert result.output == "nothing to commit\n"


@requires_git
class TestGitRepositoryIntegration:
    """Test repository operations against a real git repository."""

    @pytest.mark.asyncio
    async def test_get_log_returns_newest_first(self, git_repo):
        for index in range(4):
            (git_repo / "file.txt").write_text(f"revision {index}\n")
            git(git_repo, "add", "file.txt")
            git(git_repo, "commit", "-q", "-m", f"commit {index}")

        repository = GitRepository(CommandRunner(git_repo))
        commits = await repository.get_log(3)

        assert [c.message for c in commits] == ["commit 3", "commit 2", "commit 1"]
        assert all(c.hash for c in commits)
        assert all(c.author == "Dev Example" for c in commits)

    @pytest.mark.asyncio
    async def test_status_stage_commit_cycle(self, git_repo):
        (git_repo / "tracked.txt").write_text("one\n")
        git(git_repo, "add", "tracked.txt")
        git(git_repo, "commit", "-q", "-m", "initial")

        (git_repo / "tracked.txt").write_text("two\n")
        (git_repo / "fresh.txt").write_text("new\n")

        repository = GitRepository(CommandRunner(git_repo))

        status = await repository.get_status()
        assert [(c.status, c.file) for c in status.unstaged] == [(" M", "tracked.txt")]
        assert status.untracked == ["fresh.txt"]
        assert status.staged == []
        assert status.ahead == 0
        assert status.behind == 0

        await repository.stage(["tracked.txt", "fresh.txt"])
        status = await repository.get_status()
        assert sorted(c.file for c in status.staged) == ["fresh.txt", "tracked.txt"]
        assert status.unstaged == []

        await repository.unstage(["fresh.txt"])
        status = await repository.get_status()
        assert status.untracked == ["fresh.txt"]

        result = await repository.commit("update tracked")
        assert result.succeeded
        commits = await repository.get_log(1)
        assert commits[0].message == "update tracked"
