"""Unit tests for the check runner."""

import io

import pytest
from rich.console import Console

from commitgen.checks import CheckRunner, summarize
from commitgen.models import CheckConfig, CheckResult


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def make_runner(output):
    from commitgen.ui import UI

    def factory(checks):
        return CheckRunner(checks, UI(console=Console(file=output, width=120)))

    return factory


class TestRunChecks:
    """Tests for CheckRunner.run_checks."""

    def test_passing_check(self, make_runner):
        """A zero exit code passes and captures stdout."""
        runner = make_runner({"build": CheckConfig(command="echo built", blocking=True)})

        summary = runner.run_checks(["build"])

        assert (summary.total_checks, summary.passed, summary.failed) == (1, 1, 0)
        assert summary.results[0].output.strip() == "built"
        assert summary.results[0].error is None
        assert runner.can_proceed(summary)

    def test_failing_check(self, make_runner, output):
        """A non-zero exit fails with the exit code in the error."""
        runner = make_runner({"lint": CheckConfig(command="echo oops >&2; exit 3")})

        summary = runner.run_checks(["lint"])

        result = summary.results[0]
        assert not result.passed
        assert "exit code 3" in result.error
        assert result.output.strip() == "oops"
        assert "oops" in output.getvalue()

    def test_blocking_failure_stops_remaining(self, make_runner):
        """Checks after a failing blocking one do not run."""
        runner = make_runner({
            "build": CheckConfig(command="exit 1", blocking=True),
            "test": CheckConfig(command="echo never"),
        })

        summary = runner.run_checks(["build", "test"])

        assert [r.name for r in summary.results] == ["build"]
        assert not runner.can_proceed(summary)

    def test_non_blocking_failure_continues(self, make_runner):
        """Non-blocking failures are recorded but do not stop the run."""
        runner = make_runner({
            "lint": CheckConfig(command="exit 1", blocking=False),
            "test": CheckConfig(command="true", blocking=True),
        })

        summary = runner.run_checks(["lint", "test"])

        assert [r.passed for r in summary.results] == [False, True]
        assert runner.can_proceed(summary)

    def test_unknown_and_disabled_are_skipped(self, make_runner, output):
        """Skipped checks are announced and left out of the summary."""
        runner = make_runner({"lint": CheckConfig(command="exit 1", enabled=False)})

        summary = runner.run_checks(["lint", "missing"])

        assert summary.total_checks == 0
        assert summary.results == []
        text = output.getvalue()
        assert 'Check "lint" is disabled, skipping' in text
        assert 'Check "missing" not found in configuration, skipping' in text

    def test_timeout(self, make_runner):
        """Commands exceeding the timeout fail."""
        runner = make_runner({"test": CheckConfig(command="sleep 5", timeout=200)})

        summary = runner.run_checks(["test"])

        assert not summary.results[0].passed
        assert "timed out after 200ms" in summary.results[0].error

    def test_run_all_only_enabled(self, make_runner):
        """run_all_checks runs every enabled check in configuration order."""
        runner = make_runner({
            "build": CheckConfig(command="true"),
            "lint": CheckConfig(command="true", enabled=False),
            "test": CheckConfig(command="true"),
        })

        summary = runner.run_all_checks()

        assert [r.name for r in summary.results] == ["build", "test"]


class TestAutoFixAndSummary:
    """Tests for auto_fix, display_summary, list_checks and summarize."""

    def test_auto_fix_runs_command(self, make_runner, tmp_path):
        """The autofix command runs and reports success."""
        marker = tmp_path / "fixed"
        runner = make_runner({"lint": CheckConfig(command="true", autofix=f"touch {marker}")})

        assert runner.auto_fix("lint")
        assert marker.exists()

    def test_auto_fix_unavailable(self, make_runner):
        """Checks without autofix report failure."""
        runner = make_runner({"lint": CheckConfig(command="true")})
        assert not runner.auto_fix("lint")
        assert not runner.auto_fix("missing")

    def test_auto_fix_failure(self, make_runner):
        """A failing autofix command returns False."""
        runner = make_runner({"lint": CheckConfig(command="true", autofix="exit 2")})
        assert not runner.auto_fix("lint")

    def test_display_summary_mentions_autofix(self, make_runner, output):
        """Failures with an autofix print the fix hint."""
        runner = make_runner({"lint": CheckConfig(command="exit 1", autofix="npm run lint:fix")})

        runner.display_summary(runner.run_checks(["lint"]))

        text = output.getvalue()
        assert "Failed checks:" in text
        assert "cgen check lint --fix" in text

    def test_display_summary_all_passed(self, make_runner, output):
        runner = make_runner({"build": CheckConfig(command="true")})
        runner.display_summary(runner.run_checks(["build"]))
        assert "All checks passed!" in output.getvalue()

    def test_list_checks(self, make_runner):
        runner = make_runner({"build": CheckConfig(command="true", blocking=True, enabled=False)})
        assert runner.list_checks() == [{"name": "build", "enabled": False, "blocking": True}]

    def test_summarize_counts(self):
        """Counts and durations are aggregated."""
        summary = summarize([
            CheckResult(name="a", passed=True, duration=10),
            CheckResult(name="b", passed=False, duration=5),
        ])

        assert (summary.total_checks, summary.passed, summary.failed, summary.skipped) == (2, 1, 1, 0)
        assert summary.total_duration == 15
