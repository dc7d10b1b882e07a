"""Runs configured pre-commit checks (build, lint, test, ...) through the shell."""

from __future__ import annotations

import logging
import subprocess
import time
from collections.abc import Iterable, Mapping

from commitgen.models import CheckConfig, CheckResult, CheckSummary
from commitgen.ui import UI


logger = logging.getLogger(__name__)

AUTOFIX_TIMEOUT = 30  # seconds
ERROR_PREVIEW_LINES = 3


class CheckRunner:
    """Executes checks by name and summarizes their outcome."""

    def __init__(self, checks: Mapping[str, CheckConfig], ui: UI | None = None):
        self.checks = dict(checks)
        self.ui = ui or UI()

    def run_checks(self, names: Iterable[str]) -> CheckSummary:
        """Run the named checks in order.

        Unknown and disabled checks are skipped with a notice and do not appear
        in the summary. A failing blocking check stops the remaining ones.
        """
        results: list[CheckResult] = []

        for name in names:
            config = self.checks.get(name)
            if config is None:
                self.ui.warn(f'Check "{name}" not found in configuration, skipping')
                continue
            if not config.enabled:
                self.ui.info(f'Check "{name}" is disabled, skipping')
                continue

            result = self._run_single_check(name, config)
            results.append(result)

            if config.blocking and not result.passed:
                self.ui.error(f'Blocking check "{name}" failed, stopping')
                break

        return summarize(results)

    def run_all_checks(self) -> CheckSummary:
        return self.run_checks(name for name, config in self.checks.items() if config.enabled)

    def _run_single_check(self, name: str, config: CheckConfig) -> CheckResult:
        message = config.message or f"Running {name} check..."
        start = time.monotonic()
        error = None

        with self.ui.spinner(message):
            try:
                completed = subprocess.run(
                    config.command,
                    shell=True,
                    capture_output=True,
                    text=True,
                    timeout=config.timeout / 1000,
                )
                passed = completed.returncode == 0
                output = completed.stdout if passed else (completed.stdout or completed.stderr)
                if not passed:
                    error = f"Command failed with exit code {completed.returncode}: {config.command}"
            except subprocess.TimeoutExpired as e:
                passed = False
                output = _decode(e.stdout) or _decode(e.stderr)
                error = f"Command timed out after {config.timeout}ms: {config.command}"
            except OSError as e:
                passed = False
                output = ""
                error = str(e)

        duration = int((time.monotonic() - start) * 1000)
        logger.debug("Check %s finished in %dms (passed=%s)", name, duration, passed)

        if passed:
            self.ui.success(f"{name} check passed ({duration}ms)")
        else:
            kind = "blocking" if config.blocking else "non-blocking"
            if config.blocking:
                self.ui.error(f"{name} check failed ({kind})")
            else:
                self.ui.warn(f"{name} check failed ({kind})")
            for line in [l.strip() for l in (output or "").splitlines() if l.strip()][:ERROR_PREVIEW_LINES]:
                self.ui.dim(f"  {line}")

        return CheckResult(
            name=name,
            passed=passed,
            output=output or "",
            error=error,
            duration=duration,
            auto_fix_available=bool(config.autofix),
        )

    def auto_fix(self, name: str) -> bool:
        """Run the check's autofix command. Returns whether it succeeded."""
        config = self.checks.get(name)
        if config is None or not config.autofix:
            self.ui.warn(f'No auto-fix available for "{name}"')
            return False

        with self.ui.spinner(f"Running auto-fix for {name}..."):
            try:
                subprocess.run(config.autofix, shell=True, check=True, timeout=AUTOFIX_TIMEOUT)
            except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as e:
                self.ui.error(f"Auto-fix failed for {name}: {e}")
                return False

        self.ui.success(f"Auto-fix completed for {name}")
        return True

    def can_proceed(self, summary: CheckSummary) -> bool:
        """False when any blocking check in the summary failed."""
        for result in summary.results:
            config = self.checks.get(result.name)
            if config is not None and config.blocking and not result.passed:
                return False
        return True

    def display_summary(self, summary: CheckSummary) -> None:
        failed = [r for r in summary.results if not r.passed]
        if not failed:
            self.ui.success("All checks passed!")
            return

        self.ui.console.print("[bold red]Failed checks:[/bold red]")
        for result in failed:
            config = self.checks.get(result.name)
            blocking = "[yellow](blocking)[/yellow]" if config and config.blocking else "[dim](non-blocking)[/dim]"
            self.ui.console.print(f"  [red]{self.ui.symbols['error']}[/red] {result.name} {blocking}")
            if result.auto_fix_available:
                self.ui.dim(f"    Auto-fix available: cgen check {result.name} --fix")

    def list_checks(self) -> list[dict[str, object]]:
        return [
            {"name": name, "enabled": config.enabled, "blocking": config.blocking}
            for name, config in self.checks.items()
        ]


def summarize(results: list[CheckResult]) -> CheckSummary:
    passed = sum(1 for r in results if r.passed)
    return CheckSummary(
        total_checks=len(results),
        passed=passed,
        failed=len(results) - passed,
        skipped=0,
        results=results,
        total_duration=sum(r.duration for r in results),
    )


def _decode(value: str | bytes | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value
