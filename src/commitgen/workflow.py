"""Workflow engine: runs an ordered list of stage/check/commit/push steps."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from functools import partial

from git import Repo

from commitgen.checks import CheckRunner
from commitgen.diff_collector import build_diff_context
from commitgen.errors import GitError, PromptCancelled, ProviderError, ProviderErrorKind
from commitgen.git_ops import create_commit, format_commit_command, get_repo, push, stage_all
from commitgen.interaction import Prompter
from commitgen.models import DiffContext, LLMMessage, WorkflowConfig, WorkflowResult, WorkflowStep
from commitgen.prompts import PromptBuilder, build_retry_hint
from commitgen.providers import LLMProvider
from commitgen.ui import UI
from commitgen.validators import extract_conventional_commit, parse_bracketed, parse_commit_message


logger = logging.getLogger(__name__)

MAX_INTERACTIVE_ATTEMPTS = 5

CHECK_STEPS = {
    WorkflowStep.CHECK_BUILD: "build",
    WorkflowStep.CHECK_LINT: "lint",
    WorkflowStep.CHECK_TEST: "test",
    WorkflowStep.CHECK_TYPECHECK: "typecheck",
}

INTERACTIVE_CHOICES = [
    ("accept", "✓ Commit with this message"),
    ("retry", "⟳ Regenerate with different phrasing"),
    ("edit", "✎ Edit the message manually"),
    ("cancel", "✗ Cancel"),
]


class WorkflowRunner:
    """Executes workflow steps strictly in order, stopping at the first failure.

    Args:
        check_runner: Runs the configured checks for check:* steps.
        provider: Primary model provider.
        repo: Repository to operate on; the current directory's by default.
        prompter: Source of interactive answers.
        dry_run: Log each step instead of executing it.
        fallback_provider: Tried once when the primary provider fails.
        ui: Console presentation.
        context_builder: Builds the DiffContext for the staged change.
    """

    def __init__(
        self,
        check_runner: CheckRunner,
        provider: LLMProvider,
        *,
        repo: Repo | None = None,
        prompter: Prompter | None = None,
        dry_run: bool = False,
        fallback_provider: LLMProvider | None = None,
        ui: UI | None = None,
        context_builder: Callable[[Repo], DiffContext] = build_diff_context,
    ):
        self.check_runner = check_runner
        self.provider = provider
        self.fallback_provider = fallback_provider
        self.prompter = prompter or Prompter()
        self.dry_run = dry_run
        self.ui = ui or check_runner.ui
        self.context_builder = context_builder
        self.prompt_builder = PromptBuilder()
        self._repo = repo
        self._failure_reason: str | None = None

    @property
    def repo(self) -> Repo:
        if self._repo is None:
            self._repo = get_repo()
        return self._repo

    def generate_text(self, messages: Sequence[LLMMessage]) -> str:
        """Ask the primary provider, falling back to the secondary once on failure.

        Raises:
            ProviderError: Naming both failures when primary and fallback fail.
            Exception: The primary's own error when no fallback is configured.
        """
        try:
            return self.provider.generate_text(messages)
        except Exception as e:
            if self.fallback_provider is None:
                raise
            logger.warning("Primary provider failed: %s", e)
            logger.info("Attempting to use fallback model...")
            try:
                result = self.fallback_provider.generate_text(messages)
            except Exception as fallback_error:
                kind = fallback_error.kind if isinstance(fallback_error, ProviderError) else ProviderErrorKind.OTHER
                raise ProviderError(
                    f"Both primary and fallback providers failed. Primary: {e}, Fallback: {fallback_error}",
                    kind,
                ) from fallback_error
            logger.info("Fallback model succeeded")
            return result

    def execute_workflow(self, config: WorkflowConfig) -> WorkflowResult:
        steps_completed = 0
        total_steps = len(config.steps)
        logger.debug(
            "Running workflow %s: %d steps (interactive=%s)",
            config.description or "(unnamed)",
            total_steps,
            config.interactive,
        )

        try:
            for step in config.steps:
                self._failure_reason = None
                if not self.execute_step(step, config):
                    error = f"Step failed: {step.value}"
                    if self._failure_reason:
                        error += f" ({self._failure_reason})"
                    return WorkflowResult(
                        success=False,
                        steps_completed=steps_completed,
                        total_steps=total_steps,
                        failed_step=step,
                        error=error,
                    )
                steps_completed += 1
        except Exception as e:
            logger.debug("Workflow aborted", exc_info=True)
            self.ui.error(f"Workflow failed: {e}")
            return WorkflowResult(
                success=False,
                steps_completed=steps_completed,
                total_steps=total_steps,
                error=str(e),
            )

        return WorkflowResult(success=True, steps_completed=steps_completed, total_steps=total_steps)

    def execute_step(self, step: WorkflowStep, config: WorkflowConfig) -> bool:
        if self.dry_run:
            message = f"[DRY RUN] Would execute: {step.value} ({step.description})"
            logger.info(message)
            self.ui.info(message)
            return True

        handlers: dict[WorkflowStep, Callable[[], bool]] = {
            WorkflowStep.STAGE_ALL: self._stage_all,
            WorkflowStep.STAGE_PROMPT: self._stage_prompt,
            WorkflowStep.CHECK_ALL: lambda: self._run_all_checks(config.checks),
            WorkflowStep.COMMIT_AUTO: self._commit_auto,
            WorkflowStep.COMMIT_REVIEW: self._commit_review,
            WorkflowStep.COMMIT_INTERACTIVE: self._commit_interactive,
            WorkflowStep.PUSH: self._push,
            WorkflowStep.PUSH_PROMPT: self._push_prompt,
            WorkflowStep.CREATE_PR: self._create_pr,
        }
        for check_step, name in CHECK_STEPS.items():
            handlers[check_step] = partial(self._run_specific_check, name)
        handler = handlers[step]

        try:
            return handler()
        except PromptCancelled:
            self.ui.info("Cancelled")
            self._failure_reason = "cancelled"
            return False

    def _fail(self, reason: str) -> bool:
        self._failure_reason = reason
        return False

    def _stage_all(self) -> bool:
        try:
            with self.ui.spinner("Staging all changes..."):
                stage_all(self.repo)
        except GitError as e:
            self.ui.error(str(e))
            return self._fail("staging failed")
        self.ui.success("Staged all changes")
        return True

    def _stage_prompt(self) -> bool:
        if self.prompter.confirm("Stage all changes?", default=True):
            return self._stage_all()
        self.ui.info("Proceeding with currently staged files")
        return True

    def _run_all_checks(self, names: list[str] | None = None) -> bool:
        if names:
            summary = self.check_runner.run_checks(names)
        else:
            summary = self.check_runner.run_all_checks()
        self.check_runner.display_summary(summary)
        if not self.check_runner.can_proceed(summary):
            return self._fail("blocking check failed")
        return True

    def _run_specific_check(self, name: str) -> bool:
        summary = self.check_runner.run_checks([name])
        if not self.check_runner.can_proceed(summary):
            return self._fail(f"{name} check failed")
        return True

    def _load_context(self) -> DiffContext | None:
        context = self.context_builder(self.repo)
        if not context.diff.strip() or context.files_changed == 0:
            self.ui.error("No staged changes to commit")
            self._failure_reason = "No staged changes to commit"
            return None
        return context

    def _generate_message(self, context: DiffContext, previous: Sequence[str] = (), status: str = "") -> str:
        messages = self.prompt_builder.build_commit_prompt(context)
        if previous:
            messages.append(build_retry_hint(previous))
        with self.ui.spinner(status or "Analyzing changes and generating commit message..."):
            response = self.generate_text(messages)
        return parse_commit_message(response)

    def _commit(self, message: str) -> bool:
        parsed = parse_bracketed(message)
        if parsed.category is None:
            parsed = extract_conventional_commit(message)
        logger.info("Committing %s change (scope: %s)", parsed.category or "untagged", parsed.scope or "none")
        logger.debug("Running: %s", format_commit_command(message))
        commit_hash = create_commit(self.repo, message)
        self.ui.success(f"Committed successfully ({commit_hash})")
        return True

    def _commit_auto(self) -> bool:
        try:
            context = self._load_context()
            if context is None:
                return False
            message = self._generate_message(context)
            self.ui.commit_message(message)
            return self._commit(message)
        except (GitError, ProviderError) as e:
            self.ui.error(f"Commit failed: {e}")
            return self._fail(str(e))

    def _commit_review(self) -> bool:
        try:
            context = self._load_context()
            if context is None:
                return False
            message = self._generate_message(context, status="Generating commit message with AI...")
            self.ui.commit_message(message)

            if not self.prompter.confirm("Accept this commit message?", default=True):
                self.ui.info("Commit cancelled")
                return self._fail("commit declined")
            return self._commit(message)
        except (GitError, ProviderError) as e:
            self.ui.error(f"Commit failed: {e}")
            return self._fail(str(e))

    def _commit_interactive(self) -> bool:
        try:
            context = self._load_context()
            if context is None:
                return False

            previous: list[str] = []
            for attempt in range(1, MAX_INTERACTIVE_ATTEMPTS + 1):
                status = (
                    "Analyzing changes and generating commit message..."
                    if attempt == 1
                    else "Regenerating with different approach..."
                )
                message = self._generate_message(context, previous, status)
                self.ui.commit_message(message)

                action = self.prompter.select("What would you like to do?", INTERACTIVE_CHOICES)
                if action == "accept":
                    return self._commit(message)
                if action == "edit":
                    edited = self.prompter.text("Enter commit message:", default=message).strip()
                    if not edited:
                        self.ui.warn("Empty commit message, nothing committed")
                        return self._fail("empty commit message")
                    return self._commit(edited)
                if action == "cancel":
                    self.ui.info("Commit cancelled")
                    return self._fail("commit cancelled")
                previous.append(message)
        except (GitError, ProviderError) as e:
            self.ui.error(f"Commit failed: {e}")
            return self._fail(str(e))

        self.ui.warn("Maximum retry attempts reached")
        return self._fail("maximum retries reached")

    def _push(self) -> bool:
        try:
            with self.ui.spinner("Pushing to remote..."):
                output = push(self.repo)
        except GitError as e:
            self.ui.error(f"Push failed: {e}")
            return self._fail("push failed")
        logger.debug("git push output:\n%s", output)
        self.ui.success("Pushed to remote")
        return True

    def _push_prompt(self) -> bool:
        if self.prompter.confirm("Push to remote?", default=True):
            return self._push()
        self.ui.info("Push skipped")
        return True

    def _create_pr(self) -> bool:
        self.ui.warn("create-pr step is not yet implemented")
        self.ui.info("You can manually create a PR using: gh pr create")
        return True
