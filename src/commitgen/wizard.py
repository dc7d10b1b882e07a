"""Interactive wizard shown when cgen runs without a subcommand."""

from __future__ import annotations

import json
from pathlib import Path

from commitgen.checks import CheckRunner
from commitgen.config import CommitGenConfig, PromptsConfig, find_config_path, save_config
from commitgen.errors import GitError, PromptCancelled
from commitgen.git_ops import has_changes
from commitgen.interaction import Prompter
from commitgen.models import WorkflowConfig, WorkflowStep
from commitgen.status import StatusDisplay
from commitgen.workflow import WorkflowRunner


MAIN_CHOICES = [
    ("commit", "Generate commit message (review & commit)"),
    ("quick", "Quick commit (auto-generate & commit & push)"),
    ("status", "Show repository status"),
    ("config", "Configure settings"),
]

CONFIG_CHOICES = [
    ("model", "Switch active model"),
    ("prompts", "Prompt behavior"),
    ("view", "View current configuration"),
    ("exit", "Exit configuration"),
]


class WizardMode:
    """Menu-driven commit flow built on WorkflowRunner."""

    def __init__(
        self,
        config: CommitGenConfig,
        check_runner: CheckRunner,
        workflow_runner: WorkflowRunner,
        prompter: Prompter | None = None,
        config_path: Path | None = None,
    ):
        self.config = config
        self.check_runner = check_runner
        self.workflow_runner = workflow_runner
        self.prompter = prompter or workflow_runner.prompter
        self.config_path = config_path
        self.ui = workflow_runner.ui

    def run(self) -> None:
        self.ui.banner()
        try:
            action = self.prompter.select("What would you like to do?", MAIN_CHOICES)
            if action == "commit":
                self.run_commit_wizard()
            elif action == "quick":
                self.run_quick_workflow()
            elif action == "status":
                StatusDisplay(self.config, self.check_runner, ui=self.ui).display_status()
            elif action == "config":
                self.run_config()
        except PromptCancelled:
            # Dismissing a menu just ends the wizard
            return

    def _check_for_changes(self) -> bool:
        try:
            changed = has_changes(self.workflow_runner.repo)
        except GitError as e:
            self.ui.error(str(e))
            return False
        if not changed:
            self.ui.console.print()
            self.ui.info("No changes detected in your repository.")
            self.ui.info("Everything is clean and up to date!")
            self.ui.console.print()
        return changed

    def run_commit_wizard(self) -> None:
        """Stage, check, commit interactively, then optionally push."""
        if not self._check_for_changes():
            return

        if self.config.prompts.ask_stage and self.prompter.confirm("Stage all changes?", default=True):
            result = self.workflow_runner.execute_workflow(
                WorkflowConfig(steps=[WorkflowStep.STAGE_ALL], description="Stage files")
            )
            if not result.success:
                return

        if self.config.prompts.show_checks:
            enabled = [c["name"] for c in self.check_runner.list_checks() if c["enabled"]]
            if enabled and self.prompter.confirm("Run pre-commit checks?", default=True):
                summary = self.check_runner.run_checks(enabled)
                self.check_runner.display_summary(summary)
                if not self.check_runner.can_proceed(summary):
                    self.ui.error("Blocking checks failed, cannot proceed")
                    return

        result = self.workflow_runner.execute_workflow(
            WorkflowConfig(steps=[WorkflowStep.COMMIT_INTERACTIVE], interactive=True, description="Commit")
        )
        if not result.success:
            return

        if self.config.prompts.ask_push:
            self.workflow_runner.execute_workflow(
                WorkflowConfig(steps=[WorkflowStep.PUSH_PROMPT], interactive=True, description="Push")
            )

    def run_quick_workflow(self) -> None:
        if not self._check_for_changes():
            return

        result = self.workflow_runner.execute_workflow(
            WorkflowConfig(
                steps=[WorkflowStep.STAGE_ALL, WorkflowStep.COMMIT_AUTO, WorkflowStep.PUSH],
                description="Quick commit and push",
            )
        )
        if not result.success:
            self.ui.error("Quick workflow failed")

    def run_config(self) -> None:
        self.ui.section("Configuration")
        while True:
            choice = self.prompter.select("What would you like to configure?", CONFIG_CHOICES)
            if choice == "exit":
                return
            if choice == "model":
                self._switch_model()
            elif choice == "prompts":
                self._configure_prompts()
            elif choice == "view":
                data = self.config.model_dump(mode="json", by_alias=True, exclude_none=True)
                self.ui.console.print()
                self.ui.console.print("[bold]Current Configuration:[/bold]")
                self.ui.console.print_json(json.dumps(data))

            if not self.prompter.confirm("Configure more settings?", default=False):
                return

    def _switch_model(self) -> None:
        choices = [(key, f"{key} ({model.provider}: {model.model})") for key, model in self.config.models.items()]
        key = self.prompter.select("Select active model:", choices, default=self.config.active_model)
        self.config = self.config.model_copy(update={"active_model": key})
        self._save()
        self.ui.success(f"Active model set to {key}")

    def _configure_prompts(self) -> None:
        prompts = PromptsConfig(
            ask_stage=self.prompter.confirm("Ask before staging files?", default=self.config.prompts.ask_stage),
            show_checks=self.prompter.confirm("Ask before running checks?", default=self.config.prompts.show_checks),
            ask_push=self.prompter.confirm("Ask before pushing to remote?", default=self.config.prompts.ask_push),
        )
        self.config = self.config.model_copy(update={"prompts": prompts})
        self._save()
        self.ui.success("Prompt settings saved!")

    def _save(self) -> None:
        path = self.config_path or find_config_path()
        save_config(self.config, path)
        self.ui.dim(f"Saved to {path}")
