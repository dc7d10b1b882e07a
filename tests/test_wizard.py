"""Tests for the interactive wizard and the status overview."""

import io
import json

import pytest
from rich.console import Console

from commitgen.checks import CheckRunner
from commitgen.config import CommitGenConfig
from commitgen.errors import PromptCancelled
from commitgen.models import CheckConfig
from commitgen.status import StatusDisplay
from commitgen.ui import UI
from commitgen.wizard import WizardMode
from commitgen.workflow import WorkflowRunner
from helpers import FakePrompter, FakeProvider


def make_config(**overrides):
    return CommitGenConfig.model_validate({
        "activeModel": "local",
        "models": {
            "local": {"provider": "ollama", "model": "llama3.2:1b"},
            "cloud": {"provider": "openrouter", "model": "openai/gpt-4o-mini"},
        },
        "checks": {},
        **overrides,
    })


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def ui(output):
    return UI(console=Console(file=output, width=120))


def make_wizard(repo, ui, prompter, config=None, reply="[feature] add auth helpers", tmp_path=None):
    config = config or make_config()
    check_runner = CheckRunner(config.checks, ui)
    runner = WorkflowRunner(check_runner, FakeProvider(reply), repo=repo, prompter=prompter, ui=ui)
    config_path = tmp_path / ".commitgenrc.json" if tmp_path else None
    return WizardMode(config, check_runner, runner, config_path=config_path)


class TestCommitWizard:
    """Tests for the commit and quick flows."""

    def test_stage_commit_and_skip_push(self, repo_with_commit, tmp_path, ui):
        """Staging, accepting the message and declining the push commits once."""
        (tmp_path / "auth.ts").write_text("export function login() {}\n")
        prompter = FakePrompter("commit", True, "accept", False)

        make_wizard(repo_with_commit, ui, prompter).run()

        assert repo_with_commit.head.commit.message.strip() == "[feature] add auth helpers"
        assert prompter.questions == [
            "What would you like to do?",
            "Stage all changes?",
            "What would you like to do?",
            "Push to remote?",
        ]

    def test_prompts_can_be_disabled(self, staged_change, ui):
        """Disabled prompts are not asked."""
        config = make_config(prompts={"askStage": False, "askPush": False, "showChecks": False})
        prompter = FakePrompter("accept")

        make_wizard(staged_change, ui, prompter, config=config).run_commit_wizard()

        assert prompter.questions == ["What would you like to do?"]
        assert staged_change.head.commit.message.strip() == "[feature] add auth helpers"

    def test_blocking_check_stops_commit(self, staged_change, ui, output):
        """A failing blocking check prevents the commit."""
        head = staged_change.head.commit.hexsha
        config = make_config(prompts={"askStage": False})
        config.checks["build"] = CheckConfig(command="exit 1", blocking=True)
        prompter = FakePrompter(True)

        make_wizard(staged_change, ui, prompter, config=config).run_commit_wizard()

        assert prompter.questions == ["Run pre-commit checks?"]
        assert staged_change.head.commit.hexsha == head
        assert "Blocking checks failed, cannot proceed" in output.getvalue()

    def test_clean_tree(self, repo_with_commit, ui, output):
        """Nothing to commit ends the flow with a notice."""
        prompter = FakePrompter()

        make_wizard(repo_with_commit, ui, prompter).run_commit_wizard()

        assert prompter.questions == []
        assert "No changes detected in your repository." in output.getvalue()

    def test_quick_workflow_reports_push_failure(self, repo_with_commit, tmp_path, ui, output):
        """Quick mode commits, then reports the failed push."""
        (tmp_path / "auth.ts").write_text("export class Session {}\n")

        make_wizard(repo_with_commit, ui, FakePrompter("quick")).run()

        assert repo_with_commit.head.commit.message.strip() == "[feature] add auth helpers"
        assert "Quick workflow failed" in output.getvalue()

    def test_dismissed_menu(self, repo_with_commit, ui):
        """Cancelling the main menu ends the wizard quietly."""
        make_wizard(repo_with_commit, ui, FakePrompter(PromptCancelled("Prompt cancelled"))).run()


class TestConfigMenu:
    """Tests for the configuration menu."""

    def test_switch_model(self, repo_with_commit, tmp_path, ui):
        """Switching the model saves the new active model."""
        prompter = FakePrompter("config", "model", "cloud", False)

        make_wizard(repo_with_commit, ui, prompter, tmp_path=tmp_path).run()

        saved = json.loads((tmp_path / ".commitgenrc.json").read_text())
        assert saved["activeModel"] == "cloud"

    def test_prompt_settings(self, repo_with_commit, tmp_path, ui):
        """Prompt toggles are saved in camelCase."""
        prompter = FakePrompter("prompts", False, True, False, False)
        wizard = make_wizard(repo_with_commit, ui, prompter, tmp_path=tmp_path)

        wizard.run_config()

        saved = json.loads((tmp_path / ".commitgenrc.json").read_text())
        assert saved["prompts"] == {"askPush": False, "askStage": False, "showChecks": True}
        assert wizard.config.prompts.ask_stage is False

    def test_view_then_exit(self, repo_with_commit, ui, output):
        prompter = FakePrompter("view", True, "exit")

        make_wizard(repo_with_commit, ui, prompter).run_config()

        assert '"activeModel": "local"' in output.getvalue()


class TestStatusDisplay:
    """Tests for StatusDisplay.display_status."""

    def test_shows_tree_model_and_checks(self, staged_change, tmp_path, ui, output):
        (tmp_path / "notes.md").write_text("todo\n")
        config = make_config(fallbackModel="cloud")
        config.checks["lint"] = CheckConfig(command="true")

        StatusDisplay(config, CheckRunner(config.checks, ui), repo=staged_change).display_status()

        text = output.getvalue()
        assert "Staged: 2" in text
        assert "Untracked: 1" in text
        assert "Active Model: local" in text
        assert "Fallback: cloud" in text
        assert "Enabled: lint" in text
        assert "Ready to commit? Run: cgen" in text

    def test_clean_repository(self, repo_with_commit, ui, output):
        config = make_config()

        StatusDisplay(config, CheckRunner({}, ui), repo=repo_with_commit).display_status()

        text = output.getvalue()
        assert "No changes detected" in text
        assert "No checks configured" in text
