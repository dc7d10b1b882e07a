"""Repository and configuration status overview."""

from __future__ import annotations

from git import Repo

from commitgen.checks import CheckRunner
from commitgen.config import CommitGenConfig
from commitgen.errors import GitError
from commitgen.git_ops import get_branch_summary, get_repo, get_working_tree_summary
from commitgen.ui import UI


class StatusDisplay:
    """Prints branch, working tree, model and check information."""

    def __init__(self, config: CommitGenConfig, check_runner: CheckRunner, repo: Repo | None = None, ui: UI | None = None):
        self.config = config
        self.check_runner = check_runner
        self.repo = repo
        self.ui = ui or check_runner.ui

    def display_status(self) -> None:
        ui = self.ui
        ui.section("Repository Status")

        repo = self.repo
        if repo is None:
            try:
                repo = get_repo()
            except GitError:
                ui.list_item("[error]Not a git repository[/error]")
                ui.console.print()
                return

        ui.section("Git")
        branch = get_branch_summary(repo)
        if branch:
            ui.list_item(f"[heading]Branch[/heading]: [accent]{branch['branch']}[/accent]")
            if branch["ahead"]:
                ui.list_item(f"[heading]Ahead[/heading]: [success]{branch['ahead']}[/success]", 1)
            if branch["behind"]:
                ui.list_item(f"[heading]Behind[/heading]: [warning]{branch['behind']}[/warning]", 1)
        else:
            ui.list_item("[warning]Unable to determine branch information[/warning]")

        ui.section("Working Tree")
        try:
            tree = get_working_tree_summary(repo)
        except GitError:
            ui.list_item("[warning]Unable to read working tree status[/warning]")
        else:
            if not any(tree.values()):
                ui.list_item("[muted]No changes detected[/muted]")
            if tree["staged"]:
                ui.list_item(f"[heading]Staged[/heading]: [accent]{tree['staged']}[/accent]")
            if tree["unstaged"]:
                ui.list_item(f"[heading]Unstaged[/heading]: [warning]{tree['unstaged']}[/warning]")
            if tree["untracked"]:
                ui.list_item(f"[heading]Untracked[/heading]: [info]{tree['untracked']}[/info]")

        ui.section("Configuration")
        model = self.config.models.get(self.config.active_model)
        ui.list_item(f"[heading]Active Model[/heading]: [accent]{self.config.active_model}[/accent]")
        ui.list_item(f"[heading]Model ID[/heading]: [accent]{model.model if model else 'not set'}[/accent]")
        ui.list_item(f"[heading]Provider[/heading]: [accent]{model.provider if model else 'not set'}[/accent]")
        if self.config.fallback_model:
            ui.list_item(f"[heading]Fallback[/heading]: [accent]{self.config.fallback_model}[/accent]")
        ui.list_item(f"[heading]Temperature[/heading]: [accent]{self.config.temperature}[/accent]")

        ui.section("Checks")
        checks = self.check_runner.list_checks()
        enabled = [c["name"] for c in checks if c["enabled"]]
        if not checks:
            ui.list_item("[muted]No checks configured[/muted]")
        elif not enabled:
            ui.list_item("[warning]All checks disabled[/warning]")
        else:
            ui.list_item(f"[heading]Enabled[/heading]: [accent]{', '.join(enabled)}[/accent]")

        ui.console.print()
        ui.console.print("[muted]Ready to commit? Run:[/muted] [accent]cgen[/accent]")
        ui.console.print()
