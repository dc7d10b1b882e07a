"""CLI commands for commitgen."""

from __future__ import annotations

import sys
from typing import List, Optional

import click
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from commitgen import __version__
from commitgen.checks import CheckRunner
from commitgen.config import (
    CommitGenConfig,
    create_default_config,
    find_config_path,
    get_active_model,
    get_fallback_model,
    global_config_path,
    load_config,
    local_config_path,
    parse_model_config,
    resolve_model,
    save_config,
    validate_config,
)
from commitgen.errors import ConfigError, PromptCancelled
from commitgen.git_ops import is_repository
from commitgen.interaction import Prompter
from commitgen.log_setup import setup_logging
from commitgen.models import WorkflowConfig, WorkflowStep
from commitgen.providers import OllamaProvider, create_provider
from commitgen.status import StatusDisplay
from commitgen.ui import UI
from commitgen.wizard import WizardMode
from commitgen.workflow import WorkflowRunner

app = typer.Typer(
    name="cgen",
    help="AI-powered commit message generator - analyze staged changes and commit with one line",
    add_completion=False,
)
console = Console()

DEFAULT_MODELS = {
    "ollama": "qwen2.5-coder:7b",
    "openrouter": "openai/gpt-4o-mini",
    "gemini": "gemini-2.0-flash",
}

PROVIDER_CHOICES = [
    ("ollama", "Ollama (Local)"),
    ("openrouter", "OpenRouter (Cloud)"),
    ("gemini", "Google Gemini (Cloud)"),
]


def _print_error(message: str) -> None:
    """Print an error message and exit."""
    console.print(f"[red]✗[/red] {escape(message)}")
    raise typer.Exit(1)


def _print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {message}")


def _load_config() -> CommitGenConfig:
    try:
        return load_config()
    except ConfigError as e:
        _print_error(str(e))


def _build_runners(config: CommitGenConfig, dry_run: bool = False) -> tuple[CheckRunner, WorkflowRunner]:
    """Wire check runner, providers and workflow runner from configuration."""
    ui = UI(config.ui, console)
    check_runner = CheckRunner(config.checks, ui)
    try:
        provider = create_provider(get_active_model(config))
        fallback_config = get_fallback_model(config)
    except ConfigError as e:
        _print_error(str(e))
    fallback = create_provider(fallback_config) if fallback_config else None
    runner = WorkflowRunner(check_runner, provider, dry_run=dry_run, fallback_provider=fallback, ui=ui)
    return check_runner, runner


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"cgen {__version__}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True, help="Show version"),
) -> None:
    """Interactive commit wizard when run without a command."""
    setup_logging(verbose)
    if ctx.invoked_subcommand is not None:
        return

    config = _load_config()
    check_runner, runner = _build_runners(config)
    WizardMode(config, check_runner, runner, config_path=find_config_path()).run()


@app.command()
def run(
    steps: List[str] = typer.Argument(..., help="Workflow steps to execute in order, e.g. stage:all commit:auto push"),
    dry_run: bool = typer.Option(False, "--dry-run", "-n", help="Show the steps without executing them"),
) -> None:
    """Execute an explicit workflow."""
    try:
        workflow_steps = [WorkflowStep(step) for step in steps]
    except ValueError as e:
        valid = ", ".join(step.value for step in WorkflowStep)
        _print_error(f"{e}\nValid steps: {valid}")
        return

    config = _load_config()
    _, runner = _build_runners(config, dry_run=dry_run)
    interactive = any(
        step in (WorkflowStep.STAGE_PROMPT, WorkflowStep.COMMIT_REVIEW, WorkflowStep.COMMIT_INTERACTIVE, WorkflowStep.PUSH_PROMPT)
        for step in workflow_steps
    )
    result = runner.execute_workflow(WorkflowConfig(steps=workflow_steps, interactive=interactive))

    if not result.success:
        _print_error(f"{result.error} ({result.steps_completed}/{result.total_steps} steps completed)")
    _print_success(f"Workflow completed ({result.steps_completed}/{result.total_steps} steps)")


@app.command()
def check(
    names: Optional[List[str]] = typer.Argument(None, help="Checks to run (default: all enabled)"),
    run_all: bool = typer.Option(False, "--all", "-a", help="Run all enabled checks"),
    fix: bool = typer.Option(False, "--fix", help="Auto-fix failed checks if possible"),
) -> None:
    """Run pre-commit checks."""
    config = _load_config()
    check_runner = CheckRunner(config.checks, UI(config.ui, console))

    if run_all or not names:
        summary = check_runner.run_all_checks()
    else:
        summary = check_runner.run_checks(names)

    check_runner.display_summary(summary)

    if fix and summary.failed > 0:
        console.print()
        check_runner.ui.info("Attempting auto-fixes...")
        for result in summary.results:
            if not result.passed and result.auto_fix_available:
                check_runner.auto_fix(result.name)

    raise typer.Exit(0 if check_runner.can_proceed(summary) else 1)


@app.command()
def doctor() -> None:
    """Check system health."""
    console.print("\n[bold]System Health Check[/bold]\n")
    config = _load_config()

    if is_repository():
        _print_success("Git repository")
    else:
        console.print("[red]✗[/red] Not a git repository")

    for problem in validate_config(config):
        console.print(f"[yellow]⚠[/yellow] {problem}")

    model = get_active_model(config)
    provider = create_provider(model)
    with console.status(f"[cyan]Checking {provider.name}...[/cyan]", spinner="dots"):
        available = provider.validate_config()
    if available:
        _print_success(f"{provider.name} provider ({getattr(model, 'base_url', None) or 'cloud'})")
    else:
        console.print(f"[red]✗[/red] {provider.name} provider not available")

    console.print(f"[dim]Active Model:[/dim] {config.active_model}")
    console.print(f"[dim]Provider:[/dim] {model.provider}")
    console.print(f"[dim]Model:[/dim] {model.model}")
    console.print(f"[dim]Temperature:[/dim] {model.temperature}")

    checks = CheckRunner(config.checks, UI(config.ui, console)).list_checks()
    console.print(f"\n[dim]Checks configured:[/dim] {len(checks)}")
    console.print(f"[dim]  Enabled:[/dim] {sum(1 for c in checks if c['enabled'])}")
    console.print()


@app.command()
def models() -> None:
    """List all configured models."""
    config = _load_config()

    table = Table(title="Configured Models")
    table.add_column("", width=1)
    table.add_column("Name", style="cyan")
    table.add_column("Provider")
    table.add_column("Model")
    table.add_column("Status")

    for key in config.models:
        model = resolve_model(config, key)
        status = ""
        if model.provider == "ollama":
            ollama = OllamaProvider(model)
            if not ollama.validate_config():
                status = "[yellow]Unable to check (Ollama not running?)[/yellow]"
            elif ollama.is_model_installed():
                status = "[green]Installed ✓[/green]"
            else:
                status = f"[yellow]Not installed (run: ollama pull {model.model})[/yellow]"
        elif model.provider in ("openrouter", "gemini"):
            status = "[green]API key set[/green]" if model.api_key else "[red]API key missing[/red]"

        active = "[green]●[/green]" if key == config.active_model else ""
        table.add_row(active, key, model.provider, model.model, status)

    console.print(table)
    console.print("[dim]Use [cyan]cgen use <model-name>[/cyan] to switch models[/dim]")


@app.command()
def init(
    global_scope: bool = typer.Option(False, "--global", "-g", help="Create global config in home directory"),
    local_scope: bool = typer.Option(False, "--local", "-l", help="Create local config in current directory"),
) -> None:
    """Create a configuration file."""
    prompter = Prompter()
    try:
        if global_scope:
            config_path = global_config_path()
        elif local_scope:
            config_path = local_config_path()
        else:
            scope = prompter.select(
                "Where should the config be created?",
                [
                    ("global", f"Global ({global_config_path()})"),
                    ("local", f"Local ({local_config_path()})"),
                ],
            )
            config_path = global_config_path() if scope == "global" else local_config_path()

        if config_path.exists() and not prompter.confirm(
            f"Config already exists at {config_path}. Overwrite?", default=False
        ):
            console.print("Cancelled")
            return

        console.print("\n[bold]Initialize CommitGen Configuration[/bold]\n")
        provider = prompter.select("Choose your primary AI provider:", PROVIDER_CHOICES)
        model = prompter.text("Model identifier:", default=DEFAULT_MODELS[provider]).strip()
        if not model:
            _print_error("Model identifier is required")
        base_url = api_key = None
        if provider == "ollama":
            base_url = prompter.text("Ollama base URL:", default="http://localhost:11434").strip()
        else:
            api_key = prompter.password("API Key (leave empty to use the environment):").strip()
    except PromptCancelled:
        console.print("Cancelled")
        return

    save_config(create_default_config(provider, model, base_url=base_url, api_key=api_key), config_path)
    _print_success(f"Configuration created at [cyan]{config_path}[/cyan]")
    console.print("[dim]You can now use [cyan]cgen[/cyan] to generate commit messages![/dim]")
    console.print("[dim]Add more models with [cyan]cgen add-model[/cyan][/dim]")


@app.command("add-model")
def add_model() -> None:
    """Add a new model to configuration."""
    config = _load_config()
    prompter = Prompter()

    console.print("\n[bold]Add New Model[/bold]\n")
    try:
        name = prompter.text("Model name (key):").strip()
        if not name:
            _print_error("Model name is required")
        if name in config.models:
            _print_error(f'Model "{name}" already exists')

        provider = prompter.select("Provider:", PROVIDER_CHOICES)
        entry: dict[str, object] = {"provider": provider}
        entry["model"] = prompter.text("Model identifier:", default=DEFAULT_MODELS[provider]).strip()
        if provider == "ollama":
            entry["base_url"] = prompter.text("Base URL:", default="http://localhost:11434").strip()
        else:
            api_key = prompter.password("API Key (optional):").strip()
            if api_key:
                entry["api_key"] = api_key
        temperature = prompter.text("Temperature (optional, 0.0-1.0):").strip()
        max_tokens = prompter.text("Max Tokens (optional):").strip()
    except PromptCancelled:
        console.print("Cancelled")
        return

    try:
        if temperature:
            entry["temperature"] = float(temperature)
        if max_tokens:
            entry["max_tokens"] = int(max_tokens)
    except ValueError as e:
        _print_error(f"Invalid number: {e}")

    try:
        model_config = parse_model_config(entry)
    except ConfigError as e:
        _print_error(str(e))

    config.models[name] = model_config
    save_config(config, find_config_path())
    _print_success(f'Model "{name}" added successfully!')
    console.print(f"[dim]Use [cyan]cgen use {name}[/cyan] to activate this model[/dim]")


@app.command()
def use(model_name: str = typer.Argument(..., help="Key of the model to activate")) -> None:
    """Switch to a different model."""
    config = _load_config()

    if model_name not in config.models:
        console.print(f'[red]✗[/red] Model "{model_name}" not found in configuration')
        console.print("[dim]Available models:[/dim]")
        for key in config.models:
            console.print(f"  [cyan]{key}[/cyan]")
        raise typer.Exit(1)

    config = config.model_copy(update={"active_model": model_name})
    save_config(config, find_config_path())

    model = config.models[model_name]
    _print_success(f'Switched to model "[cyan]{model_name}[/cyan]"')
    console.print(f"[dim]  Provider: {model.provider}[/dim]")
    console.print(f"[dim]  Model: {model.model}[/dim]")


@app.command()
def status() -> None:
    """Show repository and configuration status."""
    config = _load_config()
    StatusDisplay(config, CheckRunner(config.checks, UI(config.ui, console))).display_status()


def main() -> None:
    """Entry point for the CLI."""
    try:
        exit_code = app(standalone_mode=False)
    except click.exceptions.Abort:
        # Ctrl+C outside a prompt
        console.print("\n[dim]Exited[/dim]")
        sys.exit(0)
    except click.exceptions.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    sys.exit(exit_code or 0)


if __name__ == "__main__":
    main()
