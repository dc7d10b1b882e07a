"""Console presentation built on rich."""

from __future__ import annotations

from contextlib import contextmanager
from collections.abc import Iterator

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.status import Status
from rich.theme import Theme

from commitgen.config import UIConfig


ACCENT_STYLES = {
    "cyan": "bright_cyan",
    "magenta": "bright_magenta",
    "green": "bright_green",
    "blue": "bright_blue",
    "yellow": "bright_yellow",
}

UNICODE_SYMBOLS = {"success": "✓", "error": "✗", "info": "ℹ", "warn": "⚠", "arrow": "→", "bullet": "•", "section": "▸", "rule": "─"}
ASCII_SYMBOLS = {"success": "+", "error": "x", "info": "i", "warn": "!", "arrow": ">", "bullet": "*", "section": ">", "rule": "-"}

BANNER_BLOCK = """\
 ██████╗ ██████╗ ███╗   ███╗███╗   ███╗██╗████████╗ ██████╗ ███████╗███╗   ██╗
██╔════╝██╔═══██╗████╗ ████║████╗ ████║██║╚══██╔══╝██╔════╝ ██╔════╝████╗  ██║
██║     ██║   ██║██╔████╔██║██╔████╔██║██║   ██║   ██║  ███╗█████╗  ██╔██╗ ██║
██║     ██║   ██║██║╚██╔╝██║██║╚██╔╝██║██║   ██║   ██║   ██║██╔══╝  ██║╚██╗██║
╚██████╗╚██████╔╝██║ ╚═╝ ██║██║ ╚═╝ ██║██║   ██║   ╚██████╔╝███████╗██║ ╚████║
 ╚═════╝ ╚═════╝ ╚═╝     ╚═╝╚═╝     ╚═╝╚═╝   ╚═╝    ╚═════╝ ╚══════╝╚═╝  ╚═══╝"""

BANNER_ASCII = """\
  ____                          _ _    ____
 / ___|___  _ __ ___  _ __ ___ (_) |_ / ___| ___ _ __
| |   / _ \\| '_ ` _ \\| '_ ` _ \\| | __| |  _ / _ \\ '_ \\
| |__| (_) | | | | | | | | | | | | |_| |_| |  __/ | | |
 \\____\\___/|_| |_| |_|_| |_| |_|_|\\__|\\____|\\___|_| |_|"""


def build_theme(config: UIConfig) -> Theme:
    """Rich styles for the configured theme and accent colour."""
    accent = ACCENT_STYLES.get(config.accent, "bright_cyan")
    if config.theme == "light":
        return Theme({
            "accent": accent,
            "heading": f"bold {accent}",
            "text": "black",
            "muted": "#666666",
            "dim": "#8a8a8a",
            "success": "green",
            "warning": "#b58900",
            "error": "red",
            "info": "blue",
        })
    return Theme({
        "accent": accent,
        "heading": f"bold {accent}",
        "text": "white",
        "muted": "grey62",
        "dim": "dim",
        "success": "bright_green",
        "warning": "bright_yellow",
        "error": "bright_red",
        "info": "bright_cyan",
    })


class UI:
    """Styled console output driven by an immutable UIConfig."""

    def __init__(self, config: UIConfig | None = None, console: Console | None = None):
        self.config = config or UIConfig()
        self.console = console or Console(theme=build_theme(self.config))
        if console is not None:
            self.console.push_theme(build_theme(self.config))
        self.symbols = UNICODE_SYMBOLS if self.config.unicode else ASCII_SYMBOLS

    def success(self, message: str) -> None:
        self.console.print(f"[success]{self.symbols['success']}[/success] [muted]{escape(message)}[/muted]")

    def error(self, message: str) -> None:
        self.console.print(f"[error]{self.symbols['error']}[/error] {escape(message)}")

    def info(self, message: str) -> None:
        self.console.print(f"[info]{self.symbols['info']}[/info] [muted]{escape(message)}[/muted]")

    def warn(self, message: str) -> None:
        self.console.print(f"[warning]{self.symbols['warn']}[/warning] {escape(message)}")

    def dim(self, message: str) -> None:
        self.console.print(f"[dim]{escape(message)}[/dim]")

    def section(self, title: str) -> None:
        self.console.print()
        self.console.print(f"[heading]{self.symbols['section']} {title}[/heading]")
        self.console.print(f"[dim]{self.symbols['rule'] * 50}[/dim]")

    def list_item(self, text: str, indent: int = 0) -> None:
        self.console.print(f"{'  ' * indent}[dim]{self.symbols['bullet']}[/dim] {text}")

    def commit_message(self, message: str) -> None:
        """Show a generated commit message in a bordered panel."""
        self.console.print()
        self.console.print(
            Panel.fit(
                f"[accent]{self.symbols['arrow']}[/accent] [heading]{escape(message)}[/heading]",
                title="Commit message",
                border_style="accent",
            )
        )

    def banner(self) -> None:
        self.console.print()
        if self.config.banner_style == "none":
            self.console.print("[heading]CommitGen[/heading][dim] - AI-Powered Git Assistant[/dim]")
        else:
            art = BANNER_BLOCK if self.config.banner_style == "block" and self.config.unicode else BANNER_ASCII
            style = "heading" if self.config.use_gradients else "accent"
            self.console.print(art, style=style, highlight=False)
            self.console.print("[muted]Tips: [/muted][accent]cgen --help[/accent][muted] for commands[/muted]")
        self.console.print()

    @contextmanager
    def spinner(self, text: str) -> Iterator[Status]:
        """Show a dots spinner while the block runs."""
        with self.console.status(f"[accent]{text}[/accent]", spinner="dots") as status:
            yield status
