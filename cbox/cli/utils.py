"""Shared CLI consoles and diagnostic printers."""

from rich.console import Console
from rich.markup import escape

from cbox.exceptions import CboxError, ValidationError
from cbox.sandbox.policies import PolicyWarning, WarningKind

console = Console()
err_console = Console(stderr=True)

_WARNING_STYLES = {
    WarningKind.SECURITY: "bold yellow",
    WarningKind.CONFIGURATION: "yellow",
    WarningKind.ADVISORY: "cyan",
}


def print_warning(warning: PolicyWarning) -> None:
    """Print a policy warning and its detail line to stderr."""
    style = _WARNING_STYLES.get(warning.kind, "yellow")
    err_console.print(f"[{style}]cbox: {escape(str(warning))}[/{style}]", soft_wrap=True)
    if warning.detail:
        err_console.print(f"cbox:   {escape(warning.detail)}", soft_wrap=True)


def print_error(error: CboxError) -> None:
    """Print a fatal error, plus the valid alternatives for input errors."""
    err_console.print(f"[bold red]cbox: Error:[/bold red] {escape(str(error))}", soft_wrap=True)
    if isinstance(error, ValidationError) and error.hint:
        err_console.print(f"cbox: {escape(error.hint)}", soft_wrap=True)
