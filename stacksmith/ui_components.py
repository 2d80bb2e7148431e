"""
Stacksmith - UI Components & Branding
Standardized headers and UI elements
"""

from typing import Optional

from rich.console import Console

LOGO = "stacksmith"

# Color scheme
BRAND_COLOR = "color(214)"
SUCCESS_COLOR = "green"
WARNING_COLOR = "yellow"
ERROR_COLOR = "red"


def show_header(
    title: str,
    subtitle: Optional[str] = None,
    context: Optional[str] = None,
    stack: Optional[str] = None,
    details: Optional[dict] = None,
    console: Optional[Console] = None,
):
    """
    Display a standardized Stacksmith command header.

    Args:
        title: Main title (e.g., "Deploy", "Delete Stacks")
        subtitle: Optional subtitle line
        context: Deployment context name (if applicable)
        stack: Stack name (if applicable)
        details: Additional key-value pairs to display
        console: Rich Console instance (creates new if None)

    Example:
        show_header(
            title="Deploy",
            context="dev",
            stack="vpc",
            details={"Region": "us-east-1"}
        )
    """
    if console is None:
        console = Console()

    prefix = f" [bold {BRAND_COLOR}]{LOGO}[/bold {BRAND_COLOR}] [dim]›[/dim]"

    console.print(f"{prefix} [bold white]{title}[/bold white]")

    if subtitle:
        console.print(f"{prefix} [dim]{subtitle}[/dim]")

    if context:
        console.print(f"{prefix} Context: [cyan]{context}[/cyan]")
    if stack:
        console.print(f"{prefix} Stack: [cyan]{stack}[/cyan]")

    if details:
        for key, value in details.items():
            console.print(f"{prefix} {key}: [cyan]{value}[/cyan]")

    console.print()
