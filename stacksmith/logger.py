"""
Logging system for Stacksmith
Provides real-time logging to files with clean console output
"""

from pathlib import Path
from datetime import datetime
from typing import Optional, TextIO
from rich.console import Console
from rich.markup import escape

from stacksmith.constants import (
    EVENT_TIME_FORMAT,
    LOG_DATE_FORMAT,
    LOG_TIME_FORMAT,
)
from stacksmith.models.aws import StackEvent, is_success_status, is_terminal_status


class DeployLogger:
    """
    Manages logging for stack operations
    - Writes all output to log files in real-time
    - Shows clean progress UI in console (unless verbose)
    - Captures errors with context
    """

    def __init__(
        self,
        context_name: str,
        operation: str,
        log_dir: Optional[Path] = None,
        verbose: bool = False,
        console: Optional[Console] = None,
    ):
        """
        Initialize logger

        Args:
            context_name: Name of the deployment context (e.g. 'dev')
            operation: Operation name (e.g., 'deploy', 'delete', 'diff')
            log_dir: Root directory for log files; None logs to console only
            verbose: If True, show all output in console
            console: Rich console to print to
        """
        self.context_name = context_name
        self.operation = operation
        self.verbose = verbose
        self.console = console or Console()
        self.log_file: Optional[TextIO] = None
        self.log_path: Optional[Path] = None
        self.current_step = ""
        self.has_errors = False

        if log_dir is not None:
            # Structure: {log_dir}/{context}/{date}/{time}_{operation}.log
            now = datetime.now()
            context_logs_dir = Path(log_dir) / context_name / now.strftime(LOG_DATE_FORMAT)
            context_logs_dir.mkdir(parents=True, exist_ok=True)

            self.log_path = context_logs_dir / f"{now.strftime(LOG_TIME_FORMAT)}_{operation}.log"
            self.log_file = open(self.log_path, "w", buffering=1, encoding="utf-8")
            self._write_log_header()

    def _write_log_header(self):
        """Write log file header"""
        header = f"""
{"=" * 80}
Stacksmith Operation Log
{"=" * 80}
Context: {self.context_name}
Operation: {self.operation}
Started: {datetime.now().isoformat()}
{"=" * 80}

"""
        self.log_file.write(header)
        self.log_file.flush()

    def log(self, message: str, level: str = "INFO"):
        """
        Log a message to file and optionally console

        Args:
            message: Message to log
            level: Log level (INFO, WARNING, ERROR, DEBUG)
        """
        timestamp = datetime.now().strftime("%H:%M:%S")

        if self.log_file:
            self.log_file.write(f"[{timestamp}] [{level}] {message}\n")
            self.log_file.flush()

        if self.verbose:
            text = escape(message)
            if level == "ERROR":
                self.console.print(f"[red]{text}[/red]")
            elif level == "WARNING":
                self.console.print(f"[yellow]{text}[/yellow]")
            elif level == "DEBUG":
                self.console.print(f"[dim]{text}[/dim]")
            else:
                self.console.print(text)

    def debug(self, message: str):
        """Log a debug message (file, and console when verbose)"""
        self.log(message, "DEBUG")

    def log_error(self, error: str, context: Optional[str] = None, progress: Optional[str] = None):
        """
        Log an error with context

        Args:
            error: Error message
            context: Additional context (e.g., stack that failed)
            progress: What finished before the error (e.g., stacks already deployed)
        """
        self.has_errors = True

        if self.log_file:
            error_block = f"""
{"!" * 80}
ERROR OCCURRED
{"!" * 80}
{error}
"""
            if context:
                error_block += f"\nContext: {context}\n"
            if progress:
                error_block += f"{progress}\n"
            error_block += f"{'!' * 80}\n\n"

            self.log_file.write(error_block)
            self.log_file.flush()

        if not self.verbose:
            self.console.print()

        self.console.print(f"[bold red]✗ {escape(error)}[/bold red]")
        if context:
            self.console.print(f"  [color(208)]{escape(context)}[/color(208)]")
        if progress:
            self.console.print(f"  [dim]{escape(progress)}[/dim]")

    def step(self, step_name: str):
        """
        Start a new step

        Args:
            step_name: Name of the step
        """
        if self.current_step and not self.verbose:
            self.console.print()

        self.current_step = step_name
        self.log(f"Step: {step_name}", "INFO")

        if not self.verbose:
            self.console.print(f"[color(214)]▶[/color(214)] [white]{escape(step_name)}[/white]")

    def success(self, message: str):
        """Log a success message"""
        self.log(message, "INFO")

        if not self.verbose:
            self.console.print(f"  [dim]✓ {escape(message)}[/dim]")

    def warning(self, message: str):
        """Log a warning message"""
        self.log(message, "WARNING")

        if not self.verbose:
            self.console.print(f"  [yellow]⚠[/yellow] [dim]{escape(message)}[/dim]")

    def block(self, text: str):
        """
        Show a pre-formatted block of text (diff output, previews)

        Args:
            text: Plain text, printed without markup processing
        """
        if self.log_file:
            for line in text.rstrip("\n").splitlines():
                self.log_file.write(f"  | {line}\n")
            self.log_file.flush()

        self.console.print(text.rstrip("\n"), markup=False, highlight=False)

    def event(self, event: StackEvent):
        """
        Log a CloudFormation stack event

        Args:
            event: Event reported while waiting on a stack operation
        """
        stamp = event.timestamp.strftime(EVENT_TIME_FORMAT)
        detail = f"{event.resource_status} {event.resource_type} {event.logical_resource_id}"
        if event.resource_status_reason:
            detail += f" {event.resource_status_reason}"

        if self.log_file:
            self.log_file.write(f"  [event] [{stamp}] {detail}\n")
            self.log_file.flush()

        status = event.resource_status
        if status.endswith("_FAILED") or (
            is_terminal_status(status) and not is_success_status(status)
        ):
            color = "red"
        elif status.endswith("_COMPLETE"):
            color = "green"
        else:
            color = "cyan"
        self.console.print(f"  [dim]\\[{stamp}][/dim] [{color}]{escape(detail)}[/{color}]")

    def close(self):
        """Close log file"""
        if self.log_file:
            footer = f"""
{"=" * 80}
Completed: {datetime.now().isoformat()}
Status: {"FAILED" if self.has_errors else "SUCCESS"}
{"=" * 80}
"""
            self.log_file.write(footer)
            self.log_file.close()
            self.log_file = None

    def __enter__(self):
        """Context manager entry"""
        return self

    def __exit__(self, exc_type, exc_val, _exc_tb):
        """Context manager exit"""
        if exc_type is not None and exc_type not in (SystemExit, KeyboardInterrupt):
            self.log_error(
                str(exc_val) if exc_val else "Operation failed",
                context=f"{exc_type.__name__}",
            )
        self.close()
        return False
