"""Stacksmith CLI - Validate command"""

import click
from typing import Optional

from rich.markup import escape

from stacksmith.base import ContextCommand
from stacksmith.models import ValidationSummary
from stacksmith.services import TemplateValidator
from stacksmith.services.validator import parse_validation_error


class ValidateCommand(ContextCommand):
    """Validate configuration and stack templates for a context."""

    def __init__(self, context_name: str, stack_name: Optional[str] = None, **kwargs):
        super().__init__(context_name, **kwargs)
        self.stack_name = stack_name

    def execute(self) -> None:
        """Execute validation."""
        self.validate_context()
        self.show_header(
            title="Validate",
            context=self.context_name,
            stack=self.stack_name or "all stacks",
        )

        logger = self.init_context_logger("validate")

        logger.step("Checking configuration")
        config_result = self.config_provider.validate()
        for warning in config_result.warnings:
            logger.warning(warning)
        if config_result.has_errors:
            for error in config_result.errors:
                logger.log(error, "ERROR")
                self.console.print(f"  [red]✗[/red] {escape(error)}")
            self.print_error(f"Configuration has {len(config_result.errors)} error(s)")
            self._show_log_path()
            raise SystemExit(1)
        logger.success("Configuration is valid")

        logger.step("Validating templates")
        validator = TemplateValidator(self.stack_resolver, self.client_factory, logger)
        if self.stack_name:
            summary = ValidationSummary(context=self.context_name)
            summary.results.append(validator.validate_stack(self.context_name, self.stack_name))
        else:
            summary = validator.validate_all_stacks(self.context_name)

        self._display_results(summary)

    def _display_results(self, summary: ValidationSummary) -> None:
        """Display validation results."""
        self.console.print("\n[bold]Validation Results:[/bold]\n")

        for result in summary.results:
            if result.is_valid:
                line = f"  [green]✓[/green] {result.stack_name}"
                if result.description:
                    line += f" [dim]{escape(result.description)}[/dim]"
                self.console.print(line)
                continue

            self.console.print(f"  [red]✗[/red] {result.stack_name}")
            for title, detail in parse_validation_error(result.message):
                self.console.print(f"      [bold]{title}:[/bold] {escape(detail)}")

        self.console.print(f"\n{summary.format_counts()}")
        self._show_log_path()

        if not summary.is_valid:
            raise SystemExit(1)


@click.command()
@click.argument("context")
@click.argument("stack", required=False)
@click.pass_obj
def validate(obj, context, stack):
    """
    Validate configuration and CloudFormation templates

    Checks the configuration file, then resolves each stack in CONTEXT
    and validates its template with CloudFormation.

    Examples:
        # Validate every stack in dev
        stacksmith validate dev

        # Validate a single stack
        stacksmith validate dev vpc
    """
    cmd = ValidateCommand.from_cli(obj, context, stack_name=stack)
    cmd.run()
