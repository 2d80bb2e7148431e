"""Stacksmith CLI - Delete command"""

import click
from typing import List, Optional

from stacksmith.base import ContextCommand
from stacksmith.models import DeletionOutcome, StackOperationResult
from stacksmith.services import Deleter


class DeleteCommand(ContextCommand):
    """Delete one stack or every stack in a context, dependents first."""

    def __init__(self, context_name: str, stack_name: Optional[str] = None, **kwargs):
        super().__init__(context_name, **kwargs)
        self.stack_name = stack_name

    def execute(self) -> None:
        """Execute deletion."""
        self.validate_context()
        self.show_header(
            title="Delete",
            subtitle="[bold red]Deleted stacks cannot be recovered[/bold red]",
            context=self.context_name,
            stack=self.stack_name or "all stacks",
        )

        logger = self.init_context_logger("delete")
        deleter = Deleter(self.stack_resolver, self.client_factory, self.prompter, logger)

        if self.stack_name:
            outcome = deleter.delete_single_stack(self.context_name, self.stack_name)
            results = [StackOperationResult(self.stack_name, outcome)]
        else:
            results = deleter.delete_all_stacks(self.context_name)

        self._display_results(results)

    def _display_results(self, results: List[StackOperationResult]) -> None:
        if not results:
            return

        self.console.print("\n[bold]Deletion summary:[/bold]")
        for result in results:
            if result.outcome == DeletionOutcome.DELETED:
                self.console.print(f"  [green]✓[/green] {result.stack_name}: deleted")
            elif result.outcome == DeletionOutcome.SKIPPED:
                self.console.print(f"  [dim]•[/dim] {result.stack_name}: does not exist")
            else:
                self.console.print(f"  [yellow]⚠[/yellow] {result.stack_name}: cancelled")
        self._show_log_path()


@click.command()
@click.argument("context")
@click.argument("stack", required=False)
@click.pass_obj
def delete(obj, context, stack):
    """
    Delete CloudFormation stacks

    Without STACK every stack in CONTEXT is deleted in reverse
    dependency order. Each deletion asks for confirmation.

    Examples:
        # Delete one stack
        stacksmith delete dev app

        # Delete all stacks for the dev context
        stacksmith delete dev
    """
    cmd = DeleteCommand.from_cli(obj, context, stack_name=stack)
    cmd.run()
