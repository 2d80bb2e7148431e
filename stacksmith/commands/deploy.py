"""Stacksmith CLI - Deploy command"""

import click
from typing import List, Optional

from stacksmith.base import ContextCommand
from stacksmith.models import DeploymentOutcome, StackOperationResult
from stacksmith.services import Deployer


class DeployCommand(ContextCommand):
    """
    Deploy one stack or every stack in a context.

    Features:
    - Dependency-ordered multi-stack deployment
    - Changeset preview before updates
    - Confirmation before every change
    - Live stack event streaming
    """

    def __init__(self, context_name: str, stack_name: Optional[str] = None, **kwargs):
        """
        Initialize deploy command.

        Args:
            context_name: Deployment context name
            stack_name: Stack to deploy (None deploys all stacks)
            **kwargs: ContextCommand arguments
        """
        super().__init__(context_name, **kwargs)
        self.stack_name = stack_name

    def execute(self) -> None:
        """Execute deployment."""
        self.validate_context()
        self.show_header(
            title="Deploy",
            context=self.context_name,
            stack=self.stack_name or "all stacks",
        )

        logger = self.init_context_logger("deploy")
        deployer = Deployer(self.stack_resolver, self.client_factory, self.prompter, logger)

        if self.stack_name:
            outcome = deployer.deploy_single_stack(self.context_name, self.stack_name)
            results = [StackOperationResult(self.stack_name, outcome)]
        else:
            results = deployer.deploy_all_stacks(self.context_name)

        self._display_results(results)

    def _display_results(self, results: List[StackOperationResult]) -> None:
        """Display per-stack outcomes."""
        if not results:
            return

        self.console.print("\n[bold]Deployment summary:[/bold]")
        for result in results:
            outcome = result.outcome
            if outcome == DeploymentOutcome.CANCELLED:
                self.console.print(f"  [yellow]⚠[/yellow] {result.stack_name}: cancelled")
            elif outcome == DeploymentOutcome.NO_CHANGES:
                self.console.print(f"  [dim]•[/dim] {result.stack_name}: no changes")
            else:
                self.console.print(f"  [green]✓[/green] {result.stack_name}: {outcome.value}")

        if not self.verbose:
            self.console.print("\n[color(248)]Deployment finished.[/color(248)]")
        self._show_log_path()


@click.command()
@click.argument("context")
@click.argument("stack", required=False)
@click.pass_obj
def deploy(obj, context, stack):
    """
    Deploy CloudFormation stacks

    Without STACK every stack in CONTEXT is deployed in dependency
    order. Existing stacks are updated through a changeset whose
    changes are shown before you confirm.

    Examples:
        # Deploy all stacks for the dev context
        stacksmith deploy dev

        # Deploy a single stack
        stacksmith deploy prod vpc

        # Use another config file and AWS profile
        stacksmith -c infra/stacksmith.yaml -p staging deploy staging
    """
    cmd = DeployCommand.from_cli(obj, context, stack_name=stack)
    cmd.run()
