"""Stacksmith CLI - Describe command"""

import click

from stacksmith.base import ContextCommand
from stacksmith.services import Describer
from stacksmith.services.describer import format_stack_description


class DescribeCommand(ContextCommand):
    """Show the deployed state of a configured stack."""

    def __init__(self, context_name: str, stack_name: str, **kwargs):
        super().__init__(context_name, **kwargs)
        self.stack_name = stack_name

    def execute(self) -> None:
        """Execute describe."""
        self.validate_context()
        stack_context = self.stack_resolver.get_stack_context(self.context_name)

        info = Describer(self.stack_resolver, self.client_factory).describe_stack(
            self.context_name, self.stack_name
        )
        self.console.print(
            format_stack_description(info, stack_context.region),
            markup=False,
            highlight=False,
        )


@click.command()
@click.argument("context")
@click.argument("stack")
@click.pass_obj
def describe(obj, context, stack):
    """
    Describe a deployed stack

    Shows status, parameters, outputs and tags of STACK as deployed
    in CONTEXT's region.

    Examples:
        stacksmith describe prod vpc
    """
    cmd = DescribeCommand.from_cli(obj, context, stack_name=stack)
    cmd.run()
