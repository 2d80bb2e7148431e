"""Stacksmith CLI - Diff command"""

import click

from stacksmith.base import ContextCommand
from stacksmith.models import DiffOptions, OutputFormat
from stacksmith.services import Differ


class DiffCommand(ContextCommand):
    """
    Compare a configured stack with its deployed state.

    Features:
    - Template, parameter and tag comparison
    - Changeset preview of resource changes
    - Text or JSON output
    """

    def __init__(self, context_name: str, stack_name: str, options: DiffOptions, **kwargs):
        """
        Initialize diff command.

        Args:
            context_name: Deployment context name
            stack_name: Stack to compare
            options: What to compare and how to report it
            **kwargs: ContextCommand arguments
        """
        kwargs.setdefault("json_output", options.output_format == OutputFormat.JSON)
        super().__init__(context_name, **kwargs)
        self.stack_name = stack_name
        self.options = options

    def execute(self) -> None:
        """Execute diff."""
        self.validate_context()
        self.show_header(title="Diff", context=self.context_name, stack=self.stack_name)

        logger = self.init_context_logger("diff")
        if logger:
            logger.step(f"Resolving stack {self.stack_name}")

        stack = self.stack_resolver.resolve_stack(self.context_name, self.stack_name)
        result = Differ(self.client_factory).diff_stack(stack, self.options)

        if self.json_output:
            print(result.to_json())
            return

        logger.success("Comparison complete")
        self.console.print(result.to_text(), markup=False, highlight=False)


@click.command()
@click.argument("context")
@click.argument("stack")
@click.option("--template", "template_only", is_flag=True, help="Compare the template only")
@click.option("--parameters", "parameters_only", is_flag=True, help="Compare parameters only")
@click.option("--tags", "tags_only", is_flag=True, help="Compare tags only")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
    help="Output format",
)
@click.pass_obj
def diff(obj, context, stack, template_only, parameters_only, tags_only, output_format):
    """
    Show changes between configuration and a deployed stack

    A full comparison also previews the resource changes through a
    temporary changeset, which is deleted before the command exits.

    Examples:
        # Full comparison
        stacksmith diff dev vpc

        # Parameters only, as JSON
        stacksmith diff prod app --parameters --format json
    """
    options = DiffOptions(
        template_only=template_only,
        parameters_only=parameters_only,
        tags_only=tags_only,
        output_format=OutputFormat(output_format),
    )
    cmd = DiffCommand.from_cli(obj, context, stack_name=stack, options=options)
    cmd.run()
