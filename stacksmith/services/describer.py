"""
Describe Service

Reads the live state of a configured stack.
"""

from stacksmith.core.stack_resolver import StackResolver
from stacksmith.models import StackInfo


class Describer:
    """Looks up deployed stack details"""

    def __init__(self, stack_resolver: StackResolver, client_factory):
        self.stack_resolver = stack_resolver
        self.client_factory = client_factory

    def describe_stack(self, context: str, stack_name: str) -> StackInfo:
        """
        Describe a configured stack as deployed in its context's region.

        Raises:
            StackConfigNotFoundError: If the stack is not configured
            StackNotFoundError: If the stack is not deployed
        """
        self.stack_resolver.config_provider.get_stack(stack_name, context)
        stack_context = self.stack_resolver.get_stack_context(context)
        operations = self.client_factory.get_operations(stack_context.region)
        return operations.get_stack(stack_name)


def format_stack_description(info: StackInfo, region: str = "") -> str:
    """Render stack details as plain text with sorted key: value sections."""
    lines = [f"Stack: {info.name}", f"Status: {info.status}"]
    if info.stack_id:
        lines.append(f"Stack ID: {info.stack_id}")
    if region:
        lines.append(f"Region: {region}")
    if info.description:
        lines.append(f"Description: {info.description}")
    if info.created_time:
        lines.append(f"Created: {info.created_time.strftime('%Y-%m-%d %H:%M:%S %Z').strip()}")
    if info.updated_time:
        lines.append(f"Updated: {info.updated_time.strftime('%Y-%m-%d %H:%M:%S %Z').strip()}")

    for title, values in (
        ("Parameters", info.parameters),
        ("Outputs", info.outputs),
        ("Tags", info.tags),
    ):
        if values:
            lines += ["", f"{title}:"]
            lines += [f"  {key}: {values[key]}" for key in sorted(values)]

    return "\n".join(lines) + "\n"
