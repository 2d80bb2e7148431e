"""Parameter value resolution (literals, stack outputs, lists)"""

from typing import Dict

from stacksmith.constants import RESOLVER_STACK_OUTPUT
from stacksmith.exceptions import (
    ConfigurationError,
    StackNotFoundError,
    StackOutputError,
)
from stacksmith.models import LiteralValue, ParameterList, ParameterValue, ResolverValue


class ParameterResolver:
    """
    Resolves typed parameter values into the strings CloudFormation expects.

    Stack-output lookups are the only remote reads; they go through the
    client factory so each lookup uses the client for its region.
    """

    def __init__(self, client_factory):
        """
        Initialize the resolver.

        Args:
            client_factory: Factory returning CloudFormation operations per region
        """
        self.client_factory = client_factory

    def resolve(self, value: ParameterValue, region: str) -> str:
        """
        Resolve a parameter value.

        Args:
            value: Literal, resolver or list value
            region: Region of the stack being resolved

        Returns:
            Resolved string (lists are comma-joined)

        Raises:
            ConfigurationError: If the value is incomplete or of an unknown kind
            StackOutputError: If a referenced stack or output does not exist
        """
        if isinstance(value, LiteralValue):
            return self._resolve_literal(value)
        if isinstance(value, ResolverValue):
            return self._resolve_resolver(value, region)
        if isinstance(value, ParameterList):
            return self._resolve_list(value, region)
        raise ConfigurationError(f"Unsupported parameter value: {value!r}")

    def resolve_all(self, parameters: Dict[str, ParameterValue], region: str) -> Dict[str, str]:
        """Resolve a parameter map without wrapping errors."""
        return {name: self.resolve(value, region) for name, value in parameters.items()}

    def _resolve_literal(self, value: LiteralValue) -> str:
        if value.value is None:
            raise ConfigurationError("Literal parameter has no value")
        return value.value

    def _resolve_resolver(self, value: ResolverValue, region: str) -> str:
        if value.kind == RESOLVER_STACK_OUTPUT:
            return self._resolve_stack_output(value.config, region)
        raise ConfigurationError(
            f"Unsupported resolver type '{value.kind}'",
            f"Supported types: literal, list, {RESOLVER_STACK_OUTPUT}",
        )

    def _resolve_list(self, value: ParameterList, region: str) -> str:
        resolved = []
        for index, item in enumerate(value.items):
            if isinstance(item, ParameterList):
                raise ConfigurationError(f"List item {index} is a nested list")
            try:
                text = self.resolve(item, region)
            except ConfigurationError as e:
                raise ConfigurationError(f"Failed to resolve list item {index}", e.summary())
            if text:
                resolved.append(text)
        return ",".join(resolved)

    def _resolve_stack_output(self, config: Dict[str, object], region: str) -> str:
        if not config.get("stack_name"):
            raise ConfigurationError("Stack output resolver missing required 'stack_name'")
        if not config.get("output_key"):
            raise ConfigurationError("Stack output resolver missing required 'output_key'")
        stack_name = str(config["stack_name"])
        output_key = str(config["output_key"])

        operations = self.client_factory.get_operations(str(config.get("region") or region))
        try:
            stack = operations.get_stack(stack_name)
        except StackNotFoundError:
            raise StackOutputError(
                stack_name,
                output_key,
                f"Output '{output_key}' was requested from it",
                stack_exists=False,
            )

        if output_key not in stack.outputs:
            available = ", ".join(sorted(stack.outputs)) or "none"
            raise StackOutputError(stack_name, output_key, f"Available outputs: {available}")
        return stack.outputs[output_key]
