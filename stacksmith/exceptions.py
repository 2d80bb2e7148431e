"""
Stacksmith Exception Hierarchy

Clean exception hierarchy for consistent error handling across the CLI.
"""

from typing import Iterable, Optional


class StacksmithError(Exception):
    """
    Base exception for all Stacksmith errors.

    ``progress`` is set by multi-stack runs that stop on this error and
    lists the stacks finished before it.
    """

    def __init__(self, message: str, context: Optional[str] = None):
        self.message = message
        self.context = context
        self.progress: Optional[str] = None
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error message with optional context."""
        if self.context:
            return f"{self.message}\nContext: {self.context}"
        return self.message

    def summary(self) -> str:
        """Single-line form used as another error's context."""
        if self.context:
            return f"{self.message}: {self.context}"
        return self.message


class ConfigurationError(StacksmithError):
    """Raised when configuration is invalid or missing."""

    pass


class ContextNotFoundError(ConfigurationError):
    """Raised when a context is not defined in the configuration."""

    def __init__(self, context_name: str, available_contexts: Iterable[str]):
        self.context_name = context_name
        self.available_contexts = sorted(available_contexts)
        message = f"Context '{context_name}' not found in configuration"
        context = f"Available contexts: {', '.join(self.available_contexts) or 'none'}"
        super().__init__(message, context)


class StackConfigNotFoundError(ConfigurationError):
    """Raised when a stack is not defined in the configuration."""

    def __init__(self, stack_name: str, available_stacks: Iterable[str]):
        self.stack_name = stack_name
        self.available_stacks = sorted(available_stacks)
        message = f"Stack '{stack_name}' not found in configuration"
        context = f"Available stacks: {', '.join(self.available_stacks) or 'none'}"
        super().__init__(message, context)


class ResolutionError(StacksmithError):
    """Raised when a stack cannot be resolved into a deployable form."""

    pass


class StackOutputError(ResolutionError):
    """Raised when a referenced stack output cannot be read."""

    def __init__(
        self,
        stack_name: str,
        output_key: str,
        reason: Optional[str] = None,
        stack_exists: bool = True,
    ):
        self.stack_name = stack_name
        self.output_key = output_key
        self.stack_exists = stack_exists
        if stack_exists:
            message = f"Stack '{stack_name}' does not have output '{output_key}'"
        else:
            message = f"Stack '{stack_name}' does not exist"
        super().__init__(message, reason)


class ParameterResolutionError(ResolutionError):
    """Raised when a stack parameter cannot be resolved."""

    def __init__(self, parameter_name: str, stack_name: str, cause: Exception):
        self.parameter_name = parameter_name
        self.stack_name = stack_name
        self.cause = cause
        message = (
            f"Failed to resolve parameter '{parameter_name}' for stack '{stack_name}'"
        )
        reason = cause.summary() if isinstance(cause, StacksmithError) else str(cause)
        super().__init__(message, reason)


class CircularDependencyError(ResolutionError):
    """Raised when stack dependencies form a cycle."""

    def __init__(self, stacks: Iterable[str]):
        self.stacks = sorted(stacks)
        message = "Circular dependency detected in stacks"
        context = f"Stacks involved: {', '.join(self.stacks)}"
        super().__init__(message, context)


class AWSOperationError(StacksmithError):
    """Raised when a CloudFormation API call fails."""

    def __init__(self, operation: str, entity: str, reason: str):
        self.operation = operation
        self.entity = entity
        self.reason = reason
        super().__init__(f"Failed to {operation} '{entity}'", reason)


class StackNotFoundError(AWSOperationError):
    """Raised when a stack does not exist in CloudFormation."""

    def __init__(self, stack_name: str):
        self.stack_name = stack_name
        super().__init__("find stack", stack_name, f"Stack '{stack_name}' does not exist")


class ChangeSetError(AWSOperationError):
    """Raised when a changeset cannot be created, executed or cleaned up."""

    pass


class NoChangesError(ChangeSetError):
    """Raised when a changeset contains no changes to apply."""

    def __init__(self, stack_name: str, reason: str = "No changes to deploy"):
        self.stack_name = stack_name
        super().__init__("create changeset for", stack_name, reason)


class TemplateValidationError(AWSOperationError):
    """Raised when CloudFormation rejects a template."""

    pass


class DeploymentError(StacksmithError):
    """Raised when deployment operations fail."""

    pass


class DeletionError(StacksmithError):
    """Raised when deletion operations fail."""

    pass


class OperationTimeoutError(StacksmithError):
    """Raised when a stack or changeset operation does not finish in time."""

    def __init__(self, operation: str, entity: str, timeout: float):
        self.operation = operation
        self.entity = entity
        self.timeout = timeout
        message = f"Timed out waiting for {operation} of '{entity}'"
        super().__init__(message, f"Gave up after {timeout:.0f}s")


class OperationCancelledError(StacksmithError):
    """Raised when a wait loop is stopped before the operation finished."""

    pass


class PromptError(StacksmithError):
    """Raised when a confirmation prompt cannot read an answer."""

    pass


class ValidationError(StacksmithError):
    """Raised when validation fails."""

    pass
