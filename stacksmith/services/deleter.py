"""
Deletion Service

Deletes stacks in reverse dependency order behind a confirmation prompt.
"""

from datetime import datetime, timezone
from typing import List

from stacksmith.core.dependency_graph import deletion_order
from stacksmith.core.stack_resolver import StackResolver
from stacksmith.exceptions import DeletionError, StacksmithError
from stacksmith.logger import DeployLogger
from stacksmith.models import (
    DeletionOutcome,
    StackContext,
    StackOperationResult,
    is_success_status,
)
from stacksmith.services.prompt import ConfirmationPrompter


class Deleter:
    """Deletes stacks. Only names and contexts are needed; templates are never read."""

    def __init__(
        self,
        stack_resolver: StackResolver,
        client_factory,
        prompter: ConfirmationPrompter,
        logger: DeployLogger,
    ):
        self.stack_resolver = stack_resolver
        self.client_factory = client_factory
        self.prompter = prompter
        self.logger = logger

    def delete_single_stack(self, context: str, stack_name: str) -> DeletionOutcome:
        """Delete one configured stack."""
        # Fails early for stacks missing from configuration
        self.stack_resolver.config_provider.get_stack(stack_name, context)
        return self.delete_stack(stack_name, self.stack_resolver.get_stack_context(context))

    def delete_all_stacks(self, context: str) -> List[StackOperationResult]:
        """
        Delete every stack in a context, dependents first.

        Raises:
            StacksmithError: The failing stack's error; its ``progress`` lists
                the stacks already processed
        """
        stack_names = self.stack_resolver.config_provider.list_stacks(context)
        if not stack_names:
            self.logger.warning(f"No stacks defined for context '{context}'")
            return []

        order = deletion_order(self.stack_resolver.get_dependency_order(context, stack_names))
        self.logger.log(f"Deletion order: {', '.join(order)}")
        stack_context = self.stack_resolver.get_stack_context(context)

        results: List[StackOperationResult] = []
        for stack_name in order:
            try:
                outcome = self.delete_stack(stack_name, stack_context)
            except StacksmithError as e:
                error = self._stopped_at(stack_name, e)
                error.progress = "Already processed: " + (
                    ", ".join(r.stack_name for r in results) or "none"
                )
                raise error
            results.append(StackOperationResult(stack_name, outcome))
        return results

    @staticmethod
    def _stopped_at(stack_name: str, error: StacksmithError) -> StacksmithError:
        """Keep errors that already name the stack; frame the rest with it."""
        if f"'{stack_name}'" in error.message:
            return error
        return DeletionError(f"Deletion stopped at stack '{stack_name}'", error.summary())

    def delete_stack(self, stack_name: str, context: StackContext) -> DeletionOutcome:
        """
        Delete one stack.

        Args:
            stack_name: Stack name
            context: Context the stack belongs to

        Returns:
            DELETED, SKIPPED (stack does not exist) or CANCELLED

        Raises:
            DeletionError: If CloudFormation reports the deletion failed
            PromptError: If confirmation cannot be read
        """
        operations = self.client_factory.get_operations(context.region)
        self.logger.step(f"Deleting stack {stack_name} ({context.name}, {context.region})")

        if not operations.stack_exists(stack_name):
            self.logger.success(f"Stack {stack_name} does not exist, skipping")
            return DeletionOutcome.SKIPPED

        info = operations.get_stack(stack_name)
        preview = [
            f"Stack: {info.name}",
            f"Context: {context.name}",
            f"Status: {info.status}",
        ]
        if info.description:
            preview.append(f"Description: {info.description}")
        preview += ["", "This stack and all of its resources will be deleted. This cannot be undone."]
        self.logger.block("\n".join(preview))

        if not self.prompter.confirm(f"Do you want to delete stack {stack_name}?"):
            self.logger.warning(f"Deletion of stack {stack_name} cancelled")
            return DeletionOutcome.CANCELLED

        started = datetime.now(timezone.utc)
        operations.delete_stack(stack_name)
        # Follow the stack by id: deleted stacks are not found by name
        status = operations.wait_for_stack_operation(
            info.stack_id or stack_name,
            started,
            self.logger.event,
            missing_status="DELETE_COMPLETE",
        )
        if not is_success_status(status):
            raise DeletionError(f"Stack deletion failed for '{stack_name}'", f"Final status: {status}")

        self.logger.success(f"Stack {stack_name} deleted")
        return DeletionOutcome.DELETED
