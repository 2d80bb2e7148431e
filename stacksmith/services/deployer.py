"""
Deployment Service

Creates and updates stacks, one at a time, behind a confirmation prompt.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, List, Optional

from stacksmith.constants import DEFAULT_CAPABILITIES
from stacksmith.core.stack_resolver import StackResolver
from stacksmith.exceptions import (
    ChangeSetError,
    DeploymentError,
    StacksmithError,
)
from stacksmith.logger import DeployLogger
from stacksmith.models import (
    ChangeSetInfo,
    DeploymentOutcome,
    DiffOptions,
    ResolvedStack,
    StackOperationResult,
    is_success_status,
)
from stacksmith.services.differ import Differ, new_stack_diff
from stacksmith.services.prompt import ConfirmationPrompter


@contextmanager
def retained_changeset(
    operations, changeset: Optional[ChangeSetInfo], logger: DeployLogger
) -> Iterator[Optional[ChangeSetInfo]]:
    """
    Hold a changeset for the duration of a block and delete it afterwards.

    Deletion runs on success, cancellation and failure. A failed deletion
    is reported as a warning so it never hides the block's own outcome.
    """
    try:
        yield changeset
    finally:
        if changeset is not None:
            try:
                operations.delete_changeset(changeset.changeset_id)
                logger.debug(f"Deleted changeset {changeset.changeset_id}")
            except ChangeSetError as e:
                logger.warning(f"Could not delete changeset {changeset.changeset_id}: {e.reason}")


class Deployer:
    """
    Deploys resolved stacks.

    New stacks are created directly; existing stacks are updated through a
    changeset so the operator sees exactly what will change before
    confirming.
    """

    def __init__(
        self,
        stack_resolver: StackResolver,
        client_factory,
        prompter: ConfirmationPrompter,
        logger: DeployLogger,
        differ: Optional[Differ] = None,
    ):
        """
        Initialize the deployer.

        Args:
            stack_resolver: Resolves stacks and dependency order
            client_factory: Factory returning CloudFormation operations per region
            prompter: Asks for confirmation before changes are applied
            logger: Operation logger
            differ: Diff service (default: built from client_factory)
        """
        self.stack_resolver = stack_resolver
        self.client_factory = client_factory
        self.prompter = prompter
        self.logger = logger
        self.differ = differ or Differ(client_factory)

    def deploy_single_stack(self, context: str, stack_name: str) -> DeploymentOutcome:
        """Resolve and deploy one stack."""
        self.logger.step(f"Resolving stack {stack_name}")
        stack = self.stack_resolver.resolve_stack(context, stack_name)
        self.logger.success(f"Resolved {len(stack.parameters)} parameters, {len(stack.tags)} tags")
        return self.deploy_stack(stack)

    def deploy_all_stacks(self, context: str) -> List[StackOperationResult]:
        """
        Deploy every stack in a context in dependency order.

        Each stack is resolved just before it is deployed so stack-output
        parameters see the outputs of stacks deployed earlier in the run.
        The first failure stops the run.

        Args:
            context: Context name

        Returns:
            One result per deployed stack

        Raises:
            StacksmithError: The failing stack's error; its ``progress`` lists
                the stacks already processed
        """
        stack_names = self.stack_resolver.config_provider.list_stacks(context)
        if not stack_names:
            self.logger.warning(f"No stacks defined for context '{context}'")
            return []

        order = self.stack_resolver.get_dependency_order(context, stack_names)
        self.logger.log(f"Deployment order: {', '.join(order)}")

        results: List[StackOperationResult] = []
        for stack_name in order:
            try:
                outcome = self.deploy_single_stack(context, stack_name)
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
        return DeploymentError(f"Deployment stopped at stack '{stack_name}'", error.summary())

    def deploy_stack(self, stack: ResolvedStack) -> DeploymentOutcome:
        """
        Deploy one resolved stack.

        Args:
            stack: Resolved stack

        Returns:
            CREATED, UPDATED, NO_CHANGES or CANCELLED

        Raises:
            DeploymentError: If the stack operation fails
            PromptError: If confirmation cannot be read
        """
        operations = self.client_factory.get_operations(stack.region)

        self.logger.step(f"Deploying stack {stack.name} ({stack.context.name}, {stack.region})")
        if operations.stack_exists(stack.name):
            return self._update_stack(operations, stack)
        return self._create_stack(operations, stack)

    def _create_stack(self, operations, stack: ResolvedStack) -> DeploymentOutcome:
        operations.validate_template(stack.template_body)
        self.logger.success("Template is valid")

        self.logger.log(
            f"Creating stack {stack.name}: {len(stack.parameters)} parameters, {len(stack.tags)} tags"
        )
        self.logger.block(new_stack_diff(stack).to_text())

        if not self.prompter.confirm(f"Do you want to create stack {stack.name}?"):
            self.logger.warning(f"Creation of stack {stack.name} cancelled")
            return DeploymentOutcome.CANCELLED

        capabilities = stack.capabilities or DEFAULT_CAPABILITIES
        started = datetime.now(timezone.utc)
        stack_id = operations.create_stack(stack, capabilities)
        self.logger.log(f"Create started: {stack_id}")

        self._wait(operations, stack, stack_id, started, "creation")
        self.logger.success(f"Stack {stack.name} created")
        return DeploymentOutcome.CREATED

    def _update_stack(self, operations, stack: ResolvedStack) -> DeploymentOutcome:
        diff = self.differ.diff_stack(stack, DiffOptions(keep_changeset=True))

        with retained_changeset(operations, diff.changeset, self.logger) as changeset:
            if diff.no_changes or not diff.has_changes():
                self.logger.success(f"Stack {stack.name} is up to date, no changes to deploy")
                return DeploymentOutcome.NO_CHANGES

            if changeset is None:
                raise DeploymentError(
                    f"Failed to create changeset for stack '{stack.name}'",
                    diff.changeset_error,
                )

            self.logger.block(diff.to_text())

            if not self.prompter.confirm(f"Do you want to apply these changes to stack {stack.name}?"):
                self.logger.warning(f"Update of stack {stack.name} cancelled")
                return DeploymentOutcome.CANCELLED

            started = datetime.now(timezone.utc)
            operations.execute_changeset(changeset.changeset_id)
            self.logger.log(f"Executing changeset {changeset.changeset_id}")

            self._wait(operations, stack, stack.name, started, "update")

        self.logger.success(f"Stack {stack.name} updated")
        return DeploymentOutcome.UPDATED

    def _wait(self, operations, stack: ResolvedStack, stack_ref: str, started: datetime, what: str) -> None:
        status = operations.wait_for_stack_operation(stack_ref, started, self.logger.event)
        if not is_success_status(status):
            raise DeploymentError(
                f"Stack {what} failed for '{stack.name}'", f"Final status: {status}"
            )
