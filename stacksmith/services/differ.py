"""
Diff Service

Compares resolved stacks with what is deployed in CloudFormation.
"""

from typing import Optional

from stacksmith.core.comparators import (
    ParameterComparator,
    TagComparator,
    TemplateComparator,
)
from stacksmith.exceptions import (
    ChangeSetError,
    NoChangesError,
    OperationTimeoutError,
)
from stacksmith.models import (
    ChangeType,
    DiffOptions,
    DiffResult,
    ResolvedStack,
    TemplateChange,
    ValueDiff,
)


def new_stack_diff(stack: ResolvedStack, options: Optional[DiffOptions] = None) -> DiffResult:
    """Build the diff of a stack that does not exist yet: everything is an addition."""
    return DiffResult(
        stack_name=stack.name,
        context=stack.context.name,
        stack_exists=False,
        options=options or DiffOptions(),
        template_change=TemplateChange(has_changes=True),
        parameter_diffs=[
            ValueDiff(key, ChangeType.ADD, proposed_value=value)
            for key, value in sorted(stack.parameters.items())
        ],
        tag_diffs=[
            ValueDiff(key, ChangeType.ADD, proposed_value=value)
            for key, value in sorted(stack.tags.items())
        ],
    )


class Differ:
    """Computes template, parameter and tag differences for a stack"""

    def __init__(
        self,
        client_factory,
        template_comparator: Optional[TemplateComparator] = None,
        parameter_comparator: Optional[ParameterComparator] = None,
        tag_comparator: Optional[TagComparator] = None,
    ):
        """
        Initialize the differ.

        Args:
            client_factory: Factory returning CloudFormation operations per region
            template_comparator: Template comparison strategy
            parameter_comparator: Parameter comparison strategy
            tag_comparator: Tag comparison strategy
        """
        self.client_factory = client_factory
        self.template_comparator = template_comparator or TemplateComparator()
        self.parameter_comparator = parameter_comparator or ParameterComparator()
        self.tag_comparator = tag_comparator or TagComparator()

    def diff_stack(self, stack: ResolvedStack, options: Optional[DiffOptions] = None) -> DiffResult:
        """
        Compare a resolved stack with the deployed stack.

        For a full comparison with changes a changeset is created. With
        keep_changeset it stays on the result for the caller to execute and
        delete; otherwise it is deleted before returning. A changeset that
        cannot be created is recorded on the result instead of raised.

        Args:
            stack: Resolved stack
            options: What to compare and whether to keep the changeset

        Returns:
            DiffResult
        """
        options = options or DiffOptions()
        operations = self.client_factory.get_operations(stack.region)

        if not operations.stack_exists(stack.name):
            return new_stack_diff(stack, options)

        current = operations.describe_stack(stack.name)
        result = DiffResult(
            stack_name=stack.name,
            context=stack.context.name,
            stack_exists=True,
            options=options,
        )

        if options.compare_template:
            result.template_change = self.template_comparator.compare(
                current.template_body, stack.template_body
            )
        if options.compare_parameters:
            result.parameter_diffs = self.parameter_comparator.compare(
                current.parameters, stack.parameters
            )
        if options.compare_tags:
            result.tag_diffs = self.tag_comparator.compare(current.tags, stack.tags)

        if options.is_full and result.has_changes():
            self._attach_changeset(operations, stack, result, options.keep_changeset)

        return result

    def _attach_changeset(self, operations, stack: ResolvedStack, result: DiffResult, keep: bool) -> None:
        try:
            changeset = operations.create_changeset(stack)
        except NoChangesError as e:
            result.no_changes = True
            result.changeset_error = e.reason
            return
        except (ChangeSetError, OperationTimeoutError) as e:
            result.changeset_error = e.summary()
            return

        result.changeset = changeset
        if not keep:
            operations.delete_changeset(changeset.changeset_id)
