"""
Template Validation Service

Resolves stacks and checks their templates with CloudFormation.
"""

import re
from typing import List, Tuple

from stacksmith.core.stack_resolver import StackResolver
from stacksmith.exceptions import StacksmithError, TemplateValidationError
from stacksmith.logger import DeployLogger
from stacksmith.models import TemplateValidation, ValidationSummary

# (title, detail) pairs describing a validation failure
ValidationIssue = Tuple[str, str]

_UNRECOGNIZED_TYPES = re.compile(r"Unrecognized resource types?: \[(.+?)\]")
_INVALID_PARAMETER_TYPE = re.compile(r"Invalid value for parameter type: (.+)")
_UNDEFINED_RESOURCE = re.compile(r"references undefined resource (.+?)(?:\s|$|,|\.)")
_MISSING_PROPERTY = re.compile(r"[Mm]issing required property: (.+)")


def parse_validation_error(message: str) -> List[ValidationIssue]:
    """
    Turn a CloudFormation validation message into readable issues.

    Args:
        message: Error message from validate_template

    Returns:
        At least one (title, detail) issue
    """
    issues: List[ValidationIssue] = []

    match = _UNRECOGNIZED_TYPES.search(message)
    if match:
        for resource_type in match.group(1).split(","):
            issues.append(
                (
                    "Invalid Resource Type",
                    f"Resource type '{resource_type.strip()}' is not recognized by CloudFormation",
                )
            )

    match = _INVALID_PARAMETER_TYPE.search(message)
    if match:
        issues.append(("Invalid Parameter Type", f"Parameter type '{match.group(1).strip()}' is not valid"))

    match = _UNDEFINED_RESOURCE.search(message)
    if match:
        issues.append(
            (
                "Undefined Resource Reference",
                f"Template references resource '{match.group(1).strip()}' which is not defined",
            )
        )

    if "not well-formed" in message or "JSON" in message:
        issues.append(("Template Syntax Error", "Template is not well-formed JSON or YAML"))

    match = _MISSING_PROPERTY.search(message)
    if match:
        issues.append(("Missing Required Property", f"Required property '{match.group(1).strip()}' is missing"))

    if not issues and "Template format error:" in message:
        issues.append(("Template Format Error", message.split("Template format error:", 1)[1].strip()))

    if not issues:
        issues.append(("Validation Error", message.strip()))

    return issues


class TemplateValidator:
    """Validates stack templates for a context"""

    def __init__(self, stack_resolver: StackResolver, client_factory, logger: DeployLogger):
        self.stack_resolver = stack_resolver
        self.client_factory = client_factory
        self.logger = logger

    def validate_stack(self, context: str, stack_name: str) -> TemplateValidation:
        """
        Resolve and validate one stack's template.

        Resolution and validation failures are returned, not raised, so
        callers can keep going with other stacks.
        """
        try:
            stack = self.stack_resolver.resolve_stack(context, stack_name)
        except StacksmithError as e:
            return TemplateValidation(stack_name, False, f"Failed to resolve stack: {e.message}")

        operations = self.client_factory.get_operations(stack.region)
        try:
            response = operations.validate_template(stack.template_body)
        except TemplateValidationError as e:
            return TemplateValidation(stack_name, False, e.reason)

        return TemplateValidation(
            stack_name, True, "Template is valid", description=response.get("Description")
        )

    def validate_all_stacks(self, context: str) -> ValidationSummary:
        """Validate every stack in a context, continuing past failures."""
        summary = ValidationSummary(context=context)
        stack_names = self.stack_resolver.config_provider.list_stacks(context)
        if not stack_names:
            self.logger.warning(f"No stacks defined in context '{context}'")
            return summary

        self.logger.log(f"Validating {len(stack_names)} stack(s) in context '{context}'")
        for stack_name in stack_names:
            result = self.validate_stack(context, stack_name)
            summary.results.append(result)
            if result.is_valid:
                self.logger.success(f"{stack_name}: template is valid")
            else:
                self.logger.log(f"{stack_name}: {result.message}", "ERROR")
        return summary
