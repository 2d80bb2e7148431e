"""
Stacksmith Data Models

Type-safe dataclass models for configuration, AWS state and results.
"""

from .stack import (
    LiteralValue,
    ResolverValue,
    ParameterList,
    ParameterValue,
    ContextConfig,
    StackConfig,
    Config,
    StackContext,
    ResolvedStack,
    ResolvedStacks,
)
from .aws import (
    StackInfo,
    StackEvent,
    ResourceChange,
    ChangeSetInfo,
    is_terminal_status,
    is_success_status,
)
from .diff import (
    ChangeType,
    OutputFormat,
    ValueDiff,
    ResourceCount,
    TemplateChange,
    DiffOptions,
    DiffResult,
)
from .results import (
    DeploymentOutcome,
    DeletionOutcome,
    StackOperationResult,
    ValidationResult,
    TemplateValidation,
    ValidationSummary,
)

__all__ = [
    # Stack models
    "LiteralValue",
    "ResolverValue",
    "ParameterList",
    "ParameterValue",
    "ContextConfig",
    "StackConfig",
    "Config",
    "StackContext",
    "ResolvedStack",
    "ResolvedStacks",
    # AWS models
    "StackInfo",
    "StackEvent",
    "ResourceChange",
    "ChangeSetInfo",
    "is_terminal_status",
    "is_success_status",
    # Diff models
    "ChangeType",
    "OutputFormat",
    "ValueDiff",
    "ResourceCount",
    "TemplateChange",
    "DiffOptions",
    "DiffResult",
    # Result models
    "DeploymentOutcome",
    "DeletionOutcome",
    "StackOperationResult",
    "ValidationResult",
    "TemplateValidation",
    "ValidationSummary",
]
