"""
Result Models

Dataclass models for operation results and command outputs.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class DeploymentOutcome(Enum):
    """How a single-stack deployment ended."""

    CREATED = "created"
    UPDATED = "updated"
    NO_CHANGES = "no_changes"
    CANCELLED = "cancelled"

    @property
    def applied(self) -> bool:
        """Check if the stack was changed in AWS."""
        return self in (DeploymentOutcome.CREATED, DeploymentOutcome.UPDATED)


class DeletionOutcome(Enum):
    """How a single-stack deletion ended."""

    DELETED = "deleted"
    SKIPPED = "skipped"
    CANCELLED = "cancelled"


@dataclass
class StackOperationResult:
    """Outcome of an operation on one stack."""

    stack_name: str
    outcome: Enum
    message: str = ""

    def __repr__(self) -> str:
        return f"StackOperationResult(stack={self.stack_name}, outcome={self.outcome.value})"


@dataclass
class ValidationResult:
    """Result of a validation operation."""

    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if validation has errors."""
        return len(self.errors) > 0

    @property
    def has_warnings(self) -> bool:
        """Check if validation has warnings."""
        return len(self.warnings) > 0

    def add_error(self, error: str) -> None:
        """Add an error to the validation result."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str) -> None:
        """Add a warning to the validation result."""
        self.warnings.append(warning)

    def __repr__(self) -> str:
        return f"ValidationResult(valid={self.is_valid}, errors={len(self.errors)}, warnings={len(self.warnings)})"


@dataclass
class TemplateValidation:
    """Template validation result for one stack."""

    stack_name: str
    is_valid: bool
    message: str = ""
    description: Optional[str] = None


@dataclass
class ValidationSummary:
    """Template validation results across stacks."""

    context: str
    results: List[TemplateValidation] = field(default_factory=list)

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.is_valid)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.is_valid)

    @property
    def is_valid(self) -> bool:
        return self.failed == 0

    def format_counts(self) -> str:
        """Format pass/fail counts for display."""
        return f"{self.failed} failed, {self.passed} passed, {len(self.results)} total"
