"""
CloudFormation Models

Dataclass models for stacks, events and changesets as reported by AWS.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from stacksmith.constants import SUCCESS_STACK_STATUSES, TERMINAL_STACK_STATUSES


def is_terminal_status(status: str) -> bool:
    """Check if a stack status ends an operation."""
    return status in TERMINAL_STACK_STATUSES


def is_success_status(status: str) -> bool:
    """Check if a terminal stack status means the operation succeeded."""
    return status in SUCCESS_STACK_STATUSES


@dataclass
class StackInfo:
    """Current state of a deployed stack."""

    name: str
    status: str
    stack_id: str = ""
    description: str = ""
    created_time: Optional[datetime] = None
    updated_time: Optional[datetime] = None
    parameters: Dict[str, str] = field(default_factory=dict)
    outputs: Dict[str, str] = field(default_factory=dict)
    tags: Dict[str, str] = field(default_factory=dict)
    template_body: str = ""

    @property
    def is_in_progress(self) -> bool:
        """Check if the stack has an operation running."""
        return self.status.endswith("_IN_PROGRESS")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "status": self.status,
            "stack_id": self.stack_id,
            "description": self.description,
            "created_time": self.created_time.isoformat() if self.created_time else None,
            "updated_time": self.updated_time.isoformat() if self.updated_time else None,
            "parameters": dict(self.parameters),
            "outputs": dict(self.outputs),
            "tags": dict(self.tags),
        }

    def __repr__(self) -> str:
        return f"StackInfo(name={self.name}, status={self.status})"


@dataclass
class StackEvent:
    """A single stack event from CloudFormation."""

    event_id: str
    timestamp: datetime
    resource_type: str
    logical_resource_id: str
    resource_status: str
    physical_resource_id: str = ""
    resource_status_reason: str = ""

    def __repr__(self) -> str:
        return (
            f"StackEvent({self.logical_resource_id} {self.resource_status} "
            f"at {self.timestamp.isoformat()})"
        )


@dataclass
class ResourceChange:
    """A resource change proposed by a changeset."""

    action: str
    resource_type: str
    logical_id: str
    physical_id: str = ""
    replacement: str = ""
    details: List[str] = field(default_factory=list)

    @property
    def requires_replacement(self) -> bool:
        """Check if the change replaces the resource."""
        return self.replacement in ("True", "Conditional")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "action": self.action,
            "resource_type": self.resource_type,
            "logical_id": self.logical_id,
            "physical_id": self.physical_id,
            "replacement": self.replacement,
            "details": list(self.details),
        }


@dataclass
class ChangeSetInfo:
    """A CloudFormation changeset and the changes it proposes."""

    changeset_id: str
    stack_name: str
    status: str = ""
    status_reason: str = ""
    changes: List[ResourceChange] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        """Check if the changeset proposes any resource changes."""
        return len(self.changes) > 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "changeset_id": self.changeset_id,
            "status": self.status,
            "changes": [change.to_dict() for change in self.changes],
        }

    def __repr__(self) -> str:
        return f"ChangeSetInfo(stack={self.stack_name}, changes={len(self.changes)})"
