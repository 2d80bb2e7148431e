"""
Diff Models

Dataclass models describing the difference between a deployed stack
and its local configuration.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from stacksmith.models.aws import ChangeSetInfo

CHANGE_SYMBOLS = {"Add": "+", "Modify": "~", "Remove": "-"}


class ChangeType(Enum):
    """Kind of change for a parameter or tag."""

    ADD = "ADD"
    MODIFY = "MODIFY"
    REMOVE = "REMOVE"


class OutputFormat(Enum):
    """Diff output format."""

    TEXT = "text"
    JSON = "json"


@dataclass
class ValueDiff:
    """A single parameter or tag difference."""

    key: str
    change_type: ChangeType
    current_value: str = ""
    proposed_value: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "key": self.key,
            "current_value": self.current_value,
            "proposed_value": self.proposed_value,
            "change_type": self.change_type.value,
        }

    def format_line(self) -> str:
        """Format as a single diff line."""
        if self.change_type == ChangeType.ADD:
            return f"  + {self.key}: {self.proposed_value}"
        if self.change_type == ChangeType.MODIFY:
            return f"  ~ {self.key}: {self.current_value} → {self.proposed_value}"
        return f"  - {self.key}: {self.current_value}"


@dataclass
class ResourceCount:
    """Resource-level template change counts."""

    added: int = 0
    modified: int = 0
    removed: int = 0

    @property
    def total(self) -> int:
        return self.added + self.modified + self.removed


@dataclass
class TemplateChange:
    """Result of comparing the deployed template with the proposed one."""

    has_changes: bool
    current_hash: str = ""
    proposed_hash: str = ""
    resource_count: ResourceCount = field(default_factory=ResourceCount)
    summary: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "has_changes": self.has_changes,
            "current_hash": self.current_hash,
            "proposed_hash": self.proposed_hash,
            "resource_count": {
                "added": self.resource_count.added,
                "modified": self.resource_count.modified,
                "removed": self.resource_count.removed,
            },
        }


@dataclass
class DiffOptions:
    """Options controlling what a diff compares and how it is reported."""

    template_only: bool = False
    parameters_only: bool = False
    tags_only: bool = False
    output_format: OutputFormat = OutputFormat.TEXT
    keep_changeset: bool = False

    @property
    def is_full(self) -> bool:
        """Check if every section is compared."""
        return not (self.template_only or self.parameters_only or self.tags_only)

    @property
    def compare_template(self) -> bool:
        return not (self.parameters_only or self.tags_only)

    @property
    def compare_parameters(self) -> bool:
        return not (self.template_only or self.tags_only)

    @property
    def compare_tags(self) -> bool:
        return not (self.template_only or self.parameters_only)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "template_only": self.template_only,
            "parameters_only": self.parameters_only,
            "tags_only": self.tags_only,
            "format": self.output_format.value,
        }


@dataclass
class DiffResult:
    """Differences between a deployed stack and its local configuration."""

    stack_name: str
    context: str
    stack_exists: bool
    options: DiffOptions = field(default_factory=DiffOptions)
    template_change: Optional[TemplateChange] = None
    parameter_diffs: List[ValueDiff] = field(default_factory=list)
    tag_diffs: List[ValueDiff] = field(default_factory=list)
    changeset: Optional[ChangeSetInfo] = None
    changeset_error: Optional[str] = None
    no_changes: bool = False

    def has_changes(self) -> bool:
        """Check if applying the configuration would change anything."""
        if not self.stack_exists:
            return True
        if self.template_change and self.template_change.has_changes:
            return True
        if self.parameter_diffs or self.tag_diffs:
            return True
        return bool(self.changeset and self.changeset.has_changes)

    def format(self) -> str:
        """Render the result in the configured output format."""
        if self.options.output_format == OutputFormat.JSON:
            return self.to_json()
        return self.to_text()

    def to_text(self) -> str:
        """Render as human readable text."""
        lines = [f"Stack: {self.stack_name} (Context: {self.context})", "=" * 50, ""]

        if not self.stack_exists:
            lines += [
                "Status: NEW STACK",
                "This stack does not exist in AWS and will be created.",
                "",
            ]
            lines += self._section("Parameters to be set:", self.parameter_diffs)
            lines += self._section("Tags to be set:", self.tag_diffs)
            return "\n".join(lines)

        if not self.has_changes():
            lines += [
                "Status: NO CHANGES",
                "The deployed stack matches your local configuration.",
            ]
            return "\n".join(lines) + "\n"

        lines += ["Status: CHANGES DETECTED", ""]

        if self.template_change and self.options.compare_template:
            lines += self._template_lines()
        if self.parameter_diffs and self.options.compare_parameters:
            lines += self._section(
                "Parameter Changes:", self.parameter_diffs, underline=True
            )
        if self.tag_diffs and self.options.compare_tags:
            lines += self._section("Tag Changes:", self.tag_diffs, underline=True)
        if self.changeset:
            lines += self._changeset_lines()
        if self.no_changes:
            lines += ["Note: CloudFormation reports no resource changes to apply", ""]
        elif self.changeset_error:
            lines += [f"Warning: could not generate changeset preview: {self.changeset_error}", ""]

        return "\n".join(lines)

    def to_json(self) -> str:
        """Render as JSON."""
        data: Dict[str, Any] = {
            "stack_name": self.stack_name,
            "context": self.context,
            "stack_exists": self.stack_exists,
            "has_changes": self.has_changes(),
            "options": self.options.to_dict(),
        }
        if self.template_change:
            data["template_changes"] = self.template_change.to_dict()
        if self.parameter_diffs:
            data["parameter_diffs"] = [d.to_dict() for d in self.parameter_diffs]
        if self.tag_diffs:
            data["tag_diffs"] = [d.to_dict() for d in self.tag_diffs]
        if self.changeset:
            data["changeset"] = self.changeset.to_dict()
        if self.changeset_error:
            data["changeset_error"] = self.changeset_error
        return json.dumps(data, indent=2)

    @staticmethod
    def _section(title: str, diffs: List[ValueDiff], underline: bool = False) -> List[str]:
        if not diffs:
            return []
        lines = [title]
        if underline:
            lines.append("-" * len(title))
        lines += [d.format_line() for d in diffs]
        lines.append("")
        return lines

    def _template_lines(self) -> List[str]:
        change = self.template_change
        lines = ["Template Changes:", "-----------------"]
        if not change.has_changes:
            return lines + ["✗ No template changes", ""]

        lines.append("✓ Template has been modified")
        counts = change.resource_count
        if counts.total:
            lines.append("Resource changes:")
            if counts.added:
                lines.append(f"  + {counts.added} resources to be added")
            if counts.modified:
                lines.append(f"  ~ {counts.modified} resources to be modified")
            if counts.removed:
                lines.append(f"  - {counts.removed} resources to be removed")
        if change.summary:
            lines += ["", "Template diff:", change.summary.rstrip("\n")]
        lines.append("")
        return lines

    def _changeset_lines(self) -> List[str]:
        changeset = self.changeset
        lines = [
            "AWS CloudFormation Preview:",
            "---------------------------",
            f"ChangeSet ID: {changeset.changeset_id}",
            f"Status: {changeset.status}",
        ]
        if changeset.changes:
            lines += ["", "Resource Changes:"]
            for change in changeset.changes:
                symbol = CHANGE_SYMBOLS.get(change.action, "?")
                line = f"  {symbol} {change.logical_id} ({change.resource_type})"
                if change.physical_id:
                    line += f" [{change.physical_id}]"
                if change.replacement and change.replacement != "False":
                    line += f" - Replacement: {change.replacement}"
                lines.append(line)
                lines += [f"    {detail}" for detail in change.details]
        lines.append("")
        return lines
