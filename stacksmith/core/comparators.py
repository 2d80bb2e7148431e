"""Template, parameter and tag comparison"""

import hashlib
import json
from typing import Any, Dict, List, Tuple

import yaml

from stacksmith.exceptions import ResolutionError
from stacksmith.models import ChangeType, ResourceCount, TemplateChange, ValueDiff


class CloudFormationLoader(yaml.SafeLoader):
    """Safe YAML loader that understands CloudFormation short-form tags (!Ref, !Sub, ...)"""


def _construct_intrinsic(loader: yaml.SafeLoader, tag_suffix: str, node: yaml.Node) -> Dict[str, Any]:
    if isinstance(node, yaml.ScalarNode):
        value: Any = loader.construct_scalar(node)
    elif isinstance(node, yaml.SequenceNode):
        value = loader.construct_sequence(node, deep=True)
    else:
        value = loader.construct_mapping(node, deep=True)

    name = "Ref" if tag_suffix == "Ref" else f"Fn::{tag_suffix}"
    if tag_suffix == "GetAtt" and isinstance(value, str):
        value = value.split(".", 1)
    return {name: value}


CloudFormationLoader.add_multi_constructor("!", _construct_intrinsic)


def parse_template(body: str) -> Dict[str, Any]:
    """
    Parse a JSON or YAML CloudFormation template.

    Args:
        body: Template text

    Returns:
        Template as a dictionary (empty for an empty template)

    Raises:
        ResolutionError: If the template is not valid YAML or JSON
    """
    try:
        data = yaml.load(body, Loader=CloudFormationLoader)
    except yaml.YAMLError as e:
        raise ResolutionError("Failed to parse template", str(e))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ResolutionError("Failed to parse template", "Template root must be a mapping")
    return data


def template_hash(body: str) -> str:
    """Short SHA-256 of the template with line endings and outer whitespace normalised."""
    normalised = body.replace("\r\n", "\n").strip()
    return hashlib.sha256(normalised.encode("utf-8")).hexdigest()[:12]


def _canonical(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=str)


class TemplateComparator:
    """Compares a deployed template with a proposed one"""

    def compare(self, current: str, proposed: str) -> TemplateChange:
        """
        Compare two template bodies.

        Args:
            current: Deployed template body
            proposed: Proposed template body

        Returns:
            TemplateChange with hashes, resource counts and a section summary
        """
        current_hash = template_hash(current)
        proposed_hash = template_hash(proposed)
        change = TemplateChange(
            has_changes=current_hash != proposed_hash,
            current_hash=current_hash,
            proposed_hash=proposed_hash,
        )
        if not change.has_changes:
            return change

        current_data = parse_template(current)
        proposed_data = parse_template(proposed)
        if _canonical(current_data) == _canonical(proposed_data):
            # Same document, different formatting (e.g. JSON re-serialised by the API)
            change.has_changes = False
            return change

        current_resources = self._resources(current_data)
        proposed_resources = self._resources(proposed_data)
        change.resource_count = self._count_resources(current_resources, proposed_resources)
        change.summary = self._summarize(
            current_data, proposed_data, current_resources, proposed_resources
        )
        return change

    @staticmethod
    def _resources(data: Dict[str, Any]) -> Dict[str, Any]:
        resources = data.get("Resources")
        return resources if isinstance(resources, dict) else {}

    @staticmethod
    def _count_resources(current: Dict[str, Any], proposed: Dict[str, Any]) -> ResourceCount:
        counts = ResourceCount()
        for name in set(current) | set(proposed):
            if name not in current:
                counts.added += 1
            elif name not in proposed:
                counts.removed += 1
            elif _canonical(current[name]) != _canonical(proposed[name]):
                counts.modified += 1
        return counts

    def _summarize(
        self,
        current: Dict[str, Any],
        proposed: Dict[str, Any],
        current_resources: Dict[str, Any],
        proposed_resources: Dict[str, Any],
    ) -> str:
        words = {"+": "added", "-": "removed", "~": "modified"}
        lines = ["Template sections changed:"]
        sections = self._changed_keys(current, proposed)
        if sections:
            lines += [f"  {symbol} {key} ({words[symbol]})" for symbol, key in sections]
        else:
            lines.append("  (No section-level changes detected)")

        resources = self._changed_keys(current_resources, proposed_resources)
        if resources:
            lines += ["", "Resource changes:"]
            for symbol, name in resources:
                resource = proposed_resources.get(name, current_resources.get(name))
                lines.append(f"  {symbol} {name} ({self._resource_type(resource)})")
        return "\n".join(lines) + "\n"

    @staticmethod
    def _changed_keys(current: Dict[str, Any], proposed: Dict[str, Any]) -> List[Tuple[str, str]]:
        changes = []
        for key in set(current) | set(proposed):
            if key not in current:
                changes.append(("+", key))
            elif key not in proposed:
                changes.append(("-", key))
            elif _canonical(current[key]) != _canonical(proposed[key]):
                changes.append(("~", key))
        return sorted(changes, key=lambda change: f"{change[0]} {change[1]}")

    @staticmethod
    def _resource_type(resource: Any) -> str:
        if isinstance(resource, dict) and isinstance(resource.get("Type"), str):
            return resource["Type"]
        return "Unknown"


def compare_values(current: Dict[str, str], proposed: Dict[str, str]) -> List[ValueDiff]:
    """
    Compare two key/value maps (parameters or tags).

    Args:
        current: Values currently deployed
        proposed: Values from local configuration

    Returns:
        Additions, modifications and removals sorted by key
    """
    diffs = []
    for key in sorted(set(current) | set(proposed)):
        if key not in current:
            diffs.append(ValueDiff(key, ChangeType.ADD, proposed_value=proposed[key]))
        elif key not in proposed:
            diffs.append(ValueDiff(key, ChangeType.REMOVE, current_value=current[key]))
        elif current[key] != proposed[key]:
            diffs.append(
                ValueDiff(
                    key,
                    ChangeType.MODIFY,
                    current_value=current[key],
                    proposed_value=proposed[key],
                )
            )
    return diffs


class ParameterComparator:
    """Compares deployed parameters with resolved ones"""

    def compare(self, current: Dict[str, str], proposed: Dict[str, str]) -> List[ValueDiff]:
        # CloudFormation masks NoEcho values in DescribeStacks
        masked = {k for k, v in current.items() if v == "****"}
        return [
            d
            for d in compare_values(current, proposed)
            if not (d.key in masked and d.change_type == ChangeType.MODIFY)
        ]


class TagComparator:
    """Compares deployed tags with resolved ones"""

    def compare(self, current: Dict[str, str], proposed: Dict[str, str]) -> List[ValueDiff]:
        return compare_values(current, proposed)
