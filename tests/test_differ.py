import json

from stacksmith.exceptions import ChangeSetError
from stacksmith.models import (
    ChangeSetInfo,
    ChangeType,
    DiffOptions,
    OutputFormat,
    ResourceChange,
)
from stacksmith.services import Differ
from stacksmith.services.differ import new_stack_diff

from conftest import make_stack

TEMPLATE = "Resources:\n  Vpc:\n    Type: AWS::EC2::VPC\n"


def deployed(operations, **kwargs):
    kwargs.setdefault("template_body", TEMPLATE)
    kwargs.setdefault("parameters", {"Cidr": "10.0.0.0/16"})
    kwargs.setdefault("tags", {"Env": "dev"})
    return operations.add_stack("vpc", **kwargs)


def proposed(**kwargs):
    kwargs.setdefault("template_body", TEMPLATE)
    kwargs.setdefault("parameters", {"Cidr": "10.0.0.0/16"})
    kwargs.setdefault("tags", {"Env": "dev"})
    return make_stack("vpc", **kwargs)


def test_new_stack(client_factory):
    stack = proposed()
    result = Differ(client_factory).diff_stack(stack)

    assert not result.stack_exists
    assert result.has_changes()
    assert [d.change_type for d in result.parameter_diffs] == [ChangeType.ADD]
    text = result.to_text()
    assert "Status: NEW STACK" in text
    assert "  + Cidr: 10.0.0.0/16" in text


def test_identical_stack_has_no_changes(client_factory, operations):
    deployed(operations)
    result = Differ(client_factory).diff_stack(proposed())

    assert result.stack_exists
    assert not result.has_changes()
    assert "Status: NO CHANGES" in result.to_text()
    assert operations.called("create_changeset") == []


def test_parameter_change_creates_and_deletes_preview_changeset(client_factory, operations):
    deployed(operations)
    operations.changeset = ChangeSetInfo(
        "cs-1",
        "vpc",
        status="CREATE_COMPLETE",
        changes=[ResourceChange("Modify", "AWS::EC2::VPC", "Vpc", "vpc-1", "True")],
    )

    result = Differ(client_factory).diff_stack(proposed(parameters={"Cidr": "10.1.0.0/16"}))

    assert result.has_changes()
    assert [d.key for d in result.parameter_diffs] == ["Cidr"]
    assert result.changeset.changeset_id == "cs-1"
    assert operations.called("delete_changeset") == [("delete_changeset", "cs-1")]
    text = result.to_text()
    assert "Status: CHANGES DETECTED" in text
    assert "  ~ Cidr: 10.0.0.0/16 → 10.1.0.0/16" in text
    assert "  ~ Vpc (AWS::EC2::VPC) [vpc-1] - Replacement: True" in text


def test_keep_changeset_leaves_it_for_the_caller(client_factory, operations):
    deployed(operations)
    operations.changeset = ChangeSetInfo("cs-1", "vpc", status="CREATE_COMPLETE")

    result = Differ(client_factory).diff_stack(
        proposed(tags={"Env": "dev", "Team": "core"}), DiffOptions(keep_changeset=True)
    )

    assert result.changeset is not None
    assert operations.called("delete_changeset") == []


def test_no_changes_reported_by_cloudformation(client_factory, operations):
    deployed(operations)
    operations.changeset = None

    result = Differ(client_factory).diff_stack(proposed(tags={"Env": "prod"}))

    assert result.no_changes
    assert result.changeset is None
    assert "Note: CloudFormation reports no resource changes" in result.to_text()


def test_changeset_failure_is_recorded_not_raised(client_factory, operations):
    deployed(operations)
    operations.changeset_error = ChangeSetError("create changeset for", "vpc", "Access denied")

    result = Differ(client_factory).diff_stack(proposed(tags={"Env": "prod"}))

    assert result.has_changes()
    assert "Access denied" in result.changeset_error
    assert "Warning: could not generate changeset preview" in result.to_text()


def test_partial_comparison_skips_changeset(client_factory, operations):
    deployed(operations)
    options = DiffOptions(parameters_only=True)

    result = Differ(client_factory).diff_stack(
        proposed(parameters={"Cidr": "10.9.0.0/16"}, tags={"Env": "prod"}), options
    )

    assert [d.key for d in result.parameter_diffs] == ["Cidr"]
    assert result.tag_diffs == []
    assert result.template_change is None
    assert operations.called("create_changeset") == []


def test_template_change_detected(client_factory, operations):
    deployed(operations)
    operations.changeset = ChangeSetInfo("cs-2", "vpc")
    body = TEMPLATE + "  Bucket:\n    Type: AWS::S3::Bucket\n"

    result = Differ(client_factory).diff_stack(proposed(template_body=body))

    assert result.template_change.has_changes
    assert result.template_change.resource_count.added == 1
    assert "  + 1 resources to be added" in result.to_text()


def test_json_output(client_factory, operations):
    deployed(operations)
    options = DiffOptions(tags_only=True, output_format=OutputFormat.JSON)

    result = Differ(client_factory).diff_stack(proposed(tags={"Env": "prod"}), options)
    data = json.loads(result.format())

    assert data["stack_name"] == "vpc"
    assert data["has_changes"] is True
    assert data["options"]["tags_only"] is True
    assert data["tag_diffs"] == [
        {"key": "Env", "change_type": "MODIFY", "current_value": "dev", "proposed_value": "prod"}
    ]


def test_new_stack_diff_lists_everything_as_added():
    result = new_stack_diff(proposed(tags={"Env": "dev", "Team": "core"}))
    assert [d.key for d in result.tag_diffs] == ["Env", "Team"]
    assert result.template_change.has_changes
