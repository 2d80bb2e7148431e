from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from stacksmith.exceptions import (
    AWSOperationError,
    ChangeSetError,
    NoChangesError,
    OperationCancelledError,
    OperationTimeoutError,
    StackNotFoundError,
    TemplateValidationError,
)
from stacksmith.services import CloudFormationOperations

from conftest import make_stack

START = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def client_error(message, code="ValidationError", operation="DescribeStacks"):
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


def not_found(name="vpc"):
    return client_error(f"Stack with id {name} does not exist")


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def ops(client):
    return CloudFormationOperations(
        client,
        region="us-east-1",
        stack_poll_interval=0,
        changeset_poll_interval=0,
        changeset_timeout=5,
        operation_timeout=5,
    )


def describe_response(status="CREATE_COMPLETE", **extra):
    stack = {"StackName": "vpc", "StackId": "arn:vpc/1", "StackStatus": status}
    stack.update(extra)
    return {"Stacks": [stack]}


def event(event_id, minutes, status="CREATE_IN_PROGRESS"):
    return {
        "EventId": event_id,
        "Timestamp": START + timedelta(minutes=minutes),
        "ResourceType": "AWS::EC2::VPC",
        "LogicalResourceId": "Vpc",
        "ResourceStatus": status,
    }


class TestStacks:
    def test_stack_exists(self, ops, client):
        client.describe_stacks.return_value = describe_response()
        assert ops.stack_exists("vpc")

        client.describe_stacks.side_effect = not_found()
        assert not ops.stack_exists("vpc")

    def test_stack_exists_other_errors_are_wrapped(self, ops, client):
        client.describe_stacks.side_effect = client_error("Rate exceeded", code="Throttling")
        with pytest.raises(AWSOperationError) as exc_info:
            ops.stack_exists("vpc")
        assert exc_info.value.reason == "Rate exceeded"

    def test_get_stack(self, ops, client):
        client.describe_stacks.return_value = describe_response(
            Parameters=[{"ParameterKey": "Cidr", "ParameterValue": "10.0.0.0/16"}],
            Outputs=[{"OutputKey": "VpcId", "OutputValue": "vpc-1"}],
            Tags=[{"Key": "Env", "Value": "dev"}],
        )
        info = ops.get_stack("vpc")
        assert info.stack_id == "arn:vpc/1"
        assert info.parameters == {"Cidr": "10.0.0.0/16"}
        assert info.outputs == {"VpcId": "vpc-1"}
        assert info.tags == {"Env": "dev"}

    def test_get_missing_stack(self, ops, client):
        client.describe_stacks.side_effect = not_found()
        with pytest.raises(StackNotFoundError):
            ops.get_stack("vpc")

    def test_json_template_is_serialised(self, ops, client):
        client.describe_stacks.return_value = describe_response()
        client.get_template.return_value = {"TemplateBody": {"Resources": {}}}
        info = ops.describe_stack("vpc")
        assert info.template_body == '{\n  "Resources": {}\n}'

    def test_validate_template_error(self, ops, client):
        client.validate_template.side_effect = client_error("Template format error: bad")
        with pytest.raises(TemplateValidationError) as exc_info:
            ops.validate_template("{}")
        assert exc_info.value.reason == "Template format error: bad"

    def test_create_stack_sends_sorted_parameters_and_tags(self, ops, client):
        client.create_stack.return_value = {"StackId": "arn:vpc/2"}
        stack = make_stack(parameters={"B": "2", "A": "1"}, tags={"Env": "dev"})

        assert ops.create_stack(stack, ["CAPABILITY_IAM"]) == "arn:vpc/2"
        kwargs = client.create_stack.call_args.kwargs
        assert kwargs["Parameters"] == [
            {"ParameterKey": "A", "ParameterValue": "1"},
            {"ParameterKey": "B", "ParameterValue": "2"},
        ]
        assert kwargs["Tags"] == [{"Key": "Env", "Value": "dev"}]
        assert kwargs["Capabilities"] == ["CAPABILITY_IAM"]


class TestChangesets:
    def test_update_changeset(self, ops, client):
        client.describe_stacks.return_value = describe_response()
        client.create_change_set.return_value = {"Id": "cs-1"}
        client.describe_change_set.side_effect = [
            {"Status": "CREATE_PENDING", "Changes": []},
            {
                "ChangeSetId": "cs-1",
                "Status": "CREATE_COMPLETE",
                "Changes": [
                    {
                        "Type": "Resource",
                        "ResourceChange": {
                            "Action": "Modify",
                            "LogicalResourceId": "Vpc",
                            "ResourceType": "AWS::EC2::VPC",
                            "Replacement": "True",
                            "Details": [{"Target": {"Name": "CidrBlock", "Attribute": "Properties"}}],
                        },
                    }
                ],
            },
        ]

        changeset = ops.create_changeset(make_stack(capabilities=["CAPABILITY_IAM"]))

        request = client.create_change_set.call_args.kwargs
        assert request["ChangeSetType"] == "UPDATE"
        assert request["ChangeSetName"].startswith("stacksmith-")
        assert request["Capabilities"] == ["CAPABILITY_IAM"]
        assert changeset.changeset_id == "cs-1"
        assert changeset.changes[0].requires_replacement
        assert changeset.changes[0].details == ["Property: CidrBlock (Properties)"]

    def test_create_changeset_for_new_stack(self, ops, client):
        client.describe_stacks.side_effect = not_found()
        client.create_change_set.return_value = {"Id": "cs-1"}
        client.describe_change_set.return_value = {"Status": "CREATE_COMPLETE", "Changes": []}

        ops.create_changeset(make_stack())

        request = client.create_change_set.call_args.kwargs
        assert request["ChangeSetType"] == "CREATE"
        assert "Capabilities" not in request

    def test_changeset_without_changes(self, ops, client):
        client.describe_stacks.return_value = describe_response()
        client.create_change_set.return_value = {"Id": "cs-1"}
        client.describe_change_set.return_value = {
            "Status": "FAILED",
            "StatusReason": "The submitted information didn't contain changes.",
        }

        with pytest.raises(NoChangesError):
            ops.create_changeset(make_stack())
        client.delete_change_set.assert_called_once_with(ChangeSetName="cs-1")

    def test_failed_changeset_is_deleted(self, ops, client):
        client.describe_stacks.return_value = describe_response()
        client.create_change_set.return_value = {"Id": "cs-1"}
        client.describe_change_set.return_value = {"Status": "FAILED", "StatusReason": "Bad template"}

        with pytest.raises(ChangeSetError) as exc_info:
            ops.create_changeset(make_stack())
        assert exc_info.value.reason == "Bad template"
        client.delete_change_set.assert_called_once_with(ChangeSetName="cs-1")

    def test_changeset_timeout(self, ops, client):
        ops.changeset_timeout = 0
        client.describe_stacks.return_value = describe_response()
        client.create_change_set.return_value = {"Id": "cs-1"}
        client.describe_change_set.return_value = {"Status": "CREATE_IN_PROGRESS"}

        with pytest.raises(OperationTimeoutError):
            ops.create_changeset(make_stack())
        client.delete_change_set.assert_called_once_with(ChangeSetName="cs-1")

    def test_no_updates_on_create_call(self, ops, client):
        client.describe_stacks.return_value = describe_response()
        client.create_change_set.side_effect = client_error(
            "No updates are to be performed.", operation="CreateChangeSet"
        )
        with pytest.raises(NoChangesError):
            ops.create_changeset(make_stack())

    def test_describe_changeset_follows_pages(self, ops, client):
        change = {"Type": "Resource", "ResourceChange": {"Action": "Add", "LogicalResourceId": "A"}}
        client.describe_change_set.side_effect = [
            {"Status": "CREATE_COMPLETE", "Changes": [change], "NextToken": "t1"},
            {"Status": "CREATE_COMPLETE", "Changes": [change]},
        ]
        info = ops.describe_changeset("cs-1", "vpc")
        assert len(info.changes) == 2
        assert client.describe_change_set.call_args.kwargs["NextToken"] == "t1"

    def test_delete_missing_changeset_is_ok(self, ops, client):
        client.delete_change_set.side_effect = client_error(
            "ChangeSet cs-1 does not exist", code="ChangeSetNotFound"
        )
        ops.delete_changeset("cs-1")

    def test_delete_changeset_other_error(self, ops, client):
        client.delete_change_set.side_effect = client_error("Access denied", code="AccessDenied")
        with pytest.raises(ChangeSetError):
            ops.delete_changeset("cs-1")


class TestWaitForStackOperation:
    def test_reports_new_events_once_oldest_first(self, ops, client):
        client.describe_stacks.side_effect = [
            describe_response("CREATE_IN_PROGRESS"),
            describe_response("CREATE_COMPLETE"),
        ]
        client.describe_stack_events.side_effect = [
            {"StackEvents": [event("e2", 2), event("e1", 1), event("old", -5)]},
            {"StackEvents": [event("e3", 3, "CREATE_COMPLETE"), event("e2", 2), event("e1", 1)]},
        ]
        seen = []

        status = ops.wait_for_stack_operation("vpc", START, lambda e: seen.append(e.event_id))

        assert status == "CREATE_COMPLETE"
        assert seen == ["e1", "e2", "e3"]

    def test_vanished_stack_uses_missing_status(self, ops, client):
        client.describe_stacks.side_effect = not_found()
        status = ops.wait_for_stack_operation("arn:vpc/1", START, missing_status="DELETE_COMPLETE")
        assert status == "DELETE_COMPLETE"

    def test_vanished_stack_without_missing_status(self, ops, client):
        client.describe_stacks.side_effect = not_found()
        with pytest.raises(StackNotFoundError):
            ops.wait_for_stack_operation("vpc", START)

    def test_timeout(self, ops, client):
        ops.operation_timeout = 0
        client.describe_stacks.return_value = describe_response("UPDATE_IN_PROGRESS")
        client.describe_stack_events.return_value = {"StackEvents": []}
        with pytest.raises(OperationTimeoutError):
            ops.wait_for_stack_operation("vpc", START)

    def test_stop_event_cancels_wait(self, ops, client):
        ops.stop_event.set()
        client.describe_stacks.return_value = describe_response("UPDATE_IN_PROGRESS")
        client.describe_stack_events.return_value = {"StackEvents": []}
        with pytest.raises(OperationCancelledError):
            ops.wait_for_stack_operation("vpc", START)

    def test_interrupt_propagates_out_of_wait(self, ops, client):
        ops.stop_event = MagicMock()
        ops.stop_event.wait.side_effect = KeyboardInterrupt
        client.describe_stacks.return_value = describe_response("UPDATE_IN_PROGRESS")
        client.describe_stack_events.return_value = {"StackEvents": []}
        with pytest.raises(KeyboardInterrupt):
            ops.wait_for_stack_operation("vpc", START)
