"""
CloudFormation Service

Thin wrapper over the boto3 CloudFormation client. Every botocore error is
wrapped once here with the operation and entity it concerns.
"""

import json
import threading
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from botocore.exceptions import ClientError

from stacksmith.constants import (
    CHANGESET_NAME_PREFIX,
    CHANGESET_POLL_INTERVAL,
    CHANGESET_TIMEOUT,
    NO_CHANGES_MARKERS,
    STACK_POLL_INTERVAL,
    STACK_OPERATION_TIMEOUT,
)
from stacksmith.exceptions import (
    AWSOperationError,
    ChangeSetError,
    NoChangesError,
    OperationCancelledError,
    OperationTimeoutError,
    StackNotFoundError,
    TemplateValidationError,
)
from stacksmith.models import (
    ChangeSetInfo,
    ResolvedStack,
    ResourceChange,
    StackEvent,
    StackInfo,
    is_terminal_status,
)

EventCallback = Callable[[StackEvent], None]


def _error_message(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Message", str(error))


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


def _is_not_found(error: ClientError) -> bool:
    return "does not exist" in _error_message(error)


def _is_no_changes(reason: str) -> bool:
    lowered = reason.lower()
    return any(marker in lowered for marker in NO_CHANGES_MARKERS)


def _key_values(items: Optional[List[Dict[str, Any]]], key: str, value: str) -> Dict[str, str]:
    return {item[key]: item.get(value, "") for item in items or [] if key in item}


class CloudFormationOperations:
    """CloudFormation operations for one region"""

    def __init__(
        self,
        client,
        region: str = "",
        stack_poll_interval: float = STACK_POLL_INTERVAL,
        changeset_poll_interval: float = CHANGESET_POLL_INTERVAL,
        changeset_timeout: float = CHANGESET_TIMEOUT,
        operation_timeout: float = STACK_OPERATION_TIMEOUT,
        stop_event: Optional[threading.Event] = None,
    ):
        """
        Initialize operations.

        Args:
            client: boto3 CloudFormation client
            region: Region the client talks to
            stack_poll_interval: Seconds between stack status polls
            changeset_poll_interval: Seconds between changeset status polls
            changeset_timeout: Seconds to wait for a changeset to be created
            operation_timeout: Seconds to wait for a stack operation to finish
            stop_event: Set from another thread to stop wait loops between polls
        """
        self.client = client
        self.region = region
        self.stack_poll_interval = stack_poll_interval
        self.changeset_poll_interval = changeset_poll_interval
        self.changeset_timeout = changeset_timeout
        self.operation_timeout = operation_timeout
        self.stop_event = stop_event or threading.Event()

    # Stacks

    def stack_exists(self, stack_name: str) -> bool:
        """Check if a stack exists."""
        try:
            self.client.describe_stacks(StackName=stack_name)
        except ClientError as e:
            if _is_not_found(e):
                return False
            raise AWSOperationError("check existence of stack", stack_name, _error_message(e))
        return True

    def get_stack(self, stack_name: str) -> StackInfo:
        """
        Get a stack's status, parameters, outputs and tags.

        Args:
            stack_name: Stack name or id

        Returns:
            StackInfo without the template body

        Raises:
            StackNotFoundError: If the stack does not exist
            AWSOperationError: If the call fails
        """
        try:
            response = self.client.describe_stacks(StackName=stack_name)
        except ClientError as e:
            if _is_not_found(e):
                raise StackNotFoundError(stack_name)
            raise AWSOperationError("describe stack", stack_name, _error_message(e))

        stacks = response.get("Stacks") or []
        if not stacks:
            raise StackNotFoundError(stack_name)
        stack = stacks[0]

        return StackInfo(
            name=stack.get("StackName", stack_name),
            status=stack.get("StackStatus", ""),
            stack_id=stack.get("StackId", ""),
            description=stack.get("Description", ""),
            created_time=stack.get("CreationTime"),
            updated_time=stack.get("LastUpdatedTime"),
            parameters=_key_values(stack.get("Parameters"), "ParameterKey", "ParameterValue"),
            outputs=_key_values(stack.get("Outputs"), "OutputKey", "OutputValue"),
            tags=_key_values(stack.get("Tags"), "Key", "Value"),
        )

    def get_template(self, stack_name: str) -> str:
        """Get the deployed template body of a stack."""
        try:
            response = self.client.get_template(StackName=stack_name, TemplateStage="Original")
        except ClientError as e:
            if _is_not_found(e):
                raise StackNotFoundError(stack_name)
            raise AWSOperationError("get template for stack", stack_name, _error_message(e))

        body = response.get("TemplateBody", "")
        # boto3 decodes JSON templates into dictionaries
        if not isinstance(body, str):
            body = json.dumps(body, indent=2)
        return body

    def describe_stack(self, stack_name: str) -> StackInfo:
        """Get a stack's details including its deployed template."""
        info = self.get_stack(stack_name)
        info.template_body = self.get_template(stack_name)
        return info

    def validate_template(self, template_body: str) -> Dict[str, Any]:
        """
        Validate a template with CloudFormation.

        Returns:
            The validate_template response (Description, Parameters, Capabilities)

        Raises:
            TemplateValidationError: If CloudFormation rejects the template
        """
        try:
            return self.client.validate_template(TemplateBody=template_body)
        except ClientError as e:
            raise TemplateValidationError("validate template", "template", _error_message(e))

    def create_stack(self, stack: ResolvedStack, capabilities: List[str]) -> str:
        """
        Start creating a stack.

        Returns:
            The new stack's id
        """
        try:
            response = self.client.create_stack(
                StackName=stack.name,
                TemplateBody=stack.template_body,
                Parameters=self._parameters(stack.parameters),
                Tags=self._tags(stack.tags),
                Capabilities=list(capabilities),
            )
        except ClientError as e:
            raise AWSOperationError("create stack", stack.name, _error_message(e))
        return response.get("StackId", stack.name)

    def delete_stack(self, stack_name: str) -> None:
        """Start deleting a stack."""
        try:
            self.client.delete_stack(StackName=stack_name)
        except ClientError as e:
            raise AWSOperationError("delete stack", stack_name, _error_message(e))

    # Changesets

    def create_changeset(self, stack: ResolvedStack) -> ChangeSetInfo:
        """
        Create a changeset for a stack and wait until it is ready.

        A changeset that fails to be created is deleted before the error
        is raised.

        Args:
            stack: Resolved stack to compare against the deployed one

        Returns:
            ChangeSetInfo with proposed resource changes

        Raises:
            NoChangesError: If the changeset contains no changes
            ChangeSetError: If the changeset cannot be created
        """
        changeset_type = "UPDATE" if self.stack_exists(stack.name) else "CREATE"
        changeset_name = f"{CHANGESET_NAME_PREFIX}-{int(time.time())}-{uuid.uuid4().hex[:8]}"

        request: Dict[str, Any] = {
            "StackName": stack.name,
            "ChangeSetName": changeset_name,
            "TemplateBody": stack.template_body,
            "Parameters": self._parameters(stack.parameters),
            "ChangeSetType": changeset_type,
            "Tags": self._tags(stack.tags),
        }
        if stack.capabilities:
            request["Capabilities"] = list(stack.capabilities)

        try:
            response = self.client.create_change_set(**request)
        except ClientError as e:
            if _is_no_changes(_error_message(e)):
                raise NoChangesError(stack.name, _error_message(e))
            raise ChangeSetError("create changeset for", stack.name, _error_message(e))

        changeset_id = response["Id"]
        try:
            return self._wait_for_changeset(changeset_id, stack.name)
        except (ChangeSetError, OperationTimeoutError, OperationCancelledError):
            self.delete_changeset(changeset_id)
            raise

    def describe_changeset(self, changeset_id: str, stack_name: str = "") -> ChangeSetInfo:
        """Describe a changeset and its resource changes (all pages)."""
        changes: List[ResourceChange] = []
        request = {"ChangeSetName": changeset_id}
        if stack_name:
            request["StackName"] = stack_name

        while True:
            try:
                response = self.client.describe_change_set(**request)
            except ClientError as e:
                raise ChangeSetError("describe changeset", changeset_id, _error_message(e))

            changes.extend(
                self._resource_change(change.get("ResourceChange", {}))
                for change in response.get("Changes", [])
                if change.get("Type", "Resource") == "Resource"
            )
            next_token = response.get("NextToken")
            if not next_token:
                break
            request["NextToken"] = next_token

        return ChangeSetInfo(
            changeset_id=response.get("ChangeSetId", changeset_id),
            stack_name=response.get("StackName", stack_name),
            status=response.get("Status", ""),
            status_reason=response.get("StatusReason", ""),
            changes=changes,
        )

    def execute_changeset(self, changeset_id: str) -> None:
        """Start executing a changeset."""
        try:
            self.client.execute_change_set(ChangeSetName=changeset_id)
        except ClientError as e:
            raise ChangeSetError("execute changeset", changeset_id, _error_message(e))

    def delete_changeset(self, changeset_id: str) -> None:
        """Delete a changeset. A changeset that is already gone counts as deleted."""
        try:
            self.client.delete_change_set(ChangeSetName=changeset_id)
        except ClientError as e:
            if _error_code(e) == "ChangeSetNotFound" or _is_not_found(e):
                return
            raise ChangeSetError("delete changeset", changeset_id, _error_message(e))

    def _wait_for_changeset(self, changeset_id: str, stack_name: str) -> ChangeSetInfo:
        deadline = time.monotonic() + self.changeset_timeout
        while True:
            info = self.describe_changeset(changeset_id, stack_name)
            if info.status == "CREATE_COMPLETE":
                return info
            if info.status == "FAILED":
                if _is_no_changes(info.status_reason):
                    raise NoChangesError(stack_name, info.status_reason)
                raise ChangeSetError(
                    "create changeset for", stack_name, info.status_reason or "Changeset failed"
                )
            if time.monotonic() >= deadline:
                raise OperationTimeoutError("changeset creation", stack_name, self.changeset_timeout)
            self._pause(self.changeset_poll_interval, f"changeset for '{stack_name}'")

    # Events

    def describe_stack_events(self, stack_name: str) -> List[StackEvent]:
        """Get the most recent stack events, newest first."""
        try:
            response = self.client.describe_stack_events(StackName=stack_name)
        except ClientError as e:
            if _is_not_found(e):
                raise StackNotFoundError(stack_name)
            raise AWSOperationError("describe events for stack", stack_name, _error_message(e))

        return [
            StackEvent(
                event_id=event.get("EventId", ""),
                timestamp=event["Timestamp"],
                resource_type=event.get("ResourceType", ""),
                logical_resource_id=event.get("LogicalResourceId", ""),
                physical_resource_id=event.get("PhysicalResourceId", ""),
                resource_status=event.get("ResourceStatus", ""),
                resource_status_reason=event.get("ResourceStatusReason", ""),
            )
            for event in response.get("StackEvents", [])
        ]

    def wait_for_stack_operation(
        self,
        stack_name: str,
        start_time: datetime,
        callback: Optional[EventCallback] = None,
        missing_status: Optional[str] = None,
    ) -> str:
        """
        Poll a stack until its current operation reaches a terminal status.

        Events newer than start_time are passed to the callback once each,
        oldest first.

        Args:
            stack_name: Stack name or id (use the id to follow deletions)
            start_time: Only report events after this time
            callback: Called for every new event
            missing_status: Status to report if the stack disappears (e.g. DELETE_COMPLETE)

        Returns:
            The terminal stack status

        Raises:
            OperationTimeoutError: If the operation does not finish in time
            OperationCancelledError: If the stop event is set
        """
        if start_time.tzinfo is None:
            start_time = start_time.replace(tzinfo=timezone.utc)
        seen = set()
        deadline = time.monotonic() + self.operation_timeout

        while True:
            try:
                status = self.get_stack(stack_name).status
                events = self.describe_stack_events(stack_name)
            except StackNotFoundError:
                if missing_status is None:
                    raise
                return missing_status

            for event in reversed(events):
                if event.event_id in seen or event.timestamp < start_time:
                    continue
                seen.add(event.event_id)
                if callback:
                    callback(event)

            if is_terminal_status(status):
                return status
            if time.monotonic() >= deadline:
                raise OperationTimeoutError("stack operation", stack_name, self.operation_timeout)
            self._pause(self.stack_poll_interval, f"stack '{stack_name}'")

    # Helpers

    def _pause(self, seconds: float, waiting_for: str) -> None:
        if self.stop_event.wait(seconds):
            raise OperationCancelledError(f"Stopped waiting for {waiting_for}")

    @staticmethod
    def _parameters(parameters: Dict[str, str]) -> List[Dict[str, str]]:
        return [
            {"ParameterKey": key, "ParameterValue": value}
            for key, value in sorted(parameters.items())
        ]

    @staticmethod
    def _tags(tags: Dict[str, str]) -> List[Dict[str, str]]:
        return [{"Key": key, "Value": value} for key, value in sorted(tags.items())]

    @staticmethod
    def _resource_change(change: Dict[str, Any]) -> ResourceChange:
        details = []
        for detail in change.get("Details", []):
            target = detail.get("Target")
            if not target:
                continue
            text = f"Property: {target.get('Name', '')}"
            if target.get("Attribute"):
                text += f" ({target['Attribute']})"
            details.append(text)

        return ResourceChange(
            action=change.get("Action", ""),
            resource_type=change.get("ResourceType", ""),
            logical_id=change.get("LogicalResourceId", ""),
            physical_id=change.get("PhysicalResourceId", ""),
            replacement=change.get("Replacement", ""),
            details=details,
        )
