"""Shared fakes and fixtures for Stacksmith tests."""

import io
from typing import Dict, List, Optional

import pytest
from rich.console import Console

from stacksmith.core import ConfigProvider, ParameterResolver, StackResolver
from stacksmith.exceptions import (
    ContextNotFoundError,
    NoChangesError,
    StackConfigNotFoundError,
    StackNotFoundError,
)
from stacksmith.logger import DeployLogger
from stacksmith.models import (
    ChangeSetInfo,
    Config,
    ContextConfig,
    ResolvedStack,
    StackConfig,
    StackContext,
    StackInfo,
    ValidationResult,
)
from stacksmith.services import ConfirmationPrompter


class FakeConfigProvider(ConfigProvider):
    """Config provider backed by dictionaries."""

    def __init__(
        self,
        contexts: Dict[str, ContextConfig],
        stacks: Dict[str, StackConfig],
        tags: Optional[Dict[str, str]] = None,
    ):
        self.contexts = contexts
        self.stacks = stacks
        self.tags = tags or {}

    def load_config(self, context: str) -> Config:
        if context not in self.contexts:
            raise ContextNotFoundError(context, self.contexts)
        return Config(
            project="test",
            region="us-east-1",
            tags=dict(self.tags),
            context=self.contexts[context],
        )

    def get_stack(self, stack_name: str, context: str) -> StackConfig:
        if stack_name not in self.stacks:
            raise StackConfigNotFoundError(stack_name, self.stacks)
        return self.stacks[stack_name]

    def list_stacks(self, context: str) -> List[str]:
        return list(self.stacks)

    def list_contexts(self) -> List[str]:
        return sorted(self.contexts)

    def validate(self) -> ValidationResult:
        return ValidationResult(is_valid=True)


class InMemoryFileResolver:
    """Template reader serving bodies from a dictionary."""

    def __init__(self, files: Dict[str, str]):
        self.files = files

    def resolve(self, uri: str) -> str:
        return self.files[uri]


class FakeOperations:
    """
    In-memory stand-in for CloudFormationOperations.

    Records every mutating call in ``calls`` as (method, argument) tuples.
    """

    def __init__(self, region: str = "us-east-1"):
        self.region = region
        self.stacks: Dict[str, StackInfo] = {}
        self.calls: List[tuple] = []
        self.changeset: Optional[ChangeSetInfo] = None
        self.changeset_error: Optional[Exception] = None
        self.final_status: Dict[str, str] = {}
        self.validation_error: Optional[Exception] = None
        self.events_to_send: List = []

    def add_stack(self, name: str, **kwargs) -> StackInfo:
        kwargs.setdefault("status", "CREATE_COMPLETE")
        kwargs.setdefault("stack_id", f"arn:aws:cloudformation:{self.region}:123:stack/{name}/1")
        info = StackInfo(name=name, **kwargs)
        self.stacks[name] = info
        return info

    def stack_exists(self, stack_name: str) -> bool:
        return stack_name in self.stacks

    def get_stack(self, stack_name: str) -> StackInfo:
        if stack_name not in self.stacks:
            raise StackNotFoundError(stack_name)
        return self.stacks[stack_name]

    def describe_stack(self, stack_name: str) -> StackInfo:
        return self.get_stack(stack_name)

    def validate_template(self, template_body: str) -> dict:
        self.calls.append(("validate_template", template_body))
        if self.validation_error:
            raise self.validation_error
        return {"Description": "test template"}

    def create_stack(self, stack: ResolvedStack, capabilities: List[str]) -> str:
        self.calls.append(("create_stack", stack.name, list(capabilities)))
        return f"arn:aws:cloudformation:{self.region}:123:stack/{stack.name}/2"

    def delete_stack(self, stack_name: str) -> None:
        self.calls.append(("delete_stack", stack_name))

    def create_changeset(self, stack: ResolvedStack) -> ChangeSetInfo:
        self.calls.append(("create_changeset", stack.name))
        if self.changeset_error:
            raise self.changeset_error
        if self.changeset is None:
            raise NoChangesError(stack.name, "The submitted information didn't contain changes.")
        return self.changeset

    def execute_changeset(self, changeset_id: str) -> None:
        self.calls.append(("execute_changeset", changeset_id))

    def delete_changeset(self, changeset_id: str) -> None:
        self.calls.append(("delete_changeset", changeset_id))

    def wait_for_stack_operation(self, stack_name, start_time, callback=None, missing_status=None):
        self.calls.append(("wait", stack_name, missing_status))
        for event in self.events_to_send:
            if callback:
                callback(event)
        return self.final_status.get(stack_name, missing_status or "UPDATE_COMPLETE")

    def called(self, method: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == method]


class FakeClientFactory:
    """Hands out one FakeOperations per region."""

    def __init__(self, operations: Optional[FakeOperations] = None):
        self.operations: Dict[str, FakeOperations] = {}
        if operations is not None:
            self.operations[operations.region] = operations
        self.requested_regions: List[str] = []

    def get_operations(self, region: str) -> FakeOperations:
        self.requested_regions.append(region)
        if region not in self.operations:
            self.operations[region] = FakeOperations(region)
        return self.operations[region]


class ScriptedPrompter(ConfirmationPrompter):
    """Answers confirmations from a list and records the questions."""

    def __init__(self, *answers: bool):
        self.answers = list(answers)
        self.messages: List[str] = []

    def confirm(self, message: str) -> bool:
        self.messages.append(message)
        return self.answers.pop(0) if self.answers else False


def make_stack(name: str = "vpc", **kwargs) -> ResolvedStack:
    """Build a resolved stack in the dev context."""
    kwargs.setdefault("context", StackContext("dev", "us-east-1", "123456789012"))
    kwargs.setdefault("template_body", "Resources: {}\n")
    return ResolvedStack(name=name, **kwargs)


@pytest.fixture
def console_output():
    """StringIO capturing console output."""
    return io.StringIO()


@pytest.fixture
def quiet_logger(console_output):
    """Logger printing to a StringIO and writing no files."""
    console = Console(file=console_output, width=200, color_system=None)
    logger = DeployLogger("dev", "test", console=console)
    yield logger
    logger.close()


@pytest.fixture
def operations():
    return FakeOperations()


@pytest.fixture
def client_factory(operations):
    return FakeClientFactory(operations)


@pytest.fixture
def dev_context():
    return ContextConfig(
        name="dev",
        region="us-east-1",
        account="123456789012",
        tags={"Project": "shop", "Environment": "dev"},
    )


@pytest.fixture
def three_tier_provider(dev_context):
    """vpc <- database <- app, with templates served from memory."""
    return FakeConfigProvider(
        contexts={"dev": dev_context},
        stacks={
            "vpc": StackConfig(name="vpc", template="file:///t/vpc.yaml"),
            "database": StackConfig(
                name="database", template="file:///t/db.yaml", depends_on=["vpc"]
            ),
            "app": StackConfig(
                name="app", template="file:///t/app.yaml", depends_on=["database"]
            ),
        },
    )


@pytest.fixture
def template_files():
    return {
        "file:///t/vpc.yaml": "Resources:\n  Vpc:\n    Type: AWS::EC2::VPC\n",
        "file:///t/db.yaml": "Resources:\n  Db:\n    Type: AWS::RDS::DBInstance\n",
        "file:///t/app.yaml": "Resources:\n  App:\n    Type: AWS::ECS::Service\n",
    }


@pytest.fixture
def stack_resolver(three_tier_provider, client_factory, template_files):
    return StackResolver(
        three_tier_provider,
        ParameterResolver(client_factory),
        file_resolver=InMemoryFileResolver(template_files),
    )
