import pytest

from stacksmith.core import ParameterResolver, StackResolver
from stacksmith.exceptions import (
    CircularDependencyError,
    ParameterResolutionError,
    ResolutionError,
    StackConfigNotFoundError,
)
from stacksmith.models import LiteralValue, ResolverValue, StackConfig

from conftest import FakeConfigProvider, InMemoryFileResolver


def build_resolver(provider, client_factory, files):
    return StackResolver(
        provider, ParameterResolver(client_factory), file_resolver=InMemoryFileResolver(files)
    )


def test_resolve_stack_merges_tags_with_stack_winning(dev_context, client_factory):
    provider = FakeConfigProvider(
        contexts={"dev": dev_context},
        stacks={
            "web": StackConfig(
                name="web",
                template="file:///t/web.yaml",
                tags={"Project": "override", "Component": "frontend"},
            )
        },
    )
    resolver = build_resolver(provider, client_factory, {"file:///t/web.yaml": "Resources: {}\n"})

    stack = resolver.resolve_stack("dev", "web")

    assert stack.tags == {"Project": "override", "Environment": "dev", "Component": "frontend"}
    assert stack.region == "us-east-1"
    assert stack.context.account == "123456789012"


def test_resolve_stack_renders_template_variables(dev_context, client_factory):
    template = "Description: {{ StackName }} in {{ Context }} ({{ Region }}/{{ Account }})\n"
    provider = FakeConfigProvider(
        contexts={"dev": dev_context},
        stacks={"web": StackConfig(name="web", template="file:///t/web.yaml")},
    )
    resolver = build_resolver(provider, client_factory, {"file:///t/web.yaml": template})

    stack = resolver.resolve_stack("dev", "web")

    assert stack.template_body == "Description: web in dev (us-east-1/123456789012)\n"


def test_resolve_stack_resolves_parameters(dev_context, client_factory, operations):
    operations.add_stack("vpc", outputs={"VpcId": "vpc-1"})
    provider = FakeConfigProvider(
        contexts={"dev": dev_context},
        stacks={
            "app": StackConfig(
                name="app",
                template="file:///t/app.yaml",
                parameters={
                    "Size": LiteralValue("small"),
                    "VpcId": ResolverValue(
                        "stack-output", {"stack_name": "vpc", "output_key": "VpcId"}
                    ),
                },
                capabilities=["CAPABILITY_IAM"],
                depends_on=["vpc"],
            )
        },
    )
    resolver = build_resolver(provider, client_factory, {"file:///t/app.yaml": "{}"})

    stack = resolver.resolve_stack("dev", "app")

    assert stack.parameters == {"Size": "small", "VpcId": "vpc-1"}
    assert stack.capabilities == ["CAPABILITY_IAM"]
    assert stack.dependencies == ["vpc"]


def test_parameter_failure_is_wrapped_once(dev_context, client_factory):
    provider = FakeConfigProvider(
        contexts={"dev": dev_context},
        stacks={
            "app": StackConfig(
                name="app",
                template="file:///t/app.yaml",
                parameters={
                    "VpcId": ResolverValue(
                        "stack-output", {"stack_name": "vpc", "output_key": "VpcId"}
                    )
                },
            )
        },
    )
    resolver = build_resolver(provider, client_factory, {"file:///t/app.yaml": "{}"})

    with pytest.raises(ParameterResolutionError) as exc_info:
        resolver.resolve_stack("dev", "app")

    error = exc_info.value
    assert error.parameter_name == "VpcId"
    assert error.stack_name == "app"
    assert error.context == "Stack 'vpc' does not exist: Output 'VpcId' was requested from it"
    assert error.format_message().count("Context:") == 1


def test_undefined_template_variable_fails(dev_context, client_factory):
    provider = FakeConfigProvider(
        contexts={"dev": dev_context},
        stacks={"web": StackConfig(name="web", template="file:///t/web.yaml")},
    )
    resolver = build_resolver(provider, client_factory, {"file:///t/web.yaml": "{{ Missing }}"})

    with pytest.raises(ResolutionError, match="Failed to process template"):
        resolver.resolve_stack("dev", "web")


def test_resolve_stacks_orders_by_dependency(stack_resolver):
    resolved = stack_resolver.resolve_stacks("dev", ["app", "vpc", "database"])

    assert resolved.deployment_order == ["vpc", "database", "app"]
    assert [s.name for s in resolved.ordered()] == ["vpc", "database", "app"]
    assert resolved.get("database").dependencies == ["vpc"]
    assert resolved.get("cache") is None


def test_resolve_stacks_ignores_dependencies_outside_the_set(stack_resolver):
    resolved = stack_resolver.resolve_stacks("dev", ["app"])
    assert resolved.deployment_order == ["app"]


def test_get_dependency_order_uses_configuration_only(three_tier_provider, client_factory):
    # No template files: ordering must not read templates
    resolver = build_resolver(three_tier_provider, client_factory, {})
    order = resolver.get_dependency_order("dev", ["app", "vpc", "database"])
    assert order == ["vpc", "database", "app"]


def test_get_dependency_order_unknown_stack(stack_resolver):
    with pytest.raises(StackConfigNotFoundError):
        stack_resolver.get_dependency_order("dev", ["vpc", "cache"])


def test_get_dependency_order_cycle(dev_context, client_factory):
    provider = FakeConfigProvider(
        contexts={"dev": dev_context},
        stacks={
            "a": StackConfig(name="a", template="file:///a", depends_on=["b"]),
            "b": StackConfig(name="b", template="file:///b", depends_on=["a"]),
        },
    )
    resolver = build_resolver(provider, client_factory, {})
    with pytest.raises(CircularDependencyError):
        resolver.get_dependency_order("dev", ["a", "b"])
