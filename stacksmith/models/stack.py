"""
Stack Models

Dataclass models for configuration and resolved stacks.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass(frozen=True)
class LiteralValue:
    """A parameter value written directly in configuration."""

    value: Optional[str]

    def __repr__(self) -> str:
        return f"LiteralValue({self.value!r})"


@dataclass(frozen=True)
class ResolverValue:
    """A parameter value fetched at resolution time (e.g. another stack's output)."""

    kind: str
    config: Dict[str, Any] = field(default_factory=dict)

    def __repr__(self) -> str:
        return f"ResolverValue(kind={self.kind}, config={self.config})"


ListItem = Union[LiteralValue, ResolverValue]


@dataclass(frozen=True)
class ParameterList:
    """A list of literal and resolver values, joined with commas once resolved."""

    items: List[ListItem] = field(default_factory=list)

    def __repr__(self) -> str:
        return f"ParameterList(items={len(self.items)})"


ParameterValue = Union[LiteralValue, ResolverValue, ParameterList]


@dataclass
class ContextConfig:
    """Settings for a deployment context (environment)."""

    name: str
    region: str
    account: str = ""
    tags: Dict[str, str] = field(default_factory=dict)

    def __repr__(self) -> str:
        return f"ContextConfig(name={self.name}, region={self.region})"


@dataclass
class StackConfig:
    """Per-stack settings with the context override already merged in."""

    name: str
    template: str
    parameters: Dict[str, ParameterValue] = field(default_factory=dict)
    tags: Dict[str, str] = field(default_factory=dict)
    depends_on: List[str] = field(default_factory=list)
    capabilities: List[str] = field(default_factory=list)

    def __repr__(self) -> str:
        return f"StackConfig(name={self.name}, depends_on={self.depends_on})"


@dataclass
class Config:
    """Project-level configuration for one context."""

    project: str
    region: str
    tags: Dict[str, str] = field(default_factory=dict)
    context: Optional[ContextConfig] = None
    templates_directory: Optional[str] = None

    def __repr__(self) -> str:
        context_name = self.context.name if self.context else None
        return f"Config(project={self.project}, context={context_name})"


@dataclass(frozen=True)
class StackContext:
    """Where a stack is being deployed."""

    name: str
    region: str
    account: str = ""

    @classmethod
    def from_context_config(cls, context: ContextConfig) -> "StackContext":
        """Build a StackContext from context configuration."""
        return cls(name=context.name, region=context.region, account=context.account)


@dataclass(frozen=True)
class ResolvedStack:
    """A stack with its template, parameters and tags fully materialised."""

    name: str
    context: StackContext
    template_body: str
    parameters: Dict[str, str] = field(default_factory=dict)
    tags: Dict[str, str] = field(default_factory=dict)
    capabilities: List[str] = field(default_factory=list)
    dependencies: List[str] = field(default_factory=list)

    @property
    def region(self) -> str:
        """Region the stack deploys into."""
        return self.context.region

    def __repr__(self) -> str:
        return (
            f"ResolvedStack(name={self.name}, context={self.context.name}, "
            f"parameters={len(self.parameters)})"
        )


@dataclass
class ResolvedStacks:
    """A set of resolved stacks and the order to deploy them in."""

    context: str
    stacks: List[ResolvedStack] = field(default_factory=list)
    deployment_order: List[str] = field(default_factory=list)

    def get(self, name: str) -> Optional[ResolvedStack]:
        """Get a resolved stack by name."""
        for stack in self.stacks:
            if stack.name == name:
                return stack
        return None

    def ordered(self) -> List[ResolvedStack]:
        """Resolved stacks in deployment order."""
        by_name = {stack.name: stack for stack in self.stacks}
        return [by_name[name] for name in self.deployment_order]
