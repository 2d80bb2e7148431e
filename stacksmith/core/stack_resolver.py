"""Stack resolution: configuration into deployable stacks"""

from typing import Dict, Iterable, List, Optional

from stacksmith.core.config_loader import ConfigProvider
from stacksmith.core.dependency_graph import dependency_order
from stacksmith.core.file_resolver import FileSystemResolver
from stacksmith.core.parameter_resolver import ParameterResolver
from stacksmith.core.template_processor import TemplateProcessor
from stacksmith.exceptions import ParameterResolutionError, StacksmithError
from stacksmith.models import ResolvedStack, ResolvedStacks, StackConfig, StackContext


class StackResolver:
    """
    Turns configured stacks into ResolvedStack instances.

    Collaborators are passed in so tests can swap any of them for fakes.
    """

    def __init__(
        self,
        config_provider: ConfigProvider,
        parameter_resolver: ParameterResolver,
        file_resolver: Optional[FileSystemResolver] = None,
        template_processor: Optional[TemplateProcessor] = None,
    ):
        """
        Initialize the resolver.

        Args:
            config_provider: Source of context and stack configuration
            parameter_resolver: Resolves parameter values
            file_resolver: Reads template files (default: local file system)
            template_processor: Renders templates (default: Jinja2)
        """
        self.config_provider = config_provider
        self.parameter_resolver = parameter_resolver
        self.file_resolver = file_resolver or FileSystemResolver()
        self.template_processor = template_processor or TemplateProcessor()

    def get_stack_context(self, context: str) -> StackContext:
        """Get the name, region and account of a context."""
        config = self.config_provider.load_config(context)
        return StackContext.from_context_config(config.context)

    def resolve_stack(self, context: str, stack_name: str) -> ResolvedStack:
        """
        Resolve one stack for a context.

        Args:
            context: Context name
            stack_name: Stack name

        Returns:
            ResolvedStack with rendered template, parameters and merged tags

        Raises:
            ConfigurationError: If configuration or template is missing
            ParameterResolutionError: If a parameter cannot be resolved
        """
        config = self.config_provider.load_config(context)
        stack_config = self.config_provider.get_stack(stack_name, context)
        stack_context = StackContext.from_context_config(config.context)

        raw_template = self.file_resolver.resolve(stack_config.template)
        template_body = self.template_processor.process(
            raw_template, self._template_variables(stack_config, stack_context)
        )

        parameters = self._resolve_parameters(stack_config, stack_context.region)

        # global < context < stack < stack context override (already merged)
        tags: Dict[str, str] = dict(config.context.tags)
        tags.update(stack_config.tags)

        return ResolvedStack(
            name=stack_config.name,
            context=stack_context,
            template_body=template_body,
            parameters=parameters,
            tags=tags,
            capabilities=list(stack_config.capabilities),
            dependencies=list(stack_config.depends_on),
        )

    def resolve_stacks(self, context: str, stack_names: Iterable[str]) -> ResolvedStacks:
        """
        Resolve several stacks and order them by dependency.

        Dependencies on stacks outside the requested set are not an error.

        Raises:
            CircularDependencyError: If the requested stacks form a cycle
        """
        names = list(dict.fromkeys(stack_names))
        stacks = [self.resolve_stack(context, name) for name in names]
        by_name = {stack.name: stack for stack in stacks}
        order = dependency_order(by_name, lambda name: by_name[name].dependencies)
        return ResolvedStacks(context=context, stacks=stacks, deployment_order=order)

    def get_dependency_order(self, context: str, stack_names: Iterable[str]) -> List[str]:
        """
        Order stacks by dependency without resolving templates or parameters.

        Raises:
            StackConfigNotFoundError: If a stack is not configured
            CircularDependencyError: If the stacks form a cycle
        """
        configs = {
            name: self.config_provider.get_stack(name, context)
            for name in dict.fromkeys(stack_names)
        }
        return dependency_order(configs, lambda name: configs[name].depends_on)

    def _resolve_parameters(self, stack_config: StackConfig, region: str) -> Dict[str, str]:
        resolved = {}
        for name, value in stack_config.parameters.items():
            try:
                resolved[name] = self.parameter_resolver.resolve(value, region)
            except StacksmithError as e:
                raise ParameterResolutionError(name, stack_config.name, e)
        return resolved

    @staticmethod
    def _template_variables(stack_config: StackConfig, context: StackContext) -> Dict[str, str]:
        return {
            "Context": context.name,
            "StackName": stack_config.name,
            "Region": context.region,
            "Account": context.account,
        }
