"""
Context Command Base Class

Base class for commands that operate on the stacks of one context.
Builds the configuration, AWS and prompt collaborators for the run.
"""

from pathlib import Path
from typing import Optional

from rich.console import Console

from .base_command import BaseCommand
from stacksmith.constants import LOG_DIR_NAME
from stacksmith.core import FileConfigProvider, ParameterResolver, StackResolver
from stacksmith.exceptions import ContextNotFoundError
from stacksmith.services import ClientFactory, ConfirmationPrompter, ConsolePrompter


class ContextCommand(BaseCommand):
    """
    Base class for context-scoped commands.

    Provides:
    - Configuration loading and context validation
    - A region-aware CloudFormation client factory
    - A stack resolver and confirmation prompter
    """

    def __init__(
        self,
        context_name: str,
        config_path: Optional[Path] = None,
        profile: Optional[str] = None,
        verbose: bool = False,
        json_output: bool = False,
        console: Optional[Console] = None,
        client_factory=None,
        prompter: Optional[ConfirmationPrompter] = None,
    ):
        super().__init__(verbose=verbose, json_output=json_output, console=console)
        self.context_name = context_name

        self.config_provider = FileConfigProvider(config_path)
        self.client_factory = client_factory or ClientFactory(profile=profile)
        self.prompter = prompter or ConsolePrompter(self.console)
        self.stack_resolver = StackResolver(
            self.config_provider, ParameterResolver(self.client_factory)
        )

    @property
    def log_dir(self) -> Path:
        """Log directory next to the config file."""
        return self.config_provider.config_dir / LOG_DIR_NAME

    def init_context_logger(self, command_name: str):
        """Initialize the logger for this context and command."""
        return self.init_logger(self.context_name, command_name, log_dir=self.log_dir)

    def validate_context(self) -> None:
        """
        Validate that the context exists in the configuration.

        Raises:
            ContextNotFoundError: If the context is not defined
        """
        contexts = self.config_provider.list_contexts()
        if self.context_name not in contexts:
            raise ContextNotFoundError(self.context_name, contexts)

    @classmethod
    def from_cli(cls, obj: Optional[dict], context_name: str, **kwargs):
        """
        Build a command from the CLI group's shared options.

        Args:
            obj: Click context object set by the stacksmith group
            context_name: Deployment context name
            **kwargs: Command-specific arguments

        Returns:
            Command instance
        """
        obj = obj or {}
        return cls(
            context_name,
            config_path=obj.get("config_path"),
            profile=obj.get("profile"),
            verbose=obj.get("verbose", False),
            client_factory=obj.get("client_factory"),
            prompter=obj.get("prompter"),
            **kwargs,
        )
