"""
Confirmation Prompts

Yes/no confirmation before any stack is created, updated or deleted.
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional

from rich.console import Console
from rich.markup import escape

from stacksmith.exceptions import PromptError


class ConfirmationPrompter(ABC):
    """Asks the operator to confirm an action."""

    @abstractmethod
    def confirm(self, message: str) -> bool:
        """
        Ask a yes/no question.

        Returns:
            True only for an explicit yes

        Raises:
            PromptError: If no answer can be read
        """


class ConsolePrompter(ConfirmationPrompter):
    """Reads confirmation answers from stdin."""

    def __init__(
        self,
        console: Optional[Console] = None,
        input_func: Callable[[], str] = input,
    ):
        self.console = console or Console()
        self.input_func = input_func

    def confirm(self, message: str) -> bool:
        self.console.print(
            f"\n{escape(message)} [bold bright_white]\\[y/N][/bold bright_white]: ", end=""
        )
        try:
            answer = self.input_func()
        except EOFError:
            # Closed stdin (e.g. piped input) means no
            self.console.print()
            return False
        except OSError as e:
            raise PromptError("Failed to read confirmation", str(e))

        return answer.strip().lower() in ("y", "yes")
