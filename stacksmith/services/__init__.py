"""
Stacksmith Services Layer

CloudFormation access and the stack operations built on it.
"""

from .cloudformation import CloudFormationOperations
from .client_factory import ClientFactory
from .prompt import ConfirmationPrompter, ConsolePrompter
from .differ import Differ
from .deployer import Deployer
from .deleter import Deleter
from .describer import Describer
from .validator import TemplateValidator

__all__ = [
    "CloudFormationOperations",
    "ClientFactory",
    "ConfirmationPrompter",
    "ConsolePrompter",
    "Differ",
    "Deployer",
    "Deleter",
    "Describer",
    "TemplateValidator",
]
