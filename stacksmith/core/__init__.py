"""
Stacksmith Core

Configuration loading, parameter resolution, dependency ordering,
template processing and comparison.
"""

from .config_loader import ConfigProvider, FileConfigProvider, parse_parameter_value
from .parameter_resolver import ParameterResolver
from .dependency_graph import dependency_order, deletion_order
from .template_processor import TemplateProcessor
from .file_resolver import FileSystemResolver
from .comparators import TemplateComparator, ParameterComparator, TagComparator
from .stack_resolver import StackResolver

__all__ = [
    "ConfigProvider",
    "FileConfigProvider",
    "parse_parameter_value",
    "ParameterResolver",
    "dependency_order",
    "deletion_order",
    "TemplateProcessor",
    "FileSystemResolver",
    "TemplateComparator",
    "ParameterComparator",
    "TagComparator",
    "StackResolver",
]
