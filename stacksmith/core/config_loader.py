"""Configuration management for Stacksmith projects"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from stacksmith.constants import (
    DEFAULT_CONFIG_FILE,
    FILE_URI_SCHEME,
    RESOLVER_LIST,
    RESOLVER_LITERAL,
)
from stacksmith.exceptions import (
    ConfigurationError,
    ContextNotFoundError,
    StackConfigNotFoundError,
)
from stacksmith.models import (
    Config,
    ContextConfig,
    LiteralValue,
    ParameterList,
    ParameterValue,
    ResolverValue,
    StackConfig,
    ValidationResult,
)

# Short keys accepted in resolver mappings
RESOLVER_KEY_ALIASES = {"stack": "stack_name", "output": "output_key"}

# Implicit tags kept when loading config; everything else stays a string
KEPT_IMPLICIT_TAGS = ("tag:yaml.org,2002:null", "tag:yaml.org,2002:merge")


class ConfigLoader(yaml.SafeLoader):
    """
    SafeLoader that keeps plain scalars exactly as written.

    YAML 1.1 would turn `1.10` into 1.1, `0755` into 493 and `yes` into
    True. Parameter and tag values are passed to CloudFormation as text,
    so only nulls and merge keys are resolved implicitly.
    """


ConfigLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag in KEPT_IMPLICIT_TAGS]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


class ConfigProvider(ABC):
    """Supplies per-context project and stack configuration."""

    @abstractmethod
    def load_config(self, context: str) -> Config:
        """Load project configuration resolved for a context."""

    @abstractmethod
    def get_stack(self, stack_name: str, context: str) -> StackConfig:
        """Get a stack's configuration with its context override merged."""

    @abstractmethod
    def list_stacks(self, context: str) -> List[str]:
        """List stack names available in a context."""

    @abstractmethod
    def list_contexts(self) -> List[str]:
        """List defined context names."""

    @abstractmethod
    def validate(self) -> ValidationResult:
        """Check the configuration for broken references."""


def parse_parameter_value(name: str, raw: Any) -> ParameterValue:
    """
    Parse a raw YAML parameter value into a typed parameter value.

    Scalars become literals, mappings with a ``type`` key become resolvers
    and sequences become parameter lists.

    Args:
        name: Parameter name (for error messages)
        raw: Value as loaded from YAML

    Returns:
        Typed parameter value

    Raises:
        ConfigurationError: If the value has an unsupported shape
    """
    if isinstance(raw, list):
        return ParameterList(items=[_parse_list_item(name, i, item) for i, item in enumerate(raw)])
    if isinstance(raw, dict):
        return _parse_mapping(name, raw)
    return LiteralValue(_scalar_to_str(raw))


def _parse_list_item(name: str, index: int, raw: Any):
    if isinstance(raw, list):
        raise ConfigurationError(
            f"Parameter '{name}' has a nested list at item {index}",
            "List items must be scalars or resolver mappings",
        )
    if isinstance(raw, dict):
        value = _parse_mapping(name, raw)
        if isinstance(value, ParameterList):
            raise ConfigurationError(
                f"Parameter '{name}' has a nested list at item {index}",
                "List items must be scalars or resolver mappings",
            )
        return value
    return LiteralValue(_scalar_to_str(raw))


def _parse_mapping(name: str, raw: Dict[str, Any]) -> ParameterValue:
    kind = raw.get("type")
    if not kind:
        raise ConfigurationError(
            f"Parameter '{name}' mapping is missing a 'type' key",
            f"Got keys: {', '.join(sorted(str(k) for k in raw))}",
        )

    if kind == RESOLVER_LITERAL:
        return LiteralValue(_scalar_to_str(raw.get("value")))

    if kind == RESOLVER_LIST:
        items = raw.get("items", raw.get("value")) or []
        if not isinstance(items, list):
            raise ConfigurationError(f"Parameter '{name}' list resolver needs a sequence of items")
        return ParameterList(items=[_parse_list_item(name, i, item) for i, item in enumerate(items)])

    config = {}
    for key, value in raw.items():
        if key == "type":
            continue
        config[RESOLVER_KEY_ALIASES.get(key, key)] = value
    return ResolverValue(kind=str(kind), config=config)


def _scalar_to_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _string_map(raw: Any, what: str) -> Dict[str, str]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{what} must be a mapping")
    return {str(k): _scalar_to_str(v) or "" for k, v in raw.items()}


def _string_list(raw: Any, what: str) -> Optional[List[str]]:
    if raw is None:
        return None
    if isinstance(raw, str):
        return [raw]
    if not isinstance(raw, list):
        raise ConfigurationError(f"{what} must be a list")
    return [str(item) for item in raw]


class FileConfigProvider(ConfigProvider):
    """Loads configuration from a YAML file (stacksmith.yaml)"""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize the provider.

        Args:
            config_path: Path to the YAML config file (default: ./stacksmith.yaml)
        """
        self.config_path = Path(config_path or DEFAULT_CONFIG_FILE)
        self._raw: Optional[Dict[str, Any]] = None

    @property
    def config_dir(self) -> Path:
        """Directory containing the config file."""
        return self.config_path.resolve().parent

    def _ensure_loaded(self) -> Dict[str, Any]:
        """Read and parse the config file once."""
        if self._raw is not None:
            return self._raw

        try:
            with open(self.config_path, encoding="utf-8") as f:
                raw = yaml.load(f, Loader=ConfigLoader) or {}
        except FileNotFoundError:
            raise ConfigurationError(
                f"Config file not found: {self.config_path}",
                f"Create {DEFAULT_CONFIG_FILE} or pass --config",
            )
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Failed to parse YAML config file '{self.config_path}'", str(e)
            )

        if not isinstance(raw, dict):
            raise ConfigurationError(f"Config file '{self.config_path}' must contain a mapping")

        raw["contexts"] = raw.get("contexts") or {}
        raw["stacks"] = self._normalize_stacks(raw.get("stacks"))
        self._raw = raw
        return raw

    @staticmethod
    def _normalize_stacks(stacks: Any) -> Dict[str, Dict[str, Any]]:
        """Accept stacks as a name-keyed mapping or a list of entries with 'name'."""
        if stacks is None:
            return {}
        if isinstance(stacks, dict):
            return {str(name): dict(body or {}) for name, body in stacks.items()}
        if isinstance(stacks, list):
            normalized = {}
            for entry in stacks:
                if not isinstance(entry, dict) or not entry.get("name"):
                    raise ConfigurationError("Every stack entry needs a 'name'")
                normalized[str(entry["name"])] = {k: v for k, v in entry.items() if k != "name"}
            return normalized
        raise ConfigurationError("'stacks' must be a mapping or a list")

    def _context_raw(self, context: str) -> Dict[str, Any]:
        raw = self._ensure_loaded()
        if context not in raw["contexts"]:
            raise ContextNotFoundError(context, raw["contexts"].keys())
        return raw["contexts"][context] or {}

    def load_config(self, context: str) -> Config:
        """
        Load project configuration resolved for a context.

        Args:
            context: Context name

        Returns:
            Config with the resolved context

        Raises:
            ContextNotFoundError: If the context is not defined
            ConfigurationError: If no region is configured for the context
        """
        raw = self._ensure_loaded()
        context_raw = self._context_raw(context)
        global_region = raw.get("region") or ""
        global_tags = _string_map(raw.get("tags"), "Global 'tags'")

        region = context_raw.get("region") or global_region
        if not region:
            raise ConfigurationError(
                f"No region configured for context '{context}'",
                "Set 'region' on the context or at the top level",
            )

        context_tags = dict(global_tags)
        context_tags.update(_string_map(context_raw.get("tags"), f"Context '{context}' tags"))

        templates = raw.get("templates") or {}
        return Config(
            project=str(raw.get("project") or ""),
            region=global_region,
            tags=global_tags,
            context=ContextConfig(
                name=context,
                region=region,
                account=str(context_raw.get("account") or ""),
                tags=context_tags,
            ),
            templates_directory=templates.get("directory"),
        )

    def get_stack(self, stack_name: str, context: str) -> StackConfig:
        """
        Get a stack's configuration for a context.

        Override parameters and tags are merged key by key over the base;
        override depends_on and capabilities replace the base when present.

        Args:
            stack_name: Stack name
            context: Context name

        Returns:
            StackConfig with the context override applied

        Raises:
            StackConfigNotFoundError: If the stack is not defined
            ConfigurationError: If the stack configuration is malformed
        """
        raw = self._ensure_loaded()
        stacks = raw["stacks"]
        if stack_name not in stacks:
            raise StackConfigNotFoundError(stack_name, stacks.keys())

        body = stacks[stack_name]
        template = body.get("template")
        if not template:
            raise ConfigurationError(f"Stack '{stack_name}' has no template configured")

        parameters = {
            str(name): parse_parameter_value(str(name), value)
            for name, value in (body.get("parameters") or {}).items()
        }
        tags = _string_map(body.get("tags"), f"Stack '{stack_name}' tags")
        depends_on = _string_list(body.get("depends_on"), f"Stack '{stack_name}' depends_on") or []
        capabilities = _string_list(body.get("capabilities"), f"Stack '{stack_name}' capabilities") or []

        override = (body.get("contexts") or {}).get(context) or {}
        for name, value in (override.get("parameters") or {}).items():
            parameters[str(name)] = parse_parameter_value(str(name), value)
        tags.update(_string_map(override.get("tags"), f"Stack '{stack_name}' tags for '{context}'"))

        override_deps = _string_list(override.get("depends_on"), f"Stack '{stack_name}' depends_on")
        if override_deps is not None:
            depends_on = override_deps
        override_caps = _string_list(override.get("capabilities"), f"Stack '{stack_name}' capabilities")
        if override_caps is not None:
            capabilities = override_caps

        return StackConfig(
            name=stack_name,
            template=self.resolve_template_uri(str(template)),
            parameters=parameters,
            tags=tags,
            depends_on=depends_on,
            capabilities=capabilities,
        )

    def list_stacks(self, context: str) -> List[str]:
        """List stack names (in declaration order) for a context."""
        self._context_raw(context)
        return list(self._ensure_loaded()["stacks"].keys())

    def list_contexts(self) -> List[str]:
        """List defined context names, sorted."""
        return sorted(self._ensure_loaded()["contexts"].keys())

    def validate(self) -> ValidationResult:
        """
        Check the configuration for broken references.

        Returns:
            ValidationResult listing every problem found
        """
        raw = self._ensure_loaded()
        result = ValidationResult(is_valid=True)
        contexts = raw["contexts"]
        stacks = raw["stacks"]

        templates_dir = self._templates_dir()
        if templates_dir is not None and not templates_dir.is_dir():
            result.add_error(f"Template directory not found: {templates_dir}")

        for stack_name, body in stacks.items():
            for context_name in (body.get("contexts") or {}):
                if context_name not in contexts:
                    result.add_error(
                        f"Stack '{stack_name}' references undefined context '{context_name}'"
                    )

            for dep in _string_list(body.get("depends_on"), "depends_on") or []:
                if dep not in stacks:
                    result.add_error(f"Stack '{stack_name}' depends on undefined stack '{dep}'")

            template = body.get("template")
            if not template:
                result.add_error(f"Stack '{stack_name}' has no template configured")
                continue
            template_path = self.resolve_template_path(str(template))
            if not template_path.is_file():
                result.add_error(
                    f"Template file not found for stack '{stack_name}': {template_path}"
                )

        if not contexts:
            result.add_warning("No contexts defined")
        return result

    def _templates_dir(self) -> Optional[Path]:
        templates = self._ensure_loaded().get("templates") or {}
        directory = templates.get("directory")
        if not directory:
            return None
        path = Path(directory)
        return path if path.is_absolute() else self.config_dir / path

    def resolve_template_path(self, template: str) -> Path:
        """Resolve a template path against the templates directory or config directory."""
        path = Path(template)
        if path.is_absolute():
            return path
        base = self._templates_dir() or self.config_dir
        return base / path

    def resolve_template_uri(self, template: str) -> str:
        """Resolve a template path into a file:// URI."""
        if template.startswith(FILE_URI_SCHEME):
            return template
        return f"{FILE_URI_SCHEME}{self.resolve_template_path(template)}"
