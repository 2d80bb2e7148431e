"""Template rendering with Jinja2"""

from typing import Any, Dict

from jinja2 import StrictUndefined, Template, TemplateError

from stacksmith.exceptions import ResolutionError


class TemplateProcessor:
    """Renders stack templates with context variables before deployment"""

    def process(self, template: str, variables: Dict[str, Any]) -> str:
        """
        Render a template body.

        Templates without Jinja2 markup come back unchanged.

        Args:
            template: Raw template text
            variables: Variables available to the template (Context, StackName, ...)

        Returns:
            Rendered template text

        Raises:
            ResolutionError: If the template cannot be rendered
        """
        if "{{" not in template and "{%" not in template:
            return template

        try:
            rendered = Template(
                template, undefined=StrictUndefined, keep_trailing_newline=True
            ).render(**variables)
        except TemplateError as e:
            raise ResolutionError("Failed to process template", str(e))
        return rendered
