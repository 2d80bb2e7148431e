import pytest

from stacksmith.core import FileSystemResolver, TemplateProcessor
from stacksmith.exceptions import ConfigurationError, ResolutionError


def test_file_uri(tmp_path):
    path = tmp_path / "vpc.yaml"
    path.write_text("Resources: {}\n")
    assert FileSystemResolver().resolve(f"file://{path}") == "Resources: {}\n"


def test_plain_path(tmp_path):
    path = tmp_path / "vpc.yaml"
    path.write_text("Resources: {}\n")
    assert FileSystemResolver().resolve(str(path)) == "Resources: {}\n"


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        FileSystemResolver().resolve(f"file://{tmp_path / 'missing.yaml'}")


def test_other_schemes_are_rejected():
    with pytest.raises(ConfigurationError, match="Unsupported template URI"):
        FileSystemResolver().resolve("s3://bucket/vpc.yaml")


def test_template_without_markup_is_unchanged():
    body = "Value: ${AWS::Region}\n"
    assert TemplateProcessor().process(body, {}) == body


def test_template_rendering():
    body = "Name: {{ StackName }}-{{ Context }}\n{% if Context == 'prod' %}Ha: true\n{% endif %}"
    rendered = TemplateProcessor().process(body, {"StackName": "vpc", "Context": "prod"})
    assert rendered == "Name: vpc-prod\nHa: true\n"


def test_template_syntax_error():
    with pytest.raises(ResolutionError):
        TemplateProcessor().process("{% if %}", {})


def test_templates_are_read_as_utf8(tmp_path):
    path = tmp_path / "vpc.yaml"
    path.write_bytes("Description: Réseau principal\n".encode("utf-8"))
    assert FileSystemResolver().resolve(str(path)) == "Description: Réseau principal\n"
