"""Tests for prompt template rendering."""

import pytest
from jinja2 import TemplateNotFound, UndefinedError

from moriarty.core.prompts import PromptManager


def test_bundled_templates_present():
    templates = PromptManager().list_templates()
    for name in ("risk_assessment.j2", "risk_assessment_system.j2", "report.j2", "report_system.j2"):
        assert name in templates


def test_report_prompt_renders_json_blocks():
    prompt = PromptManager().render("report.j2", {"vulnerabilities_json": "[]", "assessments_json": "[]"})
    assert "Vulnerabilities: []" in prompt
    assert "Assessments: []" in prompt


def test_missing_variable_is_an_error():
    with pytest.raises(UndefinedError):
        PromptManager().render("report.j2", {"vulnerabilities_json": "[]"})


def test_missing_template():
    with pytest.raises(TemplateNotFound):
        PromptManager().render("nope.j2")


def test_custom_template_dir(tmp_path):
    (tmp_path / "hello.j2").write_text("Hello {{ name }}!\n")
    assert PromptManager(tmp_path).render("hello.j2", {"name": "analyst"}) == "Hello analyst!"
