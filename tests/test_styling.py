"""Tests for the Mermaid styling directives."""

import json

import pytest

from mcp_archy.styling import (
    add_clean_layout_directive,
    add_color_contrast_directive,
    apply_all_styling_directives,
    get_complementary_color,
    has_init_directive,
)
from mcp_archy.text_renderers import generate_diagram_from_text

SAMPLES = [
    "",
    "   ",
    "flowchart TD\n    A --> B\n",
    "%%{init: {'theme': 'dark'}}%%\nflowchart TD\n    A --> B",
    "%%{ init : {}}%%\npie title X",
    generate_diagram_from_text("classDiagram", "The Car has an Engine."),
]


def _config(styled: str) -> dict:
    body = styled[len("%%{init: "):styled.index("}%%")]
    return json.loads(body)


@pytest.mark.parametrize("code", SAMPLES)
def test_apply_all_is_idempotent(code):
    once = apply_all_styling_directives(code)
    assert apply_all_styling_directives(once) == once


@pytest.mark.parametrize("helper", [add_color_contrast_directive, add_clean_layout_directive])
@pytest.mark.parametrize("code", SAMPLES)
def test_individual_directives_are_idempotent(helper, code):
    once = helper(code)
    assert helper(once) == once


def test_prologue_is_prepended_once():
    code = "flowchart TD\n    A --> B\n"
    styled = apply_all_styling_directives(code)
    assert styled.startswith("%%{init: ")
    assert styled.endswith("}%%\n\n" + code)
    assert styled.count("%%{init") == 1


def test_prologue_is_valid_json():
    config = _config(apply_all_styling_directives("graph TD"))
    assert config["theme"] == "base"
    assert config["themeVariables"]["nodeTextColor"] == "contrast"
    assert config["flowchart"]["nodeSpacing"] == 50


def test_directives_do_not_stack():
    styled = add_clean_layout_directive(add_color_contrast_directive("graph TD"))
    assert _config(styled)["fontFamily"].startswith("trebuchet")
    assert styled.count("%%{init") == 1


@pytest.mark.parametrize("code", ["%%{init: {}}%%", "%%{ init: {}}%%", "%%{\n  init: {}\n}%%"])
def test_existing_directive_is_detected(code):
    assert has_init_directive(code)
    assert apply_all_styling_directives(code) == code


@pytest.mark.parametrize("color,expected", [
    ("#ff0000", "#00ffff"),
    ("#1f77b4", "#e0884b"),
    ("ffffff", "#000000"),
    ("#fff", "#000000"),
])
def test_complementary_color(color, expected):
    assert get_complementary_color(color) == expected


def test_complementary_color_rejects_garbage():
    with pytest.raises(ValueError):
        get_complementary_color("#zzzzzz")
