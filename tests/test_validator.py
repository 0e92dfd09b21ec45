"""Tests for MermaidValidator with a mocked browser."""

from unittest.mock import AsyncMock, patch

import pytest

from mcp_archy.validator import MermaidValidator
from tests.helpers import _make_page, _make_playwright


@pytest.mark.asyncio
async def test_valid_code():
    page = _make_page({"isValid": True})
    playwright, browser = _make_playwright(page)

    with patch("mcp_archy.validator.async_playwright", playwright):
        result = await MermaidValidator("https://cdn.example/mermaid.js").validate("flowchart TD\nA-->B")

    assert result.is_valid
    assert result.error is None
    # the code is passed as an argument, not spliced into the page
    assert page.evaluate.await_args.args[1] == "flowchart TD\nA-->B"
    assert "https://cdn.example/mermaid.js" in page.set_content.await_args.args[0]
    browser.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_parse_error_is_mapped():
    page = _make_page({
        "isValid": False,
        "message": "Parse error on line 2",
        "line": 2,
        "column": 4,
        "details": "Expecting 'SEMI'",
    })
    playwright, _ = _make_playwright(page)

    with patch("mcp_archy.validator.async_playwright", playwright):
        result = await MermaidValidator().validate("flowchart TD\nA-->")

    assert not result.is_valid
    assert result.message == "Parse error on line 2"
    assert (result.error.line, result.error.column) == (2, 4)
    assert result.error.details == "Expecting 'SEMI'"


@pytest.mark.asyncio
async def test_browser_failure_is_reported_not_raised():
    page = _make_page(evaluate_error=RuntimeError("Target closed"))
    playwright, browser = _make_playwright(page)

    with patch("mcp_archy.validator.async_playwright", playwright):
        result = await MermaidValidator().validate("flowchart TD")

    assert not result.is_valid
    assert result.message.startswith("Error validating Mermaid syntax")
    assert "Target closed" in result.message
    browser.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_launch_failure_is_reported_not_raised():
    playwright, _ = _make_playwright(_make_page())
    playwright.return_value.__aenter__ = AsyncMock(side_effect=RuntimeError("chromium missing"))

    with patch("mcp_archy.validator.async_playwright", playwright):
        result = await MermaidValidator().validate("flowchart TD")

    assert not result.is_valid
    assert "chromium missing" in result.message
