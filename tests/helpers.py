"""Shared test helpers: fake validator, fake GitHub client, playwright mocks."""

from unittest.mock import AsyncMock, MagicMock

from mcp_archy.models import ValidationError, ValidationResult


class FakeValidator:
    """Validator whose verdict comes from a predicate over the code."""

    def __init__(self, is_valid=lambda code: True):
        self.is_valid = is_valid
        self.calls = []

    async def validate(self, code):
        self.calls.append(code)
        if self.is_valid(code):
            return ValidationResult(is_valid=True)
        return ValidationResult(
            is_valid=False,
            error=ValidationError(message="Parse error on line 1", line=1),
        )


class FakeGitHub:
    """Async-context-manager stand-in for GitHubClient."""

    def __init__(self, data=None, error=None):
        self.data = data
        self.error = error
        self.requested = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return None

    async def fetch_repository_data(self, owner, repo):
        self.requested.append((owner, repo))
        if self.error:
            raise self.error
        return self.data


def _make_playwright(page):
    """Mock ``async_playwright`` whose browser opens ``page``."""
    browser = MagicMock()
    browser.new_page = AsyncMock(return_value=page)
    browser.close = AsyncMock()

    p = MagicMock()
    p.chromium.launch = AsyncMock(return_value=browser)

    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=p)
    context.__aexit__ = AsyncMock(return_value=False)

    return MagicMock(return_value=context), browser


def _make_page(evaluate_result=None, evaluate_error=None):
    page = MagicMock()
    page.set_content = AsyncMock()
    page.goto = AsyncMock()
    page.evaluate = AsyncMock(return_value=evaluate_result, side_effect=evaluate_error)
    page.pdf = AsyncMock(return_value=b"%PDF-1.4 fake")

    element = MagicMock()
    element.screenshot = AsyncMock(return_value=b"\x89PNG fake")
    page.query_selector = AsyncMock(return_value=element)
    return page
