"""Mermaid syntax validation using Mermaid's own parser in headless Chromium."""

import logging

from playwright.async_api import async_playwright

from .config import MERMAID_JS_URL
from .models import ValidationError, ValidationResult

logger = logging.getLogger(__name__)

_PARSE_SCRIPT = """async (code) => {
    try {
        await mermaid.parse(code);
        return { isValid: true };
    } catch (e) {
        const hash = e.hash || {};
        const loc = hash.loc || {};
        return {
            isValid: false,
            message: e.message || String(e),
            line: hash.line !== undefined ? hash.line + 1 : (loc.first_line ?? null),
            column: loc.first_column ?? null,
            details: e.str || String(e),
        };
    }
}"""


def _validator_html(mermaid_js_url: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<head>
    <script src="{mermaid_js_url}"></script>
    <script>mermaid.initialize({{ startOnLoad: false, securityLevel: 'loose' }});</script>
</head>
<body></body>
</html>"""


class MermaidValidator:
    """Checks Mermaid source by running ``mermaid.parse`` in a fresh browser.

    ``validate`` never raises: browser or network failures are reported as an
    invalid result whose message starts with "Error validating Mermaid syntax".
    """

    def __init__(self, mermaid_js_url: str = MERMAID_JS_URL):
        self.mermaid_js_url = mermaid_js_url

    async def validate(self, mermaid_code: str) -> ValidationResult:
        try:
            async with async_playwright() as p:
                browser = await p.chromium.launch(args=["--no-sandbox"])
                try:
                    page = await browser.new_page()
                    await page.set_content(_validator_html(self.mermaid_js_url))
                    outcome = await page.evaluate(_PARSE_SCRIPT, mermaid_code)
                finally:
                    await browser.close()
        except Exception as e:
            logger.warning("Mermaid validation could not run: %s", e)
            return ValidationResult(
                is_valid=False,
                error=ValidationError(message=f"Error validating Mermaid syntax: {e}"),
            )

        if outcome.get("isValid"):
            return ValidationResult(is_valid=True)

        return ValidationResult(
            is_valid=False,
            error=ValidationError(
                message=outcome.get("message") or "Unknown syntax error",
                line=outcome.get("line"),
                column=outcome.get("column"),
                details=outcome.get("details"),
            ),
        )
