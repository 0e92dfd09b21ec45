"""
Render Mermaid diagrams to PNG, SVG or PDF with headless Chromium.

The diagram is rendered with ``mermaid.render`` inside the page and inserted
into ``#diagram``. SVG output is the rendered element's markup, PNG an element
screenshot and PDF Chromium's print output.
"""

import base64
import html
import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Optional, Union

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from .config import MERMAID_JS_URL
from .errors import ExportError

logger = logging.getLogger(__name__)

ImageFormat = Literal["png", "svg", "pdf"]

MIME_TYPES = {
    "png": "image/png",
    "svg": "image/svg+xml",
    "pdf": "application/pdf",
}

PDF_MARGIN = {"top": "20px", "right": "20px", "bottom": "20px", "left": "20px"}

_RENDER_SCRIPT = """async (code) => {
    const { svg } = await mermaid.render('archy-diagram', code);
    const container = document.getElementById('diagram');
    container.innerHTML = svg;
    return container.querySelector('svg').outerHTML;
}"""


@dataclass
class ExportOptions:
    format: ImageFormat = "png"
    width: int = 800
    height: int = 600
    background_color: str = "#ffffff"
    output_path: Optional[str] = None

    @property
    def transparent(self) -> bool:
        return self.background_color == "transparent"


def _export_html(background_color: str, mermaid_js_url: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <title>Mermaid Diagram</title>
    <script src="{html.escape(mermaid_js_url)}"></script>
    <style>
        body {{
            background-color: {html.escape(background_color)};
            margin: 0;
            padding: 20px;
            display: flex;
            justify-content: center;
        }}
        #diagram {{ max-width: 100%; }}
    </style>
</head>
<body>
    <div id="diagram"></div>
    <script>mermaid.initialize({{ startOnLoad: false, theme: 'default', securityLevel: 'loose' }});</script>
</body>
</html>"""


async def export_diagram(
    mermaid_code: str,
    options: Optional[ExportOptions] = None,
    mermaid_js_url: str = MERMAID_JS_URL,
) -> Union[bytes, str]:
    """Render ``mermaid_code`` to an image.

    Args:
        mermaid_code: Mermaid source (styling directives included).
        options: Format, viewport and background; defaults to an 800x600 PNG.
        mermaid_js_url: Where the page loads Mermaid from.

    Returns:
        The image bytes, or ``options.output_path`` once the file is written.

    Raises:
        ExportError: If the browser fails or Mermaid cannot render the code.
    """
    options = options or ExportOptions()
    page_html = _export_html(options.background_color, mermaid_js_url)

    try:
        async with async_playwright() as p:
            browser = await p.chromium.launch(args=["--no-sandbox"])
            try:
                page = await browser.new_page(viewport={"width": options.width, "height": options.height})

                if options.output_path:
                    with tempfile.TemporaryDirectory(prefix="mcp-archy-") as workdir:
                        page_file = Path(workdir) / "diagram.html"
                        page_file.write_text(page_html, encoding="utf-8")
                        await page.goto(page_file.as_uri())
                else:
                    await page.set_content(page_html)

                svg = await page.evaluate(_RENDER_SCRIPT, mermaid_code)
                if not svg:
                    raise ExportError("SVG content not found")

                if options.format == "svg":
                    data = svg.encode("utf-8")
                elif options.format == "pdf":
                    data = await page.pdf(print_background=True, margin=PDF_MARGIN)
                else:
                    element = await page.query_selector("#diagram")
                    if element is None:
                        raise ExportError("Diagram element not found")
                    data = await element.screenshot(omit_background=options.transparent)
            finally:
                await browser.close()
    except PlaywrightError as e:
        raise ExportError(f"Failed to render diagram: {e}") from e

    if options.output_path:
        target = Path(options.output_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.info("Exported %s diagram to %s", options.format, target)
        return str(target)

    return data


def to_data_url(data: bytes, image_format: str) -> str:
    mime_type = MIME_TYPES.get(image_format, "image/png")
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


async def export_diagram_to_data_url(
    mermaid_code: str,
    options: Optional[ExportOptions] = None,
    mermaid_js_url: str = MERMAID_JS_URL,
) -> str:
    """Render in memory and return a ``data:<mime>;base64,...`` URL."""
    options = options or ExportOptions()
    if options.output_path:
        options = ExportOptions(options.format, options.width, options.height, options.background_color)
    data = await export_diagram(mermaid_code, options, mermaid_js_url)
    return to_data_url(data, options.format)
