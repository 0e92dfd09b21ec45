"""
Mermaid styling directives.

Each helper prepends an ``%%{init: ...}%%`` prologue to a diagram. A diagram
that already carries an init directive is returned unchanged, so applying any
helper twice is the same as applying it once.
"""

import json
import re

_INIT_DIRECTIVE = re.compile(r"%%\{\s*init")

_CONTRAST_THEME = {
    "primaryColor": "#1f77b4",
    "primaryTextColor": "#ffffff",
    "primaryBorderColor": "#0d3c55",
    "lineColor": "#1f77b4",
    "secondaryColor": "#ff7f0e",
    "secondaryTextColor": "#000000",
    "secondaryBorderColor": "#7f3f00",
    "tertiaryColor": "#2ca02c",
    "tertiaryTextColor": "#ffffff",
    "tertiaryBorderColor": "#0d5e0d",
    "noteBkgColor": "#fff5ad",
    "noteTextColor": "#333333",
    "noteBorderColor": "#d6b656",
    "edgeLabelBackground": "#ffffff",
    "nodeTextColor": "contrast",
}

_LAYOUT_SEQUENCE = {
    "diagramMarginX": 50,
    "diagramMarginY": 30,
    "actorMargin": 120,
    "boxMargin": 25,
    "boxTextMargin": 15,
    "noteMargin": 15,
    "messageMargin": 35,
}

_LAYOUT_GANTT = {"leftPadding": 75, "rightPadding": 20, "topPadding": 20, "bottomPadding": 20}

COLOR_CONTRAST_CONFIG = {
    "theme": "base",
    "themeVariables": _CONTRAST_THEME,
    "fontFamily": "trebuchet ms, verdana, arial, sans-serif",
    "logLevel": 1,
    "flowchart": {"useMaxWidth": True, "htmlLabels": True, "curve": "basis"},
    "sequence": {"useMaxWidth": True, "mirrorActors": True, "wrap": True, "rightAngles": True},
    "er": {"useMaxWidth": True},
    "pie": {"useMaxWidth": True, "textPosition": 0.5},
}

CLEAN_LAYOUT_CONFIG = {
    "theme": "base",
    "themeVariables": {"fontSize": "16px", "fontFamily": "Arial, sans-serif"},
    "flowchart": {
        "diagramPadding": 20,
        "nodeSpacing": 50,
        "rankSpacing": 80,
        "curve": "linear",
        "useMaxWidth": True,
    },
    "sequence": _LAYOUT_SEQUENCE,
    "classDiagram": {"diagramPadding": 20, "useMaxWidth": True},
    "er": {"diagramPadding": 20, "useMaxWidth": True},
    "gantt": _LAYOUT_GANTT,
}

COMBINED_CONFIG = {
    "theme": "base",
    "themeVariables": {**_CONTRAST_THEME, "fontSize": "16px"},
    "fontFamily": "Arial, sans-serif",
    "logLevel": 1,
    "flowchart": {
        "useMaxWidth": True,
        "htmlLabels": True,
        "curve": "basis",
        "diagramPadding": 20,
        "nodeSpacing": 50,
        "rankSpacing": 80,
    },
    "sequence": {
        "useMaxWidth": True,
        "mirrorActors": True,
        "wrap": True,
        "rightAngles": True,
        **_LAYOUT_SEQUENCE,
    },
    "classDiagram": {"diagramPadding": 20, "useMaxWidth": True},
    "er": {"useMaxWidth": True, "diagramPadding": 20},
    "pie": {"useMaxWidth": True, "textPosition": 0.5},
    "gantt": _LAYOUT_GANTT,
}


def has_init_directive(mermaid_code: str) -> bool:
    return bool(_INIT_DIRECTIVE.search(mermaid_code))


def _prologue(config: dict) -> str:
    return "%%{init: " + json.dumps(config, indent=2) + "}%%\n\n"


def _prepend(config: dict, mermaid_code: str) -> str:
    if has_init_directive(mermaid_code):
        return mermaid_code
    return _prologue(config) + mermaid_code


def add_color_contrast_directive(mermaid_code: str) -> str:
    """Prepend a high-contrast base theme."""
    return _prepend(COLOR_CONTRAST_CONFIG, mermaid_code)


def add_clean_layout_directive(mermaid_code: str) -> str:
    """Prepend generous spacing and padding settings."""
    return _prepend(CLEAN_LAYOUT_CONFIG, mermaid_code)


def apply_all_styling_directives(mermaid_code: str) -> str:
    """Prepend the combined contrast and layout prologue.

    This is the directive every diagram-producing tool applies to its output.
    """
    return _prepend(COMBINED_CONFIG, mermaid_code)


def get_complementary_color(hex_color: str) -> str:
    """Invert each RGB channel of a ``#rrggbb`` colour."""
    value = hex_color.lstrip("#")
    if len(value) == 3:
        value = "".join(c * 2 for c in value)
    if not re.fullmatch(r"[0-9a-fA-F]{6}", value):
        raise ValueError(f"Invalid hex color: {hex_color}")
    r, g, b = (255 - int(value[i:i + 2], 16) for i in (0, 2, 4))
    return f"#{r:02x}{g:02x}{b:02x}"
