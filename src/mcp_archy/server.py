#!/usr/bin/env python3
"""
MCP Archy - Server Implementation
=================================

Generates Mermaid diagrams from text descriptions, GitHub repositories, code
and git history. Generated diagrams are validated with Mermaid's parser,
repaired when invalid, and given a readability styling prologue.

Tools:
- generate_diagram_from_text: Rule-based diagram from a description
- generate_diagram_from_github: Diagram of a GitHub repository
- list_supported_diagram_types: The supported diagram types
- generate_diagram_from_text_with_ai: LLM diagram, rule-based fallback
- generate_diagram_from_code: LLM diagram of source code
- generate_diff_diagram: LLM diagram of the change between two versions
- export_diagram_to_image: Render Mermaid to PNG/SVG/PDF
- generate_repository_evolution_diagram: Diagram of recent git history
"""

import json
import logging
from contextlib import asynccontextmanager
from typing import Annotated, Literal, Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from pydantic import AliasChoices, BaseModel, Field, ValidationError

from .config import Settings
from .models import (
    DIAGRAM_TYPE_HELP,
    AITextDiagramRequest,
    CodeDiagramRequest,
    DiffDiagramRequest,
    EvolutionDiagramRequest,
    ExportImageRequest,
    GithubDiagramRequest,
    TextDiagramRequest,
)
from .orchestrator import DiagramOrchestrator

logger = logging.getLogger(__name__)

_orchestrator: Optional[DiagramOrchestrator] = None


def get_orchestrator() -> DiagramOrchestrator:
    """Return the shared orchestrator, building it from the environment on first use."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = DiagramOrchestrator(Settings.from_env())
    return _orchestrator


@asynccontextmanager
async def server_lifespan(server: FastMCP):
    """Initialize on startup, cleanup on shutdown."""
    orchestrator = get_orchestrator()
    if not orchestrator.ai.is_configured():
        logger.warning("OPENROUTER_API_KEY not set; AI-powered tools will report errors or fall back")
    logger.info("mcp-archy ready")
    yield


# Initialize the MCP server
mcp = FastMCP("mcp-archy", lifespan=server_lifespan)


def create_server(orchestrator: Optional[DiagramOrchestrator] = None) -> FastMCP:
    """Create and return the MCP server instance, optionally with a prepared orchestrator."""
    global _orchestrator
    if orchestrator is not None:
        _orchestrator = orchestrator
    return mcp


def _field(description: str, name: str):
    """Tool argument accepting both its snake_case and camelCase spelling."""
    head, *rest = name.split("_")
    camel = head + "".join(part.capitalize() for part in rest)
    return Field(description=description, validation_alias=AliasChoices(name, camel))


def _request(model: type[BaseModel], **arguments) -> BaseModel:
    """Validate tool arguments, raising a protocol-level tool error on bad input."""
    try:
        return model(**arguments)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ToolError(f"Missing or invalid parameters: {fields}") from e


# ============================================================================
# Rule-based diagrams
# ============================================================================

@mcp.tool()
async def generate_diagram_from_text(
    description: Annotated[str, Field(description="Text description of the diagram to generate")],
    diagram_type: Annotated[str, _field(DIAGRAM_TYPE_HELP, "diagram_type")],
) -> str:
    """Generate a Mermaid diagram from a text description.

    Entities, relationships and process steps are extracted heuristically
    from the description and rendered for the requested diagram type.

    Args:
        description: Free-text description
        diagram_type: One of the supported diagram types

    Returns:
        JSON string with the styled Mermaid code and repair outcome
    """
    request = _request(TextDiagramRequest, description=description, diagram_type=diagram_type)
    return json.dumps(await get_orchestrator().generate_from_text(request), indent=2)


@mcp.tool()
async def generate_diagram_from_github(
    repo_url: Annotated[str, _field("GitHub repository URL (e.g. https://github.com/owner/repo)", "repo_url")],
    diagram_type: Annotated[str, _field(DIAGRAM_TYPE_HELP, "diagram_type")],
) -> str:
    """Generate a Mermaid diagram of a GitHub repository.

    Uses the repository's root listing, language statistics and a sample of
    up to 20 source files. Diagram types without a repository renderer fall
    back to the structure flowchart.

    Args:
        repo_url: GitHub repository URL
        diagram_type: One of the supported diagram types

    Returns:
        JSON string with the styled Mermaid code and repair outcome
    """
    request = _request(GithubDiagramRequest, repo_url=repo_url, diagram_type=diagram_type)
    return json.dumps(await get_orchestrator().generate_from_github(request), indent=2)


@mcp.tool()
def list_supported_diagram_types() -> str:
    """List the supported diagram types with a short description of each.

    Returns:
        JSON string with the diagram types
    """
    return json.dumps(get_orchestrator().list_supported_diagram_types(), indent=2)


# ============================================================================
# AI-powered diagrams
# ============================================================================

@mcp.tool()
async def generate_diagram_from_text_with_ai(
    description: Annotated[str, Field(description="Text description of the diagram to generate")],
    diagram_type: Annotated[str, _field(DIAGRAM_TYPE_HELP, "diagram_type")],
    use_advanced_model: Annotated[bool, _field("Use the advanced (more capable, slower) model", "use_advanced_model")] = False,
) -> str:
    """Generate a Mermaid diagram from text using an LLM.

    Falls back to the rule-based generator when no API key is configured or
    the model call fails; the ``generator`` field reports which was used.

    Returns:
        JSON string with the styled Mermaid code and repair outcome
    """
    request = _request(
        AITextDiagramRequest,
        description=description,
        diagram_type=diagram_type,
        use_advanced_model=use_advanced_model,
    )
    return json.dumps(await get_orchestrator().generate_from_text_with_ai(request), indent=2)


@mcp.tool()
async def generate_diagram_from_code(
    code: Annotated[str, Field(description="Source code to analyze")],
    diagram_type: Annotated[str, _field(DIAGRAM_TYPE_HELP, "diagram_type")],
) -> str:
    """Generate a Mermaid diagram from source code using an LLM.

    Requires OPENROUTER_API_KEY; without it the result is an error payload.

    Returns:
        JSON string with the styled Mermaid code, or an error
    """
    request = _request(CodeDiagramRequest, code=code, diagram_type=diagram_type)
    return json.dumps(await get_orchestrator().generate_from_code(request), indent=2)


@mcp.tool()
async def generate_diff_diagram(
    before_code: Annotated[str, _field("Code before the change", "before_code")],
    after_code: Annotated[str, _field("Code after the change", "after_code")],
    diagram_type: Annotated[str, _field(DIAGRAM_TYPE_HELP, "diagram_type")],
) -> str:
    """Generate a Mermaid diagram highlighting the differences between two code versions.

    Requires OPENROUTER_API_KEY; without it the result is an error payload.

    Returns:
        JSON string with the styled Mermaid code, or an error
    """
    request = _request(DiffDiagramRequest, before_code=before_code, after_code=after_code, diagram_type=diagram_type)
    return json.dumps(await get_orchestrator().generate_diff(request), indent=2)


# ============================================================================
# Export and history
# ============================================================================

@mcp.tool()
async def export_diagram_to_image(
    mermaid_code: Annotated[str, _field("Mermaid code to render", "mermaid_code")],
    format: Annotated[Literal["png", "svg", "pdf"], Field(description="Output format")] = "png",
    width: Annotated[int, Field(description="Viewport width in pixels")] = 800,
    height: Annotated[int, Field(description="Viewport height in pixels")] = 600,
    background_color: Annotated[str, _field("CSS background colour, or 'transparent' (PNG)", "background_color")] = "#ffffff",
    output_path: Annotated[Optional[str], _field("Write the image here instead of returning it", "output_path")] = None,
) -> str:
    """Render a Mermaid diagram to PNG, SVG or PDF.

    The styling prologue is applied before rendering unless the code already
    has an init directive.

    Args:
        mermaid_code: Mermaid source
        format: png, svg or pdf (default: png)
        width: Viewport width (default: 800)
        height: Viewport height (default: 600)
        background_color: Page background (default: #ffffff)
        output_path: Optional file to write; otherwise the image is returned inline

    Returns:
        JSON string with a base64 image and data URL, or the written path
    """
    request = _request(
        ExportImageRequest,
        mermaid_code=mermaid_code,
        format=format,
        width=width,
        height=height,
        background_color=background_color,
        output_path=output_path,
    )
    return json.dumps(await get_orchestrator().export_image(request), indent=2)


@mcp.tool()
async def generate_repository_evolution_diagram(
    repo_url: Annotated[str, _field("Git repository URL", "repo_url")],
    diagram_type: Annotated[str, _field("gitGraph or flowchart; other types render as flowchart", "diagram_type")],
    filepath: Annotated[Optional[str], Field(description="Follow the history of this file only")] = None,
    commit_limit: Annotated[int, _field("Number of recent commits to analyze", "commit_limit")] = 10,
) -> str:
    """Generate a diagram of a repository's recent history.

    Without ``filepath`` the recent commits are drawn as a gitGraph or as a
    flowchart with per-commit change counts. With ``filepath`` a gitGraph
    shows the commits where the file exists; other types ask the LLM to
    diagram the file's oldest-to-newest change (requires OPENROUTER_API_KEY).

    Returns:
        JSON string with the styled Mermaid code, or an error
    """
    request = _request(
        EvolutionDiagramRequest,
        repo_url=repo_url,
        diagram_type=diagram_type,
        filepath=filepath,
        commit_limit=commit_limit,
    )
    return json.dumps(await get_orchestrator().generate_evolution(request), indent=2)
