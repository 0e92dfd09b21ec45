"""
Per-tool procedures behind the MCP server.

Every public coroutine takes an already validated request model and returns a
JSON-serialisable envelope. Success::

    {"success": true, "diagram_type": ..., "mermaid_code": ..., "repair": ..., "message": ...}

Failure::

    {"success": false, "error": "..."}

Collaborator failures (GitHub, git, LLM, browser) never escape as
exceptions; they are logged and turned into the failure envelope.
"""

import base64
import logging
from typing import Callable, Optional

from .ai import DiagramAI
from .config import Settings
from .errors import HistoryError
from .exporter import MIME_TYPES, ExportOptions, export_diagram, to_data_url
from .github import GitHubClient, parse_repo_url
from .history import open_history, render_commit_git_graph, render_evolution_flowchart
from .models import (
    DIAGRAM_TYPES,
    AITextDiagramRequest,
    CodeDiagramRequest,
    DiffDiagramRequest,
    EvolutionDiagramRequest,
    ExportImageRequest,
    GithubDiagramRequest,
    RepairResult,
    TextDiagramRequest,
)
from .repair import RepairPipeline
from .repo_renderers import generate_diagram_from_github
from .styling import apply_all_styling_directives
from .text_renderers import generate_diagram_from_text
from .validator import MermaidValidator

logger = logging.getLogger(__name__)

CODE_CONTEXT_CHARS = 200


def success(diagram_type: str, repaired: RepairResult, message: str, **extra) -> dict:
    result = {
        "success": True,
        "diagram_type": diagram_type,
        "mermaid_code": apply_all_styling_directives(repaired.code),
        "repair": repaired.outcome.value,
        "message": message,
    }
    result.update(extra)
    return result


def failure(message: str) -> dict:
    return {"success": False, "error": message}


class DiagramOrchestrator:
    """Runs each tool: generate, validate/repair, style.

    Args:
        settings: Runtime configuration.
        validator: Mermaid syntax validator.
        ai: AI backend; consulted for the AI tools and for syntax repair.
        github_client_factory: Returns a fresh ``GitHubClient``.
        history_opener: ``open_history``-compatible async context manager.
    """

    def __init__(
        self,
        settings: Settings,
        validator: Optional[MermaidValidator] = None,
        ai: Optional[DiagramAI] = None,
        github_client_factory: Optional[Callable[[], GitHubClient]] = None,
        history_opener: Callable = open_history,
    ):
        self.settings = settings
        self.validator = validator or MermaidValidator(settings.mermaid_js_url)
        self.ai = ai or DiagramAI(settings)
        self.repair = RepairPipeline(self.validator, self.ai)
        self._github_client_factory = github_client_factory or (
            lambda: GitHubClient(settings.github_token, settings.github_api_url)
        )
        self._open_history = history_opener

    # ------------------------------------------------------------------
    # Rule-based tools
    # ------------------------------------------------------------------

    async def generate_from_text(self, request: TextDiagramRequest) -> dict:
        try:
            code = generate_diagram_from_text(request.diagram_type, request.description)
            repaired = await self.repair.repair(code, request.diagram_type, request.description)
        except Exception as e:
            logger.exception("Text diagram generation failed")
            return failure(f"Error generating diagram: {e}")

        return success(
            request.diagram_type,
            repaired,
            f"Generated {request.diagram_type} diagram from text description",
        )

    async def generate_from_github(self, request: GithubDiagramRequest) -> dict:
        try:
            owner, repo = parse_repo_url(request.repo_url)
            async with self._github_client_factory() as github:
                data = await github.fetch_repository_data(owner, repo)
            code = generate_diagram_from_github(request.diagram_type, owner, repo, data)
            repaired = await self.repair.repair(
                code, request.diagram_type, f"GitHub repository {owner}/{repo}"
            )
        except Exception as e:
            logger.exception("GitHub diagram generation failed for %s", request.repo_url)
            return failure(f"Error generating diagram from GitHub repository: {e}")

        return success(
            request.diagram_type,
            repaired,
            f"Generated {request.diagram_type} diagram for GitHub repository {owner}/{repo}",
            repository=f"{owner}/{repo}",
        )

    def list_supported_diagram_types(self) -> dict:
        return {
            "success": True,
            "diagram_types": [
                {"name": name, "description": description}
                for name, description in DIAGRAM_TYPES.items()
            ],
            "count": len(DIAGRAM_TYPES),
        }

    # ------------------------------------------------------------------
    # AI tools
    # ------------------------------------------------------------------

    async def generate_from_text_with_ai(self, request: AITextDiagramRequest) -> dict:
        generator = "rule_based"
        code = None

        if self.ai.is_configured():
            try:
                output = await self.ai.generate_from_text(
                    request.diagram_type, request.description, request.use_advanced_model
                )
                code, generator = output.mermaid_code, "ai"
            except Exception as e:
                logger.warning("AI generation failed, falling back to rule-based generator: %s", e)
        else:
            logger.warning("OpenRouter API key not configured. Falling back to rule-based generator.")

        try:
            if code is None:
                code = generate_diagram_from_text(request.diagram_type, request.description)
            repaired = await self.repair.repair(code, request.diagram_type, request.description)
        except Exception as e:
            logger.exception("AI text diagram generation failed")
            return failure(f"Error generating diagram with AI: {e}")

        return success(
            request.diagram_type,
            repaired,
            f"Generated {request.diagram_type} diagram from text description ({generator} generator)",
            generator=generator,
        )

    async def generate_from_code(self, request: CodeDiagramRequest) -> dict:
        try:
            output = await self.ai.generate_from_code(request.diagram_type, request.code)
            repaired = await self.repair.repair(
                output.mermaid_code,
                request.diagram_type,
                f"Code context: {request.code[:CODE_CONTEXT_CHARS]}...",
            )
        except Exception as e:
            logger.exception("Code diagram generation failed")
            return failure(f"Error generating diagram from code: {e}")

        return success(
            request.diagram_type,
            repaired,
            f"Generated {request.diagram_type} diagram from code",
            explanation=output.explanation,
        )

    async def generate_diff(self, request: DiffDiagramRequest) -> dict:
        try:
            output = await self.ai.generate_diff(request.diagram_type, request.before_code, request.after_code)
            repaired = await self.repair.repair(
                output.mermaid_code,
                request.diagram_type,
                "Diff diagram showing changes between code versions",
            )
        except Exception as e:
            logger.exception("Diff diagram generation failed")
            return failure(f"Error generating diff diagram: {e}")

        return success(
            request.diagram_type,
            repaired,
            f"Generated {request.diagram_type} diagram showing code differences",
            explanation=output.explanation,
        )

    # ------------------------------------------------------------------
    # Export and history
    # ------------------------------------------------------------------

    async def export_image(self, request: ExportImageRequest) -> dict:
        options = ExportOptions(
            format=request.format,
            width=request.width,
            height=request.height,
            background_color=request.background_color,
            output_path=request.output_path,
        )
        try:
            result = await export_diagram(
                apply_all_styling_directives(request.mermaid_code),
                options,
                self.settings.mermaid_js_url,
            )
        except Exception as e:
            logger.exception("Diagram export failed")
            return failure(f"Error exporting diagram to image: {e}")

        message = f"Exported diagram as {request.format.upper()}"
        if request.output_path:
            return {"success": True, "format": request.format, "output_path": result, "message": message}

        return {
            "success": True,
            "format": request.format,
            "message": message,
            "data_url": to_data_url(result, request.format),
            "image": {
                "type": "base64",
                "media_type": MIME_TYPES[request.format],
                "data": base64.b64encode(result).decode("ascii"),
            },
        }

    async def generate_evolution(self, request: EvolutionDiagramRequest) -> dict:
        try:
            owner, repo = parse_repo_url(request.repo_url)
            subject = f"{owner}/{repo}" + (f" (file: {request.filepath})" if request.filepath else "")

            async with self._open_history(
                request.repo_url, self.settings.github_token, request.commit_limit + 1
            ) as history:
                commits = await history.get_commits(request.commit_limit)
                if request.filepath:
                    code = await self._file_evolution_diagram(history, request)
                elif request.diagram_type == "gitGraph":
                    code = render_commit_git_graph(commits)
                else:
                    if request.diagram_type != "flowchart":
                        logger.info("No evolution renderer for %s, using flowchart", request.diagram_type)
                    code = render_evolution_flowchart(commits)

            repaired = await self.repair.repair(
                code, request.diagram_type, f"Repository evolution diagram for {subject}"
            )
        except Exception as e:
            logger.exception("Evolution diagram generation failed for %s", request.repo_url)
            return failure(f"Error generating repository evolution diagram: {e}")

        return success(
            request.diagram_type,
            repaired,
            f"Generated {request.diagram_type} diagram showing evolution of {subject}",
            repository=f"{owner}/{repo}",
            commit_count=len(commits),
        )

    async def _file_evolution_diagram(self, history, request: EvolutionDiagramRequest) -> str:
        versions = await history.get_file_evolution(request.filepath, request.commit_limit)
        if not versions:
            raise HistoryError(f"File {request.filepath} not found in repository history")

        if request.diagram_type == "gitGraph":
            return render_commit_git_graph(versions)

        if len(versions) == 1:
            output = await self.ai.generate_from_code(request.diagram_type, versions[0].content)
        else:
            # versions are newest first
            output = await self.ai.generate_diff(request.diagram_type, versions[-1].content, versions[0].content)
        return output.mermaid_code
