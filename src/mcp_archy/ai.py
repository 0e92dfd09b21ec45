"""
LLM-backed diagram generation through LangChain and an OpenAI-compatible
endpoint (OpenRouter by default).

Every chain is ``prompt | chat model | PydanticOutputParser`` and yields a
``DiagramOutput``. Models are only built when a chain runs, so an
unconfigured ``DiagramAI`` can be constructed freely and queried with
``is_configured()``.
"""

import logging
import re
from typing import Callable, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.output_parsers import PydanticOutputParser
from langchain_core.prompts import PromptTemplate
from langchain_openai import ChatOpenAI
from pydantic import BaseModel, Field

from .config import ModelProfile, Settings
from .errors import AIConfigurationError

logger = logging.getLogger(__name__)

APP_TITLE = "mcp-archy"


class DiagramOutput(BaseModel):
    mermaid_code: str = Field(description="The Mermaid syntax code for the diagram")
    explanation: str = Field(description="A brief explanation of the diagram")


_parser = PydanticOutputParser(pydantic_object=DiagramOutput)

TEXT_TO_DIAGRAM_PROMPT = PromptTemplate.from_template(
    """You are an expert in creating Mermaid diagrams from text descriptions.

Your task is to generate a {diagram_type} diagram based on the following description:

{description}

Guidelines for creating the diagram:
- Focus on clarity and simplicity
- Include only the most important elements
- Use proper Mermaid syntax for {diagram_type}
- Add appropriate labels and relationships

{format_instructions}"""
).partial(format_instructions=_parser.get_format_instructions())

CODE_TO_DIAGRAM_PROMPT = PromptTemplate.from_template(
    """You are an expert in analyzing code and creating Mermaid diagrams.

Your task is to generate a {diagram_type} diagram based on the following code:

{code}

Guidelines for creating the diagram:
- Focus on the structure and relationships in the code
- Include classes, functions, and important variables
- Use proper Mermaid syntax for {diagram_type}
- Make sure the diagram accurately represents the code structure

{format_instructions}"""
).partial(format_instructions=_parser.get_format_instructions())

DIFF_DIAGRAM_PROMPT = PromptTemplate.from_template(
    """You are an expert in visualizing code changes using Mermaid diagrams.

Your task is to generate a {diagram_type} diagram that shows the differences between the before and after versions of the code.

BEFORE CODE:
{before_code}

AFTER CODE:
{after_code}

Guidelines for creating the diagram:
- Focus on structural changes between the versions
- Highlight added, modified, and removed components
- Use color coding to indicate changes (green for additions, yellow for modifications, red for removals)
- Use proper Mermaid syntax for {diagram_type}

{format_instructions}"""
).partial(format_instructions=_parser.get_format_instructions())

FIX_SYNTAX_PROMPT = PromptTemplate.from_template(
    """You are an expert in Mermaid diagram syntax.

Your task is to fix the syntax errors in the following {diagram_type} diagram:

```mermaid
{invalid_code}
```

The validator reported the following error:
{error_message}

Original description/context for this diagram:
{context}

Guidelines for fixing the diagram:
- Maintain the original intent and structure of the diagram
- Fix all syntax errors according to the Mermaid syntax rules
- Make minimal changes to preserve the original content
- If the diagram type keyword is missing or incorrect, add or fix it

{format_instructions}"""
).partial(format_instructions=_parser.get_format_instructions())

_FENCE = re.compile(r"^```[\w-]*\s*\n(.*?)\n?```\s*$", re.DOTALL)


def strip_code_fences(code: str) -> str:
    """Remove a surrounding Markdown code fence (```mermaid ... ```), if any."""
    code = code.strip()
    match = _FENCE.match(code)
    if match:
        return match.group(1).strip()
    return code


class DiagramAI:
    """Structured Mermaid generation and repair backed by a chat model.

    Args:
        settings: Provides the API key, endpoint and model profiles.
        llm_factory: Builds a chat model for a profile. Defaults to
            ``ChatOpenAI`` pointed at ``settings.openrouter_base_url``.
    """

    def __init__(self, settings: Settings, llm_factory: Optional[Callable[[ModelProfile], BaseChatModel]] = None):
        self.settings = settings
        self._llm_factory = llm_factory or self._openrouter_model

    def is_configured(self) -> bool:
        return self.settings.is_ai_configured()

    def _openrouter_model(self, profile: ModelProfile) -> BaseChatModel:
        return ChatOpenAI(
            model=profile.model_name,
            temperature=profile.temperature,
            max_tokens=profile.max_tokens,
            api_key=self.settings.openrouter_api_key,
            base_url=self.settings.openrouter_base_url,
            default_headers={"X-Title": APP_TITLE},
        )

    async def _run(self, purpose: str, profile: ModelProfile, prompt: PromptTemplate, **variables) -> DiagramOutput:
        if not self.is_configured():
            raise AIConfigurationError(f"OpenRouter API key not configured. Cannot {purpose}.")

        logger.info("Running %s chain with model %s", purpose, profile.model_name)
        chain = prompt | self._llm_factory(profile) | _parser
        result = await chain.ainvoke(variables)
        result.mermaid_code = strip_code_fences(result.mermaid_code)
        return result

    async def generate_from_text(self, diagram_type: str, description: str, use_advanced_model: bool = False) -> DiagramOutput:
        profile = self.settings.advanced_model if use_advanced_model else self.settings.default_model
        return await self._run(
            "generate diagram from text", profile, TEXT_TO_DIAGRAM_PROMPT,
            diagram_type=diagram_type, description=description,
        )

    async def generate_from_code(self, diagram_type: str, code: str) -> DiagramOutput:
        return await self._run(
            "generate diagram from code", self.settings.code_model, CODE_TO_DIAGRAM_PROMPT,
            diagram_type=diagram_type, code=code,
        )

    async def generate_diff(self, diagram_type: str, before_code: str, after_code: str) -> DiagramOutput:
        return await self._run(
            "generate diff diagram", self.settings.code_model, DIFF_DIAGRAM_PROMPT,
            diagram_type=diagram_type, before_code=before_code, after_code=after_code,
        )

    async def fix_syntax(self, invalid_code: str, diagram_type: str, error_message: str, context: str = "") -> str:
        """Ask the model to repair ``invalid_code``; returns only the new code."""
        result = await self._run(
            "fix Mermaid syntax", self.settings.code_model, FIX_SYNTAX_PROMPT,
            invalid_code=invalid_code,
            diagram_type=diagram_type,
            error_message=error_message,
            context=context or "(none)",
        )
        return result.mermaid_code
