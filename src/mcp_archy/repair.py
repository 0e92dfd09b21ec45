"""
Validate-and-repair pipeline for generated Mermaid source.

The pipeline is a small state machine::

    VALIDATING ──valid──────────────────────────────> DONE (original_valid)
        │ invalid, AI configured     │ invalid, no AI
        v                            v
    ATTEMPTING_AI_FIX ──fails──> ATTEMPTING_RULE_FIX ──> DONE (rule_fixed | unrepaired)
        │ fixed code validates
        v
       DONE (ai_fixed)

``RepairPipeline.repair`` never raises. Validator and AI failures are logged
and treated as "not fixed", and the caller always gets code back: a repaired
version when one validated, otherwise the original input.
"""

import logging
import re
from enum import Enum
from typing import Optional

from .ai import DiagramAI
from .models import RepairOutcome, RepairResult, ValidationError, ValidationResult
from .validator import MermaidValidator

logger = logging.getLogger(__name__)

MERMAID_KEYWORDS = (
    "flowchart", "graph", "sequenceDiagram", "classDiagram", "stateDiagram-v2",
    "stateDiagram", "erDiagram", "journey", "gantt", "pie", "quadrantChart",
    "requirementDiagram", "gitGraph", "C4Context", "C4Container", "C4Component",
    "C4Dynamic", "C4Deployment", "mindmap", "timeline",
)

# Directives (%%{...}%%, possibly spanning lines) and %% comments before the
# diagram keyword.
_LEADING_DIRECTIVES = re.compile(r"\A(?:\s*(?:%%\{(?:(?!%%\{).)*?\}%%|%%[^\n]*))*\s*", re.DOTALL)
_KEYWORD = re.compile(r"(" + "|".join(re.escape(k) for k in MERMAID_KEYWORDS) + r")\b")

_SPACED_QUOTED_LABEL = re.compile(r'\b(\w+)\s*\[\s*"([^"\n]+)"\s*\]')
_BARE_LABEL = re.compile(r'\b(\w+)\[(?![(\[/\\"])([^\[\]"\n]*)\]')
_LABEL_PUNCTUATION = re.compile(r"[():;,{}|<>]")
_SUBGRAPH = re.compile(r"^[ \t]*subgraph\b", re.MULTILINE)
_END = re.compile(r"^[ \t]*end[ \t]*$", re.MULTILINE)


class RepairState(Enum):
    VALIDATING = "validating"
    ATTEMPTING_AI_FIX = "attempting_ai_fix"
    ATTEMPTING_RULE_FIX = "attempting_rule_fix"
    DONE = "done"


def split_leading_directives(code: str) -> tuple[str, str]:
    """Split ``code`` into its leading %% lines and the remaining body."""
    match = _LEADING_DIRECTIVES.match(code)
    return code[:match.end()], code[match.end():]


def has_type_keyword(code: str) -> bool:
    _, body = split_leading_directives(code)
    return bool(_KEYWORD.match(body))


def infer_type_header(code: str) -> str:
    """Guess the Mermaid header line for a body with no type keyword."""
    if "-->" in code:
        return "flowchart TD"
    if "class " in code:
        return "classDiagram"
    if "participant " in code or "actor " in code:
        return "sequenceDiagram"
    if "state " in code:
        return "stateDiagram-v2"
    return "flowchart TD"


def infer_diagram_type(code: str) -> str:
    """Diagram type name for prompting, from the keyword or the content."""
    _, body = split_leading_directives(code)
    match = _KEYWORD.match(body)
    if match:
        return match.group(1)
    return infer_type_header(body).split()[0]


def add_missing_type_keyword(code: str) -> str:
    directives, body = split_leading_directives(code)
    if _KEYWORD.match(body):
        return code
    header = infer_type_header(body)
    if directives and not directives.endswith("\n"):
        directives += "\n"
    return f"{directives}{header}\n{body}"


def normalize_node_labels(code: str) -> str:
    code = _SPACED_QUOTED_LABEL.sub(r'\1["\2"]', code)
    return _BARE_LABEL.sub(_quote_punctuated_label, code)


def _quote_punctuated_label(match: re.Match) -> str:
    node, label = match.group(1), match.group(2)
    if not _LABEL_PUNCTUATION.search(label):
        return match.group(0)
    return f'{node}["{label}"]'


def close_subgraphs(code: str) -> str:
    missing = len(_SUBGRAPH.findall(code)) - len(_END.findall(code))
    if missing <= 0:
        return code
    return code.rstrip("\n") + "\nend" * missing + "\n"


def apply_rule_fixes(code: str) -> str:
    """Deterministic syntax fixes, applied in order."""
    code = add_missing_type_keyword(code)
    code = normalize_node_labels(code)
    return close_subgraphs(code)


class RepairPipeline:
    """Runs validation and, when needed, AI and rule-based repair.

    Args:
        validator: Anything with an async ``validate(code)``.
        ai: Optional AI backend; its ``fix_syntax`` is tried first when it
            reports ``is_configured()``.
    """

    def __init__(self, validator: MermaidValidator, ai: Optional[DiagramAI] = None):
        self.validator = validator
        self.ai = ai

    async def _validate(self, code: str) -> ValidationResult:
        try:
            return await self.validator.validate(code)
        except Exception as e:
            logger.warning("Validator raised, treating code as invalid: %s", e)
            return ValidationResult(is_valid=False, error=ValidationError(message=str(e)))

    def _ai_available(self) -> bool:
        return self.ai is not None and self.ai.is_configured()

    async def _try_ai_fix(self, code: str, diagram_type: str, error: str, context: str) -> Optional[str]:
        logger.info("Attempting to fix Mermaid syntax with AI")
        try:
            fixed = await self.ai.fix_syntax(code, diagram_type or infer_diagram_type(code), error, context)
        except Exception as e:
            logger.warning("AI syntax fix failed: %s", e)
            return None

        if (await self._validate(fixed)).is_valid:
            return fixed
        logger.info("AI fix did not validate, falling back to rule-based fixes")
        return None

    async def _rule_fix(self, code: str) -> RepairResult:
        try:
            fixed = apply_rule_fixes(code)
        except Exception as e:
            logger.warning("Rule-based fixes failed: %s", e)
            return RepairResult(code, RepairOutcome.UNREPAIRED)

        if fixed != code and (await self._validate(fixed)).is_valid:
            return RepairResult(fixed, RepairOutcome.RULE_FIXED)
        return RepairResult(code, RepairOutcome.UNREPAIRED)

    async def repair(self, code: str, diagram_type: str = "", context: str = "") -> RepairResult:
        state = RepairState.VALIDATING
        result = RepairResult(code, RepairOutcome.UNREPAIRED)
        error_message = ""

        while state is not RepairState.DONE:
            if state is RepairState.VALIDATING:
                validation = await self._validate(code)
                if validation.is_valid:
                    result = RepairResult(code, RepairOutcome.ORIGINAL_VALID)
                    state = RepairState.DONE
                else:
                    error_message = validation.message or "Unknown syntax error"
                    logger.info("Diagram failed validation: %s", error_message)
                    if self._ai_available():
                        state = RepairState.ATTEMPTING_AI_FIX
                    else:
                        state = RepairState.ATTEMPTING_RULE_FIX

            elif state is RepairState.ATTEMPTING_AI_FIX:
                fixed = await self._try_ai_fix(code, diagram_type, error_message, context)
                if fixed is not None:
                    result = RepairResult(fixed, RepairOutcome.AI_FIXED)
                    state = RepairState.DONE
                else:
                    state = RepairState.ATTEMPTING_RULE_FIX

            elif state is RepairState.ATTEMPTING_RULE_FIX:
                result = await self._rule_fix(code)
                state = RepairState.DONE

        return result
