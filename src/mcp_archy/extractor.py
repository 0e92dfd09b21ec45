"""
Entity, relationship and process-step extraction from free text.

The heuristics here are deliberately simple pattern matches. They are pure
functions: the same text always yields the same entities, relationships and
steps.
"""

import re

from .models import Relationship

ENTITY_KEYWORDS = ("class", "entity", "component", "system", "user", "database", "service")

RELATIONSHIP_VERBS = (
    "has", "have", "contains", "includes", "uses", "calls", "depends on",
    "relates to", "connects to", "links to", "references", "inherits from",
    "extends", "implements",
)

STEP_KEYWORDS = ("first", "then", "next", "finally", "lastly")

DEFAULT_LABEL = "relates to"

TRAILING_PUNCTUATION = ".,;:!?"
_CAPITALIZED = re.compile(r"^[A-Z][a-z]+")
_KEYWORD_ENTITY = re.compile(
    r"\b(" + "|".join(ENTITY_KEYWORDS) + r")\s+([A-Za-z0-9_]+)\b",
    re.IGNORECASE,
)
_VERB = re.compile(
    r"\b(" + "|".join(re.escape(v) for v in RELATIONSHIP_VERBS) + r")\b",
    re.IGNORECASE,
)
_NUMBERED_STEP = re.compile(r"\b(\d+)[.)]\s+([^\n.]+)")
_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_AFTER_TERMINATOR = re.compile(r"(?<=[.!?])")
_ACTION_SENTENCE = re.compile(r"^\s*[A-Z][a-z]+\s+[a-z]+")


def extract_entities(description: str) -> list[str]:
    """Identify candidate entities in a description.

    A whitespace-delimited token counts when, after stripping trailing
    punctuation, it starts with an uppercase letter followed by lowercase
    letters and has no period left in it. Identifiers following a domain
    keyword ("service Billing", "database orders") are added as well.

    Returns the de-duplicated entities in first-seen order.
    """
    entities = {}

    for word in description.split():
        clean = word.rstrip(TRAILING_PUNCTUATION)
        if len(clean) > 1 and "." not in clean and _CAPITALIZED.match(clean):
            entities[clean] = None

    for match in _KEYWORD_ENTITY.finditer(description):
        entities[match.group(2)] = None

    return list(entities)


def extract_relationships(description: str, entities: list[str]) -> list[Relationship]:
    """Find labeled relationships between every ordered pair of entities.

    A pair is related when one sentence mentions the first entity and later
    the second. Only sentences ending in ``.``, ``!`` or ``?`` are considered.
    The label is the first recognised relationship verb between the two
    mentions. The same pair can be reported in both directions and more than
    once; callers must tolerate duplicates.

    When nothing is found and there are at least two entities, consecutive
    entities are chained with a single label inferred from the whole text.
    """
    relationships = []
    # the last piece has no terminator
    sentences = _AFTER_TERMINATOR.split(description)[:-1]
    mentions = {
        entity: re.compile(r"\b" + re.escape(entity) + r"\b", re.IGNORECASE)
        for entity in entities
    }

    for first in entities:
        for second in entities:
            if first == second:
                continue
            for sentence in sentences:
                if not _mentions_in_order(sentence, mentions[first], mentions[second]):
                    continue
                between = _text_between(sentence, first, second)
                verb = _VERB.search(between)
                label = verb.group(0) if verb else DEFAULT_LABEL
                relationships.append(Relationship(first, second, label))

    if not relationships and len(entities) > 1:
        label = _infer_chain_label(description)
        for source, target in zip(entities, entities[1:]):
            relationships.append(Relationship(source, target, label))

    return relationships


def extract_process_steps(description: str) -> list[str]:
    """Infer an ordered list of process steps.

    Tiers are tried in order and the first one yielding anything wins:
    numbered list items, sentences with sequencing keywords, then short
    sentences shaped like "Verb object ...".
    """
    steps = [m.group(2).strip() for m in _NUMBERED_STEP.finditer(description)]
    if steps:
        return steps

    sentences = _SENTENCE_SPLIT.split(description)

    for sentence in sentences:
        lowered = sentence.lower()
        if any(keyword in lowered for keyword in STEP_KEYWORDS):
            steps.append(sentence.strip())
    if steps:
        return steps

    for sentence in sentences:
        if _ACTION_SENTENCE.match(sentence):
            trimmed = sentence.strip()
            if 10 < len(trimmed) < 60:
                steps.append(trimmed)

    return steps


def _mentions_in_order(sentence: str, first: re.Pattern, second: re.Pattern) -> bool:
    match = first.search(sentence)
    return match is not None and second.search(sentence, match.end()) is not None


def _text_between(sentence: str, first: str, second: str) -> str:
    # Offsets come from case-sensitive lookups while the sentence was matched
    # case-insensitively, so either may be missing or out of order.
    start = max(sentence.find(first), 0) + len(first) if first in sentence else 0
    end = max(sentence.find(second), 0)
    if start > end:
        start, end = end, start
    return sentence[start:end]


def _infer_chain_label(description: str) -> str:
    if "has" in description or "have" in description:
        return "has"
    if "uses" in description or "use" in description:
        return "uses"
    if "contains" in description or "contain" in description:
        return "contains"
    return DEFAULT_LABEL
