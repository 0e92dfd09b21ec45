"""
Text-to-diagram renderers.

Each renderer turns the result of text extraction into Mermaid source for one
diagram type. ``TEXT_RENDERERS`` maps the public diagram type names to
renderers; ``generate_diagram_from_text`` runs extraction and dispatches.

State, user journey, Gantt, pie, quadrant, requirement, git graph and C4
diagrams are fixed illustrative templates that ignore their input.
"""

from typing import Callable

from .extractor import extract_entities, extract_process_steps, extract_relationships
from .models import Relationship

TextRenderer = Callable[[str, list[str], list[Relationship]], str]

DECISION_KEYWORDS = ("if", "decide", "check")
RESPONSE_KEYWORDS = ("return", "respond", "response")


def node_id(index: int) -> str:
    """Spreadsheet-style node id: A..Z, then AA, AB, ..."""
    letters = ""
    index += 1
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        letters = chr(65 + remainder) + letters
    return letters


# ============================================================================
# Entity/relationship driven renderers
# ============================================================================

def generate_class_diagram(entities: list[str], relationships: list[Relationship]) -> str:
    lines = ["classDiagram"]

    for entity in entities:
        lowered = entity.lower()
        if "service" in lowered:
            methods = ("getData", "processRequest")
        elif "controller" in lowered:
            methods = ("handleRequest", "sendResponse")
        elif "repository" in lowered:
            methods = ("findById", "save")
        else:
            methods = ("getInfo", "update")

        lines.append(f"    class {entity} {{")
        lines.append("        +String name")
        lines.append("        +String description")
        for method in methods:
            lines.append(f"        +{method}()")
        lines.append("    }")

    for rel in relationships:
        lines.append(f"    {rel.source} {_class_arrow(rel.label)} {rel.target} : {rel.label}")

    return "\n".join(lines) + "\n"


def _class_arrow(label: str) -> str:
    if "has" in label or "contains" in label:
        return "*--"
    if "inherits" in label or "extends" in label:
        return "<|--"
    if "implements" in label:
        return "<|.."
    # uses / depends and anything unrecognised
    return "-->"


def generate_flowchart(description: str) -> str:
    """Flowchart of the inferred process steps, or a default decision flow."""
    lines = ["flowchart TD"]
    steps = extract_process_steps(description)

    if not steps:
        lines.extend([
            "    A[Start] --> B{Process Data?}",
            "    B -->|Yes| C[Process Data]",
            "    B -->|No| D[Skip Processing]",
            "    C --> E[End]",
            "    D --> E",
        ])
        return "\n".join(lines) + "\n"

    for i, step in enumerate(steps):
        lines.append(f"    {node_id(i)}[{step}]")

    for i in range(len(steps) - 1):
        current = node_id(i)
        following = node_id(i + 1)
        lowered = steps[i].lower()
        if any(keyword in lowered for keyword in DECISION_KEYWORDS):
            lines.append(f"    {current} -->|Yes| {following}")
            if i + 2 < len(steps):
                lines.append(f"    {current} -->|No| {node_id(i + 2)}")
        else:
            lines.append(f"    {current} --> {following}")

    return "\n".join(lines) + "\n"


def generate_sequence_diagram(entities: list[str], relationships: list[Relationship]) -> str:
    lines = ["sequenceDiagram"]
    lines.extend(f"    participant {entity}" for entity in entities)

    for rel in relationships:
        arrow = "-->>" if any(k in rel.label for k in RESPONSE_KEYWORDS) else "->>"
        lines.append(f"    {rel.source}{arrow}{rel.target}: {rel.label}")

    if not relationships and len(entities) > 1:
        for caller, callee in zip(entities, entities[1:]):
            lines.append(f"    {caller}->>+{callee}: Request")
            lines.append(f"    {callee}-->>-{caller}: Response")

    return "\n".join(lines) + "\n"


def generate_er_diagram(entities: list[str], relationships: list[Relationship]) -> str:
    lines = ["erDiagram"]

    for rel in relationships:
        lines.append(
            f'    {rel.source.upper()} {_cardinality(rel.label)} {rel.target.upper()} : "{rel.label}"'
        )

    if not relationships and len(entities) > 1:
        for parent, child in zip(entities, entities[1:]):
            lines.append(f'    {parent.upper()} ||--o{{ {child.upper()} : "has"')

    return "\n".join(lines) + "\n"


def _cardinality(label: str) -> str:
    if "one-to-one" in label or "1:1" in label:
        return "||--||"
    if "many-to-many" in label or "m:n" in label or "n:m" in label:
        return "}o--o{"
    if "one-to-many" in label or "1:n" in label or "has many" in label or "have many" in label:
        return "||--o{"
    if "many-to-one" in label or "n:1" in label:
        return "}o--||"
    return "||--o{"


# ============================================================================
# Fixed templates
# ============================================================================

STATE_TEMPLATE = """stateDiagram-v2
    [*] --> Still
    Still --> [*]
    Still --> Moving
    Moving --> Still
    Moving --> Crash
    Crash --> [*]"""

USER_JOURNEY_TEMPLATE = """journey
    title My working day
    section Go to work
      Make tea: 5: Me
      Go upstairs: 3: Me
      Do work: 1: Me, Cat
    section Go home
      Go downstairs: 5: Me
      Sit down: 5: Me"""

GANTT_TEMPLATE = """gantt
    title A Gantt Diagram
    dateFormat  YYYY-MM-DD
    section Section
    A task           :a1, 2023-01-01, 30d
    Another task     :after a1, 20d
    section Another
    Task in sec      :2023-01-12, 12d
    another task     :24d"""

PIE_TEMPLATE = """pie title Distribution
    "A" : 42.96
    "B" : 50.05
    "C" : 6.99"""

QUADRANT_TEMPLATE = """quadrantChart
    title Reach and engagement of campaigns
    x-axis Low Reach --> High Reach
    y-axis Low Engagement --> High Engagement
    quadrant-1 We should expand
    quadrant-2 Need to promote
    quadrant-3 Re-evaluate
    quadrant-4 May be improved
    Campaign A: [0.3, 0.6]
    Campaign B: [0.45, 0.23]
    Campaign C: [0.57, 0.69]
    Campaign D: [0.78, 0.34]
    Campaign E: [0.40, 0.34]
    Campaign F: [0.35, 0.78]"""

REQUIREMENT_TEMPLATE = """requirementDiagram
    requirement test_req {
    id: 1
    text: the test text.
    risk: high
    verifymethod: test
    }
    element test_entity {
    type: simulation
    }
    test_entity - satisfies -> test_req"""

GIT_GRAPH_TEMPLATE = """gitGraph
    commit
    branch develop
    checkout develop
    commit
    commit
    checkout main
    merge develop
    commit
    commit"""

C4_TEMPLATE = """C4Context
    title System Context diagram for Internet Banking System
    Enterprise_Boundary(b0, "BankBoundary") {
      Person(customer, "Banking Customer", "A customer of the bank")
      System(banking_system, "Internet Banking System", "Allows customers to view information about their bank accounts")
      System_Ext(mail_system, "E-mail system", "The internal Microsoft Exchange e-mail system")
      System_Ext(mainframe, "Mainframe Banking System", "Stores all of the core banking information about customers, accounts, transactions, etc.")
    }
    Rel(customer, banking_system, "Uses")
    Rel_Back(customer, mail_system, "Sends e-mails to")
    Rel_Neighbor(banking_system, mail_system, "Sends e-mails", "SMTP")
    Rel(banking_system, mainframe, "Uses")"""


def _template(source: str) -> TextRenderer:
    return lambda description, entities, relationships: source


# ============================================================================
# Dispatch
# ============================================================================

TEXT_RENDERERS: dict[str, TextRenderer] = {
    "classDiagram": lambda description, entities, relationships: generate_class_diagram(entities, relationships),
    "flowchart": lambda description, entities, relationships: generate_flowchart(description),
    "sequenceDiagram": lambda description, entities, relationships: generate_sequence_diagram(entities, relationships),
    "entityRelationshipDiagram": lambda description, entities, relationships: generate_er_diagram(entities, relationships),
    "stateDiagram": _template(STATE_TEMPLATE),
    "userJourney": _template(USER_JOURNEY_TEMPLATE),
    "gantt": _template(GANTT_TEMPLATE),
    "pieChart": _template(PIE_TEMPLATE),
    "quadrantChart": _template(QUADRANT_TEMPLATE),
    "requirementDiagram": _template(REQUIREMENT_TEMPLATE),
    "gitGraph": _template(GIT_GRAPH_TEMPLATE),
    "c4Diagram": _template(C4_TEMPLATE),
}


def unsupported_diagram(diagram_type: str) -> str:
    """Two-node flowchart noting that the type could not be generated."""
    safe_type = diagram_type.replace('"', "'")
    return (
        "flowchart TD\n"
        "    A[Start] --> B[End]\n"
        f'    N["Could not generate specific diagram type: {safe_type}"]\n'
        "    A --- N\n"
    )


def generate_diagram_from_text(diagram_type: str, description: str) -> str:
    """Generate Mermaid source of the given type from a text description."""
    renderer = TEXT_RENDERERS.get(diagram_type)
    if renderer is None:
        return unsupported_diagram(diagram_type)

    entities = extract_entities(description)
    relationships = extract_relationships(description, entities)
    return renderer(description, entities, relationships)
