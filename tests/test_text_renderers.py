"""Tests for the text-path renderers and their registry."""

import re

import pytest

from mcp_archy.models import DIAGRAM_TYPES, Relationship
from mcp_archy.text_renderers import (
    TEXT_RENDERERS,
    generate_class_diagram,
    generate_diagram_from_text,
    generate_er_diagram,
    generate_flowchart,
    generate_sequence_diagram,
    node_id,
)


def test_registry_covers_every_diagram_type():
    assert set(TEXT_RENDERERS) == set(DIAGRAM_TYPES)


@pytest.mark.parametrize("text", ["", "anything at all", "The User sends a Request to the Server."])
def test_pie_chart_is_a_fixed_template(text):
    code = generate_diagram_from_text("pieChart", text)
    assert code.startswith("pie title")
    assert code == generate_diagram_from_text("pieChart", "something else")


@pytest.mark.parametrize("diagram_type,header", [
    ("stateDiagram", "stateDiagram-v2"),
    ("userJourney", "journey"),
    ("gantt", "gantt"),
    ("quadrantChart", "quadrantChart"),
    ("requirementDiagram", "requirementDiagram"),
    ("gitGraph", "gitGraph"),
    ("c4Diagram", "C4Context"),
])
def test_templates_start_with_their_keyword(diagram_type, header):
    assert generate_diagram_from_text(diagram_type, "ignored").startswith(header)


def test_unknown_type_renders_note_flowchart():
    code = generate_diagram_from_text("mindmapX", "whatever")
    assert code.startswith("flowchart TD")
    assert "A[Start] --> B[End]" in code
    assert "Could not generate specific diagram type: mindmapX" in code


def test_unknown_type_quotes_are_neutralised():
    code = generate_diagram_from_text('bad"type', "whatever")
    assert 'bad"type' not in code
    assert "bad'type" in code


class TestNodeIds:

    @pytest.mark.parametrize("index,expected", [
        (0, "A"), (25, "Z"), (26, "AA"), (27, "AB"), (51, "AZ"), (52, "BA"), (701, "ZZ"), (702, "AAA"),
    ])
    def test_spreadsheet_sequence(self, index, expected):
        assert node_id(index) == expected


class TestClassDiagram:

    @pytest.mark.parametrize("label,arrow", [
        ("extends", "<|--"),
        ("inherits from", "<|--"),
        ("implements", "<|.."),
        ("has", "*--"),
        ("contains", "*--"),
        ("uses", "-->"),
        ("relates to", "-->"),
    ])
    def test_arrow_by_label(self, label, arrow):
        code = generate_class_diagram(["Dog", "Animal"], [Relationship("Dog", "Animal", label)])
        assert f"    Dog {arrow} Animal : {label}" in code

    def test_methods_by_name(self):
        code = generate_class_diagram(["UserService", "OrderController", "ItemRepository", "Thing"], [])
        assert "+getData()" in code
        assert "+handleRequest()" in code
        assert "+findById()" in code
        assert "+getInfo()" in code
        assert code.count("+String name") == 4

    def test_from_text(self):
        code = generate_diagram_from_text("classDiagram", "The Car has an Engine.")
        assert code.startswith("classDiagram")
        assert "class Car {" in code
        assert "Car *-- Engine : has" in code


class TestFlowchart:

    def test_default_when_no_steps(self):
        code = generate_flowchart("")
        assert code.startswith("flowchart TD")
        assert "B{Process Data?}" in code

    def test_sequential_steps(self):
        code = generate_flowchart("1. Receive order\n2. Pack items\n3. Ship parcel")
        assert "    A[Receive order]" in code
        assert "    A --> B" in code
        assert "    B --> C" in code

    def test_decision_step_branches(self):
        code = generate_flowchart("1. Check stock\n2. Reserve items\n3. Notify buyer")
        assert "A -->|Yes| B" in code
        assert "A -->|No| C" in code

    def test_decision_on_second_to_last_step_has_no_no_branch(self):
        code = generate_flowchart("1. Load cart\n2. Check stock\n3. Reserve items")
        assert "B -->|Yes| C" in code
        assert "B -->|No|" not in code

    def test_more_than_26_steps_never_reuse_ids(self):
        description = "\n".join(f"{i}. Do task {i}" for i in range(1, 31))
        code = generate_flowchart(description)
        ids = re.findall(r"^    ([A-Z]+)\[", code, re.MULTILINE)
        assert len(ids) == 30
        assert len(set(ids)) == 30
        assert "Z --> AA" in code
        assert "AC --> AD" in code


class TestSequenceDiagram:

    def test_participants_and_messages(self):
        code = generate_diagram_from_text("sequenceDiagram", "The User sends a Request to the Server.")
        assert "participant User" in code
        assert "participant Server" in code
        assert "User->>Request: relates to" in code

    def test_response_arrow(self):
        code = generate_sequence_diagram(["Server", "Client"], [Relationship("Server", "Client", "returns")])
        assert "Server-->>Client: returns" in code

    def test_default_exchange_without_relationships(self):
        code = generate_sequence_diagram(["Client", "Api"], [])
        assert "Client->>+Api: Request" in code
        assert "Api-->>-Client: Response" in code


class TestErDiagram:

    @pytest.mark.parametrize("label,cardinality", [
        ("one-to-one", "||--||"),
        ("many-to-many", "}o--o{"),
        ("has many", "||--o{"),
        ("many-to-one", "}o--||"),
        ("relates to", "||--o{"),
    ])
    def test_cardinality(self, label, cardinality):
        code = generate_er_diagram(["Customer", "Order"], [Relationship("Customer", "Order", label)])
        assert f'CUSTOMER {cardinality} ORDER : "{label}"' in code

    def test_default_chain(self):
        code = generate_er_diagram(["Customer", "Order"], [])
        assert 'CUSTOMER ||--o{ ORDER : "has"' in code
