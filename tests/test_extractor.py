"""Tests for entity, relationship and process step extraction."""

import time

from mcp_archy.extractor import (
    extract_entities,
    extract_process_steps,
    extract_relationships,
)
from mcp_archy.models import Relationship


class TestExtractEntities:

    def test_user_request_server(self):
        entities = extract_entities("The User sends a Request to the Server.")
        assert {"User", "Request", "Server"} <= set(entities)

    def test_trailing_punctuation_is_stripped(self):
        entities = extract_entities("Talk to the Gateway, then the Cache!")
        assert "Gateway" in entities
        assert "Cache" in entities
        assert "Gateway," not in entities

    def test_single_letters_and_dotted_tokens_are_skipped(self):
        entities = extract_entities("A Foo.Bar call")
        assert "A" not in entities
        assert "Foo.Bar" not in entities

    def test_keyword_identifiers_are_added(self):
        entities = extract_entities("the service billing talks to database orders")
        assert "billing" in entities
        assert "orders" in entities

    def test_no_duplicates_first_seen_order(self):
        entities = extract_entities("Order has Item. Order ships Item.")
        assert entities == ["Order", "Item"]

    def test_deterministic(self):
        text = "The Customer places an Order. The Order contains a Product."
        assert extract_entities(text) == extract_entities(text)


class TestExtractRelationships:

    def test_verb_between_mentions_is_the_label(self):
        text = "The Order contains a Product."
        rels = extract_relationships(text, extract_entities(text))
        assert Relationship("Order", "Product", "contains") in rels

    def test_unknown_verb_defaults_to_relates_to(self):
        text = "The User sends a Request to the Server."
        rels = extract_relationships(text, ["User", "Request"])
        assert rels == [Relationship("User", "Request", "relates to")]

    def test_duplicates_are_preserved(self):
        text = "Cart has Item. Cart has Item."
        rels = extract_relationships(text, ["Cart", "Item"])
        assert rels == [Relationship("Cart", "Item", "has")] * 2

    def test_fallback_chain_when_nothing_found(self):
        text = "Alpha runs. Beta uses it. Gamma waits."
        rels = extract_relationships(text, ["Alpha", "Beta", "Gamma"])
        assert rels == [
            Relationship("Alpha", "Beta", "uses"),
            Relationship("Beta", "Gamma", "uses"),
        ]

    def test_fallback_chain_label_prefers_has(self):
        text = "Alpha runs. Beta has it."
        rels = extract_relationships(text, ["Alpha", "Beta"])
        assert rels == [Relationship("Alpha", "Beta", "has")]

    def test_no_fallback_with_fewer_than_two_entities(self):
        assert extract_relationships("Solo stands alone.", ["Solo"]) == []
        assert extract_relationships("", []) == []

    def test_fallback_activates_exactly_when_nothing_found(self):
        text = "Alpha runs. Beta waits."
        rels = extract_relationships(text, ["Alpha", "Beta"])
        assert rels == [Relationship("Alpha", "Beta", "relates to")]

    def test_deterministic(self):
        text = "The Customer places an Order. The Order contains a Product."
        entities = extract_entities(text)
        assert extract_relationships(text, entities) == extract_relationships(text, entities)

    def test_unterminated_trailing_text_is_not_a_sentence(self):
        rels = extract_relationships("Cart has Item. Cart has Item", ["Cart", "Item"])
        assert rels == [Relationship("Cart", "Item", "has")]

    def test_long_unpunctuated_list_stays_fast(self):
        names = [
            "Alpha", "Bravo", "Charlie", "Delta", "Echo", "Foxtrot", "Golf", "Hotel",
            "India", "Juliet", "Kilo", "Lima", "Mike", "November", "Oscar",
        ]
        lines = [f"- {a} talks to {b} over the network" for a in names for b in names[:3]]
        text = "\n".join(lines)

        started = time.perf_counter()
        rels = extract_relationships(text, extract_entities(text))
        assert time.perf_counter() - started < 1.0

        assert rels == [Relationship(a, b, "relates to") for a, b in zip(names, names[1:])]

    def test_long_single_sentence_stays_fast(self):
        names = ["Alpha", "Bravo", "Charlie", "Delta", "Echo", "Foxtrot", "Golf", "Hotel"]
        text = " ".join(f"{name} waits" for name in names * 40) + "."

        started = time.perf_counter()
        rels = extract_relationships(text, names)
        assert time.perf_counter() - started < 1.0

        assert len(rels) == len(names) * (len(names) - 1)


class TestExtractProcessSteps:

    def test_numbered_list(self):
        text = "1. Receive order\n2. Validate payment\n3) Ship goods"
        assert extract_process_steps(text) == ["Receive order", "Validate payment", "Ship goods"]

    def test_sequencing_keywords(self):
        text = "First we load data. Then we clean it. Finally we save."
        assert extract_process_steps(text) == [
            "First we load data",
            "Then we clean it",
            "Finally we save",
        ]

    def test_action_sentences(self):
        text = "Load the data. Transform the records. Go."
        assert extract_process_steps(text) == ["Load the data", "Transform the records"]

    def test_action_sentences_length_bounds(self):
        long_sentence = "Build " + "very " * 15 + "things"
        assert extract_process_steps(f"Do it. {long_sentence}.") == []

    def test_no_steps(self):
        assert extract_process_steps("") == []
