# test_intent_router.py
"""Tests for intent detection and route selection."""

import pytest

from graphqa.query_handlers.classifier import IntentRouter, route
from graphqa.query_handlers.types import Intent, Route, RoutingResult


@pytest.fixture
def router(vocabulary):
    return IntentRouter(vocabulary)


class TestScenarios:
    """End-to-end routing of the reference questions"""

    def test_count_whole_store(self, router):
        result = router.route("How many papers are in the database?")
        assert result.intent == Intent.COUNT
        assert result.route == Route.LEXICAL
        assert result.parameters["entity_type"] == "paper"
        assert not result.parameters["filter_condition"]
        assert result.parameters["negation"] is False

    def test_lineage(self, router):
        result = router.route("Which papers improve on 3D Gaussian Splatting?")
        assert result.intent == Intent.LINEAGE
        assert result.route == Route.GRAPH
        assert result.confidence == 0.95
        assert dict(result.parameters) == {"target_method": "3D Gaussian Splatting"}

    def test_least_common(self, router):
        result = router.route("What are the 5 least common datasets?")
        assert result.intent == Intent.MOST_COMMON
        assert result.route == Route.GRAPH
        assert dict(result.parameters) == {"entity_type": "dataset", "limit": 5, "order": "ASC"}


class TestGraphIntents:
    def test_most_common_defaults(self, router):
        result = router.route("What are the most common methods?")
        assert result.intent == Intent.MOST_COMMON
        assert result.parameters["order"] == "DESC"
        assert result.parameters["limit"] == 10
        assert result.parameters["entity_type"] == "method"

    def test_top_n_most_common(self, router):
        result = router.route("Show the top 3 most popular metrics")
        assert result.intent == Intent.MOST_COMMON
        assert result.parameters["limit"] == 3
        assert result.parameters["entity_type"] == "metric"

    def test_introduces_requires_arxiv_id(self, router):
        result = router.route("What concepts did paper 2308.04079 introduce?")
        assert result.intent == Intent.INTRODUCES
        assert result.parameters["paper_id"] == "2308.04079"

    def test_introduces_without_arxiv_id_falls_through(self, router):
        result = router.route("Which papers introduce the concept of anti-aliasing?")
        assert result.intent != Intent.INTRODUCES

    def test_extends(self, router):
        result = router.route("Which papers build on NeRF?")
        assert result.intent == Intent.EXTENDS
        assert result.parameters["base_entity"] == "NeRF"

    def test_uses_dataset(self, router):
        result = router.route("Which papers use the Tanks & Temples dataset?")
        assert result.intent == Intent.USES
        assert result.parameters["entity_name"] == "Tanks & Temples"

    def test_compares(self, router):
        result = router.route("Which papers compare against Instant-NGP?")
        assert result.intent == Intent.COMPARES
        assert result.parameters["compared_method"] == "Instant-NGP"

    def test_authored_by(self, router):
        result = router.route("Show papers by Bernhard Kerbl")
        assert result.intent == Intent.AUTHORED_BY
        assert result.parameters["author_name"] == "Bernhard Kerbl"

    def test_research_term_after_by_is_not_an_author(self, router):
        result = router.route("Which papers are by Gaussian?")
        assert result.intent != Intent.AUTHORED_BY
        assert "author_name" not in result.parameters

    def test_first_name_after_by_is_an_author(self, router):
        result = router.route("Show papers by John")
        assert result.intent == Intent.AUTHORED_BY
        assert result.parameters["author_name"] == "John"

    def test_neighbors(self, router):
        result = router.route("Show neighbors of NeRF")
        assert result.intent == Intent.NEIGHBORS
        assert result.route == Route.GRAPH
        assert result.parameters["entity_name"] == "NeRF"


class TestLexicalIntents:
    def test_focus(self, router):
        result = router.route("Which papers focus on anti-aliasing?")
        assert result.intent == Intent.FOCUS
        assert result.route == Route.LEXICAL
        assert result.parameters["topic"] == "anti-aliasing"
        assert result.parameters["negation"] is False

    def test_negated_focus_becomes_count(self, router):
        result = router.route("Which papers are not about gaussian splatting?")
        assert result.intent == Intent.COUNT
        assert result.route == Route.LEXICAL
        assert result.parameters["negation"] is True
        assert result.parameters["filter_condition"] == "gaussian splatting"
        assert "_intent" not in result.parameters

    def test_filtered_count(self, router):
        result = router.route("How many papers mention NeRF?")
        assert result.intent == Intent.COUNT
        assert result.parameters["filter_condition"] == "NeRF"

    def test_entity_count(self, router):
        result = router.route("How many datasets are in the knowledge graph?")
        assert result.intent == Intent.COUNT
        assert result.parameters["entity_type"] == "dataset"
        assert not result.parameters["filter_condition"]


class TestFallbackAndInvariants:
    def test_unmatched_question_goes_to_synthesis(self, router):
        result = router.route("Which papers have more than 5 authors?")
        assert result.intent == Intent.NL2SQL
        assert result.route == Route.SYNTHESIS
        assert result.confidence == 0.70
        assert dict(result.parameters) == {}

    def test_off_domain_capture_is_rejected(self, router):
        result = router.route("Which papers focus on salary negotiation?")
        assert result.intent != Intent.FOCUS

    def test_empty_question(self, router):
        result = router.route("   ")
        assert result.route == Route.SYNTHESIS

    @pytest.mark.parametrize(
        "question",
        [
            "Which papers improve on 3D Gaussian Splatting?",
            "How many papers are not about NeRF?",
            "Which papers have more than 5 authors?",
        ],
    )
    def test_routing_is_pure(self, router, question):
        first = router.route(question)
        second = router.route(question)
        assert first == second
        assert first.to_dict() == second.to_dict()

    def test_parameters_are_read_only(self, router):
        result = router.route("Which papers improve on NeRF?")
        with pytest.raises(TypeError):
            result.parameters["target_method"] = "other"

    def test_confidence_must_be_in_range(self):
        with pytest.raises(ValueError):
            RoutingResult(intent=Intent.COUNT, route=Route.LEXICAL, confidence=1.5)

    def test_module_level_route(self):
        assert route("How many papers are in the database?").intent == Intent.COUNT
