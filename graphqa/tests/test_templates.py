# test_templates.py
"""Tests for the parameterized template builders."""

import pytest

from graphqa.core import Config
from graphqa.core.exceptions import RoutingError
from graphqa.query_handlers.sql_validator import validate_parameter_count, validate_sql
from graphqa.query_handlers.templates import (
    GRAPH_INTENTS,
    LEXICAL_INTENTS,
    TEMPLATE_BUILDERS,
    build_query,
)
from graphqa.query_handlers.types import Intent


class TestGraphTemplates:
    def test_lineage_shape(self):
        built = build_query(Intent.LINEAGE, {"target_method": "3D Gaussian Splatting"})
        assert built.params == ("%3D Gaussian Splatting%",)
        assert "'improves', 'extends', 'enhances'" in built.text
        assert "target_e.entity_type = 'method'" in built.text
        assert "ORDER BY p.published_date DESC, r.confidence_score DESC" in built.text
        assert f"LIMIT {Config.TEMPLATE_RESULT_LIMIT}" in built.text
        assert built.ranking_signal == "published_date"

    def test_introduces_binds_raw_arxiv_id(self):
        built = build_query(Intent.INTRODUCES, {"paper_id": "2308.04079"})
        assert built.params == ("2308.04079",)
        assert "p.arxiv_id = $1" in built.text
        assert f"LIMIT {Config.INTRODUCES_RESULT_LIMIT}" in built.text

    def test_authored_by_searches_author_array(self):
        built = build_query(Intent.AUTHORED_BY, {"author_name": "Kerbl"})
        assert "unnest(p.authors)" in built.text
        assert built.params == ("%Kerbl%",)

    def test_neighbors_orders_by_relationship_count(self):
        built = build_query(Intent.NEIGHBORS, {"entity_name": "NeRF"})
        assert "e1.id != e2.id" in built.text
        assert built.ranking_signal == "relationship_count"

    def test_most_common_with_type_filter(self):
        built = build_query(
            Intent.MOST_COMMON, {"entity_type": "dataset", "limit": 5, "order": "ASC"}
        )
        assert built.params == ("dataset", 5)
        assert "e.entity_type = $1" in built.text
        assert "LIMIT $2" in built.text
        assert "paper_count ASC" in built.text
        assert built.ranking_direction == "ASC"

    def test_most_common_without_type_filter(self):
        built = build_query(Intent.MOST_COMMON, {"entity_type": "entity", "limit": 7})
        assert built.params == (7,)
        assert "WHERE" not in built.text
        assert "LIMIT $1" in built.text

    def test_most_common_rejects_unknown_direction(self):
        built = build_query(
            Intent.MOST_COMMON, {"entity_type": "method", "limit": 3, "order": "DESC; DROP"}
        )
        assert "paper_count DESC" in built.text
        assert "DROP" not in built.text


class TestLexicalTemplates:
    def test_focus_ranks_title_hits_first(self):
        built = build_query(Intent.FOCUS, {"topic": "anti-aliasing", "negation": False})
        assert "WHEN p.title ILIKE $1 THEN 3" in built.text
        assert "WHEN p.abstract ILIKE $1 THEN 2" in built.text
        assert built.params == ("%anti-aliasing%",)
        assert built.ranking_signal == "relevance_score"

    def test_negated_focus_excludes_both_columns(self):
        built = build_query(Intent.FOCUS, {"topic": "NeRF", "negation": True})
        assert "(p.title NOT ILIKE $1 AND p.abstract NOT ILIKE $1)" in built.text

    def test_unfiltered_paper_count(self):
        built = build_query(
            Intent.COUNT, {"entity_type": "paper", "negation": False, "filter_condition": None}
        )
        assert built.text == "SELECT COUNT(*) AS count FROM papers"
        assert built.params == ()

    def test_negated_paper_count(self):
        built = build_query(
            Intent.COUNT,
            {"entity_type": "paper", "negation": True, "filter_condition": "gaussian splatting"},
        )
        assert "(p.title NOT ILIKE $1 AND p.abstract NOT ILIKE $1)" in built.text
        assert built.params == ("%gaussian splatting%",)

    def test_entity_count_with_filter(self):
        built = build_query(
            Intent.COUNT, {"entity_type": "method", "negation": False, "filter_condition": "nerf"}
        )
        assert "e.entity_type = $1" in built.text
        assert "(e.name ILIKE $2 OR e.canonical_name ILIKE $2)" in built.text
        assert built.params == ("method", "%nerf%")

    def test_relationship_count(self):
        built = build_query(Intent.COUNT, {"entity_type": "relationship"})
        assert built.text == "SELECT COUNT(*) AS count FROM relationships"


class TestBuilderContract:
    def test_every_template_intent_has_a_route(self):
        assert set(TEMPLATE_BUILDERS) == GRAPH_INTENTS | LEXICAL_INTENTS
        assert Intent.NL2SQL not in TEMPLATE_BUILDERS

    def test_synthesis_intent_has_no_template(self):
        with pytest.raises(RoutingError):
            build_query(Intent.NL2SQL, {})

    @pytest.mark.parametrize(
        "intent",
        [Intent.LINEAGE, Intent.INTRODUCES, Intent.EXTENDS, Intent.USES,
         Intent.COMPARES, Intent.AUTHORED_BY, Intent.NEIGHBORS, Intent.FOCUS],
    )
    def test_missing_parameter_raises(self, intent):
        with pytest.raises(RoutingError) as exc_info:
            build_query(intent, {})
        assert "required" in str(exc_info.value)

    @pytest.mark.parametrize(
        "intent,params",
        [
            (Intent.LINEAGE, {"target_method": "NeRF"}),
            (Intent.INTRODUCES, {"paper_id": "2308.04079"}),
            (Intent.EXTENDS, {"base_entity": "NeRF"}),
            (Intent.USES, {"entity_name": "Mip-NeRF 360"}),
            (Intent.COMPARES, {"compared_method": "Instant-NGP"}),
            (Intent.AUTHORED_BY, {"author_name": "Kerbl"}),
            (Intent.NEIGHBORS, {"entity_name": "NeRF"}),
            (Intent.MOST_COMMON, {"entity_type": "metric", "limit": 5, "order": "DESC"}),
            (Intent.FOCUS, {"topic": "anti-aliasing", "negation": False}),
            (Intent.COUNT, {"entity_type": "paper", "filter_condition": "NeRF"}),
        ],
    )
    def test_built_queries_pass_validation(self, intent, params):
        built = build_query(intent, params)
        validation = validate_sql(built.text)
        assert validation.valid, validation.errors
        assert validate_parameter_count(validation.sanitized, built.params)
