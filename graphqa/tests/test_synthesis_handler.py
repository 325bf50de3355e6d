# test_synthesis_handler.py
"""Tests for the NL->SQL synthesis route."""

import json

import pytest

from graphqa.query_handlers.analyzer import QueryAnalyzer, default_analysis, parse_analysis
from graphqa.query_handlers.sql_generator import count_statements, extract_sql
from graphqa.query_handlers.synthesis_handler import SynthesisHandler, detect_ranking_signal


def analysis_json(**overrides):
    data = {
        "intent": "filter",
        "entity_type": "papers",
        "fields_needed": ["title", "authors"],
        "conditions": {},
        "aggregations": [],
        "sorting": {"field": "published_date", "direction": "DESC"},
        "limit": 10,
        "confidence": 0.9,
    }
    data.update(overrides)
    return json.dumps(data)


def fenced(sql):
    return f"```sql\n{sql}\n```"


class TestAnalysis:
    def test_parse_embedded_json(self):
        analysis = parse_analysis("Here you go:\n" + analysis_json(intent="count"))
        assert analysis.intent == "count"
        assert analysis.confidence == 0.9
        assert analysis.from_model

    def test_parse_fenced_json_followed_by_braces(self):
        content = (
            '```json\n{"intent": "count", "entity_type": "papers"}\n```\n'
            "Use {title} and {abstract}."
        )
        analysis = parse_analysis(content)
        assert analysis is not None
        assert analysis.intent == "count"
        assert analysis.entity_type == "papers"

    @pytest.mark.parametrize("content", [None, "", "no json here", "{not valid json}"])
    def test_unparseable(self, content):
        assert parse_analysis(content) is None

    def test_default_analysis_keywords(self):
        analysis = default_analysis("How many papers mention NeRF?")
        assert analysis.intent == "count"
        assert analysis.entity_type == "papers"
        assert not analysis.from_model

    def test_llm_failure_falls_back_to_default(self, scripted_llm):
        analyzer = QueryAnalyzer(scripted_llm(RuntimeError("rate limited")))
        analysis = analyzer.analyze("Show the average number of authors")
        assert analysis.intent == "aggregate"
        assert not analysis.from_model


class TestSQLExtraction:
    def test_sql_fence(self):
        assert extract_sql("Sure:\n```sql\nSELECT 1;\n```") == "SELECT 1"

    def test_plain_fence(self):
        assert extract_sql("```\nSELECT id FROM papers LIMIT 5\n```") == "SELECT id FROM papers LIMIT 5"

    def test_bare_statement(self):
        assert extract_sql("The query is SELECT id FROM papers; done") == "SELECT id FROM papers"

    def test_nothing_to_extract(self):
        assert extract_sql("I cannot answer that") is None
        assert extract_sql(None) is None

    def test_count_statements(self):
        assert count_statements("SELECT 1") == 1
        assert count_statements("SELECT 1; SELECT 2") == 2


class TestRankingSignal:
    def test_first_order_term(self):
        signal = detect_ranking_signal("SELECT * FROM papers ORDER BY p.published_date DESC, title")
        assert signal.signal == "p.published_date"
        assert signal.direction == "DESC"

    def test_default_direction(self):
        assert detect_ranking_signal("SELECT * FROM papers ORDER BY title").direction == "ASC"

    def test_no_order(self):
        assert detect_ranking_signal("SELECT * FROM papers") is None


class TestSynthesisHandler:
    def test_successful_synthesis(self, scripted_llm, make_executor):
        llm = scripted_llm(
            analysis_json(conditions={"field": "authors", "operator": "array_length", "value": "5"}),
            fenced(
                "SELECT title, authors FROM papers WHERE array_length(authors, 1) > $1 "
                "ORDER BY published_date DESC LIMIT 10;"
            ),
        )
        rows = [{"title": "A", "authors": ["a", "b", "c", "d", "e", "f"]}]
        executor = make_executor([rows])

        result = SynthesisHandler(llm, executor).handle("Which papers have more than 5 authors?")

        assert result.rows == rows
        assert executor.calls[0]["params"] == [5]
        metadata = result.metadata
        assert metadata.execution_route == "synthesis"
        assert metadata.detected_intent == "filter"
        assert metadata.intent_confidence == 0.9
        assert metadata.sql_query.endswith("LIMIT 10")
        assert metadata.ranking_signals.signal == "published_date"
        assert metadata.errors == []
        assert metadata.warnings == []
        assert metadata.result_count == 1
        assert len(llm.calls) == 2

    def test_default_analysis_is_flagged(self, scripted_llm, make_executor):
        llm = scripted_llm("not json", "```\nSELECT COUNT(*) AS count FROM papers\n```")
        executor = make_executor([[{"count": 3}]])

        result = SynthesisHandler(llm, executor).handle("How many papers are there?")

        assert result.rows == [{"count": 3}]
        assert "Analysis unavailable, used keyword-based default" in result.metadata.warnings
        assert any("LIMIT" in warning for warning in result.metadata.warnings)

    def test_generation_failure_returns_empty(self, scripted_llm, make_executor):
        llm = scripted_llm(analysis_json(), RuntimeError("rate limited"))
        executor = make_executor()

        result = SynthesisHandler(llm, executor).handle("Which papers have more than 5 authors?")

        assert result.rows == []
        assert result.metadata.errors[0].startswith("Failed to generate SQL")
        assert executor.calls == []

    def test_unusable_model_output(self, scripted_llm, make_executor):
        llm = scripted_llm(analysis_json(), "I am not able to write that query")
        result = SynthesisHandler(llm, make_executor()).handle("Anything?")
        assert result.metadata.errors == ["Failed to generate SQL from analysis"]

    def test_unsafe_sql_never_executes(self, scripted_llm, make_executor):
        llm = scripted_llm(analysis_json(), fenced("DELETE FROM papers"))
        executor = make_executor()

        result = SynthesisHandler(llm, executor).handle("Remove all papers")

        assert result.rows == []
        assert executor.calls == []
        assert any("Write operation detected" in error for error in result.metadata.errors)

    def test_negated_question_repaired_before_execution(self, scripted_llm, make_executor):
        llm = scripted_llm(
            analysis_json(intent="count"),
            fenced("SELECT COUNT(*) AS count FROM papers WHERE abstract ILIKE $1"),
        )
        executor = make_executor([[{"count": 7}]])

        result = SynthesisHandler(llm, executor).handle("How many papers do not mention NeRF?")

        executed = executor.calls[0]
        assert "(title NOT ILIKE $1 AND abstract NOT ILIKE $1)" in executed["sql"]
        assert executed["params"] == ["%NeRF%"]
        assert "Fixed negation: checked both title and abstract with NOT ILIKE" in result.metadata.warnings

    def test_focus_question_retried_with_focus_score(self, scripted_llm, make_executor, execution_error):
        llm = scripted_llm(
            analysis_json(
                intent="search",
                conditions={"type": "text_search", "field": "abstract", "value": "anti-aliasing"},
            ),
            fenced(
                "SELECT title, confidence_score FROM papers WHERE abstract ILIKE $1 "
                "ORDER BY confidence_score DESC LIMIT 5"
            ),
        )
        rows = [{"title": "Mip-Splatting", "focus_score": 17}]
        executor = make_executor(
            [execution_error('column "confidence_score" does not exist', pgcode="42703"), rows]
        )

        result = SynthesisHandler(llm, executor).handle(
            "Which paper focuses the most on anti-aliasing?"
        )

        assert result.rows == rows
        assert len(executor.calls) == 2
        assert "focus_score" in executor.calls[1]["sql"]
        assert executor.calls[1]["params"] == ["%anti-aliasing%"]
        metadata = result.metadata
        assert metadata.errors[0].startswith("SQL execution failed:")
        assert (
            "Retried with repaired query (nl2sql -> nl2sql_fixed): Generated focus-based relevance query"
            in metadata.warnings
        )
        assert metadata.ranking_signals.signal == "focus_score"
        assert metadata.fallbacks == []

    def test_repair_failure_records_both_errors(self, scripted_llm, make_executor, execution_error):
        llm = scripted_llm(analysis_json(), fenced("SELECT title FROM papers"))
        executor = make_executor(
            [
                execution_error("syntax error at or near", pgcode="42601"),
                execution_error("statement timeout", pgcode="57014"),
            ]
        )

        result = SynthesisHandler(llm, executor).handle("Show all papers")

        assert result.rows == []
        assert len(executor.calls) == 2
        assert executor.calls[1]["sql"] == "SELECT title FROM papers LIMIT 20"
        errors = result.metadata.errors
        assert errors[0] == "SQL execution failed: syntax error at or near"
        assert errors[1] == "Fixed SQL also failed: statement timeout"

    def test_no_retry_when_repair_changes_nothing(self, scripted_llm, make_executor, execution_error):
        llm = scripted_llm(analysis_json(), fenced("SELECT title FROM papers LIMIT 5"))
        executor = make_executor([execution_error("connection reset")])

        result = SynthesisHandler(llm, executor).handle("Show all papers")

        assert result.rows == []
        assert len(executor.calls) == 1
        assert result.metadata.errors == ["SQL execution failed: connection reset"]

    def test_empty_result_after_normalization(self, scripted_llm, make_executor):
        llm = scripted_llm(
            analysis_json(entity_type="entities"),
            fenced("SELECT name FROM entities WHERE canonical_name = 'Tanks & Temples' LIMIT 5"),
        )
        executor = make_executor([[]])

        result = SynthesisHandler(llm, executor).handle("Is Tanks & Temples in the graph?")

        assert "canonical_name = 'tanks and temples'" in executor.calls[0]["sql"]
        assert "Query returned 0 results after normalization" in result.metadata.warnings
