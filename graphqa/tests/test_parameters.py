# test_parameters.py
"""Tests for binding question values to generated SQL placeholders."""

from graphqa.query_handlers.parameters import (
    QuestionCues,
    bind_parameters,
    describe_placeholders,
    extract_entity_term,
    find_entity_names,
    find_key_term,
)
from graphqa.query_handlers.types import QueryAnalysis


def test_pattern_and_limit_placeholders():
    sql = "SELECT * FROM papers WHERE title ILIKE $1 LIMIT $2"
    params = bind_parameters(sql, "What are the top 5 papers about NeRF?", QueryAnalysis())
    assert params == ["%NeRF%", 5]


def test_limit_defaults_when_question_has_no_top_n():
    sql = "SELECT * FROM papers LIMIT $1"
    assert bind_parameters(sql, "Show recent papers", QueryAnalysis()) == [10]


def test_limit_uses_analysis_limit():
    sql = "SELECT * FROM papers LIMIT $1"
    assert bind_parameters(sql, "Show recent papers", QueryAnalysis(limit=3)) == [3]


def test_year_placeholder():
    sql = "SELECT * FROM papers WHERE EXTRACT(YEAR FROM published_date) = $1 LIMIT 10"
    assert bind_parameters(sql, "Which papers were published in 2023?", QueryAnalysis()) == [2023]


def test_month_and_year_placeholders():
    sql = (
        "SELECT * FROM papers WHERE EXTRACT(MONTH FROM published_date) = $1 "
        "AND EXTRACT(YEAR FROM published_date) = $2 LIMIT 10"
    )
    assert bind_parameters(sql, "Papers from March 2024", QueryAnalysis()) == [3, 2024]


def test_author_count_comparison_binds_number():
    sql = "SELECT title FROM papers WHERE array_length(authors, 1) > $1 LIMIT 10"
    params = bind_parameters(sql, "Which papers have more than 5 authors?", QueryAnalysis())
    assert params == [5]


def test_year_and_author_count_bind_separate_values():
    question = "Which papers from 2023 have more than 5 authors?"
    year_first = (
        "SELECT title FROM papers WHERE EXTRACT(YEAR FROM published_date) = $1 "
        "AND array_length(authors, 1) > $2 LIMIT 10"
    )
    count_first = (
        "SELECT title FROM papers WHERE array_length(authors, 1) > $1 "
        "AND EXTRACT(YEAR FROM published_date) = $2 LIMIT 10"
    )
    assert bind_parameters(year_first, question, QueryAnalysis()) == [2023, 5]
    assert bind_parameters(count_first, question, QueryAnalysis()) == [5, 2023]


def test_canonical_name_is_normalized():
    sql = (
        "SELECT p.title FROM papers p "
        "JOIN paper_entities pe ON p.id = pe.paper_id "
        "JOIN entities e ON pe.entity_id = e.id "
        "WHERE e.canonical_name ILIKE $1 LIMIT 10"
    )
    params = bind_parameters(sql, "Which papers use the Tanks & Temples dataset?", QueryAnalysis())
    assert params == ["%tanks and temples%"]


def test_canonical_equality_has_no_wildcards():
    sql = "SELECT * FROM entities WHERE canonical_name = $1 LIMIT 10"
    analysis = QueryAnalysis(conditions={"field": "name", "value": "Mip-NeRF 360"})
    assert bind_parameters(sql, "Tell me about it", analysis) == ["mip-nerf 360"]


def test_quoted_phrase_wins_over_entity_names():
    sql = "SELECT title FROM papers WHERE abstract ILIKE $1 LIMIT 10"
    params = bind_parameters(sql, 'Which papers mention "dynamic scenes"?', QueryAnalysis())
    assert params == ["%dynamic scenes%"]


def test_analysis_value_is_last_resort():
    sql = "SELECT title FROM papers WHERE abstract ILIKE $1 LIMIT 10"
    analysis = QueryAnalysis(conditions={"value": "anti-aliasing"})
    assert bind_parameters(sql, "which papers discuss it", analysis) == ["%anti-aliasing%"]


def test_unfillable_placeholder_is_none():
    sql = "SELECT title FROM papers WHERE title ILIKE $1"
    assert bind_parameters(sql, "How are things?", QueryAnalysis()) == [None]


def test_skipped_placeholder_indexes_are_padded():
    sql = "SELECT * FROM papers WHERE title ILIKE $2 LIMIT 5"
    assert bind_parameters(sql, "papers about NeRF", QueryAnalysis()) == [None, "%NeRF%"]


def test_describe_placeholders_marks_limit():
    placeholders = describe_placeholders("SELECT * FROM papers WHERE title ILIKE $1 LIMIT $2")
    assert [p.index for p in placeholders] == [1, 2]
    assert not placeholders[0].in_limit
    assert "ilike" in placeholders[0].predicate
    assert placeholders[1].in_limit


def test_apostrophes_are_not_quotes():
    cues = QuestionCues.from_question("Which papers don't cite NeRF?", QueryAnalysis())
    assert cues.quoted == []


def test_entity_names_in_specificity_order(vocabulary):
    names = find_entity_names("Which papers use the Tanks & Temples dataset?", vocabulary)
    assert names[0] == "Tanks & Temples"
    assert "Which" not in names


def test_hyphenated_entity_name(vocabulary):
    assert "MipNeRF-360" in find_entity_names("Papers evaluated on MipNeRF-360", vocabulary)


def test_key_term_after_focus_phrase(vocabulary):
    assert find_key_term("Which paper focuses the most on anti-aliasing?", vocabulary) == "anti-aliasing"
    assert find_key_term("Which papers talk about dynamic scenes?", vocabulary) == "scenes"


def test_key_term_from_dictionary(vocabulary):
    assert find_key_term("Show PSNR results", vocabulary) == "psnr"


def test_extract_entity_term_prefers_analysis_value():
    analysis = QueryAnalysis(conditions={"value": "NeRF"})
    assert extract_entity_term("Which paper focuses the most on anti-aliasing?", analysis) == "NeRF"
    assert (
        extract_entity_term("Which paper focuses the most on anti-aliasing?", QueryAnalysis())
        == "anti-aliasing"
    )
