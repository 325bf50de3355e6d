# analyzer.py
"""First model call of the synthesis agent: structured question analysis."""

import logging
from typing import Optional

from langchain_core.exceptions import OutputParserException
from langchain_core.output_parsers import JsonOutputParser

from graphqa.core import Config, LLMInterface
from graphqa.core.exceptions import LLMProviderError
from .prompts import ANALYSIS_SYSTEM_PROMPT, build_analysis_prompt
from .types import QueryAnalysis

logger = logging.getLogger(__name__)

analysis_parser = JsonOutputParser()


def default_analysis(question: str) -> QueryAnalysis:
    """Keyword-based analysis used when the model gives nothing usable"""
    q = question.lower()

    if "how many" in q or "count" in q:
        intent = "count"
    elif "average" in q or "mean" in q or "avg" in q:
        intent = "aggregate"
    elif "what" in q or "which" in q or "show" in q:
        intent = "list"
    else:
        intent = "search"

    if "paper" in q:
        entity_type = "papers"
    elif "entity" in q or "method" in q or "concept" in q:
        entity_type = "entities"
    elif "relationship" in q:
        entity_type = "relationships"
    else:
        entity_type = "mixed"

    return QueryAnalysis(
        intent=intent,
        entity_type=entity_type,
        aggregations=["AVG"] if "average" in q else [],
        sorting={"field": "published_date", "direction": "DESC"},
        limit=Config.REPAIR_DEFAULT_LIMIT,
        from_model=False,
    )


def parse_analysis(content: Optional[str]) -> Optional[QueryAnalysis]:
    """Parse the JSON object in model output, fenced or preceded by prose"""
    if not content or "{" not in content:
        return None
    try:
        data = analysis_parser.parse(content)
    except OutputParserException:
        # Retry from the first brace when prose precedes an unfenced object
        try:
            data = analysis_parser.parse(content[content.index("{"):])
        except OutputParserException:
            return None
    if not isinstance(data, dict):
        return None
    return QueryAnalysis.from_dict(data)


class QueryAnalyzer:
    """Classifies a question into intent, entity type, conditions and sorting"""

    def __init__(self, llm: LLMInterface):
        self.llm = llm

    def analyze(self, question: str) -> QueryAnalysis:
        try:
            content = self.llm.generate(
                ANALYSIS_SYSTEM_PROMPT,
                build_analysis_prompt(question),
                temperature=Config.ANALYSIS_TEMPERATURE,
                max_tokens=Config.ANALYSIS_MAX_TOKENS,
            )
        except LLMProviderError as e:
            logger.warning(f"Analysis call failed, using default analysis: {e}")
            return default_analysis(question)

        analysis = parse_analysis(content)
        if analysis is None:
            logger.info("Analysis response not parseable, using default analysis")
            return default_analysis(question)

        logger.info(f"Analysis: intent={analysis.intent}, entity_type={analysis.entity_type}")
        return analysis
