# sql_generator.py
"""Second model call of the synthesis agent: query text generation."""

import logging
import re
from typing import Optional

from graphqa.core import Config, LLMInterface
from graphqa.core.exceptions import LLMProviderError, QuerySynthesisError
from .prompts import build_sql_system_prompt, build_sql_user_prompt
from .types import QueryAnalysis

logger = logging.getLogger(__name__)

# Tried in order, first match wins
SQL_EXTRACTION_PATTERNS = (
    re.compile(r"```sql\s*([\s\S]*?)\s*```", re.IGNORECASE),
    re.compile(r"```\s*([\s\S]*?)\s*```"),
    re.compile(r"(SELECT[\s\S]+?;)", re.IGNORECASE),
)


def extract_sql(content: Optional[str]) -> Optional[str]:
    """Extract query text from model output, without its trailing semicolon"""
    if not content:
        return None
    for pattern in SQL_EXTRACTION_PATTERNS:
        match = pattern.search(content)
        if match and match.group(1).strip():
            return re.sub(r";\s*$", "", match.group(1).strip())
    return None


def count_statements(sql: str) -> int:
    return len([part for part in sql.split(";") if part.strip()])


class SQLGenerator:
    """Turns a question plus its analysis into one SELECT statement"""

    def __init__(self, llm: LLMInterface):
        self.llm = llm
        self._system_prompt: Optional[str] = None

    @property
    def system_prompt(self) -> str:
        if self._system_prompt is None:
            self._system_prompt = build_sql_system_prompt()
        return self._system_prompt

    def generate(self, question: str, analysis: QueryAnalysis) -> str:
        """Return query text or raise QuerySynthesisError"""
        try:
            content = self.llm.generate(
                self.system_prompt,
                build_sql_user_prompt(question, analysis),
                temperature=Config.SYNTHESIS_TEMPERATURE,
                max_tokens=Config.SYNTHESIS_MAX_TOKENS,
            )
        except LLMProviderError as e:
            raise QuerySynthesisError(f"Failed to generate SQL: {e}") from e

        sql = extract_sql(content)
        if not sql:
            raise QuerySynthesisError("Failed to generate SQL from analysis")

        if count_statements(sql) > 1:
            raise QuerySynthesisError("Generated SQL contains more than one statement")

        logger.info(f"Generated SQL: {sql}")
        return sql
