# query_utils.py
"""Utility functions for query routing and processing."""

import re
from typing import Optional, Sequence

from .vocabulary import Vocabulary, get_vocabulary

# Negation cues recognised by the router
NEGATION_PATTERN = re.compile(
    r"\b(not|doesn't|does not|don't|do not|excluding|without|except|are not)\b",
    re.IGNORECASE,
)

# Narrower cue list used when repairing generated SQL
SQL_NEGATION_PATTERN = re.compile(
    r"\b(not\s+about|not\s+in|not\s+contain|doesn't|does not|don't|do not|"
    r"excluding|without|except|are not)\b",
    re.IGNORECASE,
)

# Captures the clause that follows a negation cue
NEGATED_CLAUSE_PATTERN = re.compile(
    r"\b(?:not|doesn't|does not|don't|do not|excluding|without|except)\s+"
    r"(?:about|on|in|containing|contain)?\s*(.+?)(?:\?|$)",
    re.IGNORECASE,
)

# Captures the clause of a positive count filter
FILTER_CLAUSE_PATTERN = re.compile(
    r"\b(?:about|on|in|containing|contain|mentioning|mention)\s+(.+?)(?:\?|$)",
    re.IGNORECASE,
)


class QueryPatternUtils:
    """Utility class for query pattern matching and extraction"""

    @staticmethod
    def has_negation(text: str) -> bool:
        return bool(NEGATION_PATTERN.search(text))

    @staticmethod
    def has_sql_negation(text: str) -> bool:
        return bool(SQL_NEGATION_PATTERN.search(text))

    @staticmethod
    def extract_negated_clause(text: str) -> Optional[str]:
        match = NEGATED_CLAUSE_PATTERN.search(text)
        if match and match.group(1).strip():
            return match.group(1).strip()
        return None

    @staticmethod
    def extract_filter_clause(text: str) -> Optional[str]:
        match = FILTER_CLAUSE_PATTERN.search(text)
        if match and match.group(1).strip():
            return match.group(1).strip()
        return None

    @staticmethod
    def extract_limit(text: str, patterns: Sequence[str], default: int) -> int:
        """Return the number captured by the first matching pattern"""
        for pattern in patterns:
            match = re.search(pattern, text, re.IGNORECASE)
            if match and match.group(1):
                return int(match.group(1))
        return default

    @staticmethod
    def singular_entity_type(word: str) -> str:
        """'datasets' -> 'dataset', 'entities' -> 'entity'"""
        word = word.lower()
        if word.endswith("ies"):
            return word[:-3] + "y"
        if word.endswith("s"):
            return word[:-1]
        return word


def is_valid_entity_name(name: str, vocabulary: Optional[Vocabulary] = None) -> bool:
    """Check if a captured string looks like a research entity name"""
    vocabulary = vocabulary or get_vocabulary()
    trimmed = name.strip().lower()
    if len(trimmed) < 2:
        return False

    words = trimmed.split()
    if all(word in vocabulary.stopwords for word in words):
        return False

    # A lone common first name is a person unless it carries a research term
    if len(words) == 1 and trimmed in vocabulary.first_names:
        if not any(term in trimmed for term in vocabulary.domain_terms):
            return False

    if any(term in trimmed for term in vocabulary.off_domain_terms):
        return False

    return True


def is_valid_author_name(name: str, vocabulary: Optional[Vocabulary] = None) -> bool:
    """Check if a captured string looks like an author name"""
    vocabulary = vocabulary or get_vocabulary()
    trimmed = name.strip()
    if len(trimmed) < 2:
        return False
    if re.fullmatch(r"the|a|an|and|or|but", trimmed, re.IGNORECASE):
        return False
    # "papers by Gaussian" names a research entity, not a person
    return not any(word in vocabulary.domain_terms for word in trimmed.lower().split())


def normalize_canonical_name(value: str) -> str:
    """Normalize an entity name the way the store normalizes canonical_name"""
    normalized = value.lower().replace("&", " and ")
    return re.sub(r"\s+", " ", normalized).strip()
