# parameters.py
"""Binds values from the question to positional placeholders of generated SQL.

Each placeholder is offered to an ordered list of binders; the first one that
returns a value wins, and a placeholder nobody can fill is bound to None.
Binders that draw from a pool of candidates (quoted strings, entity names,
author names, years, months, non-year numbers) consume the candidate they use, so a
second placeholder receives the next candidate.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional, Sequence

from graphqa.core import Config
from .sql_validator import extract_placeholders
from .types import QueryAnalysis
from .utils import normalize_canonical_name
from .vocabulary import Vocabulary, get_vocabulary

logger = logging.getLogger(__name__)

MONTHS = {
    "january": 1,
    "february": 2,
    "march": 3,
    "april": 4,
    "may": 5,
    "june": 6,
    "july": 7,
    "august": 8,
    "september": 9,
    "october": 10,
    "november": 11,
    "december": 12,
}

TOP_N_PATTERN = re.compile(r"\btop\s+(\d+)\b", re.IGNORECASE)
YEAR_PATTERN = re.compile(r"\b((?:19|20)\d{2})\b")
NUMBER_PATTERN = re.compile(r"\b(\d{1,4})\b")
QUOTED_PATTERN = re.compile(r"\"([^\"]+)\"|(?<!\w)'([^']+)'(?!\w)")
AUTHOR_PATTERN = re.compile(r"\b([A-Z][a-z]+\s+[A-Z][a-z]+)\b")
MONTH_PATTERN = re.compile(r"\b(" + "|".join(MONTHS) + r")\b", re.IGNORECASE)

ENTITY_NAME_PATTERNS = (
    # "Tanks & Temples dataset"
    re.compile(
        r"\b([A-Z][\w-]*(?:\s+(?:&|and|[A-Z][\w-]*))*)\s+(?:dataset|method|metric|concept)\b"
    ),
    # "MipNeRF-360"
    re.compile(r"\b([A-Z][a-zA-Z0-9]+(?:-[A-Za-z0-9]+)+)\b"),
    # "Gaussian Splatting"
    re.compile(r"\b([A-Z][a-z]+(?:\s+[A-Z][a-z]+)+)\b"),
)

NON_ENTITY_WORDS = re.compile(
    r"(?:which|what|how|show|find|list|get|papers?|the|use|uses|dataset|method|metric)",
    re.IGNORECASE,
)

# Phrases whose last word is usually the key term
KEY_TERM_PATTERNS = (
    re.compile(
        r"(?:about|focuses?\s+(?:the\s+most\s+)?about|mentions?\s+(?:the\s+most\s+)?about)\s+"
        r"([a-z][a-z-]*(?:\s+[a-z][a-z-]*){0,2}?)(?:\s+dataset|\s+method|\s+metric|\s+papers?|$|\.|\?)",
        re.IGNORECASE,
    ),
    re.compile(
        r"(?:the\s+most\s+about)\s+([a-z][a-z-]*(?:\s+[a-z][a-z-]*){0,2}?)"
        r"(?:\s+dataset|\s+method|\s+metric|\s+papers?|$|\.|\?)",
        re.IGNORECASE,
    ),
    re.compile(
        r"(?:focuses?\s+(?:the\s+most\s+)?on|mentions?)\s+([a-z][a-z-]*(?:\s+[a-z][a-z-]*){0,2}?)"
        r"(?:\s+dataset|\s+method|\s+metric|\s+papers?|$|\.|\?)",
        re.IGNORECASE,
    ),
    re.compile(
        r"(?:use|uses|used by|with|from)\s+([a-z][a-z-]*(?:\s+[a-z][a-z-]*){0,2}?)"
        r"(?:\s+dataset|\s+method|\s+metric|\s+papers?|$|\.|\?)",
        re.IGNORECASE,
    ),
)


def _unique(values: Iterable[str]) -> List[str]:
    seen = []
    for value in values:
        value = value.strip()
        if value and value not in seen:
            seen.append(value)
    return seen


def find_entity_names(question: str, vocabulary: Optional[Vocabulary] = None) -> List[str]:
    """Candidate entity names in order of pattern specificity"""
    vocabulary = vocabulary or get_vocabulary()
    names: List[str] = []
    for pattern in ENTITY_NAME_PATTERNS:
        names.extend(pattern.findall(question))

    terms = list(vocabulary.known_acronyms) + list(vocabulary.technical_terms)
    if terms:
        term_pattern = re.compile(
            r"\b(" + "|".join(re.escape(term) for term in terms) + r")\b", re.IGNORECASE
        )
        names.extend(term_pattern.findall(question))

    return [name for name in _unique(names) if not NON_ENTITY_WORDS.fullmatch(name)]


def find_key_term(question: str, vocabulary: Optional[Vocabulary] = None) -> Optional[str]:
    """Last word after 'about'/'focuses on'/'uses', else a dictionary technical term"""
    for pattern in KEY_TERM_PATTERNS:
        match = pattern.search(question)
        if match and match.group(1):
            return match.group(1).split()[-1]

    vocabulary = vocabulary or get_vocabulary()
    for term in vocabulary.technical_terms:
        if re.search(rf"\b{re.escape(term)}\b", question, re.IGNORECASE):
            return term
    return None


@dataclass
class QuestionCues:
    """Candidate values pulled out of one question"""

    question: str
    analysis: QueryAnalysis
    explicit_limit: Optional[int] = None
    quoted: List[str] = field(default_factory=list)
    entity_names: List[str] = field(default_factory=list)
    authors: List[str] = field(default_factory=list)
    years: List[int] = field(default_factory=list)
    months: List[int] = field(default_factory=list)
    numbers: List[int] = field(default_factory=list)

    @classmethod
    def from_question(
        cls, question: str, analysis: QueryAnalysis, vocabulary: Optional[Vocabulary] = None
    ) -> "QuestionCues":
        top_match = TOP_N_PATTERN.search(question)
        if top_match:
            explicit_limit = int(top_match.group(1))
        else:
            explicit_limit = analysis.limit

        return cls(
            question=question,
            analysis=analysis,
            explicit_limit=explicit_limit,
            quoted=_unique(double or single for double, single in QUOTED_PATTERN.findall(question)),
            entity_names=find_entity_names(question, vocabulary),
            authors=AUTHOR_PATTERN.findall(question),
            years=[int(year) for year in YEAR_PATTERN.findall(question)],
            months=[MONTHS[month.lower()] for month in MONTH_PATTERN.findall(question)],
            numbers=[
                int(number)
                for number in NUMBER_PATTERN.findall(question)
                if not YEAR_PATTERN.fullmatch(number)
            ],
        )

    def take(self, pool: str) -> Any:
        values = getattr(self, pool)
        return values.pop(0) if values else None


@dataclass(frozen=True)
class Placeholder:
    """One $n placeholder and the predicate text that precedes it"""

    index: int
    predicate: str
    in_limit: bool


PREDICATE_BOUNDARY = re.compile(r"\b(?:WHERE|AND|OR|ON|HAVING|SELECT)\b", re.IGNORECASE)


def describe_placeholders(sql: str) -> List[Placeholder]:
    placeholders = []
    for index in extract_placeholders(sql):
        match = re.search(rf"\${index}(?!\d)", sql)
        before = sql[: match.start()]
        pieces = PREDICATE_BOUNDARY.split(before)
        predicate = pieces[-1].lower() if pieces else before.lower()
        in_limit = bool(re.search(r"\bLIMIT\s*$", before, re.IGNORECASE))
        placeholders.append(Placeholder(index, predicate, in_limit))
    return placeholders


def _wildcard(value: str) -> str:
    return value if "%" in value else f"%{value}%"


def extract_entity_term(question: str, analysis: QueryAnalysis) -> Optional[str]:
    """Entity name by priority: analysis value, quoted, name pattern, key term"""
    cues = QuestionCues.from_question(question, analysis)
    return (
        analysis.condition_value
        or cues.take("quoted")
        or cues.take("entity_names")
        or find_key_term(question)
    )


def bind_limit(placeholder: Placeholder, cues: QuestionCues) -> Optional[Any]:
    if not placeholder.in_limit:
        return None
    return cues.explicit_limit or Config.SYNTHESIS_DEFAULT_LIMIT


def bind_canonical_name(placeholder: Placeholder, cues: QuestionCues) -> Optional[Any]:
    if "canonical_name" not in placeholder.predicate:
        return None
    name = (
        cues.analysis.condition_value
        or cues.take("quoted")
        or cues.take("entity_names")
        or find_key_term(cues.question)
    )
    if not name:
        return None
    normalized = normalize_canonical_name(name.strip("%"))
    if re.search(r"\bI?LIKE\s*$", placeholder.predicate, re.IGNORECASE):
        return _wildcard(normalized)
    return normalized


def bind_year(placeholder: Placeholder, cues: QuestionCues) -> Optional[Any]:
    if "year" not in placeholder.predicate:
        return None
    return cues.take("years")


def bind_month(placeholder: Placeholder, cues: QuestionCues) -> Optional[Any]:
    if "month" not in placeholder.predicate:
        return None
    return cues.take("months")


def bind_author(placeholder: Placeholder, cues: QuestionCues) -> Optional[Any]:
    if "authors" not in placeholder.predicate or "array_length" in placeholder.predicate:
        return None
    author = cues.take("authors")
    if author and re.search(r"\bI?LIKE\s*$", placeholder.predicate, re.IGNORECASE):
        return _wildcard(author)
    return author


def bind_number(placeholder: Placeholder, cues: QuestionCues) -> Optional[Any]:
    predicate = placeholder.predicate
    if "array_length" not in predicate and ">" not in predicate and "<" not in predicate:
        return None
    return cues.take("numbers")


def bind_quoted(placeholder: Placeholder, cues: QuestionCues) -> Optional[Any]:
    phrase = cues.take("quoted")
    return _wildcard(phrase) if phrase else None


def bind_entity_name(placeholder: Placeholder, cues: QuestionCues) -> Optional[Any]:
    name = cues.take("entity_names")
    return _wildcard(name) if name else None


def bind_author_fallback(placeholder: Placeholder, cues: QuestionCues) -> Optional[Any]:
    return cues.take("authors")


def bind_analysis_value(placeholder: Placeholder, cues: QuestionCues) -> Optional[Any]:
    value = cues.analysis.condition_value
    return _wildcard(value) if value else None


Binder = Callable[[Placeholder, QuestionCues], Optional[Any]]

BINDING_PIPELINE: Sequence[Binder] = (
    bind_limit,
    bind_canonical_name,
    bind_year,
    bind_month,
    bind_author,
    bind_number,
    bind_quoted,
    bind_entity_name,
    bind_author_fallback,
    bind_analysis_value,
)


def bind_parameters(
    sql: str,
    question: str,
    analysis: QueryAnalysis,
    vocabulary: Optional[Vocabulary] = None,
) -> List[Any]:
    """Positional values for $1..$n, in placeholder order"""
    cues = QuestionCues.from_question(question, analysis, vocabulary)
    values: List[Any] = []
    for placeholder in describe_placeholders(sql):
        value = None
        for binder in BINDING_PIPELINE:
            value = binder(placeholder, cues)
            if value is not None:
                break
        values.append(value)

    # Placeholders may skip numbers; pad so $n lines up with position n
    highest = max(extract_placeholders(sql), default=0)
    by_index = dict(zip(extract_placeholders(sql), values))
    params = [by_index.get(index) for index in range(1, highest + 1)]
    logger.info(f"Bound parameters: {params}")
    return params
