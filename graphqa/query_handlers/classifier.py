# query_classifier.py
"""Intent detection and routing for knowledge-graph questions.

Matchers are evaluated in a fixed priority order: structural (graph) matchers
first, then lexical matchers, then the universal synthesis fallback. The first
matcher whose pattern matches and whose extracted parameters pass validation
wins; there is no scoring across candidates.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Pattern, Tuple

from graphqa.core import Config
from .types import Intent, Route, RoutingResult
from .utils import QueryPatternUtils, is_valid_author_name, is_valid_entity_name
from .vocabulary import Vocabulary, get_vocabulary

logger = logging.getLogger(__name__)

Extractor = Callable[[re.Match, str], Optional[Dict[str, Any]]]
Validator = Callable[[Dict[str, Any]], bool]

ENTITY_TYPE_PATTERN = re.compile(
    r"\b(methods?|concepts?|datasets?|metrics?|entities|entity)\b", re.IGNORECASE
)
COUNT_TARGET_PATTERN = re.compile(
    r"\b(papers?|entities|entity|relationships?|methods?|concepts?|datasets?|metrics?)\b",
    re.IGNORECASE,
)
ARXIV_ID_PATTERN = re.compile(r"^\d{4}\.\d{4,5}(?:v\d+)?$")
# "in the database", "in total" do not filter anything
WHOLE_STORE_PATTERN = re.compile(
    r"\b(?:are\s+)?(?:in|from|within)\s+(?:the\s+)?"
    r"(?:database|db|knowledge\s+graph|graph|corpus|collection|system|total)\b",
    re.IGNORECASE,
)

MOST_COMMON_LIMIT_PATTERNS = [
    r"\b(\d+)\s+(?:most|top|popular|frequently|commonly|common)",  # "5 most common"
    r"\b(?:top|most|popular)\s+(\d+)",  # "top 5 methods"
    r"\b(?:most|popular|common).*?\b(\d+)\b",  # "most common 5 methods"
]

LEAST_COMMON_LIMIT_PATTERNS = [
    r"\b(\d+)\s+(?:least|bottom|rarely|uncommon)",  # "5 least common"
    r"\b(?:least|bottom|rarely|uncommon)\s+(\d+)",  # "least 5 methods"
    r"\b(?:least|bottom).*?\b(\d+)\b",  # "least common 5 methods"
]


@dataclass(frozen=True)
class IntentMatcher:
    """One link of the routing chain"""

    name: str
    intent: Intent
    route: Route
    confidence: float
    patterns: Tuple[Pattern, ...]
    extractor: Extractor
    validator: Validator


def _compile(*patterns: str) -> Tuple[Pattern, ...]:
    return tuple(re.compile(pattern, re.IGNORECASE) for pattern in patterns)


def _capture(match: re.Match) -> Optional[str]:
    """First capture group, stripped, or None for capture-less patterns"""
    if match.re.groups < 1 or match.group(1) is None:
        return None
    captured = match.group(1).strip()
    return captured or None


def _accept_all(params: Dict[str, Any]) -> bool:
    return True


class IntentRouter:
    """Routes a question to a graph template, a lexical template or NL->SQL synthesis"""

    def __init__(self, vocabulary: Optional[Vocabulary] = None):
        self.vocabulary = vocabulary or get_vocabulary()
        self.matchers = self._initialize_matchers()

    def route(self, question: str) -> RoutingResult:
        """Detect intent and pick a route; pure function of the question text"""
        text = (question or "").strip()

        for matcher in self.matchers:
            for pattern in matcher.patterns:
                match = pattern.search(text)
                if not match:
                    continue
                params = matcher.extractor(match, text)
                if params is None or not matcher.validator(params):
                    continue
                # The flipped negated-focus case reports its own intent
                intent = params.pop("_intent", matcher.intent)
                logger.debug(f"Question matched '{matcher.name}' as {intent.value}")
                return RoutingResult(
                    intent=intent,
                    route=matcher.route,
                    confidence=matcher.confidence,
                    parameters=params,
                )

        return RoutingResult(
            intent=Intent.NL2SQL, route=Route.SYNTHESIS, confidence=0.70, parameters={}
        )

    def _initialize_matchers(self) -> List[IntentMatcher]:
        """Build the ordered matcher chain, high-precision first"""
        return [
            # A) Graph templates
            IntentMatcher(
                name="lineage",
                intent=Intent.LINEAGE,
                route=Route.GRAPH,
                confidence=0.95,
                patterns=_compile(
                    r"(?:which|what|find|show).*(?:papers?|methods?).*(?:improve|enhance|advance|better).*(?:on|upon|over|than)\s+(.+?)(?:\?|$)",
                    r"(?:which|what|find|show).*(?:papers?|methods?).*(?:improvement|enhancement|advancement).*(?:of|over|to)\s+(.+?)(?:\?|$)",
                    r"(?:papers?|methods?).*(?:improve|enhance|advance|better).*(?:on|upon|over|than)\s+(.+?)(?:\?|$)",
                ),
                extractor=self._entity_extractor("target_method"),
                validator=self._entity_validator("target_method"),
            ),
            IntentMatcher(
                name="introduces",
                intent=Intent.INTRODUCES,
                route=Route.GRAPH,
                confidence=0.90,
                patterns=_compile(
                    r"(?:what|which).*(?:concepts?|methods?|techniques?).*(?:did|does|were|are).*(?:paper|arxiv).*?(\d{4}\.\d{4,5}(?:v\d+)?)\s*(?:introduce|present)",
                    r"paper.*?(\d{4}\.\d{4,5}(?:v\d+)?).*(?:introduce|present|propose).*(?:the\s+)?(?:concepts?|methods?)",
                    r"(?:which|what|find|show).*(?:papers?).*(?:introduce|present|propose|novel).*(?:the\s+)?(?:concept|method|technique|algorithm|approach)\s+(.+?)(?:\?|$)",
                ),
                extractor=self._extract_introduces,
                validator=lambda params: bool(params.get("paper_id")),
            ),
            IntentMatcher(
                name="extends",
                intent=Intent.EXTENDS,
                route=Route.GRAPH,
                confidence=0.90,
                patterns=_compile(
                    r"(?:which|what|find|show).*(?:papers?|methods?).*(?:extend|build|generalize|base).*(?:on|upon)\s+(.+?)(?:\?|$)",
                    r"(?:extending|building|generalizing).*(?:on|upon)\s+(.+?)(?:\?|$)",
                ),
                extractor=self._entity_extractor("base_entity"),
                validator=self._entity_validator("base_entity"),
            ),
            IntentMatcher(
                name="uses",
                intent=Intent.USES,
                route=Route.GRAPH,
                confidence=0.90,
                patterns=_compile(
                    r"(?:which|what|find|show).*(?:papers?).*(?:use|uses|using|employ|employs|evaluate|evaluates|evaluating)\s+(?:the\s+)?(.+?)\s+(?:dataset|metric|method)s?(?:\?|$)",
                    r"(?:papers?).*(?:using|evaluating|employing)\s+(?:the\s+)?(.+?)\s+(?:dataset|metric|method)s?(?:\?|$)",
                    r"(?:which|what).*(?:dataset|metric|method).*(?:is|are).*(?:used|evaluated|employed)(?:\?|$)",
                ),
                extractor=self._entity_extractor("entity_name"),
                validator=self._entity_validator("entity_name"),
            ),
            IntentMatcher(
                name="compares",
                intent=Intent.COMPARES,
                route=Route.GRAPH,
                confidence=0.90,
                patterns=_compile(
                    r"(?:which|what|find|show).*(?:papers?).*(?:compare|compares|comparison|benchmark).*(?:with|against|to|vs|versus)\s+(.+?)(?:\?|$)",
                    r"(?:what|which).*(?:compare|compares).*(?:against|with|to)\s+(.+?)(?:\?|$)",
                    r"(?:papers?).*(?:comparing|benchmarking).*(?:with|against|to|vs|versus)\s+(.+?)(?:\?|$)",
                ),
                extractor=self._entity_extractor("compared_method"),
                validator=self._entity_validator("compared_method"),
            ),
            IntentMatcher(
                name="authored_by",
                intent=Intent.AUTHORED_BY,
                route=Route.GRAPH,
                confidence=0.85,
                patterns=_compile(
                    r"(?:which|what|find|show).*(?:papers?).*(?:authored|written|by)\s+(?:author\s+)?(.+?)(?:\?|$)",
                    r"(?:papers?).*\b(?:by|from|authored|written)\s+(?:author\s+)?(.+?)(?:\?|$)",
                ),
                extractor=self._entity_extractor("author_name"),
                validator=lambda params: bool(params.get("author_name"))
                and is_valid_author_name(params["author_name"], self.vocabulary)
                and bool(re.search(r"[a-z]", params["author_name"], re.IGNORECASE)),
            ),
            IntentMatcher(
                name="neighbors",
                intent=Intent.NEIGHBORS,
                route=Route.GRAPH,
                confidence=0.85,
                patterns=_compile(
                    r"(?:show|find|what|which).*(?:neighbors?|neighborhood|connections?|relations?).*(?:of|around|to|connected|related)\s+(?:the\s+)?(.+?)(?:\?|$)",
                    r"(?:neighbors?|neighborhood|connections?|relations?).*(?:of|around|to)\s+(?:the\s+)?(.+?)(?:\?|$)",
                    r"(?:what|which).*(?:is|are).*(?:connected|related).*(?:to|with)\s+(?:the\s+)?(.+?)(?:\?|$)",
                ),
                extractor=self._entity_extractor("entity_name"),
                validator=self._entity_validator("entity_name"),
            ),
            # B) Lexical templates
            IntentMatcher(
                name="focus",
                intent=Intent.FOCUS,
                route=Route.LEXICAL,
                confidence=0.80,
                patterns=_compile(
                    r"(?:which|what|find|show).*(?:papers?).*(?:focus|focuses|focused|talks|talk|centered|centers|about|on)\s+(?:on|about|regarding)?\s*(.+?)(?:\?|$)",
                    r"(?:papers?).*(?:focus|focuses|focused|talks|talk|centered|centers|about)\s+(?:on|about|regarding)?\s*(.+?)(?:\?|$)",
                    r"(?:what|which).*(?:paper|papers).*(?:focus|focuses|talks|centered).*(?:on|about)\s+(.+?)(?:\?|$)",
                ),
                extractor=self._extract_focus,
                validator=self._entity_validator("topic"),
            ),
            IntentMatcher(
                name="least_common",
                intent=Intent.MOST_COMMON,
                route=Route.GRAPH,
                confidence=0.90,
                patterns=_compile(
                    r"(?:what|which|find|show).*(?:least|bottom|rarely|uncommon|infrequent).*(?:methods?|concepts?|datasets?|metrics?|entities)",
                    r"(?:least|bottom|rarely|uncommon|infrequent).*(?:methods?|concepts?|datasets?|metrics?|entities)",
                ),
                extractor=self._ranking_extractor("ASC", LEAST_COMMON_LIMIT_PATTERNS),
                validator=_accept_all,
            ),
            IntentMatcher(
                name="most_common",
                intent=Intent.MOST_COMMON,
                route=Route.GRAPH,
                confidence=0.90,
                patterns=_compile(
                    r"(?:what|which|find|show).*(?:most|top|popular|frequently|commonly|common).*(?:methods?|concepts?|datasets?|metrics?|entities)",
                    r"(?:most|top|popular|frequently|commonly|common).*(?:methods?|concepts?|datasets?|metrics?|entities)",
                ),
                extractor=self._ranking_extractor("DESC", MOST_COMMON_LIMIT_PATTERNS),
                validator=_accept_all,
            ),
            IntentMatcher(
                name="count",
                intent=Intent.COUNT,
                route=Route.LEXICAL,
                confidence=0.85,
                patterns=_compile(
                    r"\b(?:how\s+many|number\s+of|counts?)\s+(?:papers?|entities|entity|relationships?|methods?|concepts?|datasets?|metrics?)(?:\s+.*)?(?:\?|$)",
                    r"(?:how\s+many|number\s+of).*(?:not|don't|do not|doesn't|does not|excluding|without|except)",
                ),
                extractor=self._extract_count,
                validator=_accept_all,
            ),
        ]

    # ------------------------------------------------------------------
    # Extractors and validators
    # ------------------------------------------------------------------

    def _entity_extractor(self, key: str) -> Extractor:
        def extract(match: re.Match, text: str) -> Optional[Dict[str, Any]]:
            captured = _capture(match)
            if captured is None:
                return None
            return {key: captured}

        return extract

    def _entity_validator(self, key: str) -> Validator:
        def validate(params: Dict[str, Any]) -> bool:
            value = params.get(key)
            return bool(value) and is_valid_entity_name(value, self.vocabulary)

        return validate

    def _extract_introduces(self, match: re.Match, text: str) -> Optional[Dict[str, Any]]:
        captured = _capture(match)
        if captured and ARXIV_ID_PATTERN.match(captured):
            return {"paper_id": captured, "entity_name": None}
        return {"paper_id": None, "entity_name": captured}

    def _extract_focus(self, match: re.Match, text: str) -> Optional[Dict[str, Any]]:
        topic = _capture(match)
        if topic is None:
            return None
        if QueryPatternUtils.has_negation(text):
            # Negated topic questions become counts of non-matching papers
            return {
                "_intent": Intent.COUNT,
                "topic": topic,
                "negation": True,
                "entity_type": "paper",
                "filter_condition": topic,
            }
        return {"topic": topic, "negation": False}

    def _ranking_extractor(self, order: str, limit_patterns: List[str]) -> Extractor:
        def extract(match: re.Match, text: str) -> Optional[Dict[str, Any]]:
            type_match = ENTITY_TYPE_PATTERN.search(text)
            entity_type = (
                QueryPatternUtils.singular_entity_type(type_match.group(1))
                if type_match
                else "method"
            )
            limit = QueryPatternUtils.extract_limit(
                text, limit_patterns, Config.MOST_COMMON_DEFAULT_LIMIT
            )
            return {"entity_type": entity_type, "limit": limit, "order": order}

        return extract

    def _extract_count(self, match: re.Match, text: str) -> Optional[Dict[str, Any]]:
        negation = QueryPatternUtils.has_negation(text)
        target_match = COUNT_TARGET_PATTERN.search(text)
        entity_type = (
            QueryPatternUtils.singular_entity_type(target_match.group(1))
            if target_match
            else "paper"
        )

        if negation:
            filter_condition = QueryPatternUtils.extract_negated_clause(text)
        else:
            scoped = WHOLE_STORE_PATTERN.sub("", text)
            filter_condition = QueryPatternUtils.extract_filter_clause(scoped)

        return {
            "entity_type": entity_type,
            "negation": negation,
            "filter_condition": filter_condition,
        }


# Shared default router
_default_router: Optional[IntentRouter] = None


def route(question: str) -> RoutingResult:
    """Route a question with the default vocabulary"""
    global _default_router
    if _default_router is None:
        _default_router = IntentRouter()
    return _default_router.route(question)
