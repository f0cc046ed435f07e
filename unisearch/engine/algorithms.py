"""Matching algorithms and result fusion."""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Sequence

from loguru import logger

from .errors import UnknownAlgorithmError
from .models import RecordView, SearchResult, field_text


MatchFunction = Callable[[str, Sequence[Any], str], List[SearchResult]]


@dataclass
class SearchAlgorithm:
    """A named matcher plus its declared weight.

    The weight orders algorithms ahead of fusion; it is never applied to
    the relevance score.
    """
    name: str
    description: str
    weight: float
    function: MatchFunction

    def __call__(self, query: str, data: Sequence[Any], field: str = "title") -> List[SearchResult]:
        return self.function(query, data, field)


def _to_result(item: Any, field: str, score: float, source: str, index: int) -> SearchResult:
    view = RecordView.from_item(item)
    return SearchResult(
        id=view.id or f"item-{index}",
        title=field_text(item, field),
        description=view.description,
        category=view.category,
        type=view.type,
        relevance_score=score,
        metadata=item,
        tags=view.tags,
        timestamp=view.timestamp,
        source=source,
    )


def levenshtein(source: str, target: str) -> int:
    """Edit distance between two strings (insert, delete, substitute all cost 1)."""
    if len(source) < len(target):
        source, target = target, source
    previous = list(range(len(target) + 1))
    for i, s_char in enumerate(source, 1):
        current = [i]
        for j, t_char in enumerate(target, 1):
            cost = 0 if s_char == t_char else 1
            current.append(min(
                current[j - 1] + 1,
                previous[j] + 1,
                previous[j - 1] + cost,
            ))
        previous = current
    return previous[-1]


def fuzzy_threshold(query: str) -> int:
    """Largest edit distance a fuzzy candidate may have for this query."""
    return max(2, len(query) // 3)


def exact_match(query: str, data: Sequence[Any], field: str) -> List[SearchResult]:
    needle = query.lower()
    return [
        _to_result(item, field, 1.0, "exact", i)
        for i, item in enumerate(data)
        if field_text(item, field).lower() == needle
    ]


def starts_with_match(query: str, data: Sequence[Any], field: str) -> List[SearchResult]:
    needle = query.lower()
    return [
        _to_result(item, field, 0.9, "startsWith", i)
        for i, item in enumerate(data)
        if field_text(item, field).lower().startswith(needle)
    ]


def contains_match(query: str, data: Sequence[Any], field: str) -> List[SearchResult]:
    needle = query.lower()
    return [
        _to_result(item, field, 0.8, "contains", i)
        for i, item in enumerate(data)
        if needle in field_text(item, field).lower()
    ]


def fuzzy_match(query: str, data: Sequence[Any], field: str) -> List[SearchResult]:
    """Levenshtein match, closest first."""
    needle = query.lower()
    limit = fuzzy_threshold(query)

    scored = []
    for i, item in enumerate(data):
        distance = levenshtein(field_text(item, field).lower(), needle)
        if distance <= limit:
            scored.append((distance, i, item))
    scored.sort(key=lambda pair: pair[0])

    denominator = max(len(query), 1)
    return [
        _to_result(item, field, max(0.1, 1 - distance / denominator), "fuzzy", i)
        for distance, i, item in scored
    ]


def semantic_match(query: str, data: Sequence[Any], field: str) -> List[SearchResult]:
    """Word-overlap match.

    Counts every (query word, field word) pair where one word contains the
    other and divides by the number of query words. Candidates scoring 0.3
    or below are dropped.
    """
    query_words = query.lower().split()
    if not query_words:
        return []

    scored = []
    for i, item in enumerate(data):
        text_words = field_text(item, field).lower().split()
        hits = sum(
            1
            for q_word in query_words
            for t_word in text_words
            if q_word in t_word or t_word in q_word
        )
        score = hits / len(query_words)
        if score > 0.3:
            scored.append((min(1.0, score), i, item))
    scored.sort(key=lambda pair: pair[0], reverse=True)

    return [_to_result(item, field, score, "semantic", i) for score, i, item in scored]


SEARCH_ALGORITHMS: List[SearchAlgorithm] = [
    SearchAlgorithm("exact", "Exact string matching", 1.0, exact_match),
    SearchAlgorithm("startsWith", "Starts with matching", 0.9, starts_with_match),
    SearchAlgorithm("contains", "Contains matching", 0.8, contains_match),
    SearchAlgorithm("fuzzy", "Fuzzy matching with Levenshtein distance", 0.7, fuzzy_match),
    SearchAlgorithm("semantic", "Semantic matching using word similarity", 0.6, semantic_match),
]

_ALGORITHMS_BY_NAME: Dict[str, SearchAlgorithm] = {a.name: a for a in SEARCH_ALGORITHMS}


def get_algorithm(name: str) -> SearchAlgorithm:
    try:
        return _ALGORITHMS_BY_NAME[name]
    except KeyError:
        raise UnknownAlgorithmError(name) from None


def algorithm_names() -> List[str]:
    return [a.name for a in SEARCH_ALGORITHMS]


def fuse_results(results: Sequence[SearchResult]) -> List[SearchResult]:
    """
    Merge results from several algorithms.

    One entry survives per id, carrying the maximum relevance score seen
    for that id. Output is sorted by score descending; equal scores keep
    the order in which their ids were first seen. Inputs are not mutated.
    """
    by_id: Dict[str, SearchResult] = {}
    for result in results:
        existing = by_id.get(result.id)
        if existing is None:
            by_id[result.id] = result
        elif result.relevance_score > existing.relevance_score:
            # Keep the first-seen slot, take the stronger match
            by_id[result.id] = result

    fused = sorted(by_id.values(), key=lambda r: r.relevance_score, reverse=True)
    logger.debug(f"Fused {len(results)} results into {len(fused)}")
    return fused
