"""Universal search orchestrator: matchers, fusion, logic, filters and history."""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from .algorithms import SearchAlgorithm, fuse_results, get_algorithm
from .config import SearchConfig
from .filters import apply_filters, filter_from_suggestion
from .history import SearchHistoryManager
from .models import SearchFilter, SearchResult, SearchSuggestion, SuggestionKind
from .operators import ParsedQuery, apply_logic, parse_query
from .scene3d import Search3DBackend, Search3DManager
from .storage import JsonFileStore
from .suggestions import SearchSuggestionsManager


@dataclass
class SearchResponse:
    """Everything one search produced."""
    query: str
    results: List[SearchResult] = field(default_factory=list)
    parsed: ParsedQuery = field(default_factory=ParsedQuery)
    filters: List[SearchFilter] = field(default_factory=list)
    latency_ms: float = 0
    algorithm_counts: Dict[str, int] = field(default_factory=dict)


class UniversalSearch:
    """
    Runs a query through every enabled algorithm and assembles the results.

    Pipeline per query:
    1. Parse terms and logic operators
    2. Run each algorithm over each term on the configured field
    3. Fuse, keeping the best score per result id
    4. Apply logic operators to the fused pool
    5. Apply active facet filters
    6. Record the query in history
    """

    def __init__(
        self,
        data: Sequence[Any] = (),
        config: Optional[SearchConfig] = None,
        history: Optional[SearchHistoryManager] = None,
        scene3d: Optional[Search3DBackend] = None,
    ):
        self.config = config or SearchConfig()
        if history is None:
            history = SearchHistoryManager(
                JsonFileStore(self.config.history_dir),
                storage_key=self.config.storage_key,
            )
        self.history = history
        self.scene3d = scene3d or Search3DManager()

        self.algorithms: List[SearchAlgorithm] = sorted(
            (get_algorithm(name) for name in self.config.algorithms),
            key=lambda a: a.weight,
            reverse=True,
        )

        self.data: Sequence[Any] = data
        self.suggestions = SearchSuggestionsManager(self.history, data)
        self._filters: List[SearchFilter] = []

        self._latency_histogram: List[float] = []

    def set_data(self, data: Sequence[Any]) -> None:
        self.data = data
        self.suggestions.set_data(data)

    @property
    def filters(self) -> List[SearchFilter]:
        return list(self._filters)

    def add_filter(self, search_filter: SearchFilter) -> None:
        self._filters.append(search_filter)
        logger.debug(f"Added filter {search_filter.label}")

    def remove_filter(self, filter_id: str) -> bool:
        """Remove a removable filter by id. Returns False if nothing was removed."""
        for index, search_filter in enumerate(self._filters):
            if search_filter.id == filter_id:
                if not search_filter.removable:
                    logger.debug(f"Filter {search_filter.label} is not removable")
                    return False
                del self._filters[index]
                return True
        return False

    def clear_filters(self) -> None:
        self._filters = [f for f in self._filters if not f.removable]

    def search(self, query: str) -> SearchResponse:
        """Execute a search. A blank query returns an empty response and is not recorded."""
        start_time = time.perf_counter()
        response = SearchResponse(query=query, filters=self.filters)
        if not query.strip():
            return response

        parsed = parse_query(query)
        response.parsed = parsed

        candidates: List[SearchResult] = []
        for term in parsed.terms:
            for algorithm in self.algorithms:
                matches = algorithm(term, self.data, self.config.match_field)
                response.algorithm_counts[algorithm.name] = (
                    response.algorithm_counts.get(algorithm.name, 0) + len(matches)
                )
                candidates.extend(matches)

        results = fuse_results(candidates)

        if self.config.enable_operators and parsed.has_logic:
            results = apply_logic(results, parsed.terms, parsed.operators)

        results = apply_filters(results, self._filters)

        self.history.add_search(query, len(results), self._filters)

        if self.config.enable_3d:
            results = results + list(self.scene3d.search_in_3d(query))

        response.results = results
        response.latency_ms = (time.perf_counter() - start_time) * 1000

        self._latency_histogram.append(response.latency_ms)
        if len(self._latency_histogram) > 1000:
            self._latency_histogram = self._latency_histogram[-1000:]

        logger.debug(
            f"Search {query!r}: {len(results)} results in {response.latency_ms:.1f}ms"
        )
        return response

    def get_suggestions(self, query: str, limit: Optional[int] = None) -> List[SearchSuggestion]:
        if limit is None:
            limit = self.config.max_suggestions
        return self.suggestions.get_suggestions(query, limit)

    def select_suggestion(self, suggestion: SearchSuggestion) -> Optional[SearchResponse]:
        """Filter suggestions become active filters; anything else is searched."""
        if suggestion.kind is SuggestionKind.FILTER:
            self.add_filter(filter_from_suggestion(suggestion))
            return None
        return self.search(suggestion.text)

    def get_performance_stats(self) -> Dict[str, float]:
        """Latency summary in milliseconds over the recent searches; empty before any search."""
        latencies = sorted(self._latency_histogram)
        if not latencies:
            return {}

        def percentile(fraction: float) -> float:
            return latencies[min(len(latencies) - 1, int(len(latencies) * fraction))]

        return {
            "count": float(len(latencies)),
            "min": latencies[0],
            "p50": percentile(0.50),
            "p95": percentile(0.95),
            "p99": percentile(0.99),
            "max": latencies[-1],
            "mean": sum(latencies) / len(latencies),
        }
