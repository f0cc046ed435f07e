"""Universal search engine: matchers, fusion, logic operators, history and suggestions."""

from .algorithms import SEARCH_ALGORITHMS, SearchAlgorithm, fuse_results, get_algorithm
from .config import SearchConfig
from .history import MAX_HISTORY, SearchHistoryManager
from .models import SearchFilter, SearchHistoryEntry, SearchResult, SearchSuggestion, SuggestionKind
from .operators import LogicOperator, ParsedQuery, apply_logic, parse_query
from .scene3d import Search3DBackend, Search3DManager
from .search import SearchResponse, UniversalSearch
from .storage import JsonFileStore, MemoryStore, PersistentStore
from .suggestions import SearchSuggestionsManager

__all__ = [
    "SEARCH_ALGORITHMS",
    "SearchAlgorithm",
    "fuse_results",
    "get_algorithm",
    "SearchConfig",
    "MAX_HISTORY",
    "SearchHistoryManager",
    "SearchFilter",
    "SearchHistoryEntry",
    "SearchResult",
    "SearchSuggestion",
    "SuggestionKind",
    "LogicOperator",
    "ParsedQuery",
    "apply_logic",
    "parse_query",
    "Search3DBackend",
    "Search3DManager",
    "SearchResponse",
    "UniversalSearch",
    "JsonFileStore",
    "MemoryStore",
    "PersistentStore",
    "SearchSuggestionsManager",
]
