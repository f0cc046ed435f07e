"""Autocomplete suggestions built from history, data, filters and operators."""

from typing import Any, Dict, List, Sequence

from .history import SearchHistoryManager
from .models import SearchSuggestion, SuggestionKind, field_text
from .operators import LogicOperator


RECENT_LIMIT = 3
FILTER_LIMIT = 2
OPERATOR_LIMIT = 2
DEFAULT_POPULAR_LIMIT = 3
DEFAULT_CATEGORY_LIMIT = 3


class SearchSuggestionsManager:
    """
    Builds suggestion lists for a partially typed query.

    Sources are consulted in a fixed priority order (recent history, data
    titles and descriptions, facet filters, operators) and each one only
    gets what is left of the caller's limit. Holds read-only references to
    the history manager and the data set.
    """

    def __init__(self, history: SearchHistoryManager, data: Sequence[Any] = ()):
        self.history = history
        self.data: Sequence[Any] = ()
        self.categories: List[str] = []
        self.types: List[str] = []
        self.set_data(data)

    def set_data(self, data: Sequence[Any]) -> None:
        self.data = data
        categories: Dict[str, None] = {}
        types: Dict[str, None] = {}
        for item in data:
            category = field_text(item, "category")
            if category:
                categories[category] = None
            item_type = field_text(item, "type")
            if item_type:
                types[item_type] = None
        self.categories = list(categories)
        self.types = list(types)

    def get_suggestions(self, query: str, limit: int = 10) -> List[SearchSuggestion]:
        if limit <= 0:
            return []
        if not query.strip():
            return self._get_default_suggestions(limit)

        suggestions: List[SearchSuggestion] = []

        recent = self.history.get_suggestions_from_history(query, min(RECENT_LIMIT, limit))
        for index, recent_query in enumerate(recent):
            suggestions.append(SearchSuggestion(
                id=f"recent-{index}",
                text=recent_query,
                category="Recent",
                kind=SuggestionKind.RECENT,
                icon="clock",
            ))

        suggestions.extend(self._get_data_suggestions(query, limit - len(suggestions)))
        suggestions.extend(
            self._get_filter_suggestions(query, min(FILTER_LIMIT, limit - len(suggestions)))
        )
        suggestions.extend(
            self._get_operator_suggestions(query, min(OPERATOR_LIMIT, limit - len(suggestions)))
        )
        return suggestions[:limit]

    def _get_default_suggestions(self, limit: int) -> List[SearchSuggestion]:
        suggestions = []

        for index, query in enumerate(self.history.get_popular_queries(DEFAULT_POPULAR_LIMIT)):
            suggestions.append(SearchSuggestion(
                id=f"popular-{index}",
                text=query,
                category="Popular",
                kind=SuggestionKind.SUGGESTION,
                icon="trending-up",
            ))

        for index, category in enumerate(self.categories[:DEFAULT_CATEGORY_LIMIT]):
            suggestions.append(SearchSuggestion(
                id=f"category-{index}",
                text=f"category:{category}",
                category="Filter",
                kind=SuggestionKind.FILTER,
                icon="tag",
            ))

        return suggestions[:limit]

    def _get_data_suggestions(self, query: str, limit: int) -> List[SearchSuggestion]:
        if limit <= 0:
            return []
        needle = query.lower()
        suggestions = []

        title_hits = [item for item in self.data if needle in field_text(item, "title").lower()]
        for index, item in enumerate(title_hits[:limit]):
            suggestions.append(self._data_suggestion(f"data-title-{index}", field_text(item, "title"), item))

        remaining = limit - len(suggestions)
        if remaining > 0:
            description_hits = [
                item for item in self.data
                if needle in field_text(item, "description").lower()
                and needle not in field_text(item, "title").lower()
            ]
            for index, item in enumerate(description_hits[:remaining]):
                suggestions.append(
                    self._data_suggestion(f"data-desc-{index}", field_text(item, "description"), item)
                )

        return suggestions

    @staticmethod
    def _data_suggestion(suggestion_id: str, text: str, item: Any) -> SearchSuggestion:
        return SearchSuggestion(
            id=suggestion_id,
            text=text,
            category=field_text(item, "category") or "Data",
            kind=SuggestionKind.SUGGESTION,
            icon="file-text",
            metadata={"record": item},
        )

    def _get_filter_suggestions(self, query: str, limit: int) -> List[SearchSuggestion]:
        if limit <= 0:
            return []
        needle = query.lower()
        suggestions = []

        categories = [c for c in self.categories if needle in c.lower()]
        for index, category in enumerate(categories[:limit]):
            suggestions.append(SearchSuggestion(
                id=f"filter-category-{index}",
                text=f"category:{category}",
                category="Filter",
                kind=SuggestionKind.FILTER,
                icon="tag",
            ))

        types = [t for t in self.types if needle in t.lower()]
        for index, item_type in enumerate(types[:limit - len(suggestions)]):
            suggestions.append(SearchSuggestion(
                id=f"filter-type-{index}",
                text=f"type:{item_type}",
                category="Filter",
                kind=SuggestionKind.FILTER,
                icon="layers",
            ))

        return suggestions

    def _get_operator_suggestions(self, query: str, limit: int) -> List[SearchSuggestion]:
        if limit <= 0:
            return []
        needle = query.lower()
        operators = [op for op in LogicOperator if needle in op.label.lower()]
        return [
            SearchSuggestion(
                id=f"operator-{index}",
                text=op.label,
                category="Operator",
                kind=SuggestionKind.OPERATOR,
                icon="zap",
                metadata={"description": op.description},
            )
            for index, op in enumerate(operators[:limit])
        ]

    def get_category_suggestions(self) -> List[SearchSuggestion]:
        return [
            SearchSuggestion(
                id=f"category-{index}",
                text=category,
                category="Category",
                kind=SuggestionKind.SUGGESTION,
                icon="tag",
            )
            for index, category in enumerate(self.categories)
        ]

    def get_type_suggestions(self) -> List[SearchSuggestion]:
        return [
            SearchSuggestion(
                id=f"type-{index}",
                text=item_type,
                category="Type",
                kind=SuggestionKind.SUGGESTION,
                icon="layers",
            )
            for index, item_type in enumerate(self.types)
        ]
