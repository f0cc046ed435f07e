"""Facet filters (``category:X``, ``type:Y``, ``tag:Z``) over search results."""

from typing import Iterable, List, Sequence

import ulid

from .models import DEFAULT_CATEGORY, SearchFilter, SearchResult, SearchSuggestion


def make_filter(category: str, value: str, removable: bool = True, color: str = "blue") -> SearchFilter:
    return SearchFilter(
        id=f"filter-{ulid.ULID()}",
        label=f"{category}:{value}",
        value=value,
        category=category,
        color=color,
        removable=removable,
    )


def parse_filter(text: str) -> SearchFilter:
    """Build a filter from ``category:value`` text.

    Text without a colon becomes a ``general`` filter whose value is the
    whole text. A trailing colon leaves the value empty, and such a filter
    only matches results whose facet is empty too.
    """
    category, sep, value = text.partition(":")
    if not sep:
        return SearchFilter(
            id=f"filter-{ulid.ULID()}",
            label=text,
            value=text,
            category=DEFAULT_CATEGORY,
        )
    return SearchFilter(
        id=f"filter-{ulid.ULID()}",
        label=text,
        value=value,
        category=category or DEFAULT_CATEGORY,
    )


def filter_from_suggestion(suggestion: SearchSuggestion) -> SearchFilter:
    return parse_filter(suggestion.text)


def matches_filter(result: SearchResult, search_filter: SearchFilter) -> bool:
    if search_filter.category == "category":
        return result.category == search_filter.value
    if search_filter.category == "type":
        return result.type == search_filter.value
    if search_filter.category == "tag":
        return search_filter.value in result.tags
    # Unknown facets don't constrain anything
    return True


def apply_filters(results: Sequence[SearchResult], filters: Iterable[SearchFilter]) -> List[SearchResult]:
    """Keep results that satisfy every filter."""
    active = list(filters)
    if not active:
        return list(results)
    return [r for r in results if all(matches_filter(r, f) for f in active)]
