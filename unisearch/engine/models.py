"""Data models for the search engine.

Records handed to the engine can be plain mappings or attribute objects;
``RecordView`` and ``field_text`` adapt either shape to the fields the engine
reads.
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass, field, asdict, is_dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger


DEFAULT_CATEGORY = "general"
DEFAULT_TYPE = "item"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a datetime, ISO-8601 string or epoch seconds. Returns None if unparseable."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        # fromisoformat only accepts a trailing Z from 3.11 on
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            logger.debug(f"Unparseable timestamp: {value!r}")
            return None
    return None


def _raw_field(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def field_text(item: Any, name: str) -> str:
    """Read ``name`` from a record as text; missing values read as ``""``."""
    value = _raw_field(item, name)
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def record_identity(item: Any) -> Any:
    """Identity used to compare records across result sets."""
    if isinstance(item, SearchResult):
        return item.id
    value = _raw_field(item, "id")
    if value is None:
        return id(item)
    return value


def serialize_item(item: Any) -> str:
    """Compact JSON text of a record, used for full-text containment checks."""
    if isinstance(item, SearchResult):
        payload = item.to_dict()
    elif is_dataclass(item) and not isinstance(item, type):
        payload = asdict(item)
    elif isinstance(item, Mapping):
        payload = dict(item)
    elif hasattr(item, "__dict__"):
        payload = vars(item)
    else:
        payload = item
    return json.dumps(payload, default=str, ensure_ascii=False, separators=(",", ":"))


@dataclass
class RecordView:
    """Normalized read-only view over one caller record."""
    id: Optional[str]
    title: str
    description: str
    category: str
    type: str
    tags: List[str]
    timestamp: datetime
    raw: Any = None

    @classmethod
    def from_item(cls, item: Any) -> "RecordView":
        raw_id = _raw_field(item, "id")
        tags = _raw_field(item, "tags") or []
        return cls(
            id=str(raw_id) if raw_id not in (None, "", 0, False) else None,
            title=field_text(item, "title"),
            description=field_text(item, "description"),
            category=field_text(item, "category") or DEFAULT_CATEGORY,
            type=field_text(item, "type") or DEFAULT_TYPE,
            tags=[str(t) for t in tags],
            timestamp=parse_timestamp(_raw_field(item, "timestamp")) or utcnow(),
            raw=item,
        )


@dataclass
class SearchResult:
    """A scored match of one record against a query term."""
    id: str
    title: str
    category: str
    type: str
    relevance_score: float
    metadata: Any = None  # source record, never mutated
    description: str = ""
    tags: List[str] = field(default_factory=list)
    timestamp: Optional[datetime] = None
    source: str = ""
    url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "type": self.type,
            "relevanceScore": self.relevance_score,
            "metadata": self.metadata,
            "tags": list(self.tags),
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "source": self.source,
            "url": self.url,
        }


class SuggestionKind(Enum):
    """Kinds of autocomplete suggestions."""
    RECENT = "recent"
    SUGGESTION = "suggestion"
    FILTER = "filter"
    OPERATOR = "operator"


@dataclass
class SearchSuggestion:
    """A ranked autocomplete candidate."""
    id: str
    text: str
    category: str
    kind: SuggestionKind
    icon: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class SearchFilter:
    """A facet constraint such as ``category:hvac``."""
    id: str
    label: str
    value: str
    category: str
    color: str = "blue"
    removable: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "value": self.value,
            "category": self.category,
            "color": self.color,
            "removable": self.removable,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SearchFilter":
        return cls(
            id=str(data["id"]),
            label=str(data.get("label", "")),
            value=str(data.get("value", "")),
            category=str(data.get("category", DEFAULT_CATEGORY)),
            color=str(data.get("color", "blue")),
            removable=bool(data.get("removable", True)),
        )


@dataclass
class SearchHistoryEntry:
    """One previously executed query."""
    id: str
    query: str
    timestamp: datetime
    results_count: int
    filters: Tuple[SearchFilter, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "query": self.query,
            "timestamp": self.timestamp.isoformat(),
            "resultsCount": self.results_count,
            "filters": [f.to_dict() for f in self.filters],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SearchHistoryEntry":
        """Build an entry from its persisted form. Raises KeyError/TypeError/ValueError on bad input."""
        timestamp = parse_timestamp(data["timestamp"])
        if timestamp is None:
            raise ValueError(f"Invalid timestamp: {data['timestamp']!r}")
        return cls(
            id=str(data["id"]),
            query=str(data["query"]),
            timestamp=timestamp,
            results_count=int(data.get("resultsCount", 0)),
            filters=tuple(SearchFilter.from_dict(f) for f in data.get("filters") or []),
        )
