"""3D scene search capability.

Only the interface exists so far. ``Search3DManager`` is the default backend:
it accepts a scene handle and answers every query with an empty result list,
which callers treat as "3D search unsupported".
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Tuple, runtime_checkable

from loguru import logger

from .models import SearchResult


Vector3 = Tuple[float, float, float]


@dataclass
class Scene3DNode:
    """A searchable node in a 3D scene."""
    id: str
    name: str
    type: str
    position: Vector3 = (0.0, 0.0, 0.0)
    rotation: Vector3 = (0.0, 0.0, 0.0)
    scale: Vector3 = (1.0, 1.0, 1.0)
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class BoundingBox:
    min: Vector3
    max: Vector3


@dataclass
class Search3DResult(SearchResult):
    """Search result located in 3D space."""
    node: Optional[Scene3DNode] = None
    distance: float = 0.0
    bounding_box: Optional[BoundingBox] = None


@runtime_checkable
class Search3DBackend(Protocol):
    """What the search orchestrator needs from a 3D search implementation."""

    def set_scene(self, scene: Any) -> None: ...

    def search_in_3d(self, query: str, radius: Optional[float] = None) -> List[Search3DResult]: ...

    def highlight_results(self, results: List[Search3DResult]) -> None: ...

    def clear_highlights(self) -> None: ...

    def focus_on_result(self, result: Search3DResult, camera: Any = None) -> None: ...

    def get_search_results(self) -> List[Search3DResult]: ...

    def get_nodes(self) -> List[Scene3DNode]: ...


class Search3DManager:
    """No-op 3D backend used until a real scene integration exists."""

    def __init__(self, scene: Any = None):
        self.scene = scene
        self._nodes: List[Scene3DNode] = []
        self._search_results: List[Search3DResult] = []

    def set_scene(self, scene: Any) -> None:
        self.scene = scene
        self._extract_nodes()

    def _extract_nodes(self) -> None:
        # Without a scene integration there is nothing to index
        self._nodes = []

    def search_in_3d(self, query: str, radius: Optional[float] = None) -> List[Search3DResult]:
        logger.debug(f"3D search unsupported, returning no results for {query!r}")
        self._search_results = []
        return []

    def highlight_results(self, results: List[Search3DResult]) -> None:
        pass

    def clear_highlights(self) -> None:
        pass

    def focus_on_result(self, result: Search3DResult, camera: Any = None) -> None:
        pass

    def get_search_results(self) -> List[Search3DResult]:
        return list(self._search_results)

    def get_nodes(self) -> List[Scene3DNode]:
        return list(self._nodes)
