"""
Decorative colouring of ACTIVE edge components.

Each connected run of ACTIVE edges (edges sharing a vertex) carries one
colour id. Colours are a presentation attribute only; nothing here reads
or writes edge states beyond looking them up.
"""
import random
from collections import Counter, deque
from typing import Dict, Iterable, List, Optional, Set, Tuple

from core.config import EDGE_COLOR_COUNT
from core.types import EdgeState
from utils.hex_axial import canonical_edge_key, unpack_edge_key


class EdgeColorizer:
    """Keeps edge colour ids in step with activations and deactivations."""

    def __init__(self, grid, rng: Optional[random.Random] = None,
                 color_count: int = EDGE_COLOR_COUNT):
        self.grid = grid
        self.rng = rng or random.Random()
        self.color_count = color_count
        self.colors: Dict[int, int] = {}

    def color_of(self, key: int) -> Optional[int]:
        return self.colors.get(key)

    def clear(self) -> None:
        self.colors.clear()

    def load(self, pairs: Iterable[Tuple[int, int]]) -> None:
        """Restore colours from persisted [key, colour] pairs."""
        self.colors = {int(key): int(color) for key, color in pairs}

    def as_pairs(self) -> List[List[int]]:
        return [[key, color] for key, color in sorted(self.colors.items())]

    # =============================================================================
    # GRID HOOKS
    # =============================================================================

    def on_activated(self, key: int) -> None:
        """An edge became ACTIVE: join it to (and merge) touching components."""
        components = self._touching_components(key)
        if not components:
            self.colors[key] = self._least_used()
            return

        largest = max(components, key=len)
        color = self._component_color(largest)
        for component in components:
            for edge in component:
                self.colors[edge] = color
        self.colors[key] = color

    def on_deactivated(self, key: int) -> None:
        """An edge left ACTIVE: split its component if it was a bridge."""
        old_color = self.colors.pop(key, None)
        components = self._touching_components(key)
        if not components:
            return

        components.sort(key=len, reverse=True)
        keep = old_color if old_color is not None else self._component_color(components[0])
        for edge in components[0]:
            self.colors[edge] = keep

        for component in components[1:]:
            for edge in component:
                self.colors.pop(edge, None)
            color = self._least_used(avoid={keep})
            for edge in component:
                self.colors[edge] = color

    # =============================================================================
    # HELPERS
    # =============================================================================

    def _least_used(self, avoid: Set[int] = frozenset()) -> int:
        """Colour id with the fewest edges, ties broken at random."""
        usage = Counter(self.colors.values())
        choices = [c for c in range(1, self.color_count + 1) if c not in avoid]
        if not choices:
            choices = list(range(1, self.color_count + 1))
        lowest = min(usage[c] for c in choices)
        return self.rng.choice([c for c in choices if usage[c] == lowest])

    def _component_color(self, component: Set[int]) -> int:
        usage = Counter(self.colors[e] for e in component if e in self.colors)
        if not usage:
            return self._least_used()
        return usage.most_common(1)[0][0]

    def _active_neighbors(self, key: int) -> Set[int]:
        """ACTIVE edges sharing a vertex with the given edge."""
        propagator = self.grid.propagator
        neighbors = set()
        for vertex in propagator.edge_vertices(*unpack_edge_key(key)):
            for edge in propagator.vertex_edges(*vertex):
                other = canonical_edge_key(*edge)
                if other != key and self.grid.get_edge_state(*edge) == EdgeState.ACTIVE:
                    neighbors.add(other)
        return neighbors

    def _component(self, start: int, exclude: int) -> Set[int]:
        """ACTIVE edges connected to start without passing through exclude."""
        seen = {start}
        queue = deque([start])
        while queue:
            key = queue.popleft()
            for other in self._active_neighbors(key):
                if other != exclude and other not in seen:
                    seen.add(other)
                    queue.append(other)
        return seen

    def _touching_components(self, key: int) -> List[Set[int]]:
        """Distinct ACTIVE components adjacent to an edge, the edge itself excluded."""
        components: List[Set[int]] = []
        for neighbor in self._active_neighbors(key):
            if any(neighbor in c for c in components):
                continue
            components.append(self._component(neighbor, exclude=key))
        return components
