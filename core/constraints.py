"""
Incremental constraint propagation for interactive play.

The propagator keeps one invariant over the grid's edge map: an UNKNOWN
edge whose vertex-forcing condition holds is CALCULATED_OFF, and a
CALCULATED_OFF edge whose condition no longer holds is UNKNOWN again.

Vertex rule: at each vertex three edges meet. Two ACTIVE edges forbid the
third (no branching); two inactive edges (OFF or CALCULATED_OFF) forbid the
third too, since a lone active edge could never continue. Mixed pairs force
nothing. Map corners with no hex on either side contribute a virtual edge
that reads as CALCULATED_OFF.

Derived edges are always grounded: when a loosening edit could invalidate
them, the whole connected CALCULATED_OFF network around the edit is reset
and re-derived from scratch, so no cycle of derived edges can keep itself
alive.
"""
from collections import deque
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from core.types import EdgeState
from utils.hex_axial import (
    EdgeRef,
    canonical_edge_key,
    corner_edges,
    edge_corners,
    mirror_edge,
    third_edge_at_vertex,
)

VertexRef = Tuple[int, int, int]  # (q, r, corner)


def forces_off(a: EdgeState, b: EdgeState) -> bool:
    """True if two edges at a vertex force the third one off."""
    if a == EdgeState.ACTIVE and b == EdgeState.ACTIVE:
        return True
    return a.is_inactive and b.is_inactive


@dataclass(frozen=True)
class VertexContext:
    """
    The three edges meeting at a vertex.

    Slot 0 and 1 are the two edges of the hex owning the corner, slot 2 is
    the edge between the two corner-adjacent neighbors (None when virtual).
    forces[i] is the verdict of the other two edges on slot i.
    """
    edges: Tuple[EdgeRef, EdgeRef, Optional[EdgeRef]]
    states: Tuple[EdgeState, EdgeState, EdgeState]

    @property
    def forces(self) -> Tuple[bool, bool, bool]:
        s1, s2, s3 = self.states
        return forces_off(s2, s3), forces_off(s1, s3), forces_off(s1, s2)

    def forced_unknown(self) -> Optional[EdgeRef]:
        """First UNKNOWN edge the other two force off, if any."""
        for edge, state, forced in zip(self.edges, self.states, self.forces):
            if edge is not None and state == EdgeState.UNKNOWN and forced:
                return edge
        return None


class ConstraintPropagator:
    """
    Vertex-rule propagation over a grid's edge map.

    Holds no state of its own; every read and write goes through the grid
    (has_hex, get_edge_state, write_edge_state).
    """

    def __init__(self, grid):
        self.grid = grid

    # =============================================================================
    # VERTEX GEOMETRY
    # =============================================================================

    def owner_of(self, q: int, r: int, direction: int) -> EdgeRef:
        """Representation of an edge addressed from a hex that exists."""
        if self.grid.has_hex(q, r):
            return q, r, direction
        return mirror_edge(q, r, direction)

    def edge_vertices(self, q: int, r: int, direction: int) -> List[VertexRef]:
        """The two vertices at the ends of an edge."""
        oq, orr, od = self.owner_of(q, r, direction)
        c1, c2 = edge_corners(od)
        return [(oq, orr, c1), (oq, orr, c2)]

    def vertex_state(self, q: int, r: int, corner: int) -> VertexContext:
        e1, e2 = corner_edges(corner)
        third = third_edge_at_vertex(q, r, corner, self.grid.has_hex)

        s1 = self.grid.get_edge_state(q, r, e1)
        s2 = self.grid.get_edge_state(q, r, e2)
        s3 = self.grid.get_edge_state(*third) if third is not None else EdgeState.CALCULATED_OFF

        return VertexContext(((q, r, e1), (q, r, e2), third), (s1, s2, s3))

    def vertex_edges(self, q: int, r: int, corner: int) -> List[EdgeRef]:
        """Real (non-virtual) edges meeting at a vertex."""
        e1, e2 = corner_edges(corner)
        edges = [(q, r, e1), (q, r, e2)]
        third = third_edge_at_vertex(q, r, corner, self.grid.has_hex)
        if third is not None:
            edges.append(third)
        return edges

    # =============================================================================
    # PROPAGATION
    # =============================================================================

    def check_vertex(self, q: int, r: int, corner: int) -> int:
        """Apply the vertex rule at one vertex and everything it sets off."""
        return self.propagate([(q, r, corner)])

    def propagate(self, vertices: Iterable[VertexRef]) -> int:
        """
        Run the vertex rule from the given vertices until nothing changes.

        Returns:
            Number of edges newly set to CALCULATED_OFF
        """
        queue = deque(vertices)
        derived = 0

        while queue:
            q, r, corner = queue.popleft()
            while True:
                edge = self.vertex_state(q, r, corner).forced_unknown()
                if edge is None:
                    break
                self.grid.write_edge_state(*edge, EdgeState.CALCULATED_OFF)
                queue.extend(self.edge_vertices(*edge))
                derived += 1

        return derived

    def retract_from(self, q: int, r: int, direction: int) -> List[EdgeRef]:
        """
        Reset the connected CALCULATED_OFF network around an edge.

        Walks vertex to vertex from both ends of the edge, crossing only
        CALCULATED_OFF edges, and sets each of them back to UNKNOWN.

        Returns:
            The reset edges, in the order they were reached
        """
        visited = {canonical_edge_key(q, r, direction)}
        reset: List[EdgeRef] = []
        queue = deque(self.edge_vertices(q, r, direction))

        while queue:
            vertex = queue.popleft()
            for edge in self.vertex_edges(*vertex):
                key = canonical_edge_key(*edge)
                if key in visited:
                    continue
                visited.add(key)
                if self.grid.get_edge_state(*edge) != EdgeState.CALCULATED_OFF:
                    continue
                self.grid.write_edge_state(*edge, EdgeState.UNKNOWN)
                reset.append(edge)
                queue.extend(self.edge_vertices(*edge))

        return reset

    def recheck(self, edges: Iterable[EdgeRef]) -> int:
        """Re-run the vertex rule at both ends of every given edge."""
        vertices: List[VertexRef] = []
        for edge in edges:
            vertices.extend(self.edge_vertices(*edge))
        return self.propagate(vertices)

    # =============================================================================
    # DIAGNOSTICS
    # =============================================================================

    def unresolved_vertices(self) -> List[VertexRef]:
        """Vertices where an UNKNOWN edge is forced but not yet derived."""
        pending = []
        for q, r in self.grid.hex_coords():
            for corner in range(6):
                if self.vertex_state(q, r, corner).forced_unknown() is not None:
                    pending.append((q, r, corner))
        return pending

    def stale_derivations(self) -> List[EdgeRef]:
        """CALCULATED_OFF edges that no vertex currently justifies."""
        stale = []
        seen = set()
        for q, r in self.grid.hex_coords():
            for d in range(6):
                key = canonical_edge_key(q, r, d)
                if key in seen or self.grid.get_edge_state(q, r, d) != EdgeState.CALCULATED_OFF:
                    continue
                seen.add(key)
                justified = False
                for vertex in self.edge_vertices(q, r, d):
                    ctx = self.vertex_state(*vertex)
                    for slot, edge in enumerate(ctx.edges):
                        if edge is not None and canonical_edge_key(*edge) == key and ctx.forces[slot]:
                            justified = True
                if not justified:
                    stale.append((q, r, d))
        return stale
