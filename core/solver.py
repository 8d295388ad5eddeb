"""
Batch constraint solver used by the map generator.

Decides whether propagation alone drives every edge of a clued puzzle to a
firm state. Two rule families run to a fixed point:

- Vertex rule: of the three edges at a vertex, two ACTIVE turn the rest
  OFF; one ACTIVE and one UNKNOWN make the unknown ACTIVE; no ACTIVE and
  one UNKNOWN make it OFF. Virtual edges outside the map count as OFF.
- Hex clue rule: once a hex has as many ACTIVE edges as its visible clue the
  rest are OFF; once ACTIVE plus UNKNOWN equals the clue the unknowns are
  ACTIVE.

A hex or vertex that can no longer be satisfied is counted as a
contradiction rather than raised; solve() then reports False and the clue
reducer simply keeps the clue it was trying to hide.

Topology lives in flat numpy tables built once per radius; reset() only
clears the state and reloads the clues, so one solver serves every trial of
a clue-reduction run.
"""
from collections import deque
from typing import Dict, List, Optional, Set, Tuple

import numpy as np

from core.config import SOLVER_ITERATION_FACTOR
from core.types import EdgeState, Puzzle
from utils.hex_axial import canonical_edge_key, corner_edges, iter_hex_coords, third_edge_at_vertex
from utils.logging_utils import get_logger

logger = get_logger("solver")

UNKNOWN = int(EdgeState.UNKNOWN)
ACTIVE = int(EdgeState.ACTIVE)
OFF = int(EdgeState.OFF)

HIDDEN = -1
NO_EDGE = -1


class BatchSolver:
    """
    Reusable propagation solver.

    Attributes:
        hex_edges: (hexes, 6) edge ids per hex direction
        edge_hexes: (edges, 2) hex ids on each side, -1 off the map
        vertex_edges: (vertices, 3) edge ids per vertex, -1 for virtual
        edge_vertices: (edges, 2) vertex ids at each end
        state: Current edge states
        targets: Visible clue per hex, -1 when hidden
        contradictions: Rejected conflicting writes in the last solve
        stuck: True if the last solve hit the iteration cap
    """

    def __init__(self, iteration_factor: int = SOLVER_ITERATION_FACTOR):
        self.iteration_factor = iteration_factor
        self.radius: Optional[int] = None

        self.coords: List[Tuple[int, int]] = []
        self.hex_index: Dict[Tuple[int, int], int] = {}
        self.edge_keys = np.zeros(0, dtype=np.int64)
        self.hex_edges = np.zeros((0, 6), dtype=np.int32)
        self.edge_hexes = np.zeros((0, 2), dtype=np.int32)
        self.vertex_edges = np.zeros((0, 3), dtype=np.int32)
        self.edge_vertices = np.zeros((0, 2), dtype=np.int32)

        self.state = np.zeros(0, dtype=np.int8)
        self.targets = np.zeros(0, dtype=np.int8)

        self.contradictions = 0
        self.stuck = False
        self.iterations = 0

    # =============================================================================
    # TOPOLOGY
    # =============================================================================

    @property
    def hex_total(self) -> int:
        return len(self.coords)

    @property
    def edge_total(self) -> int:
        return len(self.edge_keys)

    @property
    def vertex_total(self) -> int:
        return len(self.vertex_edges)

    def _build_topology(self, radius: int) -> None:
        coords = list(iter_hex_coords(radius))
        hex_index = {c: i for i, c in enumerate(coords)}

        edge_index: Dict[int, int] = {}
        hex_edges = np.empty((len(coords), 6), dtype=np.int32)
        edge_hexes: List[List[int]] = []

        for h, (q, r) in enumerate(coords):
            for d in range(6):
                key = canonical_edge_key(q, r, d)
                e = edge_index.get(key)
                if e is None:
                    e = edge_index[key] = len(edge_hexes)
                    edge_hexes.append([h, NO_EDGE])
                elif edge_hexes[e][0] != h:
                    edge_hexes[e][1] = h
                hex_edges[h, d] = e

        def exists(q: int, r: int) -> bool:
            return (q, r) in hex_index

        vertex_index: Dict[Tuple[int, ...], int] = {}
        vertex_edges: List[List[int]] = []
        edge_vertices = np.full((len(edge_hexes), 2), NO_EDGE, dtype=np.int32)

        for h, (q, r) in enumerate(coords):
            for corner in range(6):
                e1, e2 = corner_edges(corner)
                ids = [int(hex_edges[h, e1]), int(hex_edges[h, e2])]
                third = third_edge_at_vertex(q, r, corner, exists)
                if third is not None:
                    ids.append(edge_index[canonical_edge_key(*third)])
                vkey = tuple(sorted(ids))
                if vkey in vertex_index:
                    continue

                v = vertex_index[vkey] = len(vertex_edges)
                vertex_edges.append(ids + [NO_EDGE] * (3 - len(ids)))
                for e in ids:
                    slot = 0 if edge_vertices[e, 0] == NO_EDGE else 1
                    edge_vertices[e, slot] = v

        self.radius = radius
        self.coords = coords
        self.hex_index = hex_index
        self.edge_keys = np.array(sorted(edge_index, key=edge_index.get), dtype=np.int64)
        self.hex_edges = hex_edges
        self.edge_hexes = np.array(edge_hexes, dtype=np.int32).reshape(-1, 2)
        self.vertex_edges = np.array(vertex_edges, dtype=np.int32).reshape(-1, 3)
        self.edge_vertices = edge_vertices
        self.state = np.zeros(len(edge_hexes), dtype=np.int8)
        self.targets = np.full(len(coords), HIDDEN, dtype=np.int8)

        logger.debug("Built topology radius=%d hexes=%d edges=%d vertices=%d",
                     radius, self.hex_total, self.edge_total, self.vertex_total)

    def reset(self, puzzle: Puzzle) -> 'BatchSolver':
        """Load a puzzle's visible clues and clear all edge states."""
        if puzzle.radius != self.radius:
            self._build_topology(puzzle.radius)

        self.state.fill(UNKNOWN)
        self.targets.fill(HIDDEN)
        for coord, cell in puzzle.cells.items():
            if cell.show_clue and cell.clue_count is not None:
                self.targets[self.hex_index[coord]] = cell.clue_count

        self.contradictions = 0
        self.stuck = False
        self.iterations = 0
        return self

    # =============================================================================
    # RULES
    # =============================================================================

    def _set(self, edge: int, value: int, queue: Optional[deque], queued: Optional[np.ndarray]) -> bool:
        """Settle an UNKNOWN edge; conflicting writes are counted and dropped."""
        current = self.state[edge]
        if current != UNKNOWN:
            if current != value:
                self.contradictions += 1
            return False

        self.state[edge] = value
        if queue is not None:
            hex_total = self.hex_total
            for h in self.edge_hexes[edge]:
                if h >= 0 and self.targets[h] >= 0 and not queued[h]:
                    queued[h] = True
                    queue.append(int(h))
            for v in self.edge_vertices[edge]:
                item = hex_total + v
                if v >= 0 and not queued[item]:
                    queued[item] = True
                    queue.append(int(item))
        return True

    def _vertex_rule(self, v: int, queue=None, queued=None) -> bool:
        active = 0
        unknown: List[int] = []
        for e in self.vertex_edges[v]:
            if e < 0:
                continue
            s = self.state[e]
            if s == ACTIVE:
                active += 1
            elif s == UNKNOWN:
                unknown.append(int(e))

        # Branch or dead end
        if active > 2 or (active == 1 and not unknown):
            self.contradictions += 1
            return False
        if not unknown:
            return False

        changed = False
        if active == 2:
            for e in unknown:
                changed |= self._set(e, OFF, queue, queued)
        elif len(unknown) == 1:
            changed = self._set(unknown[0], ACTIVE if active == 1 else OFF, queue, queued)
        return changed

    def _hex_rule(self, h: int, queue=None, queued=None) -> bool:
        target = self.targets[h]
        if target < 0:
            return False

        active = 0
        unknown: List[int] = []
        for e in self.hex_edges[h]:
            s = self.state[e]
            if s == ACTIVE:
                active += 1
            elif s == UNKNOWN:
                unknown.append(int(e))

        if active > target or active + len(unknown) < target:
            self.contradictions += 1
            return False
        if not unknown:
            return False

        changed = False
        if active == target:
            for e in unknown:
                changed |= self._set(e, OFF, queue, queued)
        elif active + len(unknown) == target:
            for e in unknown:
                changed |= self._set(e, ACTIVE, queue, queued)
        return changed

    # =============================================================================
    # SOLVING
    # =============================================================================

    def solve(self) -> bool:
        """
        Propagate with a work queue until nothing is left to wake.

        Every hex with a visible clue and every vertex starts queued; each
        settled edge re-queues its hexes and its two vertices.

        Returns:
            True iff no edge is left UNKNOWN and no write conflicted
        """
        hex_total = self.hex_total
        queued = np.zeros(hex_total + self.vertex_total, dtype=bool)
        queue: deque = deque()

        for h in range(hex_total):
            if self.targets[h] >= 0:
                queued[h] = True
                queue.append(h)
        for v in range(self.vertex_total):
            queued[hex_total + v] = True
            queue.append(hex_total + v)

        cap = self.iteration_factor * max(1, len(queued))
        while queue:
            self.iterations += 1
            if self.iterations > cap:
                self.stuck = True
                logger.warning("Solver hit iteration cap (%d) at radius %s", cap, self.radius)
                return False

            item = queue.popleft()
            queued[item] = False
            if item < hex_total:
                self._hex_rule(item, queue, queued)
            else:
                self._vertex_rule(item - hex_total, queue, queued)

        return self._finished()

    def solve_naive(self) -> bool:
        """
        Full-rescan fixed point; same outcome as solve(), kept as a reference.
        """
        max_passes = self.edge_total + 1
        for _ in range(max_passes):
            self.iterations += 1
            changed = False
            for h in range(self.hex_total):
                changed |= self._hex_rule(h)
            for v in range(self.vertex_total):
                changed |= self._vertex_rule(v)
            if not changed:
                return self._finished()

        self.stuck = True
        logger.warning("Naive solver exceeded %d passes", max_passes)
        return False

    def _finished(self) -> bool:
        if self.contradictions:
            logger.debug("Solve ended with %d contradictions", self.contradictions)
            return False
        return self.unknown_count() == 0

    # =============================================================================
    # RESULTS
    # =============================================================================

    def unknown_count(self) -> int:
        return int(np.count_nonzero(self.state == UNKNOWN))

    def active_edge_keys(self) -> Set[int]:
        """Canonical keys of the edges the solver set ACTIVE."""
        return set(self.edge_keys[self.state == ACTIVE].tolist())

    def matches_solution(self, puzzle: Puzzle) -> bool:
        return self.active_edge_keys() == puzzle.solution_edges()

    def unresolved_vertices(self) -> List[int]:
        """Vertices left with one ACTIVE edge and exactly one UNKNOWN edge."""
        pending = []
        for v in range(self.vertex_total):
            states = [self.state[e] for e in self.vertex_edges[v] if e >= 0]
            if states.count(ACTIVE) == 1 and states.count(UNKNOWN) == 1:
                pending.append(v)
        return pending
