"""
HexGrid - puzzle state manager for the hex loop game.

Owns the hex map, the edge state map, the solution loop and the move
history. Every player edit runs through set_edge_state, which keeps the
derived CALCULATED_OFF edges consistent via the ConstraintPropagator.

Edge state map:
- Keyed by canonical integer edge key; absent keys read as UNKNOWN
- Edges with no hex on either side do not exist; writes to them are ignored
- Boundary edges (one hex on the map) are real edges
"""
import random
from collections import deque
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set, Tuple, Union

from core.commands import Move, MoveHistory
from core.constraints import ConstraintPropagator
from core.edge_colors import EdgeColorizer
from core.map_codec import decode_map
from core.types import EdgeState, HexCell, HexRegion, MapFormatError, Puzzle, ValidationError
from utils.hex_axial import (
    canonical_edge_key,
    is_boundary,
    iter_hex_coords,
    mirror_edge,
    neighbor_coord,
)
from utils.logging_utils import get_logger

logger = get_logger("grid")

# Player tap cycle
_NEXT_STATE = {
    EdgeState.UNKNOWN: EdgeState.ACTIVE,
    EdgeState.CALCULATED_OFF: EdgeState.ACTIVE,
    EdgeState.ACTIVE: EdgeState.OFF,
    EdgeState.OFF: EdgeState.UNKNOWN,
}


class HexGrid:
    """
    Grid state manager for hex loop puzzles using axial coordinates.

    Responsibilities:
        - Store hexes (region, clue, clue visibility)
        - Store edge states and keep derived edges consistent
        - Record moves for undo/redo and session replay
        - Decide whether the current ACTIVE edges are the solution loop

    Attributes:
        radius: Grid radius (-1 before anything is loaded)
        hexes: Mapping of (q, r) to HexCell
        edge_states: Mapping of canonical edge key to non-UNKNOWN EdgeState
        solution_edges: Canonical keys of the target loop
        command_history: Move log
    """

    def __init__(self, radius: Optional[int] = None, rng: Optional[random.Random] = None):
        """
        Initialize a grid.

        Args:
            radius: If given, build an empty hexagon of this radius
            rng: Random source for decorative edge colours
        """
        self.radius: int = -1
        self.hexes: Dict[Tuple[int, int], HexCell] = {}
        self.edge_states: Dict[int, EdgeState] = {}
        self.solution_edges: Set[int] = set()
        self.command_history: MoveHistory = MoveHistory()

        self.propagator = ConstraintPropagator(self)
        self.colorizer = EdgeColorizer(self, rng)

        if radius is not None:
            if radius < 0:
                raise ValueError(f"Grid radius must not be negative: {radius}")
            self.load_puzzle(Puzzle.blank(radius))

    # =============================================================================
    # HEX QUERIES
    # =============================================================================

    def has_hex(self, q: int, r: int) -> bool:
        return (q, r) in self.hexes

    def get_hex(self, q: int, r: int) -> Optional[HexCell]:
        return self.hexes.get((q, r))

    def get_neighbor(self, q: int, r: int, direction: int) -> Optional[HexCell]:
        return self.hexes.get(neighbor_coord(q, r, direction))

    def region_at(self, q: int, r: int) -> HexRegion:
        """Region of a hex; off-map coordinates count as OUTSIDE."""
        cell = self.hexes.get((q, r))
        return cell.region if cell is not None else HexRegion.OUTSIDE

    def hex_coords(self) -> Iterator[Tuple[int, int]]:
        """Coordinates of every hex in canonical map order."""
        return iter_hex_coords(self.radius) if self.radius >= 0 else iter(())

    def edge_exists(self, q: int, r: int, direction: int) -> bool:
        """An edge exists when at least one of its two hexes is on the map."""
        nq, nr, _ = mirror_edge(q, r, direction)
        return self.has_hex(q, r) or self.has_hex(nq, nr)

    # =============================================================================
    # EDGE STATE
    # =============================================================================

    def get_edge_state(self, q: int, r: int, direction: int) -> EdgeState:
        return self.edge_states.get(canonical_edge_key(q, r, direction), EdgeState.UNKNOWN)

    def write_edge_state(self, q: int, r: int, direction: int, state: EdgeState) -> None:
        """
        Store an edge state (direct method, no history, no propagation).

        Used by the propagator; keeps edge colours in step with ACTIVE edges.
        """
        key = canonical_edge_key(q, r, direction)
        old = self.edge_states.get(key, EdgeState.UNKNOWN)
        if state == EdgeState.UNKNOWN:
            self.edge_states.pop(key, None)
        else:
            self.edge_states[key] = state

        if old != EdgeState.ACTIVE and state == EdgeState.ACTIVE:
            self.colorizer.on_activated(key)
        elif old == EdgeState.ACTIVE and state != EdgeState.ACTIVE:
            self.colorizer.on_deactivated(key)

    @staticmethod
    def _is_loosening(old: EdgeState, new: EdgeState) -> bool:
        """Whether leaving old for new can invalidate derived edges."""
        if old == new:
            return False
        if old == EdgeState.ACTIVE:
            return True
        return old.is_inactive and not new.is_inactive

    def set_edge_state(self, q: int, r: int, direction: int, new_state: EdgeState,
                       record_move: bool = True) -> bool:
        """
        Change an edge and propagate.

        Steps:
            1. Ignore unchanged player writes, clearing a derived edge
               included (replays re-apply)
            2. Log the move, dropping the redo tail
            3. On a loosening change, reset the connected CALCULATED_OFF
               network around the edge (each reset is logged as derived)
            4. Write the new state
            5. Re-run the vertex rule around the edge and every reset edge

        A primary write of CALCULATED_OFF is stored as UNKNOWN and left for
        step 5 to re-derive, so derived edges always have a justification.

        Args:
            q, r, direction: Edge as seen from hex (q, r)
            new_state: Target state
            record_move: False for undo/redo/replay

        Returns:
            True if the write was applied
        """
        if not self.edge_exists(q, r, direction):
            return False

        new_state = EdgeState(new_state)
        existing = self.get_edge_state(q, r, direction)
        target = EdgeState.UNKNOWN if new_state == EdgeState.CALCULATED_OFF else new_state

        if existing == target and record_move:
            return False
        # A derived edge is always justified, so clearing it would re-derive it
        if existing == EdgeState.CALCULATED_OFF and target == EdgeState.UNKNOWN and record_move:
            return False

        if record_move:
            self.command_history.record(Move(q, r, direction, existing, target))

        reset = []
        if self._is_loosening(existing, target):
            reset = self.propagator.retract_from(q, r, direction)
            if record_move:
                for edge in reset:
                    self.command_history.record(
                        Move(*edge, EdgeState.CALCULATED_OFF, EdgeState.UNKNOWN, derived=True)
                    )

        self.write_edge_state(q, r, direction, target)
        self.propagator.recheck([(q, r, direction)] + reset)
        return True

    def cycle_edge(self, q: int, r: int, direction: int) -> bool:
        """Advance an edge through UNKNOWN → ACTIVE → OFF → UNKNOWN."""
        current = self.get_edge_state(q, r, direction)
        return self.set_edge_state(q, r, direction, _NEXT_STATE[current])

    def active_edges(self) -> Set[int]:
        return {key for key, state in self.edge_states.items() if state == EdgeState.ACTIVE}

    def is_solved(self) -> bool:
        """True iff the ACTIVE edges are exactly the solution loop."""
        if not self.solution_edges:
            return False
        return self.active_edges() == self.solution_edges

    # =============================================================================
    # UNDO/REDO OPERATIONS
    # =============================================================================

    @property
    def history(self) -> List[Move]:
        return self.command_history.history

    @property
    def history_index(self) -> int:
        return self.command_history.current_index

    def undo(self) -> bool:
        """Undo the last player move."""
        return self.command_history.undo(self)

    def redo(self) -> bool:
        """Redo the next player move."""
        return self.command_history.redo(self)

    def can_undo(self) -> bool:
        return self.command_history.can_undo()

    def can_redo(self) -> bool:
        return self.command_history.can_redo()

    def get_history_info(self) -> Dict:
        return self.command_history.get_history_info()

    def load_history(self, history: Iterable[Union[Move, Dict[str, Any]]], index: int) -> None:
        """
        Rebuild a session by replaying history[0..index] on a clean board.

        Moves may be given as Move objects or their persisted dict form. An
        index pointing at a player move also applies its derived entries.
        """
        moves = [m if isinstance(m, Move) else Move.from_dict(m) for m in history]
        index = max(-1, min(index, len(moves) - 1))

        self._clear_edges()
        self.command_history.load(moves, index)
        for i in range(self.command_history.current_index + 1):
            moves[i].execute(self)

    def reset_to_start(self) -> None:
        """Clear every edge and the history, keeping the loaded puzzle."""
        self._clear_edges()
        self.command_history.clear_history()

    def _clear_edges(self) -> None:
        self.edge_states.clear()
        self.colorizer.clear()

    # =============================================================================
    # LOADING
    # =============================================================================

    def load_puzzle(self, puzzle: Puzzle) -> None:
        """Adopt a puzzle's hexes, clearing edges and history."""
        self.radius = puzzle.radius
        self.hexes = {coord: HexCell(c.q, c.r, c.region, c.clue_count, c.show_clue)
                      for coord, c in puzzle.cells.items()}
        self.reset_to_start()
        self.compute_solution()

    def load_binary_map(self, data: bytes) -> bool:
        """
        Load a binary map buffer.

        Returns:
            False (grid untouched) if the buffer is malformed
        """
        try:
            puzzle = decode_map(data)
        except MapFormatError as exc:
            logger.warning("Rejected map buffer: %s", exc)
            return False

        self.load_puzzle(puzzle)
        logger.debug("Loaded map radius=%d hexes=%d loop=%d",
                     self.radius, len(self.hexes), len(self.solution_edges))
        return True

    def load_map_file(self, path: Union[str, Path]) -> bool:
        """Load a map from disk; a missing or unreadable file gives False."""
        try:
            data = Path(path).read_bytes()
        except OSError as exc:
            logger.warning("Could not read map %s: %s", path, exc)
            return False
        return self.load_binary_map(data)

    def compute_solution(self) -> None:
        """Collect the INSIDE/OUTSIDE boundary; off-map counts as OUTSIDE."""
        self.solution_edges = set()
        for (q, r), cell in self.hexes.items():
            if cell.region == HexRegion.UNKNOWN:
                continue
            for d in range(6):
                other = self.region_at(*neighbor_coord(q, r, d))
                if other != HexRegion.UNKNOWN and other != cell.region:
                    self.solution_edges.add(canonical_edge_key(q, r, d))

    def to_puzzle(self) -> Puzzle:
        puzzle = Puzzle(self.radius)
        for coord, c in self.hexes.items():
            puzzle.cells[coord] = HexCell(c.q, c.r, c.region, c.clue_count, c.show_clue)
        return puzzle

    # =============================================================================
    # SESSION STATE
    # =============================================================================

    @property
    def edge_colors(self) -> List[List[int]]:
        return self.colorizer.as_pairs()

    def export_session(self) -> Dict[str, Any]:
        """Serializable session primitives; storage is the caller's business."""
        return {
            "history": [move.to_dict() for move in self.history],
            "historyIndex": self.history_index,
            "edgeColors": self.edge_colors,
        }

    def import_session(self, state: Dict[str, Any]) -> None:
        """Replay a session produced by export_session."""
        self.load_history(state.get("history", []), state.get("historyIndex", -1))
        colors = state.get("edgeColors")
        if colors:
            self.colorizer.load(colors)

    # =============================================================================
    # VALIDATION
    # =============================================================================

    def _flood(self, start: Tuple[int, int], region: HexRegion) -> Set[Tuple[int, int]]:
        seen = {start}
        queue = deque([start])
        while queue:
            q, r = queue.popleft()
            for d in range(6):
                n = neighbor_coord(q, r, d)
                cell = self.hexes.get(n)
                if cell is not None and cell.region == region and n not in seen:
                    seen.add(n)
                    queue.append(n)
        return seen

    def validate_connectivity(self) -> Tuple[bool, str]:
        """
        Check the regions describe exactly one loop.

        INSIDE must be one component; OUTSIDE must be one component that
        reaches the map boundary (no lakes).
        """
        inside = [c for c, cell in self.hexes.items() if cell.region == HexRegion.INSIDE]
        outside = [c for c, cell in self.hexes.items() if cell.region == HexRegion.OUTSIDE]

        if not inside:
            return False, "No INSIDE hexes: the puzzle has no loop"
        if len(self._flood(inside[0], HexRegion.INSIDE)) != len(inside):
            return False, "INSIDE region is disconnected"

        if outside:
            border = [c for c in outside if is_boundary(c[0], c[1], self.radius)]
            if not border:
                return False, "OUTSIDE region does not reach the map boundary"
            if len(self._flood(border[0], HexRegion.OUTSIDE)) != len(outside):
                return False, "OUTSIDE region is disconnected (lake)"

        return True, ""

    def validate_puzzle(self) -> List[ValidationError]:
        """Check regions and clues of the loaded puzzle."""
        errors = []

        for (q, r), cell in self.hexes.items():
            if cell.region == HexRegion.UNKNOWN:
                errors.append(ValidationError("warning", "Hex has no region", location=(q, r)))
                continue
            if cell.clue_count is None:
                if cell.show_clue:
                    errors.append(ValidationError("error", "Visible clue has no count", location=(q, r)))
                continue
            if not 0 <= cell.clue_count <= 6:
                errors.append(ValidationError("error", f"Clue {cell.clue_count} out of range", location=(q, r)))
                continue

            expected = sum(
                1 for d in range(6)
                if self.region_at(*neighbor_coord(q, r, d)) != cell.region
            )
            if cell.clue_count != expected:
                errors.append(ValidationError(
                    "error",
                    f"Clue {cell.clue_count} disagrees with region boundary ({expected})",
                    location=(q, r)
                ))

        ok, message = self.validate_connectivity()
        if not ok:
            errors.append(ValidationError("error", message))

        return errors

    def get_statistics(self) -> Dict:
        """Counts describing the current board."""
        stats = {
            "radius": self.radius,
            "hexes": len(self.hexes),
            "inside_hexes": sum(1 for c in self.hexes.values() if c.region == HexRegion.INSIDE),
            "visible_clues": sum(1 for c in self.hexes.values() if c.show_clue),
            "loop_length": len(self.solution_edges),
            "active_edges": 0,
            "off_edges": 0,
            "calculated_off_edges": 0,
        }

        for state in self.edge_states.values():
            if state == EdgeState.ACTIVE:
                stats["active_edges"] += 1
            elif state == EdgeState.OFF:
                stats["off_edges"] += 1
            elif state == EdgeState.CALCULATED_OFF:
                stats["calculated_off_edges"] += 1

        stats["is_solved"] = self.is_solved()

        history_info = self.get_history_info()
        stats.update({
            "can_undo": history_info["can_undo"],
            "can_redo": history_info["can_redo"],
            "total_moves": history_info["total_moves"]
        })

        return stats
