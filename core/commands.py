"""
Move log for undo/redo of edge edits.

Every edge write the player makes is a Move. Retractions of derived edges
that a loosening move triggers are logged too, flagged as derived, so a
persisted session records exactly what changed; undo/redo treat a player
move and the derived entries that follow it as one step.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from core.types import EdgeDirection, EdgeState


class Command(ABC):
    """Abstract base class for all reversible commands."""

    @abstractmethod
    def execute(self, grid) -> bool:
        """Execute the command. Returns True if successful."""
        pass

    @abstractmethod
    def undo(self, grid) -> bool:
        """Undo the command. Returns True if successful."""
        pass

    @abstractmethod
    def get_description(self) -> str:
        """Get human-readable description of the command."""
        pass


class Move(Command):
    """A single edge state change: (q, r, edge_dir) from old_state to new_state."""

    def __init__(self, q: int, r: int, edge_dir: int,
                 old_state: EdgeState, new_state: EdgeState, derived: bool = False):
        self.q = q
        self.r = r
        self.edge_dir = int(edge_dir)
        self.old_state = EdgeState(old_state)
        self.new_state = EdgeState(new_state)
        self.derived = derived

    def execute(self, grid) -> bool:
        """Re-apply the move without logging it again."""
        grid.set_edge_state(self.q, self.r, self.edge_dir, self.new_state, record_move=False)
        return True

    def undo(self, grid) -> bool:
        """Restore the previous state without logging."""
        grid.set_edge_state(self.q, self.r, self.edge_dir, self.old_state, record_move=False)
        return True

    def get_description(self) -> str:
        direction = EdgeDirection(self.edge_dir).name
        prefix = "Retract" if self.derived else "Set"
        return f"{prefix} edge ({self.q}, {self.r}, {direction}) {self.old_state.name} → {self.new_state.name}"

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form used by persisted sessions."""
        data = {
            "q": self.q,
            "r": self.r,
            "edgeIndex": self.edge_dir,
            "oldState": int(self.old_state),
            "newState": int(self.new_state),
        }
        if self.derived:
            data["derived"] = True
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Move':
        return cls(
            int(data["q"]),
            int(data["r"]),
            int(data["edgeIndex"]),
            EdgeState(data["oldState"]),
            EdgeState(data["newState"]),
            bool(data.get("derived", False)),
        )

    def __eq__(self, other):
        if not isinstance(other, Move):
            return NotImplemented
        return (self.q, self.r, self.edge_dir, self.old_state, self.new_state, self.derived) == \
            (other.q, other.r, other.edge_dir, other.old_state, other.new_state, other.derived)

    def __repr__(self):
        return f"Move({self.q}, {self.r}, {self.edge_dir}, {self.old_state.name}, {self.new_state.name}" \
            f"{', derived' if self.derived else ''})"


class MoveHistory:
    """
    Manages the move log for undo/redo operations.

    history[0..current_index] is the applied prefix; anything after it is
    the redo tail.
    """

    def __init__(self):
        self.history: List[Move] = []
        self.current_index = -1  # Points to last applied move

    def record(self, move: Move) -> None:
        """Append a new move, dropping any redo tail first."""
        if self.current_index < len(self.history) - 1:
            self.history = self.history[:self.current_index + 1]

        self.history.append(move)
        self.current_index += 1

    def can_undo(self) -> bool:
        """Check if undo is possible."""
        return self.current_index >= 0

    def can_redo(self) -> bool:
        """Check if redo is possible."""
        return self.current_index < len(self.history) - 1

    def _step_start(self, index: int) -> int:
        """Index of the player move owning the entry at index."""
        while index > 0 and self.history[index].derived:
            index -= 1
        return index

    def _step_end(self, index: int) -> int:
        """Last derived entry following the move at index."""
        while index + 1 < len(self.history) and self.history[index + 1].derived:
            index += 1
        return index

    def undo(self, grid) -> bool:
        """Undo the last player step."""
        if not self.can_undo():
            return False

        start = self._step_start(self.current_index)
        command = self.history[start]
        success = command.undo(grid)

        if success:
            self.current_index = start - 1

        return success

    def redo(self, grid) -> bool:
        """Redo the next player step."""
        if not self.can_redo():
            return False

        start = self.current_index + 1
        command = self.history[start]
        success = command.execute(grid)

        if success:
            self.current_index = self._step_end(start)

        return success

    def get_undo_description(self) -> Optional[str]:
        """Get description of the move that would be undone."""
        if not self.can_undo():
            return None
        return self.history[self._step_start(self.current_index)].get_description()

    def get_redo_description(self) -> Optional[str]:
        """Get description of the move that would be redone."""
        if not self.can_redo():
            return None
        return self.history[self.current_index + 1].get_description()

    def load(self, history: List[Move], index: int) -> None:
        """Adopt a history; an index inside a step is moved to the step's end."""
        self.history = list(history)
        self.current_index = self._step_end(index) if index >= 0 else -1

    def clear_history(self):
        """Clear all move history."""
        self.history.clear()
        self.current_index = -1

    def get_history_info(self) -> Dict[str, Any]:
        """Get information about current history state."""
        return {
            "total_moves": len(self.history),
            "current_index": self.current_index,
            "can_undo": self.can_undo(),
            "can_redo": self.can_redo(),
            "undo_description": self.get_undo_description(),
            "redo_description": self.get_redo_description()
        }
