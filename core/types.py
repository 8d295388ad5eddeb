"""
Shared types for the hex loop puzzle.
Separated to avoid circular imports between modules.
"""
from dataclasses import dataclass, field, replace
from enum import Enum, IntEnum
from typing import Dict, Iterator, Optional, Set, Tuple

from utils.hex_axial import canonical_edge_key, iter_hex_coords, neighbor_coord


class HexRegion(Enum):
    """Which side of the solution loop a hex lies on."""
    UNKNOWN = 0
    INSIDE = 1
    OUTSIDE = 2


class EdgeState(IntEnum):
    """Possible states for edges."""
    UNKNOWN = 0          # Undetermined
    ACTIVE = 1           # Part of the loop
    OFF = 2              # Player-asserted off
    CALCULATED_OFF = 3   # Derived off, retractable

    @property
    def is_firm(self) -> bool:
        return self in (EdgeState.ACTIVE, EdgeState.OFF)

    @property
    def is_inactive(self) -> bool:
        return self in (EdgeState.OFF, EdgeState.CALCULATED_OFF)


class EdgeDirection(IntEnum):
    SE = 0  # dq=1, dr=0
    S = 1   # dq=0, dr=1
    SW = 2  # dq=-1, dr=1
    NW = 3  # dq=-1, dr=0
    N = 4   # dq=0, dr=-1
    NE = 5  # dq=1, dr=-1


class MapFormatError(ValueError):
    """Raised when a binary map buffer cannot be decoded."""


class ValidationError:
    """Represents a validation error with severity and description."""
    def __init__(self, severity: str, message: str, location: Optional[Tuple[int, int]] = None):
        self.severity = severity  # "error", "warning", "info"
        self.message = message
        self.location = location

    def __str__(self):
        loc_str = f" at {self.location}" if self.location else ""
        return f"{self.severity.upper()}: {self.message}{loc_str}"


@dataclass
class HexCell:
    """One hex of a puzzle: its region and its clue."""
    q: int
    r: int
    region: HexRegion = HexRegion.UNKNOWN
    clue_count: Optional[int] = None
    show_clue: bool = False

    @property
    def coord(self) -> Tuple[int, int]:
        return self.q, self.r


@dataclass
class Puzzle:
    """
    A hexagon-shaped puzzle of the given radius.

    Attributes:
        radius: Grid radius (0 is a single hex)
        cells: Mapping of (q, r) to HexCell, one per hex of the grid
    """
    radius: int
    cells: Dict[Tuple[int, int], HexCell] = field(default_factory=dict)

    @classmethod
    def blank(cls, radius: int, region: HexRegion = HexRegion.UNKNOWN) -> 'Puzzle':
        if radius < 0:
            raise ValueError(f"Radius must not be negative: {radius}")
        cells = {(q, r): HexCell(q, r, region) for q, r in iter_hex_coords(radius)}
        return cls(radius, cells)

    def coords(self) -> Iterator[Tuple[int, int]]:
        """Coordinates in canonical map order."""
        return iter_hex_coords(self.radius)

    def has_hex(self, q: int, r: int) -> bool:
        return (q, r) in self.cells

    def region_at(self, q: int, r: int) -> HexRegion:
        """Region of a hex; off-map coordinates count as OUTSIDE."""
        cell = self.cells.get((q, r))
        return cell.region if cell is not None else HexRegion.OUTSIDE

    def boundary_count(self, q: int, r: int) -> int:
        """Number of the hex's edges lying on the INSIDE/OUTSIDE boundary."""
        mine = self.region_at(q, r)
        return sum(
            1 for d in range(6)
            if self.region_at(*neighbor_coord(q, r, d)) != mine
        )

    def solution_edges(self) -> Set[int]:
        """Canonical keys of every edge on the target loop."""
        edges = set()
        for (q, r), cell in self.cells.items():
            for d in range(6):
                if self.region_at(*neighbor_coord(q, r, d)) != cell.region:
                    edges.add(canonical_edge_key(q, r, d))
        return edges

    def visible_clues(self) -> Set[Tuple[int, int]]:
        return {c for c, cell in self.cells.items() if cell.show_clue}

    def copy(self) -> 'Puzzle':
        return Puzzle(self.radius, {c: replace(cell) for c, cell in self.cells.items()})
