"""
Random region growth for new maps.

Grows a single INSIDE region outward from the center hex. Candidates are
OUTSIDE hexes touching the region; each step takes one of the candidates
with the fewest INSIDE neighbors, which favours thin shapes with a long
loop over compact blobs. A candidate is only converted if the OUTSIDE
region stays one piece reaching the map boundary, so the loop never gains a
second component around a trapped lake.
"""
import random
from collections import deque
from typing import List, Optional, Set, Tuple

from core.config import REGION_FILL_RATIO
from core.types import HexRegion, Puzzle
from utils.hex_axial import is_boundary, neighbor_coord
from utils.logging_utils import get_logger

logger = get_logger("generator.region")

Coord = Tuple[int, int]


class RegionGenerator:
    """
    Builds one puzzle region and its clue counts.

    Args:
        radius: Grid radius
        rng: Random source; pass a seeded one for reproducible maps
        fill_ratio: Share of hexes the growth phase aims for
    """

    def __init__(self, radius: int, rng: Optional[random.Random] = None,
                 fill_ratio: float = REGION_FILL_RATIO):
        if radius < 1:
            raise ValueError(f"Region growth needs a radius of at least 1: {radius}")
        self.radius = radius
        self.rng = rng or random.Random()
        self.fill_ratio = fill_ratio
        self.puzzle = Puzzle.blank(radius, HexRegion.OUTSIDE)

    # =============================================================================
    # QUERIES
    # =============================================================================

    def _neighbors(self, coord: Coord) -> List[Coord]:
        q, r = coord
        return [n for n in (neighbor_coord(q, r, d) for d in range(6)) if n in self.puzzle.cells]

    def _is_inside(self, coord: Coord) -> bool:
        return self.puzzle.cells[coord].region == HexRegion.INSIDE

    def inside_neighbor_count(self, coord: Coord) -> int:
        return sum(1 for n in self._neighbors(coord) if self._is_inside(n))

    def inside_size(self) -> int:
        return sum(1 for cell in self.puzzle.cells.values() if cell.region == HexRegion.INSIDE)

    def can_convert(self, coord: Coord) -> bool:
        """
        Whether turning an OUTSIDE hex INSIDE keeps OUTSIDE connected.

        Flood fills the remaining OUTSIDE hexes from one on the map boundary;
        conversion is allowed only if that fill reaches all of them.
        """
        cells = self.puzzle.cells
        outside = [c for c, cell in cells.items()
                   if cell.region == HexRegion.OUTSIDE and c != coord]
        if not outside:
            return True

        start = next((c for c in outside if is_boundary(c[0], c[1], self.radius)), None)
        if start is None:
            return False

        seen = {start}
        queue = deque([start])
        while queue:
            current = queue.popleft()
            for n in self._neighbors(current):
                if n != coord and n not in seen and cells[n].region == HexRegion.OUTSIDE:
                    seen.add(n)
                    queue.append(n)

        return len(seen) == len(outside)

    def _convert(self, coord: Coord) -> None:
        self.puzzle.cells[coord].region = HexRegion.INSIDE

    # =============================================================================
    # GROWTH
    # =============================================================================

    def grow(self) -> int:
        """Grow INSIDE from the center up to the target size; returns the final size."""
        target = int(len(self.puzzle.cells) * self.fill_ratio)
        center = (0, 0)
        self._convert(center)

        candidates: List[Coord] = list(self._neighbors(center))
        while self.inside_size() < target and candidates:
            scored = [(self.inside_neighbor_count(c), c) for c in candidates]
            best = min(score for score, _ in scored)
            choice = self.rng.choice([c for score, c in scored if score == best])
            candidates.remove(choice)

            if self._is_inside(choice) or not self.can_convert(choice):
                continue

            self._convert(choice)
            for n in self._neighbors(choice):
                if not self._is_inside(n) and n not in candidates:
                    candidates.append(n)

        return self.inside_size()

    def extend_spines(self) -> int:
        """
        Convert OUTSIDE hexes with exactly one INSIDE neighbor until none qualify.

        Returns:
            Number of hexes converted
        """
        converted = 0
        rejected: Set[Coord] = set()
        while True:
            tips = [c for c, cell in self.puzzle.cells.items()
                    if cell.region == HexRegion.OUTSIDE and c not in rejected
                    and self.inside_neighbor_count(c) == 1]
            if not tips:
                break

            tip = self.rng.choice(tips)
            if self.can_convert(tip):
                self._convert(tip)
                converted += 1
                rejected.clear()
            else:
                rejected.add(tip)

        return converted

    def assign_clues(self) -> None:
        """Set every hex's clue to its boundary edge count and show it."""
        for (q, r), cell in self.puzzle.cells.items():
            cell.clue_count = self.puzzle.boundary_count(q, r)
            cell.show_clue = True

    def generate(self) -> Puzzle:
        """Run growth, the spine pass and clue assignment; returns the puzzle."""
        grown = self.grow()
        spines = self.extend_spines()
        self.assign_clues()

        circumference = len(self.puzzle.solution_edges())
        logger.debug("Region radius=%d hexes=%d inside=%d (spines +%d) loop=%d",
                     self.radius, len(self.puzzle.cells), grown + spines, spines, circumference)
        return self.puzzle
