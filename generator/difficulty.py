"""
Clue reduction: hide as many clues as propagation can spare.

Hexes are tried in a shuffled order. Each clue is hidden tentatively and the
whole puzzle re-solved from scratch; if the batch solver can no longer
settle every edge the clue is shown again. A per-difficulty floor keeps a
minimum share of hexes clued (hard has none and always tries every hex).

Running several difficulties over the same order nests the results: the
hard clue set is inside the medium one, which is inside the easy one.
"""
import math
import random
from typing import Dict, Iterable, List, Optional, Tuple

from core.config import DIFFICULTY_FLOORS
from core.solver import BatchSolver
from core.types import Puzzle
from utils.logging_utils import get_logger

logger = get_logger("generator.difficulty")

Coord = Tuple[int, int]


class DifficultyReducer:
    """
    Hides clues while the puzzle stays solvable by propagation.

    Args:
        solver: Solver reused across every trial; one is created if omitted
    """

    def __init__(self, solver: Optional[BatchSolver] = None):
        self.solver = solver or BatchSolver()
        self.trials = 0

    @staticmethod
    def floor_for(difficulty: str) -> float:
        try:
            return DIFFICULTY_FLOORS[difficulty]
        except KeyError:
            raise ValueError(f"Unknown difficulty: {difficulty!r}") from None

    def min_visible(self, puzzle: Puzzle, difficulty: str) -> int:
        """Smallest number of clues the difficulty allows."""
        return math.ceil(self.floor_for(difficulty) * len(puzzle.cells))

    def is_solvable(self, puzzle: Puzzle) -> bool:
        self.trials += 1
        return self.solver.reset(puzzle).solve()

    def shuffled_order(self, puzzle: Puzzle, rng: random.Random) -> List[Coord]:
        order = list(puzzle.coords())
        rng.shuffle(order)
        return order

    def reduce_in_order(self, puzzle: Puzzle, difficulty: str, order: Iterable[Coord]) -> int:
        """
        Hide clues following a fixed order.

        Returns:
            Number of clues hidden
        """
        floor = self.min_visible(puzzle, difficulty)
        always_try = self.floor_for(difficulty) == 0
        visible = len(puzzle.visible_clues())
        hidden = 0

        for coord in order:
            if not always_try and visible <= floor:
                break
            cell = puzzle.cells[coord]
            if not cell.show_clue:
                continue

            cell.show_clue = False
            if self.is_solvable(puzzle):
                visible -= 1
                hidden += 1
            else:
                cell.show_clue = True

        return hidden

    def reduce(self, puzzle: Puzzle, difficulty: str, rng: Optional[random.Random] = None) -> Puzzle:
        """
        Hide clues in a random order for one difficulty (in place).

        Raises:
            ValueError: Unknown difficulty
        """
        rng = rng or random.Random()
        total = len(puzzle.cells)

        hidden = self.reduce_in_order(puzzle, difficulty, self.shuffled_order(puzzle, rng))
        logger.debug("Reduced %s puzzle radius=%d: hid %d of %d clues",
                     difficulty, puzzle.radius, hidden, total)
        return puzzle

    def reduce_all(self, puzzle: Puzzle, difficulties: Iterable[str],
                   rng: Optional[random.Random] = None) -> Dict[str, Puzzle]:
        """Reduce copies of one puzzle for several difficulties over a shared order."""
        rng = rng or random.Random()
        order = self.shuffled_order(puzzle, rng)
        results = {}
        for difficulty in difficulties:
            reduced = puzzle.copy()
            self.reduce_in_order(reduced, difficulty, order)
            results[difficulty] = reduced
        return results
