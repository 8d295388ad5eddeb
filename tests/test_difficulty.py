"""
Clue reduction:
- Reduced puzzles stay solvable
- Difficulty floors keep a minimum share of clues
- Harder clue sets are nested inside easier ones
"""

import math
import random

import pytest

from core.solver import BatchSolver
from generator.difficulty import DifficultyReducer


def test_reduced_puzzle_still_solves(solvable_puzzle):
    reducer = DifficultyReducer()
    reducer.reduce(solvable_puzzle, "hard", random.Random(1))

    assert len(solvable_puzzle.visible_clues()) < len(solvable_puzzle.cells)
    solver = BatchSolver().reset(solvable_puzzle)
    assert solver.solve()
    assert solver.matches_solution(solvable_puzzle)


@pytest.mark.parametrize("difficulty,floor", [("easy", 0.7), ("medium", 0.5)])
def test_floor_is_respected(solvable_puzzle, difficulty, floor):
    total = len(solvable_puzzle.cells)
    DifficultyReducer().reduce(solvable_puzzle, difficulty, random.Random(4))
    assert len(solvable_puzzle.visible_clues()) >= math.ceil(floor * total)


def test_difficulties_are_nested(solvable_puzzle):
    reduced = DifficultyReducer().reduce_all(solvable_puzzle, ["easy", "medium", "hard"], random.Random(8))

    easy = reduced["easy"].visible_clues()
    medium = reduced["medium"].visible_clues()
    hard = reduced["hard"].visible_clues()
    assert hard <= medium <= easy
    # Originals are left alone
    assert len(solvable_puzzle.visible_clues()) == len(solvable_puzzle.cells)


def test_same_seed_nests_across_calls(solvable_puzzle):
    medium = solvable_puzzle.copy()
    hard = solvable_puzzle.copy()
    DifficultyReducer().reduce(medium, "medium", random.Random(3))
    DifficultyReducer().reduce(hard, "hard", random.Random(3))
    assert hard.visible_clues() <= medium.visible_clues()


def test_hidden_clues_keep_counts(solvable_puzzle):
    before = {c: cell.clue_count for c, cell in solvable_puzzle.cells.items()}
    DifficultyReducer().reduce(solvable_puzzle, "hard", random.Random(5))
    assert {c: cell.clue_count for c, cell in solvable_puzzle.cells.items()} == before


def test_unknown_difficulty():
    with pytest.raises(ValueError):
        DifficultyReducer.floor_for("nightmare")


def test_trials_are_counted(solvable_puzzle):
    reducer = DifficultyReducer()
    reducer.reduce(solvable_puzzle, "hard", random.Random(6))
    assert reducer.trials == len(solvable_puzzle.cells)
