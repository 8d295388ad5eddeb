import os
import random
import sys
import pytest

# Add project root to sys.path (so tests can import core.*)
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.append(PROJECT_ROOT)

from core.hex_grid import HexGrid
from core.solver import BatchSolver
from core.types import EdgeState, HexRegion, Puzzle
from generator.region import RegionGenerator
from utils.hex_axial import canonical_edge_key


def make_puzzle(radius, inside, shown=True):
    """Puzzle with the given INSIDE hexes and every clue filled in."""
    puzzle = Puzzle.blank(radius, HexRegion.OUTSIDE)
    for coord in inside:
        puzzle.cells[coord].region = HexRegion.INSIDE
    for (q, r), cell in puzzle.cells.items():
        cell.clue_count = puzzle.boundary_count(q, r)
        cell.show_clue = shown
    return puzzle


def find_solvable(radius, seeds=range(300)):
    """First generated region whose full clue set the batch solver settles."""
    solver = BatchSolver()
    for seed in seeds:
        puzzle = RegionGenerator(radius, random.Random(seed)).generate()
        if solver.reset(puzzle).solve():
            return seed, puzzle
    pytest.fail(f"No solvable region of radius {radius} in {len(seeds)} seeds")


def same_edge(a, b):
    return canonical_edge_key(*a) == canonical_edge_key(*b)


@pytest.fixture
def grid():
    """Radius-1 grid: the center hex and its six neighbors."""
    return HexGrid(1, rng=random.Random(0))


@pytest.fixture
def big_grid():
    return HexGrid(3, rng=random.Random(0))


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def center_puzzle():
    """Radius-1 puzzle whose loop is the center hex outline."""
    return make_puzzle(1, [(0, 0)])


@pytest.fixture(scope="session")
def _solvable():
    return find_solvable(4)[1]


@pytest.fixture
def solvable_puzzle(_solvable):
    """A fully clued generated puzzle propagation can solve (fresh copy)."""
    return _solvable.copy()


@pytest.fixture
def edge_states():
    """Returns a function snapshotting a grid's edge map."""
    def _snapshot(g):
        return {key: EdgeState(state) for key, state in g.edge_states.items()}
    return _snapshot
