"""
Region growth:
- One INSIDE region, OUTSIDE stays connected to the map boundary
- Spine pass leaves no convertible single-contact hex
- Clues equal the boundary edge count
"""

import random
from collections import deque

import pytest

from core.types import HexRegion
from generator.region import RegionGenerator
from utils.hex_axial import is_boundary, neighbor_coord


def _component(puzzle, start, region):
    seen = {start}
    queue = deque([start])
    while queue:
        q, r = queue.popleft()
        for d in range(6):
            n = neighbor_coord(q, r, d)
            if n in puzzle.cells and n not in seen and puzzle.cells[n].region == region:
                seen.add(n)
                queue.append(n)
    return seen


def _coords(puzzle, region):
    return {c for c, cell in puzzle.cells.items() if cell.region == region}


@pytest.mark.parametrize("seed", range(5))
def test_regions_are_single_components(seed):
    puzzle = RegionGenerator(4, random.Random(seed)).generate()
    inside = _coords(puzzle, HexRegion.INSIDE)
    outside = _coords(puzzle, HexRegion.OUTSIDE)

    assert (0, 0) in inside
    assert _component(puzzle, (0, 0), HexRegion.INSIDE) == inside

    border = [c for c in outside if is_boundary(c[0], c[1], 4)]
    assert border, "OUTSIDE must reach the map boundary"
    assert _component(puzzle, border[0], HexRegion.OUTSIDE) == outside, "Lake found"


@pytest.mark.parametrize("seed", range(3))
def test_clues_match_boundary(seed):
    puzzle = RegionGenerator(3, random.Random(seed)).generate()
    for (q, r), cell in puzzle.cells.items():
        assert cell.show_clue
        assert cell.clue_count == puzzle.boundary_count(q, r)


@pytest.mark.parametrize("seed", range(4))
def test_growth_reaches_target(seed):
    generator = RegionGenerator(5, random.Random(seed))
    target = int(len(generator.puzzle.cells) * generator.fill_ratio)
    size = generator.grow()
    assert size == generator.inside_size()
    assert size >= target, f"Growth stopped at {size} of {target}"


def test_spine_pass_leaves_no_convertible_tips():
    generator = RegionGenerator(4, random.Random(9))
    generator.grow()
    generator.extend_spines()

    for coord, cell in generator.puzzle.cells.items():
        if cell.region == HexRegion.OUTSIDE and generator.inside_neighbor_count(coord) == 1:
            assert not generator.can_convert(coord), f"{coord} should have been converted"


def test_same_seed_same_region():
    a = RegionGenerator(4, random.Random(42)).generate()
    b = RegionGenerator(4, random.Random(42)).generate()
    assert _coords(a, HexRegion.INSIDE) == _coords(b, HexRegion.INSIDE)


def test_can_convert_refuses_to_trap_outside():
    generator = RegionGenerator(2, random.Random(0))
    ring = [(1, 0), (0, 1), (-1, 1), (-1, 0), (0, -1)]
    for coord in ring:
        generator.puzzle.cells[coord].region = HexRegion.INSIDE

    # (1,-1) would close the ring around the OUTSIDE center
    assert not generator.can_convert((1, -1))
    assert generator.can_convert((2, -1))


def test_radius_must_be_positive():
    with pytest.raises(ValueError):
        RegionGenerator(0)
