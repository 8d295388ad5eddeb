"""
Incremental propagation on a live grid:
- Derived CALCULATED_OFF edges appear and retract with the edits that justify them
- Virtual edges at map corners count as inactive
- Randomized edit sequences keep every derived edge grounded
"""

import random

import pytest

from core.types import EdgeState, EdgeDirection as D

ACTIVE = EdgeState.ACTIVE
OFF = EdgeState.OFF
UNKNOWN = EdgeState.UNKNOWN
CALC = EdgeState.CALCULATED_OFF


def test_two_active_edges_force_third_off(grid):
    grid.set_edge_state(0, 0, D.NE, ACTIVE)
    grid.set_edge_state(0, 0, D.SE, ACTIVE)

    assert grid.get_edge_state(1, -1, D.S) == CALC


def test_reverting_active_edge_retracts(grid):
    grid.set_edge_state(0, 0, D.NE, ACTIVE)
    grid.set_edge_state(0, 0, D.SE, ACTIVE)
    grid.set_edge_state(0, 0, D.NE, UNKNOWN)

    assert grid.get_edge_state(1, -1, D.S) == UNKNOWN


def test_active_to_off_retracts(grid):
    """ACTIVE → OFF leaves a mixed pair, which forces nothing."""
    grid.set_edge_state(0, 0, D.NE, ACTIVE)
    grid.set_edge_state(0, 0, D.SE, ACTIVE)
    grid.set_edge_state(0, 0, D.NE, OFF)

    assert grid.get_edge_state(1, -1, D.S) == UNKNOWN


def test_virtual_edge_counts_as_off(grid):
    """(1,0) sits on a map corner; both ends of its SE edge meet a virtual edge."""
    grid.set_edge_state(1, 0, D.SE, OFF)

    assert grid.get_edge_state(1, 0, D.NE) == CALC
    assert grid.get_edge_state(1, 0, D.S) == CALC


def test_reverting_off_next_to_virtual_edge(grid):
    grid.set_edge_state(1, 0, D.SE, OFF)
    grid.set_edge_state(1, 0, D.SE, UNKNOWN)

    assert grid.get_edge_state(1, 0, D.NE) == UNKNOWN
    assert grid.get_edge_state(1, 0, D.S) == UNKNOWN


def test_chained_derivation_and_retraction(grid):
    grid.set_edge_state(0, 0, D.N, OFF)
    grid.set_edge_state(0, 0, D.NE, OFF)
    assert grid.get_edge_state(0, -1, D.SE) == CALC

    grid.set_edge_state(0, -1, D.NE, OFF)
    # (1,-2) is off the map; its S edge is (1,-1) N
    assert grid.get_edge_state(1, -2, D.S) == CALC

    grid.set_edge_state(0, 0, D.NE, UNKNOWN)
    assert grid.get_edge_state(0, -1, D.SE) == UNKNOWN
    assert grid.get_edge_state(1, -2, D.S) == UNKNOWN
    # Still justified by (0,-1) NE and the virtual edge at the map corner
    assert grid.get_edge_state(0, -1, D.N) == CALC


def test_both_representations_share_state(grid):
    grid.set_edge_state(0, 0, D.SE, ACTIVE)
    assert grid.get_edge_state(1, 0, D.NW) == ACTIVE


def test_primary_calculated_off_write_is_normalised(grid):
    assert not grid.set_edge_state(0, 0, D.S, CALC), "Nothing justifies the edge"
    assert grid.get_edge_state(0, 0, D.S) == UNKNOWN
    assert grid.history == []


def test_unchanged_write_is_ignored(grid):
    assert grid.set_edge_state(0, 0, D.S, ACTIVE)
    assert not grid.set_edge_state(0, 0, D.S, ACTIVE)
    assert len(grid.history) == 1


def test_edges_outside_the_map(grid):
    assert grid.get_edge_state(5, 5, D.S) == UNKNOWN
    assert not grid.set_edge_state(5, 5, D.S, ACTIVE)
    # Boundary edges are real
    assert grid.set_edge_state(1, 0, D.SE, ACTIVE)


def test_cycle_edge(grid):
    seen = []
    for _ in range(3):
        grid.cycle_edge(0, 0, D.S)
        seen.append(grid.get_edge_state(0, 0, D.S))
    assert seen == [ACTIVE, OFF, UNKNOWN]


@pytest.mark.parametrize("seed", [1, 2, 3])
def test_random_edits_keep_derivations_grounded(big_grid, seed):
    """After every edit: nothing left to derive and every derived edge justified."""
    rng = random.Random(seed)
    coords = list(big_grid.hex_coords())
    choices = [ACTIVE, OFF, UNKNOWN, CALC]

    for step in range(150):
        q, r = rng.choice(coords)
        big_grid.set_edge_state(q, r, rng.randrange(6), rng.choice(choices))

        propagator = big_grid.propagator
        assert propagator.unresolved_vertices() == [], f"Pending derivation at step {step}"
        assert propagator.stale_derivations() == [], f"Ungrounded derivation at step {step}"


def test_check_vertex_is_idempotent(big_grid):
    rng = random.Random(7)
    coords = list(big_grid.hex_coords())
    for _ in range(60):
        q, r = rng.choice(coords)
        big_grid.set_edge_state(q, r, rng.randrange(6), rng.choice([ACTIVE, OFF]))

    before = dict(big_grid.edge_states)
    for q, r in coords:
        for corner in range(6):
            assert big_grid.propagator.check_vertex(q, r, corner) == 0
    assert big_grid.edge_states == before
