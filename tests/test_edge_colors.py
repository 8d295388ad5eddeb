"""
Decorative edge colours follow ACTIVE components through merges and splits.
"""

from core.types import EdgeState, EdgeDirection as D
from utils.hex_axial import canonical_edge_key

ACTIVE = EdgeState.ACTIVE


def _color(grid, q, r, d):
    return grid.colorizer.color_of(canonical_edge_key(q, r, d))


def test_lone_edge_gets_a_color(grid):
    grid.set_edge_state(0, 0, D.S, ACTIVE)
    assert 1 <= _color(grid, 0, 0, D.S) <= grid.colorizer.color_count


def test_touching_edges_share_color(grid):
    grid.set_edge_state(0, 0, D.NE, ACTIVE)
    grid.set_edge_state(0, 0, D.SE, ACTIVE)
    assert _color(grid, 0, 0, D.NE) == _color(grid, 0, 0, D.SE)


def test_bridge_joins_two_components(grid):
    grid.set_edge_state(0, 0, D.N, ACTIVE)
    grid.set_edge_state(0, 0, D.SE, ACTIVE)
    grid.set_edge_state(0, 0, D.S, ACTIVE)
    # NE touches N at one end and SE at the other
    grid.set_edge_state(0, 0, D.NE, ACTIVE)

    colors = {_color(grid, 0, 0, d) for d in (D.N, D.NE, D.SE, D.S)}
    assert len(colors) == 1


def test_removing_bridge_splits_colors(grid):
    for d in (D.N, D.NE, D.SE, D.S):
        grid.set_edge_state(0, 0, d, ACTIVE)
    grid.set_edge_state(0, 0, D.NE, EdgeState.OFF)

    assert _color(grid, 0, 0, D.NE) is None
    # SE and S stay together, N is on its own
    assert _color(grid, 0, 0, D.SE) == _color(grid, 0, 0, D.S)
    assert _color(grid, 0, 0, D.N) != _color(grid, 0, 0, D.SE)


def test_colors_cleared_with_edges(grid):
    grid.set_edge_state(0, 0, D.S, ACTIVE)
    grid.reset_to_start()
    assert grid.edge_colors == []
