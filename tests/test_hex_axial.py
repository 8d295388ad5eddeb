"""
Axial coordinate helpers:
- Canonical edge keys collapse both sides of an edge
- Corner/edge bookkeeping
- Third edge lookup at map corners
- Canonical map order
"""

import pytest

from utils.hex_axial import (
    canonical_edge_key,
    corner_edges,
    edge_corners,
    hex_count,
    is_boundary,
    iter_hex_coords,
    mirror_edge,
    pack_edge,
    third_edge_at_vertex,
    unpack_edge_key,
)


@pytest.mark.parametrize("q,r,d", [(0, 0, 0), (2, -1, 3), (-3, 1, 5), (0, -4, 1)])
def test_both_sides_share_a_key(q, r, d):
    assert canonical_edge_key(q, r, d) == canonical_edge_key(*mirror_edge(q, r, d))


def test_canonical_key_is_smaller_representation():
    # (0,0,SE) and (1,0,NW) are one edge; the (0,0) side packs lower
    assert canonical_edge_key(1, 0, 3) == pack_edge(0, 0, 0)


@pytest.mark.parametrize("q,r,d", [(0, 0, 0), (-7, 3, 4), (11, -11, 5)])
def test_unpack_inverts_pack(q, r, d):
    assert unpack_edge_key(pack_edge(q, r, d)) == (q, r, d)


@pytest.mark.parametrize("radius", [0, 1, 3])
def test_edge_count_of_hexagon(radius):
    """(6·hexes + boundary edges) / 2 distinct edges; 12R+6 edges face off-map."""
    keys = {canonical_edge_key(q, r, d) for q, r in iter_hex_coords(radius) for d in range(6)}
    assert len(keys) == (6 * hex_count(radius) + 12 * radius + 6) // 2


def test_corner_and_edge_indices():
    assert corner_edges(0) == (5, 0)
    assert corner_edges(3) == (2, 3)
    assert edge_corners(5) == (5, 0)
    for d in range(6):
        for corner in edge_corners(d):
            assert d in corner_edges(corner)


def test_third_edge_prefers_first_neighbor():
    coords = set(iter_hex_coords(1))
    exists = lambda q, r: (q, r) in coords
    # Corner 0 of the center: neighbors NE (1,-1) and SE (1,0); third edge is (1,-1) S
    assert third_edge_at_vertex(0, 0, 0, exists) == (1, -1, 1)


def test_third_edge_falls_back_to_second_neighbor():
    coords = set(iter_hex_coords(1))
    exists = lambda q, r: (q, r) in coords
    # Corner 2 of (1,0): S neighbor (1,1) is off the map, SW neighbor (0,1) is not
    assert third_edge_at_vertex(1, 0, 2, exists) == (0, 1, 0)


def test_third_edge_virtual_at_map_corner():
    coords = set(iter_hex_coords(1))
    exists = lambda q, r: (q, r) in coords
    assert third_edge_at_vertex(1, 0, 1, exists) is None


def test_canonical_map_order():
    assert list(iter_hex_coords(1)) == [
        (-1, 0), (-1, 1), (0, -1), (0, 0), (0, 1), (1, -1), (1, 0),
    ]
    assert hex_count(1) == 7
    assert len(list(iter_hex_coords(5))) == hex_count(5)


def test_boundary_ring():
    assert is_boundary(2, -1, 2)
    assert not is_boundary(1, 0, 2)
