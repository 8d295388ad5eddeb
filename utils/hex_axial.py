# utils/hex_axial.py
"""
Axial-coordinate helpers for hexagonal loop grids.

Axial Convention:
- A hex is identified by (q, r); the third cube coordinate s = -q - r
- Directions 0..5 index the six edges of a hex, clockwise from SE
- Corner c of a hex sits between edge (c - 1) and edge c

An edge is shared by two hexes and therefore has two (q, r, dir)
representations. Both collapse to a single canonical integer key so the
edge state maps never hold two views of one edge.

Reference: Red Blob Games hexagonal grid guide
https://www.redblobgames.com/grids/hexagons/
"""

from __future__ import annotations
from typing import Callable, Iterator, Optional, Tuple


Coord = Tuple[int, int]
EdgeRef = Tuple[int, int, int]

# (dq, dr) per direction
DIRECTION_VECTORS: Tuple[Tuple[int, int], ...] = (
    ( 1,  0),  # SE
    ( 0,  1),  # S
    (-1,  1),  # SW
    (-1,  0),  # NW
    ( 0, -1),  # N
    ( 1, -1),  # NE
)

# Packed key layout: coordinates are offset into [0, KEY_STRIDE)
KEY_OFFSET = 512
KEY_STRIDE = 1024


def opposite(direction: int) -> int:
    """Direction pointing back from the neighbor."""
    return (direction + 3) % 6


def neighbor_coord(q: int, r: int, direction: int) -> Coord:
    dq, dr = DIRECTION_VECTORS[direction]
    return q + dq, r + dr


def mirror_edge(q: int, r: int, direction: int) -> EdgeRef:
    """The same edge seen from the neighbor on the other side."""
    nq, nr = neighbor_coord(q, r, direction)
    return nq, nr, opposite(direction)


def pack_edge(q: int, r: int, direction: int) -> int:
    return ((q + KEY_OFFSET) * KEY_STRIDE + (r + KEY_OFFSET)) * 8 + direction


def unpack_edge_key(key: int) -> EdgeRef:
    """Invert pack_edge; returns the (q, r, dir) the key was built from."""
    direction = key & 7
    packed = key >> 3
    q, r = divmod(packed, KEY_STRIDE)
    return q - KEY_OFFSET, r - KEY_OFFSET, direction


def canonical_edge_key(q: int, r: int, direction: int) -> int:
    """
    Return the coordinate-independent identity of an edge.

    The packing is monotonic in (q, r, dir), so taking the smaller integer
    is the same as taking the lexicographically smaller representation.

    Args:
        q, r: Axial coordinate of either hex touching the edge
        direction: Edge direction as seen from (q, r)

    Returns:
        Integer key shared by both representations of the edge
    """
    k1 = pack_edge(q, r, direction)
    k2 = pack_edge(*mirror_edge(q, r, direction))
    return k1 if k1 < k2 else k2


def corner_edges(corner: int) -> Tuple[int, int]:
    """The two edges of the current hex meeting at this corner."""
    return (corner + 5) % 6, corner


def edge_corners(direction: int) -> Tuple[int, int]:
    """The two corners (vertices) at the ends of an edge of one hex."""
    return direction, (direction + 1) % 6


def third_edge_at_vertex(
    q: int,
    r: int,
    corner: int,
    exists: Callable[[int, int], bool],
) -> Optional[EdgeRef]:
    """
    Return the edge closing the vertex triangle at (q, r, corner).

    The third edge runs between the two corner-adjacent neighbors. It is
    addressed from the neighbor across edge e1 when that hex exists, else
    from the neighbor across e2. When neither exists the edge lies wholly
    outside the map and is virtual.

    Args:
        q, r: Hex owning the corner
        corner: Corner index 0..5
        exists: Predicate telling whether a hex is on the grid

    Returns:
        (q, r, dir) of the third edge, or None for a virtual edge
    """
    e1, e2 = corner_edges(corner)
    n1 = neighbor_coord(q, r, e1)
    if exists(*n1):
        return n1[0], n1[1], (corner + 1) % 6
    n2 = neighbor_coord(q, r, e2)
    if exists(*n2):
        return n2[0], n2[1], (corner + 4) % 6
    return None


def hex_distance(q: int, r: int) -> int:
    """Distance from the origin hex."""
    return max(abs(q), abs(r), abs(-q - r))


def in_radius(q: int, r: int, radius: int) -> bool:
    return hex_distance(q, r) <= radius


def is_boundary(q: int, r: int, radius: int) -> bool:
    return hex_distance(q, r) == radius


def iter_hex_coords(radius: int) -> Iterator[Coord]:
    """Yield every hex of a hexagon-shaped grid in canonical map order."""
    for q in range(-radius, radius + 1):
        r1 = max(-radius, -q - radius)
        r2 = min(radius, -q + radius)
        for r in range(r1, r2 + 1):
            yield q, r


def hex_count(radius: int) -> int:
    return 3 * radius * (radius + 1) + 1
