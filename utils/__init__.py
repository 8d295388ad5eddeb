"""
Hex Loop - Utilities Package
Axial coordinate helpers and logging setup.
"""
from .hex_axial import (
    DIRECTION_VECTORS,
    canonical_edge_key,
    unpack_edge_key,
    neighbor_coord,
    corner_edges,
    edge_corners,
    third_edge_at_vertex,
    iter_hex_coords,
    hex_count,
)
from .logging_utils import get_logger

__all__ = [
    'DIRECTION_VECTORS', 'canonical_edge_key', 'unpack_edge_key', 'neighbor_coord',
    'corner_edges', 'edge_corners', 'third_edge_at_vertex', 'iter_hex_coords',
    'hex_count', 'get_logger',
]
