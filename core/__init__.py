"""
Hex Loop - Core Package
Grid state, constraint propagation, batch solving, map codec and move history.
"""
from .types import EdgeState, EdgeDirection, HexRegion, HexCell, Puzzle, ValidationError, MapFormatError
from .commands import Move, MoveHistory
from .constraints import ConstraintPropagator
from .hex_grid import HexGrid
from .solver import BatchSolver
from .map_codec import encode_map, decode_map

__all__ = [
    'EdgeState', 'EdgeDirection', 'HexRegion', 'HexCell', 'Puzzle', 'ValidationError',
    'MapFormatError', 'Move', 'MoveHistory', 'ConstraintPropagator', 'HexGrid',
    'BatchSolver', 'encode_map', 'decode_map',
]
