"""
Binary map format.

    byte 0       radius (uint8)
    bytes 1..N   one packed byte per hex, in canonical map order

Packed byte, bit 0 = LSB:
    bit 0       region, 1 = INSIDE, 0 = OUTSIDE
    bits 1-3    clue count 0-7 (0-6 meaningful)
    bit 4       show-clue flag
    bits 5-7    reserved, must be 0
"""
from pathlib import Path
from typing import Union

from core.types import HexCell, HexRegion, MapFormatError, Puzzle
from utils.hex_axial import hex_count, iter_hex_coords

REGION_BIT = 0x01
CLUE_SHIFT = 1
CLUE_MASK = 0x07
SHOW_BIT = 0x10
RESERVED_MASK = 0xE0

MAX_RADIUS = 255


def pack_cell(cell: HexCell) -> int:
    """Pack one hex into its map byte."""
    clue = cell.clue_count or 0
    if not 0 <= clue <= CLUE_MASK:
        raise ValueError(f"Clue count out of range at {cell.coord}: {clue}")

    byte = REGION_BIT if cell.region == HexRegion.INSIDE else 0
    byte |= clue << CLUE_SHIFT
    if cell.show_clue:
        byte |= SHOW_BIT
    return byte


def unpack_cell(q: int, r: int, byte: int) -> HexCell:
    """Unpack a map byte into a HexCell."""
    if byte & RESERVED_MASK:
        raise MapFormatError(f"Reserved bits set for hex ({q}, {r}): {byte:#04x}")

    region = HexRegion.INSIDE if byte & REGION_BIT else HexRegion.OUTSIDE
    clue = (byte >> CLUE_SHIFT) & CLUE_MASK
    return HexCell(q, r, region, clue, bool(byte & SHOW_BIT))


def encoded_size(radius: int) -> int:
    return 1 + hex_count(radius)


def encode_map(puzzle: Puzzle) -> bytes:
    """Serialize a puzzle to the binary map format."""
    if not 0 <= puzzle.radius <= MAX_RADIUS:
        raise ValueError(f"Radius does not fit in one byte: {puzzle.radius}")

    data = bytearray([puzzle.radius])
    for coord in iter_hex_coords(puzzle.radius):
        cell = puzzle.cells.get(coord)
        if cell is None:
            raise ValueError(f"Puzzle is missing hex {coord}")
        data.append(pack_cell(cell))
    return bytes(data)


def decode_map(data: bytes) -> Puzzle:
    """
    Parse a binary map.

    Raises:
        MapFormatError: Empty buffer, wrong length or reserved bits set
    """
    if not data:
        raise MapFormatError("Empty map buffer")

    radius = data[0]
    expected = encoded_size(radius)
    if len(data) != expected:
        raise MapFormatError(f"Map of radius {radius} needs {expected} bytes, got {len(data)}")

    puzzle = Puzzle(radius)
    for index, (q, r) in enumerate(iter_hex_coords(radius), start=1):
        puzzle.cells[(q, r)] = unpack_cell(q, r, data[index])
    return puzzle


def write_map_file(path: Union[str, Path], puzzle: Puzzle) -> None:
    """Encode a puzzle and write it, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(encode_map(puzzle))


def read_map_file(path: Union[str, Path]) -> Puzzle:
    return decode_map(Path(path).read_bytes())
