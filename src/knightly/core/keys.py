"""Position keys: 64-bit fingerprints of board, turn, castling and en passant.

Keys are built by XOR-ing one fixed random number per feature, so a move only
has to toggle the features it changes.
"""

from __future__ import annotations

import random
from typing import Final

from knightly.core.board import Board
from knightly.core.enums import CastlingRights, Color
from knightly.core.piece import Piece
from knightly.core.types import Square

_SEED: Final = 0x6B6E6967

_rng = random.Random(_SEED)

# [color][piece_type][square]; index 0 of the piece-type axis is unused.
_PIECE_KEYS: Final = tuple(
    tuple(
        tuple(_rng.getrandbits(64) for _ in range(64)) if ptype else ()
        for ptype in range(7)
    )
    for _color in range(2)
)
_BLACK_TO_MOVE_KEY: Final = _rng.getrandbits(64)
_CASTLING_KEYS: Final = tuple(_rng.getrandbits(64) for _ in range(16))
_EN_PASSANT_KEYS: Final = tuple(_rng.getrandbits(64) for _ in range(64))

del _rng


def piece_key(piece: Piece, sq: Square) -> int:
    """Key toggled when *piece* appears on or leaves *sq*."""
    return _PIECE_KEYS[piece.color][piece.piece_type][sq]


def side_key() -> int:
    """Key toggled on every change of the side to move."""
    return _BLACK_TO_MOVE_KEY


def castling_key(castling: CastlingRights) -> int:
    return _CASTLING_KEYS[int(castling) & 0xF]


def en_passant_key(ep_square: Square) -> int:
    return _EN_PASSANT_KEYS[ep_square]


def compute_key(
    board: Board,
    side_to_move: Color,
    castling: CastlingRights,
    en_passant: Square | None,
) -> int:
    """Full (non-incremental) key for the given position features."""
    key = castling_key(castling)
    if side_to_move == Color.BLACK:
        key ^= _BLACK_TO_MOVE_KEY
    if en_passant is not None:
        key ^= _EN_PASSANT_KEYS[en_passant]
    for sq, piece in board.occupied():
        key ^= piece_key(piece, sq)
    return key
