"""Static evaluation: material, piece-square tables and mobility.

Scores are centipawns from White's point of view.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from knightly.core.enums import Color, PieceType
from knightly.core.move_generator import MoveGenerator
from knightly.core.types import file_of, rank_of

if TYPE_CHECKING:
    from knightly.core.move import Move
    from knightly.core.position import Position

MOBILITY_WEIGHT = 2

PIECE_VALUES: dict[PieceType, int] = {
    PieceType.PAWN: 100,
    PieceType.KNIGHT: 320,
    PieceType.BISHOP: 330,
    PieceType.ROOK: 500,
    PieceType.QUEEN: 900,
    PieceType.KING: 20000,
}

# ── Piece-square tables ──────────────────────────────────────────────────────
# Written as a diagram from White's side: first row is rank 8, columns a→h.

_PAWN_TABLE = (
    (0, 0, 0, 0, 0, 0, 0, 0),
    (50, 50, 50, 50, 50, 50, 50, 50),
    (10, 10, 20, 30, 30, 20, 10, 10),
    (5, 5, 10, 25, 25, 10, 5, 5),
    (0, 0, 0, 20, 20, 0, 0, 0),
    (5, -5, -10, 0, 0, -10, -5, 5),
    (5, 10, 10, -20, -20, 10, 10, 5),
    (0, 0, 0, 0, 0, 0, 0, 0),
)

_KNIGHT_TABLE = (
    (-50, -40, -30, -30, -30, -30, -40, -50),
    (-40, -20, 0, 0, 0, 0, -20, -40),
    (-30, 0, 10, 15, 15, 10, 0, -30),
    (-30, 5, 15, 20, 20, 15, 5, -30),
    (-30, 0, 15, 20, 20, 15, 0, -30),
    (-30, 5, 10, 15, 15, 10, 5, -30),
    (-40, -20, 0, 5, 5, 0, -20, -40),
    (-50, -40, -30, -30, -30, -30, -40, -50),
)

_BISHOP_TABLE = (
    (-20, -10, -10, -10, -10, -10, -10, -20),
    (-10, 0, 0, 0, 0, 0, 0, -10),
    (-10, 0, 5, 10, 10, 5, 0, -10),
    (-10, 5, 5, 10, 10, 5, 5, -10),
    (-10, 0, 10, 10, 10, 10, 0, -10),
    (-10, 10, 10, 10, 10, 10, 10, -10),
    (-10, 5, 0, 0, 0, 0, 5, -10),
    (-20, -10, -10, -10, -10, -10, -10, -20),
)

_ROOK_TABLE = (
    (0, 0, 0, 0, 0, 0, 0, 0),
    (5, 10, 10, 10, 10, 10, 10, 5),
    (-5, 0, 0, 0, 0, 0, 0, -5),
    (-5, 0, 0, 0, 0, 0, 0, -5),
    (-5, 0, 0, 0, 0, 0, 0, -5),
    (-5, 0, 0, 0, 0, 0, 0, -5),
    (-5, 0, 0, 0, 0, 0, 0, -5),
    (0, 0, 0, 5, 5, 0, 0, 0),
)

_QUEEN_TABLE = (
    (-20, -10, -10, -5, -5, -10, -10, -20),
    (-10, 0, 0, 0, 0, 0, 0, -10),
    (-10, 0, 5, 5, 5, 5, 0, -10),
    (-5, 0, 5, 5, 5, 5, 0, -5),
    (0, 0, 5, 5, 5, 5, 0, -5),
    (-10, 5, 5, 5, 5, 5, 0, -10),
    (-10, 0, 5, 0, 0, 0, 0, -10),
    (-20, -10, -10, -5, -5, -10, -10, -20),
)

_KING_TABLE = (
    (-30, -40, -40, -50, -50, -40, -40, -30),
    (-30, -40, -40, -50, -50, -40, -40, -30),
    (-30, -40, -40, -50, -50, -40, -40, -30),
    (-30, -40, -40, -50, -50, -40, -40, -30),
    (-20, -30, -30, -40, -40, -30, -30, -20),
    (-10, -20, -20, -20, -20, -20, -20, -10),
    (20, 20, 0, 0, 0, 0, 20, 20),
    (20, 30, 10, 0, 0, 10, 30, 20),
)

PIECE_SQUARE_TABLES: dict[PieceType, tuple[tuple[int, ...], ...]] = {
    PieceType.PAWN: _PAWN_TABLE,
    PieceType.KNIGHT: _KNIGHT_TABLE,
    PieceType.BISHOP: _BISHOP_TABLE,
    PieceType.ROOK: _ROOK_TABLE,
    PieceType.QUEEN: _QUEEN_TABLE,
    PieceType.KING: _KING_TABLE,
}


def _build_square_values() -> dict[tuple[Color, PieceType], tuple[int, ...]]:
    """Material + table value per (color, type), indexed by square.

    Black reads the table upside down. The king carries no material term.
    """
    values: dict[tuple[Color, PieceType], tuple[int, ...]] = {}
    for ptype, table in PIECE_SQUARE_TABLES.items():
        material = 0 if ptype == PieceType.KING else PIECE_VALUES[ptype]
        for color in Color:
            per_square: list[int] = []
            for sq in range(64):
                row = 7 - rank_of(sq) if color == Color.WHITE else rank_of(sq)
                per_square.append(material + table[row][file_of(sq)])
            values[(color, ptype)] = tuple(per_square)
    return values


_SQUARE_VALUES = _build_square_values()


def material_and_position(position: Position) -> int:
    """Material plus piece-square bonuses, without mobility."""
    score = 0
    for sq, piece in position.board.occupied():
        value = _SQUARE_VALUES[(piece.color, piece.piece_type)][sq]
        score += value if piece.color == Color.WHITE else -value
    return score


def mobility(position: Position, legal_moves: Sequence[Move] | None = None) -> int:
    """Mobility term: legal-move count of the side to move, signed for White."""
    if legal_moves is None:
        legal_moves = MoveGenerator(position).generate_legal_moves()
    bonus = len(legal_moves) * MOBILITY_WEIGHT
    return bonus if position.side_to_move == Color.WHITE else -bonus


def evaluate(position: Position, legal_moves: Sequence[Move] | None = None) -> int:
    """Static score of *position* in centipawns, positive favours White.

    Pass *legal_moves* when they are already known to skip regenerating them
    for the mobility term.
    """
    return material_and_position(position) + mobility(position, legal_moves)
