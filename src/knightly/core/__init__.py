"""Core domain layer: board, move generation, rules and notation.

Quick start::

    from knightly.core import Position, MoveGenerator

    pos = Position.from_fen("rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1")
    for move in MoveGenerator(pos).generate_legal_moves():
        print(move)
"""

from knightly.core.board import Board
from knightly.core.enums import (
    CastlingRights,
    Color,
    EndReason,
    GameResult,
    MoveFlag,
    PieceType,
)
from knightly.core.move import Move
from knightly.core.move_generator import MoveGenerator
from knightly.core.notation import (
    STARTING_FEN,
    move_to_san,
    parse_san,
    position_from_fen,
    position_to_fen,
)
from knightly.core.piece import Piece
from knightly.core.position import Position
from knightly.core.rules import GameOutcome, Rules
from knightly.core.types import (
    Square,
    file_of,
    make_square,
    parse_square,
    rank_of,
    square_name,
)

__all__ = [
    # Enums / flags
    "CastlingRights",
    "Color",
    "EndReason",
    "GameResult",
    "MoveFlag",
    "PieceType",
    # Types / helpers
    "Square",
    "file_of",
    "make_square",
    "parse_square",
    "rank_of",
    "square_name",
    # Domain objects
    "Board",
    "GameOutcome",
    "Move",
    "MoveGenerator",
    "Piece",
    "Position",
    "Rules",
    # Notation
    "STARTING_FEN",
    "move_to_san",
    "parse_san",
    "position_from_fen",
    "position_to_fen",
]
