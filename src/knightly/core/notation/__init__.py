"""Notation package: FEN / SAN / PGN parsing and serialization."""

from knightly.core.notation.fen import STARTING_FEN, position_from_fen, position_to_fen
from knightly.core.notation.models import ParsedPgn, PgnMetadata, PgnMove
from knightly.core.notation.pgn import (
    build_pgn,
    parse_pgn_game,
    pgn_movetext_from_moves,
)
from knightly.core.notation.san import move_to_san, parse_san

__all__ = [
    "STARTING_FEN",
    "PgnMetadata",
    "PgnMove",
    "ParsedPgn",
    "position_from_fen",
    "position_to_fen",
    "move_to_san",
    "parse_san",
    "pgn_movetext_from_moves",
    "build_pgn",
    "parse_pgn_game",
]
