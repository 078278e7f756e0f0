"""SAN (Standard Algebraic Notation) conversion and parsing."""

from __future__ import annotations

from knightly.core.enums import MoveFlag, PieceType
from knightly.core.move import Move
from knightly.core.move_generator import MoveGenerator
from knightly.core.position import Position
from knightly.core.types import (
    FILE_NAMES,
    RANK_NAMES,
    file_of,
    parse_square,
    rank_of,
    square_name,
)

_SAN_PIECE: dict[PieceType, str] = {
    PieceType.KNIGHT: "N",
    PieceType.BISHOP: "B",
    PieceType.ROOK: "R",
    PieceType.QUEEN: "Q",
    PieceType.KING: "K",
}
_SAN_PIECE_REV: dict[str, PieceType] = {v: k for k, v in _SAN_PIECE.items()}

_SUFFIX_CHARS = "+#!?"


def move_to_san(position: Position, move: Move) -> str:
    """Convert a legal *move* to SAN given the *position* before the move.

    The position is tried with make/unmake for the check suffix and is
    left exactly as it was.
    """
    if move.flag == MoveFlag.CASTLE_KINGSIDE:
        san = "O-O"
    elif move.flag == MoveFlag.CASTLE_QUEENSIDE:
        san = "O-O-O"
    else:
        san = ""
        if move.piece == PieceType.PAWN:
            if move.is_capture:
                san += FILE_NAMES[file_of(move.from_sq)]
        else:
            san += _SAN_PIECE[move.piece]
            san += _disambiguation(position, move)

        if move.is_capture:
            san += "x"

        san += square_name(move.to_sq)

        if move.promotion is not None:
            san += "=" + _SAN_PIECE[move.promotion]

    # Check / checkmate suffix
    position.make_move(move)
    gen_after = MoveGenerator(position)
    if gen_after.is_in_check(position.side_to_move):
        san += "+" if gen_after.has_legal_moves() else "#"
    position.unmake_move(move)

    return san


def _disambiguation(position: Position, move: Move) -> str:
    rivals = [
        m
        for m in MoveGenerator(position).generate_legal_moves()
        if m.to_sq == move.to_sq and m.from_sq != move.from_sq and m.piece == move.piece
    ]
    if not rivals:
        return ""
    if not any(file_of(m.from_sq) == file_of(move.from_sq) for m in rivals):
        return FILE_NAMES[file_of(move.from_sq)]
    if not any(rank_of(m.from_sq) == rank_of(move.from_sq) for m in rivals):
        return RANK_NAMES[rank_of(move.from_sq)]
    return square_name(move.from_sq)


def parse_san(position: Position, san: str) -> Move:
    """Parse a SAN string into a :class:`Move` given the current *position*.

    Check marks and annotation glyphs are ignored. A pawn reaching the last
    rank without ``=X`` promotes to a queen.
    """
    legal = MoveGenerator(position).generate_legal_moves()

    clean = san.strip().rstrip(_SUFFIX_CHARS)

    # Castling
    if clean in ("O-O", "0-0"):
        for m in legal:
            if m.flag == MoveFlag.CASTLE_KINGSIDE:
                return m
        raise ValueError(f"Illegal move: {san}")

    if clean in ("O-O-O", "0-0-0"):
        for m in legal:
            if m.flag == MoveFlag.CASTLE_QUEENSIDE:
                return m
        raise ValueError(f"Illegal move: {san}")

    # Promotion, with or without "="
    promotion: PieceType | None = None
    if len(clean) >= 2 and clean[-1] in _SAN_PIECE_REV and clean[-1] != "K":
        promotion = _SAN_PIECE_REV[clean[-1]]
        clean = clean[:-2] if clean[-2] == "=" else clean[:-1]

    # Destination (last two chars)
    try:
        to_sq = parse_square(clean[-2:])
    except ValueError:
        raise ValueError(f"Illegal move: {san}") from None
    clean = clean[:-2]

    # Capture marker
    if clean.endswith("x"):
        clean = clean[:-1]

    # Piece type
    if clean and clean[0] in _SAN_PIECE_REV:
        piece_type = _SAN_PIECE_REV[clean[0]]
        clean = clean[1:]
    else:
        piece_type = PieceType.PAWN

    # Disambiguation
    from_file: int | None = None
    from_rank: int | None = None
    for ch in clean:
        if ch in FILE_NAMES:
            from_file = FILE_NAMES.index(ch)
        elif ch in RANK_NAMES:
            from_rank = RANK_NAMES.index(ch)
        else:
            raise ValueError(f"Illegal move: {san}")

    candidates: list[Move] = []
    for m in legal:
        if m.piece != piece_type or m.to_sq != to_sq:
            continue
        if promotion is not None and m.promotion != promotion:
            continue
        if from_file is not None and file_of(m.from_sq) != from_file:
            continue
        if from_rank is not None and rank_of(m.from_sq) != from_rank:
            continue
        candidates.append(m)

    if not candidates:
        raise ValueError(f"Illegal move: {san}")
    if len({m.from_sq for m in candidates}) > 1:
        raise ValueError(f"Ambiguous move: {san} -> {[str(m) for m in candidates]}")
    # Same origin and target left: only the promotion piece differs.
    return candidates[0]
