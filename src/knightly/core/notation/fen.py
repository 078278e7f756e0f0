"""FEN parsing and serialization."""

from __future__ import annotations

from knightly.core.board import Board
from knightly.core.enums import CastlingRights, Color, PieceType
from knightly.core.piece import Piece
from knightly.core.position import Position
from knightly.core.types import Square, make_square, parse_square, rank_of, square_name

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

_CASTLING_CHARS: dict[str, CastlingRights] = {
    "K": CastlingRights.WHITE_KINGSIDE,
    "Q": CastlingRights.WHITE_QUEENSIDE,
    "k": CastlingRights.BLACK_KINGSIDE,
    "q": CastlingRights.BLACK_QUEENSIDE,
}


def position_from_fen(fen: str) -> Position:
    """Parse a FEN string into a :class:`Position`.

    Only the placement field is mandatory. Missing trailing fields default
    to white to move, full castling rights, no en-passant square and clocks
    ``0 1``. Fields that are present must be well formed.
    """
    parts = fen.split()
    if not (1 <= len(parts) <= 6):
        raise ValueError(f"Invalid FEN (need 1-6 fields): {fen!r}")

    board = _parse_placement(parts[0], fen)

    # 2. Side to move
    side = Color.WHITE
    if len(parts) > 1:
        if parts[1] == "w":
            side = Color.WHITE
        elif parts[1] == "b":
            side = Color.BLACK
        else:
            raise ValueError(f"Invalid FEN side-to-move field: {parts[1]!r}")

    # 3. Castling
    castling = CastlingRights.ALL
    if len(parts) > 2:
        castling = _parse_castling(parts[2])

    # 4. En passant
    ep: Square | None = None
    if len(parts) > 3 and parts[3] != "-":
        ep_part = parts[3]
        try:
            ep = parse_square(ep_part)
        except ValueError:
            raise ValueError(f"Invalid FEN en-passant square: {ep_part!r}") from None
        expected_ep_rank = 5 if side == Color.WHITE else 2
        if rank_of(ep) != expected_ep_rank:
            raise ValueError(
                f"Invalid FEN en-passant square for side-to-move: {ep_part!r}"
            )

    # 5–6. Clocks
    halfmove = _parse_counter(parts, 4, "halfmove clock", default=0, minimum=0)
    fullmove = _parse_counter(parts, 5, "fullmove number", default=1, minimum=1)

    return Position(board, side, castling, ep, halfmove, fullmove)


def _parse_placement(placement: str, fen: str) -> Board:
    ranks = placement.split("/")
    if len(ranks) != 8:
        raise ValueError(f"Invalid FEN board (must contain 8 ranks): {fen!r}")
    board = Board()
    for rank_idx, rank_text in enumerate(ranks):
        rank = 7 - rank_idx
        file = 0
        for ch in rank_text:
            if ch.isdigit():
                step = int(ch)
                if not (1 <= step <= 8):
                    raise ValueError(f"Invalid FEN digit {ch!r}: {fen!r}")
                file += step
            else:
                if file >= 8:
                    raise ValueError(f"Invalid FEN rank width: {fen!r}")
                try:
                    piece = Piece.from_char(ch)
                except ValueError:
                    raise ValueError(
                        f"Invalid FEN piece character {ch!r}: {fen!r}"
                    ) from None
                board[make_square(file, rank)] = piece
                file += 1
            if file > 8:
                raise ValueError(f"Invalid FEN rank width: {fen!r}")
        if file != 8:
            raise ValueError(f"Invalid FEN rank width: {fen!r}")

    for color in Color:
        kings = board.count(color, PieceType.KING)
        if kings != 1:
            raise ValueError(
                f"Invalid FEN board (need exactly one {color} king, found {kings}): "
                f"{fen!r}"
            )
    return board


def _parse_castling(field: str) -> CastlingRights:
    castling = CastlingRights.NONE
    if field == "-":
        return castling
    seen: set[str] = set()
    for ch in field:
        right = _CASTLING_CHARS.get(ch)
        if right is None or ch in seen:
            raise ValueError(f"Invalid FEN castling field: {field!r}")
        seen.add(ch)
        castling |= right
    return castling


def _parse_counter(
    parts: list[str], index: int, name: str, *, default: int, minimum: int
) -> int:
    if len(parts) <= index:
        return default
    text = parts[index]
    if not text.isdigit() or int(text) < minimum:
        raise ValueError(f"Invalid FEN {name}: {text!r}")
    return int(text)


def position_to_fen(pos: Position) -> str:
    """Serialise a :class:`Position` to FEN."""
    # 1. Board
    rows: list[str] = []
    for rank in range(7, -1, -1):
        empty = 0
        row = ""
        for file in range(8):
            piece = pos.board[make_square(file, rank)]
            if piece is None:
                empty += 1
            else:
                if empty:
                    row += str(empty)
                    empty = 0
                row += str(piece)
        if empty:
            row += str(empty)
        rows.append(row)
    board_str = "/".join(rows)

    # 2. Side
    side_str = "w" if pos.side_to_move == Color.WHITE else "b"

    # 3. Castling
    castling_str = "".join(
        ch for ch, right in _CASTLING_CHARS.items() if pos.castling & right
    )
    if not castling_str:
        castling_str = "-"

    # 4. En passant
    ep_str = square_name(pos.en_passant) if pos.en_passant is not None else "-"

    return (
        f"{board_str} {side_str} {castling_str} {ep_str} "
        f"{pos.halfmove_clock} {pos.fullmove_number}"
    )
