"""Board - piece placement on an 8x8 board."""

from __future__ import annotations

from collections.abc import Iterator

from knightly.core.enums import Color, PieceType
from knightly.core.piece import Piece
from knightly.core.types import SCAN_ORDER, Square, make_square

_BACK_RANK: tuple[PieceType, ...] = (
    PieceType.ROOK,
    PieceType.KNIGHT,
    PieceType.BISHOP,
    PieceType.QUEEN,
    PieceType.KING,
    PieceType.BISHOP,
    PieceType.KNIGHT,
    PieceType.ROOK,
)


class Board:
    """Mutable 64-square board with per-color piece counts and king cache."""

    __slots__ = ("_squares", "_counts", "_king_squares")

    def __init__(self) -> None:
        self._squares: list[Piece | None] = [None] * 64
        # [color][piece_type] -> number of such pieces (index 0 unused).
        self._counts: list[list[int]] = [[0] * 7 for _ in range(2)]
        # [color] -> king square (None if the king is missing).
        self._king_squares: list[Square | None] = [None, None]

    # -- Element access -----------------------------------------------------

    def __getitem__(self, sq: Square) -> Piece | None:
        return self._squares[sq]

    def __setitem__(self, sq: Square, piece: Piece | None) -> None:
        old_piece = self._squares[sq]
        if old_piece == piece:
            return

        if old_piece is not None:
            self._counts[old_piece.color][old_piece.piece_type] -= 1
            if (
                old_piece.piece_type == PieceType.KING
                and self._king_squares[old_piece.color] == sq
            ):
                self._king_squares[old_piece.color] = None

        self._squares[sq] = piece

        if piece is not None:
            self._counts[piece.color][piece.piece_type] += 1
            if piece.piece_type == PieceType.KING:
                self._king_squares[piece.color] = sq

    def is_empty(self, sq: Square) -> bool:
        return self._squares[sq] is None

    # -- Query helpers ------------------------------------------------------

    def occupied(self) -> Iterator[tuple[Square, Piece]]:
        """Yield ``(square, piece)`` pairs in board-scan order (rank 8 first)."""
        squares = self._squares
        for sq in SCAN_ORDER:
            piece = squares[sq]
            if piece is not None:
                yield sq, piece

    def pieces(self, color: Color, piece_type: PieceType) -> list[Square]:
        """Squares occupied by *color*'s *piece_type*, in scan order."""
        if not self._counts[color][piece_type]:
            return []
        target = Piece(color, piece_type)
        return [sq for sq in SCAN_ORDER if self._squares[sq] == target]

    def count(self, color: Color, piece_type: PieceType) -> int:
        return self._counts[color][piece_type]

    def has_piece(self, color: Color, piece_type: PieceType) -> bool:
        """Whether *color* has at least one piece of *piece_type*."""
        return self._counts[color][piece_type] > 0

    def total_pieces(self) -> int:
        """Number of occupied squares."""
        return sum(sum(row) for row in self._counts)

    def king_square(self, color: Color) -> Square:
        """Return the king square for *color*."""
        sq = self._king_squares[color]
        if sq is None:
            raise ValueError(f"No {color.name} king on board")
        return sq

    # -- Mutation / copying -------------------------------------------------

    def copy(self) -> Board:
        b = Board()
        b._squares = self._squares.copy()
        b._counts = [row.copy() for row in self._counts]
        b._king_squares = self._king_squares.copy()
        return b

    def clear(self) -> None:
        self._squares = [None] * 64
        self._counts = [[0] * 7 for _ in range(2)]
        self._king_squares = [None, None]

    # -- Factory ------------------------------------------------------------

    @classmethod
    def initial(cls) -> Board:
        """Standard starting position."""
        b = cls()
        for file, piece_type in enumerate(_BACK_RANK):
            b[make_square(file, 0)] = Piece(Color.WHITE, piece_type)
            b[make_square(file, 1)] = Piece(Color.WHITE, PieceType.PAWN)
            b[make_square(file, 6)] = Piece(Color.BLACK, PieceType.PAWN)
            b[make_square(file, 7)] = Piece(Color.BLACK, piece_type)
        return b

    # -- Dunder helpers -----------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self._squares == other._squares

    def __repr__(self) -> str:
        rows: list[str] = []
        for rank in range(7, -1, -1):
            row = []
            for file in range(8):
                p = self[make_square(file, rank)]
                row.append(str(p) if p else ".")
            rows.append(f"{rank + 1} {' '.join(row)}")
        rows.append("  a b c d e f g h")
        return "\n".join(rows)
