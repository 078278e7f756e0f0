"""Piece value object."""

from __future__ import annotations

from dataclasses import dataclass

from knightly.core.enums import Color, PieceType

_TYPE_LETTERS: dict[PieceType, str] = {
    PieceType.PAWN: "P",
    PieceType.KNIGHT: "N",
    PieceType.BISHOP: "B",
    PieceType.ROOK: "R",
    PieceType.QUEEN: "Q",
    PieceType.KING: "K",
}
_LETTER_TYPES: dict[str, PieceType] = {v: k for k, v in _TYPE_LETTERS.items()}

# Filled glyphs per type; the renderer tints them by color.
_GLYPHS: dict[PieceType, str] = {
    PieceType.PAWN: "♟",
    PieceType.KNIGHT: "♞",
    PieceType.BISHOP: "♝",
    PieceType.ROOK: "♜",
    PieceType.QUEEN: "♛",
    PieceType.KING: "♚",
}
_OUTLINE_GLYPHS: dict[PieceType, str] = {
    PieceType.PAWN: "♙",
    PieceType.KNIGHT: "♘",
    PieceType.BISHOP: "♗",
    PieceType.ROOK: "♖",
    PieceType.QUEEN: "♕",
    PieceType.KING: "♔",
}


def piece_type_letter(piece_type: PieceType) -> str:
    """Uppercase letter for *piece_type*, e.g. KNIGHT → 'N'."""
    return _TYPE_LETTERS[piece_type]


def piece_type_from_letter(letter: str) -> PieceType:
    """Inverse of :func:`piece_type_letter`; accepts either case."""
    try:
        return _LETTER_TYPES[letter.upper()]
    except KeyError:
        raise ValueError(f"Invalid piece letter: {letter!r}") from None


@dataclass(frozen=True, slots=True)
class Piece:
    """Immutable value object representing a chess piece."""

    color: Color
    piece_type: PieceType

    # ── Serialisation ────────────────────────────────────────────────────

    def __str__(self) -> str:
        """FEN character (uppercase = white, lowercase = black)."""
        letter = _TYPE_LETTERS[self.piece_type]
        return letter if self.color == Color.WHITE else letter.lower()

    @classmethod
    def from_char(cls, char: str) -> Piece:
        """Create piece from FEN character, e.g. 'N' → white knight."""
        if len(char) != 1 or char.upper() not in _LETTER_TYPES:
            raise ValueError(f"Invalid piece character: {char!r}")
        color = Color.WHITE if char.isupper() else Color.BLACK
        return cls(color, _LETTER_TYPES[char.upper()])

    @property
    def glyph(self) -> str:
        """Display glyph (filled for both colors)."""
        return _GLYPHS[self.piece_type]

    @property
    def symbol(self) -> str:
        """Color-specific Unicode chess symbol, e.g. ♘ or ♞."""
        if self.color == Color.WHITE:
            return _OUTLINE_GLYPHS[self.piece_type]
        return _GLYPHS[self.piece_type]
