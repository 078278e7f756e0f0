"""Move value object."""

from __future__ import annotations

from dataclasses import dataclass

from knightly.core.enums import Color, MoveFlag, PieceType
from knightly.core.types import Square, square_name

_PROMO_CHARS: dict[PieceType, str] = {
    PieceType.KNIGHT: "n",
    PieceType.BISHOP: "b",
    PieceType.ROOK: "r",
    PieceType.QUEEN: "q",
}


@dataclass(frozen=True, slots=True)
class Move:
    """Immutable value object describing one fully classified move.

    ``captured`` is the type of the piece removed by the move (a pawn for
    en passant). ``flag`` holds at most one of double push, en passant or
    castling; promotions are expressed through ``promotion`` alone.
    """

    from_sq: Square
    to_sq: Square
    piece: PieceType
    color: Color
    captured: PieceType | None = None
    promotion: PieceType | None = None
    flag: MoveFlag = MoveFlag.NORMAL

    # ── Classification ───────────────────────────────────────────────────

    @property
    def is_capture(self) -> bool:
        return self.captured is not None

    @property
    def is_castling(self) -> bool:
        return self.flag in (MoveFlag.CASTLE_KINGSIDE, MoveFlag.CASTLE_QUEENSIDE)

    @property
    def is_promotion(self) -> bool:
        return self.promotion is not None

    # ── Display ──────────────────────────────────────────────────────────

    def __str__(self) -> str:
        base = f"{square_name(self.from_sq)}{square_name(self.to_sq)}"
        if self.promotion is not None:
            base += _PROMO_CHARS.get(self.promotion, "")
        return base

    @property
    def uci(self) -> str:
        """Long-algebraic coordinate notation, e.g. ``e7e8q``."""
        return str(self)
