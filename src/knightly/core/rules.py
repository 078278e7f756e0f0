"""High-level chess rules: checkmate, stalemate, draw detection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from knightly.core.enums import Color, EndReason, GameResult, PieceType
from knightly.core.move_generator import MoveGenerator
from knightly.core.types import is_light_square

if TYPE_CHECKING:
    from knightly.core.position import Position


_MINOR_PIECES = (PieceType.KNIGHT, PieceType.BISHOP)


@dataclass(frozen=True, slots=True)
class GameOutcome:
    """How and why a game ended."""

    result: GameResult
    reason: EndReason
    winner: Color | None = None

    @property
    def token(self) -> str:
        """PGN result token: ``1-0``, ``0-1`` or ``1/2-1/2``."""
        if self.result == GameResult.WHITE_WINS:
            return "1-0"
        if self.result == GameResult.BLACK_WINS:
            return "0-1"
        return "1/2-1/2"

    @classmethod
    def win(cls, winner: Color, reason: EndReason) -> GameOutcome:
        result = (
            GameResult.WHITE_WINS if winner == Color.WHITE else GameResult.BLACK_WINS
        )
        return cls(result, reason, winner)

    @classmethod
    def draw(cls, reason: EndReason) -> GameOutcome:
        return cls(GameResult.DRAW, reason)


class Rules:
    """Static rule-checker that operates on a :class:`Position`.

    Nothing is cached: every predicate is recomputed from the position.
    All draws are automatic, there is no claim step.
    """

    @staticmethod
    def is_in_check(position: Position) -> bool:
        gen = MoveGenerator(position)
        return gen.is_in_check(position.side_to_move)

    @staticmethod
    def is_checkmate(position: Position) -> bool:
        if not Rules.is_in_check(position):
            return False
        return not MoveGenerator(position).has_legal_moves()

    @staticmethod
    def is_stalemate(position: Position) -> bool:
        if Rules.is_in_check(position):
            return False
        return not MoveGenerator(position).has_legal_moves()

    @staticmethod
    def is_insufficient_material(position: Position) -> bool:
        """K vs K, K+B vs K, K+N vs K, K+B vs K+B (same-colour bishops)."""
        board = position.board
        total = board.total_pieces()

        # K vs K
        if total == 2:
            return True

        # K+minor vs K
        if total == 3:
            return any(
                board.has_piece(color, ptype)
                for color in Color
                for ptype in _MINOR_PIECES
            )

        # K+B vs K+B with same-colour bishops
        if total == 4:
            white_bishops = board.pieces(Color.WHITE, PieceType.BISHOP)
            black_bishops = board.pieces(Color.BLACK, PieceType.BISHOP)
            if len(white_bishops) == 1 and len(black_bishops) == 1:
                return is_light_square(white_bishops[0]) == is_light_square(
                    black_bishops[0]
                )

        return False

    @staticmethod
    def is_fifty_move_rule(position: Position) -> bool:
        return position.halfmove_clock >= 100  # 100 half-moves = 50 full moves

    @staticmethod
    def is_threefold_repetition(position: Position) -> bool:
        return position.repetition_count() >= 3

    @staticmethod
    def is_draw(position: Position) -> bool:
        return (
            Rules.is_stalemate(position)
            or Rules.is_insufficient_material(position)
            or Rules.is_fifty_move_rule(position)
            or Rules.is_threefold_repetition(position)
        )

    @staticmethod
    def is_game_over(position: Position) -> bool:
        return Rules.outcome(position) is not None

    @staticmethod
    def outcome(position: Position) -> GameOutcome | None:
        """The rule-decided outcome of *position*, or ``None`` if play goes on."""
        gen = MoveGenerator(position)
        side = position.side_to_move

        if not gen.has_legal_moves():
            if gen.is_in_check(side):
                return GameOutcome.win(side.opposite, EndReason.CHECKMATE)
            return GameOutcome.draw(EndReason.STALEMATE)

        if Rules.is_insufficient_material(position):
            return GameOutcome.draw(EndReason.INSUFFICIENT_MATERIAL)
        if Rules.is_fifty_move_rule(position):
            return GameOutcome.draw(EndReason.FIFTY_MOVE_RULE)
        if Rules.is_threefold_repetition(position):
            return GameOutcome.draw(EndReason.THREEFOLD_REPETITION)
        return None

    @staticmethod
    def game_result(position: Position) -> GameResult:
        """Determine the current game result."""
        outcome = Rules.outcome(position)
        return GameResult.IN_PROGRESS if outcome is None else outcome.result
