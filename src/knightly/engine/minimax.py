"""Fixed-depth minimax search with alpha-beta pruning.

Every branch is searched on its own clone of the position, so nothing the
search does is visible to the caller's :class:`Position`.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from knightly.core.enums import Color
from knightly.core.move import Move
from knightly.core.move_generator import MoveGenerator
from knightly.core.position import Position
from knightly.core.rules import Rules
from knightly.engine.evaluate import PIECE_VALUES, evaluate

CancelCheck = Callable[[], bool]

_INF_SCORE = 1_000_000


class SearchCancelled(Exception):
    """Raised inside a search when its cancel check fires."""


def _never_cancelled() -> bool:
    return False


def _capture_value(move: Move) -> int:
    return PIECE_VALUES[move.captured] if move.captured is not None else 0


def order_moves(moves: list[Move]) -> list[Move]:
    """Most valuable capture first; ties keep generation order."""
    return sorted(moves, key=_capture_value, reverse=True)


@dataclass(frozen=True, slots=True)
class ScoredMove:
    """A root move with its minimax value (White's point of view)."""

    move: Move
    score: int


class MinimaxSearchEngine:
    """Plain minimax + alpha-beta: White maximises, Black minimises.

    Leaves are scored with :func:`evaluate`. Positions with no legal moves
    and rule draws are leaves too, whatever depth remains.
    """

    __slots__ = ("_cancel_check", "_nodes")

    def __init__(self) -> None:
        self._nodes = 0
        self._cancel_check: CancelCheck = _never_cancelled

    @property
    def nodes(self) -> int:
        """Nodes visited by the most recent search."""
        return self._nodes

    # -- Root ---------------------------------------------------------------

    def score_root_moves(
        self,
        position: Position,
        depth: int,
        is_cancelled: CancelCheck | None = None,
    ) -> list[ScoredMove]:
        """Minimax value of every legal root move, in generation order.

        *depth* counts the root ply, so each reply is searched to
        ``depth - 1``. Each root move gets a full window.
        """
        if depth <= 0:
            raise ValueError("Search depth must be >= 1")

        self._nodes = 0
        self._cancel_check = is_cancelled or _never_cancelled

        scored: list[ScoredMove] = []
        for move in MoveGenerator(position).generate_legal_moves():
            child = position.copy()
            child.make_move(move)
            score = self.minimax(child, depth - 1, -_INF_SCORE, _INF_SCORE)
            scored.append(ScoredMove(move, score))
        return scored

    # -- Tree ---------------------------------------------------------------

    def minimax(self, position: Position, depth: int, alpha: int, beta: int) -> int:
        """Value of *position* searched *depth* plies deep."""
        self._nodes += 1
        if self._cancel_check():
            raise SearchCancelled

        moves = MoveGenerator(position).generate_legal_moves()
        if depth == 0 or not moves or self._is_rule_draw(position):
            return evaluate(position, moves)

        if position.side_to_move == Color.WHITE:
            best = -_INF_SCORE
            for move in order_moves(moves):
                child = position.copy()
                child.make_move(move)
                score = self.minimax(child, depth - 1, alpha, beta)
                best = max(best, score)
                alpha = max(alpha, score)
                if beta <= alpha:
                    break
            return best

        best = _INF_SCORE
        for move in order_moves(moves):
            child = position.copy()
            child.make_move(move)
            score = self.minimax(child, depth - 1, alpha, beta)
            best = min(best, score)
            beta = min(beta, score)
            if beta <= alpha:
                break
        return best

    @staticmethod
    def _is_rule_draw(position: Position) -> bool:
        return (
            Rules.is_insufficient_material(position)
            or Rules.is_fifty_move_rule(position)
            or Rules.is_threefold_repetition(position)
        )
