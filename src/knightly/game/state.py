"""Game state: the live position, move history, outcome and persistence."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum, auto

from knightly.core.enums import Color, EndReason, GameResult, PieceType
from knightly.core.move import Move
from knightly.core.move_generator import MoveGenerator
from knightly.core.notation import (
    STARTING_FEN,
    build_pgn,
    move_to_san,
    parse_pgn_game,
    parse_san,
    position_from_fen,
    position_to_fen,
)
from knightly.core.notation.models import PgnMetadata
from knightly.core.position import Position
from knightly.core.rules import GameOutcome, Rules
from knightly.core.types import (
    SCAN_ORDER,
    Square,
    is_light_square,
    parse_square,
    square_name,
)

_LOGGER = logging.getLogger(__name__)


class GamePhase(IntEnum):
    """Where the game is in its turn cycle."""

    NOT_STARTED = auto()
    AWAITING_MOVE = auto()
    THINKING = auto()  # an AI search is out
    GAME_OVER = auto()


class DrawOffer(IntEnum):
    NONE = 0
    OFFERED = auto()
    ACCEPTED = auto()
    DECLINED = auto()


@dataclass(frozen=True, slots=True)
class MoveRequest:
    """A resolved human move intent: origin, target, optional promotion.

    Squares may be given as indices or names (``"e2"``).
    """

    from_sq: Square | str
    to_sq: Square | str
    promotion: PieceType | None = None


@dataclass
class MoveRecord:
    """A single entry in the move history."""

    move: Move
    san: str
    fen_before: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def was_capture(self) -> bool:
        return self.move.is_capture

    @property
    def was_check(self) -> bool:
        return self.san.endswith(("+", "#"))


@dataclass(frozen=True, slots=True)
class SquareView:
    """Render-ready description of one board square."""

    square: Square
    name: str
    is_light: bool
    piece_type: PieceType | None = None
    color: Color | None = None
    glyph: str = ""


@dataclass
class GameState:
    """Manages one game: position, phase, outcome, history, draw offers.

    A pure data/logic class, no threading and no UI. Illegal input never
    changes anything: :meth:`move` either applies a legal move completely
    or returns ``None``.
    """

    position: Position = field(default_factory=Position, init=False)
    phase: GamePhase = field(default=GamePhase.NOT_STARTED, init=False)
    outcome: GameOutcome | None = field(default=None, init=False)
    draw_offer: DrawOffer = field(default=DrawOffer.NONE, init=False)
    draw_offer_by: Color | None = field(default=None, init=False)
    move_history: list[MoveRecord] = field(default_factory=list, init=False)
    start_fen: str = field(default=STARTING_FEN, init=False)

    # ── Initialisation ───────────────────────────────────────────────────

    def setup(self, fen: str | None = None) -> None:
        """Initialise (or reset) the game, optionally from *fen*.

        A malformed FEN raises ``ValueError`` before anything is reset.
        """
        start_fen = fen or STARTING_FEN
        position = position_from_fen(start_fen)

        self.start_fen = start_fen
        self.position = position
        self.phase = GamePhase.AWAITING_MOVE
        self.outcome = None
        self.draw_offer = DrawOffer.NONE
        self.draw_offer_by = None
        self.move_history.clear()
        self._check_game_over()

    def load_fen(self, fen: str) -> None:
        """Start over from *fen*; history is discarded."""
        self.setup(fen)

    # ── Move application ─────────────────────────────────────────────────

    def resolve(self, move_input: str | MoveRequest | Move) -> Move | None:
        """Map SAN, a :class:`MoveRequest` or a :class:`Move` to a legal move."""
        if self.is_game_over:
            return None

        if isinstance(move_input, str):
            try:
                return parse_san(self.position, move_input)
            except ValueError:
                return None

        legal = MoveGenerator(self.position).generate_legal_moves()
        if isinstance(move_input, Move):
            return move_input if move_input in legal else None

        try:
            from_sq = _as_square(move_input.from_sq)
            to_sq = _as_square(move_input.to_sq)
        except ValueError:
            return None
        for move in legal:
            if move.from_sq != from_sq or move.to_sq != to_sq:
                continue
            # Promotions are generated queen first, so no choice means queen.
            if move_input.promotion is None or move.promotion == move_input.promotion:
                return move
        return None

    def move(self, move_input: str | MoveRequest | Move) -> MoveRecord | None:
        """Play a move if it is legal; ``None`` (and no change) otherwise."""
        move = self.resolve(move_input)
        if move is None:
            return None
        return self._apply(move)

    def _apply(self, move: Move) -> MoveRecord:
        fen_before = position_to_fen(self.position)
        san = move_to_san(self.position, move)
        self.position.make_move(move)

        record = MoveRecord(move=move, san=san, fen_before=fen_before)
        self.move_history.append(record)
        _LOGGER.debug("Applied %s (%s)", san, move)

        self.draw_offer = DrawOffer.NONE  # any move cancels a pending offer
        self.draw_offer_by = None
        self._check_game_over()
        return record

    def undo(self) -> MoveRecord | None:
        """Take back the last move by restoring its pre-move snapshot.

        The repetition history is carried over minus the undone position.
        Returns the removed record, or ``None`` if there is nothing to undo.
        """
        if not self.move_history:
            return None

        record = self.move_history.pop()
        key_history = self.position.key_history
        restored = position_from_fen(record.fen_before)
        restored.restore_key_history(key_history[:-1])
        self.position = restored

        self.outcome = None
        self.phase = GamePhase.AWAITING_MOVE
        self.draw_offer = DrawOffer.NONE
        self.draw_offer_by = None
        self._check_game_over()
        _LOGGER.debug("Undid %s", record.san)
        return record

    # ── Externally decided endings ───────────────────────────────────────

    def resign(self, color: Color) -> None:
        self._finish(GameOutcome.win(color.opposite, EndReason.RESIGNATION))

    def agree_draw(self) -> None:
        self._finish(GameOutcome.draw(EndReason.AGREEMENT))

    def flag_fall(self, color: Color) -> None:
        """Time ran out for *color*."""
        self._finish(GameOutcome.win(color.opposite, EndReason.TIMEOUT))

    # ── Query helpers ────────────────────────────────────────────────────

    @property
    def side_to_move(self) -> Color:
        return self.position.side_to_move

    @property
    def result(self) -> GameResult:
        if self.outcome is None:
            return GameResult.IN_PROGRESS
        return self.outcome.result

    @property
    def is_game_over(self) -> bool:
        return self.phase == GamePhase.GAME_OVER

    @property
    def is_in_check(self) -> bool:
        return Rules.is_in_check(self.position)

    @property
    def ply_count(self) -> int:
        """Number of half-moves played."""
        return len(self.move_history)

    @property
    def fullmove_display(self) -> int:
        """Current full-move number for display."""
        return self.position.fullmove_number

    @property
    def last_move(self) -> Move | None:
        return self.move_history[-1].move if self.move_history else None

    @property
    def sans(self) -> list[str]:
        return [record.san for record in self.move_history]

    def legal_moves(self, square: Square | str | None = None) -> list[Move]:
        """Legal moves, optionally only those starting on *square*."""
        if self.is_game_over:
            return []
        from_sq = _as_square(square) if square is not None else None
        return MoveGenerator(self.position).generate_legal_moves(from_sq)

    def board_snapshot(self) -> list[SquareView]:
        """All 64 squares in diagram order (rank 8 first, files a→h)."""
        views: list[SquareView] = []
        for sq in SCAN_ORDER:
            piece = self.position.piece_at(sq)
            views.append(
                SquareView(
                    square=sq,
                    name=square_name(sq),
                    is_light=is_light_square(sq),
                    piece_type=piece.piece_type if piece is not None else None,
                    color=piece.color if piece is not None else None,
                    glyph=piece.symbol if piece is not None else "",
                )
            )
        return views

    # ── Persistence ──────────────────────────────────────────────────────

    def fen(self) -> str:
        return position_to_fen(self.position)

    def pgn(self, metadata: PgnMetadata | None = None) -> str:
        """Export the game as PGN; unset tags get defaults."""
        token = self.outcome.token if self.outcome is not None else "*"
        headers = (metadata or PgnMetadata()).headers(token)

        start = position_from_fen(self.start_fen)
        if self.start_fen != STARTING_FEN:
            headers["SetUp"] = "1"
            headers["FEN"] = self.start_fen
        first_ply = (start.fullmove_number - 1) * 2 + int(start.side_to_move)
        return build_pgn(headers, self.sans, token, first_ply=first_ply)

    def load_pgn(self, text: str) -> bool:
        """Replace the game with the one in *text*.

        Malformed tags leave the game untouched. Otherwise the game restarts
        and moves are replayed until the first one that cannot be resolved;
        the position stays at the last good move and ``False`` is returned.
        """
        try:
            parsed = parse_pgn_game(text)
            start_fen = parsed.start_fen or STARTING_FEN
            position_from_fen(start_fen)
        except ValueError as exc:
            _LOGGER.warning("Rejected PGN: %s", exc)
            return False

        self.setup(start_fen)
        for ply, pgn_move in enumerate(parsed.moves, start=1):
            if self.move(pgn_move.san) is None:
                _LOGGER.warning(
                    "PGN replay stopped at ply %d: cannot play %r", ply, pgn_move.san
                )
                return False
        return True

    # ── Internal ─────────────────────────────────────────────────────────

    def _finish(self, outcome: GameOutcome) -> None:
        if self.is_game_over:
            return
        self.outcome = outcome
        self.phase = GamePhase.GAME_OVER

    def _check_game_over(self) -> None:
        outcome = Rules.outcome(self.position)
        if outcome is not None:
            self._finish(outcome)


def _as_square(square: Square | str) -> Square:
    return parse_square(square) if isinstance(square, str) else square
