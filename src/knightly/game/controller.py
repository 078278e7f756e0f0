"""Turn loop for one game between any mix of humans and AIs.

Listeners subscribe through :class:`GameEvents`. Everything runs on the
caller's thread: an inline AI answers before the triggering call returns,
a background AI answers later through :meth:`GameController.submit_move`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from knightly.core.enums import Color
from knightly.core.move import Move
from knightly.core.rules import GameOutcome
from knightly.game.player import AIPlayer, Player
from knightly.game.state import DrawOffer, GamePhase, GameState, MoveRequest

_LOGGER = logging.getLogger(__name__)

MoveListener = Callable[[Move, str, GameState], None]  # move, san, state
OutcomeListener = Callable[[GameOutcome], None]
PhaseListener = Callable[[GamePhase], None]


@dataclass
class GameEvents:
    on_move: list[MoveListener] = field(default_factory=list)
    on_game_over: list[OutcomeListener] = field(default_factory=list)
    on_phase_changed: list[PhaseListener] = field(default_factory=list)


class GameController:
    """Applies moves, hands the turn to the next player and reports results.

    Seats without a player are treated as human.
    """

    __slots__ = ("_state", "_seats", "events")

    def __init__(self) -> None:
        self._state = GameState()
        self._seats: dict[Color, Player] = {}
        self.events = GameEvents()

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def current_player(self) -> Player | None:
        return self._seats.get(self._state.side_to_move)

    def player(self, color: Color) -> Player | None:
        return self._seats.get(color)

    # ── Game lifecycle ───────────────────────────────────────────────────

    def new_game(self, white: Player, black: Player, fen: str | None = None) -> None:
        """Seat both players and start from *fen* (standard start if omitted).

        A bad FEN raises ``ValueError`` and the running game carries on.
        """
        fresh = GameState()
        fresh.setup(fen)

        self._abandon_search()
        self._seats = {Color.WHITE: white, Color.BLACK: black}
        self._state = fresh
        _LOGGER.info("New game: %s vs %s", white.name, black.name)

        if fresh.is_game_over:
            self._announce_outcome()
            return
        self._hand_over_turn()

    def submit_move(self, move: Move | MoveRequest | str) -> bool:
        """Play *move* for the side to move; ``False`` leaves everything as is."""
        if self._state.phase not in (GamePhase.AWAITING_MOVE, GamePhase.THINKING):
            return False
        if not self._play(move):
            return False
        if not self._state.is_game_over:
            self._hand_over_turn()
        return True

    def undo_move(self) -> bool:
        """Take back moves until a human is to move again.

        Against an AI that means the AI's reply and the human's move, or
        just the human's move while the AI is still thinking about it. The
        request is refused when no human seat would end up on move.
        """
        if self._state.is_game_over:
            return False

        mover = self._state.side_to_move
        plies = 1 if self._is_human(mover.opposite) else 2
        if len(self._state.move_history) < plies:
            return False
        if plies == 2 and not self._is_human(mover):
            return False

        self._abandon_search()
        for _ in range(plies):
            self._state.undo()
        self._hand_over_turn()
        return True

    # ── Endings ──────────────────────────────────────────────────────────

    def resign(self, color: Color) -> None:
        if self._state.is_game_over:
            return
        self._abandon_search()
        self._state.resign(color)
        self._announce_outcome()

    def flag_fall(self, color: Color) -> None:
        """*color* ran out of time on an external clock."""
        if self._state.is_game_over:
            return
        self._abandon_search()
        self._state.flag_fall(color)
        self._announce_outcome()

    def offer_draw(self, color: Color) -> DrawOffer:
        """*color* offers a draw.

        An AI opponent answers at once from the static score of the current
        position. A human opponent answers later through
        :meth:`accept_draw` or :meth:`decline_draw`.
        """
        state = self._state
        if state.is_game_over or state.draw_offer == DrawOffer.OFFERED:
            return state.draw_offer

        opponent = self._seats.get(color.opposite)
        if isinstance(opponent, AIPlayer):
            if opponent.accepts_draw(state.position):
                _LOGGER.info("%s accepts the draw offer", opponent.name)
                self._conclude_draw()
            else:
                _LOGGER.info("%s declines the draw offer", opponent.name)
                state.draw_offer = DrawOffer.DECLINED
                state.draw_offer_by = None
            return state.draw_offer

        state.draw_offer = DrawOffer.OFFERED
        state.draw_offer_by = color
        return state.draw_offer

    def accept_draw(self, color: Color) -> None:
        """The opponent of the offering side agrees."""
        state = self._state
        if state.draw_offer != DrawOffer.OFFERED:
            return
        if state.draw_offer_by in (None, color):
            return
        self._conclude_draw()

    def decline_draw(self) -> None:
        if self._state.draw_offer != DrawOffer.OFFERED:
            return
        self._state.draw_offer = DrawOffer.DECLINED
        self._state.draw_offer_by = None

    # ── Internals ────────────────────────────────────────────────────────

    def _is_human(self, color: Color) -> bool:
        return not isinstance(self._seats.get(color), AIPlayer)

    def _play(self, move: Move | MoveRequest | str) -> bool:
        record = self._state.move(move)
        if record is None:
            return False
        for listener in self.events.on_move:
            listener(record.move, record.san, self._state)
        if self._state.is_game_over:
            self._announce_outcome()
        return True

    def _hand_over_turn(self) -> None:
        """Prompt whoever is to move.

        Inline AIs are played out in this loop, so an AI-vs-AI game runs to
        the end without recursing once per move.
        """
        while not self._state.is_game_over:
            seat = self.current_player
            if not isinstance(seat, AIPlayer):
                self._set_phase(GamePhase.AWAITING_MOVE)
                return

            self._set_phase(GamePhase.THINKING)
            if seat.is_background:
                seat.start_search(self._state.position.copy())
                return

            selection = seat.choose_move(self._state.position)
            if selection is None or not self._play(selection.move):
                _LOGGER.error("%s produced no playable move", seat.name)
                self._set_phase(GamePhase.AWAITING_MOVE)
                return

    def _abandon_search(self) -> None:
        if self._state.phase != GamePhase.THINKING:
            return
        seat = self.current_player
        if isinstance(seat, AIPlayer):
            seat.cancel()

    def _conclude_draw(self) -> None:
        self._abandon_search()
        self._state.draw_offer = DrawOffer.ACCEPTED
        self._state.draw_offer_by = None
        self._state.agree_draw()
        self._announce_outcome()

    def _set_phase(self, phase: GamePhase) -> None:
        self._state.phase = phase
        for listener in self.events.on_phase_changed:
            listener(phase)

    def _announce_outcome(self) -> None:
        outcome = self._state.outcome
        if outcome is None:
            return
        for listener in self.events.on_phase_changed:
            listener(GamePhase.GAME_OVER)
        for listener in self.events.on_game_over:
            listener(outcome)
