"""Game participants.

Humans move through :meth:`GameController.submit_move`. An :class:`AIPlayer`
owns a difficulty level and a :class:`MoveSelector`. It either answers on
the spot or, when given a ``dispatch`` hook, hands the search to a
background service whose answer comes back through ``submit_move``.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeAlias

from knightly.core.enums import Color
from knightly.engine.evaluate import evaluate
from knightly.engine.selector import (
    DEFAULT_LEVEL,
    LevelConfig,
    MoveSelector,
    Selection,
    level_config,
)

if TYPE_CHECKING:
    from knightly.core.position import Position

# An AI turns down a draw while it is this far ahead (centipawns).
DRAW_REFUSAL_MARGIN = 100

Dispatch = Callable[["Position", int], object]


@dataclass(frozen=True, slots=True)
class HumanPlayer:
    color: Color
    name: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            object.__setattr__(self, "name", f"Player ({self.color})")


@dataclass(slots=True)
class AIPlayer:
    """A computer opponent at a fixed difficulty level.

    Args:
        color: Side the AI plays.
        level: Difficulty, validated against the level table.
        name: Display name; defaults to one naming the level.
        selector: Picks the move. Pass one with a seeded RNG for
            reproducible games.
        dispatch: ``(position, level) -> Any``. When set, the controller
            calls it with a copy of the position instead of searching
            inline. In the GUI this is :meth:`EngineService.request_move`.
        on_cancel: ``() -> Any``, abandons a dispatched search.
    """

    color: Color
    level: int = DEFAULT_LEVEL
    name: str = ""
    selector: MoveSelector = field(default_factory=MoveSelector, repr=False)
    dispatch: Dispatch | None = field(default=None, repr=False)
    on_cancel: Callable[[], object] | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        level_config(self.level)
        if not self.name:
            self.name = f"Knightly (level {self.level})"

    @property
    def config(self) -> LevelConfig:
        return level_config(self.level)

    @property
    def is_background(self) -> bool:
        """True when searches run elsewhere and answer asynchronously."""
        return self.dispatch is not None

    def choose_move(self, position: Position) -> Selection | None:
        """Search *position* now and return the pick (``None`` if game over)."""
        return self.selector.select(position, self.level)

    def start_search(self, position: Position) -> None:
        """Hand *position* to the background service."""
        if self.dispatch is None:
            raise RuntimeError(f"{self.name} has no background dispatch")
        self.dispatch(position, self.level)

    def cancel(self) -> None:
        if self.on_cancel is not None:
            self.on_cancel()

    def accepts_draw(self, position: Position) -> bool:
        """Agree to a draw unless the static score has this side clearly ahead."""
        score = evaluate(position)
        if self.color == Color.WHITE:
            return score <= DRAW_REFUSAL_MARGIN
        return score >= -DRAW_REFUSAL_MARGIN


Player: TypeAlias = HumanPlayer | AIPlayer
