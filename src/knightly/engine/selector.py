"""Difficulty levels and AI move selection."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from time import perf_counter
from typing import Final

from knightly.core.enums import Color
from knightly.core.move import Move
from knightly.core.position import Position
from knightly.core.rules import Rules
from knightly.engine.evaluate import evaluate
from knightly.engine.minimax import CancelCheck, MinimaxSearchEngine, ScoredMove

_LOGGER = logging.getLogger(__name__)

_TOP_CANDIDATES = 3


@dataclass(frozen=True, slots=True)
class LevelConfig:
    """Search depth and the percentage chance of a non-best pick."""

    depth: int
    randomness: int


LEVELS: Final[dict[int, LevelConfig]] = {
    1: LevelConfig(depth=1, randomness=50),
    2: LevelConfig(depth=2, randomness=30),
    3: LevelConfig(depth=2, randomness=15),
    4: LevelConfig(depth=3, randomness=10),
    5: LevelConfig(depth=3, randomness=5),
    6: LevelConfig(depth=4, randomness=3),
    7: LevelConfig(depth=4, randomness=1),
    8: LevelConfig(depth=5, randomness=0),
}
DEFAULT_LEVEL: Final = 3


def level_config(level: int) -> LevelConfig:
    """Look up *level*; unknown levels are an error."""
    try:
        return LEVELS[level]
    except KeyError:
        raise ValueError(
            f"Unknown difficulty level {level!r} (expected {min(LEVELS)}-{max(LEVELS)})"
        ) from None


@dataclass(frozen=True, slots=True)
class Selection:
    """The chosen move and how it was arrived at."""

    move: Move
    score: int
    candidates: tuple[ScoredMove, ...]
    randomized: bool
    think_time_ms: int


class MoveSelector:
    """Maps a difficulty level to a search and picks the AI's move.

    Root moves are ranked best-first for the side to move. With probability
    equal to the level's randomness the pick is drawn uniformly from the top
    three instead of taking the best one.
    """

    __slots__ = ("_engine", "_rng")

    def __init__(
        self,
        rng: random.Random | None = None,
        engine: MinimaxSearchEngine | None = None,
    ) -> None:
        self._rng = rng if rng is not None else random.Random()
        self._engine = engine if engine is not None else MinimaxSearchEngine()

    def select(
        self,
        position: Position,
        level: int = DEFAULT_LEVEL,
        is_cancelled: CancelCheck | None = None,
    ) -> Selection | None:
        """Pick a move for the side to move, or ``None`` if there is none."""
        config = level_config(level)
        started = perf_counter()
        work = position.copy()
        if Rules.is_game_over(work):
            return None

        scored = self._engine.score_root_moves(work, config.depth, is_cancelled)
        if not scored:
            return None

        maximizing = position.side_to_move == Color.WHITE
        ranked = sorted(
            scored, key=lambda item: -item.score if maximizing else item.score
        )

        randomized = (
            config.randomness > 0 and self._rng.random() * 100 < config.randomness
        )
        if randomized:
            pick = self._rng.choice(ranked[:_TOP_CANDIDATES])
        else:
            pick = ranked[0]

        think_time_ms = int((perf_counter() - started) * 1000)
        _LOGGER.debug(
            "Level %d (depth %d): picked %s score=%d random=%s in %d ms",
            level,
            config.depth,
            pick.move,
            pick.score,
            randomized,
            think_time_ms,
        )
        return Selection(
            move=pick.move,
            score=pick.score,
            candidates=tuple(ranked),
            randomized=randomized,
            think_time_ms=think_time_ms,
        )


def request_move(
    position: Position,
    level: int = DEFAULT_LEVEL,
    rng: random.Random | None = None,
) -> Move | None:
    """AI move for *position* at *level*; ``None`` at a terminal position."""
    selection = MoveSelector(rng=rng).select(position, level)
    return selection.move if selection is not None else None


__all__ = [
    "DEFAULT_LEVEL",
    "LEVELS",
    "LevelConfig",
    "MoveSelector",
    "Selection",
    "evaluate",
    "level_config",
    "request_move",
]
