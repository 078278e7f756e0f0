"""AI package: evaluation, minimax search, move selection and Qt worker bridge."""

from knightly.engine.evaluate import PIECE_VALUES, evaluate
from knightly.engine.minimax import (
    CancelCheck,
    MinimaxSearchEngine,
    ScoredMove,
    SearchCancelled,
    order_moves,
)
from knightly.engine.selector import (
    DEFAULT_LEVEL,
    LEVELS,
    LevelConfig,
    MoveSelector,
    Selection,
    level_config,
    request_move,
)

__all__ = [
    "CancelCheck",
    "DEFAULT_LEVEL",
    "LEVELS",
    "LevelConfig",
    "MinimaxSearchEngine",
    "MoveSelector",
    "PIECE_VALUES",
    "ScoredMove",
    "SearchCancelled",
    "Selection",
    "evaluate",
    "level_config",
    "order_moves",
    "request_move",
]
