"""Game management layer: controller, players and game state.

Quick start::

    from knightly.core.enums import Color
    from knightly.game import AIPlayer, GameController, HumanPlayer

    ctrl = GameController()
    ctrl.new_game(
        white=HumanPlayer(Color.WHITE, "Alice"),
        black=AIPlayer(Color.BLACK, level=2),
    )
    ctrl.submit_move("e4")  # Black replies before this returns
"""

from knightly.game.controller import GameController, GameEvents
from knightly.game.player import AIPlayer, HumanPlayer, Player
from knightly.game.state import (
    DrawOffer,
    GamePhase,
    GameState,
    MoveRecord,
    MoveRequest,
    SquareView,
)

__all__ = [
    "AIPlayer",
    "DrawOffer",
    "GameController",
    "GameEvents",
    "GamePhase",
    "GameState",
    "HumanPlayer",
    "MoveRecord",
    "MoveRequest",
    "Player",
    "SquareView",
]
