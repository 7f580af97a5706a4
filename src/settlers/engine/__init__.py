"""Core game engine: board topology, rules and the turn controller."""

from .board import Board, generate_board
from .controller import ActionResult, GameController
from .game_state import GameState, Player, new_game
from .types import Action, ActionType, BuildingType, DevCardType, Phase, PieceType, ResourceType

__all__ = [
    "Board",
    "GameState",
    "GameController",
    "ActionResult",
    "Player",
    "Phase",
    "Action",
    "ActionType",
    "BuildingType",
    "DevCardType",
    "PieceType",
    "ResourceType",
    "generate_board",
    "new_game",
]
