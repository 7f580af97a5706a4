"""Random agent for baseline opponents."""

from __future__ import annotations

import random
from typing import List

from settlers.engine.controller import ActionResult, GameController
from settlers.engine.types import Action, ActionType


class RandomAgent:
    """Picks uniformly among legal actions, ending its turn now and then."""

    def __init__(self, player_id: int, seed: int | None = None, end_turn_bias: float = 0.3):
        self.player_id = player_id
        self.rng = random.Random(seed)
        self.end_turn_bias = end_turn_bias

    def select_action(self, legal_actions: List[Action]) -> Action:
        if not legal_actions:
            raise ValueError("No legal actions available")
        for action in legal_actions:
            if action.action_type == ActionType.DISCARD and action.payload.get("player_id") == self.player_id:
                return action
        end_turn = [a for a in legal_actions if a.action_type == ActionType.END_TURN]
        if end_turn and (len(legal_actions) == 1 or self.rng.random() < self.end_turn_bias):
            return end_turn[0]
        return self.rng.choice(legal_actions)

    def act(self, controller: GameController) -> ActionResult:
        action = self.select_action(controller.legal_actions())
        return controller.apply(action)

    def reset(self) -> None:
        pass


def create_agents(seed: int | None = None, num_players: int = 4) -> List[RandomAgent]:
    """One agent per seat, each on its own generator derived from ``seed``."""
    return [
        RandomAgent(player_id=pid, seed=None if seed is None else seed + pid)
        for pid in range(num_players)
    ]
