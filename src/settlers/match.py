"""Bot-only matches between random agents."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from typing import List, Optional

import numpy as np
from tqdm import tqdm

from settlers.agents import create_agents
from settlers.engine import rules
from settlers.engine.controller import GameController
from settlers.engine.types import Phase
from settlers.utils.repro import seed_everything

logger = logging.getLogger(__name__)


@dataclass
class MatchResult:
    winner: Optional[int]
    turns: int
    steps: int
    victory_points: List[int]


def play_match(seed: int | None = None, max_steps: int = 5000) -> MatchResult:
    controller = GameController(seed=seed)
    agents = create_agents(seed)
    steps = 0
    while controller.state.phase != Phase.GAME_OVER and steps < max_steps:
        agents[controller.acting_player()].act(controller)
        steps += 1

    state = controller.state
    if state.winner is None:
        logger.warning("Match with seed %s hit the step limit after %d steps", seed, steps)
    return MatchResult(
        winner=state.winner,
        turns=state.turn,
        steps=steps,
        victory_points=[rules.calculate_vp(p, state) for p in state.players],
    )


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run random-agent matches")
    parser.add_argument("--games", type=int, default=20)
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--max-steps", type=int, default=5000)
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    seed_everything(args.seed)

    results = [
        play_match(seed=args.seed + game, max_steps=args.max_steps)
        for game in tqdm(range(args.games), desc="matches")
    ]

    wins = np.zeros(4, dtype=int)
    for result in results:
        if result.winner is not None:
            wins[result.winner] += 1
    turns = np.array([r.turns for r in results if r.winner is not None])
    vps = np.array([r.victory_points for r in results])

    print(f"Games: {len(results)} | finished: {int(wins.sum())}")
    for pid in range(4):
        print(f"  P{pid}: {wins[pid]} wins, mean VP {vps[:, pid].mean():.2f}")
    if turns.size:
        print(f"Mean turns to win: {turns.mean():.1f}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
