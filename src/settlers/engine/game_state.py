from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from settlers.config import DEFAULT_CONFIG, RulesConfig

from .board import Board, generate_board
from .types import (
    TRADEABLE_RESOURCES,
    DevCardType,
    LogEntry,
    Phase,
    ResourceBank,
)

PLAYER_NAMES = ["You", "Red", "Blue", "Orange"]
PLAYER_COLORS = ["#e74c3c", "#3498db", "#ecf0f1", "#e67e22"]

DEV_CARDS: List[DevCardType] = (
    [DevCardType.KNIGHT] * 14
    + [DevCardType.ROAD_BUILDING] * 5
    + [DevCardType.YEAR_OF_PLENTY] * 4
    + [DevCardType.MONOPOLY] * 4
    + [DevCardType.VICTORY_POINT] * 4
)


def empty_resources() -> ResourceBank:
    return {resource: 0 for resource in TRADEABLE_RESOURCES}


@dataclass
class PieceCounts:
    roads: int = 15
    settlements: int = 5
    cities: int = 4
    ships: int = 15


@dataclass
class Player:
    player_id: int
    name: str
    color: str
    resources: ResourceBank = field(default_factory=empty_resources)
    pieces: PieceCounts = field(default_factory=PieceCounts)
    dev_cards: List[DevCardType] = field(default_factory=list)
    knights_played: int = 0
    longest_road: int = 0
    is_human: bool = False

    def total_resources(self) -> int:
        return sum(self.resources.values())


@dataclass
class GameState:
    players: List[Player]
    board: Board
    current_player: int = 0
    phase: Phase = Phase.SETUP1
    dice: Optional[Tuple[int, int]] = None
    turn: int = 1
    dev_deck: List[DevCardType] = field(default_factory=list)
    longest_road_holder: Optional[int] = None
    largest_army_holder: Optional[int] = None
    winner: Optional[int] = None
    log: List[LogEntry] = field(default_factory=list)
    setup_completed: List[int] = field(default_factory=list)
    setup_vertex: Optional[int] = None
    pending_discards: List[int] = field(default_factory=list)
    robber_hex: Optional[int] = None
    steal_from: Optional[int] = None
    robber_return_phase: Phase = Phase.PLAYING
    bought_this_turn: List[DevCardType] = field(default_factory=list)
    dev_card_played_this_turn: bool = False
    free_roads: int = 0
    config: RulesConfig = DEFAULT_CONFIG

    def get_player(self, player_id: int) -> Player | None:
        if 0 <= player_id < len(self.players):
            return self.players[player_id]
        return None

    @property
    def active_player(self) -> Player:
        return self.players[self.current_player]


def create_players(config: RulesConfig = DEFAULT_CONFIG) -> List[Player]:
    return [
        Player(
            player_id=pid,
            name=PLAYER_NAMES[pid],
            color=PLAYER_COLORS[pid],
            pieces=PieceCounts(
                roads=config.max_roads,
                settlements=config.max_settlements,
                cities=config.max_cities,
                ships=config.max_ships,
            ),
            is_human=pid == 0,
        )
        for pid in range(config.num_players)
    ]


def new_game(
    seed: int | None = None,
    rng: random.Random | None = None,
    config: RulesConfig = DEFAULT_CONFIG,
) -> GameState:
    """Create a fresh game: shuffled board, shuffled dev deck, setup phase."""
    if rng is None:
        rng = random.Random(seed)

    board = generate_board(rng)
    deck = list(DEV_CARDS)
    rng.shuffle(deck)

    robber = board.robber_hex()
    return GameState(
        players=create_players(config),
        board=board,
        dev_deck=deck,
        robber_hex=robber.hex_id if robber is not None else None,
        config=config,
    )


def resource_summary(resources: Dict) -> str:
    return ", ".join(f"{res.value}:{resources.get(res, 0)}" for res in TRADEABLE_RESOURCES)
