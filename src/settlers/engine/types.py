from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple


class ResourceType(str, Enum):
    WOOD = "wood"
    BRICK = "brick"
    SHEEP = "sheep"
    WHEAT = "wheat"
    ORE = "ore"
    DESERT = "desert"
    GOLD = "gold"

    @property
    def tradeable(self) -> bool:
        return self in TRADEABLE_RESOURCES


TRADEABLE_RESOURCES: Tuple[ResourceType, ...] = (
    ResourceType.WOOD,
    ResourceType.BRICK,
    ResourceType.SHEEP,
    ResourceType.WHEAT,
    ResourceType.ORE,
)


class DevCardType(str, Enum):
    KNIGHT = "knight"
    ROAD_BUILDING = "road_building"
    YEAR_OF_PLENTY = "year_of_plenty"
    MONOPOLY = "monopoly"
    VICTORY_POINT = "victory_point"


class BuildingType(str, Enum):
    SETTLEMENT = "settlement"
    CITY = "city"


class PieceType(str, Enum):
    ROAD = "road"
    SETTLEMENT = "settlement"
    CITY = "city"
    SHIP = "ship"


class Phase(str, Enum):
    SETUP1 = "setup1"
    SETUP2 = "setup2"
    PLAYING = "playing"
    TRADING = "trading"
    BUILDING = "building"
    ROBBING = "robbing"
    DISCARDING = "discarding"
    GAME_OVER = "game_over"


SETUP_PHASES = (Phase.SETUP1, Phase.SETUP2)
MAIN_PHASES = (Phase.PLAYING, Phase.TRADING, Phase.BUILDING)

GENERIC_PORT = "generic"

ResourceBank = Dict[ResourceType, int]


@dataclass
class Hex:
    hex_id: int
    q: int
    r: int
    resource: ResourceType
    number: Optional[int]
    has_robber: bool = False

    @property
    def axial(self) -> Tuple[int, int]:
        return (self.q, self.r)


@dataclass
class Vertex:
    vertex_id: int
    q: int
    r: int
    corner: int
    coord: Tuple[int, int]
    owner: Optional[int] = None
    building: Optional[BuildingType] = None

    @property
    def occupied(self) -> bool:
        return self.owner is not None


@dataclass
class Edge:
    edge_id: int
    q: int
    r: int
    side: int
    vertex_a: int
    vertex_b: int
    owner: Optional[int] = None
    piece: Optional[PieceType] = None

    @property
    def vertices(self) -> Tuple[int, int]:
        return (self.vertex_a, self.vertex_b)

    @property
    def occupied(self) -> bool:
        return self.owner is not None


@dataclass(frozen=True)
class Port:
    port_id: int
    q: int
    r: int
    side: int
    resource: str
    ratio: int


@dataclass(frozen=True)
class LogEntry:
    turn: int
    player: int
    action: str
    timestamp: float


class ActionType(str, Enum):
    PLACE_SETUP_SETTLEMENT = "place_setup_settlement"
    PLACE_SETUP_ROAD = "place_setup_road"
    ROLL_DICE = "roll_dice"
    DISCARD = "discard"
    MOVE_ROBBER = "move_robber"
    BUILD = "build"
    BUY_DEV_CARD = "buy_dev_card"
    PLAY_DEV_CARD = "play_dev_card"
    TRADE_BANK = "trade_bank"
    END_TURN = "end_turn"


@dataclass(frozen=True)
class Action:
    action_type: ActionType
    payload: Dict[str, object]
