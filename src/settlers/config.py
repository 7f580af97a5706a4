from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict


@dataclass(frozen=True)
class RulesConfig:
    num_players: int = 4
    victory_points_to_win: int = 10
    longest_road_min: int = 5
    largest_army_min: int = 3
    discard_threshold: int = 7
    bank_trade_ratio: int = 4
    max_roads: int = 15
    max_settlements: int = 5
    max_cities: int = 4
    max_ships: int = 15

    def __post_init__(self) -> None:
        if self.num_players != 4:
            raise ValueError("Only four-player games are supported")
        for name, value in asdict(self).items():
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "RulesConfig":
        known = {key: int(value) for key, value in data.items() if key in cls.__dataclass_fields__}
        return cls(**known)


DEFAULT_CONFIG = RulesConfig()
