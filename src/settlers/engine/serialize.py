"""Plain-dict snapshots of a GameState.

The topology index is not stored: it is rebuilt from the hex coordinates,
which reproduces the same vertex/edge ids, and occupancy is laid back on top.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any, Dict

from settlers.config import RulesConfig

from .board import STANDARD_LAYOUT, Board, build_topology
from .game_state import GameState, PieceCounts, Player
from .types import (
    BuildingType,
    DevCardType,
    Hex,
    LogEntry,
    Phase,
    PieceType,
    ResourceType,
)

SNAPSHOT_VERSION = 1

MALFORMED_ERRORS = (AttributeError, IndexError, KeyError, TypeError)


def _resources_to_dict(resources: Dict[ResourceType, int]) -> Dict[str, int]:
    return {res.value: int(amount) for res, amount in resources.items()}


def player_to_dict(player: Player) -> Dict[str, Any]:
    return {
        "player_id": player.player_id,
        "name": player.name,
        "color": player.color,
        "resources": _resources_to_dict(player.resources),
        "pieces": asdict(player.pieces),
        "dev_cards": [card.value for card in player.dev_cards],
        "knights_played": player.knights_played,
        "longest_road": player.longest_road,
        "is_human": player.is_human,
    }


def player_from_dict(data: Dict[str, Any]) -> Player:
    return Player(
        player_id=int(data["player_id"]),
        name=data["name"],
        color=data["color"],
        resources={ResourceType(key): int(value) for key, value in data["resources"].items()},
        pieces=PieceCounts(**data["pieces"]),
        dev_cards=[DevCardType(card) for card in data["dev_cards"]],
        knights_played=int(data["knights_played"]),
        longest_road=int(data["longest_road"]),
        is_human=bool(data["is_human"]),
    )


def board_to_dict(board: Board) -> Dict[str, Any]:
    return {
        "hexes": [
            {
                "hex_id": h.hex_id,
                "q": h.q,
                "r": h.r,
                "resource": h.resource.value,
                "number": h.number,
                "has_robber": h.has_robber,
            }
            for h in board.hexes
        ],
        "vertices": [
            {
                "vertex_id": v.vertex_id,
                "owner": v.owner,
                "building": v.building.value if v.building else None,
            }
            for v in board.vertices
        ],
        "edges": [
            {
                "edge_id": e.edge_id,
                "owner": e.owner,
                "piece": e.piece.value if e.piece else None,
            }
            for e in board.edges
        ],
        "ports": [asdict(port) for port in board.ports],
    }


def board_from_dict(data: Dict[str, Any]) -> Board:
    try:
        return _board_from_dict(data)
    except MALFORMED_ERRORS as exc:
        raise ValueError(f"Malformed snapshot board: {exc!r}") from exc


def _board_from_dict(data: Dict[str, Any]) -> Board:
    hexes = [
        Hex(
            hex_id=int(h["hex_id"]),
            q=int(h["q"]),
            r=int(h["r"]),
            resource=ResourceType(h["resource"]),
            number=h["number"],
            has_robber=bool(h["has_robber"]),
        )
        for h in data["hexes"]
    ]
    if len(hexes) != len(STANDARD_LAYOUT):
        raise ValueError(f"Snapshot has {len(hexes)} hexes, expected {len(STANDARD_LAYOUT)}")
    vertices, edges, ports, topology = build_topology([(h.q, h.r) for h in hexes])
    if len(vertices) != len(data["vertices"]) or len(edges) != len(data["edges"]):
        raise ValueError("Snapshot does not match the board topology")

    for vertex, saved in zip(vertices, data["vertices"]):
        vertex.owner = saved["owner"]
        vertex.building = BuildingType(saved["building"]) if saved["building"] else None
    for edge, saved in zip(edges, data["edges"]):
        edge.owner = saved["owner"]
        edge.piece = PieceType(saved["piece"]) if saved["piece"] else None
    return Board(hexes=hexes, vertices=vertices, edges=edges, ports=ports, topology=topology)


def state_to_dict(state: GameState) -> Dict[str, Any]:
    return {
        "version": SNAPSHOT_VERSION,
        "players": [player_to_dict(p) for p in state.players],
        "board": board_to_dict(state.board),
        "current_player": state.current_player,
        "phase": state.phase.value,
        "dice": list(state.dice) if state.dice is not None else None,
        "turn": state.turn,
        "dev_deck": [card.value for card in state.dev_deck],
        "longest_road_holder": state.longest_road_holder,
        "largest_army_holder": state.largest_army_holder,
        "winner": state.winner,
        "log": [asdict(entry) for entry in state.log],
        "setup_completed": list(state.setup_completed),
        "setup_vertex": state.setup_vertex,
        "pending_discards": list(state.pending_discards),
        "robber_hex": state.robber_hex,
        "steal_from": state.steal_from,
        "robber_return_phase": state.robber_return_phase.value,
        "bought_this_turn": [card.value for card in state.bought_this_turn],
        "dev_card_played_this_turn": state.dev_card_played_this_turn,
        "free_roads": state.free_roads,
        "config": state.config.to_dict(),
    }


def state_from_dict(data: Dict[str, Any]) -> GameState:
    """Rebuild a GameState; any malformed or mismatched snapshot raises ValueError."""
    if not isinstance(data, dict):
        raise ValueError("Snapshot must be a mapping")
    version = data.get("version")
    if version != SNAPSHOT_VERSION:
        raise ValueError(f"Unsupported snapshot version: {version!r}")
    try:
        return _state_from_dict(data)
    except MALFORMED_ERRORS as exc:
        raise ValueError(f"Malformed snapshot: {exc!r}") from exc


def _state_from_dict(data: Dict[str, Any]) -> GameState:
    dice = data["dice"]
    return GameState(
        players=[player_from_dict(p) for p in data["players"]],
        board=board_from_dict(data["board"]),
        current_player=int(data["current_player"]),
        phase=Phase(data["phase"]),
        dice=(int(dice[0]), int(dice[1])) if dice is not None else None,
        turn=int(data["turn"]),
        dev_deck=[DevCardType(card) for card in data["dev_deck"]],
        longest_road_holder=data["longest_road_holder"],
        largest_army_holder=data["largest_army_holder"],
        winner=data["winner"],
        log=[LogEntry(**entry) for entry in data["log"]],
        setup_completed=list(data["setup_completed"]),
        setup_vertex=data["setup_vertex"],
        pending_discards=list(data["pending_discards"]),
        robber_hex=data["robber_hex"],
        steal_from=data["steal_from"],
        robber_return_phase=Phase(data["robber_return_phase"]),
        bought_this_turn=[DevCardType(card) for card in data["bought_this_turn"]],
        dev_card_played_this_turn=bool(data["dev_card_played_this_turn"]),
        free_roads=int(data["free_roads"]),
        config=RulesConfig.from_dict(data["config"]),
    )


def dumps(state: GameState, **kwargs: Any) -> str:
    return json.dumps(state_to_dict(state), **kwargs)


def loads(raw: str) -> GameState:
    return state_from_dict(json.loads(raw))
