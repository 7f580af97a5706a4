from __future__ import annotations

import logging
import random
import time
from typing import Dict, List, Mapping, Optional, Set, Tuple

import networkx as nx

from .game_state import GameState, Player, empty_resources
from .types import (
    GENERIC_PORT,
    TRADEABLE_RESOURCES,
    BuildingType,
    DevCardType,
    LogEntry,
    PieceType,
    ResourceBank,
    ResourceType,
)

logger = logging.getLogger(__name__)

BUILD_COSTS: Dict[PieceType, ResourceBank] = {
    PieceType.ROAD: {ResourceType.WOOD: 1, ResourceType.BRICK: 1},
    PieceType.SETTLEMENT: {
        ResourceType.WOOD: 1,
        ResourceType.BRICK: 1,
        ResourceType.WHEAT: 1,
        ResourceType.SHEEP: 1,
    },
    PieceType.CITY: {ResourceType.WHEAT: 2, ResourceType.ORE: 3},
    PieceType.SHIP: {ResourceType.WOOD: 1, ResourceType.SHEEP: 1},
}

DEV_CARD_COST: ResourceBank = {
    ResourceType.WHEAT: 1,
    ResourceType.SHEEP: 1,
    ResourceType.ORE: 1,
}


def _rng(rng: random.Random | None) -> random.Random:
    return rng if rng is not None else random.Random()


def roll_dice(rng: random.Random | None = None) -> Tuple[int, int]:
    rng = _rng(rng)
    return (rng.randint(1, 6), rng.randint(1, 6))


def can_afford(player: Player, cost: Mapping[ResourceType, int]) -> bool:
    return all(player.resources.get(res, 0) >= amount for res, amount in cost.items())


def deduct_resources(player: Player, cost: Mapping[ResourceType, int]) -> None:
    for res, amount in cost.items():
        if res not in player.resources:
            continue
        player.resources[res] = max(0, player.resources[res] - amount)


def grant_resources(player: Player, bundle: Mapping[ResourceType, int]) -> None:
    for res, amount in bundle.items():
        if amount <= 0 or not res.tradeable:
            continue
        player.resources[res] += amount


def distribute_resources(state: GameState, dice_sum: int) -> Dict[int, ResourceBank]:
    """Pay out every hex numbered ``dice_sum`` that is not blocked by the robber.

    Returns the awards per player id, including empty ones.
    """
    awards: Dict[int, ResourceBank] = {p.player_id: empty_resources() for p in state.players}
    if dice_sum == 7:
        return awards

    board = state.board
    for hex_ in board.hexes:
        if hex_.number != dice_sum or hex_.has_robber or not hex_.resource.tradeable:
            continue
        for vid in board.topology.hex_vertices[hex_.hex_id]:
            vertex = board.vertices[vid]
            if vertex.owner is None:
                continue
            amount = 2 if vertex.building == BuildingType.CITY else 1
            awards[vertex.owner][hex_.resource] += amount

    for pid, award in awards.items():
        grant_resources(state.players[pid], award)
    logger.debug("Distributed resources for roll %d: %s", dice_sum, awards)
    return awards


def distribute_setup_resources(state: GameState, player_id: int, vertex_id: int) -> ResourceBank:
    award = empty_resources()
    player = state.get_player(player_id)
    if player is None or state.board.get_vertex(vertex_id) is None:
        return award
    for hex_id in state.board.topology.vertex_hexes[vertex_id]:
        hex_ = state.board.hexes[hex_id]
        if hex_.resource.tradeable:
            award[hex_.resource] += 1
    grant_resources(player, award)
    return award


def is_valid_settlement_placement(state: GameState, vertex_id: int, player_id: int) -> bool:
    vertex = state.board.get_vertex(vertex_id)
    if vertex is None or state.get_player(player_id) is None:
        return False
    if vertex.occupied:
        return False
    for neighbor in state.board.topology.vertex_neighbors[vertex_id]:
        if state.board.vertices[neighbor].occupied:
            return False
    return True


def is_connected_to_road(state: GameState, vertex_id: int, player_id: int) -> bool:
    for edge_id in state.board.topology.vertex_edges.get(vertex_id, []):
        edge = state.board.edges[edge_id]
        if edge.owner == player_id and edge.piece == PieceType.ROAD:
            return True
    return False


def _road_touches_player(state: GameState, edge_id: int, player_id: int) -> bool:
    board = state.board
    edge = board.edges[edge_id]
    for vid in edge.vertices:
        vertex = board.vertices[vid]
        if vertex.owner == player_id:
            return True
        if vertex.owner is not None:
            # An opponent's building cuts the connection through this corner.
            continue
        for other_id in board.topology.vertex_edges[vid]:
            if other_id == edge_id:
                continue
            other = board.edges[other_id]
            if other.owner == player_id and other.piece == PieceType.ROAD:
                return True
    return False


def is_valid_road_placement(state: GameState, edge_id: int, player_id: int) -> bool:
    edge = state.board.get_edge(edge_id)
    if edge is None or state.get_player(player_id) is None:
        return False
    if edge.occupied:
        return False
    return _road_touches_player(state, edge_id, player_id)


def can_place_road_in_setup(state: GameState, edge_id: int, player_id: int) -> bool:
    board = state.board
    edge = board.get_edge(edge_id)
    if edge is None or state.get_player(player_id) is None:
        return False
    if edge.occupied:
        return False
    if not any(vertex.owner == player_id for vertex in board.vertices):
        return True
    for vid in edge.vertices:
        if board.vertices[vid].owner == player_id:
            return True
        for other_id in board.topology.vertex_edges[vid]:
            if board.edges[other_id].owner == player_id:
                return True
    return False


def place_settlement(state: GameState, vertex_id: int, player_id: int, setup: bool = False) -> bool:
    """Build a settlement; outside setup it must touch the player's road and is paid for."""
    player = state.get_player(player_id)
    if player is None or not is_valid_settlement_placement(state, vertex_id, player_id):
        return False
    if player.pieces.settlements <= 0:
        return False
    cost = BUILD_COSTS[PieceType.SETTLEMENT]
    if not setup:
        if not is_connected_to_road(state, vertex_id, player_id):
            return False
        if not can_afford(player, cost):
            return False
        deduct_resources(player, cost)

    vertex = state.board.vertices[vertex_id]
    vertex.owner = player_id
    vertex.building = BuildingType.SETTLEMENT
    player.pieces.settlements -= 1
    logger.debug("Player %d built a settlement on vertex %d", player_id, vertex_id)
    update_longest_road(state)
    return True


def place_road(
    state: GameState,
    edge_id: int,
    player_id: int,
    setup: bool = False,
    free: bool = False,
) -> bool:
    player = state.get_player(player_id)
    if player is None:
        return False
    if setup:
        legal = can_place_road_in_setup(state, edge_id, player_id)
    else:
        legal = is_valid_road_placement(state, edge_id, player_id)
    if not legal or player.pieces.roads <= 0:
        return False
    cost = BUILD_COSTS[PieceType.ROAD]
    if not (setup or free):
        if not can_afford(player, cost):
            return False
        deduct_resources(player, cost)

    edge = state.board.edges[edge_id]
    edge.owner = player_id
    edge.piece = PieceType.ROAD
    player.pieces.roads -= 1
    logger.debug("Player %d built a road on edge %d", player_id, edge_id)
    update_longest_road(state)
    return True


def upgrade_to_city(state: GameState, vertex_id: int, player_id: int) -> bool:
    player = state.get_player(player_id)
    vertex = state.board.get_vertex(vertex_id)
    if player is None or vertex is None:
        return False
    if vertex.owner != player_id or vertex.building != BuildingType.SETTLEMENT:
        return False
    cost = BUILD_COSTS[PieceType.CITY]
    if player.pieces.cities <= 0 or not can_afford(player, cost):
        return False

    deduct_resources(player, cost)
    vertex.building = BuildingType.CITY
    player.pieces.cities -= 1
    player.pieces.settlements += 1
    logger.debug("Player %d upgraded vertex %d to a city", player_id, vertex_id)
    return True


def buy_dev_card(state: GameState, player_id: int) -> Optional[DevCardType]:
    player = state.get_player(player_id)
    if player is None or not state.dev_deck:
        return None
    if not can_afford(player, DEV_CARD_COST):
        return None
    card = state.dev_deck.pop()
    deduct_resources(player, DEV_CARD_COST)
    player.dev_cards.append(card)
    logger.debug("Player %d bought a development card (%d left)", player_id, len(state.dev_deck))
    return card


def _take_card(state: GameState, player_id: int, card: DevCardType) -> Player | None:
    player = state.get_player(player_id)
    if player is None or card not in player.dev_cards:
        return None
    player.dev_cards.remove(card)
    return player


def play_knight(state: GameState, player_id: int) -> bool:
    player = _take_card(state, player_id, DevCardType.KNIGHT)
    if player is None:
        return False
    player.knights_played += 1
    update_largest_army(state)
    return True


def play_road_building(state: GameState, player_id: int) -> bool:
    return _take_card(state, player_id, DevCardType.ROAD_BUILDING) is not None


def play_year_of_plenty(
    state: GameState, player_id: int, first: ResourceType, second: ResourceType
) -> bool:
    if not (first.tradeable and second.tradeable):
        return False
    player = _take_card(state, player_id, DevCardType.YEAR_OF_PLENTY)
    if player is None:
        return False
    player.resources[first] += 1
    player.resources[second] += 1
    return True


def play_monopoly(state: GameState, player_id: int, resource: ResourceType) -> Optional[int]:
    """Collect every unit of ``resource`` from the other players.

    Returns the number of units taken, or None when the card could not be played.
    """
    if not resource.tradeable:
        return None
    player = _take_card(state, player_id, DevCardType.MONOPOLY)
    if player is None:
        return None
    total = 0
    for other in state.players:
        if other.player_id == player_id:
            continue
        total += other.resources[resource]
        other.resources[resource] = 0
    player.resources[resource] += total
    return total


def calculate_vp(player: Player, state: GameState) -> int:
    vp = 0
    for vertex in state.board.vertices:
        if vertex.owner != player.player_id:
            continue
        vp += 2 if vertex.building == BuildingType.CITY else 1
    vp += player.dev_cards.count(DevCardType.VICTORY_POINT)
    if state.longest_road_holder == player.player_id:
        vp += 2
    if state.largest_army_holder == player.player_id:
        vp += 2
    return vp


def check_win_condition(state: GameState) -> Optional[int]:
    for player in state.players:
        if calculate_vp(player, state) >= state.config.victory_points_to_win:
            return player.player_id
    return None


def calculate_longest_road(state: GameState, player_id: int) -> int:
    """Longest simple path, in roads, through the player's road network.

    A depth-first search starts from every owned road in both directions and
    never reuses a road within one path. Corners held by another player end
    the path.
    """
    board = state.board
    owned = [e for e in board.edges if e.owner == player_id and e.piece == PieceType.ROAD]
    if not owned:
        return 0

    roads = nx.Graph()
    for edge in owned:
        roads.add_edge(edge.vertex_a, edge.vertex_b, edge_id=edge.edge_id)

    def blocked(vertex_id: int) -> bool:
        owner = board.vertices[vertex_id].owner
        return owner is not None and owner != player_id

    def walk(vertex_id: int, visited: Set[int]) -> int:
        if blocked(vertex_id):
            return 0
        best = 0
        for _, nxt, data in roads.edges(vertex_id, data=True):
            eid = data["edge_id"]
            if eid in visited:
                continue
            visited.add(eid)
            best = max(best, 1 + walk(nxt, visited))
            visited.remove(eid)
        return best

    longest = 0
    for edge in owned:
        for end in (edge.vertex_b, edge.vertex_a):
            longest = max(longest, 1 + walk(end, {edge.edge_id}))
    return longest


def _award_title(current: Optional[int], scores: Dict[int, int], minimum: int) -> Optional[int]:
    if current is not None and scores[current] < minimum:
        current = None
    floor = scores[current] if current is not None else minimum - 1
    challengers = {pid: score for pid, score in scores.items() if pid != current and score > floor}
    if not challengers:
        return current
    top = max(challengers.values())
    leaders = [pid for pid, score in challengers.items() if score == top]
    if len(leaders) > 1:
        return None
    return leaders[0]


def update_longest_road(state: GameState) -> Optional[int]:
    for player in state.players:
        player.longest_road = calculate_longest_road(state, player.player_id)
    scores = {p.player_id: p.longest_road for p in state.players}
    holder = _award_title(state.longest_road_holder, scores, state.config.longest_road_min)
    if holder != state.longest_road_holder:
        logger.info("Longest road moves from %s to %s", state.longest_road_holder, holder)
        state.longest_road_holder = holder
    return holder


def update_largest_army(state: GameState) -> Optional[int]:
    scores = {p.player_id: p.knights_played for p in state.players}
    holder = _award_title(state.largest_army_holder, scores, state.config.largest_army_min)
    if holder != state.largest_army_holder:
        logger.info("Largest army moves from %s to %s", state.largest_army_holder, holder)
        state.largest_army_holder = holder
    return holder


def get_players_to_discard(state: GameState) -> List[int]:
    threshold = state.config.discard_threshold
    return [p.player_id for p in state.players if p.total_resources() >= threshold]


def discard_half(
    state: GameState, player_id: int, rng: random.Random | None = None
) -> ResourceBank:
    rng = _rng(rng)
    discarded = empty_resources()
    player = state.get_player(player_id)
    if player is None:
        return discarded
    for _ in range(player.total_resources() // 2):
        held = [res for res in TRADEABLE_RESOURCES if player.resources[res] > 0]
        res = rng.choice(held)
        player.resources[res] -= 1
        discarded[res] += 1
    logger.debug("Player %d discarded %s", player_id, discarded)
    return discarded


def move_robber(state: GameState, hex_id: int) -> bool:
    target = state.board.get_hex(hex_id)
    if target is None:
        return False
    for hex_ in state.board.hexes:
        hex_.has_robber = False
    target.has_robber = True
    state.robber_hex = hex_id
    return True


def get_players_adjacent_to_hex(state: GameState, hex_id: int) -> List[Player]:
    if state.board.get_hex(hex_id) is None:
        return []
    owners: Set[int] = set()
    for vid in state.board.topology.hex_vertices[hex_id]:
        owner = state.board.vertices[vid].owner
        if owner is not None and owner != state.current_player:
            owners.add(owner)
    return [state.players[pid] for pid in sorted(owners)]


def steal_resource(
    state: GameState, from_player_id: int, rng: random.Random | None = None
) -> Optional[ResourceType]:
    victim = state.get_player(from_player_id)
    if victim is None or from_player_id == state.current_player:
        return None
    pool = [res for res in TRADEABLE_RESOURCES for _ in range(victim.resources[res])]
    if not pool:
        return None
    res = _rng(rng).choice(pool)
    victim.resources[res] -= 1
    state.active_player.resources[res] += 1
    return res


def get_trade_ratio(state: GameState, player_id: int, resource: ResourceType) -> int:
    """Best bank rate for giving ``resource``, taking the player's ports into account."""
    ratio = state.config.bank_trade_ratio
    board = state.board
    for port in board.ports:
        if port.resource not in (GENERIC_PORT, resource.value):
            continue
        if any(board.vertices[vid].owner == player_id for vid in board.topology.port_vertices[port.port_id]):
            ratio = min(ratio, port.ratio)
    return ratio


def bank_trade(
    state: GameState, player_id: int, give: ResourceType, get: ResourceType, ratio: int
) -> bool:
    player = state.get_player(player_id)
    if player is None or ratio <= 0:
        return False
    if give == get or not (give.tradeable and get.tradeable):
        return False
    if player.resources[give] < ratio:
        return False
    player.resources[give] -= ratio
    player.resources[get] += 1
    return True


def add_log(state: GameState, action: str) -> LogEntry:
    entry = LogEntry(
        turn=state.turn,
        player=state.current_player,
        action=action,
        timestamp=time.time(),
    )
    state.log.append(entry)
    logger.debug("T%d P%d %s", entry.turn, entry.player, action)
    return entry
