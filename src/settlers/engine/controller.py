from __future__ import annotations

import logging
import random
from itertools import combinations_with_replacement
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from settlers.config import DEFAULT_CONFIG, RulesConfig

from . import rules
from .game_state import GameState, new_game, resource_summary
from .types import (
    MAIN_PHASES,
    SETUP_PHASES,
    TRADEABLE_RESOURCES,
    Action,
    ActionType,
    BuildingType,
    DevCardType,
    Phase,
    PieceType,
    ResourceType,
)

logger = logging.getLogger(__name__)


@dataclass
class ActionResult:
    ok: bool
    reason: Optional[str] = None
    data: Dict[str, object] = field(default_factory=dict)


def _fail(reason: str) -> ActionResult:
    return ActionResult(ok=False, reason=reason)


def _resource(value: object) -> Optional[ResourceType]:
    try:
        resource = ResourceType(value)
    except ValueError:
        return None
    return resource if resource.tradeable else None


def _valid_dice(dice: object) -> bool:
    if not isinstance(dice, (tuple, list)) or len(dice) != 2:
        return False
    return all(isinstance(value, int) and 1 <= value <= 6 for value in dice)


class GameController:
    """Turn and phase state machine over a single GameState.

    Every entry point checks that the event is legal for the current phase,
    calls into ``rules`` and reports the outcome as an ``ActionResult``.
    A rejected event leaves the state untouched.
    """

    def __init__(
        self,
        state: GameState | None = None,
        seed: int | None = None,
        rng: random.Random | None = None,
        config: RulesConfig = DEFAULT_CONFIG,
    ):
        self.rng = rng if rng is not None else random.Random(seed)
        self.config = config
        self.state = state if state is not None else new_game(rng=self.rng, config=config)

    def new_game(self, seed: int | None = None) -> ActionResult:
        if seed is not None:
            self.rng = random.Random(seed)
        self.state = new_game(rng=self.rng, config=self.config)
        rules.add_log(self.state, "New game")
        logger.info("Started a new game")
        return ActionResult(ok=True)

    def acting_player(self) -> int:
        if self.state.phase == Phase.DISCARDING and self.state.pending_discards:
            return self.state.pending_discards[0]
        return self.state.current_player

    def _set_phase(self, phase: Phase) -> None:
        if phase != self.state.phase:
            logger.debug("Phase %s -> %s", self.state.phase.value, phase.value)
            self.state.phase = phase

    def _finish(self, action: str, data: Dict[str, object] | None = None) -> ActionResult:
        rules.add_log(self.state, action)
        self._check_winner()
        return ActionResult(ok=True, data=data or {})

    def _check_winner(self) -> None:
        winner = rules.check_win_condition(self.state)
        if winner is None:
            return
        self.state.winner = winner
        self._set_phase(Phase.GAME_OVER)
        rules.add_log(self.state, f"{self.state.players[winner].name} wins")
        logger.info("Player %d wins on turn %d", winner, self.state.turn)

    def get_next_setup_player(self) -> Optional[int]:
        count = len(self.state.setup_completed)
        num_players = len(self.state.players)
        if count >= num_players:
            return None
        if self.state.phase == Phase.SETUP1:
            return count
        if self.state.phase == Phase.SETUP2:
            return num_players - 1 - count
        return None

    def place_setup_settlement(self, vertex_id: int) -> ActionResult:
        state = self.state
        if state.phase not in SETUP_PHASES:
            return _fail("wrong_phase")
        if state.setup_vertex is not None:
            return _fail("road_required")
        pid = state.current_player
        if not rules.place_settlement(state, vertex_id, pid, setup=True):
            return _fail("invalid_location")
        state.setup_vertex = vertex_id
        data: Dict[str, object] = {"vertex_id": vertex_id}
        if state.phase == Phase.SETUP2:
            award = rules.distribute_setup_resources(state, pid, vertex_id)
            data["resources"] = award
        rules.add_log(state, f"Placed a settlement on vertex {vertex_id}")
        return ActionResult(ok=True, data=data)

    def place_setup_road(self, edge_id: int) -> ActionResult:
        state = self.state
        if state.phase not in SETUP_PHASES:
            return _fail("wrong_phase")
        if state.setup_vertex is None:
            return _fail("settlement_required")
        edge = state.board.get_edge(edge_id)
        if edge is None or state.setup_vertex not in edge.vertices:
            return _fail("invalid_location")
        if not rules.place_road(state, edge_id, state.current_player, setup=True):
            return _fail("invalid_location")
        rules.add_log(state, f"Placed a road on edge {edge_id}")
        return self.complete_setup()

    def complete_setup(self) -> ActionResult:
        state = self.state
        if state.phase not in SETUP_PHASES:
            return _fail("wrong_phase")
        state.setup_completed.append(state.current_player)
        state.setup_vertex = None
        if len(state.setup_completed) >= len(state.players):
            state.setup_completed = []
            if state.phase == Phase.SETUP1:
                self._set_phase(Phase.SETUP2)
            else:
                self._set_phase(Phase.PLAYING)
                state.turn = 1
                state.current_player = 0
                logger.info("Setup complete, regular play begins")
                return ActionResult(ok=True, data={"phase": state.phase.value})
        next_player = self.get_next_setup_player()
        if next_player is not None:
            state.current_player = next_player
        return ActionResult(ok=True, data={"phase": state.phase.value})

    def roll(self, dice: Tuple[int, int] | None = None) -> ActionResult:
        state = self.state
        error = self._main_phase_error(needs_roll=False)
        if error:
            return _fail(error)
        if state.dice is not None:
            return _fail("already_rolled")
        if dice is None:
            dice = rules.roll_dice(self.rng)
        elif not _valid_dice(dice):
            return _fail("invalid_dice")
        state.dice = (dice[0], dice[1])
        total = dice[0] + dice[1]
        data: Dict[str, object] = {"dice": state.dice, "sum": total}

        if total == 7:
            state.pending_discards = rules.get_players_to_discard(state)
            state.robber_return_phase = Phase.PLAYING
            if state.pending_discards:
                self._set_phase(Phase.DISCARDING)
            else:
                self._set_phase(Phase.ROBBING)
            data["discards"] = list(state.pending_discards)
        else:
            data["awards"] = rules.distribute_resources(state, total)
        return self._finish(f"Rolled {dice[0]} + {dice[1]} = {total}", data)

    def discard(self, player_id: int) -> ActionResult:
        state = self.state
        if state.phase != Phase.DISCARDING:
            return _fail("wrong_phase")
        if player_id not in state.pending_discards:
            return _fail("no_discard_owed")
        discarded = rules.discard_half(state, player_id, self.rng)
        state.pending_discards.remove(player_id)
        if not state.pending_discards:
            self._set_phase(Phase.ROBBING)
        return self._finish(
            f"{state.players[player_id].name} discarded {sum(discarded.values())} cards",
            {"discarded": discarded},
        )

    def move_robber(self, hex_id: int, victim: int | None = None) -> ActionResult:
        """Move the robber and steal from ``victim``.

        With a single candidate the victim may be omitted; with several it is
        required.
        """
        state = self.state
        if state.phase != Phase.ROBBING:
            return _fail("wrong_phase")
        target = state.board.get_hex(hex_id)
        if target is None:
            return _fail("invalid_location")
        if target.has_robber:
            return _fail("robber_must_move")
        candidates = [p.player_id for p in rules.get_players_adjacent_to_hex(state, hex_id)]
        if victim is None and len(candidates) == 1:
            victim = candidates[0]
        if candidates and victim not in candidates:
            return _fail("victim_required")
        if not candidates and victim is not None:
            return _fail("invalid_victim")

        rules.move_robber(state, hex_id)
        data: Dict[str, object] = {"hex_id": hex_id}
        action = f"Moved the robber to hex {hex_id}"
        state.steal_from = victim
        if victim is not None:
            stolen = rules.steal_resource(state, victim, self.rng)
            data["victim"] = victim
            data["stolen"] = stolen
            action += f" and stole from {state.players[victim].name}"
        self._set_phase(state.robber_return_phase)
        return self._finish(action, data)

    def _main_phase_error(self, needs_roll: bool = True) -> Optional[str]:
        if self.state.phase == Phase.GAME_OVER:
            return "game_over"
        if self.state.phase not in MAIN_PHASES:
            return "wrong_phase"
        if needs_roll and self.state.dice is None:
            return "roll_required"
        return None

    def build(self, kind: PieceType | str, target_id: int) -> ActionResult:
        try:
            piece = PieceType(kind)
        except ValueError:
            return _fail("unknown_piece")
        state = self.state
        free_road = piece == PieceType.ROAD and state.free_roads > 0
        error = self._main_phase_error(needs_roll=not free_road)
        if error:
            return _fail(error)

        pid = state.current_player
        if piece == PieceType.ROAD:
            built = rules.place_road(state, target_id, pid, free=free_road)
        elif piece == PieceType.SETTLEMENT:
            built = rules.place_settlement(state, target_id, pid)
        elif piece == PieceType.CITY:
            built = rules.upgrade_to_city(state, target_id, pid)
        else:
            return _fail("unsupported_piece")
        if not built:
            return _fail(self._build_failure(piece, target_id))

        if free_road:
            state.free_roads -= 1
        self._set_phase(Phase.BUILDING)
        return self._finish(f"Built a {piece.value} on {target_id}", {"piece": piece.value})

    def _build_failure(self, piece: PieceType, target_id: int) -> str:
        player = self.state.active_player
        remaining = {
            PieceType.ROAD: player.pieces.roads,
            PieceType.SETTLEMENT: player.pieces.settlements,
            PieceType.CITY: player.pieces.cities,
        }[piece]
        if remaining <= 0:
            return "no_pieces_left"
        if piece == PieceType.ROAD and self.state.free_roads > 0:
            return "invalid_location"
        if not rules.can_afford(player, rules.BUILD_COSTS[piece]):
            return "insufficient_resources"
        return "invalid_location"

    def buy_development_card(self) -> ActionResult:
        error = self._main_phase_error()
        if error:
            return _fail(error)
        state = self.state
        if not state.dev_deck:
            return _fail("deck_empty")
        card = rules.buy_dev_card(state, state.current_player)
        if card is None:
            return _fail("insufficient_resources")
        state.bought_this_turn.append(card)
        self._set_phase(Phase.BUILDING)
        return self._finish("Bought a development card", {"card": card})

    def trade(self, give: ResourceType | str, get: ResourceType | str) -> ActionResult:
        error = self._main_phase_error()
        if error:
            return _fail(error)
        give_res, get_res = _resource(give), _resource(get)
        if give_res is None or get_res is None or give_res == get_res:
            return _fail("invalid_resource")
        state = self.state
        ratio = rules.get_trade_ratio(state, state.current_player, give_res)
        if not rules.bank_trade(state, state.current_player, give_res, get_res, ratio):
            return _fail("insufficient_resources")
        self._set_phase(Phase.TRADING)
        return self._finish(
            f"Traded {ratio} {give_res.value} for 1 {get_res.value}",
            {"ratio": ratio},
        )

    def playable_cards(self) -> List[DevCardType]:
        state = self.state
        if state.dev_card_played_this_turn:
            return []
        hand = state.active_player.dev_cards
        playable = []
        for card in DevCardType:
            if card == DevCardType.VICTORY_POINT:
                continue
            if hand.count(card) - state.bought_this_turn.count(card) > 0:
                playable.append(card)
        return playable

    def play_dev_card(
        self,
        card: DevCardType | str,
        resource: ResourceType | str | None = None,
        second: ResourceType | str | None = None,
    ) -> ActionResult:
        try:
            card = DevCardType(card)
        except ValueError:
            return _fail("unknown_card")
        error = self._main_phase_error(needs_roll=False)
        if error:
            return _fail(error)
        state = self.state
        if card == DevCardType.VICTORY_POINT:
            return _fail("not_playable")
        if state.dev_card_played_this_turn:
            return _fail("card_already_played")
        if card not in self.playable_cards():
            return _fail("card_unavailable")

        pid = state.current_player
        data: Dict[str, object] = {"card": card}
        if card == DevCardType.KNIGHT:
            rules.play_knight(state, pid)
            state.robber_return_phase = Phase.PLAYING
            self._set_phase(Phase.ROBBING)
        elif card == DevCardType.ROAD_BUILDING:
            rules.play_road_building(state, pid)
            state.free_roads = min(2, state.active_player.pieces.roads)
            self._set_phase(Phase.BUILDING)
        elif card == DevCardType.YEAR_OF_PLENTY:
            first_res, second_res = _resource(resource), _resource(second)
            if first_res is None or second_res is None:
                return _fail("invalid_resource")
            rules.play_year_of_plenty(state, pid, first_res, second_res)
        else:
            target = _resource(resource)
            if target is None:
                return _fail("invalid_resource")
            data["collected"] = rules.play_monopoly(state, pid, target)

        state.dev_card_played_this_turn = True
        return self._finish(f"Played {card.value.replace('_', ' ')}", data)

    def end_turn(self) -> ActionResult:
        error = self._main_phase_error()
        if error:
            return _fail(error)
        state = self.state
        state.current_player = (state.current_player + 1) % len(state.players)
        if state.current_player == 0:
            state.turn += 1
        state.dice = None
        state.bought_this_turn = []
        state.dev_card_played_this_turn = False
        state.free_roads = 0
        state.steal_from = None
        self._set_phase(Phase.PLAYING)
        return self._finish(f"Turn passes to {state.active_player.name}")

    def apply(self, action: Action) -> ActionResult:
        """Dispatch an ``Action`` to its entry point.

        A payload with missing or mistyped fields is rejected as
        ``invalid_payload`` before anything is dispatched.
        """
        payload = action.payload
        kind = action.action_type
        try:
            if kind == ActionType.PLACE_SETUP_SETTLEMENT:
                args: Tuple[object, ...] = (int(payload["vertex_id"]),)
            elif kind == ActionType.PLACE_SETUP_ROAD:
                args = (int(payload["edge_id"]),)
            elif kind == ActionType.ROLL_DICE:
                args = (payload.get("dice"),)
            elif kind == ActionType.DISCARD:
                args = (int(payload["player_id"]),)
            elif kind == ActionType.MOVE_ROBBER:
                victim = payload.get("victim")
                args = (int(payload["hex_id"]), None if victim is None else int(victim))
            elif kind == ActionType.BUILD:
                args = (payload["piece"], int(payload["target_id"]))
            elif kind == ActionType.PLAY_DEV_CARD:
                args = (payload["card"], payload.get("resource"), payload.get("second"))
            elif kind == ActionType.TRADE_BANK:
                args = (payload["give"], payload["get"])
            else:
                args = ()
        except (AttributeError, KeyError, TypeError, ValueError):
            return _fail("invalid_payload")

        if kind == ActionType.PLACE_SETUP_SETTLEMENT:
            return self.place_setup_settlement(*args)
        if kind == ActionType.PLACE_SETUP_ROAD:
            return self.place_setup_road(*args)
        if kind == ActionType.ROLL_DICE:
            return self.roll(*args)
        if kind == ActionType.DISCARD:
            return self.discard(*args)
        if kind == ActionType.MOVE_ROBBER:
            return self.move_robber(*args)
        if kind == ActionType.BUILD:
            return self.build(*args)
        if kind == ActionType.BUY_DEV_CARD:
            return self.buy_development_card()
        if kind == ActionType.PLAY_DEV_CARD:
            return self.play_dev_card(*args)
        if kind == ActionType.TRADE_BANK:
            return self.trade(*args)
        if kind == ActionType.END_TURN:
            return self.end_turn()
        return _fail("unsupported_action")

    def legal_actions(self) -> List[Action]:
        state = self.state
        board = state.board
        pid = state.current_player
        player = state.active_player
        actions: List[Action] = []

        if state.phase == Phase.GAME_OVER:
            return actions

        if state.phase in SETUP_PHASES:
            if state.setup_vertex is None:
                for vertex in board.vertices:
                    if rules.is_valid_settlement_placement(state, vertex.vertex_id, pid):
                        actions.append(
                            Action(ActionType.PLACE_SETUP_SETTLEMENT, {"vertex_id": vertex.vertex_id})
                        )
            else:
                for edge_id in board.topology.vertex_edges[state.setup_vertex]:
                    if rules.can_place_road_in_setup(state, edge_id, pid):
                        actions.append(Action(ActionType.PLACE_SETUP_ROAD, {"edge_id": edge_id}))
            return actions

        if state.phase == Phase.DISCARDING:
            return [Action(ActionType.DISCARD, {"player_id": p}) for p in state.pending_discards]

        if state.phase == Phase.ROBBING:
            for hex_ in board.hexes:
                if hex_.has_robber:
                    continue
                victims = rules.get_players_adjacent_to_hex(state, hex_.hex_id)
                if not victims:
                    actions.append(Action(ActionType.MOVE_ROBBER, {"hex_id": hex_.hex_id}))
                for victim in victims:
                    actions.append(
                        Action(ActionType.MOVE_ROBBER, {"hex_id": hex_.hex_id, "victim": victim.player_id})
                    )
            return actions

        playable = self.playable_cards()
        if DevCardType.KNIGHT in playable:
            actions.append(Action(ActionType.PLAY_DEV_CARD, {"card": DevCardType.KNIGHT.value}))
        road_affordable = state.free_roads > 0 or (
            state.dice is not None and rules.can_afford(player, rules.BUILD_COSTS[PieceType.ROAD])
        )
        if road_affordable and player.pieces.roads > 0:
            for edge in board.edges:
                if rules.is_valid_road_placement(state, edge.edge_id, pid):
                    actions.append(
                        Action(ActionType.BUILD, {"piece": PieceType.ROAD.value, "target_id": edge.edge_id})
                    )
        if state.dice is None:
            actions.append(Action(ActionType.ROLL_DICE, {}))
            return actions

        actions.append(Action(ActionType.END_TURN, {}))
        if rules.can_afford(player, rules.BUILD_COSTS[PieceType.SETTLEMENT]) and player.pieces.settlements > 0:
            for vertex in board.vertices:
                vid = vertex.vertex_id
                if rules.is_valid_settlement_placement(state, vid, pid) and rules.is_connected_to_road(
                    state, vid, pid
                ):
                    actions.append(
                        Action(ActionType.BUILD, {"piece": PieceType.SETTLEMENT.value, "target_id": vid})
                    )
        if rules.can_afford(player, rules.BUILD_COSTS[PieceType.CITY]) and player.pieces.cities > 0:
            for vertex in board.vertices:
                if vertex.owner == pid and vertex.building == BuildingType.SETTLEMENT:
                    actions.append(
                        Action(ActionType.BUILD, {"piece": PieceType.CITY.value, "target_id": vertex.vertex_id})
                    )
        if state.dev_deck and rules.can_afford(player, rules.DEV_CARD_COST):
            actions.append(Action(ActionType.BUY_DEV_CARD, {}))
        for give in TRADEABLE_RESOURCES:
            if player.resources[give] < rules.get_trade_ratio(state, pid, give):
                continue
            for get in TRADEABLE_RESOURCES:
                if get != give:
                    actions.append(Action(ActionType.TRADE_BANK, {"give": give.value, "get": get.value}))
        if DevCardType.ROAD_BUILDING in playable:
            actions.append(Action(ActionType.PLAY_DEV_CARD, {"card": DevCardType.ROAD_BUILDING.value}))
        if DevCardType.MONOPOLY in playable:
            for res in TRADEABLE_RESOURCES:
                actions.append(
                    Action(ActionType.PLAY_DEV_CARD, {"card": DevCardType.MONOPOLY.value, "resource": res.value})
                )
        if DevCardType.YEAR_OF_PLENTY in playable:
            for first, second in combinations_with_replacement(TRADEABLE_RESOURCES, 2):
                actions.append(
                    Action(
                        ActionType.PLAY_DEV_CARD,
                        {"card": DevCardType.YEAR_OF_PLENTY.value, "resource": first.value, "second": second.value},
                    )
                )
        return actions

    def summary(self) -> str:
        state = self.state
        lines = [f"Turn {state.turn} | {state.active_player.name} | Phase {state.phase.value}"]
        for player in state.players:
            lines.append(
                f"P{player.player_id} {player.name} | VP {rules.calculate_vp(player, state)} | "
                f"{resource_summary(player.resources)}"
            )
        return "\n".join(lines)
