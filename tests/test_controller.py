from settlers.engine import rules
from settlers.engine.controller import GameController
from settlers.engine.types import Action, ActionType, BuildingType, DevCardType, Phase, PieceType, ResourceType


def _run_setup(controller):
    order = []
    while controller.state.phase in (Phase.SETUP1, Phase.SETUP2):
        order.append(controller.state.current_player)
        settle = controller.legal_actions()[0]
        assert controller.apply(settle).ok
        road = controller.legal_actions()[0]
        assert road.action_type == ActionType.PLACE_SETUP_ROAD
        assert controller.apply(road).ok
    return order


def _playing(seed=1):
    controller = GameController(seed=seed)
    controller.state.phase = Phase.PLAYING
    return controller


def _hex_at(state, q, r):
    return next(h for h in state.board.hexes if h.axial == (q, r))


def test_setup_snake_order():
    controller = GameController(seed=3)
    order = _run_setup(controller)
    state = controller.state
    assert order == [0, 1, 2, 3, 3, 2, 1, 0]
    assert state.phase == Phase.PLAYING
    assert state.turn == 1
    assert state.current_player == 0
    for player in state.players:
        assert player.pieces.settlements == 3
        assert player.pieces.roads == 13
        assert rules.calculate_vp(player, state) == 2


def test_second_setup_settlement_grants_resources():
    controller = GameController(seed=3)
    state = controller.state
    for _ in range(4):
        controller.apply(controller.legal_actions()[0])
        controller.apply(controller.legal_actions()[0])
    assert state.phase == Phase.SETUP2
    assert all(p.total_resources() == 0 for p in state.players)

    vertex_id = controller.legal_actions()[0].payload["vertex_id"]
    result = controller.place_setup_settlement(vertex_id)
    assert result.ok
    expected = sum(
        1 for h in state.board.topology.vertex_hexes[vertex_id]
        if state.board.hexes[h].resource.tradeable
    )
    assert state.players[3].total_resources() == expected


def test_next_setup_player():
    controller = GameController(seed=3)
    assert controller.get_next_setup_player() == 0
    controller.state.setup_completed = [0, 1]
    assert controller.get_next_setup_player() == 2
    controller.state.phase = Phase.SETUP2
    assert controller.get_next_setup_player() == 1


def test_setup_road_must_touch_new_settlement():
    controller = GameController(seed=3)
    state = controller.state
    assert controller.place_setup_road(0).reason == "settlement_required"
    hex_id = _hex_at(state, 0, 0).hex_id
    corners = state.board.topology.hex_vertices[hex_id]
    sides = state.board.topology.hex_edges[hex_id]
    assert controller.place_setup_settlement(corners[0]).ok
    assert controller.place_setup_settlement(corners[3]).reason == "road_required"
    assert controller.place_setup_road(sides[2]).reason == "invalid_location"
    assert controller.place_setup_road(sides[0]).ok
    assert state.current_player == 1


def test_roll_distributes_and_blocks_second_roll():
    controller = _playing(seed=2)
    state = controller.state
    result = controller.roll((3, 3))
    assert result.ok
    assert result.data["sum"] == 6
    assert state.dice == (3, 3)
    assert state.phase == Phase.PLAYING
    assert controller.roll((1, 1)).reason == "already_rolled"


def test_roll_seven_discard_then_robber():
    controller = _playing(seed=2)
    state = controller.state
    state.players[1].resources.update({ResourceType.WOOD: 4, ResourceType.ORE: 4})
    state.players[2].resources.update({ResourceType.WOOD: 3})

    assert controller.roll((3, 4)).ok
    assert state.phase == Phase.DISCARDING
    assert state.pending_discards == [1]
    assert controller.acting_player() == 1
    assert controller.end_turn().reason == "wrong_phase"
    assert controller.discard(2).reason == "no_discard_owed"
    assert controller.discard(1).ok
    assert state.players[1].total_resources() == 4
    assert state.phase == Phase.ROBBING

    old = state.board.robber_hex().hex_id
    assert controller.move_robber(old).reason == "robber_must_move"
    target = next(h.hex_id for h in state.board.hexes if h.hex_id != old)
    assert controller.move_robber(target).ok
    assert state.board.robber_hex().hex_id == target
    assert state.phase == Phase.PLAYING


def test_robber_steals_from_adjacent_player():
    controller = _playing(seed=2)
    state = controller.state
    hex_ = next(h for h in state.board.hexes if not h.has_robber)
    corners = state.board.topology.hex_vertices[hex_.hex_id]
    for vid, pid in ((corners[0], 1), (corners[3], 2)):
        state.board.vertices[vid].owner = pid
        state.board.vertices[vid].building = BuildingType.SETTLEMENT
    state.players[2].resources[ResourceType.SHEEP] = 1
    controller.roll((6, 1))
    assert state.phase == Phase.ROBBING

    assert controller.move_robber(hex_.hex_id).reason == "victim_required"
    assert not hex_.has_robber
    assert controller.move_robber(hex_.hex_id, victim=2).ok
    assert state.players[0].resources[ResourceType.SHEEP] == 1
    assert state.players[2].resources[ResourceType.SHEEP] == 0
    assert state.steal_from == 2


def test_end_turn_requires_roll_and_wraps_turn():
    controller = _playing(seed=4)
    state = controller.state
    assert controller.end_turn().reason == "roll_required"
    for expected in (1, 2, 3, 0):
        controller.roll((1, 1))
        assert controller.end_turn().ok
        assert state.current_player == expected
        assert state.dice is None
    assert state.turn == 2


def test_rejected_build_leaves_state_untouched():
    controller = _playing(seed=4)
    state = controller.state
    controller.roll((2, 2))
    player = state.active_player
    player.resources.update({ResourceType.WOOD: 1, ResourceType.BRICK: 1,
                             ResourceType.WHEAT: 1, ResourceType.SHEEP: 1})
    before = dict(player.resources)
    log_size = len(state.log)

    result = controller.build(PieceType.SETTLEMENT, 10)
    assert not result.ok
    assert result.reason == "invalid_location"
    assert player.resources == before
    assert state.board.vertices[10].owner is None
    assert len(state.log) == log_size
    assert controller.build("castle", 10).reason == "unknown_piece"


def test_build_road_and_city():
    controller = _playing(seed=4)
    state = controller.state
    controller.roll((2, 2))
    hex_id = _hex_at(state, 0, 0).hex_id
    corners = state.board.topology.hex_vertices[hex_id]
    sides = state.board.topology.hex_edges[hex_id]
    rules.place_settlement(state, corners[0], 0, setup=True)
    player = state.players[0]

    assert controller.build("road", sides[0]).reason == "insufficient_resources"
    player.resources.update({ResourceType.WOOD: 1, ResourceType.BRICK: 1})
    assert controller.build("road", sides[0]).ok
    assert state.phase == Phase.BUILDING
    assert state.board.edges[sides[0]].owner == 0

    player.resources.update({ResourceType.ORE: 3, ResourceType.WHEAT: 2})
    assert controller.build("city", corners[0]).ok
    assert state.board.vertices[corners[0]].building == BuildingType.CITY


def test_trade_uses_best_rate():
    controller = _playing(seed=4)
    state = controller.state
    player = state.active_player
    player.resources[ResourceType.WOOD] = 6
    assert controller.trade("wood", "ore").reason == "roll_required"
    controller.roll((5, 5))
    wood = player.resources[ResourceType.WOOD]
    result = controller.trade("wood", "ore")
    assert result.ok
    assert result.data["ratio"] == 4
    assert player.resources[ResourceType.WOOD] == wood - 4
    assert state.phase == Phase.TRADING
    assert controller.trade("wood", "desert").reason == "invalid_resource"


def test_card_bought_this_turn_cannot_be_played():
    controller = _playing(seed=4)
    state = controller.state
    state.dev_deck = [DevCardType.KNIGHT]
    player = state.active_player
    player.resources.update({ResourceType.ORE: 1, ResourceType.WHEAT: 1, ResourceType.SHEEP: 1})
    controller.roll((2, 3))

    result = controller.buy_development_card()
    assert result.ok and result.data["card"] == DevCardType.KNIGHT
    assert controller.play_dev_card("knight").reason == "card_unavailable"
    assert controller.buy_development_card().reason == "deck_empty"
    controller.end_turn()
    assert state.bought_this_turn == []


def test_knight_moves_to_robbing_and_one_card_per_turn():
    controller = _playing(seed=4)
    state = controller.state
    state.active_player.dev_cards = [DevCardType.KNIGHT, DevCardType.MONOPOLY]
    assert controller.play_dev_card("knight").ok
    assert state.phase == Phase.ROBBING
    assert state.active_player.knights_played == 1
    target = next(h.hex_id for h in state.board.hexes if not h.has_robber)
    assert controller.move_robber(target).ok
    assert state.phase == Phase.PLAYING
    assert controller.play_dev_card("monopoly", "ore").reason == "card_already_played"
    assert controller.play_dev_card("victory_point").reason == "not_playable"


def test_road_building_grants_two_free_roads():
    controller = _playing(seed=4)
    state = controller.state
    hex_id = _hex_at(state, 0, 0).hex_id
    corners = state.board.topology.hex_vertices[hex_id]
    sides = state.board.topology.hex_edges[hex_id]
    rules.place_settlement(state, corners[0], 0, setup=True)
    state.active_player.dev_cards = [DevCardType.ROAD_BUILDING]

    assert controller.play_dev_card(DevCardType.ROAD_BUILDING).ok
    assert state.phase == Phase.BUILDING
    assert state.free_roads == 2
    assert controller.build("road", sides[0]).ok
    assert controller.build("road", sides[1]).ok
    assert state.free_roads == 0
    assert state.active_player.total_resources() == 0
    assert controller.build("road", sides[2]).reason == "roll_required"


def test_year_of_plenty_needs_resources():
    controller = _playing(seed=4)
    state = controller.state
    state.active_player.dev_cards = [DevCardType.YEAR_OF_PLENTY]
    assert controller.play_dev_card("year_of_plenty", "wood").reason == "invalid_resource"
    assert state.active_player.dev_cards == [DevCardType.YEAR_OF_PLENTY]
    assert controller.play_dev_card("year_of_plenty", "wood", "brick").ok
    assert state.active_player.resources[ResourceType.WOOD] == 1
    assert state.active_player.resources[ResourceType.BRICK] == 1


def test_reaching_ten_points_ends_the_game():
    controller = _playing(seed=4)
    state = controller.state
    rules.place_settlement(state, 0, 0, setup=True)
    state.players[0].dev_cards = [DevCardType.VICTORY_POINT] * 9
    controller.roll((4, 4))
    assert state.winner == 0
    assert state.phase == Phase.GAME_OVER
    assert controller.end_turn().reason == "game_over"
    assert controller.legal_actions() == []
    assert state.log[-1].action.endswith("wins")


def test_new_game_replaces_state():
    controller = _playing(seed=4)
    old = controller.state
    assert controller.new_game(seed=9).ok
    assert controller.state is not old
    assert controller.state.phase == Phase.SETUP1
    assert controller.state.log[-1].action == "New game"


def test_log_records_turn_and_player():
    controller = _playing(seed=4)
    controller.roll((2, 5))
    controller.discard(0)
    entry = controller.state.log[-1]
    assert entry.action == "Rolled 2 + 5 = 7"
    assert entry.turn == 1
    assert entry.player == 0


def test_malformed_dice_are_rejected():
    controller = _playing(seed=4)
    state = controller.state
    assert controller.roll((3,)).reason == "invalid_dice"
    assert controller.roll((3, 3, 6)).reason == "invalid_dice"
    assert controller.roll((0, 4)).reason == "invalid_dice"
    assert controller.roll(7).reason == "invalid_dice"
    assert state.dice is None
    assert state.log == []
    assert controller.roll([2, 3]).ok


def test_apply_rejects_malformed_payloads():
    controller = GameController(seed=3)
    state = controller.state
    bad = [
        Action(ActionType.PLACE_SETUP_SETTLEMENT, {}),
        Action(ActionType.PLACE_SETUP_SETTLEMENT, {"vertex_id": "north"}),
        Action(ActionType.PLACE_SETUP_ROAD, {"edge_id": None}),
        Action(ActionType.BUILD, {"piece": "road"}),
        Action(ActionType.TRADE_BANK, {"give": "wood"}),
        Action(ActionType.MOVE_ROBBER, {"hex_id": 3, "victim": "p1"}),
        Action(ActionType.DISCARD, None),
    ]
    for action in bad:
        assert controller.apply(action).reason == "invalid_payload"
    assert all(v.owner is None for v in state.board.vertices)
    assert state.phase == Phase.SETUP1
    assert controller.apply(Action(ActionType.ROLL_DICE, {})).reason == "wrong_phase"


def test_year_of_plenty_offers_mixed_pairs():
    controller = _playing(seed=4)
    controller.state.active_player.dev_cards = [DevCardType.YEAR_OF_PLENTY]
    controller.roll((2, 2))
    pairs = {
        (a.payload["resource"], a.payload["second"])
        for a in controller.legal_actions()
        if a.action_type == ActionType.PLAY_DEV_CARD and a.payload["card"] == "year_of_plenty"
    }
    assert len(pairs) == 15
    assert ("wood", "ore") in pairs
    assert ("sheep", "sheep") in pairs

    action = Action(ActionType.PLAY_DEV_CARD, {"card": "year_of_plenty", "resource": "wood", "second": "ore"})
    assert controller.apply(action).ok
    player = controller.state.active_player
    assert player.resources[ResourceType.WOOD] == 1
    assert player.resources[ResourceType.ORE] == 1
