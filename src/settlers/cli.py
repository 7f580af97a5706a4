from __future__ import annotations

import argparse
import logging
import sys
from typing import List

from settlers.agents import RandomAgent, create_agents
from settlers.engine import rules
from settlers.engine.controller import ActionResult, GameController
from settlers.engine.types import Phase

HELP_TEXT = """
Commands:
  help                         Show this help text
  state                        Show current game state summary
  hexes                        List hexes (id, resource, number, robber)
  vertices                     List occupied vertices
  edges                        List occupied edges
  legal                        Show count of legal actions (and first 10)
  settle <vertex>              Place a setup settlement
  road <edge>                  Place a setup road
  roll [d1 d2]                 Roll dice (or force values)
  build <road|settlement|city> <id>
  buy                          Buy a development card
  play <card> [res] [res2]     Play a development card
  trade <give> <get>           Trade with the bank at your best rate
  discard                      Discard half your cards (only when prompted)
  robber <hex> [victim]        Move the robber
  end                          End turn
  log                          Show the last ten log entries
  new                          Start a new game
  quit                         Exit
""".strip()


def _print_hexes(controller: GameController) -> None:
    for hex_ in controller.state.board.hexes:
        robber = "robber" if hex_.has_robber else ""
        print(f"Hex {hex_.hex_id} ({hex_.q},{hex_.r}) | {hex_.resource.value} | {hex_.number} {robber}".strip())


def _print_vertices(controller: GameController) -> None:
    for vertex in controller.state.board.vertices:
        if vertex.owner is not None:
            print(f"V{vertex.vertex_id} {vertex.coord} | P{vertex.owner} {vertex.building.value}")


def _print_edges(controller: GameController) -> None:
    for edge in controller.state.board.edges:
        if edge.owner is not None:
            print(f"E{edge.edge_id} ({edge.vertex_a}-{edge.vertex_b}) | P{edge.owner}")


def _print_legal(controller: GameController) -> None:
    actions = controller.legal_actions()
    print(f"Legal actions: {len(actions)}")
    for action in actions[:10]:
        print(f"- {action.action_type.value} {action.payload}")


def _report(result: ActionResult) -> None:
    if result.ok:
        print(f"OK {result.data}" if result.data else "OK")
    else:
        print(f"Rejected: {result.reason}")


def _run_bots(controller: GameController, agents: List[RandomAgent]) -> None:
    state = controller.state
    while state.phase != Phase.GAME_OVER:
        actor = controller.acting_player()
        if state.players[actor].is_human:
            return
        agents[actor].act(controller)
        state = controller.state


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Play against three random opponents")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    controller = GameController(seed=args.seed)
    agents = create_agents(args.seed)
    print("Settlers CLI - type 'help' for commands")

    while True:
        _run_bots(controller, agents)
        state = controller.state
        prompt = f"P{controller.acting_player()}:{state.phase.value}> "
        try:
            raw = input(prompt).strip()
        except (EOFError, KeyboardInterrupt):
            print("\nExiting")
            return 0
        if not raw:
            continue
        parts = raw.split()
        cmd = parts[0].lower()

        try:
            if cmd == "help":
                print(HELP_TEXT)
            elif cmd == "state":
                print(controller.summary())
            elif cmd == "hexes":
                _print_hexes(controller)
            elif cmd == "vertices":
                _print_vertices(controller)
            elif cmd == "edges":
                _print_edges(controller)
            elif cmd == "legal":
                _print_legal(controller)
            elif cmd == "settle":
                _report(controller.place_setup_settlement(int(parts[1])))
            elif cmd == "road":
                _report(controller.place_setup_road(int(parts[1])))
            elif cmd == "roll":
                dice = (int(parts[1]), int(parts[2])) if len(parts) > 2 else None
                _report(controller.roll(dice))
            elif cmd == "build":
                _report(controller.build(parts[1].lower(), int(parts[2])))
            elif cmd == "buy":
                _report(controller.buy_development_card())
            elif cmd == "play":
                _report(controller.play_dev_card(parts[1].lower(), *[p.lower() for p in parts[2:4]]))
            elif cmd == "trade":
                _report(controller.trade(parts[1].lower(), parts[2].lower()))
            elif cmd == "discard":
                _report(controller.discard(controller.acting_player()))
            elif cmd == "robber":
                victim = int(parts[2]) if len(parts) > 2 else None
                _report(controller.move_robber(int(parts[1]), victim))
            elif cmd in {"end", "pass"}:
                _report(controller.end_turn())
            elif cmd == "log":
                for entry in state.log[-10:]:
                    print(f"T{entry.turn} P{entry.player} {entry.action}")
            elif cmd == "new":
                _report(controller.new_game())
            elif cmd == "quit":
                return 0
            else:
                print("Unknown command. Type 'help'.")
        except (IndexError, ValueError):
            print("Malformed command. Type 'help'.")

        state = controller.state
        if state.winner is not None:
            winner = state.players[state.winner]
            print(f"{winner.name} wins with {rules.calculate_vp(winner, state)} VP")


if __name__ == "__main__":
    sys.exit(main())
