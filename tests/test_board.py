import random

from settlers.engine.board import VALID_NUMBERS, axial_coords, generate_board
from settlers.engine.types import GENERIC_PORT, ResourceType


def test_board_counts():
    board = generate_board(random.Random(42))
    assert len(board.hexes) == 19
    assert len(board.vertices) == 54
    assert len(board.edges) == 72
    assert len(board.ports) == 8


def test_desert_has_robber_and_no_number():
    board = generate_board(random.Random(7))
    deserts = [h for h in board.hexes if h.resource == ResourceType.DESERT]
    assert len(deserts) == 1
    assert deserts[0].has_robber is True
    assert deserts[0].number is None
    assert sum(1 for h in board.hexes if h.has_robber) == 1


def test_numbers_in_valid_set():
    for seed in range(10):
        board = generate_board(random.Random(seed))
        for hex_ in board.hexes:
            if hex_.resource == ResourceType.DESERT:
                continue
            assert hex_.number in VALID_NUMBERS
        assert not any(h.resource == ResourceType.GOLD for h in board.hexes)


def test_same_seed_same_layout():
    first = generate_board(random.Random(3))
    second = generate_board(random.Random(3))
    assert [(h.resource, h.number) for h in first.hexes] == [(h.resource, h.number) for h in second.hexes]


def test_hex_coordinates_form_radius_two_hexagon():
    board = generate_board(random.Random(1))
    coords = {h.axial for h in board.hexes}
    assert coords == set(axial_coords(2))
    assert all(abs(q) <= 2 and abs(r) <= 2 and abs(q + r) <= 2 for q, r in coords)


def test_shared_corners_and_sides_are_merged():
    board = generate_board(random.Random(5))
    topo = board.topology
    for hex_id in range(19):
        assert len(set(topo.hex_vertices[hex_id])) == 6
        assert len(set(topo.hex_edges[hex_id])) == 6
    # 19 hexes x 6 corners, each vertex counted once per hex it touches.
    assert sum(len(hexes) for hexes in topo.vertex_hexes.values()) == 19 * 6
    assert all(1 <= len(hexes) <= 3 for hexes in topo.vertex_hexes.values())
    shared_sides = sum(
        1 for edge in board.edges
        if len(set(topo.vertex_hexes[edge.vertex_a]) & set(topo.vertex_hexes[edge.vertex_b])) == 2
    )
    assert shared_sides == 19 * 6 - 72


def test_vertex_degree_and_neighbors():
    board = generate_board(random.Random(5))
    topo = board.topology
    for vertex in board.vertices:
        neighbors = topo.vertex_neighbors[vertex.vertex_id]
        assert len(neighbors) in (2, 3)
        assert len(topo.vertex_edges[vertex.vertex_id]) == len(neighbors)
        for other in neighbors:
            assert board.edge_between(vertex.vertex_id, other) is not None


def test_edge_neighbors_share_a_corner():
    board = generate_board(random.Random(9))
    topo = board.topology
    for edge in board.edges:
        for other_id in topo.edge_neighbors[edge.edge_id]:
            other = board.edges[other_id]
            assert set(edge.vertices) & set(other.vertices)


def test_ports_sit_on_coast():
    board = generate_board(random.Random(2))
    topo = board.topology
    seen = set()
    for port in board.ports:
        expected = 3 if port.resource == GENERIC_PORT else 2
        assert port.ratio == expected
        vertices = topo.port_vertices[port.port_id]
        assert len(vertices) == 2
        for vid in vertices:
            assert len(topo.vertex_hexes[vid]) <= 2
        seen.update(vertices)
    assert len(seen) == 16


def test_hex_neighbors_are_symmetric():
    board = generate_board(random.Random(4))
    neighbors = board.topology.hex_neighbors
    for hex_id, adjacent in neighbors.items():
        for other in adjacent:
            assert hex_id in neighbors[other]
    center = next(h.hex_id for h in board.hexes if h.axial == (0, 0))
    assert len(neighbors[center]) == 6


def test_unknown_ids_return_none():
    board = generate_board(random.Random(4))
    assert board.get_hex(19) is None
    assert board.get_vertex(-1) is None
    assert board.get_edge(72) is None
