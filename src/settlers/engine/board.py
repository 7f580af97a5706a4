from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import networkx as nx

from .types import GENERIC_PORT, Edge, Hex, Port, ResourceType, Vertex

logger = logging.getLogger(__name__)

AXIAL_RADIUS = 2

# Fixed (resource, number) multiset for the 19-hex board.
STANDARD_LAYOUT: List[Tuple[ResourceType, Optional[int]]] = [
    (ResourceType.ORE, 10),
    (ResourceType.WHEAT, 2),
    (ResourceType.WOOD, 9),
    (ResourceType.SHEEP, 12),
    (ResourceType.BRICK, 6),
    (ResourceType.WHEAT, 4),
    (ResourceType.WOOD, 8),
    (ResourceType.DESERT, None),
    (ResourceType.SHEEP, 3),
    (ResourceType.ORE, 11),
    (ResourceType.BRICK, 5),
    (ResourceType.WHEAT, 6),
    (ResourceType.SHEEP, 10),
    (ResourceType.WOOD, 9),
    (ResourceType.ORE, 3),
    (ResourceType.BRICK, 8),
    (ResourceType.SHEEP, 11),
    (ResourceType.WHEAT, 5),
    (ResourceType.WOOD, 4),
]

VALID_NUMBERS = frozenset({2, 3, 4, 5, 6, 8, 9, 10, 11, 12})

# Corner i and corner i + 1 bound side i.
CORNER_OFFSETS = [
    (0, 4),
    (2, 2),
    (2, -2),
    (0, -4),
    (-2, -2),
    (-2, 2),
]

# Axial direction of the neighbouring hex across side i.
SIDE_DIRECTIONS = [
    (0, 1),
    (1, 0),
    (1, -1),
    (0, -1),
    (-1, 0),
    (-1, 1),
]

# (q, r, side, resource) of the coastal ports.
PORT_LOCATIONS: List[Tuple[int, int, int, str]] = [
    (0, -2, 3, ResourceType.WOOD.value),
    (1, -2, 2, GENERIC_PORT),
    (2, -1, 1, ResourceType.BRICK.value),
    (2, 0, 1, ResourceType.SHEEP.value),
    (1, 1, 0, ResourceType.WHEAT.value),
    (-1, 2, 0, ResourceType.ORE.value),
    (-2, 1, 5, GENERIC_PORT),
    (-2, 0, 4, ResourceType.WOOD.value),
]

SPECIFIC_PORT_RATIO = 2
GENERIC_PORT_RATIO = 3


@dataclass(frozen=True)
class Topology:
    """Adjacency index computed once per board; every rules query is a lookup."""

    graph: nx.Graph
    hex_vertices: Dict[int, List[int]]
    hex_edges: Dict[int, List[int]]
    hex_neighbors: Dict[int, List[int]]
    vertex_hexes: Dict[int, List[int]]
    vertex_neighbors: Dict[int, List[int]]
    vertex_edges: Dict[int, List[int]]
    edge_neighbors: Dict[int, List[int]]
    port_vertices: Dict[int, List[int]]


@dataclass
class Board:
    hexes: List[Hex]
    vertices: List[Vertex]
    edges: List[Edge]
    ports: List[Port]
    topology: Topology

    def get_hex(self, hex_id: int) -> Hex | None:
        if 0 <= hex_id < len(self.hexes):
            return self.hexes[hex_id]
        return None

    def get_vertex(self, vertex_id: int) -> Vertex | None:
        if 0 <= vertex_id < len(self.vertices):
            return self.vertices[vertex_id]
        return None

    def get_edge(self, edge_id: int) -> Edge | None:
        if 0 <= edge_id < len(self.edges):
            return self.edges[edge_id]
        return None

    def robber_hex(self) -> Hex | None:
        return next((h for h in self.hexes if h.has_robber), None)

    def edge_between(self, vertex_a: int, vertex_b: int) -> int | None:
        data = self.topology.graph.get_edge_data(vertex_a, vertex_b)
        if data is None:
            return None
        return data["edge_id"]


def axial_coords(radius: int = AXIAL_RADIUS) -> List[Tuple[int, int]]:
    coords: List[Tuple[int, int]] = []
    for q in range(-radius, radius + 1):
        for r in range(-radius, radius + 1):
            if -radius <= q + r <= radius:
                coords.append((q, r))
    return coords


def axial_center(q: int, r: int) -> Tuple[int, int]:
    size = 2
    return (size * (2 * q + r), size * (3 * r))


def corner_coord(q: int, r: int, corner: int) -> Tuple[int, int]:
    cx, cy = axial_center(q, r)
    ox, oy = CORNER_OFFSETS[corner]
    return (cx + ox, cy + oy)


def build_hex_neighbors(coords: Sequence[Tuple[int, int]]) -> Dict[int, List[int]]:
    coord_to_id = {coord: hex_id for hex_id, coord in enumerate(coords)}
    neighbors: Dict[int, List[int]] = {}
    for hex_id, (q, r) in enumerate(coords):
        hex_neighbors: List[int] = []
        for dq, dr in SIDE_DIRECTIONS:
            neighbor_coord = (q + dq, r + dr)
            if neighbor_coord in coord_to_id:
                hex_neighbors.append(coord_to_id[neighbor_coord])
        neighbors[hex_id] = hex_neighbors
    return neighbors


def build_topology(
    coords: Sequence[Tuple[int, int]],
) -> Tuple[List[Vertex], List[Edge], List[Port], Topology]:
    """Create deduplicated vertices/edges for the given hex coordinates.

    Corners are mapped onto an integer lattice, so two hexes sharing a
    physical corner produce the same lattice point and therefore the same
    vertex. Sides are keyed by their unordered vertex pair, which merges the
    shared side of adjacent hexes into a single edge. The result depends only
    on ``coords`` and its order, which lets a serialized board rebuild the
    identical index.
    """
    vertex_by_coord: Dict[Tuple[int, int], int] = {}
    edge_by_pair: Dict[Tuple[int, int], int] = {}
    vertices: List[Vertex] = []
    edges: List[Edge] = []
    hex_vertices: Dict[int, List[int]] = {}
    hex_edges: Dict[int, List[int]] = {}
    graph = nx.Graph()

    for hex_id, (q, r) in enumerate(coords):
        corner_ids: List[int] = []
        for corner in range(6):
            coord = corner_coord(q, r, corner)
            if coord not in vertex_by_coord:
                vid = len(vertices)
                vertex_by_coord[coord] = vid
                vertices.append(Vertex(vertex_id=vid, q=q, r=r, corner=corner, coord=coord))
                graph.add_node(vid)
            corner_ids.append(vertex_by_coord[coord])
        hex_vertices[hex_id] = corner_ids

        side_ids: List[int] = []
        for side in range(6):
            a = corner_ids[side]
            b = corner_ids[(side + 1) % 6]
            key = (min(a, b), max(a, b))
            if key not in edge_by_pair:
                eid = len(edges)
                edge_by_pair[key] = eid
                edges.append(Edge(edge_id=eid, q=q, r=r, side=side, vertex_a=key[0], vertex_b=key[1]))
                graph.add_edge(key[0], key[1], edge_id=eid)
            side_ids.append(edge_by_pair[key])
        hex_edges[hex_id] = side_ids

    vertex_hexes: Dict[int, List[int]] = {vid: [] for vid in range(len(vertices))}
    for hex_id, corner_ids in hex_vertices.items():
        for vid in corner_ids:
            vertex_hexes[vid].append(hex_id)

    vertex_neighbors = {vid: sorted(graph.neighbors(vid)) for vid in graph.nodes}
    vertex_edges = {
        vid: sorted(data["edge_id"] for _, _, data in graph.edges(vid, data=True))
        for vid in graph.nodes
    }
    edge_neighbors: Dict[int, List[int]] = {}
    for edge in edges:
        touching = set(vertex_edges[edge.vertex_a]) | set(vertex_edges[edge.vertex_b])
        touching.discard(edge.edge_id)
        edge_neighbors[edge.edge_id] = sorted(touching)

    coord_to_id = {coord: hex_id for hex_id, coord in enumerate(coords)}
    ports: List[Port] = []
    port_vertices: Dict[int, List[int]] = {}
    for q, r, side, resource in PORT_LOCATIONS:
        hex_id = coord_to_id.get((q, r))
        if hex_id is None:
            continue
        port_id = len(ports)
        ratio = GENERIC_PORT_RATIO if resource == GENERIC_PORT else SPECIFIC_PORT_RATIO
        ports.append(Port(port_id=port_id, q=q, r=r, side=side, resource=resource, ratio=ratio))
        corner_ids = hex_vertices[hex_id]
        port_vertices[port_id] = [corner_ids[side], corner_ids[(side + 1) % 6]]

    topology = Topology(
        graph=graph,
        hex_vertices=hex_vertices,
        hex_edges=hex_edges,
        hex_neighbors=build_hex_neighbors(coords),
        vertex_hexes=vertex_hexes,
        vertex_neighbors=vertex_neighbors,
        vertex_edges=vertex_edges,
        edge_neighbors=edge_neighbors,
        port_vertices=port_vertices,
    )
    return vertices, edges, ports, topology


def generate_board(rng: random.Random | None = None) -> Board:
    """Build the 19-hex board with a shuffled resource/number layout.

    The robber starts on the desert. Adjacent 6/8 numbers are not prevented.
    """
    if rng is None:
        rng = random.Random()

    coords = axial_coords()
    layout = list(STANDARD_LAYOUT)
    rng.shuffle(layout)

    hexes: List[Hex] = []
    for hex_id, ((q, r), (resource, number)) in enumerate(zip(coords, layout)):
        hexes.append(
            Hex(
                hex_id=hex_id,
                q=q,
                r=r,
                resource=resource,
                number=number,
                has_robber=resource == ResourceType.DESERT,
            )
        )

    vertices, edges, ports, topology = build_topology(coords)
    logger.debug(
        "Generated board: %d hexes, %d vertices, %d edges, %d ports",
        len(hexes),
        len(vertices),
        len(edges),
        len(ports),
    )
    return Board(hexes=hexes, vertices=vertices, edges=edges, ports=ports, topology=topology)
