"""A* search over the cave grid.

Used by the connectivity pass (walls are traversable at a configurable cost
so tunnels can be carved) and by collaborators that need floor-only routes.
Search state lives on the nodes (``g_score``, ``h_score``, ``parent``) and is
reset the first time a node is discovered by a search.
"""
from __future__ import annotations

import heapq
import itertools
from typing import List, NamedTuple, Optional, Union

from .grid import Grid
from .nodes import Coord2D, Node

OCCUPIED_MOVE_COST = 1000.0
FLOOR_MOVE_COST = 1.0

HEURISTIC_FLOOR = 1.0
HEURISTIC_WALL = 10.0
HEURISTIC_OCCUPIED = 200.0


class PathResult(NamedTuple):
    nodes: List[Node]
    cost: float

    @property
    def coordinates(self) -> List[Coord2D]:
        return [n.coordinates for n in self.nodes]


def _resolve(grid: Grid, ref: Union[Node, Coord2D]) -> Optional[Node]:
    coord = ref.coordinates if isinstance(ref, Node) else ref
    return grid.get(coord)


def move_cost(node: Node, wall_traversal_cost: float) -> float:
    if node.is_occupied:
        return OCCUPIED_MOVE_COST
    if node.is_wall:
        return wall_traversal_cost
    return FLOOR_MOVE_COST


def heuristic_multiplier(destination: Node) -> float:
    if destination.is_occupied:
        return HEURISTIC_OCCUPIED
    if destination.is_wall:
        return HEURISTIC_WALL
    return HEURISTIC_FLOOR


def manhattan(a: Node, b: Node) -> int:
    return abs(a.x - b.x) + abs(a.y - b.y)


def find_path(
    grid: Grid,
    origin: Union[Node, Coord2D],
    destination: Union[Node, Coord2D],
    wall_traversal_cost: float = 1.0,
    include_obstacles: bool = True,
    avoid_edges: bool = False,
) -> Optional[PathResult]:
    """Return the cheapest path from ``origin`` to ``destination`` (both inclusive).

    With ``include_obstacles`` false, wall and occupied cells are never
    entered. With ``avoid_edges`` the border ring is never entered, so carved
    routes leave the outer wall intact. Returns ``None`` when either endpoint
    is off-grid or no route exists. Ties on ``f_score`` go to the most
    recently inserted entry.
    """
    start = _resolve(grid, origin)
    goal = _resolve(grid, destination)
    if start is None or goal is None:
        return None
    start.reset_path_state()
    if start == goal:
        return PathResult([start], 0.0)

    multiplier = heuristic_multiplier(goal)
    start.h_score = manhattan(start, goal) * multiplier
    counter = itertools.count()
    open_heap = [(start.f_score, -next(counter), start)]
    discovered = {start.coordinates}
    closed = set()

    while open_heap:
        _, _, node = heapq.heappop(open_heap)
        if node.coordinates in closed:
            continue
        if node == goal:
            return PathResult(_rebuild(node), node.g_score)
        closed.add(node.coordinates)
        for nb in grid.orthogonal_neighbours(node.coordinates):
            if nb.coordinates in closed:
                continue
            if not include_obstacles and (nb.is_obstacle or nb.is_occupied):
                continue
            if avoid_edges and grid.is_edge(nb.coordinates):
                continue
            tentative = node.g_score + move_cost(nb, wall_traversal_cost)
            if nb.coordinates not in discovered:
                discovered.add(nb.coordinates)
                nb.reset_path_state()
                nb.h_score = manhattan(nb, goal) * multiplier
            elif tentative >= nb.g_score:
                continue
            nb.g_score = tentative
            nb.parent = node
            heapq.heappush(open_heap, (nb.f_score, -next(counter), nb))
    return None


def _rebuild(node: Node) -> List[Node]:
    path = []
    cur: Optional[Node] = node
    while cur is not None:
        path.append(cur)
        cur = cur.parent
    path.reverse()
    return path


__all__ = [
    "PathResult",
    "find_path",
    "move_cost",
    "heuristic_multiplier",
    "OCCUPIED_MOVE_COST",
]
