"""Per-cell records for the cave grid.

A ``Node`` is one grid cell: its classification, its grid coordinates (the
identity key), an optional cached world position, an occupancy flag and the
scratch fields used by the A* search.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple

Coord2D = Tuple[int, int]
Vec2 = Tuple[float, float]


class NodeType(Enum):
    INVALID = "invalid"
    WALL = "wall"
    WALL_TOP_LEFT = "wall_top_left"
    WALL_TOP_MIDDLE = "wall_top_middle"
    WALL_TOP_RIGHT = "wall_top_right"
    WALL_MIDDLE_LEFT = "wall_middle_left"
    WALL_MIDDLE = "wall_middle"
    WALL_MIDDLE_RIGHT = "wall_middle_right"
    WALL_BOTTOM_LEFT = "wall_bottom_left"
    WALL_BOTTOM_MIDDLE = "wall_bottom_middle"
    WALL_BOTTOM_RIGHT = "wall_bottom_right"
    BACKGROUND = "background"
    ENTRY = "entry"
    EXIT = "exit"


WALL_TYPES = frozenset(
    {
        NodeType.WALL,
        NodeType.WALL_TOP_LEFT,
        NodeType.WALL_TOP_MIDDLE,
        NodeType.WALL_TOP_RIGHT,
        NodeType.WALL_MIDDLE_LEFT,
        NodeType.WALL_MIDDLE,
        NodeType.WALL_MIDDLE_RIGHT,
        NodeType.WALL_BOTTOM_LEFT,
        NodeType.WALL_BOTTOM_MIDDLE,
        NodeType.WALL_BOTTOM_RIGHT,
    }
)

# Shaped walls only (the generic WALL is resolved into one of these during post-processing)
WALL_SHAPES = WALL_TYPES - {NodeType.WALL}


class Node:
    """One grid cell.

    Equality and hashing use ``coordinates`` only; type, occupancy and
    pathfinding scores never affect identity.
    """

    __slots__ = ("_coordinates", "node_type", "world_position", "is_occupied", "g_score", "h_score", "parent")

    def __init__(
        self,
        coordinates: Coord2D,
        node_type: NodeType = NodeType.INVALID,
        is_occupied: bool = False,
    ):
        self._coordinates = (int(coordinates[0]), int(coordinates[1]))
        self.node_type = node_type
        self.is_occupied = is_occupied
        self.world_position: Optional[Vec2] = None
        self.g_score = 0.0
        self.h_score = 0.0
        self.parent: Optional[Node] = None

    @property
    def coordinates(self) -> Coord2D:
        return self._coordinates

    @property
    def x(self) -> int:
        return self._coordinates[0]

    @property
    def y(self) -> int:
        return self._coordinates[1]

    @property
    def f_score(self) -> float:
        return self.g_score + self.h_score

    @property
    def is_wall(self) -> bool:
        return self.node_type in WALL_TYPES

    @property
    def is_background(self) -> bool:
        return self.node_type is NodeType.BACKGROUND

    @property
    def is_obstacle(self) -> bool:
        """Walls block floor-only searches; see ``pathfinding.find_path``."""
        return self.is_wall

    def reset_path_state(self) -> None:
        self.g_score = 0.0
        self.h_score = 0.0
        self.parent = None

    def to_dict(self):
        return {"x": self.x, "y": self.y, "type": self.node_type.value, "occupied": self.is_occupied}

    def __eq__(self, other):
        if not isinstance(other, Node):
            return NotImplemented
        return self._coordinates == other._coordinates

    def __hash__(self):
        return hash(self._coordinates)

    def __repr__(self):
        return f"Node({self.x}, {self.y}, {self.node_type.name})"


__all__ = ["Coord2D", "Vec2", "NodeType", "WALL_TYPES", "WALL_SHAPES", "Node"]
