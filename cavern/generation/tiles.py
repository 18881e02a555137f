"""Tile characters and the grid <-> world mapping."""
from __future__ import annotations

import math
from typing import Optional

from .grid import Grid
from .nodes import Coord2D, Node, NodeType, Vec2

# Single-character rendering used by the CLI and debug output
TILE_CHARS = {
    NodeType.INVALID: "?",
    NodeType.WALL: "#",
    NodeType.WALL_TOP_LEFT: "r",
    NodeType.WALL_TOP_MIDDLE: "-",
    NodeType.WALL_TOP_RIGHT: "7",
    NodeType.WALL_MIDDLE_LEFT: "[",
    NodeType.WALL_MIDDLE: "#",
    NodeType.WALL_MIDDLE_RIGHT: "]",
    NodeType.WALL_BOTTOM_LEFT: "L",
    NodeType.WALL_BOTTOM_MIDDLE: "_",
    NodeType.WALL_BOTTOM_RIGHT: "J",
    NodeType.BACKGROUND: ".",
    NodeType.ENTRY: "E",
    NodeType.EXIT: "X",
}


def render_ascii(grid: Grid) -> str:
    return "\n".join("".join(TILE_CHARS[n.node_type] for n in row) for row in grid.rows())


def type_names(grid: Grid):
    """Row-major (top row first) list of type names for JSON payloads."""
    return [[n.node_type.value for n in row] for row in grid.rows()]


class TileMapper:
    """Maps grid coordinates to world positions for one tile size.

    Positions are cell centres: ``(x * tw + tw / 2, y * th + th / 2)``. The
    first lookup for a node caches the result on ``node.world_position``.
    """

    def __init__(self, tile_width: float = 1.0, tile_height: float = 1.0, grid: Optional[Grid] = None):
        self.tile_width = float(tile_width)
        self.tile_height = float(tile_height)
        self.grid = grid

    def world_position(self, node: Node) -> Vec2:
        if node.world_position is None:
            node.world_position = (
                node.x * self.tile_width + self.tile_width / 2.0,
                node.y * self.tile_height + self.tile_height / 2.0,
            )
        return node.world_position

    def grid_coordinate_for(self, position: Vec2) -> Optional[Coord2D]:
        coord = (int(math.floor(position[0] / self.tile_width)), int(math.floor(position[1] / self.tile_height)))
        if self.grid is not None and not self.grid.is_valid_coordinate(coord):
            return None
        return coord

    def distance(self, a: Node, b: Node) -> float:
        ax, ay = self.world_position(a)
        bx, by = self.world_position(b)
        return math.hypot(ax - bx, ay - by)


def grid_distance(a: Node, b: Node) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


__all__ = ["TILE_CHARS", "render_ascii", "type_names", "TileMapper", "grid_distance"]
