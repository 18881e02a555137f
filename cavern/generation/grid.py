"""Dense rectangular grid of ``Node`` objects.

Storage is a single flat list indexed ``y * width + x``. ``y`` grows upward:
the cell below ``(x, y)`` is ``(x, y - 1)``. Lookups outside the grid return
``None``; helpers that answer "is this a wall?" treat off-grid cells as walls.
"""
from __future__ import annotations

from typing import Iterator, List, Optional

from .nodes import Coord2D, Node, NodeType

# Orthogonal offsets in expansion order: below, left, above, right
ORTHOGONAL = ((0, -1), (-1, 0), (0, 1), (1, 0))
MOORE = tuple((dx, dy) for dy in (-1, 0, 1) for dx in (-1, 0, 1) if (dx, dy) != (0, 0))


class Grid:
    def __init__(self, width: int, height: int, fill: NodeType = NodeType.INVALID):
        self.width = int(width)
        self.height = int(height)
        self._nodes: List[Node] = [Node((x, y), fill) for y in range(self.height) for x in range(self.width)]

    @property
    def size(self) -> Coord2D:
        return (self.width, self.height)

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        """Row-major iteration (``y`` outer, ``x`` inner)."""
        return iter(self._nodes)

    def is_valid_coordinate(self, coord: Coord2D) -> bool:
        x, y = coord
        return 0 <= x < self.width and 0 <= y < self.height

    def is_edge(self, coord: Coord2D) -> bool:
        x, y = coord
        return x == 0 or y == 0 or x == self.width - 1 or y == self.height - 1

    def get(self, coord: Coord2D) -> Optional[Node]:
        if not self.is_valid_coordinate(coord):
            return None
        return self._nodes[coord[1] * self.width + coord[0]]

    def __getitem__(self, coord: Coord2D) -> Node:
        node = self.get(coord)
        if node is None:
            raise KeyError(coord)
        return node

    def __contains__(self, item) -> bool:
        coord = item.coordinates if isinstance(item, Node) else item
        return self.is_valid_coordinate(coord)

    def contains_type_at(self, coord: Coord2D, node_type: NodeType) -> bool:
        node = self.get(coord)
        return node is not None and node.node_type is node_type

    def is_background_at(self, coord: Coord2D) -> bool:
        return self.contains_type_at(coord, NodeType.BACKGROUND)

    def is_wall_at(self, coord: Coord2D) -> bool:
        node = self.get(coord)
        return node is None or node.is_wall

    def orthogonal_neighbours(self, coord: Coord2D) -> List[Node]:
        x, y = coord
        out = []
        for dx, dy in ORTHOGONAL:
            node = self.get((x + dx, y + dy))
            if node is not None:
                out.append(node)
        return out

    def count_wall_moore_neighbours(self, coord: Coord2D) -> int:
        """Count walls among the 8 surrounding cells (off-grid counts as wall)."""
        x, y = coord
        count = 0
        for dx, dy in MOORE:
            node = self.get((x + dx, y + dy))
            if node is None or node.is_wall:
                count += 1
        return count

    def types(self) -> List[NodeType]:
        """Snapshot of every cell type in storage order."""
        return [n.node_type for n in self._nodes]

    def apply_types(self, types: List[NodeType]) -> None:
        if len(types) != len(self._nodes):
            raise ValueError("type snapshot does not match grid size")
        for node, node_type in zip(self._nodes, types):
            node.node_type = node_type

    def rows(self) -> Iterator[List[Node]]:
        """Rows from the top of the cave (``y = height - 1``) down to ``y = 0``."""
        for y in range(self.height - 1, -1, -1):
            start = y * self.width
            yield self._nodes[start : start + self.width]

    def count(self, node_type: NodeType) -> int:
        return sum(1 for n in self._nodes if n.node_type is node_type)

    def __repr__(self):
        return f"Grid({self.width}x{self.height})"


__all__ = ["Grid", "ORTHOGONAL", "MOORE"]
