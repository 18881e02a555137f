"""Topology post-processing for the carved cave.

Runs after connectivity repair:

1. remove degenerate wall artifacts (lone cells, spurs, one-cell slivers),
2. re-identify clusters, since removal opens new floor,
3. classify every remaining wall into one of nine directional shapes,
4. cache the interior floor cells of the main cluster (the spawn pool).

Passes that retype cells decide against the grid as it was before the pass
and write afterwards, so the visiting order never changes the result.
"""
from __future__ import annotations

from typing import Any, Dict, List, NamedTuple, Optional

from .clusters import Cluster, ClusterAnalysis, identify_clusters
from .grid import Grid
from .nodes import Node, NodeType


def _open_sides(grid: Grid, node: Node):
    """(below, left, above, right) floor flags; off-grid counts as wall."""
    x, y = node.coordinates
    return (
        grid.is_background_at((x, y - 1)),
        grid.is_background_at((x - 1, y)),
        grid.is_background_at((x, y + 1)),
        grid.is_background_at((x + 1, y)),
    )


def is_extraneous_wall(grid: Grid, node: Node) -> bool:
    """True for a wall that should be opened up into floor."""
    if not node.is_wall:
        return False
    below, left, above, right = _open_sides(grid, node)
    walls = 4 - sum((below, left, above, right))
    if walls <= 1:
        return True
    if left and right and not above and not below:
        return True
    if above and below and not left and not right:
        return True
    return False


def remove_wall_artifacts(grid: Grid) -> int:
    doomed = [node for node in grid if is_extraneous_wall(grid, node)]
    for node in doomed:
        node.node_type = NodeType.BACKGROUND
    return len(doomed)


# (below, left, above, right) floor flags -> wall shape
_SHAPE_TABLE = {
    (False, False, True, True): NodeType.WALL_TOP_RIGHT,
    (False, False, True, False): NodeType.WALL_TOP_MIDDLE,
    (False, True, True, False): NodeType.WALL_TOP_LEFT,
    (True, False, False, True): NodeType.WALL_BOTTOM_RIGHT,
    (True, False, False, False): NodeType.WALL_BOTTOM_MIDDLE,
    (True, True, False, False): NodeType.WALL_BOTTOM_LEFT,
    (False, True, False, False): NodeType.WALL_MIDDLE_LEFT,
    (False, False, False, True): NodeType.WALL_MIDDLE_RIGHT,
}


def classify_wall_shape(grid: Grid, node: Node) -> NodeType:
    return _SHAPE_TABLE.get(_open_sides(grid, node), NodeType.WALL_MIDDLE)


def classify_walls(grid: Grid) -> int:
    shapes = [(node, classify_wall_shape(grid, node)) for node in grid if node.node_type is NodeType.WALL]
    for node, shape in shapes:
        node.node_type = shape
    return len(shapes)


def is_interior_floor(grid: Grid, node: Node) -> bool:
    if node.node_type is not NodeType.BACKGROUND:
        return False
    x, y = node.coordinates
    return (
        grid.is_wall_at((x, y - 1))
        and grid.is_background_at((x - 1, y))
        and grid.is_background_at((x + 1, y))
        and grid.is_background_at((x, y + 1))
    )


def collect_interior_floor_nodes(grid: Grid, main_cluster: Cluster) -> List[Node]:
    return [node for node in main_cluster if is_interior_floor(grid, node)]


class TopologyOutputs(NamedTuple):
    analysis: ClusterAnalysis
    floor_pool: List[Node]
    artifacts_removed: int
    walls_classified: int


def cleanup_and_classify(grid: Grid, metrics: Optional[Dict[str, Any]] = None) -> TopologyOutputs:
    removed = remove_wall_artifacts(grid)
    analysis = identify_clusters(grid)
    classified = classify_walls(grid)
    pool = collect_interior_floor_nodes(grid, analysis.main_cluster)
    if metrics is not None:
        metrics['artifacts_removed'] += removed
        metrics['walls_classified'] += classified
        metrics['floor_pool_initial'] = len(pool)
    return TopologyOutputs(analysis, pool, removed, classified)


__all__ = [
    "is_extraneous_wall",
    "remove_wall_artifacts",
    "classify_wall_shape",
    "classify_walls",
    "is_interior_floor",
    "collect_interior_floor_nodes",
    "cleanup_and_classify",
    "TopologyOutputs",
]
