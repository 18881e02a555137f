"""Connectivity repair: bridge every minority cluster into the main cluster.

Each bridge is an A* route (walls traversable) from a random member of the
minority cluster to a random member of the main cluster; the route is carved
into floor. Cluster membership is stale afterwards, so the caller re-runs
``identify_clusters``.
"""
from __future__ import annotations

import random
from typing import Any, Dict, List, Optional

from ..logging_utils import get_logger
from .clusters import ClusterAnalysis
from .errors import UNRESOLVED_CONNECTIVITY, Diagnostic
from .grid import Grid
from .nodes import NodeType
from .pathfinding import find_path

log = get_logger("cavern.generation.connectivity")


def _pick(rng: random.Random, size: int) -> int:
    # randrange already stays within [0, size - 1]; the clamp guards a misbehaving rng
    return min(max(rng.randrange(size), 0), size - 1)


def connect_clusters(
    grid: Grid,
    analysis: ClusterAnalysis,
    rng: random.Random,
    wall_traversal_cost: float = 1.0,
    metrics: Optional[Dict[str, Any]] = None,
) -> List[Diagnostic]:
    diagnostics: List[Diagnostic] = []
    if analysis.main_index < 0:
        return diagnostics
    main = analysis.main_cluster
    for idx, cluster in analysis.minority():
        origin = cluster[_pick(rng, len(cluster))]
        destination = main[_pick(rng, len(main))]
        result = find_path(grid, origin, destination, wall_traversal_cost, include_obstacles=True, avoid_edges=True)
        if result is None:
            diag = Diagnostic(
                UNRESOLVED_CONNECTIVITY,
                "cluster could not be bridged to the main cluster",
                {"cluster_index": idx, "cluster_size": len(cluster), "origin": origin.coordinates},
            )
            diagnostics.append(diag)
            log.warn(event="cluster_unresolved", cluster=idx, size=len(cluster))
            if metrics is not None:
                metrics['unresolved_clusters'] += 1
            continue
        carved = 0
        for node in result.nodes:
            if node.node_type is not NodeType.BACKGROUND:
                node.node_type = NodeType.BACKGROUND
                carved += 1
        if metrics is not None:
            metrics['tunnels_carved'] += 1
            metrics['tunnel_cells_carved'] += carved
        log.debug(event="cluster_bridged", cluster=idx, length=len(result.nodes), carved=carved)
    return diagnostics


__all__ = ["connect_clusters"]
