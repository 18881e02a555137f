"""Structural checks for a generated cave.

``analyze(session)`` returns a dict of issue lists; every list is empty for a
healthy cave. Used by ``scripts/diagnose_seeds.py`` and the invariant tests.
"""
from __future__ import annotations

from typing import Any, Dict

from .clusters import identify_clusters
from .errors import UNRESOLVED_CONNECTIVITY
from .nodes import NodeType
from .pruning import classify_wall_shape


def analyze(session) -> Dict[str, Any]:
    grid = session.grid
    border_violations = [n.coordinates for n in grid if grid.is_edge(n.coordinates) and not n.is_wall]
    generic_walls = [n.coordinates for n in grid if n.node_type is NodeType.WALL]

    # Wall shapes are decided before the entrance and exit are marked, so
    # re-derive them against a view where ENTRY/EXIT read as floor again.
    marked = [n for n in (session.entrance_node, session.exit_node) if n is not None]
    for n in marked:
        n.node_type = NodeType.BACKGROUND
    try:
        misshaped = [
            n.coordinates
            for n in grid
            if n.is_wall and n.node_type is not NodeType.WALL and classify_wall_shape(grid, n) is not n.node_type
        ]
        extra_clusters = max(0, len(identify_clusters(grid).clusters) - 1)
    finally:
        if session.entrance_node is not None:
            session.entrance_node.node_type = NodeType.ENTRY
        if session.exit_node is not None:
            session.exit_node.node_type = NodeType.EXIT

    unresolved = sum(1 for d in session.diagnostics if d.code == UNRESOLVED_CONNECTIVITY)
    placement = []
    entrance, exit_node = session.entrance_node, session.exit_node
    main = session.main_cluster
    if len(main):
        if entrance is None or exit_node is None:
            placement.append("missing entrance or exit")
        else:
            if entrance == exit_node:
                placement.append("entrance and exit coincide")
            if entrance not in main or exit_node not in main:
                placement.append("entrance or exit outside the main cluster")
            if session.mapper.distance(entrance, exit_node) + 1e-9 < session.min_distance_used:
                placement.append("entrance/exit closer than min_distance_used")

    return {
        "border_violations": border_violations,
        "generic_walls": generic_walls,
        "misshaped_walls": misshaped,
        # Clusters left apart without a diagnostic explaining why
        "extra_clusters": max(0, extra_clusters - unresolved),
        "placement_issues": placement,
    }


def is_healthy(report: Dict[str, Any]) -> bool:
    return all(not v for v in report.values())


__all__ = ["analyze", "is_healthy"]
