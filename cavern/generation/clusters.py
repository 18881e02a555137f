"""Cluster analysis: 4-connected floor components via iterative flood fill."""
from __future__ import annotations

from collections import deque
from typing import Iterator, List, NamedTuple, Optional

from .grid import Grid
from .nodes import Node, NodeType


class Cluster:
    """Ordered members of one floor component, in flood-fill discovery order."""

    __slots__ = ("nodes",)

    def __init__(self, nodes: Optional[List[Node]] = None):
        self.nodes: List[Node] = list(nodes or [])

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self.nodes)

    def __getitem__(self, index: int) -> Node:
        return self.nodes[index]

    def __contains__(self, node) -> bool:
        return node in self.nodes

    def coordinates(self):
        return {n.coordinates for n in self.nodes}

    def __repr__(self):
        return f"Cluster(size={len(self.nodes)})"


class ClusterAnalysis(NamedTuple):
    clusters: List[Cluster]
    main_index: int

    @property
    def main_cluster(self) -> Cluster:
        if self.main_index < 0:
            return Cluster()
        return self.clusters[self.main_index]

    def minority(self) -> Iterator[tuple]:
        """(index, cluster) for every cluster other than the main one."""
        for idx, cluster in enumerate(self.clusters):
            if idx != self.main_index:
                yield idx, cluster


def _flood(grid: Grid, start: Node, visited: set) -> Cluster:
    members = [start]
    visited.add(start.coordinates)
    q = deque([start])
    while q:
        node = q.popleft()
        for nb in grid.orthogonal_neighbours(node.coordinates):
            if nb.coordinates in visited or nb.node_type is not NodeType.BACKGROUND:
                continue
            visited.add(nb.coordinates)
            members.append(nb)
            q.append(nb)
    return Cluster(members)


def find_main_cluster_index(clusters: List[Cluster]) -> int:
    main_index = -1
    best = 0
    for idx, cluster in enumerate(clusters):
        # strict comparison keeps the first cluster on ties
        if len(cluster) > best:
            best = len(cluster)
            main_index = idx
    return main_index


def identify_clusters(grid: Grid) -> ClusterAnalysis:
    """Partition every BACKGROUND cell into clusters.

    The scan is row-major, so the cluster order (and the main-cluster tie
    break) depends only on the grid contents.
    """
    visited: set = set()
    clusters: List[Cluster] = []
    for node in grid:
        if node.node_type is NodeType.BACKGROUND and node.coordinates not in visited:
            clusters.append(_flood(grid, node, visited))
    return ClusterAnalysis(clusters, find_main_cluster_index(clusters))


def convert_disconnected_clusters(grid: Grid, analysis: ClusterAnalysis, node_type: NodeType = NodeType.WALL) -> int:
    """Retype every non-main cluster member; returns the number of clusters converted."""
    converted = 0
    for _, cluster in analysis.minority():
        for node in cluster:
            node.node_type = node_type
        converted += 1
    return converted


__all__ = [
    "Cluster",
    "ClusterAnalysis",
    "identify_clusters",
    "find_main_cluster_index",
    "convert_disconnected_clusters",
]
