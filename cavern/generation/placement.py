"""Entrance/exit placement and distance-bounded pool queries."""
from __future__ import annotations

import math
import random
from typing import Iterable, List, NamedTuple, Optional

from ..logging_utils import get_logger
from .errors import EXHAUSTED_PLACEMENT_SEARCH, POOL_EXHAUSTED, Diagnostic
from .nodes import Node, NodeType
from .tiles import TileMapper, grid_distance

log = get_logger("cavern.generation.placement")


class PlacementSearch(NamedTuple):
    node: Optional[Node]
    distance_used: float
    relaxations: int
    fallback: bool
    diagnostic: Optional[Diagnostic]


class Placement(NamedTuple):
    entrance: Optional[Node]
    exit: Optional[Node]
    min_distance: float
    min_distance_used: float
    relaxations: int
    fallback: bool
    diagnostics: List[Diagnostic]


def default_min_distance(width: int, height: int, mapper: TileMapper, fraction: float = 0.3) -> float:
    """Minimum entrance/exit separation in world units."""
    return (width * mapper.tile_width + height * mapper.tile_height) * fraction


def take_random_floor_node(pool: List[Node], rng: random.Random) -> Optional[Node]:
    """Remove and return a uniformly random pool member; ``None`` on an empty pool."""
    if not pool:
        return None
    return pool.pop(rng.randrange(len(pool)))


def clear_entrance_corridor(pool: List[Node], entrance: Node, clearance: int = 4) -> int:
    """Drop pool cells within ``clearance // 2`` columns of the entrance on its row."""
    reach = clearance // 2
    blocked = set()
    for offset in range(1, reach + 1):
        blocked.add((entrance.x - offset, entrance.y))
        blocked.add((entrance.x + offset, entrance.y))
    before = len(pool)
    pool[:] = [n for n in pool if n.coordinates not in blocked]
    return before - len(pool)


def find_node_beyond_min_distance(
    candidates: Iterable[Node],
    min_distance: float,
    origin: Node,
    rng: random.Random,
    mapper: TileMapper,
    attempts: int = 3,
    shrink: float = 0.8,
) -> PlacementSearch:
    """First shuffled candidate at least ``min_distance`` (world units) from ``origin``.

    One shuffle, then up to ``attempts`` extra scans, each with the threshold
    multiplied by ``shrink``. When every scan fails a random candidate is
    returned with ``fallback`` set and ``distance_used`` 0. ``origin`` itself
    is never returned.
    """
    pool = [n for n in candidates if n != origin]
    if not pool:
        return PlacementSearch(None, 0.0, 0, True, Diagnostic(
            EXHAUSTED_PLACEMENT_SEARCH, "no candidates besides the origin", {"origin": origin.coordinates}))
    order = list(pool)
    rng.shuffle(order)
    threshold = float(min_distance)
    relaxations = 0
    for attempt in range(attempts + 1):
        for node in order:
            if mapper.distance(origin, node) >= threshold:
                return PlacementSearch(node, threshold, relaxations, False, None)
        if attempt < attempts:
            threshold *= shrink
            relaxations += 1
    node = pool[rng.randrange(len(pool))]
    diag = Diagnostic(
        EXHAUSTED_PLACEMENT_SEARCH,
        "minimum-distance search exhausted; using a random candidate",
        {"min_distance": min_distance, "last_threshold": threshold, "attempts": attempts},
    )
    log.warn(event="min_distance_fallback", min_distance=min_distance, last_threshold=round(threshold, 3))
    return PlacementSearch(node, 0.0, relaxations, True, diag)


def find_node_within_max_distance(
    candidates: List[Node],
    max_distance: float,
    origin: Node,
    rng: random.Random,
    cap: float = 40.0,
    growth: float = 0.1,
    max_samples: int = 2000,
) -> PlacementSearch:
    """Random candidate within ``max_distance`` grid cells of ``origin``.

    Every 10 misses the radius grows by ``growth`` while it is below ``cap``.
    After ``max_samples`` draws the closest sampled node is returned with a
    diagnostic.
    """
    if not candidates:
        return PlacementSearch(None, max_distance, 0, False, None)
    radius = float(max_distance)
    relaxations = 0
    failures = 0
    best: Optional[Node] = None
    best_distance = math.inf
    for _ in range(max_samples):
        node = candidates[rng.randrange(len(candidates))]
        d = grid_distance(origin, node)
        if d <= radius:
            return PlacementSearch(node, radius, relaxations, False, None)
        if d < best_distance:
            best, best_distance = node, d
        failures += 1
        if failures % 10 == 0 and radius < cap:
            radius *= 1.0 + growth
            relaxations += 1
    diag = Diagnostic(
        EXHAUSTED_PLACEMENT_SEARCH,
        "maximum-distance search exhausted; using the closest sample",
        {"max_distance": max_distance, "last_radius": radius, "closest": best_distance},
    )
    log.warn(event="max_distance_fallback", max_distance=max_distance, closest=round(best_distance, 3))
    return PlacementSearch(best, radius, relaxations, True, diag)


def place_entrance_and_exit(
    main_cluster: Iterable[Node],
    pool: List[Node],
    rng: random.Random,
    mapper: TileMapper,
    min_distance: float,
    clearance: int = 4,
    attempts: int = 3,
    shrink: float = 0.8,
) -> Placement:
    """Pick and mark the entrance (from ``pool``) and the exit (from the main cluster).

    ``pool`` is modified in place: the entrance, its corridor and the exit
    are removed.
    """
    diagnostics: List[Diagnostic] = []
    entrance = take_random_floor_node(pool, rng)
    if entrance is None:
        diagnostics.append(Diagnostic(POOL_EXHAUSTED, "no interior floor cell for the entrance", {}))
        log.warn(event="entrance_unplaced", reason="empty_pool")
        return Placement(None, None, min_distance, 0.0, 0, False, diagnostics)
    clear_entrance_corridor(pool, entrance, clearance)
    entrance.node_type = NodeType.ENTRY

    search = find_node_beyond_min_distance(main_cluster, min_distance, entrance, rng, mapper, attempts, shrink)
    if search.diagnostic is not None:
        diagnostics.append(search.diagnostic)
    exit_node = search.node
    if exit_node is not None:
        exit_node.node_type = NodeType.EXIT
        if exit_node in pool:
            pool.remove(exit_node)
    return Placement(
        entrance,
        exit_node,
        min_distance,
        search.distance_used,
        search.relaxations,
        search.fallback,
        diagnostics,
    )


__all__ = [
    "PlacementSearch",
    "Placement",
    "default_min_distance",
    "take_random_floor_node",
    "clear_entrance_corridor",
    "find_node_beyond_min_distance",
    "find_node_within_max_distance",
    "place_entrance_and_exit",
]
