"""Pipeline orchestration for cave generation.

``GenerationSession`` owns everything one generation call produces: the PRNG,
the grid, the cluster analysis, the interior floor pool, the chosen terrain
profile, entrance/exit placement, metrics and diagnostics. Nothing is shared
between sessions; build a new one (or call ``generate``) per level.
"""
from __future__ import annotations

import random
import time
from typing import Any, Dict, List, Optional, Union

from ..logging_utils import get_logger
from .clusters import Cluster, ClusterAnalysis, convert_disconnected_clusters, identify_clusters
from .config import CaveConfig, TerrainProfile
from .connectivity import connect_clusters
from .errors import POOL_EXHAUSTED, Diagnostic
from .grid import Grid
from .metrics import init_metrics
from .nodes import Coord2D, Node, NodeType, Vec2
from .pathfinding import PathResult, find_path
from .placement import (
    default_min_distance,
    find_node_beyond_min_distance,
    find_node_within_max_distance,
    place_entrance_and_exit,
    take_random_floor_node,
)
from .pruning import cleanup_and_classify
from .terrain import TerrainSynthesizer
from .tiles import TileMapper, render_ascii, type_names

log = get_logger("cavern.generation")

NodeRef = Union[Node, Coord2D]


class GenerationSession:
    def __init__(self, config: Optional[CaveConfig] = None, seed: Optional[int] = None):
        self.config = (config if config is not None else CaveConfig()).validate()
        if seed is None:
            seed = self.config.seed
        # 0 is a valid deterministic seed; None picks one at random
        if seed is None:
            seed = random.randint(1, 1_000_000)
        self.seed = int(seed)
        self.rng = random.Random(self.seed)
        self.metrics: Dict[str, Any] = init_metrics() if self.config.enable_metrics else {}
        self.diagnostics: List[Diagnostic] = []
        self.grid: Optional[Grid] = None
        self.analysis = ClusterAnalysis([], -1)
        self.floor_pool: List[Node] = []
        self.profile: Optional[TerrainProfile] = None
        self.mapper: Optional[TileMapper] = None
        self.main_cluster_history: List[int] = []
        self._entrance: Optional[Node] = None
        self._exit: Optional[Node] = None
        self.min_distance = 0.0
        self.min_distance_used = 0.0
        self._run_pipeline()

    @property
    def width(self) -> int:
        return self.config.width

    @property
    def height(self) -> int:
        return self.config.height

    def _run_pipeline(self):
        """Execute the generation phases in order, timing each when metrics are on."""
        cfg = self.config
        if cfg.enable_metrics:
            start = time.perf_counter()
            phase_times = {}

            def _phase(label, fn, *a, **k):
                ps = time.perf_counter()
                r = fn(*a, **k)
                phase_times[label] = int((time.perf_counter() - ps) * 1000)
                return r
        else:
            def _phase(label, fn, *a, **k):
                return fn(*a, **k)

        metrics = self.metrics if cfg.enable_metrics else None

        # Profile choice is the first draw from the stream
        profiles = cfg.enabled_profiles()
        self.profile = profiles[self.rng.randrange(len(profiles))]
        synth = TerrainSynthesizer(cfg.width, cfg.height, self.rng)
        terrain = _phase(
            'terrain',
            synth.run,
            cfg.wall_probability,
            cfg.smoothing_steps,
            cfg.floors_to_wall,
            cfg.walls_to_floor,
        )
        self.grid = terrain.grid
        self.mapper = TileMapper(self.profile.tile_width, self.profile.tile_height, self.grid)
        log.debug(event="terrain_ready", seed=self.seed, profile=self.profile.name, steps=terrain.steps)

        analysis = _phase('clusters_initial', self._identify)
        if metrics is not None:
            metrics['clusters_initial'] = len(analysis.clusters)

        if cfg.connect_clusters and len(analysis.clusters) > 1:
            diags = _phase(
                'connect_clusters',
                connect_clusters,
                self.grid,
                analysis,
                self.rng,
                cfg.wall_traversal_cost,
                metrics,
            )
            self.diagnostics.extend(diags)
            analysis = _phase('clusters_reidentify', self._identify)

        if cfg.fill_disconnected and len(analysis.clusters) > 1:
            filled = convert_disconnected_clusters(self.grid, analysis, NodeType.WALL)
            if metrics is not None:
                metrics['clusters_filled'] = filled
            analysis = self._identify()

        topology = _phase('cleanup_and_classify', cleanup_and_classify, self.grid, metrics)
        self.analysis = topology.analysis
        self.main_cluster_history.append(len(self.analysis.main_cluster))
        self.floor_pool = topology.floor_pool
        if metrics is not None:
            metrics['clusters_final'] = len(self.analysis.clusters)

        self.min_distance = default_min_distance(cfg.width, cfg.height, self.mapper, cfg.min_distance_fraction)
        placement = _phase(
            'placement',
            place_entrance_and_exit,
            self.analysis.main_cluster,
            self.floor_pool,
            self.rng,
            self.mapper,
            self.min_distance,
            cfg.entrance_clearance,
            cfg.min_distance_attempts,
            cfg.min_distance_shrink,
        )
        self._entrance = placement.entrance
        self._exit = placement.exit
        self.min_distance_used = placement.min_distance_used
        self.diagnostics.extend(placement.diagnostics)
        if metrics is not None:
            metrics['exit_relaxations'] = placement.relaxations
            metrics['exit_fallback'] = placement.fallback
            metrics['runtime_ms'] = int((time.perf_counter() - start) * 1000)
            metrics['phase_ms'] = phase_times

        log.debug(
            event="cave_generated",
            seed=self.seed,
            width=cfg.width,
            height=cfg.height,
            clusters=len(self.analysis.clusters),
            main=len(self.analysis.main_cluster),
            pool=len(self.floor_pool),
            diagnostics=len(self.diagnostics),
        )

    def _identify(self) -> ClusterAnalysis:
        analysis = identify_clusters(self.grid)
        self.analysis = analysis
        self.main_cluster_history.append(len(analysis.main_cluster))
        return analysis

    def _record(self, diag: Diagnostic) -> None:
        self.diagnostics.append(diag)
        log.warn(event="diagnostic", code=diag.code, message=diag.message)

    def _node(self, ref: NodeRef) -> Optional[Node]:
        coord = ref.coordinates if isinstance(ref, Node) else ref
        return self.grid.get(coord)

    # ------------------------------------------------------------------ queries
    @property
    def clusters(self) -> List[Cluster]:
        return self.analysis.clusters

    @property
    def main_cluster_index(self) -> int:
        return self.analysis.main_index

    @property
    def main_cluster(self) -> Cluster:
        return self.analysis.main_cluster

    @property
    def entrance_node(self) -> Optional[Node]:
        return self._entrance

    @property
    def exit_node(self) -> Optional[Node]:
        return self._exit

    def get_background_nodes(self) -> List[Node]:
        return list(self.analysis.main_cluster)

    def get_random_background_node(self) -> Optional[Node]:
        main = self.analysis.main_cluster
        if not len(main):
            return None
        return main[min(self.rng.randrange(len(main)), len(main) - 1)]

    def get_random_floor_node(self) -> Optional[Node]:
        node = take_random_floor_node(self.floor_pool, self.rng)
        if node is None:
            self._record(Diagnostic(POOL_EXHAUSTED, "interior floor pool is empty", {}))
        return node

    def get_node_at_max_distance(self, max_distance: float, origin: NodeRef) -> Optional[Node]:
        """Random main-cluster cell within ``max_distance`` of ``origin``; pools are left untouched."""
        origin_node = self._node(origin)
        main = self.analysis.main_cluster
        if origin_node is None or not len(main):
            return None
        cfg = self.config
        search = find_node_within_max_distance(
            main.nodes,
            max_distance,
            origin_node,
            self.rng,
            cfg.max_distance_cap,
            cfg.max_distance_growth,
            cfg.max_distance_samples,
        )
        if search.diagnostic is not None:
            self._record(search.diagnostic)
        return search.node

    def get_floor_node_within_max_distance(self, max_distance: float, origin: NodeRef) -> Optional[Node]:
        origin_node = self._node(origin)
        if origin_node is None:
            return None
        if not self.floor_pool:
            self._record(Diagnostic(POOL_EXHAUSTED, "interior floor pool is empty", {"query": "max_distance"}))
            return None
        cfg = self.config
        search = find_node_within_max_distance(
            self.floor_pool,
            max_distance,
            origin_node,
            self.rng,
            cfg.max_distance_cap,
            cfg.max_distance_growth,
            cfg.max_distance_samples,
        )
        if search.diagnostic is not None:
            self._record(search.diagnostic)
        if search.node is not None:
            self.floor_pool.remove(search.node)
        return search.node

    def get_floor_node_beyond_min_distance(self, min_distance: float, origin: NodeRef) -> Optional[Node]:
        origin_node = self._node(origin)
        if origin_node is None:
            return None
        if not self.floor_pool:
            self._record(Diagnostic(POOL_EXHAUSTED, "interior floor pool is empty", {"query": "min_distance"}))
            return None
        search = find_node_beyond_min_distance(
            self.floor_pool,
            min_distance,
            origin_node,
            self.rng,
            self.mapper,
            self.config.min_distance_attempts,
            self.config.min_distance_shrink,
        )
        if search.diagnostic is not None:
            self._record(search.diagnostic)
        if search.node is not None:
            self.floor_pool.remove(search.node)
        return search.node

    def count_wall_moore_neighbours(self, coord: NodeRef) -> int:
        if isinstance(coord, Node):
            coord = coord.coordinates
        return self.grid.count_wall_moore_neighbours(coord)

    def world_position(self, ref: NodeRef) -> Optional[Vec2]:
        node = self._node(ref)
        if node is None:
            return None
        return self.mapper.world_position(node)

    def find_path(
        self,
        origin: NodeRef,
        destination: NodeRef,
        include_obstacles: bool = False,
        wall_traversal_cost: Optional[float] = None,
    ) -> Optional[PathResult]:
        """Route between two cells; floor-only unless ``include_obstacles`` is set."""
        if wall_traversal_cost is None:
            wall_traversal_cost = self.config.wall_traversal_cost
        return find_path(self.grid, origin, destination, wall_traversal_cost, include_obstacles)

    def render_ascii(self) -> str:
        return render_ascii(self.grid)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'seed': self.seed,
            'width': self.width,
            'height': self.height,
            'grid': type_names(self.grid),
            'entrance': list(self._entrance.coordinates) if self._entrance else None,
            'exit': list(self._exit.coordinates) if self._exit else None,
            'min_distance': self.min_distance,
            'min_distance_used': self.min_distance_used,
            'profile': self.profile.name if self.profile else None,
            'clusters': len(self.analysis.clusters),
            'diagnostics': [d.to_dict() for d in self.diagnostics],
        }


def generate(seed: Optional[int] = None, config: Optional[CaveConfig] = None) -> GenerationSession:
    return GenerationSession(config=config, seed=seed)


__all__ = ["GenerationSession", "generate"]
