import pytest

from cavern.generation import (
    POOL_EXHAUSTED,
    CaveConfig,
    ConfigurationError,
    GenerationSession,
    NodeType,
    TerrainProfile,
    generate,
)
from cavern.generation.debug_checks import analyze, is_healthy


@pytest.fixture(scope="module")
def cave():
    return GenerationSession(CaveConfig(width=50, height=30, wall_probability=0.40, smoothing_steps=4), seed=1)


def test_end_to_end_reference_cave(cave):
    assert cave.grid.size == (50, 30)
    assert len(cave.clusters) == 1
    assert cave.main_cluster_index == 0
    assert cave.entrance_node is not None and cave.exit_node is not None
    assert cave.entrance_node in cave.main_cluster
    assert cave.exit_node in cave.main_cluster
    assert cave.entrance_node.node_type is NodeType.ENTRY
    assert cave.exit_node.node_type is NodeType.EXIT
    assert cave.mapper.distance(cave.entrance_node, cave.exit_node) >= cave.min_distance_used
    assert cave.min_distance == pytest.approx((50 + 30) * 0.3)


def test_rerun_is_identical(cave):
    again = generate(1, CaveConfig(width=50, height=30, wall_probability=0.40, smoothing_steps=4))
    assert again.grid.types() == cave.grid.types()
    assert again.entrance_node.coordinates == cave.entrance_node.coordinates
    assert again.exit_node.coordinates == cave.exit_node.coordinates
    assert [len(c) for c in again.clusters] == [len(c) for c in cave.clusters]


def test_different_seeds_differ():
    a = generate(1)
    b = generate(2)
    assert a.grid.types() != b.grid.types()


def test_border_and_wall_shapes(cave):
    report = analyze(cave)
    assert report["border_violations"] == []
    assert report["generic_walls"] == []
    assert report["misshaped_walls"] == []
    assert is_healthy(report), report


def test_main_cluster_never_shrinks(cave):
    history = cave.main_cluster_history
    assert len(history) >= 2
    assert all(b >= a for a, b in zip(history, history[1:]))


@pytest.mark.parametrize("seed", [0, 3, 17, 2024, 99991])
def test_invariants_across_seeds(seed):
    s = generate(seed)
    report = analyze(s)
    assert is_healthy(report), (seed, report)
    if not any(d.code == "unresolved_connectivity" for d in s.diagnostics):
        assert len(s.clusters) == 1


def test_metrics_recorded(cave):
    m = cave.metrics
    for key in (
        'clusters_initial',
        'clusters_final',
        'tunnels_carved',
        'artifacts_removed',
        'walls_classified',
        'floor_pool_initial',
        'exit_relaxations',
        'exit_fallback',
        'runtime_ms',
    ):
        assert key in m
    assert m['clusters_final'] == 1
    assert m['tunnels_carved'] == max(0, m['clusters_initial'] - 1) - m['unresolved_clusters']
    for phase in ('terrain', 'clusters_initial', 'cleanup_and_classify', 'placement'):
        assert phase in m['phase_ms']


def test_metrics_disabled():
    s = GenerationSession(CaveConfig(enable_metrics=False), seed=5)
    assert s.metrics == {}


def test_pool_queries_drain_then_report():
    s = generate(7)
    seen = set()
    while True:
        node = s.get_random_floor_node()
        if node is None:
            break
        assert node.coordinates not in seen
        assert node.node_type is NodeType.BACKGROUND
        seen.add(node.coordinates)
    assert s.diagnostics[-1].code == POOL_EXHAUSTED
    assert s.get_floor_node_within_max_distance(5, s.entrance_node) is None
    assert s.get_floor_node_beyond_min_distance(5, s.entrance_node) is None


def test_distance_queries_remove_from_pool():
    s = generate(11)
    before = len(s.floor_pool)
    near = s.get_floor_node_within_max_distance(6.0, s.entrance_node)
    assert near is not None and near not in s.floor_pool
    far = s.get_floor_node_beyond_min_distance(10.0, s.entrance_node)
    assert far is not None and far not in s.floor_pool
    assert len(s.floor_pool) == before - 2


def test_node_at_max_distance_samples_main_cluster():
    s = generate(13)
    pool_before = list(s.floor_pool)
    node = s.get_node_at_max_distance(8.0, s.entrance_node)
    assert node in s.main_cluster
    assert s.floor_pool == pool_before
    assert s.get_node_at_max_distance(8.0, (-1, -1)) is None


def test_misc_queries(cave):
    assert cave.count_wall_moore_neighbours((-10, -10)) == 8
    assert 0 <= cave.count_wall_moore_neighbours(cave.entrance_node) <= 8
    assert cave.get_background_nodes() == list(cave.main_cluster)
    node = cave.get_random_background_node()
    assert node in cave.main_cluster
    assert cave.world_position((2, 3)) == (2.5, 3.5)
    assert cave.world_position((500, 3)) is None


def test_floor_route_between_entrance_and_exit(cave):
    res = cave.find_path(cave.entrance_node, cave.exit_node)
    assert res is not None
    assert res.nodes[0] == cave.entrance_node and res.nodes[-1] == cave.exit_node
    assert all(not n.is_wall for n in res.nodes)


def test_profiles_feed_world_units():
    cfg = CaveConfig(
        profiles=[TerrainProfile("moss", 2.0, 2.0), TerrainProfile("ice", 3.0, 1.0, enabled=False)],
    )
    s = GenerationSession(cfg, seed=4)
    assert s.profile.name == "moss"
    assert s.min_distance == pytest.approx((50 * 2.0 + 30 * 2.0) * 0.3)
    assert s.world_position((0, 0)) == (1.0, 1.0)


def test_fill_disconnected_without_connecting():
    cfg = CaveConfig(connect_clusters=False, fill_disconnected=True)
    s = GenerationSession(cfg, seed=9)
    assert len(s.clusters) == 1
    assert s.metrics['tunnels_carved'] == 0
    assert s.metrics['clusters_filled'] == s.metrics['clusters_initial'] - 1
    assert is_healthy(analyze(s))


def test_connection_can_be_disabled():
    s = GenerationSession(CaveConfig(connect_clusters=False), seed=9)
    assert s.metrics['tunnels_carved'] == 0
    # every floor cell is still accounted for by some cluster
    assert sum(len(c) for c in s.clusters) == sum(
        1 for n in s.grid if n.node_type in (NodeType.BACKGROUND, NodeType.ENTRY, NodeType.EXIT)
    )


def test_seed_zero_is_deterministic():
    assert generate(0).grid.types() == generate(0).grid.types()


@pytest.mark.parametrize(
    "overrides,field",
    [
        ({"width": 0}, "width"),
        ({"height": -3}, "height"),
        ({"wall_probability": 1.5}, "wall_probability"),
        ({"floors_to_wall": 9}, "floors_to_wall"),
        ({"smoothing_steps": -1}, "smoothing_steps"),
        ({"wall_traversal_cost": -0.5}, "wall_traversal_cost"),
        ({"profiles": [TerrainProfile("off", enabled=False)]}, "profiles"),
    ],
)
def test_invalid_configuration_raises(overrides, field):
    with pytest.raises(ConfigurationError) as exc:
        GenerationSession(CaveConfig(**overrides), seed=1)
    assert exc.value.field == field


@pytest.mark.parametrize("walls_to_floor", range(0, 9))
def test_border_stays_wall_for_any_walls_to_floor(walls_to_floor):
    s = GenerationSession(CaveConfig(walls_to_floor=walls_to_floor), seed=1)
    assert analyze(s)["border_violations"] == []


def test_off_grid_origin_is_not_reported_as_exhausted_pool():
    s = generate(21)
    assert s.floor_pool
    before = len(s.diagnostics)
    pool = len(s.floor_pool)
    assert s.get_floor_node_within_max_distance(5.0, (-1, -1)) is None
    assert s.get_floor_node_beyond_min_distance(5.0, (999, 0)) is None
    assert len(s.diagnostics) == before
    assert len(s.floor_pool) == pool
