import random

from cavern.generation import connectivity
from cavern.generation.clusters import identify_clusters
from cavern.generation.connectivity import connect_clusters
from cavern.generation.errors import UNRESOLVED_CONNECTIVITY
from cavern.generation.metrics import init_metrics
from tests.cave_test_utils import floor_components, grid_from_ascii

SPLIT = """
#########
#...#...#
#...#...#
#...##..#
#########
"""


def test_bridges_minority_cluster_into_main():
    g = grid_from_ascii(SPLIT)
    before = identify_clusters(g)
    assert len(before.clusters) == 2
    main_before = len(before.main_cluster)
    metrics = init_metrics()
    diags = connect_clusters(g, before, random.Random(1), 1.0, metrics)
    assert diags == []
    after = identify_clusters(g)
    assert len(after.clusters) == 1
    assert floor_components(g) == 1
    assert len(after.main_cluster) >= main_before
    assert metrics['tunnels_carved'] == 1
    assert metrics['tunnel_cells_carved'] >= 1


def test_border_stays_solid_after_carving():
    g = grid_from_ascii(SPLIT)
    connect_clusters(g, identify_clusters(g), random.Random(3), 0.0)
    for n in g:
        if g.is_edge(n.coordinates):
            assert n.is_wall


def test_consumes_two_draws_per_minority_cluster():
    g = grid_from_ascii(SPLIT)
    rng = random.Random(11)
    analysis = identify_clusters(g)
    connect_clusters(g, analysis, rng)
    ref = random.Random(11)
    ref.randrange(len(analysis.clusters[1]))
    ref.randrange(len(analysis.clusters[0]))
    assert rng.random() == ref.random()


def test_single_cluster_is_untouched():
    g = grid_from_ascii(
        """
        #####
        #...#
        #####
        """
    )
    before = g.types()
    assert connect_clusters(g, identify_clusters(g), random.Random(0)) == []
    assert g.types() == before


def test_unresolved_cluster_reports_diagnostic(monkeypatch):
    g = grid_from_ascii(SPLIT)
    monkeypatch.setattr(connectivity, "find_path", lambda *a, **k: None)
    metrics = init_metrics()
    diags = connect_clusters(g, identify_clusters(g), random.Random(1), 1.0, metrics)
    assert [d.code for d in diags] == [UNRESOLVED_CONNECTIVITY]
    assert diags[0].details["cluster_index"] == 1
    assert metrics['unresolved_clusters'] == 1
    assert len(identify_clusters(g).clusters) == 2
