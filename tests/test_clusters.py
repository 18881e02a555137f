from cavern.generation.clusters import (
    Cluster,
    convert_disconnected_clusters,
    find_main_cluster_index,
    identify_clusters,
)
from cavern.generation.grid import Grid
from cavern.generation.nodes import NodeType
from tests.cave_test_utils import floor_components, grid_from_ascii


def test_identify_two_clusters_main_is_largest():
    g = grid_from_ascii(
        """
        #######
        #..#..#
        #..#..#
        #..#.##
        #######
        """
    )
    analysis = identify_clusters(g)
    assert len(analysis.clusters) == 2
    sizes = [len(c) for c in analysis.clusters]
    # row-major scan starts at the bottom row, left cluster first
    assert sizes == [6, 5]
    assert analysis.main_index == 0
    assert len(analysis.main_cluster) == 6


def test_diagonal_cells_are_not_connected():
    g = grid_from_ascii(
        """
        ####
        #.##
        ##.#
        ####
        """
    )
    analysis = identify_clusters(g)
    assert len(analysis.clusters) == 2
    assert floor_components(g) == 2


def test_tie_goes_to_first_found():
    g = grid_from_ascii(
        """
        #####
        #.#.#
        #####
        """
    )
    analysis = identify_clusters(g)
    assert analysis.main_index == 0
    assert analysis.main_cluster[0].coordinates == (1, 1)


def test_no_floor_gives_no_main_cluster():
    g = Grid(4, 4, NodeType.WALL)
    analysis = identify_clusters(g)
    assert analysis.clusters == []
    assert analysis.main_index == -1
    assert len(analysis.main_cluster) == 0
    assert find_main_cluster_index([]) == -1


def test_large_open_area_does_not_recurse():
    # Single 200x200 open cluster; a recursive fill would blow the stack
    g = Grid(200, 200, NodeType.BACKGROUND)
    analysis = identify_clusters(g)
    assert len(analysis.clusters) == 1
    assert len(analysis.main_cluster) == 200 * 200


def test_convert_disconnected_clusters_to_wall():
    g = grid_from_ascii(
        """
        #######
        #...#.#
        #...###
        #######
        """
    )
    analysis = identify_clusters(g)
    converted = convert_disconnected_clusters(g, analysis, NodeType.WALL)
    assert converted == 1
    assert g[(5, 2)].node_type is NodeType.WALL
    assert len(identify_clusters(g).clusters) == 1


def test_cluster_container_helpers():
    g = Grid(3, 1, NodeType.BACKGROUND)
    c = Cluster(list(g))
    assert len(c) == 3
    assert g[(1, 0)] in c
    assert c.coordinates() == {(0, 0), (1, 0), (2, 0)}
