import random

import pytest

from cavern.generation.errors import EXHAUSTED_PLACEMENT_SEARCH, POOL_EXHAUSTED
from cavern.generation.grid import Grid
from cavern.generation.nodes import NodeType
from cavern.generation.placement import (
    clear_entrance_corridor,
    default_min_distance,
    find_node_beyond_min_distance,
    find_node_within_max_distance,
    place_entrance_and_exit,
    take_random_floor_node,
)
from cavern.generation.tiles import TileMapper


@pytest.fixture
def open_room():
    g = Grid(30, 12, NodeType.BACKGROUND)
    for n in g:
        if g.is_edge(n.coordinates):
            n.node_type = NodeType.WALL
    return g


def _floor(g):
    return [n for n in g if n.node_type is NodeType.BACKGROUND]


def test_default_min_distance_uses_tile_size():
    assert default_min_distance(50, 30, TileMapper()) == pytest.approx(24.0)
    assert default_min_distance(50, 30, TileMapper(2.0, 1.0), 0.5) == pytest.approx(65.0)


def test_take_random_floor_node_pops():
    g = Grid(4, 1, NodeType.BACKGROUND)
    pool = list(g)
    node = take_random_floor_node(pool, random.Random(0))
    assert node not in pool and len(pool) == 3
    assert take_random_floor_node([], random.Random(0)) is None


def test_clear_entrance_corridor_removes_same_row_neighbours():
    g = Grid(9, 2, NodeType.BACKGROUND)
    pool = list(g)
    entrance = g[(4, 0)]
    pool.remove(entrance)
    removed = clear_entrance_corridor(pool, entrance, clearance=4)
    assert removed == 4
    remaining = {n.coordinates for n in pool}
    for x in (2, 3, 5, 6):
        assert (x, 0) not in remaining
    assert (1, 0) in remaining and (7, 0) in remaining
    assert (4, 1) in remaining


def test_beyond_min_distance_honours_threshold(open_room):
    mapper = TileMapper(1.0, 1.0, open_room)
    origin = open_room[(1, 1)]
    res = find_node_beyond_min_distance(_floor(open_room), 20.0, origin, random.Random(5), mapper)
    assert res.node is not None and res.node != origin
    assert not res.fallback and res.relaxations == 0
    assert mapper.distance(origin, res.node) >= 20.0


def test_beyond_min_distance_shrinks_then_falls_back(open_room):
    mapper = TileMapper(1.0, 1.0, open_room)
    origin = open_room[(1, 1)]
    # farthest cell is ~29 away: 40 -> 32 -> 25.6 succeeds on the second relaxation
    res = find_node_beyond_min_distance(_floor(open_room), 40.0, origin, random.Random(5), mapper)
    assert res.relaxations == 2
    assert res.distance_used == pytest.approx(25.6)
    assert mapper.distance(origin, res.node) >= res.distance_used
    # unreachable threshold: every scan fails
    res = find_node_beyond_min_distance(_floor(open_room), 1000.0, origin, random.Random(5), mapper)
    assert res.fallback
    assert res.distance_used == 0
    assert res.diagnostic.code == EXHAUSTED_PLACEMENT_SEARCH
    assert res.node != origin


def test_within_max_distance(open_room):
    origin = open_room[(1, 1)]
    res = find_node_within_max_distance(_floor(open_room), 3.0, origin, random.Random(2))
    assert res.node is not None
    assert abs(res.node.x - origin.x) ** 2 + abs(res.node.y - origin.y) ** 2 <= res.distance_used ** 2


def test_within_max_distance_grows_radius_and_falls_back(open_room):
    origin = open_room[(1, 1)]
    far = [n for n in _floor(open_room) if n.x >= 20]
    res = find_node_within_max_distance(far, 1.0, origin, random.Random(2), cap=40.0, max_samples=50)
    # 50 draws -> 5 growth steps from 1.0, never close enough
    assert res.relaxations == 5
    assert res.fallback
    assert res.diagnostic.code == EXHAUSTED_PLACEMENT_SEARCH
    assert res.node in far
    assert find_node_within_max_distance([], 5.0, origin, random.Random(2)).node is None


def test_place_entrance_and_exit(open_room):
    mapper = TileMapper(1.0, 1.0, open_room)
    floor = _floor(open_room)
    pool = [n for n in floor if n.y == 1 and 1 < n.x < 28]
    placement = place_entrance_and_exit(floor, pool, random.Random(8), mapper, 12.0)
    assert placement.entrance.node_type is NodeType.ENTRY
    assert placement.exit.node_type is NodeType.EXIT
    assert placement.entrance != placement.exit
    assert mapper.distance(placement.entrance, placement.exit) >= placement.min_distance_used
    assert placement.entrance not in pool and placement.exit not in pool
    assert placement.diagnostics == []


def test_place_with_empty_pool_reports_diagnostic(open_room):
    mapper = TileMapper(1.0, 1.0, open_room)
    placement = place_entrance_and_exit(_floor(open_room), [], random.Random(8), mapper, 12.0)
    assert placement.entrance is None and placement.exit is None
    assert [d.code for d in placement.diagnostics] == [POOL_EXHAUSTED]
