"""Terrain synthesis: random wall scatter followed by cellular-automaton smoothing."""
from __future__ import annotations

import random
from typing import NamedTuple, Union

from .grid import Grid
from .nodes import NodeType

RngOrSeed = Union[random.Random, int, None]


def _as_rng(rng: RngOrSeed) -> random.Random:
    if isinstance(rng, random.Random):
        return rng
    return random.Random(rng)


def initialize(width: int, height: int, rng: RngOrSeed, wall_probability: float) -> Grid:
    """Return a fresh grid: solid border, interior walls with ``wall_probability``.

    Draws one number per interior cell in row-major order. Passing an int
    seeds a private stream; passing a ``random.Random`` continues that stream.
    """
    rng = _as_rng(rng)
    grid = Grid(width, height)
    for node in grid:
        if grid.is_edge(node.coordinates):
            node.node_type = NodeType.WALL
        else:
            node.node_type = NodeType.WALL if rng.random() < wall_probability else NodeType.BACKGROUND
    return grid


def smooth(grid: Grid, floors_to_wall: int, walls_to_floor: int) -> Grid:
    """One automaton step, computed from a snapshot of the previous step.

    Border cells are written back as walls whatever the thresholds are.
    """
    updated = []
    for node in grid:
        if grid.is_edge(node.coordinates):
            updated.append(NodeType.WALL)
            continue
        walls = grid.count_wall_moore_neighbours(node.coordinates)
        if node.node_type is NodeType.WALL:
            updated.append(NodeType.BACKGROUND if walls < walls_to_floor else NodeType.WALL)
        else:
            updated.append(NodeType.WALL if walls > floors_to_wall else NodeType.BACKGROUND)
    grid.apply_types(updated)
    return grid


class TerrainOutputs(NamedTuple):
    grid: Grid
    steps: int


class TerrainSynthesizer:
    def __init__(self, width: int, height: int, rng: RngOrSeed):
        self.width = width
        self.height = height
        self.rng = _as_rng(rng)

    def run(
        self,
        wall_probability: float,
        smoothing_steps: int,
        floors_to_wall: int,
        walls_to_floor: int,
    ) -> TerrainOutputs:
        grid = initialize(self.width, self.height, self.rng, wall_probability)
        for _ in range(smoothing_steps):
            smooth(grid, floors_to_wall, walls_to_floor)
        return TerrainOutputs(grid, smoothing_steps)


__all__ = ["initialize", "smooth", "TerrainSynthesizer", "TerrainOutputs"]
