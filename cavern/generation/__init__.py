"""Public cave generation interface."""

from .config import CaveConfig, TerrainProfile
from .errors import (
    EXHAUSTED_PLACEMENT_SEARCH,
    POOL_EXHAUSTED,
    UNRESOLVED_CONNECTIVITY,
    ConfigurationError,
    Diagnostic,
)
from .grid import Grid
from .nodes import WALL_SHAPES, WALL_TYPES, Node, NodeType
from .pathfinding import PathResult, find_path
from .pipeline import GenerationSession, generate
from .tiles import TileMapper, render_ascii  # noqa: F401

__all__ = [
    "CaveConfig",
    "TerrainProfile",
    "ConfigurationError",
    "Diagnostic",
    "UNRESOLVED_CONNECTIVITY",
    "EXHAUSTED_PLACEMENT_SEARCH",
    "POOL_EXHAUSTED",
    "Grid",
    "Node",
    "NodeType",
    "WALL_TYPES",
    "WALL_SHAPES",
    "PathResult",
    "find_path",
    "GenerationSession",
    "generate",
    "TileMapper",
    "render_ascii",
]
