"""
project: Cavern
module: cave_api.py
License: MIT

Cave generation API routes.

Provides endpoints to choose the active seed, fetch a generated cave map,
inspect generation metrics and query routes across a cave.
"""

import hashlib
import os
import random
import threading

from flask import Blueprint, current_app, jsonify, request, session

from cavern.generation import CaveConfig, ConfigurationError, GenerationSession
from cavern.logging_utils import get_logger

log = get_logger("cavern.api")

bp_cave = Blueprint("cave", __name__)

SEED_MAX_INT = 9223372036854775807

# Simple in-process cache (seed, config)->GenerationSession. Thread-safe with a lock
# because the dev server may serve requests from several threads.
_session_cache = {}
_session_cache_lock = threading.Lock()
_SESSION_CACHE_MAX = 8  # small LRU-ish manual cap

# A* keeps its scratch state on the nodes of the (shared) cached grid
_path_lock = threading.Lock()


def _coerce_seed(payload_seed):
    """Convert provided seed (int or str) into a bounded 64-bit signed int."""
    if payload_seed is None or isinstance(payload_seed, bool):
        return random.randint(1, 1_000_000)
    if isinstance(payload_seed, int):
        return payload_seed % SEED_MAX_INT
    if isinstance(payload_seed, str):
        s = payload_seed.strip()
        if not s:
            return random.randint(1, 1_000_000)
        if s.isdigit():
            return int(s) % SEED_MAX_INT
        h = hashlib.sha256(s.encode("utf-8")).digest()
        return int.from_bytes(h[:8], "big") % SEED_MAX_INT
    return random.randint(1, 1_000_000)


def _cache_disabled() -> bool:
    if os.environ.get("CAVE_DISABLE_CACHE") == "1":
        return True
    try:
        return bool(current_app.config.get("CAVE_DISABLE_CACHE"))
    except RuntimeError:
        # no app context (scripts)
        return False


def get_cached_session(seed: int, config: CaveConfig) -> GenerationSession:
    if _cache_disabled():
        return GenerationSession(config=config, seed=seed)
    key = (seed, config.cache_key())
    with _session_cache_lock:
        cached = _session_cache.get(key)
        if cached is not None:
            return cached
    cave = GenerationSession(config=config, seed=seed)
    with _session_cache_lock:
        _session_cache[key] = cave
        if len(_session_cache) > _SESSION_CACHE_MAX:
            first_key = next(iter(_session_cache.keys()))
            if first_key != key:
                _session_cache.pop(first_key, None)
    return cave


def clear_session_cache() -> None:
    with _session_cache_lock:
        _session_cache.clear()


def _int_arg(name: str):
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(name, f"cannot parse {raw!r} as int", "type") from None


def _coord_arg(name: str):
    raw = request.args.get(name, "")
    parts = raw.split(",")
    if len(parts) != 2:
        raise ConfigurationError(name, "expected 'x,y'", "type")
    try:
        return int(parts[0]), int(parts[1])
    except ValueError:
        raise ConfigurationError(name, f"cannot parse {raw!r} as coordinates", "type") from None


def _resolve_seed():
    raw = request.args.get("seed")
    if raw is not None and raw.strip():
        return _coerce_seed(raw)
    seed = session.get("cave_seed")
    if seed is None:
        seed = _coerce_seed(None)
        session["cave_seed"] = seed
    return seed


def _session_for_request() -> GenerationSession:
    seed = _resolve_seed()
    config = CaveConfig.from_env(current_app.config, width=_int_arg("width"), height=_int_arg("height"))
    return get_cached_session(seed, config)


@bp_cave.route("/api/cave/seed", methods=["POST"])
def set_seed():
    """Set (or generate) the active cave seed.

    Body JSON (all optional):
      { "seed": <int|str|null>, "regenerate": <bool> }
    - If seed omitted or null and regenerate true => random seed.
    - If seed provided (int or string) => deterministic hashing.

    Response: { "seed": <int> }
    """
    data = request.get_json(silent=True) or {}
    regenerate = data.get("regenerate")
    provided = data.get("seed", None)
    if regenerate and provided is None:
        seed = _coerce_seed(None)
    else:
        seed = _coerce_seed(provided)
    session["cave_seed"] = seed
    log.info(event="seed_set", seed=seed)
    return jsonify({"seed": seed})


@bp_cave.route("/api/cave/map")
def cave_map():
    """
    Return the generated cave for the requested (or session) seed.
    Response: { 'seed', 'width', 'height', 'grid': <rows, top first>, 'entrance', 'exit', ... }
    """
    cave = _session_for_request()
    return jsonify(cave.to_dict())


@bp_cave.route("/api/cave/metrics")
def cave_metrics():
    cave = _session_for_request()
    return jsonify({"seed": cave.seed, "metrics": cave.metrics})


@bp_cave.route("/api/cave/path")
def cave_path():
    """Route between two cells of the cave.

    Query: seed, from=x,y, to=x,y, through_walls=1 to allow carving through walls.
    Response: { 'path': [[x, y], ...], 'cost': <float> } or 404 when unreachable.
    """
    origin = _coord_arg("from")
    destination = _coord_arg("to")
    through_walls = request.args.get("through_walls", "0").lower() in ("1", "true", "yes")
    cave = _session_for_request()
    with _path_lock:
        result = cave.find_path(origin, destination, include_obstacles=through_walls)
        payload = None if result is None else {
            "path": [list(c) for c in result.coordinates],
            "cost": result.cost,
        }
    if payload is None:
        return jsonify({"error": "no path", "from": list(origin), "to": list(destination)}), 404
    payload["seed"] = cave.seed
    return jsonify(payload)
