from typing import Dict


def init_metrics() -> Dict[str, int | float | bool]:
    return {
        'clusters_initial': 0,
        'clusters_final': 0,
        'tunnels_carved': 0,
        'tunnel_cells_carved': 0,
        'unresolved_clusters': 0,
        'clusters_filled': 0,
        'artifacts_removed': 0,
        'walls_classified': 0,
        'floor_pool_initial': 0,
        'exit_relaxations': 0,
        'exit_fallback': False,
        'runtime_ms': 0.0,
    }
