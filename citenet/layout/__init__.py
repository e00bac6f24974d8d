# layout - hierarchical and force-directed positioning
from .hierarchical import layout_hierarchical, assign_ranks, edge_length
from .force import ForceSimulation, layout_force_directed

LAYOUTS = {
    "hierarchical": layout_hierarchical,
    "force": layout_force_directed,
}


def apply_layout(graph, name: str, config=None):
    """run the named layout. "none" returns the graph as it is."""
    if name == "none":
        return graph
    if name not in LAYOUTS:
        raise ValueError(f"unknown layout: {name!r} (choose from {', '.join(LAYOUTS)}, none)")
    return LAYOUTS[name](graph, config)
