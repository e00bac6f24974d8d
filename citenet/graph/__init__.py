# graph - network construction, metrics and view state
from .builder import (
    BuildResult, build_citation_network, filter_network_by_year_range,
    find_influential_papers, expand_network, find_connected_papers
)
from .metrics import (
    calculate_node_levels, calculate_local_citation_counts, calculate_network_stats,
    calculate_paper_metrics, calculate_network_density, find_shortest_path,
    calculate_bounding_box, GraphSummary, PaperMetrics, BoundingBox
)
from .state import (
    GraphStateManager, NetworkState, UIState, FilterState, ViewMode, StateStatus,
    reduce, status, filter_graph, merge_graph
)
