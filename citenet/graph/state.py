"""
graph state - the view state of a citation network and its transitions.

state is immutable. every change goes through `reduce(state, action)`,
which returns a new state and never raises. `GraphStateManager` wraps the
reducer together with the builder, the layouts and an optional provider:

    manager = GraphStateManager(provider=SemanticScholarProvider())
    manager.load_network("CRISPR gene editing")
    manager.set_filters(min_citations=100)
    render(manager.filtered_graph)
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Tuple, Mapping, Sequence, Any, Union

from ..core.models import Paper, NetworkGraph, NetworkStats, now_ms
from ..core.config import CitenetConfig
from ..core.errors import ProviderError
from ..similarity.engine import SimilarityEngine
from ..layout import apply_layout
from .builder import build_citation_network, expand_network
from .metrics import calculate_node_levels, calculate_local_citation_counts

logger = logging.getLogger("citenet.state")


class ViewMode(Enum):
    GRAPH = "graph"
    LIST = "list"
    TIMELINE = "timeline"


class StateStatus(Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERRORED = "errored"


def _default_year_range() -> Tuple[int, int]:
    return (1900, date.today().year)


@dataclass(frozen=True)
class FilterState:
    """which nodes of the network are visible."""
    year_range: Tuple[int, int] = field(default_factory=_default_year_range)
    min_citations: int = 0
    search_query: str = ""
    show_prior_works: bool = True        # older than the origin
    show_derivative_works: bool = True   # same year or newer
    max_depth: int = 2                   # hops from origin


@dataclass(frozen=True)
class UIState:
    is_loading: bool = False
    error: Optional[str] = None
    selected_paper_id: Optional[str] = None
    hovered_paper_id: Optional[str] = None
    filters: FilterState = field(default_factory=FilterState)
    view_mode: ViewMode = ViewMode.GRAPH
    zoom_level: float = 1.0
    viewport_center: Tuple[float, float] = (0.0, 0.0)


@dataclass(frozen=True)
class NetworkState:
    graph: Optional[NetworkGraph] = None
    papers: Mapping[str, Paper] = field(default_factory=dict)
    ui: UIState = field(default_factory=UIState)


# actions

@dataclass(frozen=True)
class LoadStart:
    pass


@dataclass(frozen=True)
class LoadSuccess:
    graph: NetworkGraph
    papers: Sequence[Paper] = ()


@dataclass(frozen=True)
class LoadError:
    error: str


@dataclass(frozen=True)
class SetGraph:
    graph: NetworkGraph


@dataclass(frozen=True)
class AddPapers:
    papers: Sequence[Paper]


@dataclass(frozen=True)
class MergeGraph:
    graph: NetworkGraph
    papers: Sequence[Paper] = ()


@dataclass(frozen=True)
class SelectPaper:
    paper_id: Optional[str]


@dataclass(frozen=True)
class HoverPaper:
    paper_id: Optional[str]


@dataclass(frozen=True)
class SetFilters:
    changes: Mapping[str, Any]


@dataclass(frozen=True)
class SetViewMode:
    view_mode: Union[ViewMode, str]


@dataclass(frozen=True)
class SetZoom:
    zoom_level: float


@dataclass(frozen=True)
class SetViewport:
    center: Tuple[float, float]


@dataclass(frozen=True)
class ClearError:
    pass


@dataclass(frozen=True)
class Reset:
    pass


Action = Union[
    LoadStart, LoadSuccess, LoadError, SetGraph, AddPapers, MergeGraph,
    SelectPaper, HoverPaper, SetFilters, SetViewMode, SetZoom, SetViewport,
    ClearError, Reset
]

FILTER_KEYS = frozenset(f for f in FilterState.__dataclass_fields__)

FILTER_TYPES = {
    "min_citations": (int, float),
    "max_depth": (int, float),
    "search_query": str,
    "show_prior_works": bool,
    "show_derivative_works": bool,
}


def _pair(value) -> Optional[Tuple[float, float]]:
    """value as a 2-tuple of numbers, or None when it is not one."""
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        return None
    if len(value) != 2:
        return None
    if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in value):
        return None
    return (value[0], value[1])


def _merge_papers(papers: Mapping[str, Paper], incoming: Sequence[Paper]) -> Dict[str, Paper]:
    # last write wins
    merged = dict(papers)
    for paper in incoming:
        merged[paper.id] = paper
    return merged


def _apply_filter_changes(filters: FilterState, changes: Mapping[str, Any]) -> Optional[FilterState]:
    """updated filters, or None when the changes are malformed."""
    if not isinstance(changes, Mapping):
        logger.warning(f"[state] ignoring filter changes {changes!r}: not a mapping")
        return None

    known = {}
    for key, value in changes.items():
        if key not in FILTER_KEYS:
            logger.warning(f"[state] ignoring unknown filter {key!r}")
            continue
        if key == "year_range":
            value = _pair(value)
            if value is None:
                logger.warning(f"[state] ignoring filter changes: bad year_range {changes[key]!r}")
                return None
        elif not isinstance(value, FILTER_TYPES[key]) or (
                isinstance(value, bool) and FILTER_TYPES[key] != bool):
            logger.warning(f"[state] ignoring filter changes: bad {key} {value!r}")
            return None
        known[key] = value
    return replace(filters, **known)


def _mark_selected(graph: Optional[NetworkGraph], paper_id: Optional[str]) -> Optional[NetworkGraph]:
    if graph is None:
        return None
    nodes = [replace(n, is_selected=(n.id == paper_id)) for n in graph.nodes]
    return replace(graph, nodes=nodes)


def reduce(state: NetworkState, action: Action) -> NetworkState:
    """next state for action. unknown actions leave the state unchanged."""
    ui = state.ui

    match action:
        case LoadStart():
            return replace(state, ui=replace(ui, is_loading=True, error=None))

        case LoadSuccess(graph=graph, papers=papers):
            return replace(
                state,
                graph=graph,
                papers=_merge_papers(state.papers, papers),
                ui=replace(ui, is_loading=False, error=None)
            )

        case LoadError(error=error):
            return replace(state, ui=replace(ui, is_loading=False, error=error))

        case SetGraph(graph=graph):
            return replace(state, graph=graph)

        case AddPapers(papers=papers):
            return replace(state, papers=_merge_papers(state.papers, papers))

        case MergeGraph(graph=graph, papers=papers):
            if state.graph is None:
                return replace(state, graph=graph, papers=_merge_papers(state.papers, papers))
            merged, merged_papers = merge_graph(state.graph, graph, papers, state.papers)
            return replace(state, graph=merged, papers=merged_papers)

        case SelectPaper(paper_id=paper_id):
            return replace(
                state,
                graph=_mark_selected(state.graph, paper_id),
                ui=replace(ui, selected_paper_id=paper_id)
            )

        case HoverPaper(paper_id=paper_id):
            return replace(state, ui=replace(ui, hovered_paper_id=paper_id))

        case SetFilters(changes=changes):
            filters = _apply_filter_changes(ui.filters, changes)
            if filters is None:
                return state
            return replace(state, ui=replace(ui, filters=filters))

        case SetViewMode(view_mode=view_mode):
            try:
                mode = ViewMode(view_mode)
            except ValueError:
                logger.warning(f"[state] ignoring unknown view mode {view_mode!r}")
                return state
            return replace(state, ui=replace(ui, view_mode=mode))

        case SetZoom(zoom_level=zoom_level):
            if isinstance(zoom_level, bool) or not isinstance(zoom_level, (int, float)):
                logger.warning(f"[state] ignoring bad zoom level {zoom_level!r}")
                return state
            return replace(state, ui=replace(ui, zoom_level=zoom_level))

        case SetViewport(center=center):
            point = _pair(center)
            if point is None:
                logger.warning(f"[state] ignoring bad viewport center {center!r}")
                return state
            return replace(state, ui=replace(ui, viewport_center=point))

        case ClearError():
            return replace(state, ui=replace(ui, error=None))

        case Reset():
            return NetworkState()

        case _:
            logger.warning(f"[state] unknown action {action!r}")
            return state


def status(state: NetworkState) -> StateStatus:
    if state.ui.is_loading:
        return StateStatus.LOADING
    if state.ui.error:
        return StateStatus.ERRORED
    if state.graph is not None:
        return StateStatus.LOADED
    return StateStatus.IDLE


def _matches_query(paper: Paper, query: str) -> bool:
    if query in paper.title.lower():
        return True
    if any(query in author.lower() for author in paper.authors):
        return True
    return query in (paper.abstract or "").lower()


def filter_graph(graph: NetworkGraph, filters: FilterState) -> NetworkGraph:
    """
    visible subgraph under filters. the origin is always kept and
    edges survive only when both endpoints do.
    """
    origin = graph.origin_node()
    origin_year = origin.paper.year if origin else None
    min_year, max_year = filters.year_range
    query = filters.search_query.strip().lower()

    def visible(node) -> bool:
        if node.is_origin or node.id == graph.origin_paper_id:
            return True

        paper = node.paper
        if not min_year <= paper.year <= max_year:
            return False
        if paper.citation_count < filters.min_citations:
            return False
        if query and not _matches_query(paper, query):
            return False
        if node.level > filters.max_depth:
            return False

        if origin_year is not None:
            if paper.year < origin_year:
                return filters.show_prior_works
            return filters.show_derivative_works

        return True

    nodes = [replace(n) for n in graph.nodes if visible(n)]
    kept = {n.id for n in nodes}
    edges = [e for e in graph.edges if e.source in kept and e.target in kept]

    return replace(graph, nodes=nodes, edges=edges, last_updated=now_ms())


def merge_graph(
    existing: NetworkGraph,
    incoming: NetworkGraph,
    incoming_papers: Sequence[Paper] = (),
    papers: Optional[Mapping[str, Paper]] = None
) -> Tuple[NetworkGraph, Dict[str, Paper]]:
    """
    union of two graphs. nodes and edges already present win, papers are
    last-write-wins, the origin stays the existing one.
    """
    nodes = list(existing.nodes)
    node_ids = {n.id for n in nodes}
    for node in incoming.nodes:
        if node.id not in node_ids:
            nodes.append(replace(node, is_origin=False))
            node_ids.add(node.id)

    edges = list(existing.edges)
    edge_ids = {e.id for e in edges}
    for edge in incoming.edges:
        if edge.id not in edge_ids:
            edges.append(edge)
            edge_ids.add(edge.id)

    nodes = calculate_node_levels(nodes, edges, existing.origin_paper_id)
    nodes = calculate_local_citation_counts(nodes, edges)

    merged = NetworkGraph(
        nodes=nodes,
        edges=edges,
        origin_paper_id=existing.origin_paper_id,
        last_updated=now_ms()
    )
    return merged, _merge_papers(papers or {}, incoming_papers)


class GraphStateManager:
    """
    owns the network state and drives it through builder, layout and provider.
    load failures are recorded in state.ui.error instead of being raised.
    """

    def __init__(self, config: Optional[CitenetConfig] = None, provider=None):
        self.config = config or CitenetConfig.default()
        self.provider = provider
        self.engine = SimilarityEngine(self.config.weights)
        self.layout = self.config.default_layout
        self.last_stats: Optional[NetworkStats] = None
        self._state = NetworkState()

    @property
    def state(self) -> NetworkState:
        return self._state

    @property
    def status(self) -> StateStatus:
        return status(self._state)

    def dispatch(self, action: Action) -> NetworkState:
        self._state = reduce(self._state, action)
        return self._state

    def _apply_layout(self, graph: NetworkGraph) -> NetworkGraph:
        layout_config = self.config.hierarchical if self.layout == "hierarchical" else self.config.force
        return apply_layout(graph, self.layout, layout_config)

    def _build(self, papers: Sequence[Paper], origin_id: str) -> NetworkGraph:
        result = build_citation_network(papers, origin_id, self.config.builder, engine=self.engine)
        self.last_stats = result.stats
        return self._apply_layout(result.graph)

    def load_papers(self, papers: Sequence[Paper], origin_id: str,
                    layout: Optional[str] = None) -> NetworkState:
        """build, lay out and load a network from already fetched papers."""
        if layout is not None:
            self.layout = layout

        self.dispatch(LoadStart())
        try:
            graph = self._build(papers, origin_id)
        except (ProviderError, ValueError) as e:
            logger.error(f"[state] load failed: {e}")
            return self.dispatch(LoadError(str(e)))

        annotated = [n.paper for n in graph.nodes]
        return self.dispatch(LoadSuccess(graph, tuple(papers) + tuple(annotated)))

    def load_network(self, paper_id_or_query: str, max_citations: int = 30,
                     max_references: int = 30, layout: Optional[str] = None) -> NetworkState:
        """fetch an origin and its neighborhood through the provider, then load it."""
        if self.provider is None:
            return self.dispatch(LoadError("no paper provider configured"))

        self.dispatch(LoadStart())
        try:
            network = self.provider.fetch_network(paper_id_or_query, max_citations, max_references)
        except ProviderError as e:
            logger.error(f"[state] fetch failed for {paper_id_or_query!r}: {e}")
            return self.dispatch(LoadError(str(e)))

        if network is None:
            return self.dispatch(LoadError(f"no papers found for {paper_id_or_query!r}"))

        return self.load_papers(network.all_papers, network.origin.id, layout)

    def search(self, query: str, limit: int = 20) -> List[Paper]:
        """search through the provider. results are added to the paper map."""
        if self.provider is None:
            self.dispatch(LoadError("no paper provider configured"))
            return []

        try:
            papers = self.provider.search_papers(query, limit=limit)
        except ProviderError as e:
            logger.error(f"[state] search failed for {query!r}: {e}")
            self.dispatch(LoadError(str(e)))
            return []

        self.dispatch(AddPapers(tuple(papers)))
        return papers

    def set_origin_paper(self, paper_id: str) -> NetworkState:
        """rebuild the network around another known paper."""
        if paper_id not in self._state.papers:
            logger.warning(f"[state] unknown paper {paper_id}, origin unchanged")
            return self._state

        try:
            graph = self._build(list(self._state.papers.values()), paper_id)
        except ValueError as e:
            return self.dispatch(LoadError(str(e)))

        return self.dispatch(SetGraph(graph))

    def expand_node(self, paper_id: str, citation_limit: int = 20,
                    reference_limit: int = 20) -> NetworkState:
        """fetch citations and references of a node and merge them in."""
        graph = self._state.graph
        if graph is None or graph.get_node(paper_id) is None:
            logger.warning(f"[state] cannot expand {paper_id}: not in graph")
            return self._state
        if self.provider is None:
            return self.dispatch(LoadError("no paper provider configured"))

        try:
            expansion = self.provider.expand(paper_id, citation_limit, reference_limit)
        except ProviderError as e:
            logger.error(f"[state] expansion failed for {paper_id}: {e}")
            return self.dispatch(LoadError(str(e)))

        expanded = expand_network(
            graph, paper_id,
            cited_by=expansion.citations,
            references=expansion.references,
            engine=self.engine
        )
        new_papers = tuple(n.paper for n in expanded.nodes if n.id not in self._state.papers)
        self.dispatch(MergeGraph(expanded, new_papers))

        try:
            return self.dispatch(SetGraph(self._apply_layout(self._state.graph)))
        except ValueError as e:
            return self.dispatch(LoadError(str(e)))

    def select_paper(self, paper_id: Optional[str]) -> NetworkState:
        return self.dispatch(SelectPaper(paper_id))

    def hover_paper(self, paper_id: Optional[str]) -> NetworkState:
        return self.dispatch(HoverPaper(paper_id))

    def set_filters(self, **changes) -> NetworkState:
        return self.dispatch(SetFilters(changes))

    def set_view_mode(self, view_mode: Union[ViewMode, str]) -> NetworkState:
        return self.dispatch(SetViewMode(view_mode))

    def clear_error(self) -> NetworkState:
        return self.dispatch(ClearError())

    def reset(self) -> NetworkState:
        self.last_stats = None
        return self.dispatch(Reset())

    @property
    def filtered_graph(self) -> Optional[NetworkGraph]:
        if self._state.graph is None:
            return None
        return filter_graph(self._state.graph, self._state.ui.filters)

    def _paper(self, paper_id: Optional[str]) -> Optional[Paper]:
        if paper_id is None:
            return None
        paper = self._state.papers.get(paper_id)
        if paper is None and self._state.graph is not None:
            node = self._state.graph.get_node(paper_id)
            paper = node.paper if node else None
        return paper

    @property
    def selected_paper(self) -> Optional[Paper]:
        return self._paper(self._state.ui.selected_paper_id)

    @property
    def hovered_paper(self) -> Optional[Paper]:
        return self._paper(self._state.ui.hovered_paper_id)
