"""
force-directed layout.

spring forces along edges, inverse-square repulsion between every pair and
a weak pull towards the centroid. the origin is pinned at (0, 0).

state is kept as parallel lists indexed by node position so a caller can
advance the simulation a few steps at a time (e.g. per animation frame):

    sim = ForceSimulation(graph)
    while not sim.done:
        sim.run(10)
        render(sim.to_graph())
"""

import math
import logging
from dataclasses import replace
from typing import List, Optional, Tuple

from ..core.models import NetworkGraph
from ..core.config import ForceLayoutConfig

logger = logging.getLogger("citenet.layout")


class ForceSimulation:
    """stepwise force simulation over a snapshot of a graph."""

    def __init__(self, graph: NetworkGraph, config: Optional[ForceLayoutConfig] = None):
        self.graph = graph
        self.config = config or ForceLayoutConfig()

        self.ids: List[str] = [n.id for n in graph.nodes]
        index = {node_id: i for i, node_id in enumerate(self.ids)}
        count = len(self.ids)

        self.x: List[float] = []
        self.y: List[float] = []
        self.vx: List[float] = [0.0] * count
        self.vy: List[float] = [0.0] * count

        for i, node in enumerate(graph.nodes):
            if node.x is None or node.y is None:
                angle = i / count * 2 * math.pi
                self.x.append(math.cos(angle) * self.config.initial_radius)
                self.y.append(math.sin(angle) * self.config.initial_radius)
            else:
                self.x.append(float(node.x))
                self.y.append(float(node.y))

        self.pinned: List[bool] = [node.is_origin for node in graph.nodes]
        for i, is_origin in enumerate(self.pinned):
            if is_origin:
                self.x[i] = 0.0
                self.y[i] = 0.0

        self.links: List[Tuple[int, int]] = [
            (index[e.source], index[e.target]) for e in graph.edges
            if e.source in index and e.target in index and e.source != e.target
        ]

        self._alpha = 1.0
        self._iteration = 0

    @property
    def alpha(self) -> float:
        return self._alpha

    @property
    def iteration(self) -> int:
        return self._iteration

    @property
    def done(self) -> bool:
        return self._iteration >= self.config.iterations

    def _apply_link_force(self):
        strength = self.config.link_strength
        distance = self.config.link_distance
        x, y, vx, vy = self.x, self.y, self.vx, self.vy

        for a, b in self.links:
            dx = x[b] - x[a]
            dy = y[b] - y[a]
            dist = math.sqrt(dx * dx + dy * dy) or 1.0

            force = (dist - distance) * strength
            fx = dx / dist * force
            fy = dy / dist * force

            vx[a] += fx
            vy[a] += fy
            vx[b] -= fx
            vy[b] -= fy

    def _apply_charge_force(self):
        strength = self.config.charge_strength
        x, y, vx, vy = self.x, self.y, self.vx, self.vy
        count = len(x)

        for i in range(count):
            for j in range(i + 1, count):
                dx = x[j] - x[i]
                dy = y[j] - y[i]
                dist_sq = dx * dx + dy * dy or 1.0
                dist = math.sqrt(dist_sq)

                # negative strength repels
                force = strength / dist_sq
                fx = dx / dist * force
                fy = dy / dist * force

                vx[i] += fx
                vy[i] += fy
                vx[j] -= fx
                vy[j] -= fy

    def _apply_centering_force(self):
        count = len(self.x)
        if count == 0:
            return

        cx = sum(self.x) / count
        cy = sum(self.y) / count
        strength = self.config.centering_strength

        for i in range(count):
            if not self.pinned[i]:
                self.vx[i] -= cx * strength
                self.vy[i] -= cy * strength

    def step(self):
        """advance the simulation by one iteration."""
        self._apply_link_force()
        self._apply_charge_force()
        self._apply_centering_force()

        decay = self.config.velocity_decay
        for i in range(len(self.x)):
            if not self.pinned[i]:
                self.x[i] += self.vx[i] * self._alpha
                self.y[i] += self.vy[i] * self._alpha
            self.vx[i] *= decay
            self.vy[i] *= decay

        self._alpha *= 1 - self.config.alpha_decay
        self._iteration += 1

    def run(self, steps: Optional[int] = None) -> "ForceSimulation":
        """run `steps` iterations, or everything that is left."""
        remaining = max(self.config.iterations - self._iteration, 0)
        steps = remaining if steps is None else min(steps, remaining)

        for _ in range(steps):
            self.step()
        return self

    def to_graph(self) -> NetworkGraph:
        """new graph with the current positions and velocities."""
        nodes = [
            replace(node, x=self.x[i], y=self.y[i], vx=self.vx[i], vy=self.vy[i])
            for i, node in enumerate(self.graph.nodes)
        ]
        return replace(self.graph, nodes=nodes, edges=list(self.graph.edges))


def layout_force_directed(graph: NetworkGraph,
                          config: Optional[ForceLayoutConfig] = None) -> NetworkGraph:
    """run the full simulation and return a positioned copy of graph."""
    sim = ForceSimulation(graph, config).run()
    logger.debug(
        f"[layout] force: {len(sim.ids)} nodes, {sim.iteration} iterations, "
        f"alpha={sim.alpha:.4f}"
    )
    return sim.to_graph()
