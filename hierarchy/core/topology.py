"""
Topology Builder
================

Recomputes the parent-before-child order of the hierarchy using graph
topology.

The admitted forest is projected into a NetworkX DiGraph (edges point
parent -> child, in sibling order) and walked in pre-order from every
root. Full recomputation each pass; hierarchies are scene-graph sized.

ALLOWED:
- Pre-order traversal from roots
- Reachability (unreachable entities are consistency faults)
- Structural metrics (depth, forest check)

FORBIDDEN:
- Reordering siblings (sibling order is insertion order)
- Mutating the index (the caller decides what to do with orphans)
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Hashable, List, Optional, Set, Tuple
import networkx as nx

from .index import RelationIndex


@dataclass(frozen=True)
class TopologyResult:
    """Order plus the entities no root could reach."""
    order: Tuple[Hashable, ...]
    unreachable: Tuple[Hashable, ...] = ()

    @property
    def is_consistent(self) -> bool:
        return not self.unreachable


@dataclass(frozen=True)
class TopologyMetrics:
    """Immutable structural metrics for the admitted forest."""
    node_count: int
    edge_count: int
    root_count: int
    is_forest: bool
    max_depth: Optional[int] = None  # Only when the graph is acyclic


class TopologyBuilder:
    """
    Builds the traversal order of the hierarchy.

    Wraps NetworkX; the graph is rebuilt from the index on every call and
    never outlives it.
    """

    def build_graph(self, index: RelationIndex) -> nx.DiGraph:
        """Project the index into a parent -> child DiGraph."""
        graph = nx.DiGraph()
        graph.add_nodes_from(index.nodes())

        # Successor order follows edge insertion order, i.e. sibling order
        for node in index.nodes():
            for child in index.children(node):
                graph.add_edge(node, child)
        return graph

    def roots(self, index: RelationIndex) -> List[Hashable]:
        """Entities with no admitted parent, in index order."""
        return [node for node in index.nodes() if not index.is_member(node)]

    def rebuild(self, index: RelationIndex) -> TopologyResult:
        """
        Pre-order traversal from every root.

        Every reachable entity appears exactly once, after its parent.
        """
        graph = self.build_graph(index)

        order: List[Hashable] = []
        visited: Set[Hashable] = set()
        for root in self.roots(index):
            for node in nx.dfs_preorder_nodes(graph, source=root):
                if node in visited:
                    continue
                visited.add(node)
                order.append(node)

        unreachable = tuple(node for node in index.nodes() if node not in visited)
        return TopologyResult(order=tuple(order), unreachable=unreachable)

    def compute_metrics(self, index: RelationIndex) -> TopologyMetrics:
        graph = self.build_graph(index)
        if not graph:
            return TopologyMetrics(0, 0, 0, True, None)

        max_depth = None
        if nx.is_directed_acyclic_graph(graph):
            max_depth = nx.dag_longest_path_length(graph)

        return TopologyMetrics(
            node_count=graph.number_of_nodes(),
            edge_count=graph.number_of_edges(),
            root_count=len(self.roots(index)),
            is_forest=nx.is_branching(graph),
            max_depth=max_depth
        )
