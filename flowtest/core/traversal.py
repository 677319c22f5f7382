"""Traversal engine: pure "what comes next" lookups over a Graph."""

from __future__ import annotations

from flowtest.core.types import Edge, Graph, Node, NodeKind, SourceRole, TargetRole


class Traversal:
    """
    Resolves successors and data sources for a node.

    Every lookup scans the edge list in order and returns the first match, so
    duplicated connections resolve deterministically to the earliest edge.
    """

    def __init__(self, graph: Graph) -> None:
        self._graph = graph

    @property
    def graph(self) -> Graph:
        return self._graph

    def entry_points(self) -> list[Node]:
        return self._graph.nodes_of(NodeKind.ENTRY_POINT)

    def next_flow(self, node: Node) -> Node | None:
        """Node at the far end of the outgoing flow edge, or None."""
        edge = self._first_outgoing(node, SourceRole.FLOW, TargetRole.FLOW)
        return self._target(edge)

    def branch_target(self, node: Node, role: SourceRole) -> Node | None:
        """Node at the far end of the outgoing edge tagged with role, or None."""
        edge = self._first_outgoing(node, role, TargetRole.FLOW)
        return self._target(edge)

    def data_source(self, node: Node) -> Node | None:
        """ElementDescriptor wired into node's dataIn handle, or None."""
        for edge in self._graph.edges:
            if edge.target != node.id or edge.target_role != TargetRole.DATA_IN:
                continue
            source = self._graph.node(edge.source)
            if source is not None and source.kind == NodeKind.ELEMENT_DESCRIPTOR:
                return source
        return None

    def _first_outgoing(
        self, node: Node, source_role: SourceRole, target_role: TargetRole
    ) -> Edge | None:
        for edge in self._graph.edges:
            if (
                edge.source == node.id
                and edge.source_role == source_role
                and edge.target_role == target_role
            ):
                return edge
        return None

    def _target(self, edge: Edge | None) -> Node | None:
        if edge is None:
            return None
        return self._graph.node(edge.target)
