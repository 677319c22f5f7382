"""Unit tests for graph traversal lookups."""

from __future__ import annotations

from flowtest.core.traversal import Traversal
from flowtest.core.types import Edge, Graph, Node, NodeKind, SourceRole, TargetRole


def make_node(node_id: str, kind: NodeKind = NodeKind.DELAY, **data) -> Node:
    return Node(id=node_id, kind=kind, data=data)


def make_edge(source: str, target: str, role=SourceRole.FLOW, target_role=TargetRole.FLOW, edge_id=None) -> Edge:
    return Edge(
        id=edge_id or f"{source}->{target}",
        source=source,
        target=target,
        source_role=role,
        target_role=target_role,
    )


class TestEntryPoints:
    def test_declaration_order(self):
        graph = Graph(
            nodes=(
                make_node("s2", NodeKind.ENTRY_POINT),
                make_node("d"),
                make_node("s1", NodeKind.ENTRY_POINT),
            ),
        )
        assert [n.id for n in Traversal(graph).entry_points()] == ["s2", "s1"]

    def test_none(self):
        assert Traversal(Graph(nodes=(make_node("d"),))).entry_points() == []


class TestNextFlow:
    def setup_method(self):
        self.graph = Graph(
            nodes=(make_node("a"), make_node("b"), make_node("c"), make_node("el", NodeKind.ELEMENT_DESCRIPTOR)),
            edges=(
                make_edge("el", "a", target_role=TargetRole.DATA_IN),
                make_edge("a", "b"),
                make_edge("a", "c"),
            ),
        )
        self.traversal = Traversal(self.graph)

    def test_first_flow_edge_wins(self):
        assert self.traversal.next_flow(self.graph.node("a")).id == "b"

    def test_no_outgoing_edge(self):
        assert self.traversal.next_flow(self.graph.node("c")) is None

    def test_data_edges_are_not_flow(self):
        assert self.traversal.next_flow(self.graph.node("el")) is None

    def test_dangling_target_is_none(self):
        graph = Graph(nodes=(make_node("a"),), edges=(make_edge("a", "ghost"),))
        assert Traversal(graph).next_flow(graph.node("a")) is None


class TestBranchTarget:
    def setup_method(self):
        self.graph = Graph(
            nodes=(
                make_node("br", NodeKind.BRANCH),
                make_node("yes"),
                make_node("no"),
                make_node("later"),
            ),
            edges=(
                make_edge("br", "later", role=SourceRole.TRUE, edge_id="dup"),
                make_edge("br", "no", role=SourceRole.FALSE),
                make_edge("br", "yes", role=SourceRole.TRUE),
            ),
        )
        self.traversal = Traversal(self.graph)

    def test_true_takes_first_matching_edge(self):
        assert self.traversal.branch_target(self.graph.node("br"), SourceRole.TRUE).id == "later"

    def test_false(self):
        assert self.traversal.branch_target(self.graph.node("br"), SourceRole.FALSE).id == "no"

    def test_unwired_role(self):
        assert self.traversal.branch_target(self.graph.node("br"), SourceRole.REPEAT_BODY) is None

    def test_flow_edge_is_not_a_branch(self):
        assert self.traversal.next_flow(self.graph.node("br")) is None


class TestDataSource:
    def test_element_feeding_data_in(self):
        graph = Graph(
            nodes=(make_node("el", NodeKind.ELEMENT_DESCRIPTOR), make_node("act", NodeKind.INTERACT)),
            edges=(make_edge("el", "act", target_role=TargetRole.DATA_IN),),
        )
        assert Traversal(graph).data_source(graph.node("act")).id == "el"

    def test_flow_edge_is_not_data(self):
        graph = Graph(
            nodes=(make_node("el", NodeKind.ELEMENT_DESCRIPTOR), make_node("act", NodeKind.INTERACT)),
            edges=(make_edge("el", "act"),),
        )
        assert Traversal(graph).data_source(graph.node("act")) is None

    def test_non_element_source_is_none(self):
        graph = Graph(
            nodes=(make_node("d"), make_node("act", NodeKind.INTERACT)),
            edges=(make_edge("d", "act", target_role=TargetRole.DATA_IN),),
        )
        assert Traversal(graph).data_source(graph.node("act")) is None

    def test_non_element_source_is_skipped(self):
        graph = Graph(
            nodes=(
                make_node("d"),
                make_node("el", NodeKind.ELEMENT_DESCRIPTOR),
                make_node("act", NodeKind.INTERACT),
            ),
            edges=(
                make_edge("d", "act", target_role=TargetRole.DATA_IN),
                make_edge("el", "act", target_role=TargetRole.DATA_IN),
            ),
        )
        assert Traversal(graph).data_source(graph.node("act")).id == "el"

    def test_first_data_edge_wins(self):
        graph = Graph(
            nodes=(
                make_node("el1", NodeKind.ELEMENT_DESCRIPTOR),
                make_node("el2", NodeKind.ELEMENT_DESCRIPTOR),
                make_node("act", NodeKind.INTERACT),
            ),
            edges=(
                make_edge("el2", "act", target_role=TargetRole.DATA_IN),
                make_edge("el1", "act", target_role=TargetRole.DATA_IN),
            ),
        )
        assert Traversal(graph).data_source(graph.node("act")).id == "el2"
