from flowtest.core.loader import load_graph, load_graph_file
from flowtest.core.traversal import Traversal
from flowtest.core.types import Edge, Graph, Node, NodeKind, SourceRole, TargetRole

__all__ = [
    "Edge",
    "Graph",
    "Node",
    "NodeKind",
    "SourceRole",
    "TargetRole",
    "Traversal",
    "load_graph",
    "load_graph_file",
]
