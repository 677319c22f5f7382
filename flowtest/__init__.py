from flowtest.compiler import (
    CompilationResult,
    GeneratedFile,
    GraphCompiler,
    available_backends,
    compile_files,
    compile_graph,
    get_backend,
)
from flowtest.config import CompilerSettings, get_settings
from flowtest.core import Edge, Graph, Node, NodeKind, SourceRole, TargetRole, load_graph, load_graph_file
from flowtest.exceptions import DeliveryError, FlowtestError, GraphFormatError, UnknownBackendError

__all__ = [
    "CompilationResult",
    "CompilerSettings",
    "DeliveryError",
    "Edge",
    "FlowtestError",
    "GeneratedFile",
    "Graph",
    "GraphCompiler",
    "GraphFormatError",
    "Node",
    "NodeKind",
    "SourceRole",
    "TargetRole",
    "UnknownBackendError",
    "available_backends",
    "compile_files",
    "compile_graph",
    "get_backend",
    "get_settings",
    "load_graph",
    "load_graph_file",
]
