"""Compiler public API."""

from flowtest.compiler.backends import BackendProfile, available_backends, get_backend
from flowtest.compiler.compiler import GraphCompiler, compile_files, compile_graph
from flowtest.compiler.delivery import write_archive, write_directory
from flowtest.compiler.expressions import JavaScriptExpressions, PythonExpressions
from flowtest.compiler.types import (
    Action,
    CompilationResult,
    Condition,
    DelayMode,
    GeneratedFile,
    Locator,
    LocatorKind,
    RepeatMode,
)
from flowtest.compiler.walker import CYCLE_MARKER, FlowWalker

__all__ = [
    "Action",
    "BackendProfile",
    "CYCLE_MARKER",
    "CompilationResult",
    "Condition",
    "DelayMode",
    "FlowWalker",
    "GeneratedFile",
    "GraphCompiler",
    "JavaScriptExpressions",
    "Locator",
    "LocatorKind",
    "PythonExpressions",
    "RepeatMode",
    "available_backends",
    "compile_files",
    "compile_graph",
    "get_backend",
    "write_archive",
    "write_directory",
]
