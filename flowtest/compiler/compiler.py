"""Suite assembler: Graph -> generated test source for one backend."""

from __future__ import annotations

import logging

from flowtest.compiler.backends import BackendProfile, SuiteCase, get_backend
from flowtest.compiler.types import CompilationResult, GeneratedFile
from flowtest.compiler.walker import FlowWalker
from flowtest.config import CompilerSettings, get_settings
from flowtest.core.traversal import Traversal
from flowtest.core.types import Graph, Node
from flowtest.exceptions import UnknownBackendError

logger = logging.getLogger(__name__)

NO_ENTRY_MESSAGE = 'No "Start Session" entry point found in the graph.'


class GraphCompiler:
    """Compiles the EntryPoints of a Graph into test suites for one backend."""

    def __init__(
        self,
        backend: BackendProfile | str | None = None,
        settings: CompilerSettings | None = None,
    ) -> None:
        settings = settings or get_settings()
        if backend is None:
            backend = settings.default_backend
        if isinstance(backend, str):
            backend = get_backend(backend, settings)
        self.backend = backend
        self.settings = backend.settings

    def compile(self, graph: Graph) -> CompilationResult:
        """
        Compile every EntryPoint into one source file.

        A graph without an EntryPoint yields a result whose ``error`` is set
        and whose source is a single comment line.
        """
        traversal = Traversal(graph)
        entries = traversal.entry_points()
        if not entries:
            logger.warning("Nothing to compile: %s", NO_ENTRY_MESSAGE)
            return CompilationResult(
                backend=self.backend.name,
                source=self.backend.comment(f"Error: {NO_ENTRY_MESSAGE}") + "\n",
                error=NO_ENTRY_MESSAGE,
            )

        taken: set[str] = set()
        cases = [self.case_for(node, index, taken) for index, node in enumerate(entries, start=1)]
        return self.assemble(traversal, cases)

    def case_for(self, node: Node, index: int, taken: set[str]) -> SuiteCase:
        raw = node.text("testName").strip()
        name = self.backend.case_name(raw, index, taken)
        return SuiteCase(
            node=node,
            index=index,
            name=name,
            title=raw or name,
            browser=node.text("browser", self.settings.default_browser),
            url=node.text("url", self.settings.default_url),
        )

    def assemble(self, traversal: Traversal, cases: list[SuiteCase]) -> CompilationResult:
        """Header, one wrapper per case around its walked body, summary footer."""
        walker = FlowWalker(self.backend, traversal)
        parts: list[str] = [self.backend.file_header(cases)]
        for case in cases:
            parts.append(self.backend.case_open(case))
            parts.append(walker.walk(case.node, self.backend.body_indent))
            parts.append(self.backend.case_close(case))
        parts.append(self.backend.file_footer(cases))

        logger.info(
            "Compiled %d test case(s) with the %s backend (%d warning(s))",
            len(cases),
            self.backend.name,
            len(walker.warnings),
        )
        return CompilationResult(
            backend=self.backend.name,
            source="".join(parts),
            test_names=[case.name for case in cases],
            warnings=list(walker.warnings),
        )


def compile_graph(
    graph: Graph,
    backend: BackendProfile | str | None = None,
    settings: CompilerSettings | None = None,
) -> CompilationResult:
    """Compile all entry points of ``graph`` into one suite."""
    return GraphCompiler(backend, settings).compile(graph)


def compile_files(
    graph: Graph,
    default_backend: str | None = None,
    settings: CompilerSettings | None = None,
) -> list[GeneratedFile]:
    """
    Compile each EntryPoint into its own file.

    The backend comes from the entry's ``framework`` field, falling back to
    ``default_backend`` (or the configured default) when it is empty or
    unknown. Returns an empty list when the graph has no EntryPoint.
    """
    settings = settings or get_settings()
    fallback = default_backend or settings.default_backend
    traversal = Traversal(graph)
    entries = traversal.entry_points()
    if not entries:
        logger.warning("Nothing to export: %s", NO_ENTRY_MESSAGE)
        return []

    compilers: dict[str, GraphCompiler] = {}
    taken: set[str] = set()
    files: list[GeneratedFile] = []
    for index, node in enumerate(entries, start=1):
        framework = node.text("framework", fallback).strip().lower()
        if framework not in compilers:
            try:
                compilers[framework] = GraphCompiler(framework, settings)
            except UnknownBackendError as exc:
                logger.warning("Entry %s: %s; using %s", node.id, exc, fallback)
                framework = fallback
                compilers.setdefault(framework, GraphCompiler(framework, settings))
        compiler = compilers[framework]

        case = compiler.case_for(node, index, taken)
        result = compiler.assemble(traversal, [case])
        files.append(
            GeneratedFile(
                filename=compiler.backend.filename(case),
                content=result.source,
                backend=compiler.backend.name,
            )
        )
    return files
