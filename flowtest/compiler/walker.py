"""Flow walker: recursive emission over the graph with cycle detection.

Visited sets are immutable ``frozenset`` values handed down each call, so a
branch or loop body can never disturb the bookkeeping of its siblings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from flowtest.compiler.types import Locator
from flowtest.core.traversal import Traversal
from flowtest.core.types import Node, SourceRole

if TYPE_CHECKING:
    from flowtest.compiler.backends.base import BackendProfile

logger = logging.getLogger(__name__)

CYCLE_MARKER = "... (flow merges or cycle detected: {node_id})"


class FlowWalker:
    """Walks one entry point's flow and asks the backend to emit each node."""

    def __init__(self, backend: BackendProfile, traversal: Traversal) -> None:
        self.backend = backend
        self.traversal = traversal
        self.warnings: list[str] = []

    def walk(
        self,
        node: Node | None,
        indent_level: int,
        visited: frozenset[str] = frozenset(),
        loops: frozenset[str] = frozenset(),
    ) -> str:
        if node is None:
            return ""
        if not visited and not loops:
            # the walk root is never re-entered, not even from a loop body
            loops = frozenset({node.id})
        if node.id in visited:
            logger.debug("Revisited node %s; truncating branch", node.id)
            pad = self.backend.indent_unit * indent_level
            return pad + self.backend.comment(CYCLE_MARKER.format(node_id=node.id)) + "\n"

        ctx = EmitContext(
            walker=self,
            node=node,
            indent_level=indent_level,
            visited=visited | {node.id},
            loops=loops,
        )
        return self.backend.emit(node, ctx)

    def warn(self, node: Node, message: str) -> None:
        logger.warning("Node %s (%s): %s", node.id, node.kind.value, message)
        self.warnings.append(f"{node.id}: {message}")


@dataclass(frozen=True)
class EmitContext:
    """Everything an emitter needs about its position in the walk."""

    walker: FlowWalker
    node: Node
    indent_level: int
    visited: frozenset[str]
    loops: frozenset[str]

    @property
    def indent(self) -> str:
        return self.pad(0)

    def pad(self, extra: int = 0) -> str:
        return self.walker.backend.indent_unit * (self.indent_level + extra)

    def line(self, text: str, extra: int = 0) -> str:
        return f"{self.pad(extra)}{text}\n"

    def lines(self, *texts: str, extra: int = 0) -> str:
        return "".join(self.line(t, extra) for t in texts)

    # ------------------------------------------------------------------
    # Continuations
    # ------------------------------------------------------------------

    def proceed(self) -> str:
        """Continue linear emission from this node's flow successor."""
        successor = self.walker.traversal.next_flow(self.node)
        return self.walker.walk(successor, self.indent_level, self.visited, self.loops)

    def recurse(
        self,
        target: Node | None,
        indent_level: int,
        visited: frozenset[str] | None = None,
        loops: frozenset[str] | None = None,
    ) -> str:
        return self.walker.walk(
            target,
            indent_level,
            self.visited if visited is None else visited,
            self.loops if loops is None else loops,
        )

    def branch(self, role: SourceRole, extra: int = 1) -> str:
        """Emit the subgraph hanging off ``role`` nested ``extra`` levels deeper."""
        target = self.walker.traversal.branch_target(self.node, role)
        return self.recurse(target, self.indent_level + extra)

    def repeat_body(self, extra: int = 1) -> str:
        """
        Emit a Repeat node's body.

        The body starts from a fresh visited set holding only the walk root
        and the enclosing Repeat ids, so body nodes that reconverge with nodes
        seen outside the loop are emitted, while a body leading back into the
        entry point or any enclosing Repeat is still cut.
        """
        target = self.walker.traversal.branch_target(self.node, SourceRole.REPEAT_BODY)
        loops = self.loops | {self.node.id}
        return self.recurse(target, self.indent_level + extra, visited=loops, loops=loops)

    def repeat_done(self) -> str:
        target = self.walker.traversal.branch_target(self.node, SourceRole.REPEAT_DONE)
        return self.recurse(target, self.indent_level)

    def has_target(self, role: SourceRole) -> bool:
        return self.walker.traversal.branch_target(self.node, role) is not None

    # ------------------------------------------------------------------
    # Lookups and diagnostics
    # ------------------------------------------------------------------

    def element(self) -> Locator | None:
        source = self.walker.traversal.data_source(self.node)
        if source is None:
            return None
        return self.walker.backend.selectors.for_element(source)

    def warn(self, message: str, extra: int = 0) -> str:
        """Record a warning and return the backend's warning line for it."""
        self.walker.warn(self.node, message)
        return self.line(self.walker.backend.warning_statement(message), extra)
