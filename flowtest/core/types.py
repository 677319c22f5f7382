"""Graph model: the step/connection snapshot the compiler reads."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class NodeKind(str, Enum):
    ENTRY_POINT = "entry_point"
    ELEMENT_DESCRIPTOR = "element_descriptor"
    INTERACT = "interact"
    ASSERT = "assert"
    BRANCH = "branch"
    REPEAT = "repeat"
    DELAY = "delay"
    CAPTURE = "capture"
    SET_VARIABLE = "set_variable"
    NETWORK_RULE = "network_rule"
    LOAD_FIXTURE = "load_fixture"
    CUSTOM_CALL = "custom_call"


class SourceRole(str, Enum):
    FLOW = "flow"
    TRUE = "true"
    FALSE = "false"
    REPEAT_BODY = "repeatBody"
    REPEAT_DONE = "repeatDone"


class TargetRole(str, Enum):
    FLOW = "flow"
    DATA_IN = "dataIn"


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


@dataclass(frozen=True)
class Node:
    """A single step on the canvas."""

    id: str
    kind: NodeKind
    data: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        """Return data[key], or default when it is absent, None or blank."""
        value = self.data.get(key)
        return default if _is_missing(value) else value

    def text(self, key: str, default: str = "") -> str:
        return str(self.get(key, default))

    def flag(self, key: str) -> bool:
        value = self.data.get(key)
        if isinstance(value, str):
            return value.strip().lower() in ("true", "1", "yes", "on")
        return bool(value)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "kind": self.kind.value, "data": dict(self.data)}


@dataclass(frozen=True)
class Edge:
    """A directed connection between two nodes."""

    id: str
    source: str
    target: str
    source_role: SourceRole = SourceRole.FLOW
    target_role: TargetRole = TargetRole.FLOW

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "sourceNodeId": self.source,
            "targetNodeId": self.target,
            "sourceRole": self.source_role.value,
            "targetRole": self.target_role.value,
        }


@dataclass(frozen=True)
class Graph:
    """
    Immutable snapshot of one editor graph.

    Node and edge order is preserved: every lookup that can match more than
    one edge resolves to the first match in edge-list order.
    """

    nodes: tuple[Node, ...] = ()
    edges: tuple[Edge, ...] = ()
    _index: dict[str, Node] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "nodes", tuple(self.nodes))
        object.__setattr__(self, "edges", tuple(self.edges))
        index: dict[str, Node] = {}
        for node in self.nodes:
            # first declaration of a duplicated id wins, like edge lookups
            index.setdefault(node.id, node)
        object.__setattr__(self, "_index", index)

    def node(self, node_id: str) -> Node | None:
        return self._index.get(node_id)

    def nodes_of(self, kind: NodeKind) -> list[Node]:
        return [n for n in self.nodes if n.kind == kind]

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }
