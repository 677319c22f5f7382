"""Graph loader: editor JSON export -> Graph."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from flowtest.core.types import Edge, Graph, Node, NodeKind, SourceRole, TargetRole
from flowtest.exceptions import GraphFormatError

logger = logging.getLogger(__name__)

# Editor palette names -> node kinds
_EDITOR_KINDS: dict[str, NodeKind] = {
    "start_session": NodeKind.ENTRY_POINT,
    "element": NodeKind.ELEMENT_DESCRIPTOR,
    "interact": NodeKind.INTERACT,
    "assert": NodeKind.ASSERT,
    "condition": NodeKind.BRANCH,
    "loop": NodeKind.REPEAT,
    "wait": NodeKind.DELAY,
    "screenshot": NodeKind.CAPTURE,
    "set_variable": NodeKind.SET_VARIABLE,
    "network": NodeKind.NETWORK_RULE,
    "load_fixture": NodeKind.LOAD_FIXTURE,
    "custom_command": NodeKind.CUSTOM_CALL,
}

_SOURCE_HANDLES: dict[str, SourceRole] = {
    "flow-out": SourceRole.FLOW,
    "true-out": SourceRole.TRUE,
    "false-out": SourceRole.FALSE,
    "loop-body": SourceRole.REPEAT_BODY,
    "loop-done": SourceRole.REPEAT_DONE,
}

_TARGET_HANDLES: dict[str, TargetRole] = {
    "data-in": TargetRole.DATA_IN,
}


def _parse_kind(raw: Any, node_id: str) -> NodeKind:
    name = str(raw or "")
    if name in _EDITOR_KINDS:
        return _EDITOR_KINDS[name]
    try:
        return NodeKind(name)
    except ValueError:
        raise GraphFormatError(f"Node {node_id!r} has unknown type {name!r}") from None


def _parse_source_role(edge: dict) -> SourceRole:
    role = edge.get("sourceRole")
    if role:
        return SourceRole(role)
    return _SOURCE_HANDLES.get(edge.get("sourceHandle") or "", SourceRole.FLOW)


def _parse_target_role(edge: dict) -> TargetRole:
    role = edge.get("targetRole")
    if role:
        return TargetRole(role)
    return _TARGET_HANDLES.get(edge.get("targetHandle") or "", TargetRole.FLOW)


def _dict_to_node(d: dict) -> Node:
    if "id" not in d:
        raise GraphFormatError("Node entry is missing an 'id'")
    node_id = str(d["id"])
    kind = _parse_kind(d.get("kind", d.get("type")), node_id)
    data = d.get("data") or {}
    if not isinstance(data, dict):
        raise GraphFormatError(f"Node {node_id!r} has non-object data")
    return Node(id=node_id, kind=kind, data=dict(data))


def _dict_to_edge(d: dict, position: int) -> Edge:
    source = d.get("sourceNodeId", d.get("source"))
    target = d.get("targetNodeId", d.get("target"))
    if source is None or target is None:
        raise GraphFormatError(f"Edge #{position} is missing its source or target")
    try:
        return Edge(
            id=str(d.get("id") or f"edge_{position}"),
            source=str(source),
            target=str(target),
            source_role=_parse_source_role(d),
            target_role=_parse_target_role(d),
        )
    except ValueError as exc:
        raise GraphFormatError(f"Edge #{position} has an invalid role: {exc}") from exc


def load_graph(payload: dict) -> Graph:
    """
    Build a Graph from an editor export or canonical ``Graph.to_dict()`` value.

    Raises GraphFormatError if the payload is structurally invalid.
    """
    if not isinstance(payload, dict) or "nodes" not in payload or "edges" not in payload:
        raise GraphFormatError("Invalid file structure: Missing nodes or edges.")

    nodes = [_dict_to_node(n) for n in payload["nodes"]]
    edges = [_dict_to_edge(e, i) for i, e in enumerate(payload["edges"])]
    logger.debug("Loaded graph with %d nodes and %d edges", len(nodes), len(edges))
    return Graph(nodes=tuple(nodes), edges=tuple(edges))


def load_graph_file(path: str | Path) -> Graph:
    """Read a JSON graph file from disk."""
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise GraphFormatError(f"{path}: not valid JSON ({exc})") from exc
    return load_graph(payload)
