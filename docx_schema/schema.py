from __future__ import annotations

import json
from typing import Any, Iterable

from .ast_parser import AstNode, ForLoopNode, VariableNode


def build_schema(nodes: Iterable[AstNode]) -> dict[str, Any]:
    """Merge an AST forest into the JSON shape a template expects.

    Variables become nested objects ending in ``""``. A loop stores the
    merged schema of its body, wrapped in a one-element list, under the
    iterable's name. Repeated keys at the same path are overwritten.
    """
    root: dict[str, Any] = {}
    for node in nodes:
        _merge_node(root, node)
    return root


def schema_to_json(schema: dict[str, Any], indent: int | None = 2) -> str:
    return json.dumps(schema, ensure_ascii=False, indent=indent)


def _merge_node(target: dict[str, Any], node: AstNode) -> None:
    if isinstance(node, VariableNode):
        _insert_path(target, node.path)
    elif isinstance(node, ForLoopNode):
        target[node.iterable] = [build_schema(node.body)]


def _insert_path(target: dict[str, Any], path: tuple[str, ...]) -> None:
    if not path:
        return
    current = target
    for key in path[:-1]:
        child = current.get(key)
        if not isinstance(child, dict):
            child = {}
            current[key] = child
        current = child
    current[path[-1]] = ""
