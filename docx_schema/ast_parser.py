from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Union

from .tag_lexer import RawTag, TagKind


@dataclass(frozen=True)
class VariableNode:
    path: tuple[str, ...]


@dataclass
class ForLoopNode:
    loop_var: str
    iterable: str
    body: list[AstNode] = field(default_factory=list)


AstNode = Union[VariableNode, ForLoopNode]


@dataclass
class WarningEntry:
    rule: str
    reason: str
    tag: str | None = None
    tag_index: int | None = None


def parse_tags(
    tags: Iterable[RawTag],
    warnings: list[WarningEntry] | None = None,
) -> list[AstNode]:
    """Build the variable/loop forest for an ordered tag sequence.

    Malformed loop headers, unmatched ``endfor`` tags and other statements are
    dropped without raising. Pass a ``warnings`` list to collect a
    ``WarningEntry`` for each dropped construct.
    """
    forest: list[AstNode] = []
    stack: list[ForLoopNode] = []

    def _append(node: AstNode) -> None:
        if stack:
            stack[-1].body.append(node)
        else:
            forest.append(node)

    for index, tag in enumerate(tags):
        if tag.kind == TagKind.EXPRESSION:
            path = tuple(segment.strip() for segment in tag.inner.split("."))
            if warnings is not None and not any(path):
                _warn(warnings, "empty_expression", "expression has no variable name", tag, index)
            _append(VariableNode(path=path))
            continue

        tokens = tag.tokens()
        if "for" in tokens and "in" in tokens:
            loop = _parse_for_header(tokens)
            if loop is None:
                if warnings is not None:
                    _warn(
                        warnings,
                        "malformed_for",
                        "expected 'for <var> in <iterable>'",
                        tag,
                        index,
                    )
                continue
            stack.append(loop)
        elif "endfor" in tokens:
            if not stack:
                if warnings is not None:
                    _warn(warnings, "unmatched_endfor", "no open for-loop", tag, index)
                continue
            loop = stack.pop()
            _append(loop)
        elif warnings is not None:
            _warn(warnings, "unsupported_statement", "statement ignored", tag, index)

    if warnings is not None:
        for loop in stack:
            _warn(
                warnings,
                "unclosed_for",
                f"loop over '{loop.iterable}' never closed, dropped",
            )
    return forest


def _parse_for_header(tokens: list[str]) -> ForLoopNode | None:
    for_index = tokens.index("for")
    if for_index + 2 >= len(tokens) or tokens[for_index + 2] != "in":
        return None
    loop_var = tokens[for_index + 1]
    # "{% for x in %}" still opens a loop, keyed by the empty string
    iterable = tokens[for_index + 3] if for_index + 3 < len(tokens) else ""
    return ForLoopNode(loop_var=loop_var, iterable=iterable)


def _warn(
    warnings: list[WarningEntry],
    rule: str,
    reason: str,
    tag: RawTag | None = None,
    index: int | None = None,
) -> None:
    warnings.append(
        WarningEntry(
            rule=rule,
            reason=reason,
            tag=tag.text if tag is not None else None,
            tag_index=index,
        )
    )
