from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator

TAG_PATTERN = re.compile(r"\{\{.*?\}\}|\{%-?.*?-?%\}", re.DOTALL)


class TagKind(str, Enum):
    EXPRESSION = "expression"
    STATEMENT = "statement"


@dataclass(frozen=True)
class RawTag:
    text: str
    start: int
    end: int

    @property
    def kind(self) -> TagKind:
        if self.text.startswith("{{"):
            return TagKind.EXPRESSION
        return TagKind.STATEMENT

    @property
    def inner(self) -> str:
        body = self.text[2:-2]
        if self.kind == TagKind.STATEMENT:
            body = body.strip().strip("-")
        return body.strip()

    def tokens(self) -> list[str]:
        return self.inner.split()


class TagLexer:
    """Iterable over the placeholders of a text buffer.

    Each iteration rescans the buffer from the start, so the same lexer can
    be consumed any number of times.
    """

    def __init__(self, text: str) -> None:
        self.text = text

    def __iter__(self) -> Iterator[RawTag]:
        for match in TAG_PATTERN.finditer(self.text):
            yield RawTag(text=match.group(0), start=match.start(), end=match.end())


def extract_tags(text: str) -> list[RawTag]:
    return list(TagLexer(text))
