from __future__ import annotations

import re
import zlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable
from zipfile import BadZipFile

from lxml import etree

from .docx_reader import DocumentSource, describe_source, open_source
from .errors import ArchiveFormatError, IoFailure, XmlParseError

_LEVEL_PATTERN = re.compile(r"[0-9]+")


@dataclass
class ParagraphRecord:
    style_id: str | None
    text: str


@dataclass
class HeadingNode:
    level: int
    title: str
    contents: list[str] | None = None
    children: list[HeadingNode] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "level": self.level,
            "title": self.title,
            "contents": list(self.contents) if self.contents is not None else None,
            "children": [child.to_dict() for child in self.children],
        }


@dataclass
class HeadingForest:
    roots: list[HeadingNode]
    orphans: list[str]
    skipped: list[ParagraphRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "headings": [node.to_dict() for node in self.roots],
            "orphans": list(self.orphans),
        }

    def heading_count(self) -> int:
        count = 0
        pending = list(self.roots)
        while pending:
            node = pending.pop()
            count += 1
            pending.extend(node.children)
        return count


@dataclass
class _Slot:
    level: int
    title: str
    contents: list[str] | None = None
    children: list[int] = field(default_factory=list)


class HeadingTreeBuilder:
    """Rebuild the heading outline from a flat paragraph sequence.

    Nodes live in an arena and refer to their children by index. The path
    stack holds the indices from a root down to the last inserted heading,
    with strictly increasing levels.
    """

    def __init__(self) -> None:
        self._arena: list[_Slot] = []
        self._roots: list[int] = []
        self._path: list[int] = []
        self._orphans: list[str] = []
        self._skipped: list[ParagraphRecord] = []

    def add(self, record: ParagraphRecord) -> None:
        if record.style_id is None:
            self._add_content(record.text)
            return
        level = parse_heading_level(record.style_id)
        if level is None:
            self._skipped.append(record)
            return
        self._add_heading(level, record.text)

    def extend(self, records: Iterable[ParagraphRecord]) -> "HeadingTreeBuilder":
        for record in records:
            self.add(record)
        return self

    def build(self) -> HeadingForest:
        return HeadingForest(
            roots=[self._materialize(index) for index in self._roots],
            orphans=list(self._orphans),
            skipped=list(self._skipped),
        )

    def _add_heading(self, level: int, title: str) -> None:
        index = len(self._arena)
        self._arena.append(_Slot(level=level, title=title))
        while self._path and self._arena[self._path[-1]].level >= level:
            self._path.pop()
        if self._path:
            self._arena[self._path[-1]].children.append(index)
        else:
            self._roots.append(index)
        self._path.append(index)

    def _add_content(self, text: str) -> None:
        if not self._path:
            self._orphans.append(text)
            return
        slot = self._arena[self._path[-1]]
        if slot.contents is None:
            slot.contents = []
        slot.contents.append(text)

    def _materialize(self, index: int) -> HeadingNode:
        slot = self._arena[index]
        return HeadingNode(
            level=slot.level,
            title=slot.title,
            contents=list(slot.contents) if slot.contents is not None else None,
            children=[self._materialize(child) for child in slot.children],
        )


def parse_heading_level(style_id: str) -> int | None:
    value = style_id.strip()
    if not _LEVEL_PATTERN.fullmatch(value):
        return None
    level = int(value)
    if level < 1:
        return None
    return level


def build_heading_forest(records: Iterable[ParagraphRecord]) -> HeadingForest:
    return HeadingTreeBuilder().extend(records).build()


def paragraph_records(document: Any) -> list[ParagraphRecord]:
    """Top-level body paragraphs of a python-docx document, in order.

    The raw ``w:pStyle`` value is used, not ``paragraph.style``, which falls
    back to the default paragraph style when none is set.
    """
    records: list[ParagraphRecord] = []
    for paragraph in document.paragraphs:
        records.append(ParagraphRecord(style_id=paragraph._p.style, text=paragraph.text))
    return records


def load_document(source: DocumentSource) -> Any:
    try:
        from docx import Document
        from docx.opc.exceptions import PackageNotFoundError
    except ImportError as exc:
        raise ImportError("python-docx is required to parse headings") from exc

    handle = open_source(source)
    target = str(handle) if isinstance(handle, Path) else handle
    try:
        return Document(target)
    except (BadZipFile, PackageNotFoundError, KeyError) as exc:
        raise ArchiveFormatError(f"invalid docx file: {describe_source(source)}") from exc
    except (zlib.error, EOFError, NotImplementedError) as exc:
        raise ArchiveFormatError(f"corrupt docx archive: {describe_source(source)} ({exc})") from exc
    except etree.XMLSyntaxError as exc:
        raise XmlParseError(f"malformed document markup: {exc}") from exc
    except ValueError as exc:
        raise ArchiveFormatError(f"not a Word document: {describe_source(source)} ({exc})") from exc
    except OSError as exc:
        raise IoFailure(f"failed to read document: {describe_source(source)}") from exc


def extract_headings(source: DocumentSource) -> HeadingForest:
    document = load_document(source)
    return build_heading_forest(paragraph_records(document))
