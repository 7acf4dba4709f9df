from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from time import perf_counter
from typing import Any, Callable, TypeVar

from . import config
from .ast_parser import WarningEntry, parse_tags
from .docx_reader import DocumentSource, describe_source, extract_text
from .heading_tree import HeadingForest, build_heading_forest, load_document, paragraph_records
from .schema import build_schema
from .tag_lexer import RawTag, TagLexer

_T = TypeVar("_T")

PIPELINE_SCHEMA = "schema"
PIPELINE_HEADINGS = "headings"


@dataclass
class ParseLogState:
    source: str
    pipeline: str
    start_time: datetime
    warnings: list[WarningEntry] = field(default_factory=list)
    text_length: int | None = None
    tag_count: int | None = None
    paragraph_count: int | None = None
    heading_count: int | None = None
    orphan_count: int | None = None
    skipped_count: int | None = None
    error: str | None = None
    elapsed_sec: float | None = None


@dataclass
class SchemaResult:
    schema: dict[str, Any]
    tags: list[RawTag]
    warnings: list[WarningEntry]

    def warnings_to_dicts(self) -> list[dict[str, object]]:
        return [
            {
                "rule": warning.rule,
                "reason": warning.reason,
                "tag": warning.tag,
                "tag_index": warning.tag_index,
            }
            for warning in self.warnings
        ]


class TemplateParser:
    """Runs the schema and heading pipelines and records a log per run."""

    def __init__(self) -> None:
        self._log_state: ParseLogState | None = None
        self._last_log_state: ParseLogState | None = None

    @property
    def last_log_state(self) -> ParseLogState | None:
        return self._last_log_state

    def parse_schema(self, source: DocumentSource) -> SchemaResult:
        return self._run(source, PIPELINE_SCHEMA, self._parse_schema)

    def parse_headings(self, source: DocumentSource) -> HeadingForest:
        return self._run(source, PIPELINE_HEADINGS, self._parse_headings)

    def export_json(
        self,
        result: SchemaResult | HeadingForest | dict[str, Any],
        output_path: str | None = None,
        include_warnings: bool = False,
    ) -> Path:
        if isinstance(result, HeadingForest):
            payload: Any = result.to_dict()
            default_output = config.default_output_path(PIPELINE_HEADINGS)
        elif isinstance(result, SchemaResult):
            if include_warnings:
                payload = {"schema": result.schema, "warnings": result.warnings_to_dicts()}
            else:
                payload = result.schema
            default_output = config.default_output_path(PIPELINE_SCHEMA)
        else:
            payload = result
            default_output = config.default_output_path(PIPELINE_SCHEMA)
        if output_path is None:
            config.ensure_base_dirs()
            output = default_output
        else:
            output = Path(output_path)
            output.parent.mkdir(parents=True, exist_ok=True)
        with output.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, ensure_ascii=False, indent=2)
        return output

    def _run(
        self,
        source: DocumentSource,
        pipeline: str,
        work: Callable[[DocumentSource], _T],
    ) -> _T:
        started = perf_counter()
        self._log_state = ParseLogState(
            source=describe_source(source),
            pipeline=pipeline,
            start_time=datetime.now(),
        )
        try:
            result = work(source)
        except Exception as exc:
            self._log_state.error = str(exc)
            self._log_state.elapsed_sec = perf_counter() - started
            _write_log(self._log_state)
            self._last_log_state = self._log_state
            self._log_state = None
            raise
        self._log_state.elapsed_sec = perf_counter() - started
        _write_log(self._log_state)
        self._last_log_state = self._log_state
        self._log_state = None
        return result

    def _parse_schema(self, source: DocumentSource) -> SchemaResult:
        text = extract_text(source)
        tags = list(TagLexer(text))
        warnings: list[WarningEntry] = []
        nodes = parse_tags(tags, warnings=warnings)
        schema = build_schema(nodes)
        if self._log_state is not None:
            self._log_state.text_length = len(text)
            self._log_state.tag_count = len(tags)
            self._log_state.warnings.extend(warnings)
        return SchemaResult(schema=schema, tags=tags, warnings=warnings)

    def _parse_headings(self, source: DocumentSource) -> HeadingForest:
        document = load_document(source)
        records = paragraph_records(document)
        forest = build_heading_forest(records)
        if self._log_state is not None:
            self._log_state.paragraph_count = len(records)
            self._log_state.heading_count = forest.heading_count()
            self._log_state.orphan_count = len(forest.orphans)
            self._log_state.skipped_count = len(forest.skipped)
        return forest


def docx_to_json(source: DocumentSource) -> dict[str, Any]:
    """Schema of the template placeholders in a docx, without logging."""
    text = extract_text(source)
    return build_schema(parse_tags(TagLexer(text)))


def _write_log(log_state: ParseLogState) -> None:
    config.ensure_base_dirs()
    log_path = config.build_log_path(log_state.start_time, log_state.pipeline)
    lines = [
        f"source: {log_state.source}",
        f"pipeline: {log_state.pipeline}",
        f"elapsed_sec: {log_state.elapsed_sec:.3f}"
        if log_state.elapsed_sec is not None
        else "elapsed_sec: unknown",
    ]
    counters = (
        ("text_length", log_state.text_length),
        ("tag_count", log_state.tag_count),
        ("paragraph_count", log_state.paragraph_count),
        ("heading_count", log_state.heading_count),
        ("orphan_count", log_state.orphan_count),
        ("skipped_count", log_state.skipped_count),
    )
    for name, value in counters:
        if value is not None:
            lines.append(f"{name}: {value}")
    if log_state.error:
        lines.append(f"error: {log_state.error}")
    lines.append(f"warnings_count: {len(log_state.warnings)}")
    for warning in log_state.warnings:
        parts = [f"rule={warning.rule}", f"reason={warning.reason}"]
        if warning.tag:
            parts.append(f"tag={warning.tag!r}")
        if warning.tag_index is not None:
            parts.append(f"tag_index={warning.tag_index}")
        lines.append("warning: " + " ".join(parts))
    with log_path.open("a", encoding="utf-8") as handle:
        handle.write("\n".join(lines) + "\n")
