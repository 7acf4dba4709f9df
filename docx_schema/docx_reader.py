from __future__ import annotations

import codecs
import zlib
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Union
from zipfile import BadZipFile, ZipFile

from lxml import etree

from . import config
from .errors import ArchiveFormatError, EncodingError, IoFailure, XmlParseError

W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
NS = {"w": W_NS}

DocumentSource = Union[str, Path, bytes, BinaryIO]


def extract_text(source: DocumentSource) -> str:
    """Return the concatenated run text of the document's main part."""
    return extract_text_from_xml(read_document_xml(source))


def read_document_xml(
    source: DocumentSource,
    part_name: str = config.MAIN_DOCUMENT_PART,
) -> bytes:
    handle = open_source(source)
    try:
        with ZipFile(handle) as archive:
            return archive.read(part_name)
    except (BadZipFile, zlib.error, EOFError, NotImplementedError) as exc:
        raise ArchiveFormatError(f"invalid docx file: {describe_source(source)} ({exc})") from exc
    except KeyError as exc:
        raise ArchiveFormatError(
            f"missing required part in docx: {part_name} ({describe_source(source)})"
        ) from exc
    except OSError as exc:
        raise IoFailure(f"failed to read document: {describe_source(source)}") from exc


def extract_text_from_xml(xml_bytes: bytes) -> str:
    _ensure_decodable(xml_bytes)
    try:
        root = etree.fromstring(xml_bytes)
    except etree.XMLSyntaxError as exc:
        raise XmlParseError(f"malformed document markup: {exc}") from exc
    texts: list[str] = []
    for node in root.iterfind(".//w:t", namespaces=NS):
        if node.text:
            texts.append(node.text)
    return "".join(texts)


def open_source(source: DocumentSource) -> Path | BinaryIO:
    """Normalize a path, raw bytes or binary handle into something zip-readable."""
    if isinstance(source, (bytes, bytearray)):
        return BytesIO(bytes(source))
    if isinstance(source, (str, Path)):
        path = Path(source)
        ensure_readable_file(path)
        return path
    return source


def ensure_readable_file(path: Path) -> None:
    if not path.exists():
        raise IoFailure(f"document not found: {path}")
    if not path.is_file():
        raise IoFailure(f"document path is not a file: {path}")
    try:
        with path.open("rb"):
            pass
    except OSError as exc:
        raise IoFailure(f"document is not readable: {path}") from exc


def describe_source(source: DocumentSource) -> str:
    if isinstance(source, (str, Path)):
        return str(source)
    if isinstance(source, (bytes, bytearray)):
        return f"<{len(source)} bytes>"
    name = getattr(source, "name", None)
    return str(name) if name else "<stream>"


def _ensure_decodable(data: bytes) -> None:
    # Word writes UTF-8; UTF-16 parts always carry a BOM.
    if data.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        encoding = "utf-16"
    else:
        encoding = "utf-8-sig"
    try:
        data.decode(encoding)
    except UnicodeDecodeError as exc:
        raise EncodingError(
            f"document markup is not valid {encoding}: {exc.reason} at byte {exc.start}"
        ) from exc
