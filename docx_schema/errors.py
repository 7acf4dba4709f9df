from __future__ import annotations


class DocxSchemaError(Exception):
    """Base class for failures while reading a document."""


class IoFailure(DocxSchemaError, OSError):
    pass


class ArchiveFormatError(DocxSchemaError, ValueError):
    pass


class XmlParseError(DocxSchemaError, ValueError):
    pass


class EncodingError(XmlParseError):
    pass
