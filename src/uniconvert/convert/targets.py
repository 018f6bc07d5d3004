"""Conversion targets and how their results are saved."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping

from .errors import ConvertConfigError


class ConversionTarget(Enum):
    """Output representation requested from the model."""

    JSON = "json"
    XML = "xml"
    CSV = "csv"
    MARKDOWN = "markdown"
    HTML = "html"
    LATEX = "latex"
    SQL = "sql"
    YAML = "yaml"
    DOCX = "docx"
    PLAIN_TEXT = "text"
    MERMAID = "mermaid"

    @property
    def label(self) -> str:
        """Name used when addressing the model."""
        return _LABELS[self]

    @classmethod
    def from_value(cls, value: str) -> "ConversionTarget":
        normalized = value.strip().lower()
        normalized = _ALIASES.get(normalized, normalized)
        for member in cls:
            if normalized in (member.value, member.name.lower()):
                return member
        expected = ", ".join(member.value for member in cls)
        raise ConvertConfigError(
            f"Unknown conversion target '{value}'. Expected one of: {expected}."
        )


_LABELS: Mapping[ConversionTarget, str] = {
    ConversionTarget.JSON: "JSON",
    ConversionTarget.XML: "XML",
    ConversionTarget.CSV: "CSV",
    ConversionTarget.MARKDOWN: "Markdown",
    ConversionTarget.HTML: "HTML",
    ConversionTarget.LATEX: "LaTeX",
    ConversionTarget.SQL: "SQL",
    ConversionTarget.YAML: "YAML",
    ConversionTarget.DOCX: "DOCX (Word document)",
    ConversionTarget.PLAIN_TEXT: "Plain text",
    ConversionTarget.MERMAID: "Mermaid diagram",
}

_ALIASES = {
    "md": "markdown",
    "txt": "text",
    "plain": "text",
    "plain_text": "text",
    "plain-text": "text",
    "tex": "latex",
    "word": "docx",
    "doc": "docx",
    "yml": "yaml",
}


@dataclass(frozen=True)
class ExportFormat:
    """File extension and content type for a saved result."""

    extension: str
    content_type: str


PLAIN_TEXT_EXPORT = ExportFormat("txt", "text/plain")

# DOCX results are HTML that Word opens as a legacy .doc file.
EXPORT_FORMATS: Mapping[ConversionTarget, ExportFormat] = {
    ConversionTarget.JSON: ExportFormat("json", "application/json"),
    ConversionTarget.CSV: ExportFormat("csv", "text/csv"),
    ConversionTarget.HTML: ExportFormat("html", "text/html"),
    ConversionTarget.MARKDOWN: ExportFormat("md", "text/markdown"),
    ConversionTarget.XML: ExportFormat("xml", "text/xml"),
    ConversionTarget.SQL: ExportFormat("sql", "text/plain"),
    ConversionTarget.YAML: ExportFormat("yaml", "text/yaml"),
    ConversionTarget.DOCX: ExportFormat("doc", "application/msword"),
    ConversionTarget.LATEX: PLAIN_TEXT_EXPORT,
    ConversionTarget.PLAIN_TEXT: PLAIN_TEXT_EXPORT,
    ConversionTarget.MERMAID: PLAIN_TEXT_EXPORT,
}


def export_format(target: object) -> ExportFormat:
    """Return the save format for ``target``; plain text when unrecognized."""
    if isinstance(target, ConversionTarget):
        return EXPORT_FORMATS.get(target, PLAIN_TEXT_EXPORT)
    return PLAIN_TEXT_EXPORT


__all__ = [
    "ConversionTarget",
    "ExportFormat",
    "EXPORT_FORMATS",
    "PLAIN_TEXT_EXPORT",
    "export_format",
]
