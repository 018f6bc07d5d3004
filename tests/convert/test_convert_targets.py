from __future__ import annotations

import pytest

from uniconvert.convert.errors import ConvertConfigError
from uniconvert.convert.targets import (
    EXPORT_FORMATS,
    PLAIN_TEXT_EXPORT,
    ConversionTarget,
    ExportFormat,
    export_format,
)


@pytest.mark.parametrize(
    "target,extension,content_type",
    [
        (ConversionTarget.JSON, "json", "application/json"),
        (ConversionTarget.CSV, "csv", "text/csv"),
        (ConversionTarget.HTML, "html", "text/html"),
        (ConversionTarget.MARKDOWN, "md", "text/markdown"),
        (ConversionTarget.XML, "xml", "text/xml"),
        (ConversionTarget.SQL, "sql", "text/plain"),
        (ConversionTarget.YAML, "yaml", "text/yaml"),
        (ConversionTarget.DOCX, "doc", "application/msword"),
        (ConversionTarget.LATEX, "txt", "text/plain"),
        (ConversionTarget.PLAIN_TEXT, "txt", "text/plain"),
        (ConversionTarget.MERMAID, "txt", "text/plain"),
    ],
)
def test_export_format_mapping(target, extension, content_type):
    assert export_format(target) == ExportFormat(extension, content_type)


def test_export_format_is_total():
    assert set(EXPORT_FORMATS) == set(ConversionTarget)
    assert export_format("pdf") == PLAIN_TEXT_EXPORT
    assert export_format(None) == PLAIN_TEXT_EXPORT


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("json", ConversionTarget.JSON),
        (" CSV ", ConversionTarget.CSV),
        ("md", ConversionTarget.MARKDOWN),
        ("plain_text", ConversionTarget.PLAIN_TEXT),
        ("txt", ConversionTarget.PLAIN_TEXT),
        ("word", ConversionTarget.DOCX),
        ("yml", ConversionTarget.YAML),
        ("tex", ConversionTarget.LATEX),
        ("Mermaid", ConversionTarget.MERMAID),
    ],
)
def test_from_value_accepts_aliases(raw, expected):
    assert ConversionTarget.from_value(raw) is expected


def test_from_value_rejects_unknown():
    with pytest.raises(ConvertConfigError) as exc:
        ConversionTarget.from_value("pptx")

    assert "pptx" in str(exc.value)
    assert "mermaid" in str(exc.value)


def test_every_target_has_label():
    labels = {target.label for target in ConversionTarget}

    assert len(labels) == len(ConversionTarget)
    assert ConversionTarget.DOCX.label == "DOCX (Word document)"
