"""Source payloads, queue admission rules and transport selection."""

from __future__ import annotations

import base64
import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from uniconvert.core.files import decode_text

from .errors import ConversionFailure, PayloadTooLargeError, UnsupportedTypeError

MAX_PAYLOAD_BYTES = 5 * 1024 * 1024

DOCX_CONTENT_TYPE = (
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
)

SUPPORTED_CONTENT_TYPES: tuple[str, ...] = (
    "image/png",
    "image/jpeg",
    "image/webp",
    "image/heic",
    "application/pdf",
    "text/plain",
    "text/csv",
    "text/html",
    "application/json",
    "text/markdown",
    "text/x-yaml",
    DOCX_CONTENT_TYPE,
)

SUPPORTED_EXTENSIONS: frozenset[str] = frozenset(
    {
        "pdf",
        "docx",
        "doc",
        "csv",
        "txt",
        "md",
        "json",
        "xml",
        "html",
        "yaml",
        "yml",
        "png",
        "jpg",
        "jpeg",
        "webp",
        "heic",
    }
)

_EXTENSION_CONTENT_TYPES = {
    "pdf": "application/pdf",
    "csv": "text/csv",
    "json": "application/json",
    "xml": "text/xml",
    "html": "text/html",
    "md": "text/markdown",
    "txt": "text/plain",
    "doc": DOCX_CONTENT_TYPE,
    "docx": DOCX_CONTENT_TYPE,
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
    "heic": "image/heic",
}

_TEXT_CONTENT_PREFIXES = (
    "text/",
    "application/json",
    "application/xml",
    "application/javascript",
    "application/x-yaml",
    "application/sql",
    "application/csv",
)

_TEXT_EXTENSIONS = frozenset(
    {
        "txt",
        "md",
        "csv",
        "json",
        "xml",
        "html",
        "css",
        "js",
        "yaml",
        "yml",
        "sql",
        "ts",
        "tsx",
        "py",
    }
)


@dataclass(frozen=True)
class TextPayload:
    """Inline text typed or pasted by the user."""

    text: str
    name: str = ""

    @property
    def size(self) -> int:
        return len(self.text.encode("utf-8"))

    @property
    def content_type(self) -> str:
        return "text/plain"


@dataclass(frozen=True)
class FilePayload:
    """A user-supplied file: name, raw bytes and declared content type.

    ``byte_size`` records the on-disk size of a file whose bytes were never
    loaded because admission rejects it.
    """

    name: str
    data: bytes = field(repr=False)
    content_type: str = ""
    byte_size: Optional[int] = None

    @property
    def size(self) -> int:
        if self.byte_size is not None:
            return self.byte_size
        return len(self.data)

    @classmethod
    def from_path(cls, path: Path) -> "FilePayload":
        """Load ``path``, skipping the read when admission would reject it."""
        source = Path(path)
        declared, _ = mimetypes.guess_type(source.name)
        unread = cls(
            name=source.name,
            data=b"",
            content_type=declared or "",
            byte_size=source.stat().st_size,
        )
        if check_admission(unread) is not None:
            return unread
        return cls(
            name=source.name,
            data=source.read_bytes(),
            content_type=declared or "",
        )


Payload = Union[TextPayload, FilePayload]


@dataclass(frozen=True)
class TextTransport:
    """Payload sent to the model as literal text."""

    text: str
    name: str
    is_file: bool


@dataclass(frozen=True)
class BinaryTransport:
    """Payload sent to the model as base64 bytes tagged with a content type."""

    data_b64: str
    content_type: str
    name: str

    @property
    def data_url(self) -> str:
        return f"data:{self.content_type};base64,{self.data_b64}"


Transport = Union[TextTransport, BinaryTransport]


def extension_of(name: str) -> str:
    suffix = Path(name).suffix
    return suffix.lstrip(".").lower()


def resolve_content_type(name: str, declared: str) -> str:
    """Return ``declared`` unless it is missing or generic, else guess by name."""
    if declared and declared != "application/octet-stream":
        return declared
    return _EXTENSION_CONTENT_TYPES.get(extension_of(name), "text/plain")


def is_textual(payload: Payload) -> bool:
    """Whether ``payload`` can be sent as text instead of encoded bytes."""
    if isinstance(payload, TextPayload):
        return True
    content_type = resolve_content_type(payload.name, payload.content_type)
    if content_type.startswith(_TEXT_CONTENT_PREFIXES):
        return True
    return extension_of(payload.name) in _TEXT_EXTENSIONS


def check_admission(payload: Payload) -> Optional[ConversionFailure]:
    """Return why ``payload`` may not be queued, or ``None`` if it may.

    The size ceiling applies first and regardless of type. The type rule
    passes when either the declared content type or the extension is
    supported; with no declared type only the extension counts.
    """

    if payload.size > MAX_PAYLOAD_BYTES:
        megabytes = payload.size / 1024 / 1024
        return PayloadTooLargeError(
            f"File {payload.name or '(text)'} is too large ({megabytes:.1f}MB). "
            "Upload files up to 5MB."
        )

    declared = payload.content_type
    type_ok = bool(declared) and any(
        declared == supported or declared.startswith(supported)
        for supported in SUPPORTED_CONTENT_TYPES
    )
    extension_ok = extension_of(payload.name) in SUPPORTED_EXTENSIONS
    if not (type_ok or extension_ok):
        return UnsupportedTypeError(f"Unsupported file type: {payload.name}")
    return None


def build_transport(payload: Payload) -> Transport:
    """Pick the cheapest faithful way to ship ``payload`` to the model."""
    if isinstance(payload, TextPayload):
        return TextTransport(text=payload.text, name=payload.name, is_file=False)
    if is_textual(payload):
        return TextTransport(
            text=decode_text(payload.data), name=payload.name, is_file=True
        )
    return BinaryTransport(
        data_b64=base64.b64encode(payload.data).decode("ascii"),
        content_type=resolve_content_type(payload.name, payload.content_type),
        name=payload.name,
    )


__all__ = [
    "MAX_PAYLOAD_BYTES",
    "DOCX_CONTENT_TYPE",
    "SUPPORTED_CONTENT_TYPES",
    "SUPPORTED_EXTENSIONS",
    "TextPayload",
    "FilePayload",
    "Payload",
    "TextTransport",
    "BinaryTransport",
    "Transport",
    "extension_of",
    "resolve_content_type",
    "is_textual",
    "check_admission",
    "build_transport",
]
