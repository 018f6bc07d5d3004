"""Turn conversion results into files the user can save."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .state import ConversionState, InputMode
from .targets import export_format

DEFAULT_TEXT_FILENAME = "text-convert"
FALLBACK_FILENAME = "convert-result"

# Letters, digits, CJK ideographs, underscore, hyphen and whitespace survive.
_UNSAFE_CHARS = re.compile(r"[^a-z0-9\u4e00-\u9fa5_\-\s]", re.IGNORECASE)


@dataclass(frozen=True)
class ExportArtifact:
    """A result ready to be written to disk."""

    filename: str
    content: str
    content_type: str


def sanitize_filename(name: str) -> str:
    return _UNSAFE_CHARS.sub("_", name)


def export_filename(
    state: ConversionState, identity: Optional[str] = None
) -> str:
    """Base filename (no extension) for a result in ``state``.

    Text mode uses the custom filename when one is set. Batch mode derives
    the name from the source file so results never collide with each other.
    """

    if state.mode is InputMode.TEXT:
        base = state.custom_filename.strip() or DEFAULT_TEXT_FILENAME
        return sanitize_filename(base)

    item_id = identity or state.active_identity
    if not state.has_item(item_id):
        return FALLBACK_FILENAME
    original = state.item(item_id).name  # type: ignore[arg-type]
    stem = original.rsplit(".", 1)[0] if "." in original else original
    return sanitize_filename(f"{stem or original}_converted")


def build_export(
    state: ConversionState, identity: Optional[str] = None
) -> Optional[ExportArtifact]:
    """Package the active (or given) result; ``None`` when there is none."""

    if state.mode is InputMode.TEXT:
        content = state.text_result or ""
    elif identity is not None:
        content = state.item(identity).result or ""
    else:
        content = state.current_result()
    if not content:
        return None

    fmt = export_format(state.target)
    return ExportArtifact(
        filename=f"{export_filename(state, identity)}.{fmt.extension}",
        content=content,
        content_type=fmt.content_type,
    )


def write_export(
    artifact: ExportArtifact,
    directory: Path,
    *,
    taken: Optional[set[Path]] = None,
) -> Path:
    """Write ``artifact`` under ``directory`` and return the path.

    Paths already in ``taken`` get a ``-01``, ``-02`` ... suffix so results
    from one run never overwrite each other; ``taken`` is updated in place.
    """

    directory.mkdir(parents=True, exist_ok=True)
    base = Path(artifact.filename)
    path = directory / base.name
    if taken is not None:
        counter = 1
        while path in taken:
            path = directory / f"{base.stem}-{counter:02d}{base.suffix}"
            counter += 1
        taken.add(path)
    path.write_text(artifact.content, encoding="utf-8")
    return path


__all__ = [
    "DEFAULT_TEXT_FILENAME",
    "FALLBACK_FILENAME",
    "ExportArtifact",
    "sanitize_filename",
    "export_filename",
    "build_export",
    "write_export",
]
