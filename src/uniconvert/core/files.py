"""File discovery and decoding helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator, Sequence

__all__ = [
    "decode_text",
    "iter_input_files",
]


def iter_input_files(paths: Sequence[Path]) -> Iterator[Path]:
    """Yield files from ``paths``, expanding directories recursively.

    Explicit files keep their command-line order; directory contents are
    sorted by path. A path seen twice is yielded once.
    """

    seen: set[Path] = set()
    for raw in paths:
        path = Path(raw).expanduser()
        if path.is_dir():
            children = sorted(
                (child for child in path.rglob("*") if child.is_file()),
                key=lambda candidate: str(candidate).lower(),
            )
        elif path.exists():
            children = [path]
        else:
            raise FileNotFoundError(f"Input not found: {path}")
        for child in children:
            key = child.resolve()
            if key in seen:
                continue
            seen.add(key)
            yield child


def decode_text(data: bytes) -> str:
    """Decode ``data`` as UTF-8, replacing undecodable bytes."""
    return data.decode("utf-8", errors="replace")
