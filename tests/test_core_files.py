from __future__ import annotations

from pathlib import Path

import pytest

from uniconvert.core import decode_text, iter_input_files


def test_iter_input_files_expands_directories_sorted(workspace) -> None:
    root = workspace.create(
        {
            "b.txt": "b",
            "A.md": "a",
            "sub": {"c.csv": "c", "empty": None},
        }
    )

    names = [path.name for path in iter_input_files([root])]

    assert names == ["A.md", "b.txt", "c.csv"]


def test_iter_input_files_keeps_explicit_order(workspace) -> None:
    second = workspace.write("z.txt", "z")
    first = workspace.write("a.txt", "a")

    assert list(iter_input_files([second, first])) == [second, first]


def test_iter_input_files_deduplicates(workspace) -> None:
    root = workspace.create({"a.txt": "a", "b.txt": "b"})

    paths = list(iter_input_files([root / "a.txt", root]))

    assert [path.name for path in paths] == ["a.txt", "b.txt"]


def test_iter_input_files_errors_on_missing_path(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="Input not found"):
        list(iter_input_files([tmp_path / "missing"]))


def test_decode_text_replaces_invalid_bytes() -> None:
    assert decode_text("héllo".encode("utf-8")) == "héllo"
    assert decode_text(b"a\xffb") == "a�b"
