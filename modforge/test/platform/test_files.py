from __future__ import annotations

import os
from pathlib import Path

import pytest

from modforge.platform.files import atomic_write_bytes


def test_atomic_write_bytes_creates_parent_dirs(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "Module.psd1"
    atomic_write_bytes(path, b"@{}\r\n")

    assert path.read_bytes() == b"@{}\r\n"


def test_atomic_write_bytes_keeps_bom_and_terminators(tmp_path: Path) -> None:
    path = tmp_path / "Module.psd1"
    path.write_bytes(b"old")
    payload = b"\xef\xbb\xbf@{\r\n    A = 'b'\r\n}\r\n"

    atomic_write_bytes(path, payload)

    assert path.read_bytes() == payload


def test_atomic_write_bytes_cleans_temp_file_on_replace_failure(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    path = tmp_path / "Module.psd1"
    path.write_bytes(b"original")

    def fail_replace(_src: Path, _dst: Path) -> None:
        raise OSError("replace failed")

    monkeypatch.setattr(os, "replace", fail_replace)

    with pytest.raises(OSError, match="replace failed"):
        atomic_write_bytes(path, b"payload")

    assert list(path.parent.glob(f".{path.name}.*.tmp")) == []
    assert path.read_bytes() == b"original"
