"""Test atomic filesystem operations.

Tests for src.utils.fs:
    - ensure_dir creates parents and is idempotent
    - atomic_write_bytes writes, overwrites and leaves no temp file
    - A failed rename removes the temp file and re-raises
    - YAML roundtrip preserves key order
    - load_yaml error handling

Run:
    pytest tests/test_fs.py -v
"""

from pathlib import Path

import pytest
import yaml

from src.utils import fs


def test_ensure_dir(tmp_path):
    """Test nested directory creation."""
    new_dir = tmp_path / "a" / "b" / "c"
    assert fs.ensure_dir(new_dir) == new_dir
    fs.ensure_dir(new_dir)
    assert new_dir.is_dir()


def test_atomic_write_bytes(tmp_path):
    """Test bytes land at the target with no temp file left behind."""
    target = tmp_path / "out" / "design.pec"
    fs.atomic_write_bytes(target, b"#PEC0001")
    assert target.read_bytes() == b"#PEC0001"
    assert not (tmp_path / "out" / "design.pec.tmp").exists()


def test_atomic_write_bytes_overwrites(tmp_path):
    """Test an existing file is replaced."""
    target = tmp_path / "design.jef"
    fs.atomic_write_bytes(target, b"old contents")
    fs.atomic_write_bytes(target, b"new")
    assert target.read_bytes() == b"new"


def test_atomic_write_bytes_failed_rename(tmp_path, monkeypatch):
    """Test the temp file is removed and the error propagates."""
    target = tmp_path / "design.u01"
    target.write_bytes(b"original")

    def fail_replace(self, other):
        raise OSError("disk on fire")

    monkeypatch.setattr(Path, "replace", fail_replace)
    with pytest.raises(OSError, match="disk on fire"):
        fs.atomic_write_bytes(target, b"partial")

    assert target.read_bytes() == b"original"
    assert not (tmp_path / "design.u01.tmp").exists()


def test_atomic_yaml_roundtrip(tmp_path):
    """Test YAML write and load preserve structure and key order."""
    data = {"schema": "format_profiles.v1", "formats": {"pec": {"max_stitch": 2047}, "jef": {}}}
    path = tmp_path / "profiles.yaml"
    fs.atomic_yaml_dump(data, path)

    assert fs.load_yaml(path) == data
    content = path.read_text()
    assert content.index("schema:") < content.index("formats:")
    assert content.index("pec:") < content.index("jef:")


def test_load_yaml_empty_file(tmp_path):
    """Test an empty file loads as an empty dict."""
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert fs.load_yaml(path) == {}


def test_load_yaml_missing(tmp_path):
    """Test missing files raise FileNotFoundError."""
    with pytest.raises(FileNotFoundError, match="YAML file not found"):
        fs.load_yaml(tmp_path / "nope.yaml")


def test_load_yaml_invalid(tmp_path):
    """Test malformed YAML names the file."""
    path = tmp_path / "bad.yaml"
    path.write_text("formats: [pec\n")
    with pytest.raises(yaml.YAMLError, match="Failed to parse YAML file"):
        fs.load_yaml(path)
