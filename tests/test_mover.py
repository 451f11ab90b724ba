import os
import shutil
import pytest
from pathlib import Path
from score_ingest.exceptions import FileOperationError, SourceRemovalError
from score_ingest.organization.mover import FileMover

PAYLOAD = bytes(range(256)) * 64

def _fail_rename(src, dst):
    raise OSError(18, "Invalid cross-device link")

def test_move_same_filesystem(tmp_path):
    src = tmp_path / "watch" / "shot.png"
    src.parent.mkdir()
    src.write_bytes(PAYLOAD)

    dest = FileMover().move(src, tmp_path / "processed")

    assert dest == tmp_path / "processed" / "shot.png"
    assert dest.read_bytes() == PAYLOAD
    assert not src.exists()

def test_move_falls_back_to_copy(monkeypatch, tmp_path):
    src = tmp_path / "shot.png"
    src.write_bytes(PAYLOAD)
    monkeypatch.setattr(os, "rename", _fail_rename)

    dest = FileMover().move(src, tmp_path / "failed")

    assert dest.read_bytes() == PAYLOAD
    assert not src.exists()

def test_source_removal_failure_is_distinct(monkeypatch, tmp_path):
    src = tmp_path / "shot.png"
    src.write_bytes(PAYLOAD)
    monkeypatch.setattr(os, "rename", _fail_rename)

    original_unlink = Path.unlink

    def guarded_unlink(self, missing_ok=False):
        if self == src:
            raise PermissionError("file in use")
        return original_unlink(self, missing_ok=missing_ok)

    monkeypatch.setattr(Path, "unlink", guarded_unlink)

    with pytest.raises(SourceRemovalError) as excinfo:
        FileMover().move(src, tmp_path / "processed")

    dest = tmp_path / "processed" / "shot.png"
    assert excinfo.value.destination == dest
    assert isinstance(excinfo.value, FileOperationError)
    assert dest.read_bytes() == PAYLOAD
    assert src.exists()

def test_move_replaces_existing_destination(tmp_path):
    src = tmp_path / "shot.png"
    src.write_bytes(b"new")
    (tmp_path / "out").mkdir()
    (tmp_path / "out" / "shot.png").write_bytes(b"old")

    dest = FileMover().move(src, tmp_path / "out")
    assert dest.read_bytes() == b"new"

def test_move_missing_source(tmp_path):
    with pytest.raises(FileOperationError, match="does not exist"):
        FileMover().move(tmp_path / "gone.png", tmp_path / "out")

def test_move_requires_destination(tmp_path):
    src = tmp_path / "shot.png"
    src.write_bytes(b"x")
    with pytest.raises(FileOperationError):
        FileMover().move(src, None)

def test_unverifiable_copy_raises_file_error(monkeypatch, tmp_path):
    src = tmp_path / "shot.png"
    src.write_bytes(PAYLOAD)
    dest = tmp_path / "processed" / "shot.png"
    monkeypatch.setattr(os, "rename", _fail_rename)

    copied = []
    real_copystat = shutil.copystat
    original_stat = Path.stat

    def tracking_copystat(s, d, **kwargs):
        real_copystat(s, d, **kwargs)
        copied.append(d)

    def failing_stat(self, **kwargs):
        if copied and self == dest:
            raise OSError(5, "I/O error")
        return original_stat(self, **kwargs)

    monkeypatch.setattr(shutil, "copystat", tracking_copystat)
    monkeypatch.setattr(Path, "stat", failing_stat)

    with pytest.raises(FileOperationError, match="Cannot verify"):
        FileMover().move(src, tmp_path / "processed")
    assert src.exists()
