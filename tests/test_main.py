import os
import pytest
from pathlib import Path
from score_ingest import config
from score_ingest.main import normalize_dir, parse_args, run_report

def test_normalize_dir_handles_escaped_spaces(tmp_path):
    raw = str(tmp_path / "Clone\\ Hero" / "screenshots")
    assert normalize_dir(raw) == tmp_path / "Clone Hero" / "screenshots"

def test_normalize_dir_empty_means_unset():
    assert normalize_dir("") is None
    assert normalize_dir(None) is None

def test_normalize_dir_makes_absolute(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    assert normalize_dir("shots/../shots") == tmp_path / "shots"

def test_parse_args_reads_environment(monkeypatch):
    monkeypatch.setenv("WATCH_DIR", "/games/shots")
    monkeypatch.setenv("PROCESSED_DIR", "/games/done")
    monkeypatch.setenv("MAX_IMAGE_WIDTH", "1280")
    monkeypatch.delenv("MAX_IMAGE_HEIGHT", raising=False)

    args = parse_args([])
    assert args.watch_dir == "/games/shots"
    assert args.processed_dir == "/games/done"
    assert args.max_width == 1280
    assert args.max_height == config.MAX_IMAGE_HEIGHT

def test_parse_args_flags_override_environment(monkeypatch):
    monkeypatch.setenv("WATCH_DIR", "/games/shots")
    args = parse_args(["--watch-dir", "/other", "--poll-only", "--workers", "4"])
    assert args.watch_dir == "/other"
    assert args.poll_only is True
    assert args.workers == 4

def test_report_requires_existing_db(tmp_path):
    assert run_report(tmp_path / "missing.db", tmp_path / "out.csv") == 1
    assert not (tmp_path / "out.csv").exists()
