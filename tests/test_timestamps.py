import os
import pytest
from datetime import datetime, UTC
from score_ingest.exceptions import TimestampParseError
from score_ingest.parsing.timestamps import parse_filename_timestamp, resolve_created_at

@pytest.mark.parametrize(
    "name,expected",
    [
        ("20251212052231.png", datetime(2025, 12, 12, 5, 22, 31, tzinfo=UTC)),
        ("clonehero-Dave Matthews Band-20251212052231.png", datetime(2025, 12, 12, 5, 22, 31, tzinfo=UTC)),
        ("shot_20240229235959_final.png", datetime(2024, 2, 29, 23, 59, 59, tzinfo=UTC)),
        ("a1-20200101000000-b20210101000000.png", datetime(2020, 1, 1, 0, 0, 0, tzinfo=UTC)),
    ],
)
def test_parse_filename_timestamp(name, expected):
    assert parse_filename_timestamp(name) == expected

@pytest.mark.parametrize(
    "name",
    [
        "screenshot.png",
        "clonehero-2025121205223.png",      # 13 digits
        "clonehero-202512120522310.png",    # 15 digits
        "clonehero-20251332052231.png",     # month 13
        "clonehero-20250230120000.png",     # Feb 30
    ],
)
def test_parse_filename_timestamp_rejects(name):
    with pytest.raises(TimestampParseError):
        parse_filename_timestamp(name)

def test_extension_digits_are_ignored():
    # Only the base name is searched
    with pytest.raises(TimestampParseError):
        parse_filename_timestamp("shot.20251212052231")

def test_resolve_prefers_filename(tmp_path):
    p = tmp_path / "clonehero-20230615101500.png"
    p.write_bytes(b"x")
    os.utime(p, (0, 0))
    assert resolve_created_at(p) == datetime(2023, 6, 15, 10, 15, 0, tzinfo=UTC)

def test_resolve_falls_back_to_mtime(tmp_path):
    p = tmp_path / "no-timestamp.png"
    p.write_bytes(b"x")
    mtime = datetime(2022, 3, 4, 5, 6, 7, tzinfo=UTC).timestamp()
    os.utime(p, (mtime, mtime))
    assert resolve_created_at(p) == datetime(2022, 3, 4, 5, 6, 7, tzinfo=UTC)

def test_resolve_missing_file_without_timestamp(tmp_path):
    with pytest.raises(OSError):
        resolve_created_at(tmp_path / "gone.png")
