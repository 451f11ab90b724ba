"""
Derives a screenshot's creation time.

The game names screenshots like ``clonehero-Artist-20251212052231.png``;
the 14-digit run is the capture time in UTC.
"""
import logging
import re
from datetime import datetime, UTC
from pathlib import Path

from .. import config
from ..exceptions import TimestampParseError

# Exactly 14 digits: not part of a longer digit run
TIMESTAMP_RE = re.compile(r'(?<!\d)(\d{14})(?!\d)')


def parse_filename_timestamp(filename: str) -> datetime:
    stem = Path(filename).stem
    match = TIMESTAMP_RE.search(stem)
    if not match:
        raise TimestampParseError(f"No timestamp found in filename {filename!r}")
    try:
        dt = datetime.strptime(match.group(1), config.FILENAME_TIMESTAMP_FORMAT)
    except ValueError as e:
        raise TimestampParseError(f"Invalid timestamp {match.group(1)!r} in {filename!r}: {e}") from e
    return dt.replace(tzinfo=UTC)


def resolve_created_at(path: Path) -> datetime:
    """
    Filename timestamp first, file modification time otherwise.
    Raises OSError only when the file itself cannot be stat'ed.
    """
    try:
        return parse_filename_timestamp(path.name)
    except TimestampParseError as e:
        logging.debug(f"{e}; falling back to modification time")

    mtime = path.stat().st_mtime
    return datetime.fromtimestamp(mtime, UTC)
