import enum
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Optional, Tuple, Dict, Any


@dataclass(frozen=True)
class PlayerRecord:
    """
    One player's block on the results screen.
    """
    name: str
    instrument: Optional[str] = None
    difficulty: Optional[str] = None   # Easy/Medium/Hard/Expert
    score: Optional[int] = None
    accuracy: Optional[float] = None   # percent, e.g. 81.0
    misses: Optional[int] = None
    best_streak: Optional[int] = None
    rank: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ScoreRecord:
    """
    Structured output of one screenshot extraction.
    Artist and song name may be empty when OCR degraded; created_at is always set.
    """
    artist: str
    song_name: str
    created_at: datetime
    charter: Optional[str] = None
    total_score: Optional[int] = None
    stars_achieved: Optional[int] = None
    players: Tuple[PlayerRecord, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Region:
    """Pixel rectangle (right/bottom exclusive), already clipped to the image."""
    left: int
    top: int
    right: int
    bottom: int

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    @property
    def box(self) -> Tuple[int, int, int, int]:
        return (self.left, self.top, self.right, self.bottom)


class FileState(enum.IntEnum):
    """Watcher-side lifecycle of one path. Transitions only move forward."""
    DISCOVERED = 0
    PROCESSING = 1
    PROCESSED = 2
    FAILED = 3

    @property
    def is_terminal(self) -> bool:
        return self in (FileState.PROCESSED, FileState.FAILED)
