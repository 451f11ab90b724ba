"""
Heuristics that turn raw OCR text of each region into typed fields.

OCR output on the results screen is noisy: lines come back out of order,
labels are dropped and digits pick up stray punctuation. Every extractor
here returns whatever it can find and leaves the rest empty.
"""
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from .. import config
from ..models import PlayerRecord

NUMERIC_RE = re.compile(r'^\d+([,\s]\d+)*$')
NON_DIGIT_RE = re.compile(r'\D')
INT_RE = re.compile(r'(\d+)')
PERCENT_RE = re.compile(r'(\d+\.?\d*)%')
SINGLE_DIGIT_RE = re.compile(r'[0-9]')
CHARTER_LABEL_RE = re.compile(r'^charter:\s*', re.IGNORECASE)


# --- Line helpers ---

def split_lines(text: str) -> List[str]:
    """Trimmed, non-empty lines."""
    return [line.strip() for line in text.splitlines() if line.strip()]


def is_numeric(line: str) -> bool:
    """Digits, optionally grouped with commas or spaces ("68,508", "68 508")."""
    return bool(NUMERIC_RE.match(line.strip()))


def clean_digits(line: str) -> str:
    return NON_DIGIT_RE.sub('', line)


def first_int(line: str) -> Optional[int]:
    match = INT_RE.search(line)
    return int(match.group(1)) if match else None


def is_separator(line: str) -> bool:
    stripped = line.strip()
    return stripped == "" or stripped.startswith("---")


def has_difficulty(line: str) -> bool:
    lower = line.lower()
    return any(d.lower() in lower for d in config.DIFFICULTIES)


def normalize_difficulty(line: str) -> str:
    """
    Maps any line mentioning a difficulty to its canonical name, highest first.
    Unrecognised text is returned unchanged.
    """
    lower = line.lower()
    for difficulty in config.DIFFICULTIES:
        if difficulty.lower() in lower:
            return difficulty
    return line


def find_instrument(line: str) -> Optional[str]:
    lower = line.lower()
    for keyword, instrument in config.INSTRUMENTS.items():
        if keyword in lower:
            return instrument
    return None


# --- Region extractors ---

def extract_top_left(text: str) -> Tuple[str, str, Optional[str]]:
    """
    Returns (artist, song_name, charter). Lines are positional:
    artist, then song, then an optionally labelled charter.
    """
    lines = split_lines(text)
    artist = lines[0] if len(lines) > 0 else ""
    song_name = lines[1] if len(lines) > 1 else ""

    charter = None
    if len(lines) > 2:
        charter = CHARTER_LABEL_RE.sub('', lines[2]).strip() or None

    return artist, song_name, charter


def extract_center(text: str) -> Tuple[Optional[int], Optional[int]]:
    """Returns (total_score, stars_achieved)."""
    lines = split_lines(text)

    total_score = None
    for line in lines:
        cleaned = clean_digits(line)
        if cleaned:
            total_score = int(cleaned)
            break

    return total_score, _extract_stars(lines)


def _extract_stars(lines: List[str]) -> Optional[int]:
    for line in lines:
        if 'star' in line.lower():
            value = first_int(line)
            if value is not None:
                return value

    # Tunable heuristic: a lone digit is usually the star counter, but any
    # stray single-digit OCR fragment in the region will also match.
    for line in lines:
        if SINGLE_DIGIT_RE.fullmatch(line) and 0 <= int(line) <= config.MAX_STARS:
            return int(line)
    return None


# --- Player blocks ---

@dataclass
class _PlayerDraft:
    name: Optional[str] = None
    instrument: Optional[str] = None
    difficulty: Optional[str] = None
    score: Optional[int] = None
    accuracy: Optional[float] = None
    misses: Optional[int] = None
    best_streak: Optional[int] = None
    rank: Optional[int] = None

    def build(self) -> PlayerRecord:
        return PlayerRecord(
            name=self.name or "",
            instrument=self.instrument,
            difficulty=self.difficulty,
            score=self.score,
            accuracy=self.accuracy,
            misses=self.misses,
            best_streak=self.best_streak,
            rank=self.rank,
        )


def _set_name(draft: _PlayerDraft, line: str):
    draft.name = line


def _set_difficulty(draft: _PlayerDraft, line: str):
    if draft.difficulty is None:
        draft.difficulty = normalize_difficulty(line)


def _set_score(draft: _PlayerDraft, line: str):
    if draft.score is None:
        draft.score = int(clean_digits(line))


def _set_accuracy(draft: _PlayerDraft, line: str):
    match = PERCENT_RE.search(line)
    if match:
        draft.accuracy = float(match.group(1))


def _set_misses(draft: _PlayerDraft, line: str):
    value = first_int(line)
    if value is not None:
        draft.misses = value


def _set_best_streak(draft: _PlayerDraft, line: str):
    value = first_int(line)
    if value is not None:
        draft.best_streak = value


def _set_instrument(draft: _PlayerDraft, line: str):
    if draft.instrument is None:
        draft.instrument = find_instrument(line)


PlayerRule = Tuple[str, Callable[[_PlayerDraft, str], bool], Callable[[_PlayerDraft, str], None]]

# Evaluated top to bottom; the first matching rule consumes the line.
PLAYER_RULES: List[PlayerRule] = [
    ('name', lambda d, line: d.name is None and not is_numeric(line), _set_name),
    ('difficulty', lambda d, line: has_difficulty(line), _set_difficulty),
    ('score', lambda d, line: is_numeric(line) and len(clean_digits(line)) > 3, _set_score),
    ('accuracy', lambda d, line: '%' in line, _set_accuracy),
    ('misses', lambda d, line: 'miss' in line.lower(), _set_misses),
    ('best_streak', lambda d, line: 'combo' in line.lower() or 'streak' in line.lower(), _set_best_streak),
    ('instrument', lambda d, line: find_instrument(line) is not None, _set_instrument),
]


def classify_player_line(draft: _PlayerDraft, line: str) -> Optional[str]:
    """Applies the first matching rule to the draft and returns its name."""
    for rule_name, matches, apply in PLAYER_RULES:
        if matches(draft, line):
            apply(draft, line)
            return rule_name
    return None


def extract_players(text: str) -> List[PlayerRecord]:
    """
    Streams the player region line by line into blocks.
    A block closes on a separator (blank or '---') once it has a name,
    and at the end of the text.
    """
    players: List[PlayerRecord] = []
    draft = _PlayerDraft()

    for raw in text.strip().splitlines():
        line = raw.strip()
        if is_separator(line):
            if draft.name:
                players.append(draft.build())
                draft = _PlayerDraft()
            continue
        classify_player_line(draft, line)

    if draft.name:
        players.append(draft.build())

    return players
