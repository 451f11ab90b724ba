import logging
from pathlib import Path
from typing import List, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from .. import config
from ..exceptions import ImageDecodeError
from ..models import ScoreRecord
from . import fields, regions
from .ocr import TesseractOCR
from .timestamps import resolve_created_at


def load_image(path: Path, max_width: int = config.MAX_IMAGE_WIDTH,
               max_height: int = config.MAX_IMAGE_HEIGHT) -> Image.Image:
    """
    Decodes a PNG screenshot and scales it down proportionally if either
    dimension exceeds the maxima (0 disables resizing).
    """
    try:
        with Image.open(path) as img:
            if img.format not in config.DECODABLE_FORMATS:
                raise ImageDecodeError(f"Only PNG files are supported, got {img.format or 'unknown'}: {path}")
            img.load()
            decoded = img.convert("RGB")

        width, height = decoded.size
        if max_width > 0 and max_height > 0 and (width > max_width or height > max_height):
            scale = min(max_width / width, max_height / height)
            new_size = (max(1, int(width * scale)), max(1, int(height * scale)))
            logging.debug(f"Resizing {path.name} from {width}x{height} to {new_size[0]}x{new_size[1]}")
            decoded = decoded.resize(new_size, Image.Resampling.BILINEAR)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise ImageDecodeError(f"Failed to decode {path}: {e}") from e

    return decoded


def missing_fields(record: ScoreRecord) -> List[str]:
    missing = []
    if not record.artist.strip():
        missing.append("artist")
    if not record.song_name.strip():
        missing.append("song name")
    if record.total_score is None:
        missing.append("total score")
    if not record.players:
        missing.append("players")
    return missing


def is_degraded(missing: List[str]) -> bool:
    """True when nothing useful came back, or at least three key fields are missing."""
    return len(missing) >= 3


def diagnose(record: ScoreRecord) -> Tuple[List[str], bool]:
    """(missing field names, degraded flag) for an extracted record."""
    missing = missing_fields(record)
    return missing, is_degraded(missing)


class ScoreExtractor:
    """
    Turns a results-screen screenshot into a ScoreRecord.

    Owns the OCR engine for its lifetime; use as a context manager so the
    engine is released when ingestion stops.
    """

    def __init__(self,
                 ocr=None,
                 max_width: int = config.MAX_IMAGE_WIDTH,
                 max_height: int = config.MAX_IMAGE_HEIGHT):
        self.ocr = ocr if ocr is not None else TesseractOCR()
        self.max_width = max_width
        self.max_height = max_height

    def open(self) -> "ScoreExtractor":
        self.ocr.open()
        return self

    def close(self):
        self.ocr.close()

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def extract(self, image_path: Path) -> ScoreRecord:
        """
        Raises ImageDecodeError when the file is unreadable or not a PNG.
        Missing OCR fields never raise; they are logged and left empty.
        """
        image_path = Path(image_path)
        try:
            created_at = resolve_created_at(image_path)
        except OSError as e:
            raise ImageDecodeError(f"Failed to read {image_path}: {e}") from e

        img = load_image(image_path, self.max_width, self.max_height)
        texts = self._recognize_regions(img)

        artist, song_name, charter = fields.extract_top_left(texts['top_left'])
        total_score, stars = fields.extract_center(texts['center'])
        players = fields.extract_players(texts['players'])

        logging.debug(f"Extracted top-left: artist={artist!r} song={song_name!r} charter={charter!r}")
        if artist and not song_name:
            logging.warning(f"Extracted artist {artist!r} but no song name from {image_path.name}. "
                            "OCR may have only detected one line.")

        record = ScoreRecord(
            artist=artist,
            song_name=song_name,
            charter=charter,
            total_score=total_score,
            stars_achieved=stars,
            players=tuple(players),
            created_at=created_at,
        )
        self._report_degraded(image_path, record)
        return record

    def _recognize_regions(self, img: Image.Image) -> dict:
        texts = {}
        for name, region in regions.segment(img.width, img.height).items():
            if region.is_empty:
                logging.warning(f"Region '{name}' is empty ({region.width}x{region.height})")
                texts[name] = ""
                continue
            texts[name] = self.ocr.recognize(regions.crop(img, region)) or ""
        return texts

    def _report_degraded(self, image_path: Path, record: ScoreRecord) -> Tuple[List[str], bool]:
        missing, degraded = diagnose(record)
        if degraded:
            logging.warning("=" * 72)
            logging.warning(f"OCR WARNING: failed to extract meaningful data from {image_path}")
            logging.warning(f"  Missing fields: {', '.join(missing)}")
            logging.warning(f"  Extracted - Artist: {record.artist!r} | Song: {record.song_name!r} | "
                            f"Score: {record.total_score} | Stars: {record.stars_achieved} | "
                            f"Players: {len(record.players)}")
            logging.warning("  The stored record may be mostly empty. Check the Tesseract install and image quality.")
            logging.warning("=" * 72)
        return missing, degraded

