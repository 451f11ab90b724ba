import pytest
import sqlite3
from PIL import Image
from score_ingest.database.schema import init_schema
from score_ingest.database.ops import DBOperations

# Region sizes for a 1000x1000 screenshot
TOP_LEFT_SIZE = (300, 200)
CENTER_SIZE = (400, 250)
PLAYERS_SIZE = (1000, 650)

class FakeOCR:
    """Stands in for Tesseract: returns canned text keyed by the cropped region size."""

    def __init__(self, texts_by_size=None):
        self.texts = texts_by_size or {}
        self.opened = False
        self.calls = []

    def open(self):
        self.opened = True
        return self

    def close(self):
        self.opened = False

    def recognize(self, img):
        self.calls.append(img.size)
        return self.texts.get(img.size, "")

@pytest.fixture
def conn():
    """Returns an in-memory SQLite connection with the schema initialized."""
    c = sqlite3.connect(":memory:")
    c.execute("PRAGMA foreign_keys=ON;")
    init_schema(c)
    try:
        yield c
    finally:
        c.close()

@pytest.fixture
def db_ops(conn):
    """Returns a DBOperations instance attached to the in-memory DB."""
    return DBOperations(conn)

@pytest.fixture
def make_png():
    """Factory writing a blank PNG of the given size."""
    def _make(path, size=(1000, 1000), fmt="PNG"):
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new("RGB", size, (20, 20, 20)).save(path, format=fmt)
        return path
    return _make

@pytest.fixture
def results_ocr():
    """FakeOCR loaded with a full single-player results screen."""
    return FakeOCR({
        TOP_LEFT_SIZE: "Dave Matthews Band\nTripping Billies\nCharter: Custom",
        CENTER_SIZE: "447253\nStars: 4",
        PLAYERS_SIZE: "A_Hole_Pro\nExpert\n68508\n81.0%\nMisses: 0\nCombo: 100",
    })
