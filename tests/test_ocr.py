import os
import pytest
import pytesseract
from PIL import Image
from score_ingest import config
from score_ingest.exceptions import OCRError
from score_ingest.parsing import ocr
from score_ingest.parsing.ocr import TesseractOCR, find_tessdata_prefix

@pytest.fixture
def tessdata(tmp_path, monkeypatch):
    """A fake install with eng.traineddata, TESSDATA_PREFIX cleared."""
    data_dir = tmp_path / "tesseract-ocr" / "5" / "tessdata"
    data_dir.mkdir(parents=True)
    (data_dir / f"{config.OCR_LANGUAGE}.traineddata").write_bytes(b"")
    monkeypatch.delenv("TESSDATA_PREFIX", raising=False)
    monkeypatch.setattr(config, "TESSDATA_SEARCH_PATHS", [tmp_path / "missing", data_dir])
    monkeypatch.setattr(pytesseract, "get_tesseract_version", lambda: "5.3.0")
    return data_dir

def test_finds_tessdata_directory_itself(tessdata):
    assert find_tessdata_prefix() == tessdata

def test_no_install_found(tmp_path, monkeypatch):
    monkeypatch.delenv("TESSDATA_PREFIX", raising=False)
    monkeypatch.setattr(config, "TESSDATA_SEARCH_PATHS", [tmp_path / "nowhere"])
    assert find_tessdata_prefix() is None

def test_open_exports_detected_tessdata(tessdata):
    with TesseractOCR():
        assert os.environ["TESSDATA_PREFIX"] == str(tessdata)

def test_open_keeps_existing_prefix(tessdata, tmp_path, monkeypatch):
    monkeypatch.setenv("TESSDATA_PREFIX", str(tmp_path / "custom"))
    with TesseractOCR():
        assert os.environ["TESSDATA_PREFIX"] == str(tmp_path / "custom")

def test_open_without_tesseract(tessdata, monkeypatch):
    def _missing():
        raise pytesseract.TesseractNotFoundError()
    monkeypatch.setattr(pytesseract, "get_tesseract_version", _missing)
    with pytest.raises(OCRError, match="not available"):
        TesseractOCR().open()

def test_recognize_requires_open():
    with pytest.raises(OCRError):
        TesseractOCR().recognize(Image.new("RGB", (10, 10)))

def test_recognize_failure_is_empty_text(tessdata, monkeypatch):
    def _fail(*args, **kwargs):
        raise pytesseract.TesseractError(1, "Error opening data file")
    monkeypatch.setattr(ocr.pytesseract, "image_to_string", _fail)
    with TesseractOCR() as engine:
        assert engine.recognize(Image.new("RGB", (10, 10))) == ""
        assert engine.recognize(Image.new("RGB", (0, 10))) == ""
