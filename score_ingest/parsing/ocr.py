"""
Tesseract wrapper used for every region of a screenshot.

The engine is a black box: an image goes in, text comes out. Recognition
failures are logged and reported as empty text so a single bad region
never fails the whole screenshot.
"""
import logging
import os
from pathlib import Path
from typing import Optional

import pytesseract
from PIL import Image

from .. import config
from ..exceptions import OCRError


def find_tessdata_prefix() -> Optional[Path]:
    """
    Locates the tessdata directory holding the language's traineddata file.
    Honours an existing TESSDATA_PREFIX.
    """
    prefix = os.environ.get("TESSDATA_PREFIX")
    if prefix:
        return Path(prefix)

    for tessdata in config.TESSDATA_SEARCH_PATHS:
        if (tessdata / f"{config.OCR_LANGUAGE}.traineddata").exists():
            return tessdata
    return None


class TesseractOCR:
    """
    Scoped handle on the Tesseract engine.

        with TesseractOCR() as ocr:
            text = ocr.recognize(region_img)
    """

    def __init__(self, lang: str = config.OCR_LANGUAGE, tesseract_cmd: Optional[str] = None,
                 psm: int = 6):
        self.lang = lang
        self.tesseract_cmd = tesseract_cmd
        # psm 6: assume a single uniform block of text
        self.tess_config = f"--psm {psm}"
        self._open = False

    def open(self) -> "TesseractOCR":
        if self._open:
            return self

        if self.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self.tesseract_cmd

        if not os.environ.get("TESSDATA_PREFIX"):
            prefix = find_tessdata_prefix()
            if prefix:
                os.environ["TESSDATA_PREFIX"] = str(prefix)
                logging.info(f"Set TESSDATA_PREFIX to: {prefix}")
            else:
                logging.warning("TESSDATA_PREFIX not set and could not be auto-detected. "
                                "Set it to the tessdata directory itself.")

        try:
            version = pytesseract.get_tesseract_version()
        except (pytesseract.TesseractNotFoundError, OSError) as e:
            raise OCRError(f"Tesseract is not available: {e}") from e

        logging.info(f"Using Tesseract {version} (lang={self.lang})")
        self._open = True
        return self

    def close(self):
        self._open = False

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def recognize(self, img: Image.Image) -> str:
        if not self._open:
            raise OCRError("OCR engine used before open()")

        if img.width == 0 or img.height == 0:
            logging.warning("OCR called with an empty region")
            return ""

        try:
            text = pytesseract.image_to_string(img, lang=self.lang, config=self.tess_config)
        except (pytesseract.TesseractError, OSError, RuntimeError) as e:
            logging.error(f"OCR failed on {img.width}x{img.height} region: {e}")
            return ""

        if text.strip():
            preview = text if len(text) <= 100 else text[:100] + "..."
            logging.debug(f"OCR extracted text ({len(text)} chars): {preview!r}")
        else:
            logging.warning(f"OCR returned empty text for region {img.width}x{img.height}")
        return text
