#!/usr/bin/env python3
"""
Dump the OCR regions of a results screenshot to help tune the layout.

Saves each cropped region as a PNG next to the output directory and prints
the raw OCR text plus what the field extractor made of it.

Usage:
  python tools/dump_regions.py <screenshot.png> [output_dir]

Example:
  python tools/dump_regions.py "screenshots/clonehero-20251212052231.png" /tmp/regions
"""

import sys
from pathlib import Path

from score_ingest.exceptions import ImageDecodeError, OCRError
from score_ingest.parsing import fields, regions
from score_ingest.parsing.extract import load_image
from score_ingest.parsing.ocr import TesseractOCR


def dump(image_path, out_dir):
    path = Path(image_path)
    if not path.exists():
        print(f"Error: File not found: {image_path}")
        sys.exit(1)

    try:
        img = load_image(path)
    except ImageDecodeError as e:
        print(f"Error: {e}")
        sys.exit(1)

    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    print(f"Inspecting: {path.name} ({img.width}x{img.height})\n")

    try:
        ocr = TesseractOCR().open()
    except OCRError as e:
        print(f"Error: {e}")
        sys.exit(1)

    with ocr:
        for name, region in regions.segment(img.width, img.height).items():
            print("=" * 70)
            print(f"{name.upper()} {region.box} ({region.width}x{region.height})")
            print("=" * 70)
            if region.is_empty:
                print("  (empty region)")
                continue

            cropped = regions.crop(img, region)
            cropped.save(out / f"{path.stem}-{name}.png")
            text = ocr.recognize(cropped)
            for line in text.splitlines():
                print(f"  | {line}")

            print("-" * 70)
            if name == 'top_left':
                print(f"  artist/song/charter: {fields.extract_top_left(text)}")
            elif name == 'center':
                print(f"  total_score/stars: {fields.extract_center(text)}")
            else:
                for player in fields.extract_players(text):
                    print(f"  {player}")
            print()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python dump_regions.py <screenshot.png> [output_dir]")
        sys.exit(1)
    dump(sys.argv[1], sys.argv[2] if len(sys.argv) > 2 else "regions")
