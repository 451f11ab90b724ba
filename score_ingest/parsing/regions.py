"""
Splits a results screenshot into the named regions that OCR runs on.
"""
from typing import Dict

from PIL import Image

from .. import config
from ..models import Region


def _clamp(value: int, upper: int) -> int:
    return max(0, min(value, upper))


def clip_region(left: int, top: int, right: int, bottom: int, width: int, height: int) -> Region:
    """
    Clamps a rectangle to [0, width] x [0, height].
    Inverted or fully out-of-bounds inputs collapse to a zero-area region.
    """
    left = _clamp(left, width)
    right = _clamp(right, width)
    top = _clamp(top, height)
    bottom = _clamp(bottom, height)
    return Region(left, top, max(left, right), max(top, bottom))


def segment(width: int, height: int) -> Dict[str, Region]:
    """Returns the top_left, center and players regions for an image of the given size."""
    regions = {}
    for name, (l_pct, t_pct, r_pct, b_pct) in config.REGION_LAYOUT.items():
        regions[name] = clip_region(
            width * l_pct // 100,
            height * t_pct // 100,
            width * r_pct // 100,
            height * b_pct // 100,
            width,
            height,
        )
    return regions


def crop(img: Image.Image, region: Region) -> Image.Image:
    # Re-clip in case the region was computed for a different size
    clipped = clip_region(*region.box, img.width, img.height)
    return img.crop(clipped.box)
