"""
Per-pixel color transforms applied to raw RGB triplets.
"""

import logging
from typing import Tuple

import numpy as np

from base_classes import PixelTransform

logger = logging.getLogger(__name__)


def grayscale(r: int, g: int, b: int) -> Tuple[int, int, int]:
    """Average the three channels with integer truncation."""
    level = (r + g + b) // 3
    return level, level, level


class GrayscaleTransform(PixelTransform):
    """
    Grayscale by channel averaging.

    ``apply_chunk`` is the vectorized form of ``grayscale`` used by the
    worker pool. It groups the chunk into triplets starting at its first
    byte and leaves any trailing one or two bytes untouched.
    """

    def apply_pixel(self, r: int, g: int, b: int) -> Tuple[int, int, int]:
        return grayscale(r, g, b)

    def apply_chunk(self, chunk: memoryview) -> int:
        """
        Convert every complete triplet of a writable chunk in place.

        Args:
            chunk: Writable byte view owned exclusively by the caller

        Returns:
            Number of triplets converted
        """
        triplet_count = len(chunk) // 3
        if triplet_count == 0:
            return 0

        data = np.frombuffer(chunk, dtype=np.uint8)
        triplets = data[:triplet_count * 3].reshape(triplet_count, 3)
        # uint16 holds 3 * 255 without overflow
        levels = triplets.sum(axis=1, dtype=np.uint16) // 3
        triplets[:] = levels.astype(np.uint8)[:, np.newaxis]
        return triplet_count
