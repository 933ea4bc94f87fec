"""
Base Classes for BMP Grayscale Pipeline
=======================================

Contains core data structures and abstract base classes used throughout the pipeline.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import IntEnum
from typing import Tuple, Union


class Compression(IntEnum):
    """Known BMP compression codes (offset 30 of the header)"""
    UNCOMPRESSED = 0
    RLE8 = 1
    RLE4 = 2
    BITFIELDS = 3
    JPEG = 4
    PNG = 5
    ALPHA_BITFIELDS = 6
    CMYK = 7
    CMYK_RLE8 = 8
    CMYK_RLE4 = 9


@dataclass(frozen=True)
class UnrecognizedCompression:
    """Compression code outside the known set, kept for a lossless round trip"""
    code: int


CompressionKind = Union[Compression, UnrecognizedCompression]


def compression_from_code(code: int) -> CompressionKind:
    """Map a raw u32 code to a named compression, or wrap it if unknown."""
    try:
        return Compression(code)
    except ValueError:
        return UnrecognizedCompression(code)


def compression_to_code(kind: CompressionKind) -> int:
    """Inverse of compression_from_code."""
    if isinstance(kind, UnrecognizedCompression):
        return kind.code
    return int(kind)


@dataclass(frozen=True)
class BmpHeader:
    """The fixed 54-byte header block (14-byte file header + 40-byte info header)"""
    magic: bytes
    file_size: int
    reserved: bytes
    pixel_data_offset: int
    header_size: int
    width: int
    height: int
    color_planes: int
    bits_per_pixel: int
    compression: CompressionKind
    compressed_size: int
    x_ppm: int
    y_ppm: int
    colors_used: int
    important_colors: int

    @property
    def image_size(self) -> int:
        """Declared size used to allocate the pixel buffer"""
        return self.file_size


class PixelTransform(ABC):
    """Abstract base class for per-pixel color transforms"""

    @abstractmethod
    def apply_pixel(self, r: int, g: int, b: int) -> Tuple[int, int, int]:
        pass

    @abstractmethod
    def apply_chunk(self, chunk: memoryview) -> int:
        """Transform every complete triplet of ``chunk`` in place, returning the count."""
        pass
