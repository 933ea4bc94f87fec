"""
Shared fixtures for the BMP grayscale pipeline tests.
"""

import struct

import pytest


def pack_header(magic=b'BM', file_size=54 + 9, reserved=b'\x00' * 4,
                pixel_data_offset=54, header_size=40, width=3, height=1,
                color_planes=1, bits_per_pixel=24, compression=0,
                compressed_size=0, x_ppm=2835, y_ppm=2835,
                colors_used=0, important_colors=0) -> bytes:
    """Build a 54-byte header directly with struct, field by field."""
    return (
        magic
        + struct.pack('<I', file_size)
        + reserved
        + struct.pack('<I', pixel_data_offset)
        + struct.pack('<I', header_size)
        + struct.pack('<I', width)
        + struct.pack('<I', height)
        + struct.pack('<H', color_planes)
        + struct.pack('<H', bits_per_pixel)
        + struct.pack('<I', compression)
        + struct.pack('<I', compressed_size)
        + struct.pack('<I', x_ppm)
        + struct.pack('<I', y_ppm)
        + struct.pack('<I', colors_used)
        + struct.pack('<I', important_colors)
    )


@pytest.fixture
def header_bytes():
    """Factory for raw header blocks"""
    return pack_header


@pytest.fixture
def sample_pixels():
    return bytes([10, 20, 30, 40, 50, 60, 70, 80, 90])


@pytest.fixture
def sample_bmp(tmp_path, sample_pixels):
    """A tiny container whose declared size equals its pixel byte count"""
    path = tmp_path / "sample.bmp"
    path.write_bytes(pack_header(file_size=len(sample_pixels)) + sample_pixels)
    return path
