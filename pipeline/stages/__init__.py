"""
Pipeline stages for the BMP grayscale system.
"""

from .header_codec import HeaderCodec, HEADER_SIZE, decode_header, encode_header
from .transform import GrayscaleTransform, grayscale

__all__ = [
    'HeaderCodec',
    'HEADER_SIZE',
    'decode_header',
    'encode_header',
    'GrayscaleTransform',
    'grayscale',
]
