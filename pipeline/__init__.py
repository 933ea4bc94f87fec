"""
BMP grayscale pipeline modules.
"""

# Import pipeline stages
from .stages.header_codec import HeaderCodec, decode_header, encode_header
from .stages.transform import GrayscaleTransform, grayscale
from .workers.parallel_processor import ParallelProcessor

__all__ = [
    'HeaderCodec',
    'decode_header',
    'encode_header',
    'GrayscaleTransform',
    'grayscale',
    'ParallelProcessor',
]
