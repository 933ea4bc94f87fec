"""
Byte-exact codec for the 54-byte BMP header block.
"""

import logging
import struct

from base_classes import (
    BmpHeader, compression_from_code, compression_to_code
)

logger = logging.getLogger(__name__)

FILE_HEADER_SIZE = 14
INFO_HEADER_SIZE = 40
HEADER_SIZE = FILE_HEADER_SIZE + INFO_HEADER_SIZE

# magic, file_size, reserved, pixel_data_offset,
# header_size, width, height, color_planes, bits_per_pixel, compression,
# compressed_size, x_ppm, y_ppm, colors_used, important_colors
HEADER_FORMAT = struct.Struct('<2sI4sI' 'IIIHHIIIIII')

assert HEADER_FORMAT.size == HEADER_SIZE


class HeaderCodec:
    """
    Parses and serializes the fixed BMP header.

    Decoding is total: any 54-byte block produces a header, without checking
    the signature or field ranges. Validation, when wanted, is layered on top
    by ``header_validation.HeaderValidator``.
    """

    def __init__(self):
        self.struct = HEADER_FORMAT

    def decode(self, data: bytes) -> BmpHeader:
        """
        Decode a 54-byte block into a BmpHeader.

        Args:
            data: Exactly HEADER_SIZE bytes read from the start of a container

        Returns:
            The decoded header

        Raises:
            ValueError: If ``data`` is not exactly HEADER_SIZE bytes long
        """
        if len(data) != HEADER_SIZE:
            raise ValueError(
                f"Header block must be {HEADER_SIZE} bytes, got {len(data)}"
            )

        (magic, file_size, reserved, pixel_data_offset,
         header_size, width, height, color_planes, bits_per_pixel,
         compression_code, compressed_size, x_ppm, y_ppm,
         colors_used, important_colors) = self.struct.unpack(bytes(data))

        header = BmpHeader(
            magic=magic,
            file_size=file_size,
            reserved=reserved,
            pixel_data_offset=pixel_data_offset,
            header_size=header_size,
            width=width,
            height=height,
            color_planes=color_planes,
            bits_per_pixel=bits_per_pixel,
            compression=compression_from_code(compression_code),
            compressed_size=compressed_size,
            x_ppm=x_ppm,
            y_ppm=y_ppm,
            colors_used=colors_used,
            important_colors=important_colors,
        )
        logger.debug(f"Decoded header: {header}")
        return header

    def encode(self, header: BmpHeader) -> bytes:
        """
        Serialize a header back into its 54-byte layout.

        Unrecognized compression codes are written back verbatim, so
        ``encode(decode(b)) == b`` for every 54-byte ``b``.
        """
        return self.struct.pack(
            header.magic,
            header.file_size,
            header.reserved,
            header.pixel_data_offset,
            header.header_size,
            header.width,
            header.height,
            header.color_planes,
            header.bits_per_pixel,
            compression_to_code(header.compression),
            header.compressed_size,
            header.x_ppm,
            header.y_ppm,
            header.colors_used,
            header.important_colors,
        )


_default_codec = HeaderCodec()


def decode_header(data: bytes) -> BmpHeader:
    return _default_codec.decode(data)


def encode_header(header: BmpHeader) -> bytes:
    return _default_codec.encode(header)
