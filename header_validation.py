"""
Header Validation Module
========================

Optional checks layered on top of the always-succeeding header decode.
The codec never rejects a header; this module reports what a 24-bit
uncompressed bottom-up converter cannot handle faithfully.
"""

import logging
from dataclasses import dataclass
from typing import List

from base_classes import BmpHeader, Compression
from pipeline.stages.header_codec import HEADER_SIZE, INFO_HEADER_SIZE
from pipeline_errors import HeaderValidationError

logger = logging.getLogger(__name__)

SEVERITY_WARNING = 'warning'
SEVERITY_ERROR = 'error'


@dataclass
class ValidationConfig:
    """Expected header values"""
    expected_magic: bytes = b'BM'
    expected_bits_per_pixel: int = 24
    expected_header_size: int = INFO_HEADER_SIZE
    expected_color_planes: int = 1


@dataclass(frozen=True)
class ValidationIssue:
    field: str
    message: str
    severity: str = SEVERITY_WARNING

    @property
    def is_error(self) -> bool:
        return self.severity == SEVERITY_ERROR


class HeaderValidator:
    """Reports problems with a decoded header without ever failing the decode"""

    def __init__(self, config: ValidationConfig = None):
        self.config = config or ValidationConfig()

    def validate(self, header: BmpHeader) -> List[ValidationIssue]:
        """Return every issue found, warnings and errors alike"""
        cfg = self.config
        issues = []

        if header.magic != cfg.expected_magic:
            issues.append(ValidationIssue(
                'magic', f"Unrecognized signature {header.magic!r}"))

        if header.header_size != cfg.expected_header_size:
            issues.append(ValidationIssue(
                'header_size',
                f"Info header declares {header.header_size} bytes, "
                f"expected {cfg.expected_header_size}"))

        if header.color_planes != cfg.expected_color_planes:
            issues.append(ValidationIssue(
                'color_planes', f"Unusual color plane count {header.color_planes}"))

        if header.bits_per_pixel != cfg.expected_bits_per_pixel:
            issues.append(ValidationIssue(
                'bits_per_pixel',
                f"{header.bits_per_pixel}-bit pixels are not RGB triplets",
                SEVERITY_ERROR))

        if header.compression is not Compression.UNCOMPRESSED:
            issues.append(ValidationIssue(
                'compression',
                f"Compressed pixel data ({header.compression}) is not decoded",
                SEVERITY_ERROR))

        if header.pixel_data_offset != HEADER_SIZE:
            # The writer always places pixels directly after the header
            issues.append(ValidationIssue(
                'pixel_data_offset',
                f"Pixel data at offset {header.pixel_data_offset} will move to "
                f"{HEADER_SIZE} in the output"))

        if header.file_size < header.pixel_data_offset:
            issues.append(ValidationIssue(
                'file_size',
                f"Declared size {header.file_size} ends before pixel data "
                f"offset {header.pixel_data_offset}"))

        if header.width == 0 or header.height == 0:
            issues.append(ValidationIssue(
                'dimensions', f"Empty image {header.width}x{header.height}"))

        return issues

    def ensure_valid(self, header: BmpHeader) -> List[ValidationIssue]:
        """
        Validate and raise on error-level issues.

        Returns:
            The remaining warnings

        Raises:
            HeaderValidationError: If any issue has error severity
        """
        issues = self.validate(header)
        errors = [issue for issue in issues if issue.is_error]
        if errors:
            raise HeaderValidationError(
                "; ".join(f"{issue.field}: {issue.message}" for issue in errors),
                error_code='invalid_header',
                details={'issues': [issue.field for issue in errors]}
            )
        return issues
