"""
BMP Grayscale Pipeline
======================

Reads a 24-bit BMP container, converts its pixel data to grayscale with a
pool of workers and writes the result back in the same container format.
"""

import logging
import os
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Iterator, List, Optional, Union

import mmh3

from base_classes import BmpHeader, PixelTransform
from header_validation import HeaderValidator, ValidationIssue
from pipeline.stages.header_codec import HEADER_SIZE, HeaderCodec
from pipeline.workers.parallel_processor import ParallelProcessor
from pipeline_configs import PipelineConfig
from pipeline_errors import PipelineIOError
from pipeline_monitoring import PipelineMonitor

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Outcome of one conversion"""
    header: BmpHeader
    bytes_read: int
    bytes_written: int
    chunks_processed: int
    elapsed_seconds: float
    fingerprint: str
    issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def short_read(self) -> bool:
        return self.bytes_read < self.header.file_size


@contextmanager
def io_step(step: str, **details) -> Iterator[None]:
    """Turn any OSError raised inside the block into a PipelineIOError."""
    try:
        yield
    except OSError as e:
        raise PipelineIOError(
            f"I/O failure during {step}",
            cause=e,
            error_code=step,
            details=details
        ) from e


def read_exact(source: BinaryIO, size: int) -> bytes:
    """Read exactly ``size`` bytes or raise PipelineIOError."""
    chunks = []
    remaining = size
    with io_step('read_header', size=size):
        while remaining > 0:
            chunk = source.read(remaining)
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)

    data = b''.join(chunks)
    if len(data) < size:
        cause = EOFError(f"expected {size} bytes, got {len(data)}")
        raise PipelineIOError(
            "Stream ended inside the header block",
            cause=cause,
            error_code='read_header',
            details={'expected': size, 'received': len(data)}
        ) from cause
    return data


def buffer_fingerprint(buffer: Union[bytes, bytearray]) -> str:
    """128-bit MurmurHash3 of the buffer as hex"""
    return f"{mmh3.hash128(bytes(buffer)):032x}"


def same_file(first: Path, second: Path) -> bool:
    """True when both paths name the same file, links included."""
    if first.exists() and second.exists():
        return os.path.samefile(first, second)
    return first.resolve() == second.resolve()


def peek_header(path: Union[str, Path]) -> BmpHeader:
    """Decode the header of the file at ``path`` without touching its pixels."""
    with io_step('open', path=str(path)):
        source = open(path, 'rb')
    with source:
        return HeaderCodec().decode(read_exact(source, HEADER_SIZE))


class GrayscalePipeline:
    """Main orchestrator: header decode, parallel transform, re-encode"""

    def __init__(self,
                 config: Optional[PipelineConfig] = None,
                 monitor: Optional[PipelineMonitor] = None,
                 transform: Optional[PixelTransform] = None):
        self.config = config or PipelineConfig()
        self.codec = HeaderCodec()
        self.validator = HeaderValidator()
        self.monitor = monitor or PipelineMonitor()
        self.processor = ParallelProcessor(
            num_workers=self.config.num_workers,
            transform=transform,
            align_chunks=self.config.align_chunks,
            show_progress=self.config.show_progress,
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()
        return False

    def shutdown(self):
        self.processor.shutdown()

    def _check_header(self, header: BmpHeader) -> List[ValidationIssue]:
        if not self.config.validate_header:
            return []
        if self.config.strict_validation:
            issues = self.validator.ensure_valid(header)
        else:
            issues = self.validator.validate(header)
        for issue in issues:
            logger.warning(f"Header {issue.field}: {issue.message}")
        return issues

    def _read_pixels(self, source: BinaryIO, header: BmpHeader) -> tuple:
        offset = header.pixel_data_offset
        buffer = bytearray(header.file_size)

        with io_step('seek', offset=offset):
            source.seek(offset)
        with io_step('read_pixels', offset=offset, size=len(buffer)):
            bytes_read = source.readinto(buffer) or 0

        if bytes_read != len(buffer):
            logger.warning(f"Short pixel read: {bytes_read} of {len(buffer)} bytes, "
                           f"remaining bytes stay zero")
            with io_step('seek', offset=offset):
                source.seek(offset)

        return buffer, bytes_read

    def _write_output(self, sink: BinaryIO, header: BmpHeader, buffer: bytearray) -> int:
        encoded = self.codec.encode(header)
        with io_step('seek', offset=0):
            sink.seek(0)
        with io_step('write', size=len(encoded) + len(buffer)):
            sink.write(encoded)
            sink.write(buffer)
        with io_step('flush'):
            sink.flush()
        return len(encoded) + len(buffer)

    def process_stream(self, source: BinaryIO, sink: BinaryIO) -> PipelineResult:
        """
        Convert one container read from ``source`` and write it to ``sink``.

        Args:
            source: Seekable binary stream positioned anywhere
            sink: Seekable binary stream to receive the converted container

        Returns:
            PipelineResult describing the run

        Raises:
            PipelineIOError: On any read, seek, write or flush failure
            HeaderValidationError: In strict mode, for unsupported headers
        """
        start = time.perf_counter()

        with self.monitor.stage('read_header') as stage:
            with io_step('seek', offset=0):
                source.seek(0)
            raw_header = read_exact(source, HEADER_SIZE)
            header = self.codec.decode(raw_header)
            stage.update_progress(items=1, bytes_count=HEADER_SIZE)
        logger.debug(f"Header: {header}")

        issues = self._check_header(header)

        with self.monitor.stage('read_pixels') as stage:
            buffer, bytes_read = self._read_pixels(source, header)
            stage.update_progress(items=1, bytes_count=bytes_read)

        with self.monitor.stage('transform') as stage:
            chunks = self.processor.transform(buffer, self.config.chunk_size)
            stage.update_progress(items=chunks, bytes_count=len(buffer))

        with self.monitor.stage('write_output') as stage:
            bytes_written = self._write_output(sink, header, buffer)
            stage.update_progress(items=1, bytes_count=bytes_written)

        elapsed = time.perf_counter() - start
        fingerprint = buffer_fingerprint(buffer)
        logger.info(f"Time elapsed: {elapsed:.4f}s "
                    f"({len(buffer)} pixel bytes, {chunks} chunks, "
                    f"{self.processor.num_workers} workers)")

        if self.config.enable_monitoring:
            for stage_name in ('read_header', 'read_pixels', 'transform', 'write_output'):
                summary = self.monitor.get_stage_summary(stage_name)
                logger.info(f"Stage {stage_name}: {summary.get('max_duration', 0):.4f}s, "
                            f"{summary.get('total_bytes', 0)} bytes")

        return PipelineResult(
            header=header,
            bytes_read=bytes_read,
            bytes_written=bytes_written,
            chunks_processed=chunks,
            elapsed_seconds=elapsed,
            fingerprint=fingerprint,
            issues=issues,
        )

    def process_file(self,
                     input_path: Union[str, Path],
                     output_path: Union[str, Path]) -> PipelineResult:
        """Open both files and run process_stream."""
        input_path = Path(input_path)
        output_path = Path(output_path)
        logger.info(f"Converting {input_path} -> {output_path}")

        # The sink is opened with truncation, so it must never be the source
        with io_step('open', path=str(output_path)):
            clobbers_input = same_file(input_path, output_path)
        if clobbers_input:
            raise PipelineIOError(
                "Output path is the input file",
                error_code='open',
                details={'path': str(input_path)}
            )

        with io_step('open', path=str(input_path)):
            source = open(input_path, 'rb')
        with source:
            with io_step('open', path=str(output_path)):
                sink = open(output_path, 'wb')
            with sink:
                return self.process_stream(source, sink)
