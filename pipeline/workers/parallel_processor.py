"""
Parallel chunk processing of a pixel buffer with a thread pool.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional, Tuple, Union

import psutil
from tqdm import tqdm

from base_classes import PixelTransform
from pipeline.stages.transform import GrayscaleTransform

logger = logging.getLogger(__name__)

WritableBuffer = Union[bytearray, memoryview]


def plan_chunks(length: int, chunk_size: int) -> List[Tuple[int, int]]:
    """
    Split ``length`` bytes into consecutive ``(start, end)`` ranges.

    Every range is ``chunk_size`` long except possibly the last one.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    return [(start, min(start + chunk_size, length))
            for start in range(0, length, chunk_size)]


def align_chunk_size(chunk_size: int) -> int:
    """Round down to whole triplets, never below one triplet."""
    return max(3, chunk_size - chunk_size % 3)


class ParallelProcessor:
    """
    Applies a PixelTransform to every chunk of a buffer using a worker pool.

    Each task receives its own ``memoryview`` slice; slices never overlap,
    so no locking is needed. The numpy kernel releases the GIL, which lets
    threads convert chunks concurrently.
    """

    def __init__(self,
                 num_workers: Optional[int] = None,
                 transform: Optional[PixelTransform] = None,
                 align_chunks: bool = True,
                 show_progress: bool = False):
        """Initialize parallel processor with specified number of workers."""
        cpu_count = psutil.cpu_count(logical=True) or 1
        self.num_workers = min(num_workers or cpu_count, 32)  # Cap at reasonable limit
        self.transform_fn = transform or GrayscaleTransform()
        self.align_chunks = align_chunks
        self.show_progress = show_progress
        self.executor = ThreadPoolExecutor(
            max_workers=self.num_workers,
            thread_name_prefix='pixel-worker'
        )

        logger.info(f"Initialized ParallelProcessor with {self.num_workers} workers")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - ensure cleanup."""
        self.shutdown()
        return False

    def shutdown(self):
        """Shutdown the executor, waiting for running chunks."""
        self.executor.shutdown(wait=True)

    def effective_chunk_size(self, chunk_size: int) -> int:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if self.align_chunks:
            return align_chunk_size(chunk_size)
        return chunk_size

    def transform(self, buffer: WritableBuffer, chunk_size: int) -> int:
        """
        Transform ``buffer`` in place, one task per chunk.

        Returns only after every chunk has been processed. An exception
        raised by any task is re-raised here unchanged.

        Args:
            buffer: Writable pixel bytes laid out as RGB triplets
            chunk_size: Bytes per chunk; rounded down to whole triplets
                when ``align_chunks`` is set

        Returns:
            Number of chunks processed
        """
        view = memoryview(buffer)
        if view.readonly:
            raise TypeError("transform requires a writable buffer")
        view = view.cast('B')

        size = self.effective_chunk_size(chunk_size)
        if size != chunk_size:
            logger.debug(f"Chunk size {chunk_size} aligned to {size}")

        chunks = plan_chunks(len(view), size)
        if not chunks:
            logger.debug("Empty buffer, nothing to transform")
            return 0

        logger.debug(f"Transforming {len(view)} bytes in {len(chunks)} chunks "
                     f"with {self.num_workers} workers")

        futures = [
            self.executor.submit(self.transform_fn.apply_chunk, view[start:end])
            for start, end in chunks
        ]

        progress = tqdm(total=len(futures), unit='chunk', desc='grayscale',
                        disable=not self.show_progress)
        try:
            for _ in as_completed(futures):
                progress.update(1)
        finally:
            progress.close()

        # Every task has finished here; result() re-raises the first failure
        triplets = sum(future.result() for future in futures)
        logger.debug(f"Converted {triplets} triplets")
        return len(chunks)
