"""
Unit tests for the parallel pixel processor
===========================================

Tests for pipeline/workers/parallel_processor.py including:
- Chunk planning and alignment
- Completion and correctness of the in-place transform
- Determinism across chunk sizes and worker counts
- Failure propagation from worker tasks
"""

import random
import threading

import pytest

from base_classes import PixelTransform
from pipeline.stages.transform import GrayscaleTransform, grayscale
from pipeline.workers.parallel_processor import (
    ParallelProcessor, align_chunk_size, plan_chunks
)


def random_pixels(length: int, seed: int = 42) -> bytearray:
    rng = random.Random(seed)
    return bytearray(rng.getrandbits(8) for _ in range(length))


def expected_grayscale(data: bytes) -> bytearray:
    """Reference result for a buffer whose triplets start at offset 0"""
    out = bytearray(data)
    for i in range(len(out) // 3):
        out[i * 3:i * 3 + 3] = bytes(grayscale(*out[i * 3:i * 3 + 3]))
    return out


@pytest.fixture
def processor():
    with ParallelProcessor(num_workers=4) as proc:
        yield proc


class TestChunkPlanning:

    def test_even_split(self):
        assert plan_chunks(9, 3) == [(0, 3), (3, 6), (6, 9)]

    def test_short_last_chunk(self):
        assert plan_chunks(10, 4) == [(0, 4), (4, 8), (8, 10)]

    def test_chunk_larger_than_buffer(self):
        assert plan_chunks(5, 4095) == [(0, 5)]

    def test_empty_buffer(self):
        assert plan_chunks(0, 3) == []

    def test_chunks_are_disjoint_and_cover(self):
        chunks = plan_chunks(10000, 4095)
        assert chunks[0][0] == 0
        assert chunks[-1][1] == 10000
        for (_, end), (start, _) in zip(chunks, chunks[1:]):
            assert end == start

    @pytest.mark.parametrize("size", [0, -3])
    def test_invalid_chunk_size(self, size):
        with pytest.raises(ValueError, match="chunk_size must be positive"):
            plan_chunks(9, size)

    @pytest.mark.parametrize("size,aligned", [
        (4095, 4095), (4096, 4095), (4097, 4095), (10, 9), (3, 3), (2, 3), (1, 3)
    ])
    def test_align_chunk_size(self, size, aligned):
        assert align_chunk_size(size) == aligned


class TestTransform:

    def test_initialization(self):
        with ParallelProcessor(num_workers=2) as proc:
            assert proc.num_workers == 2
            assert proc.align_chunks is True
            assert isinstance(proc.transform_fn, GrayscaleTransform)

    def test_worker_cap(self):
        with ParallelProcessor(num_workers=100) as proc:
            assert proc.num_workers == 32

    def test_default_workers_from_cpu_count(self):
        with ParallelProcessor() as proc:
            assert 1 <= proc.num_workers <= 32

    def test_sample_pixels(self, processor):
        buffer = bytearray([10, 20, 30, 40, 50, 60, 70, 80, 90])
        chunks = processor.transform(buffer, 9)

        assert chunks == 1
        assert buffer == bytearray([20, 20, 20, 50, 50, 50, 80, 80, 80])

    def test_default_chunk_size_many_chunks(self, processor):
        data = random_pixels(3 * 10000)
        buffer = bytearray(data)
        chunks = processor.transform(buffer, 4095)

        assert chunks == len(plan_chunks(len(data), 4095))
        assert buffer == expected_grayscale(data)

    def test_every_triplet_converted(self, processor):
        """After transform returns, every complete triplet is gray"""
        buffer = random_pixels(3 * 5000 + 2, seed=7)
        processor.transform(buffer, 300)

        for i in range(len(buffer) // 3):
            r, g, b = buffer[i * 3:i * 3 + 3]
            assert r == g == b

    def test_empty_buffer(self, processor):
        buffer = bytearray()
        assert processor.transform(buffer, 4095) == 0
        assert buffer == bytearray()

    def test_accepts_memoryview(self, processor):
        buffer = bytearray([0, 0, 3, 9, 9, 9])
        processor.transform(memoryview(buffer), 6)
        assert buffer == bytearray([1, 1, 1, 9, 9, 9])

    def test_read_only_buffer_rejected(self, processor):
        with pytest.raises(TypeError, match="writable"):
            processor.transform(bytes(9), 9)

    @pytest.mark.parametrize("size", [0, -1])
    def test_invalid_chunk_size_rejected(self, processor, size):
        with pytest.raises(ValueError):
            processor.transform(bytearray(9), size)

    def test_idempotent(self, processor):
        buffer = random_pixels(3 * 4000, seed=3)
        processor.transform(buffer, 999)
        once = bytes(buffer)
        processor.transform(buffer, 999)
        assert bytes(buffer) == once

    @pytest.mark.parametrize("chunk_size", [3, 6, 300, 999, 4095, 3 * 10000])
    @pytest.mark.parametrize("workers", [1, 2, 8])
    def test_deterministic_across_partitions(self, chunk_size, workers):
        data = random_pixels(3 * 3000 + 1, seed=11)
        buffer = bytearray(data)
        with ParallelProcessor(num_workers=workers) as proc:
            proc.transform(buffer, chunk_size)
        assert buffer == expected_grayscale(data)


class TestChunkAlignment:

    def test_aligned_chunk_size_keeps_triplets_whole(self):
        buffer = bytearray([10, 20, 30, 40, 50, 60])
        with ParallelProcessor(num_workers=2, align_chunks=True) as proc:
            chunks = proc.transform(buffer, 4)
        assert chunks == 2
        assert buffer == bytearray([20, 20, 20, 50, 50, 50])

    def test_unaligned_chunks_split_triplets(self):
        """Raw byte chunks: triplets count from each chunk start"""
        buffer = bytearray([10, 20, 30, 40, 50, 60])
        with ParallelProcessor(num_workers=2, align_chunks=False) as proc:
            chunks = proc.transform(buffer, 4)
        assert chunks == 2
        # [10,20,30,40] converts one triplet, [50,60] is too short
        assert buffer == bytearray([20, 20, 20, 40, 50, 60])

    def test_unaligned_tiny_chunks_leave_buffer(self):
        buffer = bytearray([10, 20, 30, 40, 50, 60])
        with ParallelProcessor(num_workers=2, align_chunks=False) as proc:
            proc.transform(buffer, 2)
        assert buffer == bytearray([10, 20, 30, 40, 50, 60])

    def test_unaligned_matches_aligned_when_divisible(self):
        data = random_pixels(3 * 2000, seed=5)
        aligned = bytearray(data)
        raw = bytearray(data)
        with ParallelProcessor(num_workers=3, align_chunks=True) as proc:
            proc.transform(aligned, 4095)
        with ParallelProcessor(num_workers=3, align_chunks=False) as proc:
            proc.transform(raw, 4095)
        assert aligned == raw


class RecordingTransform(PixelTransform):
    """Records chunk lengths and worker threads"""

    def __init__(self):
        self.lengths = []
        self.threads = set()
        self._lock = threading.Lock()

    def apply_pixel(self, r, g, b):
        return r, g, b

    def apply_chunk(self, chunk):
        with self._lock:
            self.lengths.append(len(chunk))
            self.threads.add(threading.current_thread().name)
        return len(chunk) // 3


class FailingTransform(GrayscaleTransform):

    def apply_chunk(self, chunk):
        if len(chunk) < 6:
            raise RuntimeError("worker fault")
        return super().apply_chunk(chunk)


class TestWorkerPool:

    def test_each_chunk_handed_out_once(self):
        transform = RecordingTransform()
        with ParallelProcessor(num_workers=4, transform=transform) as proc:
            proc.transform(bytearray(100), 9)
        assert sorted(transform.lengths) == sorted(
            end - start for start, end in plan_chunks(100, 9)
        )
        assert sum(transform.lengths) == 100

    def test_runs_on_pool_threads(self):
        transform = RecordingTransform()
        with ParallelProcessor(num_workers=4, transform=transform) as proc:
            proc.transform(bytearray(300), 3)
        assert all(name.startswith('pixel-worker') for name in transform.threads)

    def test_worker_exception_propagates(self):
        buffer = bytearray(range(20))
        with ParallelProcessor(num_workers=2, transform=FailingTransform()) as proc:
            with pytest.raises(RuntimeError, match="worker fault"):
                proc.transform(buffer, 9)
        # Healthy chunks still completed before the failure surfaced
        assert buffer[:9] == expected_grayscale(bytes(range(9)))

    def test_shutdown_rejects_new_work(self):
        proc = ParallelProcessor(num_workers=1)
        proc.shutdown()
        with pytest.raises(RuntimeError):
            proc.transform(bytearray(9), 3)

    def test_context_exit_shuts_down_executor(self):
        with ParallelProcessor(num_workers=2) as proc:
            proc.transform(bytearray(9), 3)
        with pytest.raises(RuntimeError):
            proc.executor.submit(len, b'')

    def test_shutdown_is_idempotent(self):
        proc = ParallelProcessor(num_workers=1)
        proc.shutdown()
        proc.shutdown()
