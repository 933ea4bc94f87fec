"""
Pipeline Configurations for Different Use Cases
===============================================

This module provides pre-configured pipeline settings for the grayscale
conversion of BMP images.
"""

from dataclasses import dataclass, replace
from typing import Optional
import logging
import os

import psutil

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 4095
MAX_WORKERS = 32
LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


@dataclass
class PipelineConfig:
    """Configuration settings for the grayscale pipeline"""

    # Processing settings
    num_workers: Optional[int] = None
    chunk_size: int = DEFAULT_CHUNK_SIZE
    align_chunks: bool = True

    # Header validation
    validate_header: bool = True
    strict_validation: bool = False

    # Reporting
    enable_monitoring: bool = True
    show_progress: bool = False
    log_level: str = 'INFO'

    def __post_init__(self) -> None:
        """Validate configuration parameters"""
        if self.num_workers is not None and self.num_workers <= 0:
            raise ValueError("num_workers must be positive")
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if self.strict_validation and not self.validate_header:
            raise ValueError("strict_validation requires validate_header")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Invalid log_level: {self.log_level}")
        self.log_level = self.log_level.upper()


class ConfigPresets:
    """Pre-configured settings for common use cases"""

    @staticmethod
    def default() -> PipelineConfig:
        return PipelineConfig()

    @staticmethod
    def compatibility() -> PipelineConfig:
        """
        Raw byte chunking, exactly as the reference converter behaves
        - chunk boundaries may split a triplet
        - no header validation
        """
        return PipelineConfig(
            chunk_size=DEFAULT_CHUNK_SIZE,
            align_chunks=False,
            validate_header=False,
        )

    @staticmethod
    def single_threaded() -> PipelineConfig:
        """
        Optimized for development and debugging
        - one worker
        - strict header checks
        """
        return PipelineConfig(
            num_workers=1,
            strict_validation=True,
            log_level='DEBUG',
        )

    @staticmethod
    def high_throughput() -> PipelineConfig:
        """
        Optimized for large images
        - all CPUs
        - large chunks to keep per-task overhead low
        """
        return PipelineConfig(
            num_workers=None,
            chunk_size=3 * 1024 * 1024,
            enable_monitoring=False,
        )

    @classmethod
    def get(cls, name: str) -> PipelineConfig:
        """Look up a preset by name"""
        presets = {
            'default': cls.default,
            'compatibility': cls.compatibility,
            'single_threaded': cls.single_threaded,
            'high_throughput': cls.high_throughput,
        }
        if name not in presets:
            raise ValueError(f"Unknown preset: {name}")
        return presets[name]()


class AdaptiveConfig:
    """Dynamically adjust configuration based on system resources"""

    @staticmethod
    def auto_configure(image_size: int,
                       base_config: Optional[PipelineConfig] = None) -> PipelineConfig:
        """
        Pick worker count and chunk size for an image of ``image_size`` bytes.

        Aims for a few chunks per worker so slow chunks can be balanced, and
        never lets a single chunk exceed a quarter of available memory.
        """
        config = replace(base_config) if base_config else PipelineConfig()

        cpu_count = psutil.cpu_count(logical=True) or os.cpu_count() or 1
        available_memory = psutil.virtual_memory().available

        workers = min(cpu_count, MAX_WORKERS)
        if image_size < DEFAULT_CHUNK_SIZE * 4:
            workers = 1

        target_chunks = workers * 4
        chunk_size = max(DEFAULT_CHUNK_SIZE, image_size // target_chunks)
        chunk_size = min(chunk_size, max(DEFAULT_CHUNK_SIZE, available_memory // 4))
        # Whole triplets per chunk
        chunk_size -= chunk_size % 3

        config.num_workers = workers
        config.chunk_size = chunk_size
        logger.debug(f"Auto-configured {workers} workers, chunk_size={chunk_size} "
                     f"for {image_size} bytes")
        return config
