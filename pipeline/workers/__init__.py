"""
Pipeline worker components for parallel processing.
"""

from .parallel_processor import ParallelProcessor, plan_chunks

__all__ = [
    'ParallelProcessor',
    'plan_chunks',
]
