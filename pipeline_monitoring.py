"""
Pipeline Monitoring
===================

Per-stage timing, throughput and memory tracking for the grayscale
pipeline, with JSON and Prometheus text export.
"""

import json
import statistics
import threading
import time
from collections import deque, defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Deque, Dict, Optional
import logging

import psutil

logger = logging.getLogger(__name__)


@dataclass
class MetricPoint:
    """Single metric measurement"""
    timestamp: float
    value: float
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class StageMetrics:
    """Metrics for a pipeline stage"""
    stage_name: str
    start_time: float
    end_time: Optional[float] = None
    items_processed: int = 0
    bytes_processed: int = 0
    errors: int = 0
    memory_start: int = 0
    memory_end: int = 0

    @property
    def duration(self) -> float:
        if self.end_time:
            return self.end_time - self.start_time
        return time.perf_counter() - self.start_time

    @property
    def throughput_items_per_sec(self) -> float:
        if self.duration > 0:
            return self.items_processed / self.duration
        return 0.0

    @property
    def throughput_mb_per_sec(self) -> float:
        if self.duration > 0:
            return (self.bytes_processed / 1024 / 1024) / self.duration
        return 0.0


class PipelineMonitor:
    """Collects stage and metric data for one or more pipeline runs"""

    def __init__(self, window_size: int = 1000):
        self.window_size = window_size
        self.process = psutil.Process()

        # Metrics storage
        self.metrics: Dict[str, Deque[MetricPoint]] = defaultdict(lambda: deque(maxlen=window_size))
        self.stage_metrics: Dict[str, StageMetrics] = {}
        self.active_stages: Dict[str, StageMetrics] = {}
        self._metrics_lock = threading.Lock()
        self._stage_counter = 0

    def _rss(self) -> int:
        try:
            return self.process.memory_info().rss
        except (psutil.NoSuchProcess, psutil.AccessDenied) as e:
            logger.debug(f"Memory info unavailable: {e}")
            return 0

    def stage_start(self, stage_name: str) -> str:
        """Mark stage start"""
        with self._metrics_lock:
            self._stage_counter += 1
            stage_id = f"{stage_name}_{self._stage_counter}"

            stage_metrics = StageMetrics(
                stage_name=stage_name,
                start_time=time.perf_counter(),
                memory_start=self._rss()
            )
            self.active_stages[stage_id] = stage_metrics
            self.stage_metrics[stage_id] = stage_metrics

            # Keep at most window_size stages, oldest evicted first
            while len(self.stage_metrics) > self.window_size:
                del self.stage_metrics[next(iter(self.stage_metrics))]

        return stage_id

    def stage_end(self, stage_id: str):
        """Mark stage completion"""
        with self._metrics_lock:
            stage = self.active_stages.pop(stage_id, None)
        if stage is None:
            return

        stage.end_time = time.perf_counter()
        stage.memory_end = self._rss()

        self.record_metric(
            f"{stage.stage_name}_duration",
            stage.duration,
            {'stage_id': stage_id}
        )
        self.record_metric(
            f"{stage.stage_name}_throughput_mb",
            stage.throughput_mb_per_sec,
            {'stage_id': stage_id}
        )
        logger.debug(f"Stage {stage.stage_name} finished in {stage.duration:.4f}s")

    def record_metric(self,
                      metric_name: str,
                      value: float,
                      metadata: Optional[Dict[str, Any]] = None) -> None:
        """Record a metric value with thread safety"""
        point = MetricPoint(
            timestamp=time.time(),
            value=value,
            metadata=metadata or {}
        )
        with self._metrics_lock:
            self.metrics[metric_name].append(point)

    def update_stage_progress(self,
                              stage_id: str,
                              items: int = 0,
                              bytes_count: int = 0) -> None:
        """Update stage progress with thread safety"""
        with self._metrics_lock:
            if stage_id in self.active_stages:
                stage = self.active_stages[stage_id]
                stage.items_processed += items
                stage.bytes_processed += bytes_count

    def record_error(self, stage_id: str, error: Exception):
        """Record stage error"""
        with self._metrics_lock:
            if stage_id in self.active_stages:
                self.active_stages[stage_id].errors += 1

        self.record_metric(
            'errors',
            1,
            {
                'stage_id': stage_id,
                'error_type': type(error).__name__,
                'error_msg': str(error)
            }
        )

    def get_stage_summary(self, stage_name: Optional[str] = None) -> Dict[str, Any]:
        """Get summary statistics for stages"""
        stages = [s for s in self.stage_metrics.values()
                  if stage_name is None or s.stage_name == stage_name]

        if not stages:
            return {}

        durations = [s.duration for s in stages if s.end_time]

        return {
            'count': len(stages),
            'avg_duration': statistics.mean(durations) if durations else 0,
            'min_duration': min(durations) if durations else 0,
            'max_duration': max(durations) if durations else 0,
            'total_items': sum(s.items_processed for s in stages),
            'total_bytes': sum(s.bytes_processed for s in stages),
            'total_errors': sum(s.errors for s in stages)
        }

    def stage(self, stage_name: str) -> 'MonitoredStage':
        """Context manager for monitoring a stage"""
        return MonitoredStage(self, stage_name)


class MonitoredStage:
    """Context manager for monitoring a single stage"""

    def __init__(self, monitor: PipelineMonitor, stage_name: str):
        self.monitor = monitor
        self.stage_name = stage_name
        self.stage_id = None

    def __enter__(self):
        self.stage_id = self.monitor.stage_start(self.stage_name)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.monitor.record_error(self.stage_id, exc_val)
        self.monitor.stage_end(self.stage_id)
        return False

    def update_progress(self, items: int = 0, bytes_count: int = 0):
        """Update stage progress"""
        self.monitor.update_stage_progress(self.stage_id, items, bytes_count)


class MetricsExporter:
    """Export metrics in various formats"""

    @staticmethod
    def to_prometheus(monitor: PipelineMonitor) -> str:
        """Export metrics in Prometheus text format"""
        lines = []

        for stage in monitor.stage_metrics.values():
            if stage.end_time:
                lines.append(
                    f'pipeline_stage_duration_seconds{{stage="{stage.stage_name}"}} {stage.duration}'
                )
                lines.append(
                    f'pipeline_stage_items_total{{stage="{stage.stage_name}"}} {stage.items_processed}'
                )
                lines.append(
                    f'pipeline_stage_bytes_total{{stage="{stage.stage_name}"}} {stage.bytes_processed}'
                )
                lines.append(
                    f'pipeline_stage_errors_total{{stage="{stage.stage_name}"}} {stage.errors}'
                )

        for metric_name, points in monitor.metrics.items():
            if points:
                lines.append(f'pipeline_{metric_name} {points[-1].value}')

        return '\n'.join(lines)

    @staticmethod
    def to_json(monitor: PipelineMonitor) -> str:
        """Export metrics as JSON"""
        data = {
            'timestamp': datetime.now().isoformat(),
            'stages': {},
            'metrics': {},
        }

        for stage_name in sorted(set(s.stage_name for s in monitor.stage_metrics.values())):
            data['stages'][stage_name] = monitor.get_stage_summary(stage_name)

        for metric_name, points in monitor.metrics.items():
            if points:
                recent_points = list(points)[-100:]  # Last 100 points
                data['metrics'][metric_name] = [
                    {
                        'timestamp': p.timestamp,
                        'value': p.value,
                        'metadata': p.metadata
                    }
                    for p in recent_points
                ]

        return json.dumps(data, indent=2)
