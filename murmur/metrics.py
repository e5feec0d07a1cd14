"""Prometheus metrics helpers."""

from __future__ import annotations

import logging

from prometheus_client import Counter, Histogram, start_http_server

LOGGER = logging.getLogger("murmur.metrics")

CHUNKS_DROPPED = Counter(
    "murmur_audio_chunks_dropped_total",
    "Audio chunks dropped because the chunk queue was full",
)

FORCED_STOPS = Counter(
    "murmur_forced_stops_total",
    "Utterances cut off at the maximum recording duration",
)

SEGMENTS = Counter(
    "murmur_segments_total",
    "Processed segments by outcome",
    labelnames=("outcome",),
)

CLEANUP_REJECTIONS = Counter(
    "murmur_cleanup_rejections_total",
    "Cleanup outputs discarded by the hallucination validator",
)

SINK_ERRORS = Counter(
    "murmur_sink_errors_total",
    "Output sink failures",
    labelnames=("sink",),
)

PROCESSING_SECONDS = Histogram(
    "murmur_segment_processing_seconds",
    "Time spent transcribing, cleaning and dispatching one segment",
)


def serve_metrics(port: int | None) -> bool:
    if not port:
        return False
    start_http_server(port)
    LOGGER.info("Metrics exporter listening on :%d", port)
    return True
