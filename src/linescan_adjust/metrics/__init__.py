"""Quality metrics for adjusted camera models."""

from linescan_adjust.metrics.roundtrip import (
    RoundTripMetrics,
    sample_pixels,
    cast_points,
    compute_roundtrip_errors,
    compute_roundtrip_metrics,
)

__all__ = [
    "RoundTripMetrics",
    "sample_pixels",
    "cast_points",
    "compute_roundtrip_errors",
    "compute_roundtrip_metrics",
]
