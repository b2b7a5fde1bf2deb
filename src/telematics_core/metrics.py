"""Prometheus metrics for the analysis engines."""

from prometheus_client import Counter, Histogram

samples_ingested = Counter(
    "telematics_samples_ingested_total",
    "Sensor samples accepted into engine buffers",
    ["engine", "kind"],
)
ticks_total = Counter(
    "telematics_ticks_total",
    "Analysis ticks executed",
    ["engine"],
)
tick_failures = Counter(
    "telematics_tick_failures_total",
    "Analysis ticks skipped because of an internal error",
    ["engine"],
)
tick_duration = Histogram(
    "telematics_tick_duration_seconds",
    "Time spent computing one analysis tick",
    ["engine"],
)
results_published = Counter(
    "telematics_results_published_total",
    "Results delivered to a result channel",
    ["channel"],
)
