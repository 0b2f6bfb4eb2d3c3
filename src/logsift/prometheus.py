"""Prometheus metrics for logsift.

Metrics live on a dedicated registry and are written to a textfile with
``--metrics`` (for the node exporter textfile collector in CI).
"""

from prometheus_client import CollectorRegistry, Counter, Gauge, write_to_textfile


registry = CollectorRegistry()

# ============================================================================
# Training Metrics
# ============================================================================

# Baseline sources read during training
sources_trained_total = Counter(
    'logsift_sources_trained_total',
    'Total number of baseline sources read during training',
    ['status'],  # success, error
    registry=registry,
)

indexes_trained_total = Counter(
    'logsift_indexes_trained_total',
    'Total number of indexes trained',
    registry=registry,
)

model_indexes = Gauge(
    'logsift_model_indexes',
    'Number of indexes in the current model',
    registry=registry,
)

# ============================================================================
# Inspection Metrics
# ============================================================================

lines_inspected_total = Counter(
    'logsift_lines_inspected_total',
    'Total number of target lines compared with a baseline',
    registry=registry,
)

anomalies_total = Counter(
    'logsift_anomalies_total',
    'Total number of anomalies found',
    registry=registry,
)

sources_without_baseline_total = Counter(
    'logsift_sources_without_baseline_total',
    'Total number of target sources without a trained index',
    registry=registry,
)

# ============================================================================
# Error Metrics
# ============================================================================

source_errors_total = Counter(
    'logsift_source_errors_total',
    'Total number of sources that could not be listed or read',
    ['stage'],  # discovery, training, inspection
    registry=registry,
)


def write_metrics(path: str) -> None:
    """Write the current metrics in the Prometheus text format."""
    write_to_textfile(path, registry)
