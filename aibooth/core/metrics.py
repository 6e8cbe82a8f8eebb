"""
Prometheus Metrics for Observability

Tracks pipeline stage latency, Eachlabs API calls, poll outcomes and
snapshot publishing. Exposes /api/v1/metrics for Prometheus scraping.
"""

import time
from contextlib import contextmanager
from typing import Any

from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    Info,
    generate_latest,
    CONTENT_TYPE_LATEST,
    REGISTRY
)

# Anything else the predictor reports is counted as pending
POLL_STATUS_LABELS = ("success", "error", "unreachable")

# =============================================================================
# Metrics Definitions
# =============================================================================

# Pipeline Latency - Per Stage
pipeline_latency_seconds = Histogram(
    "pipeline_latency_seconds",
    "Time spent in each pipeline stage",
    labelnames=["stage", "status"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 180.0, 300.0]
)

# Total Job Duration
job_total_duration_seconds = Histogram(
    "job_total_duration_seconds",
    "Total time for a submit request, from validation to response",
    labelnames=["status"],
    buckets=[1.0, 5.0, 10.0, 30.0, 60.0, 120.0, 180.0, 300.0]
)

# Eachlabs API Calls
eachlabs_api_calls_total = Counter(
    "eachlabs_api_calls_total",
    "Total number of Eachlabs API calls",
    labelnames=["operation", "status", "http_status"]
)

# Poll Attempts by reported status
prediction_polls_total = Counter(
    "prediction_polls_total",
    "Prediction status polls by reported status",
    labelnames=["status"]
)

# Jobs Counter
jobs_total = Counter(
    "booth_jobs_total",
    "Total number of booth jobs processed",
    labelnames=["status", "failure_stage"]
)

# Active Jobs
active_jobs_gauge = Gauge(
    "booth_active_jobs",
    "Number of submit requests currently in flight"
)

# Snapshot Publishing
snapshot_publish_total = Counter(
    "snapshot_publish_total",
    "Result snapshot publish attempts",
    labelnames=["status"]
)

# Session Store Size
session_store_entries = Gauge(
    "session_store_entries",
    "Number of completed jobs held in the session store"
)

# API Request Metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    labelnames=["method", "endpoint", "status"]
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration",
    labelnames=["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 60.0, 180.0]
)

# Application Info
app_info = Info(
    "aibooth_app",
    "Application information"
)


# =============================================================================
# Helper Functions
# =============================================================================

def set_app_info(version: str, environment: str):
    """Set application info metric."""
    app_info.info({
        "version": version,
        "environment": environment
    })


@contextmanager
def track_stage_latency(stage: str):
    """
    Context manager to track stage latency.

    Usage:
        with track_stage_latency("upload"):
            # do work
    """
    start = time.time()
    status = "success"
    try:
        yield
    except Exception:
        status = "error"
        raise
    finally:
        duration = time.time() - start
        pipeline_latency_seconds.labels(stage=stage, status=status).observe(duration)


def record_eachlabs_call(operation: str, status: str, http_status: int = 200):
    """Record an Eachlabs API call."""
    eachlabs_api_calls_total.labels(
        operation=operation,
        status=status,
        http_status=str(http_status)
    ).inc()


def record_prediction_poll(status: Any):
    """Record one poll attempt, bucketing the reported status to a fixed label set."""
    label = status if status in POLL_STATUS_LABELS else "pending"
    prediction_polls_total.labels(status=label).inc()


def record_job_started():
    """Record a submit request entering the pipeline."""
    active_jobs_gauge.inc()


def record_job_completion(status: str, duration_seconds: float, failure_stage: str = "none"):
    """Record job completion."""
    jobs_total.labels(status=status, failure_stage=failure_stage).inc()
    job_total_duration_seconds.labels(status=status).observe(duration_seconds)
    active_jobs_gauge.dec()


def record_snapshot_publish(status: str):
    """Record a snapshot publish outcome (success, error, skipped)."""
    snapshot_publish_total.labels(status=status).inc()


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Get the content type for Prometheus metrics."""
    return CONTENT_TYPE_LATEST
