"""Observability module -- structlog configuration and Prometheus metrics.

Provides configure_structlog() for process-wide structured logging and the
counters/histograms recorded by the reconciler and cache.
"""
