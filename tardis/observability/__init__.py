"""Observability: structured logging and metrics.

Provides structlog-based logging and Prometheus metrics for the
configuration subsystem.
"""
