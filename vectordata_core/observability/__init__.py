"""
Observability package for metrics.

Provides Prometheus metrics collection for vector record and collection operations.
"""
