"""Infrastructure layer for the score archive service.

Modules:
    metrics     Prometheus metrics registry.
"""
