"""Observability helpers for the cart service.

Request IDs + structlog contextvars, Prometheus request instruments, and the
periodic cart gauge observer.
"""
