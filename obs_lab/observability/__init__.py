"""Observability plumbing for the lab service.

Request correlation ids + structlog contextvars, daily-rotated JSON log files,
and a per-application Prometheus registry scraped from ``/metrics``.
"""
