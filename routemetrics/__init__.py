"""Prometheus HTTP instrumentation with low-cardinality route labels."""

__version__ = "0.1.0"
