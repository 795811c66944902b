"""Windowed aggregation of load-test samples and periodic dispatch to Graphite."""

__version__ = "0.1.0"
