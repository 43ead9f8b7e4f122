"""Benchmark harness for ranked word-transformation search engines."""

__version__ = "0.3.0"
