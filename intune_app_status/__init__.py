"""
Intune App Status package exposing CLI and report helper modules.
"""

__all__ = [
    "aggregator",
    "classifier",
    "cli",
    "concurrency",
    "config",
    "graph_client",
    "logging_utils",
    "membership",
    "models",
    "pipeline",
    "report",
    "report_writers",
    "status_fetcher",
    "utils",
]
