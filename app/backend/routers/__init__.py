"""
Routers package for FastAPI endpoints.

Organized by domain:
- extraction: Single-document extraction (/api/extract)
- configs: Config management and field editing
- queue: Upload queue
- results: Processing passes, result table and export
"""

from . import configs, extraction, queue, results

__all__ = ["configs", "extraction", "queue", "results"]
