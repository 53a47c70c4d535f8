"""
Router utility functions.

Contains helper functions extracted from router endpoints to keep them clean.
"""

from doc_optimizer.api.routers.router_utils.upload_utils import (
    IngestionValidator,
    run_until_disconnected,
)

__all__ = [
    "IngestionValidator",
    "run_until_disconnected",
]
