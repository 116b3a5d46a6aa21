"""
services package

Client for the extraction / polish / chat service, and the background
workers that keep it (and file exports) off the GUI thread.
"""

from services.api import ApiClient
from services.worker import (
    BitmapPrefetchWorker,
    ChatWorker,
    ExportWorker,
    ExtractWorker,
    PolishWorker,
    is_live_result,
    shutdown_workers,
    start_worker,
)

__all__ = [
    "ApiClient",
    "BitmapPrefetchWorker",
    "ChatWorker",
    "ExportWorker",
    "ExtractWorker",
    "PolishWorker",
    "is_live_result",
    "shutdown_workers",
    "start_worker",
]
