"""
services/worker.py

Background workers: extraction, polish and chat requests, file exports and
remote icon downloads.

Each worker runs in a QThread and reports through ``finished`` / ``failed``
signals.  ``cancel()`` marks a worker dead: a result arriving afterwards is
dropped instead of emitted.  A result already queued when ``cancel()`` runs
is still delivered, so receiving slots check ``is_live_result`` before
applying anything.
"""

from __future__ import annotations

import traceback
from typing import Dict, List, Optional, Set

from PyQt6.QtCore import QObject, QThread, pyqtSignal

from debug_trace import trace, trace_exception
from errors import GraphAbstractError
from icon_raster import prefetch_bitmaps, remote_bitmap_urls
from models import Document
from pptx_export import export_to_pptx
from raster_export import export_image
from services.api import ApiClient

# Workers and threads still running, including superseded ones the
# window no longer references
_running: Set[tuple] = set()


class BackgroundWorker(QObject):
    """
    Base worker with a liveness flag.

    Signals:
        finished(object): Emitted with the result on success
        failed(str): Emitted with an error message on failure
        done(): Emitted last in every case, including cancellation
    """

    finished = pyqtSignal(object)
    failed = pyqtSignal(str)
    done = pyqtSignal()

    def __init__(self):
        super().__init__()
        self._alive = True

    @property
    def alive(self) -> bool:
        return self._alive

    def cancel(self) -> None:
        """Discard whatever result arrives from now on."""
        self._alive = False

    def run(self):
        """Execute the request."""
        try:
            result = self._call()
        except GraphAbstractError as e:
            trace_exception(f"{type(self).__name__} failed")
            if self._alive:
                self.failed.emit(str(e))
        except Exception as e:
            trace_exception(f"{type(self).__name__} crashed")
            if self._alive:
                self.failed.emit(f"{e}\n\n{traceback.format_exc()}")
        else:
            if self._alive:
                self.finished.emit(result)
            else:
                trace(f"{type(self).__name__} result discarded (cancelled)", "SERVICE")
        self.done.emit()

    def _call(self):
        raise NotImplementedError


class _ServiceWorker(BackgroundWorker):
    """Worker talking to the extraction / polish / chat service."""

    def __init__(self, client: Optional[ApiClient] = None):
        super().__init__()
        self.client = client or ApiClient()


class ExtractWorker(_ServiceWorker):
    """Extract an article from a URL or a local PDF.

    Emits ``finished(ExtractedArticle)``.
    """

    def __init__(self, url: str = "", pdf_path: str = "", client: Optional[ApiClient] = None):
        super().__init__(client)
        self.url = url
        self.pdf_path = pdf_path

    def _call(self):
        if self.pdf_path:
            return self.client.extract_article_from_pdf(self.pdf_path)
        return self.client.extract_article(self.url)


class PolishWorker(_ServiceWorker):
    """Polish a section's text.  Emits ``finished(str)``."""

    def __init__(self, section_id: str, text: str, instruction: Optional[str] = None,
                 client: Optional[ApiClient] = None):
        super().__init__(client)
        self.section_id = section_id
        self.text = text
        self.instruction = instruction

    def _call(self):
        return self.client.polish_text(self.text, self.instruction)


class ChatWorker(_ServiceWorker):
    """Send one chat message.  Emits ``finished(str)`` with the reply."""

    def __init__(self, history: List[Dict[str, str]], message: str,
                 client: Optional[ApiClient] = None):
        super().__init__(client)
        self.history = list(history)
        self.message = message

    def _call(self):
        return self.client.send_chat_message(self.history, self.message)


class ExportWorker(BackgroundWorker):
    """Write a document to a PowerPoint deck or a PNG/JPEG image.

    Emits ``finished(str)`` with the output path.  Remote bitmap icons are
    downloaded first so the file never carries a pending placeholder.
    Exports are not cancellable; ``cancel()`` only drops the notification.
    """

    def __init__(self, document: Document, path: str, kind: str = "pptx",
                 dpi: int = 96, fmt: str = "png"):
        super().__init__()
        self.document = document
        self.path = path
        self.kind = kind
        self.dpi = dpi
        self.fmt = fmt

    def _call(self):
        prefetch_bitmaps(remote_bitmap_urls(self.document, retry_failed=True))
        if self.kind == "pptx":
            return export_to_pptx(self.document, self.path)
        return export_image(self.document, self.path, self.dpi, self.fmt)


class BitmapPrefetchWorker(BackgroundWorker):
    """Download http(s) bitmap icons.  Emits ``finished(list)`` of loaded URLs."""

    def __init__(self, urls: List[str]):
        super().__init__()
        self.urls = list(urls)

    def _call(self):
        return prefetch_bitmaps(self.urls)


def is_live_result(sender, current) -> bool:
    """Whether a result delivered by *sender* may still be applied.

    A direct call (no sender) always applies.  A signal applies only when it
    comes from the *current* worker and that worker was not cancelled, which
    also covers results queued just before ``cancel()``.
    """
    if sender is None:
        return True
    return sender is current and getattr(sender, "alive", False)


def _prune_finished() -> None:
    for entry in [e for e in _running if e[1].isFinished()]:
        _running.discard(entry)


def start_worker(worker: BackgroundWorker) -> QThread:
    """Move *worker* to a new QThread and start it.

    The thread quits once the worker emits ``done``.  Both objects are kept
    alive here until the thread has finished, so callers may drop a
    superseded worker at any time.
    """
    _prune_finished()
    thread = QThread()
    worker.moveToThread(thread)
    thread.started.connect(worker.run)
    worker.done.connect(thread.quit)
    _running.add((worker, thread))
    thread.start()
    return thread


def shutdown_workers(timeout_ms: int = 2000) -> None:
    """Cancel every running worker and wait for its thread (exports run to the end)."""
    for worker, thread in list(_running):
        worker.cancel()
        thread.quit()
        if isinstance(worker, ExportWorker):
            thread.wait()
        else:
            thread.wait(timeout_ms)
    _prune_finished()
