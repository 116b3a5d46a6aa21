"""
chat_dock.py

Writing-assistant chat panel.

The conversation is kept in a ChatConversation (plain data, testable without
widgets); the dock renders it and sends each message through a ChatWorker.
"""

from __future__ import annotations

import html
from dataclasses import dataclass
from typing import Dict, List, Optional

from PyQt6.QtCore import QThread
from PyQt6.QtWidgets import (
    QDockWidget,
    QHBoxLayout,
    QLineEdit,
    QPushButton,
    QTextBrowser,
    QVBoxLayout,
    QWidget,
)

from debug_trace import trace
from services.worker import ChatWorker, is_live_result, start_worker

ERROR_REPLY = "Sorry, something went wrong. Please try again."


@dataclass(frozen=True)
class ChatMessage:
    role: str           # "user" or "model"
    text: str
    is_error: bool = False


class ChatConversation:
    """Ordered chat messages plus the history sent with each request."""

    def __init__(self):
        self.messages: List[ChatMessage] = []

    def history(self) -> List[Dict[str, str]]:
        """Prior turns as ``{role, text}`` dicts; error replies are left out."""
        return [{"role": m.role, "text": m.text} for m in self.messages if not m.is_error]

    def add_user(self, text: str) -> ChatMessage:
        msg = ChatMessage("user", text)
        self.messages.append(msg)
        return msg

    def add_reply(self, text: str) -> ChatMessage:
        msg = ChatMessage("model", text)
        self.messages.append(msg)
        return msg

    def add_error(self) -> ChatMessage:
        msg = ChatMessage("model", ERROR_REPLY, is_error=True)
        self.messages.append(msg)
        return msg

    def clear(self) -> None:
        self.messages.clear()


class ChatDock(QDockWidget):
    """Dock with a message view, an input line and a send button."""

    def __init__(self, parent=None):
        super().__init__("Assistant", parent)
        self.setObjectName("ChatDock")
        self.conversation = ChatConversation()
        self._thread: Optional[QThread] = None
        self._worker: Optional[ChatWorker] = None

        body = QWidget()
        v = QVBoxLayout(body)
        self.view = QTextBrowser()
        self.view.setOpenExternalLinks(True)
        v.addWidget(self.view, 1)

        row = QHBoxLayout()
        self.input = QLineEdit()
        self.input.setPlaceholderText("Ask about your abstract...")
        row.addWidget(self.input, 1)
        self.send_btn = QPushButton("Send")
        row.addWidget(self.send_btn)
        v.addLayout(row)
        self.setWidget(body)

        self.input.returnPressed.connect(self.send)
        self.send_btn.clicked.connect(self.send)
        self._render()

    @property
    def busy(self) -> bool:
        return self._worker is not None

    def send(self):
        text = self.input.text().strip()
        if not text or self.busy:
            return
        history = self.conversation.history()
        self.conversation.add_user(text)
        self.input.clear()
        self._set_busy(True)
        self._render()

        self._worker = ChatWorker(history, text)
        self._worker.finished.connect(self.on_reply)
        self._worker.failed.connect(self.on_failed)
        self._worker.done.connect(self.on_done)
        self._thread = start_worker(self._worker)

    def on_reply(self, reply: str):
        if not is_live_result(self.sender(), self._worker):
            return
        self.conversation.add_reply(reply)
        self._render()

    def on_failed(self, err: str):
        if not is_live_result(self.sender(), self._worker):
            return
        trace(f"Chat failed: {err}", "SERVICE")
        self.conversation.add_error()
        self._render()

    def on_done(self):
        self._worker = None
        self._thread = None
        self._set_busy(False)

    def cancel(self):
        """Drop any reply still in flight (window closing)."""
        if self._worker is not None:
            self._worker.cancel()
        if self._thread is not None:
            self._thread.quit()
            self._thread.wait(2000)

    def _set_busy(self, busy: bool):
        self.send_btn.setEnabled(not busy)
        self.send_btn.setText("..." if busy else "Send")

    def _render(self):
        if not self.conversation.messages:
            self.view.setHtml('<p style="color:#9CA3AF; text-align:center">How can I help with your abstract?</p>')
            return
        parts = []
        for m in self.conversation.messages:
            text = html.escape(m.text).replace("\n", "<br>")
            if m.role == "user":
                parts.append(f'<p align="right"><span style="background:#8B5CF6; color:white">&nbsp;{text}&nbsp;</span></p>')
            elif m.is_error:
                parts.append(f'<p style="color:#B91C1C">{text}</p>')
            else:
                parts.append(f"<p>{text}</p>")
        if self.busy:
            parts.append('<p style="color:#9CA3AF">...</p>')
        self.view.setHtml("".join(parts))
        self.view.verticalScrollBar().setValue(self.view.verticalScrollBar().maximum())
