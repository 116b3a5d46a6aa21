"""Tests for the HTTP service client and the background workers."""
from __future__ import annotations

import pytest
import requests

from chat_dock import ERROR_REPLY, ChatConversation
from errors import ServiceError
from services.api import ApiClient
from services.worker import ChatWorker, ExtractWorker, PolishWorker, is_live_result


class _FakeResponse:
    def __init__(self, payload=None, status=200, bad_json=False):
        self.payload = payload
        self.status = status
        self.bad_json = bad_json

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} Server Error")

    def json(self):
        if self.bad_json:
            raise ValueError("Expecting value")
        return self.payload


@pytest.fixture()
def posts(monkeypatch):
    """Record requests.post calls and answer with queued responses."""
    calls = []
    replies = []

    def fake_post(url, timeout=None, **kwargs):
        calls.append({"url": url, "timeout": timeout, **kwargs})
        reply = replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    monkeypatch.setattr(requests, "post", fake_post)
    return calls, replies


@pytest.fixture()
def client():
    return ApiClient("https://api.example.org/api/", timeout=5)


EXTRACT_DATA = {
    "metadata": {"title": "T", "authors": ["A"], "journal": "J", "publishDate": "2021"},
    "journal": {"key": "oncology", "name": "Oncology"},
    "sections": [{"title": "Methods", "description": "d"}],
}


class TestApiClient:
    def test_extract(self, posts, client):
        calls, replies = posts
        replies.append(_FakeResponse({"success": True, "data": EXTRACT_DATA}))
        article = client.extract_article("https://doi.org/10.1/x")
        assert article.title == "T"
        assert calls[0]["url"] == "https://api.example.org/api/extract"
        assert calls[0]["json"] == {"url": "https://doi.org/10.1/x"}
        assert calls[0]["timeout"] == 5

    def test_extract_pdf_multipart(self, posts, client, tmp_path):
        calls, replies = posts
        pdf = tmp_path / "paper.pdf"
        pdf.write_bytes(b"%PDF-1.4")
        replies.append(_FakeResponse({"success": True, "data": EXTRACT_DATA}))
        client.extract_article_from_pdf(str(pdf))
        assert calls[0]["url"].endswith("/pdf/extract")
        assert calls[0]["files"]["pdf"][0] == "paper.pdf"

    def test_missing_pdf(self, posts, client, tmp_path):
        with pytest.raises(ServiceError):
            client.extract_article_from_pdf(str(tmp_path / "absent.pdf"))

    def test_polish(self, posts, client):
        calls, replies = posts
        replies.append(_FakeResponse({"success": True, "polishedText": "Short."}))
        assert client.polish_text("Long text", "Shorten") == "Short."
        assert calls[0]["json"] == {"text": "Long text", "instruction": "Shorten"}

    def test_polish_default_instruction(self, posts, client, isolated_settings):
        calls, replies = posts
        replies.append(_FakeResponse({"success": True, "polishedText": "x"}))
        client.polish_text("y")
        assert calls[0]["json"]["instruction"] == isolated_settings.settings.api.polish_instruction

    def test_chat(self, posts, client):
        calls, replies = posts
        replies.append(_FakeResponse({"success": True, "response": "Hello"}))
        history = [{"role": "user", "text": "hi"}, {"role": "model", "text": "hey"}]
        assert client.send_chat_message(history, "again") == "Hello"
        assert calls[0]["json"] == {"history": history, "message": "again"}

    @pytest.mark.parametrize("reply", [
        _FakeResponse({"success": False, "message": "Quota exceeded"}),
        _FakeResponse({"success": True}),
        _FakeResponse(status=500),
        _FakeResponse(bad_json=True),
        requests.ConnectionError("offline"),
    ])
    def test_failures_raise_service_error(self, posts, client, reply):
        _, replies = posts
        replies.append(reply)
        with pytest.raises(ServiceError):
            client.polish_text("text", "instr")

    def test_failure_message_passed_through(self, posts, client):
        _, replies = posts
        replies.append(_FakeResponse({"success": False, "message": "Quota exceeded"}))
        with pytest.raises(ServiceError, match="Quota exceeded"):
            client.send_chat_message([], "hi")

    def test_base_url_from_environment(self, monkeypatch):
        monkeypatch.setenv("GRAPHABSTRACT_API_URL", "http://localhost:3000/api")
        assert ApiClient().base_url == "http://localhost:3000/api"


class _StubClient:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error

    def _answer(self, *args, **kwargs):
        if self.error is not None:
            raise self.error
        return self.result

    extract_article = extract_article_from_pdf = polish_text = send_chat_message = _answer


def _run(worker):
    """Run a worker synchronously and collect what it emitted."""
    got = {"finished": [], "failed": [], "done": 0}
    worker.finished.connect(got["finished"].append)
    worker.failed.connect(got["failed"].append)

    def on_done():
        got["done"] += 1

    worker.done.connect(on_done)
    worker.run()
    return got


class TestWorkers:
    def test_success(self, qapp):
        got = _run(PolishWorker("s1", "text", client=_StubClient("polished")))
        assert got == {"finished": ["polished"], "failed": [], "done": 1}

    def test_failure(self, qapp):
        got = _run(ChatWorker([], "hi", client=_StubClient(error=ServiceError("down"))))
        assert got["finished"] == []
        assert got["failed"] and "down" in got["failed"][0]
        assert got["done"] == 1

    def test_cancelled_result_dropped(self, qapp):
        worker = ExtractWorker(url="https://x", client=_StubClient("article"))
        worker.cancel()
        got = _run(worker)
        assert got == {"finished": [], "failed": [], "done": 1}

    def test_polish_worker_keeps_section_id(self, qapp):
        assert PolishWorker("abc", "t", client=_StubClient("x")).section_id == "abc"


class TestLiveResult:
    def test_direct_call_applies(self):
        assert is_live_result(None, None)

    def test_current_worker_until_cancelled(self, qapp):
        worker = PolishWorker("s1", "t", client=_StubClient("x"))
        assert is_live_result(worker, worker)
        worker.cancel()
        assert not is_live_result(worker, worker)

    def test_superseded_worker(self, qapp):
        old = ExtractWorker(url="https://a", client=_StubClient("x"))
        new = ExtractWorker(url="https://b", client=_StubClient("y"))
        assert not is_live_result(old, new)
        assert not is_live_result(old, None)

class TestChatConversation:
    def test_history_excludes_errors(self):
        convo = ChatConversation()
        convo.add_user("first")
        convo.add_error()
        convo.add_user("second")
        convo.add_reply("answer")
        assert convo.history() == [
            {"role": "user", "text": "first"},
            {"role": "user", "text": "second"},
            {"role": "model", "text": "answer"},
        ]
        assert convo.messages[1].text == ERROR_REPLY

    def test_clear(self):
        convo = ChatConversation()
        convo.add_user("x")
        convo.clear()
        assert convo.history() == []
