"""
services/api.py

HTTP client for the article extraction, text polish and chat service.

Every endpoint answers ``{"success": bool, ...}``; transport errors, non-2xx
statuses, undecodable bodies and ``success: false`` all raise ServiceError.
"""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

import requests

from binder import ExtractedArticle
from debug_trace import trace
from errors import ServiceError
from settings import get_settings


class ApiClient:
    """
    Thin wrapper around the service endpoints.

    Args:
        base_url: Service root, e.g. ``https://host/api``.  Defaults to the
            ``api.base_url`` setting, then ``GRAPHABSTRACT_API_URL``, then the
            hosted service.
        timeout: Request timeout in seconds (default from settings).
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        api = get_settings().settings.api
        self.base_url = (base_url or api.resolved_base_url()).rstrip("/")
        self.timeout = api.timeout if timeout is None else timeout

    def _post(self, endpoint: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        trace(f"POST {url}", "SERVICE")
        try:
            response = requests.post(url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
            result = response.json()
        except requests.RequestException as e:
            raise ServiceError(f"Request to {endpoint} failed: {e}") from e
        except ValueError as e:
            raise ServiceError(f"Invalid JSON from {endpoint}: {e}") from e

        if not isinstance(result, dict) or not result.get("success"):
            message = result.get("message") if isinstance(result, dict) else None
            raise ServiceError(message or f"{endpoint} request was not successful")
        return result

    # ----------------------------
    # Endpoints
    # ----------------------------

    def extract_article(self, url: str) -> ExtractedArticle:
        """Extract metadata and sections from an article URL."""
        result = self._post("extract", json={"url": url})
        if not isinstance(result.get("data"), dict):
            raise ServiceError("Extraction returned no data")
        return ExtractedArticle.from_dict(result["data"])

    def extract_article_from_pdf(self, pdf_path: str) -> ExtractedArticle:
        """Upload a PDF (multipart field ``pdf``) and extract it."""
        try:
            with open(pdf_path, "rb") as f:
                files = {"pdf": (os.path.basename(pdf_path), f, "application/pdf")}
                result = self._post("pdf/extract", files=files)
        except OSError as e:
            raise ServiceError(f"Could not read {pdf_path}: {e}") from e
        if not isinstance(result.get("data"), dict):
            raise ServiceError("PDF extraction returned no data")
        return ExtractedArticle.from_dict(result["data"])

    def polish_text(self, text: str, instruction: Optional[str] = None) -> str:
        """Rewrite *text* following *instruction* (default from settings).

        Raises:
            ServiceError: On failure; callers keep the original text.
        """
        instruction = instruction or get_settings().settings.api.polish_instruction
        result = self._post("polish", json={"text": text, "instruction": instruction})
        polished = result.get("polishedText")
        if not polished:
            raise ServiceError("Polish returned no text")
        return str(polished)

    def send_chat_message(self, history: List[Dict[str, str]], message: str) -> str:
        """Send *message* with prior ``{role, text}`` turns; return the reply."""
        result = self._post("chat", json={"history": history, "message": message})
        reply = result.get("response")
        if not reply:
            raise ServiceError("Chat returned no response")
        return str(reply)
