"""Test helpers for faking the generateContent endpoint."""
import json
from typing import Any, Callable, Dict

import httpx

EXTRACTION_URL = "https://generativelanguage.example.test/v1beta/models/gemini-pro:generateContent"
API_KEY = "test-key"


def envelope(text: str) -> Dict[str, Any]:
    """Minimal generateContent response carrying ``text`` as the reply."""
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


def reply_with(text: str, status: int = 200) -> Callable[[httpx.Request], httpx.Response]:
    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json=envelope(text))

    return _handler
