from __future__ import annotations
import json
from typing import Any

import pytest


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, reason: str = "OK", text: str | None = None):
        self.status_code = status_code
        self.reason = reason
        self._payload = payload
        self._text = text

    def json(self) -> Any:
        if self._text is not None:
            return json.loads(self._text)
        return self._payload


class Recorder:
    """Stands in for requests.request and remembers every call."""

    def __init__(self, response: FakeResponse, exc: Exception | None = None):
        self.response = response
        self.exc = exc
        self.calls: list[dict] = []

    def __call__(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        if self.exc is not None:
            raise self.exc
        return self.response

    @property
    def last(self) -> dict:
        return self.calls[-1]


@pytest.fixture
def fake_http(monkeypatch: pytest.MonkeyPatch):
    def _install(
        status_code: int = 200,
        payload: Any = None,
        reason: str = "OK",
        text: str | None = None,
        raises: Exception | None = None,
    ) -> Recorder:
        rec = Recorder(FakeResponse(status_code, payload, reason, text), raises)
        monkeypatch.setattr("requests.request", rec)
        return rec

    return _install
