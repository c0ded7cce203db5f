from __future__ import annotations

import aiohttp
import pytest

from zonedebrid import api_verification


class _FakeResponse:
    def __init__(self, status: int, payload: dict | None = None, reason: str = "OK") -> None:
        self.status = status
        self.reason = reason
        self._payload = payload or {}

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def json(self) -> dict:
        return self._payload


class _FakeSession:
    def __init__(self, response: _FakeResponse) -> None:
        self._response = response
        self.calls: list[dict] = []

    def post(self, url: str, *, headers: dict, timeout: int):
        self.calls.append({"method": "POST", "url": url, "headers": dict(headers), "timeout": timeout})
        return self._response

    def get(self, url: str, *, headers: dict, timeout: int):
        self.calls.append({"method": "GET", "url": url, "headers": dict(headers), "timeout": timeout})
        return self._response


@pytest.mark.asyncio
async def test_verify_alldebrid_greets_user_with_bearer_key() -> None:
    payload = {"status": "success", "data": {"user": {"username": "neo", "isPremium": True}}}
    session = _FakeSession(_FakeResponse(200, payload))

    result = await api_verification.verify_alldebrid(
        session,
        api_key="secret",
        base_url="https://api.debrid.example/v4/",
        timeout=5,
    )

    assert result == ("AllDebrid", True, "Hello neo (premium)")
    assert session.calls[0]["url"] == "https://api.debrid.example/v4/user"
    assert session.calls[0]["headers"]["Authorization"] == "Bearer secret"


@pytest.mark.asyncio
async def test_verify_alldebrid_reports_rejected_key() -> None:
    payload = {"status": "error", "error": {"code": "AUTH_BAD_APIKEY", "message": "The auth apikey is invalid"}}
    session = _FakeSession(_FakeResponse(200, payload))

    service, ok, details = await api_verification.verify_alldebrid(session, "bad", "https://api.debrid.example/v4")

    assert service == "AllDebrid"
    assert ok is False
    assert details == "Invalid API key - The auth apikey is invalid"


@pytest.mark.asyncio
async def test_verify_site_reports_status() -> None:
    ok_session = _FakeSession(_FakeResponse(200))
    down_session = _FakeSession(_FakeResponse(503, reason="Service Unavailable"))

    _, ok, details = await api_verification.verify_site(ok_session, "https://zt.example/", "UA/1.0", timeout=5)
    _, down, down_details = await api_verification.verify_site(down_session, "https://zt.example/", "UA/1.0")

    assert ok is True
    assert details.startswith("https://zt.example/ answered in")
    assert ok_session.calls[0]["headers"] == {"User-Agent": "UA/1.0"}
    assert down is False
    assert down_details == "https://zt.example/ answered 503 Service Unavailable"


@pytest.mark.asyncio
async def test_verify_with_retry_gives_up_after_connection_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    sleeps: list[float] = []

    async def _no_sleep(delay: float) -> None:
        sleeps.append(delay)

    monkeypatch.setattr(api_verification.asyncio, "sleep", _no_sleep)
    monkeypatch.setattr(api_verification.console, "print", lambda *_args, **_kwargs: None)

    async def _always_fails(*_args, timeout=10):
        raise aiohttp.ClientConnectionError("refused")

    result = await api_verification.verify_with_retry(_always_fails, "Site", max_retries=2)

    assert result == ("Site", False, "Connection failed after 3 attempts")
    assert sleeps == [1, 2]
