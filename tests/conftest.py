"""Shared fixtures for Help Scout Exporter tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import httpx
import pytest

from helpscout_exporter.config.settings import HelpScoutExporterSettings
from helpscout_exporter.core.request_executor import RequestExecutor

BASE_URL = "https://api.helpscout.net/v1/"


class FakeHelpScoutApi:
    """Scripted stand-in for the Help Scout API, served through httpx.MockTransport.

    Routes are relative to the API base, query included (``"mailboxes.json?page=1"``).
    Each route holds a queue of replies; the last reply repeats once the queue
    is down to one. Unknown routes answer 404.
    """

    def __init__(self) -> None:
        self.routes: dict[str, list[Any]] = {}
        self.requests: list[str] = []
        self.last_request: httpx.Request | None = None

    def add(self, route: str, *replies: Any) -> None:
        self.routes.setdefault(route, []).extend(replies)

    def add_json(self, route: str, body: Any, status_code: int = 200) -> None:
        self.add(route, httpx.Response(status_code, json=body))

    @staticmethod
    def page(items: list[Any], page: int = 1, pages: int = 1) -> dict[str, Any]:
        return {"items": items, "page": page, "pages": pages, "count": len(items)}

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        route = request.url.raw_path.decode("ascii").removeprefix("/v1/")
        self.requests.append(route)
        self.last_request = request

        queue = self.routes.get(route)
        if not queue:
            return httpx.Response(404, json={"error": "not found"})

        reply = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(request)
        return reply


@pytest.fixture
def fake_api() -> FakeHelpScoutApi:
    """An empty scripted API."""
    return FakeHelpScoutApi()


@pytest.fixture
def executor(fake_api: FakeHelpScoutApi) -> RequestExecutor:
    """A RequestExecutor wired to the fake API with default retry settings."""
    return RequestExecutor("test-key", BASE_URL, transport=fake_api.transport())


@pytest.fixture
def tmp_output_dir(tmp_path: Path) -> Path:
    """Temporary output directory for tests."""
    output = tmp_path / "output"
    output.mkdir()
    return output


@pytest.fixture
def tmp_settings(tmp_path: Path) -> HelpScoutExporterSettings:
    """Settings pointing to a temporary output directory."""
    return HelpScoutExporterSettings(
        api_key="test-key",
        base_url=BASE_URL,
        output_dir=tmp_path / "export",
        connect_retry_delay_seconds=0.0,
        rate_limit_fallback_seconds=0.0,
    )


@pytest.fixture
def sample_conversation() -> dict[str, Any]:
    """A conversation item as returned by a conversations page."""
    return {
        "id": 2391938111,
        "number": 349,
        "subject": "Order not received",
        "status": "active",
        "mailbox": {"id": 1, "name": "Support"},
    }


@pytest.fixture
def sample_threads() -> list[dict[str, Any]]:
    """Threads of sample_conversation as returned by the conversation endpoint."""
    return [
        {
            "id": 88171881,
            "type": "customer",
            "body": "<p>Hi, my order <b>#1001</b> never arrived.</p>",
            "createdAt": "2024-03-01T10:00:00Z",
            "createdBy": {"firstName": "Ada", "lastName": "Lovelace", "email": "ada@example.com"},
        },
        {
            "id": 88171882,
            "type": "message",
            "body": "Sorry about that &amp; thanks for waiting.<br/>We re-shipped it.",
            "createdAt": "2024-03-01T12:00:00Z",
            "createdBy": {"email": "agent@example.com"},
        },
    ]
