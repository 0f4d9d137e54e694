"""Mock transport wiring and payload builders for ContactsPlus tests."""

from __future__ import annotations

import json
from collections.abc import Callable  # noqa: TC003
from typing import Any

import httpx

from contactipy.adapters.http_resilience import ResilienceConfig, ResilientClient
from contactipy.config.contactsplus import ContactsPlusConfig

type Handler = Callable[[httpx.Request], httpx.Response]
type ClientFactory = Callable[[ResilienceConfig], ResilientClient]


def make_client_factory(handler: Handler) -> ClientFactory:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(  # noqa: SLF001  # type: ignore[reportPrivateUsage]
            base_url=resilience.base_url or "",
            headers=dict(resilience.default_headers or {}),
            event_hooks={"response": list(resilience.response_hooks)},
            transport=httpx.MockTransport(async_handler),
        )
        return client

    return factory


def request_body(request: httpx.Request) -> dict[str, Any]:
    return json.loads(request.content)


def contact_payload(
    contact_id: str,
    *,
    given: str = "John",
    family: str = "Smith",
    emails: tuple[str, ...] = (),
    etag: str = "etag-1",
) -> dict[str, object]:
    return {
        "contactId": contact_id,
        "etag": etag,
        "created": "2024-01-07T12:00:00Z",
        "updated": "2024-01-07T12:00:00Z",
        "contactData": {
            "name": {"givenName": given, "familyName": family},
            "emails": [{"value": email, "type": "work"} for email in emails],
        },
        "contactMetadata": {"tagIds": [], "sharedBy": []},
    }


def make_config(*, readonly: bool = False) -> ContactsPlusConfig:
    return ContactsPlusConfig(
        access_token="token-123",
        api_base="https://api.test",
        readonly=readonly,
        page_size=2,
    )
