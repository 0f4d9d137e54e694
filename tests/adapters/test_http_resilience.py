from __future__ import annotations

import asyncio

import httpx

from contactipy.adapters.contactsplus.client import reader_resilience, writer_resilience
from contactipy.adapters.http_resilience import (
    RateLimit,
    ResilienceConfig,
    ResilientClient,
    RetryPolicy,
    build_retry,
)
from tests.helpers.contactsplus import make_config


def test_writes_only_retry_connection_failures() -> None:
    reader = reader_resilience(make_config())
    writer = writer_resilience(make_config())

    assert 503 in reader.retry.status_forcelist
    assert writer.retry.status_forcelist == frozenset()
    assert writer.retry.retry_on_exceptions == (httpx.ConnectError, httpx.ConnectTimeout)
    assert reader.base_url == writer.base_url == "https://api.test"
    assert writer.default_headers == {"Authorization": "Bearer token-123"}


def test_build_retry_copies_policy() -> None:
    retry = build_retry(RetryPolicy(total=2, status_forcelist=frozenset({429})))

    assert retry.total == 2
    assert 429 in retry.status_forcelist
    assert 503 not in retry.status_forcelist


def test_resilient_client_sends_through_limiter_and_hooks() -> None:
    seen: list[int] = []

    async def record_status(response: httpx.Response) -> None:
        seen.append(response.status_code)

    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"path": request.url.path})

    config = ResilienceConfig(
        name="test",
        base_url="https://api.test",
        ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
        response_hooks=(record_status,),
    )

    async def run() -> object:
        client = ResilientClient(config)
        client._client = httpx.AsyncClient(  # noqa: SLF001  # type: ignore[reportPrivateUsage]
            base_url="https://api.test",
            event_hooks={"response": list(config.response_hooks)},
            transport=httpx.MockTransport(handler),
        )
        async with client:
            response = await client.post("/api/v1/contacts.scroll", json={})
        return response.json()

    assert asyncio.run(run()) == {"path": "/api/v1/contacts.scroll"}
    assert seen == [200]
