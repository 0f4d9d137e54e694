"""HTTP client for the ContactsPlus API."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError

from contactipy.adapters.http_resilience import (
    RateLimit,
    ResilienceConfig,
    ResilientClient,
    RetryPolicy,
)
from contactipy.config.contactsplus import ContactsPlusConfig
from contactipy.config.sync import ConflictResolution
from contactipy.domain.model import QueueOperation
from contactipy.domain.normalize import contact_fingerprint
from contactipy.domain.ports.remote import ApplyOutcome, RecordSource, RemoteApplier

from .schema import ContactPayload, ContactResponse, ContactsResponse
from .translator import contact_data_json, parse_contact

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import TracebackType

    from contactipy.domain.model import ContactRecord, QueueItem

log = getLogger(__name__)

SCROLL_PATH = "/api/v1/contacts.scroll"
GET_PATH = "/api/v1/contacts.get"
CREATE_PATH = "/api/v1/contacts.create"
UPDATE_PATH = "/api/v1/contacts.update"

_DEFAULT_RATELIMIT = RateLimit(max_calls=5, per_seconds=1.0)


async def _log_response(response: httpx.Response) -> None:
    log.debug(
        "ContactsPlus %s %s -> %s",
        response.request.method,
        response.request.url.path,
        response.status_code,
    )


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def reader_resilience(config: ContactsPlusConfig) -> ResilienceConfig:
    return ResilienceConfig(
        name="contactsplus-read",
        base_url=config.api_base,
        timeout_seconds=config.timeout_seconds,
        ratelimit=_DEFAULT_RATELIMIT,
        default_headers=config.auth_headers,
        response_hooks=(_log_response,),
    )


def writer_resilience(config: ContactsPlusConfig) -> ResilienceConfig:
    # A write is only retried when it certainly never reached the server.
    return ResilienceConfig(
        name="contactsplus-write",
        base_url=config.api_base,
        timeout_seconds=config.timeout_seconds,
        retry=RetryPolicy.connect_only(),
        ratelimit=_DEFAULT_RATELIMIT,
        default_headers=config.auth_headers,
        response_hooks=(_log_response,),
    )


class ContactsPlusAPIError(RuntimeError):
    """Raised when the ContactsPlus API answers with an unusable payload."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _raise_for_status(response: httpx.Response) -> None:
    if response.is_success:
        return
    detail = response.text.strip()[:200] or response.reason_phrase
    raise ContactsPlusAPIError(
        f"HTTP {response.status_code}: {detail}",
        status_code=response.status_code,
    )


class ContactsPlusClient:
    """Thin async wrapper around the four contact endpoints the tool uses."""

    def __init__(
        self,
        config: ContactsPlusConfig,
        *,
        client_factory: Callable[[ResilienceConfig], ResilientClient] = _default_client_factory,
    ) -> None:
        self.config = config
        self._reader = client_factory(reader_resilience(config))
        self._writer = client_factory(writer_resilience(config))

    async def __aenter__(self) -> ContactsPlusClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._reader.aclose()
        await self._writer.aclose()

    def _with_team(self, body: dict[str, Any]) -> dict[str, Any]:
        if self.config.team_id:
            body["teamId"] = self.config.team_id
        return body

    async def scroll(self, *, cursor: str | None = None) -> ContactsResponse:
        body: dict[str, Any] = {"size": self.config.page_size}
        if cursor:
            body["scrollCursor"] = cursor
        response = await self._reader.post(SCROLL_PATH, json=self._with_team(body))
        _raise_for_status(response)
        return ContactsResponse.model_validate(response.json())

    async def list_all(self) -> list[ContactPayload]:
        contacts: list[ContactPayload] = []
        cursor: str | None = None
        while True:
            page = await self.scroll(cursor=cursor)
            contacts.extend(page.contacts)
            log.debug("Fetched %s contacts (%s so far)", len(page.contacts), len(contacts))
            if not page.cursor or not page.contacts:
                break
            cursor = page.cursor
        log.info("Fetched %s contacts from ContactsPlus", len(contacts))
        return contacts

    async def get_contacts(self, contact_ids: Sequence[str]) -> list[ContactPayload]:
        if not contact_ids:
            return []
        body = self._with_team({"contactIds": list(contact_ids)})
        response = await self._reader.post(GET_PATH, json=body)
        _raise_for_status(response)
        return ContactsResponse.model_validate(response.json()).contacts

    async def create_contact(self, record: ContactRecord) -> ContactPayload:
        body = {
            "contact": {
                "contactData": contact_data_json(record),
                "contactMetadata": {"tagIds": [], "sharedBy": []},
            }
        }
        response = await self._writer.post(CREATE_PATH, json=body)
        _raise_for_status(response)
        created = ContactResponse.model_validate(response.json()).contact
        log.info("Created contact %s", created.contact_id)
        return created

    async def update_contact(self, record: ContactRecord, *, etag: str | None) -> ContactPayload:
        body = {
            "contact": {
                "contactId": record.id,
                "etag": etag,
                "contactData": contact_data_json(record),
            }
        }
        response = await self._writer.post(UPDATE_PATH, json=body)
        _raise_for_status(response)
        updated = ContactResponse.model_validate(response.json()).contact
        log.info("Updated contact %s (etag %s)", updated.contact_id, updated.etag)
        return updated


class ContactsPlusApplier:
    """Applies queued changes to ContactsPlus, reporting failures instead of raising them.

    An update whose subject changed remotely after it was queued is a conflict. ``MANUAL``
    fails the item without writing, ``LOCAL`` writes the queued version anyway and ``REMOTE``
    keeps the remote version and reports it as the synced record.
    """

    def __init__(
        self,
        client: ContactsPlusClient,
        *,
        readonly: bool | None = None,
        conflict_resolution: ConflictResolution = ConflictResolution.MANUAL,
    ) -> None:
        self.client = client
        self.readonly = client.config.readonly if readonly is None else readonly
        self.conflict_resolution = conflict_resolution

    async def apply(self, item: QueueItem) -> ApplyOutcome:
        if self.readonly:
            log.warning(
                "Read-only mode: not sending %s for %s", item.operation, item.subject_record_id
            )
            return ApplyOutcome.ok()
        try:
            match item.operation:
                case QueueOperation.CREATE:
                    return await self._create(item)
                case QueueOperation.UPDATE:
                    return await self._update(item)
                case QueueOperation.DELETE:
                    return ApplyOutcome.failed(
                        "Delete operation is not supported by the remote API"
                    )
        except (httpx.HTTPError, ValidationError, ContactsPlusAPIError) as exc:
            log.warning("Sync of item #%s failed: %s", item.id, exc)
            return ApplyOutcome.failed(str(exc) or type(exc).__name__)
        return ApplyOutcome.failed(f"Unknown operation {item.operation!r}")

    async def _create(self, item: QueueItem) -> ApplyOutcome:
        if item.data_after is None:
            return ApplyOutcome.failed("Create without data")
        created = await self.client.create_contact(item.data_after)
        return ApplyOutcome.ok(parse_contact(created))

    async def _update(self, item: QueueItem) -> ApplyOutcome:
        if item.data_after is None:
            return ApplyOutcome.failed("Update without data")
        current = await self.client.get_contacts([item.subject_record_id])
        if not current:
            return ApplyOutcome.failed(f"Contact {item.subject_record_id} not found remotely")
        remote = current[0]
        if item.data_before is not None:
            remote_record = parse_contact(remote)
            if contact_fingerprint(remote_record) != contact_fingerprint(item.data_before):
                log.warning(
                    "Contact %s changed remotely since item #%s was queued (resolution: %s)",
                    item.subject_record_id,
                    item.id,
                    self.conflict_resolution,
                )
                if self.conflict_resolution is ConflictResolution.MANUAL:
                    return ApplyOutcome.failed(
                        f"Contact {item.subject_record_id} changed remotely since it was queued"
                    )
                if self.conflict_resolution is ConflictResolution.REMOTE:
                    return ApplyOutcome.ok(remote_record)
        updated = await self.client.update_contact(item.data_after, etag=remote.etag)
        return ApplyOutcome.ok(parse_contact(updated))


class ContactsPlusRecordSource:
    """Synchronous record source over the whole ContactsPlus address book."""

    def __init__(
        self,
        config: ContactsPlusConfig | None = None,
        *,
        client_factory: Callable[[ResilienceConfig], ResilientClient] = _default_client_factory,
    ) -> None:
        self.config = config or ContactsPlusConfig.from_environment()
        self.client_factory = client_factory

    def list_all(self) -> list[ContactRecord]:
        return asyncio.run(self._list_all_async())

    async def _list_all_async(self) -> list[ContactRecord]:
        async with ContactsPlusClient(self.config, client_factory=self.client_factory) as client:
            payloads = await client.list_all()
        return [parse_contact(payload) for payload in payloads]


if TYPE_CHECKING:
    _applier_check: RemoteApplier = ContactsPlusApplier(ContactsPlusClient(ContactsPlusConfig("")))
    _source_check: RecordSource = ContactsPlusRecordSource()
