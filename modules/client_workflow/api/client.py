"""Persistence clients for workflow records.

The engine only depends on the :class:`PersistenceClient` protocol.  The HTTP
implementation talks to the remote CRUD API (``GET``/``PUT {prefix}/{id}``)
and translates between section keys and wire field names.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError

from ..models.sections import RecordSchema
from ..models.snapshot import RecordMetadata, RecordSnapshot
from .errors import LoadError, UpdateError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = httpx.Timeout(10.0, connect=5.0)
USER_AGENT = "Workflow-Desk/ClientWorkflow"


@runtime_checkable
class PersistenceClient(Protocol):
    """Network interface the session engine reads from and writes to."""

    async def read(self, record_id: str) -> RecordSnapshot:
        ...

    async def update(self, record_id: str, payload: Mapping[str, Any]) -> RecordSnapshot:
        ...


class ApiEnvelope(BaseModel):
    """Response wrapper used by every endpoint of the workflow API."""

    success: bool = False
    data: Optional[Dict[str, Any]] = None
    message: Optional[str] = None
    error: Optional[str] = None
    failed_sections: Optional[Dict[str, str]] = Field(default=None, alias="failedSections")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def describe(self, fallback: str) -> str:
        return self.message or self.error or fallback


class RecordHeader(BaseModel):
    client_id: Optional[str] = Field(default=None, alias="clientId")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")
    updated_by: Optional[str] = Field(default=None, alias="updatedBy")
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    created_by: Optional[str] = Field(default=None, alias="createdBy")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


def snapshot_from_payload(schema: RecordSchema, record_id: str, data: Mapping[str, Any]) -> RecordSnapshot:
    """Build a complete snapshot from a record payload.

    Sections the server omits are filled from their declared default so that
    a snapshot always carries a value for every declared section.
    """

    header = RecordHeader.model_validate(dict(data))
    metadata = RecordMetadata(
        record_id=str(header.client_id or record_id),
        updated_at=header.updated_at,
        updated_by=header.updated_by,
        created_at=header.created_at,
        created_by=header.created_by,
    )
    sections: Dict[str, Any] = {}
    for spec in schema.sections:
        value = data.get(spec.wire_field)
        sections[spec.key] = spec.default() if value is None else value
    return RecordSnapshot(metadata=metadata, sections=sections)


def payload_to_wire(schema: RecordSchema, payload: Mapping[str, Any]) -> Dict[str, Any]:
    return {schema.section(key).wire_field: value for key, value in payload.items()}


class HttpPersistenceClient:
    """:class:`PersistenceClient` backed by ``httpx.AsyncClient``."""

    def __init__(
        self,
        schema: RecordSchema,
        base_url: str,
        *,
        token: Optional[str] = None,
        timeout: httpx.Timeout | float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.schema = schema
        self.base_url = base_url.rstrip("/")
        headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "HttpPersistenceClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @property
    def http(self) -> httpx.AsyncClient:
        return self._client

    def record_path(self, record_id: str) -> str:
        return f"{self.schema.path_prefix}/{record_id}"

    # ------------------------------------------------------------------ reads
    async def read(self, record_id: str) -> RecordSnapshot:
        path = self.record_path(record_id)
        logger.debug("[api] GET %s", path)
        try:
            response = await self._client.get(path)
        except httpx.HTTPError as exc:
            logger.warning("[api] GET %s failed: %s", path, exc)
            raise LoadError(f"Failed to load {self.schema.title}: {exc}", record_id=record_id) from exc

        envelope = self._parse_envelope(response)
        if envelope is None or not response.is_success or not envelope.success or envelope.data is None:
            reason = envelope.describe("Failed to load data") if envelope else "Malformed response"
            logger.warning("[api] GET %s -> %s (%s)", path, response.status_code, reason)
            raise LoadError(reason, record_id=record_id, status_code=response.status_code)
        return snapshot_from_payload(self.schema, record_id, envelope.data)

    # ----------------------------------------------------------------- writes
    async def update(self, record_id: str, payload: Mapping[str, Any]) -> RecordSnapshot:
        path = self.record_path(record_id)
        body = payload_to_wire(self.schema, payload)
        logger.debug("[api] PUT %s fields=%s", path, sorted(body))
        try:
            response = await self._client.put(path, json=body)
        except httpx.HTTPError as exc:
            logger.warning("[api] PUT %s failed: %s", path, exc)
            raise UpdateError(f"Failed to save data: {exc}") from exc

        envelope = self._parse_envelope(response)
        if envelope is None:
            raise UpdateError("Malformed response", status_code=response.status_code)
        if response.is_success and envelope.success and envelope.data is not None:
            return snapshot_from_payload(self.schema, record_id, envelope.data)

        reason = envelope.describe("Failed to save data")
        logger.warning("[api] PUT %s -> %s (%s)", path, response.status_code, reason)
        failed: Optional[Dict[str, str]] = None
        if envelope.failed_sections is not None:
            failed = {}
            for wire_field, why in envelope.failed_sections.items():
                spec = self.schema.section_for_field(wire_field)
                failed[spec.key if spec else wire_field] = why
        snapshot = None
        if failed is not None and envelope.data is not None:
            snapshot = snapshot_from_payload(self.schema, record_id, envelope.data)
        raise UpdateError(reason, failed_sections=failed, snapshot=snapshot, status_code=response.status_code)

    # ---------------------------------------------------------------- helpers
    @staticmethod
    def _parse_envelope(response: httpx.Response) -> Optional[ApiEnvelope]:
        try:
            return ApiEnvelope.model_validate(response.json())
        except (ValueError, PydanticValidationError):
            return None


__all__ = [
    "ApiEnvelope",
    "HttpPersistenceClient",
    "PersistenceClient",
    "RecordHeader",
    "payload_to_wire",
    "snapshot_from_payload",
]
