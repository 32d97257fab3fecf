"""Document side-channel for attachment sections.

Uploads and deletions commit on the server immediately.  They never pass
through the dirty/save pipeline; instead each successful call is followed by
:meth:`SessionStateManager.reload_section` for the section that owns the
category, so the attachment list refreshes without touching unsaved edits.
"""

from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

import httpx

from ..models.outcomes import LoadOutcome
from ..models.sections import DocumentCategory
from .client import ApiEnvelope, HttpPersistenceClient
from .errors import UpdateError, ValidationError

if TYPE_CHECKING:  # pragma: no cover
    from ..sync.session import SessionStateManager

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DownloadLink:
    url: str
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    mime_type: Optional[str] = None


class DocumentChannel:
    def __init__(self, client: HttpPersistenceClient, session: "SessionStateManager") -> None:
        self.client = client
        self.session = session
        self.schema = client.schema

    # ------------------------------------------------------------------ helpers
    def _category(self, key: str) -> DocumentCategory:
        try:
            category = self.schema.category(key)
        except KeyError as exc:
            raise ValidationError(f"Invalid document category: {key}") from exc
        if category.section not in self.session.sections:
            raise ValidationError(f"Document category {key} is not available in this session")
        return category

    def _base_path(self, category: str) -> str:
        record_id = self.session.record_id
        if not record_id or not self.session.is_ready:
            raise ValidationError("Load the record before managing its documents")
        return f"{self.schema.path_prefix}/{record_id}/documents/{category}"

    def existing_count(self, category: DocumentCategory) -> int:
        value = self.session.get_snapshot_value(category.section)
        if isinstance(value, dict):
            value = value.get(category.attachment_field)
        return len(value) if isinstance(value, list) else 0

    @staticmethod
    def _unwrap(response: httpx.Response, fallback: str) -> Dict[str, Any]:
        try:
            envelope = ApiEnvelope.model_validate(response.json())
        except ValueError:
            raise UpdateError(fallback, status_code=response.status_code)
        if not response.is_success or not envelope.success:
            raise UpdateError(envelope.describe(fallback), status_code=response.status_code)
        return envelope.data or {}

    # ------------------------------------------------------------------ API
    async def upload(self, category: str, paths: Sequence[Path | str]) -> LoadOutcome:
        """Upload ``paths`` into ``category`` and refresh the owning section."""

        spec = self._category(category)
        files = [Path(p) for p in paths]
        if not files:
            raise ValidationError("Select at least one file to upload")
        if self.existing_count(spec) + len(files) > spec.max_files:
            raise ValidationError(f"{spec.label} accepts at most {spec.max_files} file(s)")
        missing = [str(p) for p in files if not p.is_file()]
        if missing:
            raise ValidationError("Files not found: " + ", ".join(missing))

        parts = [
            ("files", (p.name, p.read_bytes(), mimetypes.guess_type(p.name)[0] or "application/octet-stream"))
            for p in files
        ]
        path = self._base_path(spec.key)
        logger.info("[documents] uploading %d file(s) to %s", len(files), path)
        try:
            with self.session.network_call():
                response = await self.client.http.post(path, files=parts)
        except httpx.HTTPError as exc:
            raise UpdateError(f"Failed to upload documents: {exc}") from exc
        data = self._unwrap(response, "Failed to upload documents")
        for problem in data.get("errors") or []:
            logger.warning("[documents] upload problem in %s: %s", spec.key, problem)
        return await self.session.reload_section(spec.section)

    async def delete(self, category: str, document_id: str) -> LoadOutcome:
        spec = self._category(category)
        path = f"{self._base_path(spec.key)}/{document_id}"
        logger.info("[documents] deleting %s", path)
        try:
            with self.session.network_call():
                response = await self.client.http.delete(path)
        except httpx.HTTPError as exc:
            raise UpdateError(f"Failed to delete document: {exc}") from exc
        self._unwrap(response, "Failed to delete document")
        return await self.session.reload_section(spec.section)

    async def download_url(self, category: str, document_id: str) -> DownloadLink:
        spec = self._category(category)
        path = f"{self._base_path(spec.key)}/{document_id}/download"
        try:
            response = await self.client.http.get(path)
        except httpx.HTTPError as exc:
            raise UpdateError(f"Failed to get download link: {exc}") from exc
        data = self._unwrap(response, "Failed to get download link")
        url = data.get("downloadUrl")
        if not url:
            raise UpdateError("Download link missing from response")
        return DownloadLink(
            url=url,
            file_name=data.get("fileName"),
            file_size=data.get("fileSize"),
            mime_type=data.get("mimeType"),
        )

    def missing_required(self) -> List[DocumentCategory]:
        """Return required categories of this session that have no files yet."""

        return [
            category
            for category in self.schema.document_categories
            if category.required and category.section in self.session.sections and not self.existing_count(category)
        ]


__all__ = ["DocumentChannel", "DownloadLink"]
