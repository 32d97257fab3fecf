"""Session state for one multi-section workflow record.

A :class:`SessionStateManager` owns the snapshot / edit buffer / dirty set
triple of exactly one record and is the only legal way to change it.  All
methods run on the event loop thread; the awaited persistence calls inside
:meth:`load` and :meth:`reload_section` are the only suspension points.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, FrozenSet, Iterable, Iterator, Mapping, Optional, Tuple

from ..api.client import PersistenceClient
from ..api.errors import LoadError
from ..models.outcomes import LoadOutcome, SaveRequest
from ..models.sections import RecordSchema, SectionSpec
from ..models.snapshot import EditBuffer, RecordSnapshot
from .dirty import DirtySectionTracker
from .signals import SessionSignals, safe_emit

logger = logging.getLogger(__name__)


class SessionStateManager:
    def __init__(
        self,
        schema: RecordSchema,
        client: PersistenceClient,
        *,
        role: Optional[str] = None,
        signals: Optional[SessionSignals] = None,
    ) -> None:
        self.schema = schema
        self.client = client
        self.role = role
        self.signals = signals if signals is not None else SessionSignals()
        self.dirty = DirtySectionTracker()
        self._sections: Tuple[str, ...] = tuple(schema.section_keys(role))
        self._record_id: Optional[str] = None
        self._snapshot: Optional[RecordSnapshot] = None
        self._buffer: Optional[EditBuffer] = None
        self._generation = 0
        self._in_flight = 0

    # ------------------------------------------------------------------ state
    @property
    def record_id(self) -> Optional[str]:
        return self._record_id

    @property
    def sections(self) -> Tuple[str, ...]:
        """Section keys declared for this session, in tab order."""

        return self._sections

    @property
    def snapshot(self) -> Optional[RecordSnapshot]:
        return self._snapshot

    @property
    def is_ready(self) -> bool:
        return self._snapshot is not None and self._buffer is not None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def in_flight(self) -> int:
        """Number of network calls currently awaited for this session."""

        return self._in_flight

    @contextmanager
    def network_call(self) -> Iterator[None]:
        self._in_flight += 1
        try:
            yield
        finally:
            self._in_flight -= 1

    # ------------------------------------------------------------------ loading
    async def load(self, record_id: str) -> LoadOutcome:
        """Fetch ``record_id`` and seed the edit buffer from it.

        A failed fetch leaves the session not ready; nothing from a previous
        record survives.  When another ``load`` starts before this one
        completes, this completion is discarded.
        """

        record_id = str(record_id)
        self._generation += 1
        generation = self._generation
        if record_id != self._record_id:
            self._discard_state()
        self._record_id = record_id
        logger.info("[session] loading %s %s", self.schema.record_type.value, record_id)

        try:
            with self.network_call():
                fetched = await self.client.read(record_id)
        except LoadError as exc:
            if generation != self._generation:
                logger.debug("[session] ignoring failure of superseded load %s", record_id)
                return LoadOutcome(record_id=record_id, error=str(exc), superseded=True)
            return self._fail_load(record_id, str(exc))

        if generation != self._generation:
            logger.debug("[session] ignoring superseded load of %s", record_id)
            return LoadOutcome(record_id=record_id, snapshot=fetched, superseded=True)

        snapshot = fetched.restricted_to(self._sections)
        if not snapshot.is_complete(self._sections):
            missing = sorted(set(self._sections) - set(snapshot.section_keys()))
            return self._fail_load(record_id, "Incomplete record, missing: " + ", ".join(missing))

        was_dirty = bool(self.dirty)
        self._snapshot = snapshot
        self._buffer = EditBuffer.from_snapshot(snapshot)
        self.dirty.reset()
        if was_dirty:
            safe_emit(self.signals.dirtySectionsChanged, frozenset())
        safe_emit(self.signals.loadSucceeded, snapshot)
        return LoadOutcome(record_id=record_id, snapshot=snapshot)

    async def reload_section(self, section: str) -> LoadOutcome:
        """Refresh the record after an out-of-band commit to ``section``.

        The snapshot is replaced wholesale.  ``section``'s buffer value is reset
        when it carries no unsaved edits; otherwise only its attachment lists
        are refreshed and the edited fields are kept.  Every other buffer value
        and the dirty set stay as they are.
        """

        self._require_ready()
        self._require_declared(section)
        record_id = self._record_id or ""
        generation = self._generation
        try:
            with self.network_call():
                fetched = await self.client.read(record_id)
        except LoadError as exc:
            logger.warning("[session] refresh of %s/%s failed: %s", record_id, section, exc)
            safe_emit(self.signals.loadFailed, record_id, str(exc))
            return LoadOutcome(record_id=record_id, error=str(exc))

        if generation != self._generation or not self.is_ready:
            return LoadOutcome(record_id=record_id, snapshot=fetched, superseded=True)

        self._snapshot = self._merge_authoritative(fetched)
        if section not in self.dirty:
            self._buffer.set(section, self._snapshot.value(section))
        else:
            self._buffer.set(section, self._with_attachments(section, self._buffer.get(section)))
        safe_emit(self.signals.loadSucceeded, self._snapshot)
        return LoadOutcome(record_id=record_id, snapshot=self._snapshot)

    def _fail_load(self, record_id: str, reason: str) -> LoadOutcome:
        logger.warning("[session] load of %s failed: %s", record_id, reason)
        self._discard_state()
        safe_emit(self.signals.loadFailed, record_id, reason)
        return LoadOutcome(record_id=record_id, error=reason)

    def _discard_state(self) -> None:
        was_dirty = bool(self.dirty)
        self._snapshot = None
        self._buffer = None
        self.dirty.reset()
        if was_dirty:
            safe_emit(self.signals.dirtySectionsChanged, frozenset())

    # ------------------------------------------------------------------ edits
    def apply_section_patch(self, section: str, partial: Any) -> Any:
        """Shallow-merge ``partial`` into the buffer value of ``section``.

        The section is marked dirty unconditionally; no equality check is made
        against the snapshot.  Returns the merged value.
        """

        self._require_ready()
        self._require_editable(section)
        merged = self._buffer.merge(section, partial)
        if self.dirty.mark(section):
            logger.debug("[session] %s is now dirty", section)
            safe_emit(self.signals.dirtySectionsChanged, self.dirty.sections())
        return merged

    def discard_section_changes(self, section: str) -> None:
        """Drop unsaved edits of ``section`` and restore the snapshot value."""

        self._require_ready()
        self._require_editable(section)
        self._buffer.set(section, self._snapshot.value(section))
        if self.dirty.discard(section):
            logger.debug("[session] discarded edits of %s", section)
            safe_emit(self.signals.dirtySectionsChanged, self.dirty.sections())

    # ------------------------------------------------------------------ reads
    def get_buffer_value(self, section: str) -> Any:
        self._require_ready()
        self._require_declared(section)
        return self._buffer.get(section)

    def get_snapshot_value(self, section: str) -> Any:
        self._require_ready()
        self._require_declared(section)
        return self._snapshot.value(section)

    def get_dirty_sections(self) -> FrozenSet[str]:
        return self.dirty.sections()

    def is_dirty(self, section: Optional[str] = None) -> bool:
        if section is None:
            return bool(self.dirty)
        return section in self.dirty

    def section_spec(self, section: str) -> SectionSpec:
        self._require_declared(section)
        return self.schema.section(section)

    # ------------------------------------------------------------ save support
    def build_save_request(self, sections: Iterable[str], scope: str) -> SaveRequest:
        """Capture the buffer values and edit revisions of ``sections`` now."""

        self._require_ready()
        targets = sorted(set(sections))
        for section in targets:
            self._require_editable(section)
        return SaveRequest(
            record_id=self._record_id or "",
            scope=scope,
            payload={section: self._with_attachments(section, self._buffer.get(section)) for section in targets},
            revisions=self.dirty.capture(targets),
            generation=self._generation,
        )

    def is_current(self, request: SaveRequest) -> bool:
        """True while ``request`` still targets the loaded state it was built from."""

        return self.is_ready and request.generation == self._generation and request.record_id == self._record_id

    def reconcile(
        self,
        request: SaveRequest,
        authoritative: Optional[RecordSnapshot],
        committed: Iterable[str],
    ) -> Tuple[FrozenSet[str], FrozenSet[str]]:
        """Fold a save result back into snapshot, buffer and dirty set.

        ``committed`` are the requested sections the server accepted.  When
        ``authoritative`` is given the snapshot takes its values for every
        declared section; otherwise committed sections take the submitted
        values.  A committed section is cleaned (and its buffer reset to the
        snapshot value) only if it was not edited again after the request was
        built.  Buffer values of sections outside the request are never
        touched.

        Returns ``(saved, still_dirty)`` restricted to the requested sections.
        """

        if not self.is_current(request):
            logger.info("[save] dropping result for superseded session state of %s", request.record_id)
            return frozenset(), frozenset()

        accepted = set(committed) & request.sections
        if authoritative is not None:
            self._snapshot = self._merge_authoritative(authoritative)
        elif accepted:
            self._snapshot = self._snapshot.with_sections(
                {section: request.submitted_value(section) for section in accepted}
            )

        before = self.dirty.sections()
        saved = set()
        for section in sorted(accepted):
            cleared = self.dirty.clear_if_unchanged(section, request.revisions.get(section, 0))
            if cleared or section not in self.dirty:
                self._buffer.set(section, self._snapshot.value(section))
                saved.add(section)
            else:
                logger.info("[save] %s was edited during the save and stays dirty", section)

        after = self.dirty.sections()
        if after != before:
            safe_emit(self.signals.dirtySectionsChanged, after)
        still_dirty = frozenset(section for section in request.sections if section in self.dirty)
        return frozenset(saved), still_dirty

    def _merge_authoritative(self, authoritative: RecordSnapshot) -> RecordSnapshot:
        updates = {key: value for key, value in authoritative.sections.items() if key in self._sections}
        return self._snapshot.with_sections(updates).with_metadata(authoritative.metadata)

    def _with_attachments(self, section: str, value: Any) -> Any:
        """Return ``value`` with its attachment lists taken from the snapshot.

        Attachment lists are committed by the document channel only; the
        snapshot holds their latest known state.
        """

        fields = self.schema.attachment_fields(section)
        current = self._snapshot.value(section) if fields else None
        if not isinstance(value, Mapping) or not isinstance(current, Mapping):
            return value
        merged = dict(value)
        for name in fields:
            if name in current:
                merged[name] = current[name]
            else:
                merged.pop(name, None)
        return merged

    # ------------------------------------------------------------------ guards
    def _require_ready(self) -> None:
        if not self.is_ready:
            raise RuntimeError("Session is not loaded")

    def _require_declared(self, section: str) -> None:
        if section not in self._sections:
            raise KeyError(f"Section not available in this session: {section}")

    def _require_editable(self, section: str) -> None:
        self._require_declared(section)
        if not self.schema.section(section).editable:
            raise ValueError(f"Section {section} holds attachments; use the document channel")


__all__ = ["SessionStateManager"]
