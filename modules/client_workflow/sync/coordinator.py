"""Save coordination for a :class:`SessionStateManager`.

Turns "save this section" and "save everything dirty" into one persistence
``update`` call and reconciles the result.  There is no automatic retry: a
failed save leaves every edit in place and the caller re-invokes when the
user asks to.  The caller must not start a second save for the same session
while one is in flight.
"""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet

from ..api.errors import UpdateError
from ..models.enums import SAVE_ALL_SCOPE
from ..models.outcomes import SaveOutcome, SaveRequest, failures_for
from .session import SessionStateManager
from .signals import safe_emit

logger = logging.getLogger(__name__)


class SaveCoordinator:
    def __init__(self, session: SessionStateManager) -> None:
        self.session = session

    @property
    def signals(self):
        return self.session.signals

    # ------------------------------------------------------------------ API
    async def save_section(self, section: str) -> SaveOutcome:
        """Submit ``section`` alone; a clean section never reaches the network."""

        if not self.session.is_ready:
            return SaveOutcome.rejected(section, "Session is not loaded")
        self.session.section_spec(section)
        if section not in self.session.dirty:
            logger.debug("[save] %s is clean; nothing to submit", section)
            return SaveOutcome.noop(section)
        request = self.session.build_save_request([section], scope=section)
        return await self._submit(request)

    async def save_all(self) -> SaveOutcome:
        """Submit every section dirty at call time in one request.

        Sections that become dirty while the request is in flight are not part
        of it and stay dirty afterwards.
        """

        if not self.session.is_ready:
            return SaveOutcome.rejected(SAVE_ALL_SCOPE, "Session is not loaded")
        targets = self.session.get_dirty_sections()
        if not targets:
            return SaveOutcome.noop(SAVE_ALL_SCOPE)
        request = self.session.build_save_request(targets, scope=SAVE_ALL_SCOPE)
        return await self._submit(request)

    # ------------------------------------------------------------------ internals
    async def _submit(self, request: SaveRequest) -> SaveOutcome:
        logger.info("[save] submitting %s for %s: %s", request.scope, request.record_id, sorted(request.sections))
        safe_emit(self.signals.saveStarted, request.scope, request.sections)
        try:
            with self.session.network_call():
                authoritative = await self.session.client.update(request.record_id, dict(request.payload))
        except UpdateError as exc:
            if not self.session.is_current(request):
                return self._discard(request)
            return self._handle_failure(request, exc)

        if not self.session.is_current(request):
            return self._discard(request)
        saved, still_dirty = self.session.reconcile(request, authoritative, request.sections)
        outcome = SaveOutcome(
            scope=request.scope,
            requested=request.sections,
            saved=saved,
            still_dirty=still_dirty,
            snapshot=self.session.snapshot,
        )
        logger.info("[save] %s", outcome.message)
        safe_emit(self.signals.saveSucceeded, request.scope, outcome)
        self._announce(saved)
        return outcome

    def _handle_failure(self, request: SaveRequest, exc: UpdateError) -> SaveOutcome:
        reason = str(exc) or "Failed to save data"
        if exc.wholesale:
            failed: Dict[str, str] = failures_for(request.sections, reason)
            saved: FrozenSet[str] = frozenset()
        else:
            failed = {
                section: why for section, why in (exc.failed_sections or {}).items() if section in request.sections
            }
            committed = request.sections - set(failed)
            saved, _ = self.session.reconcile(request, exc.snapshot, committed)

        still_dirty = frozenset(section for section in request.sections if section in self.session.dirty)
        outcome = SaveOutcome(
            scope=request.scope,
            requested=request.sections,
            saved=saved,
            failed=failed,
            still_dirty=still_dirty,
            snapshot=self.session.snapshot,
            error=reason if failed else None,
        )
        if outcome.ok:
            safe_emit(self.signals.saveSucceeded, request.scope, outcome)
        else:
            logger.warning("[save] %s for %s failed: %s", request.scope, request.record_id, failed)
            safe_emit(self.signals.saveFailed, request.scope, outcome)
        self._announce(saved)
        return outcome

    def _discard(self, request: SaveRequest) -> SaveOutcome:
        outcome = SaveOutcome.discarded(request)
        logger.info("[save] %s for %s arrived after a reload; not applied", request.scope, request.record_id)
        safe_emit(self.signals.saveFailed, request.scope, outcome)
        return outcome

    def _announce(self, saved: FrozenSet[str]) -> None:
        if not saved:
            return
        try:
            from utils.app_signals import app_signals

            app_signals.recordSaved.emit(self.session.schema.record_type.value, self.session.record_id or "")
        except Exception as e:
            logger.warning("[save] failed to emit recordSaved: %s", e)


__all__ = ["SaveCoordinator"]
