"""Navigation guard: keeps unsaved edits from being dropped silently.

The guard only blocks or permits transitions.  It never saves; "save then
switch" is composed by the caller from a save followed by a switch.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..models.enums import SwitchResult
from .session import SessionStateManager
from .signals import safe_emit

logger = logging.getLogger(__name__)

UNSAVED_CHANGES_WARNING = "You have unsaved changes. Are you sure you want to leave?"


class NavigationGuard:
    def __init__(self, session: SessionStateManager, initial_section: Optional[str] = None) -> None:
        self.session = session
        sections = session.sections
        if initial_section is None:
            initial_section = sections[0] if sections else ""
        elif initial_section not in sections:
            raise KeyError(f"Section not available in this session: {initial_section}")
        self._current = initial_section
        self._pending: Optional[str] = None

    @property
    def current_section(self) -> str:
        return self._current

    @property
    def pending_target(self) -> Optional[str]:
        return self._pending

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def dirty_summary(self) -> str:
        count = len(self.session.get_dirty_sections())
        if not count:
            return ""
        return f"You have unsaved changes in {count} section{'s' if count > 1 else ''}"

    # ------------------------------------------------------------------ switching
    def request_section_switch(self, target: str) -> SwitchResult:
        """Switch to ``target`` now, or hold it pending confirmation.

        While any section is dirty the switch is blocked and ``target`` is kept
        as the pending destination until :meth:`confirm_switch` or
        :meth:`cancel_switch` is called.
        """

        if target not in self.session.sections:
            raise KeyError(f"Section not available in this session: {target}")
        if target == self._current:
            self._pending = None
            return SwitchResult.SWITCHED
        if not self.session.is_dirty():
            self._switch(target)
            return SwitchResult.SWITCHED

        self._pending = target
        logger.debug("[guard] switch to %s blocked; dirty=%s", target, sorted(self.session.get_dirty_sections()))
        safe_emit(self.session.signals.navigationBlocked, target)
        return SwitchResult.BLOCKED

    def confirm_switch(self) -> SwitchResult:
        """Discard-and-continue: perform the pending switch without saving.

        The buffer and dirty set are left alone, so switching back shows the
        unsaved edits again.
        """

        if self._pending is None:
            return SwitchResult.CANCELLED
        target, self._pending = self._pending, None
        self._switch(target)
        return SwitchResult.SWITCHED

    def cancel_switch(self) -> SwitchResult:
        self._pending = None
        return SwitchResult.CANCELLED

    def _switch(self, target: str) -> None:
        self._current = target
        self._pending = None
        safe_emit(self.session.signals.sectionChanged, target)

    # ------------------------------------------------------------------ exit
    def request_exit(self) -> bool:
        """Return False to veto tearing the session down while edits are unsaved."""

        if not self.session.is_dirty():
            return True
        logger.info("[guard] exit vetoed with unsaved sections %s", sorted(self.session.get_dirty_sections()))
        safe_emit(self.session.signals.navigationBlocked, "")
        return False


__all__ = ["NavigationGuard", "UNSAVED_CHANGES_WARNING"]
