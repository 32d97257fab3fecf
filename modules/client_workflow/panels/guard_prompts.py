"""Qt glue between a :class:`NavigationGuard` and the widgets hosting a form."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from PySide6.QtCore import QEvent, QObject
from PySide6.QtWidgets import QMessageBox, QWidget

from ..models.enums import SwitchResult
from ..sync.guard import UNSAVED_CHANGES_WARNING, NavigationGuard

logger = logging.getLogger(__name__)

# Returns True when the user chooses to discard unsaved edits and continue.
DiscardPrompt = Callable[[Optional[QWidget], str], bool]


def ask_discard(parent: Optional[QWidget], text: str) -> bool:
    answer = QMessageBox.warning(
        parent,
        "Unsaved Changes",
        text,
        QMessageBox.Discard | QMessageBox.Cancel,
        QMessageBox.Cancel,
    )
    return answer == QMessageBox.Discard


class ExitGuardFilter(QObject):
    """Event filter that vetoes closing a widget while edits are unsaved."""

    def __init__(
        self,
        guard: NavigationGuard,
        prompt: Optional[DiscardPrompt] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self.guard = guard
        self._prompt = prompt or ask_discard

    def install(self, widget: QWidget) -> "ExitGuardFilter":
        widget.installEventFilter(self)
        return self

    def eventFilter(self, watched: QObject, event: QEvent) -> bool:  # type: ignore[override]
        if event.type() != QEvent.Close:
            return False
        if self.guard.request_exit():
            return False
        parent = watched if isinstance(watched, QWidget) else None
        if self._prompt(parent, UNSAVED_CHANGES_WARNING):
            logger.info("[guard] closing with unsaved sections discarded")
            return False
        event.ignore()
        return True


def confirm_section_switch(
    parent: Optional[QWidget],
    guard: NavigationGuard,
    target: str,
    prompt: Optional[DiscardPrompt] = None,
) -> bool:
    """Run the section-switch protocol with a modal confirmation.

    Returns True when the guard ends up on ``target``.
    """

    result = guard.request_section_switch(target)
    if result == SwitchResult.SWITCHED:
        return True
    text = f"{guard.dirty_summary()}. Switching tabs keeps them unsaved. Continue?"
    if (prompt or ask_discard)(parent, text):
        return guard.confirm_switch() == SwitchResult.SWITCHED
    guard.cancel_switch()
    return False


__all__ = ["DiscardPrompt", "ExitGuardFilter", "ask_discard", "confirm_section_switch"]
