from __future__ import annotations

import logging

from PySide6.QtCore import QObject, Signal

logger = logging.getLogger(__name__)


class SessionSignals(QObject):
    """Qt signals describing state transitions of one editing session.

    The presentation layer subscribes to these instead of re-deriving state on
    every repaint.  ``scope`` arguments carry a section key or ``"all"``.
    """

    # frozenset of dirty section keys
    dirtySectionsChanged = Signal(object)
    # RecordSnapshot that was just loaded
    loadSucceeded = Signal(object)
    # record id, reason
    loadFailed = Signal(str, str)
    # scope, frozenset of sections being submitted
    saveStarted = Signal(str, object)
    # scope, SaveOutcome
    saveSucceeded = Signal(str, object)
    saveFailed = Signal(str, object)
    # pending target section, or "" for an exit request
    navigationBlocked = Signal(str)
    sectionChanged = Signal(str)


def safe_emit(signal, *args) -> None:
    """Emit ``signal`` without letting a broken slot abort a state transition."""

    try:
        signal.emit(*args)
    except Exception as exc:
        logger.warning("[session] failed to emit signal: %s", exc)


__all__ = ["SessionSignals", "safe_emit"]
