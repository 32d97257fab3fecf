from __future__ import annotations

from PySide6.QtCore import QObject, Signal


class AppSignals(QObject):
    """Global Qt signals for app-wide events.

    Panels can subscribe to these to stay in sync with application state.
    """

    clientChanged = Signal(str)  # emits the active client id
    userChanged = Signal(object, object)  # user_id, role
    # Emitted after any workflow section commit; provides record type and client id
    recordSaved = Signal(str, str)


# Global singleton instance
app_signals = AppSignals()


__all__ = ["app_signals", "AppSignals"]
