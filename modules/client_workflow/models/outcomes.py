"""Save requests and the discriminated outcomes returned by the engine."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Mapping, Optional

from .enums import SAVE_ALL_SCOPE
from .snapshot import RecordSnapshot


@dataclass(frozen=True, slots=True)
class SaveRequest:
    """Per-section payload built from the edit buffer at one instant.

    ``revisions`` records the edit revision of every included section when the
    request was built, so reconciliation can tell whether a section was edited
    again while the request was in flight.  ``generation`` identifies the load
    the request was built against; a reload in between makes it stale.
    """

    record_id: str
    scope: str
    payload: Mapping[str, Any]
    revisions: Mapping[str, int] = field(default_factory=dict)
    generation: int = 0

    @property
    def sections(self) -> FrozenSet[str]:
        return frozenset(self.payload.keys())

    def is_empty(self) -> bool:
        return not self.payload

    def submitted_value(self, section: str) -> Any:
        return copy.deepcopy(self.payload[section])


@dataclass(frozen=True, slots=True)
class SaveOutcome:
    scope: str
    requested: FrozenSet[str] = frozenset()
    saved: FrozenSet[str] = frozenset()
    failed: Mapping[str, str] = field(default_factory=dict)
    still_dirty: FrozenSet[str] = frozenset()
    snapshot: Optional[RecordSnapshot] = None
    error: Optional[str] = None
    submitted: bool = True
    # Result arrived after a reload or record switch and was not applied.
    superseded: bool = False

    @property
    def ok(self) -> bool:
        return not self.failed and self.error is None and not self.superseded

    @property
    def partial(self) -> bool:
        return bool(self.saved) and bool(self.failed)

    @property
    def message(self) -> str:
        if self.ok:
            if self.scope == SAVE_ALL_SCOPE:
                return "All changes saved successfully"
            return f"{self.scope} saved successfully"
        if self.partial:
            return "Saved {saved}; failed to save {failed}".format(
                saved=", ".join(sorted(self.saved)),
                failed=", ".join(sorted(self.failed)),
            )
        return self.error or "Failed to save data"

    @classmethod
    def noop(cls, scope: str) -> "SaveOutcome":
        return cls(scope=scope, submitted=False)

    @classmethod
    def rejected(cls, scope: str, reason: str) -> "SaveOutcome":
        return cls(scope=scope, error=reason, submitted=False)

    @classmethod
    def discarded(cls, request: SaveRequest) -> "SaveOutcome":
        return cls(
            scope=request.scope,
            requested=request.sections,
            error="The record was reloaded before the save completed; the result was not applied",
            superseded=True,
        )


@dataclass(frozen=True, slots=True)
class LoadOutcome:
    record_id: str
    snapshot: Optional[RecordSnapshot] = None
    error: Optional[str] = None
    superseded: bool = False

    @property
    def ok(self) -> bool:
        return self.snapshot is not None and self.error is None and not self.superseded


def failures_for(sections: FrozenSet[str], reason: str) -> Dict[str, str]:
    """Mark every section in ``sections`` as failed with the same ``reason``."""

    return {section: reason for section in sorted(sections)}


__all__ = ["LoadOutcome", "SaveOutcome", "SaveRequest", "failures_for"]
