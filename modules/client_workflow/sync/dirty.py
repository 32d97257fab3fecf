"""Dirty-section bookkeeping for one editing session."""

from __future__ import annotations

from typing import Dict, FrozenSet, Iterable


class DirtySectionTracker:
    """Set of sections edited since their last successful save.

    Every mark bumps a per-section revision counter.  A save captures the
    revisions it submitted and may only clear a section whose revision has not
    moved since, so an edit that lands while a request is in flight keeps the
    section dirty.
    """

    def __init__(self) -> None:
        self._dirty: set[str] = set()
        self._revisions: Dict[str, int] = {}

    def __contains__(self, section: object) -> bool:
        return section in self._dirty

    def __len__(self) -> int:
        return len(self._dirty)

    def __bool__(self) -> bool:
        return bool(self._dirty)

    def sections(self) -> FrozenSet[str]:
        return frozenset(self._dirty)

    def revision(self, section: str) -> int:
        return self._revisions.get(section, 0)

    def capture(self, sections: Iterable[str]) -> Dict[str, int]:
        return {section: self.revision(section) for section in sections}

    def mark(self, section: str) -> bool:
        """Mark ``section`` dirty; return True when the set grew."""

        self._revisions[section] = self.revision(section) + 1
        if section in self._dirty:
            return False
        self._dirty.add(section)
        return True

    def clear_if_unchanged(self, section: str, revision: int) -> bool:
        """Clear ``section`` when no edit arrived after ``revision``."""

        if self.revision(section) != revision:
            return False
        self._dirty.discard(section)
        return True

    def discard(self, section: str) -> bool:
        if section not in self._dirty:
            return False
        self._dirty.discard(section)
        self._revisions[section] = self.revision(section) + 1
        return True

    def reset(self) -> None:
        self._dirty.clear()
        self._revisions.clear()


__all__ = ["DirtySectionTracker"]
