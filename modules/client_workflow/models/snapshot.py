"""Server snapshot and local edit buffer for one workflow record."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional


@dataclass(frozen=True, slots=True)
class RecordMetadata:
    record_id: str
    updated_at: Optional[str] = None
    updated_by: Optional[str] = None
    created_at: Optional[str] = None
    created_by: Optional[str] = None


@dataclass(frozen=True, slots=True)
class RecordSnapshot:
    """Last state of a record acknowledged by the persistence layer.

    Snapshots are never mutated; every change produces a new instance through
    :meth:`with_sections` or :meth:`with_metadata`.  Section values are deep
    copied on the way in so that no caller can alias them.
    """

    metadata: RecordMetadata
    sections: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        frozen = MappingProxyType({key: copy.deepcopy(value) for key, value in self.sections.items()})
        object.__setattr__(self, "sections", frozen)

    @property
    def record_id(self) -> str:
        return self.metadata.record_id

    @property
    def updated_at(self) -> Optional[str]:
        return self.metadata.updated_at

    @property
    def updated_by(self) -> Optional[str]:
        return self.metadata.updated_by

    def value(self, section: str) -> Any:
        """Return a private deep copy of ``section``'s value."""

        return copy.deepcopy(self.sections[section])

    def section_keys(self) -> Iterator[str]:
        return iter(self.sections.keys())

    def is_complete(self, declared: Iterable[str]) -> bool:
        return all(key in self.sections for key in declared)

    def with_sections(self, updates: Mapping[str, Any]) -> "RecordSnapshot":
        merged: Dict[str, Any] = dict(self.sections)
        merged.update(updates)
        return RecordSnapshot(metadata=self.metadata, sections=merged)

    def with_metadata(self, metadata: RecordMetadata) -> "RecordSnapshot":
        return replace(self, metadata=metadata)

    def restricted_to(self, declared: Iterable[str]) -> "RecordSnapshot":
        """Drop sections the session does not declare (e.g. role-hidden ones)."""

        keep = set(declared)
        return RecordSnapshot(
            metadata=self.metadata,
            sections={key: value for key, value in self.sections.items() if key in keep},
        )


class EditBuffer:
    """User-facing mutable copy of a snapshot.

    The buffer is the only structure the presentation layer reads and writes.
    It is never sent to the network as a whole; the save coordinator derives
    per-section payloads from it.
    """

    def __init__(self, values: Optional[Mapping[str, Any]] = None) -> None:
        self._values: Dict[str, Any] = {key: copy.deepcopy(value) for key, value in (values or {}).items()}

    @classmethod
    def from_snapshot(cls, snapshot: RecordSnapshot) -> "EditBuffer":
        return cls(snapshot.sections)

    def __contains__(self, section: object) -> bool:
        return section in self._values

    def keys(self) -> Iterable[str]:
        return self._values.keys()

    def get(self, section: str) -> Any:
        return copy.deepcopy(self._values[section])

    def set(self, section: str, value: Any) -> None:
        self._values[section] = copy.deepcopy(value)

    def merge(self, section: str, partial: Any) -> Any:
        """Shallow-merge ``partial`` into the section value and return the result.

        Only the top level of a mapping value is merged; nested structures in
        ``partial`` replace the existing ones wholesale.  Non-mapping values
        (a payment mode string, a list of files) are replaced outright.
        """

        current = self._values.get(section)
        if isinstance(current, Mapping) and isinstance(partial, Mapping):
            merged = dict(current)
            merged.update(copy.deepcopy(dict(partial)))
        else:
            merged = copy.deepcopy(partial)
        self._values[section] = merged
        return copy.deepcopy(merged)

    def as_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._values)


__all__ = ["EditBuffer", "RecordMetadata", "RecordSnapshot"]
