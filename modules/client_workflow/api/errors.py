"""Errors raised by persistence clients and the document side-channel."""

from __future__ import annotations

from typing import Mapping, Optional

from ..models.snapshot import RecordSnapshot


class LoadError(RuntimeError):
    """Raised when a record cannot be fetched."""

    def __init__(self, message: str, *, record_id: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.record_id = record_id
        self.status_code = status_code


class UpdateError(RuntimeError):
    """Raised when a section update is not (fully) committed.

    ``failed_sections`` maps each failed section to a reason.  ``None`` means
    the submission failed wholesale and nothing was committed; a mapping means
    the sections requested but not listed there were committed.  ``snapshot``
    is the authoritative record after a partial commit, when the server sends
    one back.
    """

    def __init__(
        self,
        message: str,
        *,
        failed_sections: Optional[Mapping[str, str]] = None,
        snapshot: Optional[RecordSnapshot] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.failed_sections = dict(failed_sections) if failed_sections is not None else None
        self.snapshot = snapshot
        self.status_code = status_code

    @property
    def wholesale(self) -> bool:
        return self.failed_sections is None


class ValidationError(RuntimeError):
    """Raised when a request is rejected before it reaches the network."""


__all__ = ["LoadError", "UpdateError", "ValidationError"]
