"""Enumerations shared by the client workflow forms."""

from __future__ import annotations

from enum import Enum
from typing import Set


class _StrEnum(str, Enum):
    """Enum subclass that compares/serialises as its value."""

    def __str__(self) -> str:  # pragma: no cover - trivial
        return str(self.value)

    @classmethod
    def values(cls) -> Set[str]:
        return {member.value for member in cls}

    @classmethod
    def has_value(cls, value: str) -> bool:
        return value in cls.values()


class RecordType(_StrEnum):
    CLIENT_ONBOARDING = "CLIENT_ONBOARDING"
    LOAN_PROCESS = "LOAN_PROCESS"
    SITE_SURVEY = "SITE_SURVEY"
    DISCOM_PROCESS = "DISCOM_PROCESS"
    BANK_SUBSIDY = "BANK_SUBSIDY"


class SectionKind(_StrEnum):
    FIELDS = "FIELDS"
    DOCUMENTS = "DOCUMENTS"


class UserRole(_StrEnum):
    ADMIN = "admin"
    USER = "user"


class SwitchResult(_StrEnum):
    SWITCHED = "SWITCHED"
    BLOCKED = "BLOCKED"
    CANCELLED = "CANCELLED"


SAVE_ALL_SCOPE = "all"
