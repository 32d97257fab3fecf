from __future__ import annotations

import asyncio
import copy
import os
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pytest
import pytest_asyncio

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from modules.client_workflow.api.errors import LoadError, UpdateError  # noqa: E402
from modules.client_workflow.models.sections import CLIENT_ONBOARDING, RecordSchema  # noqa: E402
from modules.client_workflow.models.snapshot import RecordMetadata, RecordSnapshot  # noqa: E402
from modules.client_workflow.sync.coordinator import SaveCoordinator  # noqa: E402
from modules.client_workflow.sync.guard import NavigationGuard  # noqa: E402
from modules.client_workflow.sync.session import SessionStateManager  # noqa: E402


class FakePersistenceClient:
    """In-memory stand-in for the workflow API.

    ``hold`` keeps ``update`` suspended until released so tests can interleave
    edits with an in-flight save.  ``fail_update``/``fail_read`` inject errors
    for the next call; ``partial`` rejects the listed sections and commits the
    rest.
    """

    def __init__(self, records: Dict[str, Dict[str, Any]], *, updated_by: str = "server") -> None:
        self.records = copy.deepcopy(records)
        self.updated_by = updated_by
        self.reads: List[str] = []
        self.updates: List[Tuple[str, Dict[str, Any]]] = []
        self.fail_read: Optional[LoadError] = None
        self.fail_update: Optional[UpdateError] = None
        self.partial: Optional[Dict[str, str]] = None
        self.partial_returns_snapshot = True
        self.server_overrides: Dict[str, Any] = {}
        self.hold: Optional[asyncio.Event] = None
        self.update_started = asyncio.Event()
        self._version = 0

    def _snapshot(self, record_id: str) -> RecordSnapshot:
        self._version += 1
        return RecordSnapshot(
            metadata=RecordMetadata(
                record_id=record_id,
                updated_at=f"2024-01-01T00:00:{self._version:02d}Z",
                updated_by=self.updated_by,
            ),
            sections=self.records[record_id],
        )

    async def read(self, record_id: str) -> RecordSnapshot:
        self.reads.append(record_id)
        await asyncio.sleep(0)
        if self.fail_read is not None:
            error, self.fail_read = self.fail_read, None
            raise error
        if record_id not in self.records:
            raise LoadError("Client not found", record_id=record_id, status_code=404)
        return self._snapshot(record_id)

    async def update(self, record_id: str, payload: Mapping[str, Any]) -> RecordSnapshot:
        self.updates.append((record_id, copy.deepcopy(dict(payload))))
        self.update_started.set()
        if self.hold is not None:
            await self.hold.wait()
        else:
            await asyncio.sleep(0)
        if self.fail_update is not None:
            error, self.fail_update = self.fail_update, None
            raise error
        record = self.records[record_id]
        rejected = dict(self.partial or {})
        for section, value in payload.items():
            if section not in rejected:
                record[section] = copy.deepcopy(value)
        record.update(copy.deepcopy(self.server_overrides))
        if rejected:
            self.partial = None
            snapshot = self._snapshot(record_id) if self.partial_returns_snapshot else None
            raise UpdateError("Some sections failed", failed_sections=rejected, snapshot=snapshot)
        return self._snapshot(record_id)


def onboarding_record() -> Dict[str, Any]:
    return {
        "personalInfo": {"name": "Asha Verma", "phone1": "9800000001", "status": "discussion in progress"},
        "specialRequirements": {"nameTransferRequired": False, "loadEnhancementRequired": False},
        "dates": {"firstContactDate": "2024-01-02"},
        "paymentMode": "CASH",
        "plantDetails": {"summary": {"capacityKw": 3}, "solarPanels": [], "invertors": [], "otherItems": {}},
        "documents": {"aadhar": [], "panCard": []},
        "pricing": {"priceQuoted": 180000, "paymentLogs": []},
    }


@pytest.fixture
def schema() -> RecordSchema:
    return CLIENT_ONBOARDING


@pytest.fixture
def make_client():
    """Factory for extra fake clients: ``make_client({"C-1": record})``."""

    return FakePersistenceClient


@pytest.fixture
def record_factory():
    return onboarding_record


@pytest.fixture
def fake_client() -> FakePersistenceClient:
    return FakePersistenceClient({"C-100": onboarding_record(), "C-200": onboarding_record()})


@pytest.fixture
def session(schema: RecordSchema, fake_client: FakePersistenceClient) -> SessionStateManager:
    return SessionStateManager(schema, fake_client, role="admin")


@pytest_asyncio.fixture
async def loaded_session(session: SessionStateManager) -> SessionStateManager:
    outcome = await session.load("C-100")
    assert outcome.ok
    return session


@pytest.fixture
def saver(session: SessionStateManager) -> SaveCoordinator:
    return SaveCoordinator(session)


@pytest.fixture
def guard(session: SessionStateManager) -> NavigationGuard:
    return NavigationGuard(session)


@pytest.fixture
def recorded_signals(session: SessionStateManager) -> Dict[str, list]:
    seen: Dict[str, list] = {
        "dirty": [],
        "loaded": [],
        "load_failed": [],
        "save_started": [],
        "save_ok": [],
        "save_failed": [],
        "blocked": [],
        "section": [],
    }
    signals = session.signals
    signals.dirtySectionsChanged.connect(lambda sections: seen["dirty"].append(sections))
    signals.loadSucceeded.connect(lambda snapshot: seen["loaded"].append(snapshot))
    signals.loadFailed.connect(lambda record_id, reason: seen["load_failed"].append((record_id, reason)))
    signals.saveStarted.connect(lambda scope, sections: seen["save_started"].append((scope, sections)))
    signals.saveSucceeded.connect(lambda scope, outcome: seen["save_ok"].append((scope, outcome)))
    signals.saveFailed.connect(lambda scope, outcome: seen["save_failed"].append((scope, outcome)))
    signals.navigationBlocked.connect(lambda target: seen["blocked"].append(target))
    signals.sectionChanged.connect(lambda target: seen["section"].append(target))
    return seen
