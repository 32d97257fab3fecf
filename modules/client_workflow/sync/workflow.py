"""One open workflow form: session, saver, guard and document channel."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..api.client import HttpPersistenceClient, PersistenceClient
from ..api.documents import DocumentChannel
from ..models.outcomes import LoadOutcome, SaveOutcome
from .coordinator import SaveCoordinator
from .guard import NavigationGuard
from .session import SessionStateManager


@dataclass
class WorkflowForm:
    session: SessionStateManager
    saver: SaveCoordinator
    guard: NavigationGuard
    documents: Optional[DocumentChannel] = None

    @classmethod
    def create(
        cls,
        session: SessionStateManager,
        initial_section: Optional[str] = None,
    ) -> "WorkflowForm":
        client: PersistenceClient = session.client
        documents = DocumentChannel(client, session) if isinstance(client, HttpPersistenceClient) else None
        return cls(
            session=session,
            saver=SaveCoordinator(session),
            guard=NavigationGuard(session, initial_section),
            documents=documents,
        )

    @property
    def signals(self):
        return self.session.signals

    async def open(self, record_id: str) -> LoadOutcome:
        return await self.session.load(record_id)

    async def save_current(self) -> SaveOutcome:
        return await self.saver.save_section(self.guard.current_section)

    async def save_and_switch(self, target: str) -> SaveOutcome:
        """Save every dirty section, then switch to ``target`` if nothing failed."""

        outcome = await self.saver.save_all()
        if outcome.ok and not self.session.is_dirty():
            self.guard.request_section_switch(target)
        return outcome

    async def aclose(self) -> None:
        close = getattr(self.session.client, "aclose", None)
        if close is not None:
            await close()


__all__ = ["WorkflowForm"]
