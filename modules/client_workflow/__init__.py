"""Client workflow forms (onboarding, loan, site survey, DISCOM, bank/subsidy).

Each workflow step of a client is edited through a multi-tab form backed by a
:class:`~modules.client_workflow.sync.session.SessionStateManager`.  Import
here stays light: Qt widgets live under ``panels`` and are only pulled in by
the host application.
"""

from __future__ import annotations

import logging
from typing import Optional

from .api.client import HttpPersistenceClient, PersistenceClient
from .models.enums import RecordType
from .models.sections import get_schema
from .sync.session import SessionStateManager
from .sync.workflow import WorkflowForm

logger = logging.getLogger(__name__)

__all__ = ["RecordType", "WorkflowForm", "get_workflow_form", "resolve_client_id"]


def resolve_client_id(client_id: Optional[str] = None) -> str:
    """Return ``client_id`` or the active client tracked by :mod:`utils.state`."""

    if client_id:
        return str(client_id)
    from utils.state import AppState

    active = AppState.get_active_client()
    if not active:
        raise RuntimeError("Active client is not set. Select a client before opening its workflow.")
    return str(active)


def get_workflow_form(
    record_type: RecordType | str,
    *,
    role: Optional[str] = None,
    client: Optional[PersistenceClient] = None,
    initial_section: Optional[str] = None,
) -> WorkflowForm:
    """Build a form for ``record_type``.

    Parameters
    ----------
    record_type:
        Which workflow step to edit.
    role:
        Role of the editing user; defaults to the active role in
        :class:`utils.state.AppState`.  Admin-only sections are only declared
        for admins.
    client:
        Persistence client to use.  When omitted an HTTP client is built from
        :func:`utils.app_settings.load_api_settings`.
    """

    schema = get_schema(record_type)
    if role is None:
        from utils.state import AppState

        role = AppState.get_active_user_role()
    if client is None:
        from utils.app_settings import load_api_settings

        settings = load_api_settings()
        client = HttpPersistenceClient(
            schema,
            settings.base_url,
            token=settings.token,
            timeout=settings.timeout,
        )
    logger.debug("[session] opening %s form for role %s", schema.record_type.value, role)
    session = SessionStateManager(schema, client, role=role)
    return WorkflowForm.create(session, initial_section)
