"""Audit trail recording for payroll runs."""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from payroll_runs.models import AuditEvent, PayrollRun


class AuditRecorder:
    """Adds audit events to the caller's transaction.

    Nothing is flushed here; the event commits or rolls back together with the
    change it describes.
    """

    ENTITY_TYPE = "payroll_run"

    def __init__(self, session: AsyncSession):
        self.session = session

    def record(
        self,
        run: PayrollRun,
        action: str,
        actor_user_id: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> AuditEvent:
        """Record an audit event for a payroll run action."""
        event = AuditEvent(
            company_id=run.company_id,
            actor_user_id=actor_user_id,
            entity_type=self.ENTITY_TYPE,
            entity_id=run.id,
            action=action,
            details_json=details,
        )
        self.session.add(event)
        return event
