"""Audit log helpers."""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from gusto.core.security import Principal
from gusto.models import AuditLog


def log_action(
    db: Session,
    *,
    actor: Principal | None,
    action_type: str,
    order_id: int | None = None,
    service_id: int | None = None,
    before_snapshot: dict[str, Any] | None = None,
    after_snapshot: dict[str, Any] | None = None,
) -> None:
    actor_role = "system"
    actor_id = None
    if actor is not None:
        actor_role = actor.role
        actor_id = actor.subject_id

    db.add(
        AuditLog(
            actor_role=actor_role,
            actor_id=actor_id,
            action_type=action_type,
            order_id=order_id,
            service_id=service_id,
            before_snapshot=before_snapshot,
            after_snapshot=after_snapshot,
        )
    )
