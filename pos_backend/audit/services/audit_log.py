# audit/services/audit_log.py

"""
AUDIT SINK

log_action() writes one AuditLog row.

emit() is what the engine calls after a state transition. Delivery is
deferred until the surrounding transaction commits, so:
- a rolled-back operation leaves no audit entry
- a failing audit write can never roll back a committed sale/stock/debt
  change; the failure is logged with the full traceback instead
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.db import transaction

from audit.models import AuditLog

logger = logging.getLogger("audit")

Action = AuditLog.Action


def log_action(
    *,
    user_id,
    action: str,
    entity: str,
    entity_id,
    before=None,
    after=None,
    metadata=None,
) -> AuditLog:
    return AuditLog.objects.create(
        user_id=user_id,
        action=action,
        entity=entity,
        entity_id=str(entity_id),
        before_snapshot=before,
        after_snapshot=after,
        metadata=metadata or {},
    )


def emit(
    *,
    user,
    action: str,
    entity: str,
    entity_id,
    before=None,
    after=None,
    metadata=None,
) -> None:
    if not getattr(settings, "AUDIT_LOG_ENABLED", True):
        return

    user_id = getattr(user, "pk", None)

    def _deliver():
        try:
            log_action(
                user_id=user_id,
                action=action,
                entity=entity,
                entity_id=entity_id,
                before=before,
                after=after,
                metadata=metadata,
            )
        except Exception:
            logger.exception(
                "Audit log delivery failed",
                extra={"action": action, "entity": entity, "entity_id": str(entity_id)},
            )

    transaction.on_commit(_deliver)
