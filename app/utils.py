# app/utils.py

from datetime import datetime, timezone

from app.extensions import db


def utcnow():
    """Naive UTC timestamp, matching how the columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def create_audit_log(
    actor_id,
    action,
    entity,
    from_status,
    to_status,
    data=None
):
    """Create an audit trail entry for a workflow entity.

    The row is added to the current session and committed together with
    the change it describes.

    Args:
        actor_id: Id of the user performing the action
        action: AuditAction being recorded
        entity: Model instance the action applies to
        from_status: Status before the action (None on create)
        to_status: Status after the action
        data: Optional JSON-serialisable context

    Returns:
        AuditLog: The created log entry
    """
    from app.models.audit_log import AuditLog

    log = AuditLog(
        entity_type=type(entity).__name__,
        entity_id=entity.id,
        action=action,
        actor_id=actor_id,
        from_status=from_status,
        to_status=to_status,
        data=data
    )
    db.session.add(log)
    return log
