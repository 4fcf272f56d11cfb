# app/models/audit_log.py

from enum import Enum

from sqlalchemy import event
from sqlalchemy.exc import InvalidRequestError
from app.extensions import db
from app.utils import utcnow


class AuditAction(str, Enum):
    CREATE = 'Create'
    APPROVE = 'Approve'
    REJECT = 'Reject'
    REQUEST_CHANGES = 'RequestChanges'
    ASSIGN_MANAGER = 'AssignManager'
    RESUBMIT = 'Resubmit'


class AuditLog(db.Model):
    """Append-only record of who did what to an entity and when.

    Rows reference the entity by type and id only, so they survive
    independently of the entity they describe.
    """
    __tablename__ = 'audit_log'

    id = db.Column(db.Integer, primary_key=True)
    entity_type = db.Column(db.String(50), nullable=False)
    entity_id = db.Column(db.Integer, nullable=False)
    action = db.Column(db.String(30), nullable=False)
    actor_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    from_status = db.Column(db.String(40))
    to_status = db.Column(db.String(40))
    data = db.Column(db.JSON)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    actor = db.relationship('User')

    __table_args__ = (
        db.Index('ix_audit_log_entity', 'entity_type', 'entity_id'),
    )

    def __init__(self, **kwargs):
        action = kwargs.get('action')
        if isinstance(action, AuditAction):
            kwargs['action'] = action.value
        for key in ('from_status', 'to_status'):
            if isinstance(kwargs.get(key), Enum):
                kwargs[key] = kwargs[key].value
        super().__init__(**kwargs)

    def to_dict(self):
        return {
            'id': self.id,
            'entity_type': self.entity_type,
            'entity_id': self.entity_id,
            'action': self.action,
            'actor_id': self.actor_id,
            'from_status': self.from_status,
            'to_status': self.to_status,
            'data': self.data,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<AuditLog {self.action} {self.entity_type}:{self.entity_id}>'


@event.listens_for(AuditLog, 'before_update')
@event.listens_for(AuditLog, 'before_delete')
def prevent_audit_mutation(mapper, connection, target):
    """Audit rows are append-only."""
    raise InvalidRequestError(f"{target!r} is immutable")
