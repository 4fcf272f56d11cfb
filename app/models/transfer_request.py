# app/models/transfer_request.py

from enum import Enum

from sqlalchemy import event
from sqlalchemy.exc import InvalidRequestError
from sqlalchemy.orm import validates
from app.extensions import db
from app.utils import utcnow


class RequestStatus(str, Enum):
    """Lifecycle states of a transfer request."""
    DRAFT = 'Draft'  # kept for completeness, nothing creates drafts yet
    SUBMITTED = 'Submitted'
    SUPERVISOR_APPROVED = 'SupervisorApproved'
    SUPERVISOR_CHANGES_REQUESTED = 'SupervisorChangesRequested'
    SUPERVISOR_REJECTED = 'SupervisorRejected'
    MANAGER_APPROVED = 'ManagerApproved'
    MANAGER_CHANGES_REQUESTED = 'ManagerChangesRequested'
    MANAGER_REJECTED = 'ManagerRejected'


class TransferRequest(db.Model):
    __tablename__ = 'transfer_request'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    from_location = db.Column(db.String(200), nullable=False)
    to_location = db.Column(db.String(200), nullable=False)
    purpose = db.Column(db.Text)
    status = db.Column(
        db.String(40),
        nullable=False,
        index=True,
        default=RequestStatus.SUBMITTED.value
    )

    created_by_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    supervisor_id = db.Column(db.Integer, db.ForeignKey('user.id'))
    manager_id = db.Column(db.Integer, db.ForeignKey('user.id'))

    submitted_at = db.Column(db.DateTime)
    completed_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    # Optimistic concurrency: a flush against a row changed by another
    # transaction raises StaleDataError
    version_id = db.Column(db.Integer, nullable=False, default=0)
    __mapper_args__ = {
        'version_id_col': version_id
    }

    created_by = db.relationship('User', foreign_keys=[created_by_id])
    supervisor = db.relationship('User', foreign_keys=[supervisor_id])
    manager = db.relationship('User', foreign_keys=[manager_id])

    comments = db.relationship(
        'TransferComment',
        backref='request',
        cascade='all, delete-orphan',
        order_by='[TransferComment.created_at, TransferComment.id]'
    )
    attachments = db.relationship(
        'TransferAttachment',
        backref='request',
        cascade='all, delete-orphan',
        order_by='TransferAttachment.id'
    )

    @validates('status')
    def validate_status(self, key, value):
        try:
            return RequestStatus(value).value
        except ValueError:
            raise ValueError(f"Invalid transfer request status: {value}")

    @validates('title', 'from_location', 'to_location')
    def validate_required_text(self, key, value):
        if not value or not value.strip():
            raise ValueError(f"{key} cannot be empty")
        return value.strip()

    @property
    def status_enum(self):
        return RequestStatus(self.status)

    def to_summary(self):
        """Fields shown in list views."""
        return {
            'id': self.id,
            'title': self.title,
            'from_location': self.from_location,
            'to_location': self.to_location,
            'status': self.status,
            'created_at': _iso(self.created_at),
            'submitted_at': _iso(self.submitted_at),
            'completed_at': _iso(self.completed_at),
        }

    def to_dict(self):
        data = self.to_summary()
        data.update({
            'purpose': self.purpose,
            'created_by_id': self.created_by_id,
            'supervisor_id': self.supervisor_id,
            'manager_id': self.manager_id,
            'comments': [c.to_dict() for c in self.comments],
            'attachments': [a.to_dict() for a in self.attachments],
        })
        return data

    def __repr__(self):
        return f'<TransferRequest {self.id} {self.status}>'


class TransferComment(db.Model):
    """Comment left by an approver. Never edited after creation."""
    __tablename__ = 'transfer_comment'

    id = db.Column(db.Integer, primary_key=True)
    request_id = db.Column(db.Integer, db.ForeignKey('transfer_request.id'), nullable=False, index=True)
    author_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    # Role at the time of writing, not a live reference
    author_role = db.Column(db.String(20), nullable=False)
    body = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    author = db.relationship('User')

    def to_dict(self):
        return {
            'id': self.id,
            'body': self.body,
            'author_id': self.author_id,
            'author_role': self.author_role,
            'author_name': self.author.display_name if self.author else None,
            'created_at': _iso(self.created_at),
        }

    def __repr__(self):
        return f'<TransferComment {self.id} on {self.request_id}>'


class TransferAttachment(db.Model):
    __tablename__ = 'transfer_attachment'

    id = db.Column(db.Integer, primary_key=True)
    request_id = db.Column(db.Integer, db.ForeignKey('transfer_request.id'), nullable=False, index=True)
    upload_id = db.Column(db.Integer, db.ForeignKey('upload.id'), nullable=False)
    label = db.Column(db.String(200))

    upload = db.relationship('Upload')

    def to_dict(self):
        return {
            'id': self.id,
            'label': self.label,
            'upload': self.upload.to_dict() if self.upload else {'id': self.upload_id},
        }


def _iso(value):
    return value.isoformat() if value else None


@event.listens_for(TransferComment, 'before_update')
def prevent_comment_edit(mapper, connection, target):
    """Comments are immutable once written."""
    raise InvalidRequestError(f"{target!r} is immutable")
