# app/models/__init__.py

from app.models.user import User, Role
from app.models.upload import Upload
from app.models.transfer_request import (
    RequestStatus, TransferRequest, TransferComment, TransferAttachment
)
from app.models.audit_log import AuditLog, AuditAction

__all__ = [
    'User', 'Role', 'Upload', 'RequestStatus', 'TransferRequest',
    'TransferComment', 'TransferAttachment', 'AuditLog', 'AuditAction'
]
