# app/workflows/service.py

"""Transfer request workflow operations.

Every operation receives the acting user explicitly as an :class:`Actor`.
State changes, comments and audit rows are written inside one
:func:`atomic` block. Notifications go out only after the commit and
their failures are logged, never raised.
"""

from contextlib import contextmanager
from dataclasses import dataclass

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from app import notifications, socket_events
from app.errors import (
    WorkflowError, ValidationFailed, Unauthorized, Forbidden, NotFound, Conflict, Internal
)
from app.extensions import db
from app.models import (
    User, Role, Upload, RequestStatus, TransferRequest, TransferComment,
    TransferAttachment, AuditLog, AuditAction
)
from app.utils import create_audit_log, utcnow
from app.workflows.forms import (
    load_form, TransferRequestForm, ResubmitForm, ApproveForm,
    DecisionCommentForm, AssignManagerForm, ListQueryForm
)
from app.workflows.state_machine import (
    COMPLETING_STATES, COMPLETED_TAB_STATES, awaiting_statuses, resolve_gate
)


ENTITY_TYPE = TransferRequest.__name__


@dataclass(frozen=True)
class Actor:
    """The authenticated user performing an operation."""
    id: int
    role: Role

    def __post_init__(self):
        if self.id is None:
            raise Unauthorized()
        try:
            object.__setattr__(self, 'role', Role(self.role))
        except ValueError:
            raise Forbidden(f"Unknown role: {self.role}")

    @classmethod
    def from_user(cls, user):
        if user is None or not getattr(user, 'is_authenticated', False):
            raise Unauthorized()
        return cls(id=user.id, role=user.role)


@contextmanager
def atomic():
    """Run the enclosed reads and writes as one transaction.

    Commits on success. Any failure rolls back every write made inside
    the block before the error propagates.
    """
    try:
        yield db.session
        db.session.commit()
    except StaleDataError as exc:
        db.session.rollback()
        raise Conflict('Transfer request was modified by another user.') from exc
    except WorkflowError:
        db.session.rollback()
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception(f"DB error during workflow transaction: {exc}")
        raise Internal() from exc
    except Exception:
        db.session.rollback()
        raise


#######################################################################
#  HELPERS
#######################################################################

def _load_for_update(request_id):
    """Load a request and lock its row for the rest of the transaction."""
    try:
        request_id = int(request_id)
    except (TypeError, ValueError):
        raise NotFound()

    item = TransferRequest.query\
        .filter_by(id=request_id)\
        .with_for_update()\
        .populate_existing()\
        .first()
    if item is None:
        raise NotFound()
    return item


def _require_user(field, user_id, role):
    user = db.session.get(User, user_id)
    if user is None or not user.is_active or user.role != role.value:
        raise ValidationFailed(details={field: [f'Not an active {role.value}']})
    return user


def _require_uploads(upload_ids):
    """Check that every upload exists. None means "not provided"."""
    if upload_ids is None:
        return None
    upload_ids = list(dict.fromkeys(upload_ids))
    if not upload_ids:
        return []
    found = {u.id for u in Upload.query.filter(Upload.id.in_(upload_ids)).all()}
    missing = [uid for uid in upload_ids if uid not in found]
    if missing:
        raise ValidationFailed(details={
            'attachment_ids': [f"Unknown upload id(s): {', '.join(map(str, missing))}"]
        })
    return upload_ids


def _check_assigned_manager(item, actor):
    if item.manager_id is not None and item.manager_id != actor.id:
        raise Forbidden('Only the assigned manager can act on this request')


def _notify(item, recipient, subject, body_html):
    """Best-effort e-mail about ``item``.

    ``recipient`` is a User or a callable picking one from ``item``. The
    subject may use ``{title}`` and the body ``{name}``. Both are filled in,
    and the recipient resolved, inside the guard since after the commit
    they may need a fresh load.
    """
    try:
        user = recipient(item) if callable(recipient) else recipient
        if user is None or not user.email:
            return
        notifications.send_workflow_notification(
            user.email,
            subject.format(title=item.title),
            body_html.format(name=user.first_name or '')
        )
    except Exception as e:
        # the transition is already committed
        current_app.logger.warning(f"Workflow email send skipped: {e}")


def _after_commit(item, action, actor, from_status):
    to_status = item.status
    current_app.logger.info(
        f"Transfer request {item.id}: {action.value} by user {actor.id} "
        f"({from_status.value if from_status else '-'} -> {to_status})"
    )
    socket_events.notify_transfer_update(item.id, item.created_by_id, action.value, {
        'from_status': from_status.value if from_status else None,
        'status': to_status,
        'actor_id': actor.id
    })


def _owner(item):
    return item.created_by


def _manager_or_owner(item):
    return item.manager or item.created_by


def _supervisor(item):
    return item.supervisor


def _escape_like(text):
    """Make ``%`` and ``_`` match literally in a LIKE pattern."""
    return text.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


def _stage(role):
    return 'Supervisor' if role == Role.SUPERVISOR else 'Manager'


#######################################################################
#  TRANSITIONS
#######################################################################

def create_request(actor, data):
    """Create a transfer request directly in Submitted.

    Args:
        actor: Requesting user
        data: Mapping with title, from_location, to_location and the
            optional purpose, supervisor_id and attachment_ids

    Returns:
        TransferRequest: The new request
    """
    form = load_form(TransferRequestForm, data)
    supervisor = None
    if form.supervisor_id.data is not None:
        supervisor = _require_user('supervisor_id', form.supervisor_id.data, Role.SUPERVISOR)
    upload_ids = _require_uploads(form.attachment_ids.data) or []

    with atomic():
        item = TransferRequest(
            title=form.title.data,
            from_location=form.from_location.data,
            to_location=form.to_location.data,
            purpose=form.purpose.data or None,
            status=RequestStatus.SUBMITTED.value,
            submitted_at=utcnow(),
            created_by_id=actor.id,
            supervisor_id=supervisor.id if supervisor else None
        )
        item.attachments = [TransferAttachment(upload_id=uid) for uid in upload_ids]
        db.session.add(item)
        db.session.flush()

        create_audit_log(actor.id, AuditAction.CREATE, item, None, RequestStatus.SUBMITTED, data={
            'title': item.title,
            'from_location': item.from_location,
            'to_location': item.to_location,
            'supervisor_id': item.supervisor_id
        })

    _after_commit(item, AuditAction.CREATE, actor, None)
    _notify(
        item,
        supervisor,
        'New transfer request submitted: {title}',
        '<p>Hi {name},</p>'
        '<p>A new transfer request has been submitted and awaits your review.</p>'
    )
    return item


def _decide(actor, request_id, action, comment):
    """Move a request through one approval gate.

    Shared by approve, reject and request-changes. The status check and
    every write happen in the same transaction as the locked read.
    """
    with atomic():
        item = _load_for_update(request_id)
        from_status = item.status_enum
        target = resolve_gate(action, actor.role, from_status)
        if actor.role == Role.MANAGER:
            _check_assigned_manager(item, actor)

        item.status = target.value
        if target in COMPLETING_STATES:
            item.completed_at = utcnow()
        if comment:
            item.comments.append(TransferComment(
                author_id=actor.id,
                author_role=actor.role.value,
                body=comment
            ))
        create_audit_log(actor.id, action, item, from_status, target)

    _after_commit(item, action, actor, from_status)
    return item


def approve(actor, request_id, data=None):
    """Approve at the actor's gate. The comment is optional."""
    form = load_form(ApproveForm, data)
    item = _decide(actor, request_id, AuditAction.APPROVE, form.comment.data)

    if actor.role == Role.SUPERVISOR:
        # next party is the assigned manager, else the requester
        _notify(item, _manager_or_owner, '{title}: approved by Supervisor',
                '<p>A transfer request was approved by Supervisor.</p>')
    else:
        _notify(item, _owner, 'Transfer request approved by Manager',
                '<p>Your transfer request was approved by Manager.</p>')
    return item


def reject(actor, request_id, data=None):
    """Reject at the actor's gate. Terminal."""
    form = load_form(DecisionCommentForm, data)
    item = _decide(actor, request_id, AuditAction.REJECT, form.comment.data)
    _notify(item, _owner, f'Transfer request rejected by {_stage(actor.role)}',
            '<p>Your transfer request was rejected.</p>')
    return item


def request_changes(actor, request_id, data=None):
    """Send the request back to its owner for revision."""
    form = load_form(DecisionCommentForm, data)
    item = _decide(actor, request_id, AuditAction.REQUEST_CHANGES, form.comment.data)
    _notify(item, _owner, f'Changes requested by {_stage(actor.role)}',
            '<p>Changes were requested on your transfer request.</p>')
    return item


def resubmit(actor, request_id, data=None):
    """Revise a request after a change request and send it back to Submitted.

    The request always re-enters at the Supervisor gate, whichever gate
    asked for the changes. When ``attachment_ids`` is given the attachment
    set is replaced, otherwise it is left as it was.
    """
    form = load_form(ResubmitForm, data)
    upload_ids = _require_uploads(form.attachment_ids.data)

    with atomic():
        item = _load_for_update(request_id)
        if item.created_by_id != actor.id:
            raise Forbidden('Only the requester can resubmit')
        from_status = item.status_enum
        target = resolve_gate(AuditAction.RESUBMIT, actor.role, from_status)

        item.title = form.title.data
        item.from_location = form.from_location.data
        item.to_location = form.to_location.data
        item.purpose = form.purpose.data or None
        item.status = target.value
        item.submitted_at = utcnow()
        if upload_ids is not None:
            # delete-orphan cascade removes the previous links
            item.attachments = [TransferAttachment(upload_id=uid) for uid in upload_ids]

        create_audit_log(actor.id, AuditAction.RESUBMIT, item, from_status, target,
                         data={'attachment_ids': upload_ids} if upload_ids is not None else None)

    _after_commit(item, AuditAction.RESUBMIT, actor, from_status)
    _notify(item, _supervisor, 'Transfer request resubmitted: {title}',
            '<p>A transfer request was revised and awaits your review again.</p>')
    return item


def assign_manager(actor, request_id, data=None):
    """Bind a manager to the request without changing its status."""
    form = load_form(AssignManagerForm, data)
    manager = _require_user('manager_id', form.manager_id.data, Role.MANAGER)

    with atomic():
        item = _load_for_update(request_id)
        current = item.status_enum
        target = resolve_gate(AuditAction.ASSIGN_MANAGER, actor.role, current)

        item.manager_id = manager.id
        create_audit_log(actor.id, AuditAction.ASSIGN_MANAGER, item, current, target,
                         data={'manager_id': manager.id})

    _after_commit(item, AuditAction.ASSIGN_MANAGER, actor, current)
    _notify(item, manager, 'Transfer request assigned to you: {title}',
            '<p>You were assigned as the approving manager of a transfer request.</p>')
    return item


#######################################################################
#  QUERIES
#######################################################################

def get_request(actor, request_id):
    """Fetch one request. Requesters only see their own."""
    try:
        item = db.session.get(TransferRequest, int(request_id))
    except (TypeError, ValueError):
        item = None
    if item is None:
        raise NotFound()
    if actor.role == Role.USER and item.created_by_id != actor.id:
        raise NotFound()
    return item


def request_history(actor, request_id):
    """Audit rows of one request, oldest first."""
    item = get_request(actor, request_id)
    return AuditLog.query\
        .filter_by(entity_type=ENTITY_TYPE, entity_id=item.id)\
        .order_by(AuditLog.created_at.asc(), AuditLog.id.asc())\
        .all()


def list_requests(actor, query=None):
    """
    Role-scoped, paginated listing.
    Requesters see their own requests; approvers see everything and can
    narrow to what awaits them ('new') or finished requests ('completed').
    """
    # blank parameters fall back to their defaults
    query = {k: v for k, v in (query or {}).items() if v not in (None, '')}
    form = load_form(ListQueryForm, query)
    tab = form.tab.data

    q = TransferRequest.query
    statuses = None
    if actor.role == Role.USER:
        q = q.filter(TransferRequest.created_by_id == actor.id)
    elif actor.role in (Role.SUPERVISOR, Role.MANAGER):
        if tab == 'new':
            statuses = awaiting_statuses(actor.role)
        elif tab == 'completed':
            statuses = COMPLETED_TAB_STATES

    if form.search.data:
        search = f"%{_escape_like(form.search.data)}%"
        q = q.filter(db.or_(
            TransferRequest.title.ilike(search, escape='\\'),
            TransferRequest.from_location.ilike(search, escape='\\'),
            TransferRequest.to_location.ilike(search, escape='\\')
        ))

    # an explicit status overrides the tab
    if form.status.data:
        statuses = [RequestStatus(form.status.data)]
    if statuses is not None:
        q = q.filter(TransferRequest.status.in_([s.value for s in statuses]))

    return q.order_by(
        TransferRequest.created_at.desc(),
        TransferRequest.id.desc()
    ).paginate(
        page=form.page.data,
        per_page=form.limit.data,
        max_per_page=current_app.config.get('WORKFLOW_PAGE_SIZE_MAX', 100),
        error_out=False
    )


def list_approvers(role):
    """Active users who can be picked as supervisor or manager."""
    if role not in (Role.SUPERVISOR.value, Role.MANAGER.value):
        raise ValidationFailed('Invalid role', details={'role': ['Must be supervisor or manager']})
    return User.query\
        .filter_by(role=role, is_active=True)\
        .order_by(User.username)\
        .all()


def workflow_stats():
    """Counts of create/approve/reject events from the audit trail."""
    rows = db.session.query(AuditLog.action, db.func.count(AuditLog.id))\
        .filter(AuditLog.entity_type == ENTITY_TYPE)\
        .group_by(AuditLog.action)\
        .all()
    counts = dict(rows)
    return {
        'created': counts.get(AuditAction.CREATE.value, 0),
        'approved': counts.get(AuditAction.APPROVE.value, 0),
        'rejected': counts.get(AuditAction.REJECT.value, 0),
    }


def list_audit_logs(page=1, per_page=None, entity_id=None):
    """Audit trail, newest first."""
    q = AuditLog.query
    if entity_id is not None:
        q = q.filter_by(entity_type=ENTITY_TYPE, entity_id=entity_id)
    return q.order_by(
        AuditLog.created_at.desc(),
        AuditLog.id.desc()
    ).paginate(
        page=page,
        per_page=per_page or current_app.config.get('AUDIT_LOG_PAGE_SIZE', 50),
        error_out=False
    )
