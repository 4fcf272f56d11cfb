import pytest
from sqlalchemy.exc import InvalidRequestError
from app.models import (
    User, TransferRequest, TransferComment, TransferAttachment, AuditLog,
    AuditAction, RequestStatus
)
from app.extensions import db


def _new_request(owner, **kwargs):
    fields = {
        'title': 'Move freezer',
        'from_location': 'Lab 1',
        'to_location': 'Lab 2',
        'created_by_id': owner.id
    }
    fields.update(kwargs)
    return TransferRequest(**fields)


def test_request_status_validation(app):
    with app.app_context():
        owner = User.query.filter_by(username='requester').first()
        with pytest.raises(ValueError, match="Invalid transfer request status"):
            _new_request(owner, status='Approved')

        item = _new_request(owner, status=RequestStatus.SUPERVISOR_APPROVED)
        assert item.status == 'SupervisorApproved'
        assert item.status_enum is RequestStatus.SUPERVISOR_APPROVED


def test_request_text_fields_are_stripped(app):
    with app.app_context():
        owner = User.query.filter_by(username='requester').first()
        item = _new_request(owner, title='  Move freezer  ')
        assert item.title == 'Move freezer'

        with pytest.raises(ValueError, match="to_location cannot be empty"):
            _new_request(owner, to_location='   ')


def test_request_defaults_and_serialisation(app):
    with app.app_context():
        owner = User.query.filter_by(username='requester').first()
        item = _new_request(owner, purpose='Lab move')
        db.session.add(item)
        db.session.commit()

        assert item.status == RequestStatus.SUBMITTED.value
        assert item.version_id == 1
        data = item.to_dict()
        assert data['title'] == 'Move freezer'
        assert data['created_by_id'] == owner.id
        assert data['comments'] == []
        assert data['attachments'] == []
        assert data['completed_at'] is None
        assert 'purpose' not in item.to_summary()


def test_version_increments_on_update(app):
    with app.app_context():
        owner = User.query.filter_by(username='requester').first()
        item = _new_request(owner)
        db.session.add(item)
        db.session.commit()

        item.status = RequestStatus.SUPERVISOR_APPROVED.value
        db.session.commit()
        assert item.version_id == 2


def test_comments_are_ordered_and_immutable(app):
    with app.app_context():
        owner = User.query.filter_by(username='requester').first()
        supervisor = User.query.filter_by(username='sup1').first()
        item = _new_request(owner)
        item.comments.append(TransferComment(author_id=supervisor.id, author_role='supervisor', body='first'))
        item.comments.append(TransferComment(author_id=supervisor.id, author_role='supervisor', body='second'))
        db.session.add(item)
        db.session.commit()

        assert [c['body'] for c in item.to_dict()['comments']] == ['first', 'second']
        assert item.comments[0].to_dict()['author_name'] == 'sup1'

        item.comments[0].body = 'edited'
        with pytest.raises(InvalidRequestError):
            db.session.commit()
        db.session.rollback()


def test_attachment_serialisation(app):
    with app.app_context():
        owner = User.query.filter_by(username='requester').first()
        item = _new_request(owner)
        item.attachments.append(TransferAttachment(upload_id=1))
        db.session.add(item)
        db.session.commit()

        attachment = item.to_dict()['attachments'][0]
        assert attachment['upload']['original_name'] == 'manifest.pdf'


def test_audit_log_is_append_only(app):
    with app.app_context():
        admin = User.query.filter_by(username='admin').first()
        log = AuditLog(
            entity_type='TransferRequest',
            entity_id=1,
            action=AuditAction.APPROVE,
            actor_id=admin.id,
            from_status=RequestStatus.SUBMITTED,
            to_status=RequestStatus.SUPERVISOR_APPROVED
        )
        db.session.add(log)
        db.session.commit()

        assert log.action == 'Approve'
        assert log.to_dict()['from_status'] == 'Submitted'

        log.data = {'changed': True}
        with pytest.raises(InvalidRequestError):
            db.session.commit()
        db.session.rollback()

        db.session.delete(log)
        with pytest.raises(InvalidRequestError):
            db.session.commit()
        db.session.rollback()


def test_user_roles(app):
    with app.app_context():
        admin = User.query.filter_by(username='admin').first()
        supervisor = User.query.filter_by(username='sup1').first()
        requester = User.query.filter_by(username='requester').first()

        assert admin.is_admin() is True
        assert admin.is_approver() is False
        assert supervisor.is_approver() is True
        assert requester.is_approver() is False
        assert requester.check_password('requester')
        assert not requester.check_password('wrong')

        with pytest.raises(ValueError, match="Invalid role"):
            User(username='x', email='x@test.com', role='editor')


def test_display_name(app):
    with app.app_context():
        user = User(username='jdoe', email='jdoe@test.com', first_name='Jane', last_name='Doe')
        assert user.display_name == 'Jane Doe'
        assert User(username='anon', email='anon@test.com').display_name == 'anon'
