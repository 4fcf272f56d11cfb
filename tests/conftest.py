import os
import tempfile
import pytest
from app import create_app
from app.extensions import db
from app.models import User, Upload
from config import TestingConfig


# username, role, active
TEST_USERS = [
    ('admin', 'admin', True),
    ('requester', 'user', True),
    ('other', 'user', True),
    ('sup1', 'supervisor', True),
    ('sup_idle', 'supervisor', False),
    ('mgr1', 'manager', True),
    ('mgr2', 'manager', True),
]


@pytest.fixture
def app():
    """Create and configure a new app instance for each test."""
    # Create a temporary file to isolate the database for each test
    db_fd, db_path = tempfile.mkstemp()

    app = create_app(TestingConfig, {
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f'sqlite:///{db_path}',
        'WTF_CSRF_ENABLED': False,
        'RATELIMIT_ENABLED': False,
        'ADMIN_PASSWORD': None,
    })

    # Create the database and load test data
    with app.app_context():
        db.create_all()
        init_test_data()

    yield app

    with app.app_context():
        db.engine.dispose()

    # Close and remove the temporary database
    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def ctx(app):
    """Push an application context for direct service calls."""
    with app.app_context():
        yield


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """A test runner for the app's Click commands."""
    return app.test_cli_runner()


@pytest.fixture
def login(app):
    """Factory returning a test client logged in as ``username``."""
    def _login(username):
        test_client = app.test_client()
        response = test_client.post('/auth/login', json={
            'username': username,
            'password': username
        })
        assert response.status_code == 200, response.get_json()
        return test_client
    return _login


@pytest.fixture
def user_ids(app):
    with app.app_context():
        return {u.username: u.id for u in User.query.all()}


@pytest.fixture
def upload_ids(app):
    with app.app_context():
        return [u.id for u in Upload.query.order_by(Upload.id).all()]


@pytest.fixture
def outbox(monkeypatch):
    """Capture workflow e-mails instead of sending them."""
    sent = []

    def fake_send(recipient_address, subject, body_html):
        sent.append({'to': recipient_address, 'subject': subject, 'body': body_html})
        return True

    monkeypatch.setattr('app.notifications.send_workflow_notification', fake_send)
    return sent


def init_test_data():
    """Initialize test data."""
    for username, role, active in TEST_USERS:
        user = User(
            username=username,
            email=f'{username}@test.com',
            role=role,
            is_active=active
        )
        # Password equals username in tests
        user.set_password(username)
        db.session.add(user)
    db.session.flush()

    requester = User.query.filter_by(username='requester').first()
    for name in ('manifest.pdf', 'photo.jpg', 'invoice.pdf'):
        db.session.add(Upload(
            original_name=name,
            path=f'uploads/{name}',
            uploaded_by_id=requester.id
        ))

    db.session.commit()
