from app.models import User, TransferRequest


def test_create_user(runner, app):
    result = runner.invoke(args=[
        'create-user', '--username', 'mgr3', '--email', 'mgr3@test.com',
        '--password', 'secret', '--role', 'manager', '--first-name', 'Maya'
    ])
    assert result.exit_code == 0
    assert "User 'mgr3' (manager) has been created" in result.output

    with app.app_context():
        user = User.query.filter_by(username='mgr3').first()
        assert user.role == 'manager'
        assert user.first_name == 'Maya'
        assert user.check_password('secret')


def test_create_user_existing(runner):
    result = runner.invoke(args=[
        'create-user', '--username', 'sup1', '--email', 'x@test.com', '--password', 'x'
    ])
    assert "already exists" in result.output


def test_create_user_rejects_unknown_role(runner):
    result = runner.invoke(args=[
        'create-user', '--username', 'ed', '--email', 'ed@test.com',
        '--password', 'x', '--role', 'editor'
    ])
    assert result.exit_code != 0


def test_seed_users(runner, app):
    result = runner.invoke(args=['seed-users', '--password', 'pw'])
    assert result.exit_code == 0
    assert "Users have been seeded successfully!" in result.output
    # 'admin' already exists in the test data
    assert "Added admin" not in result.output

    with app.app_context():
        supervisor = User.query.filter_by(username='supervisor').first()
        assert supervisor.role == 'supervisor'
        assert supervisor.check_password('pw')

    # running twice adds nothing
    result = runner.invoke(args=['seed-users'])
    assert "Added" not in result.output


def test_init_db(runner, app):
    result = runner.invoke(args=['init-db'])
    assert result.exit_code == 0
    assert "Database tables created fresh." in result.output

    with app.app_context():
        assert User.query.count() == 0
        assert TransferRequest.query.count() == 0
