import click
from flask.cli import with_appcontext
from sqlalchemy.exc import SQLAlchemyError

from app.extensions import db
from app.models import User, Role


# username, email, role
DEMO_USERS = [
    ('requester', 'requester@example.com', Role.USER),
    ('supervisor', 'supervisor@example.com', Role.SUPERVISOR),
    ('manager', 'manager@example.com', Role.MANAGER),
    ('admin', 'admin@example.com', Role.ADMIN),
]


def init_cli(app):
    app.cli.add_command(init_db_command)
    app.cli.add_command(create_user_command)
    app.cli.add_command(seed_users_command)


@click.command("init-db")
@with_appcontext
def init_db_command():
    """Initialize database tables"""
    db.drop_all()
    db.create_all()
    click.echo("Database tables created fresh.")


@click.command("create-user")
@click.option('--username', required=True, help='Login name')
@click.option('--email', required=True, help='Notification address')
@click.option('--password', required=True, help='Initial password')
@click.option('--role', default=Role.USER.value,
              type=click.Choice([r.value for r in Role]),
              help='Workflow role')
@click.option('--first-name', default=None)
@click.option('--last-name', default=None)
@with_appcontext
def create_user_command(username, email, password, role, first_name, last_name):
    """Create a user with the given role"""
    if User.query.filter_by(username=username).first():
        click.echo(f"User '{username}' already exists")
        return

    user = User(
        username=username,
        email=email,
        role=role,
        first_name=first_name,
        last_name=last_name
    )
    user.set_password(password)
    db.session.add(user)
    try:
        db.session.commit()
        click.echo(f"User '{username}' ({role}) has been created")
    except SQLAlchemyError as e:
        db.session.rollback()
        click.echo(f"Error creating user: {str(e)}", err=True)


@click.command("seed-users")
@click.option('--password', default='changeme', help='Password for every seeded user')
@with_appcontext
def seed_users_command(password):
    """Seed demo accounts for each role"""
    for username, email, role in DEMO_USERS:
        if User.query.filter_by(username=username).first():
            continue
        user = User(username=username, email=email, role=role.value)
        user.set_password(password)
        db.session.add(user)
        click.echo(f"Added {role.value}: {username}")

    try:
        db.session.commit()
        click.echo("Users have been seeded successfully!")
    except SQLAlchemyError as e:
        db.session.rollback()
        click.echo(f"Error seeding users: {str(e)}", err=True)
