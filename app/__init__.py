# app/__init__.py

import os
import logging
from logging.handlers import RotatingFileHandler

from flask import Flask
from flask_migrate import upgrade

from config import get_config
from app.extensions import db, login_manager, init_app as init_extensions
from app.errors import Unauthorized, register_error_handlers
from app.models import User, Role


def configure_logging(app):
    """Attach production log handlers to ``app.logger``."""
    if app.debug or app.testing:
        return

    if app.config['LOG_TO_STDOUT']:
        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(logging.INFO)
        app.logger.addHandler(stream_handler)
    else:
        if not os.path.exists('logs'):
            os.mkdir('logs')
        file_handler = RotatingFileHandler('logs/transfer_workflow.log',
                                           maxBytes=10240000,
                                           backupCount=10)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s '
            '[in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)

    app.logger.setLevel(logging.INFO)
    app.logger.info('Transfer Workflow startup')


def create_app(config_class=None, test_config=None):
    app = Flask(__name__)
    app.config.from_object(config_class or get_config())
    if test_config:
        app.config.update(test_config)

    configure_logging(app)

    # Initialize Flask extensions
    init_extensions(app)

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        raise Unauthorized()

    # Socket.IO handlers register on import
    from app import socket_events  # noqa: F401

    from app.workflows import bp as workflows_bp
    from app.auth import bp as auth_bp
    app.register_blueprint(workflows_bp, url_prefix='/api/workflows')
    app.register_blueprint(auth_bp, url_prefix='/auth')

    register_error_handlers(app)

    # Register CLI commands
    from app.cli import init_cli
    init_cli(app)

    with app.app_context():
        if os.environ.get('FLASK_ENV') == 'production':
            # Run migrations in production
            upgrade()
        else:
            # Just create tables in development
            db.create_all()

        # Ensure admin user exists
        if app.config['ADMIN_PASSWORD'] and \
                not User.query.filter_by(username=app.config['ADMIN_USERNAME']).first():
            admin = User(
                username=app.config['ADMIN_USERNAME'],
                email=app.config['ADMIN_EMAIL'],
                role=Role.ADMIN.value
            )
            admin.set_password(app.config['ADMIN_PASSWORD'])
            db.session.add(admin)
            db.session.commit()

    @app.teardown_appcontext
    def cleanup(resp_or_exc):
        """Ensure proper cleanup of database sessions"""
        db.session.remove()

    return app
