# app/extensions.py

from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_socketio import SocketIO
from flask_migrate import Migrate
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from sqlalchemy.engine.url import make_url


def build_engine_options(config):
    """Build SQLALCHEMY_ENGINE_OPTIONS for the configured database.

    Args:
        config: Flask config mapping

    Returns:
        dict: Engine options suitable for the database driver
    """
    url = make_url(config['SQLALCHEMY_DATABASE_URI'])

    # Common options safe for all databases
    options = {
        'pool_pre_ping': True,
    }

    # Pool sizing does not apply to SQLite
    if not url.drivername.startswith('sqlite'):
        options.update({
            'pool_size': config.get('SQLALCHEMY_POOL_SIZE', 10),
            'pool_recycle': config.get('SQLALCHEMY_POOL_RECYCLE', 300),
            'pool_timeout': config.get('SQLALCHEMY_POOL_TIMEOUT', 20),
            'max_overflow': config.get('SQLALCHEMY_MAX_OVERFLOW', 5),
        })

        if url.drivername.startswith('postgresql'):
            options['connect_args'] = {
                'connect_timeout': config.get('SQLALCHEMY_CONNECT_TIMEOUT', 10),
                'keepalives': 1,
                'keepalives_idle': 30,
                'keepalives_interval': 10,
                'keepalives_count': 5
            }
        elif url.drivername.startswith('mysql'):
            options['connect_args'] = {
                'connect_timeout': config.get('SQLALCHEMY_CONNECT_TIMEOUT', 10)
            }

    # Explicit engine options from config win over the computed defaults
    options.update(config.get('SQLALCHEMY_ENGINE_OPTIONS') or {})
    return options


# Initialize Flask extensions
db = SQLAlchemy()
login_manager = LoginManager()
socketio = SocketIO()
migrate = Migrate()
limiter = Limiter(key_func=get_remote_address)


def init_app(app):
    """Initialize Flask extensions.

    Args:
        app: Flask application instance
    """
    app.config['SQLALCHEMY_ENGINE_OPTIONS'] = build_engine_options(app.config)
    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db, render_as_batch=True)
    socketio.init_app(
        app,
        message_queue=app.config.get('SOCKETIO_MESSAGE_QUEUE'),
        async_mode=app.config.get('SOCKETIO_ASYNC_MODE')
    )
    limiter.init_app(app)
