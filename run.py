#!/usr/bin/env python
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file, fallback to .env.development
env_path = Path('.env')
if not env_path.exists():
    env_path = Path('.env.development')
load_dotenv(env_path)

from app import create_app, db
from app.extensions import socketio
from app.models import User

app = create_app()


def init_database():
    """Create tables and the bootstrap admin account."""
    with app.app_context():
        db.create_all()
        print("Database tables ready.")

        admin = User.query.filter_by(username=app.config['ADMIN_USERNAME']).first()
        if not admin and app.config['ADMIN_PASSWORD']:
            admin = User(
                username=app.config['ADMIN_USERNAME'],
                email=app.config['ADMIN_EMAIL'],
                role='admin'
            )
            admin.set_password(app.config['ADMIN_PASSWORD'])
            db.session.add(admin)
            print('Admin user created')

        try:
            db.session.commit()
            print('Database initialized successfully')
        except Exception as e:
            db.session.rollback()
            print(f'Error initializing database: {str(e)}')
            raise


if __name__ == '__main__':
    if os.environ.get('FLASK_ENV') == 'development':
        with app.app_context():
            if User.query.count() == 0:
                print("Database is empty, initializing...")
                init_database()
            else:
                print('Using existing database with users.')

        socketio.run(app, debug=True)
    else:
        # Production mode - let gunicorn handle the serving
        socketio.run(app, debug=app.config['DEBUG'])
