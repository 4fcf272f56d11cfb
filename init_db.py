#!/usr/bin/env python
import logging

from flask import current_app

from app import create_app, db
from app.models import User, Role


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def init_admin_user():
    """Create the admin account from ADMIN_USERNAME/ADMIN_PASSWORD/ADMIN_EMAIL.

    Returns:
        bool: True if the admin exists afterwards, False otherwise
    """
    app = create_app()

    with app.app_context():
        if not current_app.config['ADMIN_PASSWORD']:
            logger.error('ADMIN_PASSWORD is not set')
            return False
        try:
            admin = User.query.filter_by(
                username=current_app.config['ADMIN_USERNAME']
            ).first()

            if admin:
                logger.info('Admin user already exists')
                return True

            admin = User(
                username=current_app.config['ADMIN_USERNAME'],
                email=current_app.config['ADMIN_EMAIL'],
                role=Role.ADMIN.value
            )
            admin.set_password(current_app.config['ADMIN_PASSWORD'])
            db.session.add(admin)
            db.session.commit()
            logger.info('Admin user created successfully')
            return True

        except Exception as e:
            db.session.rollback()
            logger.error(f'Error initializing admin user: {str(e)}')
            return False


if __name__ == '__main__':
    success = init_admin_user()
    exit(0 if success else 1)
