from enum import Enum

from sqlalchemy.orm import validates

from werkzeug.security import generate_password_hash, check_password_hash
from flask_login import UserMixin
from app.extensions import db
from app.utils import utcnow


class Role(str, Enum):
    """Roles supplied by the identity provider."""
    USER = 'user'  # requester
    SUPERVISOR = 'supervisor'
    MANAGER = 'manager'
    ADMIN = 'admin'


class User(UserMixin, db.Model):
    """User model representing application users.

    Inherits from:
        UserMixin: Provides default implementations for Flask-Login interface
        db.Model: SQLAlchemy model base class
    """
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    first_name = db.Column(db.String(80))
    last_name = db.Column(db.String(80))
    password_hash = db.Column(db.String(256))
    role = db.Column(
        db.String(20),
        nullable=False,
        default=Role.USER.value
    )
    created_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utcnow
    )
    last_login = db.Column(db.DateTime)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    @validates('role')
    def validate_role(self, key, value):
        try:
            return Role(value).value
        except ValueError:
            raise ValueError(f"Invalid role: {value}")

    def set_password(self, password):
        """Set user's password hash from plain text password.

        Args:
            password: Plain text password to hash
        """
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Check if plain text password matches hash.

        Args:
            password: Plain text password to verify

        Returns:
            bool: True if password matches, False otherwise
        """
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def is_admin(self):
        return self.role == Role.ADMIN.value

    def is_approver(self):
        """Check if user can act at one of the approval gates.

        Returns:
            bool: True for supervisors and managers
        """
        return self.role in (Role.SUPERVISOR.value, Role.MANAGER.value)

    def update_last_login(self):
        """Update user's last login timestamp to current time."""
        self.last_login = utcnow()
        db.session.commit()

    @property
    def display_name(self):
        full = ' '.join(p for p in (self.first_name, self.last_name) if p)
        return full or self.username

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'role': self.role,
        }

    def __repr__(self):
        return f'<User {self.username}>'
