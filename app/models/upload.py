# app/models/upload.py

from app.extensions import db
from app.utils import utcnow


class Upload(db.Model):
    """A file held by the external attachment store.

    The workflow only links uploads to requests by id and never reads
    the file itself.
    """
    __tablename__ = 'upload'

    id = db.Column(db.Integer, primary_key=True)
    original_name = db.Column(db.String(255), nullable=False)
    path = db.Column(db.String(500), nullable=False)
    uploaded_by_id = db.Column(db.Integer, db.ForeignKey('user.id'))
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'original_name': self.original_name,
            'path': self.path,
        }

    def __repr__(self):
        return f'<Upload {self.original_name}>'
