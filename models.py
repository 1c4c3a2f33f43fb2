# models.py
from datetime import datetime

from db import db


class RowMixin:
    def to_row(self):
        """Return the raw column values as a plain dict"""
        return {column.name: getattr(self, column.name) for column in self.__table__.columns}


class User(RowMixin, db.Model):
    """Registered volunteer"""
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password = db.Column(db.String(200), nullable=False)
    joined_events = db.Column(db.JSON, nullable=False, default=list)

    created_at = db.Column(db.DateTime, default=datetime.now)
    updated_at = db.Column(db.DateTime, default=datetime.now, onupdate=datetime.now)

    def __repr__(self):
        return f"<User {self.email}>"


class Opportunity(RowMixin, db.Model):
    """Stored volunteer opportunity"""
    __tablename__ = "opportunities"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(300), nullable=False)
    description = db.Column(db.Text)
    event_begin = db.Column(db.DateTime, nullable=False)
    event_end = db.Column(db.DateTime, nullable=False)
    zip_code = db.Column(db.Integer, nullable=False)
    image = db.Column(db.String(500))

    # First organizer is the creator; entries are user ids or free-text names
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    organizers = db.Column(db.JSON, nullable=False, default=list)

    created_at = db.Column(db.DateTime, default=datetime.now)
    updated_at = db.Column(db.DateTime, default=datetime.now, onupdate=datetime.now)

    def __repr__(self):
        return f"<Opportunity {self.id}: {self.title[:50]}>"
