# models/app_user.py
from __future__ import annotations
from db import db
from sqlalchemy.sql import func

class AppUser(db.Model):
    """Local profile of a Firebase-authenticated user."""
    __tablename__ = "app_users"

    id           = db.Column(db.Integer, primary_key=True)
    firebase_uid = db.Column(db.String(128), nullable=False, unique=True, index=True)
    email        = db.Column(db.String(254), nullable=True)
    display_name = db.Column(db.String(128), nullable=True)
    photo_url    = db.Column(db.String(512), nullable=True)

    created_at   = db.Column(db.DateTime, server_default=func.now(), nullable=False)
    updated_at   = db.Column(db.DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def name(self) -> str:
        return (self.display_name or "").strip() or (self.email or f"User #{self.id}")
