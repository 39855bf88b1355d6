"""User database model.

This module defines the User database model using SQLAlchemy.
"""

from sqlalchemy import JSON, Column, String
from .base import Base


class UserModel(Base):
    """User database model."""

    __tablename__ = "users"

    user_id = Column(String, primary_key=True, index=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(255), index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    roles = Column(JSON, nullable=False, default=list)  # list of role codes
    created_at = Column(String, nullable=False)  # ISO format string
    updated_at = Column(String, nullable=True)  # ISO format string
