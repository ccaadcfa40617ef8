"""
Database Models for the Movie Facts Application

This module defines the SQLAlchemy ORM models for the application:
- User: People who signed in with an OAuth provider, with their favorite movies
- Account: Link between a user and an OAuth provider identity
- MovieFact: Cached AI-generated fact per (user, movie title)
- RateLimit: Daily fact-generation counter per (user, UTC date)

Composite unique constraints guarantee that there is at most one cached fact
per user and title, and at most one counter per user and day.
"""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base, relationship


# Base class for all ORM models
# All models must inherit from Base to be recognized by SQLAlchemy
Base = declarative_base()


def new_id() -> str:
    # Opaque identifier, never parsed by the application
    return uuid.uuid4().hex


class User(Base):
    """
    User model created by the OAuth adapter at first sign-in.

    favorite_movie holds the user's favorites as one comma-joined string
    ("The Matrix, Alien"). NULL means "no favorite", never an empty string.
    """
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=new_id)

    # Email is unique and indexed: sessions identify users by id, sign-in by email
    email = Column(String(320), unique=True, index=True, nullable=False)

    # Display name and avatar URL copied from the provider profile
    name = Column(String(255), nullable=True)
    image = Column(String(1024), nullable=True)

    favorite_movie = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    # cascade="all, delete-orphan": deleting a user removes their accounts, facts and counters
    accounts = relationship("Account", back_populates="user", cascade="all, delete-orphan")
    movie_facts = relationship("MovieFact", back_populates="user", cascade="all, delete-orphan")
    rate_limits = relationship("RateLimit", back_populates="user", cascade="all, delete-orphan")


class Account(Base):
    """
    OAuth provider identity linked to a user.

    A user signs in again through the same (provider, provider_account_id)
    pair, so the pair is unique.
    """
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(32), ForeignKey("users.id"), index=True, nullable=False)
    provider = Column(String(50), nullable=False)
    provider_account_id = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="accounts")

    __table_args__ = (
        UniqueConstraint("provider", "provider_account_id", name="uix_provider_account"),
    )


class MovieFact(Base):
    """
    Most recent generated fact for a (user, trimmed movie title) pair.

    Rows are overwritten on regeneration and never expire.
    """
    __tablename__ = "movie_facts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(32), ForeignKey("users.id"), index=True, nullable=False)
    movie_title = Column(String(255), nullable=False)
    fact = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="movie_facts")

    __table_args__ = (
        UniqueConstraint("user_id", "movie_title", name="uix_user_movie_title"),
    )


class RateLimit(Base):
    """
    Number of facts generated by a user on one UTC calendar day.

    date is the ISO string (YYYY-MM-DD). A new day simply has no row yet,
    which reads as zero usage, so no reset job is needed.
    """
    __tablename__ = "rate_limits"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(32), ForeignKey("users.id"), index=True, nullable=False)
    date = Column(String(10), index=True, nullable=False)
    count = Column(Integer, default=0, nullable=False)

    user = relationship("User", back_populates="rate_limits")

    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uix_user_date"),
    )
