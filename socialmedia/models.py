"""
SQLAlchemy ORM models for database tables.

This module contains database table definitions using SQLAlchemy.
For Pydantic request/response schemas, see schemas.py.
"""

from sqlalchemy import BigInteger, Column, Integer, String, Text

from socialmedia.storage import Base


class Account(Base):
    """
    SQLAlchemy model for registered accounts.

    Table: account
    Primary Key: account_id (assigned by the database)
    The unique index on username is the authoritative duplicate guard.
    """
    __tablename__ = "account"

    account_id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)


class Message(Base):
    """
    SQLAlchemy model for messages posted by accounts.

    Table: message
    Primary Key: message_id (assigned by the database)
    """
    __tablename__ = "message"

    message_id = Column(Integer, primary_key=True, autoincrement=True)
    posted_by = Column(Integer, nullable=False, index=True)
    message_text = Column(Text, nullable=False)
    time_posted_epoch = Column(BigInteger, nullable=False)
