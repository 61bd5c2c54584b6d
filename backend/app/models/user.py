"""
User model keyed by the external identifier ("CEC ID").

Users are created lazily on their first reservation and never change
afterwards. There is no login; ``password`` holds a generated placeholder.
"""

from sqlalchemy import Column, Integer, String

from app.db.base import Base, TimestampMixin

IDENTIFIER_MIN_LENGTH = 2
IDENTIFIER_MAX_LENGTH = 20


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), nullable=False)
    password = Column(String(255), nullable=False)
    identifier = Column(String(IDENTIFIER_MAX_LENGTH), unique=True, index=True, nullable=False)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, identifier={self.identifier})>"
