"""Database models for accounts module."""

from sqlalchemy import Column, Integer, String, BigInteger, DateTime, UniqueConstraint
from core.database import Base, utcnow


class UserRecord(Base):
    """Known bot user (audience of broadcasts)."""
    __tablename__ = "users"

    user_id = Column(BigInteger, primary_key=True, doc="Telegram user ID")
    first_name = Column(String, nullable=True)
    handle = Column(String, nullable=True, doc="Telegram @username without @")
    joined_at = Column(DateTime, nullable=False, default=utcnow, doc="First contact, never updated")

    def __repr__(self) -> str:
        return f"<UserRecord(user_id={self.user_id}, handle='{self.handle}')>"


class QuotaRecord(Base):
    """Downloads of one user on one UTC calendar day."""
    __tablename__ = "daily_quotas"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, nullable=False, index=True)
    day = Column(String(10), nullable=False, index=True, doc="ISO date, e.g. 2026-10-19")
    count = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint('user_id', 'day', name='uq_quota_user_day'),
    )

    def __repr__(self) -> str:
        return f"<QuotaRecord(user_id={self.user_id}, day='{self.day}', count={self.count})>"


class FavoriteRecord(Base):
    """File saved by a user."""
    __tablename__ = "favorites"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, nullable=False, index=True)
    catalog_id = Column(String, nullable=False)
    saved_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint('user_id', 'catalog_id', name='uq_favorite_user_file'),
    )

    def __repr__(self) -> str:
        return f"<FavoriteRecord(user_id={self.user_id}, catalog_id='{self.catalog_id}')>"
