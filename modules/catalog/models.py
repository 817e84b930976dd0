"""Database models for catalog module."""

from sqlalchemy import Column, Integer, String, BigInteger, DateTime, ForeignKey, UniqueConstraint, Text
from sqlalchemy.orm import relationship
from core.database import Base, utcnow


class FileRecord(Base):
    """Published catalog file.

    A record is created once by the moderation workflow and afterwards only
    its download counter changes.
    """
    __tablename__ = "files"

    id = Column(Integer, primary_key=True, autoincrement=True)
    catalog_id = Column(String, nullable=False, unique=True, index=True, doc="Human-readable ID like F0001")
    source_file_ref = Column(String, nullable=False, unique=True, doc="Telegram file_id of the stored media")
    display_name = Column(String, nullable=False, doc="Original file name or caption")
    clean_title = Column(String, nullable=False, doc="Normalized title shown to users")
    kind = Column(String, nullable=False, doc="video or document")
    uploader_id = Column(BigInteger, nullable=False, doc="Telegram user ID of the admin")
    size_label = Column(String, nullable=False, default="", doc="Formatted file size")
    download_count = Column(Integer, nullable=False, default=0, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    tokens = relationship(
        "FileToken",
        back_populates="file",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    @property
    def token_set(self) -> set:
        return {t.token for t in self.tokens}

    def __repr__(self) -> str:
        return f"<FileRecord(catalog_id='{self.catalog_id}', title='{self.clean_title}', downloads={self.download_count})>"


class FileToken(Base):
    """Searchable keyword of a catalog file."""
    __tablename__ = "file_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    file_id = Column(Integer, ForeignKey("files.id", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(String, nullable=False, index=True)

    file = relationship("FileRecord", back_populates="tokens")

    __table_args__ = (
        UniqueConstraint('file_id', 'token', name='uq_file_token'),
    )

    def __repr__(self) -> str:
        return f"<FileToken(file_id={self.file_id}, token='{self.token}')>"


class PendingUpload(Base):
    """Admin upload waiting for confirmation.

    Lives for a fixed TTL; expired rows are ignored on read and removed by
    the periodic sweep.
    """
    __tablename__ = "pending_uploads"

    id = Column(Integer, primary_key=True, autoincrement=True)
    submitter_id = Column(BigInteger, nullable=False, index=True, doc="Admin who sent the file")
    origin_chat_id = Column(BigInteger, nullable=False)
    origin_message_id = Column(BigInteger, nullable=False)
    source_file_ref = Column(String, nullable=False)
    display_name = Column(String, nullable=False)
    clean_title = Column(String, nullable=False)
    kind = Column(String, nullable=False)
    size_label = Column(String, nullable=False, default="")
    tokens = Column(Text, nullable=False, default="", doc="Space-separated tokens")
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    @property
    def token_list(self) -> list:
        return self.tokens.split() if self.tokens else []

    def __repr__(self) -> str:
        return f"<PendingUpload(id={self.id}, submitter={self.submitter_id}, title='{self.clean_title}')>"


class SequenceCounter(Base):
    """Named counter used to generate catalog IDs."""
    __tablename__ = "sequence_counters"

    name = Column(String, primary_key=True)
    seq = Column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<SequenceCounter(name='{self.name}', seq={self.seq})>"
