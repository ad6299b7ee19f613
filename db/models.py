"""
db.models - SQLAlchemy ORM declarations.

Tables
------
authors  - importable demo resource.  ``name`` carries a unique index
           that is enforced only by storage; ``last_name`` is validated
           for presence and uniqueness before insert.
posts    - importable demo resource belonging to an author.

Import validation metadata lives in ``Column.info["validates"]``:
``"presence"`` and ``"uniqueness"`` are understood by the bulk backend
in import_engine.backend.  Custom checks use SQLAlchemy ``@validates``
hooks that raise ValueError with a human readable message.
"""

from __future__ import annotations

from sqlalchemy import (
    Column, String, Integer, Date, DateTime, Text, ForeignKey, Index,
)
from sqlalchemy.orm import DeclarativeBase, relationship, validates


class Base(DeclarativeBase):
    pass


class Author(Base):
    __tablename__ = "authors"

    id        = Column(Integer, primary_key=True, autoincrement=True)
    name      = Column(String(200), info={"validates": ("presence",)})
    last_name = Column(String(200), info={"validates": ("presence", "uniqueness")})
    birthday  = Column(Date, nullable=True)

    # ── Timestamps (filled by the importer when timestamps=True) ───────
    created_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, nullable=True)

    posts = relationship("Post", back_populates="author")

    __table_args__ = (
        Index("ix_authors_name", "name", unique=True),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name or "",
            "last_name": self.last_name or "",
            "birthday": self.birthday.isoformat() if self.birthday else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class Post(Base):
    __tablename__ = "posts"

    id        = Column(Integer, primary_key=True, autoincrement=True)
    title     = Column(String(300), info={"validates": ("presence",)})
    body      = Column(Text, default="")
    author_id = Column(Integer, ForeignKey("authors.id"), nullable=True, index=True)

    created_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, nullable=True)

    author = relationship("Author", back_populates="posts")

    @validates("title")
    def _check_title(self, _key, value):
        if value is not None and len(value) > 300:
            raise ValueError("is too long (maximum is 300 characters)")
        return value

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title or "",
            "body": self.body or "",
            "author_id": self.author_id,
        }
