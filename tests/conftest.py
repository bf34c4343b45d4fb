"""Shared models and fixtures for dynamic_filters tests."""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
)
from sqlalchemy.orm import DeclarativeBase, Session, relationship

from dynamic_filters import DynamicFilter, set_default_manager
from dynamic_filters.mixins import DynamicFilterMixin

FROZEN_NOW = datetime(2024, 3, 15, 10, 30, tzinfo=ZoneInfo("UTC"))


class Base(DeclarativeBase):
    pass


class Publisher(Base):
    __tablename__ = "publishers"
    id = Column(Integer, primary_key=True)
    name = Column(String(100))
    authors = relationship("Author", back_populates="publisher")


class Author(Base):
    __tablename__ = "authors"
    id = Column(Integer, primary_key=True)
    name = Column(String(100))
    email = Column(String(200))
    publisher_id = Column(Integer, ForeignKey("publishers.id"))
    publisher = relationship("Publisher", back_populates="authors")
    posts = relationship("Post", back_populates="author")


class Post(DynamicFilterMixin, Base):
    __tablename__ = "posts"
    __filterable__ = [
        "status",
        "views",
        "title",
        "rating",
        "published",
        "created_at",
        "author.*",
        "comments.body",
    ]
    __searchable__ = ["title", "body"]
    __sortable__ = ["title", "created_at", "views", "author.name"]
    __casts__ = {"views": "int", "published": "bool"}

    id = Column(Integer, primary_key=True)
    title = Column(String(200))
    body = Column(Text)
    status = Column(String(20))
    views = Column(Integer, default=0)
    rating = Column(Float)
    published = Column(Boolean, default=False)
    created_at = Column(DateTime)
    author_id = Column(Integer, ForeignKey("authors.id"))
    author = relationship("Author", back_populates="posts")
    comments = relationship("Comment", back_populates="post")


class Comment(Base):
    __tablename__ = "comments"
    id = Column(Integer, primary_key=True)
    body = Column(Text)
    approved = Column(Boolean, default=False)
    post_id = Column(Integer, ForeignKey("posts.id"))
    post = relationship("Post", back_populates="comments")


class Note(Base):
    """Model without any filter declarations."""

    __tablename__ = "notes"
    id = Column(Integer, primary_key=True)
    title = Column(String(100))
    body = Column(Text)
    priority = Column(Integer)


def frozen_clock(tz: ZoneInfo) -> datetime:
    return FROZEN_NOW.astimezone(tz)


def where_sql(stmt) -> str:
    """Compiled WHERE clause of a statement."""
    return str(stmt.whereclause.compile())


def where_params(stmt) -> dict:
    return stmt.whereclause.compile().params


@pytest.fixture(autouse=True)
def reset_default_manager():
    set_default_manager(None)
    yield
    set_default_manager(None)


@pytest.fixture
def manager() -> DynamicFilter:
    return DynamicFilter(clock=frozen_clock)


@pytest.fixture
def session():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    with Session(engine) as session:
        acme = Publisher(id=1, name="Acme")
        globex = Publisher(id=2, name="Globex")
        john = Author(id=1, name="John", email="john@example.com", publisher=acme)
        jane = Author(id=2, name="Jane", email="jane@example.com", publisher=globex)
        session.add_all(
            [
                Post(
                    id=1,
                    title="Python Tips",
                    body="learn python",
                    status="published",
                    views=150,
                    rating=4.5,
                    published=True,
                    created_at=datetime(2024, 3, 10, 9, 0),
                    author=john,
                    comments=[Comment(body="Great post", approved=True)],
                ),
                Post(
                    id=2,
                    title="SQL Basics",
                    body="learn sql",
                    status="published",
                    views=50,
                    rating=3.0,
                    published=True,
                    created_at=datetime(2024, 2, 1, 12, 0),
                    author=jane,
                ),
                Post(
                    id=3,
                    title="Draft ideas",
                    body="café notes",
                    status="draft",
                    views=5,
                    published=False,
                    created_at=datetime(2024, 3, 14, 18, 0),
                    author=john,
                    comments=[Comment(body="meh")],
                ),
                Post(
                    id=4,
                    title="Advanced Python",
                    body="python internals",
                    status="published",
                    views=300,
                    rating=5.0,
                    published=True,
                    created_at=datetime(2023, 11, 20, 8, 0),
                    author=jane,
                ),
            ]
        )
        session.commit()
        yield session
    engine.dispose()
