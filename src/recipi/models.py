from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from .db import Base


def _now():
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(30), unique=True, index=True, nullable=False)
    email = Column(String(254), unique=True, index=True, nullable=False)
    password_hash = Column(String(200), nullable=False)
    bio = Column(String(200), nullable=False, default="")
    image = Column(String(300), nullable=True)

    recipes = relationship(
        "Recipe",
        back_populates="author",
        cascade="all, delete-orphan",
        order_by="Recipe.id",
    )


class Recipe(Base):
    __tablename__ = "recipes"
    id = Column(Integer, primary_key=True, index=True)
    slug = Column(String(220), unique=True, index=True, nullable=False)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    prep_time = Column(Integer, nullable=False, default=0)
    cook_time = Column(Integer, nullable=False, default=0)
    difficulty = Column(String(10), nullable=False, default="easy")
    servings = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    ingredients = Column(Text, nullable=False, default="[]")  # JSON-encoded list
    steps = Column(Text, nullable=False, default="[]")  # JSON-encoded list
    tags = Column(Text, nullable=False, default="[]")  # JSON-encoded list
    image = Column(String(300), nullable=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=_now, onupdate=_now, nullable=False
    )

    author = relationship("User", back_populates="recipes")
