"""
SQLAlchemy ORM models for persistent storage.

Columns follow Scryfall naming (oracle_id, cmc, oracle_text) so the tables
read naturally next to the bulk data they are built from.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class CardDB(Base):
    """
    One canonical card per oracle identity.

    Rewritten in full by each import run; never patched in place.
    """

    __tablename__ = "cards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    oracle_id: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    scryfall_id: Mapped[str] = mapped_column(String(64))

    original_name: Mapped[str] = mapped_column(String(255))
    name: Mapped[str] = mapped_column(String(255), index=True)
    search_key: Mapped[str] = mapped_column(String(255), index=True)

    mana_cost: Mapped[str | None] = mapped_column(String(255), nullable=True)
    cmc: Mapped[float] = mapped_column(Float, default=0.0)
    type_line: Mapped[str] = mapped_column(String(255), default="")
    oracle_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    colors: Mapped[list[str]] = mapped_column(JSON, default=list)
    color_identity: Mapped[list[str]] = mapped_column(JSON, default=list)
    rarity: Mapped[str] = mapped_column(String(20), default="")
    set_code: Mapped[str] = mapped_column(String(20), default="")
    legal_set_codes: Mapped[list[str]] = mapped_column(JSON, default=list)

    can_be_commander: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    can_be_companion: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    companion_restriction: Mapped[str | None] = mapped_column(Text, nullable=True)

    image_uris: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    back_image_uris: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    display_hints: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    scryfall_uri: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    search_terms: Mapped[list["CardSearchTermDB"]] = relationship(
        back_populates="card", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<CardDB(id={self.id}, name={self.name})>"


class CardSearchTermDB(Base):
    """
    A normalized lookup key pointing at one card.

    A card owns several terms: its primary name plus prefix, split-card and
    face-name variants.
    """

    __tablename__ = "card_search_terms"
    __table_args__ = (UniqueConstraint("card_id", "search_term", name="uq_card_search_term"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    card_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("cards.id", ondelete="CASCADE"), index=True
    )
    search_term: Mapped[str] = mapped_column(String(255), index=True)
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False)

    card: Mapped["CardDB"] = relationship(back_populates="search_terms")

    def __repr__(self) -> str:
        return f"<CardSearchTermDB(card_id={self.card_id}, term={self.search_term})>"


class SetDB(Base):
    """Release date of every set seen in the last import."""

    __tablename__ = "sets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    set_code: Mapped[str] = mapped_column(String(20), unique=True, index=True)
    released_at: Mapped[str | None] = mapped_column(String(10), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<SetDB(set_code={self.set_code}, released_at={self.released_at})>"
