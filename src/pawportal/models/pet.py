"""Pet listing model."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pawportal.models.base import Base

if TYPE_CHECKING:
    from pawportal.models.application import Application
    from pawportal.models.user import User


class Pet(Base):
    """A pet listed for adoption."""

    __tablename__ = "pets"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    owner_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    breed: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    # Free text, listing owners have used many spellings over time
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="available")
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    # Relationships
    owner: Mapped["User | None"] = relationship("User", back_populates="pets")
    applications: Mapped[list["Application"]] = relationship(
        "Application", back_populates="pet", cascade="all, delete-orphan"
    )
