"""User model for authentication, profiles and identity verification."""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, String, func
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pawportal.models.base import Base

if TYPE_CHECKING:
    from pawportal.models.application import Application
    from pawportal.models.payment_proof import PaymentProof
    from pawportal.models.pet import Pet


class UserRole(str, Enum):
    """User roles for access control."""

    ADMIN = "admin"
    SHELTER = "shelter"
    ADOPTER = "adopter"


class User(Base):
    """Marketplace account with its profile and verification fields."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole, values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
        default=UserRole.ADOPTER,
    )
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_suspended: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    suspended_until: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    id_image_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    pets: Mapped[list["Pet"]] = relationship("Pet", back_populates="owner")
    applications: Mapped[list["Application"]] = relationship(
        "Application", back_populates="applicant"
    )
    payment_proofs: Mapped[list["PaymentProof"]] = relationship(
        "PaymentProof", back_populates="user"
    )
