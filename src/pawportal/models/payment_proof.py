"""Payment proof model for listing-credit purchases."""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String, func
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pawportal.models.base import Base

if TYPE_CHECKING:
    from pawportal.models.user import User


class PaymentProofStatus(str, Enum):
    """Review status of an uploaded payment proof."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentProof(Base):
    """A screenshot of a payment submitted in exchange for listing credits."""

    __tablename__ = "payment_proofs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False, default=20)
    reference: Mapped[str | None] = mapped_column(String(255), nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    status: Mapped[PaymentProofStatus] = mapped_column(
        SQLEnum(PaymentProofStatus, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=PaymentProofStatus.PENDING,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), index=True
    )

    # Relationships
    user: Mapped["User | None"] = relationship("User", back_populates="payment_proofs")
