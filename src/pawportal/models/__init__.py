"""SQLAlchemy models for PawPortal."""

from pawportal.models.application import Application
from pawportal.models.base import Base
from pawportal.models.payment_proof import PaymentProof, PaymentProofStatus
from pawportal.models.pet import Pet
from pawportal.models.user import User, UserRole

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Pet",
    "Application",
    "PaymentProof",
    "PaymentProofStatus",
]
