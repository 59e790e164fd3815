"""Authentication request and response schemas."""

from pydantic import BaseModel, EmailStr

from pawportal.models.user import UserRole


class LoginRequest(BaseModel):
    """Login request with email and password."""

    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    """JWT token response."""

    access_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    """Current user information response."""

    id: int
    email: str
    full_name: str | None
    role: UserRole

    model_config = {"from_attributes": True}
