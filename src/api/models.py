"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from src.domain.ports import Role


class RegisterRequest(BaseModel):
    """Request model for student registration."""

    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72, description="User password")
    phone: str = Field(..., min_length=1, description="Phone number for password reset codes")


class UserResponse(BaseModel):
    id: int | None
    email: str
    name: str | None
    role: Role


class RegisterResponse(BaseModel):
    """Response model for successful registration."""

    message: str
    user: UserResponse
    verification_sent: bool


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    token: str
    role: Role


class ResendVerificationRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    """Request model for password reset (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True)

    old_password: str = Field(..., alias="oldPassword")
    new_password: str = Field(..., alias="newPassword", min_length=6, max_length=72)
    reset_code: str | None = Field(None, alias="resetCode")


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
