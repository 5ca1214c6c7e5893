"""
API v1 routes.

Defines the REST endpoints of the identity service. Handlers are plain
``def`` functions: FastAPI runs them in its threadpool, which keeps bcrypt
hashing and blocking database calls off the event loop.

Domain errors propagate to the handlers in src.api.errors.
"""

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import (
    get_credential_service,
    get_current_email,
    get_verification_service,
)
from src.api.models import (
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    ResendVerificationRequest,
    ResetPasswordRequest,
    UserResponse,
)
from src.domain.credentials import CredentialService
from src.domain.verification import VerificationService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {"model": ErrorResponse, "description": "Email already registered"},
        412: {"model": ErrorResponse, "description": "Email outside the institutional domain"},
    },
    summary="Register a student account",
)
def register(
    request_data: RegisterRequest,
    service: CredentialService = Depends(get_credential_service),
) -> RegisterResponse:
    """
    Register a student and email a 6-digit verification code.

    When the email gateway rejects the message the account still exists;
    ``verification_sent`` is false and the client should offer a resend.
    """
    result = service.register(
        request_data.email, request_data.name, request_data.password, request_data.phone
    )
    if result.verification_sent:
        message = "User registered successfully. Please verify your email."
    else:
        message = (
            "User registered successfully, but the verification email could not be sent. "
            "Please request a new code."
        )
    account = result.account
    return RegisterResponse(
        message=message,
        user=UserResponse(id=account.id, email=account.email, name=account.name, role=account.role),
        verification_sent=result.verification_sent,
    )


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        403: {"model": ErrorResponse, "description": "Account locked"},
    },
    summary="Log in and receive a session token",
)
def login(
    request_data: LoginRequest,
    service: CredentialService = Depends(get_credential_service),
) -> LoginResponse:
    result = service.login(request_data.email, request_data.password)
    return LoginResponse(token=result.token, role=result.role)


@router.get(
    "/verify-email",
    response_model=MessageResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid code"},
        403: {"model": ErrorResponse, "description": "Attempts exhausted, account deleted"},
        409: {"model": ErrorResponse, "description": "Already verified"},
    },
    summary="Verify an email address",
)
def verify_email(
    email: str = Query(...),
    code: str = Query(...),
    service: VerificationService = Depends(get_verification_service),
) -> MessageResponse:
    service.verify(email, code)
    return MessageResponse(message="Email verified successfully")


@router.post(
    "/resend-verification",
    response_model=MessageResponse,
    summary="Send a fresh email verification code",
)
def resend_verification(
    request_data: ResendVerificationRequest,
    service: VerificationService = Depends(get_verification_service),
) -> MessageResponse:
    service.resend(request_data.email)
    return MessageResponse(message="Verification code sent to email")


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    responses={401: {"model": ErrorResponse, "description": "Bad token, code or old password"}},
    summary="Reset password with old password and SMS code",
)
def reset_password(
    request_data: ResetPasswordRequest,
    email: str = Depends(get_current_email),
    service: CredentialService = Depends(get_credential_service),
) -> MessageResponse:
    service.reset_password(
        email, request_data.old_password, request_data.new_password, request_data.reset_code
    )
    return MessageResponse(message="Password reset successfully")


@router.get(
    "/request-reset-code",
    response_model=MessageResponse,
    responses={500: {"model": ErrorResponse, "description": "SMS gateway failure"}},
    summary="Text a password reset code to the registered phone",
)
def request_reset_code(
    email: str = Depends(get_current_email),
    service: CredentialService = Depends(get_credential_service),
) -> MessageResponse:
    service.request_reset_code(email)
    return MessageResponse(message="Password reset code sent to phone")
