"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from datetime import timedelta

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.adapters.smtp.console import ConsoleEmailSender
from src.adapters.smtp.sender import SmtpEmailSender
from src.adapters.sms.console import ConsoleSmsSender
from src.adapters.sms.http import HttpSmsSender
from src.config.settings import Settings, get_settings
from src.domain.credentials import CredentialService
from src.domain.exceptions import InvalidToken
from src.domain.lockout import LockoutPolicy
from src.domain.ports import AccountRepository, EmailSender, SmsSender
from src.domain.tokens import TokenIssuer
from src.domain.verification import VerificationService

# Module-level singletons - console senders are stateless
_console_email_sender = ConsoleEmailSender()
_console_sms_sender = ConsoleSmsSender()


def get_repository(request: Request) -> AccountRepository:
    """
    Get the account repository from app state.

    The repository is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.repository


def get_email_sender(settings: Settings = Depends(get_settings)) -> EmailSender:
    """Get the email sender selected by settings.email_backend."""
    if settings.email_backend == "smtp":
        return SmtpEmailSender(
            host=settings.smtp_host,
            port=settings.smtp_port,
            sender=settings.smtp_from,
            username=settings.smtp_user,
            password=settings.smtp_key,
            use_tls=settings.smtp_use_tls,
            timeout=settings.smtp_timeout_seconds,
        )
    return _console_email_sender


def get_sms_sender(settings: Settings = Depends(get_settings)) -> SmsSender:
    """Get the SMS sender selected by settings.sms_backend."""
    if settings.sms_backend == "http":
        return HttpSmsSender(
            url=settings.sms_api_url,
            api_key=settings.sms_api_key,
            sender_id=settings.sms_sender_id,
            timeout=settings.sms_timeout_seconds,
        )
    return _console_sms_sender


def get_token_issuer(settings: Settings = Depends(get_settings)) -> TokenIssuer:
    return TokenIssuer(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        ttl=timedelta(seconds=settings.token_ttl_seconds),
    )


def get_verification_service(
    repository: AccountRepository = Depends(get_repository),
    email_sender: EmailSender = Depends(get_email_sender),
    settings: Settings = Depends(get_settings),
) -> VerificationService:
    return VerificationService(
        repository=repository,
        email_sender=email_sender,
        base_url=settings.app_base_url,
        max_attempts=settings.max_email_verification_attempts,
        code_ttl=timedelta(hours=settings.email_code_ttl_hours),
    )


def get_credential_service(
    repository: AccountRepository = Depends(get_repository),
    verification: VerificationService = Depends(get_verification_service),
    sms_sender: SmsSender = Depends(get_sms_sender),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
    settings: Settings = Depends(get_settings),
) -> CredentialService:
    """
    Create credential service with injected dependencies.

    Wires together the repository, verification service, SMS sender and
    token issuer with the policy constants from settings.
    """
    return CredentialService(
        repository=repository,
        verification=verification,
        sms_sender=sms_sender,
        token_issuer=token_issuer,
        email_pattern=settings.email_domain_pattern,
        lockout=LockoutPolicy(
            max_attempts=settings.max_login_attempts,
            lock_duration=timedelta(seconds=settings.lockout_seconds),
        ),
        reset_code_ttl=timedelta(hours=settings.reset_code_ttl_hours),
        bcrypt_cost=settings.bcrypt_cost,
    )


# Bearer security scheme for OpenAPI documentation. Missing credentials are
# reported by get_current_email so every auth failure is a 401.
http_bearer = HTTPBearer(auto_error=False)


def get_current_email(
    credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
) -> str:
    """
    Resolve the authenticated account's email from a Bearer token.

    Raises:
        InvalidToken: Header missing, or token invalid or expired
    """
    if credentials is None:
        raise InvalidToken()
    claims = token_issuer.decode(credentials.credentials)
    return claims["email"]
