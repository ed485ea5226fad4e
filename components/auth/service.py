"""
Account flows: login, sign-up, password recovery and profile changes
"""
import logging
from dataclasses import dataclass
from typing import Optional

from errors import LoginFailed, VerificationRequired
from components.gateway.models import UserProfile
from . import validation
from .session_context import AuthStore

logger = logging.getLogger(__name__)

VERIFY_MESSAGE = ("Please verify your email first. Check your inbox for the "
                  "verification link and click it to verify your account.")


@dataclass(frozen=True)
class RegisterOutcome:
    """requires_verification is False only when the server logged the user in directly"""
    requires_verification: bool
    email: str
    name: str
    message: str = ''


class AuthService:
    """
    Validates input locally, calls the auth endpoints and keeps the
    AuthStore in sync with the outcome.
    """

    def __init__(self, api, auth_store: AuthStore):
        self.api = api
        self.auth_store = auth_store

    # ==================== Session ====================

    async def login(self, email: str, password: str) -> UserProfile:
        """
        Log in and store the token and user together.

        Raises:
            ValidationError: empty fields or malformed email (no request sent)
            VerificationRequired: the account's email is not verified
            LoginFailed: wrong credentials or any other rejection
            NetworkError: the server could not be reached
        """
        validation.validate_login(email, password)
        email = validation.normalize_email(email)

        result = await self.api.login(email, password)
        if not result.ok:
            if result.payload.get('requiresVerification'):
                logger.info(f"Login refused, {email} is not verified")
                raise VerificationRequired(VERIFY_MESSAGE, email=email)
            logger.warning(f"Login failed for {email}: {result.message}")
            raise LoginFailed(result.message or 'Invalid credentials')

        data = result.data or {}
        token, user = data.get('token'), data.get('user')
        if not token or not isinstance(user, dict):
            raise LoginFailed('Login response did not include a session')

        await self.auth_store.set_session(token, user)
        logger.info(f"Logged in as {email}")
        return UserProfile.from_dict(user)

    async def logout(self) -> None:
        await self.auth_store.clear()
        logger.info("Logged out")

    # ==================== Sign-up ====================

    async def register(self, name: str, email: str, password: str, confirm_password: str) -> RegisterOutcome:
        """
        Create an account. Servers that skip email verification return a
        session right away, which is stored like a login.

        Raises:
            ValidationError / ServerError / NetworkError
        """
        validation.validate_register(name, email, password, confirm_password)
        name, email = name.strip(), validation.normalize_email(email)

        result = await self.api.register(name, email, password)
        data = result.unwrap() or {}

        if result.payload.get('requiresVerification'):
            logger.info(f"Registered {email}, verification pending")
            return RegisterOutcome(True, data.get('email', email), data.get('name') or name, result.message)

        if data.get('token') and isinstance(data.get('user'), dict):
            await self.auth_store.set_session(data['token'], data['user'])
        logger.info(f"Registered {email}")
        return RegisterOutcome(False, email, name, result.message)

    async def resend_verification(self, email: str) -> str:
        validation.validate_email(email)
        result = await self.api.resend_verification(validation.normalize_email(email))
        result.unwrap()
        return result.message or 'Verification email has been resent. Please check your inbox.'

    # ==================== Password recovery ====================

    async def forgot_password(self, email: str) -> str:
        """Ask the server to email a reset link, returns its confirmation message"""
        validation.validate_forgot_password(email)
        result = await self.api.forgot_password(validation.normalize_email(email))
        result.unwrap()
        return result.message or 'Password reset link has been sent to your email.'

    async def reset_password(self, token: str, password: str, confirm_password: str) -> str:
        validation.validate_reset_password(token, password, confirm_password)
        result = await self.api.reset_password(token, password)
        result.unwrap()
        logger.info("Password reset")
        return result.message or 'Password has been reset successfully.'

    # ==================== Profile ====================

    async def update_profile(self, name: str) -> Optional[UserProfile]:
        """
        Rename the user and rewrite the cached user object.

        Returns None when the name did not change (no request sent).
        """
        name = validation.validate_profile_name(name)
        current = await self.auth_store.get_user()
        if current is not None and current.name == name:
            return None

        profile: UserProfile = (await self.api.update_profile(name)).unwrap()
        await self.auth_store.update_user(profile.to_dict())
        logger.info(f"Profile updated: {profile.name}")
        return profile

    async def change_password(self, current_password: str, new_password: str, confirm_password: str) -> str:
        """
        Change the password. On success the session is cleared and the user
        has to log in again with the new password.
        """
        validation.validate_change_password(current_password, new_password, confirm_password)
        result = await self.api.change_password(current_password, new_password)
        result.unwrap()

        await self.logout()
        return result.message or 'Password changed successfully. You will be logged out for security.'
