"""
Client-side checks run before any auth request is sent
"""
import re
from typing import Final

from errors import ValidationError

EMAIL_PATTERN: Final = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
SYMBOL_PATTERN: Final = re.compile(r'[!@#$%^&*(),.?":{}|<>]')

REGISTER_MIN_LENGTH: Final[int] = 8
RESET_MIN_LENGTH: Final[int] = 6
NAME_MIN_LENGTH: Final[int] = 2
NAME_MAX_LENGTH: Final[int] = 50


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_email(email: str) -> None:
    if not EMAIL_PATTERN.match(email.strip()):
        raise ValidationError('Invalid Email', 'Please enter a valid email address')


def validate_login(email: str, password: str) -> None:
    if not email or not password:
        raise ValidationError('Required Fields', 'Please enter your email and password')
    validate_email(email)


def validate_register(name: str, email: str, password: str, confirm_password: str) -> None:
    """Strict sign-up rules, checked in the order the user sees them"""
    if not name or not email or not password or not confirm_password:
        raise ValidationError('Required Fields', 'Please complete all required fields')
    validate_email(email)

    if len(password) < REGISTER_MIN_LENGTH:
        raise ValidationError('Weak Password', f'Password must be at least {REGISTER_MIN_LENGTH} characters')
    if not re.search(r'[A-Z]', password):
        raise ValidationError('Weak Password', 'Password must contain at least 1 uppercase letter')
    if not re.search(r'[0-9]', password):
        raise ValidationError('Weak Password', 'Password must contain at least 1 number')
    if not SYMBOL_PATTERN.search(password):
        raise ValidationError('Weak Password', 'Password must contain at least 1 symbol (!@#$%^&*...)')
    if password != confirm_password:
        raise ValidationError('Password Mismatch', 'Password and confirmation password must match')


def validate_forgot_password(email: str) -> None:
    if not email:
        raise ValidationError('Required Field', 'Please enter your email address')
    validate_email(email)


def validate_reset_password(token: str, password: str, confirm_password: str) -> None:
    if not token:
        raise ValidationError('Invalid Link', 'Reset token is missing or invalid')
    if not password or not confirm_password:
        raise ValidationError('Required Fields', 'Please enter new password and confirm password')
    if len(password) < RESET_MIN_LENGTH:
        raise ValidationError('Password Too Short', f'Password must be at least {RESET_MIN_LENGTH} characters')
    if password != confirm_password:
        raise ValidationError('Password Mismatch', 'Password and confirmation password must match')


def validate_change_password(current: str, new: str, confirm: str) -> None:
    if not current or not new or not confirm:
        raise ValidationError('Error', 'All fields are required')
    if len(new) < RESET_MIN_LENGTH:
        raise ValidationError('Error', f'New password must be at least {RESET_MIN_LENGTH} characters')
    if new != confirm:
        raise ValidationError('Error', 'New passwords do not match')
    if new == current:
        raise ValidationError('Error', 'New password must be different from current password')


def validate_profile_name(name: str) -> str:
    """Returns the trimmed name"""
    name = (name or '').strip()
    if not name:
        raise ValidationError('Error', 'Name cannot be empty')
    if len(name) < NAME_MIN_LENGTH:
        raise ValidationError('Error', f'Name must be at least {NAME_MIN_LENGTH} characters')
    if len(name) > NAME_MAX_LENGTH:
        raise ValidationError('Error', f'Name must not exceed {NAME_MAX_LENGTH} characters')
    return name
