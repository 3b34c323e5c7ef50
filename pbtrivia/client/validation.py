"""Input validators shared by form handling and the game service layer.

The ``check_*`` helpers are pure and return an error message or ``None``.
The ``validate_game_*`` helpers raise ``ValidationError`` and are what the
service layer calls before it sends anything to the backend.
"""

from __future__ import annotations

import re

from .errors import ValidationError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
GAME_CODE_PATTERN = re.compile(r"^[A-Z0-9]{4,12}$")

DISPLAY_NAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 8

GAME_NAME_REQUIRED = "Game name is required"
GAME_CODE_REQUIRED = "Game code is required"
GAME_CODE_FORMAT = "Game code must be 4-12 uppercase letters and numbers only"


def check_email(value: str | None) -> str | None:
    trimmed = (value or "").strip()
    if not trimmed:
        return "Email is required"
    if not EMAIL_PATTERN.fullmatch(trimmed):
        return "Enter a valid email"
    return None


def check_display_name(value: str | None) -> str | None:
    trimmed = (value or "").strip()
    if not trimmed:
        return "Display name is required"
    if len(trimmed) > DISPLAY_NAME_MAX_LENGTH:
        return f"Display name must be {DISPLAY_NAME_MAX_LENGTH} characters or fewer"
    return None


def check_password(value: str | None) -> str | None:
    if len(value or "") < PASSWORD_MIN_LENGTH:
        return f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
    return None


def check_login_password(value: str | None) -> str | None:
    if not value:
        return "Password is required"
    return None


def check_password_confirm(password: str | None, confirm: str | None) -> str | None:
    if not confirm:
        return "Confirm password is required"
    if confirm != password:
        return "Passwords must match"
    return None


def check_game_name(value: str | None) -> str | None:
    if not value or not value.strip():
        return GAME_NAME_REQUIRED
    return None


def check_game_code(value: str | None) -> str | None:
    if not isinstance(value, str) or not GAME_CODE_PATTERN.fullmatch(value):
        return GAME_CODE_FORMAT
    return None


def validate_game_name(value: str | None) -> None:
    message = check_game_name(value)
    if message is not None:
        raise ValidationError(message, field="name")


def validate_game_code(value: str | None) -> None:
    message = check_game_code(value)
    if message is not None:
        raise ValidationError(message, field="code")


def _collect(checks: dict[str, str | None]) -> dict[str, str]:
    return {field: message for field, message in checks.items() if message is not None}


def validate_login_form(email: str, password: str) -> dict[str, str]:
    return _collect(
        {
            "email": check_email(email),
            "password": check_login_password(password),
        }
    )


def validate_registration_form(
    email: str,
    display_name: str,
    password: str,
    password_confirm: str,
) -> dict[str, str]:
    return _collect(
        {
            "email": check_email(email),
            "displayName": check_display_name(display_name),
            "password": check_password(password),
            "passwordConfirm": check_password_confirm(password, password_confirm),
        }
    )


def validate_password_reset_form(email: str) -> dict[str, str]:
    return _collect({"email": check_email(email)})


def validate_game_form(name: str, code: str) -> dict[str, str]:
    """Field errors for the create/edit game form.

    An empty code gets its own "required" message here; the service layer
    reports it as a format error.
    """
    code_message: str | None
    if not code or not code.strip():
        code_message = GAME_CODE_REQUIRED
    else:
        code_message = check_game_code(code)
    return _collect({"name": check_game_name(name), "code": code_message})
