# auth.py
from __future__ import annotations

import logging

from werkzeug.security import check_password_hash, generate_password_hash

from repository import TimeTrackerRepository

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


class AuthError(Exception):
    """Sign-up or sign-in rejected; the message is safe to show to the user."""


def _normalize_email(email: str) -> str:
    email = (email or "").strip().lower()
    if "@" not in email or email.startswith("@") or email.endswith("@"):
        raise AuthError("Enter a valid email address.")
    return email


def sign_up(repo: TimeTrackerRepository, email: str, password: str) -> str:
    """Creates an account and returns its user id."""
    email = _normalize_email(email)
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise AuthError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    if repo.find_account(email) is not None:
        raise AuthError("An account with this email already exists.")
    return repo.create_account(email, generate_password_hash(password))


def sign_in(repo: TimeTrackerRepository, email: str, password: str) -> str:
    account = repo.find_account(_normalize_email(email))
    if account is None or not check_password_hash(account.password_hash, password or ""):
        logger.info("Failed sign-in attempt")
        raise AuthError("Invalid email or password.")
    return account.id
