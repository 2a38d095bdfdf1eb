"""
auth.py
Authentication utilities (bcrypt hashing, verify, login, change password)
and the session accessor handed to every page.

This avoids passlib's bcrypt backend auto-detection issues on some Python 3.13 Windows setups.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

import bcrypt
import db

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True)
class AuthSession:
    """What the views may know about the signed-in user."""

    current_user: str | None
    is_loading: bool
    sign_out: Callable[[], None]

    @property
    def signed_in(self) -> bool:
        return not self.is_loading and bool(self.current_user)


def _to_bcrypt_secret(password: str) -> bytes:
    """
    bcrypt only uses the first 72 BYTES of the password.
    We truncate to 72 bytes to avoid ValueError and to make behavior explicit.
    """
    pw = password.encode("utf-8")
    if len(pw) > 72:
        pw = pw[:72]
    return pw


def hash_password(password: str) -> str:
    """
    Returns a bcrypt hash as a UTF-8 string (stored in SQLite).
    """
    secret = _to_bcrypt_secret(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(secret, salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    secret = _to_bcrypt_secret(password)
    stored = password_hash.encode("utf-8")
    return bcrypt.checkpw(secret, stored)


def get_admin_by_email(email: str):
    return db.fetch_one("SELECT * FROM admin_users WHERE email = ?", (email.strip().lower(),))


def login(email: str, password: str) -> bool:
    admin = get_admin_by_email(email)
    if not admin:
        logger.info("Login rejected for unknown user %s", email)
        return False
    ok = verify_password(password, admin["password_hash"])
    if not ok:
        logger.info("Login rejected for %s", email)
    return ok


def validate_new_password(new1: str, new2: str) -> list[str]:
    errors: list[str] = []
    if len(new1) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    if new1 != new2:
        errors.append("Passwords do not match.")
    return errors


def change_password(email: str, new_password: str) -> None:
    new_hash = hash_password(new_password)
    db.execute(
        "UPDATE admin_users SET password_hash = ? WHERE email = ?",
        (new_hash, email.strip().lower()),
    )
    logger.info("Password changed for %s", email)
