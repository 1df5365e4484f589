"""Static credential authentication.

Accounts come from the environment:

    LOGIN_USERNAME1 / LOGIN_PASSWORD1, LOGIN_USERNAME2 / LOGIN_PASSWORD2, ...
    LOGIN_USERNAME (or LOGIN_EMAIL) / LOGIN_PASSWORD   single-account fallback
    SUPERADMIN_USERNAME                                 the one identity that may edit records

Usernames are compared trimmed and case-insensitively, passwords trimmed.
"""
import logging
import os
import secrets
from collections.abc import Mapping

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from pydantic import BaseModel

logger = logging.getLogger(__name__)

DEFAULT_USERNAME = "admin"
DEFAULT_PASSWORD = "admin123"

http_basic = HTTPBasic(auto_error=False)


class Identity(BaseModel):
    username: str
    is_super_admin: bool = False


class AuthProvider:
    """Validates credentials and returns the matching identity, or None."""

    def validate(self, username: str, password: str) -> Identity | None:
        raise NotImplementedError


class EnvCredentialsProvider(AuthProvider):
    def __init__(self, environ: Mapping[str, str] | None = None):
        self.environ = os.environ if environ is None else environ

    def _get(self, key: str) -> str:
        return str(self.environ.get(key) or "").strip()

    def accounts(self) -> list[tuple[str, str]]:
        """Numbered accounts first, then the single-account fallback."""
        accounts = []
        index = 1
        while True:
            username = self._get(f"LOGIN_USERNAME{index}")
            password = self._get(f"LOGIN_PASSWORD{index}")
            if not username or not password:
                break
            accounts.append((username.lower(), password))
            index += 1

        fallback_user = (self._get("LOGIN_USERNAME") or self._get("LOGIN_EMAIL") or DEFAULT_USERNAME).lower()
        fallback_password = self._get("LOGIN_PASSWORD") or DEFAULT_PASSWORD
        accounts.append((fallback_user, fallback_password))
        return accounts

    def super_admin_username(self) -> str:
        explicit = self._get("SUPERADMIN_USERNAME") or self._get("LOGIN_USERNAME1")
        if explicit:
            return explicit.lower()
        return (self._get("LOGIN_USERNAME") or self._get("LOGIN_EMAIL") or DEFAULT_USERNAME).lower()

    def validate(self, username: str, password: str) -> Identity | None:
        username = (username or "").strip()
        password = (password or "").strip()
        if not username or not password:
            return None

        key = username.lower()
        for allowed_user, allowed_password in self.accounts():
            if key == allowed_user and secrets.compare_digest(password.encode(), allowed_password.encode()):
                return Identity(username=username, is_super_admin=key == self.super_admin_username())
        return None


_provider: AuthProvider = EnvCredentialsProvider()


def get_auth_provider() -> AuthProvider:
    return _provider


def require_editor(
    credentials: HTTPBasicCredentials | None = Depends(http_basic),
    provider: AuthProvider = Depends(get_auth_provider),
) -> Identity:
    """Only the super admin may edit existing records; everyone else is view-only."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Basic"},
        )

    identity = provider.validate(credentials.username, credentials.password)
    if identity is None:
        logger.warning(f"Rejected credentials for {credentials.username!r}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
            headers={"WWW-Authenticate": "Basic"},
        )
    if not identity.is_super_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="View-only account")
    return identity
