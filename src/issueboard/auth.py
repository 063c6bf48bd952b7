"""Identity-service client and session persistence.

Sign-in goes through the hosted identity toolkit (email + password). The
resulting :class:`~issueboard.models.CurrentUser` is handed explicitly to the
service layer; it is never stored in a module global. For the CLI the user is
saved to a small JSON session file so consecutive commands share a login.

Credentials can come from the command line, the environment
(``ISSUEBOARD_EMAIL`` / ``ISSUEBOARD_PASSWORD``) or a ``.env`` file.
"""

from __future__ import annotations

import hashlib
import json
import os
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import requests
from dotenv import load_dotenv

from .errors import AuthError
from .logging import get_logger
from .models import CurrentUser

DEFAULT_AUTH_URL = "https://identitytoolkit.googleapis.com/v1"
DEFAULT_TOKEN_URL = "https://securetoken.googleapis.com/v1/token"
HTTP_ERROR_STATUS = 400
EMAIL_VAR = "ISSUEBOARD_EMAIL"
PASSWORD_VAR = "ISSUEBOARD_PASSWORD"


def describe_auth_error(code: str) -> str:
    """Turn 'EMAIL_NOT_FOUND : detail' into 'Email not found'."""
    head = code.split(":", 1)[0].strip()
    if not head:
        return "Authentication failed"
    return head.replace("_", " ").capitalize()


@dataclass
class IdentityClient:
    """Email/password sign-in against the identity toolkit REST API."""

    api_key: str | None
    base_url: str = DEFAULT_AUTH_URL
    token_url: str = DEFAULT_TOKEN_URL
    timeout: float = 10.0
    session: requests.Session | None = None
    _session: requests.Session = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._session = self.session or requests.Session()
        self.logger = get_logger()

    def _post(self, action: str, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.base_url.rstrip('/')}/accounts:{action}"
        return self._send(url, json=payload)

    def _send(self, url: str, **body: Any) -> dict[str, Any]:
        if not self.api_key:
            raise AuthError("No API key configured for the identity service")
        try:
            response = self._session.post(
                url, params={"key": self.api_key}, timeout=self.timeout, **body
            )
        except requests.RequestException as exc:
            raise AuthError(f"Identity service unreachable: {exc}") from exc
        try:
            data = response.json()
        except ValueError:
            data = {}
        if response.status_code >= HTTP_ERROR_STATUS:
            error = data.get("error") if isinstance(data, dict) else None
            code = str(error.get("message", "")) if isinstance(error, dict) else ""
            raise AuthError(describe_auth_error(code))
        if not isinstance(data, dict):
            raise AuthError("Identity service returned an unexpected response")
        return data

    def _user_from_response(self, data: dict[str, Any], fallback_email: str) -> CurrentUser:
        token = data.get("idToken")
        uid = data.get("localId")
        if not token or not uid:
            raise AuthError("Missing token or user id in sign-in response")
        expires_at = None
        if data.get("expiresIn"):
            expires_at = datetime.now(timezone.utc) + timedelta(seconds=int(data["expiresIn"]))
        return CurrentUser(
            uid=str(uid),
            email=str(data.get("email") or fallback_email),
            id_token=str(token),
            refresh_token=data.get("refreshToken"),
            expires_at=expires_at,
        )

    def sign_in(self, email: str, password: str) -> CurrentUser:
        data = self._post(
            "signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        user = self._user_from_response(data, email)
        self.logger.log_operation("sign_in", user=user.identity)
        return user

    def sign_up(self, email: str, password: str) -> CurrentUser:
        data = self._post(
            "signUp", {"email": email, "password": password, "returnSecureToken": True}
        )
        user = self._user_from_response(data, email)
        self.logger.log_operation("sign_up", user=user.identity)
        return user

    def refresh(self, user: CurrentUser) -> CurrentUser:
        """Exchange the stored refresh token for a fresh id token."""
        if not user.refresh_token:
            raise AuthError("Session expired (run 'issueboard login')")
        data = self._send(
            self.token_url,
            data={"grant_type": "refresh_token", "refresh_token": user.refresh_token},
        )
        # The token endpoint answers in snake_case
        refreshed = self._user_from_response(
            {
                "idToken": data.get("id_token"),
                "localId": data.get("user_id") or user.uid,
                "refreshToken": data.get("refresh_token") or user.refresh_token,
                "expiresIn": data.get("expires_in"),
            },
            user.email,
        )
        self.logger.log_operation("refresh_session", user=refreshed.identity)
        return refreshed


class SessionStore:
    """JSON file holding the signed-in user between CLI invocations."""

    def __init__(self, path: Path):
        self.path = path

    def save(self, user: CurrentUser) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(user.to_dict(), indent=2) + "\n", encoding="utf-8")
        tmp.replace(self.path)
        try:
            os.chmod(self.path, 0o600)
        except OSError:  # pragma: no cover - platform dependent
            get_logger().debug("could not restrict session file permissions", path=str(self.path))

    def load(self, *, allow_expired: bool = False) -> CurrentUser | None:
        if not self.path.exists():
            return None
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            get_logger().debug("ignoring unreadable session file", path=str(self.path), error=str(exc))
            return None
        if not isinstance(raw, dict):
            return None
        user = CurrentUser.from_dict(raw)
        if not user.id_token or (user.is_expired() and not allow_expired):
            return None
        return user

    def clear(self) -> bool:
        if self.path.exists():
            self.path.unlink()
            return True
        return False

    def require(self, refresh: Callable[[CurrentUser], CurrentUser] | None = None) -> CurrentUser:
        """Return the saved user, refreshing an expired session when possible."""
        user = self.load(allow_expired=refresh is not None)
        if user is not None and user.is_expired():
            if refresh is None or not user.refresh_token:
                user = None
            else:
                user = refresh(user)
                self.save(user)
        if user is None:
            raise AuthError("You must be logged in (run 'issueboard login')")
        return user


def local_user(email: str) -> CurrentUser:
    """Session for the local (mock) store, where no identity service exists."""
    uid = hashlib.sha256(email.lower().encode("utf-8")).hexdigest()[:28]
    return CurrentUser(uid=uid, email=email, id_token="local-session")


def load_credentials_env(dotenv_path: str | None = None, *, use_dotenv: bool = True) -> tuple[str | None, str | None]:
    """Return (email, password) from the environment, loading a .env file first."""
    if use_dotenv:
        candidate = Path(dotenv_path or ".env")
        if candidate.exists():
            load_dotenv(str(candidate))
            get_logger().debug("Loaded environment variables", path=str(candidate))
    return os.getenv(EMAIL_VAR), os.getenv(PASSWORD_VAR)


__all__ = [
    "IdentityClient",
    "SessionStore",
    "describe_auth_error",
    "local_user",
    "load_credentials_env",
]
