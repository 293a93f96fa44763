"""
Auth Client
===========

Small synchronous client for the eNyayaSetu auth API.

The session returned by sign-up/sign-in is persisted to a JSON file and
reloaded on construction, so scripts stay signed in between runs.

Environment Variables:
- NYAYASETU_API_URL: Backend base URL (default: http://localhost:8000)
- NYAYASETU_SESSION_FILE: Session file (default: ~/.nyayasetu/session.json)

Usage:
    client = AuthClient()
    client.sign_in("user@example.com", "secret")
    httpx.get(f"{client.base_url}/api/cases", headers=client.auth_headers())
"""

import os
import json
import logging
from pathlib import Path
from typing import Optional, Dict, Any

import httpx

from .errors import ServiceError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = os.environ.get("NYAYASETU_API_URL", "http://localhost:8000")
DEFAULT_SESSION_FILE = os.environ.get(
    "NYAYASETU_SESSION_FILE",
    str(Path.home() / ".nyayasetu" / "session.json"),
)


class AuthClient:
    """Sign-up/sign-in against the backend with a file-backed session."""

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        session_file: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.session_file = Path(session_file or DEFAULT_SESSION_FILE)
        self.timeout = timeout
        self._transport = transport
        self.session: Optional[Dict[str, Any]] = self._load_session()

    # -------------------------------------------------------------------------
    # Session file
    # -------------------------------------------------------------------------

    def _load_session(self) -> Optional[Dict[str, Any]]:
        if not self.session_file.exists():
            return None
        try:
            data = json.loads(self.session_file.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable session file {self.session_file}: {e}")
            return None
        return data if isinstance(data, dict) and data.get("access_token") else None

    def _save_session(self, session: Dict[str, Any]) -> None:
        self.session_file.parent.mkdir(parents=True, exist_ok=True)
        self.session_file.write_text(json.dumps(session, indent=2), encoding="utf-8")
        self.session = session

    # -------------------------------------------------------------------------
    # HTTP
    # -------------------------------------------------------------------------

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        with httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self._transport) as client:
            response = client.post(path, json=payload)
        try:
            data = response.json()
        except ValueError:
            data = {}
        if response.status_code >= 400:
            message = data.get("error") if isinstance(data, dict) else None
            raise ServiceError(message or f"Request failed: {response.status_code}", status_code=response.status_code)
        return data

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    @property
    def is_signed_in(self) -> bool:
        return bool(self.session and self.session.get("access_token"))

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        return self.session.get("user") if self.session else None

    def sign_up(self, email: str, password: str, display_name: Optional[str] = None) -> Dict[str, Any]:
        payload = {"email": email, "password": password}
        if display_name:
            payload["display_name"] = display_name
        session = self._post("/api/auth/signup", payload)
        self._save_session(session)
        logger.info(f"Signed up as {email}")
        return session

    def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        session = self._post("/api/auth/signin", {"email": email, "password": password})
        self._save_session(session)
        logger.info(f"Signed in as {email}")
        return session

    def sign_out(self) -> None:
        """Forget the session and delete the session file."""
        self.session = None
        if self.session_file.exists():
            self.session_file.unlink()

    def auth_headers(self) -> Dict[str, str]:
        """`Authorization` header for the current session, empty when signed out."""
        if not self.is_signed_in:
            return {}
        return {"Authorization": f"Bearer {self.session['access_token']}"}
