"""
Identity provider client.

Resolves bearer tokens to users for interactive requests and lists user
email addresses for the reminder job. Talks to a GoTrue-compatible auth API
(`/auth/v1/user`, `/auth/v1/admin/users`) over httpx.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Optional

import httpx

from portal.config import settings
from portal.errors import AuthorizationError, DependencyError

logger = logging.getLogger(__name__)

USERS_PAGE_SIZE = 1000


@dataclass(frozen=True)
class AuthenticatedUser:
    id: str
    email: Optional[str] = None


class IdentityService:
    """Client for the identity provider's auth API"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        anon_key: Optional[str] = None,
        service_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = (base_url or settings.identity_url or "").rstrip("/")
        self.anon_key = anon_key or settings.identity_anon_key
        self.service_key = service_key or settings.identity_service_key
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

        if not self.base_url:
            logger.warning("IDENTITY_URL not configured - authentication will fail")

    def _client(self) -> httpx.Client:
        return httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    def get_user(self, token: Optional[str]) -> AuthenticatedUser:
        """
        Resolve a bearer token to the user it belongs to.

        Raises:
            AuthorizationError: token missing, invalid or expired
            DependencyError: identity provider unreachable or misbehaving
        """
        if not token:
            raise AuthorizationError("Missing Authorization token")
        if not self.base_url:
            raise DependencyError("Identity provider not configured")

        headers = {"Authorization": f"Bearer {token}"}
        if self.anon_key:
            headers["apikey"] = self.anon_key

        try:
            with self._client() as client:
                response = client.get("/auth/v1/user", headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Identity provider request failed: {e}")
            raise DependencyError("Identity provider unavailable") from e

        if response.status_code in (401, 403):
            raise AuthorizationError("Invalid token")
        if response.status_code >= 400:
            logger.error(f"Identity provider returned {response.status_code} for /user")
            raise DependencyError(f"Identity provider error ({response.status_code})")

        data = response.json()
        if not data.get("id"):
            raise AuthorizationError("Invalid token")
        return AuthenticatedUser(id=str(data["id"]), email=data.get("email"))

    def list_user_emails(self) -> Dict[str, str]:
        """
        Map every user id to its email address (users without one are omitted).

        Raises:
            DependencyError: the listing could not be fetched
        """
        if not self.base_url or not self.service_key:
            raise DependencyError("Identity admin access not configured")

        headers = {
            "Authorization": f"Bearer {self.service_key}",
            "apikey": self.service_key,
        }
        emails: Dict[str, str] = {}
        page = 1
        try:
            with self._client() as client:
                while True:
                    response = client.get(
                        "/auth/v1/admin/users",
                        params={"page": page, "per_page": USERS_PAGE_SIZE},
                        headers=headers,
                    )
                    if response.status_code >= 400:
                        raise DependencyError(f"User listing failed ({response.status_code})")

                    payload = response.json()
                    users = payload.get("users", []) if isinstance(payload, dict) else payload
                    for user in users:
                        if user.get("id") and user.get("email"):
                            emails[str(user["id"])] = user["email"]

                    if len(users) < USERS_PAGE_SIZE:
                        break
                    page += 1
        except httpx.HTTPError as e:
            logger.error(f"Identity provider request failed: {e}")
            raise DependencyError("Identity provider unavailable") from e

        logger.info(f"Loaded {len(emails)} user email addresses")
        return emails


identity_service = IdentityService()
