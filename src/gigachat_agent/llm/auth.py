"""
OAuth2 client-credentials token cache.

Keeps a single access token and refreshes it when it is missing or about to
expire. Refreshes are serialized: concurrent callers wait on the lock and
reuse whatever the first caller fetched.
"""

import asyncio
import base64
import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable

import httpx
import structlog

from ..errors import AuthError

logger = structlog.get_logger()

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
DEFAULT_SAFETY_MARGIN = timedelta(seconds=60)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AccessToken:
    """A bearer token and the instant it stops being valid."""

    value: str | None = None
    expires_at: datetime = field(default=EPOCH)

    def is_usable(self, now: datetime, margin: timedelta = DEFAULT_SAFETY_MARGIN) -> bool:
        """A token is usable only while it has a value and is outside the safety margin."""
        return self.value is not None and now < self.expires_at - margin


def build_basic_auth(client_id: str, client_secret: str) -> str:
    credentials = f"{client_id}:{client_secret}".encode("utf-8")
    return base64.b64encode(credentials).decode("ascii")


def parse_token_response(body: str) -> AccessToken:
    """Parse the token endpoint's JSON response.

    Missing fields are tolerated: no ``access_token`` gives a token without a
    value, and a missing or out-of-range ``expires_at`` (epoch milliseconds)
    leaves the expiry at the epoch so the token counts as already expired.

    Raises:
        ValueError: If the body is not a JSON object.
    """
    data = json.loads(body)
    if not isinstance(data, dict):
        raise ValueError("token response is not a JSON object")

    value = data.get("access_token")
    if not isinstance(value, str) or not value:
        value = None

    expires_at = EPOCH
    raw_expiry = data.get("expires_at")
    if isinstance(raw_expiry, (int, float)) and not isinstance(raw_expiry, bool):
        try:
            expires_at = EPOCH + timedelta(milliseconds=raw_expiry)
        except (OverflowError, ValueError):
            logger.warning("Token expiry out of range, treating token as expired", expires_at=raw_expiry)

    return AccessToken(value=value, expires_at=expires_at)


class TokenCache:
    """Caches the OAuth access token for one client identity."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        token_url: str,
        http_client: httpx.AsyncClient,
        scope: str = "GIGACHAT_API_PERS",
        clock: Callable[[], datetime] = utcnow,
        safety_margin: timedelta = DEFAULT_SAFETY_MARGIN,
    ):
        self.client_id = client_id
        self._client_secret = client_secret
        self.token_url = token_url
        self.scope = scope
        self._http = http_client
        self._clock = clock
        self.safety_margin = safety_margin
        self._token: AccessToken | None = None
        self._lock = asyncio.Lock()

    @property
    def token(self) -> AccessToken | None:
        """The currently cached token, usable or not."""
        return self._token

    def invalidate(self) -> None:
        """Forget the cached token so the next call fetches a new one."""
        self._token = None

    def _cached(self) -> AccessToken | None:
        if self._token is not None and self._token.is_usable(self._clock(), self.safety_margin):
            return self._token
        return None

    async def get_access_token(self) -> AccessToken:
        """Return a usable access token, refreshing it if needed.

        A response without ``access_token`` is not cached and raises, so the
        previous token (if any) stays in place and callers see the failure
        rather than a token with no value.

        Raises:
            AuthError: If the token endpoint fails or returns no token.
        """
        token = self._cached()
        if token is not None:
            return token

        async with self._lock:
            # Another caller may have refreshed while we waited
            token = self._cached()
            if token is not None:
                return token

            token = await self._fetch_token()
            if token.value is None:
                raise AuthError("Token response did not contain access_token")

            self._token = token
            if token.expires_at == EPOCH:
                logger.warning("Token response did not contain expires_at, token will be refreshed on next use")
            else:
                logger.info("Access token refreshed", expires_at=token.expires_at.isoformat())
            return token

    async def _fetch_token(self) -> AccessToken:
        headers = {
            "Authorization": f"Basic {build_basic_auth(self.client_id, self._client_secret)}",
            "RqUID": str(uuid.uuid4()),
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
        }

        try:
            response = await self._http.post(
                self.token_url,
                headers=headers,
                data={"scope": self.scope},
            )
        except httpx.HTTPError as e:
            logger.error("Token request failed", error=str(e))
            raise AuthError("Token request failed", original_error=e) from e

        if response.status_code != 200:
            logger.error("Token endpoint returned an error", status_code=response.status_code)
            raise AuthError(
                f"Token endpoint returned HTTP {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            return parse_token_response(response.text)
        except ValueError as e:
            logger.error("Could not parse token response", error=str(e))
            raise AuthError("Could not parse token response", original_error=e, body=response.text) from e
