"""
Twitch Helix client.

Uses an app access token from the client-credentials grant. The token, the
stream lookups and the user lookups all live in the shared ExpiringCache.
"""

import asyncio
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import aiohttp

from assistabot.core.interfaces import ProberConfigError, ProberTransientError
from assistabot.utils import get_logger
from assistabot.utils.cache import ExpiringCache
from .base import BaseApiClient


logger = get_logger('integrations.twitch')

TWITCH_TOKEN_URL = "https://id.twitch.tv/oauth2/token"
TWITCH_API_BASE = "https://api.twitch.tv/helix"

# Cache lifetimes (seconds)
STREAM_TTL = 60
USER_TTL = 6 * 60 * 60
TOKEN_REFRESH_MARGIN = 60

TOKEN_KEY = ('twitch', 'token', 'app')


def parse_twitch_login(identifier: str) -> str:
    """
    Extract a Twitch login from a registry id.

    Accepts plain logins and channel URLs such as ``https://twitch.tv/foo``.

    Args:
        identifier: Registry external id

    Returns:
        Lower-cased login
    """
    value = str(identifier or '').strip()
    if value.lower().startswith(('http://', 'https://')):
        parsed = urlparse(value)
        host = (parsed.hostname or '').lower()
        if host.startswith('www.'):
            host = host[4:]
        if 'twitch.tv' in host:
            segments = [seg for seg in parsed.path.split('/') if seg]
            if segments:
                return segments[0].lower()
    return value.lower()


def default_avatar_url(login: str) -> str:
    return f"https://static-cdn.jtvnw.net/jtv_user_pictures/{login}-profile_image-300x300.png"


class TwitchClient(BaseApiClient):
    """
    Async wrapper for Twitch Helix with an app access token.

    Usage:
        client = TwitchClient(client_id, client_secret, cache=cache, session=session)
        stream = await client.get_stream("foo")
    """

    platform_name = 'twitch'

    def __init__(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        cache: Optional[ExpiringCache] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        super().__init__(cache=cache, session=session)
        self.client_id = client_id
        self.client_secret = client_secret
        self._token_lock = asyncio.Lock()

    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    # ==================== OAuth ====================

    async def get_app_token(self) -> str:
        """
        Get a valid app access token, requesting a new one when needed.

        Raises:
            ProberConfigError: If client id/secret are missing
            ProberTransientError: If the token exchange fails
        """
        if not self.is_configured():
            raise ProberConfigError("Twitch client id/secret not configured")

        async with self._token_lock:
            token = self.cache.get(TOKEN_KEY)
            if token is not ExpiringCache.MISSING:
                return token

            payload = await self._request_json(
                'POST',
                TWITCH_TOKEN_URL,
                data={
                    'client_id': self.client_id,
                    'client_secret': self.client_secret,
                    'grant_type': 'client_credentials',
                },
            )
            token = (payload or {}).get('access_token')
            if not token:
                raise ProberTransientError("Twitch token exchange returned no access_token")

            expires_in = float((payload or {}).get('expires_in') or 0)
            # Refresh a minute before Twitch expires it
            self.cache.set(TOKEN_KEY, token, expires_in - TOKEN_REFRESH_MARGIN)
            logger.info("Obtained Twitch app access token")
            return token

    def _check_payload(self, status: int, payload: Any) -> None:
        if status == 401:
            # Revoked or expired early; fetch a new one next time
            self.cache.invalidate(TOKEN_KEY)

    async def _helix_get(self, path: str, params: Dict[str, str]) -> Dict[str, Any]:
        token = await self.get_app_token()
        headers = {
            'Client-Id': self.client_id,
            'Authorization': f"Bearer {token}",
        }
        payload = await self._request_json('GET', f"{TWITCH_API_BASE}{path}", params=params, headers=headers)
        return payload or {}

    # ==================== Streams & Users ====================

    async def get_stream(self, login: str, fresh: bool = False) -> Optional[Dict[str, Any]]:
        """
        Get the live stream of a user.

        Args:
            login: Twitch login
            fresh: Bypass the cached result

        Returns:
            Helix stream object, or None when offline
        """
        login = login.lower()

        async def load():
            payload = await self._helix_get('/streams', {'user_login': login})
            data = payload.get('data') or []
            return data[0] if data else None

        return await self._cached(('twitch', 'stream', login), STREAM_TTL, load, fresh=fresh)

    async def get_user(self, login: str) -> Optional[Dict[str, Any]]:
        """
        Get a Helix user object (display name, avatar).

        Returns:
            Helix user object, or None if no such user
        """
        login = login.lower()

        async def load():
            payload = await self._helix_get('/users', {'login': login})
            data = payload.get('data') or []
            return data[0] if data else None

        return await self._cached(('twitch', 'user', login), USER_TTL, load)
