"""
YouTube Data API v3 client.

Resolves registry identifiers (channel ids, @handles, channel and video
URLs) to channel ids and answers live/upload lookups. Every call costs
quota, so all results go through the shared ExpiringCache.
"""

import re
from typing import Any, Dict, Optional
from urllib.parse import urlparse, parse_qs

import aiohttp

from assistabot.core.interfaces import (
    ProberConfigError,
    ProberRateLimitError,
    ProberTransientError,
)
from assistabot.utils import get_logger
from assistabot.utils.cache import ExpiringCache
from .base import BaseApiClient


logger = get_logger('integrations.youtube')

YOUTUBE_API_BASE = "https://www.googleapis.com/youtube/v3"

# Cache lifetimes (seconds)
RESOLVE_TTL = 24 * 60 * 60
UNRESOLVED_TTL = 60 * 60
LIVE_TTL = 5 * 60
CHANNEL_INFO_TTL = 24 * 60 * 60
LATEST_UPLOAD_TTL = 60 * 60

QUOTA_REASONS = ('quotaExceeded', 'rateLimitExceeded', 'dailyLimitExceeded', 'userRateLimitExceeded')

_CHANNEL_ID = re.compile(r'^UC[\w-]{10,}$')


def _error_reason(error: Dict[str, Any]) -> Optional[str]:
    if error.get('reason'):
        return error['reason']
    errors = error.get('errors') or []
    if errors and isinstance(errors[0], dict):
        return errors[0].get('reason')
    return None


def best_thumbnail(snippet: Dict[str, Any], order=('high', 'medium', 'default')) -> Optional[str]:
    """Pick the first available thumbnail URL from a snippet."""
    thumbnails = (snippet or {}).get('thumbnails') or {}
    for size in order:
        url = (thumbnails.get(size) or {}).get('url')
        if url:
            return url
    return None


class YouTubeClient(BaseApiClient):
    """
    Async wrapper for the YouTube Data API v3 with an API key.
    """

    platform_name = 'youtube'

    def __init__(
        self,
        api_key: Optional[str],
        cache: Optional[ExpiringCache] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        super().__init__(cache=cache, session=session)
        self.api_key = api_key

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _check_payload(self, status: int, payload: Any) -> None:
        """YouTube reports quota exhaustion as an error object, sometimes with HTTP 200."""
        if not isinstance(payload, dict) or not isinstance(payload.get('error'), dict):
            return
        error = payload['error']
        reason = _error_reason(error)
        if reason in QUOTA_REASONS or error.get('code') == 403:
            raise ProberRateLimitError(f"YouTube API quota exceeded ({reason or error.get('code')})")
        if status < 400:
            # Error body with a success status
            raise ProberTransientError(f"YouTube API error: {error.get('message') or reason}")

    async def _api_get(self, resource: str, params: Dict[str, Any]) -> Dict[str, Any]:
        if not self.is_configured():
            raise ProberConfigError("YouTube API key not configured")
        query = dict(params)
        query['key'] = self.api_key
        payload = await self._request_json('GET', f"{YOUTUBE_API_BASE}/{resource}", params=query)
        return payload or {}

    # ==================== Channel resolution ====================

    async def resolve_channel_id(self, identifier: str) -> Optional[str]:
        """
        Resolve a registry identifier to a channel id.

        Resolution order: ``UC`` ids pass through, channel/video URLs are
        parsed, ``@handles`` use ``channels?forHandle``, and anything else
        falls back to a channel search.

        Args:
            identifier: Channel id, @handle, name or URL

        Returns:
            Channel id, or None if nothing matched
        """
        identifier = str(identifier or '').strip()
        if not identifier:
            return None
        if _CHANNEL_ID.match(identifier):
            return identifier

        key = ('youtube', 'resolve', identifier.lower())
        channel_id = self.cache.get(key)
        if channel_id is not ExpiringCache.MISSING:
            return channel_id

        channel_id = await self._resolve_uncached(identifier)
        # Misses are cached too; each search costs 100 quota units
        self.cache.set(key, channel_id, RESOLVE_TTL if channel_id else UNRESOLVED_TTL)
        return channel_id

    async def _resolve_uncached(self, identifier: str) -> Optional[str]:
        if identifier.lower().startswith(('http://', 'https://')) or 'youtu' in identifier.lower():
            resolved = await self._resolve_url(identifier)
            if resolved:
                return resolved
            # /c/<name> and /user/<name> URLs: search for the last path segment
            segments = [seg for seg in urlparse(identifier).path.split('/') if seg]
            if not segments:
                return None
            identifier = segments[-1]

        if identifier.startswith('@'):
            payload = await self._api_get('channels', {'part': 'id', 'forHandle': identifier})
            items = payload.get('items') or []
            if items:
                return items[0].get('id')

        query = identifier[1:] if identifier.startswith('@') else identifier
        payload = await self._api_get('search', {
            'part': 'snippet',
            'type': 'channel',
            'q': query,
            'maxResults': 1,
        })
        items = payload.get('items') or []
        if items:
            return (items[0].get('id') or {}).get('channelId') or (items[0].get('snippet') or {}).get('channelId')
        logger.debug(f"Could not resolve YouTube identifier '{identifier}'")
        return None

    async def _resolve_url(self, url: str) -> Optional[str]:
        if not url.lower().startswith(('http://', 'https://')):
            url = f"https://{url}"
        parsed = urlparse(url)
        host = (parsed.hostname or '').lower()
        segments = [seg for seg in parsed.path.split('/') if seg]

        video_id = None
        if host.endswith('youtu.be') and segments:
            video_id = segments[0]
        elif segments and segments[0] == 'channel' and len(segments) > 1:
            if _CHANNEL_ID.match(segments[1]):
                return segments[1]
        elif segments and segments[0].startswith('@'):
            payload = await self._api_get('channels', {'part': 'id', 'forHandle': segments[0]})
            items = payload.get('items') or []
            return items[0].get('id') if items else None
        elif segments and segments[0] in ('watch', 'live', 'shorts'):
            if segments[0] == 'watch':
                video_id = (parse_qs(parsed.query).get('v') or [None])[0]
            elif len(segments) > 1:
                video_id = segments[1]

        if video_id:
            payload = await self._api_get('videos', {'part': 'snippet', 'id': video_id})
            items = payload.get('items') or []
            if items:
                return (items[0].get('snippet') or {}).get('channelId')
        return None

    # ==================== Live status & metadata ====================

    async def get_live_video(self, channel_id: str, fresh: bool = False) -> Optional[Dict[str, Any]]:
        """
        Get the current live broadcast of a channel.

        Returns:
            Search result item, or None when not live
        """
        async def load():
            payload = await self._api_get('search', {
                'part': 'snippet',
                'channelId': channel_id,
                'eventType': 'live',
                'type': 'video',
                'maxResults': 1,
            })
            items = payload.get('items') or []
            return items[0] if items else None

        return await self._cached(('youtube', 'live', channel_id), LIVE_TTL, load, fresh=fresh)

    async def get_channel_info(self, channel_id: str) -> Optional[Dict[str, Any]]:
        """
        Get channel title and avatar.

        Returns:
            {"title": ..., "avatar": ...} or None if the channel is unknown
        """
        async def load():
            payload = await self._api_get('channels', {'part': 'snippet', 'id': channel_id})
            items = payload.get('items') or []
            if not items:
                return None
            snippet = items[0].get('snippet') or {}
            return {
                'title': snippet.get('title'),
                'avatar': best_thumbnail(snippet, order=('default', 'medium', 'high')),
            }

        return await self._cached(('youtube', 'channel', channel_id), CHANNEL_INFO_TTL, load)

    async def get_latest_upload(self, channel_id: str) -> Optional[Dict[str, Any]]:
        """
        Get the newest video of a channel.

        Returns:
            Search result item, or None if the channel has no videos
        """
        async def load():
            payload = await self._api_get('search', {
                'part': 'snippet',
                'channelId': channel_id,
                'order': 'date',
                'type': 'video',
                'maxResults': 1,
            })
            items = payload.get('items') or []
            return items[0] if items else None

        return await self._cached(('youtube', 'upload', channel_id), LATEST_UPLOAD_TTL, load)
