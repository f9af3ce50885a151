"""
YouTube live-status prober backed by the Data API v3.

Besides live broadcasts it reports the newest upload, which the notifier
service uses for VOD announcements.
"""

from typing import Any, Dict, Optional

from assistabot.core.interfaces import Prober, ProberNotFoundError
from assistabot.core.models import Platform, StreamEntry, StreamInfo, ProbeResult
from assistabot.integrations import YouTubeClient, best_thumbnail
from assistabot.utils import parse_datetime, to_unix_timestamp


def video_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


def channel_url(identifier: str) -> str:
    identifier = identifier.strip()
    if identifier.startswith('UC'):
        return f"https://www.youtube.com/channel/{identifier}"
    return f"https://www.youtube.com/@{identifier.lstrip('@')}"


class YouTubeProber(Prober):
    """Probes YouTube channels for live broadcasts and new uploads."""

    platform = Platform.YOUTUBE

    def __init__(self, client: YouTubeClient):
        self.client = client

    def is_configured(self) -> bool:
        return self.client.is_configured()

    async def _channel_id(self, entry: StreamEntry) -> str:
        channel_id = await self.client.resolve_channel_id(entry.external_id)
        if not channel_id:
            raise ProberNotFoundError(f"YouTube channel '{entry.external_id}' could not be resolved")
        return channel_id

    async def _build_info(self, channel_id: str, item: Dict[str, Any], fallback_url: str, default_title: str) -> StreamInfo:
        snippet = item.get('snippet') or {}
        video_id = (item.get('id') or {}).get('videoId')
        channel_info = await self.client.get_channel_info(channel_id) or {}
        published = parse_datetime(snippet.get('publishedAt'))

        return StreamInfo(
            platform=self.platform.value,
            name=snippet.get('channelTitle') or channel_info.get('title') or channel_id,
            url=video_url(video_id) if video_id else fallback_url,
            title=snippet.get('title') or default_title,
            thumbnail_url=best_thumbnail(snippet, order=('high', 'medium')),
            avatar_url=channel_info.get('avatar'),
            started_at=to_unix_timestamp(published) if published else None,
            video_id=video_id,
        )

    async def probe(self, guild_id: str, entry: StreamEntry, fresh: bool = False) -> ProbeResult:
        channel_id = await self._channel_id(entry)
        item = await self.client.get_live_video(channel_id, fresh=fresh)
        if not item:
            return ProbeResult.offline()

        info = await self._build_info(channel_id, item, channel_url(entry.external_id), 'Live now')
        return ProbeResult(live=True, info=info)

    async def latest_upload(self, entry: StreamEntry) -> Optional[StreamInfo]:
        """
        Get the newest upload of the entry's channel.

        Returns:
            StreamInfo with ``video_id`` and ``started_at`` (publish time), or None
        """
        channel_id = await self._channel_id(entry)
        item = await self.client.get_latest_upload(channel_id)
        if not item or not (item.get('id') or {}).get('videoId'):
            return None
        return await self._build_info(channel_id, item, channel_url(entry.external_id), 'New upload')

    async def close(self) -> None:
        await self.client.close()
