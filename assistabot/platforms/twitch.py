"""
Twitch live-status prober backed by the Helix API.
"""

from typing import Optional

from assistabot.core.interfaces import Prober, ProberNotFoundError, ProberTransientError
from assistabot.core.models import Platform, StreamEntry, StreamInfo, ProbeResult
from assistabot.integrations import TwitchClient, parse_twitch_login, default_avatar_url
from assistabot.utils import get_logger, parse_datetime, to_unix_timestamp


logger = get_logger('platforms.twitch')

THUMBNAIL_WIDTH = 1280
THUMBNAIL_HEIGHT = 720


def watch_url(login: str) -> str:
    return f"https://twitch.tv/{login}"


def _thumbnail(template: Optional[str]) -> Optional[str]:
    if not template:
        return None
    return template.replace('{width}', str(THUMBNAIL_WIDTH)).replace('{height}', str(THUMBNAIL_HEIGHT))


class TwitchProber(Prober):
    """Probes Twitch logins through Helix ``/streams`` and ``/users``."""

    platform = Platform.TWITCH

    def __init__(self, client: TwitchClient):
        self.client = client

    def is_configured(self) -> bool:
        return self.client.is_configured()

    async def probe(self, guild_id: str, entry: StreamEntry, fresh: bool = False) -> ProbeResult:
        login = parse_twitch_login(entry.external_id)
        stream = await self.client.get_stream(login, fresh=fresh)
        if not stream:
            return ProbeResult.offline()

        avatar = None
        try:
            user = await self.client.get_user(login)
            if user:
                avatar = user.get('profile_image_url')
        except (ProberNotFoundError, ProberTransientError) as e:
            # Avatar is cosmetic; fall back to the CDN pattern
            logger.debug(f"Twitch user lookup for {login} failed: {e}")
        if not avatar:
            avatar = default_avatar_url(login)

        started = parse_datetime(stream.get('started_at'))
        info = StreamInfo(
            platform=self.platform.value,
            name=stream.get('user_name') or login,
            url=watch_url(login),
            title=stream.get('title') or 'Live now',
            game=stream.get('game_name') or None,
            thumbnail_url=_thumbnail(stream.get('thumbnail_url')),
            avatar_url=avatar,
            started_at=to_unix_timestamp(started) if started else None,
            video_id=stream.get('id'),
        )
        return ProbeResult(live=True, info=info)

    async def close(self) -> None:
        await self.client.close()
