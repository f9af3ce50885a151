"""
Template Service for AssistaBot.

Renders notification message templates by literal token replacement.
There is no grammar: no escaping, no conditionals, unknown braces are left
untouched.
"""

from typing import Optional

from ..models import Platform, StreamEntry, StreamInfo


TEMPLATE_TOKENS = ('name', 'title', 'url', 'platform', 'game', 'user')


class TemplateService:
    """
    Service for rendering live and upload notification messages.

    Supported tokens: {name}, {title}, {url}, {platform}, {game}, {user}
    """

    def render(self, template: Optional[str], **tokens) -> str:
        """
        Substitute ``{token}`` occurrences with their values.

        Args:
            template: Message template
            **tokens: Token values (None renders as an empty string)

        Returns:
            Rendered message
        """
        output = str(template or '')
        for token, value in tokens.items():
            output = output.replace('{' + token + '}', '' if value is None else str(value))
        return output

    @staticmethod
    def default_live_template(platform: str) -> str:
        """Get the fallback live template, e.g. "{name} is live on Twitch: {title} {url}"."""
        platform_enum = Platform.from_string(platform)
        display = platform_enum.display_name if platform_enum else str(platform).title()
        return '{name} is live on ' + display + ': {title} {url}'

    def tokens_for(self, entry: StreamEntry, info: StreamInfo) -> dict:
        """Build the token values for an entry and its stream metadata."""
        platform_enum = Platform.from_string(entry.platform)
        user = f"<@{entry.bound_discord_user_id}>" if entry.bound_discord_user_id else info.name
        return {
            'name': info.name,
            'title': info.title or '',
            'url': info.url or '',
            'platform': platform_enum.display_name if platform_enum else entry.platform,
            'game': info.game or '',
            'user': user,
        }

    def render_live(self, entry: StreamEntry, info: StreamInfo) -> str:
        """Render the live notification for an entry."""
        template = entry.live_message_template or self.default_live_template(entry.platform)
        return self.render(template, **self.tokens_for(entry, info))

    def render_upload(self, entry: StreamEntry, info: StreamInfo) -> str:
        """Render the new-upload notification for an entry."""
        return self.render(entry.vod_message_template, **self.tokens_for(entry, info))
