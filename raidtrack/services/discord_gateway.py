"""Discord-backed implementations of the reconciler collaborators."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, Mapping, Optional

import discord
from discord.ext import commands

from raidtrack.errors import ArtifactError, ArtifactNotFound, DestinationUnresolved
from raidtrack.services.gateways import (
    AnnouncementStore,
    DestinationDirectory,
    IdentityLookup,
    ScheduledEntry,
    ScheduledEntryStore,
)
from raidtrack.utils.raid_utils import RenderedAnnouncement
from raidtrack.utils.signup_views import build_signup_view


logger = logging.getLogger("raidtrack.discord_gateway")


def _get_guild(bot: commands.Bot, scope: str) -> Optional[discord.Guild]:
    try:
        return bot.get_guild(int(scope))
    except (TypeError, ValueError):
        return None


def _as_datetime(timestamp: int) -> datetime:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


async def _get_text_channel(
    guild: discord.Guild,
    channel_id: int,
) -> Optional[discord.TextChannel]:
    channel = guild.get_channel(channel_id)
    if not isinstance(channel, discord.TextChannel):
        try:
            channel = await guild.fetch_channel(channel_id)
        except discord.HTTPException:
            return None
    return channel if isinstance(channel, discord.TextChannel) else None


class DiscordDestinationDirectory(DestinationDirectory):
    """Routes difficulties to text channels, with a fallback channel."""

    def __init__(
        self,
        bot: commands.Bot,
        routing: Mapping[str, str],
        fallback_channel_id: Optional[str] = None,
    ):
        self.bot = bot
        self.routing = {str(key).upper(): value for key, value in routing.items()}
        self.fallback_channel_id = fallback_channel_id

    async def resolve(self, scope: str, difficulty: str) -> str:
        guild = _get_guild(self.bot, scope)
        if not guild:
            raise DestinationUnresolved(f"Guild {scope} is not available")

        candidates = [self.routing.get(str(difficulty or "").upper()), self.fallback_channel_id]
        for channel_id in candidates:
            if not channel_id:
                continue
            try:
                channel = await _get_text_channel(guild, int(channel_id))
            except ValueError:
                logger.warning("Ignoring invalid channel id %r", channel_id)
                continue
            if channel:
                return str(channel.id)
            logger.warning("Channel %s for %s is not a usable text channel", channel_id, difficulty)

        raise DestinationUnresolved(
            f"No announcement channel for difficulty {difficulty} in guild {scope}"
        )


class DiscordAnnouncementStore(AnnouncementStore):
    """Posts announcements as embeds with the signup buttons."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    async def _channel(self, scope: str, channel_id: str) -> discord.TextChannel:
        guild = _get_guild(self.bot, scope)
        if not guild:
            raise ArtifactError(f"Guild {scope} is not available")
        try:
            channel = guild.get_channel(int(channel_id)) or await guild.fetch_channel(
                int(channel_id)
            )
        except discord.NotFound as exc:
            raise ArtifactNotFound(f"Channel {channel_id} no longer exists") from exc
        except discord.HTTPException as exc:
            raise ArtifactError(f"Channel {channel_id} lookup failed: {exc}") from exc
        if not isinstance(channel, discord.TextChannel):
            raise ArtifactError(f"Channel {channel_id} is not a text channel")
        return channel

    async def create(self, scope: str, channel_id: str, content: RenderedAnnouncement) -> str:
        channel = await self._channel(scope, channel_id)
        try:
            message = await channel.send(
                embed=content.to_embed(),
                view=build_signup_view(content.raid_id),
            )
        except discord.HTTPException as exc:
            raise ArtifactError(
                f"Posting announcement failed: {exc}", raid_id=content.raid_id
            ) from exc
        return str(message.id)

    async def edit(
        self,
        scope: str,
        channel_id: str,
        message_id: str,
        content: RenderedAnnouncement,
    ) -> None:
        channel = await self._channel(scope, channel_id)
        message = channel.get_partial_message(int(message_id))
        try:
            await message.edit(
                embed=content.to_embed(),
                view=build_signup_view(content.raid_id),
                attachments=[],
            )
        except discord.NotFound as exc:
            raise ArtifactNotFound(
                f"Message {message_id} no longer exists", raid_id=content.raid_id
            ) from exc
        except discord.HTTPException as exc:
            raise ArtifactError(
                f"Editing message {message_id} failed: {exc}", raid_id=content.raid_id
            ) from exc


class DiscordScheduledEntryStore(ScheduledEntryStore):
    """Guild scheduled events with an external location."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    def _guild(self, scope: str) -> discord.Guild:
        guild = _get_guild(self.bot, scope)
        if not guild:
            raise ArtifactError(f"Guild {scope} is not available")
        return guild

    async def create(self, scope: str, entry: ScheduledEntry) -> str:
        guild = self._guild(scope)
        try:
            event = await guild.create_scheduled_event(
                name=entry.name,
                start_time=_as_datetime(entry.start_at),
                end_time=_as_datetime(entry.end_at),
                description=entry.description,
                entity_type=discord.EntityType.external,
                privacy_level=discord.PrivacyLevel.guild_only,
                location=entry.location,
            )
        except discord.HTTPException as exc:
            raise ArtifactError(f"Creating scheduled event failed: {exc}") from exc
        return str(event.id)

    async def edit(self, scope: str, entry_id: str, entry: ScheduledEntry) -> None:
        guild = self._guild(scope)
        try:
            event = guild.get_scheduled_event(int(entry_id))
            if event is None:
                event = await guild.fetch_scheduled_event(int(entry_id))
            await event.edit(
                name=entry.name,
                start_time=_as_datetime(entry.start_at),
                end_time=_as_datetime(entry.end_at),
                description=entry.description,
                location=entry.location,
            )
        except discord.NotFound as exc:
            raise ArtifactNotFound(f"Scheduled event {entry_id} no longer exists") from exc
        except discord.HTTPException as exc:
            raise ArtifactError(f"Editing scheduled event {entry_id} failed: {exc}") from exc


class DiscordIdentityLookup(IdentityLookup):
    """Guild nicknames, falling back to an API fetch for uncached members."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    async def _get_member(self, guild: discord.Guild, user_id: str) -> discord.Member:
        member = guild.get_member(int(user_id))
        if member:
            return member
        return await guild.fetch_member(int(user_id))

    async def resolve_display_names(
        self,
        scope: str,
        user_ids: Iterable[str],
    ) -> Dict[str, Optional[str]]:
        guild = _get_guild(self.bot, scope)
        if not guild:
            return {}

        ids = list(dict.fromkeys(user_ids))
        results = await asyncio.gather(
            *(self._get_member(guild, user_id) for user_id in ids),
            return_exceptions=True,
        )

        names: Dict[str, Optional[str]] = {}
        for user_id, result in zip(ids, results):
            if isinstance(result, discord.Member):
                names[user_id] = result.display_name
            else:
                logger.debug("No display name for %s: %s", user_id, result)
        return names
