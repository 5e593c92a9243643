"""Main bot file for the RaidTrack Discord bot."""

import logging
import sys

import discord
from discord.ext import commands

from raidtrack.database import RaidStore
from raidtrack.events.signup_events import setup as setup_signup_events
from raidtrack.ingest import ExportDecoder
from raidtrack.services.debounce import RenderDebouncer
from raidtrack.services.discord_gateway import (
    DiscordAnnouncementStore,
    DiscordDestinationDirectory,
    DiscordIdentityLookup,
    DiscordScheduledEntryStore,
)
from raidtrack.services.ingestion import IngestionService
from raidtrack.services.reconciler import RaidReconciler
from raidtrack.services.signup_flow import SignupFlow
from raidtrack.tasks.raid_sync import setup as setup_raid_sync
from raidtrack.utils import Config, setup_logger
from raidtrack.utils.class_specs import ClassSpecEmoji


class RaidTrackBot(commands.Bot):
    """Main RaidTrack bot class."""

    def __init__(self, config: Config, raid_store: RaidStore, *args, **kwargs):
        """
        Initialize the RaidTrack bot.

        Args:
            config: Configuration object
            raid_store: RaidStore instance
        """
        self.config = config
        self.raid_store = raid_store
        self.logger = logging.getLogger("raidtrack.bot")

        self.reconciler = None
        self.debouncer = RenderDebouncer(config.raid_render_debounce_seconds)
        self.signup_flow = SignupFlow(raid_store, on_commit=self.request_render)
        self.ingestion = None

        intents = discord.Intents.default()
        intents.members = True  # Required for roster display names

        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            *args,
            **kwargs
        )

    async def setup_hook(self):
        """Setup hook called when bot is starting."""
        self.logger.info("Setting up bot...")

        await self.raid_store.initialize()

        emoji = ClassSpecEmoji(
            custom=self.config.custom_emoji,
            overrides=self.config.emoji_overrides,
            allow_external=self.config.allow_external_emoji,
        )
        self.reconciler = RaidReconciler(
            self.raid_store,
            DiscordDestinationDirectory(
                self,
                self.config.channel_routing,
                self.config.fallback_channel_id,
            ),
            DiscordAnnouncementStore(self),
            DiscordScheduledEntryStore(self),
            DiscordIdentityLookup(self),
            default_duration=self.config.raid_default_duration_seconds,
            leeway=self.config.raid_event_leeway_seconds,
            create_events=self.config.raid_create_events,
            event_location=self.config.raid_event_location,
            emoji=emoji,
        )

        decoder = ExportDecoder(
            self.config.sv_export_key,
            default_scope=self.config.guild_id,
            instances_key=self.config.sv_instances_key,
            presets_key=self.config.sv_presets_key,
        )
        self.ingestion = IngestionService(
            self.config.sv_file,
            decoder,
            self.reconciler,
            interval=self.config.sv_poll_seconds,
        )

        await setup_signup_events(self, self.signup_flow)
        await setup_raid_sync(self, self.config, self.ingestion)
        self.logger.info("Cogs loaded")

    def request_render(self, scope: str, raid_id: str) -> None:
        """Queue a debounced announcement refresh for a raid."""
        if self.reconciler is None:
            return
        reconciler = self.reconciler
        self.debouncer.schedule(
            f"{scope}:{raid_id}",
            lambda: reconciler.refresh(scope, raid_id),
        )

    async def on_ready(self):
        self.logger.info("Logged in as %s (%s)", self.user, getattr(self.user, "id", "?"))

    async def close(self):
        """Clean shutdown of the bot"""
        self.logger.info("Shutting down RaidTrack...")

        await self.debouncer.close()

        # Close parent bot
        await super().close()

        self.logger.info("RaidTrack shutdown complete")


def main():
    """Main entry point for the bot."""
    # Load configuration
    try:
        config = Config()
    except FileNotFoundError as e:
        print(f"❌ Configuration Error: {e}")
        sys.exit(1)
    except ValueError as e:
        print(f"❌ Configuration Error: {e}")
        sys.exit(1)

    # Setup logging
    logger = setup_logger(
        name="raidtrack",
        level=config.log_level,
        log_file=config.log_file,
        log_format=config.log_format,
        library_level=config.log_library_level,
    )

    logger.info("=" * 50)
    logger.info("RaidTrack Bot Starting...")
    logger.info("=" * 50)

    raid_store = RaidStore(config.database_path)
    logger.info("Raid store configured at %s", config.database_path)

    # Create and run bot
    bot = RaidTrackBot(config, raid_store)

    try:
        bot.run(config.discord_token, log_handler=None)
    except discord.LoginFailure:
        logger.error("❌ Failed to login. Please check your bot token.")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Bot stopped by user")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
