"""Background task that polls the SavedVariables file."""

from __future__ import annotations

import logging

from discord.ext import commands, tasks

from raidtrack.services.ingestion import IngestionService
from raidtrack.utils.config import Config


logger = logging.getLogger("raidtrack.tasks.raid_sync")


class RaidSync(commands.Cog):
    """Publishes raids whenever the SavedVariables file changes."""

    def __init__(self, bot: commands.Bot, config: Config, ingestion: IngestionService):
        self.bot = bot
        self.config = config
        self.ingestion = ingestion
        if self.config.sv_enabled:
            self.sync_task.change_interval(seconds=self.config.sv_poll_seconds)
            self.sync_task.start()
        else:
            logger.info("SavedVariables sync disabled")

    def cog_unload(self) -> None:
        if self.sync_task.is_running():
            self.sync_task.cancel()

    @tasks.loop(seconds=60)
    async def sync_task(self) -> None:
        await self.ingestion.run_cycle()

    @sync_task.before_loop
    async def before_sync_task(self) -> None:
        await self.bot.wait_until_ready()
        logger.info(
            "Watching %s every %ss",
            self.ingestion.path,
            self.config.sv_poll_seconds,
        )


async def setup(bot: commands.Bot, config: Config, ingestion: IngestionService) -> None:
    """Setup the raid sync task."""
    await bot.add_cog(RaidSync(bot, config, ingestion))
    logger.info("RaidSync cog loaded")
