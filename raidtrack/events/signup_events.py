"""Event handler for raid signup buttons and selects."""

from __future__ import annotations

import logging
from typing import Optional

import discord
from discord.ext import commands

from raidtrack.errors import ValidationError
from raidtrack.services.signup_flow import (
    STEP_CLASS_SELECT,
    STEP_COMMITTED,
    STEP_ROLE_SELECT,
    STEP_SPEC_SELECT,
    ClassSelect,
    FlowStep,
    SignupFlow,
    SpecSelect,
    Token,
    decode_token,
)
from raidtrack.utils.signup_views import (
    build_class_view,
    build_role_view,
    build_spec_view,
    catalog_label,
)


logger = logging.getLogger("raidtrack.events.signup")


class SignupEvents(commands.Cog):
    """Route component interactions into the signup flow."""

    def __init__(self, bot: commands.Bot, flow: SignupFlow):
        self.bot = bot
        self.flow = flow

    @staticmethod
    def _token_for(interaction: discord.Interaction) -> Optional[Token]:
        if interaction.type != discord.InteractionType.component:
            return None
        data = interaction.data or {}
        return decode_token(data.get("custom_id"))

    @commands.Cog.listener()
    async def on_interaction(self, interaction: discord.Interaction) -> None:
        token = self._token_for(interaction)
        if token is None:
            return

        if interaction.guild is None:
            await interaction.response.send_message(
                "❌ Raid signups only work inside the server.",
                ephemeral=True,
            )
            return

        values = (interaction.data or {}).get("values") or []
        try:
            step = await self.flow.handle(
                scope=str(interaction.guild.id),
                user_id=str(interaction.user.id),
                username=interaction.user.display_name,
                token=token,
                values=values,
            )
        except ValidationError as exc:
            await interaction.response.send_message(f"❌ {exc}", ephemeral=True)
            return

        # Selects live on our own ephemeral prompt, so they update it in place.
        in_place = isinstance(token, (ClassSelect, SpecSelect))
        try:
            await self._respond(interaction, step, in_place)
        except discord.HTTPException:
            logger.warning(
                "Failed to answer signup interaction for raid %s",
                step.raid_id,
                exc_info=True,
            )

    async def _respond(
        self,
        interaction: discord.Interaction,
        step: FlowStep,
        in_place: bool,
    ) -> None:
        if step.kind == STEP_ROLE_SELECT:
            content = "Pick your **role**:"
            view = build_role_view(step.raid_id)
        elif step.kind == STEP_CLASS_SELECT:
            if step.first_time:
                content = "First time here! Pick your **class**:"
            else:
                content = "Pick your **class**:"
            view = build_class_view(step.raid_id, step.role)
        elif step.kind == STEP_SPEC_SELECT:
            content = (
                f"Class: **{catalog_label(step.class_key)}** selected. "
                "Now choose **spec**:"
            )
            view = build_spec_view(step.raid_id, step.role, step.class_key)
        elif step.kind == STEP_COMMITTED:
            content = (
                f"Saved: **{step.role}** for **{interaction.user.display_name}** "
                f"({catalog_label(step.class_key or '?')}/{catalog_label(step.spec_key or '?')})."
            )
            view = None
        else:
            return

        if in_place:
            await interaction.response.edit_message(content=content, view=view)
        elif view is not None:
            await interaction.response.send_message(content, view=view, ephemeral=True)
        else:
            await interaction.response.send_message(content, ephemeral=True)


async def setup(bot: commands.Bot, flow: SignupFlow) -> None:
    """Setup the signup events cog."""
    await bot.add_cog(SignupEvents(bot, flow))
    logger.info("SignupEvents cog loaded")
