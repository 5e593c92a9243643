"""Component layouts for raid announcements and the signup flow."""

from __future__ import annotations

import discord

from raidtrack.services.signup_flow import (
    ClassSelect,
    ProfileChange,
    RoleMenu,
    RolePick,
    SpecSelect,
)
from raidtrack.utils.class_specs import list_classes, list_specs
from raidtrack.utils.raid_utils import (
    ROLE_ABSENT,
    ROLE_EMOJIS,
    ROLE_HEALER,
    ROLE_LABELS,
    ROLE_MAYBE,
    ROLE_MELEE,
    ROLE_ORDER,
    ROLE_RANGED,
    ROLE_TANK,
)


ROLE_BUTTON_STYLES = {
    ROLE_TANK: discord.ButtonStyle.primary,
    ROLE_HEALER: discord.ButtonStyle.success,
    ROLE_MELEE: discord.ButtonStyle.secondary,
    ROLE_RANGED: discord.ButtonStyle.secondary,
    ROLE_MAYBE: discord.ButtonStyle.secondary,
    ROLE_ABSENT: discord.ButtonStyle.danger,
}

# Ephemeral menus stop responding after this many seconds.
MENU_TIMEOUT = 300


def catalog_label(key: str) -> str:
    """DEATHKNIGHT -> Deathknight, BEAST_MASTERY -> Beast Mastery."""
    return key.replace("_", " ").title()


def _role_button(raid_id: str, role: str, row: int) -> discord.ui.Button:
    return discord.ui.Button(
        label=ROLE_LABELS[role],
        emoji=ROLE_EMOJIS[role],
        style=ROLE_BUTTON_STYLES[role],
        custom_id=RolePick(raid_id, role).encode(),
        row=row,
    )


def build_signup_view(raid_id: str) -> discord.ui.View:
    """Buttons attached to the public announcement."""
    view = discord.ui.View(timeout=None)
    for role in (ROLE_TANK, ROLE_HEALER, ROLE_MELEE, ROLE_RANGED, ROLE_MAYBE):
        view.add_item(_role_button(raid_id, role, row=0))

    view.add_item(
        discord.ui.Button(
            label="Change role",
            style=discord.ButtonStyle.secondary,
            custom_id=RoleMenu(raid_id).encode(),
            row=1,
        )
    )
    view.add_item(
        discord.ui.Button(
            label="Change class/spec",
            style=discord.ButtonStyle.secondary,
            custom_id=ProfileChange(raid_id).encode(),
            row=1,
        )
    )
    view.add_item(
        discord.ui.Button(
            label="Leave",
            emoji=ROLE_EMOJIS[ROLE_ABSENT],
            style=discord.ButtonStyle.danger,
            custom_id=RolePick(raid_id, ROLE_ABSENT).encode(),
            row=1,
        )
    )
    return view


def build_role_view(raid_id: str) -> discord.ui.View:
    view = discord.ui.View(timeout=MENU_TIMEOUT)
    for index, role in enumerate(ROLE_ORDER):
        view.add_item(_role_button(raid_id, role, row=index // 3))
    return view


def build_class_view(raid_id: str, role: str) -> discord.ui.View:
    view = discord.ui.View(timeout=MENU_TIMEOUT)
    view.add_item(
        discord.ui.Select(
            custom_id=ClassSelect(raid_id, role).encode(),
            placeholder="Choose your class",
            min_values=1,
            max_values=1,
            options=[
                discord.SelectOption(label=catalog_label(key), value=key)
                for key in list_classes()
            ],
        )
    )
    return view


def build_spec_view(raid_id: str, role: str, class_key: str) -> discord.ui.View:
    view = discord.ui.View(timeout=MENU_TIMEOUT)
    view.add_item(
        discord.ui.Select(
            custom_id=SpecSelect(raid_id, role, class_key).encode(),
            placeholder=f"Choose your {catalog_label(class_key)} spec",
            min_values=1,
            max_values=1,
            options=[
                discord.SelectOption(label=catalog_label(key), value=key)
                for key in list_specs(class_key)
            ],
        )
    )
    return view
