"""Shared helpers for raid roles and announcement rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

import discord

from raidtrack.database.raid_store import RaidRecord
from raidtrack.utils.class_specs import ClassSpecEmoji


ROLE_TANK = "TANK"
ROLE_HEALER = "HEALER"
ROLE_MELEE = "MELEE"
ROLE_RANGED = "RANGED"
ROLE_MAYBE = "MAYBE"
ROLE_ABSENT = "ABSENT"

ROLE_ORDER = [ROLE_TANK, ROLE_HEALER, ROLE_MELEE, ROLE_RANGED, ROLE_MAYBE, ROLE_ABSENT]

ROLE_LABELS = {
    ROLE_TANK: "Tank",
    ROLE_HEALER: "Healer",
    ROLE_MELEE: "Melee",
    ROLE_RANGED: "Ranged",
    ROLE_MAYBE: "Maybe",
    ROLE_ABSENT: "Absent",
}

ROLE_EMOJIS = {
    ROLE_TANK: "🛡️",
    ROLE_HEALER: "✨",
    ROLE_MELEE: "⚔️",
    ROLE_RANGED: "🏹",
    ROLE_MAYBE: "❔",
    ROLE_ABSENT: "🚫",
}

# Roles with a capacity in the raid caps map.
ROLE_CAP_KEYS = {
    ROLE_TANK: "tank",
    ROLE_HEALER: "healer",
    ROLE_MELEE: "melee",
    ROLE_RANGED: "ranged",
}

DIFFICULTY_COLORS = {
    "LFR": 0x1ABC9C,
    "NORMAL": 0x2ECC71,
    "HEROIC": 0xE67E22,
    "MYTHIC": 0xE74C3C,
}
DEFAULT_COLOR = 0x5865F2

EMBED_TITLE_LIMIT = 256
EVENT_NAME_LIMIT = 100
DESCRIPTION_LIMIT = 4096
EVENT_DESCRIPTION_LIMIT = 1000
FIELD_VALUE_LIMIT = 1024


def normalize_role(role: Optional[str]) -> str:
    """Return a known role, defaulting to MAYBE."""
    value = str(role or "").strip().upper()
    return value if value in ROLE_LABELS else ROLE_MAYBE


def clamp_text(text: Optional[str], limit: int) -> str:
    """Cut text to ``limit`` characters, ending in '...' when shortened."""
    value = str(text or "")
    if len(value) > limit:
        return value[: limit - 3] + "..."
    return value


def difficulty_color(difficulty: Optional[str]) -> int:
    return DIFFICULTY_COLORS.get(str(difficulty or "").upper(), DEFAULT_COLOR)


@dataclass(frozen=True)
class RosterEntry:
    """A signup enriched with display name and profile."""

    user_id: str
    display_name: str
    role: str
    class_key: Optional[str] = None
    spec_key: Optional[str] = None


@dataclass(frozen=True)
class AnnouncementField:
    name: str
    value: str
    inline: bool = True


@dataclass
class RenderedAnnouncement:
    """Platform-neutral announcement content for one raid."""

    raid_id: str
    title: str
    description: str
    color: int
    fields: List[AnnouncementField] = field(default_factory=list)
    footer: str = ""

    def field_value(self, name_prefix: str) -> Optional[str]:
        """Return the value of the first field whose name starts with the prefix."""
        for item in self.fields:
            if item.name.startswith(name_prefix):
                return item.value
        return None

    def to_embed(self) -> discord.Embed:
        embed = discord.Embed(
            title=self.title,
            description=self.description or None,
            color=discord.Color(self.color),
        )
        for item in self.fields:
            embed.add_field(name=item.name, value=item.value, inline=item.inline)
        if self.footer:
            embed.set_footer(text=self.footer)
        return embed


def group_by_role(signups: Sequence[RosterEntry]) -> Dict[str, List[RosterEntry]]:
    groups: Dict[str, List[RosterEntry]] = {role: [] for role in ROLE_ORDER}
    for entry in signups:
        groups[normalize_role(entry.role)].append(entry)
    return groups


def _format_roster(
    entries: Sequence[RosterEntry],
    role: str,
    emoji: Optional[ClassSpecEmoji],
) -> str:
    if not entries:
        return "—"

    lines = []
    for entry in entries:
        icon = "•"
        if entry.class_key and entry.spec_key:
            custom = emoji.lookup(entry.class_key, entry.spec_key) if emoji else None
            icon = custom or ROLE_EMOJIS[role]
        lines.append(f"{icon} {entry.display_name}")

    value = "\n".join(lines)
    if len(value) <= FIELD_VALUE_LIMIT:
        return value

    # Keep as many lines as fit, then summarize the rest.
    kept: List[str] = []
    used = 0
    for index, line in enumerate(lines):
        suffix = f"\n+{len(lines) - index} more"
        if used + len(line) + 1 + len(suffix) > FIELD_VALUE_LIMIT:
            kept.append(suffix.strip())
            break
        kept.append(line)
        used += len(line) + 1
    return "\n".join(kept)


def build_raid_announcement(
    raid: RaidRecord,
    caps: Optional[Mapping[str, int]],
    signups: Sequence[RosterEntry],
    emoji: Optional[ClassSpecEmoji] = None,
) -> RenderedAnnouncement:
    """Build the public raid announcement with the role-grouped roster."""
    groups = group_by_role(signups)

    fields = [
        AnnouncementField("Difficulty", raid.difficulty or "—"),
        AnnouncementField("Start", f"<t:{raid.start_at}:F> (<t:{raid.start_at}:R>)"),
        AnnouncementField("End", f"<t:{raid.end_at}:t>"),
    ]

    for role in ROLE_ORDER:
        members = groups[role]
        count = str(len(members))
        cap_key = ROLE_CAP_KEYS.get(role)
        if caps and cap_key and caps.get(cap_key) is not None:
            count = f"{count}/{caps[cap_key]}"
        fields.append(
            AnnouncementField(
                f"{ROLE_EMOJIS[role]} {ROLE_LABELS[role]} ({count})",
                _format_roster(members, role, emoji),
            )
        )

    return RenderedAnnouncement(
        raid_id=raid.raid_id,
        title=clamp_text(raid.raid_title, EMBED_TITLE_LIMIT),
        description=clamp_text(raid.notes, DESCRIPTION_LIMIT),
        color=difficulty_color(raid.difficulty),
        fields=fields,
        footer=f"RaidID: {raid.raid_id}",
    )
