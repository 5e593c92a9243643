"""Derive a raid difficulty tier from RaidTrack preset configuration."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from raidtrack.ingest.lua_table import decode_pairs, find_blocks, find_table, iter_blocks


logger = logging.getLogger("raidtrack.ingest.difficulty")

TIER_NORMAL = "NORMAL"
TIER_HEROIC = "HEROIC"
TIER_MYTHIC = "MYTHIC"

# Highest first; ties resolve to the earlier entry.
TIER_PRIORITY = (TIER_MYTHIC, TIER_HEROIC, TIER_NORMAL)


@dataclass(frozen=True)
class PresetConfig:
    """One entry of the ``raidPresets`` table."""

    name: str
    selected_difficulty: Optional[str] = None
    bosses: Dict[str, Dict[str, int]] = field(default_factory=dict)


def classify_tier(label: Any) -> str:
    """
    Map a free-form difficulty label onto a tier by prefix.

    ``myth...`` is mythic, ``hero...``/``hc...`` heroic, everything else
    (normal, LFR, "10 player", garbage) normal.
    """
    value = str(label or "").strip().lower()
    if value.startswith("myth"):
        return TIER_MYTHIC
    if value.startswith("hero") or value.startswith("hc"):
        return TIER_HEROIC
    return TIER_NORMAL


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    return None


def resolve_difficulty(preset: Optional[PresetConfig]) -> str:
    """
    Return the normalized tier for a preset; never raises.

    An explicit selection wins. Otherwise per-tier boss contributions are
    summed and the highest tier with a positive total is chosen. With
    neither, the tier is normal.
    """
    if preset is None:
        return TIER_NORMAL

    selected = preset.selected_difficulty
    if isinstance(selected, str) and selected.strip():
        return classify_tier(selected)

    if not preset.bosses:
        return TIER_NORMAL

    totals = {tier: 0 for tier in TIER_PRIORITY}
    for tiers in preset.bosses.values():
        if not isinstance(tiers, Mapping):
            continue
        for tier_label, amount in tiers.items():
            number = _as_int(amount)
            if number is None:
                continue
            totals[classify_tier(tier_label)] += number

    for tier in TIER_PRIORITY:
        if totals[tier] > 0:
            return tier
    return TIER_NORMAL


def parse_presets(text: str, presets_key: str = "raidPresets") -> Dict[str, PresetConfig]:
    """
    Extract presets keyed by lowercase preset name.

    Returns an empty mapping when the presets table is absent.
    """
    presets: Dict[str, PresetConfig] = {}
    for name, body in find_blocks(text, presets_key):
        if not name:
            continue

        fields = decode_pairs(body)
        selected = fields.get("selectedDifficulty", fields.get("difficulty"))
        if selected is not None and not isinstance(selected, str):
            selected = str(selected)

        bosses: Dict[str, Dict[str, int]] = {}
        bosses_body = find_table(body, "bosses")
        if bosses_body is not None:
            for boss_name, boss_body in iter_blocks(bosses_body):
                if not boss_name:
                    continue
                contributions: Dict[str, int] = {}
                for tier_label, amount in decode_pairs(boss_body).items():
                    number = _as_int(amount)
                    if number is not None:
                        contributions[tier_label] = number
                bosses[boss_name] = contributions

        presets[name.lower()] = PresetConfig(
            name=name,
            selected_difficulty=selected,
            bosses=bosses,
        )

    logger.debug("Parsed %d raid presets", len(presets))
    return presets
