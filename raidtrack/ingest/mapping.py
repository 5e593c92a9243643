"""Normalized raid payloads built from JSON exports or raw Lua records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from raidtrack.errors import MappingError
from raidtrack.ingest.difficulty import PresetConfig, resolve_difficulty


CAP_KEYS = ("tank", "healer", "melee", "ranged")

_DIFFICULTY_ALIASES = {
    "N": "NORMAL",
    "NORMAL": "NORMAL",
    "H": "HEROIC",
    "HEROIC": "HEROIC",
    "M": "MYTHIC",
    "MYTHIC": "MYTHIC",
}

# Raw raidInstances field aliases, first match wins.
_RAW_ID_KEYS = ("id", "raidId")
_RAW_TITLE_KEYS = ("name", "title", "raidTitle")
_RAW_START_KEYS = ("scheduledAt", "startAt", "startTime")
_RAW_END_KEYS = ("endAt", "endTime")
_RAW_PRESET_KEYS = ("preset", "presetName")
_RAW_NOTES_KEYS = ("notes", "note")


def normalize_difficulty(value: Any) -> str:
    """Upper-case a difficulty, resolving N/H/M aliases; unknown labels pass through."""
    text = str(value or "").strip().upper()
    return _DIFFICULTY_ALIASES.get(text, text)


def to_unix_seconds(value: Any) -> Optional[int]:
    """Coerce to non-negative integer seconds; None when not numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return max(0, int(number))


def normalize_caps(raw: Any) -> Optional[Dict[str, int]]:
    """Keep known role caps with non-negative integer values."""
    if not isinstance(raw, Mapping):
        return None
    caps: Dict[str, int] = {}
    for key in CAP_KEYS:
        value = raw.get(key)
        if value is None or isinstance(value, bool):
            continue
        try:
            number = int(value)
        except (TypeError, ValueError, OverflowError):
            continue
        if number >= 0 and number == value:
            caps[key] = number
    return caps or None


@dataclass(frozen=True)
class RaidPayload:
    """One raid as decoded from the SavedVariables file."""

    raid_id: str
    raid_title: str
    difficulty: str
    start_at: Optional[int] = None
    end_at: Optional[int] = None
    notes: Optional[str] = None
    caps: Optional[Dict[str, int]] = None

    @classmethod
    def from_export(cls, data: Any) -> "RaidPayload":
        """
        Build a payload from a JSON-export ``raid`` object.

        Raises:
            MappingError: raidId or raidTitle missing
        """
        if not isinstance(data, Mapping):
            raise MappingError("Raid entry is not an object")

        raid_id = str(data.get("raidId") or "").strip()
        if not raid_id:
            raise MappingError("Raid entry has no raidId")

        title = data.get("raidTitle")
        if not isinstance(title, str) or not title:
            raise MappingError("Raid entry has no raidTitle", raid_id=raid_id)

        notes = data.get("notes")
        return cls(
            raid_id=raid_id,
            raid_title=title,
            difficulty=normalize_difficulty(data.get("difficulty")),
            start_at=to_unix_seconds(data.get("startAt")),
            end_at=to_unix_seconds(data.get("endAt")),
            notes=notes if isinstance(notes, str) else None,
            caps=normalize_caps(data.get("caps")),
        )

    def to_export(self) -> Dict[str, Any]:
        """Encode back to the JSON-export shape, omitting unset fields."""
        data: Dict[str, Any] = {
            "raidId": self.raid_id,
            "raidTitle": self.raid_title,
            "difficulty": self.difficulty,
        }
        if self.start_at is not None:
            data["startAt"] = self.start_at
        if self.end_at is not None:
            data["endAt"] = self.end_at
        if self.notes is not None:
            data["notes"] = self.notes
        if self.caps is not None:
            data["caps"] = dict(self.caps)
        return data


def _first(fields: Mapping[str, Any], keys) -> Any:
    for key in keys:
        value = fields.get(key)
        if value is not None:
            return value
    return None


def payload_from_raw_record(
    fields: Mapping[str, Any],
    presets: Mapping[str, PresetConfig],
    caps: Optional[Mapping[str, Any]] = None,
) -> RaidPayload:
    """
    Build a payload from one decoded ``raidInstances`` record.

    The difficulty comes from the record's preset; an unknown preset name
    resolves to the normal tier.

    Raises:
        MappingError: no identifier, no usable start time or no preset name
    """
    raw_id = _first(fields, _RAW_ID_KEYS)
    raid_id = str(raw_id).strip() if raw_id is not None else ""
    if not raid_id:
        raise MappingError("Raw raid record has no id")

    start_at = to_unix_seconds(_first(fields, _RAW_START_KEYS))
    if not start_at:
        raise MappingError("Raw raid record has no usable start time", raid_id=raid_id)

    preset_name = _first(fields, _RAW_PRESET_KEYS)
    if not isinstance(preset_name, str) or not preset_name.strip():
        raise MappingError("Raw raid record has no preset", raid_id=raid_id)

    title = _first(fields, _RAW_TITLE_KEYS)
    if not isinstance(title, str) or not title:
        title = preset_name

    notes = _first(fields, _RAW_NOTES_KEYS)
    preset = presets.get(preset_name.strip().lower())

    return RaidPayload(
        raid_id=raid_id,
        raid_title=title,
        difficulty=resolve_difficulty(preset),
        start_at=start_at,
        end_at=to_unix_seconds(_first(fields, _RAW_END_KEYS)),
        notes=notes if isinstance(notes, str) else None,
        caps=normalize_caps(caps),
    )
