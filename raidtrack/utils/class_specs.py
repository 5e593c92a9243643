"""Class/spec catalog and roster icons."""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Tuple


CLASS_SPECS: Dict[str, Tuple[str, ...]] = {
    "WARRIOR": ("ARMS", "FURY", "PROTECTION"),
    "PALADIN": ("HOLY", "PROTECTION", "RETRIBUTION"),
    "HUNTER": ("BEAST_MASTERY", "MARKSMANSHIP", "SURVIVAL"),
    "ROGUE": ("ASSASSINATION", "OUTLAW", "SUBTLETY"),
    "PRIEST": ("DISCIPLINE", "HOLY", "SHADOW"),
    "DEATHKNIGHT": ("BLOOD", "FROST", "UNHOLY"),
    "SHAMAN": ("ELEMENTAL", "ENHANCEMENT", "RESTORATION"),
    "MAGE": ("ARCANE", "FIRE", "FROST"),
    "WARLOCK": ("AFFLICTION", "DEMONOLOGY", "DESTRUCTION"),
    "MONK": ("BREWMASTER", "MISTWEAVER", "WINDWALKER"),
    "DRUID": ("BALANCE", "FERAL", "GUARDIAN", "RESTORATION"),
    "DEMONHUNTER": ("HAVOC", "VENGEANCE"),
    "EVOKER": ("DEVASTATION", "PRESERVATION", "AUGMENTATION"),
}


def normalize_class(value: Optional[str]) -> str:
    return "".join(str(value or "").upper().split())


def normalize_spec(value: Optional[str]) -> str:
    return "_".join(str(value or "").upper().split())


def list_classes() -> List[str]:
    return list(CLASS_SPECS)


def list_specs(class_key: Optional[str]) -> List[str]:
    return list(CLASS_SPECS.get(normalize_class(class_key), ()))


def is_valid_class_spec(class_key: Optional[str], spec_key: Optional[str]) -> bool:
    return normalize_spec(spec_key) in CLASS_SPECS.get(normalize_class(class_key), ())


def _emoji_name(class_key: str, spec_key: str) -> str:
    class_name = class_key.lower()
    if class_name == "deathknight":
        class_name = "death_knight"
    elif class_name == "demonhunter":
        class_name = "demon_hunter"
    return f"{class_name}_{spec_key.lower()}"


class ClassSpecEmoji:
    """
    Resolves the icon shown next to a roster entry.

    Precedence: a full emoji token override for ``CLASS:SPEC``, then a
    custom emoji ID for ``class_spec`` (when external emoji are allowed),
    then the role icon.
    """

    def __init__(
        self,
        custom: Optional[Mapping[str, str]] = None,
        overrides: Optional[Mapping[str, str]] = None,
        allow_external: bool = True,
    ):
        self.custom = dict(custom or {})
        self.overrides = dict(overrides or {})
        self.allow_external = allow_external

    def lookup(self, class_key: Optional[str], spec_key: Optional[str]) -> Optional[str]:
        if not class_key or not spec_key:
            return None
        cls = normalize_class(class_key)
        spec = normalize_spec(spec_key)

        override = self.overrides.get(f"{cls}:{spec}")
        if override:
            return override

        if self.allow_external:
            name = _emoji_name(cls, spec)
            emoji_id = self.custom.get(name) or self.custom.get(f"{cls.lower()}_{spec.lower()}")
            if emoji_id:
                return f"<:{name}:{emoji_id}>"
        return None
