"""Database modules for the RaidTrack bot."""

from .raid_store import PlayerProfile, RaidRecord, RaidStore, SignupEntry

__all__ = ["PlayerProfile", "RaidRecord", "RaidStore", "SignupEntry"]
