"""Exception hierarchy for raid ingestion, publishing and signups."""

from __future__ import annotations

from typing import Optional


class RaidSyncError(Exception):
    """Base class for all raid sync errors."""

    def __init__(self, message: str, raid_id: Optional[str] = None):
        super().__init__(message)
        self.raid_id = raid_id


class TransientIOError(RaidSyncError):
    """File stat/read failed; the next tick retries."""


class DecodeError(RaidSyncError):
    """The SavedVariables text could not be decoded."""


class LuaDecodeError(DecodeError):
    """A required Lua root table is missing."""


class ExportDecodeError(DecodeError):
    """The embedded JSON export is missing, empty or malformed."""


class MappingError(RaidSyncError):
    """A single raw record cannot be turned into a raid payload."""


class DestinationUnresolved(RaidSyncError):
    """No usable announcement channel for a raid."""


class ArtifactError(RaidSyncError):
    """Creating or editing a message or scheduled event failed."""


class ArtifactNotFound(ArtifactError):
    """The referenced message or scheduled event no longer exists."""


class ValidationError(RaidSyncError):
    """User input in the signup flow was rejected."""


__all__ = [
    "RaidSyncError",
    "TransientIOError",
    "DecodeError",
    "LuaDecodeError",
    "ExportDecodeError",
    "MappingError",
    "DestinationUnresolved",
    "ArtifactError",
    "ArtifactNotFound",
    "ValidationError",
]
