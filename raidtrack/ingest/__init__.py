"""SavedVariables ingestion: change detection, decoding and difficulty derivation."""

from .change_detector import ChangeDetector
from .difficulty import PresetConfig, resolve_difficulty
from .export_decoder import DecodeResult, ExportDecoder, ScopedRaid
from .mapping import RaidPayload

__all__ = [
    "ChangeDetector",
    "DecodeResult",
    "ExportDecoder",
    "PresetConfig",
    "RaidPayload",
    "ScopedRaid",
    "resolve_difficulty",
]
