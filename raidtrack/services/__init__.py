"""Raid publishing, signup and ingestion services."""

from .debounce import RenderDebouncer
from .gateways import (
    AnnouncementStore,
    DestinationDirectory,
    IdentityLookup,
    ScheduledEntry,
    ScheduledEntryStore,
)
from .ingestion import IngestionService, IngestionStatus
from .reconciler import RaidReconciler, ReconcileResult, normalize_window
from .signup_flow import FlowStep, SignupFlow, decode_token

__all__ = [
    "AnnouncementStore",
    "DestinationDirectory",
    "FlowStep",
    "IdentityLookup",
    "IngestionService",
    "IngestionStatus",
    "RaidReconciler",
    "ReconcileResult",
    "RenderDebouncer",
    "ScheduledEntry",
    "ScheduledEntryStore",
    "SignupFlow",
    "decode_token",
    "normalize_window",
]
