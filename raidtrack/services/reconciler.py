"""Keeps a raid's stored record, announcement and scheduled entry in sync."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from raidtrack.database.raid_store import RaidRecord, RaidStore, SignupEntry
from raidtrack.errors import ArtifactError, ArtifactNotFound
from raidtrack.ingest.mapping import RaidPayload
from raidtrack.services.gateways import (
    AnnouncementStore,
    DestinationDirectory,
    IdentityLookup,
    ScheduledEntry,
    ScheduledEntryStore,
)
from raidtrack.utils.class_specs import ClassSpecEmoji
from raidtrack.utils.raid_utils import (
    EVENT_DESCRIPTION_LIMIT,
    EVENT_NAME_LIMIT,
    RenderedAnnouncement,
    RosterEntry,
    build_raid_announcement,
    clamp_text,
)


logger = logging.getLogger("raidtrack.reconciler")


@dataclass(frozen=True)
class ReconcileResult:
    """Artifact references after one reconciliation."""

    raid_id: str
    channel_id: str
    message_id: Optional[str]
    scheduled_event_id: Optional[str]


def normalize_window(
    start_at: Optional[int],
    end_at: Optional[int],
    now: int,
    leeway: int,
    duration: int,
) -> Tuple[int, int]:
    """
    Fill in a usable start/end pair.

    A missing or non-positive start becomes ``now + leeway``; a missing end,
    or one not after the start, becomes ``start + duration``.
    """
    start = start_at if start_at and start_at > 0 else now + leeway
    end = end_at if end_at and end_at > start else start + duration
    return start, end


class RaidReconciler:
    """
    Publishes raids idempotently.

    The stored record is written before any announcement or scheduled entry
    is touched, so a failed artifact call is repaired by the next run.
    """

    def __init__(
        self,
        raid_store: RaidStore,
        directory: DestinationDirectory,
        announcements: AnnouncementStore,
        scheduled_entries: ScheduledEntryStore,
        identities: IdentityLookup,
        *,
        default_duration: int = 3 * 3600,
        leeway: int = 300,
        create_events: bool = True,
        event_location: str = "In-game (WoW)",
        emoji: Optional[ClassSpecEmoji] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.raid_store = raid_store
        self.directory = directory
        self.announcements = announcements
        self.scheduled_entries = scheduled_entries
        self.identities = identities
        self.default_duration = default_duration
        self.leeway = leeway
        self.create_events = create_events
        self.event_location = event_location
        self.emoji = emoji
        self.clock = clock

    async def reconcile(self, scope: str, payload: RaidPayload) -> ReconcileResult:
        """
        Publish or update one raid.

        Raises:
            DestinationUnresolved: no channel for the raid; nothing was written
        """
        channel_id = await self.directory.resolve(scope, payload.difficulty)

        now = int(self.clock())
        start_at, end_at = normalize_window(
            payload.start_at,
            payload.end_at,
            now,
            self.leeway,
            self.default_duration,
        )

        record = await self.raid_store.upsert_raid(
            raid_id=payload.raid_id,
            scope=scope,
            raid_title=payload.raid_title,
            difficulty=payload.difficulty,
            start_at=start_at,
            end_at=end_at,
            notes=payload.notes,
            caps=payload.caps,
            channel_id=channel_id,
        )

        content = await self.render(record)
        message_id = await self._sync_announcement(record, content)

        scheduled_event_id = record.scheduled_event_id
        if self.create_events and start_at - now > self.leeway:
            scheduled_event_id = await self._sync_scheduled_entry(record)

        if (message_id, scheduled_event_id) != (record.message_id, record.scheduled_event_id):
            await self.raid_store.set_artifact_ids(
                record.raid_id, message_id, scheduled_event_id
            )

        logger.info(
            "Reconciled raid %s (%s) in channel %s",
            record.raid_id,
            record.difficulty,
            channel_id,
        )
        return ReconcileResult(
            raid_id=record.raid_id,
            channel_id=channel_id,
            message_id=message_id,
            scheduled_event_id=scheduled_event_id,
        )

    async def refresh(self, scope: str, raid_id: str) -> Optional[str]:
        """
        Re-render a stored raid's announcement after a signup change.

        Uses the stored channel rather than re-resolving routing. A deleted
        announcement has its reference cleared so the next ingestion recreates
        it. Returns the announcement ID that was edited.
        """
        record = await self.raid_store.get_raid(raid_id)
        if not record:
            logger.debug("Refresh skipped, raid %s is unknown", raid_id)
            return None
        if record.scope != scope:
            logger.warning("Refresh for raid %s from foreign scope %s ignored", raid_id, scope)
            return None
        if not record.message_id:
            logger.debug("Refresh skipped, raid %s has no announcement yet", raid_id)
            return None

        content = await self.render(record)
        try:
            await self.announcements.edit(
                record.scope, record.channel_id, record.message_id, content
            )
        except ArtifactNotFound:
            logger.info(
                "Announcement %s for raid %s is gone; cleared for recreation",
                record.message_id,
                raid_id,
            )
            await self.raid_store.clear_message_id(raid_id)
            return None
        except ArtifactError:
            logger.warning("Failed to refresh raid message %s", raid_id, exc_info=True)
            return None
        return record.message_id

    async def render(self, record: RaidRecord) -> RenderedAnnouncement:
        signups = await self.raid_store.list_signups(record.raid_id)
        roster = await self.load_roster(record.scope, signups)
        return build_raid_announcement(record, record.caps, roster, self.emoji)

    async def load_roster(
        self,
        scope: str,
        signups: Sequence[SignupEntry],
    ) -> List[RosterEntry]:
        """Join signups with display names and class/spec profiles."""
        if not signups:
            return []
        user_ids = [signup.user_id for signup in signups]
        profiles = await self.raid_store.get_profiles(scope, user_ids)

        try:
            names = await self.identities.resolve_display_names(scope, user_ids)
        except Exception:
            logger.warning("Display name lookup failed for scope %s", scope, exc_info=True)
            names = {}

        roster = []
        for signup in signups:
            profile = profiles.get(signup.user_id)
            roster.append(
                RosterEntry(
                    user_id=signup.user_id,
                    display_name=names.get(signup.user_id) or signup.username,
                    role=signup.role,
                    class_key=profile.class_key if profile else None,
                    spec_key=profile.spec_key if profile else None,
                )
            )
        return roster

    async def _sync_announcement(
        self,
        record: RaidRecord,
        content: RenderedAnnouncement,
    ) -> Optional[str]:
        message_id = record.message_id
        if message_id:
            try:
                await self.announcements.edit(
                    record.scope, record.channel_id, message_id, content
                )
                return message_id
            except ArtifactNotFound:
                logger.info(
                    "Announcement %s for raid %s is gone; recreating",
                    message_id,
                    record.raid_id,
                )
            except ArtifactError:
                logger.warning(
                    "Failed to update raid message %s", record.raid_id, exc_info=True
                )
                return message_id

        try:
            message_id = await self.announcements.create(
                record.scope, record.channel_id, content
            )
        except ArtifactError:
            logger.warning(
                "Failed to post raid message %s", record.raid_id, exc_info=True
            )
            return None
        logger.info("Posted announcement %s for raid %s", message_id, record.raid_id)
        return message_id

    def _scheduled_entry(self, record: RaidRecord) -> ScheduledEntry:
        description = record.notes or f"{record.difficulty} raid"
        return ScheduledEntry(
            name=clamp_text(record.raid_title, EVENT_NAME_LIMIT),
            start_at=record.start_at,
            end_at=record.end_at,
            description=clamp_text(description, EVENT_DESCRIPTION_LIMIT),
            location=self.event_location,
        )

    async def _sync_scheduled_entry(self, record: RaidRecord) -> Optional[str]:
        entry = self._scheduled_entry(record)
        entry_id = record.scheduled_event_id
        if entry_id:
            try:
                await self.scheduled_entries.edit(record.scope, entry_id, entry)
                return entry_id
            except ArtifactNotFound:
                logger.info(
                    "Scheduled event %s for raid %s is gone; recreating",
                    entry_id,
                    record.raid_id,
                )
            except ArtifactError:
                logger.warning(
                    "Failed to update scheduled event for raid %s",
                    record.raid_id,
                    exc_info=True,
                )
                return entry_id

        try:
            entry_id = await self.scheduled_entries.create(record.scope, entry)
        except ArtifactError:
            logger.warning(
                "Failed to create scheduled event for raid %s",
                record.raid_id,
                exc_info=True,
            )
            return None
        logger.info("Created scheduled event %s for raid %s", entry_id, record.raid_id)
        return entry_id
