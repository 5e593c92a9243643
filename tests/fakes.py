"""In-memory collaborators for reconciler and signup tests."""

from typing import Dict, Iterable, Optional

from raidtrack.errors import ArtifactNotFound, DestinationUnresolved
from raidtrack.services.gateways import (
    AnnouncementStore,
    DestinationDirectory,
    IdentityLookup,
    ScheduledEntry,
    ScheduledEntryStore,
)
from raidtrack.utils.raid_utils import RenderedAnnouncement


class FakeDirectory(DestinationDirectory):

    def __init__(self, routing: Optional[Dict[str, str]] = None, fallback: Optional[str] = "chan-default"):
        self.routing = routing or {}
        self.fallback = fallback

    async def resolve(self, scope: str, difficulty: str) -> str:
        channel_id = self.routing.get(difficulty) or self.fallback
        if not channel_id:
            raise DestinationUnresolved(f"no channel for {difficulty}")
        return channel_id


class FakeAnnouncements(AnnouncementStore):

    def __init__(self):
        self.messages: Dict[str, tuple] = {}
        self.created = 0
        self.edited = 0
        self.fail_create: Optional[Exception] = None
        self.fail_edit: Optional[Exception] = None

    async def create(self, scope, channel_id, content: RenderedAnnouncement) -> str:
        if self.fail_create:
            raise self.fail_create
        self.created += 1
        message_id = f"m-{self.created}"
        self.messages[message_id] = (channel_id, content)
        return message_id

    async def edit(self, scope, channel_id, message_id, content: RenderedAnnouncement) -> None:
        if self.fail_edit:
            raise self.fail_edit
        if message_id not in self.messages:
            raise ArtifactNotFound(f"message {message_id} is gone")
        self.edited += 1
        self.messages[message_id] = (channel_id, content)

    def content(self, message_id: str) -> RenderedAnnouncement:
        return self.messages[message_id][1]


class FakeScheduledEntries(ScheduledEntryStore):

    def __init__(self):
        self.entries: Dict[str, ScheduledEntry] = {}
        self.created = 0
        self.edited = 0
        self.fail_edit: Optional[Exception] = None

    async def create(self, scope, entry: ScheduledEntry) -> str:
        self.created += 1
        entry_id = f"e-{self.created}"
        self.entries[entry_id] = entry
        return entry_id

    async def edit(self, scope, entry_id, entry: ScheduledEntry) -> None:
        if self.fail_edit:
            raise self.fail_edit
        if entry_id not in self.entries:
            raise ArtifactNotFound(f"entry {entry_id} is gone")
        self.edited += 1
        self.entries[entry_id] = entry


class FakeIdentities(IdentityLookup):

    def __init__(self, names: Optional[Dict[str, str]] = None, fail: bool = False):
        self.names = names or {}
        self.fail = fail

    async def resolve_display_names(self, scope, user_ids: Iterable[str]):
        if self.fail:
            raise RuntimeError("lookup unavailable")
        return {user_id: self.names[user_id] for user_id in user_ids if user_id in self.names}
