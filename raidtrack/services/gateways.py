"""Interfaces for the platform-side collaborators used by the reconciler."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from raidtrack.utils.raid_utils import RenderedAnnouncement


@dataclass(frozen=True)
class ScheduledEntry:
    """Fields of a calendar-style scheduled entry."""

    name: str
    start_at: int
    end_at: int
    description: str
    location: str


class DestinationDirectory(ABC):
    """Maps a raid difficulty to the channel its announcement is posted in."""

    @abstractmethod
    async def resolve(self, scope: str, difficulty: str) -> str:
        """
        Return the destination channel ID.

        Raises:
            DestinationUnresolved: no routed or fallback channel is usable
        """


class AnnouncementStore(ABC):
    """Creates and edits rendered raid announcements."""

    @abstractmethod
    async def create(self, scope: str, channel_id: str, content: RenderedAnnouncement) -> str:
        """
        Post a new announcement and return its ID.

        Raises:
            ArtifactError: the announcement could not be posted
        """

    @abstractmethod
    async def edit(
        self,
        scope: str,
        channel_id: str,
        message_id: str,
        content: RenderedAnnouncement,
    ) -> None:
        """
        Replace an announcement's content and drop any attachments.

        Raises:
            ArtifactNotFound: the announcement no longer exists
            ArtifactError: any other failure
        """


class ScheduledEntryStore(ABC):
    """Creates and edits scheduled calendar entries."""

    @abstractmethod
    async def create(self, scope: str, entry: ScheduledEntry) -> str:
        """
        Create a scheduled entry and return its ID.

        Raises:
            ArtifactError: the entry could not be created
        """

    @abstractmethod
    async def edit(self, scope: str, entry_id: str, entry: ScheduledEntry) -> None:
        """
        Update an existing scheduled entry.

        Raises:
            ArtifactNotFound: the entry no longer exists
            ArtifactError: any other failure
        """


class IdentityLookup(ABC):
    """Resolves member display names within a scope."""

    @abstractmethod
    async def resolve_display_names(
        self,
        scope: str,
        user_ids: Iterable[str],
    ) -> Dict[str, Optional[str]]:
        """
        Return display names keyed by user ID.

        Users that cannot be resolved are left out or mapped to None.
        """
