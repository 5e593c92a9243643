import tempfile
import unittest
from dataclasses import replace
from pathlib import Path

from fakes import FakeAnnouncements, FakeDirectory, FakeIdentities, FakeScheduledEntries
from raidtrack.database.raid_store import RaidStore
from raidtrack.errors import ArtifactError, DestinationUnresolved
from raidtrack.ingest.mapping import RaidPayload
from raidtrack.services.reconciler import RaidReconciler, normalize_window


NOW = 1_700_000_000
SCOPE = "100"


def make_payload(**overrides) -> RaidPayload:
    fields = dict(
        raid_id="r-1",
        raid_title="Liberation of Undermine",
        difficulty="HEROIC",
        start_at=NOW + 86400,
        end_at=NOW + 86400 + 7200,
        notes="Bring flasks",
        caps={"tank": 2, "healer": 4},
    )
    fields.update(overrides)
    return RaidPayload(**fields)


class TestNormalizeWindow(unittest.TestCase):

    def test_missing_end_uses_duration(self):
        self.assertEqual(normalize_window(1000, None, NOW, 300, 10800), (1000, 11800))

    def test_end_not_after_start(self):
        self.assertEqual(normalize_window(1000, 1000, NOW, 300, 60), (1000, 1060))

    def test_missing_start_uses_leeway(self):
        self.assertEqual(normalize_window(0, None, NOW, 300, 60), (NOW + 300, NOW + 360))


class TestRaidReconciler(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.store = RaidStore(str(Path(self.tmp.name) / "raids.db"))
        self.directory = FakeDirectory(routing={"MYTHIC": "chan-mythic"})
        self.announcements = FakeAnnouncements()
        self.entries = FakeScheduledEntries()
        self.identities = FakeIdentities({"u-1": "Alice (nick)"})
        self.reconciler = self._reconciler()

    async def asyncTearDown(self):
        self.tmp.cleanup()

    def _reconciler(self, **kwargs) -> RaidReconciler:
        kwargs.setdefault("clock", lambda: NOW)
        return RaidReconciler(
            self.store,
            self.directory,
            self.announcements,
            self.entries,
            self.identities,
            **kwargs,
        )

    async def test_first_run_creates_everything(self):
        result = await self.reconciler.reconcile(SCOPE, make_payload())
        self.assertEqual(result.channel_id, "chan-default")
        self.assertEqual(result.message_id, "m-1")
        self.assertEqual(result.scheduled_event_id, "e-1")

        record = await self.store.get_raid("r-1")
        self.assertEqual(record.message_id, "m-1")
        self.assertEqual(record.scheduled_event_id, "e-1")
        self.assertEqual(self.entries.entries["e-1"].description, "Bring flasks")

    async def test_idempotent(self):
        first = await self.reconciler.reconcile(SCOPE, make_payload())
        record_1 = await self.store.get_raid("r-1")
        second = await self.reconciler.reconcile(SCOPE, make_payload())
        record_2 = await self.store.get_raid("r-1")

        self.assertEqual(first, second)
        self.assertEqual(replace(record_1, updated_at=0), replace(record_2, updated_at=0))
        self.assertEqual(self.announcements.created, 1)
        self.assertEqual(self.announcements.edited, 1)
        self.assertEqual(self.entries.created, 1)
        self.assertEqual(self.entries.edited, 1)

    async def test_deleted_announcement_is_recreated(self):
        await self.reconciler.reconcile(SCOPE, make_payload())
        del self.announcements.messages["m-1"]

        result = await self.reconciler.reconcile(SCOPE, make_payload())
        self.assertEqual(result.message_id, "m-2")
        self.assertEqual((await self.store.get_raid("r-1")).message_id, "m-2")

    async def test_deleted_scheduled_entry_is_recreated(self):
        await self.reconciler.reconcile(SCOPE, make_payload())
        del self.entries.entries["e-1"]

        result = await self.reconciler.reconcile(SCOPE, make_payload())
        self.assertEqual(result.scheduled_event_id, "e-2")

    async def test_generic_edit_failure_keeps_reference(self):
        await self.reconciler.reconcile(SCOPE, make_payload())
        self.announcements.fail_edit = ArtifactError("rate limited")

        result = await self.reconciler.reconcile(SCOPE, make_payload(raid_title="Renamed"))
        self.assertEqual(result.message_id, "m-1")
        self.assertEqual(self.announcements.created, 1)
        record = await self.store.get_raid("r-1")
        self.assertEqual(record.raid_title, "Renamed")
        self.assertEqual(record.message_id, "m-1")

    async def test_create_failure_still_commits_record(self):
        self.announcements.fail_create = ArtifactError("no permission")

        result = await self.reconciler.reconcile(SCOPE, make_payload())
        self.assertIsNone(result.message_id)
        record = await self.store.get_raid("r-1")
        self.assertEqual(record.raid_title, "Liberation of Undermine")
        self.assertIsNone(record.message_id)

        self.announcements.fail_create = None
        result = await self.reconciler.reconcile(SCOPE, make_payload())
        self.assertEqual(result.message_id, "m-1")

    async def test_unresolved_destination_writes_nothing(self):
        self.directory.fallback = None
        with self.assertRaises(DestinationUnresolved):
            await self.reconciler.reconcile(SCOPE, make_payload())
        self.assertIsNone(await self.store.get_raid("r-1"))
        self.assertEqual(self.announcements.created, 0)

    async def test_routing_by_difficulty(self):
        result = await self.reconciler.reconcile(SCOPE, make_payload(difficulty="MYTHIC"))
        self.assertEqual(result.channel_id, "chan-mythic")

    async def test_end_defaults_from_duration(self):
        reconciler = self._reconciler(default_duration=10800)
        await reconciler.reconcile(SCOPE, make_payload(start_at=1000, end_at=None))
        record = await self.store.get_raid("r-1")
        self.assertEqual(record.start_at, 1000)
        self.assertEqual(record.end_at, 11800)

    async def test_export_without_start_gets_leeway_start(self):
        payload = RaidPayload.from_export({"raidId": "r-1", "raidTitle": "Undated"})
        reconciler = self._reconciler(leeway=300, default_duration=10800)
        await reconciler.reconcile(SCOPE, payload)
        record = await self.store.get_raid("r-1")
        self.assertEqual(record.start_at, NOW + 300)
        self.assertEqual(record.end_at, NOW + 300 + 10800)

    async def test_past_raid_gets_no_scheduled_entry(self):
        result = await self.reconciler.reconcile(SCOPE, make_payload(start_at=NOW + 60))
        self.assertIsNone(result.scheduled_event_id)
        self.assertEqual(self.entries.created, 0)

    async def test_scheduled_entries_disabled(self):
        reconciler = self._reconciler(create_events=False)
        result = await reconciler.reconcile(SCOPE, make_payload())
        self.assertIsNone(result.scheduled_event_id)
        self.assertEqual(self.entries.created, 0)

    async def test_past_raid_keeps_existing_entry_reference(self):
        await self.reconciler.reconcile(SCOPE, make_payload())
        later = self._reconciler(clock=lambda: NOW + 86400)
        result = await later.reconcile(SCOPE, make_payload())
        self.assertEqual(result.scheduled_event_id, "e-1")
        self.assertEqual(self.entries.edited, 0)

    async def test_long_title_clamped_for_scheduled_entry(self):
        await self.reconciler.reconcile(SCOPE, make_payload(raid_title="x" * 300))
        name = self.entries.entries["e-1"].name
        self.assertEqual(len(name), 100)
        self.assertTrue(name.endswith("..."))
        self.assertEqual(len(self.announcements.content("m-1").title), 256)

    async def test_roster_uses_display_names_and_profiles(self):
        await self.reconciler.reconcile(SCOPE, make_payload())
        await self.store.upsert_signup("r-1", "u-1", "alice", "TANK")
        await self.store.upsert_signup("r-1", "u-2", "bob", "ABSENT")
        await self.store.upsert_profile(SCOPE, "u-1", "PALADIN", "PROTECTION")

        message_id = await self.reconciler.refresh(SCOPE, "r-1")
        self.assertEqual(message_id, "m-1")

        content = self.announcements.content("m-1")
        self.assertEqual(content.field_value("🛡️ Tank (1/2)"), "🛡️ Alice (nick)")
        self.assertEqual(content.field_value("🚫 Absent (1)"), "• bob")
        self.assertEqual(content.field_value("❔ Maybe (0)"), "—")

    async def test_identity_failure_falls_back_to_username(self):
        self.identities.fail = True
        await self.reconciler.reconcile(SCOPE, make_payload())
        await self.store.upsert_signup("r-1", "u-1", "alice", "HEALER")

        await self.reconciler.refresh(SCOPE, "r-1")
        content = self.announcements.content("m-1")
        self.assertEqual(content.field_value("✨ Healer"), "• alice")

    async def test_refresh_clears_deleted_message(self):
        await self.reconciler.reconcile(SCOPE, make_payload())
        del self.announcements.messages["m-1"]

        self.assertIsNone(await self.reconciler.refresh(SCOPE, "r-1"))
        self.assertIsNone((await self.store.get_raid("r-1")).message_id)

    async def test_refresh_unknown_raid(self):
        self.assertIsNone(await self.reconciler.refresh(SCOPE, "missing"))


if __name__ == "__main__":
    unittest.main()
