import unittest

from raidtrack.ingest.difficulty import (
    TIER_HEROIC,
    TIER_MYTHIC,
    TIER_NORMAL,
    PresetConfig,
    classify_tier,
    parse_presets,
    resolve_difficulty,
)


PRESETS = '''
raidPresets = {
    ["Main"] = {
        ["selectedDifficulty"] = "Heroic Mode",
    },
    ["Prog"] = {
        bosses = {
            ["Vexie"] = { ["Heroic"] = 10, ["Normal"] = 0 },
            ["Cauldron"] = { ["Mythic"] = 0 },
        },
    },
    ["Farm"] = {
        bosses = {
            ["A"] = { ["Mythic"] = 2, ["Heroic"] = 2 },
            ["B"] = { ["LFR"] = 5, ["25 Player"] = 1 },
        },
    },
    ["Empty"] = {
    },
}
'''


class TestClassifyTier(unittest.TestCase):

    def test_prefixes(self):
        self.assertEqual(classify_tier("Mythic"), TIER_MYTHIC)
        self.assertEqual(classify_tier("mythic+"), TIER_MYTHIC)
        self.assertEqual(classify_tier("Heroic Mode"), TIER_HEROIC)
        self.assertEqual(classify_tier("HC"), TIER_HEROIC)
        self.assertEqual(classify_tier("Normal"), TIER_NORMAL)
        self.assertEqual(classify_tier("LFR"), TIER_NORMAL)
        self.assertEqual(classify_tier("10 Player"), TIER_NORMAL)
        self.assertEqual(classify_tier(None), TIER_NORMAL)


class TestResolveDifficulty(unittest.TestCase):

    def test_missing_preset_is_normal(self):
        self.assertEqual(resolve_difficulty(None), TIER_NORMAL)

    def test_empty_preset_is_normal(self):
        self.assertEqual(resolve_difficulty(PresetConfig(name="x")), TIER_NORMAL)

    def test_explicit_selection_wins_over_bosses(self):
        preset = PresetConfig(
            name="x",
            selected_difficulty="Heroic Mode",
            bosses={"A": {"Mythic": 9}},
        )
        self.assertEqual(resolve_difficulty(preset), TIER_HEROIC)

    def test_positive_sum_beats_zero_higher_tier(self):
        preset = PresetConfig(
            name="x",
            bosses={"A": {"Heroic": 10, "Normal": 0}, "B": {"Mythic": 0}},
        )
        self.assertEqual(resolve_difficulty(preset), TIER_HEROIC)

    def test_tie_prefers_higher_tier(self):
        preset = PresetConfig(name="x", bosses={"A": {"Mythic": 1, "Heroic": 1}})
        self.assertEqual(resolve_difficulty(preset), TIER_MYTHIC)

    def test_all_zero_is_normal(self):
        preset = PresetConfig(name="x", bosses={"A": {"Mythic": 0, "Heroic": 0}})
        self.assertEqual(resolve_difficulty(preset), TIER_NORMAL)

    def test_blank_selection_falls_through_to_bosses(self):
        preset = PresetConfig(name="x", selected_difficulty="  ", bosses={"A": {"Mythic": 3}})
        self.assertEqual(resolve_difficulty(preset), TIER_MYTHIC)

    def test_non_finite_contributions_are_ignored(self):
        preset = PresetConfig(
            name="x",
            bosses={"A": {"Mythic": float("inf"), "Heroic": "inf"}, "B": {"Heroic": "nan", "Normal": 1}},
        )
        self.assertEqual(resolve_difficulty(preset), TIER_NORMAL)


class TestParsePresets(unittest.TestCase):

    def setUp(self):
        self.presets = parse_presets(PRESETS)

    def test_keys_are_lowercase(self):
        self.assertEqual(sorted(self.presets), ["empty", "farm", "main", "prog"])
        self.assertEqual(self.presets["main"].name, "Main")

    def test_selection_read(self):
        self.assertEqual(self.presets["main"].selected_difficulty, "Heroic Mode")
        self.assertEqual(resolve_difficulty(self.presets["main"]), TIER_HEROIC)

    def test_bosses_read(self):
        prog = self.presets["prog"]
        self.assertEqual(prog.bosses["Vexie"], {"Heroic": 10, "Normal": 0})
        self.assertEqual(resolve_difficulty(prog), TIER_HEROIC)

    def test_positive_mythic_sum_wins(self):
        farm = self.presets["farm"]
        self.assertEqual(resolve_difficulty(farm), TIER_MYTHIC)

    def test_empty_preset(self):
        self.assertEqual(resolve_difficulty(self.presets["empty"]), TIER_NORMAL)

    def test_absent_table(self):
        self.assertEqual(parse_presets("raidInstances = {}"), {})


if __name__ == "__main__":
    unittest.main()
