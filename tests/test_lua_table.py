import unittest

from raidtrack.errors import LuaDecodeError
from raidtrack.ingest.lua_table import (
    decode_pairs,
    decode_records,
    find_block_end,
    find_table,
    iter_blocks,
    unescape_lua_string,
)


SAVED_VARIABLES = '''
RaidTrackDB = {
    ["settings"] = {
        minimap = true,
    },
}
raidInstances = {
    {
        ["id"] = "r-1",
        ["name"] = "Liberation of Undermine",
        ["scheduledAt"] = 1735840800, -- start
        ["preset"] = "Main",
    }, -- [1]

    -- a comment with a brace {
    {
        id = "r-2",
        name = "Nerub-ar Palace \\"Alt\\"",
        scheduledAt = 1736445600,
        caps = { tank = 2, healer = 4 },
        preset = "Alt",
    }, -- [2]
    {
        id = "r-3", enabled = false, ratio = 0.5, note = nil,
    },
}
'''


class TestUnescape(unittest.TestCase):

    def test_known_escapes(self):
        self.assertEqual(unescape_lua_string(r'a\"b\\c\nd\te'), 'a"b\\c\nd\te')

    def test_unknown_escape_kept(self):
        self.assertEqual(unescape_lua_string(r"caf\u00e9"), r"caf\u00e9")

    def test_plain_text_unchanged(self):
        self.assertEqual(unescape_lua_string("plain"), "plain")


class TestBlocks(unittest.TestCase):

    def test_find_block_end_ignores_braces_in_strings_and_comments(self):
        text = '{ a = "}", -- }\n b = [[}]], { c = 1 } }'
        self.assertEqual(find_block_end(text, 0), len(text) - 1)

    def test_unbalanced_block_runs_to_end(self):
        text = "{ a = { b = 1 }"
        self.assertEqual(find_block_end(text, 0), len(text))

    def test_find_table_missing_key(self):
        self.assertIsNone(find_table(SAVED_VARIABLES, "raidPresets"))

    def test_find_table_bracket_form(self):
        inner = find_table(SAVED_VARIABLES, "settings")
        self.assertIsNotNone(inner)
        self.assertIn("minimap", inner)

    def test_key_must_not_match_suffix(self):
        self.assertIsNone(find_table("myraidInstances = { {} }", "raidInstances"))

    def test_iter_blocks_keyed_and_anonymous(self):
        inner = '["Main"] = { a = 1 }, { b = 2 }, [3] = { c = 3 }, plain = { d = 4 }'
        keys = [key for key, _ in iter_blocks(inner)]
        self.assertEqual(keys, ["Main", None, "3", "plain"])


class TestDecodeRecords(unittest.TestCase):

    def test_sibling_records_in_source_order(self):
        records = decode_records(SAVED_VARIABLES, "raidInstances")
        self.assertEqual([record["id"] for record in records], ["r-1", "r-2", "r-3"])

    def test_primitive_values(self):
        first, second, third = decode_records(SAVED_VARIABLES, "raidInstances")
        self.assertEqual(first["scheduledAt"], 1735840800)
        self.assertEqual(first["name"], "Liberation of Undermine")
        self.assertEqual(second["name"], 'Nerub-ar Palace "Alt"')
        self.assertIs(third["enabled"], False)
        self.assertEqual(third["ratio"], 0.5)
        self.assertIn("note", third)
        self.assertIsNone(third["note"])

    def test_nested_table_skips_only_that_key(self):
        second = decode_records(SAVED_VARIABLES, "raidInstances")[1]
        self.assertNotIn("caps", second)
        self.assertEqual(second["preset"], "Alt")
        self.assertEqual(second["scheduledAt"], 1736445600)

    def test_n_flat_entries_regardless_of_layout(self):
        text = "raidInstances = {{a=1},\n\n  -- x\n{a=2} ,{a=3};{a=4}}"
        records = decode_records(text, "raidInstances")
        self.assertEqual([record["a"] for record in records], [1, 2, 3, 4])

    def test_missing_root_key(self):
        self.assertEqual(decode_records(SAVED_VARIABLES, "raidPresets"), [])
        with self.assertRaises(LuaDecodeError):
            decode_records(SAVED_VARIABLES, "raidPresets", required=True)

    def test_garbage_value_does_not_abort_record(self):
        pairs = decode_pairs('a = 1, b = someFunction(), c = "ok", d = 0x1F')
        self.assertEqual(pairs, {"a": 1, "c": "ok", "d": 31})


if __name__ == "__main__":
    unittest.main()
