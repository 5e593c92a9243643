import unittest

import discord

from raidtrack.services.signup_flow import ClassSelect, SpecSelect, decode_token
from raidtrack.utils.signup_views import (
    build_class_view,
    build_role_view,
    build_signup_view,
    build_spec_view,
    catalog_label,
)


class TestSignupViews(unittest.IsolatedAsyncioTestCase):

    async def test_announcement_buttons(self):
        view = build_signup_view("r-1")
        self.assertIsNone(view.timeout)
        custom_ids = [item.custom_id for item in view.children]
        self.assertEqual(
            custom_ids,
            [
                "signup:role:r-1:TANK",
                "signup:role:r-1:HEALER",
                "signup:role:r-1:MELEE",
                "signup:role:r-1:RANGED",
                "signup:role:r-1:MAYBE",
                "signup:changeRole:r-1",
                "profile:change:r-1",
                "signup:role:r-1:ABSENT",
            ],
        )
        leave = view.children[-1]
        self.assertEqual(leave.label, "Leave")
        self.assertEqual(leave.style, discord.ButtonStyle.danger)
        for custom_id in custom_ids:
            self.assertIsNotNone(decode_token(custom_id))

    async def test_role_menu_has_every_role(self):
        view = build_role_view("r-1")
        self.assertEqual(len(view.children), 6)

    async def test_class_and_spec_selects(self):
        class_select = build_class_view("r-1", "TANK").children[0]
        self.assertEqual(decode_token(class_select.custom_id), ClassSelect("r-1", "TANK"))
        self.assertEqual(len(class_select.options), 13)

        spec_select = build_spec_view("r-1", "TANK", "DRUID").children[0]
        self.assertEqual(
            decode_token(spec_select.custom_id), SpecSelect("r-1", "TANK", "DRUID")
        )
        self.assertEqual(
            [option.value for option in spec_select.options],
            ["BALANCE", "FERAL", "GUARDIAN", "RESTORATION"],
        )

    def test_catalog_label(self):
        self.assertEqual(catalog_label("BEAST_MASTERY"), "Beast Mastery")


if __name__ == "__main__":
    unittest.main()
