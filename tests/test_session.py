"""Tests for the configurator session and the render scene."""

from __future__ import annotations

import json
import unittest

from plateconfig.layout import Orientation, PlateChangeError, SocketGroupError
from plateconfig.layout.dimensions import DimensionValue
from plateconfig.scene import build_scene
from plateconfig.session import ConfiguratorSession, group_price, group_summary
from tests.plate_fixture import make_group, make_session


class TestConfirmAndEdit(unittest.TestCase):

    def setUp(self):
        self.session = make_session()

    def test_confirm_centres_new_group(self):
        group, verdict = self.session.confirm_socket(0, 2, "horizontal")
        self.assertTrue(verdict.valid)
        self.assertEqual(group.anchor, (72.0, 20.0))
        self.assertEqual(self.session.controller.active_socket_id, group.id)
        self.assertEqual(self.session.sockets.groups, (group,))

    def test_confirm_invalid_position(self):
        group, verdict = self.session.confirm_socket(0, 1, "vertical", 3, 3)
        self.assertFalse(verdict.valid)
        self.assertEqual(verdict.edge, "left")
        self.assertEqual(self.session.sockets.groups, ())

    def test_confirm_structural_errors(self):
        with self.assertRaises(SocketGroupError):
            self.session.confirm_socket(0, 6, "horizontal")
        with self.assertRaises(SocketGroupError):
            self.session.confirm_socket(3, 1, "horizontal")
        with self.assertRaises(SocketGroupError):
            self.session.confirm_socket(0, 1, "sideways")

    def test_edit_count(self):
        group, _ = self.session.confirm_socket(0, 2, Orientation.HORIZONTAL)
        edited, verdict = self.session.edit_socket(group.id, count=3)
        self.assertTrue(verdict.valid)
        self.assertEqual(self.session.sockets.get(group.id).count, 3)
        self.assertEqual(edited.anchor, group.anchor)

    def test_edit_rejected_keeps_group(self):
        group, _ = self.session.confirm_socket(0, 1, "horizontal")
        _, verdict = self.session.edit_socket(group.id, anchor_x_cm=2.0)
        self.assertFalse(verdict.valid)
        self.assertEqual(self.session.sockets.get(group.id), group)

    def test_edit_errors(self):
        group, _ = self.session.confirm_socket(0, 1, "horizontal")
        with self.assertRaises(SocketGroupError):
            self.session.edit_socket("missing", count=2)
        with self.assertRaises(SocketGroupError):
            self.session.edit_socket(group.id, count=0)
        with self.assertRaises(SocketGroupError):
            self.session.edit_socket(group.id, orientation="diagonal")
        with self.assertRaises(SocketGroupError):
            self.session.edit_socket(group.id, colour="red")

    def test_delete_clears_selection(self):
        group, _ = self.session.confirm_socket(0, 1, "horizontal")
        self.session.controller.start_edit(group.id)
        self.assertTrue(self.session.delete_socket(group.id))
        self.assertIsNone(self.session.controller.active_socket_id)
        self.assertIsNone(self.session.controller.editing_socket_id)
        self.assertFalse(self.session.delete_socket(group.id))


class TestPlates(unittest.TestCase):

    def test_set_dimensions_sanitises_and_relayouts(self):
        session = make_session()
        session.set_dimensions([DimensionValue("100cm", "50"), DimensionValue("80", "4o")])
        self.assertEqual(session.dimensions.dimensions[0].width, "100")
        self.assertEqual(session.dimensions.dimensions[1].height, "4")
        self.assertEqual(len(session.controller.viewport.result.plates), 2)

    def test_set_dimensions_clamped(self):
        session = make_session()
        session.set_dimensions([DimensionValue("500", "10")], clamp=True)
        self.assertEqual(session.dimensions.dimensions[0], DimensionValue("300", "30"))

    def test_empty_plate_list_refused(self):
        with self.assertRaises(ValueError):
            make_session().set_dimensions([])

    def test_add_plate_uses_default_size(self):
        session = make_session()
        self.assertEqual(session.add_plate(), 1)
        self.assertEqual(session.dimensions.dimensions[1], DimensionValue("200", "100"))
        self.assertEqual(len(session.controller.viewport.result.plates), 2)

    def test_remove_plate_drops_its_groups(self):
        dims = [DimensionValue("151.5", "40"), DimensionValue("100", "50")]
        groups = [make_group("a"), make_group("b", x=20, y=20, plate_index=1)]
        session = make_session(groups, dims=dims)
        self.assertTrue(session.remove_plate(0))
        self.assertEqual([(g.id, g.plate_index) for g in session.sockets.groups], [("b", 0)])
        self.assertFalse(session.remove_plate(0))

    def test_shrinking_plate_under_group_refused(self):
        session = make_session([make_group("a", x=140)])
        with self.assertRaises(PlateChangeError) as ctx:
            session.set_dimensions([DimensionValue("60", "40")])
        self.assertEqual(ctx.exception.socket_id, "a")
        self.assertEqual(ctx.exception.verdict.edge, "right")
        self.assertEqual(session.dimensions.dimensions, (DimensionValue("151.5", "40"),))
        self.assertEqual(session.sockets.get("a").anchor_x_cm, 140)

    def test_shrinking_plate_clear_of_groups(self):
        session = make_session([make_group("a", x=20)])
        session.set_dimensions([DimensionValue("60", "40")])
        self.assertEqual(session.dimensions.dimensions, (DimensionValue("60", "40"),))
        self.assertEqual([g.id for g in session.sockets.groups], ["a"])

    def test_dropping_plates_drops_their_groups(self):
        dims = [DimensionValue("151.5", "40"), DimensionValue("100", "50")]
        groups = [make_group("a"), make_group("b", x=20, y=20, plate_index=1)]
        session = make_session(groups, dims=dims)
        session.controller.focus_plate(1)
        session.controller.active_socket_id = "b"
        session.dimensions.set_active_index(1)

        session.set_dimensions([DimensionValue("151.5", "40")])
        self.assertEqual([g.id for g in session.sockets.groups], ["a"])
        self.assertNotIn("Unknown Plate", "".join(session.order_lines()))
        self.assertIsNone(session.controller.active_socket_id)
        self.assertIsNone(session.controller.focused_plate_index)
        self.assertEqual(session.dimensions.active_index, 0)

    def test_remove_lower_plate_keeps_focus(self):
        dims = [DimensionValue("151.5", "40"), DimensionValue("100", "50"), DimensionValue("80", "40")]
        groups = [
            make_group("a"),
            make_group("b", x=20, y=20, plate_index=1),
            make_group("c", x=20, y=20, plate_index=2),
        ]
        session = make_session(groups, dims=dims)
        session.controller.focus_plate(1)
        session.dimensions.set_active_index(1)

        self.assertTrue(session.remove_plate(0))
        c = session.controller
        self.assertEqual(c.focused_plate_index, 0)
        self.assertEqual([g.id for g in c.visible_groups()], ["b"])
        self.assertEqual([p.index for p in c.viewport.result.plates], [0])
        self.assertEqual(session.dimensions.active_index, 0)
        self.assertEqual(session.dimensions.dimensions[0], DimensionValue("100", "50"))

    def test_remove_higher_plate_keeps_focus(self):
        dims = [DimensionValue("151.5", "40"), DimensionValue("100", "50")]
        session = make_session(dims=dims)
        session.controller.focus_plate(0)
        self.assertTrue(session.remove_plate(1))
        self.assertEqual(session.controller.focused_plate_index, 0)


class TestOrderSummary(unittest.TestCase):

    def test_price_and_lines(self):
        session = make_session()
        session.confirm_socket(0, 2, "horizontal")
        session.confirm_socket(0, 1, "vertical", 20, 20)
        self.assertEqual(session.total_price(), 60.0)
        self.assertEqual(
            session.order_lines(),
            [
                "1. Rückwand-151.5 x 40 | 2x Steckdose | L:72.0cm B:20.0cm + 40.00 €",
                "2. Rückwand-151.5 x 40 | 1x Steckdose | L:20.0cm B:20.0cm + 20.00 €",
            ],
        )

    def test_unknown_plate_summary(self):
        line = group_summary(1, make_group(plate_index=4), [])
        self.assertIn("Unknown Plate", line)
        self.assertEqual(group_price(make_group(count=3)), 60.0)


class TestScene(unittest.TestCase):

    def test_empty_before_canvas_known(self):
        session = ConfiguratorSession()
        scene = session.scene()
        self.assertIsNone(scene["scale"])
        self.assertEqual(scene["plates"], [])
        self.assertEqual(scene["sockets"], [])

    def test_plates_and_sockets(self):
        session = make_session([make_group("a", count=3), make_group("b", x=120)])
        scene = session.scene()
        (plate,) = scene["plates"]
        self.assertEqual(plate["label"], "151.5 x 40 cm")
        self.assertEqual(plate["number"], "#1")
        self.assertTrue(plate["active"])
        self.assertEqual([len(s["units"]) for s in scene["sockets"]], [3, 1])
        self.assertEqual([len(s["separators"]) for s in scene["sockets"]], [2, 0])
        self.assertEqual(scene["helpers"], [])
        json.dumps(scene)

    def test_helpers_for_active_group(self):
        session = make_session([make_group("a"), make_group("b", x=120)])
        session.controller.active_socket_id = "b"
        scene = session.scene()
        self.assertEqual([h["label"] for h in scene["helpers"]], ["120.0 cm", "20.0 cm"])
        self.assertEqual([s["active"] for s in scene["sockets"]], [False, True])

    def test_cutouts_disabled_hides_sockets(self):
        session = make_session([make_group("a")])
        session.controller.active_socket_id = "a"
        session.controller.set_cutouts_enabled(False)
        scene = build_scene(session.controller)
        self.assertEqual(scene["sockets"], [])
        self.assertEqual(scene["helpers"], [])
        self.assertEqual(len(scene["plates"]), 1)

    def test_style_override(self):
        scene = build_scene(make_session().controller, style={"helper": "#000000"})
        self.assertEqual(scene["style"]["helper"], "#000000")
        self.assertEqual(scene["style"]["socket"], "#FFFFFF")


class TestStateDict(unittest.TestCase):

    def test_to_dict_is_json_safe(self):
        session = make_session([make_group("a")])
        state = session.to_dict()
        json.dumps(state)
        self.assertEqual(state["dimensions"], [{"width": "151.5", "height": "40"}])
        self.assertEqual(state["dimensions_mm"], [{"width": 1515.0, "height": 400.0}])
        self.assertTrue(state["dimensions_valid"])
        self.assertEqual(state["state"], "idle")
        self.assertEqual(state["total_price"], "20")
        self.assertEqual(state["viewport"], {"width": 800.0, "height": 400.0})


if __name__ == "__main__":
    unittest.main()
