"""Tests for the drag/click interaction controller.

Uses the default plate fixture: one 151.5×40 cm plate on an 800×400
canvas, one horizontal cutout anchored at (50, 20) cm.

Validates:
  - Pointer deltas map to cm deltas with the Y axis flipped
  - Many small moves do not drift the anchor
  - Rejected moves keep the last valid anchor; release snaps back
  - The transient error expires on the injected clock
  - A drag is saved once, on release
  - A resize landing mid-drag keeps the grabbed point under the pointer
  - Click selection and topmost-wins hit testing
"""

from __future__ import annotations

import unittest

from plateconfig.layout.dimensions import DimensionValue
from plateconfig.layout.sockets import plate_cm_to_pixel
from tests.plate_fixture import CountingRepository, FakeClock, make_group, make_session


def _anchor_px(session, socket_id="s1"):
    result = session.controller.viewport.result
    group = session.sockets.get(socket_id)
    plate = result.plate(group.plate_index)
    return plate_cm_to_pixel(plate, result.scale, group.anchor_x_cm, group.anchor_y_cm)


class TestDragMapping(unittest.TestCase):

    def setUp(self):
        self.session = make_session([make_group()])
        self.c = self.session.controller
        self.scale = self.c.viewport.result.scale
        self.start = _anchor_px(self.session)

    def test_pointer_down_on_group_starts_drag(self):
        self.assertEqual(self.c.pointer_down(*self.start), "s1")
        self.assertEqual(self.c.state, "dragging")
        self.assertEqual(self.c.dragging_socket_id, "s1")
        self.assertEqual(self.c.active_socket_id, "s1")

    def test_pointer_down_on_empty_canvas(self):
        self.assertIsNone(self.c.pointer_down(5, 5))
        self.assertEqual(self.c.state, "idle")

    def test_move_right_and_up(self):
        x, y = self.start
        self.c.pointer_down(x, y)
        update = self.c.update_drag(x + 10, y - 20)
        self.assertTrue(update.accepted)
        group = self.session.sockets.get("s1")
        self.assertAlmostEqual(group.anchor_x_cm, 50 + 10 / self.scale)
        self.assertAlmostEqual(group.anchor_y_cm, 20 + 20 / self.scale)

    def test_no_drift_over_many_moves(self):
        x0, y0 = self.start
        self.c.pointer_down(x0, y0)
        for i in range(1000):
            dx = ((i * 37) % 11 - 5) * 0.37
            dy = ((i * 53) % 7 - 3) * 0.29
            self.assertTrue(self.c.update_drag(x0 + dx, y0 + dy).accepted)
        self.c.update_drag(x0, y0)
        self.c.pointer_up()

        group = self.session.sockets.get("s1")
        self.assertAlmostEqual(group.anchor_x_cm, 50, delta=1e-6)
        self.assertAlmostEqual(group.anchor_y_cm, 20, delta=1e-6)

    def test_update_while_idle_is_ignored(self):
        update = self.c.update_drag(100, 100)
        self.assertFalse(update.accepted)
        self.assertEqual(self.session.sockets.get("s1").anchor, (50, 20))


class TestRejectionAndSnapBack(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.session = make_session([make_group()], clock=self.clock)
        self.c = self.session.controller
        self.scale = self.c.viewport.result.scale
        self.start = _anchor_px(self.session)

    def test_rejected_move_keeps_last_valid_anchor(self):
        x, y = self.start
        self.c.pointer_down(x, y)
        self.c.update_drag(x + 10, y)
        accepted_x = self.session.sockets.get("s1").anchor_x_cm

        update = self.c.update_drag(x - 300, y)
        self.assertFalse(update.accepted)
        self.assertEqual(update.reason, "Too close to the left edge: minimum distance is 3 cm")
        self.assertEqual(self.c.error, update.reason)
        self.assertEqual(self.session.sockets.get("s1").anchor_x_cm, accepted_x)

    def test_release_after_rejection_snaps_back_exactly(self):
        x, y = self.start
        self.c.pointer_down(x, y)
        self.c.update_drag(x + 10, y)
        self.c.update_drag(x - 300, y)
        self.assertTrue(self.c.pointer_up())
        self.assertEqual(self.c.state, "idle")
        self.assertEqual(self.session.sockets.get("s1").anchor, (50, 20))

    def test_valid_move_clears_error(self):
        x, y = self.start
        self.c.pointer_down(x, y)
        self.c.update_drag(x - 300, y)
        # delta is measured from the last accepted pointer position
        self.assertTrue(self.c.update_drag(x + 5, y).accepted)
        self.assertIsNone(self.c.error)
        self.assertFalse(self.c.pointer_up())
        self.assertAlmostEqual(self.session.sockets.get("s1").anchor_x_cm, 50 + 5 / self.scale)

    def test_error_expires_after_release(self):
        x, y = self.start
        self.c.pointer_down(x, y)
        self.c.update_drag(x - 300, y)
        self.clock.advance(10)
        self.assertIsNotNone(self.c.error)      # never expires mid-drag

        self.c.pointer_up()
        self.clock.advance(2.9)
        self.assertIsNotNone(self.c.error)
        self.clock.advance(0.2)
        self.assertIsNone(self.c.error)

    def test_pointer_leave_ends_drag(self):
        x, y = self.start
        self.c.pointer_down(x, y)
        self.c.update_drag(x, y + 400)
        self.assertTrue(self.c.pointer_leave())
        self.assertEqual(self.c.state, "idle")
        self.assertEqual(self.session.sockets.get("s1").anchor, (50, 20))

    def test_release_without_drag(self):
        self.assertFalse(self.c.end_drag())

    def test_move_into_neighbour_rejected(self):
        session = make_session([make_group("s1"), make_group("s2", x=70)], clock=self.clock)
        c = session.controller
        x, y = _anchor_px(session, "s1")
        c.pointer_down(x, y)
        update = c.update_drag(x + 15 * c.viewport.result.scale, y)
        self.assertFalse(update.accepted)
        self.assertIn("another socket group", update.reason)


class TestDragPersistence(unittest.TestCase):

    def setUp(self):
        self.session = make_session([make_group()], repository_cls=CountingRepository)
        self.repo = self.session.repository
        self.c = self.session.controller
        self.start = _anchor_px(self.session)

    def test_moves_saved_once_on_release(self):
        x, y = self.start
        before = self.repo.writes
        self.c.pointer_down(x, y)
        for i in range(100):
            self.assertTrue(self.c.update_drag(x + i * 0.1, y).accepted)
        self.assertEqual(self.repo.writes, before)
        self.assertEqual(self.repo.doc["sockets"][0]["anchor_x"], 50)

        self.assertFalse(self.c.pointer_up())
        self.assertEqual(self.repo.writes, before + 1)
        self.assertAlmostEqual(
            self.repo.doc["sockets"][0]["anchor_x"],
            self.session.sockets.get("s1").anchor_x_cm,
        )

    def test_snap_back_saved_once(self):
        x, y = self.start
        before = self.repo.writes
        self.c.pointer_down(x, y)
        self.c.update_drag(x + 10, y)
        self.c.update_drag(x - 300, y)
        self.assertTrue(self.c.pointer_up())
        self.assertEqual(self.repo.writes, before + 1)
        self.assertEqual(self.repo.doc["sockets"][0]["anchor_x"], 50)

    def test_press_and_release_writes_nothing(self):
        before = self.repo.writes
        self.c.pointer_down(*self.start)
        self.c.pointer_up()
        self.assertEqual(self.repo.writes, before)


class TestLayoutChangeDuringDrag(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.session = make_session([make_group()], clock=self.clock)
        self.c = self.session.controller
        self.scale = self.c.viewport.result.scale
        self.start = _anchor_px(self.session)

    def test_debounced_resize_keeps_grab_point(self):
        x, y = self.start
        self.c.pointer_down(x, y)
        self.assertTrue(self.c.update_drag(x + 10, y).accepted)

        self.session.resize(1200, 400)
        self.clock.advance(0.2)
        new_scale = self.c.viewport.result.scale
        self.assertAlmostEqual(new_scale, 1120 / 151.5)

        # the grabbed point is redrawn under the new scale; moving 10 px
        # from there moves 10 new-frame pixels
        ax, ay = _anchor_px(self.session)
        self.assertTrue(self.c.update_drag(ax + 10, ay).accepted)
        group = self.session.sockets.get("s1")
        self.assertAlmostEqual(group.anchor_x_cm, 50 + 10 / self.scale + 10 / new_scale)
        self.assertAlmostEqual(group.anchor_y_cm, 20)

    def test_unchanged_layout_is_not_rebased(self):
        x, y = self.start
        self.c.pointer_down(x, y)
        layout = self.c.drag.layout
        self.c.update_drag(x + 5, y)
        self.assertIs(self.c.drag.layout, layout)
        self.assertEqual(self.c.drag.pointer_ref_px, (x + 5, y))


class TestClickAndHitTest(unittest.TestCase):

    def setUp(self):
        self.session = make_session([make_group()])
        self.c = self.session.controller

    def test_click_group_selects_it(self):
        self.assertEqual(self.c.click(*_anchor_px(self.session)), "socket")
        self.assertEqual(self.c.active_socket_id, "s1")

    def test_click_plate_clears_socket_selection(self):
        self.c.click(*_anchor_px(self.session))
        plate = self.c.viewport.result.plate(0)
        hit = self.c.click(plate.x_px + plate.width_px - 5, plate.y_px + 5)
        self.assertEqual(hit, "plate")
        self.assertIsNone(self.c.active_socket_id)

    def test_click_empty_canvas(self):
        self.c.click(*_anchor_px(self.session))
        self.assertIsNone(self.c.click(5, 5))
        self.assertIsNone(self.c.active_socket_id)

    def test_click_plate_selects_plate(self):
        dims = [DimensionValue("100", "40"), DimensionValue("100", "40")]
        session = make_session(dims=dims)
        plate = session.controller.viewport.result.plate(1)
        session.controller.click(plate.x_px + 1, plate.y_px + 1)
        self.assertEqual(session.dimensions.active_index, 1)

    def test_topmost_group_wins(self):
        session = make_session([make_group("a"), make_group("b")])
        self.assertEqual(session.controller.hit_test(*_anchor_px(session, "a")), "b")

    def test_cutouts_disabled(self):
        self.c.set_cutouts_enabled(False)
        self.assertEqual(self.c.visible_groups(), [])
        self.assertIsNone(self.c.pointer_down(*_anchor_px(self.session)))
        self.assertEqual(self.c.click(*_anchor_px(self.session)), "plate")

    def test_disabling_cutouts_ends_drag(self):
        self.c.pointer_down(*_anchor_px(self.session))
        self.c.set_cutouts_enabled(False)
        self.assertEqual(self.c.state, "idle")


class TestFocusedPlate(unittest.TestCase):

    def setUp(self):
        dims = [DimensionValue("151.5", "40"), DimensionValue("100", "50")]
        groups = [make_group("a"), make_group("b", x=20, y=20, plate_index=1)]
        self.session = make_session(groups, dims=dims)
        self.c = self.session.controller

    def test_focus_shows_one_plate(self):
        self.c.focus_plate(1)
        result = self.c.viewport.result
        self.assertEqual([p.index for p in result.plates], [1])
        self.assertEqual([g.id for g in self.c.visible_groups()], ["b"])
        self.assertEqual([g.id for g, _, _ in self.c.projected_groups()], ["b"])

    def test_unfocus_shows_all(self):
        self.c.focus_plate(1)
        self.c.focus_plate(None)
        self.assertEqual(len(self.c.viewport.result.plates), 2)
        self.assertEqual({g.id for g in self.c.visible_groups()}, {"a", "b"})

    def test_drag_on_focused_plate_uses_its_scale(self):
        self.c.focus_plate(1)
        scale = self.c.viewport.result.scale
        x, y = _anchor_px(self.session, "b")
        self.assertEqual(self.c.pointer_down(x, y), "b")
        self.assertTrue(self.c.update_drag(x + scale, y).accepted)
        self.assertAlmostEqual(self.session.sockets.get("b").anchor_x_cm, 21)


if __name__ == "__main__":
    unittest.main()
