"""
Test cases for the scene interaction controller.
"""
import sys
import unittest
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).parent.parent))

from gesture_engine.config import InteractionConfig, ViewportConfig
from gesture_engine.controller_mock import MockSceneRenderer
from gesture_engine.interaction import InteractionController, PerspectiveCamera
from gesture_engine.types import GestureType, SceneRendererProto


class TestPerspectiveCamera(unittest.TestCase):

    def test_center_ray_points_at_target(self):
        camera = PerspectiveCamera(position=(0.0, 0.0, 50.0))
        origin, direction = camera.ray(0.0, 0.0)
        np.testing.assert_allclose(origin, [0.0, 0.0, 50.0])
        np.testing.assert_allclose(direction, [0.0, 0.0, -1.0], atol=1e-12)

    def test_corner_ray_direction(self):
        camera = PerspectiveCamera(fov_deg=90.0, aspect=1.0)
        _, direction = camera.ray(1.0, 1.0)
        expected = np.array([1.0, 1.0, -1.0]) / np.sqrt(3.0)
        np.testing.assert_allclose(direction, expected, atol=1e-12)


class InteractionTestCase(unittest.TestCase):

    def setUp(self):
        self.scene = MockSceneRenderer()
        self.controller = InteractionController(InteractionConfig(), ViewportConfig(), scene=self.scene)
        self.regions = []
        self.controller.on_region_selected = self.regions.append


class TestClickAndCoordinates(InteractionTestCase):

    def test_mock_implements_protocol(self):
        self.assertIsInstance(self.scene, SceneRendererProto)

    def test_screen_to_ndc(self):
        self.assertEqual(self.controller.screen_to_ndc(0, 0), (-1.0, 1.0))
        self.assertEqual(self.controller.screen_to_ndc(1920, 1080), (1.0, -1.0))
        self.assertEqual(self.controller.screen_to_ndc(960, 540), (0.0, 0.0))

    def test_center_click_explodes_at_depth(self):
        self.controller.on_air_click(960, 540)
        self.assertEqual(len(self.scene.explosions), 1)
        np.testing.assert_allclose(self.scene.explosions[0], (0.0, 0.0, 20.0), atol=1e-9)
        self.assertEqual(self.controller.pointer, (0.0, 0.0))

    def test_world_from_screen_quadrant(self):
        x, y, z = self.controller.world_from_screen(0, 0)
        self.assertLess(x, 0.0)
        self.assertGreater(y, 0.0)
        self.assertLess(z, 50.0)

    def test_click_without_scene_is_noop(self):
        self.controller.set_scene(None)
        self.controller.on_air_click(100, 100)
        self.assertEqual(self.scene.explosions, [])


class TestDragAndZoom(InteractionTestCase):

    def test_zoom_clamped_and_smoothed(self):
        self.controller.on_pinch_zoom(10.0)
        self.assertEqual(self.controller.target_scale, 2.5)
        scale = self.controller.update(1 / 30)
        self.assertAlmostEqual(scale, 1.3)
        self.assertAlmostEqual(self.scene.scales[-1], 1.3)

        self.controller.on_pinch_zoom(0.01)
        self.assertEqual(self.controller.target_scale, 0.3)

    def test_drag_decays_to_rest_once(self):
        self.controller.on_air_drag(3.0, 0.0)
        self.assertEqual(self.scene.drag_events, [(True, 3.0, 0.0)])
        self.assertAlmostEqual(self.controller.pointer[0], 0.03)

        for _ in range(200):
            self.controller.update(1 / 30)
        releases = [event for event in self.scene.drag_events if not event[0]]
        self.assertEqual(releases, [(False, 0.0, 0.0)])
        self.assertFalse(self.controller.is_dragging)

    def test_pointer_clamped(self):
        for _ in range(50):
            self.controller.on_air_drag(10.0, -10.0)
        self.assertEqual(self.controller.pointer, (1.0, -1.0))


class TestSpeakingAndPointing(InteractionTestCase):

    def test_pulse_follows_speaking(self):
        self.controller.on_speaking_start()
        self.controller.on_speaking_end()
        self.assertEqual(self.scene.pulse_events, [True, False])
        self.assertFalse(self.scene.pulsing)

    def test_point_then_speak_selects_region_once(self):
        self.controller.on_gesture_change(GestureType.POINT)
        self.assertEqual(self.regions, [])
        self.controller.on_speaking_start()
        self.assertEqual(len(self.regions), 1)
        np.testing.assert_allclose(self.regions[0], (0.0, 0.0, 20.0), atol=1e-9)

        self.controller.on_gesture_change(GestureType.POINT)
        self.assertEqual(len(self.regions), 1)
        self.assertTrue(self.controller.get_state().is_speaking_and_pointing)

    def test_speak_then_point_selects_region(self):
        self.controller.on_speaking_start()
        self.controller.on_gesture_change(GestureType.POINT)
        self.assertEqual(len(self.regions), 1)

        self.controller.on_gesture_change(GestureType.IDLE)
        self.assertFalse(self.controller.get_state().is_speaking_and_pointing)
        self.controller.on_gesture_change(GestureType.POINT)
        self.assertEqual(len(self.regions), 2)

    def test_selection_uses_click_pointer(self):
        self.controller.on_air_click(1920, 540)
        self.controller.on_gesture_change(GestureType.POINT)
        self.controller.on_speaking_start()
        x, _, _ = self.controller.get_state().selected_region
        self.assertGreater(x, 0.0)

    def test_reset_clears_state(self):
        self.controller.on_gesture_change(GestureType.POINT)
        self.controller.on_speaking_start()
        self.controller.on_pinch_zoom(2.0)
        self.controller.reset()
        state = self.controller.get_state()
        self.assertFalse(state.is_pointing)
        self.assertIsNone(state.selected_region)
        self.assertEqual(self.controller.target_scale, 1.0)


if __name__ == "__main__":
    unittest.main()
