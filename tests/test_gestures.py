"""
Test cases for hand gesture recognition with synthetic landmark sequences.
"""
import math
import sys
import unittest
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from gesture_engine.config import HandConfig, ViewportConfig
from gesture_engine.gestures import HandGestureRecognizer
from gesture_engine.landmarks import logical_handedness
from gesture_engine.types import GestureType, HandObservation, LandmarkPoint
from tests.helpers import EventLog, make_hand

ALL_EVENTS = ("hand_detected", "gesture_change", "air_click", "air_drag",
              "pinch_zoom", "hand_position", "landmarks_update")


class RecognizerTestCase(unittest.TestCase):
    """Recognizer with every callback recorded."""

    def setUp(self):
        self.recognizer = HandGestureRecognizer(HandConfig(), ViewportConfig())
        self.log = EventLog()
        self.recognizer.register_callbacks(**self.log.callbacks(*ALL_EVENTS))
        self.timestamp = 0

    def feed(self, hands, t_now=None):
        self.timestamp += 1
        if t_now is None:
            t_now = self.timestamp / 30.0
        return self.recognizer.process_frame(hands, self.timestamp, t_now)

    def gestures(self):
        return [args[0] for args in self.log.named("gesture_change")]


class TestHandedness(RecognizerTestCase):
    """Test mirrored handedness labels."""

    def test_label_inversion(self):
        self.assertEqual(logical_handedness("left"), "right")
        self.assertEqual(logical_handedness("Right"), "left")
        self.assertEqual(logical_handedness("unknown"), "unknown")

    def test_raw_left_reports_logical_right(self):
        self.feed([make_hand(handedness="left")])
        self.assertEqual(self.log.named("hand_detected"), [(False, True)])

    def test_both_hands(self):
        self.feed([make_hand(handedness="left"), make_hand(palm=(0.2, 0.5), handedness="right")])
        self.assertEqual(self.log.named("hand_detected"), [(True, True)])

    def test_no_hands_reports_neither(self):
        self.feed([])
        self.assertEqual(self.log.named("hand_detected"), [(False, False)])


class TestPinch(RecognizerTestCase):
    """Test pinch, drag and zoom detection."""

    def test_single_transition_per_pinch_run(self):
        self.feed([make_hand()])
        for _ in range(4):
            self.feed([make_hand(pose="pinch", pinch_gap=0.01)])
        self.assertEqual(self.gestures(), [GestureType.PINCH])

        # Release (distance back above threshold) then pinch again
        self.feed([make_hand(pinch_gap=0.06)])
        self.feed([make_hand(pose="pinch", pinch_gap=0.01)])
        self.assertEqual(self.gestures(), [GestureType.PINCH, GestureType.PINCH])

    def test_pinch_then_drag(self):
        self.feed([make_hand()])
        self.feed([make_hand(pose="pinch", pinch_gap=0.01)])
        self.log.clear()

        self.feed([make_hand(palm=(0.53, 0.5), pose="pinch", pinch_gap=0.01)])

        self.assertEqual(self.log.names(), [
            "hand_detected", "landmarks_update", "hand_position", "gesture_change", "air_drag",
        ])
        self.assertEqual(self.gestures(), [GestureType.DRAG])
        dx, dy = self.log.named("air_drag")[0]
        self.assertAlmostEqual(dx, 3.0, places=6)
        self.assertAlmostEqual(dy, 0.0, places=6)
        self.assertTrue(self.recognizer.state.is_dragging)

    def test_small_motion_is_not_drag(self):
        self.feed([make_hand(pose="pinch", pinch_gap=0.01)])
        self.feed([make_hand(palm=(0.51, 0.5), pose="pinch", pinch_gap=0.01)])
        self.assertEqual(self.gestures(), [GestureType.PINCH])
        self.assertEqual(self.log.named("air_drag"), [])

    def test_pinch_zoom_scale(self):
        self.feed([make_hand(pose="pinch", pinch_gap=0.04)])
        self.feed([make_hand(pose="pinch", pinch_gap=0.02)])
        zooms = self.log.named("pinch_zoom")
        self.assertEqual(len(zooms), 1)
        self.assertAlmostEqual(zooms[0][0], 2.0, places=6)

    def test_release_clears_flags(self):
        self.feed([make_hand(pose="pinch", pinch_gap=0.01)])
        self.feed([make_hand(palm=(0.55, 0.5), pose="pinch", pinch_gap=0.01)])
        self.feed([make_hand(palm=(0.55, 0.5))])
        state = self.recognizer.state
        self.assertFalse(state.is_pinching)
        self.assertFalse(state.is_dragging)
        self.assertIsNone(state.pinch_start_position)


class TestThresholdBoundaries(RecognizerTestCase):
    """Values exactly at a threshold do not trigger (comparisons are strict)."""

    def use_config(self, **overrides):
        # dyadic thresholds keep the boundary exact in floating point
        self.recognizer = HandGestureRecognizer(HandConfig(**overrides), ViewportConfig())
        self.recognizer.register_callbacks(**self.log.callbacks(*ALL_EVENTS))

    def test_pinch_distance_at_threshold_is_not_pinch(self):
        self.use_config(pinch_threshold=0.0625)
        self.feed([make_hand(pose="pinch", pinch_gap=0.0625)])
        self.assertEqual(self.gestures(), [])
        self.assertFalse(self.recognizer.state.is_pinching)

        self.feed([make_hand(pose="pinch", pinch_gap=0.0620)])
        self.assertEqual(self.gestures(), [GestureType.PINCH])

    def test_drag_displacement_at_threshold_is_not_drag(self):
        self.use_config(drag_threshold=0.0625)
        self.feed([make_hand(pose="pinch", pinch_gap=0.01)])
        self.feed([make_hand(palm=(0.5625, 0.5), pose="pinch", pinch_gap=0.01)])
        self.assertEqual(self.gestures(), [GestureType.PINCH])
        self.assertEqual(self.log.named("air_drag"), [])
        self.assertFalse(self.recognizer.state.is_dragging)

    def test_swipe_displacement_at_threshold_is_not_swipe(self):
        self.use_config(swipe_threshold=0.25)
        self.feed([make_hand(palm=(0.25, 0.5))])
        self.feed([make_hand(palm=(0.5, 0.5))])
        self.feed([make_hand(palm=(0.25, 0.5))])
        self.assertEqual(self.gestures(), [])


class TestAirClick(RecognizerTestCase):
    """Test forward-poke clicks and their cooldown."""

    def test_click_pixel_coordinates(self):
        self.feed([make_hand(index_z=0.0)], t_now=0.0)
        self.feed([make_hand(index_z=-0.05)], t_now=0.1)

        self.assertEqual(self.gestures(), [GestureType.CLICK])
        x, y = self.log.named("air_click")[0]
        self.assertAlmostEqual(x, 0.5 * 1920)
        self.assertAlmostEqual(y, 0.48 * 1080)
        # gesture_change(click) precedes air_click
        names = self.log.names()
        self.assertLess(names.index("gesture_change"), names.index("air_click"))

    def test_first_frame_only_seeds_depth(self):
        self.feed([make_hand(index_z=-0.5)], t_now=0.0)
        self.assertEqual(self.log.named("air_click"), [])

    def test_cooldown_blocks_second_click(self):
        self.feed([make_hand(index_z=0.0)], t_now=0.0)
        self.feed([make_hand(index_z=-0.05)], t_now=0.1)   # click, cooldown until 0.4
        self.feed([make_hand(index_z=-0.10)], t_now=0.2)   # blocked
        self.feed([make_hand(index_z=-0.15)], t_now=0.35)  # blocked
        self.assertEqual(len(self.log.named("air_click")), 1)

        self.feed([make_hand(index_z=-0.20)], t_now=0.45)  # cooldown over
        self.assertEqual(len(self.log.named("air_click")), 2)

    def test_backward_motion_is_not_click(self):
        self.feed([make_hand(index_z=0.0)], t_now=0.0)
        self.feed([make_hand(index_z=0.1)], t_now=0.1)
        self.assertEqual(self.log.named("air_click"), [])

    def test_no_click_while_pinching(self):
        self.feed([make_hand(index_z=0.0)], t_now=0.0)
        # 3D pinch distance stays below threshold while the index pokes forward
        self.feed([make_hand(pose="pinch", pinch_gap=0.01, index_z=-0.04)], t_now=0.1)
        self.assertEqual(self.gestures(), [GestureType.PINCH])
        self.assertEqual(self.log.named("air_click"), [])


class TestSwipeAndPoses(RecognizerTestCase):
    """Test swipes, open palm and point."""

    def test_swipe_right_then_left(self):
        self.feed([make_hand(palm=(0.3, 0.5))])
        self.feed([make_hand(palm=(0.5, 0.5))])
        self.feed([make_hand(palm=(0.3, 0.5))])
        self.assertEqual(self.gestures(), [GestureType.SWIPE_RIGHT, GestureType.SWIPE_LEFT])

    def test_slow_motion_is_not_swipe(self):
        self.feed([make_hand(palm=(0.4, 0.5))])
        self.feed([make_hand(palm=(0.5, 0.5))])
        self.assertEqual(self.gestures(), [])

    def test_open_palm(self):
        self.feed([make_hand(pose="open_palm")])
        self.assertEqual(self.gestures(), [GestureType.OPEN_PALM])

    def test_point(self):
        self.feed([make_hand(pose="point")])
        self.assertEqual(self.gestures(), [GestureType.POINT])
        self.assertEqual(self.recognizer.current_gesture, GestureType.POINT)

    def test_hand_position_is_palm_center(self):
        self.feed([make_hand(palm=(0.25, 0.75))])
        x, y, z = self.log.named("hand_position")[0]
        self.assertAlmostEqual(x, 0.25)
        self.assertAlmostEqual(y, 0.75)
        self.assertAlmostEqual(z, 0.0)

    def test_only_first_hand_drives_gestures(self):
        self.feed([make_hand(), make_hand(pose="open_palm", palm=(0.2, 0.5))])
        self.assertEqual(self.gestures(), [])
        self.assertEqual(len(self.log.named("landmarks_update")[0][0]), 2)


class TestIdleAndRobustness(RecognizerTestCase):
    """Test no-hand transitions, idempotence and malformed input."""

    def test_idle_fires_once_per_transition(self):
        self.feed([make_hand(pose="point")])
        for _ in range(3):
            self.feed([])
        self.assertEqual(self.gestures(), [GestureType.POINT, GestureType.IDLE])

        self.feed([make_hand()])
        self.feed(None)
        self.assertEqual(self.gestures().count(GestureType.IDLE), 2)

    def test_no_idle_before_any_hand(self):
        self.feed([])
        self.feed([])
        self.assertEqual(self.gestures(), [])

    def test_state_reset_when_hands_lost(self):
        self.feed([make_hand(pose="pinch", pinch_gap=0.01)])
        self.feed([])
        state = self.recognizer.state
        self.assertFalse(state.is_pinching)
        self.assertIsNone(state.last_position)
        self.assertIsNone(state.last_z_depth)
        self.assertEqual(state.current_gesture, GestureType.IDLE)

    def test_duplicate_timestamp_is_noop(self):
        hands = [make_hand(pose="point")]
        self.assertTrue(self.recognizer.process_frame(hands, 10, 0.0))
        count = len(self.log.events)
        self.assertFalse(self.recognizer.process_frame(hands, 10, 0.1))
        self.assertEqual(len(self.log.events), count)

    def test_reset_forgets_timestamp_and_presence(self):
        hands = [make_hand(pose="point")]
        self.recognizer.process_frame(hands, 10, 0.0)
        self.recognizer.reset()
        self.log.clear()

        self.assertTrue(self.recognizer.process_frame(hands, 10, 0.1))
        self.recognizer.reset()
        self.log.clear()
        self.assertTrue(self.recognizer.process_frame([], 11, 0.2))
        self.assertEqual(self.gestures(), [])

    def test_malformed_hand_is_no_hand(self):
        short = HandObservation(landmarks=tuple(LandmarkPoint(0.5, 0.5) for _ in range(20)))
        broken = list(make_hand().landmarks)
        broken[3] = LandmarkPoint(math.nan, 0.5)
        nan_hand = HandObservation(landmarks=tuple(broken))

        self.assertTrue(self.feed([short, nan_hand, None]))
        self.assertEqual(self.log.named("hand_detected"), [(False, False)])
        self.assertEqual(self.log.named("landmarks_update"), [])

    def test_tuple_landmarks_accepted(self):
        hand = make_hand(pose="point")
        raw = HandObservation(landmarks=[(p.x, p.y, p.z) for p in hand.landmarks])
        self.feed([raw])
        self.assertEqual(self.gestures(), [GestureType.POINT])

    def test_failing_listener_does_not_break_frame(self):
        def explode(*args):
            raise RuntimeError("listener failure")

        self.recognizer.register_callbacks(hand_detected=explode)
        with self.assertLogs("gesture_engine.callbacks", level="ERROR"):
            self.feed([make_hand(pose="point")])
        self.assertEqual(self.gestures(), [GestureType.POINT])

    def test_inactive_recognizer_ignores_frames(self):
        self.recognizer.active = False
        self.assertFalse(self.feed([make_hand(pose="point")]))
        self.assertEqual(self.log.events, [])

    def test_unknown_callback_name_rejected(self):
        with self.assertRaises(ValueError):
            self.recognizer.register_callbacks(on_wave=lambda: None)


if __name__ == "__main__":
    unittest.main()
