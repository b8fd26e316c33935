"""
Webcam demo for the gesture & expression engine.
"""
import argparse
import logging
import time
from typing import Optional

import cv2

from .config import load_config
from .controller_mock import MockAvatarRenderer, MockParameterModel, MockSceneRenderer
from .avatar import PARAM_ALIASES
from .engine import GestureEngine
from .feed import LandmarkFeed

logger = logging.getLogger(__name__)


class GestureEngineApp:
    """Main application class: camera capture, landmark feed and overlay."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize the application with configuration."""
        self.config = load_config(config_path)
        logging.basicConfig(
            level=getattr(logging, self.config.logging.level.upper(), logging.INFO),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

        self.avatar = MockAvatarRenderer()
        self.scene = MockSceneRenderer()
        # Cubism 4 style names for every channel
        self.model = MockParameterModel([aliases[0] for aliases in PARAM_ALIASES.values()])
        self.engine = GestureEngine(self.config, avatar=self.avatar, model=self.model, scene=self.scene)
        self.feed = LandmarkFeed(self.config.mediapipe)

        # Initialize camera
        self.cap = cv2.VideoCapture(self.config.camera.index)
        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.camera.width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.camera.height)
        self.cap.set(cv2.CAP_PROP_FPS, self.config.camera.fps)

        if not self.cap.isOpened():
            raise RuntimeError(f"Failed to open camera {self.config.camera.index}")

    def run(self) -> None:
        """Run the main application loop."""
        if not self.engine.initialize(self.feed):
            raise RuntimeError("Landmark feed failed to initialize")

        logger.info("Starting %s (press 'q' to quit)", self.config.display.window_name)

        try:
            while True:
                ret, frame = self.cap.read()
                if not ret:
                    logger.warning("Failed to read frame from camera")
                    break

                t_now = time.monotonic()
                result = self.feed.process(frame, timestamp=t_now)
                self.engine.process_result(result, t_now)

                if self.config.display.show_landmarks:
                    frame = self.feed.draw_landmarks(frame, result)
                self._draw_status(frame)

                cv2.imshow(self.config.display.window_name, frame)
                if cv2.waitKey(1) & 0xFF == ord('q'):
                    break
        finally:
            self.close()

    def close(self) -> None:
        """Release camera, window and engine resources."""
        self.engine.dispose()
        if self.cap.isOpened():
            self.cap.release()
        cv2.destroyAllWindows()

    def _draw_status(self, frame) -> None:
        params = self.engine.mapper.params
        gesture = self.engine.recognizer.current_gesture.value
        speaking = "speaking" if self.engine.extractor.is_speaking else "silent"
        lines = [
            f"Gesture: {gesture}",
            f"Focus: ({params.focus_x:+.2f}, {params.focus_y:+.2f})  Body: ({params.body_angle_x:+.1f}, "
            f"{params.body_angle_y:+.1f}, {params.body_angle_z:+.1f})",
            f"Voice: {speaking}  Mouth: {params.mouth_openness:.2f}  Scale: {self.engine.interaction.current_scale:.2f}",
        ]
        if self.config.display.show_expression:
            expression = self.engine.extractor.current_expression
            lines.append(
                f"Eyes: {expression.left_eye_openness:.2f}/{expression.right_eye_openness:.2f}  "
                f"Head: ({expression.head_angle_x:+.0f}, {expression.head_angle_y:+.0f}, "
                f"{expression.head_angle_z:+.0f})  Smile: {expression.mouth_smile:+.2f}"
            )
        for i, text in enumerate(lines):
            cv2.putText(frame, text, (10, 30 + i * 25), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 2)
        cv2.putText(frame, "Press 'q' to quit", (10, frame.shape[0] - 20),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.5, (255, 255, 255), 1)


def main() -> None:
    """Entry point for the application."""
    parser = argparse.ArgumentParser(description="Gesture & expression engine webcam demo")
    parser.add_argument("--config", help="Path to a YAML config file")
    args = parser.parse_args()

    try:
        app = GestureEngineApp(config_path=args.config)
        app.run()
    except KeyboardInterrupt:
        logger.info("Application interrupted by user")


if __name__ == "__main__":
    main()
