"""
MoveNet SinglePose estimation for cycling and running videos.

MoveNet returns 17 keypoints as (y, x, score) normalized to the model input.
They are scaled back to pixels of the source frame so that the angle rules
and the pixel thresholds of the sport classifier apply unchanged.

The single-pose model outputs no whole-pose confidence, so ``Pose.score`` is
the mean of the 17 keypoint scores. Multi-pose models that report their own
instance score should pass it through instead.
"""

import logging
from typing import Optional

import cv2
import numpy as np
import tensorflow as tf
import tensorflow_hub as hub

from formcoach.cv.errors import PoseEstimatorError
from formcoach.cv.pose import Keypoint, MoveNetKeypoint, Pose

logger = logging.getLogger(__name__)

LIGHTNING_URL = "https://tfhub.dev/google/movenet/singlepose/lightning/4"


class MoveNetEstimator:
    """
    MoveNet pose estimator.

    Lightning (192px input) by default; pass the Thunder URL with a 256px
    input size for the slower, more accurate model.
    """

    def __init__(self, model_url: str = LIGHTNING_URL, input_size: int = 192):
        logger.info(f"Loading MoveNet model from {model_url}...")
        self.input_size = input_size

        try:
            self.model = hub.load(model_url)
            self.movenet = self.model.signatures['serving_default']
        except Exception as e:
            raise PoseEstimatorError(f"Failed to load MoveNet model: {e}") from e

        logger.info("MoveNet loaded successfully")

    def detect_pose(self, frame: np.ndarray) -> Optional[Pose]:
        """
        Estimate the pose in one BGR frame.

        Returns:
            Pose in source-frame pixels, or None for an empty frame
        """
        if frame is None or frame.size == 0:
            return None

        height, width = frame.shape[:2]

        input_image = self._preprocess(frame)
        outputs = self.movenet(input_image)
        keypoints_with_scores = outputs['output_0'].numpy()[0, 0]  # Shape: (17, 3)

        keypoints = []
        for kp in MoveNetKeypoint:
            y, x, score = keypoints_with_scores[kp]
            keypoints.append(Keypoint(
                name=kp.keypoint_name,
                x=float(x) * width,
                y=float(y) * height,
                score=float(score),
            ))

        overall = float(np.mean(keypoints_with_scores[:, 2]))
        return Pose(keypoints=keypoints, score=overall)

    def _preprocess(self, frame: np.ndarray) -> tf.Tensor:
        """Preprocess frame for MoveNet input."""
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        resized = cv2.resize(rgb, (self.input_size, self.input_size))

        input_image = tf.cast(resized, dtype=tf.int32)
        input_image = tf.expand_dims(input_image, axis=0)

        return input_image

    def close(self):
        """Release the model."""
        self.movenet = None
        self.model = None

    def __enter__(self) -> "MoveNetEstimator":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
