"""
Shared fixtures: synthetic poses built from target joint angles, and fakes
for the pose estimator and frame sampler so no test needs TensorFlow. Only
test_frame_sampler.py writes a real clip.
"""

import math
from typing import Dict, List, Optional, Tuple

import numpy as np
import pytest

from formcoach.config import Settings
from formcoach.cv.frame_sampler import SampledFrame, VideoMetadata, sample_times
from formcoach.cv.pose import Keypoint, Pose


def point_at(origin: Tuple[float, float], direction_deg: float, length: float = 100.0) -> Tuple[float, float]:
    """Point ``length`` px from ``origin`` along ``direction_deg`` (image coordinates)."""
    rad = math.radians(direction_deg)
    return origin[0] + length * math.cos(rad), origin[1] + length * math.sin(rad)


def build_pose(points: Dict[str, Tuple[float, float]], kp_score: float = 0.9, score: float = 0.9) -> Pose:
    return Pose(
        keypoints=[Keypoint(name=name, x=x, y=y, score=kp_score) for name, (x, y) in points.items()],
        score=score,
    )


def bike_points(
    back: float = 45,
    hip: float = 55,
    knee: float = 150,
    elbow: Optional[float] = None,
    side: str = "right",
) -> Dict[str, Tuple[float, float]]:
    """
    One-side rider keypoints producing exactly the requested angles.

    Hip sits at (300, 300); the torso direction is chosen so that the back
    angle (vertical-shoulder-hip) equals ``back``.
    """
    hip_pt = (300.0, 300.0)
    to_shoulder = 90 - back
    shoulder_pt = point_at(hip_pt, to_shoulder)
    to_knee = to_shoulder + hip
    knee_pt = point_at(hip_pt, to_knee)
    ankle_pt = point_at(knee_pt, to_knee + 180 + knee)

    points = {
        f"{side}_shoulder": shoulder_pt,
        f"{side}_hip": hip_pt,
        f"{side}_knee": knee_pt,
        f"{side}_ankle": ankle_pt,
    }
    if elbow is not None:
        elbow_pt = point_at(shoulder_pt, 0)
        points[f"{side}_elbow"] = elbow_pt
        points[f"{side}_wrist"] = point_at(elbow_pt, 180 + elbow)
    return points


def leg_points(side: str, hip_x: float, hip_angle: float, knee_angle: float) -> Dict[str, Tuple[float, float]]:
    """Shoulder straight above the hip; hip and knee angles as requested."""
    hip_pt = (hip_x, 300.0)
    shoulder_pt = point_at(hip_pt, -90)
    to_knee = -90 + hip_angle
    knee_pt = point_at(hip_pt, to_knee)
    ankle_pt = point_at(knee_pt, to_knee + 180 + knee_angle)
    return {
        f"{side}_shoulder": shoulder_pt,
        f"{side}_hip": hip_pt,
        f"{side}_knee": knee_pt,
        f"{side}_ankle": ankle_pt,
    }


def arm_points(side: str, shoulder: Tuple[float, float], arm_angle: float) -> Dict[str, Tuple[float, float]]:
    elbow_pt = point_at(shoulder, 90)
    return {
        f"{side}_elbow": elbow_pt,
        f"{side}_wrist": point_at(elbow_pt, -90 + arm_angle),
    }


@pytest.fixture
def make_pose():
    return build_pose


@pytest.fixture
def make_bike_pose():
    def _make(kp_score: float = 0.9, score: float = 0.9, **angles) -> Pose:
        return build_pose(bike_points(**angles), kp_score=kp_score, score=score)
    return _make


@pytest.fixture
def make_running_pose():
    def _make(
        left_hip: float = 170,
        left_knee: float = 120,
        right_hip: float = 170,
        right_knee: float = 130,
        left_arm: Optional[float] = None,
        right_arm: Optional[float] = None,
        score: float = 0.9,
    ) -> Pose:
        points = {}
        points.update(leg_points("left", 300.0, left_hip, left_knee))
        points.update(leg_points("right", 300.0, right_hip, right_knee))
        if left_arm is not None:
            points.update(arm_points("left", points["left_shoulder"], left_arm))
        if right_arm is not None:
            points.update(arm_points("right", points["right_shoulder"], right_arm))
        return build_pose(points, score=score)
    return _make


@pytest.fixture
def running_stride_pose() -> Pose:
    """Upright runner mid-stride: legs apart, torso vertical."""
    return build_pose({
        "left_hip": (100, 150), "right_hip": (110, 150),
        "left_knee": (100, 250), "right_knee": (110, 280),
        "left_ankle": (100, 350), "right_ankle": (110, 390),
        "left_shoulder": (100, 50), "right_shoulder": (110, 50),
    })


@pytest.fixture
def cycling_position_pose() -> Pose:
    """Seated rider: knees level, torso almost horizontal."""
    return build_pose({
        "left_hip": (100, 150), "right_hip": (110, 150),
        "left_knee": (100, 200), "right_knee": (110, 205),
        "left_ankle": (100, 230), "right_ankle": (110, 235),
        "left_shoulder": (40, 145), "right_shoulder": (50, 145),
    })


@pytest.fixture
def settings() -> Settings:
    return Settings()


class FakeEstimator:
    """Returns the given poses in turn; an Exception instance is raised instead."""

    def __init__(self, poses: List):
        self.poses = poses
        self.calls = 0
        self.closed = False

    def detect_pose(self, frame):
        item = self.poses[self.calls % len(self.poses)]
        self.calls += 1
        if isinstance(item, Exception):
            raise item
        return item

    def close(self):
        self.closed = True


class FakeSampler:
    """Stands in for FrameSampler: a 10 second, 30 fps video of blank frames."""

    DURATION = 10.0

    def __init__(self, video_path: str):
        self.video_path = video_path
        self.metadata = VideoMetadata(
            width=640, height=480, fps=30.0, total_frames=300, duration_seconds=self.DURATION
        )

    def sample(self, count: int):
        for index, timestamp in enumerate(sample_times(self.DURATION, count)):
            yield SampledFrame(index=index, timestamp=timestamp, image=np.zeros((4, 4, 3), dtype=np.uint8))

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return None


@pytest.fixture
def fake_sampler(monkeypatch):
    monkeypatch.setattr("formcoach.cv.video_processor.FrameSampler", FakeSampler)
    return FakeSampler


@pytest.fixture
def fake_estimator_cls():
    return FakeEstimator
