"""
Pose data types produced by the pose estimator and consumed by every analyzer.

MoveNet keypoint vocabulary (17 names):
0: nose, 1: left_eye, 2: right_eye, 3: left_ear, 4: right_ear,
5: left_shoulder, 6: right_shoulder, 7: left_elbow, 8: right_elbow,
9: left_wrist, 10: right_wrist, 11: left_hip, 12: right_hip,
13: left_knee, 14: right_knee, 15: left_ankle, 16: right_ankle

Coordinates are pixels of the source frame, y grows downward. Names outside
the vocabulary are carried along but never looked up by the analyzers.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Optional


class MoveNetKeypoint(IntEnum):
    """MoveNet keypoint indices."""
    NOSE = 0
    LEFT_EYE = 1
    RIGHT_EYE = 2
    LEFT_EAR = 3
    RIGHT_EAR = 4
    LEFT_SHOULDER = 5
    RIGHT_SHOULDER = 6
    LEFT_ELBOW = 7
    RIGHT_ELBOW = 8
    LEFT_WRIST = 9
    RIGHT_WRIST = 10
    LEFT_HIP = 11
    RIGHT_HIP = 12
    LEFT_KNEE = 13
    RIGHT_KNEE = 14
    LEFT_ANKLE = 15
    RIGHT_ANKLE = 16

    @property
    def keypoint_name(self) -> str:
        return self.name.lower()


KEYPOINT_NAMES: List[str] = [kp.keypoint_name for kp in MoveNetKeypoint]


@dataclass(frozen=True)
class Keypoint:
    """Single named keypoint with pixel position and confidence."""
    name: str
    x: float
    y: float
    score: float = 0.0

    def is_confident(self, threshold: float) -> bool:
        return self.score > threshold


@dataclass
class Pose:
    """One pose estimate for one video frame."""
    keypoints: List[Keypoint] = field(default_factory=list)
    score: float = 0.0  # whole-pose confidence reported by the model

    def get_keypoint(self, name: str) -> Optional[Keypoint]:
        for keypoint in self.keypoints:
            if keypoint.name == name:
                return keypoint
        return None

    def confident_keypoint(self, name: str, threshold: float) -> Optional[Keypoint]:
        """Keypoint by name, or None when missing or not above threshold."""
        keypoint = self.get_keypoint(name)
        if keypoint is None or not keypoint.is_confident(threshold):
            return None
        return keypoint

    def keypoint_score(self, name: str) -> float:
        keypoint = self.get_keypoint(name)
        return keypoint.score if keypoint is not None else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "keypoints": [
                {"name": kp.name, "x": kp.x, "y": kp.y, "score": kp.score}
                for kp in self.keypoints
            ],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Pose":
        keypoints = [
            Keypoint(
                name=kp["name"],
                x=float(kp["x"]),
                y=float(kp["y"]),
                score=float(kp.get("score", 0.0)),
            )
            for kp in data.get("keypoints", [])
        ]
        return cls(keypoints=keypoints, score=float(data.get("score", 0.0)))
