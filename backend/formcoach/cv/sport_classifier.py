"""
Heuristic cycling vs running detection from keypoint geometry.

SIGNALS (pixel coordinates, y grows downward):

1. CYCLING:
   - Seated: knees a moderate distance below the hips
   - Torso close to horizontal (shoulder-hip offset mostly horizontal)
   - Feet and knees stay close in height (circular pedal stroke)

2. RUNNING:
   - Standing: knees well below the hips
   - One leg forward, one back (knee/ankle height alternation)
   - Upright torso

Each frame is scored independently with additive point rules; the video-level
answer is a majority vote over the per-frame answers.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from formcoach.cv.form_analysis import CLASSIFICATION_MIN_CONFIDENCE
from formcoach.cv.geometry import midpoint
from formcoach.cv.pose import Pose

logger = logging.getLogger(__name__)


class SportType:
    """Supported sports."""
    CYCLING = "cycling"
    RUNNING = "running"
    UNKNOWN = "unknown"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.CYCLING, cls.RUNNING]


@dataclass
class SportFeatures:
    """Geometry extracted from one pose for sport scoring."""
    hip_knee_vertical_distance: float
    knee_variation: float
    ankle_variation: float = 0.0
    has_ankles: bool = False
    has_shoulders: bool = False
    body_lean_ratio: float = 0.0  # horizontal / vertical shoulder-hip offset
    is_very_horizontal: bool = False


@dataclass(frozen=True)
class ScoringRule:
    """Points awarded to one sport when ``condition`` holds."""
    sport: str
    points: int
    description: str
    condition: Callable[[SportFeatures], bool]


# Thresholds (pixels unless noted)
SEATED_MIN_HIP_KNEE = 50.0
SEATED_MAX_HIP_KNEE = 180.0
STANDING_MIN_HIP_KNEE = 100.0
PEDALING_MAX_ANKLE_VARIATION = 60.0
PEDALING_MAX_KNEE_VARIATION = 50.0
STRIDE_MIN_ANKLE_VARIATION = 30.0
STRIDE_MIN_KNEE_VARIATION = 30.0
STRONG_LEAN_RATIO = 0.7
UPRIGHT_LEAN_RATIO = 0.5
HORIZONTAL_TORSO_RATIO = 0.8

# Large leg alternation takes points away from cycling
PENALTY_KNEE_VARIATION = 60.0
PENALTY_ANKLE_VARIATION = 80.0
CYCLING_PENALTY = 3

SCORING_RULES: List[ScoringRule] = [
    ScoringRule(
        SportType.CYCLING, 4, "seated with horizontal torso",
        lambda f: SEATED_MIN_HIP_KNEE < f.hip_knee_vertical_distance < SEATED_MAX_HIP_KNEE
        and f.is_very_horizontal,
    ),
    ScoringRule(
        SportType.CYCLING, 3, "ankles level (pedal stroke)",
        lambda f: f.has_ankles and f.ankle_variation < PEDALING_MAX_ANKLE_VARIATION,
    ),
    ScoringRule(
        SportType.CYCLING, 2, "knees level",
        lambda f: f.knee_variation < PEDALING_MAX_KNEE_VARIATION,
    ),
    ScoringRule(
        SportType.CYCLING, 4, "strong forward lean",
        lambda f: f.is_very_horizontal and f.body_lean_ratio > STRONG_LEAN_RATIO,
    ),
    ScoringRule(
        SportType.RUNNING, 4, "standing leg length",
        lambda f: f.hip_knee_vertical_distance > STANDING_MIN_HIP_KNEE,
    ),
    ScoringRule(
        SportType.RUNNING, 4, "ankle alternation",
        lambda f: f.has_ankles and f.ankle_variation > STRIDE_MIN_ANKLE_VARIATION,
    ),
    ScoringRule(
        SportType.RUNNING, 4, "knee alternation",
        lambda f: f.knee_variation > STRIDE_MIN_KNEE_VARIATION,
    ),
    ScoringRule(
        SportType.RUNNING, 3, "torso not horizontal",
        lambda f: f.has_shoulders and not f.is_very_horizontal,
    ),
    ScoringRule(
        SportType.RUNNING, 2, "upright posture",
        lambda f: f.has_shoulders and f.body_lean_ratio < UPRIGHT_LEAN_RATIO,
    ),
]

# Decision thresholds
RUNNING_DECISIVE_SCORE = 6
CYCLING_DECISIVE_SCORE = 7
MIN_WINNING_SCORE = 4


@dataclass
class SportScores:
    cycling: int = 0
    running: int = 0
    matched: List[str] = field(default_factory=list)


@dataclass
class SportClassification:
    """Video-level result of the majority vote."""
    sport: str  # "cycling", "running" or "unknown"
    votes: Dict[str, int] = field(default_factory=dict)
    frames_used: int = 0
    reasoning: str = ""


class SportClassifier:
    """
    Classifies single poses and accumulates a majority vote.

    Hips and knees are required; shoulders and ankles refine the score
    when present.
    """

    def __init__(self, min_confidence: float = CLASSIFICATION_MIN_CONFIDENCE):
        self.min_confidence = min_confidence
        self.detections: List[str] = []

    def extract_features(self, pose: Optional[Pose]) -> Optional[SportFeatures]:
        if pose is None or pose.keypoints is None:
            return None

        required = {}
        for name in ("left_hip", "right_hip", "left_knee", "right_knee"):
            keypoint = pose.get_keypoint(name)
            if keypoint is None or keypoint.score < self.min_confidence:
                return None
            required[name] = keypoint

        avg_hip = midpoint(required["left_hip"], required["right_hip"])
        avg_knee_y = (required["left_knee"].y + required["right_knee"].y) / 2

        features = SportFeatures(
            hip_knee_vertical_distance=avg_knee_y - avg_hip.y,
            knee_variation=abs(required["left_knee"].y - required["right_knee"].y),
        )

        left_ankle = pose.confident_keypoint("left_ankle", self.min_confidence)
        right_ankle = pose.confident_keypoint("right_ankle", self.min_confidence)
        if left_ankle and right_ankle:
            features.has_ankles = True
            features.ankle_variation = abs(left_ankle.y - right_ankle.y)

        left_shoulder = pose.confident_keypoint("left_shoulder", self.min_confidence)
        right_shoulder = pose.confident_keypoint("right_shoulder", self.min_confidence)
        if left_shoulder and right_shoulder:
            avg_shoulder = midpoint(left_shoulder, right_shoulder)
            vertical = avg_hip.y - avg_shoulder.y
            horizontal = abs(avg_shoulder.x - avg_hip.x)

            features.has_shoulders = True
            if vertical > 0:
                features.body_lean_ratio = horizontal / vertical
            features.is_very_horizontal = horizontal > vertical * HORIZONTAL_TORSO_RATIO

        return features

    def score(self, features: SportFeatures) -> SportScores:
        scores = SportScores()
        for rule in SCORING_RULES:
            if not rule.condition(features):
                continue
            if rule.sport == SportType.CYCLING:
                scores.cycling += rule.points
            else:
                scores.running += rule.points
            scores.matched.append(f"{rule.sport}: {rule.description} (+{rule.points})")

        if (features.knee_variation > PENALTY_KNEE_VARIATION
                or (features.has_ankles and features.ankle_variation > PENALTY_ANKLE_VARIATION)):
            scores.cycling = max(0, scores.cycling - CYCLING_PENALTY)
            scores.matched.append(f"cycling: large leg alternation (-{CYCLING_PENALTY})")

        return scores

    @staticmethod
    def decide(scores: SportScores) -> Optional[str]:
        running, cycling = scores.running, scores.cycling

        if running >= RUNNING_DECISIVE_SCORE:
            return SportType.RUNNING
        if cycling >= CYCLING_DECISIVE_SCORE and cycling > running:
            return SportType.CYCLING
        if running > cycling and running >= MIN_WINNING_SCORE:
            return SportType.RUNNING
        if cycling > running and cycling >= MIN_WINNING_SCORE:
            return SportType.CYCLING

        # Uncertain: lean towards running
        return SportType.RUNNING if running >= cycling else None

    def classify_pose(self, pose: Optional[Pose]) -> Optional[str]:
        """Sport for one pose, or None when the pose cannot be judged."""
        features = self.extract_features(pose)
        if features is None:
            return None

        scores = self.score(features)
        sport = self.decide(scores)

        logger.debug(
            f"Sport scores: cycling={scores.cycling}, running={scores.running} -> {sport} "
            f"(hip-knee: {features.hip_knee_vertical_distance:.1f}, "
            f"knee var: {features.knee_variation:.1f}, ankle var: {features.ankle_variation:.1f}, "
            f"lean: {features.body_lean_ratio:.2f}, horizontal: {features.is_very_horizontal})"
        )
        return sport

    def add_pose(self, pose: Optional[Pose]) -> Optional[str]:
        """Classify a pose and record the vote if there is one."""
        sport = self.classify_pose(pose)
        if sport is not None:
            self.detections.append(sport)
        return sport

    def classify(self) -> SportClassification:
        """Majority vote over the recorded detections."""
        return vote(self.detections)


def vote(detections: List[str]) -> SportClassification:
    """
    Most common sport among ``detections``.

    Ties go to running, the classifier's default when uncertain.
    """
    if not detections:
        return SportClassification(
            sport=SportType.UNKNOWN,
            reasoning="No frame produced a sport classification",
        )

    counts = Counter(detections)
    best = max(counts.values())
    leaders = [sport for sport in (SportType.RUNNING, SportType.CYCLING) if counts[sport] == best]
    sport = leaders[0]

    return SportClassification(
        sport=sport,
        votes=dict(counts),
        frames_used=len(detections),
        reasoning=f"{counts[sport]} of {len(detections)} frames classified as {sport}",
    )


def classify_sport(
    pose: Optional[Pose],
    min_confidence: float = CLASSIFICATION_MIN_CONFIDENCE,
) -> Optional[str]:
    """Convenience function to classify a single pose."""
    return SportClassifier(min_confidence=min_confidence).classify_pose(pose)
