"""
Result types shared by the bike-fit and running-form analyzers.

An analyzer turns one Pose into a FormAnalysis:
- angles: rounded joint angles, absent when keypoints were not confident
- recommendations: one entry per angle rule that fired
- overall: rating derived from the warning/success counts

Recommendations gain severity, impact, drills and priority_score only when
the recommendation enhancer runs on them.
"""

from dataclasses import dataclass, field, fields
from typing import Dict, List, Optional, Tuple

# Keypoint confidence gates
CLASSIFICATION_MIN_CONFIDENCE = 0.2
ANALYSIS_MIN_CONFIDENCE = 0.3
# Whole-pose score a frame needs before it is analyzed
MIN_POSE_SCORE = 0.3


class RecommendationType:
    """Recommendation kinds emitted by angle rules."""
    SUCCESS = "success"
    WARNING = "warning"
    INFO = "info"
    ERROR = "error"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.SUCCESS, cls.WARNING, cls.INFO, cls.ERROR]


class OverallRating:
    """Per-analysis rating."""
    EXCELLENT = "excellent"
    GOOD = "good"
    NEEDS_ADJUSTMENT = "needs-adjustment"  # bike fit
    NEEDS_IMPROVEMENT = "needs-improvement"  # running

    @classmethod
    def all(cls) -> List[str]:
        return [cls.EXCELLENT, cls.GOOD, cls.NEEDS_ADJUSTMENT, cls.NEEDS_IMPROVEMENT]


class AngleName:
    """Angle keys of AngleData, grouped per sport."""
    KNEE = "knee"
    HIP = "hip"
    BACK = "back"
    ELBOW = "elbow"
    BODY_LEAN = "body_lean"
    KNEE_LIFT = "knee_lift"
    HIP_EXTENSION = "hip_extension"
    ARM_SWING = "arm_swing"

    BIKE_FIT = (KNEE, HIP, BACK, ELBOW)
    RUNNING = (BODY_LEAN, KNEE_LIFT, HIP_EXTENSION, ARM_SWING)


@dataclass
class AngleData:
    """Rounded angles in degrees. None means not measured in this frame."""
    knee: Optional[int] = None
    hip: Optional[int] = None
    back: Optional[int] = None
    elbow: Optional[int] = None
    body_lean: Optional[int] = None
    knee_lift: Optional[int] = None
    hip_extension: Optional[int] = None
    arm_swing: Optional[int] = None

    def items(self) -> List[Tuple[str, int]]:
        """Present angles in declaration order."""
        return [
            (f.name, getattr(self, f.name))
            for f in fields(self)
            if getattr(self, f.name) is not None
        ]

    def as_dict(self) -> Dict[str, int]:
        return dict(self.items())

    def get(self, name: str) -> Optional[int]:
        return getattr(self, name, None)

    @classmethod
    def from_mapping(cls, values: Dict[str, int]) -> "AngleData":
        return cls(**values)


@dataclass
class SideAngles:
    """Per-side running angles used for left/right comparison."""
    knee_angle: Optional[int] = None
    hip_angle: Optional[int] = None
    arm_angle: Optional[int] = None

    def items(self) -> List[Tuple[str, int]]:
        return [
            (f.name, getattr(self, f.name))
            for f in fields(self)
            if getattr(self, f.name) is not None
        ]


@dataclass
class Sides:
    left: SideAngles = field(default_factory=SideAngles)
    right: SideAngles = field(default_factory=SideAngles)


@dataclass
class Recommendation:
    """Feedback for one body area."""
    area: str
    message: str
    type: str  # RecommendationType value
    angle: Optional[float] = None

    # Filled in by the recommendation enhancer
    severity: Optional[str] = None
    impact: Optional[str] = None
    drills: Optional[List[str]] = None
    priority_score: Optional[int] = None


@dataclass
class FormAnalysis:
    """Analysis of one frame, or the combined analysis of a whole video."""
    angles: AngleData = field(default_factory=AngleData)
    recommendations: List[Recommendation] = field(default_factory=list)
    overall: str = OverallRating.GOOD
    sides: Optional[Sides] = None
    confidence: Optional[float] = None

    @property
    def warning_count(self) -> int:
        return sum(1 for r in self.recommendations if r.type == RecommendationType.WARNING)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.recommendations if r.type == RecommendationType.SUCCESS)


@dataclass(frozen=True)
class AngleRule:
    """
    One threshold rule mapping an angle to a recommendation.

    ``low``/``high`` bound the matching range; ``inclusive`` decides whether
    the bounds themselves match. A missing bound is open-ended.
    """
    type: str
    message: str
    low: Optional[float] = None
    high: Optional[float] = None
    inclusive: bool = True

    @classmethod
    def above(cls, limit: float, type: str, message: str) -> "AngleRule":
        return cls(type=type, message=message, low=limit, inclusive=False)

    @classmethod
    def below(cls, limit: float, type: str, message: str) -> "AngleRule":
        return cls(type=type, message=message, high=limit, inclusive=False)

    @classmethod
    def at_least(cls, limit: float, type: str, message: str) -> "AngleRule":
        return cls(type=type, message=message, low=limit)

    @classmethod
    def within(cls, low: float, high: float, type: str, message: str) -> "AngleRule":
        return cls(type=type, message=message, low=low, high=high)

    def matches(self, value: float) -> bool:
        if self.low is not None:
            if value < self.low or (not self.inclusive and value == self.low):
                return False
        if self.high is not None:
            if value > self.high or (not self.inclusive and value == self.high):
                return False
        return True


def match_rule(value: float, rules: List[AngleRule]) -> Optional[AngleRule]:
    """First rule matching ``value``; values in a gap between rules match nothing."""
    for rule in rules:
        if rule.matches(value):
            return rule
    return None


def apply_angle_rules(
    analysis: FormAnalysis,
    area: str,
    value: float,
    reported_angle: int,
    rules: List[AngleRule],
) -> None:
    """Append the recommendation of the first matching rule, if any."""
    rule = match_rule(value, rules)
    if rule is None:
        return
    analysis.recommendations.append(
        Recommendation(area=area, message=rule.message, type=rule.type, angle=reported_angle)
    )


def rate_overall(analysis: FormAnalysis, min_successes: int, poor_rating: str) -> str:
    """excellent with no warnings and enough successes, good with at most one warning."""
    warnings = analysis.warning_count
    if warnings == 0 and analysis.success_count >= min_successes:
        return OverallRating.EXCELLENT
    if warnings <= 1:
        return OverallRating.GOOD
    return poor_rating
