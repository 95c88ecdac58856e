"""
Bike-fit analysis from a single side-view pose.

Only one side of the rider is measured: the side whose knee keypoint has the
higher confidence (right on a tie). Angles:

- knee: hip-knee-ankle (saddle height)
- hip: shoulder-hip-knee (hip closure)
- back: vertical-shoulder-hip (torso angle from vertical)
- elbow: shoulder-elbow-wrist (arm bend)

Rules compare the unrounded angle; the recommendation reports the rounded
value. Values falling between two rules produce no recommendation.
"""

from typing import Dict, List, Optional

from formcoach.cv.form_analysis import (
    ANALYSIS_MIN_CONFIDENCE,
    AngleData,
    AngleName,
    AngleRule,
    FormAnalysis,
    OverallRating,
    RecommendationType,
    apply_angle_rules,
    rate_overall,
)
from formcoach.cv.geometry import calculate_angle, round_half_up, vertical_reference
from formcoach.cv.pose import Pose

BIKE_FIT_AREAS: Dict[str, str] = {
    AngleName.KNEE: "Knee Angle",
    AngleName.HIP: "Hip Angle",
    AngleName.BACK: "Back Angle",
    AngleName.ELBOW: "Elbow Angle",
}

BIKE_FIT_RULES: Dict[str, List[AngleRule]] = {
    AngleName.KNEE: [
        AngleRule.above(170, RecommendationType.WARNING,
                        "Saddle may be too high - knee is too straight"),
        AngleRule.below(90, RecommendationType.WARNING,
                        "Saddle may be too low - knee is too bent"),
        AngleRule.within(140, 160, RecommendationType.SUCCESS,
                         "Good knee extension"),
    ],
    AngleName.HIP: [
        AngleRule.below(40, RecommendationType.WARNING,
                        "Hip angle too closed - may need to raise handlebars or adjust saddle"),
        AngleRule.within(40, 70, RecommendationType.SUCCESS,
                         "Good hip angle for power transfer"),
    ],
    AngleName.BACK: [
        AngleRule.below(30, RecommendationType.INFO,
                        "Very upright position - good for comfort"),
        AngleRule.within(35, 50, RecommendationType.SUCCESS,
                         "Good aerodynamic position"),
        AngleRule.above(60, RecommendationType.WARNING,
                        "Very aggressive position - ensure flexibility and comfort"),
    ],
    AngleName.ELBOW: [
        AngleRule.above(170, RecommendationType.WARNING,
                        "Arms too straight - add slight bend for comfort and shock absorption"),
        AngleRule.within(140, 170, RecommendationType.SUCCESS,
                         "Good arm position with slight bend"),
    ],
}

# Successes needed (with zero warnings) for an "excellent" bike fit
EXCELLENT_MIN_SUCCESSES = 2


class BikeFitAnalyzer:
    """Measures one rider side and maps each angle onto its rule table."""

    def __init__(self, min_confidence: float = ANALYSIS_MIN_CONFIDENCE):
        self.min_confidence = min_confidence

    def choose_side(self, pose: Pose) -> str:
        """'left' only when the left knee is strictly more confident."""
        if pose.keypoint_score("left_knee") > pose.keypoint_score("right_knee"):
            return "left"
        return "right"

    def analyze(self, pose: Optional[Pose]) -> Optional[FormAnalysis]:
        if pose is None or pose.keypoints is None:
            return None

        side = self.choose_side(pose)

        def confident(joint: str):
            return pose.confident_keypoint(f"{side}_{joint}", self.min_confidence)

        shoulder = confident("shoulder")
        hip = confident("hip")
        knee = confident("knee")
        ankle = confident("ankle")
        elbow = confident("elbow")
        wrist = confident("wrist")

        result = FormAnalysis(angles=AngleData(), recommendations=[])
        measured: Dict[str, float] = {}

        if hip and knee and ankle:
            measured[AngleName.KNEE] = calculate_angle(hip, knee, ankle)

        if shoulder and hip and knee:
            measured[AngleName.HIP] = calculate_angle(shoulder, hip, knee)

        if shoulder and hip:
            measured[AngleName.BACK] = calculate_angle(vertical_reference(shoulder), shoulder, hip)

        if shoulder and elbow and wrist:
            measured[AngleName.ELBOW] = calculate_angle(shoulder, elbow, wrist)

        for name in AngleName.BIKE_FIT:
            if name not in measured:
                continue
            value = measured[name]
            rounded = round_half_up(value)
            setattr(result.angles, name, rounded)
            apply_angle_rules(result, BIKE_FIT_AREAS[name], value, rounded, BIKE_FIT_RULES[name])

        result.overall = rate_overall(
            result, EXCELLENT_MIN_SUCCESSES, OverallRating.NEEDS_ADJUSTMENT
        )
        return result


def analyze_bike_fit(
    pose: Optional[Pose],
    min_confidence: float = ANALYSIS_MIN_CONFIDENCE,
) -> Optional[FormAnalysis]:
    """Convenience function to analyze one pose for bike fit."""
    return BikeFitAnalyzer(min_confidence=min_confidence).analyze(pose)
