"""
Running-form analysis from a single side-view pose.

Both sides are measured independently into ``sides`` for asymmetry checks:
knee_angle (hip-knee-ankle), hip_angle (shoulder-hip-knee) and arm_angle
(shoulder-elbow-wrist). Whole-body angles:

- body_lean: vertical-shoulder-hip using the midpoints of both sides
- knee_lift: mean of the measured side knee angles
- hip_extension: mean of the measured side hip angles
- arm_swing: mean of the measured side arm angles

Foot strike is judged from the horizontal ankle-to-knee offset of the left
leg and carries no angle.
"""

from typing import Dict, List, Optional

import numpy as np

from formcoach.cv.form_analysis import (
    ANALYSIS_MIN_CONFIDENCE,
    AngleData,
    AngleName,
    AngleRule,
    FormAnalysis,
    OverallRating,
    Recommendation,
    RecommendationType,
    SideAngles,
    Sides,
    apply_angle_rules,
    rate_overall,
)
from formcoach.cv.geometry import calculate_angle, midpoint, round_half_up, vertical_reference
from formcoach.cv.pose import Pose

RUNNING_AREAS: Dict[str, str] = {
    AngleName.BODY_LEAN: "Body Lean",
    AngleName.KNEE_LIFT: "Knee Lift",
    AngleName.HIP_EXTENSION: "Hip Extension",
    AngleName.ARM_SWING: "Arm Swing",
}
FOOT_STRIKE_AREA = "Foot Strike"

RUNNING_RULES: Dict[str, List[AngleRule]] = {
    AngleName.BODY_LEAN: [
        AngleRule.below(3, RecommendationType.WARNING,
                        "Too upright - lean slightly forward from ankles for better momentum"),
        AngleRule.within(5, 12, RecommendationType.SUCCESS,
                         "Good forward lean for efficient running"),
        AngleRule.above(15, RecommendationType.WARNING,
                        "Leaning too far forward - may cause lower back strain"),
    ],
    AngleName.KNEE_LIFT: [
        AngleRule.above(160, RecommendationType.WARNING,
                        "Insufficient knee lift - increase leg drive for better efficiency"),
        AngleRule.within(100, 140, RecommendationType.SUCCESS,
                         "Good knee drive and leg turnover"),
    ],
    AngleName.HIP_EXTENSION: [
        AngleRule.below(140, RecommendationType.WARNING,
                        "Limited hip extension - focus on pushing through stride"),
        AngleRule.at_least(160, RecommendationType.SUCCESS,
                           "Excellent hip extension and power generation"),
    ],
    AngleName.ARM_SWING: [
        AngleRule.above(120, RecommendationType.INFO,
                        "Arms too straight - bend elbows to ~90 degrees for better rhythm"),
        AngleRule.within(80, 110, RecommendationType.SUCCESS,
                         "Good arm angle for efficient running"),
        AngleRule.below(70, RecommendationType.INFO,
                        "Elbows too bent - relax arms slightly"),
    ],
}

# Horizontal ankle-knee offset (pixels) still counted as landing under the body
FOOT_STRIKE_TOLERANCE = 30.0
FOOT_STRIKE_GOOD = "Good foot landing position under center of mass"
FOOT_STRIKE_OVERSTRIDE = "Possible overstriding - land with foot closer to body"

EXCELLENT_MIN_SUCCESSES = 3


class RunningFormAnalyzer:
    """Measures both legs and arms, then applies the running rule tables."""

    def __init__(self, min_confidence: float = ANALYSIS_MIN_CONFIDENCE):
        self.min_confidence = min_confidence

    def _measure_side(self, pose: Pose, side: str) -> SideAngles:
        def confident(joint: str):
            return pose.confident_keypoint(f"{side}_{joint}", self.min_confidence)

        shoulder = confident("shoulder")
        hip = confident("hip")
        knee = confident("knee")
        ankle = confident("ankle")
        elbow = confident("elbow")
        wrist = confident("wrist")

        angles = SideAngles()

        # Leg angles need the whole shoulder-hip-knee chain
        if shoulder and hip and knee:
            if ankle:
                angles.knee_angle = round_half_up(calculate_angle(hip, knee, ankle))
            angles.hip_angle = round_half_up(calculate_angle(shoulder, hip, knee))

        if shoulder and elbow and wrist:
            angles.arm_angle = round_half_up(calculate_angle(shoulder, elbow, wrist))

        return angles

    def _body_lean(self, pose: Pose) -> Optional[float]:
        names = ("left_shoulder", "right_shoulder", "left_hip", "right_hip")
        points = [pose.confident_keypoint(name, self.min_confidence) for name in names]
        if not all(points):
            return None

        left_shoulder, right_shoulder, left_hip, right_hip = points
        avg_shoulder = midpoint(left_shoulder, right_shoulder)
        avg_hip = midpoint(left_hip, right_hip)
        return calculate_angle(vertical_reference(avg_shoulder), avg_shoulder, avg_hip)

    @staticmethod
    def _side_average(*values: Optional[int]) -> Optional[int]:
        present = [v for v in values if v]
        if not present:
            return None
        return round_half_up(float(np.mean(present)))

    def _foot_strike(self, pose: Pose) -> Optional[Recommendation]:
        knee = pose.confident_keypoint("left_knee", self.min_confidence)
        ankle = pose.confident_keypoint("left_ankle", self.min_confidence)
        if not (knee and ankle):
            return None

        offset = ankle.x - knee.x
        if abs(offset) < FOOT_STRIKE_TOLERANCE:
            return Recommendation(
                area=FOOT_STRIKE_AREA, message=FOOT_STRIKE_GOOD, type=RecommendationType.SUCCESS
            )
        if offset > FOOT_STRIKE_TOLERANCE:
            return Recommendation(
                area=FOOT_STRIKE_AREA, message=FOOT_STRIKE_OVERSTRIDE, type=RecommendationType.WARNING
            )
        # Feet landing far behind the knee are not graded
        return None

    def analyze(self, pose: Optional[Pose]) -> Optional[FormAnalysis]:
        if pose is None or pose.keypoints is None:
            return None

        sides = Sides(
            left=self._measure_side(pose, "left"),
            right=self._measure_side(pose, "right"),
        )
        result = FormAnalysis(
            angles=AngleData(),
            recommendations=[],
            sides=sides,
            confidence=pose.score or 0.0,
        )

        body_lean = self._body_lean(pose)
        if body_lean is not None:
            result.angles.body_lean = round_half_up(body_lean)
            apply_angle_rules(
                result, RUNNING_AREAS[AngleName.BODY_LEAN], body_lean,
                result.angles.body_lean, RUNNING_RULES[AngleName.BODY_LEAN],
            )

        averaged = {
            AngleName.KNEE_LIFT: self._side_average(sides.left.knee_angle, sides.right.knee_angle),
            AngleName.HIP_EXTENSION: self._side_average(sides.left.hip_angle, sides.right.hip_angle),
            AngleName.ARM_SWING: self._side_average(sides.left.arm_angle, sides.right.arm_angle),
        }
        for name, value in averaged.items():
            if value is None:
                continue
            setattr(result.angles, name, value)
            apply_angle_rules(result, RUNNING_AREAS[name], value, value, RUNNING_RULES[name])

        foot_strike = self._foot_strike(pose)
        if foot_strike is not None:
            result.recommendations.append(foot_strike)

        result.overall = rate_overall(
            result, EXCELLENT_MIN_SUCCESSES, OverallRating.NEEDS_IMPROVEMENT
        )
        return result


def analyze_running_form(
    pose: Optional[Pose],
    min_confidence: float = ANALYSIS_MIN_CONFIDENCE,
) -> Optional[FormAnalysis]:
    """Convenience function to analyze one pose for running form."""
    return RunningFormAnalyzer(min_confidence=min_confidence).analyze(pose)
