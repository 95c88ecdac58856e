"""Display projections of an analysis: gauges, timeline markers, chart rows, playback poses."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from formcoach.cv.form_analysis import AngleData, AngleName, FormAnalysis, OverallRating, Recommendation
from formcoach.cv.pose import Keypoint, Pose
from formcoach.cv.recommendation_enhancer import Severity
from formcoach.cv.sport_classifier import SportType


@dataclass
class IssueMarker:
    """Approximate timeline position of a critical or moderate issue."""
    time: float  # seconds
    area: str
    message: str
    severity: str


@dataclass
class AngleGauge:
    label: str
    angle: float
    percentage: float  # position inside the optimal range, clamped to 0-100
    status: str  # "good" or "warning"
    optimal_min: float
    optimal_max: float


# (angle, optimal min, optimal max, label)
GAUGE_RANGES = {
    SportType.CYCLING: [
        (AngleName.KNEE, 140, 160, "Knee Angle"),
        (AngleName.HIP, 40, 70, "Hip Angle"),
        (AngleName.ELBOW, 140, 170, "Elbow Angle"),
    ],
    SportType.RUNNING: [
        (AngleName.BODY_LEAN, 5, 12, "Body Lean"),
        (AngleName.KNEE_LIFT, 100, 140, "Knee Lift"),
        (AngleName.HIP_EXTENSION, 160, 180, "Hip Extension"),
        (AngleName.ARM_SWING, 80, 110, "Arm Swing"),
    ],
}

OVERALL_MESSAGES = {
    SportType.CYCLING: {
        OverallRating.EXCELLENT: "Excellent bike fit!",
        OverallRating.GOOD: "Good bike fit with minor adjustments needed",
        OverallRating.NEEDS_ADJUSTMENT: "Several adjustments recommended",
    },
    SportType.RUNNING: {
        OverallRating.EXCELLENT: "Excellent running form!",
        OverallRating.GOOD: "Good running form with minor improvements",
        OverallRating.NEEDS_IMPROVEMENT: "Several areas for improvement identified",
    },
}


def create_issue_markers(
    recommendations: List[Recommendation],
    video_duration: float,
    frames_to_analyze: int,
) -> List[IssueMarker]:
    """Spread critical/moderate issues over the sampled frame times, in order."""
    interval = video_duration / (frames_to_analyze + 1)
    issues = [
        rec for rec in recommendations
        if rec.severity in (Severity.CRITICAL, Severity.MODERATE)
    ]
    return [
        IssueMarker(time=(i + 1) * interval, area=rec.area, message=rec.message, severity=rec.severity)
        for i, rec in enumerate(issues)
    ]


def create_angle_gauge(angle: float, optimal_min: float, optimal_max: float, label: str) -> AngleGauge:
    percentage = (angle - optimal_min) / (optimal_max - optimal_min) * 100
    return AngleGauge(
        label=label,
        angle=angle,
        percentage=max(0.0, min(100.0, percentage)),
        status="good" if optimal_min <= angle <= optimal_max else "warning",
        optimal_min=optimal_min,
        optimal_max=optimal_max,
    )


def create_angle_gauges(angles: AngleData, sport: str) -> List[AngleGauge]:
    gauges = []
    for name, low, high, label in GAUGE_RANGES.get(sport, []):
        value = angles.get(name)
        if value is not None:
            gauges.append(create_angle_gauge(value, low, high, label))
    return gauges


def create_frame_data(analyses: List[FormAnalysis]) -> List[Dict[str, Any]]:
    """One chart row per analyzed frame: {"frame": n, <angle>: value, ...}."""
    return [
        {"frame": index + 1, **analysis.angles.as_dict()}
        for index, analysis in enumerate(analyses)
    ]


def get_overall_message(overall: str, sport: str) -> str:
    return OVERALL_MESSAGES.get(sport, {}).get(overall, "Analysis complete")


def _lerp(start: float, end: float, t: float) -> float:
    return start + (end - start) * t


def interpolate_pose(pose_a: Pose, pose_b: Optional[Pose], t: float) -> Pose:
    """
    Linear blend between two poses for playback between sampled frames.

    Keypoints missing from either pose are taken from ``pose_a`` unchanged.
    """
    t = max(0.0, min(1.0, t))
    if pose_b is None:
        return pose_a

    keypoints = []
    for kp in pose_a.keypoints:
        other = pose_b.get_keypoint(kp.name)
        if other is None:
            keypoints.append(kp)
            continue
        keypoints.append(Keypoint(
            name=kp.name,
            x=_lerp(kp.x, other.x, t),
            y=_lerp(kp.y, other.y, t),
            score=_lerp(kp.score, other.score, t),
        ))

    return Pose(keypoints=keypoints, score=_lerp(pose_a.score, pose_b.score, t))
