"""Narrative report built from enhanced recommendations and statistics."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from formcoach.cv.form_analysis import AngleData, AngleName, Recommendation
from formcoach.cv.metrics import AngleAsymmetry, AngleMetrics, AsymmetryStatus
from formcoach.cv.recommendation_enhancer import Severity
from formcoach.cv.sport_classifier import SportType


@dataclass
class AnalysisSummary:
    headline: str
    strengths: List[str] = field(default_factory=list)
    improvements: List[str] = field(default_factory=list)
    top_priority: str = ""


@dataclass(frozen=True)
class StrengthRange:
    """Angle range worth praising, with the sentence used when it is met."""
    angle: str
    low: float
    high: float
    template: str


# Praise ranges are looser than the analyzer pass ranges for running
STRENGTH_RANGES: Dict[str, List[StrengthRange]] = {
    SportType.CYCLING: [
        StrengthRange(AngleName.KNEE, 140, 160,
                      "Knee angle ({value}°) is optimal - reduces stress on joints"),
        StrengthRange(AngleName.HIP, 40, 70,
                      "Hip angle ({value}°) is in ideal range - maximizes power transfer"),
        StrengthRange(AngleName.ELBOW, 140, 170,
                      "Elbow position ({value}°) is good - comfortable and aerodynamic"),
        StrengthRange(AngleName.BACK, 35, 50,
                      "Back angle ({value}°) shows good aerodynamic position"),
    ],
    SportType.RUNNING: [
        StrengthRange(AngleName.KNEE_LIFT, 70, 95,
                      "Knee lift ({value}°) is optimal - efficient stride mechanics"),
        StrengthRange(AngleName.BODY_LEAN, 3, 8,
                      "Body lean ({value}°) is perfect - promotes forward momentum"),
        StrengthRange(AngleName.ARM_SWING, 70, 100,
                      "Arm swing ({value}°) is efficient - good energy conservation"),
    ],
}

ANGLE_LABELS: Dict[str, str] = {
    AngleName.KNEE: "Knee",
    AngleName.HIP: "Hip",
    AngleName.BACK: "Back",
    AngleName.ELBOW: "Elbow",
    AngleName.BODY_LEAN: "Body Lean",
    AngleName.KNEE_LIFT: "Knee Lift",
    AngleName.HIP_EXTENSION: "Hip Extension",
    AngleName.ARM_SWING: "Arm Swing",
    "knee_angle": "Knee",
    "hip_angle": "Hip",
    "arm_angle": "Arm",
}

HIGH_CONSISTENCY = 85
LOW_CONSISTENCY = 70
MAX_ISSUE_ITEMS = 4
MAX_ASYMMETRY_ITEMS = 2
MAX_CONSISTENCY_ITEMS = 2

DEFAULT_STRENGTH = "Analysis in progress - continue with current form"
DEFAULT_IMPROVEMENT = "No significant issues detected - maintain current form and conditioning"
DEFAULT_PRIORITY = "Maintain your excellent form through consistent practice and conditioning"


def format_angle_name(key: str) -> str:
    return ANGLE_LABELS.get(key, key)


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


def _headline(critical: List[Recommendation], moderate: List[Recommendation],
              minor: List[Recommendation]) -> str:
    if critical:
        n = len(critical)
        return f"{n} critical issue{_plural(n, '', 's')} detected - immediate attention needed"
    if moderate:
        n = len(moderate)
        return f"Form is functional but {n} area{_plural(n, ' needs', 's need')} improvement"
    if minor:
        return "Good form overall - minor optimizations available"
    return "Excellent form - all measurements within optimal ranges"


def _strengths(
    angles: AngleData,
    metrics: Optional[Dict[str, AngleMetrics]],
    asymmetry: Optional[Dict[str, AngleAsymmetry]],
    sport: str,
) -> List[str]:
    strengths = []

    for strength in STRENGTH_RANGES.get(sport, []):
        value = angles.get(strength.angle)
        if value and strength.low <= value <= strength.high:
            strengths.append(strength.template.format(value=value))

    if metrics:
        consistent: List[Tuple[str, AngleMetrics]] = [
            (name, m) for name, m in metrics.items() if m.consistency >= HIGH_CONSISTENCY
        ]
        if consistent:
            names = ", ".join(format_angle_name(name) for name, _ in consistent)
            scope = "all " if len(consistent) > 1 else ""
            strengths.append(
                f"Highly consistent form in {names} ({scope}{consistent[0][1].consistency}%+ consistency)"
            )

    if asymmetry:
        balanced = [
            (name, a) for name, a in asymmetry.items() if a.status == AsymmetryStatus.BALANCED
        ]
        if balanced:
            names = ", ".join(format_angle_name(name) for name, _ in balanced)
            strengths.append(
                f"Excellent left/right balance in {names} "
                f"({balanced[0][1].percent_diff}% difference or less)"
            )

    return strengths or [DEFAULT_STRENGTH]


def _improvements(
    issues: List[Recommendation],
    metrics: Optional[Dict[str, AngleMetrics]],
    asymmetry: Optional[Dict[str, AngleAsymmetry]],
) -> List[str]:
    improvements = []

    for rec in issues[:MAX_ISSUE_ITEMS]:
        detail = f" (current: {rec.angle}°)" if rec.angle is not None else ""
        line = f"{rec.area}{detail}: {rec.message}"
        if rec.impact:
            line += f". Impact: {rec.impact}"
        improvements.append(line)

    if asymmetry:
        unbalanced = [
            (name, a) for name, a in asymmetry.items() if a.status != AsymmetryStatus.BALANCED
        ]
        for name, a in unbalanced[:MAX_ASYMMETRY_ITEMS]:
            improvements.append(
                f"{format_angle_name(name)} imbalance: Left {a.left}° vs Right {a.right}° "
                f"({a.percent_diff}% difference) - work on balancing both sides"
            )

    if metrics:
        inconsistent = sorted(
            ((name, m) for name, m in metrics.items() if m.consistency < LOW_CONSISTENCY),
            key=lambda item: item[1].consistency,
        )
        for name, m in inconsistent[:MAX_CONSISTENCY_ITEMS]:
            improvements.append(
                f"{format_angle_name(name)} consistency is low ({m.consistency}%) - range varies "
                f"from {m.min}° to {m.max}°. Focus on maintaining steady form"
            )

    return improvements or [DEFAULT_IMPROVEMENT]


def _top_priority(critical: List[Recommendation], moderate: List[Recommendation]) -> str:
    if critical:
        top = critical[0]
        text = f"Priority #1: {top.area} - {top.message}"
        if top.drills:
            text += f". Start with: {top.drills[0]}"
        return text
    if moderate:
        top = moderate[0]
        text = f"Focus on: {top.area} - {top.message}"
        if top.drills:
            text += f". Recommended: {top.drills[0]}"
        return text
    return DEFAULT_PRIORITY


def generate_detailed_summary(
    recommendations: List[Recommendation],
    angles: AngleData,
    metrics: Optional[Dict[str, AngleMetrics]],
    asymmetry: Optional[Dict[str, AngleAsymmetry]],
    overall: str,
    sport: str,
) -> AnalysisSummary:
    """
    Build headline, strengths, improvements and top priority.

    ``recommendations`` must already be enhanced and sorted critical first.
    ``overall`` is accepted for callers that have it; the text is derived
    from the severities alone.
    """
    critical = [r for r in recommendations if r.severity == Severity.CRITICAL]
    moderate = [r for r in recommendations if r.severity == Severity.MODERATE]
    minor = [r for r in recommendations if r.severity == Severity.MINOR]

    return AnalysisSummary(
        headline=_headline(critical, moderate, minor),
        strengths=_strengths(angles, metrics, asymmetry, sport),
        improvements=_improvements(critical + moderate, metrics, asymmetry),
        top_priority=_top_priority(critical, moderate),
    )
