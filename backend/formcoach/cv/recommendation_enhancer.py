"""
Severity grading, impact text and corrective drills for recommendations.

SEVERITY:
Distance of the measured angle outside its optimal range, as a percentage of
the range width. Inside the range is always minor.

    deviation% >= critical_pct -> critical
    deviation% >= moderate_pct -> moderate
    otherwise                  -> minor

Each area has its own optimal range and percentages (SEVERITY_BANDS). The side
of the range the angle falls on picks the exercise key, and critical
severity picks the stronger impact wording. Output is sorted by priority
(critical first), keeping input order among equal priorities.
"""

from dataclasses import dataclass, replace
from typing import Dict, List, Optional

from formcoach.cv.form_analysis import FormAnalysis, Recommendation


class Severity:
    """Recommendation severity."""
    CRITICAL = "critical"
    MODERATE = "moderate"
    MINOR = "minor"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.CRITICAL, cls.MODERATE, cls.MINOR]


PRIORITY_SCORES: Dict[str, int] = {
    Severity.CRITICAL: 3,
    Severity.MODERATE: 2,
    Severity.MINOR: 1,
}


@dataclass(frozen=True)
class Correction:
    """What to do when the angle falls on one side of its optimal range."""
    exercise_key: str
    critical_impact: str
    impact: str


@dataclass(frozen=True)
class SeverityBand:
    """Optimal range and grading for one recommendation area."""
    optimal_min: float
    optimal_max: float
    critical_pct: float
    moderate_pct: float
    below: Optional[Correction] = None
    above: Optional[Correction] = None


@dataclass(frozen=True)
class SeverityDisplay:
    label: str
    color: str
    icon: str
    bg_color: str


EXERCISES: Dict[str, List[str]] = {
    # Bike fit
    "knee_too_low": [
        "Raise saddle height by 5-10mm increments",
        "Single-leg pedaling drills to test range of motion",
        "Check cleat position - may need to move back",
    ],
    "knee_too_high": [
        "Lower saddle height by 5-10mm increments",
        "Test with heel on pedal - leg should be straight",
        "Foam roll quads and hip flexors before adjustments",
    ],
    "hip_too_open": [
        "Move saddle forward 5-10mm",
        "Lower handlebars if flexibility allows",
        "Core strengthening exercises (planks, bridges)",
    ],
    "hip_too_compressed": [
        "Raise handlebars or add spacers",
        "Move saddle back 5-10mm",
        "Hip flexor stretches (couch stretch, pigeon pose)",
        "Work on hip mobility exercises",
    ],
    "elbow_too_straight": [
        "Shorten stem length",
        "Raise handlebars with spacers",
        "Practice bending elbows consciously during rides",
    ],
    "elbow_too_bent": [
        "Increase reach with longer stem",
        "Lower handlebars if comfortable",
        "Upper body strength training",
    ],
    "back_too_upright": [
        "Lower handlebars gradually",
        "Work on core strength and stability",
        "Thoracic spine mobility exercises",
        "Hamstring stretches",
    ],
    "back_too_aggressive": [
        "Raise handlebars with spacers",
        "Shorter stem for more upright position",
        "Lower back strengthening exercises",
        "Cat-cow stretches for spine mobility",
    ],
    # Running
    "leaning_back": [
        "Falling forward drill: Lean from ankles not waist",
        "Wall lean drill: Practice proper forward lean",
        "Core engagement exercises during runs",
        "Focus on landing with foot under hips",
    ],
    "leaning_too_far": [
        "Posture reset: Imagine string pulling from crown",
        "Core stability work (planks, dead bugs)",
        "Run with lighter, quicker cadence",
    ],
    "knee_lift_low": [
        "High knee drills (30 seconds × 3 sets)",
        "A-skip and B-skip drills",
        "Butt kicks for hip flexor activation",
        "Hill repeats to increase knee drive",
    ],
    "knee_lift_high": [
        "Focus on quick ground contact, not height",
        "Cadence drills at 180 steps/minute",
        "Stride length reduction exercises",
    ],
    "hip_extension_limited": [
        "Hip flexor stretches (couch stretch, lunge holds)",
        "Glute activation (clamshells, bridges)",
        "Leg swings front-to-back before runs",
        "Backward running drills",
    ],
    "arm_swing_poor": [
        "Arm swing drill: 90° elbow, forward/back motion",
        "Practice while seated to isolate arms",
        "Shoulder mobility exercises",
        "Relax shoulders - avoid tension",
    ],
}

BIKE_FIT_BANDS: Dict[str, SeverityBand] = {
    "Knee Angle": SeverityBand(
        140, 160, 25, 15,
        below=Correction("knee_too_low",
                         "High risk of knee pain and reduced power output",
                         "May cause discomfort on longer rides"),
        above=Correction("knee_too_high",
                         "Risk of hamstring strain and inefficient pedaling",
                         "Slight inefficiency in power transfer"),
    ),
    "Hip Angle": SeverityBand(
        40, 70, 30, 20,
        below=Correction("hip_too_compressed",
                         "Breathing restriction and back pain risk",
                         "May limit comfort on long rides"),
        above=Correction("hip_too_open",
                         "Reduced aerodynamics and power generation",
                         "Minor reduction in efficiency"),
    ),
    "Elbow Angle": SeverityBand(
        140, 170, 25, 15,
        below=Correction("elbow_too_bent",
                         "Excessive weight on arms, fatigue risk",
                         "Slight reduction in comfort"),
        above=Correction("elbow_too_straight",
                         "Risk of shoulder/neck pain and reduced control",
                         "Minor strain on upper body"),
    ),
    "Back Angle": SeverityBand(
        35, 50, 30, 20,
        below=Correction("back_too_aggressive",
                         "Back pain risk and breathing limitations",
                         "May cause discomfort over time"),
        above=Correction("back_too_upright",
                         "Significant aerodynamic drag",
                         "Slight efficiency loss"),
    ),
}

_ARM_SWING_CORRECTION = Correction(
    "arm_swing_poor",
    "Energy waste and rotational imbalance",
    "Minor balance issues",
)

RUNNING_BANDS: Dict[str, SeverityBand] = {
    "Body Lean": SeverityBand(
        5, 12, 40, 25,
        below=Correction("leaning_back",
                         "Heel striking and braking forces increase injury risk",
                         "Reduced running efficiency"),
        above=Correction("leaning_too_far",
                         "Risk of quad strain and forward momentum loss",
                         "Slight balance issues"),
    ),
    "Knee Lift": SeverityBand(
        100, 140, 30, 20,
        below=Correction("knee_lift_low",
                         "Shuffling gait increases injury risk, reduces speed",
                         "Minor stride length reduction"),
        above=Correction("knee_lift_high",
                         "Wasted energy, increased ground contact time",
                         "Slight efficiency loss"),
    ),
    "Hip Extension": SeverityBand(
        160, 180, 15, 10,
        below=Correction("hip_extension_limited",
                         "Reduced power output, compensatory strain on quads/knees",
                         "Mild power loss"),
    ),
    "Arm Swing": SeverityBand(
        80, 110, 30, 20,
        below=_ARM_SWING_CORRECTION,
        above=_ARM_SWING_CORRECTION,
    ),
}


def calculate_severity(
    value: float,
    optimal_min: float,
    optimal_max: float,
    critical_pct: float = 20,
    moderate_pct: float = 10,
) -> str:
    """Grade how far ``value`` lies outside [optimal_min, optimal_max]."""
    if optimal_min <= value <= optimal_max:
        return Severity.MINOR

    nearest = optimal_min if value < optimal_min else optimal_max
    deviation = abs(value - nearest) / (optimal_max - optimal_min) * 100

    if deviation >= critical_pct:
        return Severity.CRITICAL
    elif deviation >= moderate_pct:
        return Severity.MODERATE
    return Severity.MINOR


def get_priority_score(severity: Optional[str]) -> int:
    return PRIORITY_SCORES.get(severity, 0)


def _enhance(rec: Recommendation, bands: Dict[str, SeverityBand]) -> Recommendation:
    severity = Severity.MINOR
    correction: Optional[Correction] = None

    band = bands.get(rec.area)
    if band is not None and rec.angle is not None:
        severity = calculate_severity(
            rec.angle, band.optimal_min, band.optimal_max,
            band.critical_pct, band.moderate_pct,
        )
        if rec.angle < band.optimal_min:
            correction = band.below
        elif rec.angle > band.optimal_max:
            correction = band.above

    impact = ""
    drills: List[str] = []
    if correction is not None:
        impact = correction.critical_impact if severity == Severity.CRITICAL else correction.impact
        drills = list(EXERCISES[correction.exercise_key])

    return replace(
        rec,
        severity=severity,
        impact=impact,
        drills=drills,
        priority_score=get_priority_score(severity),
    )


def enhance_recommendations(
    analysis: Optional[FormAnalysis],
    bands: Dict[str, SeverityBand],
) -> List[Recommendation]:
    """Enhanced copies of the analysis recommendations, critical first."""
    if analysis is None or not analysis.recommendations:
        return []

    enhanced = [_enhance(rec, bands) for rec in analysis.recommendations]
    # sorted() is stable
    return sorted(enhanced, key=lambda r: r.priority_score or 0, reverse=True)


def enhance_bike_fit_recommendations(analysis: Optional[FormAnalysis]) -> List[Recommendation]:
    return enhance_recommendations(analysis, BIKE_FIT_BANDS)


def enhance_running_recommendations(analysis: Optional[FormAnalysis]) -> List[Recommendation]:
    return enhance_recommendations(analysis, RUNNING_BANDS)


def get_severity_display(severity: Optional[str]) -> SeverityDisplay:
    if severity == Severity.CRITICAL:
        return SeverityDisplay(label="Critical", color="#f44336", icon="⚠️", bg_color="#ffebee")
    if severity == Severity.MODERATE:
        return SeverityDisplay(label="Moderate", color="#ff9800", icon="⚡", bg_color="#fff3e0")
    if severity == Severity.MINOR:
        return SeverityDisplay(label="Minor", color="#2196f3", icon="ℹ️", bg_color="#e3f2fd")
    return SeverityDisplay(label="Info", color="#757575", icon="•", bg_color="#f5f5f5")
