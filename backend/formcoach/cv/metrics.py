"""
Aggregation of per-frame analyses into video-level statistics.

- combine_analyses: per-angle mean over the frames that measured it
- calculate_detailed_metrics: min/max/avg/std/range/consistency per angle
- calculate_asymmetry: left vs right comparison of the per-side angles

Consistency is a 0-100 score from the coefficient of variation
(CV = std / mean * 100): lower CV means steadier form.
"""

import math
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

import numpy as np

from formcoach.cv.errors import EmptyAnalysisError
from formcoach.cv.form_analysis import AngleData, FormAnalysis
from formcoach.cv.geometry import round_half_up


@dataclass
class AngleMetrics:
    """Statistics for one angle across all analyzed frames."""
    min: int
    max: int
    avg: int
    std_dev: float
    range: int
    consistency: int  # 0-100
    values: List[int] = field(default_factory=list)


class AsymmetryStatus:
    BALANCED = "balanced"
    MINOR = "minor"
    SIGNIFICANT = "significant"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.BALANCED, cls.MINOR, cls.SIGNIFICANT]


@dataclass
class AngleAsymmetry:
    """Left/right comparison for one per-side angle."""
    left: int
    right: int
    difference: int
    percent_diff: float
    status: str  # AsymmetryStatus value


@dataclass(frozen=True)
class RatingLabel:
    label: str
    color: str
    icon: str = ""


# Percent difference limits for asymmetry status
BALANCED_MAX_PERCENT = 5.0
MINOR_MAX_PERCENT = 10.0


def combine_analyses(analyses: List[FormAnalysis]) -> FormAnalysis:
    """
    Average every angle over the frames where it was measured.

    The last frame's analysis is the base of the result; only its angles are
    replaced. Frame order therefore matters.
    """
    if not analyses:
        raise EmptyAnalysisError("No analyses to combine")

    sums: Dict[str, float] = {}
    counts: Dict[str, int] = {}
    for analysis in analyses:
        for name, value in analysis.angles.items():
            sums[name] = sums.get(name, 0.0) + value
            counts[name] = counts.get(name, 0) + 1

    averaged = {name: round_half_up(sums[name] / counts[name]) for name in sums}
    return replace(analyses[-1], angles=AngleData.from_mapping(averaged))


def _consistency(std_dev: float, avg: float) -> int:
    if avg == 0:
        return 0

    cv = std_dev / avg * 100

    if cv < 5:
        return round_half_up(100 - cv * 2)
    elif cv < 10:
        return round_half_up(90 - (cv - 5) * 3)
    elif cv < 15:
        return round_half_up(75 - (cv - 10) * 3)
    return max(0, round_half_up(60 - (cv - 15) * 2))


def calculate_detailed_metrics(analyses: List[FormAnalysis]) -> Optional[Dict[str, AngleMetrics]]:
    """Per-angle statistics across frames, or None for no frames."""
    if not analyses:
        return None

    angle_names: List[str] = []
    for analysis in analyses:
        for name, _ in analysis.angles.items():
            if name not in angle_names:
                angle_names.append(name)

    metrics: Dict[str, AngleMetrics] = {}
    for name in angle_names:
        values = [
            analysis.angles.get(name)
            for analysis in analyses
            if analysis.angles.get(name) is not None and math.isfinite(analysis.angles.get(name))
        ]
        if not values:
            continue

        arr = np.array(values, dtype=float)
        avg = float(np.mean(arr))
        std_dev = float(np.std(arr))  # population
        lowest = float(np.min(arr))
        highest = float(np.max(arr))

        metrics[name] = AngleMetrics(
            min=round_half_up(lowest),
            max=round_half_up(highest),
            avg=round_half_up(avg),
            std_dev=round_half_up(std_dev, 1),
            range=round_half_up(highest - lowest),
            consistency=_consistency(std_dev, avg),
            values=[round_half_up(v) for v in values],
        )

    return metrics


def _asymmetry_status(percent_diff: float) -> str:
    if percent_diff < BALANCED_MAX_PERCENT:
        return AsymmetryStatus.BALANCED
    if percent_diff < MINOR_MAX_PERCENT:
        return AsymmetryStatus.MINOR
    return AsymmetryStatus.SIGNIFICANT


def calculate_asymmetry(analyses: List[FormAnalysis]) -> Optional[Dict[str, AngleAsymmetry]]:
    """
    Compare the left and right side angles over all frames.

    Each side is averaged independently (values need not come from the same
    frames). Returns None when no angle was measured on both sides.
    """
    if not analyses:
        return None

    left_values: Dict[str, List[float]] = {}
    right_values: Dict[str, List[float]] = {}
    for analysis in analyses:
        if analysis.sides is None:
            continue
        for name, value in analysis.sides.left.items():
            left_values.setdefault(name, []).append(value)
        for name, value in analysis.sides.right.items():
            right_values.setdefault(name, []).append(value)

    asymmetry: Dict[str, AngleAsymmetry] = {}
    for name, lefts in left_values.items():
        rights = right_values.get(name)
        if not rights:
            continue

        left_avg = float(np.mean(lefts))
        right_avg = float(np.mean(rights))
        difference = abs(left_avg - right_avg)
        mean_of_sides = (left_avg + right_avg) / 2
        percent_diff = difference / mean_of_sides * 100 if mean_of_sides else 0.0

        asymmetry[name] = AngleAsymmetry(
            left=round_half_up(left_avg),
            right=round_half_up(right_avg),
            difference=round_half_up(difference),
            percent_diff=round_half_up(percent_diff, 1),
            status=_asymmetry_status(percent_diff),
        )

    return asymmetry or None


def get_consistency_rating(score: float) -> RatingLabel:
    if score >= 90:
        return RatingLabel(label="Excellent", color="#4caf50")
    if score >= 75:
        return RatingLabel(label="Good", color="#8bc34a")
    if score >= 60:
        return RatingLabel(label="Fair", color="#ff9800")
    return RatingLabel(label="Needs Improvement", color="#f44336")


def get_asymmetry_status(status: str) -> RatingLabel:
    if status == AsymmetryStatus.BALANCED:
        return RatingLabel(label="Balanced", color="#4caf50", icon="✓")
    if status == AsymmetryStatus.MINOR:
        return RatingLabel(label="Minor Imbalance", color="#ff9800", icon="⚠")
    if status == AsymmetryStatus.SIGNIFICANT:
        return RatingLabel(label="Significant Imbalance", color="#f44336", icon="✗")
    return RatingLabel(label="Unknown", color="#757575", icon="?")
