"""
Computer Vision pipeline for cycling and running form analysis.

PIPELINE COMPONENTS:
1. FrameSampler: Evenly spaced frame extraction (OpenCV)
2. MoveNetEstimator: MoveNet SinglePose keypoints (TensorFlow Hub)
3. SportClassifier: Cycling vs running from keypoint geometry
4. BikeFitAnalyzer / RunningFormAnalyzer: Joint angles and rule-based feedback
5. Metrics: Averaged angles, consistency and left/right asymmetry
6. Recommendation enhancer: Severity, impact and corrective drills
7. Summary: Headline, strengths, improvements and top priority
8. VideoProcessor: Main orchestration pipeline

MoveNetEstimator is imported from formcoach.cv.movenet_estimator directly so
that TensorFlow is loaded only when a real model is needed.

Usage:
    from formcoach.cv import VideoProcessor

    result = VideoProcessor(sport="auto").process_video("ride.mp4")
    for rec in result.recommendations:
        print(f"[{rec.severity}] {rec.area}: {rec.message}")
"""

from formcoach.cv.pose import Keypoint, Pose, MoveNetKeypoint, KEYPOINT_NAMES
from formcoach.cv.geometry import Point, calculate_angle
from formcoach.cv.errors import (
    FormAnalysisError, VideoReadError, PoseEstimatorError, EmptyAnalysisError
)
from formcoach.cv.form_analysis import (
    AngleData, SideAngles, Sides, Recommendation, FormAnalysis,
    RecommendationType, OverallRating, AngleName, AngleRule,
    CLASSIFICATION_MIN_CONFIDENCE, ANALYSIS_MIN_CONFIDENCE, MIN_POSE_SCORE,
)
from formcoach.cv.sport_classifier import (
    SportClassifier, SportClassification, SportType, classify_sport
)
from formcoach.cv.bike_fit import BikeFitAnalyzer, analyze_bike_fit
from formcoach.cv.running_form import RunningFormAnalyzer, analyze_running_form
from formcoach.cv.metrics import (
    AngleMetrics, AngleAsymmetry, AsymmetryStatus,
    combine_analyses, calculate_detailed_metrics, calculate_asymmetry,
    get_consistency_rating, get_asymmetry_status,
)
from formcoach.cv.recommendation_enhancer import (
    Severity, EXERCISES, calculate_severity,
    enhance_bike_fit_recommendations, enhance_running_recommendations,
    get_severity_display,
)
from formcoach.cv.summary import AnalysisSummary, generate_detailed_summary
from formcoach.cv.overlays import (
    IssueMarker, AngleGauge, create_issue_markers, create_angle_gauge,
    create_frame_data, get_overall_message, interpolate_pose,
)
from formcoach.cv.frame_sampler import FrameSampler, VideoMetadata, SampledFrame
from formcoach.cv.video_processor import (
    VideoProcessor, ProcessingResult, FrameAnalysis, detect_sport, detect_sport_type
)

__all__ = [
    # Pose data
    "Keypoint",
    "Pose",
    "MoveNetKeypoint",
    "KEYPOINT_NAMES",

    # Geometry
    "Point",
    "calculate_angle",

    # Errors
    "FormAnalysisError",
    "VideoReadError",
    "PoseEstimatorError",
    "EmptyAnalysisError",

    # Analysis types
    "AngleData",
    "SideAngles",
    "Sides",
    "Recommendation",
    "FormAnalysis",
    "RecommendationType",
    "OverallRating",
    "AngleName",
    "AngleRule",
    "CLASSIFICATION_MIN_CONFIDENCE",
    "ANALYSIS_MIN_CONFIDENCE",
    "MIN_POSE_SCORE",

    # Sport classification
    "SportClassifier",
    "SportClassification",
    "SportType",
    "classify_sport",

    # Analyzers
    "BikeFitAnalyzer",
    "analyze_bike_fit",
    "RunningFormAnalyzer",
    "analyze_running_form",

    # Statistics
    "AngleMetrics",
    "AngleAsymmetry",
    "AsymmetryStatus",
    "combine_analyses",
    "calculate_detailed_metrics",
    "calculate_asymmetry",
    "get_consistency_rating",
    "get_asymmetry_status",

    # Recommendations
    "Severity",
    "EXERCISES",
    "calculate_severity",
    "enhance_bike_fit_recommendations",
    "enhance_running_recommendations",
    "get_severity_display",

    # Report
    "AnalysisSummary",
    "generate_detailed_summary",
    "IssueMarker",
    "AngleGauge",
    "create_issue_markers",
    "create_angle_gauge",
    "create_frame_data",
    "get_overall_message",
    "interpolate_pose",

    # Main pipeline
    "FrameSampler",
    "VideoMetadata",
    "SampledFrame",
    "VideoProcessor",
    "ProcessingResult",
    "FrameAnalysis",
    "detect_sport",
    "detect_sport_type",
]
