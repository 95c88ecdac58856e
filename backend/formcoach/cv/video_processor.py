"""
Video processing pipeline for cycling and running form analysis.

PIPELINE:
1. Open video and read metadata
2. Sport resolution (majority vote over a few frames when "auto")
3. Pose estimation + per-frame analysis on evenly spaced frames
4. Aggregation: averaged angles, per-angle statistics, left/right asymmetry
5. Recommendation enhancement (severity, impact, drills)
6. Presentation: gauges, issue markers, narrative summary

A frame whose pose cannot be estimated, is not confident enough, or cannot be
analyzed is dropped; only a video with no usable frame fails the run, and
that failure is reported in ProcessingResult.errors rather than raised.
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from formcoach.config import Settings, get_settings
from formcoach.cv.bike_fit import analyze_bike_fit
from formcoach.cv.errors import VideoReadError
from formcoach.cv.form_analysis import FormAnalysis, Recommendation
from formcoach.cv.frame_sampler import FrameSampler
from formcoach.cv.metrics import (
    AngleAsymmetry,
    AngleMetrics,
    calculate_asymmetry,
    calculate_detailed_metrics,
    combine_analyses,
)
from formcoach.cv.overlays import (
    AngleGauge,
    IssueMarker,
    create_angle_gauges,
    create_frame_data,
    create_issue_markers,
    get_overall_message,
)
from formcoach.cv.pose import Pose
from formcoach.cv.recommendation_enhancer import (
    enhance_bike_fit_recommendations,
    enhance_running_recommendations,
)
from formcoach.cv.running_form import analyze_running_form
from formcoach.cv.sport_classifier import SportClassification, SportClassifier, SportType
from formcoach.cv.summary import AnalysisSummary, generate_detailed_summary

logger = logging.getLogger(__name__)

AUTO_SPORT = "auto"

NO_SUBJECT_MESSAGES = {
    SportType.CYCLING: "Could not detect rider in video. Please ensure the full body is visible from the side.",
    SportType.RUNNING: "Could not detect runner in video. Please ensure the full body is visible from the side.",
}
GENERIC_FAILURE_MESSAGE = "Failed to analyze video. Please try again."

ANALYZERS: Dict[str, Callable[..., Optional[FormAnalysis]]] = {
    SportType.CYCLING: analyze_bike_fit,
    SportType.RUNNING: analyze_running_form,
}
ENHANCERS: Dict[str, Callable[[FormAnalysis], List[Recommendation]]] = {
    SportType.CYCLING: enhance_bike_fit_recommendations,
    SportType.RUNNING: enhance_running_recommendations,
}


def create_pose_estimator(settings: Optional[Settings] = None):
    """Load the MoveNet estimator (imports TensorFlow on first use)."""
    from formcoach.cv.movenet_estimator import MoveNetEstimator

    settings = settings or get_settings()
    return MoveNetEstimator(model_url=settings.pose_model_url, input_size=settings.pose_input_size)


@dataclass
class FrameAnalysis:
    """Analysis of one usable sampled frame."""
    frame_index: int
    timestamp: float
    pose: Pose
    analysis: FormAnalysis


@dataclass
class ProcessingResult:
    """Complete result of one stateless video analysis."""
    sport: str = SportType.UNKNOWN
    requested_sport: str = AUTO_SPORT
    detected_sport: Optional[str] = None
    sport_votes: Dict[str, int] = field(default_factory=dict)

    # Video metadata
    video_duration_seconds: float = 0.0
    video_fps: float = 0.0
    video_width: int = 0
    video_height: int = 0

    # Frame accounting
    frames_requested: int = 0
    frames_sampled: int = 0
    frames_analyzed: int = 0

    # Analysis
    analysis: Optional[FormAnalysis] = None  # combined over all usable frames
    frame_analyses: List[FrameAnalysis] = field(default_factory=list)
    recommendations: List[Recommendation] = field(default_factory=list)
    detailed_metrics: Optional[Dict[str, AngleMetrics]] = None
    asymmetry: Optional[Dict[str, AngleAsymmetry]] = None
    frame_data: List[Dict[str, Any]] = field(default_factory=list)
    angle_gauges: List[AngleGauge] = field(default_factory=list)
    issue_markers: List[IssueMarker] = field(default_factory=list)
    summary: Optional[AnalysisSummary] = None
    overall_message: str = ""

    # Processing metadata
    processing_time_seconds: float = 0.0
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors and self.analysis is not None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["success"] = self.success
        return data


def detect_sport(
    video_path: str,
    pose_estimator=None,
    frames_to_check: Optional[int] = None,
    min_pose_score: Optional[float] = None,
    min_confidence: Optional[float] = None,
    settings: Optional[Settings] = None,
) -> SportClassification:
    """
    Classify a handful of evenly spaced frames and take the majority vote.

    Never raises: an estimator that cannot be loaded or an unreadable video
    yields an "unknown" classification.
    """
    settings = settings or get_settings()
    frames_to_check = frames_to_check or settings.sport_detection_frames
    min_pose_score = settings.min_pose_score if min_pose_score is None else min_pose_score
    min_confidence = (
        settings.classification_confidence_threshold if min_confidence is None else min_confidence
    )

    owns_estimator = pose_estimator is None
    try:
        if owns_estimator:
            pose_estimator = create_pose_estimator(settings)
    except Exception as e:
        logger.error(f"Sport detection error: {e}")
        return SportClassification(sport=SportType.UNKNOWN, reasoning=f"Pose estimator unavailable: {e}")

    classifier = SportClassifier(min_confidence=min_confidence)
    try:
        with FrameSampler(video_path) as sampler:
            for frame in sampler.sample(frames_to_check):
                try:
                    pose = pose_estimator.detect_pose(frame.image)
                    if pose is not None and pose.score > min_pose_score:
                        classifier.add_pose(pose)
                except Exception as e:
                    logger.warning(f"Frame detection failed at {frame.timestamp:.2f}s: {e}")
    except VideoReadError as e:
        logger.error(f"Sport detection error: {e}")
        return SportClassification(sport=SportType.UNKNOWN, reasoning=str(e))
    except Exception as e:
        logger.error(f"Sport detection error: {e}")
        return SportClassification(sport=SportType.UNKNOWN, reasoning=f"Sport detection failed: {e}")
    finally:
        if owns_estimator:
            pose_estimator.close()

    classification = classifier.classify()
    logger.info(f"Detected sport: {classification.sport} ({classification.reasoning})")
    return classification


def detect_sport_type(video_path: str, pose_estimator=None, **kwargs) -> str:
    """Sport of the video: "cycling", "running" or "unknown"."""
    return detect_sport(video_path, pose_estimator=pose_estimator, **kwargs).sport


class VideoProcessor:
    """
    Main video processing pipeline.

    PIPELINE STAGES:
    1. Video metadata
    2. Sport resolution
    3. Pose estimation + per-frame analysis
    4. Aggregation
    5. Recommendation enhancement
    6. Gauges, issue markers and summary
    """

    def __init__(
        self,
        sport: str = AUTO_SPORT,
        frames_to_analyze: Optional[int] = None,
        pose_estimator=None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize video processor.

        Args:
            sport: "cycling", "running" or "auto"
            frames_to_analyze: Frames to sample (default depends on the sport)
            pose_estimator: Object with detect_pose(frame); MoveNet is loaded when omitted
            settings: Application settings (cached settings when omitted)
        """
        if sport != AUTO_SPORT and sport not in SportType.all():
            raise ValueError(f"sport must be one of: {SportType.all() + [AUTO_SPORT]}")

        self.settings = settings or get_settings()
        self.sport = sport
        self.frames_to_analyze = frames_to_analyze
        self.pose_estimator = pose_estimator

    def frames_for(self, sport: str) -> int:
        if self.frames_to_analyze:
            return self.frames_to_analyze
        if sport == SportType.CYCLING:
            return self.settings.bike_fit_frames
        return self.settings.running_frames

    def process_video(self, video_path: str) -> ProcessingResult:
        """
        Analyze a video file.

        Args:
            video_path: Path to video file

        Returns:
            ProcessingResult; check ``errors`` / ``success``
        """
        start_time = datetime.now()
        result = ProcessingResult(requested_sport=self.sport)

        logger.info(f"Starting video processing: {video_path} (sport: {self.sport})")

        owns_estimator = self.pose_estimator is None
        estimator = self.pose_estimator

        try:
            if owns_estimator:
                estimator = create_pose_estimator(self.settings)

            # =========================================================
            # STAGE 1: Video metadata
            # =========================================================
            logger.info("Stage 1: Reading video metadata...")
            with FrameSampler(video_path) as sampler:
                metadata = sampler.metadata
                result.video_duration_seconds = metadata.duration_seconds
                result.video_fps = metadata.fps
                result.video_width = metadata.width
                result.video_height = metadata.height

                # =========================================================
                # STAGE 2: Sport resolution
                # =========================================================
                logger.info("Stage 2: Resolving sport...")
                sport = self._resolve_sport(video_path, estimator, result)

                # =========================================================
                # STAGE 3: Pose estimation + per-frame analysis
                # =========================================================
                frames = self.frames_for(sport)
                result.frames_requested = frames
                logger.info(f"Stage 3: Analyzing {frames} frames...")

                frame_analyses: List[FrameAnalysis] = []
                for frame in sampler.sample(frames):
                    result.frames_sampled += 1
                    try:
                        pose = estimator.detect_pose(frame.image)
                        analysis = self._analyze_pose(pose, sport)
                    except Exception as e:
                        logger.warning(f"Frame analysis failed at {frame.timestamp:.2f}s: {e}")
                        continue

                    if analysis is None:
                        logger.debug(f"No usable pose at {frame.timestamp:.2f}s")
                        continue
                    frame_analyses.append(
                        FrameAnalysis(frame.index, frame.timestamp, pose, analysis)
                    )

            self._aggregate(result, frame_analyses, sport)

        except VideoReadError as e:
            logger.error(f"Video read failed: {e}")
            result.errors.append(str(e))
        except Exception as e:
            logger.exception(f"Analysis error: {e}")
            result.errors.append(GENERIC_FAILURE_MESSAGE)
        finally:
            if owns_estimator and estimator is not None:
                estimator.close()

        result.processing_time_seconds = (datetime.now() - start_time).total_seconds()
        logger.info(
            f"Processing complete in {result.processing_time_seconds:.1f}s: "
            f"{result.frames_analyzed}/{result.frames_sampled} frames usable, "
            f"{len(result.recommendations)} recommendations"
        )
        return result

    def analyze_poses(
        self,
        poses: List[Optional[Pose]],
        sport: str,
        video_duration: float = 0.0,
    ) -> ProcessingResult:
        """
        Run stages 3-6 on poses that were already estimated, in temporal order.

        Timestamps are spread evenly over ``video_duration``.
        """
        if sport not in SportType.all():
            raise ValueError(f"sport must be one of: {SportType.all()}")

        result = ProcessingResult(
            sport=sport,
            requested_sport=sport,
            video_duration_seconds=video_duration,
            frames_requested=len(poses),
            frames_sampled=len(poses),
        )
        interval = video_duration / (len(poses) + 1) if poses else 0.0

        frame_analyses = []
        for index, pose in enumerate(poses):
            analysis = self._analyze_pose(pose, sport)
            if analysis is not None:
                frame_analyses.append(FrameAnalysis(index, (index + 1) * interval, pose, analysis))

        self._aggregate(result, frame_analyses, sport)
        return result

    def _resolve_sport(self, video_path: str, estimator, result: ProcessingResult) -> str:
        if self.sport != AUTO_SPORT:
            result.sport = self.sport
            return self.sport

        classification = detect_sport(
            video_path,
            pose_estimator=estimator,
            settings=self.settings,
        )
        result.detected_sport = classification.sport
        result.sport_votes = classification.votes

        sport = classification.sport
        if sport == SportType.UNKNOWN:
            sport = SportType.RUNNING
            result.warnings.append("Sport could not be detected; analyzing as running")
            logger.warning("Sport not detected, defaulting to running")

        result.sport = sport
        return sport

    def _analyze_pose(self, pose: Optional[Pose], sport: str) -> Optional[FormAnalysis]:
        if pose is None or pose.score <= self.settings.min_pose_score:
            return None
        return ANALYZERS[sport](pose, min_confidence=self.settings.analysis_confidence_threshold)

    def _aggregate(
        self,
        result: ProcessingResult,
        frame_analyses: List[FrameAnalysis],
        sport: str,
    ) -> None:
        result.sport = sport
        result.frame_analyses = frame_analyses
        result.frames_analyzed = len(frame_analyses)

        if not frame_analyses:
            logger.error("No usable frames in video")
            result.errors.append(NO_SUBJECT_MESSAGES[sport])
            return

        analyses = [fa.analysis for fa in frame_analyses]

        # =========================================================
        # STAGE 4: Aggregation
        # =========================================================
        logger.info(f"Stage 4: Aggregating {len(analyses)} frame analyses...")
        combined = combine_analyses(analyses)
        result.analysis = combined
        result.detailed_metrics = calculate_detailed_metrics(analyses)
        result.asymmetry = calculate_asymmetry(analyses)
        result.frame_data = create_frame_data(analyses)

        # =========================================================
        # STAGE 5: Recommendation enhancement
        # =========================================================
        logger.info("Stage 5: Enhancing recommendations...")
        result.recommendations = ENHANCERS[sport](combined)

        # =========================================================
        # STAGE 6: Presentation
        # =========================================================
        logger.info("Stage 6: Building report...")
        result.angle_gauges = create_angle_gauges(combined.angles, sport)
        result.issue_markers = create_issue_markers(
            result.recommendations,
            result.video_duration_seconds,
            result.frames_requested,
        )
        result.summary = generate_detailed_summary(
            result.recommendations,
            combined.angles,
            result.detailed_metrics,
            result.asymmetry,
            combined.overall,
            sport,
        )
        result.overall_message = get_overall_message(combined.overall, sport)
