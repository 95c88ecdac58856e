"""Analysis schemas."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from formcoach.cv.sport_classifier import SportType
from formcoach.cv.video_processor import AUTO_SPORT


class AnalysisRequest(BaseModel):
    """Form fields accompanying a video upload."""
    sport: str = Field(AUTO_SPORT, description="Sport: cycling, running, or auto (auto-detect)")
    frames: Optional[int] = Field(None, ge=1, le=120, description="Frames to sample")

    @field_validator("sport")
    @classmethod
    def validate_sport(cls, v: str) -> str:
        valid = SportType.all() + [AUTO_SPORT]
        if v not in valid:
            raise ValueError(f"sport must be one of: {valid}")
        return v


class KeypointResponse(BaseModel):
    name: str
    x: float
    y: float
    score: float


class PoseResponse(BaseModel):
    keypoints: List[KeypointResponse]
    score: float


class AngleDataResponse(BaseModel):
    """Rounded angles in degrees; null when not measured."""
    knee: Optional[int] = None
    hip: Optional[int] = None
    back: Optional[int] = None
    elbow: Optional[int] = None
    body_lean: Optional[int] = None
    knee_lift: Optional[int] = None
    hip_extension: Optional[int] = None
    arm_swing: Optional[int] = None


class SideAnglesResponse(BaseModel):
    knee_angle: Optional[int] = None
    hip_angle: Optional[int] = None
    arm_angle: Optional[int] = None


class SidesResponse(BaseModel):
    left: SideAnglesResponse
    right: SideAnglesResponse


class RecommendationResponse(BaseModel):
    area: str
    message: str
    type: str
    angle: Optional[float] = None
    severity: Optional[str] = None
    impact: Optional[str] = None
    drills: Optional[List[str]] = None
    priority_score: Optional[int] = None


class FormAnalysisResponse(BaseModel):
    angles: AngleDataResponse
    recommendations: List[RecommendationResponse]
    overall: str
    sides: Optional[SidesResponse] = None
    confidence: Optional[float] = None


class FrameAnalysisResponse(BaseModel):
    frame_index: int
    timestamp: float
    pose: PoseResponse
    analysis: FormAnalysisResponse


class AngleMetricsResponse(BaseModel):
    min: int
    max: int
    avg: int
    std_dev: float
    range: int
    consistency: int
    values: List[int]


class AsymmetryResponse(BaseModel):
    left: int
    right: int
    difference: int
    percent_diff: float
    status: str


class AngleGaugeResponse(BaseModel):
    label: str
    angle: float
    percentage: float
    status: str
    optimal_min: float
    optimal_max: float


class IssueMarkerResponse(BaseModel):
    """
    Timeline overlay marker for video playback.

    Severity is "critical" or "moderate".
    """
    time: float
    area: str
    message: str
    severity: str


class SummaryResponse(BaseModel):
    headline: str
    strengths: List[str]
    improvements: List[str]
    top_priority: str


class AnalysisResponse(BaseModel):
    """Complete result of one video analysis."""
    success: bool
    sport: str
    requested_sport: str
    detected_sport: Optional[str] = None
    sport_votes: Dict[str, int] = {}

    video_duration_seconds: float
    video_fps: float
    video_width: int
    video_height: int

    frames_requested: int
    frames_sampled: int
    frames_analyzed: int

    analysis: Optional[FormAnalysisResponse] = None
    frame_analyses: List[FrameAnalysisResponse] = []
    recommendations: List[RecommendationResponse] = []
    detailed_metrics: Optional[Dict[str, AngleMetricsResponse]] = None
    asymmetry: Optional[Dict[str, AsymmetryResponse]] = None
    frame_data: List[Dict[str, Any]] = []
    angle_gauges: List[AngleGaugeResponse] = []
    issue_markers: List[IssueMarkerResponse] = []
    summary: Optional[SummaryResponse] = None
    overall_message: str = ""

    processing_time_seconds: float
    warnings: List[str] = []
    errors: List[str] = []


class SportDetectionResponse(BaseModel):
    sport: str
    votes: Dict[str, int] = {}
    frames_used: int = 0
    reasoning: str = ""

    class Config:
        from_attributes = True
