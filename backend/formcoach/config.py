"""Application configuration."""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "FormCoach"
    debug: bool = False
    api_prefix: str = "/api"
    cors_origins: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Storage (uploads are removed once analyzed)
    upload_dir: str = "./uploads"
    max_video_size_mb: int = 500

    # Pose Estimation
    pose_model_url: str = "https://tfhub.dev/google/movenet/singlepose/lightning/4"
    pose_input_size: int = 192  # 192 for Lightning, 256 for Thunder

    # Confidence gates
    classification_confidence_threshold: float = 0.2  # sport classifier keypoints
    analysis_confidence_threshold: float = 0.3  # analyzer keypoints
    min_pose_score: float = 0.3  # whole-pose score needed to use a frame

    # Frame sampling
    sport_detection_frames: int = 5
    bike_fit_frames: int = 8
    running_frames: int = 24

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
