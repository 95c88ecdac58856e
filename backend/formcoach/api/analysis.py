"""Video upload and form analysis API endpoints."""

import logging
import uuid
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, HTTPException, UploadFile, File, Form, status
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

from formcoach.config import get_settings
from formcoach.cv.sport_classifier import SportClassification
from formcoach.cv.video_processor import AUTO_SPORT, ProcessingResult, VideoProcessor, detect_sport
from formcoach.schemas.analysis import AnalysisRequest, AnalysisResponse, SportDetectionResponse

router = APIRouter()
settings = get_settings()
logger = logging.getLogger(__name__)


ALLOWED_EXTENSIONS = {".mp4", ".mov", ".avi", ".mkv", ".webm"}
MAX_FILE_SIZE = settings.max_video_size_mb * 1024 * 1024  # Convert to bytes


def validate_video_file(filename: Optional[str], file_size: int) -> None:
    """Validate video file extension and size."""
    ext = Path(filename or "").suffix.lower()

    if ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid file type. Allowed: {sorted(ALLOWED_EXTENSIONS)}"
        )

    if file_size == 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Empty file"
        )

    if file_size > MAX_FILE_SIZE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File too large. Maximum: {settings.max_video_size_mb}MB"
        )


async def save_upload(file: UploadFile) -> Path:
    """Validate the upload and write it to a uniquely named scratch file."""
    contents = await file.read()
    validate_video_file(file.filename, len(contents))

    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)

    file_path = upload_dir / f"{uuid.uuid4()}{Path(file.filename).suffix.lower()}"
    with open(file_path, "wb") as f:
        f.write(contents)

    return file_path


def run_analysis(video_path: str, sport: str, frames: Optional[int]) -> ProcessingResult:
    processor = VideoProcessor(sport=sport, frames_to_analyze=frames)
    return processor.process_video(video_path)


def run_sport_detection(video_path: str) -> SportClassification:
    return detect_sport(video_path)


@router.post("", response_model=AnalysisResponse)
async def analyze_video(
    file: UploadFile = File(...),
    sport: str = Form(AUTO_SPORT),
    frames: Optional[int] = Form(None),
):
    """
    Analyze cycling or running form in an uploaded side-view video.

    The video is processed immediately and deleted afterwards; nothing is stored.
    """
    try:
        params = AnalysisRequest(sport=sport, frames=frames)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=e.errors()[0]["msg"]
        )

    file_path = await save_upload(file)
    try:
        result = await run_in_threadpool(run_analysis, str(file_path), params.sport, params.frames)
    finally:
        file_path.unlink(missing_ok=True)

    if not result.success:
        logger.info(f"Analysis of {file.filename} failed: {result.errors}")
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=result.errors[0] if result.errors else "Analysis produced no result"
        )

    return AnalysisResponse(**result.to_dict())


@router.post("/detect-sport", response_model=SportDetectionResponse)
async def detect_video_sport(file: UploadFile = File(...)):
    """Guess whether the uploaded video shows cycling or running."""
    file_path = await save_upload(file)
    try:
        classification = await run_in_threadpool(run_sport_detection, str(file_path))
    finally:
        file_path.unlink(missing_ok=True)

    return SportDetectionResponse.model_validate(classification)
