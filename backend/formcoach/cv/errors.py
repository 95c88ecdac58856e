"""Exceptions raised by the form analysis pipeline."""


class FormAnalysisError(Exception):
    """Base class for pipeline errors."""


class VideoReadError(FormAnalysisError):
    """Video cannot be opened, or stopped being readable mid-analysis."""


class PoseEstimatorError(FormAnalysisError):
    """Pose model failed to load or to run."""


class EmptyAnalysisError(FormAnalysisError, ValueError):
    """Aggregation was asked to combine zero frame analyses."""
