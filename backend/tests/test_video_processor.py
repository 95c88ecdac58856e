import json

import pytest

from formcoach.cv.errors import PoseEstimatorError, VideoReadError
from formcoach.cv.sport_classifier import SportType
from formcoach.cv.video_processor import (
    GENERIC_FAILURE_MESSAGE,
    NO_SUBJECT_MESSAGES,
    VideoProcessor,
    detect_sport,
    detect_sport_type,
)


class _UnreadableSampler:
    def __init__(self, video_path):
        self.video_path = video_path

    def __enter__(self):
        raise VideoReadError(f"Failed to open video: {self.video_path}")

    def __exit__(self, exc_type, exc, tb):
        return None


class _BrokenSampler(_UnreadableSampler):
    def __enter__(self):
        raise RuntimeError("decoder crashed")


class TestProcessVideo:
    def test_cycling_video(self, fake_sampler, fake_estimator_cls, make_bike_pose, settings):
        estimator = fake_estimator_cls([make_bike_pose()])
        processor = VideoProcessor(sport="cycling", pose_estimator=estimator, settings=settings)

        result = processor.process_video("ride.mp4")

        assert result.success
        assert result.errors == []
        assert result.sport == SportType.CYCLING
        assert result.detected_sport is None
        assert result.frames_requested == settings.bike_fit_frames
        assert result.frames_sampled == settings.bike_fit_frames
        assert result.frames_analyzed == settings.bike_fit_frames
        assert result.video_duration_seconds == 10.0
        assert result.video_width == 640
        assert result.analysis.angles.knee == 150
        assert result.detailed_metrics["knee"].consistency == 100
        assert [g.label for g in result.angle_gauges] == ["Knee Angle", "Hip Angle"]
        assert result.overall_message == "Excellent bike fit!"
        assert result.summary.headline == "Good form overall - minor optimizations available"
        assert not estimator.closed

    def test_unusable_frames_are_dropped(self, fake_sampler, fake_estimator_cls, make_bike_pose, settings):
        estimator = fake_estimator_cls([
            make_bike_pose(),
            RuntimeError("inference failed"),
            None,
            make_bike_pose(score=0.2),
        ])
        processor = VideoProcessor(sport="cycling", pose_estimator=estimator, settings=settings)

        result = processor.process_video("ride.mp4")

        assert result.success
        assert result.frames_sampled == 8
        assert result.frames_analyzed == 2
        assert [fa.frame_index for fa in result.frame_analyses] == [0, 4]
        assert len(result.frame_data) == 2

    def test_no_rider(self, fake_sampler, fake_estimator_cls, make_bike_pose, settings):
        estimator = fake_estimator_cls([make_bike_pose(score=0.1)])
        processor = VideoProcessor(sport="cycling", pose_estimator=estimator, settings=settings)

        result = processor.process_video("ride.mp4")

        assert not result.success
        assert result.analysis is None
        assert result.errors == [NO_SUBJECT_MESSAGES[SportType.CYCLING]]

    def test_no_runner(self, fake_sampler, fake_estimator_cls, settings):
        processor = VideoProcessor(
            sport="running", pose_estimator=fake_estimator_cls([None]), settings=settings
        )
        result = processor.process_video("run.mp4")
        assert result.errors == [NO_SUBJECT_MESSAGES[SportType.RUNNING]]

    def test_auto_detects_running(self, fake_sampler, fake_estimator_cls, running_stride_pose, settings):
        estimator = fake_estimator_cls([running_stride_pose])
        processor = VideoProcessor(pose_estimator=estimator, settings=settings)

        result = processor.process_video("run.mp4")

        assert result.success
        assert result.requested_sport == "auto"
        assert result.detected_sport == SportType.RUNNING
        assert result.sport == SportType.RUNNING
        assert result.sport_votes == {SportType.RUNNING: settings.sport_detection_frames}
        assert result.frames_analyzed == settings.running_frames
        assert estimator.calls == settings.sport_detection_frames + settings.running_frames
        assert result.analysis.sides is not None

    def test_auto_detects_cycling(self, fake_sampler, fake_estimator_cls, cycling_position_pose, settings):
        processor = VideoProcessor(
            pose_estimator=fake_estimator_cls([cycling_position_pose]),
            frames_to_analyze=3,
            settings=settings,
        )
        result = processor.process_video("ride.mp4")
        assert result.sport == SportType.CYCLING
        assert result.frames_requested == 3

    def test_undetected_sport_falls_back_to_running(self, fake_sampler, fake_estimator_cls, settings):
        processor = VideoProcessor(pose_estimator=fake_estimator_cls([None]), settings=settings)

        result = processor.process_video("mystery.mp4")

        assert result.detected_sport == SportType.UNKNOWN
        assert result.sport == SportType.RUNNING
        assert result.warnings == ["Sport could not be detected; analyzing as running"]
        assert result.errors == [NO_SUBJECT_MESSAGES[SportType.RUNNING]]

    def test_unreadable_video(self, monkeypatch, fake_estimator_cls, settings):
        monkeypatch.setattr("formcoach.cv.video_processor.FrameSampler", _UnreadableSampler)
        processor = VideoProcessor(
            sport="cycling", pose_estimator=fake_estimator_cls([None]), settings=settings
        )

        result = processor.process_video("missing.mp4")

        assert not result.success
        assert result.errors == ["Failed to open video: missing.mp4"]

    def test_unexpected_error_is_reported_generically(self, monkeypatch, fake_estimator_cls, settings):
        monkeypatch.setattr("formcoach.cv.video_processor.FrameSampler", _BrokenSampler)
        processor = VideoProcessor(
            sport="running", pose_estimator=fake_estimator_cls([None]), settings=settings
        )
        result = processor.process_video("broken.mp4")
        assert result.errors == [GENERIC_FAILURE_MESSAGE]

    def test_owned_estimator_is_closed(self, monkeypatch, fake_sampler, fake_estimator_cls,
                                       make_bike_pose, settings):
        estimator = fake_estimator_cls([make_bike_pose()])
        monkeypatch.setattr(
            "formcoach.cv.video_processor.create_pose_estimator", lambda settings=None: estimator
        )

        result = VideoProcessor(sport="cycling", settings=settings).process_video("ride.mp4")

        assert result.success
        assert estimator.closed

    def test_result_is_json_serializable(self, fake_sampler, fake_estimator_cls, make_running_pose, settings):
        processor = VideoProcessor(
            sport="running", pose_estimator=fake_estimator_cls([make_running_pose()]), settings=settings
        )
        data = processor.process_video("run.mp4").to_dict()

        assert data["success"] is True
        assert data["analysis"]["angles"]["knee_lift"] == 125
        assert data["asymmetry"]["knee_angle"]["status"] == "minor"
        json.dumps(data)


class TestAnalyzePoses:
    def test_precomputed_poses(self, make_bike_pose, settings):
        processor = VideoProcessor(settings=settings)
        result = processor.analyze_poses(
            [make_bike_pose(knee=148), None, make_bike_pose(knee=152)],
            SportType.CYCLING,
            video_duration=8.0,
        )

        assert result.success
        assert result.frames_sampled == 3
        assert result.frames_analyzed == 2
        assert [fa.timestamp for fa in result.frame_analyses] == pytest.approx([2.0, 6.0])
        assert result.analysis.angles.knee == 150
        assert result.detailed_metrics["knee"].range == 4

    def test_requires_concrete_sport(self, settings):
        with pytest.raises(ValueError):
            VideoProcessor(settings=settings).analyze_poses([], "auto")

    def test_no_poses(self, settings):
        result = VideoProcessor(settings=settings).analyze_poses([], SportType.RUNNING)
        assert result.errors == [NO_SUBJECT_MESSAGES[SportType.RUNNING]]


class TestProcessorSetup:
    def test_invalid_sport(self, settings):
        with pytest.raises(ValueError):
            VideoProcessor(sport="swimming", settings=settings)

    def test_frame_defaults(self, settings):
        processor = VideoProcessor(settings=settings)
        assert processor.frames_for(SportType.CYCLING) == settings.bike_fit_frames
        assert processor.frames_for(SportType.RUNNING) == settings.running_frames
        assert VideoProcessor(frames_to_analyze=3, settings=settings).frames_for(SportType.CYCLING) == 3


class TestDetectSport:
    def test_majority_vote(self, fake_sampler, fake_estimator_cls, running_stride_pose,
                           cycling_position_pose, settings):
        estimator = fake_estimator_cls([cycling_position_pose, cycling_position_pose, running_stride_pose])
        result = detect_sport("clip.mp4", pose_estimator=estimator, frames_to_check=3, settings=settings)
        assert result.sport == SportType.CYCLING
        assert result.frames_used == 3

    def test_estimator_unavailable(self, monkeypatch, settings):
        def fail(settings=None):
            raise PoseEstimatorError("no model")

        monkeypatch.setattr("formcoach.cv.video_processor.create_pose_estimator", fail)
        assert detect_sport_type("clip.mp4", settings=settings) == SportType.UNKNOWN

    def test_unreadable_video(self, monkeypatch, fake_estimator_cls, settings):
        monkeypatch.setattr("formcoach.cv.video_processor.FrameSampler", _UnreadableSampler)
        result = detect_sport("missing.mp4", pose_estimator=fake_estimator_cls([None]), settings=settings)
        assert result.sport == SportType.UNKNOWN
        assert "missing.mp4" in result.reasoning

    def test_sampler_failure_reports_unknown(self, monkeypatch, fake_estimator_cls, settings):
        monkeypatch.setattr("formcoach.cv.video_processor.FrameSampler", _BrokenSampler)
        estimator = fake_estimator_cls([None])

        result = detect_sport("clip.mp4", pose_estimator=estimator, settings=settings)

        assert result.sport == SportType.UNKNOWN
        assert "decoder crashed" in result.reasoning
        assert detect_sport_type("clip.mp4", pose_estimator=estimator, settings=settings) == SportType.UNKNOWN

