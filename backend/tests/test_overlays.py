import pytest

from formcoach.cv.form_analysis import AngleData, FormAnalysis, OverallRating, Recommendation
from formcoach.cv.overlays import (
    create_angle_gauge,
    create_angle_gauges,
    create_frame_data,
    create_issue_markers,
    get_overall_message,
    interpolate_pose,
)
from formcoach.cv.pose import Keypoint, Pose
from formcoach.cv.recommendation_enhancer import Severity
from formcoach.cv.sport_classifier import SportType


def _rec(area, severity):
    return Recommendation(area=area, message=f"{area} issue", type="warning", severity=severity)


class TestIssueMarkers:
    def test_only_serious_issues_in_order(self):
        markers = create_issue_markers(
            [
                _rec("Knee Angle", Severity.CRITICAL),
                _rec("Hip Angle", Severity.MINOR),
                _rec("Back Angle", Severity.MODERATE),
            ],
            video_duration=10.0,
            frames_to_analyze=4,
        )
        assert [m.area for m in markers] == ["Knee Angle", "Back Angle"]
        assert [m.time for m in markers] == pytest.approx([2.0, 4.0])
        assert markers[1].severity == Severity.MODERATE

    def test_no_issues(self):
        assert create_issue_markers([_rec("Hip Angle", Severity.MINOR)], 10.0, 8) == []


class TestAngleGauges:
    def test_inside_range(self):
        gauge = create_angle_gauge(150, 140, 160, "Knee Angle")
        assert gauge.percentage == 50
        assert gauge.status == "good"

    def test_clamped(self):
        assert create_angle_gauge(175, 140, 160, "Knee Angle").percentage == 100
        low = create_angle_gauge(130, 140, 160, "Knee Angle")
        assert low.percentage == 0
        assert low.status == "warning"

    def test_cycling_gauges_skip_missing_angles(self):
        gauges = create_angle_gauges(AngleData(knee=150, elbow=175, back=45), SportType.CYCLING)
        assert [g.label for g in gauges] == ["Knee Angle", "Elbow Angle"]

    def test_running_gauges(self):
        gauges = create_angle_gauges(AngleData(body_lean=8, hip_extension=170), SportType.RUNNING)
        assert [g.label for g in gauges] == ["Body Lean", "Hip Extension"]
        assert gauges[1].percentage == 50


class TestFrameData:
    def test_rows(self):
        rows = create_frame_data([
            FormAnalysis(angles=AngleData(knee=150, hip=55)),
            FormAnalysis(angles=AngleData(knee=148)),
        ])
        assert rows == [
            {"frame": 1, "knee": 150, "hip": 55},
            {"frame": 2, "knee": 148},
        ]


class TestOverallMessage:
    def test_messages(self):
        assert get_overall_message(OverallRating.EXCELLENT, SportType.CYCLING) == "Excellent bike fit!"
        assert get_overall_message(
            OverallRating.NEEDS_IMPROVEMENT, SportType.RUNNING
        ) == "Several areas for improvement identified"
        assert get_overall_message("bogus", SportType.RUNNING) == "Analysis complete"


class TestInterpolatePose:
    def _poses(self):
        a = Pose(keypoints=[Keypoint("nose", 0, 0, 0.4), Keypoint("left_hip", 5, 5, 0.9)], score=0.4)
        b = Pose(keypoints=[Keypoint("nose", 10, 20, 0.8)], score=0.8)
        return a, b

    def test_midway(self):
        a, b = self._poses()
        mid = interpolate_pose(a, b, 0.5)
        nose = mid.get_keypoint("nose")
        assert (nose.x, nose.y) == pytest.approx((5, 10))
        assert nose.score == pytest.approx(0.6)
        assert mid.score == pytest.approx(0.6)

    def test_missing_keypoint_kept(self):
        a, b = self._poses()
        assert interpolate_pose(a, b, 0.5).get_keypoint("left_hip") == a.get_keypoint("left_hip")

    def test_t_is_clamped(self):
        a, b = self._poses()
        assert interpolate_pose(a, b, 2.0).get_keypoint("nose").x == pytest.approx(10)
        assert interpolate_pose(a, b, -1.0).get_keypoint("nose").x == pytest.approx(0)

    def test_no_next_pose(self):
        a, _ = self._poses()
        assert interpolate_pose(a, None, 0.5) is a
