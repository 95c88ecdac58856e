from formcoach.cv.pose import Keypoint, Pose
from formcoach.cv.sport_classifier import (
    SportClassifier,
    SportFeatures,
    SportScores,
    SportType,
    classify_sport,
    vote,
)


class TestClassifyPose:
    def test_running_stride(self, running_stride_pose):
        assert classify_sport(running_stride_pose) == SportType.RUNNING

    def test_cycling_position(self, cycling_position_pose):
        assert classify_sport(cycling_position_pose) == SportType.CYCLING

    def test_none_pose(self):
        assert classify_sport(None) is None

    def test_missing_hips_cannot_be_judged(self, make_pose):
        pose = make_pose({"left_knee": (100, 250), "right_knee": (110, 280)})
        assert classify_sport(pose) is None

    def test_low_confidence_knee_rejected(self, running_stride_pose):
        keypoints = [
            Keypoint(kp.name, kp.x, kp.y, 0.1) if kp.name == "left_knee" else kp
            for kp in running_stride_pose.keypoints
        ]
        assert classify_sport(Pose(keypoints=keypoints, score=0.9)) is None

    def test_required_keypoint_at_threshold_accepted(self, running_stride_pose):
        keypoints = [
            Keypoint(kp.name, kp.x, kp.y, 0.2) if kp.name.endswith(("hip", "knee")) else kp
            for kp in running_stride_pose.keypoints
        ]
        assert classify_sport(Pose(keypoints=keypoints, score=0.9)) == SportType.RUNNING


class TestScoring:
    def test_running_features(self, running_stride_pose):
        classifier = SportClassifier()
        features = classifier.extract_features(running_stride_pose)
        assert features.hip_knee_vertical_distance == 115
        assert features.knee_variation == 30
        assert features.has_ankles and features.ankle_variation == 40
        assert features.has_shoulders and not features.is_very_horizontal

        scores = classifier.score(features)
        assert scores.running == 13
        assert scores.cycling == 5

    def test_cycling_features(self, cycling_position_pose):
        classifier = SportClassifier()
        features = classifier.extract_features(cycling_position_pose)
        assert features.is_very_horizontal
        scores = classifier.score(features)
        assert scores.cycling == 13
        assert scores.running == 0

    def test_large_alternation_penalizes_cycling(self):
        features = SportFeatures(hip_knee_vertical_distance=60, knee_variation=70)
        scores = SportClassifier().score(features)
        # knees-level bonus does not apply; penalty cannot go below zero
        assert scores.cycling == 0
        assert any("alternation" in m for m in scores.matched)


class TestDecide:
    def test_decisive_running(self):
        assert SportClassifier.decide(SportScores(cycling=10, running=6)) == SportType.RUNNING

    def test_decisive_cycling(self):
        assert SportClassifier.decide(SportScores(cycling=7, running=5)) == SportType.CYCLING

    def test_plain_majority(self):
        assert SportClassifier.decide(SportScores(cycling=5, running=4)) == SportType.CYCLING
        assert SportClassifier.decide(SportScores(cycling=2, running=4)) == SportType.RUNNING

    def test_uncertain_leans_running(self):
        assert SportClassifier.decide(SportScores(cycling=2, running=2)) == SportType.RUNNING
        assert SportClassifier.decide(SportScores(cycling=0, running=0)) == SportType.RUNNING

    def test_uncertain_cycling_is_none(self):
        assert SportClassifier.decide(SportScores(cycling=3, running=1)) is None


class TestVote:
    def test_majority(self):
        result = vote([SportType.CYCLING, SportType.CYCLING, SportType.RUNNING])
        assert result.sport == SportType.CYCLING
        assert result.votes == {SportType.CYCLING: 2, SportType.RUNNING: 1}
        assert result.frames_used == 3

    def test_tie_goes_to_running(self):
        assert vote([SportType.CYCLING, SportType.RUNNING]).sport == SportType.RUNNING

    def test_no_detections(self):
        result = vote([])
        assert result.sport == SportType.UNKNOWN
        assert result.frames_used == 0

    def test_accumulating_classifier(self, running_stride_pose, cycling_position_pose):
        classifier = SportClassifier()
        classifier.add_pose(cycling_position_pose)
        classifier.add_pose(cycling_position_pose)
        classifier.add_pose(running_stride_pose)
        classifier.add_pose(None)
        assert classifier.detections == [SportType.CYCLING, SportType.CYCLING, SportType.RUNNING]
        assert classifier.classify().sport == SportType.CYCLING
