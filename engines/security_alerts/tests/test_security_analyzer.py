"""
Tests for alert classification and the SecurityAnalyzer state machine.
"""

import pytest

from engines.security_alerts.analyzer import SecurityAnalyzer, classify
from engines.security_alerts.rules import AlertRules
from engines.security_alerts.types import (
    BoundingBox, Detection, SecurityAlertKind, SecurityAlertResult, TrackedDetection,
)

FRAME_W, FRAME_H = 640, 480


def _det(label, conf, x, y, w, h):
    return Detection(label=label, confidence=conf, bbox=BoundingBox(x, y, x + w, y + h))


def _knife(conf=0.9):
    return _det('knife', conf, 300, 100, 200, 60)


def _person(conf=0.9, x=50):
    return _det('person', conf, x, 150, 100, 200)


def _tracked(label, conf):
    return TrackedDetection(_det(label, conf, 0, 0, 100, 100), tracking_id=1, frame_count=2)


class TestSecurityAlertKind:
    def test_severity_values(self):
        assert SecurityAlertKind.NONE.severity == 0
        assert SecurityAlertKind.HIGH_CONFIDENCE_PERSON.severity == 1
        assert SecurityAlertKind.SUSPICIOUS_ITEMS.severity == 2
        assert SecurityAlertKind.VEHICLE_WITH_PERSON.severity == 3
        assert SecurityAlertKind.MASKED_PERSON.severity == 3
        assert SecurityAlertKind.MULTIPLE_INTRUDERS.severity == 4
        assert SecurityAlertKind.WEAPON_DETECTED.severity == 5

    def test_equal_severity_kinds_are_distinct(self):
        assert SecurityAlertKind.VEHICLE_WITH_PERSON is not SecurityAlertKind.MASKED_PERSON

    def test_result_to_dict(self):
        d = SecurityAlertResult().to_dict()
        assert d['kind'] == 'NONE'
        assert d['should_trigger'] is False
        assert 'reason' in d
        assert 'confidence' in d


class TestClassify:
    def test_empty_is_none(self):
        assert classify([]) is SecurityAlertKind.NONE

    def test_weapon_takes_precedence(self):
        dets = [_tracked('person', 0.9)] * 3 + [_tracked('knife', 0.75)]
        assert classify(dets) is SecurityAlertKind.WEAPON_DETECTED

    def test_low_confidence_weapon_ignored(self):
        assert classify([_tracked('knife', 0.7)]) is SecurityAlertKind.NONE

    def test_multiple_intruders(self):
        dets = [_tracked('person', 0.75)] * 3
        assert classify(dets) is SecurityAlertKind.MULTIPLE_INTRUDERS

    def test_two_people_not_intruders(self):
        dets = [_tracked('person', 0.75)] * 2
        assert classify(dets) is SecurityAlertKind.NONE

    def test_vehicle_with_person(self):
        dets = [_tracked('person', 0.7), _tracked('truck', 0.7)]
        assert classify(dets) is SecurityAlertKind.VEHICLE_WITH_PERSON

    def test_vehicle_needs_confident_person(self):
        dets = [_tracked('person', 0.6), _tracked('car', 0.9)]
        assert classify(dets) is SecurityAlertKind.NONE

    def test_suspicious_items(self):
        dets = [_tracked('person', 0.7), _tracked('backpack', 0.5), _tracked('handbag', 0.5)]
        assert classify(dets) is SecurityAlertKind.SUSPICIOUS_ITEMS

    def test_single_item_not_suspicious(self):
        dets = [_tracked('person', 0.7), _tracked('backpack', 0.9)]
        assert classify(dets) is SecurityAlertKind.NONE

    def test_high_confidence_person(self):
        assert classify([_tracked('person', 0.86)]) is SecurityAlertKind.HIGH_CONFIDENCE_PERSON
        assert classify([_tracked('person', 0.85)]) is SecurityAlertKind.NONE


class TestStabilityDebounce:
    def test_weapon_triggers_on_third_frame(self):
        analyzer = SecurityAnalyzer()
        results = [
            analyzer.process_frame([_knife()], FRAME_W, FRAME_H, t)
            for t in (0, 100, 200)
        ]
        assert [r.should_trigger for r in results] == [False, False, True]
        assert results[0].kind is SecurityAlertKind.WEAPON_DETECTED
        assert results[2].kind is SecurityAlertKind.WEAPON_DETECTED
        assert results[2].confidence == pytest.approx(0.9)

    @pytest.mark.parametrize('frames', [1, 2, 4])
    def test_configurable_stability(self, frames):
        analyzer = SecurityAnalyzer(AlertRules(alert_stability_frames=frames))
        triggers = [
            analyzer.process_frame([_knife()], FRAME_W, FRAME_H, i * 100).should_trigger
            for i in range(frames)
        ]
        assert triggers == [False] * (frames - 1) + [True]

    def test_pending_count_grows(self):
        analyzer = SecurityAnalyzer()
        analyzer.process_frame([_knife()], FRAME_W, FRAME_H, 0)
        analyzer.process_frame([_knife()], FRAME_W, FRAME_H, 100)
        state = analyzer.alert_state
        assert state.kind is SecurityAlertKind.WEAPON_DETECTED
        assert state.consecutive_count == 2
        assert state.first_detected == 0
        assert state.last_detected == 100

    def test_none_frame_clears_state(self):
        analyzer = SecurityAnalyzer()
        analyzer.process_frame([_knife()], FRAME_W, FRAME_H, 0)
        analyzer.process_frame([_knife()], FRAME_W, FRAME_H, 100)
        cleared = analyzer.process_frame([], FRAME_W, FRAME_H, 200)
        assert cleared.kind is SecurityAlertKind.NONE
        assert analyzer.alert_state is None

        triggers = [
            analyzer.process_frame([_knife()], FRAME_W, FRAME_H, t).should_trigger
            for t in (300, 400, 500)
        ]
        assert triggers == [False, False, True]

    def test_kind_change_restarts_count(self):
        analyzer = SecurityAnalyzer()
        analyzer.process_frame([_knife()], FRAME_W, FRAME_H, 0)
        analyzer.process_frame([_knife()], FRAME_W, FRAME_H, 100)
        crowd = [_person(x=0), _person(x=150), _person(x=300)]
        result = analyzer.process_frame(crowd, FRAME_W, FRAME_H, 200)
        assert result.kind is SecurityAlertKind.MULTIPLE_INTRUDERS
        assert result.should_trigger is False
        assert analyzer.alert_state.consecutive_count == 1

    def test_cooled_down_kind_breaks_pending_run(self):
        analyzer = SecurityAnalyzer()
        for t in (0, 100, 200):
            analyzer.process_frame([_knife()], FRAME_W, FRAME_H, t)
        analyzer.process_frame([_person()], FRAME_W, FRAME_H, 300)
        analyzer.process_frame([_person()], FRAME_W, FRAME_H, 400)
        assert analyzer.alert_state.consecutive_count == 2

        # Knife reappears while WEAPON is still cooling down
        suppressed = analyzer.process_frame([_person(), _knife()], FRAME_W, FRAME_H, 500)
        assert 'cooldown' in suppressed.reason
        assert analyzer.alert_state is None

        results = [
            analyzer.process_frame([_person()], FRAME_W, FRAME_H, t)
            for t in (600, 700, 800)
        ]
        assert [r.should_trigger for r in results] == [False, False, True]
        assert results[2].kind is SecurityAlertKind.HIGH_CONFIDENCE_PERSON

    def test_unvalidated_kind_breaks_pending_run(self):
        # Low-severity kinds can never gather enough corroboration
        analyzer = SecurityAnalyzer(AlertRules(corroboration_required=4))
        analyzer.process_frame([_knife()], FRAME_W, FRAME_H, 0)
        analyzer.process_frame([_knife()], FRAME_W, FRAME_H, 100)
        assert analyzer.alert_state.consecutive_count == 2

        rejected = analyzer.process_frame([_person()], FRAME_W, FRAME_H, 200)
        assert 'not validated' in rejected.reason
        assert analyzer.alert_state is None

        resumed = analyzer.process_frame([_knife()], FRAME_W, FRAME_H, 300)
        assert resumed.should_trigger is False
        assert analyzer.alert_state.consecutive_count == 1

    def test_low_severity_needs_corroboration(self):
        analyzer = SecurityAnalyzer()
        results = [
            analyzer.process_frame([_person()], FRAME_W, FRAME_H, i * 100)
            for i in range(5)
        ]
        # Frames 1-2 lack corroborating history; frames 3-5 build up the count
        assert results[0].kind is SecurityAlertKind.NONE
        assert results[1].kind is SecurityAlertKind.NONE
        assert results[2].kind is SecurityAlertKind.HIGH_CONFIDENCE_PERSON
        assert [r.should_trigger for r in results] == [False, False, False, False, True]


class TestCooldown:
    def test_same_kind_suppressed_within_cooldown(self):
        analyzer = SecurityAnalyzer()
        for t in (0, 100, 200):
            result = analyzer.process_frame([_knife()], FRAME_W, FRAME_H, t)
        assert result.should_trigger is True

        suppressed = analyzer.process_frame([_knife()], FRAME_W, FRAME_H, 2000)
        assert suppressed.should_trigger is False
        assert suppressed.kind is SecurityAlertKind.NONE
        assert 'cooldown' in suppressed.reason

    def test_retrigger_after_cooldown(self):
        analyzer = SecurityAnalyzer()
        for t in (0, 100, 200):
            analyzer.process_frame([_knife()], FRAME_W, FRAME_H, t)
        analyzer.process_frame([_knife()], FRAME_W, FRAME_H, 2000)

        after = [
            analyzer.process_frame([_knife()], FRAME_W, FRAME_H, t)
            for t in (6000, 6100, 6200)
        ]
        assert after[0].kind is SecurityAlertKind.WEAPON_DETECTED
        assert [r.should_trigger for r in after] == [False, False, True]

    def test_cooldown_is_per_kind(self):
        analyzer = SecurityAnalyzer()
        for t in (0, 100, 200):
            analyzer.process_frame([_knife()], FRAME_W, FRAME_H, t)
        crowd = [_person(x=0), _person(x=150), _person(x=300)]
        results = [
            analyzer.process_frame(crowd, FRAME_W, FRAME_H, t)
            for t in (300, 400, 500)
        ]
        assert [r.should_trigger for r in results] == [False, False, True]
        assert results[2].kind is SecurityAlertKind.MULTIPLE_INTRUDERS


class TestSecurityAnalyzer:
    def test_empty_frame(self):
        result = SecurityAnalyzer().process_frame([], FRAME_W, FRAME_H, 0)
        assert result.kind is SecurityAlertKind.NONE
        assert result.should_trigger is False
        assert result.tracked == []

    def test_implausible_boxes_never_alert(self):
        analyzer = SecurityAnalyzer()
        square_knife = _det('knife', 0.99, 100, 100, 100, 100)
        for t in range(0, 1000, 100):
            result = analyzer.process_frame([square_knife], FRAME_W, FRAME_H, t)
            assert result.kind is SecurityAlertKind.NONE

    def test_stable_detections_preferred(self):
        analyzer = SecurityAnalyzer()
        analyzer.process_frame([_person()], FRAME_W, FRAME_H, 0)
        # A knife flickering in on frame 2 is ignored while the person track is stable
        result = analyzer.process_frame([_person(), _knife()], FRAME_W, FRAME_H, 100)
        assert result.kind is not SecurityAlertKind.WEAPON_DETECTED
        assert list(analyzer.history)[-1].classified_alert is SecurityAlertKind.HIGH_CONFIDENCE_PERSON

    def test_tracked_detections_reported(self):
        analyzer = SecurityAnalyzer()
        analyzer.process_frame([_person()], FRAME_W, FRAME_H, 0)
        result = analyzer.process_frame([_person()], FRAME_W, FRAME_H, 100)
        assert len(result.tracked) == 1
        assert result.tracked[0].tracking_id == 1
        assert result.tracked[0].frame_count == 2

    def test_history_bounded(self):
        analyzer = SecurityAnalyzer()
        for t in range(0, 2000, 100):
            analyzer.process_frame([_person()], FRAME_W, FRAME_H, t)
        assert len(analyzer.history) == 10

    def test_reset(self):
        analyzer = SecurityAnalyzer()
        for t in (0, 100, 200):
            analyzer.process_frame([_knife()], FRAME_W, FRAME_H, t)
        analyzer.reset()
        stats = analyzer.get_stats()
        assert stats['tracker']['active_tracks'] == 0
        assert stats['history_size'] == 0
        assert stats['pending_alert'] is None
        assert stats['cooldowns'] == {}

        # Cooldown cleared: a fresh run triggers again right away
        triggers = [
            analyzer.process_frame([_knife()], FRAME_W, FRAME_H, t).should_trigger
            for t in (300, 400, 500)
        ]
        assert triggers == [False, False, True]
