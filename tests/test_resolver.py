import pytest

from trip_linking.classifier import TripLinkDecision
from trip_linking.prompt import TripCandidate
from trip_linking.resolver import clamp_confidence, resolve_decision

TRIPS = {
    "T1": TripCandidate(id="T1", name="Tokyo", destination="Japan", start_date="2026-04-01", end_date="2026-04-10"),
}


def _decision(decision="link", trip_id="T1", confidence=0.9):
    return TripLinkDecision("t1", decision, trip_id, confidence)


@pytest.mark.parametrize(
    "decision, confidence, expected",
    [
        ("link", 0.95, "linked"),
        ("link", 0.8, "linked"),
        ("link", 0.79, "suggested"),
        ("link", 0.6, "suggested"),
        ("link", 0.5, "skipped"),
        ("suggest", 0.3, "suggested"),
        ("suggest", 0.99, "suggested"),
        ("skip", 0.99, "skipped"),
    ],
)
def test_thresholds(decision, confidence, expected):
    assert resolve_decision(_decision(decision, confidence=confidence), TRIPS).status == expected


def test_linked_keeps_trip_and_confidence():
    resolution = resolve_decision(_decision(confidence=0.95), TRIPS)
    assert resolution.trip is TRIPS["T1"]
    assert resolution.confidence == 0.95
    assert resolution.error is None


@pytest.mark.parametrize("raw, clamped", [(-0.3, 0.0), (1.4, 1.0), (0.42, 0.42)])
def test_clamp(raw, clamped):
    assert clamp_confidence(raw) == clamped


def test_out_of_range_confidence_is_clamped_before_thresholds():
    assert resolve_decision(_decision("link", confidence=1.4), TRIPS).confidence == 1.0
    low = resolve_decision(_decision("link", confidence=-0.3), TRIPS)
    assert low.status == "skipped"


def test_missing_decision_or_trip_id_skips():
    assert resolve_decision(None, TRIPS).status == "skipped"
    assert resolve_decision(_decision(trip_id=None), TRIPS).status == "skipped"


def test_unknown_trip_never_links():
    resolution = resolve_decision(_decision(trip_id="T404", confidence=1.0), TRIPS)
    assert resolution.status == "skipped"
    assert resolution.error == "Trip T404 not found"
