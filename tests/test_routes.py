from models import db
from models.transaction_model import TransactionRecord


def _reload(txn_id):
    db.session.expire_all()
    return db.session.get(TransactionRecord, txn_id)


def _suggested(make_txn, user, trip_id="T1"):
    txn = make_txn(user)
    txn.apply_suggestion(trip_id=trip_id, trip_name="Trip", trip_destination=None, confidence=0.7, reasoning="dates")
    db.session.commit()
    return txn


def test_manual_link_replaces_suggestion(client, make_user, make_trip, make_txn, auth_headers):
    user = make_user()
    make_trip(user, id="T1", name="Lisbon spring", destination="Lisbon")
    txn = _suggested(make_txn, user)
    txn.link_error = "previous failure"
    db.session.commit()

    resp = client.post(
        "/trip-links/link",
        json={"transaction_id": txn.id, "trip_id": "T1"},
        headers=auth_headers(user),
    )

    assert resp.status_code == 200
    assert resp.get_json() == {"success": True}
    txn = _reload(txn.id)
    assert txn.link_status == "linked"
    assert txn.trip_link_suggestion is None
    assert txn.link_error is None
    assert txn.trip_link["method"] == "manual"
    assert txn.trip_link["confidence"] == 1.0
    assert txn.trip_link["reasoning"] == "Linked manually by user"
    assert txn.trip_link["trip_destination"] == "Lisbon"


def test_manual_link_accepts_confidence_and_reasoning(client, make_user, make_trip, make_txn, auth_headers):
    user = make_user()
    make_trip(user, id="T1")
    txn = make_txn(user)

    resp = client.post(
        "/trip-links/link",
        json={"transaction_id": txn.id, "trip_id": "T1", "confidence": 0.7, "reasoning": "airport taxi"},
        headers=auth_headers(user),
    )

    assert resp.status_code == 200
    link = _reload(txn.id).trip_link
    assert link["confidence"] == 0.7
    assert link["reasoning"] == "airport taxi"


def test_manual_link_on_someone_elses_transaction_is_denied(client, make_user, make_trip, make_txn, auth_headers):
    owner, intruder = make_user(), make_user()
    make_trip(intruder, id="T1")
    txn = _suggested(make_txn, owner)

    resp = client.post(
        "/trip-links/link",
        json={"transaction_id": txn.id, "trip_id": "T1"},
        headers=auth_headers(intruder),
    )

    assert resp.status_code == 403
    assert resp.get_json()["code"] == "permission-denied"
    txn = _reload(txn.id)
    assert txn.link_status == "suggested"
    assert txn.trip_link is None


def test_manual_link_missing_records(client, make_user, make_trip, make_txn, auth_headers):
    user, other = make_user(), make_user()
    make_trip(other, id="T-other")
    txn = make_txn(user)

    missing_txn = client.post(
        "/trip-links/link", json={"transaction_id": "nope", "trip_id": "T-other"}, headers=auth_headers(user)
    )
    foreign_trip = client.post(
        "/trip-links/link", json={"transaction_id": txn.id, "trip_id": "T-other"}, headers=auth_headers(user)
    )

    assert missing_txn.status_code == 404
    assert missing_txn.get_json()["error"] == "Transaction not found."
    assert foreign_trip.status_code == 404
    assert foreign_trip.get_json()["error"] == "Trip not found."
    assert _reload(txn.id).link_status == "pending"


def test_manual_link_validates_body(client, make_user, auth_headers):
    user = make_user()

    missing = client.post("/trip-links/link", json={"transaction_id": "tx1"}, headers=auth_headers(user))
    out_of_range = client.post(
        "/trip-links/link",
        json={"transaction_id": "tx1", "trip_id": "T1", "confidence": 2},
        headers=auth_headers(user),
    )

    assert missing.status_code == 400
    assert missing.get_json()["code"] == "invalid-argument"
    assert out_of_range.status_code == 400


def test_endpoints_require_a_token(client, make_user, make_txn):
    txn = make_txn(make_user())

    assert client.post("/trip-links/link", json={"transaction_id": txn.id, "trip_id": "T1"}).status_code == 401
    assert client.post("/trip-links/dismiss", json={"transaction_id": txn.id}).status_code == 401


def test_dismiss_is_repeatable(client, make_user, make_txn, auth_headers):
    user = make_user()
    txn = _suggested(make_txn, user)

    first = client.post("/trip-links/dismiss", json={"transaction_id": txn.id}, headers=auth_headers(user))
    after_first = _reload(txn.id)
    assert after_first.link_status == "skipped"
    assert after_first.trip_link_suggestion is None

    second = client.post("/trip-links/dismiss", json={"transaction_id": txn.id}, headers=auth_headers(user))

    assert first.status_code == second.status_code == 200
    assert second.get_json() == {"success": True}
    txn = _reload(txn.id)
    assert txn.link_status == "skipped"
    assert txn.trip_link_suggestion is None
    assert txn.trip_link is None


def test_dismiss_checks_ownership(client, make_user, make_txn, auth_headers):
    owner, intruder = make_user(), make_user()
    txn = _suggested(make_txn, owner)

    denied = client.post("/trip-links/dismiss", json={"transaction_id": txn.id}, headers=auth_headers(intruder))
    missing = client.post("/trip-links/dismiss", json={"transaction_id": "ghost"}, headers=auth_headers(owner))

    assert denied.status_code == 403
    assert missing.status_code == 404
    assert _reload(txn.id).link_status == "suggested"


def test_dismiss_after_manual_link_clears_link(client, make_user, make_trip, make_txn, auth_headers):
    user = make_user()
    make_trip(user, id="T1")
    txn = make_txn(user)

    linked = client.post("/trip-links/link", json={"transaction_id": txn.id, "trip_id": "T1"}, headers=auth_headers(user))
    assert linked.status_code == 200
    assert _reload(txn.id).trip_link["trip_id"] == "T1"

    resp = client.post("/trip-links/dismiss", json={"transaction_id": txn.id}, headers=auth_headers(user))

    assert resp.status_code == 200
    txn = _reload(txn.id)
    assert txn.link_status == "skipped"
    assert txn.trip_link is None
    assert txn.trip_link_suggestion is None
