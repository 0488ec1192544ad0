from sqlalchemy import func, select

from conftest import auth_headers, sign, verify_payload
from travelify.models.audit_log import AuditLog
from travelify.models.booking import Booking
from travelify.models.email_log import EmailLog
from travelify.models.tour import Tour
from travelify.services import booking_service, email_service


def booking_count(db) -> int:
    db.expire_all()
    return db.execute(select(func.count(Booking.id))).scalar_one()


def test_order_then_verify_creates_pending_booking(client, db, user, tour, razorpay_api, dispatched):
    order = client.post("/api/bookings/create-order", json={"amount": 5000}, headers=auth_headers(user)).json()
    assert order["amount"] == 500000

    body = verify_payload(order_id=order["id"], payment_id="pay_001", userId=user.id)
    r = client.post("/api/bookings/verify", json=body, headers=auth_headers(user))
    assert r.status_code == 201, r.text
    data = r.json()
    assert data["success"] is True
    assert data["message"] == "Booking created successfully. Payment verified."

    booking = data["booking"]
    assert booking["status"] == "Pending"
    assert booking["paymentStatus"] == "Paid"
    assert booking["amount"] == 5000
    assert booking["tour"]["id"] == "T1"
    assert booking["user"]["id"] == user.id
    assert booking["razorpayOrderId"] == order["id"]
    assert booking["guestDetails"]["email"] == "asha@example.com"

    db.expire_all()
    assert db.get(Tour, "T1").available_slots == 9
    assert booking_count(db) == 1
    assert db.query(AuditLog).filter(AuditLog.action == "booking.created").count() == 1

    # confirmation mail went to the outbox and to the worker
    log = db.query(EmailLog).one()
    assert log.to_email == "asha@example.com"
    assert log.related_booking_id == booking["id"]
    assert log.status == "queued"
    assert dispatched == [log.id]


def test_verify_uses_guest_details_and_guest_count(client, db, user, tour):
    body = verify_payload(numberOfGuests=3, guestDetails={"name": "Meera", "email": "meera@example.com", "phone": "999"})
    r = client.post("/api/bookings/verify", json=body, headers=auth_headers(user))
    assert r.status_code == 201
    booking = r.json()["booking"]
    assert booking["numberOfGuests"] == 3
    assert booking["amount"] == 15000
    assert booking["guestDetails"] == {"name": "Meera", "email": "meera@example.com", "phone": "999"}
    db.expire_all()
    assert db.get(Tour, "T1").available_slots == 7
    assert db.query(EmailLog).one().to_email == "meera@example.com"


def test_original_route_name_is_still_served(client, user, tour):
    r = client.post("/api/bookings/verify-payment", json=verify_payload(), headers=auth_headers(user))
    assert r.status_code == 201


def test_mismatched_signature_is_rejected_without_booking(client, db, user, tour, dispatched):
    body = verify_payload(signature=sign("order_abc", "pay_other"))
    r = client.post("/api/bookings/verify", json=body, headers=auth_headers(user))
    assert r.status_code == 400
    assert r.json() == {"message": "Invalid payment signature"}
    assert booking_count(db) == 0
    assert db.get(Tour, "T1").available_slots == 10
    assert dispatched == []


def test_mismatched_signature_wins_over_missing_tour(client, db, user):
    body = verify_payload(tour_id="does-not-exist", signature="0" * 64)
    r = client.post("/api/bookings/verify", json=body, headers=auth_headers(user))
    assert r.status_code == 400
    assert booking_count(db) == 0


def test_missing_tour_with_valid_signature_is_not_found(client, db, user):
    r = client.post("/api/bookings/verify", json=verify_payload(tour_id="nope"), headers=auth_headers(user))
    assert r.status_code == 404
    assert r.json() == {"message": "Tour not found"}
    assert booking_count(db) == 0


def test_not_enough_slots(client, db, user, tour):
    r = client.post("/api/bookings/verify", json=verify_payload(numberOfGuests=11), headers=auth_headers(user))
    assert r.status_code == 400
    assert r.json()["message"] == "Only 10 slots available"
    assert booking_count(db) == 0


def test_replayed_callback_creates_one_booking(client, db, user, tour, dispatched):
    body = verify_payload(payment_id="pay_dup")
    first = client.post("/api/bookings/verify", json=body, headers=auth_headers(user))
    second = client.post("/api/bookings/verify", json=body, headers=auth_headers(user))

    assert first.status_code == 201
    assert second.status_code == 200
    assert second.json()["message"] == "Payment already verified."
    assert second.json()["booking"]["id"] == first.json()["booking"]["id"]
    assert booking_count(db) == 1
    db.expire_all()
    assert db.get(Tour, "T1").available_slots == 9
    assert len(dispatched) == 1


def test_missing_fields_are_a_400(client, user, tour):
    body = verify_payload()
    del body["razorpay_signature"]
    r = client.post("/api/bookings/verify", json=body, headers=auth_headers(user))
    assert r.status_code == 400
    assert "razorpay_signature" in r.json()["message"]


def test_cannot_book_for_another_user(client, db, user, other_user, tour):
    r = client.post("/api/bookings/verify", json=verify_payload(userId=other_user.id), headers=auth_headers(user))
    assert r.status_code == 403
    assert booking_count(db) == 0


def test_admin_may_book_on_behalf_of_a_user(client, db, admin, user, tour):
    r = client.post("/api/bookings/verify", json=verify_payload(userId=user.id), headers=auth_headers(admin))
    assert r.status_code == 201
    assert r.json()["booking"]["user"]["id"] == user.id


def test_notification_failure_does_not_undo_booking(client, db, user, tour, monkeypatch):
    def broken_dispatch(email_id):
        raise ConnectionError("broker down")

    monkeypatch.setattr(email_service, "dispatch_email", broken_dispatch)
    r = client.post("/api/bookings/verify", json=verify_payload(), headers=auth_headers(user))
    assert r.status_code == 201
    assert booking_count(db) == 1
    # left in the outbox for the periodic sweep
    assert db.query(EmailLog).one().status == "queued"


def test_outbox_write_failure_does_not_undo_booking(client, db, user, tour, monkeypatch):
    def broken_queue(*args, **kwargs):
        raise RuntimeError("outbox unavailable")

    monkeypatch.setattr("travelify.services.notification_service.queue_email", broken_queue)
    r = client.post("/api/bookings/verify", json=verify_payload(), headers=auth_headers(user))
    assert r.status_code == 201
    assert booking_count(db) == 1


def test_bad_signature_wins_over_booking_for_another_user(client, db, user, other_user, tour):
    body = verify_payload(signature="0" * 64, userId=other_user.id)
    r = client.post("/api/bookings/verify", json=body, headers=auth_headers(user))
    assert r.status_code == 400
    assert r.json() == {"message": "Invalid payment signature"}


def test_bad_signature_wins_over_unknown_user(client, db, admin, tour):
    body = verify_payload(signature="0" * 64, userId="ghost")
    r = client.post("/api/bookings/verify", json=body, headers=auth_headers(admin))
    assert r.status_code == 400
    assert r.json() == {"message": "Invalid payment signature"}


def test_admin_booking_for_unknown_user(client, db, admin, tour):
    r = client.post("/api/bookings/verify", json=verify_payload(userId="ghost"), headers=auth_headers(admin))
    assert r.status_code == 404
    assert r.json() == {"message": "User not found"}
    assert booking_count(db) == 0


def test_concurrent_duplicate_callback_returns_the_winner(client, db, user, tour, dispatched, monkeypatch):
    body = verify_payload(payment_id="pay_race")
    first = client.post("/api/bookings/verify", json=body, headers=auth_headers(user))
    assert first.status_code == 201

    # The second callback's lookup runs before the first one committed.
    real_lookup = booking_service.booking_for_payment
    lookups = []

    def stale_then_real(session, payment_id):
        lookups.append(payment_id)
        return None if len(lookups) == 1 else real_lookup(session, payment_id)

    monkeypatch.setattr(booking_service, "booking_for_payment", stale_then_real)
    second = client.post("/api/bookings/verify", json=body, headers=auth_headers(user))

    assert second.status_code == 200
    assert second.json()["booking"]["id"] == first.json()["booking"]["id"]
    assert lookups == ["pay_race", "pay_race"]
    assert booking_count(db) == 1
    db.expire_all()
    assert db.get(Tour, "T1").available_slots == 9
    assert len(dispatched) == 1


def test_replay_by_another_account_is_forbidden(client, db, user, other_user, tour):
    body = verify_payload(payment_id="pay_owned")
    assert client.post("/api/bookings/verify", json=body, headers=auth_headers(user)).status_code == 201

    r = client.post("/api/bookings/verify", json=body, headers=auth_headers(other_user))
    assert r.status_code == 403
    assert "booking" not in r.json()
    assert booking_count(db) == 1


def test_admin_replay_returns_existing_booking(client, db, user, admin, tour):
    body = verify_payload(payment_id="pay_seen")
    first = client.post("/api/bookings/verify", json=body, headers=auth_headers(user)).json()
    r = client.post("/api/bookings/verify", json=body, headers=auth_headers(admin))
    assert r.status_code == 200
    assert r.json()["booking"]["id"] == first["booking"]["id"]
