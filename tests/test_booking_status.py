import pytest

from conftest import auth_headers, verify_payload
from travelify.models.booking import Booking
from travelify.models.email_log import EmailLog
from travelify.models.enums import BookingStatus
from travelify.models.tour import Tour
from travelify.services.notification_service import status_changed_email


@pytest.fixture
def booking_id(client, user, tour) -> str:
    r = client.post("/api/bookings/verify", json=verify_payload(numberOfGuests=2), headers=auth_headers(user))
    assert r.status_code == 201
    return r.json()["booking"]["id"]


def set_status(client, admin, booking_id, status, **extra):
    return client.put(f"/api/bookings/{booking_id}/status", json={"status": status, **extra}, headers=auth_headers(admin))


def test_admin_approves_pending_booking(client, db, admin, booking_id):
    r = set_status(client, admin, booking_id, "Approved")
    assert r.status_code == 200, r.text
    assert r.json()["message"] == "Booking approved successfully"
    assert r.json()["booking"]["status"] == "Approved"
    assert r.json()["booking"]["paymentStatus"] == "Paid"

    mail = db.query(EmailLog).filter(EmailLog.subject == "Booking Confirmed - Travelify").one()
    assert mail.related_booking_id == booking_id


def test_unknown_status_is_rejected_and_not_stored(client, db, admin, booking_id):
    before = db.query(EmailLog).count()
    r = set_status(client, admin, booking_id, "Declined")
    assert r.status_code == 400
    assert "status" in r.json()["message"]
    db.expire_all()
    assert db.get(Booking, booking_id).status == "Pending"
    assert db.query(EmailLog).count() == before


def test_pending_is_not_a_transition_target(client, db, admin, booking_id):
    r = set_status(client, admin, booking_id, "Pending")
    assert r.status_code == 400
    assert r.json()["message"].endswith("status must be Approved or Cancelled")


def test_cancel_returns_slots_refunds_and_records_reason(client, db, admin, booking_id):
    db.expire_all()
    assert db.get(Tour, "T1").available_slots == 8

    r = set_status(client, admin, booking_id, "Cancelled", reason="Weather warning")
    assert r.status_code == 200
    booking = r.json()["booking"]
    assert booking["status"] == "Cancelled"
    assert booking["paymentStatus"] == "Refunded"
    assert booking["rejectionReason"] == "Weather warning"

    db.expire_all()
    assert db.get(Tour, "T1").available_slots == 10
    mail = db.query(EmailLog).filter(EmailLog.subject == "Booking Cancelled - Travelify").one()
    assert "Weather warning" in mail.body


def test_cancel_without_reason_uses_default(client, db, admin, booking_id):
    r = set_status(client, admin, booking_id, "Cancelled")
    assert r.json()["booking"]["rejectionReason"] == "Booking cancelled by admin"
    mail = db.query(EmailLog).filter(EmailLog.subject == "Booking Cancelled - Travelify").one()
    assert "No specific reason provided." in mail.body


def test_approved_booking_can_still_be_cancelled(client, admin, booking_id):
    assert set_status(client, admin, booking_id, "Approved").status_code == 200
    r = set_status(client, admin, booking_id, "Cancelled")
    assert r.status_code == 200
    assert r.json()["booking"]["status"] == "Cancelled"


@pytest.mark.parametrize("first,second", [
    ("Cancelled", "Approved"),
    ("Cancelled", "Cancelled"),
    ("Approved", "Approved"),
])
def test_illegal_transitions_conflict(client, db, admin, booking_id, first, second):
    assert set_status(client, admin, booking_id, first).status_code == 200
    r = set_status(client, admin, booking_id, second)
    assert r.status_code == 409
    assert r.json() == {"message": f"Cannot change booking from {first} to {second}"}
    db.expire_all()
    assert db.get(Booking, booking_id).status == first


def test_cancelled_twice_does_not_return_slots_twice(client, db, admin, booking_id):
    set_status(client, admin, booking_id, "Cancelled")
    set_status(client, admin, booking_id, "Cancelled")
    db.expire_all()
    assert db.get(Tour, "T1").available_slots == 10


def test_status_change_requires_admin(client, user, booking_id):
    r = client.put(f"/api/bookings/{booking_id}/status", json={"status": "Approved"}, headers=auth_headers(user))
    assert r.status_code == 403
    assert r.json() == {"message": "Admin access denied"}


def test_status_change_on_missing_booking(client, admin):
    r = set_status(client, admin, "missing", "Approved")
    assert r.status_code == 404
    assert r.json() == {"message": "Booking not found"}


def test_email_copy_follows_the_enum():
    b = Booking(id="b1", tour_id="T1", number_of_guests=1, amount=5000, guest_name="Asha",
                guest_email="asha@example.com", payment_status="Refunded", rejection_reason="Booking cancelled by admin")
    b.status = BookingStatus.APPROVED.value
    assert status_changed_email(b)[0] == "Booking Confirmed - Travelify"
    b.status = BookingStatus.CANCELLED.value
    subject, body = status_changed_email(b)
    assert subject == "Booking Cancelled - Travelify"
    assert "No specific reason provided." in body
    assert "Booking cancelled by admin" not in body
    assert "Overbooked" in status_changed_email(b, "  Overbooked ")[1]
    b.status = "Declined"
    with pytest.raises(ValueError):
        status_changed_email(b)


def test_listing_and_reading_bookings(client, admin, user, other_user, booking_id):
    mine = client.get("/api/bookings/my-bookings", headers=auth_headers(user)).json()
    assert mine["count"] == 1
    assert mine["bookings"][0]["id"] == booking_id

    assert client.get("/api/bookings/my-bookings", headers=auth_headers(other_user)).json()["count"] == 0

    all_ = client.get("/api/bookings/all", headers=auth_headers(admin)).json()
    assert all_["count"] == 1
    assert all_["pagination"]["totalItems"] == 1
    assert client.get("/api/bookings/all?status=Approved", headers=auth_headers(admin)).json()["count"] == 0
    assert client.get("/api/bookings/all", headers=auth_headers(user)).status_code == 403

    assert client.get(f"/api/bookings/{booking_id}", headers=auth_headers(user)).json()["booking"]["id"] == booking_id
    assert client.get(f"/api/bookings/{booking_id}", headers=auth_headers(admin)).status_code == 200
    assert client.get(f"/api/bookings/{booking_id}", headers=auth_headers(other_user)).status_code == 403
    assert client.get("/api/bookings/nope", headers=auth_headers(user)).status_code == 404


def test_status_changes_are_audited(client, admin, user, booking_id):
    set_status(client, admin, booking_id, "Approved")
    set_status(client, admin, booking_id, "Cancelled", reason="Overbooked")

    r = client.get(f"/api/bookings/{booking_id}/history", headers=auth_headers(admin))
    assert r.status_code == 200
    history = r.json()["history"]
    assert [h["action"] for h in history] == ["booking.created", "booking.status_changed", "booking.status_changed"]
    assert history[0]["details"]["userId"] == user.id
    assert history[1]["details"]["to"] == "Approved"
    assert history[2]["details"] == {"from": "Approved", "to": "Cancelled", "reason": "Overbooked"}
    assert history[2]["actorUserId"] == admin.id

    assert client.get(f"/api/bookings/{booking_id}/history", headers=auth_headers(user)).status_code == 403
    assert client.get("/api/bookings/missing/history", headers=auth_headers(admin)).status_code == 404


def test_confirm_route(client, db, admin, user, booking_id):
    r = client.put(f"/api/bookings/{booking_id}/confirm", headers=auth_headers(admin))
    assert r.status_code == 200
    assert r.json()["message"] == "Booking approved successfully"
    assert r.json()["booking"]["status"] == "Approved"
    assert db.query(EmailLog).filter(EmailLog.subject == "Booking Confirmed - Travelify").count() == 1

    assert client.put(f"/api/bookings/{booking_id}/confirm", headers=auth_headers(admin)).status_code == 409
    assert client.put(f"/api/bookings/{booking_id}/confirm", headers=auth_headers(user)).status_code == 403


def test_cancel_route_takes_rejection_reason(client, db, admin, booking_id):
    r = client.put(f"/api/bookings/{booking_id}/cancel", json={"rejectionReason": "Tour withdrawn"},
                   headers=auth_headers(admin))
    assert r.status_code == 200
    assert r.json()["booking"]["status"] == "Cancelled"
    assert r.json()["booking"]["rejectionReason"] == "Tour withdrawn"
    db.expire_all()
    assert db.get(Tour, "T1").available_slots == 10
    mail = db.query(EmailLog).filter(EmailLog.subject == "Booking Cancelled - Travelify").one()
    assert "Tour withdrawn" in mail.body


def test_cancel_route_without_body(client, admin, booking_id):
    r = client.put(f"/api/bookings/{booking_id}/cancel", headers=auth_headers(admin))
    assert r.status_code == 200
    assert r.json()["booking"]["rejectionReason"] == "Booking cancelled by admin"


def test_all_bookings_is_also_served_under_original_path(client, admin, user, booking_id):
    r = client.get("/api/bookings/all/bookings", headers=auth_headers(admin))
    assert r.status_code == 200
    assert [b["id"] for b in r.json()["bookings"]] == [booking_id]
    assert client.get("/api/bookings/all/bookings", headers=auth_headers(user)).status_code == 403
