from datetime import datetime, timedelta

from sqlalchemy.exc import OperationalError

from srd_backend.domain.content.repository import TestimonialRepository
from srd_backend.models import Booking, ContactMessage, Testimonial

from conftest import ADMIN_EMAIL, FIXED_NOW, add_booking, booking_form, stored_files

SLOT = datetime(2025, 6, 10, 10, 0)
JPEG_BYTES = b"\xff\xd8\xff\xe0 fake jpeg"


def test_status_change_without_token_is_rejected(client, db):
    booking = add_booking(db, SLOT)

    response = client.put(f"/bookings/{booking.id}/status", json={"status": "confirmed"})

    assert response.status_code == 401
    assert response.json()["success"] is False
    db.expire_all()
    assert db.get(Booking, booking.id).status == "pending"


def test_garbage_token_is_rejected(client, db):
    booking = add_booking(db, SLOT)

    for token in ("not-a-jwt", "aaa.bbb.ccc"):
        response = client.put(
            f"/bookings/{booking.id}/status",
            json={"status": "confirmed"},
            headers={"Authorization": f"Bearer {token}"},
        )
        assert response.status_code == 401


def test_unknown_status_is_rejected(client, db, admin_headers):
    booking = add_booking(db, SLOT)

    response = client.put(f"/bookings/{booking.id}/status", json={"status": "archived"}, headers=admin_headers)

    assert response.status_code == 400
    db.expire_all()
    assert db.get(Booking, booking.id).status == "pending"


def test_unknown_booking_is_404(client, admin_headers):
    response = client.put("/bookings/missing/status", json={"status": "confirmed"}, headers=admin_headers)

    assert response.status_code == 404


def test_confirm_then_cancel_releases_slot(client, db, admin_headers):
    booking = client.post("/bookings", data=booking_form()).json()["data"]

    confirmed = client.put(f"/bookings/{booking['id']}/status", json={"status": "confirmed"}, headers=admin_headers)
    assert confirmed.status_code == 200
    assert confirmed.json()["data"]["status"] == "confirmed"
    assert confirmed.json()["data"]["payment_status"] == "unpaid"

    cancelled = client.put(f"/bookings/{booking['id']}/status", json={"status": "cancelled"}, headers=admin_headers)
    assert cancelled.json()["data"]["status"] == "cancelled"

    slots = client.get("/availability", params={"date": "2025-06-10"}).json()["data"]["slots"]
    assert slots[0]["available"] is True

    rebook = client.post("/bookings", data=booking_form(name="Bola", email="bola@example.com"))
    assert rebook.status_code == 201


def test_reactivating_into_taken_slot_conflicts(client, db, admin_headers):
    old = add_booking(db, SLOT, status="cancelled")
    add_booking(db, SLOT, status="pending", email="new@example.com")

    response = client.put(f"/bookings/{old.id}/status", json={"status": "pending"}, headers=admin_headers)

    assert response.status_code == 422
    assert [s["start"] for s in response.json()["suggestions"]] == ["2025-06-10T13:00:00", "2025-06-10T15:00:00"]
    db.expire_all()
    assert db.get(Booking, old.id).status == "cancelled"


def test_setting_same_status_is_a_no_op(client, db, admin_headers):
    booking = add_booking(db, SLOT, status="confirmed")

    response = client.put(f"/bookings/{booking.id}/status", json={"status": "confirmed"}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "confirmed"


def test_list_bookings_newest_first_and_filtered(client, db, admin_headers):
    older = add_booking(db, SLOT, created_at=FIXED_NOW - timedelta(hours=2))
    newer = add_booking(db, datetime(2025, 6, 11, 10, 0), status="confirmed", created_at=FIXED_NOW)
    add_booking(db, datetime(2025, 6, 12, 10, 0), status="cancelled", created_at=FIXED_NOW - timedelta(hours=1))

    everything = client.get("/admin/bookings", headers=admin_headers).json()["data"]
    assert [b["id"] for b in everything][0] == newer.id
    assert [b["id"] for b in everything][-1] == older.id
    assert len(everything) == 3

    confirmed = client.get("/admin/bookings", params={"status": "confirmed"}, headers=admin_headers).json()["data"]
    assert [b["id"] for b in confirmed] == [newer.id]

    assert client.get("/admin/bookings", params={"status": "bogus"}, headers=admin_headers).status_code == 400
    assert client.get("/admin/bookings").status_code == 401


def test_expire_stale_endpoint(client, db, admin_headers):
    add_booking(db, SLOT, created_at=FIXED_NOW - timedelta(hours=3))

    response = client.post("/admin/bookings/expire-stale", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["data"]["expired"] == 1


def submit_testimonial(client, **files):
    response = client.post(
        "/testimonials",
        data={"name": "Tolu", "org": "Acme", "rating": "5", "text": "Sharp, calm crisis support."},
        files=files or None,
    )
    assert response.status_code == 201
    return response.json()["data"]


def test_approve_testimonial_is_idempotent(client, admin_headers):
    testimonial = submit_testimonial(client)
    assert client.get("/testimonials").json()["data"] == []

    first = client.post(f"/admin/testimonials/{testimonial['id']}/approve", headers=admin_headers)
    second = client.post(f"/admin/testimonials/{testimonial['id']}/approve", headers=admin_headers)

    assert first.status_code == 200
    assert second.status_code == 200
    assert second.json()["data"]["approved"] is True
    assert [t["id"] for t in client.get("/testimonials").json()["data"]] == [testimonial["id"]]


def test_approve_unknown_testimonial_is_404(client, admin_headers):
    assert client.post("/admin/testimonials/nope/approve", headers=admin_headers).status_code == 404


def test_delete_testimonial_removes_photo(client, db, storage, admin_headers):
    testimonial = submit_testimonial(client, photo=("me.jpg", JPEG_BYTES, "image/jpeg"))
    assert len(stored_files(storage)) == 1

    response = client.delete(f"/admin/testimonials/{testimonial['id']}", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["data"]["deleted"] == testimonial["id"]
    assert stored_files(storage) == []
    assert db.query(Testimonial).count() == 0


def test_delete_survives_storage_failure(client, db, storage, admin_headers, monkeypatch):
    testimonial = submit_testimonial(client, photo=("me.jpg", JPEG_BYTES, "image/jpeg"))

    def broken_unlink(self, missing_ok=False):
        raise PermissionError("read-only filesystem")

    monkeypatch.setattr("pathlib.Path.unlink", broken_unlink)

    response = client.delete(f"/admin/testimonials/{testimonial['id']}", headers=admin_headers)

    assert response.status_code == 200
    assert db.query(Testimonial).count() == 0


def test_delete_contact_message(client, db, admin_headers):
    sent = client.post(
        "/contact",
        json={"name": "Kemi", "email": "kemi@example.com", "subject": "Retainer", "message": "Call me"},
    ).json()["data"]

    response = client.delete(f"/admin/contact-messages/{sent['id']}", headers=admin_headers)

    assert response.status_code == 200
    assert db.query(ContactMessage).count() == 0
    assert client.delete(f"/admin/contact-messages/{sent['id']}", headers=admin_headers).status_code == 404


def test_login_with_wrong_password(client):
    response = client.post("/admin/login", json={"email": ADMIN_EMAIL, "password": "wrong"})

    assert response.status_code == 401
    assert response.json()["data"] is None


def test_me_returns_signed_in_admin(client, admin_headers):
    response = client.get("/admin/me", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["data"]["email"] == ADMIN_EMAIL


def database_down(*args, **kwargs):
    raise OperationalError("COMMIT", {}, Exception("server closed the connection unexpectedly"))


def test_delete_during_outage_keeps_row_and_photo(client, db, storage, admin_headers, monkeypatch):
    testimonial = submit_testimonial(client, photo=("me.jpg", JPEG_BYTES, "image/jpeg"))
    monkeypatch.setattr(TestimonialRepository, "delete_testimonial", staticmethod(database_down))

    response = client.delete(f"/admin/testimonials/{testimonial['id']}", headers=admin_headers)

    assert response.status_code == 500
    assert response.json() == {"success": False, "data": None, "message": "Database temporarily unavailable"}
    assert db.query(Testimonial).count() == 1
    assert len(stored_files(storage)) == 1


def test_approve_during_outage_reports_persistence_error(client, db, admin_headers, monkeypatch):
    testimonial = submit_testimonial(client)
    monkeypatch.setattr(TestimonialRepository, "approve_testimonial", staticmethod(database_down))

    response = client.post(f"/admin/testimonials/{testimonial['id']}/approve", headers=admin_headers)

    assert response.status_code == 500
    assert response.json()["message"] == "Database temporarily unavailable"
    db.expire_all()
    assert db.get(Testimonial, testimonial["id"]).approved is False
