from datetime import datetime, timedelta

import pytest

from srd_backend.domain.bookings.availability import AvailabilityCalculator
from srd_backend.domain.bookings.schemas import BookingCreate
from srd_backend.domain.bookings.service import ReservationService
from srd_backend.errors import InvalidDateError, SlotConflictError, ValidationError
from srd_backend.models import Booking

from conftest import BOOKING_DAY, FIXED_NOW, add_booking, booking_form, stored_files

PDF_BYTES = b"%PDF-1.4 consultation brief"


def booking_details(**overrides) -> BookingCreate:
    data = {
        "name": "Ada Obi",
        "email": "ada@example.com",
        "phone": "+2348031234567",
        "service": "Media Relations",
        "start": datetime(2025, 6, 10, 10, 0),
    }
    data.update(overrides)
    return BookingCreate(**data)


def test_book_then_conflict_with_suggestions(client):
    slots = client.get("/availability", params={"date": BOOKING_DAY}).json()["data"]["slots"]
    assert len(slots) == 3
    assert all(s["available"] for s in slots)

    first = client.post("/bookings", data=booking_form())
    assert first.status_code == 201
    booking = first.json()["data"]
    assert booking["status"] == "pending"
    assert booking["payment_status"] == "unpaid"
    assert booking["phone"] == "+2348031234567"
    assert booking["start"] == "2025-06-10T10:00:00"

    slots = client.get("/availability", params={"date": BOOKING_DAY}).json()["data"]["slots"]
    assert slots[0]["available"] is False

    second = client.post("/bookings", data=booking_form(name="Bola", email="bola@example.com"))
    assert second.status_code == 422
    body = second.json()
    assert body["success"] is False
    assert [s["start"] for s in body["suggestions"]] == ["2025-06-10T13:00:00", "2025-06-10T15:00:00"]
    assert all(s["available"] for s in body["suggestions"])


def test_missing_email_creates_nothing_and_keeps_no_file(client, db, storage):
    form = booking_form(email=None)

    response = client.post(
        "/bookings",
        data=form,
        files={"file": ("brief.pdf", PDF_BYTES, "application/pdf")},
    )

    assert response.status_code == 400
    assert "email" in response.json()["message"]
    assert db.query(Booking).count() == 0
    assert stored_files(storage) == []


@pytest.mark.parametrize(
    "overrides",
    [
        {"email": "not-an-email"},
        {"phone": "12"},
        {"service": "Astrology"},
        {"name": "   "},
        {"date": "next tuesday"},
    ],
)
def test_malformed_fields_are_rejected(client, db, overrides):
    response = client.post("/bookings", data=booking_form(**overrides))

    assert response.status_code == 400
    assert db.query(Booking).count() == 0


def test_start_must_be_a_template_slot(client):
    response = client.post("/bookings", data=booking_form(date=f"{BOOKING_DAY}T11:00:00"))

    assert response.status_code == 400


def test_end_must_match_slot_length(client):
    ok = client.post("/bookings", data=booking_form(end=f"{BOOKING_DAY}T11:00:00"))
    assert ok.status_code == 201

    bad = client.post(
        "/bookings",
        data=booking_form(date=f"{BOOKING_DAY}T13:00:00", end=f"{BOOKING_DAY}T15:00:00"),
    )
    assert bad.status_code == 400


def test_past_and_far_future_dates_are_rejected(client, db):
    past = client.post("/bookings", data=booking_form(date="2025-05-30T10:00:00"))
    too_far = client.post("/bookings", data=booking_form(date="2025-10-15T10:00:00"))

    assert past.status_code == 400
    assert too_far.status_code == 400
    assert db.query(Booking).count() == 0


def test_slot_that_already_started_today_is_rejected(db):
    service = ReservationService(db, now_provider=lambda: datetime(2025, 6, 10, 10, 30))

    with pytest.raises(InvalidDateError):
        service.submit(booking_details())


def test_utc_timestamp_is_converted_to_business_time(client):
    # 09:00Z is 10:00 in Lagos
    response = client.post("/bookings", data=booking_form(date="2025-06-10T09:00:00Z"))

    assert response.status_code == 201
    assert response.json()["data"]["start"] == "2025-06-10T10:00:00"


def test_uploaded_brief_is_stored_with_booking(client, storage):
    response = client.post(
        "/bookings",
        data=booking_form(),
        files={"file": ("brief.pdf", PDF_BYTES, "application/pdf")},
    )

    assert response.status_code == 201
    file_url = response.json()["data"]["file_url"]
    assert file_url.startswith("/uploads/bookings/")
    assert file_url.endswith(".pdf")
    assert storage.path_for(file_url).read_bytes() == PDF_BYTES


def test_disallowed_upload_type_is_rejected(client, db, storage):
    response = client.post(
        "/bookings",
        data=booking_form(),
        files={"file": ("run.sh", b"#!/bin/sh", "application/x-sh")},
    )

    assert response.status_code == 400
    assert db.query(Booking).count() == 0
    assert stored_files(storage) == []


def test_conflict_discards_the_uploaded_file(client, db, storage):
    add_booking(db, datetime(2025, 6, 10, 10, 0), status="confirmed")

    response = client.post(
        "/bookings",
        data=booking_form(),
        files={"file": ("brief.pdf", PDF_BYTES, "application/pdf")},
    )

    assert response.status_code == 422
    assert stored_files(storage) == []


def test_race_lost_at_insert_reports_conflict(db, monkeypatch):
    """Both callers pass the pre-flight check; the storage guard lets only one in"""
    monkeypatch.setattr(AvailabilityCalculator, "is_slot_available", lambda self, start: True)
    winner = ReservationService(db).submit(booking_details())

    with pytest.raises(SlotConflictError) as exc_info:
        ReservationService(db).submit(booking_details(name="Bola", email="bola@example.com"))

    assert winner.status == "pending"
    assert db.query(Booking).filter(Booking.status != "cancelled").count() == 1
    suggestions = exc_info.value.suggestions
    assert [s.start for s in suggestions] == [datetime(2025, 6, 10, 13, 0), datetime(2025, 6, 10, 15, 0)]


def test_fully_booked_day_conflict_has_no_suggestions(db):
    for hour in (10, 13, 15):
        add_booking(db, datetime(2025, 6, 10, hour, 0), status="confirmed")

    with pytest.raises(SlotConflictError) as exc_info:
        ReservationService(db).submit(booking_details(start=datetime(2025, 6, 10, 15, 0)))

    assert exc_info.value.suggestions == []


def test_cancelled_slot_can_be_booked_again(db):
    add_booking(db, datetime(2025, 6, 10, 10, 0), status="cancelled")

    booking = ReservationService(db).submit(booking_details())

    assert booking.slot_start == datetime(2025, 6, 10, 10, 0)
    assert db.query(Booking).count() == 2


def test_end_mismatch_raises_validation_error(db):
    with pytest.raises(ValidationError):
        ReservationService(db).submit(booking_details(), desired_end=datetime(2025, 6, 10, 12, 0))


def test_submitted_text_is_html_escaped(client):
    response = client.post("/bookings", data=booking_form(notes="<script>alert(1)</script>"))

    assert response.status_code == 201
    assert response.json()["data"]["notes"] == "&lt;script&gt;alert(1)&lt;/script&gt;"


def test_expire_stale_cancels_only_old_unpaid_pending(db):
    stale = add_booking(db, datetime(2025, 6, 10, 10, 0), created_at=FIXED_NOW - timedelta(minutes=90))
    fresh = add_booking(db, datetime(2025, 6, 10, 13, 0), created_at=FIXED_NOW - timedelta(minutes=10))
    paid = add_booking(
        db,
        datetime(2025, 6, 10, 15, 0),
        status="confirmed",
        payment_status="paid",
        created_at=FIXED_NOW - timedelta(days=1),
    )

    expired = ReservationService(db).expire_stale_bookings()

    assert expired == 1
    db.expire_all()
    assert db.get(Booking, stale.id).status == "cancelled"
    assert db.get(Booking, stale.id).cancellation_reason == "expired"
    assert db.get(Booking, fresh.id).status == "pending"
    assert db.get(Booking, paid.id).status == "confirmed"

    slots = AvailabilityCalculator(db).get_availability(datetime(2025, 6, 10).date())
    assert [s.available for s in slots] == [True, False, False]


def test_same_day_conflict_only_suggests_slots_still_ahead(db):
    add_booking(db, datetime(2025, 6, 10, 15, 0), status="confirmed")

    with pytest.raises(SlotConflictError) as midday:
        ReservationService(db, now_provider=lambda: datetime(2025, 6, 10, 12, 0)).submit(
            booking_details(start=datetime(2025, 6, 10, 15, 0))
        )
    with pytest.raises(SlotConflictError) as afternoon:
        ReservationService(db, now_provider=lambda: datetime(2025, 6, 10, 14, 0)).submit(
            booking_details(start=datetime(2025, 6, 10, 15, 0))
        )

    assert [s.start for s in midday.value.suggestions] == [datetime(2025, 6, 10, 13, 0)]
    assert afternoon.value.suggestions == []
