import json
import os
import tempfile
from datetime import datetime

# Settings are read at import time, so configure the environment first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["PAYSTACK_SECRET_KEY"] = "sk_test_secret"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["INCLUDE_SEED_CONTENT"] = "false"
os.environ["UPLOAD_BACKEND"] = "local"
os.environ["UPLOADS_DIR"] = tempfile.mkdtemp(prefix="srd-uploads-")
os.environ["ADMIN_EMAIL"] = "admin@srdconsulting.com"
os.environ["ADMIN_PASSWORD"] = "correct-horse-battery"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ["CONSULTATION_FEE"] = "50000"
os.environ["FRONTEND_URL"] = "https://srd.example"

import httpx  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from srd_backend.database import Base, SessionLocal, engine  # noqa: E402
from srd_backend.domain.payments.paystack_service import PaystackService, get_paystack_service  # noqa: E402
from srd_backend.main import app  # noqa: E402
from srd_backend.models import Booking  # noqa: E402
from srd_backend.shared import clock  # noqa: E402
from srd_backend.utils.file_storage import LocalFileStorage, get_file_storage  # noqa: E402

ADMIN_EMAIL = os.environ["ADMIN_EMAIL"]
ADMIN_PASSWORD = os.environ["ADMIN_PASSWORD"]
PAYSTACK_SECRET = os.environ["PAYSTACK_SECRET_KEY"]

# 2025-06-01 08:00 Lagos time; 2025-06-10 is inside the booking window
FIXED_NOW = datetime(2025, 6, 1, 8, 0)
BOOKING_DAY = "2025-06-10"


class PaystackStub:
    """Stands in for api.paystack.co behind httpx.MockTransport"""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.initialized: dict[str, int] = {}
        self.fail_initialize = False
        self.verify_unreachable = False
        self.verify_status = "success"
        self.verify_amount = None
        self.verify_currency = "NGN"

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/transaction/initialize":
            if self.fail_initialize:
                return httpx.Response(500, json={"status": False, "message": "Service unavailable"})
            body = json.loads(request.content)
            self.initialized[body["reference"]] = body["amount"]
            return httpx.Response(
                200,
                json={
                    "status": True,
                    "message": "Authorization URL created",
                    "data": {
                        "authorization_url": f"https://checkout.paystack.com/{body['reference']}",
                        "access_code": "ac_test",
                        "reference": body["reference"],
                    },
                },
            )

        if path.startswith("/transaction/verify/"):
            if self.verify_unreachable:
                raise httpx.ConnectError("connection refused", request=request)
            reference = path.rsplit("/", 1)[-1]
            amount = self.verify_amount if self.verify_amount is not None else self.initialized.get(reference, 0)
            return httpx.Response(
                200,
                json={
                    "status": True,
                    "message": "Verification successful",
                    "data": {
                        "status": self.verify_status,
                        "reference": reference,
                        "amount": amount,
                        "currency": self.verify_currency,
                        "gateway_response": "Successful" if self.verify_status == "success" else "Declined",
                    },
                },
            )

        return httpx.Response(404, json={"status": False, "message": "Not found"})

    def calls_to(self, prefix: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.startswith(prefix)]


@pytest.fixture(autouse=True)
def fixed_clock(monkeypatch):
    monkeypatch.setattr(clock, "business_now", lambda: FIXED_NOW)
    return FIXED_NOW


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def storage(tmp_path):
    return LocalFileStorage(root_dir=str(tmp_path / "uploads"))


@pytest.fixture
def paystack():
    return PaystackStub()


@pytest.fixture
def gateway(paystack):
    return PaystackService(
        secret_key=PAYSTACK_SECRET,
        base_url="https://api.paystack.co",
        transport=httpx.MockTransport(paystack.handler),
    )


@pytest.fixture
def client(db, storage, gateway):
    app.dependency_overrides[get_file_storage] = lambda: storage
    app.dependency_overrides[get_paystack_service] = lambda: gateway
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers(client):
    response = client.post("/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['data']['token']}"}


def booking_form(**overrides) -> dict:
    form = {
        "name": "Ada Obi",
        "email": "ada@example.com",
        "phone": "0803 123 4567",
        "service": "Media Relations",
        "date": f"{BOOKING_DAY}T10:00:00",
        "notes": "Product launch press plan",
    }
    form.update(overrides)
    return {k: v for k, v in form.items() if v is not None}


def stored_files(storage: LocalFileStorage) -> list:
    if not storage.root.exists():
        return []
    return [p for p in storage.root.rglob("*") if p.is_file()]


def add_booking(db, start: datetime, status: str = "pending", **fields) -> Booking:
    """Insert a booking directly, bypassing the reservation checks"""
    data = {
        "name": "Existing Client",
        "email": "client@example.com",
        "phone": "+2348030000000",
        "service": "Brand Storytelling",
        "slot_start": start,
        "slot_end": start.replace(hour=start.hour + 1),
        "status": status,
        "payment_status": "unpaid",
        "created_at": FIXED_NOW,
    }
    data.update(fields)
    booking = Booking(**data)
    db.add(booking)
    db.commit()
    db.refresh(booking)
    return booking
