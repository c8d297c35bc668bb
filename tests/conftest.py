"""Shared fixtures for the API test suite."""

import os

# Must be set before anything under app/ is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DEFAULT_CURRENCY"] = "BHD"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"

from datetime import date, datetime, time, timedelta  # noqa: E402
from typing import Optional  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app import models  # noqa: E402
from app.auth import create_jwt_token  # noqa: E402
from app.database import Base, SessionLocal, engine  # noqa: E402
from app.domain.catalog.aggregate import Product  # noqa: E402
from app.domain.catalog.repository import ProductRepository  # noqa: E402
from app.domain.doctors.aggregate import Doctor, DoctorAvailability  # noqa: E402
from app.domain.doctors.repository import DoctorRepository  # noqa: E402
from app.domain.errors import ExternalServiceError  # noqa: E402
from app.domain.value_objects import Money  # noqa: E402
from app.main import app  # noqa: E402
from app.services.payment_service import PaymentResult, get_payment_service  # noqa: E402
from app.services.zoom_service import AppointmentZoomService, ZoomMeeting, get_zoom_service  # noqa: E402


# ---------------------------------------------------------------------------
# Fakes for external services
# ---------------------------------------------------------------------------

class FakePaymentService:
    """Records charges and refunds; flip ``succeed`` to simulate a decline."""

    def __init__(self):
        self.succeed = True
        self.refund_succeeds = True
        self.charges: list[dict] = []
        self.refunds: list[dict] = []

    async def process_payment(self, amount, payment_method_id, description, metadata=None, idempotency_key=None):
        self.charges.append({"amount": amount, "payment_method_id": payment_method_id, "metadata": metadata})
        if not self.succeed:
            return PaymentResult(False, error_message="Your card was declined.")
        return PaymentResult(True, payment_id=f"pi_test_{len(self.charges)}", amount=amount)

    async def process_refund(self, payment_id, amount=None):
        self.refunds.append({"payment_id": payment_id, "amount": amount})
        if not self.refund_succeeds:
            return PaymentResult(False, error_message="Charge already refunded")
        return PaymentResult(True, payment_id=f"re_test_{len(self.refunds)}", amount=amount)


class FakeZoomClient:
    """Stands in for ZoomClient; ``fail_*`` flags make the next calls raise."""

    def __init__(self):
        self.fail_create = False
        self.fail_update = False
        self.fail_delete = False
        self.created: list[dict] = []
        self.updated: list[tuple[str, dict]] = []
        self.deleted: list[str] = []

    def is_configured(self) -> bool:
        return True

    async def create_meeting(self, payload):
        if self.fail_create:
            raise ExternalServiceError("Failed to create Zoom meeting")
        self.created.append(payload)
        meeting_id = str(90000 + len(self.created))
        return ZoomMeeting(id=meeting_id, join_url=f"https://zoom.us/j/{meeting_id}")

    async def update_meeting(self, meeting_id, payload):
        if self.fail_update:
            raise ExternalServiceError("Failed to update Zoom meeting")
        self.updated.append((meeting_id, payload))

    async def delete_meeting(self, meeting_id):
        if self.fail_delete:
            raise ExternalServiceError("Failed to delete Zoom meeting")
        self.deleted.append(meeting_id)


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _schema():
    """Fresh tables for every test on the shared in-memory engine."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


# ---------------------------------------------------------------------------
# Users and tokens
# ---------------------------------------------------------------------------

def _make_user(db, email: str, role: str = "customer") -> models.User:
    user = models.User(email=email, full_name=email.split("@")[0].title(), role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def customer(db) -> models.User:
    return _make_user(db, "parent@example.com")


@pytest.fixture
def other_customer(db) -> models.User:
    return _make_user(db, "other@example.com")


@pytest.fixture
def admin(db) -> models.User:
    return _make_user(db, "admin@example.com", role="admin")


def auth_headers(user: models.User) -> dict[str, str]:
    token = create_jwt_token({"sub": user.id, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer_headers(customer) -> dict[str, str]:
    return auth_headers(customer)


@pytest.fixture
def other_headers(other_customer) -> dict[str, str]:
    return auth_headers(other_customer)


@pytest.fixture
def admin_headers(admin) -> dict[str, str]:
    return auth_headers(admin)


# ---------------------------------------------------------------------------
# Catalog and doctors
# ---------------------------------------------------------------------------

def make_product(db, sku: str, price: str, stock: int = 10, currency: str = "USD", name: Optional[str] = None) -> Product:
    product = Product.create(
        name=name or f"Product {sku}",
        sku=sku,
        price=Money.create(price, currency),
        stock_quantity=stock,
    )
    ProductRepository.add(db, product)
    db.commit()
    return product


@pytest.fixture
def sensory_kit(db) -> Product:
    return make_product(db, "KIT-001", "10.00", stock=10, name="Sensory Kit")


@pytest.fixture
def visual_cards(db) -> Product:
    return make_product(db, "CARD-001", "5.00", stock=5, name="Visual Schedule Cards")


@pytest.fixture
def doctor(db) -> Doctor:
    """Available every day 09:00-17:00."""
    doctor = Doctor.create(name="Dr. Amal Hassan", specialty="Speech Therapy", email="amal@center.example")
    for day in range(7):
        doctor.add_availability(DoctorAvailability.create(doctor.id, day, time(9, 0), time(17, 0)))
    DoctorRepository.add(db, doctor)
    db.commit()
    return doctor


@pytest.fixture
def other_doctor(db) -> Doctor:
    doctor = Doctor.create(name="Dr. Yusuf Karim", specialty="Occupational Therapy", email="yusuf@center.example")
    for day in range(7):
        doctor.add_availability(DoctorAvailability.create(doctor.id, day, time(9, 0), time(17, 0)))
    DoctorRepository.add(db, doctor)
    db.commit()
    return doctor


def future_day(days: int = 7) -> date:
    return date.today() + timedelta(days=days)


def at(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime.combine(day, time(hour, minute))


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------

@pytest.fixture
def payments() -> FakePaymentService:
    return FakePaymentService()


@pytest.fixture
def zoom_client() -> FakeZoomClient:
    return FakeZoomClient()


@pytest.fixture
def client(payments, zoom_client):
    app.dependency_overrides[get_payment_service] = lambda: payments
    app.dependency_overrides[get_zoom_service] = lambda: AppointmentZoomService(client=zoom_client)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
