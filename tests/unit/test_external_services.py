"""Stripe amount conversion and the Zoom appointment integration."""

from datetime import datetime, timedelta
from decimal import Decimal

import httpx
import pytest

from app.domain.appointments.aggregate import Appointment
from app.domain.errors import InvalidOperationError
from app.domain.value_objects import Currency, Money, PatientInfo
from app.services.payment_service import StripePaymentService, from_minor_units, to_minor_units
from app.services.zoom_service import (
    AppointmentZoomService,
    ZoomClient,
    generate_meeting_password,
    get_zoom_client,
    get_zoom_service,
)

from conftest import FakeZoomClient


def appointment() -> Appointment:
    return Appointment.create(
        user_id="user-1",
        doctor_id="doctor-1",
        appointment_date=datetime(2026, 3, 9, 10, 0),
        duration_in_minutes=45,
        appointment_number="APT-2026-000001",
        patient_info=PatientInfo.create("Sara", 7),
        now=datetime(2026, 3, 1),
    )


class TestMinorUnits:
    def test_usd_has_two_decimals(self):
        assert to_minor_units(Money.create("10.50", "USD")) == 1050

    def test_bhd_has_three_decimals(self):
        assert to_minor_units(Money.create("1.250", "BHD")) == 1250

    def test_back_from_minor_units(self):
        assert from_minor_units(2500, Currency.USD).amount == Decimal("25")


class TestStripeNotConfigured:
    @pytest.mark.asyncio
    async def test_payment_fails_without_raising(self):
        service = StripePaymentService(api_key=None)
        result = await service.process_payment(Money.create(10, "USD"), "pm_card_visa", "test")
        assert not result.success
        assert "not configured" in result.error_message

    @pytest.mark.asyncio
    async def test_refund_fails_without_raising(self):
        result = await StripePaymentService(api_key="").process_refund("pi_123")
        assert not result.success


class TestAppointmentZoomService:
    @pytest.mark.asyncio
    async def test_create_attaches_meeting(self):
        client = FakeZoomClient()
        appt = appointment()

        join_url = await AppointmentZoomService(client).create_meeting_for(appt)

        assert join_url == appt.zoom_join_url
        assert appt.has_zoom_meeting()
        payload = client.created[0]
        assert payload["duration"] == 45
        assert payload["start_time"] == "2026-03-09T10:00:00Z"
        assert payload["settings"]["waiting_room"] is True

    @pytest.mark.asyncio
    async def test_create_twice_rejected(self):
        service = AppointmentZoomService(FakeZoomClient())
        appt = appointment()
        await service.create_meeting_for(appt)
        with pytest.raises(InvalidOperationError):
            await service.create_meeting_for(appt)

    @pytest.mark.asyncio
    async def test_reschedule_updates_existing_meeting(self):
        client = FakeZoomClient()
        service = AppointmentZoomService(client)
        appt = appointment()
        await service.create_meeting_for(appt)

        appt.reschedule(appt.appointment_date + timedelta(days=1), now=datetime(2026, 3, 1))
        await service.reschedule_meeting_for(appt)

        meeting_id, payload = client.updated[0]
        assert meeting_id == appt.zoom_meeting_id
        assert payload["start_time"] == "2026-03-10T10:00:00Z"

    @pytest.mark.asyncio
    async def test_reschedule_without_meeting_creates_one(self):
        client = FakeZoomClient()
        appt = appointment()
        await AppointmentZoomService(client).reschedule_meeting_for(appt)
        assert len(client.created) == 1
        assert appt.has_zoom_meeting()

    @pytest.mark.asyncio
    async def test_cancel_deletes_and_clears(self):
        client = FakeZoomClient()
        service = AppointmentZoomService(client)
        appt = appointment()
        await service.create_meeting_for(appt)
        meeting_id = appt.zoom_meeting_id

        await service.cancel_meeting_for(appt)

        assert client.deleted == [meeting_id]
        assert not appt.has_zoom_meeting()

    @pytest.mark.asyncio
    async def test_unconfigured_zoom_is_a_noop(self):
        service = AppointmentZoomService(ZoomClient(account_id=None, client_id=None, client_secret=None))
        appt = appointment()
        assert await service.create_meeting_for(appt) is None
        assert not appt.has_zoom_meeting()


def test_meeting_password_is_alphanumeric():
    password = generate_meeting_password()
    assert len(password) == 8
    assert password.isalnum()


class TestZoomToken:
    @pytest.mark.asyncio
    async def test_token_is_reused_until_near_expiry(self):
        token_requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            token_requests.append(request)
            return httpx.Response(200, json={"access_token": "tok-1", "expires_in": 3600})

        client = ZoomClient(account_id="acct", client_id="id", client_secret="secret")
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
            first = await client._get_access_token(http_client)
            second = await client._get_access_token(http_client)

        assert first == second == "tok-1"
        assert len(token_requests) == 1
        assert token_requests[0].url.params["grant_type"] == "account_credentials"

    def test_services_share_one_client(self):
        assert get_zoom_service().client is get_zoom_service().client
        assert get_zoom_service().client is get_zoom_client()
