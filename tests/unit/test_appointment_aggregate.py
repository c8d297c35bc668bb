"""Appointment lifecycle."""

from datetime import datetime, timedelta

import pytest

from app.domain.appointments.aggregate import Appointment, AppointmentStatus
from app.domain.errors import InvalidOperationError, InvalidStateTransitionError, ValidationError
from app.domain.value_objects import PatientInfo

NOW = datetime(2026, 3, 2, 8, 0)
START = datetime(2026, 3, 9, 10, 0)


def make_appointment(**overrides) -> Appointment:
    data = dict(
        user_id="user-1",
        doctor_id="doctor-1",
        appointment_date=START,
        duration_in_minutes=60,
        appointment_number="APT-2026-000001",
        patient_info=PatientInfo.create("Sara", 7),
        now=NOW,
    )
    data.update(overrides)
    return Appointment.create(**data)


class TestCreate:
    def test_defaults(self):
        appointment = make_appointment()
        assert appointment.status == AppointmentStatus.SCHEDULED
        assert appointment.end_time == START + timedelta(minutes=60)
        assert not appointment.has_zoom_meeting()

    def test_past_date_rejected(self):
        with pytest.raises(ValidationError):
            make_appointment(appointment_date=NOW - timedelta(hours=1))

    def test_non_positive_duration_rejected(self):
        with pytest.raises(ValidationError):
            make_appointment(duration_in_minutes=0)


class TestTransitions:
    def test_confirm_start_complete(self):
        appointment = make_appointment()
        appointment.confirm()
        appointment.start()
        appointment.complete("Good progress")
        assert appointment.status == AppointmentStatus.COMPLETED
        assert appointment.notes == "Good progress"

    def test_complete_straight_from_confirmed(self):
        appointment = make_appointment()
        appointment.confirm()
        appointment.complete()
        assert appointment.status == AppointmentStatus.COMPLETED

    def test_cannot_complete_scheduled(self):
        with pytest.raises(InvalidStateTransitionError):
            make_appointment().complete()

    def test_cannot_start_scheduled(self):
        with pytest.raises(InvalidStateTransitionError):
            make_appointment().start()

    @pytest.mark.parametrize("confirm_first", [False, True])
    def test_cancel_open_appointment(self, confirm_first):
        appointment = make_appointment()
        if confirm_first:
            appointment.confirm()
        appointment.cancel()
        assert appointment.status == AppointmentStatus.CANCELLED

    def test_cancel_completed_raises_invalid_operation(self):
        appointment = make_appointment()
        appointment.confirm()
        appointment.complete()
        with pytest.raises(InvalidOperationError):
            appointment.cancel()

    def test_no_show(self):
        appointment = make_appointment()
        appointment.confirm()
        appointment.mark_no_show()
        assert appointment.status == AppointmentStatus.NO_SHOW

    def test_no_show_after_cancel_fails(self):
        appointment = make_appointment()
        appointment.cancel()
        with pytest.raises(InvalidStateTransitionError):
            appointment.mark_no_show()


class TestReschedule:
    def test_moves_and_resets_to_scheduled(self):
        appointment = make_appointment()
        appointment.confirm()
        new_start = START + timedelta(days=1)

        appointment.reschedule(new_start, now=NOW)

        assert appointment.appointment_date == new_start
        assert appointment.status == AppointmentStatus.SCHEDULED

    def test_past_date_rejected(self):
        with pytest.raises(ValidationError):
            make_appointment().reschedule(NOW - timedelta(minutes=1), now=NOW)

    def test_cancelled_cannot_be_rescheduled(self):
        appointment = make_appointment()
        appointment.cancel()
        assert not appointment.can_be_rescheduled()
        with pytest.raises(InvalidOperationError):
            appointment.reschedule(START + timedelta(days=1), now=NOW)


class TestOverrideAndExtras:
    def test_override_ignores_table(self):
        appointment = make_appointment()
        appointment.cancel()
        previous = appointment.override_status(AppointmentStatus.COMPLETED)
        assert previous == AppointmentStatus.CANCELLED
        assert appointment.status == AppointmentStatus.COMPLETED

    def test_zoom_meeting(self):
        appointment = make_appointment()
        appointment.set_zoom_meeting("123", "https://zoom.us/j/123")
        assert appointment.has_zoom_meeting()
        appointment.clear_zoom_meeting()
        assert appointment.zoom_join_url is None

    def test_zoom_meeting_requires_url(self):
        with pytest.raises(ValidationError):
            make_appointment().set_zoom_meeting("123", "")

    def test_notes_append(self):
        appointment = make_appointment()
        appointment.add_notes("first")
        appointment.add_notes("  ")
        appointment.add_notes("second")
        assert appointment.notes == "first\nsecond"

    def test_is_upcoming(self):
        appointment = make_appointment()
        assert appointment.is_upcoming(now=NOW)
        appointment.cancel()
        assert not appointment.is_upcoming(now=NOW)
