"""Tests for booking creation and the appointment status state machine."""

import asyncio
from datetime import timedelta

import pytest

from models.animal import Animal
from models.appointment import AppointmentStatus, BlockedPeriod
from models.clinic import Clinic
from models.reminder import ReminderRule, ReminderStatus
from models.user import ClinicRole, UserClinicRole
from scheduling.errors import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from scheduling.scheduler import AppointmentScheduler
from services.reminders import ReminderService
from tests.conftest import paris


@pytest.fixture
def scheduler(world, config):
    return AppointmentScheduler(world.repos, config, reminders=ReminderService(world.repos))


async def _create(world, scheduler, hour=10, minute=0, vet=None, **kwargs):
    return await scheduler.create_appointment(
        world.clinic.id,
        world.animal.id,
        (vet or world.vet).id,
        paris(2024, 6, 3, hour, minute),
        **kwargs,
    )


class TestCreateAppointment:
    @pytest.mark.asyncio
    async def test_creates_pending_thirty_minute_booking(self, world, scheduler):
        appt = await _create(world, scheduler, created_by_user_id=world.owner.id)

        assert appt.id
        assert appt.status == AppointmentStatus.PENDING
        assert appt.is_live
        assert appt.ends_at - appt.starts_at == timedelta(minutes=30)
        assert appt.created_by_user_id == world.owner.id

    @pytest.mark.asyncio
    async def test_naive_start_is_read_in_clinic_time_zone(self, world, scheduler):
        appt = await scheduler.create_appointment(world.clinic.id, world.animal.id, world.vet.id, "2024-06-03T10:00:00")
        assert appt.starts_at == paris(2024, 6, 3, 10)

    @pytest.mark.asyncio
    async def test_utc_start_is_accepted(self, world, scheduler):
        # 08:00Z is 10:00 in Paris during summer time
        appt = await scheduler.create_appointment(world.clinic.id, world.animal.id, world.vet.id, "2024-06-03T08:00:00Z")
        assert appt.starts_at == paris(2024, 6, 3, 10)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [None, "", "tomorrow at ten"])
    async def test_missing_or_unparsable_start(self, world, scheduler, value):
        with pytest.raises(ValidationError):
            await scheduler.create_appointment(world.clinic.id, world.animal.id, world.vet.id, value)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "start",
        [paris(2024, 6, 3, 9, 15), paris(2024, 6, 3, 19), paris(2024, 6, 3, 8, 30), paris(2024, 6, 9, 10)],
    )
    async def test_start_must_be_a_slot_position(self, world, scheduler, start):
        with pytest.raises(ValidationError):
            await scheduler.create_appointment(world.clinic.id, world.animal.id, world.vet.id, start)

    @pytest.mark.asyncio
    async def test_unknown_references(self, world, scheduler):
        start = paris(2024, 6, 3, 10)
        with pytest.raises(NotFoundError):
            await scheduler.create_appointment("missing", world.animal.id, world.vet.id, start)
        with pytest.raises(NotFoundError):
            await scheduler.create_appointment(world.clinic.id, "missing", world.vet.id, start)
        with pytest.raises(NotFoundError):
            await scheduler.create_appointment(world.clinic.id, world.animal.id, world.vet.id, start, type_id="missing")

    @pytest.mark.asyncio
    async def test_vet_must_belong_to_clinic(self, world, scheduler):
        with pytest.raises(ValidationError):
            await _create(world, scheduler, vet=world.asv)

    @pytest.mark.asyncio
    async def test_owner_books_only_own_animals(self, world, scheduler):
        with pytest.raises(PermissionDeniedError):
            await _create(world, scheduler, created_by_user_id=world.other_owner.id)

    @pytest.mark.asyncio
    async def test_staff_can_book_for_any_animal(self, world, scheduler):
        appt = await _create(world, scheduler, created_by_user_id=world.asv.id)
        assert appt.status == AppointmentStatus.PENDING

    @pytest.mark.asyncio
    async def test_same_slot_twice_conflicts(self, world, scheduler):
        await _create(world, scheduler)
        with pytest.raises(ConflictError):
            await _create(world, scheduler)

    @pytest.mark.asyncio
    async def test_same_slot_other_vet_is_fine(self, world, scheduler):
        await _create(world, scheduler)
        appt = await _create(world, scheduler, vet=world.other_vet)
        assert appt.vet_user_id == world.other_vet.id

    @pytest.mark.asyncio
    async def test_blocked_period_conflicts(self, world, scheduler):
        await world.repos.blocked_periods.insert(
            BlockedPeriod(
                clinic_id=world.clinic.id,
                vet_user_id=world.vet.id,
                starts_at=paris(2024, 6, 3, 13),
                ends_at=paris(2024, 6, 3, 14),
            )
        )
        with pytest.raises(ConflictError):
            await _create(world, scheduler, hour=13, minute=30)

    @pytest.mark.asyncio
    async def test_concurrent_bookings_for_same_slot(self, world, scheduler):
        results = await asyncio.gather(
            _create(world, scheduler),
            _create(world, scheduler),
            return_exceptions=True,
        )

        successes = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], ConflictError)
        live = [a for a in world.repos.appointments.items.values() if a.is_live]
        assert len(live) == 1

    @pytest.mark.asyncio
    async def test_concurrent_bookings_across_offset_clinic_grids(self, world, scheduler):
        canal = world.repos.clinics.add(
            Clinic(name="Clinique du Canal", postcode="75010", city="Paris", opening_hours={"mon": "09:15-19:15"})
        )
        world.repos.users.roles.append(UserClinicRole(user_id=world.vet.id, clinic_id=canal.id, role=ClinicRole.VET))
        filou = world.repos.animals.add(Animal(owner_id=world.owner.id, clinic_id=canal.id, name="Filou"))

        results = await asyncio.gather(
            _create(world, scheduler, hour=10),
            scheduler.create_appointment(canal.id, filou.id, world.vet.id, paris(2024, 6, 3, 10, 15)),
            return_exceptions=True,
        )

        assert [type(r) for r in results if isinstance(r, Exception)] == [ConflictError]
        live = [a for a in world.repos.appointments.items.values() if a.is_live]
        assert len(live) == 1

    @pytest.mark.asyncio
    async def test_booking_and_confirm_hold_the_vet_lock(self, world, scheduler):
        appt = await _create(world, scheduler)
        await scheduler.confirm_appointment(appt.id)

        assert world.repos.vet_locks.acquired == [world.vet.id, world.vet.id]

    @pytest.mark.asyncio
    async def test_cancelled_slot_can_be_rebooked(self, world, scheduler):
        first = await _create(world, scheduler)
        await scheduler.cancel_appointment(first.id)

        second = await _create(world, scheduler)
        assert second.id != first.id
        assert second.status == AppointmentStatus.PENDING


class TestTransitions:
    @pytest.mark.asyncio
    async def test_confirm_pending(self, world, scheduler):
        appt = await _create(world, scheduler)
        confirmed = await scheduler.confirm_appointment(appt.id)
        assert confirmed.status == AppointmentStatus.CONFIRMED
        assert confirmed.is_live

    @pytest.mark.asyncio
    async def test_confirm_plans_reminders(self, world, scheduler):
        rule = world.repos.reminders.add_rule(ReminderRule(offset_days=-1))
        appt = await _create(world, scheduler)

        await scheduler.confirm_appointment(appt.id)

        instances = await world.repos.reminders.list_instances()
        assert len(instances) == 1
        assert instances[0].rule_id == rule.id
        assert instances[0].user_id == world.owner.id
        assert instances[0].send_at == paris(2024, 6, 2, 10)

    @pytest.mark.asyncio
    async def test_confirm_rechecks_conflicts(self, world, scheduler):
        appt = await _create(world, scheduler)
        await world.repos.blocked_periods.insert(
            BlockedPeriod(
                clinic_id=world.clinic.id,
                vet_user_id=world.vet.id,
                starts_at=paris(2024, 6, 3, 10),
                ends_at=paris(2024, 6, 3, 11),
            )
        )
        with pytest.raises(ConflictError):
            await scheduler.confirm_appointment(appt.id)
        assert (await scheduler.get_appointment(appt.id)).status == AppointmentStatus.PENDING

    @pytest.mark.asyncio
    async def test_reject_requires_reason_length(self, world, scheduler):
        appt = await _create(world, scheduler)
        with pytest.raises(ValidationError):
            await scheduler.reject_appointment(appt.id, "ok")
        with pytest.raises(ValidationError):
            await scheduler.reject_appointment(appt.id, "          short     ")
        with pytest.raises(ValidationError):
            await scheduler.reject_appointment(appt.id, "x" * 501)
        assert (await scheduler.get_appointment(appt.id)).status == AppointmentStatus.PENDING

    @pytest.mark.asyncio
    async def test_reject_stores_stripped_reason_and_frees_slot(self, world, scheduler):
        appt = await _create(world, scheduler)
        rejected = await scheduler.reject_appointment(appt.id, "  Vet unavailable that day  ")

        assert rejected.status == AppointmentStatus.REJECTED
        assert rejected.rejection_reason == "Vet unavailable that day"
        assert not rejected.is_live

    @pytest.mark.asyncio
    async def test_cancel_confirmed_cancels_reminders(self, world, scheduler):
        world.repos.reminders.add_rule(ReminderRule())
        appt = await _create(world, scheduler)
        await scheduler.confirm_appointment(appt.id)

        cancelled = await scheduler.cancel_appointment(appt.id)

        assert cancelled.status == AppointmentStatus.CANCELLED
        statuses = [i.status for i in await world.repos.reminders.list_instances()]
        assert statuses == [ReminderStatus.CANCELLED]

    @pytest.mark.asyncio
    async def test_complete_by_attending_vet(self, world, scheduler):
        appt = await _create(world, scheduler)
        await scheduler.confirm_appointment(appt.id)

        done = await scheduler.complete_appointment(
            appt.id, notes="Internal", report="All good", completed_by_user_id=world.vet.id
        )

        assert done.status == AppointmentStatus.COMPLETED
        assert done.notes == "Internal"
        assert done.report == "All good"
        assert done.is_live

    @pytest.mark.asyncio
    async def test_complete_by_other_vet_is_denied(self, world, scheduler):
        appt = await _create(world, scheduler)
        await scheduler.confirm_appointment(appt.id)
        with pytest.raises(PermissionDeniedError):
            await scheduler.complete_appointment(appt.id, completed_by_user_id=world.other_vet.id)

    @pytest.mark.asyncio
    async def test_complete_rejects_long_report(self, world, scheduler):
        appt = await _create(world, scheduler)
        await scheduler.confirm_appointment(appt.id)
        with pytest.raises(ValidationError):
            await scheduler.complete_appointment(appt.id, report="x" * 5001)

    @pytest.mark.asyncio
    async def test_complete_requires_confirmed(self, world, scheduler):
        appt = await _create(world, scheduler)
        with pytest.raises(InvalidStateError):
            await scheduler.complete_appointment(appt.id)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("terminal", ["reject", "cancel", "complete"])
    async def test_terminal_states_accept_no_transition(self, world, scheduler, terminal):
        appt = await _create(world, scheduler)
        if terminal == "reject":
            await scheduler.reject_appointment(appt.id, "Clinic closed for holidays")
        elif terminal == "cancel":
            await scheduler.cancel_appointment(appt.id)
        else:
            await scheduler.confirm_appointment(appt.id)
            await scheduler.complete_appointment(appt.id)

        with pytest.raises(InvalidStateError):
            await scheduler.confirm_appointment(appt.id)
        with pytest.raises(InvalidStateError):
            await scheduler.cancel_appointment(appt.id)
        with pytest.raises(InvalidStateError):
            await scheduler.reject_appointment(appt.id, "A perfectly valid reason")
        with pytest.raises(InvalidStateError):
            await scheduler.complete_appointment(appt.id)

    @pytest.mark.asyncio
    async def test_confirm_twice(self, world, scheduler):
        appt = await _create(world, scheduler)
        await scheduler.confirm_appointment(appt.id)
        with pytest.raises(InvalidStateError):
            await scheduler.confirm_appointment(appt.id)

    @pytest.mark.asyncio
    async def test_lost_race_reports_invalid_state(self, world, scheduler):
        appt = await _create(world, scheduler)
        stale = await scheduler.get_appointment(appt.id)
        await scheduler.cancel_appointment(appt.id)

        # A second request that read the appointment before the cancel
        with pytest.raises(InvalidStateError):
            await scheduler._apply(stale, "confirm")

    @pytest.mark.asyncio
    async def test_unknown_appointment(self, world, scheduler):
        with pytest.raises(NotFoundError):
            await scheduler.confirm_appointment("missing")


class TestQueries:
    @pytest.mark.asyncio
    async def test_list_pending_paginates_with_details(self, world, scheduler):
        for hour in (11, 9, 10):
            await _create(world, scheduler, hour=hour)

        page, total = await scheduler.list_pending(world.clinic.id, limit=2, offset=0)

        assert total == 3
        assert [d.appointment.starts_at.hour for d in page] == [9, 10]
        assert page[0].animal.name == "Rex"
        assert page[0].owner.email == "owner@vitavet.fr"
        assert page[0].vet.last_name == "Martin"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit,offset", [(0, 0), (101, 0), (10, -1)])
    async def test_list_pending_bounds(self, world, scheduler, limit, offset):
        with pytest.raises(ValidationError):
            await scheduler.list_pending(world.clinic.id, limit=limit, offset=offset)

    @pytest.mark.asyncio
    async def test_owner_appointments_hide_internal_notes(self, world, scheduler):
        appt = await _create(world, scheduler)
        await scheduler.confirm_appointment(appt.id)
        await scheduler.complete_appointment(appt.id, notes="Internal only", report="Shared report")
        await _create(world, scheduler, hour=11)

        mine = await scheduler.list_owner_appointments(world.owner.id)

        assert [d.appointment.starts_at.hour for d in mine] == [11, 10]
        assert mine[1].appointment.notes is None
        assert mine[1].appointment.report == "Shared report"

    @pytest.mark.asyncio
    async def test_owner_appointments_status_filter(self, world, scheduler):
        appt = await _create(world, scheduler)
        await _create(world, scheduler, hour=11)
        await scheduler.cancel_appointment(appt.id)

        cancelled = await scheduler.list_owner_appointments(world.owner.id, AppointmentStatus.CANCELLED)
        assert [d.appointment.id for d in cancelled] == [appt.id]

    @pytest.mark.asyncio
    async def test_owner_without_animals(self, world, scheduler):
        assert await scheduler.list_owner_appointments(world.vet.id) == []
