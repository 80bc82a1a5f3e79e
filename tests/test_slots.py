"""Tests for bookable slot generation."""

from datetime import date, timedelta

import pytest

from models.appointment import Appointment, AppointmentStatus, BlockedPeriod
from scheduling.errors import NotFoundError, ValidationError
from scheduling.slots import candidate_intervals, generate_slots, is_slot_position
from scheduling.timeutils import elapsed_between
from tests.conftest import MONDAY, paris


async def _book(world, vet, hour, minute=0, status=AppointmentStatus.PENDING):
    start = paris(2024, 6, 3, hour, minute)
    return await world.repos.appointments.insert(
        Appointment(
            clinic_id=world.clinic.id,
            animal_id=world.animal.id,
            vet_user_id=vet.id,
            starts_at=start,
            ends_at=start + timedelta(minutes=30),
            status=status,
        )
    )


class TestCandidateIntervals:
    def test_trailing_partial_interval_is_dropped(self):
        windows = [(paris(2024, 6, 3, 9), paris(2024, 6, 3, 10, 45))]
        starts = [s for s, _ in candidate_intervals(windows, timedelta(minutes=30))]
        assert starts == [paris(2024, 6, 3, 9), paris(2024, 6, 3, 9, 30), paris(2024, 6, 3, 10)]

    def test_slot_position_requires_grid_alignment(self):
        windows = [(paris(2024, 6, 3, 9), paris(2024, 6, 3, 19))]
        duration = timedelta(minutes=30)
        assert is_slot_position(windows, paris(2024, 6, 3, 18, 30), duration)
        assert not is_slot_position(windows, paris(2024, 6, 3, 9, 15), duration)
        assert not is_slot_position(windows, paris(2024, 6, 3, 19), duration)
        assert not is_slot_position(windows, paris(2024, 6, 3, 8, 30), duration)

    def test_spring_forward_day_keeps_real_slot_length(self):
        windows = [(paris(2024, 3, 31, 0), paris(2024, 3, 31, 4))]
        intervals = list(candidate_intervals(windows, timedelta(minutes=30)))

        assert [(s.hour, s.minute) for s, _ in intervals] == [(0, 0), (0, 30), (1, 0), (1, 30), (3, 0), (3, 30)]
        assert all(elapsed_between(s, e) == timedelta(minutes=30) for s, e in intervals)

    def test_fall_back_day_has_the_repeated_hour(self):
        windows = [(paris(2024, 10, 27, 0), paris(2024, 10, 27, 4))]
        intervals = list(candidate_intervals(windows, timedelta(minutes=30)))

        assert len(intervals) == 10
        assert all(elapsed_between(s, e) == timedelta(minutes=30) for s, e in intervals)
        assert is_slot_position(windows, intervals[-1][0], timedelta(minutes=30))


class TestGenerateSlots:
    @pytest.mark.asyncio
    async def test_full_day_for_one_vet(self, world, config):
        slots = await generate_slots(world.repos, config, world.clinic.id, MONDAY, vet_user_id=world.vet.id)

        assert len(slots) == 20
        assert slots[0].starts_at == paris(2024, 6, 3, 9)
        assert slots[-1].starts_at == paris(2024, 6, 3, 18, 30)
        assert slots[-1].ends_at == paris(2024, 6, 3, 19)
        assert all(s.duration_minutes == 30 and s.vet_user_id == world.vet.id for s in slots)

    @pytest.mark.asyncio
    async def test_all_vets_sorted_by_start(self, world, config):
        slots = await generate_slots(world.repos, config, world.clinic.id, MONDAY)

        assert len(slots) == 40
        assert [s.starts_at for s in slots] == sorted(s.starts_at for s in slots)
        assert {s.vet_user_id for s in slots[:2]} == {world.vet.id, world.other_vet.id}

    @pytest.mark.asyncio
    async def test_live_appointment_removes_slot_for_that_vet_only(self, world, config):
        await _book(world, world.vet, 10)

        slots = await generate_slots(world.repos, config, world.clinic.id, MONDAY)
        ten = paris(2024, 6, 3, 10)

        assert not any(s.starts_at == ten and s.vet_user_id == world.vet.id for s in slots)
        assert any(s.starts_at == ten and s.vet_user_id == world.other_vet.id for s in slots)
        assert len(slots) == 39

    @pytest.mark.asyncio
    async def test_cancelled_appointment_frees_the_slot(self, world, config):
        await _book(world, world.vet, 10, status=AppointmentStatus.CANCELLED)

        slots = await generate_slots(world.repos, config, world.clinic.id, MONDAY, vet_user_id=world.vet.id)

        assert len(slots) == 20

    @pytest.mark.asyncio
    async def test_blocked_period_removes_overlapping_slots(self, world, config):
        await world.repos.blocked_periods.insert(
            BlockedPeriod(
                clinic_id=world.clinic.id,
                vet_user_id=world.vet.id,
                starts_at=paris(2024, 6, 3, 13),
                ends_at=paris(2024, 6, 3, 14),
                reason="Formation",
            )
        )

        slots = await generate_slots(world.repos, config, world.clinic.id, MONDAY, vet_user_id=world.vet.id)
        starts = {s.starts_at for s in slots}

        assert len(slots) == 18
        assert paris(2024, 6, 3, 13) not in starts
        assert paris(2024, 6, 3, 13, 30) not in starts
        assert paris(2024, 6, 3, 14) in starts

    @pytest.mark.asyncio
    async def test_closed_day_returns_empty_list(self, world, config):
        assert await generate_slots(world.repos, config, world.clinic.id, "2024-06-09") == []

    @pytest.mark.asyncio
    async def test_clinic_without_hours_returns_empty_list(self, world, config):
        await world.repos.clinics.update(world.clinic.id, {"opening_hours": None})
        assert await generate_slots(world.repos, config, world.clinic.id, MONDAY) == []

    @pytest.mark.asyncio
    async def test_short_saturday(self, world, config):
        slots = await generate_slots(world.repos, config, world.clinic.id, date(2024, 6, 8), vet_user_id=world.vet.id)
        assert len(slots) == 6

    @pytest.mark.asyncio
    async def test_unknown_clinic(self, world, config):
        with pytest.raises(NotFoundError):
            await generate_slots(world.repos, config, "missing", MONDAY)

    @pytest.mark.asyncio
    async def test_vet_outside_clinic(self, world, config):
        with pytest.raises(ValidationError):
            await generate_slots(world.repos, config, world.clinic.id, MONDAY, vet_user_id=world.asv.id)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", ["03/06/2024", "2024-06-03garbage", "2024-06-03T10:00", "2024-13-01"])
    async def test_invalid_date(self, world, config, value):
        with pytest.raises(ValidationError):
            await generate_slots(world.repos, config, world.clinic.id, value)

    @pytest.mark.asyncio
    async def test_repeated_calls_are_identical(self, world, config):
        await _book(world, world.vet, 11)
        first = await generate_slots(world.repos, config, world.clinic.id, MONDAY)
        second = await generate_slots(world.repos, config, world.clinic.id, MONDAY)
        assert first == second

    @pytest.mark.asyncio
    async def test_generated_slot_can_be_booked_and_disappears(self, world, config):
        from scheduling.scheduler import AppointmentScheduler

        slots = await generate_slots(world.repos, config, world.clinic.id, MONDAY, vet_user_id=world.vet.id)
        scheduler = AppointmentScheduler(world.repos, config)
        await scheduler.create_appointment(world.clinic.id, world.animal.id, world.vet.id, slots[3].starts_at)

        after = await generate_slots(world.repos, config, world.clinic.id, MONDAY, vet_user_id=world.vet.id)
        assert len(after) == 19
        assert slots[3].starts_at not in {s.starts_at for s in after}
