"""Tests for the in-memory appointment store and its overlap constraint."""

import asyncio
from datetime import timedelta

import pytest

from inkbook.errors import ConflictError, NotFoundError, ValidationError
from inkbook.schemas.appointment_schema import AppointmentStatus

from tests.conftest import at, make_appointment


class TestInsert:
    @pytest.mark.asyncio
    async def test_insert_and_find(self, store):
        await store.insert(make_appointment("APT-1"))
        found = await store.find_by_id("APT-1")
        assert found is not None
        assert found.artist_id == "A"

    @pytest.mark.asyncio
    async def test_find_missing_returns_none(self, store):
        assert await store.find_by_id("APT-404") is None

    @pytest.mark.asyncio
    async def test_returned_copies_do_not_alias_store(self, store):
        await store.insert(make_appointment("APT-1"))
        found = await store.find_by_id("APT-1")
        found.status = AppointmentStatus.CANCELLED
        assert (await store.find_by_id("APT-1")).status == AppointmentStatus.CONFIRMED

    @pytest.mark.asyncio
    async def test_overlapping_insert_rejected(self, store):
        await store.insert(make_appointment("APT-1", "A", at(10), at(12)))
        with pytest.raises(ConflictError) as exc_info:
            await store.insert(make_appointment("APT-2", "A", at(11), at(13)))
        assert [c.id for c in exc_info.value.conflicts] == ["APT-1"]
        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_back_to_back_insert_allowed(self, store):
        await store.insert(make_appointment("APT-1", "A", at(10), at(12)))
        await store.insert(make_appointment("APT-2", "A", at(12), at(13)))

    @pytest.mark.asyncio
    async def test_overlap_with_cancelled_allowed(self, store):
        await store.insert(make_appointment("APT-1", "A", at(10), at(12), status=AppointmentStatus.CANCELLED))
        await store.insert(make_appointment("APT-2", "A", at(10), at(12)))

    @pytest.mark.asyncio
    async def test_concurrent_inserts_for_same_slot(self, store):
        results = await asyncio.gather(
            store.insert(make_appointment("APT-1", "A", at(10), at(12))),
            store.insert(make_appointment("APT-2", "A", at(11), at(13))),
            return_exceptions=True,
        )
        assert sum(isinstance(r, ConflictError) for r in results) == 1

    @pytest.mark.asyncio
    async def test_duplicate_id_rejected(self, store):
        await store.insert(make_appointment("APT-1", "A", at(10), at(12)))
        with pytest.raises(ValueError, match="already exists"):
            await store.insert(make_appointment("APT-1", "B", at(10), at(12)))


class TestUpdates:
    @pytest.mark.asyncio
    async def test_update_status(self, store):
        await store.insert(make_appointment("APT-1"))
        updated = await store.update_status("APT-1", AppointmentStatus.CANCELLED)
        assert updated.status == AppointmentStatus.CANCELLED
        assert updated.updated_at >= updated.created_at

    @pytest.mark.asyncio
    async def test_update_missing_raises_not_found(self, store):
        with pytest.raises(NotFoundError):
            await store.update_status("APT-404", AppointmentStatus.CANCELLED)

    @pytest.mark.asyncio
    async def test_reactivating_into_rebooked_slot_rejected(self, store):
        await store.insert(make_appointment("APT-1", "A", at(10), at(12), status=AppointmentStatus.CANCELLED))
        await store.insert(make_appointment("APT-2", "A", at(10), at(12)))
        with pytest.raises(ConflictError):
            await store.update_status("APT-1", AppointmentStatus.CONFIRMED)

    @pytest.mark.asyncio
    async def test_move_into_taken_slot_rejected(self, store):
        await store.insert(make_appointment("APT-1", "A", at(10), at(12)))
        await store.insert(make_appointment("APT-2", "A", at(13), at(15)))
        with pytest.raises(ConflictError):
            await store.update_times("APT-2", at(11), at(13))

    @pytest.mark.asyncio
    async def test_move_overlapping_itself_allowed(self, store):
        await store.insert(make_appointment("APT-1", "A", at(10), at(12)))
        moved = await store.update_times("APT-1", at(11), at(13))
        assert moved.start == at(11)

    @pytest.mark.asyncio
    async def test_move_with_end_before_start_rejected(self, store):
        await store.insert(make_appointment("APT-1", "A", at(10), at(12)))
        with pytest.raises(ValidationError) as exc_info:
            await store.update_times("APT-1", at(12), at(11))
        assert exc_info.value.status_code == 400
        assert exc_info.value.fields == ["end", "start"]
        assert (await store.find_by_id("APT-1")).start == at(10)

    @pytest.mark.asyncio
    async def test_update_deposit_paid(self, store):
        await store.insert(make_appointment("APT-1"))
        updated = await store.update_deposit_paid("APT-1", True)
        assert updated.deposit_paid is True


class TestQueries:
    @pytest.mark.asyncio
    async def test_find_starting_between_is_inclusive_and_active_only(self, store):
        await store.insert(make_appointment("APT-1", "A", at(10), at(11)))
        await store.insert(make_appointment("APT-2", "B", at(12), at(13)))
        await store.insert(make_appointment("APT-3", "C", at(12), at(13), status=AppointmentStatus.CANCELLED))
        await store.insert(make_appointment("APT-4", "A", at(15), at(16)))
        found = await store.find_starting_between(at(10), at(12))
        assert [a.id for a in found] == ["APT-1", "APT-2"]

    @pytest.mark.asyncio
    async def test_find_overlapping_excludes_id(self, store):
        await store.insert(make_appointment("APT-1", "A", at(10), at(12)))
        assert await store.find_overlapping("A", at(11), at(12), exclude_id="APT-1") == []

    @pytest.mark.asyncio
    async def test_reset(self, store):
        await store.insert(make_appointment("APT-1", "A", at(10), at(10) + timedelta(hours=1)))
        store.reset()
        assert await store.find_by_id("APT-1") is None
