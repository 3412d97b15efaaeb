"""Tests for the cancellation policy."""

from datetime import timedelta

import pytest

from inkbook.config import PolicyConfig
from inkbook.scheduling.cancellation import CancellationPolicyEnforcer, decide_cancellation
from inkbook.schemas.appointment_schema import AppointmentStatus, CancellationOutcome
from inkbook.stores.appointment_store import InMemoryAppointmentStore

from tests.conftest import at, make_appointment

START = at(14)
ONE_SECOND = timedelta(seconds=1)


class TestLeadTimeBoundary:
    def test_exactly_48_hours_before_is_refused(self):
        decision = decide_cancellation(START, START - timedelta(hours=48))
        assert decision.success is False
        assert decision.outcome == CancellationOutcome.TOO_LATE

    def test_one_second_earlier_is_permitted(self):
        decision = decide_cancellation(START, START - timedelta(hours=48) - ONE_SECOND)
        assert decision.success is True

    def test_ten_hours_before_is_refused(self):
        decision = decide_cancellation(START, START - timedelta(hours=10))
        assert decision.success is False
        assert decision.is_refundable is False
        assert "48 hours" in decision.message

    def test_after_start_is_refused(self):
        assert decide_cancellation(START, START + timedelta(hours=1)).success is False


class TestRefundBoundary:
    def test_exactly_seven_days_before_is_refundable(self):
        decision = decide_cancellation(START, START - timedelta(days=7))
        assert decision.success is True
        assert decision.is_refundable is True

    def test_one_second_inside_refund_window_is_not_refundable(self):
        decision = decide_cancellation(START, START - timedelta(days=7) + ONE_SECOND)
        assert decision.success is True
        assert decision.is_refundable is False
        assert "7 days" in decision.message

    def test_72_hours_before_cancels_without_refund(self):
        decision = decide_cancellation(START, START - timedelta(hours=72))
        assert decision.success is True
        assert decision.is_refundable is False

    def test_ten_days_before_cancels_with_refund(self):
        decision = decide_cancellation(START, START - timedelta(days=10))
        assert decision.success is True
        assert decision.is_refundable is True


class TestCustomPolicy:
    def test_windows_come_from_policy(self):
        policy = PolicyConfig(cancellation_lead_hours=24, refund_window_days=2)
        assert decide_cancellation(START, START - timedelta(hours=30), policy).success is True
        assert decide_cancellation(START, START - timedelta(hours=24), policy).success is False
        assert decide_cancellation(START, START - timedelta(days=2), policy).is_refundable is True


class TestEnforcer:
    @pytest.mark.asyncio
    async def test_cancels_and_records_status(self):
        store = InMemoryAppointmentStore([make_appointment("APT-1", "A", START, START + timedelta(hours=2))])
        enforcer = CancellationPolicyEnforcer(store)
        decision = await enforcer.enforce_cancellation_policy(
            "APT-1", START, "moving abroad", now=START - timedelta(days=10)
        )
        assert decision.success is True
        assert decision.outcome == CancellationOutcome.CANCELLED
        assert (await store.find_by_id("APT-1")).status == AppointmentStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_refusal_leaves_status_unchanged(self):
        store = InMemoryAppointmentStore([make_appointment("APT-1", "A", START, START + timedelta(hours=2))])
        enforcer = CancellationPolicyEnforcer(store)
        decision = await enforcer.enforce_cancellation_policy(
            "APT-1", START, "sick", now=START - timedelta(hours=10)
        )
        assert decision.success is False
        assert decision.outcome == CancellationOutcome.TOO_LATE
        assert (await store.find_by_id("APT-1")).status == AppointmentStatus.CONFIRMED

    @pytest.mark.asyncio
    async def test_unknown_appointment_is_not_found(self):
        enforcer = CancellationPolicyEnforcer(InMemoryAppointmentStore())
        decision = await enforcer.enforce_cancellation_policy(
            "APT-missing", START, "n/a", now=START - timedelta(days=10)
        )
        assert decision.success is False
        assert decision.outcome == CancellationOutcome.NOT_FOUND
        assert "not found" in decision.message
        assert "48" not in decision.message

    @pytest.mark.asyncio
    async def test_already_cancelled_is_not_cancellable(self):
        store = InMemoryAppointmentStore([
            make_appointment("APT-1", "A", START, START + timedelta(hours=2),
                             status=AppointmentStatus.CANCELLED)
        ])
        enforcer = CancellationPolicyEnforcer(store)
        decision = await enforcer.enforce_cancellation_policy(
            "APT-1", START, "again", now=START - timedelta(days=10)
        )
        assert decision.success is False
        assert decision.outcome == CancellationOutcome.NOT_CANCELLABLE
