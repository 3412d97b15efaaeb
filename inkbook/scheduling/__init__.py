from inkbook.scheduling.availability import AvailabilityChecker
from inkbook.scheduling.booking_flow import BookingFlow, BookingState, BookingTrigger
from inkbook.scheduling.cancellation import CancellationPolicyEnforcer, decide_cancellation
from inkbook.scheduling.duration import estimate_duration_hours, estimate_end
from inkbook.scheduling.orchestrator import BookingOrchestrator
from inkbook.scheduling.pricing import PricingEngine, quote

__all__ = [
    "AvailabilityChecker",
    "BookingFlow",
    "BookingState",
    "BookingTrigger",
    "BookingOrchestrator",
    "CancellationPolicyEnforcer",
    "decide_cancellation",
    "estimate_duration_hours",
    "estimate_end",
    "PricingEngine",
    "quote",
]
