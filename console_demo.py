"""
Offline console demo: walks through quoting, booking, conflicts and
cancellation without a database or email service.

Uses the real availability checker, pricing engine, cancellation policy
and orchestrator against the in-memory stores.

Usage:
    python console_demo.py
    python console_demo.py --scenario conflict
    python console_demo.py --scenario cancel
"""

import argparse
import asyncio
import sys
from datetime import datetime, timedelta, timezone

from inkbook.config import settings
from inkbook.errors import BookingError, ConflictError
from inkbook.scheduling.orchestrator import BookingOrchestrator
from inkbook.stores.appointment_store import InMemoryAppointmentStore
from inkbook.stores.artist_rates import InMemoryArtistRateStore
from inkbook.stores.notifications import LoggingNotificationDispatcher

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

ARTIST_RATES = {"artist-mara": 180, "artist-jonah": None}


class DemoSession:
    """Runs scripted studio scenarios and prints what happens."""

    SCENARIOS = ("quote", "booking", "conflict", "cancel")

    def __init__(self) -> None:
        self.store = InMemoryAppointmentStore()
        self.rates = InMemoryArtistRateStore(
            {artist: rate for artist, rate in ARTIST_RATES.items() if rate is not None}
        )
        self.notifier = LoggingNotificationDispatcher()
        self.orchestrator = BookingOrchestrator(self.store, self.rates, self.notifier)
        self.now = datetime.now(timezone.utc).replace(minute=0, second=0, microsecond=0)

    def say(self, text: str) -> None:
        print(f"{GREEN}{text}{RESET}")

    def warn(self, text: str) -> None:
        print(f"{YELLOW}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def _request(self, hours_ahead: int, size: str = "medium", placement: str = "arm") -> dict:
        return {
            "artistId": "artist-mara",
            "customerId": "cust-0042",
            "startDate": (self.now + timedelta(hours=hours_ahead)).isoformat(),
            "size": size,
            "placement": placement,
            "complexity": 3,
        }

    # ------------------------------------------------------------------ #
    # Scenarios
    # ------------------------------------------------------------------ #

    async def quote(self) -> None:
        for size, placement, complexity in [("medium", "arm", 3), ("large", "ribs", 5)]:
            q = await self.orchestrator.pricing.calculate_pricing(
                size, placement, complexity, custom_hourly_rate=settings.pricing.standard_hourly_rate
            )
            self.say(
                f"{size}/{placement}/complexity {complexity}: "
                f"${q.total_price} (deposit ${q.deposit_amount}, {q.estimated_hours}h)"
            )
            self.system_log(f"factors: {q.to_response()}")

        q = await self.orchestrator.pricing.calculate_pricing("small", "ankle", 2, artist_id="artist-mara")
        self.say(f"small/ankle with artist-mara's rate: ${q.total_price} (deposit ${q.deposit_amount})")

    async def booking(self) -> None:
        appointment = await self.orchestrator.schedule_appointment(self._request(24 * 10))
        self.say(
            f"Booked {appointment.id}: {appointment.title} "
            f"{appointment.start:%Y-%m-%d %H:%M} - {appointment.end:%H:%M} UTC"
        )
        self.system_log(f"status={appointment.status.value} deposit=${appointment.deposit_amount}")

        confirmed = await self.orchestrator.mark_deposit_paid(appointment.id)
        self.say(f"Deposit received, {confirmed.id} is now {confirmed.status.value}")
        self.system_log(f"notifications: {self.notifier.sent}")

    async def conflict(self) -> None:
        first = await self.orchestrator.schedule_appointment(self._request(24 * 10))
        self.say(f"Booked {first.id} {first.start:%H:%M}-{first.end:%H:%M}")
        try:
            await self.orchestrator.schedule_appointment(self._request(24 * 10 + 1))
        except ConflictError as exc:
            self.warn(f"Refused ({exc.status_code}): {exc.message}")
            for c in exc.conflicts:
                self.system_log(f"conflict {c.id} {c.start:%H:%M}-{c.end:%H:%M} {c.status.value}")

        touching = await self.orchestrator.schedule_appointment(self._request(24 * 10 + 3))
        self.say(f"Back-to-back booking accepted: {touching.id} at {touching.start:%H:%M}")

    async def cancel(self) -> None:
        for hours_ahead in (24 * 10, 72, 10):
            appointment = await self.orchestrator.schedule_appointment(self._request(hours_ahead))
            decision = await self.orchestrator.cancel_appointment(appointment.id, "change of plans")
            colour = GREEN if decision.success else RED
            print(
                f"{colour}{hours_ahead}h ahead: success={decision.success} "
                f"refundable={decision.is_refundable}{RESET}"
            )
            self.system_log(decision.message)

    async def run_scenario(self, scenario: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  STUDIO SCHEDULER - Scenario: {scenario}{RESET}")
        print(f"{BOLD}  Studio: {settings.studio_name}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        try:
            await getattr(self, scenario)()
        except BookingError as exc:
            print(f"{RED}{type(exc).__name__}: {exc.message}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Studio scheduling console demo")
    parser.add_argument(
        "--scenario",
        choices=DemoSession.SCENARIOS,
        help="Run a single scenario instead of all of them",
    )
    args = parser.parse_args()

    scenarios = [args.scenario] if args.scenario else list(DemoSession.SCENARIOS)
    for scenario in scenarios:
        print(f"\n{BLUE}{BOLD}>> {scenario}{RESET}")
        asyncio.run(DemoSession().run_scenario(scenario))
    return 0


if __name__ == "__main__":
    sys.exit(main())
