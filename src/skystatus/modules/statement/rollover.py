from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from skystatus.modules.statement.status import next_status
from skystatus.modules.statement.types import STATUS_THRESHOLDS, RequalificationEvent, StatusLevel

# XP that may carry into a new cycle at each status; Ultimate is lifetime-based.
MAX_ROLLOVER: dict[StatusLevel, int] = {
    StatusLevel.EXPLORER: 0,
    StatusLevel.SILVER: 50,
    StatusLevel.GOLD: 80,
    StatusLevel.PLATINUM: 100,
    StatusLevel.ULTIMATE: 0,
}


class FlightXP(Protocol):
    date: str
    earned_xp: int
    saf_xp: int


@dataclass(frozen=True)
class RolloverBreakdown:
    target_status: StatusLevel
    xp: int
    threshold: int
    excess: int
    cap: int
    rollover: int


@dataclass(frozen=True)
class RolloverCheck:
    matches: bool
    discrepancy: int


def simulate_rollover(xp: int, target_status: StatusLevel) -> RolloverBreakdown:
    threshold = STATUS_THRESHOLDS[target_status]
    cap = MAX_ROLLOVER[target_status]
    excess = max(0, xp - threshold)
    return RolloverBreakdown(
        target_status=target_status,
        xp=xp,
        threshold=threshold,
        excess=excess,
        cap=cap,
        rollover=min(excess, cap),
    )


def xp_until(flights: Iterable[FlightXP], date: str, starting_xp: int = 0) -> int:
    return starting_xp + sum(f.earned_xp + f.saf_xp for f in flights if f.date <= date)


def rollover_xp(
    flights: Iterable[FlightXP],
    requalification_date: str,
    previous_status: StatusLevel,
    starting_xp: int = 0,
) -> int:
    """XP carried into the cycle that starts when ``previous_status`` levels up.

    Flights on or before ``requalification_date`` count. The result never
    exceeds the rollover cap of the status reached and is 0 at the top tier.
    """
    target = next_status(previous_status)
    if target is None:
        return 0
    return simulate_rollover(xp_until(flights, requalification_date, starting_xp), target).rollover


def rollover_from_event(event: RequalificationEvent, flights: Iterable[FlightXP]) -> int:
    if event.xp_at_requalification is not None:
        return simulate_rollover(event.xp_at_requalification, event.to_status).rollover
    return simulate_rollover(xp_until(flights, event.date), event.to_status).rollover


def validate_rollover(calculated: int, official: int, tolerance: int = 0) -> RolloverCheck:
    discrepancy = official - calculated
    return RolloverCheck(matches=abs(discrepancy) <= tolerance, discrepancy=discrepancy)
