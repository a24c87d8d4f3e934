from __future__ import annotations

import re
from dataclasses import dataclass

from skystatus.modules.statement.dates import extract_leading_date, month_key, next_month
from skystatus.modules.statement.locales import ANY_TRIP_HEADER, get_locale
from skystatus.modules.statement.numbers import strip_separators
from skystatus.modules.statement.tokenizer import COMBINED_TOTALS_RE
from skystatus.modules.statement.types import (
    STATUS_ORDER,
    STATUS_THRESHOLDS,
    BonusXPEvent,
    BonusXPSource,
    DetectedStatus,
    JourneyMilestone,
    Language,
    LevelChangeEvent,
    LineType,
    RequalificationEvent,
    StatusLevel,
    TokenizedLine,
)

UNIVERSAL_REQUALIFICATION = (
    re.compile(r"XP.?(?:Counter|teller|compteur|Zähler|contatore|contador).?(?:offset|reset|compensat)", re.I),
    re.compile(r"[Rr]e?qualifi(?:cation|catie|cazione|cación|cação|ed|é|ziert|cato|cado)"),
    re.compile(r"[Hh]erkwalifi"),
    re.compile(r"[Gg]ekwalificeerd"),
    re.compile(r"[Qq]ualifi(?:é|ziert|cato|cado)"),
    re.compile(r"[Ss]tatus.*(?:renewed|verlengd|renouvelé|erneuert|rinnovato|renovado)", re.I),
)

COUNTER_DEDUCTION_RE = re.compile(r"Aftrek\s+XP[.-]?teller|XP[.-]?Counter\s+(?:offset|deduction|reset)", re.I)
STATUS_REACHED_RE = re.compile(
    r"\b(Silver|Gold|Platinum|Ultimate)\s+reached|\b(Zilver|Goud|Platina)\s+bereikt|\b(Argent|Or|Platine)\s+atteint",
    re.I,
)
SURPLUS_RE = re.compile(r"Surplus\s+XP\s+beschikbaar|Surplus\s+XP\s+available|XP\s+excédentaire", re.I)
CYCLE_END_RE = re.compile(r"(?:eindigend|ending|se\s+terminant)\s+op\s+(\d{2})/(\d{2})/(\d{4})", re.I)
CYCLE_START_RE = re.compile(r"(?:beginnend|starting|commençant)\s+op\s+(\d{2})/(\d{2})/(\d{4})", re.I)

_STATUS_WORD_RE = re.compile(r"EXPLORER|SILVER|GOLD|PLATINUM|ULTIMATE", re.I)
_XP_RE = re.compile(r"(-?\d+)\s*XP")
_XP_ONLY_RE = re.compile(r"(\d+)\s*XP(?:\s|$)", re.I)
_MILES_ONLY_RE = re.compile(r"(\d[\d\s.,]*)\s*Miles(?:\s|$)", re.I)
CYCLE_LOOKAHEAD = 4

_REACHED_NAMES: dict[str, StatusLevel] = {
    "silver": StatusLevel.SILVER,
    "zilver": StatusLevel.SILVER,
    "argent": StatusLevel.SILVER,
    "gold": StatusLevel.GOLD,
    "goud": StatusLevel.GOLD,
    "or": StatusLevel.GOLD,
    "platinum": StatusLevel.PLATINUM,
    "platina": StatusLevel.PLATINUM,
    "platine": StatusLevel.PLATINUM,
    "ultimate": StatusLevel.ULTIMATE,
}

BONUS_XP_PATTERNS: tuple[tuple[re.Pattern[str], BonusXPSource], ...] = (
    (re.compile(r"American\s+Express.*Welcome\s+bonus", re.I), BonusXPSource.AMEX_WELCOME),
    (re.compile(r"American\s+Express.*Annual\s+bonus", re.I), BonusXPSource.AMEX_ANNUAL),
    (re.compile(r"Miles\s+donation.*XP[.-]?beloning|donation.*XP\s+reward", re.I), BonusXPSource.DONATION),
    (
        re.compile(r"Miles\+Points\s+first\s+flight\s+bonus|eerste\s+vlucht\s+bonus", re.I),
        BonusXPSource.FIRST_FLIGHT,
    ),
    (re.compile(r"Discount\s+Pass", re.I), BonusXPSource.DISCOUNT_PASS),
    (re.compile(r"Air\s+adjustment", re.I), BonusXPSource.AIR_ADJUSTMENT),
)
_ACCOR_BONUS_RE = re.compile(r"Hotel.*ALL.*Accor|Accor.*MILES\+POINTS", re.I)


def parse_status_level(text: str, language: Language | None = None) -> StatusLevel | None:
    lowered = text.lower()
    for status, names in get_locale(language).status_names.items():
        if any(re.search(rf"\b{re.escape(name)}\b", lowered) for name in names):
            return status
    match = _STATUS_WORD_RE.search(text)
    return StatusLevel(match.group(0).capitalize()) if match else None


def next_status(status: StatusLevel) -> StatusLevel | None:
    index = STATUS_ORDER.index(status)
    return STATUS_ORDER[index + 1] if index < len(STATUS_ORDER) - 1 else None


def previous_status(status: StatusLevel) -> StatusLevel:
    index = STATUS_ORDER.index(status)
    return STATUS_ORDER[index - 1] if index > 0 else StatusLevel.EXPLORER


def xp_for_status(status: StatusLevel) -> int:
    return STATUS_THRESHOLDS[status]


def cycle_start_month(level_up_date: str) -> str:
    """Qualifying in month X starts the new cycle on the first day of month X+1."""
    return next_month(month_key(level_up_date))


def _is_requalification(text: str, keywords: tuple[str, ...]) -> bool:
    lowered = text.lower()
    if any(keyword in lowered for keyword in keywords):
        return True
    return any(pattern.search(text) for pattern in UNIVERSAL_REQUALIFICATION)


def find_requalifications(lines: list[TokenizedLine], language: Language) -> list[RequalificationEvent]:
    keywords = get_locale(language).requalification
    events = []
    for line in lines:
        if not line.date or not _is_requalification(line.text, keywords):
            continue
        match = _STATUS_WORD_RE.search(line.text)
        events.append(
            RequalificationEvent(
                date=line.date,
                from_status=StatusLevel.EXPLORER,
                to_status=StatusLevel(match.group(0).capitalize()) if match else StatusLevel.EXPLORER,
            )
        )
    events.sort(key=lambda event: event.date)
    return events


def _totals(lines: list[TokenizedLine]) -> tuple[int, int, int]:
    for line in lines:
        match = COMBINED_TOTALS_RE.search(line.text)
        if match:
            return strip_separators(match.group(1)), int(match.group(2)), int(match.group(3))

    miles = xp = 0
    for line in lines:
        if line.type != LineType.SUMMARY:
            continue
        if not xp:
            xp_match = _XP_ONLY_RE.search(line.text)
            if xp_match:
                xp = int(xp_match.group(1))
        if not miles:
            miles_match = _MILES_ONLY_RE.search(line.text)
            if miles_match:
                miles = strip_separators(miles_match.group(1))
    return miles, xp, 0


def detect_status(lines: list[TokenizedLine], language: Language) -> DetectedStatus | None:
    """Current status from the status line, balances from the statement header.

    Returns None when the statement carries no status line.
    """
    current: StatusLevel | None = None
    for line in lines:
        if line.type == LineType.STATUS:
            current = parse_status_level(line.text, language) or current
    if current is None:
        return None

    miles, xp, uxp = _totals(lines)
    detected = DetectedStatus(
        current_status=current,
        current_xp=xp,
        current_uxp=uxp,
        current_miles=miles,
        requalifications=find_requalifications(lines, language),
    )
    if detected.requalifications:
        latest = detected.requalifications[-1]
        detected.cycle_start_date = latest.date
        detected.cycle_start_month = cycle_start_month(latest.date)
    return detected


def _slash_date(match: re.Match[str] | None) -> str | None:
    if not match:
        return None
    day, month, year = match.groups()
    return f"{year}-{month}-{day}"


@dataclass
class _Surplus:
    xp: int
    cycle_end: str | None
    cycle_start: str | None


def _surplus(lines: list[TokenizedLine], index: int) -> _Surplus:
    xp_match = re.search(r"(\d+)\s*XP", lines[index].text)
    end = start = None
    for line in lines[index : index + 1 + CYCLE_LOOKAHEAD]:
        end = end or _slash_date(CYCLE_END_RE.search(line.text))
        start = start or _slash_date(CYCLE_START_RE.search(line.text))
    return _Surplus(xp=int(xp_match.group(1)) if xp_match else 0, cycle_end=end, cycle_start=start)


def _status_reached(lines: list[TokenizedLine], index: int) -> StatusLevel | None:
    # The deduction line or one of its continuation lines names the status.
    for offset, line in enumerate(lines[index : index + 1 + CYCLE_LOOKAHEAD]):
        if offset and line.starts_transaction:
            break
        match = STATUS_REACHED_RE.search(line.text)
        if match:
            word = next(group for group in match.groups() if group)
            return _REACHED_NAMES.get(word.lower())
    return None


def detect_level_changes(lines: list[TokenizedLine], language: Language) -> list[LevelChangeEvent]:
    """Level-ups, read from XP-counter deductions and the surplus XP booked with them."""
    changes: list[LevelChangeEvent] = []
    surplus_by_date: dict[str, _Surplus] = {}
    pending: _Surplus | None = None
    deductions: list[tuple[int, str | None]] = []

    current_date: str | None = None
    for index, line in enumerate(lines):
        if line.date:
            current_date = line.date
        if SURPLUS_RE.search(line.text):
            pending = _surplus(lines, index)
            if current_date:
                surplus_by_date[current_date] = pending
        if COUNTER_DEDUCTION_RE.search(line.text):
            deductions.append((index, current_date))

    for index, date in deductions:
        new_status = _status_reached(lines, index)
        xp_match = _XP_RE.search(lines[index].text)
        surplus = surplus_by_date.get(date or "") or pending
        level_up_date = date or (surplus.cycle_start if surplus else None)
        if not new_status or new_status == StatusLevel.EXPLORER or not xp_match or not level_up_date:
            continue
        changes.append(
            LevelChangeEvent(
                date=level_up_date,
                new_status=new_status,
                xp_deducted=int(xp_match.group(1)),
                rollover_xp=surplus.xp if surplus else 0,
                cycle_end_date=surplus.cycle_end if surplus else None,
                cycle_start_date=(surplus.cycle_start if surplus else None) or level_up_date,
                cycle_start_month=cycle_start_month(level_up_date),
            )
        )

    changes.sort(key=lambda change: change.date)
    return changes


def detect_bonus_xp_events(lines: list[TokenizedLine], language: Language) -> list[BonusXPEvent]:
    events: list[BonusXPEvent] = []
    current_date: str | None = None
    for line in lines:
        if line.date:
            current_date = line.date
        match = re.search(r"(\d+)\s*XP", line.text)
        xp = int(match.group(1)) if match else 0
        if xp <= 0:
            continue
        description = line.text[:100].strip()
        for pattern, source in BONUS_XP_PATTERNS:
            if pattern.search(line.text):
                events.append(BonusXPEvent(date=current_date, source=source, description=description, xp=xp))
                break
        if _ACCOR_BONUS_RE.search(line.text):
            captured = any(
                event.date == current_date and "Accor" in event.description for event in events
            )
            if not captured:
                events.append(
                    BonusXPEvent(date=current_date, source=BonusXPSource.HOTEL, description=description, xp=xp)
                )
    events.sort(key=lambda event: event.date or "")
    return events


def detect_first_flight_date(
    lines: list[TokenizedLine], bonus_events: list[BonusXPEvent], language: Language | None = None
) -> str | None:
    for event in bonus_events:
        if event.source == BonusXPSource.FIRST_FLIGHT:
            return event.date

    earliest: str | None = None
    for line in lines:
        if not ANY_TRIP_HEADER.search(line.text):
            continue
        # Trip headers that also print UXP are summary lines without a parsed date.
        leading = extract_leading_date(line.text, language)
        date = line.date or (leading[0] if leading else None)
        if date and (earliest is None or date < earliest):
            earliest = date
    return earliest


def build_journey_timeline(
    level_changes: list[LevelChangeEvent],
    current_status: StatusLevel,
    first_flight_date: str | None,
) -> list[JourneyMilestone]:
    reached = {change.new_status: change.date for change in level_changes}
    current_index = STATUS_ORDER.index(current_status)
    journey = []
    for index, status in enumerate(STATUS_ORDER):
        if status == StatusLevel.EXPLORER:
            journey.append(JourneyMilestone(status=status, date=first_flight_date, achieved=True))
        elif status in reached:
            journey.append(JourneyMilestone(status=status, date=reached[status], achieved=True))
        else:
            journey.append(JourneyMilestone(status=status, date=None, achieved=index <= current_index))
    return journey


def detect_status_extended(lines: list[TokenizedLine], language: Language) -> DetectedStatus | None:
    """Status plus level changes, bonus XP events and the status journey.

    The latest level change, when present, defines the current cycle.
    """
    detected = detect_status(lines, language)
    if detected is None:
        return None

    detected.level_changes = detect_level_changes(lines, language)
    detected.bonus_xp_events = detect_bonus_xp_events(lines, language)
    detected.first_flight_date = detect_first_flight_date(lines, detected.bonus_xp_events, language)
    detected.journey = build_journey_timeline(
        detected.level_changes, detected.current_status, detected.first_flight_date
    )

    if detected.level_changes:
        latest = detected.level_changes[-1]
        detected.cycle_start_date = latest.date
        detected.cycle_start_month = latest.cycle_start_month
        detected.rollover_xp = latest.rollover_xp
    return detected
