from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any


class Language(str, enum.Enum):
    EN = "en"
    NL = "nl"
    FR = "fr"
    DE = "de"
    ES = "es"
    PT = "pt"
    IT = "it"


class Currency(str, enum.Enum):
    EUR = "EUR"
    USD = "USD"
    GBP = "GBP"
    CAD = "CAD"
    CHF = "CHF"
    AUD = "AUD"
    SEK = "SEK"
    NOK = "NOK"
    DKK = "DKK"
    PLN = "PLN"


class StatusLevel(str, enum.Enum):
    EXPLORER = "Explorer"
    SILVER = "Silver"
    GOLD = "Gold"
    PLATINUM = "Platinum"
    ULTIMATE = "Ultimate"


STATUS_ORDER: tuple[StatusLevel, ...] = (
    StatusLevel.EXPLORER,
    StatusLevel.SILVER,
    StatusLevel.GOLD,
    StatusLevel.PLATINUM,
    StatusLevel.ULTIMATE,
)

STATUS_THRESHOLDS: dict[StatusLevel, int] = {
    StatusLevel.EXPLORER: 0,
    StatusLevel.SILVER: 100,
    StatusLevel.GOLD: 180,
    StatusLevel.PLATINUM: 300,
    StatusLevel.ULTIMATE: 400,
}


class LineType(str, enum.Enum):
    TRANSACTION = "transaction"
    HEADER = "header"
    SUMMARY = "summary"
    STATUS = "status"
    FLIGHT_SEGMENT = "flight_segment"
    UNKNOWN = "unknown"


class FlightMatchStatus(str, enum.Enum):
    NEW = "new"
    DUPLICATE = "duplicate"
    FUZZY_MATCH = "fuzzy_match"


class MilesMatchStatus(str, enum.Enum):
    NEW = "new"
    UNCHANGED = "unchanged"
    HAS_CHANGES = "has_changes"


class XPSource(str, enum.Enum):
    FLIGHT = "flight"
    SAF = "saf"
    CREDIT_CARD = "creditCard"
    HOTEL = "hotel"
    FIRST_FLIGHT = "firstFlight"
    PROMO = "promo"
    OTHER = "other"


class BonusXPSource(str, enum.Enum):
    AMEX_WELCOME = "amexWelcome"
    AMEX_ANNUAL = "amexAnnual"
    DONATION = "donation"
    FIRST_FLIGHT = "firstFlight"
    HOTEL = "hotel"
    DISCOUNT_PASS = "discountPass"
    AIR_ADJUSTMENT = "airAdjustment"
    OTHER = "other"


class ConflictType(str, enum.Enum):
    FLIGHT = "flight"
    MILES = "miles"


class ConflictReason(str, enum.Enum):
    FUZZY_MATCH = "fuzzy_match"
    DIFFERENT_VALUES = "different_values"


class ConflictResolution(str, enum.Enum):
    KEEP_EXISTING = "keep_existing"
    USE_INCOMING = "use_incoming"
    KEEP_BOTH = "keep_both"


@dataclass(frozen=True)
class ParseWarning:
    code: str
    message: str
    line: int | None = None


@dataclass
class WarningCollector:
    """Sink for non-fatal statement parsing problems; extractors report here instead of logging."""

    warnings: list[ParseWarning] = field(default_factory=list)

    def warn(self, code: str, message: str, *, line: int | None = None) -> None:
        self.warnings.append(ParseWarning(code=code, message=message, line=line))

    def extend(self, messages: list[str], *, code: str) -> None:
        for message in messages:
            self.warn(code, message)

    def messages(self) -> list[str]:
        return [warning.message for warning in self.warnings]

    def codes(self) -> list[str]:
        return [warning.code for warning in self.warnings]


@dataclass(frozen=True)
class TokenizedLine:
    text: str
    line_number: int
    type: LineType = LineType.UNKNOWN
    starts_transaction: bool = False
    date: str | None = None
    content: str | None = None


@dataclass
class ParsedFlight:
    id: str
    date: str
    flight_number: str
    route: str
    airline: str
    is_partner_flight: bool
    earned_xp: int = 0
    earned_miles: int = 0
    saf_xp: int = 0
    uxp: int = 0
    status: FlightMatchStatus = FlightMatchStatus.NEW
    matched_existing_id: str | None = None
    match_confidence: float | None = None


@dataclass
class SourceAmount:
    miles: int = 0
    xp: int = 0


@dataclass
class MilesSources:
    flights: SourceAmount = field(default_factory=SourceAmount)
    subscription: SourceAmount = field(default_factory=SourceAmount)
    credit_card: SourceAmount = field(default_factory=SourceAmount)
    hotel: SourceAmount = field(default_factory=SourceAmount)
    transfer: SourceAmount = field(default_factory=SourceAmount)
    promo: SourceAmount = field(default_factory=SourceAmount)
    purchased: SourceAmount = field(default_factory=SourceAmount)
    other: SourceAmount = field(default_factory=SourceAmount)

    def non_flight(self) -> dict[str, SourceAmount]:
        return {
            "subscription": self.subscription,
            "credit_card": self.credit_card,
            "hotel": self.hotel,
            "transfer": self.transfer,
            "promo": self.promo,
            "purchased": self.purchased,
            "other": self.other,
        }

    def non_flight_miles(self) -> int:
        return sum(bucket.miles for bucket in self.non_flight().values())


@dataclass(frozen=True)
class MilesChange:
    field: str
    old_value: int
    new_value: int


@dataclass
class ParsedMiles:
    month: str
    sources: MilesSources = field(default_factory=MilesSources)
    debit: int = 0
    total_earned: int = 0
    total_xp: int = 0
    status: MilesMatchStatus = MilesMatchStatus.NEW
    existing_record_id: str | None = None
    changes: list[MilesChange] = field(default_factory=list)


@dataclass(frozen=True)
class XPEntry:
    month: str
    source: XPSource
    amount: int
    uxp_amount: int
    description: str
    date: str | None = None


@dataclass
class XPExtraction:
    entries: list[XPEntry] = field(default_factory=list)
    from_flights: int = 0
    from_saf: int = 0
    from_bonus: int = 0
    total_uxp: int = 0
    bonus_xp_by_month: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class OfficialBalances:
    xp: int = 0
    uxp: int = 0
    miles: int = 0


@dataclass
class BalanceExtraction:
    xp: int | None = None
    uxp: int | None = None
    miles: int | None = None
    confidence: float = 0.0
    source_lines: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class RequalificationEvent:
    date: str
    from_status: StatusLevel
    to_status: StatusLevel
    xp_at_requalification: int | None = None


@dataclass(frozen=True)
class LevelChangeEvent:
    date: str
    new_status: StatusLevel
    xp_deducted: int
    rollover_xp: int
    cycle_end_date: str | None
    cycle_start_date: str | None
    cycle_start_month: str


@dataclass(frozen=True)
class BonusXPEvent:
    date: str | None
    source: BonusXPSource
    description: str
    xp: int


@dataclass(frozen=True)
class JourneyMilestone:
    status: StatusLevel
    date: str | None
    achieved: bool


@dataclass
class DetectedStatus:
    current_status: StatusLevel
    current_xp: int = 0
    current_uxp: int = 0
    current_miles: int = 0
    cycle_start_month: str = ""
    cycle_start_date: str | None = None
    rollover_xp: int = 0
    requalifications: list[RequalificationEvent] = field(default_factory=list)
    level_changes: list[LevelChangeEvent] = field(default_factory=list)
    bonus_xp_events: list[BonusXPEvent] = field(default_factory=list)
    first_flight_date: str | None = None
    journey: list[JourneyMilestone] = field(default_factory=list)


@dataclass
class FlightRecord:
    """A flight already stored for the member."""

    id: str
    date: str
    flight_number: str
    route: str
    airline: str
    earned_xp: int = 0
    earned_miles: int = 0
    saf_xp: int = 0
    uxp: int = 0
    ticket_price: float | None = None
    currency: str | None = None
    is_manual: bool = False


@dataclass
class MilesRecord:
    """One stored calendar month of miles activity."""

    month: str
    id: str | None = None
    flight_miles: int = 0
    subscription_miles: int = 0
    amex_miles: int = 0
    hotel_miles: int = 0
    other_miles: int = 0
    purchased_miles: int = 0
    transfer_miles: int = 0
    miles_debit: int = 0
    total_miles: int = 0


@dataclass
class QualificationSettings:
    cycle_start_month: str
    starting_status: StatusLevel
    starting_xp: int = 0
    cycle_start_date: str | None = None


@dataclass
class ImportConflict:
    id: str
    type: ConflictType
    reason: ConflictReason
    existing: FlightRecord | MilesRecord
    incoming: ParsedFlight | ParsedMiles
    match_reason: str
    match_confidence: float
    resolution: ConflictResolution | None = None


@dataclass
class XPBreakdown:
    official: int = 0
    from_flights: int = 0
    from_saf: int = 0
    from_bonus: int = 0
    discrepancy: int = 0
    bonus_by_month: dict[str, int] = field(default_factory=dict)


@dataclass
class UXPBreakdown:
    detected: bool = False
    official: int = 0
    from_flights: int = 0


@dataclass
class ImportSummary:
    flights: dict[str, int] = field(
        default_factory=lambda: {"total": 0, "new": 0, "duplicates": 0, "conflicts": 0}
    )
    miles: dict[str, int] = field(
        default_factory=lambda: {"total": 0, "new": 0, "updated": 0, "unchanged": 0}
    )
    xp: dict[str, int] = field(
        default_factory=lambda: {
            "total": 0,
            "from_flights": 0,
            "from_saf": 0,
            "from_bonus": 0,
            "official": 0,
        }
    )
    uxp: dict[str, int] = field(default_factory=lambda: {"total": 0, "official": 0})
    date_range: dict[str, Any] = field(
        default_factory=lambda: {"from": "", "to": "", "months": 0}
    )


@dataclass
class ParseMeta:
    language: Language = Language.EN
    detected_currency: Currency = Currency.EUR
    parse_date: str = ""
    pdf_page_count: int = 0
    warnings: list[str] = field(default_factory=list)


@dataclass
class StatementImportResult:
    success: bool
    flights: list[ParsedFlight] = field(default_factory=list)
    miles: list[ParsedMiles] = field(default_factory=list)
    status: DetectedStatus | None = None
    xp: XPBreakdown = field(default_factory=XPBreakdown)
    uxp: UXPBreakdown = field(default_factory=UXPBreakdown)
    official_miles_balance: int | None = None
    balance_confidence: float = 0.0
    conflicts: list[ImportConflict] = field(default_factory=list)
    summary: ImportSummary = field(default_factory=ImportSummary)
    meta: ParseMeta = field(default_factory=ParseMeta)
    error: str | None = None


@dataclass(frozen=True)
class ImportMeta:
    timestamp: str
    flights_added: int
    miles_updated: int
    language: Language


@dataclass
class ResolvedImportData:
    flights_to_add: list[FlightRecord]
    miles_to_merge: list[MilesRecord]
    qualification_settings: QualificationSettings | None
    bonus_xp_by_month: dict[str, int]
    official_balances: OfficialBalances
    import_meta: ImportMeta
