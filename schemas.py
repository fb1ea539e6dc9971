# schemas.py (Pydantic v2)
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import date, datetime
from decimal import Decimal
import uuid

# for fields that are themselves named "date"
CalendarDate = date

# paid_by label stored on expenses paid out of the shared fund
FUND_PAYER = "Fund"

EXPENSE_CATEGORIES = ["Food & drink", "Transport", "Lodging", "Tickets", "Shopping", "Other"]
DEFAULT_CATEGORY = "Other"


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


# ---------- Ledger records (stored as JSON on the trip row) ----------
class Contribution(BaseModel):
    id: str = Field(default_factory=lambda: new_id("c"))
    participant: str
    amount: Decimal = Decimal("0.00")
    paid: bool = False  # False -> pledge, excluded from every sum


class ContributionRound(BaseModel):
    id: str = Field(default_factory=lambda: new_id("round"))
    amount: Decimal
    date: CalendarDate
    description: str = ""
    contributions: List[Contribution] = []


class Expense(BaseModel):
    id: str = Field(default_factory=lambda: new_id("e"))
    description: str
    amount: Decimal
    paid_by: str  # participant name, or FUND_PAYER when paid_from_fund
    category: str = DEFAULT_CATEGORY
    date: CalendarDate
    participants: List[str]
    paid_from_fund: bool = False


class TimelineEvent(BaseModel):
    id: str = Field(default_factory=lambda: new_id("ev"))
    day: int
    day_title: Optional[str] = None
    time: str
    activity: str
    description: str = ""
    location: Optional[str] = None
    location_url: Optional[str] = None


class PackingItem(BaseModel):
    id: str = Field(default_factory=lambda: new_id("pk"))
    item: str
    packed: bool = False


# ---------- Trips ----------
class TripBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    destination: str = Field(..., min_length=1, max_length=150)
    start_date: date
    end_date: date
    cover_image_url: Optional[str] = None
    manager_id: Optional[str] = None


class TripWrite(TripBase):
    participants: List[str] = []
    # per-person amount of the initial fund round
    contribution_amount: Decimal = Field(Decimal("0"), ge=0)


class TripUpdate(BaseModel):
    """Partial update for trip details - all fields optional"""
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    destination: Optional[str] = Field(None, min_length=1, max_length=150)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    cover_image_url: Optional[str] = None
    manager_id: Optional[str] = None


class TripRead(TripBase):
    """Full trip state; also the working state of the trip aggregate."""
    id: str
    custom_id: Optional[str] = None
    participants: List[str] = []
    contributions: List[Contribution] = []  # initial fund round
    additional_contributions: List[ContributionRound] = []
    expenses: List[Expense] = []
    timeline: List[TimelineEvent] = []
    packing_list: List[PackingItem] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TripSummary(BaseModel):
    """Trip card for listings"""
    id: str
    custom_id: Optional[str] = None
    name: str
    destination: str
    start_date: date
    end_date: date
    cover_image_url: Optional[str] = None
    manager_id: Optional[str] = None
    participants: List[str] = []

    class Config:
        from_attributes = True


# ---------- Participants ----------
class ParticipantWrite(BaseModel):
    name: str


class ParticipantRename(BaseModel):
    new_name: str


# ---------- Contributions ----------
class InitialAmountUpdate(BaseModel):
    amount: Decimal


class ContributionRoundWrite(BaseModel):
    amount: Decimal
    description: Optional[str] = None
    date: Optional[CalendarDate] = None
    # None -> every current participant
    participants: Optional[List[str]] = None


class ContributionRoundUpdate(BaseModel):
    amount: Decimal
    description: Optional[str] = None


# ---------- Expenses ----------
class ExpenseWrite(BaseModel):
    description: str
    amount: Decimal
    paid_by: Optional[str] = None  # ignored when paid_from_fund
    category: str = DEFAULT_CATEGORY
    date: Optional[CalendarDate] = None  # defaults to the trip start date
    participants: Optional[List[str]] = None  # None -> every current participant
    paid_from_fund: bool = False


class ExpenseUpdate(BaseModel):
    """Schema for partial updates (PATCH) - all fields optional"""
    description: Optional[str] = None
    amount: Optional[Decimal] = None
    paid_by: Optional[str] = None
    category: Optional[str] = None
    date: Optional[CalendarDate] = None
    participants: Optional[List[str]] = None
    paid_from_fund: Optional[bool] = None


# ---------- Itinerary & packing ----------
class TimelineEventWrite(BaseModel):
    day: int = Field(..., ge=1)
    day_title: Optional[str] = None
    time: str
    activity: str = Field(..., min_length=1)
    description: str = ""
    location: Optional[str] = None
    location_url: Optional[str] = None


class TimelineEventUpdate(BaseModel):
    day: Optional[int] = Field(None, ge=1)
    day_title: Optional[str] = None
    time: Optional[str] = None
    activity: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    location_url: Optional[str] = None


class PackingItemWrite(BaseModel):
    item: str = Field(..., min_length=1)


class PackingItemUpdate(BaseModel):
    item: Optional[str] = None
    packed: Optional[bool] = None


# ---------- Suggestions ----------
class ItinerarySuggestRequest(BaseModel):
    interests: str = ""
    target_day: Optional[int] = Field(None, ge=1)


class PackingSuggestRequest(BaseModel):
    activities: str = ""


class SuggestedEvent(BaseModel):
    day: int
    time: str
    activity: str
    description: str = ""
    location: Optional[str] = None


class SuggestedPackingItem(BaseModel):
    item: str


# ---------- Weather ----------
class CurrentWeather(BaseModel):
    temperature: int
    condition: str
    icon: str


class HourlyWeather(BaseModel):
    time: str
    temp: int
    condition: str
    icon: str


class DailyWeather(BaseModel):
    date: str  # dd/mm
    day_name: str
    high: int
    low: int
    condition: str
    icon: str


class WeatherRead(BaseModel):
    available: bool
    location: Optional[str] = None
    current: Optional[CurrentWeather] = None
    hourly: List[HourlyWeather] = []
    daily: List[DailyWeather] = []


# ---------- Settlement ----------
class SettlementTransaction(BaseModel):
    from_participant: str
    to_participant: str
    amount: Decimal


class ParticipantBalance(BaseModel):
    participant: str
    contributed: Decimal  # paid initial-round contribution
    additional_contributed: Decimal  # paid contributions across later rounds
    paid_personally: Decimal
    shared_expense_share: Decimal
    balance: Decimal  # > 0 is owed money, < 0 owes money


class Settlement(BaseModel):
    fund_balance: Decimal
    total_contributed: Decimal
    total_spent: Decimal
    total_spent_from_fund: Decimal
    per_person_balance: Dict[str, Decimal]
    participants: List[ParticipantBalance] = []
    transactions: List[SettlementTransaction] = []


class ExpenseBreakdown(BaseModel):
    total_spent: Decimal
    average_per_person: Decimal
    by_category: Dict[str, Decimal] = {}
    by_date: Dict[date, Decimal] = {}


class FinancesRead(BaseModel):
    trip_id: str
    duration_days: int
    participant_count: int
    settlement: Settlement
    breakdown: ExpenseBreakdown
