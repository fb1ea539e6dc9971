"""
Trip aggregate: the only place trip state is mutated.

Participant names are the join key across the fund rounds and the expenses, so
adding, renaming and removing people has to be cascaded by hand. Every
operation runs against a deep copy of the trip and only replaces the live
state once it has fully succeeded; a failed operation leaves it untouched.
"""
from contextlib import contextmanager
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional

from schemas import (
    DEFAULT_CATEGORY,
    FUND_PAYER,
    Contribution,
    ContributionRound,
    Expense,
    PackingItem,
    Settlement,
    TimelineEvent,
    TripRead,
)
from services import settlement
from services.errors import (
    ConflictError,
    DuplicateParticipantError,
    NotFoundError,
    ValidationError,
)
from utils.logger import setup_api_logger
from utils.money import ZERO, to_money

logger = setup_api_logger()


def _clean_text(value: Optional[str], field: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field} must not be blank")
    return text


def participant_name(value: Optional[str]) -> str:
    """Clean a participant name, rejecting ones the ledgers or the URLs can't carry."""
    name = _clean_text(value, "Participant name")
    # names travel as a single path segment
    if "/" in name:
        raise ValidationError(f"Participant name '{name}' must not contain '/'")
    if name == FUND_PAYER:
        raise ValidationError(f"'{FUND_PAYER}' is reserved for expenses paid from the shared fund")
    return name


def parse_amount(value, field: str = "amount", allow_zero: bool = False) -> Decimal:
    try:
        amount = to_money(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field} is not a valid amount")
    if not amount.is_finite() or amount < 0 or (amount == 0 and not allow_zero):
        raise ValidationError(f"{field} must be greater than zero" if not allow_zero
                              else f"{field} must not be negative")
    return amount


class TripAggregate:
    def __init__(self, trip: TripRead):
        self.trip = trip

    @contextmanager
    def _mutation(self):
        draft = self.trip.model_copy(deep=True)
        yield draft
        self.trip = draft

    # ---------- lookups ----------
    def _resolve_participants(self, trip: TripRead, names: Optional[Iterable[str]], field: str) -> List[str]:
        """Validate a participant subset; None means everybody."""
        if names is None:
            names = trip.participants
        resolved = []
        for raw in names:
            name = (raw or "").strip()
            if name not in trip.participants:
                raise ValidationError(f"{field}: unknown participant '{raw}'")
            if name not in resolved:
                resolved.append(name)
        if not resolved:
            raise ValidationError(f"{field} must include at least one participant")
        return resolved

    @staticmethod
    def _round(trip: TripRead, round_id: str) -> ContributionRound:
        for round_ in trip.additional_contributions:
            if round_.id == round_id:
                return round_
        raise NotFoundError(f"Contribution round '{round_id}' not found")

    @staticmethod
    def _expense(trip: TripRead, expense_id: str) -> Expense:
        for expense in trip.expenses:
            if expense.id == expense_id:
                return expense
        raise NotFoundError(f"Expense '{expense_id}' not found")

    @staticmethod
    def _event(trip: TripRead, event_id: str) -> TimelineEvent:
        for event in trip.timeline:
            if event.id == event_id:
                return event
        raise NotFoundError(f"Timeline event '{event_id}' not found")

    @staticmethod
    def _packing_item(trip: TripRead, item_id: str) -> PackingItem:
        for item in trip.packing_list:
            if item.id == item_id:
                return item
        raise NotFoundError(f"Packing item '{item_id}' not found")

    def is_payer_locked(self, name: str) -> bool:
        """True while `name` is the personal payer of at least one expense."""
        return any(e.paid_by == name and not e.paid_from_fund for e in self.trip.expenses)

    # ---------- participants ----------
    def add_participant(self, name: str) -> str:
        name = participant_name(name)
        if name in self.trip.participants:
            raise DuplicateParticipantError(f"Participant '{name}' already exists")

        with self._mutation() as trip:
            # newcomers owe the initial round's current per-person rate
            rate = trip.contributions[0].amount if trip.contributions else ZERO
            trip.participants.append(name)
            trip.contributions.append(Contribution(participant=name, amount=rate, paid=False))

        logger.info("trip %s: added participant %r", self.trip.id, name)
        return name

    def rename_participant(self, old: str, new: str) -> str:
        if old not in self.trip.participants:
            raise NotFoundError(f"Participant '{old}' not found")
        new = participant_name(new)
        if new == old:
            return new
        if new in self.trip.participants:
            raise DuplicateParticipantError(f"Participant '{new}' already exists")

        with self._mutation() as trip:
            trip.participants = [new if p == old else p for p in trip.participants]
            for c in trip.contributions:
                if c.participant == old:
                    c.participant = new
            for round_ in trip.additional_contributions:
                for c in round_.contributions:
                    if c.participant == old:
                        c.participant = new
            for expense in trip.expenses:
                if expense.paid_by == old and not expense.paid_from_fund:
                    expense.paid_by = new
                expense.participants = [new if p == old else p for p in expense.participants]

        logger.info("trip %s: renamed participant %r -> %r", self.trip.id, old, new)
        return new

    def remove_participant(self, name: str):
        if name not in self.trip.participants:
            raise NotFoundError(f"Participant '{name}' not found")
        if self.is_payer_locked(name):
            raise ConflictError(
                f"'{name}' paid for one or more expenses and cannot be removed "
                "to preserve financial integrity"
            )
        orphaned = [e.description for e in self.trip.expenses if e.participants == [name]]
        if orphaned:
            raise ConflictError(
                f"'{name}' is the only participant of: {', '.join(orphaned)}"
            )

        with self._mutation() as trip:
            trip.participants = [p for p in trip.participants if p != name]
            trip.contributions = [c for c in trip.contributions if c.participant != name]
            for round_ in trip.additional_contributions:
                round_.contributions = [c for c in round_.contributions if c.participant != name]
            # their share is spread over whoever is left on each expense
            for expense in trip.expenses:
                expense.participants = [p for p in expense.participants if p != name]

        logger.info("trip %s: removed participant %r", self.trip.id, name)

    # ---------- contributions ----------
    def toggle_contribution_paid(self, participant: str) -> Contribution:
        with self._mutation() as trip:
            contribution = next((c for c in trip.contributions if c.participant == participant), None)
            if contribution is None:
                raise NotFoundError(f"No initial contribution for '{participant}'")
            contribution.paid = not contribution.paid
        return contribution

    def edit_initial_amount(self, new_amount) -> Decimal:
        amount = parse_amount(new_amount)
        with self._mutation() as trip:
            for c in trip.contributions:
                c.amount = amount
        logger.info("trip %s: initial contribution set to %s", self.trip.id, amount)
        return amount

    def add_round(
        self,
        amount,
        description: Optional[str] = None,
        round_date: Optional[date] = None,
        participants: Optional[Iterable[str]] = None,
    ) -> ContributionRound:
        amount = parse_amount(amount)
        with self._mutation() as trip:
            names = self._resolve_participants(trip, participants, "Round participants")
            round_ = ContributionRound(
                amount=amount,
                date=round_date or date.today(),
                description=(description or "").strip() or f"Top-up of {amount}",
                contributions=[Contribution(participant=p, amount=amount, paid=False) for p in names],
            )
            trip.additional_contributions.append(round_)

        logger.info("trip %s: added contribution round %s (%s x %d)", self.trip.id, round_.id, amount, len(names))
        return round_

    def toggle_round_contribution_paid(self, round_id: str, participant: str) -> Contribution:
        with self._mutation() as trip:
            round_ = self._round(trip, round_id)
            contribution = next((c for c in round_.contributions if c.participant == participant), None)
            if contribution is None:
                raise NotFoundError(f"'{participant}' is not part of round '{round_id}'")
            contribution.paid = not contribution.paid
        return contribution

    def edit_round_amount(self, round_id: str, new_amount, description: Optional[str] = None) -> ContributionRound:
        amount = parse_amount(new_amount)
        with self._mutation() as trip:
            round_ = self._round(trip, round_id)
            round_.amount = amount
            if description is not None:
                round_.description = description.strip() or f"Top-up of {amount}"
            for c in round_.contributions:
                c.amount = amount
        return round_

    def remove_round(self, round_id: str):
        with self._mutation() as trip:
            round_ = self._round(trip, round_id)
            trip.additional_contributions = [r for r in trip.additional_contributions if r is not round_]
        logger.info("trip %s: removed contribution round %s", self.trip.id, round_id)

    def total_collected(self) -> Decimal:
        return settlement.total_collected(self.trip)

    # ---------- expenses ----------
    def _build_expense(self, trip: TripRead, expense_id: Optional[str], description, amount, paid_by,
                       category, expense_date, participants, paid_from_fund) -> Expense:
        description = _clean_text(description, "Description")
        amount = parse_amount(amount)
        names = self._resolve_participants(trip, participants, "Expense participants")
        if paid_from_fund:
            payer = FUND_PAYER
        else:
            payer = (paid_by or "").strip()
            if payer not in trip.participants:
                raise ValidationError(f"Payer '{paid_by}' is not a participant")
        fields = dict(
            description=description,
            amount=amount,
            paid_by=payer,
            category=(category or "").strip() or DEFAULT_CATEGORY,
            date=expense_date or trip.start_date,
            participants=names,
            paid_from_fund=bool(paid_from_fund),
        )
        if expense_id is not None:
            fields["id"] = expense_id
        return Expense(**fields)

    def add_expense(
        self,
        description: str,
        amount,
        paid_by: Optional[str] = None,
        category: str = DEFAULT_CATEGORY,
        expense_date: Optional[date] = None,
        participants: Optional[Iterable[str]] = None,
        paid_from_fund: bool = False,
    ) -> Expense:
        with self._mutation() as trip:
            expense = self._build_expense(trip, None, description, amount, paid_by, category,
                                          expense_date, participants, paid_from_fund)
            trip.expenses.append(expense)

        logger.info("trip %s: added expense %s (%s by %s)", self.trip.id, expense.id, expense.amount, expense.paid_by)
        return expense

    def edit_expense(self, expense_id: str, **fields) -> Expense:
        """Partial update; omitted fields keep their current value."""
        unknown = set(fields) - {"description", "amount", "paid_by", "category", "date",
                                 "participants", "paid_from_fund"}
        if unknown:
            raise ValidationError(f"Unknown expense fields: {', '.join(sorted(unknown))}")

        with self._mutation() as trip:
            current = self._expense(trip, expense_id)
            merged = current.model_dump()
            if current.paid_from_fund:
                # the stored payer is the fund sentinel, never a person
                merged["paid_by"] = None
            merged.update({k: v for k, v in fields.items() if v is not None})
            updated = self._build_expense(
                trip, expense_id, merged["description"], merged["amount"], merged["paid_by"],
                merged["category"], merged["date"], merged["participants"], merged["paid_from_fund"],
            )
            trip.expenses = [updated if e.id == expense_id else e for e in trip.expenses]

        logger.info("trip %s: updated expense %s", self.trip.id, expense_id)
        return updated

    def remove_expense(self, expense_id: str):
        with self._mutation() as trip:
            self._expense(trip, expense_id)
            trip.expenses = [e for e in trip.expenses if e.id != expense_id]
        logger.info("trip %s: removed expense %s", self.trip.id, expense_id)

    def total_spent(self) -> Decimal:
        return settlement.total_spent(self.trip)

    def total_spent_from_fund(self) -> Decimal:
        return settlement.total_spent_from_fund(self.trip)

    def settlement(self) -> Settlement:
        return settlement.compute_settlement(self.trip)

    # ---------- itinerary ----------
    def add_event(self, day: int, time: str, activity: str, description: str = "",
                  day_title: Optional[str] = None, location: Optional[str] = None,
                  location_url: Optional[str] = None) -> TimelineEvent:
        event = TimelineEvent(
            day=day,
            day_title=day_title,
            time=time,
            activity=_clean_text(activity, "Activity"),
            description=description or "",
            location=location,
            location_url=location_url,
        )
        with self._mutation() as trip:
            trip.timeline.append(event)
            trip.timeline.sort(key=lambda e: (e.day, e.time))
        return event

    def update_event(self, event_id: str, **fields) -> TimelineEvent:
        if "activity" in fields and fields["activity"] is not None:
            fields["activity"] = _clean_text(fields["activity"], "Activity")
        with self._mutation() as trip:
            event = self._event(trip, event_id)
            for k, v in fields.items():
                if v is not None or k in ("day_title", "location", "location_url"):
                    setattr(event, k, v)
            trip.timeline.sort(key=lambda e: (e.day, e.time))
        return event

    def remove_event(self, event_id: str):
        with self._mutation() as trip:
            self._event(trip, event_id)
            trip.timeline = [e for e in trip.timeline if e.id != event_id]

    # ---------- packing list ----------
    def add_packing_item(self, item: str) -> PackingItem:
        packing_item = PackingItem(item=_clean_text(item, "Item"))
        with self._mutation() as trip:
            trip.packing_list.append(packing_item)
        return packing_item

    def update_packing_item(self, item_id: str, item: Optional[str] = None,
                            packed: Optional[bool] = None) -> PackingItem:
        with self._mutation() as trip:
            packing_item = self._packing_item(trip, item_id)
            if item is not None:
                packing_item.item = _clean_text(item, "Item")
            if packed is not None:
                packing_item.packed = packed
        return packing_item

    def remove_packing_item(self, item_id: str):
        with self._mutation() as trip:
            self._packing_item(trip, item_id)
            trip.packing_list = [i for i in trip.packing_list if i.id != item_id]
