"""
Trip store: reads and writes whole trips through SQLAlchemy.

Rows are mapped to the strict `TripRead` schema here and nowhere else, so
defaults for missing ledger columns are applied once. Updates are optimistic
last-write-wins: a trip is read, changed in memory and written back whole.
"""
import random
from typing import Callable, List, Optional, Tuple, TypeVar

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database import get_db
from models.Trip import Trip
from schemas import Contribution, TimelineEvent, TripRead, TripUpdate, TripWrite
from services.errors import DuplicateParticipantError, NotFoundError, StorageError, ValidationError
from services.trip_aggregate import TripAggregate, parse_amount, participant_name
from utils.dates import trip_duration_days
from utils.logger import setup_api_logger
from utils.short_code import generate_short_code

logger = setup_api_logger()

T = TypeVar("T")

SHORT_CODE_ATTEMPTS = 5
JSON_FIELDS = ("participants", "contributions", "additional_contributions", "expenses", "timeline", "packing_list")


def _row_to_trip(row: Trip) -> TripRead:
    return TripRead(
        id=row.id,
        custom_id=row.custom_id,
        name=row.name,
        destination=row.destination,
        start_date=row.start_date,
        end_date=row.end_date,
        cover_image_url=row.cover_image_url,
        manager_id=row.manager_id,
        participants=row.participants or [],
        contributions=row.contributions or [],
        additional_contributions=row.additional_contributions or [],
        expenses=row.expenses or [],
        timeline=row.timeline or [],
        packing_list=row.packing_list or [],
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _write_trip_to_row(trip: TripRead, row: Trip):
    for k in ("name", "destination", "start_date", "end_date", "cover_image_url", "manager_id", "custom_id"):
        setattr(row, k, getattr(trip, k))
    # JSON columns get plain JSON (Decimal -> str, date -> ISO string)
    data = trip.model_dump(mode="json", include=set(JSON_FIELDS))
    for k in JSON_FIELDS:
        setattr(row, k, data[k])


def _check_dates(start_date, end_date):
    if end_date < start_date:
        raise ValidationError("end_date must not be before start_date")


def build_timeline_skeleton(duration_days: int) -> List[TimelineEvent]:
    """One placeholder event per day of the trip."""
    return [
        TimelineEvent(
            id=f"day-placeholder-{day}",
            day=day,
            day_title=f"Day {day}",
            time="09:00",
            activity="No activities yet",
            description="Ask for suggestions or add an activity manually",
            location="",
        )
        for day in range(1, duration_days + 1)
    ]


class TripStore:
    def __init__(self, db: Session, rng: Optional[random.Random] = None):
        self.db = db
        self.rng = rng

    # ---------- helpers ----------
    def _get_row(self, trip_id: str) -> Trip:
        row = self.db.query(Trip).filter(Trip.id == trip_id).first()
        if not row:
            raise NotFoundError(f"Trip '{trip_id}' not found")
        return row

    def _commit(self, action: str):
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to %s: %s", action, str(e))
            raise StorageError(f"Could not {action}; no changes were saved")

    def _unique_short_code(self, destination: str) -> str:
        """Best-effort unique code; collisions are retried a few times."""
        code = generate_short_code(destination, self.rng)
        for _ in range(SHORT_CODE_ATTEMPTS - 1):
            if not self.db.query(Trip.id).filter(Trip.custom_id == code).first():
                break
            code = generate_short_code(destination, self.rng)
        return code

    def _ensure_short_code(self, row: Trip) -> Trip:
        if not row.custom_id:
            row.custom_id = self._unique_short_code(row.destination)
            self._commit("assign short code")
            self.db.refresh(row)
        return row

    # ---------- reads ----------
    def fetch_trip(self, trip_id: str) -> TripRead:
        return _row_to_trip(self._ensure_short_code(self._get_row(trip_id)))

    def fetch_trip_by_short_code(self, code: str) -> TripRead:
        """Look a trip up by its shareable code, falling back to its id."""
        row = self.db.query(Trip).filter(Trip.custom_id == code).first()
        if not row:
            row = self.db.query(Trip).filter(Trip.id == code).first()
        if not row:
            raise NotFoundError(f"No trip matches '{code}'")
        return _row_to_trip(self._ensure_short_code(row))

    def list_trips(self, manager_id: Optional[str] = None) -> List[TripRead]:
        query = self.db.query(Trip)
        if manager_id:
            query = query.filter(Trip.manager_id == manager_id)
        return [_row_to_trip(self._ensure_short_code(row)) for row in query.order_by(Trip.created_at).all()]

    # ---------- writes ----------
    def create_trip(self, payload: TripWrite) -> TripRead:
        _check_dates(payload.start_date, payload.end_date)

        participants = []
        for raw in payload.participants:
            if not raw.strip():
                continue
            name = participant_name(raw)
            if name in participants:
                raise DuplicateParticipantError(f"Participant '{name}' listed twice")
            participants.append(name)

        rate = parse_amount(payload.contribution_amount, "contribution_amount", allow_zero=True)
        trip = TripRead(
            id="",
            custom_id=self._unique_short_code(payload.destination),
            name=payload.name,
            destination=payload.destination,
            start_date=payload.start_date,
            end_date=payload.end_date,
            cover_image_url=payload.cover_image_url,
            manager_id=payload.manager_id,
            participants=participants,
            contributions=[Contribution(participant=p, amount=rate, paid=False) for p in participants],
            timeline=build_timeline_skeleton(trip_duration_days(payload.start_date, payload.end_date)),
        )

        row = Trip()
        _write_trip_to_row(trip, row)
        self.db.add(row)
        self._commit("create trip")
        self.db.refresh(row)
        logger.info("Created trip %s (%s) with %d participants", row.id, row.custom_id, len(participants))
        return _row_to_trip(row)

    def save_trip(self, trip: TripRead) -> TripRead:
        _check_dates(trip.start_date, trip.end_date)
        row = self._get_row(trip.id)
        _write_trip_to_row(trip, row)
        self._commit(f"save trip {trip.id}")
        self.db.refresh(row)
        return _row_to_trip(row)

    def update_details(self, trip_id: str, payload: TripUpdate) -> TripRead:
        trip = self.fetch_trip(trip_id)
        changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
        return self.save_trip(trip.model_copy(update=changes))

    def mutate(self, trip_id: str, operation: Callable[[TripAggregate], T]) -> Tuple[TripRead, T]:
        """Apply one aggregate operation and write the trip back.

        If the operation or the save fails, the stored trip keeps its last
        saved state.
        """
        aggregate = TripAggregate(self.fetch_trip(trip_id))
        result = operation(aggregate)
        return self.save_trip(aggregate.trip), result

    def delete_trip(self, trip_id: str):
        row = self._get_row(trip_id)
        self.db.delete(row)
        self._commit(f"delete trip {trip_id}")
        logger.info("Deleted trip %s", trip_id)

    def clone_trip(self, trip_id: str) -> TripRead:
        """Copy a trip's plan (details, itinerary, packing list) without its people or money."""
        original = self.fetch_trip(trip_id)
        row = Trip()
        clone = original.model_copy(update={
            "custom_id": self._unique_short_code(original.destination),
            "name": f"Copy of {original.name}",
            "participants": [],
            "contributions": [],
            "additional_contributions": [],
            "expenses": [],
        })
        _write_trip_to_row(clone, row)
        self.db.add(row)
        self._commit(f"clone trip {trip_id}")
        self.db.refresh(row)
        logger.info("Cloned trip %s into %s", trip_id, row.id)
        return _row_to_trip(row)


def get_trip_store(db: Session = Depends(get_db)) -> TripStore:
    return TripStore(db)
