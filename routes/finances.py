from fastapi import APIRouter, Depends

from schemas import FinancesRead
from services.settlement import compute_settlement, expense_breakdown
from services.trip_store import TripStore, get_trip_store
from utils.dates import trip_duration_days

router = APIRouter(prefix="/trips/{trip_id}", tags=["Finances"])


@router.get("/finances", response_model=FinancesRead)
def get_finances(trip_id: str, store: TripStore = Depends(get_trip_store)):
    """
    Fund balance, per-person balances and the suggested paybacks.

    Positive balance = participant is owed money
    Negative balance = participant owes money
    Recomputed from the ledgers on every call.
    """
    trip = store.fetch_trip(trip_id)
    return FinancesRead(
        trip_id=trip.id,
        duration_days=trip_duration_days(trip.start_date, trip.end_date),
        participant_count=len(trip.participants),
        settlement=compute_settlement(trip),
        breakdown=expense_breakdown(trip),
    )
