from typing import List
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from schemas import ParticipantWrite, ParticipantRename, TripRead
from services.trip_aggregate import TripAggregate
from services.trip_store import TripStore, get_trip_store

router = APIRouter(prefix="/trips/{trip_id}/participants", tags=["Participants"])


class ParticipantRead(BaseModel):
    name: str
    payer_locked: bool  # paid personally for an expense, so cannot be removed


@router.get("/", response_model=List[ParticipantRead])
def list_participants(trip_id: str, store: TripStore = Depends(get_trip_store)):
    aggregate = TripAggregate(store.fetch_trip(trip_id))
    return [
        ParticipantRead(name=p, payer_locked=aggregate.is_payer_locked(p))
        for p in aggregate.trip.participants
    ]


@router.post("/", response_model=TripRead, status_code=status.HTTP_201_CREATED)
def add_participant(trip_id: str, payload: ParticipantWrite, store: TripStore = Depends(get_trip_store)):
    trip, _ = store.mutate(trip_id, lambda agg: agg.add_participant(payload.name))
    return trip


@router.put("/{name}", response_model=TripRead)
def rename_participant(trip_id: str, name: str, payload: ParticipantRename, store: TripStore = Depends(get_trip_store)):
    """Rename someone everywhere: fund rounds, payers and expense splits."""
    trip, _ = store.mutate(trip_id, lambda agg: agg.rename_participant(name, payload.new_name))
    return trip


@router.delete("/{name}", response_model=TripRead)
def remove_participant(trip_id: str, name: str, store: TripStore = Depends(get_trip_store)):
    trip, _ = store.mutate(trip_id, lambda agg: agg.remove_participant(name))
    return trip
