from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status

from schemas import TripWrite, TripUpdate, TripRead, TripSummary
from services.trip_store import TripStore, get_trip_store

router = APIRouter(prefix="/trips", tags=["Trips"])


@router.post("/", response_model=TripRead, status_code=status.HTTP_201_CREATED)
def create_trip(payload: TripWrite, store: TripStore = Depends(get_trip_store)):
    """Create a trip with its initial fund round and a day-by-day timeline skeleton."""
    return store.create_trip(payload)


@router.get("/", response_model=List[TripSummary])
def list_trips(manager_id: Optional[str] = Query(None), store: TripStore = Depends(get_trip_store)):
    return store.list_trips(manager_id)


@router.get("/{trip_ref}", response_model=TripRead)
def get_trip(trip_ref: str, store: TripStore = Depends(get_trip_store)):
    """Join a trip by its shareable code; a plain trip id works too."""
    return store.fetch_trip_by_short_code(trip_ref)


@router.put("/{trip_id}", response_model=TripRead)
def update_trip(trip_id: str, payload: TripUpdate, store: TripStore = Depends(get_trip_store)):
    return store.update_details(trip_id, payload)


@router.delete("/{trip_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_trip(trip_id: str, store: TripStore = Depends(get_trip_store)):
    store.delete_trip(trip_id)


@router.post("/{trip_id}/clone", response_model=TripRead, status_code=status.HTTP_201_CREATED)
def clone_trip(trip_id: str, store: TripStore = Depends(get_trip_store)):
    return store.clone_trip(trip_id)
