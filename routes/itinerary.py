from typing import List
from fastapi import APIRouter, Depends, status
from fastapi.concurrency import run_in_threadpool

from schemas import (
    ItinerarySuggestRequest,
    SuggestedEvent,
    TimelineEvent,
    TimelineEventWrite,
    TimelineEventUpdate,
)
from services.suggestions import SuggestionProvider, get_suggestion_provider
from services.trip_store import TripStore, get_trip_store
from utils.dates import trip_duration_days

router = APIRouter(prefix="/trips/{trip_id}/itinerary", tags=["Itinerary"])


@router.get("/", response_model=List[TimelineEvent])
def list_events(trip_id: str, store: TripStore = Depends(get_trip_store)):
    return store.fetch_trip(trip_id).timeline


@router.post("/", response_model=TimelineEvent, status_code=status.HTTP_201_CREATED)
def create_event(trip_id: str, payload: TimelineEventWrite, store: TripStore = Depends(get_trip_store)):
    _, event = store.mutate(trip_id, lambda agg: agg.add_event(**payload.model_dump()))
    return event


@router.put("/{event_id}", response_model=TimelineEvent)
def update_event(trip_id: str, event_id: str, payload: TimelineEventUpdate, store: TripStore = Depends(get_trip_store)):
    _, event = store.mutate(
        trip_id, lambda agg: agg.update_event(event_id, **payload.model_dump(exclude_unset=True))
    )
    return event


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_event(trip_id: str, event_id: str, store: TripStore = Depends(get_trip_store)):
    store.mutate(trip_id, lambda agg: agg.remove_event(event_id))


@router.post("/suggest", response_model=List[SuggestedEvent])
async def suggest_events(
    trip_id: str,
    payload: ItinerarySuggestRequest,
    store: TripStore = Depends(get_trip_store),
    provider: SuggestionProvider = Depends(get_suggestion_provider),
):
    """
    Candidate activities for the whole trip or a single day.
    Nothing is saved; chosen candidates are added through POST /.
    """
    trip = await run_in_threadpool(store.fetch_trip, trip_id)
    return await provider.suggest_itinerary(
        trip.destination,
        trip_duration_days(trip.start_date, trip.end_date),
        payload.interests,
        target_day=payload.target_day,
    )
