from typing import List
from fastapi import APIRouter, Depends, status
from fastapi.concurrency import run_in_threadpool

from schemas import (
    PackingItem,
    PackingItemWrite,
    PackingItemUpdate,
    PackingSuggestRequest,
    SuggestedPackingItem,
)
from services.suggestions import SuggestionProvider, get_suggestion_provider
from services.trip_store import TripStore, get_trip_store
from utils.dates import trip_duration_days

router = APIRouter(prefix="/trips/{trip_id}/packing", tags=["Packing List"])


@router.get("/", response_model=List[PackingItem])
def list_items(trip_id: str, store: TripStore = Depends(get_trip_store)):
    return store.fetch_trip(trip_id).packing_list


@router.post("/", response_model=PackingItem, status_code=status.HTTP_201_CREATED)
def create_item(trip_id: str, payload: PackingItemWrite, store: TripStore = Depends(get_trip_store)):
    _, item = store.mutate(trip_id, lambda agg: agg.add_packing_item(payload.item))
    return item


@router.patch("/{item_id}", response_model=PackingItem)
def update_item(trip_id: str, item_id: str, payload: PackingItemUpdate, store: TripStore = Depends(get_trip_store)):
    _, item = store.mutate(
        trip_id, lambda agg: agg.update_packing_item(item_id, item=payload.item, packed=payload.packed)
    )
    return item


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_item(trip_id: str, item_id: str, store: TripStore = Depends(get_trip_store)):
    store.mutate(trip_id, lambda agg: agg.remove_packing_item(item_id))


@router.post("/suggest", response_model=List[SuggestedPackingItem])
async def suggest_items(
    trip_id: str,
    payload: PackingSuggestRequest,
    store: TripStore = Depends(get_trip_store),
    provider: SuggestionProvider = Depends(get_suggestion_provider),
):
    trip = await run_in_threadpool(store.fetch_trip, trip_id)
    return await provider.suggest_packing_items(
        trip.destination,
        trip_duration_days(trip.start_date, trip.end_date),
        payload.activities,
    )
