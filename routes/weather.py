from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from schemas import WeatherRead
from services.trip_store import TripStore, get_trip_store
from services.weather import WeatherProvider, get_weather_provider

router = APIRouter(prefix="/trips/{trip_id}", tags=["Weather"])


@router.get("/weather", response_model=WeatherRead)
async def get_trip_weather(
    trip_id: str,
    store: TripStore = Depends(get_trip_store),
    provider: WeatherProvider = Depends(get_weather_provider),
):
    """Current, hourly and two-day weather; `available` is false when it cannot be fetched."""
    trip = await run_in_threadpool(store.fetch_trip, trip_id)
    return await provider.get_weather(trip.destination)
