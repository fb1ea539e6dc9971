"""
Itinerary and packing suggestions from the Gemini generateContent API.

Failures never reach the caller: a missing key, a network error or an
unparseable answer all degrade to a small placeholder list. Good answers are
cached in the injected TTL cache.
"""
import json
from datetime import timedelta
from typing import Any, Dict, List, Optional

import httpx
from pydantic import TypeAdapter, ValidationError as SchemaError

from config import settings
from schemas import SuggestedEvent, SuggestedPackingItem
from utils.cache import TTLCache
from utils.logger import setup_api_logger

logger = setup_api_logger()

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
ITINERARY_TTL = timedelta(minutes=30)
PACKING_TTL = timedelta(minutes=60)

_events = TypeAdapter(List[SuggestedEvent])
_packing_items = TypeAdapter(List[SuggestedPackingItem])

TIMELINE_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "day": {"type": "INTEGER", "description": "Day number within the trip (1, 2, 3...)."},
            "time": {"type": "STRING", "description": 'Start time, e.g. "09:00".'},
            "activity": {"type": "STRING", "description": "Short activity title."},
            "description": {"type": "STRING", "description": "One-sentence description."},
            "location": {"type": "STRING", "description": "Place name or address."},
        },
        "required": ["day", "time", "activity", "description"],
    },
}

PACKING_SCHEMA = {
    "type": "ARRAY",
    "description": "Items to pack.",
    "items": {
        "type": "OBJECT",
        "properties": {"item": {"type": "STRING", "description": "Name of one item to pack."}},
        "required": ["item"],
    },
}

FALLBACK_ITINERARY = [
    SuggestedEvent(day=1, time="10:00", activity="Arrive and check in",
                   description="Settle in at your accommodation.", location="Hotel"),
    SuggestedEvent(day=1, time="13:00", activity="Lunch at a local cafe",
                   description="Try the local food.", location="City centre"),
]

FALLBACK_PACKING = [
    SuggestedPackingItem(item="Sunscreen"),
    SuggestedPackingItem(item="Sunglasses"),
    SuggestedPackingItem(item="Power bank"),
]


class SuggestionProvider:
    def __init__(
        self,
        api_key: str,
        model: str,
        cache: TTLCache,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.cache = cache
        self.timeout = timeout
        self.transport = transport

    async def _generate(self, prompt: str, schema: Dict[str, Any]) -> Any:
        if not self.api_key:
            raise RuntimeError("GEMINI_API_KEY is not set")
        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": schema,
            },
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            resp = await client.post(
                GEMINI_URL.format(model=self.model),
                params={"key": self.api_key},
                json=body,
            )
            resp.raise_for_status()
            data = resp.json()
        text = data["candidates"][0]["content"]["parts"][0]["text"]
        return json.loads(text.strip())

    async def suggest_itinerary(
        self,
        destination: str,
        duration_days: int,
        interests: str,
        target_day: Optional[int] = None,
    ) -> List[SuggestedEvent]:
        cache_key = f"timeline_{destination}_{duration_days}_{interests}_{target_day or 'all'}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        if target_day:
            prompt = (
                f"Create a detailed plan for DAY {target_day} of a {duration_days}-day trip to "
                f"{destination}. The travellers are interested in: {interests}. Suggest 3-5 "
                "activities for that day with specific places and sensible times."
            )
        else:
            prompt = (
                f"Create a detailed {duration_days}-day travel itinerary for {destination}. "
                f"The travellers are interested in: {interests}. Keep it realistic and fun, "
                "with specific places and activities."
            )

        try:
            events = _events.validate_python(await self._generate(prompt, TIMELINE_SCHEMA))
        except (httpx.HTTPError, RuntimeError, KeyError, IndexError, TypeError,
                json.JSONDecodeError, SchemaError) as e:
            logger.warning("Itinerary suggestion failed for %s: %s", destination, str(e))
            return list(FALLBACK_ITINERARY)

        self.cache.set(cache_key, events, ITINERARY_TTL)
        return events

    async def suggest_packing_items(
        self,
        destination: str,
        duration_days: int,
        activities: str,
    ) -> List[SuggestedPackingItem]:
        cache_key = f"packing_{destination}_{duration_days}_{activities}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        prompt = (
            f"List the essential items to pack for a {duration_days}-day trip to {destination}. "
            f"Planned activities: {activities}. Return only the list of items."
        )
        try:
            items = _packing_items.validate_python(await self._generate(prompt, PACKING_SCHEMA))
        except (httpx.HTTPError, RuntimeError, KeyError, IndexError, TypeError,
                json.JSONDecodeError, SchemaError) as e:
            logger.warning("Packing suggestion failed for %s: %s", destination, str(e))
            return list(FALLBACK_PACKING)

        self.cache.set(cache_key, items, PACKING_TTL)
        return items


_provider: Optional[SuggestionProvider] = None


def get_suggestion_provider() -> SuggestionProvider:
    """FastAPI dependency returning the process-wide provider."""
    global _provider
    if _provider is None:
        if not settings.gemini_api_key:
            logger.warning("GEMINI_API_KEY is not set; suggestions will use placeholders")
        _provider = SuggestionProvider(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            cache=TTLCache(),
            timeout=settings.http_timeout_seconds,
        )
    return _provider
