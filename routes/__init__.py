from . import trips
from . import participants
from . import contributions
from . import expenses
from . import finances
from . import itinerary
from . import packing
from . import weather

__all__ = [
    "trips",
    "participants",
    "contributions",
    "expenses",
    "finances",
    "itinerary",
    "packing",
    "weather",
]
