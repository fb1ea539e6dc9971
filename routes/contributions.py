from decimal import Decimal
from typing import List
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from schemas import (
    Contribution,
    ContributionRound,
    ContributionRoundWrite,
    ContributionRoundUpdate,
    InitialAmountUpdate,
)
from services.trip_aggregate import TripAggregate
from services.trip_store import TripStore, get_trip_store

router = APIRouter(prefix="/trips/{trip_id}/contributions", tags=["Contributions"])


class ContributionsRead(BaseModel):
    initial: List[Contribution]
    rounds: List[ContributionRound]
    total_collected: Decimal


@router.get("/", response_model=ContributionsRead)
def list_contributions(trip_id: str, store: TripStore = Depends(get_trip_store)):
    aggregate = TripAggregate(store.fetch_trip(trip_id))
    return ContributionsRead(
        initial=aggregate.trip.contributions,
        rounds=aggregate.trip.additional_contributions,
        total_collected=aggregate.total_collected(),
    )


# ---------- initial fund ----------
@router.post("/initial/{participant}/toggle", response_model=Contribution)
def toggle_initial_contribution(trip_id: str, participant: str, store: TripStore = Depends(get_trip_store)):
    _, contribution = store.mutate(trip_id, lambda agg: agg.toggle_contribution_paid(participant))
    return contribution


@router.put("/initial", response_model=List[Contribution])
def edit_initial_amount(trip_id: str, payload: InitialAmountUpdate, store: TripStore = Depends(get_trip_store)):
    trip, _ = store.mutate(trip_id, lambda agg: agg.edit_initial_amount(payload.amount))
    return trip.contributions


# ---------- additional rounds ----------
@router.post("/rounds/", response_model=ContributionRound, status_code=status.HTTP_201_CREATED)
def add_round(trip_id: str, payload: ContributionRoundWrite, store: TripStore = Depends(get_trip_store)):
    """Open a top-up round; only the listed participants (default: everyone) owe it."""
    _, round_ = store.mutate(trip_id, lambda agg: agg.add_round(
        payload.amount,
        description=payload.description,
        round_date=payload.date,
        participants=payload.participants,
    ))
    return round_


@router.put("/rounds/{round_id}", response_model=ContributionRound)
def edit_round(trip_id: str, round_id: str, payload: ContributionRoundUpdate, store: TripStore = Depends(get_trip_store)):
    _, round_ = store.mutate(
        trip_id, lambda agg: agg.edit_round_amount(round_id, payload.amount, payload.description)
    )
    return round_


@router.delete("/rounds/{round_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_round(trip_id: str, round_id: str, store: TripStore = Depends(get_trip_store)):
    store.mutate(trip_id, lambda agg: agg.remove_round(round_id))


@router.post("/rounds/{round_id}/{participant}/toggle", response_model=Contribution)
def toggle_round_contribution(trip_id: str, round_id: str, participant: str, store: TripStore = Depends(get_trip_store)):
    _, contribution = store.mutate(
        trip_id, lambda agg: agg.toggle_round_contribution_paid(round_id, participant)
    )
    return contribution
