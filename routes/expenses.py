from typing import List
from fastapi import APIRouter, Depends, status

from schemas import Expense, ExpenseWrite, ExpenseUpdate
from services.trip_store import TripStore, get_trip_store

router = APIRouter(prefix="/trips/{trip_id}/expenses", tags=["Expenses"])


@router.post("/", response_model=Expense, status_code=status.HTTP_201_CREATED)
def create_expense(trip_id: str, payload: ExpenseWrite, store: TripStore = Depends(get_trip_store)):
    _, expense = store.mutate(trip_id, lambda agg: agg.add_expense(
        payload.description,
        payload.amount,
        paid_by=payload.paid_by,
        category=payload.category,
        expense_date=payload.date,
        participants=payload.participants,
        paid_from_fund=payload.paid_from_fund,
    ))
    return expense


@router.get("/", response_model=List[Expense])
def list_expenses(trip_id: str, store: TripStore = Depends(get_trip_store)):
    return store.fetch_trip(trip_id).expenses


@router.patch("/{expense_id}", response_model=Expense)
def update_expense(trip_id: str, expense_id: str, payload: ExpenseUpdate, store: TripStore = Depends(get_trip_store)):
    _, expense = store.mutate(
        trip_id, lambda agg: agg.edit_expense(expense_id, **payload.model_dump(exclude_unset=True))
    )
    return expense


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_expense(trip_id: str, expense_id: str, store: TripStore = Depends(get_trip_store)):
    store.mutate(trip_id, lambda agg: agg.remove_expense(expense_id))
