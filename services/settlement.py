"""
Settlement engine: turns a trip's ledgers into balances and a payback plan.

Everything here is a pure function of the trip state. Nothing is cached or
stored; finances are recomputed on every read.
"""
from collections import OrderedDict
from decimal import Decimal
from typing import Dict, List, Optional

from config import settings
from schemas import (
    ExpenseBreakdown,
    ParticipantBalance,
    Settlement,
    SettlementTransaction,
    TripRead,
)
from utils.money import ZERO, split_equally, to_money


def total_collected(trip: TripRead) -> Decimal:
    """Paid contributions across the initial round and every later round."""
    initial = sum((c.amount for c in trip.contributions if c.paid), ZERO)
    additional = sum(
        (c.amount for r in trip.additional_contributions for c in r.contributions if c.paid),
        ZERO,
    )
    return initial + additional


def total_spent(trip: TripRead) -> Decimal:
    return sum((e.amount for e in trip.expenses), ZERO)


def total_spent_from_fund(trip: TripRead) -> Decimal:
    return sum((e.amount for e in trip.expenses if e.paid_from_fund), ZERO)


def fund_balance(trip: TripRead) -> Decimal:
    return total_collected(trip) - total_spent_from_fund(trip)


def participant_balances(trip: TripRead) -> List[ParticipantBalance]:
    """Per-person breakdown, in participant order.

    balance = initial contribution + later contributions + personal payments
              - equal share of every expense the person takes part in
    """
    contributed = OrderedDict((p, ZERO) for p in trip.participants)
    additional = {p: ZERO for p in trip.participants}
    paid_personally = {p: ZERO for p in trip.participants}
    shares = {p: ZERO for p in trip.participants}

    for p in trip.participants:
        # one initial contribution per participant; the first paid one counts
        paid = next((c for c in trip.contributions if c.participant == p and c.paid), None)
        if paid is not None:
            contributed[p] = paid.amount

    for round_ in trip.additional_contributions:
        for c in round_.contributions:
            if c.paid and c.participant in additional:
                additional[c.participant] += c.amount

    for expense in trip.expenses:
        if not expense.paid_from_fund and expense.paid_by in paid_personally:
            paid_personally[expense.paid_by] += expense.amount
        for name, share in split_equally(expense.amount, expense.participants).items():
            if name in shares:
                shares[name] += share

    return [
        ParticipantBalance(
            participant=p,
            contributed=contributed[p],
            additional_contributed=additional[p],
            paid_personally=paid_personally[p],
            shared_expense_share=shares[p],
            balance=contributed[p] + additional[p] + paid_personally[p] - shares[p],
        )
        for p in contributed
    ]


def settle_balances(
    balances: Dict[str, Decimal],
    dust_threshold: Optional[Decimal] = None,
) -> List[SettlementTransaction]:
    """Greedy debtor/creditor pairing in encounter order.

    Not a minimum-transaction matching. Every debtor pays out what they owe
    and every creditor receives what they are owed, except for amounts at or
    below the dust threshold.
    """
    dust = settings.dust_threshold if dust_threshold is None else dust_threshold
    # a zero threshold would never advance past a fully settled pair
    if not dust > 0:
        raise ValueError(f"dust_threshold must be greater than zero, got {dust}")

    debtors = [[name, -amount] for name, amount in balances.items() if amount < 0]
    creditors = [[name, amount] for name, amount in balances.items() if amount > 0]

    transactions = []
    i = j = 0
    while i < len(debtors) and j < len(creditors):
        debtor, creditor = debtors[i], creditors[j]
        amount = min(debtor[1], creditor[1])
        if amount > dust:
            transactions.append(SettlementTransaction(
                from_participant=debtor[0],
                to_participant=creditor[0],
                amount=amount,
            ))
        debtor[1] -= amount
        creditor[1] -= amount
        # both pointers move on an exact tie
        if debtor[1] < dust:
            i += 1
        if creditor[1] < dust:
            j += 1
    return transactions


def compute_settlement(trip: TripRead, dust_threshold: Optional[Decimal] = None) -> Settlement:
    breakdown = participant_balances(trip)
    per_person = OrderedDict((b.participant, b.balance) for b in breakdown)
    return Settlement(
        fund_balance=fund_balance(trip),
        total_contributed=total_collected(trip),
        total_spent=total_spent(trip),
        total_spent_from_fund=total_spent_from_fund(trip),
        per_person_balance=per_person,
        participants=breakdown,
        transactions=settle_balances(per_person, dust_threshold),
    )


def expense_breakdown(trip: TripRead) -> ExpenseBreakdown:
    """Spending totals by category and by day, plus the per-person average."""
    by_category: Dict[str, Decimal] = {}
    by_date = {}
    for expense in trip.expenses:
        by_category[expense.category] = by_category.get(expense.category, ZERO) + expense.amount
        by_date[expense.date] = by_date.get(expense.date, ZERO) + expense.amount

    spent = total_spent(trip)
    count = len(trip.participants)
    return ExpenseBreakdown(
        total_spent=spent,
        average_per_person=to_money(spent / count) if count else ZERO,
        by_category=by_category,
        by_date=dict(sorted(by_date.items())),
    )
