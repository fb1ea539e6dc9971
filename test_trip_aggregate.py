from datetime import date
from decimal import Decimal

import pytest

from schemas import FUND_PAYER
from services.errors import (
    ConflictError,
    DuplicateParticipantError,
    NotFoundError,
    ValidationError,
)
from services.trip_aggregate import TripAggregate


def D(value):
    return Decimal(str(value))


@pytest.fixture
def aggregate(make_trip):
    trip = make_trip(
        ["Alex", "Beth", "Chris"],
        initial=100,
        expenses=[
            (90, "Alex", ["Alex", "Beth", "Chris"]),
            (30, None, ["Beth", "Chris"]),
        ],
    )
    return TripAggregate(trip)


def all_names(trip):
    names = set(trip.participants)
    names.update(c.participant for c in trip.contributions)
    for r in trip.additional_contributions:
        names.update(c.participant for c in r.contributions)
    for e in trip.expenses:
        if not e.paid_from_fund:
            names.add(e.paid_by)
        names.update(e.participants)
    return names


# ---------- contribution rounds ----------
def test_add_round_creates_unpaid_contributions_for_the_subset(aggregate):
    round_ = aggregate.add_round(D(50), "Extra for the boat", date(2025, 7, 2), ["Alex", "Chris"])

    assert round_.amount == D(50)
    assert [(c.participant, c.amount, c.paid) for c in round_.contributions] == [
        ("Alex", D(50), False),
        ("Chris", D(50), False),
    ]
    assert aggregate.trip.additional_contributions == [round_]


def test_add_round_defaults_to_everyone(aggregate):
    round_ = aggregate.add_round(D(10))

    assert [c.participant for c in round_.contributions] == ["Alex", "Beth", "Chris"]
    assert round_.description
    assert round_.date == date.today()


@pytest.mark.parametrize("amount, subset", [
    (D(0), ["Alex"]),
    (D(-5), ["Alex"]),
    (D(10), []),
    (D(10), ["Zoe"]),
])
def test_add_round_rejects_bad_input(aggregate, amount, subset):
    before = aggregate.trip.model_dump()

    with pytest.raises(ValidationError):
        aggregate.add_round(amount, participants=subset)

    assert aggregate.trip.model_dump() == before


def test_toggle_round_contribution(aggregate):
    round_ = aggregate.add_round(D(20), participants=["Beth"])

    aggregate.toggle_round_contribution_paid(round_.id, "Beth")
    assert aggregate.total_collected() == D(320)

    aggregate.toggle_round_contribution_paid(round_.id, "Beth")
    assert aggregate.total_collected() == D(300)


def test_toggle_round_contribution_unknown_targets(aggregate):
    round_ = aggregate.add_round(D(20), participants=["Beth"])

    with pytest.raises(NotFoundError):
        aggregate.toggle_round_contribution_paid(round_.id, "Alex")
    with pytest.raises(NotFoundError):
        aggregate.toggle_round_contribution_paid("round-missing", "Beth")


def test_edit_round_amount_keeps_paid_flags(aggregate):
    round_ = aggregate.add_round(D(20), participants=["Alex", "Beth"])
    aggregate.toggle_round_contribution_paid(round_.id, "Alex")

    edited = aggregate.edit_round_amount(round_.id, D(35), "Fuel")

    assert edited.amount == D(35)
    assert edited.description == "Fuel"
    assert [(c.amount, c.paid) for c in edited.contributions] == [(D(35), True), (D(35), False)]
    with pytest.raises(ValidationError):
        aggregate.edit_round_amount(round_.id, D(0))


def test_blank_round_description_falls_back_to_the_default(aggregate):
    round_ = aggregate.add_round(D(20), "Fuel")

    edited = aggregate.edit_round_amount(round_.id, D(30), "   ")

    assert edited.description == "Top-up of 30.00"


def test_remove_round(aggregate):
    round_ = aggregate.add_round(D(20))

    aggregate.remove_round(round_.id)

    assert aggregate.trip.additional_contributions == []
    with pytest.raises(NotFoundError):
        aggregate.remove_round(round_.id)


def test_initial_round_toggle_and_edit(aggregate):
    aggregate.toggle_contribution_paid("Beth")
    assert aggregate.total_collected() == D(200)

    aggregate.edit_initial_amount(D(120))
    assert [c.amount for c in aggregate.trip.contributions] == [D(120)] * 3
    assert aggregate.total_collected() == D(240)

    with pytest.raises(NotFoundError):
        aggregate.toggle_contribution_paid("Zoe")
    with pytest.raises(ValidationError):
        aggregate.edit_initial_amount(D(0))


# ---------- expenses ----------
def test_fund_expense_overrides_the_payer(aggregate):
    expense = aggregate.add_expense("Taxi", D(45), paid_by="Beth", paid_from_fund=True)

    assert expense.paid_by == FUND_PAYER
    assert expense.participants == ["Alex", "Beth", "Chris"]
    assert expense.date == aggregate.trip.start_date
    assert aggregate.total_spent_from_fund() == D(75)


@pytest.mark.parametrize("kwargs", [
    dict(description="Dinner", amount=D(0), paid_by="Alex"),
    dict(description="   ", amount=D(10), paid_by="Alex"),
    dict(description="Dinner", amount=D(10), paid_by="Alex", participants=[]),
    dict(description="Dinner", amount=D(10), paid_by="Zoe"),
    dict(description="Dinner", amount=D(10)),
])
def test_add_expense_rejects_bad_input(aggregate, kwargs):
    before = aggregate.trip.model_dump()

    with pytest.raises(ValidationError):
        aggregate.add_expense(**kwargs)

    assert aggregate.trip.model_dump() == before


def test_edit_expense_is_partial(aggregate):
    edited = aggregate.edit_expense("e0", amount=D(120), category="Lodging")

    assert edited.amount == D(120)
    assert edited.category == "Lodging"
    assert edited.description == "expense 0"
    assert edited.paid_by == "Alex"
    assert aggregate.total_spent() == D(150)


@pytest.mark.parametrize("fields", [
    dict(amount=D(0)),
    dict(amount=D(-3)),
    dict(description="  "),
    dict(participants=[]),
    dict(participants=["Alex", "Zoe"]),
    dict(paid_by="Zoe"),
])
def test_edit_expense_rejects_bad_input(aggregate, fields):
    before = aggregate.trip.model_dump()

    with pytest.raises(ValidationError):
        aggregate.edit_expense("e0", **fields)

    assert aggregate.trip.model_dump() == before


def test_edit_expense_between_fund_and_personal(aggregate):
    assert aggregate.edit_expense("e0", paid_from_fund=True).paid_by == FUND_PAYER

    with pytest.raises(ValidationError):
        aggregate.edit_expense("e0", paid_from_fund=False)

    edited = aggregate.edit_expense("e0", paid_from_fund=False, paid_by="Chris")
    assert edited.paid_by == "Chris"
    with pytest.raises(NotFoundError):
        aggregate.edit_expense("missing", amount=D(1))


def test_fund_expense_switched_to_personal_needs_a_real_payer(make_trip):
    # "Fund" as a name predates the reserved-name check
    aggregate = TripAggregate(make_trip(["Fund", "Beth"], expenses=[(30, None, ["Fund", "Beth"])]))
    before = aggregate.trip.model_dump()

    with pytest.raises(ValidationError):
        aggregate.edit_expense("e0", paid_from_fund=False)

    assert aggregate.trip.model_dump() == before
    assert not aggregate.is_payer_locked("Fund")

    edited = aggregate.edit_expense("e0", paid_from_fund=False, paid_by="Beth")
    assert edited.paid_by == "Beth"


def test_fund_expense_edits_keep_the_fund_as_payer(aggregate):
    edited = aggregate.edit_expense("e1", amount=D(40))

    assert edited.paid_by == FUND_PAYER
    assert edited.paid_from_fund is True


def test_removing_last_personal_expense_unlocks_the_payer(aggregate):
    assert aggregate.is_payer_locked("Alex")

    aggregate.remove_expense("e0")

    assert not aggregate.is_payer_locked("Alex")
    aggregate.remove_participant("Alex")
    assert "Alex" not in aggregate.trip.participants


# ---------- participants ----------
def test_rename_is_a_pure_relabel(aggregate):
    aggregate.add_round(D(20), participants=["Alex", "Beth"])
    before = aggregate.settlement()

    aggregate.rename_participant("Alex", "Alexandra")
    after = aggregate.settlement()

    assert "Alex" not in all_names(aggregate.trip)
    assert after.fund_balance == before.fund_balance
    assert after.per_person_balance["Alexandra"] == before.per_person_balance["Alex"]
    assert [(t.from_participant, t.to_participant, t.amount) for t in after.transactions] == [
        (t.from_participant.replace("Alex", "Alexandra"), t.to_participant.replace("Alex", "Alexandra"), t.amount)
        for t in before.transactions
    ]
    assert aggregate.trip.expenses[0].paid_by == "Alexandra"


def test_rename_leaves_fund_expenses_alone(make_trip):
    aggregate = TripAggregate(make_trip(["Fund", "Beth"], expenses=[(10, None, ["Fund", "Beth"])]))

    aggregate.rename_participant("Fund", "Frank")

    assert aggregate.trip.expenses[0].paid_by == FUND_PAYER
    assert aggregate.trip.expenses[0].participants == ["Frank", "Beth"]


def test_rename_rejections_leave_the_trip_unchanged(aggregate):
    before = aggregate.trip.model_dump()

    with pytest.raises(DuplicateParticipantError) as exc:
        aggregate.rename_participant("Alex", "Beth")
    assert isinstance(exc.value, ConflictError)
    assert isinstance(exc.value, ValidationError)

    with pytest.raises(ValidationError):
        aggregate.rename_participant("Alex", "  ")
    with pytest.raises(NotFoundError):
        aggregate.rename_participant("Zoe", "Zed")

    assert aggregate.trip.model_dump() == before
    assert aggregate.rename_participant("Alex", "Alex") == "Alex"


def test_payer_cannot_be_removed(aggregate):
    before = aggregate.trip.model_dump()

    with pytest.raises(ConflictError):
        aggregate.remove_participant("Alex")

    assert aggregate.trip.model_dump() == before


def test_remove_participant_redistributes_their_share(aggregate):
    aggregate.add_round(D(20), participants=["Beth", "Chris"])

    aggregate.remove_participant("Chris")

    trip = aggregate.trip
    assert trip.participants == ["Alex", "Beth"]
    assert "Chris" not in all_names(trip)
    assert [e.participants for e in trip.expenses] == [["Alex", "Beth"], ["Beth"]]
    result = aggregate.settlement()
    assert result.participants[1].shared_expense_share == D(75)


def test_remove_participant_that_would_empty_an_expense(make_trip):
    aggregate = TripAggregate(make_trip(["A", "B"], expenses=[(10, None, ["B"])]))

    with pytest.raises(ConflictError):
        aggregate.remove_participant("B")
    with pytest.raises(NotFoundError):
        aggregate.remove_participant("Zoe")


def test_add_participant_copies_the_initial_rate(aggregate):
    aggregate.add_participant("  Dana ")

    trip = aggregate.trip
    assert trip.participants[-1] == "Dana"
    assert (trip.contributions[-1].participant, trip.contributions[-1].amount, trip.contributions[-1].paid) == (
        "Dana", D(100), False,
    )
    with pytest.raises(DuplicateParticipantError):
        aggregate.add_participant("Dana")
    with pytest.raises(ValidationError):
        aggregate.add_participant("")


@pytest.mark.parametrize("name", ["An/Binh", "/", FUND_PAYER, f" {FUND_PAYER} "])
def test_unusable_participant_names_are_rejected(aggregate, name):
    before = aggregate.trip.model_dump()

    with pytest.raises(ValidationError):
        aggregate.add_participant(name)
    with pytest.raises(ValidationError):
        aggregate.rename_participant("Beth", name)

    assert aggregate.trip.model_dump() == before


def test_add_participant_without_initial_round(make_trip):
    trip = make_trip([])

    aggregate = TripAggregate(trip)
    aggregate.add_participant("Solo")

    assert aggregate.trip.contributions[0].amount == D(0)


# ---------- itinerary & packing ----------
def test_timeline_events_stay_ordered(aggregate):
    late = aggregate.add_event(day=2, time="18:00", activity="Night market")
    early = aggregate.add_event(day=1, time="09:00", activity="Walking tour")

    assert [e.id for e in aggregate.trip.timeline] == [early.id, late.id]

    aggregate.update_event(late.id, day=1, time="08:00")
    assert aggregate.trip.timeline[0].id == late.id

    aggregate.remove_event(late.id)
    with pytest.raises(NotFoundError):
        aggregate.remove_event(late.id)


def test_packing_items(aggregate):
    item = aggregate.add_packing_item("Sunscreen")

    aggregate.update_packing_item(item.id, packed=True)
    assert aggregate.trip.packing_list[0].packed is True

    with pytest.raises(ValidationError):
        aggregate.update_packing_item(item.id, item=" ")
    aggregate.remove_packing_item(item.id)
    assert aggregate.trip.packing_list == []
