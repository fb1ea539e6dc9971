from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Union[Decimal, int, float, str]) -> Decimal:
    """Normalize an amount to two decimal places."""
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def split_equally(amount: Decimal, names: List[str]) -> Dict[str, Decimal]:
    """Split `amount` into equal shares, one per name, exact to the cent.

    Leftover cents go one each to the first names in the list, so the shares
    always add back up to `amount`.
    """
    if not names:
        raise ValueError("cannot split an amount between zero participants")
    cents = int(to_money(amount) / CENT)
    base, remainder = divmod(cents, len(names))
    shares = {}
    for index, name in enumerate(names):
        share_cents = base + (1 if index < remainder else 0)
        shares[name] = Decimal(share_cents) * CENT
    return shares
