# unitprice/engine.py
import math
import re
from typing import Iterable, List, Optional

from .models import Item, ItemOutcome, OutcomeStatus, RankedItem, RankingResult
from .units import base_multiplier, default_unit, to_dimension

# Optional leading "$", digits, at most one decimal point.
_PRICE_INPUT = re.compile(r"^\$?(\d*\.?\d*)$")

EDITABLE_FIELDS = ("name", "price", "amount", "unit", "unitType")


def parse_decimal(raw) -> Optional[float]:
    """Parse a user-entered number; None when it is not a finite decimal."""
    if raw is None:
        return None
    try:
        value = float(str(raw).strip())
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def normalize(amount, unit: str, dimension) -> float:
    """
    Convert amount of unit into the dimension's base unit.
    Unparseable amounts give 0, meaning "not computable yet".
    """
    value = parse_decimal(amount)
    if value is None:
        return 0.0
    return value * base_multiplier(dimension, unit)


def _classify(item: Item) -> ItemOutcome:
    if not item.price or not item.amount:
        return ItemOutcome(
            item.id, OutcomeStatus.EXCLUDED_INCOMPLETE, reason="price and amount are required"
        )

    base_amount = normalize(item.amount, item.unit, item.unit_type)
    price = parse_decimal(item.price)
    if base_amount <= 0:
        return ItemOutcome(
            item.id, OutcomeStatus.EXCLUDED_INVALID, reason=f"invalid amount {item.amount!r}"
        )
    if price is None or price < 0:
        return ItemOutcome(
            item.id, OutcomeStatus.EXCLUDED_INVALID, reason=f"invalid price {item.price!r}"
        )

    ranked = RankedItem(item=item.copy(), price_per_base_unit=price / base_amount)
    return ItemOutcome(item.id, OutcomeStatus.INCLUDED, ranked=ranked)


def percentage_diff(value: float, best: float) -> float:
    """How much more expensive value is than best, in percent, 2 decimals."""
    if best == 0:
        # Nothing is a finite percentage above a free item.
        return 0.0 if value == 0 else math.inf
    return round((value - best) / best * 100, 2)


def evaluate(items: Iterable[Item]) -> RankingResult:
    """
    Rank items by price per base unit.
    - every input item gets an ItemOutcome, in input order
    - best value is the lowest price per base unit; ties go to the earliest item
    - percentage_diff is relative to the best value
    """
    outcomes = [_classify(it) for it in items]
    survivors = [o.ranked for o in outcomes if o.included]
    if not survivors:
        return RankingResult(results=[], best_value=None, outcomes=outcomes)

    # min() returns the first of several equal keys
    best_ppu = min(survivors, key=lambda r: r.price_per_base_unit).price_per_base_unit

    results: List[RankedItem] = []
    final_outcomes: List[ItemOutcome] = []
    best_value = None
    for o in outcomes:
        if not o.included:
            final_outcomes.append(o)
            continue
        ppu = o.ranked.price_per_base_unit
        ranked = RankedItem(
            item=o.ranked.item,
            price_per_base_unit=ppu,
            percentage_diff=percentage_diff(ppu, best_ppu),
        )
        if best_value is None and ppu == best_ppu:
            best_value = ranked
        results.append(ranked)
        final_outcomes.append(ItemOutcome(o.item_id, o.status, ranked=ranked))

    return RankingResult(results=results, best_value=best_value, outcomes=final_outcomes)


def sanitize_price(previous: str, raw: str) -> str:
    """Accept "$1.50"-style input with the symbol stripped; otherwise keep previous."""
    if raw == "":
        return ""
    m = _PRICE_INPUT.match(raw)
    if not m:
        return previous
    return m.group(1)


def apply_edit(items: List[Item], item_id: int, field: str, value: str) -> List[Item]:
    """
    Return a new working list with one field edit applied.
    Items other than item_id are copied unchanged.
    """
    if field not in EDITABLE_FIELDS:
        raise ValueError(f"Unknown item field: {field!r}")

    out: List[Item] = []
    for it in items:
        it = it.copy()
        if it.id == item_id:
            if field == "unitType":
                dim = to_dimension(value)
                it.unit_type = dim
                it.unit = default_unit(dim)
            elif field == "unit":
                base_multiplier(it.unit_type, value)
                it.unit = value
            elif field == "price":
                it.price = sanitize_price(it.price, value)
            else:
                setattr(it, field, value)
        out.append(it)
    return out
