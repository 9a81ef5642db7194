# unitprice/models.py
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional

from .units import Dimension, base_multiplier, default_unit, to_dimension


@dataclass
class Item:
    """
    One row of a comparison as the user typed it.
    price and amount stay raw strings so half-typed values survive editing.
    """
    id: int
    name: str = ""
    price: str = ""
    amount: str = ""
    unit: str = "ml"
    unit_type: Dimension = Dimension.VOLUME

    def __post_init__(self):
        self.unit_type = to_dimension(self.unit_type)
        # unit must belong to unit_type
        base_multiplier(self.unit_type, self.unit)

    @classmethod
    def blank(cls, item_id: int, unit_type=Dimension.VOLUME) -> "Item":
        dim = to_dimension(unit_type)
        return cls(id=item_id, unit=default_unit(dim), unit_type=dim)

    def copy(self) -> "Item":
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "amount": self.amount,
            "unit": self.unit,
            "unitType": self.unit_type.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Item":
        return cls(
            id=int(data["id"]),
            name=str(data.get("name", "")),
            price=str(data.get("price", "")),
            amount=str(data.get("amount", "")),
            unit=str(data["unit"]),
            unit_type=data["unitType"],
        )


@dataclass(frozen=True)
class RankedItem:
    item: Item
    price_per_base_unit: float
    percentage_diff: float = 0.0

    @property
    def id(self) -> int:
        return self.item.id

    @property
    def name(self) -> str:
        return self.item.name


class OutcomeStatus(str, Enum):
    INCLUDED = "included"
    EXCLUDED_INCOMPLETE = "excluded_incomplete"
    EXCLUDED_INVALID = "excluded_invalid"


@dataclass(frozen=True)
class ItemOutcome:
    item_id: int
    status: OutcomeStatus
    ranked: Optional[RankedItem] = None
    reason: str = ""

    @property
    def included(self) -> bool:
        return self.status is OutcomeStatus.INCLUDED


@dataclass
class RankingResult:
    results: List[RankedItem] = field(default_factory=list)
    best_value: Optional[RankedItem] = None
    outcomes: List[ItemOutcome] = field(default_factory=list)

    def is_best(self, ranked: RankedItem) -> bool:
        return self.best_value is not None and ranked.id == self.best_value.id


@dataclass(frozen=True)
class SavedComparison:
    id: int
    items: tuple
    date: str

    @property
    def label(self) -> str:
        return " vs ".join(it.name for it in self.items)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "items": [it.to_dict() for it in self.items],
            "date": self.date,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SavedComparison":
        return cls(
            id=int(data["id"]),
            items=tuple(Item.from_dict(it) for it in data["items"]),
            date=str(data["date"]),
        )


@dataclass(frozen=True)
class FieldError:
    item_id: int
    reason: str
