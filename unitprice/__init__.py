# unitprice/__init__.py
from .engine import apply_edit, evaluate, normalize, sanitize_price
from .models import FieldError, Item, ItemOutcome, OutcomeStatus, RankedItem, RankingResult, SavedComparison
from .session import ComparisonSession
from .storage import ComparisonNotFound, ComparisonStore, ValidationError
from .units import (
    Dimension,
    RegistryError,
    UnknownDimension,
    UnknownUnit,
    base_multiplier,
    dimensions,
    units_of,
)
