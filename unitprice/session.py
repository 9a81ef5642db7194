# unitprice/session.py
from typing import Dict, List, Optional

from .engine import apply_edit, evaluate
from .logger import get_logger
from .models import Item, RankingResult, SavedComparison
from .storage import ComparisonStore, ValidationError
from .units import Dimension

logger = get_logger(__name__)

DEFAULT_ROWS = 2


class ComparisonSession:
    """
    The working list being edited, plus the per-item error messages from the
    last failed save. The ranking is recomputed after every edit.
    """

    def __init__(self, store: ComparisonStore, items: Optional[List[Item]] = None):
        self.store = store
        if items is None:
            items = [Item.blank(i) for i in range(1, DEFAULT_ROWS + 1)]
        self.items: List[Item] = [it.copy() for it in items]
        self.errors: Dict[int, str] = {}
        self.ranking: RankingResult = evaluate(self.items)

    def _recompute(self):
        self.ranking = evaluate(self.items)

    def edit(self, item_id: int, field: str, value: str) -> RankingResult:
        self.items = apply_edit(self.items, item_id, field, value)
        # typing into a row clears its error
        self.errors.pop(item_id, None)
        self._recompute()
        return self.ranking

    def add_item(self, unit_type=Dimension.VOLUME) -> Item:
        next_id = max((it.id for it in self.items), default=0) + 1
        item = Item.blank(next_id, unit_type)
        self.items.append(item)
        self._recompute()
        return item

    def remove_item(self, item_id: int):
        self.items = [it for it in self.items if it.id != item_id]
        self.errors.pop(item_id, None)
        self._recompute()

    def save(self) -> Optional[SavedComparison]:
        """Save the working list; on validation failure record errors and return None."""
        try:
            comparison = self.store.save(self.items)
        except ValidationError as e:
            self.errors = e.by_item()
            return None
        self.errors = {}
        return comparison

    def load(self, comparison_id: int) -> List[Item]:
        self.items = self.store.load(comparison_id)
        self.errors = {}
        self._recompute()
        logger.debug("Loaded comparison %d into session (%d items).", comparison_id, len(self.items))
        return self.items
